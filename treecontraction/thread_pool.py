"""A blocking FIFO queue and a simple fixed-size worker pool."""

from __future__ import annotations

import threading
from collections import deque
from typing import Any, Callable, Generic, TypeVar

T = TypeVar("T")


class SafeUnboundedQueue(Generic[T]):
    """An unbounded thread-safe FIFO whose ``pop`` blocks while empty."""

    def __init__(self) -> None:
        self._items: deque[T] = deque()
        self._lock = threading.Lock()
        self._not_empty = threading.Condition(self._lock)
        self._empty = threading.Condition(self._lock)

    def push(self, item: T) -> None:
        with self._lock:
            was_empty = not self._items
            self._items.append(item)
            if was_empty:
                self._not_empty.notify_all()

    def pop(self) -> T:
        """Remove and return the oldest item, waiting for one if needed."""
        with self._lock:
            while not self._items:
                self._empty.notify_all()
                self._not_empty.wait()
            item = self._items.popleft()
            if not self._items:
                self._empty.notify_all()
            return item

    def wait_empty(self) -> None:
        """Block until the queue has been drained."""
        with self._lock:
            while self._items:
                self._empty.wait()

    def is_empty(self) -> bool:
        return not self._items

    def __len__(self) -> int:
        return len(self._items)


class SimplePool:
    """A pool of worker threads running pushed tasks.

    An exception raised by a task is kept and raised again by the next
    ``wait_idle`` call.
    """

    def __init__(self, num_workers: int = 0) -> None:
        self._tasks: SafeUnboundedQueue[tuple[Callable[..., Any], tuple] | None] = (
            SafeUnboundedQueue()
        )
        self._idle = threading.Condition()
        self._pending = 0
        self._error: BaseException | None = None
        self._stopped = False
        self._workers = [
            threading.Thread(target=self._work, name=f"pool-worker-{i}", daemon=True)
            for i in range(num_workers)
        ]
        for worker in self._workers:
            worker.start()

    def _work(self) -> None:
        while True:
            task = self._tasks.pop()
            if task is None:
                return
            fn, args = task
            try:
                fn(*args)
            except Exception as exc:
                with self._idle:
                    if self._error is None:
                        self._error = exc
            finally:
                with self._idle:
                    self._pending -= 1
                    if self._pending == 0:
                        self._idle.notify_all()

    def push(self, fn: Callable[..., Any], *args: Any) -> None:
        """Queue ``fn(*args)`` for a worker."""
        if self._stopped:
            raise RuntimeError("pool has been stopped")
        with self._idle:
            self._pending += 1
        self._tasks.push((fn, args))

    def wait_empty(self) -> None:
        """Block until every queued task has been taken by a worker."""
        self._tasks.wait_empty()

    def wait_idle(self) -> None:
        """Block until every pushed task has finished."""
        with self._idle:
            self._idle.wait_for(lambda: self._pending == 0)
            error, self._error = self._error, None
        if error is not None:
            raise error

    def stop(self) -> None:
        """Finish outstanding work and shut the workers down."""
        if self._stopped:
            return
        try:
            self.wait_idle()
        finally:
            self._stopped = True
            for _ in self._workers:
                self._tasks.push(None)
            for worker in self._workers:
                worker.join()

    def __enter__(self) -> SimplePool:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop()