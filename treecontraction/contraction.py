"""Parallel tree contraction driven by a worker pool."""

from __future__ import annotations

import threading
from typing import Sequence

from .nodes import Node
from .thread_pool import SimplePool


class CountDownLatch:
    """A one-shot barrier released once it has been counted down to zero."""

    def __init__(self, count: int) -> None:
        if count < 0:
            raise ValueError("latch count must not be negative")
        self._count = count
        self._cond = threading.Condition()
        self._error: BaseException | None = None

    def count_down(self) -> None:
        with self._cond:
            if self._count == 0:
                raise ValueError("latch has already been released")
            self._count -= 1
            if self._count == 0:
                self._cond.notify_all()

    def wait(self) -> None:
        """Block until the count reaches zero; raise any recorded failure."""
        with self._cond:
            self._cond.wait_for(lambda: self._count == 0)
            error = self._error
        if error is not None:
            raise error

    def _fail(self, exc: BaseException) -> None:
        with self._cond:
            if self._error is None:
                self._error = exc


def schedule_contract(
    nodes: Sequence[Node | None], start: int, end: int, latch: CountDownLatch
) -> None:
    """Try to contract ``nodes[start:end]``, counting the latch down once per slot."""
    batch = nodes[start:end]
    for position, node in enumerate(batch):
        try:
            if node is not None and not node.is_done():
                node.contract()
        except Exception as exc:
            latch._fail(exc)
            for _ in range(len(batch) - position):
                latch.count_down()
            return
        latch.count_down()


def tree_contract(
    nodes: Sequence[Node | None], root: Node, num_threads: int, pool: SimplePool
) -> None:
    """Contract the tree under ``root`` in rounds until the root has no children."""
    if num_threads <= 0:
        raise ValueError("num_threads must be positive")
    count = len(nodes)
    if count == 0 and root.degree() > 0:
        raise ValueError("no nodes given for a tree that still has children")
    stride = count // num_threads + 1
    while root.degree() > 0:
        latch = CountDownLatch(count)
        for start in range(0, count, stride):
            pool.push(schedule_contract, nodes, start, min(start + stride, count), latch)
        latch.wait()