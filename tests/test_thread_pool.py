import threading

import pytest

from treecontraction.thread_pool import SafeUnboundedQueue, SimplePool


def test_queue_is_fifo():
    queue = SafeUnboundedQueue()
    for item in ("a", "b", "c"):
        queue.push(item)
    assert [queue.pop(), queue.pop(), queue.pop()] == ["a", "b", "c"]


def test_queue_is_empty():
    queue = SafeUnboundedQueue()
    assert queue.is_empty()
    queue.push(1)
    assert not queue.is_empty()
    assert len(queue) == 1
    queue.pop()
    assert queue.is_empty()


def test_pop_blocks_until_push():
    queue = SafeUnboundedQueue()
    received = []
    consumer = threading.Thread(target=lambda: received.append(queue.pop()))
    consumer.start()
    consumer.join(timeout=0.05)
    assert consumer.is_alive()
    queue.push("item")
    consumer.join(timeout=5)
    assert received == ["item"]


def test_wait_empty_returns_after_drain():
    queue = SafeUnboundedQueue()
    for item in range(20):
        queue.push(item)
    drained = []

    def consume():
        for _ in range(20):
            drained.append(queue.pop())

    consumer = threading.Thread(target=consume)
    consumer.start()
    queue.wait_empty()
    consumer.join(timeout=5)
    assert queue.is_empty()
    assert drained == list(range(20))


def test_pool_runs_every_task():
    results = []
    with SimplePool(4) as pool:
        for value in range(100):
            pool.push(results.append, value)
        pool.wait_idle()
        assert sorted(results) == list(range(100))


def test_pool_passes_arguments():
    results = []
    with SimplePool(2) as pool:
        pool.push(lambda a, b: results.append((a, b)), "x", "y")
        pool.wait_idle()
    assert results == [("x", "y")]


def test_wait_empty_then_idle():
    results = []
    with SimplePool(2) as pool:
        for value in range(10):
            pool.push(results.append, value)
        pool.wait_empty()
        pool.wait_idle()
        assert len(results) == 10


def test_task_error_is_raised_by_wait_idle():
    def failing():
        raise RuntimeError("boom")

    results = []
    with SimplePool(2) as pool:
        pool.push(failing)
        with pytest.raises(RuntimeError, match="boom"):
            pool.wait_idle()
        pool.push(results.append, "after")
        pool.wait_idle()
    assert results == ["after"]


def test_stop_finishes_work_and_is_idempotent():
    results = []
    pool = SimplePool(3)
    for value in range(30):
        pool.push(results.append, value)
    pool.stop()
    assert sorted(results) == list(range(30))
    pool.stop()
    assert len(results) == 30


def test_push_after_stop_raises():
    pool = SimplePool(1)
    pool.stop()
    with pytest.raises(RuntimeError):
        pool.push(print)