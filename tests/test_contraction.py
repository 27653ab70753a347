import random
import threading

import pytest

from treecontraction.contraction import CountDownLatch, schedule_contract, tree_contract
from treecontraction.nodes import DivideNode, MultiplyNode, PlusNode, ValueNode
from treecontraction.thread_pool import SimplePool

OPS = {"+": PlusNode, "*": MultiplyNode, "/": DivideNode}


def build(spec, nodes):
    if isinstance(spec, tuple):
        op, left_spec, right_spec = spec
        left = build(left_spec, nodes)
        right = build(right_spec, nodes)
        node = OPS[op](left, right)
        left.set_parent(node)
        right.set_parent(node)
    else:
        node = ValueNode(spec)
    nodes.append(node)
    return node


def reference(spec):
    return build(spec, []).compute()


def random_spec(rng, depth):
    if depth == 0 or rng.random() < 0.15:
        return rng.uniform(1.0, 2.0)
    return (rng.choice("+*/"), random_spec(rng, depth - 1), random_spec(rng, depth - 1))


def skewed_spec(length):
    spec = 1.5
    for step in range(length):
        leaf = 1.0 + (step % 9) / 10
        op = "+*/"[step % 3]
        spec = (op, spec, leaf) if step % 2 else (op, leaf, spec)
    return spec


def test_latch_releases_at_zero():
    latch = CountDownLatch(2)
    latch.count_down()
    latch.count_down()
    latch.wait()
    with pytest.raises(ValueError):
        latch.count_down()


def test_latch_rejects_negative_count():
    with pytest.raises(ValueError):
        CountDownLatch(-1)


def test_latch_wait_blocks():
    latch = CountDownLatch(1)
    released = threading.Event()
    waiter = threading.Thread(target=lambda: (latch.wait(), released.set()))
    waiter.start()
    waiter.join(timeout=0.05)
    assert not released.is_set()
    latch.count_down()
    waiter.join(timeout=5)
    assert released.is_set()
    # the latch has reached zero, so a further count down is rejected
    with pytest.raises(ValueError):
        latch.count_down()


def test_schedule_contract_skips_missing_nodes():
    spec = ("+", 1.0, 2.0)
    nodes = []
    root = build(spec, nodes)
    slots = [None, nodes[0], nodes[1]]
    latch = CountDownLatch(len(slots))
    schedule_contract(slots, 0, len(slots), latch)
    latch.wait()
    assert nodes[0].is_done() and nodes[1].is_done()
    assert root.value == pytest.approx(reference(spec))


def test_schedule_contract_reports_failure_through_latch():
    nodes = []
    build(("/", 1.0, 0.0), nodes)
    latch = CountDownLatch(2)
    schedule_contract(nodes, 0, 2, latch)
    with pytest.raises(ZeroDivisionError):
        latch.wait()


@pytest.mark.parametrize("threads", [1, 2, 4])
@pytest.mark.parametrize("seed", range(5))
def test_tree_contract_matches_compute(threads, seed):
    rng = random.Random(seed)
    spec = ("+", random_spec(rng, 8), random_spec(rng, 8))
    nodes = []
    root = build(spec, nodes)
    rng.shuffle(nodes)
    with SimplePool(threads) as pool:
        tree_contract(nodes, root, threads, pool)
    assert root.degree() == 0
    assert root.value == pytest.approx(reference(spec), rel=1e-9)


@pytest.mark.parametrize("threads", [1, 3])
def test_tree_contract_on_skewed_tree(threads):
    spec = skewed_spec(300)
    nodes = []
    root = build(spec, nodes)
    random.Random(7).shuffle(nodes)
    with SimplePool(threads) as pool:
        tree_contract(nodes, root, threads, pool)
    assert root.value == pytest.approx(reference(spec), rel=1e-9)


def test_tree_contract_on_single_leaf():
    root = ValueNode(1.75)
    with SimplePool(1) as pool:
        tree_contract([root], root, 2, pool)
    assert root.value == 1.75


def test_tree_contract_rejects_zero_threads():
    root = ValueNode(1.0)
    with SimplePool(1) as pool:
        with pytest.raises(ValueError):
            tree_contract([root], root, 0, pool)


def test_tree_contract_propagates_errors():
    nodes = []
    root = build(("/", 1.0, 0.0), nodes)
    with SimplePool(2) as pool:
        with pytest.raises(ZeroDivisionError):
            tree_contract(nodes, root, 2, pool)