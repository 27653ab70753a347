"""Random expression-tree generators used to exercise tree contraction."""

from __future__ import annotations

import random
from typing import Iterator

from .nodes import DivideNode, MultiplyNode, Node, PlusNode, ValueNode

_OPERATORS = ("+", "*", "/")
_NODE_TYPES = {"+": PlusNode, "*": MultiplyNode, "/": DivideNode}


def make_op(op: str, left: Node, right: Node) -> Node:
    """Build the operator node for ``op`` over ``left`` and ``right``."""
    try:
        node_type = _NODE_TYPES[op]
    except KeyError:
        raise ValueError(f"unsupported operator: {op!r}") from None
    return node_type(left, right)


def pick_op(rng: random.Random) -> str:
    """Pick one of ``+``, ``*`` and ``/`` uniformly."""
    return _OPERATORS[rng.randint(0, 2)]


def rand_leaf(rng: random.Random, lo: float = 1.0, hi: float = 2.0) -> float:
    """A uniform leaf value in ``[lo, hi)``."""
    return rng.uniform(lo, hi)


def link(parent: Node, child: Node | None) -> None:
    """Make ``parent`` the parent of ``child`` if there is a child."""
    if child is not None:
        child.set_parent(parent)


def _leaf(rng: random.Random) -> ValueNode:
    return ValueNode(rand_leaf(rng))


def _join(rng: random.Random, mix_ops: bool, fixed_op: str, left: Node, right: Node) -> Node:
    node = make_op(pick_op(rng) if mix_ops else fixed_op, left, right)
    link(node, left)
    link(node, right)
    return node


def perfect_bin(
    depth: int, rng: random.Random, mix_ops: bool = True, fixed_op: str = "+"
) -> Node:
    """A complete binary tree of the given depth."""
    if depth == 0:
        return _leaf(rng)
    left = perfect_bin(depth - 1, rng, mix_ops, fixed_op)
    right = perfect_bin(depth - 1, rng, mix_ops, fixed_op)
    return _join(rng, mix_ops, fixed_op, left, right)


def random_balanced(
    depth: int, rng: random.Random, mix_ops: bool = True, fixed_op: str = "+"
) -> Node:
    """A tree whose depth budget is split at random between the two sides."""
    if depth == 0:
        return _leaf(rng)
    left_used = rng.randint(0, depth - 1)
    right_used = depth - 1 - left_used
    left = random_balanced(left_used, rng, mix_ops, fixed_op)
    right = random_balanced(right_used, rng, mix_ops, fixed_op)
    return _join(rng, mix_ops, fixed_op, left, right)


def long_skewed(
    depth: int,
    rng: random.Random,
    mix_ops: bool = True,
    fixed_op: str = "+",
    left_heavy: bool = True,
) -> Node:
    """A caterpillar: a spine of the given depth with a leaf hanging off each node."""
    if depth == 0:
        return _leaf(rng)
    inner = long_skewed(depth - 1, rng, mix_ops, fixed_op, left_heavy)
    leaf = _leaf(rng)
    left, right = (inner, leaf) if left_heavy else (leaf, inner)
    return _join(rng, mix_ops, fixed_op, left, right)


class BatchBernoulli:
    """Bernoulli trials drawn eight at a time from one 64-bit draw."""

    def __init__(self, rng: random.Random, p: float) -> None:
        self._rng = rng
        self._threshold = int(p * 255.0) & 0xFF
        self._buffer = 0
        self._bytes_left = 0

    def next(self) -> bool:
        if self._bytes_left == 0:
            high = self._rng.getrandbits(32)
            low = self._rng.getrandbits(32)
            self._buffer = (high << 32) | low
            self._bytes_left = 8
        byte = self._buffer & 0xFF
        self._buffer >>= 8
        self._bytes_left -= 1
        return byte < self._threshold

    def __iter__(self) -> Iterator[bool]:
        while True:
            yield self.next()


def sparse_bin(
    depth: int,
    sparsity: float,
    rng: random.Random,
    mix_ops: bool = True,
    fixed_op: str = "+",
) -> Node:
    """A tree between complete (sparsity 0) and caterpillar (sparsity 1).

    Each internal node keeps each side deep with probability ``1 - sparsity``,
    and always at least one of them.
    """
    if sparsity <= 0.0:
        return perfect_bin(depth, rng, mix_ops, fixed_op)
    if sparsity >= 1.0:
        left_heavy = bool(rng.randint(0, 1))
        return long_skewed(depth, rng, mix_ops, fixed_op, left_heavy)
    if depth == 0:
        return _leaf(rng)

    coin = BatchBernoulli(rng, 1.0 - sparsity)
    masks: list[tuple[bool, bool]] = []
    stack = [depth]
    while stack:
        d = stack.pop()
        if d == 0:
            continue
        go_left = coin.next()
        go_right = coin.next()
        if not go_left and not go_right:
            if coin.next():
                go_left = True
            else:
                go_right = True
        masks.append((go_left, go_right))
        if go_right:
            stack.append(d - 1)
        if go_left:
            stack.append(d - 1)

    pending = iter(masks)

    def build(d: int) -> Node:
        if d == 0:
            return _leaf(rng)
        go_left, go_right = next(pending)
        left = build(d - 1) if go_left else _leaf(rng)
        right = build(d - 1) if go_right else _leaf(rng)
        return _join(rng, mix_ops, fixed_op, left, right)

    return build(depth)


def fibonacci_tree(
    n: int, rng: random.Random, mix_ops: bool = True, fixed_op: str = "+"
) -> Node:
    """A Fibonacci tree: subtrees of orders ``n - 1`` and ``n - 2``."""
    if n in (0, 1):
        return _leaf(rng)
    left = fibonacci_tree(n - 1, rng, mix_ops, fixed_op)
    right = fibonacci_tree(n - 2, rng, mix_ops, fixed_op)
    return _join(rng, mix_ops, fixed_op, left, right)


def alternating_left_heavy(depth: int, rng: random.Random) -> Node:
    """A left spine whose operator at each level is chosen by ``depth % 3``."""
    if depth == 0:
        return _leaf(rng)
    op = _OPERATORS[depth % 3]
    left = alternating_left_heavy(depth - 1, rng)
    right = _leaf(rng)
    return _join(rng, False, op, left, right)


def zig_zag_tree(depth: int, rng: random.Random, left: bool = True) -> Node:
    """A spine that switches side at every level."""
    if depth == 0:
        return _leaf(rng)
    deep = zig_zag_tree(depth - 1, rng, not left)
    leaf = _leaf(rng)
    lhs, rhs = (deep, leaf) if left else (leaf, deep)
    return _join(rng, True, "+", lhs, rhs)


def mid_density_tree(
    depth: int, rng: random.Random, mix_ops: bool = True, fixed_op: str = "+"
) -> Node:
    """A tree with one full-depth side and one side of random depth."""
    if depth == 0:
        return _leaf(rng)
    skew_left = rng.random() < 0.6
    left_depth = depth - 1 if skew_left else rng.randint(0, depth - 1)
    right_depth = rng.randint(0, depth - 1) if skew_left else depth - 1
    left = mid_density_tree(left_depth, rng, mix_ops, fixed_op)
    right = mid_density_tree(right_depth, rng, mix_ops, fixed_op)
    return _join(rng, mix_ops, fixed_op, left, right)