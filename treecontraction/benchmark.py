"""Benchmark: sequential evaluation against parallel tree contraction."""

from __future__ import annotations

import argparse
import math
import os
import random
import sys
import time
from typing import Callable, Sequence

from . import build_trees
from .contraction import tree_contract
from .nodes import Node
from .thread_pool import SimplePool

MAX_NODES = 4_000_000
DEFAULT_SHUFFLE_SEED = 0x9E3779B97F4A7C15
_ABS_REL_SWITCH = 1.0
_ABS_EPS = 1e-12

TreeGenerator = Callable[[int, random.Random], Node]

TREE_GENERATORS: tuple[tuple[str, TreeGenerator], ...] = (
    ("perfectBin", lambda d, g: build_trees.perfect_bin(d, g)),
    ("randomBalanced", lambda d, g: build_trees.random_balanced(d, g)),
    ("longSkewed", lambda d, g: build_trees.long_skewed(d, g)),
    ("fibonacciTree", lambda d, g: build_trees.fibonacci_tree(d, g)),
    ("alternatingLeftHeavy", lambda d, g: build_trees.alternating_left_heavy(d, g)),
    ("zigZagTree", lambda d, g: build_trees.zig_zag_tree(d, g)),
    ("midDensityTree", lambda d, g: build_trees.mid_density_tree(d, g)),
)


def count_nodes(root: Node | None) -> int:
    """The number of nodes in the tree under ``root``."""
    return len(collect_nodes(root))


def collect_nodes(root: Node | None) -> list[Node]:
    """All nodes under ``root`` in pre-order, root first."""
    nodes: list[Node] = []
    stack = [root] if root is not None else []
    while stack:
        node = stack.pop()
        nodes.append(node)
        stack.extend(reversed(node.children()))
    return nodes


def run_tree_contraction(
    root: Node, threads: int, pool: SimplePool, seed: int = 0
) -> float:
    """Evaluate the tree by contraction in random node order."""
    nodes = collect_nodes(root)
    rng = random.Random(seed or DEFAULT_SHUFFLE_SEED)
    if len(nodes) > 1:
        rest = nodes[1:]
        rng.shuffle(rest)
        nodes[1:] = rest
    tree_contract(nodes, root, threads, pool)
    pool.wait_idle()
    return root.value if root.value is not None else root.compute()


def time_us(fn: Callable[[], object]) -> float:
    """Run ``fn`` once and return the elapsed wall time in microseconds."""
    start = time.perf_counter()
    fn()
    return (time.perf_counter() - start) * 1e6


def _thread_counts() -> list[int]:
    hw_threads = os.cpu_count() or 1
    counts = []
    value = 2
    while value <= hw_threads * 2:
        counts.append(value)
        value <<= 1
    if counts[-1] != hw_threads:
        counts.append(hw_threads)
    return counts


def _tolerance(ref: float, n_nodes: int, tol_factor: float, tol_exp: float) -> float:
    if abs(ref) < _ABS_REL_SWITCH:
        return max(tol_factor * float(n_nodes) ** tol_exp, _ABS_EPS)
    return tol_factor * abs(ref)


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="treecontraction-bench",
        description="Compare sequential evaluation with parallel tree contraction.",
    )
    parser.add_argument("reps", nargs="?", type=int, default=1)
    parser.add_argument("tol_factor", nargs="?", type=float, default=1e-6)
    parser.add_argument("tol_exp", nargs="?", type=float, default=1.0001)
    parser.add_argument("--max-depth", type=int, default=20)
    args = parser.parse_args(argv)
    if args.reps < 1:
        parser.error("reps must be at least 1")
    if args.max_depth < 1:
        parser.error("--max-depth must be at least 1")
    return args


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)
    reps = args.reps
    master = random.Random(42)
    print("tree_type,depth,threads,n_nodes,baseline_us,contraction_us,speedup")

    for threads in _thread_counts():
        with SimplePool(threads) as pool:
            for name, make_tree in TREE_GENERATORS:
                for depth in range(1, args.max_depth + 1):
                    seed = master.getrandbits(32)
                    n_nodes = count_nodes(make_tree(depth, random.Random(seed)))
                    if n_nodes > MAX_NODES:
                        continue

                    baseline_values = []
                    base_sum = 0.0
                    for i in range(reps):
                        tree = make_tree(depth, random.Random(seed + i))
                        result: list[float] = []
                        base_sum += time_us(lambda: result.append(tree.compute()))
                        baseline_values.append(result[0])
                    base_us = base_sum / reps

                    contr_sum = 0.0
                    for i, ref in enumerate(baseline_values):
                        tree = make_tree(depth, random.Random(seed + i))
                        result = []
                        contr_sum += time_us(
                            lambda: result.append(run_tree_contraction(tree, threads, pool))
                        )
                        value = result[0]
                        tol = _tolerance(ref, n_nodes, args.tol_factor, args.tol_exp)
                        if math.isfinite(ref) and math.isfinite(value) and abs(ref - value) > tol:
                            raise RuntimeError(
                                f"{name} depth {depth}: contraction gave {value}, "
                                f"sequential evaluation gave {ref}"
                            )
                    contr_us = contr_sum / reps
                    speedup = base_us / contr_us if contr_us else math.inf

                    print(
                        f"{name},{depth},{threads},{n_nodes},"
                        f"{base_us:.3f},{contr_us:.3f},{speedup:.3f}"
                    )
    return 0


if __name__ == "__main__":
    sys.exit(main())