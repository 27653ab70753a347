"""Parallel tree contraction for arithmetic expression trees, with tree generators and a benchmark."""

__version__ = "0.1.0"

__all__ = [
    "linear_fractional",
    "nodes",
    "thread_pool",
    "contraction",
    "build_trees",
    "benchmark",
]