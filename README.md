# treecontraction

Evaluate arithmetic expression trees by parallel tree contraction.

A tree is built from `ValueNode` leaves and `PlusNode`, `MinusNode`,
`MultiplyNode` and `DivideNode` operators (module `treecontraction.nodes`).
Besides plain recursive evaluation with `compute()`, every node can take part
in a contraction through `contract()`:

- a leaf whose value is known is *raked* into its parent;
- a node with one child whose parent also has one child is *compressed* out
  of the tree, its pending map folded into the parent's.

Pending maps are `LinearFractional` objects (module
`treecontraction.linear_fractional`) for `x -> (a*x + b) / (c*x + d)`.
`contract()` takes per-node locks in a fixed order, so it may be called from
several threads at once. Division by zero raises `ZeroDivisionError`.

`treecontraction.contraction.tree_contract(nodes, root, num_threads, pool)`
splits the node list into `num_threads` slices and has the workers of a
`SimplePool` call `contract()` on them, round after round (each round waits on
a `CountDownLatch`), until the root has no children left. The root then holds
the value of the expression in `root.value`.

`treecontraction.thread_pool` provides `SafeUnboundedQueue`, a blocking FIFO,
and `SimplePool`, a fixed set of worker threads. `SimplePool.push(fn, *args)`
queues a task, `wait_idle()` blocks until every task has finished and raises
again the first exception a task raised, and `stop()` (also called when the
pool is used as a context manager) finishes outstanding work and joins the
workers.

## Installation

```
pip install .
```

The package has no runtime dependencies. For the tests:

```
pip install ".[test]"
pytest
```

## Building and evaluating a tree

Children must be told their parent with `link` (or `Node.set_parent`);
the generators in `treecontraction.build_trees` do this for you.

```python
import random

from treecontraction.nodes import ValueNode, PlusNode, MultiplyNode
from treecontraction.build_trees import link, perfect_bin
from treecontraction.thread_pool import SimplePool
from treecontraction.benchmark import run_tree_contraction

# (2 + 3) * 4, wired by hand
a, b, c = ValueNode(2.0), ValueNode(3.0), ValueNode(4.0)
s = PlusNode(a, b)
link(s, a)
link(s, b)
root = MultiplyNode(s, c)
link(root, s)
link(root, c)
print(root.compute())  # 20.0

# a random perfect binary tree of depth 10, contracted by 4 workers
rng = random.Random(42)
tree = perfect_bin(10, rng, True, "+")
with SimplePool(4) as pool:
    print(run_tree_contraction(tree, 4, pool, 0))
```

`run_tree_contraction` collects the nodes in pre-order, shuffles all but the
root with the given seed (a fixed default seed when it is 0), contracts the
tree and returns the root's value.

Tree generators in `treecontraction.build_trees`, each taking a depth (or
order) and a `random.Random`: `perfect_bin`, `random_balanced`,
`long_skewed`, `sparse_bin` (with a sparsity between 0 and 1),
`fibonacci_tree`, `alternating_left_heavy`, `zig_zag_tree` and
`mid_density_tree`. Leaves are uniform values in `[1, 2)`, and operators are
drawn from `+`, `*` and `/` unless `mix_ops` is false, in which case
`fixed_op` is used. `make_op`, `pick_op`, `rand_leaf` and `BatchBernoulli`
are the building blocks they use.

## Benchmark

```
treecontraction-bench [REPS] [TOL_FACTOR] [TOL_EXP] [--max-depth N]
```

Worker counts are the powers of two from 2 up to twice the CPU count, plus
the CPU count itself if it is not the last of these. For each worker count,
tree shape (`perfectBin`, `randomBalanced`, `longSkewed`, `fibonacciTree`,
`alternatingLeftHeavy`, `zigZagTree`, `midDensityTree`) and depth from 1 to
`--max-depth` (default 20), the command times plain recursive evaluation
against tree contraction and prints CSV rows:

```
tree_type,depth,threads,n_nodes,baseline_us,contraction_us,speedup
```

Trees of more than 4,000,000 nodes are skipped. `REPS` (default 1) is the
number of repetitions averaged per row. Each contraction result is checked
against the recursive one: the tolerance is `TOL_FACTOR` (default `1e-6`)
times `|ref|` when `|ref| >= 1`, and otherwise `TOL_FACTOR` times
`n_nodes ** TOL_EXP` (default `1.0001`), but no less than `1e-12`. A result
outside the tolerance stops the run with a `RuntimeError`.