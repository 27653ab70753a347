"""Expression tree nodes that support parallel rake/compress contraction."""

from __future__ import annotations

import threading
import weakref
from abc import ABC, abstractmethod
from contextlib import ExitStack, contextmanager
from typing import Iterator

from .linear_fractional import LinearFractional


@contextmanager
def _locked(*nodes: Node) -> Iterator[None]:
    """Hold the locks of all given nodes, taken in a fixed global order."""
    unique = {id(node): node for node in nodes}
    with ExitStack() as stack:
        for key in sorted(unique):
            stack.enter_context(unique[key]._lock)
        yield


class Node(ABC):
    """A binary expression node.

    A node whose value is known and that has no children can be raked into
    its parent; a node with one child whose parent also has one child can be
    compressed out of the tree, its pending function folded into the parent's.
    """

    def __init__(self, left: Node | None = None, right: Node | None = None) -> None:
        self._parent_ref: weakref.ref[Node] | None = None
        self._left = left
        self._right = right
        self._num_children = 0
        self._lock = threading.Lock()
        self._done = False
        self.is_left = False
        self._lin_frac = LinearFractional()
        self.value: float | None = None
        if left is not None:
            left.is_left = True
            self._num_children += 1
        if right is not None:
            right.is_left = False
            self._num_children += 1

    def _parent(self) -> Node | None:
        return None if self._parent_ref is None else self._parent_ref()

    def set_parent(self, parent: Node | None) -> None:
        """Record ``parent`` as this node's parent (held weakly)."""
        self._parent_ref = None if parent is None else weakref.ref(parent)

    def degree(self) -> int:
        """The number of children still attached."""
        return self._num_children

    def is_leaf(self) -> bool:
        return self._num_children == 0

    def is_done(self) -> bool:
        """Whether this node has been contracted away."""
        return self._done

    def children(self) -> list[Node]:
        """The attached children, left first."""
        return [child for child in (self._left, self._right) if child is not None]

    def is_parent(self, candidate: Node | None) -> bool:
        parent = self._parent()
        return parent is not None and parent is candidate

    def is_son(self, candidate: Node | None) -> bool:
        return candidate is not None and (
            self._left is candidate or self._right is candidate
        )

    def _absorb(self, x: float, fresh: LinearFractional) -> None:
        if self._lin_frac.was_set():
            self.value = self._lin_frac.eval(x)
        else:
            self._lin_frac = fresh

    @abstractmethod
    def _on_rake_left(self, x: float) -> None:
        """Take in the value of a raked left child."""

    @abstractmethod
    def _on_rake_right(self, x: float) -> None:
        """Take in the value of a raked right child."""

    @abstractmethod
    def compute(self) -> float:
        """Evaluate the subtree sequentially and return its value."""

    def contract(self) -> None:
        """Try one rake or compress step on this node; safe to call concurrently."""
        if self._done:
            return
        parent = self._parent()
        if parent is None:
            return

        if self._num_children == 0 and self.value is not None:
            with _locked(self, parent):
                if not (
                    self.is_parent(parent)
                    and self._num_children == 0
                    and parent.degree() >= 1
                    and not self._done
                ):
                    return
                if self.is_left:
                    parent._on_rake_left(self.value)
                    parent._left = None
                else:
                    parent._on_rake_right(self.value)
                    parent._right = None
                parent._num_children -= 1
                self._done = True

        elif self._num_children == 1 and parent._num_children == 1:
            son = self._left if self._left is not None else self._right
            if son is None:
                return
            with _locked(self, parent, son):
                if not (
                    self.is_parent(parent)
                    and self.is_son(son)
                    and self.degree() == 1
                    and parent.degree() == 1
                    and not self._done
                ):
                    return
                parent._lin_frac = parent._lin_frac.compose(self._lin_frac)
                if self.is_left:
                    parent._left = son
                    son.is_left = True
                else:
                    parent._right = son
                    son.is_left = False
                son._parent_ref = weakref.ref(parent)
                self._num_children -= 1
                self._done = True


class ValueNode(Node):
    """A leaf holding a constant."""

    def __init__(self, value: float) -> None:
        super().__init__()
        self.value = value

    def _on_rake_left(self, x: float) -> None:
        pass

    def _on_rake_right(self, x: float) -> None:
        pass

    def compute(self) -> float:
        return self.value


class PlusNode(Node):
    def _on_rake_left(self, x: float) -> None:
        self._absorb(x, LinearFractional(1, x, 0, 1))

    def _on_rake_right(self, x: float) -> None:
        self._absorb(x, LinearFractional(1, x, 0, 1))

    def compute(self) -> float:
        total = sum(child.compute() for child in self.children())
        self.value = total
        return total


class MinusNode(Node):
    def _on_rake_left(self, x: float) -> None:
        self._absorb(x, LinearFractional(-1, x, 0, 1))

    def _on_rake_right(self, x: float) -> None:
        self._absorb(x, LinearFractional(1, -x, 0, 1))

    def compute(self) -> float:
        first, second = (child.compute() for child in self.children())
        self.value = first - second
        return self.value


class MultiplyNode(Node):
    def _on_rake_left(self, x: float) -> None:
        self._absorb(x, LinearFractional(x, 0, 0, 1))

    def _on_rake_right(self, x: float) -> None:
        self._absorb(x, LinearFractional(x, 0, 0, 1))

    def compute(self) -> float:
        product = 1.0
        for child in self.children():
            product *= child.compute()
        self.value = product
        return product


class DivideNode(Node):
    def _on_rake_left(self, x: float) -> None:
        self._absorb(x, LinearFractional(0, x, 1, 0))

    def _on_rake_right(self, x: float) -> None:
        self._absorb(x, LinearFractional(1, 0, 0, x))

    def compute(self) -> float:
        first, second = (child.compute() for child in self.children())
        if second == 0:
            raise ZeroDivisionError("DivideNode: division by zero")
        self.value = first / second
        return self.value