#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
red_black_tree.py
-----------------

A self‑balancing binary search tree based on the **Red‑Black** algorithm,
instrumented so that every insert / search / delete leaves behind the
ordered list of steps (comparisons, recolourings, rotations, fix‑up cases)
it went through, each with a frozen snapshot of the tree.

Features
~~~~~~~~
* `tree.insert(key)`  – returns ``Outcome.CREATED`` or ``Outcome.DUPLICATE``
* `tree.search(key)`  – returns a ``SearchResult`` (found node or not found)
* `tree.delete(key)`  – returns ``Outcome.REMOVED`` or ``Outcome.NOT_FOUND``
* `tree.step_log`     – the steps recorded by the latest of those calls
* `tree.in_order()`, `tree.pre_order()`, `tree.post_order()` – ``(key, colour)`` pairs
* `tree.height()`, `tree.count()`, `tree.black_height()`, `tree.is_empty()`
* `tree.min_key()`, `tree.max_key()`, `tree.successor(key)`, `tree.predecessor(key)`
* `key in tree`, `len(tree)`, iteration in ascending order
* `tree.verify()` – report red‑black violations as data (`tree.validate()` raises)

Absent children are plain ``None`` and count as BLACK.  The parent link is
only ever used to walk upwards during fix‑up.

Typical usage
~~~~~~~~~~~~~
>>> from red_black_tree import RedBlackTree, Outcome
>>> rbt = RedBlackTree([50, 25, 75])
>>> rbt.insert(10)
<Outcome.CREATED: 'created'>
>>> rbt.insert(10)
<Outcome.DUPLICATE: 'duplicate'>
>>> rbt.step_log[-1].kind
'duplicate'
>>> rbt.in_order()
[(10, 'RED'), (25, 'BLACK'), (50, 'BLACK'), (75, 'BLACK')]
>>> rbt.delete(25)
<Outcome.REMOVED: 'removed'>
>>> rbt.verify().valid
True
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import (
    Any,
    Callable,
    Generator,
    Generic,
    Iterable,
    List,
    Optional,
    Tuple,
    TypeVar,
)

import tree_steps
from tree_steps import Step, StepLog

logger = logging.getLogger(__name__)

# ----------------------------------------------------------------------
#  Type variable (keys must be totally ordered)
# ----------------------------------------------------------------------
K = TypeVar("K")

# ----------------------------------------------------------------------
#  Node colour constants
# ----------------------------------------------------------------------
RED = "RED"
BLACK = "BLACK"


class Direction(enum.IntEnum):
    """Child side; ``Direction(1 - d)`` is the mirror of ``d``."""

    LEFT = 0
    RIGHT = 1


class Outcome(enum.Enum):
    CREATED = "created"
    DUPLICATE = "duplicate"
    FOUND = "found"
    NOT_FOUND = "not-found"
    REMOVED = "removed"


class RBNode(Generic[K]):
    """A tree vertex.  Created RED and unlinked."""

    __slots__ = ("key", "color", "left", "right", "parent")

    def __init__(self, key: K, color: str = RED) -> None:
        self.key = key
        self.color = color
        self.left: Optional[RBNode[K]] = None
        self.right: Optional[RBNode[K]] = None
        self.parent: Optional[RBNode[K]] = None

    # ------------------------------------------------------------------
    #   Relational queries
    # ------------------------------------------------------------------
    def grandparent(self) -> Optional["RBNode[K]"]:
        if self.parent is None:
            return None
        return self.parent.parent

    def uncle(self) -> Optional["RBNode[K]"]:
        """Return the sibling of this node's parent (``None`` without a grandparent)."""
        gp = self.grandparent()
        if gp is None:
            return None
        if self.parent is gp.left:
            return gp.right
        return gp.left

    def sibling(self) -> Optional["RBNode[K]"]:
        if self.parent is None:
            return None
        if self is self.parent.left:
            return self.parent.right
        return self.parent.left

    def is_red(self) -> bool:
        return self.color == RED

    def is_black(self) -> bool:
        return self.color == BLACK

    # ------------------------------------------------------------------
    #   Side‑parametrised accessors (used by the mirrored fix‑up cases)
    # ------------------------------------------------------------------
    def get_child(self, direction: Direction) -> Optional["RBNode[K]"]:
        if direction == Direction.LEFT:
            return self.left
        return self.right

    def set_child(self, direction: Direction, node: Optional["RBNode[K]"]) -> None:
        if direction == Direction.LEFT:
            self.left = node
        else:
            self.right = node

    def __repr__(self) -> str:
        col = "R" if self.color == RED else "B"
        return f"<{col} {self.key!r}>"


def is_red(node: Optional[RBNode]) -> bool:
    """``None`` children are BLACK."""
    return node is not None and node.color == RED


def is_black(node: Optional[RBNode]) -> bool:
    return node is None or node.color == BLACK


@dataclass(frozen=True)
class SearchResult(Generic[K]):
    outcome: Outcome
    node: Optional[RBNode[K]] = None

    @property
    def found(self) -> bool:
        return self.outcome is Outcome.FOUND


@dataclass(frozen=True)
class Verification:
    """Result of :meth:`RedBlackTree.verify`; ``violations`` is empty iff valid."""

    valid: bool
    violations: List[str] = field(default_factory=list)


class RedBlackTree(Generic[K]):
    """
    A set of totally ordered keys kept in a red‑black binary search tree.

    ``insert``, ``search`` and ``delete`` clear the step log and refill it;
    read ``step_log`` after the call to see what happened.  The tree is
    single‑owner: callers must not interleave requests while a step log is
    still being consumed.
    """

    __slots__ = ("_root", "_size", "_steps")

    # ------------------------------------------------------------------
    #   Construction / basic container protocol
    # ------------------------------------------------------------------
    def __init__(
        self,
        keys: Optional[Iterable[K]] = None,
        *,
        on_step: Optional[Callable[[Step], None]] = None,
        record_snapshots: bool = True,
    ) -> None:
        """
        Create an empty tree or optionally initialise it from *keys*.

        Parameters
        ----------
        keys : iterable of keys   optional
            Inserted one by one, in order (O(n log n)).  Duplicates are
            ignored as with ``insert``.
        on_step : callable, optional
            Sink handed every ``Step`` of a request, in order, once that
            request has finished changing the tree.
        record_snapshots : bool, default ``True``
            Attach a deep copy of the tree to each step.  Turn it off for
            bulk loads where nobody looks at the snapshots.
        """
        self._root: Optional[RBNode[K]] = None
        self._size: int = 0
        self._steps = StepLog(on_step=on_step, record_snapshots=record_snapshots)

        if keys is not None:
            for key in keys:
                self.insert(key)

    @property
    def root(self) -> Optional[RBNode[K]]:
        return self._root

    @property
    def step_log(self) -> Tuple[Step, ...]:
        """Steps recorded by the most recent insert / search / delete."""
        return self._steps.as_tuple()

    def __contains__(self, key: object) -> bool:
        return self._search_node(key) is not None

    def __len__(self) -> int:
        return self._size

    def __iter__(self) -> Generator[K, None, None]:
        """Yield keys in ascending order (in‑order traversal)."""
        stack: List[RBNode[K]] = []
        cur = self._root
        while stack or cur is not None:
            while cur is not None:
                stack.append(cur)
                cur = cur.left
            cur = stack.pop()
            yield cur.key
            cur = cur.right

    def is_empty(self) -> bool:
        return self._root is None

    def clear(self) -> None:
        """Drop every node and the step log."""
        self._root = None
        self._size = 0
        self._steps.clear()

    # ------------------------------------------------------------------
    #   Step recording
    # ------------------------------------------------------------------
    def _emit(self, kind: str, key: Any, message: str) -> None:
        # Buffered only; `on_step` is reached through flush() once the
        # request is done mutating.
        self._steps.emit(kind, key, message, self._root)

    # ------------------------------------------------------------------
    #   Search
    # ------------------------------------------------------------------
    def _search_node(self, key: Any) -> Optional[RBNode[K]]:
        """Return the node that holds *key* or ``None``; records nothing."""
        cur = self._root
        while cur is not None:
            if key == cur.key:
                return cur
            elif key < cur.key:
                cur = cur.left
            else:
                cur = cur.right
        return None

    def search(self, key: K) -> SearchResult[K]:
        """Look *key* up, recording every visited node and the direction taken."""
        self._steps.clear()
        result = self._search(key)
        self._steps.flush()
        return result

    def _search(self, key: K) -> SearchResult[K]:
        cur = self._root
        while cur is not None:
            self._emit(tree_steps.SEARCH, cur.key, f"Visiting node {cur.key}")
            if key == cur.key:
                self._emit(tree_steps.FOUND, cur.key, f"Key {key} found")
                return SearchResult(Outcome.FOUND, cur)
            elif key < cur.key:
                self._emit(
                    tree_steps.SEARCH_LEFT, cur.key, f"{key} < {cur.key}, going left"
                )
                cur = cur.left
            else:
                self._emit(
                    tree_steps.SEARCH_RIGHT, cur.key, f"{key} > {cur.key}, going right"
                )
                cur = cur.right

        self._emit(tree_steps.NOT_FOUND, None, f"Key {key} not found")
        return SearchResult(Outcome.NOT_FOUND)

    # ------------------------------------------------------------------
    #   Minimum / maximum helpers
    # ------------------------------------------------------------------
    def _minimum_node(self, start: Optional[RBNode[K]] = None) -> RBNode[K]:
        """Return the node with the smallest key in the subtree rooted at *start*."""
        node = start if start is not None else self._root
        if node is None:
            raise ValueError("Tree is empty")
        while node.left is not None:
            node = node.left
        return node

    def _maximum_node(self, start: Optional[RBNode[K]] = None) -> RBNode[K]:
        node = start if start is not None else self._root
        if node is None:
            raise ValueError("Tree is empty")
        while node.right is not None:
            node = node.right
        return node

    def min_key(self) -> K:
        """Return the smallest key stored in the tree."""
        return self._minimum_node().key

    def max_key(self) -> K:
        """Return the largest key stored in the tree."""
        return self._maximum_node().key

    # ------------------------------------------------------------------
    #   Successor / predecessor
    # ------------------------------------------------------------------
    def successor(self, key: K) -> K:
        """Return the smallest key greater than *key*; raise KeyError if none."""
        node = self._search_node(key)
        if node is None:
            raise KeyError(key)

        if node.right is not None:
            return self._minimum_node(node.right).key

        # Walk up until we leave a left subtree.
        y = node.parent
        while y is not None and node is y.right:
            node = y
            y = y.parent
        if y is None:
            raise KeyError(f"No successor for {key}")
        return y.key

    def predecessor(self, key: K) -> K:
        """Return the greatest key smaller than *key*; raise KeyError if none."""
        node = self._search_node(key)
        if node is None:
            raise KeyError(key)

        if node.left is not None:
            return self._maximum_node(node.left).key

        y = node.parent
        while y is not None and node is y.left:
            node = y
            y = y.parent
        if y is None:
            raise KeyError(f"No predecessor for {key}")
        return y.key

    # ------------------------------------------------------------------
    #   Insertion
    # ------------------------------------------------------------------
    def insert(self, key: K) -> Outcome:
        """Insert *key*.  Inserting a key that is already present is a no‑op."""
        self._steps.clear()
        outcome = self._insert(key)
        self._steps.flush()
        return outcome

    def _insert(self, key: K) -> Outcome:
        # `create` is recorded before the new node is linked anywhere.
        if self._root is None:
            self._emit(tree_steps.CREATE, key, f"Creating node {key} (RED)")
            self._root = RBNode(key)
            self._size += 1
            self._root.color = BLACK
            self._emit(
                tree_steps.COLOR_BLACK, key, f"Node {key} is the root, coloring it BLACK"
            )
            return Outcome.CREATED

        parent = None
        cur: Optional[RBNode[K]] = self._root
        while cur is not None:
            parent = cur
            self._emit(tree_steps.COMPARE, cur.key, f"Comparing {key} with {cur.key}")
            if key < cur.key:
                cur = cur.left
            elif key > cur.key:
                cur = cur.right
            else:
                self._emit(
                    tree_steps.DUPLICATE, cur.key, f"Key {key} is already in the tree"
                )
                return Outcome.DUPLICATE

        # `parent` is where the new leaf hangs.
        node = RBNode(key)
        self._emit(tree_steps.CREATE, key, f"Creating node {key} (RED)")
        node.parent = parent
        if key < parent.key:
            parent.left = node
            self._emit(
                tree_steps.INSERT_LEFT, key, f"Inserting {key} left of {parent.key}"
            )
        else:
            parent.right = node
            self._emit(
                tree_steps.INSERT_RIGHT, key, f"Inserting {key} right of {parent.key}"
            )

        self._size += 1
        self._fix_insert(node)
        return Outcome.CREATED

    # ------------------------------------------------------------------
    #   Insert fix‑up (preserves red‑black properties)
    # ------------------------------------------------------------------
    def _fix_insert(self, node: RBNode[K]) -> None:
        """
        Restore red‑black properties after linking the RED *node*.

        Both mirror images are handled by ``side``: the side of the
        grandparent the parent hangs on.
        """
        while node is not self._root and is_red(node.parent):
            parent = node.parent
            grandparent = node.grandparent()
            uncle = node.uncle()
            side = Direction.LEFT if parent is grandparent.left else Direction.RIGHT
            other = Direction(1 - side)

            if is_red(uncle):
                # Case 1 – recolour and move the violation up two levels
                parent.color = BLACK
                uncle.color = BLACK
                grandparent.color = RED
                self._emit(
                    tree_steps.CASE1,
                    node.key,
                    f"Case 1: uncle {uncle.key} is RED, recoloring",
                )
                node = grandparent
                continue

            if node is parent.get_child(other):
                # Case 2 – inner child: rotate it into the outer position
                self._emit(
                    tree_steps.CASE2,
                    node.key,
                    f"Case 2: node {node.key} is an inner child, "
                    f"rotating {side.name.lower()} at {parent.key}",
                )
                node = parent
                self._rotate(node, side)

            # Case 3 – outer child: recolour and rotate the grandparent
            node.parent.color = BLACK
            grandparent.color = RED
            self._emit(
                tree_steps.CASE3,
                node.key,
                f"Case 3: recoloring and rotating {other.name.lower()} "
                f"at {grandparent.key}",
            )
            self._rotate(grandparent, other)

        if self._root.color == RED:
            self._root.color = BLACK
            self._emit(tree_steps.ROOT_BLACK, self._root.key, "Coloring the root BLACK")

    # ------------------------------------------------------------------
    #   Left / right rotations – helper primitives
    # ------------------------------------------------------------------
    def _rotate(self, x: RBNode[K], direction: Direction) -> None:
        """Rotate the subtree rooted at *x* so that *x* moves down to *direction*."""
        opposite = Direction(1 - direction)
        y = x.get_child(opposite)
        if y is None:
            raise RuntimeError(
                f"rotate_{direction.name.lower()} called on a node with no "
                f"{opposite.name.lower()} child"
            )
        # Turn y's inner subtree into x's child on the opposite side
        inner = y.get_child(direction)
        x.set_child(opposite, inner)
        if inner is not None:
            inner.parent = x
        # Link x's parent to y, then put x under y
        self._transplant(x, y)
        y.set_child(direction, x)
        x.parent = y

        if direction == Direction.LEFT:
            kind = tree_steps.ROTATE_LEFT
        else:
            kind = tree_steps.ROTATE_RIGHT
        self._emit(kind, x.key, f"Rotating {direction.name.lower()} at node {x.key}")

    def rotate_left(self, x: RBNode[K]) -> None:
        """Left‑rotate at *x*.  Keeps key order; colours are the caller's business."""
        self._rotate(x, Direction.LEFT)
        self._steps.flush()

    def rotate_right(self, x: RBNode[K]) -> None:
        """Right‑rotate at *x*."""
        self._rotate(x, Direction.RIGHT)
        self._steps.flush()

    # ------------------------------------------------------------------
    #   Deletion
    # ------------------------------------------------------------------
    def _transplant(self, u: RBNode[K], v: Optional[RBNode[K]]) -> None:
        """Replace subtree rooted at `u` with the subtree rooted at `v`."""
        if u.parent is None:
            self._root = v
        elif u is u.parent.left:
            u.parent.left = v
        else:
            u.parent.right = v
        if v is not None:
            v.parent = u.parent

    def delete(self, key: K) -> Outcome:
        """Remove *key*; a missing key leaves the tree untouched."""
        self._steps.clear()
        outcome = self._delete(key)
        self._steps.flush()
        return outcome

    def _delete(self, key: K) -> Outcome:
        node = self._search_node(key)
        if node is None:
            self._emit(tree_steps.NOT_FOUND, None, f"Key {key} not found for removal")
            return Outcome.NOT_FOUND

        self._emit(tree_steps.DELETE_START, node.key, f"Removing node {node.key}")
        self._delete_node(node)
        return Outcome.REMOVED

    def _delete_node(self, z: RBNode[K]) -> None:
        """Unlink the node `z` from the tree and fix up any colour violations."""
        y = z  # node that physically leaves its slot
        y_original_color = y.color
        x: Optional[RBNode[K]]
        if z.left is None:
            x = z.right
            x_parent = z.parent
            self._transplant(z, z.right)
        elif z.right is None:
            x = z.left
            x_parent = z.parent
            self._transplant(z, z.left)
        else:
            # z has two children: relink its in‑order successor `y` in its place
            y = self._minimum_node(z.right)
            y_original_color = y.color
            x = y.right
            if y.parent is z:
                x_parent = y
            else:
                x_parent = y.parent
                self._transplant(y, y.right)
                y.right = z.right
                y.right.parent = y
            self._transplant(z, y)
            y.left = z.left
            y.left.parent = y
            y.color = z.color

        z.left = z.right = z.parent = None
        self._size -= 1
        self._emit(tree_steps.DELETE, z.key, f"Node {z.key} removed")

        if y_original_color == BLACK:
            self._fix_delete(x, x_parent)

    # ------------------------------------------------------------------
    #   Delete fix‑up (preserves red‑black properties)
    # ------------------------------------------------------------------
    def _fix_delete(self, x: Optional[RBNode[K]], x_parent: Optional[RBNode[K]]) -> None:
        """
        Restore red‑black properties after a BLACK node left the tree.

        `x` is the node that moved into the vacated slot (possibly ``None``)
        and `x_parent` its parent.  `x` carries one extra black until the
        loop pushes it to a RED node or to the root.
        """
        while x is not self._root and is_black(x) and x_parent is not None:
            side = Direction.LEFT if x is x_parent.left else Direction.RIGHT
            far = Direction(1 - side)
            w = x_parent.get_child(far)  # sibling

            if is_red(w):
                # Case 1 – red sibling: turn it into a black one
                w.color = BLACK
                x_parent.color = RED
                self._emit(
                    tree_steps.FIX_DELETE_CASE1, w.key, f"Case 1: sibling {w.key} is RED"
                )
                self._rotate(x_parent, side)
                w = x_parent.get_child(far)

            if w is None or (is_black(w.left) and is_black(w.right)):
                # Case 2 – both of the sibling's children are black
                if w is not None:
                    w.color = RED
                self._emit(
                    tree_steps.FIX_DELETE_CASE2,
                    w.key if w is not None else None,
                    "Case 2: BLACK sibling with BLACK children, moving up",
                )
                x = x_parent
                x_parent = x.parent
                continue

            if is_black(w.get_child(far)):
                # Case 3 – only the near nephew is red: rotate it outward
                w.get_child(side).color = BLACK
                w.color = RED
                self._emit(
                    tree_steps.FIX_DELETE_CASE3,
                    w.key,
                    f"Case 3: BLACK sibling {w.key} with RED near child",
                )
                self._rotate(w, far)
                w = x_parent.get_child(far)

            # Case 4 – far nephew is red
            w.color = x_parent.color
            x_parent.color = BLACK
            w.get_child(far).color = BLACK
            self._emit(
                tree_steps.FIX_DELETE_CASE4,
                w.key,
                f"Case 4: BLACK sibling {w.key} with RED far child",
            )
            self._rotate(x_parent, side)
            x = self._root
            break

        if x is not None:
            x.color = BLACK

    # ------------------------------------------------------------------
    #   Traversals and measurements
    # ------------------------------------------------------------------
    def in_order(self) -> List[Tuple[K, str]]:
        out: List[Tuple[K, str]] = []

        def walk(node: Optional[RBNode[K]]) -> None:
            if node is None:
                return
            walk(node.left)
            out.append((node.key, node.color))
            walk(node.right)

        walk(self._root)
        return out

    def pre_order(self) -> List[Tuple[K, str]]:
        out: List[Tuple[K, str]] = []

        def walk(node: Optional[RBNode[K]]) -> None:
            if node is None:
                return
            out.append((node.key, node.color))
            walk(node.left)
            walk(node.right)

        walk(self._root)
        return out

    def post_order(self) -> List[Tuple[K, str]]:
        out: List[Tuple[K, str]] = []

        def walk(node: Optional[RBNode[K]]) -> None:
            if node is None:
                return
            walk(node.left)
            walk(node.right)
            out.append((node.key, node.color))

        walk(self._root)
        return out

    def height(self) -> int:
        """Edges on the longest root‑to‑leaf path; -1 for an empty tree."""

        def h(node: Optional[RBNode[K]]) -> int:
            if node is None:
                return -1
            return 1 + max(h(node.left), h(node.right))

        return h(self._root)

    def count(self) -> int:
        """Count the nodes by walking the tree (``len`` uses a counter)."""

        def c(node: Optional[RBNode[K]]) -> int:
            if node is None:
                return 0
            return 1 + c(node.left) + c(node.right)

        return c(self._root)

    def black_height(self) -> int:
        """BLACK nodes on the leftmost root‑to‑null path (0 when empty)."""
        bh = 0
        cur = self._root
        while cur is not None:
            if cur.color == BLACK:
                bh += 1
            cur = cur.left
        return bh

    # ------------------------------------------------------------------
    #   Validation/checking utilities
    # ------------------------------------------------------------------
    def verify(self) -> Verification:
        """
        Re‑derive the red‑black invariants from the current structure.

        Never raises: every violation found is described in
        ``Verification.violations`` in the order it was met (pre‑order).
        """
        violations: List[str] = []

        # Property 2: root is black
        if self._root is not None and self._root.color == RED:
            violations.append(f"Root {self._root.key} is RED (must be BLACK)")

        # Black count of the first null reached; every other path must match.
        expected: Optional[int] = None

        def walk(
            node: Optional[RBNode[K]], above: Optional[RBNode[K]], blacks: int
        ) -> None:
            nonlocal expected
            if node is None:
                if expected is None:
                    expected = blacks
                elif blacks != expected:
                    where = f"below node {above.key}" if above is not None else "at the root"
                    violations.append(
                        f"Black-height mismatch {where}: path has {blacks} BLACK "
                        f"nodes, expected {expected}"
                    )
                return

            # Property 1: every node is red or black
            if node.color not in (RED, BLACK):
                violations.append(f"Node {node.key} has invalid color {node.color!r}")

            # Property 4: red nodes have black children
            if node.color == RED:
                for child in (node.left, node.right):
                    if is_red(child):
                        violations.append(
                            f"RED node {node.key} has RED child {child.key}"
                        )
            elif node.color == BLACK:
                blacks += 1

            walk(node.left, node, blacks)
            walk(node.right, node, blacks)

        walk(self._root, None, 0)

        if violations:
            logger.warning(
                "verify: %d violation(s), first: %s", len(violations), violations[0]
            )
        return Verification(valid=not violations, violations=violations)

    def validate(self) -> None:
        """
        Verify that the tree satisfies all red‑black invariants.
        Raises ``AssertionError`` with the first violation if something is broken.
        """
        result = self.verify()
        if not result.valid:
            raise AssertionError(result.violations[0])

    # ------------------------------------------------------------------
    #   Convenience string representation (for debugging)
    # ------------------------------------------------------------------
    def __repr__(self) -> str:
        keys = ", ".join(repr(k) for k in self)
        return f"RedBlackTree([{keys}])"
