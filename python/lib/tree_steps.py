#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
tree_steps.py
-------------

Step recording for the red-black tree in ``red_black_tree.py``.

Every key-level request on the tree (insert / search / delete) produces an
ordered list of :class:`Step` records.  Each record names *what* happened
(a comparison, a rotation, one of the fix-up cases ...), the key it is
about, a human readable message and a frozen copy of the whole tree at that
instant.  Consumers (a renderer, a logger, a test) read the log after the
call returns, or receive each step through the ``on_step`` sink once the
request has finished changing the tree.

Features
~~~~~~~~
* `NodeSnapshot` – immutable tree-of-records copy of a live tree
* `snapshot_tree(root)` – build a `NodeSnapshot` (or ``None`` when empty)
* `Step` – one ``(kind, key, message, snapshot)`` record
* `StepLog` – append-only buffer with an optional callback sink

Typical usage
~~~~~~~~~~~~~
>>> from red_black_tree import RedBlackTree
>>> rbt = RedBlackTree()
>>> rbt.insert(10)
<Outcome.CREATED: 'created'>
>>> [step.kind for step in rbt.step_log]
['create', 'color-black']
>>> rbt.step_log[-1].snapshot.color
'BLACK'
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import (
    Any,
    Callable,
    Iterator,
    List,
    Optional,
    Tuple,
)

logger = logging.getLogger(__name__)

# ----------------------------------------------------------------------
#  Step kinds
# ----------------------------------------------------------------------
CREATE = "create"
COLOR_BLACK = "color-black"
COMPARE = "compare"
DUPLICATE = "duplicate"
INSERT_LEFT = "insert-left"
INSERT_RIGHT = "insert-right"
CASE1 = "case1"
CASE2 = "case2"
CASE3 = "case3"
ROOT_BLACK = "root-black"

ROTATE_LEFT = "rotate-left"
ROTATE_RIGHT = "rotate-right"

SEARCH = "search"
SEARCH_LEFT = "search-left"
SEARCH_RIGHT = "search-right"
FOUND = "found"
NOT_FOUND = "not-found"

DELETE_START = "delete-start"
DELETE = "delete"
FIX_DELETE_CASE1 = "fix-delete-case1"
FIX_DELETE_CASE2 = "fix-delete-case2"
FIX_DELETE_CASE3 = "fix-delete-case3"
FIX_DELETE_CASE4 = "fix-delete-case4"


# ----------------------------------------------------------------------
#  Snapshots
# ----------------------------------------------------------------------
@dataclass(frozen=True)
class NodeSnapshot:
    """Detached copy of one node and its subtrees (no parent links)."""

    key: Any
    color: str
    left: Optional["NodeSnapshot"] = None
    right: Optional["NodeSnapshot"] = None

    def keys(self) -> Iterator[Any]:
        """Yield the keys of this subtree in ascending order."""
        if self.left is not None:
            yield from self.left.keys()
        yield self.key
        if self.right is not None:
            yield from self.right.keys()


def snapshot_tree(node: Any) -> Optional[NodeSnapshot]:
    """
    Deep-copy the subtree rooted at *node* into ``NodeSnapshot`` records.

    *node* is anything with ``key``, ``color``, ``left`` and ``right``
    attributes (normally an ``RBNode``); ``None`` maps to ``None``.
    """
    if node is None:
        return None
    return NodeSnapshot(
        key=node.key,
        color=node.color,
        left=snapshot_tree(node.left),
        right=snapshot_tree(node.right),
    )


@dataclass(frozen=True)
class Step:
    """One recorded action of a tree request."""

    kind: str
    key: Any
    message: str
    snapshot: Optional[NodeSnapshot]

    def __repr__(self) -> str:
        return f"<Step {self.kind} {self.key!r}: {self.message}>"


# ----------------------------------------------------------------------
#  The log itself
# ----------------------------------------------------------------------
class StepLog:
    """
    Append-only buffer of :class:`Step` records for the latest request.

    Parameters
    ----------
    on_step : callable, optional
        Called by :meth:`flush` with every ``Step`` not yet delivered, in
        order.  The tree flushes once its request has finished mutating, so
        the callback always sees a consistent tree.  Exceptions raised by the
        callback propagate to the caller of ``flush``.
    record_snapshots : bool, default ``True``
        When false, steps carry ``snapshot=None`` and the tree is never
        copied.
    """

    __slots__ = ("_steps", "_on_step", "_record_snapshots", "_delivered")

    def __init__(
        self,
        *,
        on_step: Optional[Callable[[Step], None]] = None,
        record_snapshots: bool = True,
    ) -> None:
        self._steps: List[Step] = []
        self._on_step = on_step
        self._record_snapshots = record_snapshots
        # Number of leading steps already handed to `_on_step`.
        self._delivered = 0

    def clear(self) -> None:
        self._steps.clear()
        self._delivered = 0

    def emit(self, kind: str, key: Any, message: str, root: Any) -> Step:
        """Record a step of *kind*; *root* is the live tree root to copy."""
        snapshot = snapshot_tree(root) if self._record_snapshots else None
        step = Step(kind=kind, key=key, message=message, snapshot=snapshot)
        self._steps.append(step)
        logger.debug("%s %r: %s", kind, key, message)
        return step

    def flush(self) -> None:
        """Hand every undelivered step to the ``on_step`` callback."""
        if self._on_step is None:
            self._delivered = len(self._steps)
            return
        while self._delivered < len(self._steps):
            step = self._steps[self._delivered]
            self._delivered += 1
            self._on_step(step)

    def kinds(self) -> List[str]:
        """Return the kinds of the recorded steps, in order."""
        return [step.kind for step in self._steps]

    def as_tuple(self) -> Tuple[Step, ...]:
        return tuple(self._steps)

    def __len__(self) -> int:
        return len(self._steps)

    def __iter__(self) -> Iterator[Step]:
        return iter(self._steps)

    def __getitem__(self, index: int) -> Step:
        return self._steps[index]

    def __repr__(self) -> str:
        return f"StepLog({self.kinds()!r})"
