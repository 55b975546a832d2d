#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
test_tree_steps.py
------------------

Unit tests for the step log in `tree_steps.py` and for how the tree
feeds it:

* snapshots are detached, frozen copies of the live structure
* the log is cleared at the start of every request
* the ``on_step`` sink sees exactly the recorded steps
* ``record_snapshots=False`` skips copying
"""

import dataclasses
import unittest

import tree_steps
from red_black_tree import BLACK, RED, RBNode, RedBlackTree
from tree_steps import NodeSnapshot, Step, StepLog, snapshot_tree


class TestSnapshot(unittest.TestCase):
    def test_snapshot_of_nothing(self):
        self.assertIsNone(snapshot_tree(None))

    def test_snapshot_copies_shape_and_colors(self):
        rbt = RedBlackTree([2, 1, 3])
        snap = snapshot_tree(rbt.root)
        self.assertEqual(
            snap,
            NodeSnapshot(2, BLACK, NodeSnapshot(1, RED), NodeSnapshot(3, RED)),
        )
        self.assertEqual(list(snap.keys()), [1, 2, 3])
        self.assertFalse(hasattr(snap, "parent"))

    def test_snapshot_is_frozen(self):
        snap = snapshot_tree(RBNode(5))
        with self.assertRaises(dataclasses.FrozenInstanceError):
            snap.color = BLACK

    def test_snapshots_do_not_follow_later_changes(self):
        rbt = RedBlackTree([10, 20])
        rbt.insert(30)
        created = rbt.step_log[2]
        self.assertEqual(created.kind, tree_steps.CREATE)
        self.assertEqual(list(created.snapshot.keys()), [10, 20])
        self.assertEqual(created.snapshot.key, 10)

        rbt.delete(10)
        rbt.insert(5)
        self.assertEqual(created.snapshot.key, 10)
        self.assertEqual(created.snapshot.right, NodeSnapshot(20, RED))


class TestStepLog(unittest.TestCase):
    def test_emit_and_clear(self):
        log = StepLog()
        root = RBNode(1, BLACK)
        step = log.emit(tree_steps.FOUND, 1, "Key 1 found", root)
        self.assertIsInstance(step, Step)
        self.assertEqual(len(log), 1)
        self.assertIs(log[0], step)
        self.assertEqual(log.kinds(), ["found"])
        self.assertEqual(step.snapshot, NodeSnapshot(1, BLACK))
        log.clear()
        self.assertEqual(len(log), 0)
        self.assertEqual(log.as_tuple(), ())

    def test_without_snapshots(self):
        log = StepLog(record_snapshots=False)
        step = log.emit(tree_steps.CREATE, 4, "Creating node 4 (RED)", RBNode(4))
        self.assertIsNone(step.snapshot)

    def test_emit_defers_sink_until_flush(self):
        seen = []
        log = StepLog(on_step=seen.append)
        log.emit(tree_steps.SEARCH, 1, "Visiting node 1", RBNode(1, BLACK))
        log.emit(tree_steps.FOUND, 1, "Key 1 found", RBNode(1, BLACK))
        self.assertEqual(seen, [])
        log.flush()
        self.assertEqual([s.kind for s in seen], ["search", "found"])
        log.flush()
        self.assertEqual(len(seen), 2)
        log.clear()
        log.emit(tree_steps.NOT_FOUND, None, "Key 2 not found", None)
        log.flush()
        self.assertEqual(seen[-1].kind, "not-found")
        self.assertEqual(len(seen), 3)

    def test_sink_errors_propagate(self):
        def sink(step):
            raise RuntimeError(step.kind)

        rbt = RedBlackTree(on_step=sink)
        with self.assertRaises(RuntimeError):
            rbt.insert(1)
        # The tree was finished before the sink ran
        self.assertTrue(rbt.verify().valid)
        self.assertEqual(len(rbt), rbt.count())
        self.assertEqual(rbt.root.color, BLACK)

    def test_sink_error_during_fixup_leaves_tree_valid(self):
        def sink(step):
            if step.kind in (tree_steps.CASE1, tree_steps.FIX_DELETE_CASE4):
                raise RuntimeError(step.kind)

        rbt = RedBlackTree([10, 5, 15], on_step=sink)
        with self.assertRaises(RuntimeError):
            rbt.insert(1)
        self.assertTrue(rbt.verify().valid)
        self.assertEqual(len(rbt), rbt.count())
        self.assertEqual(list(rbt), [1, 5, 10, 15])

        with self.assertRaises(RuntimeError):
            rbt.delete(15)
        self.assertTrue(rbt.verify().valid)
        self.assertEqual(len(rbt), rbt.count())
        self.assertEqual(list(rbt), [1, 5, 10])


class TestTreeStepLog(unittest.TestCase):
    def test_log_is_reset_per_request(self):
        rbt = RedBlackTree([50, 25, 75])
        rbt.search(75)
        self.assertEqual(rbt.step_log[0].kind, tree_steps.SEARCH)
        rbt.delete(1000)
        self.assertEqual(
            [s.kind for s in rbt.step_log], [tree_steps.NOT_FOUND]
        )

    def test_sink_sees_every_step(self):
        seen = []
        rbt = RedBlackTree(on_step=seen.append)
        rbt.insert(10)
        rbt.insert(20)
        self.assertEqual(
            [s.kind for s in seen],
            ["create", "color-black", "compare", "create", "insert-right"],
        )
        self.assertEqual(tuple(seen[2:]), rbt.step_log)

    def test_step_fields(self):
        rbt = RedBlackTree([50, 25])
        rbt.insert(10)
        rotate = [s for s in rbt.step_log if s.kind == tree_steps.ROTATE_RIGHT][0]
        self.assertEqual(rotate.key, 50)
        self.assertEqual(rotate.message, "Rotating right at node 50")
        self.assertEqual(rotate.snapshot.key, 25)
        self.assertIn("rotate-right", repr(rotate))

    def test_disabled_snapshots_on_tree(self):
        rbt = RedBlackTree([3, 2, 1], record_snapshots=False)
        self.assertTrue(rbt.step_log)
        self.assertTrue(all(s.snapshot is None for s in rbt.step_log))

    def test_final_snapshot_matches_tree(self):
        rbt = RedBlackTree([50, 25, 75, 10, 30, 60, 80, 5, 15, 27])
        rbt.insert(35)
        last = rbt.step_log[-1].snapshot
        self.assertEqual(list(last.keys()), list(rbt))
        self.assertEqual(last, snapshot_tree(rbt.root))


if __name__ == "__main__":
    unittest.main(verbosity=2)
