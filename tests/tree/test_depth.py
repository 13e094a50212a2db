"""
Tests for the depth estimator.
"""

from diagnosis.core.tree.depth import estimate_max_depth
from diagnosis.core.tree.models import DiagnosisTree


def _tree(start: str, nodes: list) -> DiagnosisTree:
    return DiagnosisTree.model_validate(
        {"treeId": "t", "title": "t", "category": "Test", "startNodeId": start, "nodes": nodes}
    )


def _result(node_id: str) -> dict:
    return {"id": node_id, "type": "result", "text": node_id, "actions": ["done"]}


class TestEstimateMaxDepth:
    def test_battery_tree(self, battery_tree):
        """q1 -> step1 -> r2 is the longest path."""
        assert estimate_max_depth(battery_tree) == 3

    def test_single_result(self):
        assert estimate_max_depth(_tree("r", [_result("r")])) == 1

    def test_question_takes_longer_branch(self):
        tree = _tree(
            "q",
            [
                {"id": "q", "type": "question", "text": "q?", "yesNextId": "r", "noNextId": "s1"},
                {"id": "s1", "type": "step", "text": "s1", "nextId": "s2"},
                {"id": "s2", "type": "step", "text": "s2", "nextId": "r"},
                _result("r"),
            ],
        )
        assert estimate_max_depth(tree) == 4

    def test_missing_start(self):
        assert estimate_max_depth(_tree("ghost", [_result("r")])) == 1

    def test_dangling_edge_counts_one(self):
        tree = _tree("s", [{"id": "s", "type": "step", "text": "s", "nextId": "ghost"}, _result("r")])
        assert estimate_max_depth(tree) == 2

    def test_cycle_terminates(self):
        """A back edge to a node on the stack counts 1 instead of looping."""
        tree = _tree(
            "q1",
            [
                {"id": "q1", "type": "question", "text": "q1?", "yesNextId": "q2", "noNextId": "r"},
                {"id": "q2", "type": "question", "text": "q2?", "yesNextId": "q1", "noNextId": "r"},
                _result("r"),
            ],
        )
        assert estimate_max_depth(tree) == 3

    def test_self_loop_terminates(self):
        tree = _tree("s", [{"id": "s", "type": "step", "text": "s", "nextId": "s"}, _result("r")])
        assert estimate_max_depth(tree) == 2

    def test_deep_chain(self):
        """Iterative walk handles chains far deeper than the recursion limit."""
        size = 5000
        nodes = [{"id": f"s{i}", "type": "step", "text": "s", "nextId": f"s{i + 1}"} for i in range(size)]
        nodes.append(_result(f"s{size}"))
        assert estimate_max_depth(_tree("s0", nodes)) == size + 1

    def test_shared_subtree_memoized(self):
        """Diamond-shaped trees reuse the shared branch depth."""
        tree = _tree(
            "q",
            [
                {"id": "q", "type": "question", "text": "q?", "yesNextId": "a", "noNextId": "b"},
                {"id": "a", "type": "step", "text": "a", "nextId": "c"},
                {"id": "b", "type": "question", "text": "b?", "yesNextId": "c", "noNextId": "a"},
                {"id": "c", "type": "step", "text": "c", "nextId": "r"},
                _result("r"),
            ],
        )
        assert estimate_max_depth(tree) == 5
