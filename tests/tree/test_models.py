"""
Tests for diagnosis tree data models.

Tests cover:
- Node variants and the discriminated union
- DiagnosisTree lookup helpers and document round trip
- node_successors dispatch
"""

import pytest
from pydantic import ValidationError

from diagnosis.core.tree.models import (
    DiagnosisLink,
    DiagnosisTree,
    QuestionNode,
    ResultNode,
    StepNode,
    ValidationReport,
    node_successors,
)


class TestNodes:
    """Tests for the node variants."""

    def test_nodes_parsed_by_type(self, battery_tree):
        """Each node becomes the variant named by its type."""
        assert isinstance(battery_tree.get_node("q1"), QuestionNode)
        assert isinstance(battery_tree.get_node("step1"), StepNode)
        assert isinstance(battery_tree.get_node("r1"), ResultNode)

    def test_camel_case_edges(self, battery_tree):
        """Wire names map onto snake_case attributes."""
        question = battery_tree.get_node("q1")
        assert question.yes_next_id == "step1"
        assert question.no_next_id == "r1"
        assert battery_tree.get_node("step1").next_id == "r2"

    def test_unknown_type_rejected(self):
        """A node type outside question/step/result does not parse."""
        with pytest.raises(ValidationError):
            DiagnosisTree.model_validate(
                {
                    "treeId": "t",
                    "title": "t",
                    "startNodeId": "x",
                    "nodes": [{"id": "x", "type": "video", "text": "?"}],
                }
            )

    def test_result_requires_actions(self):
        """Result nodes need at least one action."""
        with pytest.raises(ValidationError):
            ResultNode(id="r", text="done", actions=[])

    def test_links(self, battery_tree):
        """Links keep their order and know whether they leave the app."""
        links = battery_tree.get_node("r2").links
        assert [link.type for link in links] == ["manual", "parts"]
        assert not links[0].is_external
        assert links[1].is_external

    def test_link_snake_case_construction(self):
        link = DiagnosisLink(type="torque", label="Wheel nuts", url_or_route="/specs/torque")
        assert link.url_or_route == "/specs/torque"


class TestNodeSuccessors:
    """Tests for node_successors."""

    def test_question_successors_yes_first(self, battery_tree):
        assert node_successors(battery_tree.get_node("q1")) == ["step1", "r1"]

    def test_step_successor(self, battery_tree):
        assert node_successors(battery_tree.get_node("step1")) == ["r2"]

    def test_result_has_no_successors(self, battery_tree):
        assert node_successors(battery_tree.get_node("r1")) == []

    def test_unknown_node_raises(self):
        """Anything but the three variants is refused."""
        with pytest.raises(TypeError):
            node_successors({"id": "x", "type": "question"})


class TestDiagnosisTree:
    """Tests for DiagnosisTree."""

    def test_start_node(self, battery_tree):
        assert battery_tree.start_node.id == "q1"

    def test_get_node_missing(self, battery_tree):
        assert battery_tree.get_node("nope") is None

    def test_supported_models_deduplicated(self, make_document):
        """supportedModels behaves as a set but keeps order."""
        tree = DiagnosisTree.model_validate(make_document(supportedModels=["HX-200", "EV-100", "HX-200"]))
        assert tree.supported_models == ["HX-200", "EV-100"]
        assert tree.supports_model("EV-100")
        assert not tree.supports_model("ZZ-1")

    def test_category_defaults_to_general(self, battery_document):
        del battery_document["category"]
        tree = DiagnosisTree.model_validate(battery_document)
        assert tree.category == "General"

    def test_result_nodes(self, battery_tree):
        assert [node.id for node in battery_tree.get_result_nodes()] == ["r1", "r2"]

    def test_duplicate_ids_first_wins(self, battery_document):
        """Lookup resolves to the first node with a repeated id."""
        battery_document["nodes"].append({"id": "r1", "type": "result", "text": "Other", "actions": ["x"]})
        tree = DiagnosisTree.model_validate(battery_document)
        assert tree.get_node("r1").text == "Battery is fine"

    def test_to_document_round_trip(self, battery_tree, battery_document):
        """to_document produces the camelCase upload format."""
        document = battery_tree.to_document()

        assert document["treeId"] == "battery-no-start"
        assert document["startNodeId"] == "q1"
        assert document["nodes"][0]["yesNextId"] == "step1"
        assert document["nodes"][3]["links"][0]["urlOrRoute"] == "/manuals/hx-200#fuses"
        assert DiagnosisTree.model_validate(document) == battery_tree


class TestValidationReport:
    def test_valid_when_no_errors(self):
        assert ValidationReport(warnings=["node x is unreachable"]).is_valid

    def test_invalid_with_errors(self):
        assert not ValidationReport(errors=["nodes are required"]).is_valid
