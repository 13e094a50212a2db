"""
Diagnosis tree data models.

A diagnosis tree is a directed graph of nodes guiding a technician from a
symptom to a repair action:
- QuestionNode: yes/no decision point with two successors
- StepNode: informational node with exactly one successor
- ResultNode: terminal node carrying recommended actions and related links

Nodes live in an arena (``DiagnosisTree.nodes``) and reference each other by
id only. Edges are always resolved through ``DiagnosisTree.get_node``.

Example tree:
    q1 (battery voltage below 12V?)
    ├── yes → step1 (charge battery) → r2 (replace fuse)
    └── no  → r1 (check battery terminals)
"""

from __future__ import annotations

from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field, PrivateAttr, field_validator


class _TreeModel(BaseModel):
    """Base for models read from camelCase documents."""

    model_config = {"populate_by_name": True}


class DiagnosisLink(_TreeModel):
    """Related content shown next to a result (manual page, torque spec, ...)."""

    type: Literal["manual", "torque", "parts", "case"]
    label: str
    url_or_route: str = Field(alias="urlOrRoute")
    meta: Dict[str, str] = Field(default_factory=dict)

    @property
    def is_external(self) -> bool:
        return self.url_or_route.startswith("http")


class QuestionNode(_TreeModel):
    type: Literal["question"] = "question"
    id: str
    text: str
    yes_next_id: str = Field(alias="yesNextId")
    no_next_id: str = Field(alias="noNextId")


class StepNode(_TreeModel):
    type: Literal["step"] = "step"
    id: str
    text: str
    next_id: str = Field(alias="nextId")


class ResultNode(_TreeModel):
    type: Literal["result"] = "result"
    id: str
    text: str
    actions: List[str] = Field(min_length=1)
    links: List[DiagnosisLink] = Field(default_factory=list)


DiagnosisNode = Annotated[Union[QuestionNode, StepNode, ResultNode], Field(discriminator="type")]


def node_successors(node: DiagnosisNode) -> List[str]:
    """
    Outgoing edges of a node, in traversal order.

    Questions yield ``[yes, no]``, steps ``[next]`` and results nothing.

    Raises:
        TypeError: For anything that is not one of the three node variants
    """
    if isinstance(node, QuestionNode):
        return [node.yes_next_id, node.no_next_id]
    if isinstance(node, StepNode):
        return [node.next_id]
    if isinstance(node, ResultNode):
        return []
    raise TypeError(f"Unsupported diagnosis node: {type(node).__name__}")


class DiagnosisTree(_TreeModel):
    """
    A complete diagnosis tree as served to technicians.

    Text fields are already localized (see ``localization.localize_document``).
    Structural correctness (references, cycles) is not enforced here; run the
    validator before trusting a tree.
    """

    tree_id: str = Field(alias="treeId")
    title: str
    category: str = "General"
    symptom_title: Optional[str] = Field(default=None, alias="symptomTitle")
    supported_models: List[str] = Field(default_factory=list, alias="supportedModels")
    start_node_id: str = Field(alias="startNodeId")
    nodes: List[DiagnosisNode] = Field(default_factory=list)

    _node_index: Dict[str, DiagnosisNode] = PrivateAttr(default_factory=dict)

    @field_validator("supported_models")
    @classmethod
    def dedupe_models(cls, v: List[str]) -> List[str]:
        """Supported models behave as a set; keep first-seen order."""
        return list(dict.fromkeys(v))

    def model_post_init(self, __context: Any) -> None:
        index: Dict[str, DiagnosisNode] = {}
        for node in self.nodes:
            index.setdefault(node.id, node)
        self._node_index = index

    @property
    def start_node(self) -> Optional[DiagnosisNode]:
        return self.get_node(self.start_node_id)

    @property
    def node_ids(self) -> List[str]:
        return [node.id for node in self.nodes]

    def get_node(self, node_id: str) -> Optional[DiagnosisNode]:
        """Get a node by ID (first occurrence wins for duplicated ids)."""
        return self._node_index.get(node_id)

    def supports_model(self, model: str) -> bool:
        return model in self.supported_models

    def get_result_nodes(self) -> List[ResultNode]:
        return [node for node in self.nodes if isinstance(node, ResultNode)]

    def to_document(self) -> Dict[str, Any]:
        """Convert to the camelCase document format used for upload and storage."""
        return self.model_dump(by_alias=True, exclude_none=True)


class ValidationReport(BaseModel):
    """Validator output. Errors block activation, warnings never do."""

    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors


__all__ = [
    "DiagnosisLink",
    "DiagnosisNode",
    "DiagnosisTree",
    "QuestionNode",
    "ResultNode",
    "StepNode",
    "ValidationReport",
    "node_successors",
]
