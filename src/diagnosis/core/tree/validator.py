"""
Diagnosis tree validator.

Works on raw tree documents (as uploaded) so that malformed input is reported
rather than rejected by model parsing. Typed ``DiagnosisTree`` instances are
converted back to documents first.

Checks, in order:
1. Required tree fields
2. Node shape (type, text, type-specific edges, result actions and links)
3. Duplicate node ids
4. At least one result node
5. Referential integrity of the start node and every edge
6. Cycles reachable from the start node (three-colour DFS)
7. Unreachable nodes (warning only)
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Set, Tuple, Union

from diagnosis.core.tree.localization import has_text, resolve_actions, resolve_text
from diagnosis.core.tree.models import DiagnosisTree, ValidationReport

NODE_TYPES = ("question", "step", "result")
LINK_TYPES = ("manual", "torque", "parts", "case")

# Edge fields per node type, in traversal order.
EDGE_FIELDS: Dict[str, Tuple[str, ...]] = {
    "question": ("yesNextId", "noNextId"),
    "step": ("nextId",),
    "result": (),
}

_WHITE, _GRAY, _BLACK = 0, 1, 2


def _is_blank(value: Any) -> bool:
    return not isinstance(value, str) or not value.strip()


def _is_string_map(value: Any) -> bool:
    return isinstance(value, Mapping) and all(
        isinstance(key, str) and isinstance(item, str) for key, item in value.items()
    )


class TreeValidator:
    """Collects structural, referential and topological findings for one tree."""

    def __init__(self, tree: Union[Mapping[str, Any], DiagnosisTree]):
        if isinstance(tree, DiagnosisTree):
            tree = tree.to_document()
        self.document: Mapping[str, Any] = tree if isinstance(tree, Mapping) else {}
        raw_nodes = self.document.get("nodes")
        self.raw_nodes: List[Any] = raw_nodes if isinstance(raw_nodes, list) else []
        # First occurrence of each id; duplicates are reported separately.
        self.nodes_by_id: Dict[str, Mapping[str, Any]] = {}
        for node in self.raw_nodes:
            if isinstance(node, Mapping) and not _is_blank(node.get("id")):
                self.nodes_by_id.setdefault(node["id"], node)

    def validate(self) -> ValidationReport:
        errors: List[str] = []
        warnings: List[str] = []

        errors.extend(self._check_required_fields())
        errors.extend(self._check_node_shapes())
        errors.extend(self._check_duplicate_ids())
        errors.extend(self._check_result_count())
        if self.raw_nodes:
            errors.extend(self._check_references())
            cycle_errors, visited = self._walk_from_start()
            errors.extend(cycle_errors)
            warnings.extend(self._check_reachability(visited))

        return ValidationReport(errors=errors, warnings=warnings)

    # =========================================================================
    # Structural checks
    # =========================================================================

    def _check_required_fields(self) -> List[str]:
        errors: List[str] = []
        if not isinstance(self.document, Mapping) or not self.document:
            return ["tree document must be an object"]
        for field in ("treeId", "category", "startNodeId"):
            if _is_blank(self.document.get(field)):
                errors.append(f"{field} is required")
        if resolve_text(self.document, "title") is None:
            errors.append("title is required")
        if not self.raw_nodes:
            errors.append("nodes are required")
        models = self.document.get("supportedModels", [])
        if not isinstance(models, list) or not all(isinstance(model, str) for model in models):
            errors.append("supportedModels must be a list of model names")
        symptom = self.document.get("symptomTitle")
        if symptom is not None and not isinstance(symptom, str):
            errors.append("symptomTitle must be a string")
        return errors

    @staticmethod
    def _check_links(node: Mapping[str, Any], label: str) -> List[str]:
        links = node.get("links")
        if links is None:
            return []
        if not isinstance(links, list):
            return [f"result node {label} links must be a list"]
        errors: List[str] = []
        for index, link in enumerate(links):
            if (
                not isinstance(link, Mapping)
                or link.get("type") not in LINK_TYPES
                or _is_blank(link.get("label"))
                or _is_blank(link.get("urlOrRoute"))
            ):
                errors.append(f"result node {label} links[{index}] needs type, label and urlOrRoute")
            elif "meta" in link and not _is_string_map(link["meta"]):
                errors.append(f"result node {label} links[{index}] meta must map names to strings")
        return errors

    @staticmethod
    def _node_label(node: Any, index: int) -> str:
        if isinstance(node, Mapping) and not _is_blank(node.get("id")):
            return str(node["id"])
        return f"nodes[{index}]"

    def _check_node_shapes(self) -> List[str]:
        errors: List[str] = []
        for index, node in enumerate(self.raw_nodes):
            label = self._node_label(node, index)
            if not isinstance(node, Mapping):
                errors.append(f"node {label} must be an object")
                continue
            if _is_blank(node.get("id")):
                errors.append(f"node {label} missing id")
            node_type = node.get("type")
            if node_type not in NODE_TYPES:
                errors.append(f"node {label} has invalid type {node_type}")
            if not has_text(node):
                errors.append(f"node {label} missing text")

            if node_type == "question":
                if _is_blank(node.get("yesNextId")) or _is_blank(node.get("noNextId")):
                    errors.append(f"question node {label} missing yesNextId/noNextId")
            elif node_type == "step":
                if _is_blank(node.get("nextId")):
                    errors.append(f"step node {label} missing nextId")
            elif node_type == "result":
                if not resolve_actions(node):
                    errors.append(f"result node {label} missing actions")
                errors.extend(self._check_links(node, label))
        return errors

    def _check_duplicate_ids(self) -> List[str]:
        errors: List[str] = []
        seen: Set[str] = set()
        for node in self.raw_nodes:
            if not isinstance(node, Mapping) or _is_blank(node.get("id")):
                continue
            node_id = node["id"]
            if node_id in seen:
                errors.append(f"duplicate node id {node_id}")
            seen.add(node_id)
        return errors

    def _check_result_count(self) -> List[str]:
        for node in self.raw_nodes:
            if isinstance(node, Mapping) and node.get("type") == "result":
                return []
        return ["at least one result node is required"]

    # =========================================================================
    # Graph checks
    # =========================================================================

    def _edges(self, node: Mapping[str, Any]) -> List[Tuple[str, str]]:
        """(field, target) pairs for the edges this node declares."""
        node_type = node.get("type")
        fields = EDGE_FIELDS.get(node_type, ()) if isinstance(node_type, str) else ()
        return [(field, node[field]) for field in fields if not _is_blank(node.get(field))]

    def _check_references(self) -> List[str]:
        errors: List[str] = []
        start_id = self.document.get("startNodeId")
        if not _is_blank(start_id) and start_id not in self.nodes_by_id:
            errors.append(f"startNodeId {start_id} is missing")

        for index, node in enumerate(self.raw_nodes):
            if not isinstance(node, Mapping):
                continue
            for field, target in self._edges(node):
                if target not in self.nodes_by_id:
                    errors.append(f"node {self._node_label(node, index)} {field} {target} not found")
        return errors

    def _walk_from_start(self) -> Tuple[List[str], Set[str]]:
        """
        Depth-first walk from the start node.

        Returns:
            (cycle errors, ids of every node reached)
        """
        errors: List[str] = []
        start_id = self.document.get("startNodeId")
        if _is_blank(start_id) or start_id not in self.nodes_by_id:
            return errors, set()

        color: Dict[str, int] = {start_id: _GRAY}
        path: List[str] = [start_id]
        stack = [(start_id, iter(self._successors(start_id)))]

        while stack:
            node_id, successors = stack[-1]
            next_id = next(successors, None)
            if next_id is None:
                stack.pop()
                path.pop()
                color[node_id] = _BLACK
                continue
            state = color.get(next_id, _WHITE)
            if state == _GRAY:
                loop = path[path.index(next_id) :] + [next_id]
                message = f"cycle detected: {' -> '.join(loop)}"
                if message not in errors:
                    errors.append(message)
            elif state == _WHITE:
                color[next_id] = _GRAY
                path.append(next_id)
                stack.append((next_id, iter(self._successors(next_id))))

        return errors, set(color)

    def _successors(self, node_id: str) -> List[str]:
        node = self.nodes_by_id[node_id]
        return [target for _field, target in self._edges(node) if target in self.nodes_by_id]

    def _check_reachability(self, visited: Set[str]) -> List[str]:
        warnings: List[str] = []
        for index, node in enumerate(self.raw_nodes):
            if not isinstance(node, Mapping) or _is_blank(node.get("id")):
                continue
            if node["id"] not in visited:
                warnings.append(f"node {self._node_label(node, index)} is unreachable")
        return warnings


def validate_tree(tree: Union[Mapping[str, Any], DiagnosisTree]) -> ValidationReport:
    """Validate a tree document or typed tree. Pure; never raises on bad input."""
    return TreeValidator(tree).validate()


__all__ = ["EDGE_FIELDS", "NODE_TYPES", "TreeValidator", "validate_tree"]
