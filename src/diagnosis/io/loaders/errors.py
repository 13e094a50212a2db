from __future__ import annotations

"""Loader error carrying the tree file and, for schema failures, the nodes involved."""

import os
from typing import Any, Iterable, List, Mapping, Optional, Sequence

from pydantic import ValidationError

from diagnosis.core.tree.validator import NODE_TYPES

MAX_REPORTED_ERRORS = 3


class LoaderError(RuntimeError):
    """
    Raised when a tree document cannot be read, parsed or typed.

    Schema errors are condensed to at most ``MAX_REPORTED_ERRORS`` entries and
    point at nodes by id when the document is known, e.g.
    ``node q1: yesNextId: Field required`` instead of ``nodes.0.question.yesNextId``.
    """

    def __init__(
        self,
        file_path: str,
        message: str,
        *,
        cause: Exception | None = None,
        document: Optional[Mapping[str, Any]] = None,
    ):
        self.file_path = file_path
        self.message = message
        self.cause = cause
        self.document = document
        super().__init__(self._build_message())

    def _build_message(self) -> str:
        base = f"{self.message} ({self._relative_path(self.file_path)})"
        if isinstance(self.cause, ValidationError):
            return f"{base}: {self._summarize(self.cause.errors())}"
        if self.cause:
            return f"{base}: {self.cause}"
        return base

    @staticmethod
    def _relative_path(path: str) -> str:
        try:
            return os.path.relpath(path)
        except ValueError:  # pragma: no cover - different drive on Windows
            return path

    def _summarize(self, errors: Iterable[dict]) -> str:
        error_list = list(errors)
        snippets = [
            f"{self.describe_location(err.get('loc', ()))}: {err.get('msg') or err.get('type')}"
            for err in error_list[:MAX_REPORTED_ERRORS]
        ]
        if len(error_list) > MAX_REPORTED_ERRORS:
            snippets.append(f"... ({len(error_list) - MAX_REPORTED_ERRORS} more)")
        return "; ".join(snippets)

    def describe_location(self, loc: Sequence[Any]) -> str:
        """Render a pydantic error location relative to the tree document."""
        parts = list(loc)
        if len(parts) >= 2 and parts[0] == "nodes" and isinstance(parts[1], int):
            label = self._node_label(parts[1])
            rest = parts[2:]
            # Discriminated unions insert the node type as a location step.
            if rest and rest[0] in NODE_TYPES:
                rest = rest[1:]
            return f"{label}: {_join_path(rest)}" if rest else label
        return _join_path(parts) or "<document>"

    def _node_label(self, index: int) -> str:
        nodes = self.document.get("nodes") if isinstance(self.document, Mapping) else None
        if isinstance(nodes, list) and 0 <= index < len(nodes):
            node = nodes[index]
            if isinstance(node, Mapping) and isinstance(node.get("id"), str) and node["id"].strip():
                return f"node {node['id']}"
        return f"nodes[{index}]"

    def __str__(self) -> str:
        return self._build_message()


def _join_path(parts: List[Any]) -> str:
    text = ""
    for part in parts:
        if isinstance(part, int):
            text += f"[{part}]"
        else:
            text += f".{part}" if text else str(part)
    return text
