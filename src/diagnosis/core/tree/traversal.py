"""
Traversal engine: the interactive walk through a diagnosis tree.

A ``TraversalSession`` is owned by a single caller (one technician, one
screen). Its state is the history of visited node ids; the type of the node
at the end of the history decides which operation is allowed next:

    Question --answer(yes|no)--> next node
    Step     --advance()-------> next node
    Result   (terminal)

Operations never raise for operational failures; they return a
``TraversalResult`` whose status tells the caller what happened.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import List, Optional, Tuple, Union

from pydantic import BaseModel, Field

from diagnosis.core.tree.depth import estimate_max_depth
from diagnosis.core.tree.models import (
    DiagnosisNode,
    DiagnosisTree,
    QuestionNode,
    ResultNode,
    StepNode,
)
from diagnosis.core.tree.validator import validate_tree

logger = logging.getLogger(__name__)


class TraversalStatus(str, Enum):
    """Outcome of a traversal operation."""

    OK = "ok"  # History changed
    NOOP = "noop"  # Valid call, nothing to do (back at start)
    REJECTED = "rejected"  # Operation not allowed in the current state
    ERROR = "error"  # Tree is broken, fail closed


class TraversalError(str, Enum):
    INVALID_TREE = "INVALID_TREE"
    NO_SESSION = "NO_SESSION"
    WRONG_NODE_TYPE = "WRONG_NODE_TYPE"
    INVALID_ANSWER = "INVALID_ANSWER"
    MISSING_NODE = "MISSING_NODE"


class TraversalResult(BaseModel):
    status: TraversalStatus
    error: Optional[TraversalError] = None
    message: Optional[str] = None
    node_id: Optional[str] = None  # Current node after the operation
    errors: List[str] = Field(default_factory=list)  # Validator errors for INVALID_TREE

    @property
    def ok(self) -> bool:
        return self.status in (TraversalStatus.OK, TraversalStatus.NOOP)

    @classmethod
    def success(cls, node_id: str) -> "TraversalResult":
        return cls(status=TraversalStatus.OK, node_id=node_id)

    @classmethod
    def noop(cls, node_id: Optional[str]) -> "TraversalResult":
        return cls(status=TraversalStatus.NOOP, node_id=node_id)

    @classmethod
    def rejected(cls, error: TraversalError, message: str, node_id: Optional[str] = None) -> "TraversalResult":
        return cls(status=TraversalStatus.REJECTED, error=error, message=message, node_id=node_id)

    @classmethod
    def failed(
        cls,
        error: TraversalError,
        message: str,
        node_id: Optional[str] = None,
        errors: Optional[List[str]] = None,
    ) -> "TraversalResult":
        return cls(status=TraversalStatus.ERROR, error=error, message=message, node_id=node_id, errors=errors or [])


_ANSWERS = {"yes": True, "y": True, "no": False, "n": False}


class TraversalSession:
    """Walk state for one diagnosis tree."""

    def __init__(self) -> None:
        self.tree: Optional[DiagnosisTree] = None
        self._history: List[str] = []
        self._max_depth: Optional[int] = None

    # =========================================================================
    # State
    # =========================================================================

    @property
    def started(self) -> bool:
        return self.tree is not None and bool(self._history)

    @property
    def history(self) -> List[str]:
        """Visited node ids, start node first (copy)."""
        return list(self._history)

    def current_node(self) -> Optional[DiagnosisNode]:
        """Node the caller should render, or None before ``start``."""
        if not self.started:
            return None
        return self.tree.get_node(self._history[-1])

    @property
    def is_complete(self) -> bool:
        return isinstance(self.current_node(), ResultNode)

    @property
    def answered_count(self) -> int:
        """Questions answered so far (the current node is not yet answered)."""
        if not self.started:
            return 0
        return sum(1 for node_id in self._history[:-1] if isinstance(self.tree.get_node(node_id), QuestionNode))

    @property
    def max_depth(self) -> int:
        if not self.started:
            return 0
        if self._max_depth is None:
            self._max_depth = estimate_max_depth(self.tree)
        return self._max_depth

    @property
    def progress(self) -> Tuple[int, int]:
        """(N, M) for a "step N of M" indicator; both at least 1."""
        return max(self.answered_count, 1), max(self.max_depth, 1)

    @property
    def breadcrumb(self) -> List[str]:
        """Texts of the visited nodes, in order."""
        if not self.started:
            return []
        texts = []
        for node_id in self._history:
            node = self.tree.get_node(node_id)
            if node is not None:
                texts.append(node.text)
        return texts

    # =========================================================================
    # Transitions
    # =========================================================================

    def start(self, tree: DiagnosisTree) -> TraversalResult:
        """Begin a walk at the tree's start node. Trees with validator errors are refused."""
        report = validate_tree(tree)
        if not report.is_valid:
            logger.warning("Refusing to start invalid tree %s: %s", tree.tree_id, report.errors)
            return TraversalResult.failed(
                TraversalError.INVALID_TREE,
                f"Tree '{tree.tree_id}' failed validation",
                errors=report.errors,
            )
        self.tree = tree
        self._history = [tree.start_node_id]
        self._max_depth = None
        return TraversalResult.success(tree.start_node_id)

    def answer(self, answer: Union[str, bool]) -> TraversalResult:
        """Follow the yes or no branch of the current question."""
        if not self.started:
            return self._no_session()
        node = self.current_node()
        if not isinstance(node, QuestionNode):
            return self._wrong_type("answer", node)

        if isinstance(answer, bool):
            choice = answer
        else:
            choice = _ANSWERS.get(str(answer).strip().lower())
            if choice is None:
                return TraversalResult.rejected(
                    TraversalError.INVALID_ANSWER,
                    f"Answer must be 'yes' or 'no', got '{answer}'",
                    node_id=node.id,
                )
        return self._move_to(node, node.yes_next_id if choice else node.no_next_id)

    def advance(self) -> TraversalResult:
        """Move past the current step."""
        if not self.started:
            return self._no_session()
        node = self.current_node()
        if not isinstance(node, StepNode):
            return self._wrong_type("advance", node)
        return self._move_to(node, node.next_id)

    def back(self) -> TraversalResult:
        """Drop the last visited node; the start node is never removed."""
        if not self.started:
            return self._no_session()
        if len(self._history) <= 1:
            return TraversalResult.noop(self._history[-1])
        self._history.pop()
        return TraversalResult.success(self._history[-1])

    def restart(self) -> TraversalResult:
        """Discard all progress and return to the start node."""
        if not self.started:
            return self._no_session()
        self._history = [self.tree.start_node_id]
        return TraversalResult.success(self.tree.start_node_id)

    # =========================================================================
    # Helpers
    # =========================================================================

    def _move_to(self, source: DiagnosisNode, target_id: str) -> TraversalResult:
        if self.tree.get_node(target_id) is None:
            logger.error("Node %s points to missing node %s in tree %s", source.id, target_id, self.tree.tree_id)
            return TraversalResult.failed(
                TraversalError.MISSING_NODE,
                f"Node '{source.id}' points to missing node '{target_id}'",
                node_id=source.id,
            )
        self._history.append(target_id)
        return TraversalResult.success(target_id)

    def _wrong_type(self, operation: str, node: Optional[DiagnosisNode]) -> TraversalResult:
        if node is None:
            current_id = self._history[-1]
            return TraversalResult.failed(
                TraversalError.MISSING_NODE,
                f"Current node '{current_id}' does not exist",
                node_id=current_id,
            )
        return TraversalResult.rejected(
            TraversalError.WRONG_NODE_TYPE,
            f"Cannot {operation} at {node.type} node '{node.id}'",
            node_id=node.id,
        )

    @staticmethod
    def _no_session() -> TraversalResult:
        return TraversalResult.rejected(TraversalError.NO_SESSION, "No tree selected; call start() first")


__all__ = [
    "TraversalError",
    "TraversalResult",
    "TraversalSession",
    "TraversalStatus",
]
