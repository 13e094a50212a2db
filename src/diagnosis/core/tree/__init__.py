"""
Diagnosis tree module.

Provides the tree schema, validator, depth estimator and traversal engine
behind the guided repair-diagnosis wizard.

Components:
- DiagnosisTree / QuestionNode / StepNode / ResultNode: Tree schema
- validate_tree: Structural, referential, cycle and reachability checks
- estimate_max_depth: Longest path for progress display
- TraversalSession: Interactive walk state machine

Example:
    from diagnosis.core.tree import DiagnosisTree, TraversalSession

    tree = DiagnosisTree.model_validate(document)
    session = TraversalSession()
    session.start(tree)
    session.answer("yes")
    print(session.current_node().text)
"""

from diagnosis.core.tree.depth import estimate_max_depth
from diagnosis.core.tree.localization import localize_document
from diagnosis.core.tree.models import (
    DiagnosisLink,
    DiagnosisNode,
    DiagnosisTree,
    QuestionNode,
    ResultNode,
    StepNode,
    ValidationReport,
    node_successors,
)
from diagnosis.core.tree.traversal import (
    TraversalError,
    TraversalResult,
    TraversalSession,
    TraversalStatus,
)
from diagnosis.core.tree.validator import TreeValidator, validate_tree

__all__ = [
    "DiagnosisLink",
    "DiagnosisNode",
    "DiagnosisTree",
    "QuestionNode",
    "ResultNode",
    "StepNode",
    "ValidationReport",
    "node_successors",
    "localize_document",
    "TreeValidator",
    "validate_tree",
    "estimate_max_depth",
    "TraversalError",
    "TraversalResult",
    "TraversalSession",
    "TraversalStatus",
]
