"""Service Layer: Tree publishing and serving."""

from __future__ import annotations

from .cache import ActiveTreeCache
from .tree_service import (
    ActivationResult,
    BatchUploadResult,
    DiagnosisTreeService,
    TreeSummary,
    UploadResult,
)

__all__ = [
    "ActiveTreeCache",
    "ActivationResult",
    "BatchUploadResult",
    "DiagnosisTreeService",
    "TreeSummary",
    "UploadResult",
]
