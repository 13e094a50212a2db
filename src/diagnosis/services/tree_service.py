"""Tree Service: Upload, versioning, activation and serving of diagnosis trees."""

from __future__ import annotations

import copy
import logging
from typing import Any, Dict, List, Literal, Mapping, Optional

from pydantic import BaseModel, Field, ValidationError

from diagnosis.config import DEFAULT_LOCALE, DEFAULT_UPDATED_BY
from diagnosis.core.tree.localization import localize_document, resolve_text
from diagnosis.core.tree.models import DiagnosisTree
from diagnosis.core.tree.validator import validate_tree
from diagnosis.repositories.tree_repository import RepositoryError, TreeRecord, TreeRepository
from diagnosis.services.cache import ActiveTreeCache
from diagnosis.utils.logging import log_calls

logger = logging.getLogger(__name__)

UNKNOWN_TREE_ID = "(unknown)"
READ_ONLY_MESSAGE = "read-only mode: changes are disabled"


class _WireModel(BaseModel):
    model_config = {"populate_by_name": True}

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class UploadResult(_WireModel):
    """Outcome of one tree in an upload batch."""

    tree_id: str = Field(alias="treeId")
    status: Literal["saved", "failed"]
    version: Optional[int] = None
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)

    @classmethod
    def saved(cls, tree_id: str, version: int, warnings: List[str]) -> "UploadResult":
        return cls(tree_id=tree_id, status="saved", version=version, warnings=warnings)

    @classmethod
    def failed(cls, tree_id: str, errors: List[str], warnings: Optional[List[str]] = None) -> "UploadResult":
        return cls(tree_id=tree_id, status="failed", errors=errors, warnings=warnings or [])


class BatchUploadResult(_WireModel):
    imported: int
    results: List[UploadResult]


class ActivationResult(_WireModel):
    ok: bool
    error: Optional[Literal["NOT_FOUND", "READ_ONLY", "STORE_ERROR"]] = None
    message: Optional[str] = None


class TreeSummary(_WireModel):
    """Admin listing entry; errors and warnings are recomputed on every read."""

    tree_id: str = Field(alias="treeId")
    title: str
    category: str
    supported_models: List[str] = Field(default_factory=list, alias="supportedModels")
    node_count: int = Field(alias="nodeCount")
    version: int
    is_active: bool = Field(alias="isActive")
    updated_at: Optional[str] = Field(default=None, alias="updatedAt")
    updated_by: Optional[str] = Field(default=None, alias="updatedBy")
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)

    @property
    def is_servable(self) -> bool:
        """Whether technicians can currently see this tree."""
        return self.is_active and not self.errors


def _document_tree_id(document: Any) -> str:
    if isinstance(document, Mapping):
        tree_id = document.get("treeId")
        if isinstance(tree_id, str) and tree_id.strip():
            return tree_id
    return UNKNOWN_TREE_ID


class DiagnosisTreeService:
    """
    Version and activation manager for diagnosis trees.

    Every upload is validated on its own; one invalid tree never blocks the
    others in a batch. A successful upload replaces the stored record with
    ``version + 1`` and keeps its activation flag. Activation only changes
    through ``set_active``.
    """

    def __init__(
        self,
        repository: TreeRepository,
        *,
        cache: Optional[ActiveTreeCache] = None,
        read_only: bool = False,
    ):
        """
        Initialize tree service.

        Args:
            repository: Tree store
            cache: Active-tree cache (a private one is created if omitted)
            read_only: Refuse uploads and activation changes
        """
        self.repository = repository
        self.cache = cache if cache is not None else ActiveTreeCache()
        self.read_only = read_only

    # =========================================================================
    # Admin operations
    # =========================================================================

    @log_calls()
    def upsert(self, document: Any, updated_by: str = DEFAULT_UPDATED_BY) -> UploadResult:
        """
        Validate and store one tree document.

        Args:
            document: Tree document as parsed from JSON/YAML
            updated_by: Recorded as the author of this version

        Returns:
            UploadResult with the new version, or the blocking errors
        """
        tree_id = _document_tree_id(document)
        if self.read_only:
            return UploadResult.failed(tree_id, [READ_ONLY_MESSAGE])

        report = validate_tree(document)
        if not report.is_valid:
            logger.info("Tree %s rejected with %d error(s)", tree_id, len(report.errors))
            return UploadResult.failed(tree_id, report.errors, report.warnings)

        try:
            existing = self.repository.get(tree_id)
            record = TreeRecord(
                tree_id=tree_id,
                version=existing.version + 1 if existing else 1,
                is_active=existing.is_active if existing else False,
                document=copy.deepcopy(dict(document)),
                updated_by=updated_by,
            )
            self.repository.save(record)
        except RepositoryError as exc:
            logger.error("Failed to store tree %s: %s", tree_id, exc)
            return UploadResult.failed(tree_id, [str(exc)], report.warnings)

        self.cache.invalidate()
        logger.info("Saved tree %s v%d (active=%s)", tree_id, record.version, record.is_active)
        return UploadResult.saved(tree_id, record.version, report.warnings)

    def upload(self, payload: Any, updated_by: str = DEFAULT_UPDATED_BY) -> BatchUploadResult:
        """Store one document or a list of documents, each independently."""
        documents = payload if isinstance(payload, list) else [payload]
        results = [self.upsert(document, updated_by=updated_by) for document in documents]
        imported = sum(1 for result in results if result.status == "saved")
        return BatchUploadResult(imported=imported, results=results)

    @log_calls()
    def set_active(self, tree_id: str, is_active: bool) -> ActivationResult:
        """Flip the activation flag without touching version or content."""
        if self.read_only:
            return ActivationResult(ok=False, error="READ_ONLY", message=READ_ONLY_MESSAGE)
        tree_id = (tree_id or "").strip()
        try:
            found = bool(tree_id) and self.repository.set_active(tree_id, bool(is_active))
        except RepositoryError as exc:
            logger.error("Failed to update activation of %s: %s", tree_id, exc)
            return ActivationResult(ok=False, error="STORE_ERROR", message=str(exc))
        if not found:
            return ActivationResult(ok=False, error="NOT_FOUND", message=f"Tree '{tree_id}' not found")
        self.cache.invalidate()
        return ActivationResult(ok=True)

    def list_trees(self) -> List[TreeSummary]:
        """Latest version of every stored tree, re-validated at read time."""
        summaries = []
        for record in self.repository.list_all():
            document = record.document
            report = validate_tree(document)
            models = document.get("supportedModels")
            category = document.get("category")
            summaries.append(
                TreeSummary(
                    tree_id=record.tree_id,
                    title=resolve_text(document, "title") or record.tree_id,
                    category=category if isinstance(category, str) and category else "General",
                    supported_models=[m for m in models if isinstance(m, str)] if isinstance(models, list) else [],
                    node_count=record.node_count,
                    version=record.version,
                    is_active=record.is_active,
                    updated_at=record.updated_at,
                    updated_by=record.updated_by,
                    errors=report.errors,
                    warnings=report.warnings,
                )
            )
        return summaries

    # =========================================================================
    # Technician-facing reads
    # =========================================================================

    def _active_records(self) -> List[TreeRecord]:
        """Active, error-free records; unreadable records are logged and skipped."""
        cached = self.cache.get()
        if cached is not None:
            return cached
        records = [
            record
            for record in self.repository.list_all(strict=False)
            if record.is_active and validate_tree(record.document).is_valid
        ]
        self.cache.put(records)
        return records

    @staticmethod
    def _build_tree(record: TreeRecord, locale: str) -> Optional[DiagnosisTree]:
        try:
            return DiagnosisTree.model_validate(localize_document(record.document, locale))
        except ValidationError as exc:
            logger.warning("Skipping tree %s: cannot build typed tree: %s", record.tree_id, exc)
            return None

    def load_active_trees(
        self,
        model: str,
        category: Optional[str] = None,
        locale: str = DEFAULT_LOCALE,
    ) -> List[DiagnosisTree]:
        """
        Trees a technician may walk for a vehicle model.

        Args:
            model: Vehicle model; only trees listing it are returned
            category: Optional category filter
            locale: Locale used to resolve text and actions

        Returns:
            Active, error-free trees, most recently updated first
        """
        if not model:
            return []
        trees = []
        for record in self._active_records():
            tree = self._build_tree(record, locale)
            if tree is None or not tree.supports_model(model):
                continue
            if category and tree.category != category:
                continue
            trees.append(tree)
        return trees

    def list_categories(self, model: str) -> List[str]:
        return sorted({tree.category for tree in self.load_active_trees(model)})

    def get_active_tree(self, tree_id: str, locale: str = DEFAULT_LOCALE) -> Optional[DiagnosisTree]:
        for record in self._active_records():
            if record.tree_id == tree_id:
                return self._build_tree(record, locale)
        return None


__all__ = [
    "ActivationResult",
    "BatchUploadResult",
    "DiagnosisTreeService",
    "TreeSummary",
    "UploadResult",
]
