"""Tree Repository: Storage abstraction for versioned diagnosis tree records."""

from __future__ import annotations

import json
import logging
import os
import re
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol

from pydantic import BaseModel, Field, ValidationError

logger = logging.getLogger(__name__)


class RepositoryError(RuntimeError):
    """Raised when the backing store cannot read or write a record."""


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


class TreeRecord(BaseModel):
    """
    Latest stored version of one tree.

    ``document`` holds the tree content exactly as uploaded (camelCase,
    locale variants included) so that it can be re-validated on read.
    """

    tree_id: str = Field(alias="treeId")
    version: int = Field(ge=1)
    is_active: bool = Field(default=False, alias="isActive")
    document: Dict[str, Any]
    updated_at: str = Field(default_factory=_utc_now, alias="updatedAt")
    updated_by: Optional[str] = Field(default=None, alias="updatedBy")

    model_config = {"populate_by_name": True}

    @property
    def node_count(self) -> int:
        nodes = self.document.get("nodes")
        return len(nodes) if isinstance(nodes, list) else 0


class TreeRepository(Protocol):
    """Key-value store keyed by ``treeId``. Every write replaces the whole record."""

    def get(self, tree_id: str) -> Optional[TreeRecord]: ...

    def save(self, record: TreeRecord) -> None: ...

    def set_active(self, tree_id: str, is_active: bool) -> bool: ...

    def list_all(self, strict: bool = True) -> List[TreeRecord]: ...


class InMemoryTreeRepository:
    """Dictionary-backed repository for tests and embedded use."""

    def __init__(self) -> None:
        self.items: Dict[str, TreeRecord] = {}

    def get(self, tree_id: str) -> Optional[TreeRecord]:
        record = self.items.get(tree_id)
        return record.model_copy(deep=True) if record else None

    def save(self, record: TreeRecord) -> None:
        self.items[record.tree_id] = record.model_copy(deep=True)

    def set_active(self, tree_id: str, is_active: bool) -> bool:
        record = self.items.get(tree_id)
        if record is None:
            return False
        self.items[tree_id] = record.model_copy(update={"is_active": is_active, "updated_at": _utc_now()})
        return True

    def list_all(self, strict: bool = True) -> List[TreeRecord]:
        return sorted(
            (record.model_copy(deep=True) for record in self.items.values()),
            key=lambda r: r.updated_at,
            reverse=True,
        )


def safe_file_name(tree_id: str) -> str:
    return re.sub(r"[^a-zA-Z0-9_-]", "_", tree_id)


class JsonTreeRepository:
    """
    One JSON file per tree under a directory.

    Files are written to a temporary file first and moved into place, so a
    reader never sees a partially written record.
    """

    def __init__(self, root: str | Path):
        self.root = Path(root)

    def _path(self, tree_id: str) -> Path:
        return self.root / f"{safe_file_name(tree_id)}.json"

    def _read(self, path: Path) -> TreeRecord:
        try:
            raw = path.read_text(encoding="utf-8-sig")
            return TreeRecord.model_validate(json.loads(raw))
        except (OSError, json.JSONDecodeError, ValidationError) as exc:
            raise RepositoryError(f"Cannot read tree record {path}: {exc}") from exc

    def _write(self, record: TreeRecord) -> None:
        path = self._path(record.tree_id)
        payload = json.dumps(record.model_dump(by_alias=True), ensure_ascii=False, indent=2)
        tmp_name: Optional[str] = None
        try:
            self.root.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.root, prefix=".", suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
            os.replace(tmp_name, path)
        except OSError as exc:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise RepositoryError(f"Cannot write tree record {path}: {exc}") from exc
        logger.debug("Wrote %s v%s to %s", record.tree_id, record.version, path)

    def get(self, tree_id: str) -> Optional[TreeRecord]:
        """
        Stored record for ``tree_id``, or None.

        Raises:
            RepositoryError: If the file is unreadable or belongs to another
                tree whose id maps to the same file name
        """
        path = self._path(tree_id)
        if not path.exists():
            return None
        record = self._read(path)
        if record.tree_id != tree_id:
            raise RepositoryError(
                f"Tree id '{tree_id}' collides with stored tree '{record.tree_id}' in {path.name}"
            )
        return record

    def save(self, record: TreeRecord) -> None:
        self.get(record.tree_id)  # raises on a file-name collision
        self._write(record)

    def set_active(self, tree_id: str, is_active: bool) -> bool:
        record = self.get(tree_id)
        if record is None:
            return False
        self._write(record.model_copy(update={"is_active": is_active, "updated_at": _utc_now()}))
        return True

    def list_all(self, strict: bool = True) -> List[TreeRecord]:
        """
        Every stored record, most recently updated first.

        Args:
            strict: Raise on the first unreadable file; when False such files
                are logged and skipped
        """
        if not self.root.exists():
            return []
        records = []
        for path in sorted(self.root.glob("*.json")):
            try:
                records.append(self._read(path))
            except RepositoryError as exc:
                if strict:
                    raise
                logger.error("Skipping unreadable tree record: %s", exc)
        return sorted(records, key=lambda r: r.updated_at, reverse=True)


__all__ = [
    "InMemoryTreeRepository",
    "JsonTreeRepository",
    "RepositoryError",
    "TreeRecord",
    "TreeRepository",
    "safe_file_name",
]
