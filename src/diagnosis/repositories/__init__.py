"""Repository Layer: Storage abstractions for diagnosis trees."""

from __future__ import annotations

from .tree_repository import (
    InMemoryTreeRepository,
    JsonTreeRepository,
    RepositoryError,
    TreeRecord,
    TreeRepository,
)

__all__ = [
    "InMemoryTreeRepository",
    "JsonTreeRepository",
    "RepositoryError",
    "TreeRecord",
    "TreeRepository",
]
