"""Runtime defaults shared by the services and the CLI."""

from __future__ import annotations

DEFAULT_LOCALE = "ko"

# Seconds an active-tree listing may be served from memory before reloading.
ACTIVE_TREE_CACHE_TTL = 60.0

# Recorded as ``updatedBy`` when the uploader is not named.
DEFAULT_UPDATED_BY = "admin"

# Environment variable overriding the tree store directory.
TREES_DIR_ENV = "DIAGNOSIS_TREES_DIR"

__all__ = ["ACTIVE_TREE_CACHE_TTL", "DEFAULT_LOCALE", "DEFAULT_UPDATED_BY", "TREES_DIR_ENV"]
