from __future__ import annotations

"""Utilities for resolving the tree store location."""

import os
from pathlib import Path

from diagnosis.config import TREES_DIR_ENV


def default_trees_dir() -> Path:
    return Path.cwd() / "data" / "diagnosis" / "trees"


def trees_store_path(path: str | None) -> str:
    """Store directory: explicit option, then ``DIAGNOSIS_TREES_DIR``, then ./data/diagnosis/trees."""
    if path:
        return path
    env_path = os.environ.get(TREES_DIR_ENV)
    if env_path:
        return env_path
    return str(default_trees_dir())


__all__ = ["default_trees_dir", "trees_store_path"]
