"""Read diagnosis tree documents from JSON or YAML files."""

from __future__ import annotations

import glob
import json
import os
from typing import Any, Dict, Iterable, List

import yaml
from pydantic import ValidationError

from diagnosis.config import DEFAULT_LOCALE
from diagnosis.core.tree.localization import localize_document
from diagnosis.core.tree.models import DiagnosisTree
from diagnosis.io.loaders.errors import LoaderError

TREE_FILE_EXTENSIONS = (".json", ".yaml", ".yml")


def _parse_file(path: str) -> Any:
    with open(path, "r", encoding="utf-8-sig") as f:
        raw = f.read()
    if path.endswith(".json"):
        return json.loads(raw)
    return yaml.safe_load(raw)


def read_tree_documents(path: str) -> List[Dict[str, Any]]:
    """Read raw tree documents from a file or a directory tree.

    A file may hold a single tree object or an array of trees:

    {"treeId": "battery-no-start", "title": "...", "startNodeId": "q1", "nodes": [...]}

    Documents are returned unvalidated; run the validator before storing them.
    """
    if os.path.isdir(path):
        files = sorted(
            fp
            for fp in glob.glob(os.path.join(path, "**", "*"), recursive=True)
            if fp.endswith(TREE_FILE_EXTENSIONS) and os.path.isfile(fp)
        )
        documents: List[Dict[str, Any]] = []
        for fp in files:
            documents.extend(read_tree_documents(fp))
        return documents

    if not os.path.exists(path):
        raise LoaderError(path, "Tree file not found")
    try:
        data = _parse_file(path)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError, yaml.YAMLError) as exc:
        raise LoaderError(path, "Cannot parse tree document", cause=exc) from exc

    if data is None:
        return []
    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        return [data]
    raise LoaderError(path, f"Expected a tree object or a list of trees, got {type(data).__name__}")


def read_all(paths: Iterable[str]) -> List[Dict[str, Any]]:
    documents: List[Dict[str, Any]] = []
    for path in paths:
        documents.extend(read_tree_documents(path))
    return documents


def load_tree(path: str, locale: str = DEFAULT_LOCALE) -> DiagnosisTree:
    """Load a single-tree file as a typed, localized tree (no graph validation)."""
    documents = read_tree_documents(path)
    if len(documents) != 1:
        raise LoaderError(path, f"Expected exactly one tree, found {len(documents)}")
    if not isinstance(documents[0], dict):
        raise LoaderError(path, "Tree document must be an object")
    localized = localize_document(documents[0], locale)
    try:
        return DiagnosisTree.model_validate(localized)
    except ValidationError as exc:
        raise LoaderError(path, "Invalid diagnosis tree", cause=exc, document=localized) from exc
