"""Locale resolution for tree documents.

Authors may provide ``text``, ``text_ko`` or ``text_en`` (likewise ``actions*``
and ``title*``). Resolution happens once when a document is loaded so that
consumers only ever see a single resolved field.
"""

from __future__ import annotations

import copy
from typing import Any, List, Mapping, Optional

SUPPORTED_LOCALES = ("ko", "en")
LOCALIZED_FIELDS = ("text", "actions", "title")


def _candidate_keys(field: str, locale: Optional[str]) -> List[str]:
    keys = []
    if locale:
        keys.append(f"{field}_{locale}")
    keys.append(field)
    keys.extend(f"{field}_{other}" for other in SUPPORTED_LOCALES if other != locale)
    return keys


def resolve_text(raw: Mapping[str, Any], field: str = "text", locale: Optional[str] = None) -> Optional[str]:
    """Return the first non-blank string for ``field`` in locale order, or None."""
    for key in _candidate_keys(field, locale):
        value = raw.get(key)
        if isinstance(value, str) and value.strip():
            return value
    return None


def resolve_actions(raw: Mapping[str, Any], locale: Optional[str] = None) -> List[str]:
    """Return the first non-empty actions list in locale order (empty if none)."""
    for key in _candidate_keys("actions", locale):
        value = raw.get(key)
        if isinstance(value, list) and value:
            return [str(item) for item in value]
    return []


def has_text(raw: Mapping[str, Any]) -> bool:
    return resolve_text(raw) is not None


def _localize_mapping(raw: Mapping[str, Any], locale: str) -> dict:
    resolved = {key: value for key, value in raw.items() if not _is_locale_variant(key)}
    text = resolve_text(raw, "text", locale)
    if text is not None:
        resolved["text"] = text
    title = resolve_text(raw, "title", locale)
    if title is not None:
        resolved["title"] = title
    if raw.get("type") == "result":
        resolved["actions"] = resolve_actions(raw, locale)
    return resolved


def _is_locale_variant(key: str) -> bool:
    base, _, suffix = key.rpartition("_")
    return base in LOCALIZED_FIELDS and suffix in SUPPORTED_LOCALES


def localize_document(document: Mapping[str, Any], locale: str = "ko") -> dict:
    """
    Resolve all locale-specific fields of a tree document.

    Args:
        document: Raw tree document (not modified)
        locale: Preferred locale code

    Returns:
        New document with only ``title``/``text``/``actions`` left
    """
    localized = _localize_mapping(copy.deepcopy(dict(document)), locale)
    nodes = localized.get("nodes")
    if isinstance(nodes, list):
        localized["nodes"] = [
            _localize_mapping(node, locale) if isinstance(node, Mapping) else node for node in nodes
        ]
    return localized


__all__ = [
    "SUPPORTED_LOCALES",
    "has_text",
    "localize_document",
    "resolve_actions",
    "resolve_text",
]
