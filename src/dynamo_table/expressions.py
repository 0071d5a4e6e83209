"""Placeholder helpers for DynamoDB expressions.

DynamoDB rejects reserved words (``name``, ``status``, ...) used directly in
expressions, so attribute names go through ``#placeholder`` tokens listed in
``ExpressionAttributeNames``. The adapter derives those tokens from the value
placeholders it is given:

    filter_values = {":name": {"S": "Jane"}}
    -> ExpressionAttributeNames = {"#name": "name"}

Nothing here validates expression syntax; DynamoDB does that.
"""
from __future__ import annotations

from typing import Any, Dict, Mapping, Optional, Tuple

SIGILS = (":", "#")


def strip_sigil(token: str) -> str:
    """Drop one leading ``:`` or ``#`` from a placeholder token."""
    if token and token[0] in SIGILS:
        return token[1:]
    return token


def make_name_placeholder(attribute: str) -> str:
    return f"#{attribute}"


def make_filter_attribute_names(
    filter_values: Mapping[str, Any],
    base: Optional[Mapping[str, str]] = None,
) -> Dict[str, str]:
    """Map ``#attr`` to ``attr`` for every ``:attr`` key in ``filter_values``.

    Entries derived from ``filter_values`` win over ``base`` on collision.
    """
    names: Dict[str, str] = dict(base or {})
    for value_key in filter_values:
        attribute = strip_sigil(value_key)
        names[make_name_placeholder(attribute)] = attribute
    return names


def merge_attribute_values(
    keys: Optional[Mapping[str, Any]],
    filter_values: Optional[Mapping[str, Any]] = None,
) -> Dict[str, Any]:
    merged: Dict[str, Any] = dict(keys or {})
    if filter_values:
        merged.update(filter_values)
    return merged


def make_projection(projection: str) -> Tuple[str, Dict[str, str]]:
    """Turn ``"name, age"`` into ``("#name, #age", {"#name": "name", "#age": "age"})``."""
    names: Dict[str, str] = {}
    placeholders = []
    for attr in projection.split(","):
        trimmed = attr.strip()
        if not trimmed:
            continue
        placeholder = make_name_placeholder(trimmed)
        names[placeholder] = trimmed
        placeholders.append(placeholder)
    return ", ".join(placeholders), names
