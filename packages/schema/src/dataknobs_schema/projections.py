"""Projections of an issue list into UI-friendly error shapes.

- ``flatten``: form-level messages plus messages grouped by top-level field
  (lossy: nested paths are attributed to their first segment).
- ``treeify``: a tree mirroring the input, with ``errors`` at every node and
  ``properties`` / ``items`` for children (lossless).
- ``format``: nested mappings carrying ``_errors`` lists.

Example:
    ```python
    result = schema.validate({"user": {"email": "bad"}})
    flatten(result)
    # {"form_errors": [], "field_errors": {"user": ["Invalid email"]}}
    treeify(result)["properties"]["user"]["properties"]["email"]["errors"]
    # ["Invalid email"]
    ```
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from .exceptions import SchemaValidationError
from .issues import Issue, PathSegment
from .result import ValidationResult

ErrorTree = dict[str, Any]


def _issues_of(source: Any) -> list[Issue]:
    if isinstance(source, (ValidationResult, SchemaValidationError)):
        return list(source.issues)
    return list(source)


def _is_index(segment: PathSegment) -> bool:
    return isinstance(segment, int) and not isinstance(segment, bool) and segment >= 0


def _new_node() -> ErrorTree:
    return {"errors": [], "properties": {}, "items": {}}


def treeify(source: Iterable[Issue] | ValidationResult | SchemaValidationError) -> ErrorTree:
    """Project issues into a tree mirroring the shape of the input.

    Each node is ``{"errors": [...], "properties": {...}, "items": {...}}``.
    String path segments descend into ``properties``; list indices descend
    into ``items``, keyed by index and holding only indices with issues.

    Args:
        source: Issues, a ValidationResult or a SchemaValidationError

    Returns:
        Root node of the error tree
    """
    root = _new_node()
    for issue in _issues_of(source):
        node = root
        for segment in issue.path:
            if _is_index(segment):
                node = node["items"].setdefault(segment, _new_node())
            else:
                node = node["properties"].setdefault(segment, _new_node())
        node["errors"].append(issue.message)
    return root


def _tree_messages(node: ErrorTree) -> list[str]:
    messages = list(node.get("errors", ()))
    for child in node.get("properties", {}).values():
        messages.extend(_tree_messages(child))
    for child in node.get("items", {}).values():
        messages.extend(_tree_messages(child))
    return messages


def _is_tree(source: Any) -> bool:
    return isinstance(source, Mapping) and "errors" in source


def flatten(source: Any) -> dict[str, Any]:
    """Project issues into form-level and per-field message lists.

    Args:
        source: Issues, a ValidationResult, a SchemaValidationError, or a
            tree produced by ``treeify``

    Returns:
        ``{"form_errors": [...], "field_errors": {field: [...]}}`` where
        issues with an empty path are form errors and every other issue is
        attributed to the first segment of its path
    """
    if _is_tree(source):
        field_errors: dict[PathSegment, list[str]] = {}
        for name, child in source.get("properties", {}).items():
            messages = _tree_messages(child)
            if messages:
                field_errors[name] = messages
        for index, child in source.get("items", {}).items():
            messages = _tree_messages(child)
            if messages:
                field_errors[index] = messages
        return {"form_errors": list(source["errors"]), "field_errors": field_errors}

    form_errors: list[str] = []
    field_errors = {}
    for issue in _issues_of(source):
        if issue.path:
            field_errors.setdefault(issue.path[0], []).append(issue.message)
        else:
            form_errors.append(issue.message)
    return {"form_errors": form_errors, "field_errors": field_errors}


def format(source: Iterable[Issue] | ValidationResult | SchemaValidationError) -> dict[Any, Any]:
    """Project issues into nested mappings with ``_errors`` at each level."""
    root: dict[Any, Any] = {"_errors": []}
    for issue in _issues_of(source):
        node = root
        for segment in issue.path:
            node = node.setdefault(segment, {"_errors": []})
        node["_errors"].append(issue.message)
    return root


__all__ = ["flatten", "treeify", "format"]
