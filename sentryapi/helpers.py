"""Helpers for composite resource IDs, JSON comparison and value reshaping."""

from __future__ import annotations

import json
from typing import Any, Iterable

from .errors import APIError


def build_two_part_id(a: str, b: str) -> str:
    """Join two parts into an ``a/b`` ID."""
    return f"{a}/{b}"


def split_two_part_id(id_: str, a: str, b: str) -> tuple[str, str]:
    """Split an ``a/b`` ID; ``a`` and ``b`` name the parts in the error message."""
    parts = id_.split("/", 1)
    if len(parts) != 2 or not all(parts):
        raise ValueError(f"unexpected format of ID ({id_}), expected {a}/{b}")
    return parts[0], parts[1]


def build_three_part_id(a: str, b: str, c: str) -> str:
    """Join three parts into an ``a/b/c`` ID."""
    return f"{a}/{b}/{c}"


def split_three_part_id(id_: str, a: str, b: str, c: str) -> tuple[str, str, str]:
    """Split an ``a/b/c`` ID; ``a``, ``b`` and ``c`` name the parts in the error message."""
    parts = id_.split("/", 2)
    if len(parts) != 3 or not all(parts):
        raise ValueError(f"unexpected format of ID ({id_}), expected {a}/{b}/{c}")
    return parts[0], parts[1], parts[2]


def split_alert_id(id_: str) -> tuple[str, str, str]:
    """Split an ``organization/project/alert`` ID."""
    return split_three_part_id(id_, "organization-slug", "project-slug", "alert-id")


def _same(a: Any, b: Any) -> bool:
    if isinstance(a, bool) or isinstance(b, bool):
        return type(a) is type(b) and a == b
    if isinstance(a, dict):
        return isinstance(b, dict) and a.keys() == b.keys() and all(_same(a[k], b[k]) for k in a)
    if isinstance(a, list):
        return isinstance(b, list) and len(a) == len(b) and all(map(_same, a, b))
    return type(a) is type(b) and a == b


def equivalent_json(old: str, new: str) -> bool:
    """True when both strings are valid JSON documents with equal values."""
    try:
        old_value = json.loads(old, parse_int=float)
        new_value = json.loads(new, parse_int=float)
    except ValueError:
        return False
    return _same(old_value, new_value)


def follow_shape(shape: Any, value: Any) -> Any:
    """Reshape ``value`` so it has only the keys and items present in ``shape``."""
    if isinstance(shape, dict):
        if not isinstance(value, dict):
            return None
        return {key: follow_shape(sub_shape, value.get(key)) for key, sub_shape in shape.items()}
    if isinstance(shape, list):
        if not isinstance(value, list):
            return None
        if len(value) < len(shape):
            raise ValueError(f"value has {len(value)} items, shape needs {len(shape)}")
        return [follow_shape(sub_shape, item) for sub_shape, item in zip(shape, value)]
    return value


def flatten_string_set(strings: Iterable[str]) -> set[str]:
    """Collect strings into a set."""
    return set(strings)


def expand_string_list(configured: Iterable[Any]) -> list[str]:
    """Keep the non-empty strings of a configured list, in order."""
    return [item for item in configured if isinstance(item, str) and item]


def check_client_get(error: BaseException | None) -> bool:
    """Interpret the outcome of a fetch.

    Returns True when it succeeded (``error`` is None), False when the server
    reported the resource as not found, and re-raises any other error.
    """
    if error is None:
        return True
    if isinstance(error, APIError) and error.status_code == 404:
        return False
    raise error


def import_organization_and_id(id_: str) -> tuple[str, str]:
    """Parse an ``organization/id`` import ID."""
    return split_two_part_id(id_, "organization-slug", "id")


def import_organization_project_and_id(id_: str) -> tuple[str, str, str]:
    """Parse an ``organization/project/id`` import ID."""
    return split_three_part_id(id_, "organization-slug", "project-slug", "id")