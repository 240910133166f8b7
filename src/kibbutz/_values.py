"""Structural helpers for JSON-like values.

Three kinds of value exist as far as merging and copying are concerned:

* mappings (any :class:`collections.abc.Mapping`)
* sequences (``list`` or ``tuple``; strings and bytes are *not* sequences)
* opaque scalars: everything else, including ``None``, numbers, strings,
  dates/datetimes and callables. Opaque values are never recursed into.
"""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType
from typing import Any

_SEQUENCE_TYPES = (list, tuple)


def is_mapping(value: Any) -> bool:
    return isinstance(value, Mapping)


def is_sequence(value: Any) -> bool:
    return isinstance(value, _SEQUENCE_TYPES)


def is_container(value: Any) -> bool:
    """Return ``True`` for values that merge/clone recurse into."""
    return is_mapping(value) or is_sequence(value)


def clone_value(value: Any) -> Any:
    """Return a structurally independent, mutable deep copy of *value*.

    A top-level ``None`` yields a new empty dict. Mappings become ``dict``,
    sequences become ``list`` and opaque values are returned as-is.
    """
    if value is None:
        return {}
    return _clone(value)


def _clone(value: Any) -> Any:
    if is_mapping(value):
        return {key: _clone(item) for key, item in value.items()}
    if is_sequence(value):
        return [_clone(item) for item in value]
    return value


def freeze_value(value: Any) -> Any:
    """Return a read-only deep copy of *value*.

    Mappings become :class:`types.MappingProxyType` views over a fresh dict
    and sequences become tuples, so the result shares no container with the
    input.
    """
    if is_mapping(value):
        return MappingProxyType({key: freeze_value(item) for key, item in value.items()})
    if is_sequence(value):
        return tuple(freeze_value(item) for item in value)
    return value
