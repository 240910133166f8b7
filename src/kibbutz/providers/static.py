"""Provider backed by an in-memory mapping."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from kibbutz._values import clone_value
from kibbutz.exceptions import InvalidArgumentError


class MappingProvider:
    """Resolve a fixed fragment.

    The mapping is copied at construction and again on every load, so the
    provider can be reused across stores.
    """

    def __init__(self, fragment: Mapping[str, Any]) -> None:
        if not isinstance(fragment, Mapping):
            raise InvalidArgumentError(f"fragment must be a mapping, got {type(fragment).__name__}")
        self._fragment: dict[str, Any] = clone_value(fragment)

    def __repr__(self) -> str:
        return f"MappingProvider(keys={sorted(map(str, self._fragment))!r})"

    async def load(self) -> dict[str, Any]:
        result: dict[str, Any] = clone_value(self._fragment)
        return result
