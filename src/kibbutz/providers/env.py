"""Provider reading prefixed environment variables."""

from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Any

from kibbutz.exceptions import InvalidArgumentError
from kibbutz.merge import merge_into

_TRUE_VALUES = frozenset({"true", "yes", "on"})
_FALSE_VALUES = frozenset({"false", "no", "off"})


def _env_value(value: str, parse_booleans: bool) -> Any:
    if not parse_booleans:
        return value
    normalized = value.strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    return value


class EnvironmentProvider:
    """Build a nested fragment from ``<PREFIX><KEY>[<SEP><KEY>...]`` variables.

    ``APP_DATABASE__HOST=db`` with prefix ``APP_`` yields
    ``{"database": {"host": "db"}}``. Keys are lower-cased. Variables are
    applied in sorted order with the same first-write-wins merge as the
    store, so ``APP_DATABASE=x`` shadows any ``APP_DATABASE__*`` variable.

    Parameters
    ----------
    prefix : str
        Required, non-empty variable name prefix.
    separator : str
        Splits the remainder of the name into a key path.
    environ : Mapping, optional
        Source of variables; defaults to :data:`os.environ` at load time.
    parse_booleans : bool
        Convert ``true/yes/on`` and ``false/no/off`` to booleans. Unlike a
        plain on/off flag parser, ``"1"``/``"0"`` and ``"y"``/``"n"`` stay
        strings: in configuration they are as often counts, ports, levels
        or single-letter codes as they are flags.
    """

    def __init__(
        self,
        prefix: str,
        *,
        separator: str = "__",
        environ: Mapping[str, str] | None = None,
        parse_booleans: bool = True,
    ) -> None:
        if not isinstance(prefix, str) or not prefix:
            raise InvalidArgumentError("prefix must be a non-empty string")
        if not isinstance(separator, str) or not separator:
            raise InvalidArgumentError("separator must be a non-empty string")
        self._prefix = prefix
        self._separator = separator
        self._environ = environ
        self._parse_booleans = parse_booleans

    def __repr__(self) -> str:
        return f"EnvironmentProvider(prefix={self._prefix!r})"

    async def load(self) -> dict[str, Any]:
        env = os.environ if self._environ is None else self._environ
        result: dict[str, Any] = {}
        for name in sorted(env):
            if not name.startswith(self._prefix):
                continue
            path = [part.lower() for part in name[len(self._prefix) :].split(self._separator)]
            if not all(path):
                continue
            fragment: Any = _env_value(env[name], self._parse_booleans)
            for key in reversed(path):
                fragment = {key: fragment}
            merge_into(result, fragment)
        return result
