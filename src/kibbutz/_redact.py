"""Helpers for safe debug logging.

Configuration fragments routinely carry credentials, usually under
namespaced keys (``db_password``, ``githubToken``, ``smtp.api-key``). Keys
are normalised (lower-cased, ``-``/``.``/spaces folded to ``_``) and
redacted when they *end with* one of the sensitive suffixes below.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any

_SENSITIVE_SUFFIXES: tuple[str, ...] = (
    "password",
    "passwd",
    "passphrase",
    "secret",
    "token",
    "api_key",
    "apikey",
    "private_key",
    "authorization",
    "cookie",
    "credentials",
    "dsn",
)

_SEPARATORS = re.compile(r"[-.\s]+")

REDACTED = "<redacted>"


def is_sensitive_key(key: object) -> bool:
    """Return ``True`` when a config key names a credential."""
    normalized = _SEPARATORS.sub("_", str(key).strip().lower())
    return normalized.endswith(_SENSITIVE_SUFFIXES)


def redact_for_log(value: Any, *, max_string: int = 256, _depth: int = 0) -> Any:
    """Return a log-safe copy of a configuration fragment.

    Mappings keep their keys with credential values replaced by
    ``<redacted>``; lists and tuples become lists; long strings are
    truncated; dates, callables and other opaque values are ``repr``'d.
    """
    if _depth > 20:
        return "<max-depth>"

    if isinstance(value, Mapping):
        return {
            str(key): REDACTED
            if is_sensitive_key(key)
            else redact_for_log(item, max_string=max_string, _depth=_depth + 1)
            for key, item in value.items()
        }

    if isinstance(value, (list, tuple)):
        return [redact_for_log(item, max_string=max_string, _depth=_depth + 1) for item in value]

    if isinstance(value, str):
        return value if len(value) <= max_string else f"{value[:max_string]}…<truncated>"

    if value is None or isinstance(value, (bool, int, float)):
        return value

    if isinstance(value, bytes):
        return f"<bytes:{len(value)}b>"

    return repr(value)
