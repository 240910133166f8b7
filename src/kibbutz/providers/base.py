"""Structural provider interfaces.

Providers are duck-typed: anything with a matching ``load`` works. These
protocols exist for type checkers and documentation.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Protocol, runtime_checkable

ProviderCallback = Callable[[BaseException | None, Any], None]


@runtime_checkable
class Provider(Protocol):
    """Awaitable-style provider: ``await provider.load()`` yields a fragment."""

    async def load(self) -> Any: ...


@runtime_checkable
class CallbackProvider(Protocol):
    """Callback-style provider.

    ``load`` receives a single callback and must eventually call it once,
    either as ``callback(error)`` or ``callback(None, fragment)``.
    """

    def load(self, callback: ProviderCallback) -> None: ...
