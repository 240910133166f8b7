"""Custom exception hierarchy for kibbutz."""

from __future__ import annotations

from typing import Any


class KibbutzError(Exception):
    """Base exception for all kibbutz errors."""


class InvalidArgumentError(KibbutzError, TypeError):
    """Malformed argument passed to a public operation."""


class InvalidProviderError(KibbutzError, TypeError):
    """A provider does not expose a usable ``load`` operation.

    Raised lazily, right before the offending provider would have been
    invoked, so earlier providers in the same list have already run.
    """

    def __init__(self, message: str, *, index: int, provider: Any = None) -> None:
        self.index = index
        self.provider = provider
        super().__init__(message)


class UnknownEventError(KibbutzError, ValueError):
    """Subscription to an event name the store never emits."""

    def __init__(self, message: str, *, event_name: str = "") -> None:
        self.event_name = event_name
        super().__init__(message)


class ProviderHttpError(KibbutzError):
    """HTTP-level failure in :class:`kibbutz.providers.HttpJsonProvider`.

    Covers network errors, non-200 responses and bodies that are not a
    JSON object.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        url: str = "",
    ) -> None:
        self.status_code = status_code
        self.url = url
        super().__init__(message)
