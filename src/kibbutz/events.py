"""Named-event subscription for a store instance.

Only two events exist and listeners run synchronously, in registration
order, on the thread that emits.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from enum import StrEnum
from typing import Any

from kibbutz.exceptions import InvalidArgumentError, UnknownEventError

_logger = logging.getLogger(__name__)


class EventName(StrEnum):
    CONFIG = "config"
    DONE = "done"


Listener = Callable[[Any], None]


class EventRegistry:
    """Listener lists keyed by :class:`EventName`."""

    def __init__(self) -> None:
        self._listeners: dict[EventName, list[Listener]] = {name: [] for name in EventName}

    def on(self, event_name: str, listener: Listener) -> None:
        """Register *listener* for *event_name*.

        Raises
        ------
        InvalidArgumentError
            *event_name* is not a non-empty string or *listener* is not callable.
        UnknownEventError
            *event_name* is not one of :class:`EventName`.
        """
        if not isinstance(event_name, str) or not event_name:
            raise InvalidArgumentError('Arg "event_name" must be a non-empty string')
        if not callable(listener):
            raise InvalidArgumentError('Arg "listener" must be callable')
        try:
            name = EventName(event_name)
        except ValueError:
            raise UnknownEventError(
                f'Arg "event_name" references an unknown event: {event_name}',
                event_name=event_name,
            ) from None
        self._listeners[name].append(listener)

    def emit(self, event_name: EventName, payload: Any) -> None:
        # Snapshot so a listener registering another listener doesn't extend this emission.
        for listener in list(self._listeners[event_name]):
            listener(payload)

    def emit_logging_failures(self, event_name: EventName, payload: Any) -> None:
        """Like :meth:`emit`, but a raising listener is logged and skipped."""
        for listener in list(self._listeners[event_name]):
            try:
                listener(payload)
            except Exception:
                _logger.debug("%s listener failed", event_name.value, exc_info=True)

    def listener_count(self, event_name: EventName) -> int:
        return len(self._listeners[event_name])
