"""Aggregate store.

This is the only component allowed to replace the published aggregate.
Every mutation clones the current value, merges into the clone and commits
a freshly frozen result, so values handed out earlier remain valid
snapshots.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from kibbutz._values import clone_value, freeze_value, is_sequence
from kibbutz.events import EventName, EventRegistry, Listener
from kibbutz.exceptions import InvalidArgumentError, KibbutzError
from kibbutz.merge import merge_into
from kibbutz.options import KibbutzOptions, parse_options
from kibbutz.pipeline import ProviderPipeline

_logger = logging.getLogger(__name__)

LoadCallback = Callable[[BaseException | None, Mapping[str, Any] | None], None]


@dataclass
class _AggregateState:
    """Owned per-instance state: the published value and its listeners."""

    value: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))
    events: EventRegistry = field(default_factory=EventRegistry)


class Kibbutz:
    """Aggregate configuration fragments into one read-only mapping.

    Usage::

        config = Kibbutz({"value": {"debug": False}})
        config.on("config", print)
        value = await config.load_async([EnvironmentProvider("APP_")])

    Merging is first-write-wins: a key that already holds a scalar keeps
    it, mappings are merged recursively and lists are concatenated.

    Concurrent ``load``/``append`` calls on one instance are not
    serialized; each works from the snapshot current when it started and
    the last commit wins.
    """

    def __init__(self, options: KibbutzOptions | Mapping[str, Any] | None = None) -> None:
        parsed = parse_options(options)
        self._state = _AggregateState()
        self._tasks: set[asyncio.Task[None]] = set()
        self._commit(clone_value(parsed.value))

    def __repr__(self) -> str:
        return f"Kibbutz(keys={sorted(map(str, self._state.value))!r})"

    @property
    def value(self) -> Mapping[str, Any]:
        """The published aggregate (read-only; nested lists are tuples)."""
        return self._state.value

    def to_dict(self) -> dict[str, Any]:
        """Return a mutable deep copy of the aggregate."""
        result: dict[str, Any] = clone_value(self._state.value)
        return result

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def on(self, event_name: str, listener: Listener) -> Kibbutz:
        """Register *listener* for ``"config"`` or ``"done"``.

        ``"config"`` fires once per loaded fragment with the fragment;
        ``"done"`` fires once per successful load with the new aggregate.
        """
        self._state.events.on(event_name, listener)
        return self

    def _emit_fragment(self, fragment: Any) -> None:
        self._state.events.emit(EventName.CONFIG, fragment)

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load(self, providers: Sequence[Any], callback: LoadCallback) -> Kibbutz:
        """Load *providers* in the background and report through *callback*.

        Argument errors (including an invalid first provider) are raised
        immediately. Everything else, provider failures included, is
        delivered exactly once as ``callback(error, None)``; success is
        ``callback(None, aggregate)``. Must be called with a running event
        loop.
        """
        pipeline = ProviderPipeline(providers, on_fragment=self._emit_fragment)
        if not callable(callback):
            raise InvalidArgumentError('Arg "callback" must be callable')
        pipeline.check(0)

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError as exc:
            raise KibbutzError("load() requires a running event loop; use 'await load_async(...)'") from exc

        task = loop.create_task(self._load_with_callback(pipeline, callback))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return self

    async def load_async(self, providers: Sequence[Any]) -> Mapping[str, Any]:
        """Load *providers* and return the new aggregate.

        Raises argument/provider validation errors and provider failures
        unchanged; on failure the published aggregate is left as it was.
        """
        pipeline = ProviderPipeline(providers, on_fragment=self._emit_fragment)
        return await self._run(pipeline)

    async def _run(self, pipeline: ProviderPipeline) -> Mapping[str, Any]:
        result = await pipeline.run(clone_value(self._state.value))
        published = self._commit(result)
        # Already committed; listeners cannot fail the load.
        self._state.events.emit_logging_failures(EventName.DONE, published)
        return published

    async def _load_with_callback(self, pipeline: ProviderPipeline, callback: LoadCallback) -> None:
        try:
            published = await self._run(pipeline)
        except Exception as exc:
            self._notify(callback, exc, None)
            return
        self._notify(callback, None, published)

    @staticmethod
    def _notify(callback: LoadCallback, error: BaseException | None, value: Mapping[str, Any] | None) -> None:
        try:
            callback(error, value)
        except Exception:
            _logger.debug("load callback failed", exc_info=True)

    # ------------------------------------------------------------------
    # Appending
    # ------------------------------------------------------------------

    def append(self, *values: Any) -> Kibbutz:
        """Merge one or more values into the aggregate.

        Accepts either several positional values or a single list/tuple of
        values: ``append(a, b)`` and ``append([a, b])`` are equivalent.
        """
        if not values:
            raise InvalidArgumentError("No values were supplied to append")
        if len(values) == 1 and is_sequence(values[0]):
            return self.extend(values[0])
        return self.extend(values)

    def append_one(self, value: Any) -> Kibbutz:
        """Merge a single value, even if it is itself a list."""
        return self.extend([value])

    def extend(self, values: Sequence[Any]) -> Kibbutz:
        """Merge each of *values*, in order, and commit once."""
        if not is_sequence(values):
            raise InvalidArgumentError('Arg "values" must be a list or tuple')
        if not values:
            raise InvalidArgumentError("No values were supplied to append")

        working = clone_value(self._state.value)
        for value in values:
            merge_into(working, clone_value(value))
        self._commit(working)
        return self

    def _commit(self, value: Mapping[str, Any]) -> Mapping[str, Any]:
        published: Mapping[str, Any] = freeze_value(value)
        self._state.value = published
        return published


_shared: Kibbutz | None = None


def get_shared() -> Kibbutz | None:
    """Return the process-wide default store, if one was set."""
    return _shared


def set_shared(instance: Kibbutz | None) -> None:
    """Set (or clear, with ``None``) the process-wide default store."""
    global _shared
    if instance is not None and not isinstance(instance, Kibbutz):
        raise InvalidArgumentError(f"Shared instance must be a Kibbutz or None, got {type(instance).__name__}")
    _shared = instance
