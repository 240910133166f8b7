from __future__ import annotations

import asyncio
import logging
import threading
from dataclasses import dataclass, field
from typing import Any

import pytest

from kibbutz.exceptions import InvalidArgumentError, InvalidProviderError, KibbutzError
from kibbutz.pipeline import ProviderPipeline, resolve_load
from kibbutz.providers import MappingProvider


@dataclass
class _RecordingProvider:
    name: str
    fragment: Any
    log: list[str]
    delay: float = 0.0

    async def load(self) -> Any:
        self.log.append(f"start:{self.name}")
        await asyncio.sleep(self.delay)
        self.log.append(f"end:{self.name}")
        return self.fragment


@dataclass
class _CallbackProvider:
    fragment: Any = None
    error: Any = None
    calls: int = 0

    def load(self, callback: Any) -> None:
        self.calls += 1
        asyncio.get_running_loop().call_soon(callback, self.error, self.fragment)


@dataclass
class _FailingProvider:
    error: Exception

    async def load(self) -> Any:
        raise self.error


@dataclass
class _CountingProvider:
    calls: int = 0

    async def load(self) -> Any:
        self.calls += 1
        return {"counted": True}


@dataclass
class _FragmentLog:
    fragments: list[Any] = field(default_factory=list)

    def __call__(self, fragment: Any) -> None:
        self.fragments.append(fragment)


@pytest.mark.parametrize("providers", ["abc", None, {"a": 1}, 42])
def test_providers_must_be_list_or_tuple(providers: Any) -> None:
    with pytest.raises(InvalidArgumentError):
        ProviderPipeline(providers)


@pytest.mark.asyncio
async def test_empty_provider_list_returns_seed() -> None:
    seed = {"foo": "bar"}

    result = await ProviderPipeline([]).run(seed)

    assert result is seed
    assert result == {"foo": "bar"}


@pytest.mark.asyncio
async def test_providers_run_sequentially_regardless_of_latency() -> None:
    log: list[str] = []
    providers = [
        _RecordingProvider("A", {"a": 1}, log, delay=0.03),
        _RecordingProvider("B", {"b": 1}, log, delay=0.01),
        _RecordingProvider("C", {"c": 1}, log),
    ]

    result = await ProviderPipeline(providers).run({})

    assert log == ["start:A", "end:A", "start:B", "end:B", "start:C", "end:C"]
    assert result == {"a": 1, "b": 1, "c": 1}


@pytest.mark.asyncio
async def test_fragment_notification_precedes_next_provider() -> None:
    log: list[str] = []
    providers = [
        _RecordingProvider("A", {"a": 1}, log),
        _RecordingProvider("B", {"b": 1}, log),
    ]

    await ProviderPipeline(providers, on_fragment=lambda fragment: log.append(f"fragment:{fragment}")).run({})

    assert log == [
        "start:A",
        "end:A",
        "fragment:{'a': 1}",
        "start:B",
        "end:B",
        "fragment:{'b': 1}",
    ]


@pytest.mark.asyncio
async def test_earlier_provider_wins() -> None:
    providers = [
        MappingProvider({"name": "first", "tags": ["a"], "db": {"host": "h1"}}),
        MappingProvider({"name": "second", "tags": ["b"], "db": {"host": "h2", "port": 5432}}),
    ]

    result = await ProviderPipeline(providers).run({"name": "seed"})

    assert result == {"name": "seed", "tags": ["a", "b"], "db": {"host": "h1", "port": 5432}}


@pytest.mark.asyncio
async def test_callback_style_provider() -> None:
    fragments = _FragmentLog()

    result = await ProviderPipeline([_CallbackProvider(fragment={"baz": "qux"})], on_fragment=fragments).run({})

    assert result == {"baz": "qux"}
    assert fragments.fragments == [{"baz": "qux"}]


@pytest.mark.asyncio
async def test_callback_from_another_thread() -> None:
    class _ThreadedProvider:
        def load(self, callback: Any) -> None:
            threading.Timer(0.01, callback, args=(None, {"threaded": True})).start()

    result = await ProviderPipeline([_ThreadedProvider()]).run({})

    assert result == {"threaded": True}


@pytest.mark.asyncio
async def test_late_callbacks_are_dropped() -> None:
    class _ChattyProvider:
        def load(self, callback: Any) -> None:
            callback(None, {"first": 1})
            callback(None, {"second": 2})
            callback(RuntimeError("late"))

    result = await ProviderPipeline([_ChattyProvider()]).run({})

    assert result == {"first": 1}


@pytest.mark.asyncio
async def test_non_exception_callback_error_is_reported() -> None:
    with pytest.raises(KibbutzError, match="Test"):
        await ProviderPipeline([_CallbackProvider(error={"message": "Test"})]).run({})


@pytest.mark.asyncio
async def test_failure_stops_pipeline_and_passes_error_through() -> None:
    error = RuntimeError("remote unavailable")
    fragments = _FragmentLog()
    last = _CountingProvider()
    providers = [MappingProvider({"a": 1}), _FailingProvider(error), last]

    with pytest.raises(RuntimeError) as excinfo:
        await ProviderPipeline(providers, on_fragment=fragments).run({})

    assert excinfo.value is error
    assert fragments.fragments == [{"a": 1}]
    assert last.calls == 0


@pytest.mark.asyncio
async def test_callback_error_is_passed_through() -> None:
    error = ValueError("bad fragment")
    last = _CountingProvider()

    with pytest.raises(ValueError) as excinfo:
        await ProviderPipeline([_CallbackProvider(error=error), last]).run({})

    assert excinfo.value is error
    assert last.calls == 0


@pytest.mark.asyncio
async def test_invalid_provider_is_detected_at_its_turn() -> None:
    first = _CountingProvider()
    last = _CountingProvider()

    with pytest.raises(InvalidProviderError) as excinfo:
        await ProviderPipeline([first, None, last]).run({})

    assert excinfo.value.index == 1
    assert first.calls == 1
    assert last.calls == 0


@pytest.mark.asyncio
async def test_load_returning_non_awaitable_is_invalid() -> None:
    class _SyncProvider:
        def load(self) -> dict[str, Any]:
            return {"a": 1}

    with pytest.raises(InvalidProviderError):
        await ProviderPipeline([_SyncProvider()]).run({})


@pytest.mark.asyncio
async def test_fragments_are_copied_before_merge() -> None:
    fragment = {"a": {"b": 1}, "items": [{"c": 1}]}
    log: list[str] = []

    result = await ProviderPipeline([_RecordingProvider("A", fragment, log)]).run({})
    fragment["a"]["b"] = 2
    fragment["items"][0]["c"] = 2

    assert result == {"a": {"b": 1}, "items": [{"c": 1}]}


@pytest.mark.asyncio
async def test_fragment_debug_log_redacts_secrets(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.DEBUG, logger="kibbutz.pipeline")

    await ProviderPipeline([MappingProvider({"db": {"password": "hunter2"}})]).run({})

    assert "hunter2" not in caplog.text
    assert "<redacted>" in caplog.text


def test_check_validates_without_invoking() -> None:
    provider = _CountingProvider()
    pipeline = ProviderPipeline([provider, object()])

    pipeline.check(0)
    pipeline.check(5)
    with pytest.raises(InvalidProviderError):
        pipeline.check(1)
    assert provider.calls == 0
    assert len(pipeline) == 2


class _NoLoad:
    pass


class _LoadNotCallable:
    load = 5


class _TwoArgs:
    def load(self, callback: Any, extra: Any) -> None:
        return None


class _AsyncWithCallback:
    async def load(self, callback: Any) -> None:
        return None


class _KeywordOnly:
    async def load(self, *, flag: bool) -> None:
        return None


@pytest.mark.parametrize(
    "provider",
    [None, _NoLoad(), _LoadNotCallable(), _TwoArgs(), _AsyncWithCallback(), _KeywordOnly()],
)
def test_resolve_load_rejects_bad_providers(provider: Any) -> None:
    with pytest.raises(InvalidProviderError) as excinfo:
        resolve_load(provider, 3)

    assert excinfo.value.index == 3
    assert excinfo.value.provider is provider


def test_resolve_load_detects_styles() -> None:
    _, awaitable_style = resolve_load(MappingProvider({}), 0)
    _, callback_style = resolve_load(_CallbackProvider(), 0)

    assert awaitable_style == "awaitable"
    assert callback_style == "callback"
