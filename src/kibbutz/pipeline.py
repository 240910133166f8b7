"""Serial provider execution.

Providers run strictly one after another: provider ``i + 1`` is not
started until provider ``i`` has resolved, its ``config`` notification has
returned and its fragment has been merged. The first failure stops the run.

Two provider shapes are accepted:

* awaitable style: ``load()`` takes no arguments and returns an awaitable
  resolving to the fragment;
* callback style: ``load(callback)`` takes one argument and later calls
  ``callback(error, fragment)``.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import Any, Literal

from kibbutz._redact import redact_for_log
from kibbutz._values import clone_value, is_sequence
from kibbutz.exceptions import InvalidArgumentError, InvalidProviderError, KibbutzError
from kibbutz.merge import merge_into

_logger = logging.getLogger(__name__)

LoadStyle = Literal["awaitable", "callback"]
FragmentListener = Callable[[Any], None]

_POSITIONAL_KINDS = (
    inspect.Parameter.POSITIONAL_ONLY,
    inspect.Parameter.POSITIONAL_OR_KEYWORD,
)


def resolve_load(provider: Any, index: int) -> tuple[Callable[..., Any], LoadStyle]:
    """Return the provider's ``load`` callable and the style it follows.

    Raises
    ------
    InvalidProviderError
        *provider* is ``None``, has no callable ``load`` or ``load`` has an
        unsupported signature.
    """
    load = getattr(provider, "load", None) if provider is not None else None
    if not callable(load):
        raise InvalidProviderError(
            f'Provider {index} must be an object with a "load" method',
            index=index,
            provider=provider,
        )

    try:
        signature = inspect.signature(load)
    except (TypeError, ValueError):
        raise InvalidProviderError(
            f"Provider {index} has an uninspectable load method",
            index=index,
            provider=provider,
        ) from None

    required = [
        param
        for param in signature.parameters.values()
        if param.default is inspect.Parameter.empty
        and param.kind in (*_POSITIONAL_KINDS, inspect.Parameter.KEYWORD_ONLY)
    ]
    if any(param.kind is inspect.Parameter.KEYWORD_ONLY for param in required):
        raise InvalidProviderError(
            f"Provider {index} load method must not require keyword-only arguments",
            index=index,
            provider=provider,
        )

    if not required:
        return load, "awaitable"
    if len(required) == 1 and not inspect.iscoroutinefunction(load):
        return load, "callback"
    raise InvalidProviderError(
        f"Provider {index} load method must take no arguments or a single callback argument",
        index=index,
        provider=provider,
    )


async def _call_awaitable(load: Callable[[], Any], index: int, provider: Any) -> Any:
    pending = load()
    if not inspect.isawaitable(pending):
        raise InvalidProviderError(
            f"Provider {index} load() did not return an awaitable",
            index=index,
            provider=provider,
        )
    return await pending


async def _call_with_callback(load: Callable[[Callable[..., None]], Any], index: int) -> Any:
    loop = asyncio.get_running_loop()
    future: asyncio.Future[Any] = loop.create_future()

    def _settle(error: Any, fragment: Any) -> None:
        if future.done():
            _logger.debug("Dropping late callback from provider %d", index)
            return
        if error is None:
            future.set_result(fragment)
        elif isinstance(error, BaseException):
            future.set_exception(error)
        else:
            future.set_exception(KibbutzError(f"Provider {index} failed: {error!r}"))

    def callback(error: Any = None, fragment: Any = None) -> None:
        # Providers may answer from another thread; settle on the loop.
        if loop.is_closed():
            _logger.debug("Dropping callback from provider %d: event loop closed", index)
            return
        loop.call_soon_threadsafe(_settle, error, fragment)

    load(callback)
    return await future


class ProviderPipeline:
    """Run an ordered list of providers and merge their fragments.

    Parameters
    ----------
    providers : list or tuple
        Providers in application order. Only the container type is checked
        here; each provider is validated right before it is invoked.
    on_fragment : callable, optional
        Called synchronously with each fragment, before it is merged.
    """

    def __init__(
        self,
        providers: Sequence[Any],
        *,
        on_fragment: FragmentListener | None = None,
    ) -> None:
        if not is_sequence(providers):
            raise InvalidArgumentError('Arg "providers" must be a list or tuple')
        self._providers = tuple(providers)
        self._on_fragment = on_fragment

    def __len__(self) -> int:
        return len(self._providers)

    def check(self, index: int) -> None:
        """Validate the provider at *index* without invoking it."""
        if index < len(self._providers):
            resolve_load(self._providers[index], index)

    async def run(self, seed: Any) -> Any:
        """Merge every provider's fragment into *seed* and return it.

        *seed* must be an owned, mutable value (usually a clone of the
        published aggregate). The first provider failure is re-raised
        unchanged and the remaining providers are not invoked.
        """
        value = seed
        total = len(self._providers)
        for index, provider in enumerate(self._providers):
            load, style = resolve_load(provider, index)
            _logger.debug("Loading provider %d/%d (%s)", index + 1, total, type(provider).__name__)
            try:
                fragment = await self._invoke(load, style, index, provider)
            except Exception:
                _logger.debug("Provider %d/%d failed", index + 1, total, exc_info=True)
                raise
            _logger.debug(
                "Provider %d/%d resolved fragment=%s",
                index + 1,
                total,
                redact_for_log(fragment),
            )
            if self._on_fragment is not None:
                self._on_fragment(fragment)
            merge_into(value, clone_value(fragment))
        return value

    @staticmethod
    def _invoke(load: Callable[..., Any], style: LoadStyle, index: int, provider: Any) -> Awaitable[Any]:
        if style == "callback":
            return _call_with_callback(load, index)
        return _call_awaitable(load, index, provider)
