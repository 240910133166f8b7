"""Provider fetching a JSON object over HTTP."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any

import aiohttp

from kibbutz.exceptions import ProviderHttpError

_logger = logging.getLogger(__name__)


class HttpJsonProvider:
    """``GET`` *url* and resolve the decoded JSON object.

    Parameters
    ----------
    url : str
        Absolute URL returning a JSON object.
    session : aiohttp.ClientSession, optional
        Shared session. When omitted a short-lived session is opened for
        each load and closed afterwards.
    headers : Mapping, optional
        Extra request headers (e.g. ``Authorization``).
    timeout : float
        Total request timeout in seconds.
    """

    def __init__(
        self,
        url: str,
        *,
        session: aiohttp.ClientSession | None = None,
        headers: Mapping[str, str] | None = None,
        timeout: float = 10.0,
    ) -> None:
        self._url = url
        self._session = session
        self._headers: dict[str, str] = {"accept": "application/json", **(headers or {})}
        self._timeout = timeout

    def __repr__(self) -> str:
        return f"HttpJsonProvider(url={self._url!r})"

    async def load(self) -> dict[str, Any]:
        if self._session is not None:
            return await self._fetch(self._session)
        async with aiohttp.ClientSession() as session:
            return await self._fetch(session)

    async def _fetch(self, session: aiohttp.ClientSession) -> dict[str, Any]:
        _logger.debug("GET %s", self._url)
        try:
            async with session.get(
                self._url,
                headers=self._headers,
                timeout=aiohttp.ClientTimeout(total=self._timeout),
            ) as resp:
                raw = await resp.read()
                if resp.status != 200:
                    raise ProviderHttpError(
                        f"HTTP {resp.status} from {self._url}: {raw[:200].decode('utf-8', errors='replace')}",
                        status_code=resp.status,
                        url=self._url,
                    )
        except ProviderHttpError:
            raise
        except (aiohttp.ClientError, TimeoutError) as exc:
            raise ProviderHttpError(f"Request to {self._url} failed: {exc}", url=self._url) from exc

        try:
            body = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise ProviderHttpError(
                f"Invalid JSON from {self._url}: {raw[:200]!r}",
                status_code=200,
                url=self._url,
            ) from exc

        if not isinstance(body, dict):
            raise ProviderHttpError(
                f"Expected a JSON object from {self._url}, got {type(body).__name__}",
                status_code=200,
                url=self._url,
            )
        return body
