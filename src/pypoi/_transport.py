"""HTTP transport for the feature and status feeds."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from typing import Protocol

import aiohttp

from pypoi._constants import USER_AGENT
from pypoi.exceptions import SourceUnavailableError

_logger = logging.getLogger(__name__)


class Transport(Protocol):
    """Structural transport interface used by the ingestion modules.

    Having a protocol here makes it easy to pass test doubles while
    keeping the production implementation (`HttpTransport`) concrete.
    """

    async def get(self, url: str, *, headers: Mapping[str, str] | None = None) -> bytes: ...


class HttpTransport:
    """GET-only transport with a hard per-request timeout."""

    def __init__(
        self,
        http_session: aiohttp.ClientSession,
        *,
        timeout: float,
    ) -> None:
        self._http = http_session
        self._timeout = aiohttp.ClientTimeout(total=timeout)

    async def get(self, url: str, *, headers: Mapping[str, str] | None = None) -> bytes:
        """Fetch *url* and return the response body.

        Any network error, timeout or non-200 status is raised as
        :class:`SourceUnavailableError`.
        """
        request_headers: dict[str, str] = {
            "accept": "application/json",
            "user-agent": USER_AGENT,
        }
        if headers:
            request_headers.update(headers)

        _logger.debug("GET %s", url)

        try:
            async with self._http.get(url, headers=request_headers, timeout=self._timeout) as resp:
                body = await resp.read()
                if resp.status != 200:
                    raise SourceUnavailableError(
                        f"Loading data from {url} failed with status {resp.status}",
                        status_code=resp.status,
                        url=url,
                    )
        except SourceUnavailableError:
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as exc:
            raise SourceUnavailableError(
                f"Request to {url} failed: {exc!r}",
                url=url,
            ) from exc

        return body
