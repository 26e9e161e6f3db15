# -*- coding: utf-8 -*-
"""Async HTTP client for JSON-RPC endpoints with transient/malformed error classification."""

from __future__ import annotations

import asyncio
import uuid
import aiohttp
import structlog
from typing import Any, Callable, Dict, Optional
from structlog.contextvars import bound_contextvars

from marketplace_indexer.config import Settings
from marketplace_indexer.exceptions import MalformedResponseError, TransientSourceError

# Statuses worth retrying: rate limits and provider-side failures.
RETRYABLE_STATUSES = frozenset({408, 425, 429, 500, 502, 503, 504})


class AsyncHttpClient:
    """Async HTTP client for the chain RPC provider.

    Performs one attempt per call; retries belong to the caller (see
    utils.retry.with_retry) so every RPC call shares one retry budget.
    Injects Settings and optionally an aiohttp.ClientSession. If no session
    is provided, one is created and must be closed via aclose() or used
    as an async context manager.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        session: Optional[aiohttp.ClientSession] = None,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: Optional[str] = None,
    ) -> None:
        """Initialize the client.

        Args:
            settings: Configuration (uses settings.chain.timeout_seconds).
            session: Optional shared aiohttp session. If None, the client
                creates and owns a session (call aclose() when done).
            get_logger: Logger factory (injected) with default of structlog.get_logger.
            logger_name: Optional logger name (defaults to class name).
        """
        self._settings = settings
        self._session = session
        self._owns_session = session is None
        self._logger = get_logger(logger_name or self.__class__.__name__)

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=self._settings.chain.timeout_seconds)
            self._session = aiohttp.ClientSession(timeout=timeout)
        return self._session

    async def aclose(self) -> None:
        """Close the session if this client owns it."""
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()
            self._session = None

    async def __aenter__(self) -> AsyncHttpClient:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()

    async def post(
        self,
        url: str,
        *,
        json: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """Perform a POST request with JSON body and return the parsed JSON.

        Args:
            url: Full URL to request.
            json: Optional JSON-serializable body.

        Returns:
            Parsed JSON response (dict or list).

        Raises:
            TransientSourceError: Connection errors, timeouts, 408/425/429/5xx.
            MalformedResponseError: Other HTTP errors or a body that is not JSON.
        """
        payload = json or {}
        request_id = uuid.uuid4().hex[:12]

        with bound_contextvars(http_url=url, http_request_id=request_id):
            try:
                session = await self._get_session()
                async with session.post(url, json=payload) as response:
                    if response.status in RETRYABLE_STATUSES:
                        self._logger.debug(
                            "http_post_retryable_status",
                            http_status_code=response.status,
                        )
                        raise TransientSourceError(
                            f"POST {url} returned {response.status}",
                            url=url,
                            status_code=response.status,
                        )
                    if response.status >= 400:
                        raise MalformedResponseError(
                            f"POST {url} returned {response.status}",
                            url=url,
                            status_code=response.status,
                        )
                    try:
                        return await response.json(content_type=None)
                    except ValueError as e:
                        raise MalformedResponseError(
                            f"POST {url} returned a non-JSON body",
                            url=url,
                            status_code=response.status,
                            cause=e,
                        ) from e
            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                self._logger.debug(
                    "http_post_failed",
                    error_type=type(e).__name__,
                    error_message=str(e),
                )
                raise TransientSourceError(
                    f"POST {url} failed: {type(e).__name__}",
                    url=url,
                    cause=e,
                ) from e
