"""Async HTTP client used by the remote catalog fetcher.

Requests go through an ``httpx-retries`` transport, an optional client-side
rate limiter and, when configured, a hishel response cache.
"""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, TypedDict, Unpack

import httpx
from aiolimiter import AsyncLimiter
from hishel import AsyncSqliteStorage
from hishel.httpx import AsyncCacheClient
from httpx_retries import RetryTransport

from catalogsync.config.http_resilience import (
    CacheConfig,
    RateLimit,
    ResilienceConfig,
    RetryPolicy,
)
from catalogsync.config.storage import get_storage_config

if TYPE_CHECKING:
    from types import TracebackType

    from httpx._types import HeaderTypes, QueryParamTypes, RequestData, URLTypes

__all__ = [
    "CacheConfig",
    "RateLimit",
    "ResilienceConfig",
    "ResilientClient",
    "RetryPolicy",
]

log = getLogger(__name__)


class RequestOptions(TypedDict, total=False):
    data: RequestData | None
    params: QueryParamTypes | None
    headers: HeaderTypes | None


class ResilientClient:
    """Thin wrapper over ``httpx.AsyncClient``; use it as an async context manager."""

    def __init__(self, config: ResilienceConfig) -> None:
        self.config = config
        self._limiter = (
            AsyncLimiter(config.ratelimit.max_calls, config.ratelimit.per_seconds)
            if config.ratelimit
            else None
        )
        transport = RetryTransport(retry=config.retry.build())
        base_url = config.base_url or ""
        storage = _cache_storage(config.cache)
        if storage is None:
            self._client = httpx.AsyncClient(
                base_url=base_url, timeout=config.timeout_seconds, transport=transport
            )
        else:
            log.debug("Caching %s responses", config.name)
            self._client = AsyncCacheClient(
                base_url=base_url,
                timeout=config.timeout_seconds,
                transport=transport,
                storage=storage,
            )

    async def __aenter__(self) -> ResilientClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self._client.aclose()

    async def get(self, url: URLTypes, **kwargs: Unpack[RequestOptions]) -> httpx.Response:
        return await self._send("GET", url, **kwargs)

    async def post(self, url: URLTypes, **kwargs: Unpack[RequestOptions]) -> httpx.Response:
        return await self._send("POST", url, **kwargs)

    async def _send(
        self, method: str, url: URLTypes, **kwargs: Unpack[RequestOptions]
    ) -> httpx.Response:
        if self._limiter is None:
            return await self._client.request(method, url, **kwargs)
        async with self._limiter:
            return await self._client.request(method, url, **kwargs)


def _cache_storage(config: CacheConfig | None) -> AsyncSqliteStorage | None:
    if config is None:
        return None
    if config.backend == "sqlite":
        database_path = config.sqlite_path or str(get_storage_config().http_cache_path())
    elif config.backend == "memory":
        database_path = ":memory:"
    else:
        raise ValueError(f"Unsupported cache backend: {config.backend}")
    return AsyncSqliteStorage(database_path=database_path, default_ttl=config.default_ttl_seconds)
