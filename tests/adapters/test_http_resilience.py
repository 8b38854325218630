from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import httpx
import pytest
from hishel.httpx import AsyncCacheClient

from catalogsync.adapters.http_resilience import (
    CacheConfig,
    RateLimit,
    ResilienceConfig,
    ResilientClient,
)

if TYPE_CHECKING:
    from pathlib import Path


def test_client_without_cache_uses_a_plain_async_client() -> None:
    client = ResilientClient(ResilienceConfig(name="plain"))

    assert not isinstance(client._client, AsyncCacheClient)  # noqa: SLF001  # type: ignore[reportPrivateUsage]
    assert client._limiter is None  # noqa: SLF001  # type: ignore[reportPrivateUsage]


def test_client_with_cache_keeps_responses_in_the_data_dir(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    monkeypatch.setenv("CATALOGSYNC_DATA_DIR", str(tmp_path / "data"))
    config = ResilienceConfig(
        name="cached",
        cache=CacheConfig(backend="sqlite", default_ttl_seconds=60.0),
        ratelimit=RateLimit(max_calls=2, per_seconds=1.0),
    )

    client = ResilientClient(config)

    assert isinstance(client._client, AsyncCacheClient)  # noqa: SLF001  # type: ignore[reportPrivateUsage]
    assert client._limiter is not None  # noqa: SLF001  # type: ignore[reportPrivateUsage]
    assert (tmp_path / "data").is_dir()


def test_unknown_cache_backend_is_rejected() -> None:
    cache = CacheConfig(backend="redis")  # type: ignore[arg-type]
    config = ResilienceConfig(name="bad", cache=cache)

    with pytest.raises(ValueError, match="Unsupported cache backend"):
        ResilientClient(config)


def test_rate_limited_requests_reach_the_transport() -> None:
    seen: list[str] = []

    async def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.method)
        return httpx.Response(200, json={"ok": True})

    async def exercise() -> list[int]:
        client = ResilientClient(
            ResilienceConfig(name="limited", ratelimit=RateLimit(max_calls=10, per_seconds=1.0))
        )
        client._client = httpx.AsyncClient(transport=httpx.MockTransport(handler))  # noqa: SLF001  # type: ignore[reportPrivateUsage]
        async with client:
            first = await client.get("https://api.example/items", params={"page": 1})
            second = await client.post("https://api.example/token", data={"a": "b"})
        return [first.status_code, second.status_code]

    assert asyncio.run(exercise()) == [200, 200]
    assert seen == ["GET", "POST"]
