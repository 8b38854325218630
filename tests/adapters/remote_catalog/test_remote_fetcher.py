from __future__ import annotations

from collections.abc import Callable  # noqa: TC003
from datetime import UTC, datetime
from typing import TYPE_CHECKING

import httpx
import pytest

from catalogsync.adapters.http_resilience import ResilienceConfig, ResilientClient
from catalogsync.adapters.remote_catalog import RemoteCatalogAPIError, RemoteCatalogFetcher
from catalogsync.app import trigger_sync
from catalogsync.config.remote_catalog import RemoteCatalogConfig
from catalogsync.config.sync import SyncConfig
from catalogsync.domain.model import SyncStatus
from catalogsync.domain.stats import SyncStats
from tests.support.remote_payloads import product_page, remote_item

if TYPE_CHECKING:
    from catalogsync.adapters.sqlalchemy.unit_of_work import SqlAlchemyCatalogUnitOfWork

API_URL = "https://catalog.example/api"
TOKEN_URL = "https://auth.example/connect/token"


def _make_client_factory(
    handler: Callable[[httpx.Request], httpx.Response],
) -> Callable[[ResilienceConfig], ResilientClient]:
    async def async_handler(request: httpx.Request) -> httpx.Response:
        return handler(request)

    def factory(resilience: ResilienceConfig) -> ResilientClient:
        client = ResilientClient(resilience)
        client._client = httpx.AsyncClient(transport=httpx.MockTransport(async_handler))  # noqa: SLF001  # type: ignore[reportPrivateUsage]
        return client

    return factory


def _config(page_size: int = 2) -> RemoteCatalogConfig:
    return RemoteCatalogConfig(
        api_url=API_URL,
        client_id="client",
        client_secret="secret",
        retailer="shop",
        token_url=TOKEN_URL,
        page_size=page_size,
        page_delay_seconds=0.25,
        resilience=ResilienceConfig(name="test"),
    )


class CatalogServer:
    """Serves the token endpoint and slices ``items`` by the requested offset."""

    def __init__(self, items: list[dict[str, object]], remove_ids: list[int] | None = None) -> None:
        self.items = items
        self.remove_ids = remove_ids or []
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if str(request.url) == TOKEN_URL:
            return httpx.Response(200, json={"access_token": "token-1", "expires_in": 3600})
        offset = int(request.url.params["currentItem"])
        size = int(request.url.params["pageSize"])
        chunk = self.items[offset : offset + size]
        return httpx.Response(
            200,
            json=product_page(
                chunk, page_size=size, total=len(self.items), remove_ids=self.remove_ids
            ),
        )

    @property
    def page_requests(self) -> list[httpx.Request]:
        return [request for request in self.requests if request.method == "GET"]


def _fetcher(
    handler: Callable[[httpx.Request], httpx.Response],
    sleeps: list[float] | None = None,
    page_size: int = 2,
) -> RemoteCatalogFetcher:
    recorded = sleeps if sleeps is not None else []

    async def sleep(seconds: float) -> None:
        recorded.append(seconds)

    return RemoteCatalogFetcher(
        config=_config(page_size),
        client_factory=_make_client_factory(handler),
        sleep=sleep,
    )


def test_fetch_all_walks_pages_until_a_short_page() -> None:
    server = CatalogServer([remote_item(i) for i in range(1, 6)])
    sleeps: list[float] = []

    items = _fetcher(server, sleeps).fetch_all()

    assert [item["id"] for item in items] == [1, 2, 3, 4, 5]
    offsets = [request.url.params["currentItem"] for request in server.page_requests]
    assert offsets == ["0", "2", "4"]
    assert sleeps == [0.25, 0.25]


def test_fetch_all_requests_an_extra_page_when_the_last_one_is_full() -> None:
    server = CatalogServer([remote_item(i) for i in range(1, 5)])

    items = _fetcher(server).fetch_all()

    assert len(items) == 4
    assert len(server.page_requests) == 3


def test_fetch_all_sends_credentials_and_paging_parameters() -> None:
    server = CatalogServer([remote_item(1)])

    _fetcher(server).fetch_all()

    token_request = server.requests[0]
    assert token_request.method == "POST"
    assert b"client_id=client" in token_request.content
    assert b"grant_type=client_credentials" in token_request.content

    page_request = server.page_requests[0]
    assert str(page_request.url).startswith(f"{API_URL}/products?")
    assert page_request.headers["Authorization"] == "Bearer token-1"
    assert page_request.headers["Retailer"] == "shop"
    assert page_request.url.params["orderBy"] == "id"
    assert page_request.url.params["orderDirection"] == "Asc"
    assert page_request.url.params["includeRemoveIds"] == "true"
    assert page_request.url.params["includeInventory"] == "true"


def test_fetch_tombstones_reuses_ids_seen_during_fetch_all() -> None:
    server = CatalogServer([remote_item(1)], remove_ids=[9, 10])
    fetcher = _fetcher(server)

    fetcher.fetch_all()
    requests_after_fetch = len(server.requests)

    assert fetcher.fetch_tombstones() == {9, 10}
    assert len(server.requests) == requests_after_fetch


def test_fetch_tombstones_since_queries_the_api() -> None:
    server = CatalogServer([remote_item(1)], remove_ids=[3])
    fetcher = _fetcher(server)

    tombstones = fetcher.fetch_tombstones(since=datetime(2024, 5, 1, 8, 0, tzinfo=UTC))

    assert tombstones == {3}
    assert server.page_requests[0].url.params["lastModifiedFrom"] == "2024-05-01T08:00:00"


def test_fetch_all_propagates_http_errors() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if str(request.url) == TOKEN_URL:
            return httpx.Response(200, json={"access_token": "token-1"})
        return httpx.Response(403, json={"message": "forbidden"})

    with pytest.raises(httpx.HTTPStatusError):
        _fetcher(handler).fetch_all()


def test_fetch_all_rejects_malformed_pages() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if str(request.url) == TOKEN_URL:
            return httpx.Response(200, json={"access_token": "token-1"})
        return httpx.Response(200, json={"data": [{"name": "missing id"}]})

    with pytest.raises(RemoteCatalogAPIError):
        _fetcher(handler).fetch_all()


def test_fetch_all_rejects_unexpected_token_payload() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"unexpected": True})

    with pytest.raises(RemoteCatalogAPIError):
        _fetcher(handler).fetch_all()


def test_fetch_item_returns_empty_item_when_missing() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if str(request.url) == TOKEN_URL:
            return httpx.Response(200, json={"access_token": "token-1"})
        assert request.url.path.endswith("/products/42")
        return httpx.Response(404)

    item = _fetcher(handler).fetch_item(42)

    assert item.id == 42
    assert item.images == []
    assert item.inventories == []


def test_fetch_item_parses_found_item() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if str(request.url) == TOKEN_URL:
            return httpx.Response(200, json={"access_token": "token-1"})
        return httpx.Response(200, json=remote_item(42))

    item = _fetcher(handler).fetch_item(42)

    assert item.code == "SP0042"



def test_fetch_all_keeps_pages_with_a_malformed_item() -> None:
    broken = remote_item(2) | {"id": "two", "name": None}
    server = CatalogServer([remote_item(1), broken, remote_item(3)])

    items = _fetcher(server, page_size=5).fetch_all()

    assert [item["id"] for item in items] == [1, "two", 3]


def test_sync_counts_a_malformed_remote_item_as_one_product_error(
    sqlite_unit_of_work: Callable[[], SqlAlchemyCatalogUnitOfWork],
) -> None:
    server = CatalogServer([remote_item(1), remote_item(2) | {"id": "two"}, remote_item(3)])

    result = trigger_sync(
        source=_fetcher(server, page_size=5),
        unit_of_work_factory=sqlite_unit_of_work,
        config=SyncConfig(),
    )

    assert result.status is SyncStatus.PARTIAL
    assert result.product == SyncStats(adds=2, errors=1)
    assert any(message.startswith("Mapping failed") for message in result.errors)
