"""HTTP fetcher for the paginated remote catalog API."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from logging import getLogger
from typing import TYPE_CHECKING

import httpx
from pydantic import ValidationError

from catalogsync.adapters.http_resilience import ResilientClient
from catalogsync.config.remote_catalog import RemoteCatalogConfig, get_remote_catalog_config
from catalogsync.domain.ports.fetching import RemoteCatalogSource

from .schema import RemoteItem, RemotePayload, RemoteProductPage, TokenResponse

if TYPE_CHECKING:
    from collections.abc import Sequence

    from catalogsync.config.http_resilience import ResilienceConfig

log = getLogger(__name__)

PRODUCTS_PATH = "products"


class RemoteCatalogAPIError(RuntimeError):
    """Raised when the remote catalog API returns an unexpected payload."""


def _default_client_factory(config: ResilienceConfig) -> ResilientClient:
    return ResilientClient(config)


@dataclass(slots=True)
class RemoteCatalogFetcher:
    """Pulls every remote item page by page, ascending by remote id.

    A failed page aborts the whole fetch; nothing is returned partially. Items
    come back as raw payloads so one malformed item does not reject its page.
    """

    config: RemoteCatalogConfig = field(default_factory=get_remote_catalog_config)
    client_factory: Callable[[ResilienceConfig], ResilientClient] = field(
        default=_default_client_factory
    )
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    _tombstones: set[int] | None = field(default=None, init=False)

    def fetch_all(self) -> list[RemotePayload]:
        items, tombstones = asyncio.run(self._fetch_pages(include_items=True))
        self._tombstones = tombstones
        return items

    def fetch_tombstones(self, *, since: datetime | None = None) -> set[int]:
        """Remote ids reported as removed; reuses the ids seen by ``fetch_all`` when possible."""

        if self._tombstones is not None and since is None:
            return set(self._tombstones)
        _, tombstones = asyncio.run(self._fetch_pages(include_items=False, since=since))
        if since is None:
            self._tombstones = tombstones
        return set(tombstones)

    def fetch_item(self, remote_id: int) -> RemoteItem:
        """Single item lookup; a missing item comes back with empty collections."""

        return asyncio.run(self._fetch_item(remote_id))

    async def _fetch_pages(
        self, *, include_items: bool, since: datetime | None = None
    ) -> tuple[list[RemotePayload], set[int]]:
        page_size = self.config.page_size
        items: list[RemotePayload] = []
        tombstones: set[int] = set()
        offset = 0

        async with self.client_factory(self.config.resilience) as client:
            headers = await self._authorize(client)
            while True:
                page = await self._request_page(
                    client, headers=headers, offset=offset, since=since
                )
                tombstones.update(page.remove_ids)
                if include_items:
                    items.extend(page.data)
                log.debug(
                    "Fetched page at offset %s: %s items, %s removed ids",
                    offset,
                    len(page.data),
                    len(page.remove_ids),
                )
                if len(page.data) < page_size:
                    break
                offset += len(page.data)
                await self.sleep(self.config.page_delay_seconds)

        log.info("Remote catalog returned %s items and %s removed ids", len(items), len(tombstones))
        return items, tombstones

    async def _fetch_item(self, remote_id: int) -> RemoteItem:
        async with self.client_factory(self.config.resilience) as client:
            headers = await self._authorize(client)
            response = await client.get(self._url(f"{PRODUCTS_PATH}/{remote_id}"), headers=headers)
            if response.status_code == httpx.codes.NOT_FOUND:
                log.info("Remote item %s not found; treating it as empty", remote_id)
                return RemoteItem.empty(remote_id)
            response.raise_for_status()
            payload = response.json()
            if not isinstance(payload, dict):
                raise RemoteCatalogAPIError(f"Unexpected payload for remote item {remote_id}")
            try:
                return RemoteItem.model_validate(payload)
            except ValidationError as exc:
                raise RemoteCatalogAPIError(f"Invalid payload for remote item {remote_id}") from exc

    async def _authorize(self, client: ResilientClient) -> dict[str, str]:
        response = await client.post(
            self.config.token_url,
            data={
                "client_id": self.config.client_id,
                "client_secret": self.config.client_secret,
                "grant_type": "client_credentials",
                "scopes": self.config.scopes,
            },
        )
        response.raise_for_status()
        try:
            token = TokenResponse.model_validate(response.json())
        except (ValidationError, ValueError) as exc:
            raise RemoteCatalogAPIError("Token endpoint returned an unexpected payload") from exc
        return {
            "Authorization": f"Bearer {token.access_token}",
            "Retailer": self.config.retailer,
        }

    async def _request_page(
        self,
        client: ResilientClient,
        *,
        headers: dict[str, str],
        offset: int,
        since: datetime | None,
    ) -> RemoteProductPage:
        params: dict[str, str | int] = {
            "currentItem": offset,
            "pageSize": self.config.page_size,
            "orderBy": "id",
            "orderDirection": "Asc",
            "includeRemoveIds": "true",
            "includeInventory": str(self.config.include_inventory).lower(),
            "includePricebook": str(self.config.include_pricebook).lower(),
        }
        if since is not None:
            params["lastModifiedFrom"] = since.astimezone(UTC).strftime("%Y-%m-%dT%H:%M:%S")

        response = await client.get(
            self._url(PRODUCTS_PATH), params=httpx.QueryParams(params), headers=headers
        )
        response.raise_for_status()

        payload = response.json()
        if not isinstance(payload, dict):
            raise RemoteCatalogAPIError(f"Unexpected product page payload at offset {offset}")
        try:
            return RemoteProductPage.model_validate(payload)
        except ValidationError as exc:
            log.error("Invalid product page at offset %s: %s", offset, exc)
            raise RemoteCatalogAPIError(f"Invalid product page at offset {offset}") from exc

    def _url(self, path: str) -> str:
        return f"{self.config.api_url.rstrip('/')}/{path}"


def build_remote_catalog_fetcher(
    *,
    config: RemoteCatalogConfig | None = None,
    client_factory: Callable[[ResilienceConfig], ResilientClient] | None = None,
) -> RemoteCatalogFetcher:
    effective_config = config or get_remote_catalog_config()
    if client_factory is None:
        return RemoteCatalogFetcher(config=effective_config)
    return RemoteCatalogFetcher(config=effective_config, client_factory=client_factory)


if TYPE_CHECKING:
    _source_check: RemoteCatalogSource[RemotePayload] = RemoteCatalogFetcher()

__all__ = [
    "RemoteCatalogAPIError",
    "RemoteCatalogFetcher",
    "build_remote_catalog_fetcher",
]
