"""Remote catalog API configuration values."""

from __future__ import annotations

import os
from dataclasses import dataclass, field

from .env import optional_env_bool, optional_env_float, optional_env_int, require_env_vars
from .errors import ConfigurationError
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig

DEFAULT_TOKEN_URL = "https://id.kiotviet.vn/connect/token"
DEFAULT_TOKEN_SCOPES = "PublicApi.Access"
DEFAULT_PAGE_SIZE = 100
DEFAULT_PAGE_DELAY_SECONDS = 0.5
REMOTE_CATALOG_TIMEOUT_SECONDS = 30.0
RESPONSE_CACHE_TTL_SECONDS = 300.0


def _default_resilience() -> ResilienceConfig:
    return ResilienceConfig(
        name="remote-catalog",
        timeout_seconds=REMOTE_CATALOG_TIMEOUT_SECONDS,
        ratelimit=RateLimit(max_calls=5, per_seconds=1.0),
    )


@dataclass(frozen=True)
class RemoteCatalogConfig:
    """Connection and paging settings for the remote catalog API."""

    api_url: str
    client_id: str
    client_secret: str
    retailer: str
    token_url: str = DEFAULT_TOKEN_URL
    scopes: str = DEFAULT_TOKEN_SCOPES
    page_size: int = DEFAULT_PAGE_SIZE
    page_delay_seconds: float = DEFAULT_PAGE_DELAY_SECONDS
    include_inventory: bool = True
    include_pricebook: bool = True
    resilience: ResilienceConfig = field(default_factory=_default_resilience)

    def __post_init__(self) -> None:
        if self.page_size <= 0:
            raise ConfigurationError("Remote catalog page size must be positive")
        if self.page_delay_seconds < 0:
            raise ConfigurationError("Remote catalog page delay must not be negative")


def get_remote_catalog_config(
    *,
    resilience: ResilienceConfig | None = None,
    cache_responses: bool | None = None,
) -> RemoteCatalogConfig:
    """Read the API settings; responses are cached when ``CATALOG_CACHE_RESPONSES`` is set."""

    values = require_env_vars(
        ("CATALOG_API_URL", "CATALOG_CLIENT_ID", "CATALOG_CLIENT_SECRET", "CATALOG_RETAILER")
    )
    api_url = values["CATALOG_API_URL"].rstrip("/")
    if cache_responses is None:
        cache_responses = optional_env_bool("CATALOG_CACHE_RESPONSES", False)
    effective_resilience = resilience or ResilienceConfig(
        name="remote-catalog",
        base_url=api_url,
        timeout_seconds=REMOTE_CATALOG_TIMEOUT_SECONDS,
        ratelimit=RateLimit(max_calls=5, per_seconds=1.0),
        cache=(
            CacheConfig(backend="sqlite", default_ttl_seconds=RESPONSE_CACHE_TTL_SECONDS)
            if cache_responses
            else None
        ),
    )
    return RemoteCatalogConfig(
        api_url=api_url,
        client_id=values["CATALOG_CLIENT_ID"],
        client_secret=values["CATALOG_CLIENT_SECRET"],
        retailer=values["CATALOG_RETAILER"],
        token_url=os.getenv("CATALOG_TOKEN_URL") or DEFAULT_TOKEN_URL,
        page_size=optional_env_int("CATALOG_PAGE_SIZE", DEFAULT_PAGE_SIZE),
        page_delay_seconds=optional_env_float(
            "CATALOG_PAGE_DELAY_SECONDS", DEFAULT_PAGE_DELAY_SECONDS
        ),
        resilience=effective_resilience,
    )
