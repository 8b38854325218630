from __future__ import annotations

from pathlib import Path

import pytest

from catalogsync.config import (
    ConfigurationError,
    MissingConfigurationError,
    SyncConfig,
    get_database_config,
    get_remote_catalog_config,
    get_storage_config,
    get_sync_config,
    require_env_vars,
)
from catalogsync.config.remote_catalog import DEFAULT_PAGE_SIZE, DEFAULT_TOKEN_URL

REMOTE_ENV = {
    "CATALOG_API_URL": "https://public.example/api/",
    "CATALOG_CLIENT_ID": "client",
    "CATALOG_CLIENT_SECRET": "secret",
    "CATALOG_RETAILER": "shop",
}


def test_require_env_vars_returns_stripped_values(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EXAMPLE_VAR", "  value ")

    result = require_env_vars(["EXAMPLE_VAR"])

    assert result["EXAMPLE_VAR"] == "value"


def test_require_env_vars_lists_every_missing_name(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("MISSING_A", raising=False)
    monkeypatch.setenv("MISSING_B", "   ")

    with pytest.raises(MissingConfigurationError) as exc:
        require_env_vars(["MISSING_A", "MISSING_B"])

    assert "MISSING_A" in str(exc.value)
    assert "MISSING_B" in str(exc.value)


def test_remote_catalog_config_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    for name, value in REMOTE_ENV.items():
        monkeypatch.setenv(name, value)
    monkeypatch.delenv("CATALOG_TOKEN_URL", raising=False)
    monkeypatch.delenv("CATALOG_PAGE_SIZE", raising=False)
    monkeypatch.delenv("CATALOG_CACHE_RESPONSES", raising=False)

    config = get_remote_catalog_config()

    assert config.api_url == "https://public.example/api"
    assert config.retailer == "shop"
    assert config.token_url == DEFAULT_TOKEN_URL
    assert config.page_size == DEFAULT_PAGE_SIZE
    assert config.resilience.cache is None


def test_remote_catalog_config_rejects_bad_page_size(monkeypatch: pytest.MonkeyPatch) -> None:
    for name, value in REMOTE_ENV.items():
        monkeypatch.setenv(name, value)
    monkeypatch.setenv("CATALOG_PAGE_SIZE", "0")

    with pytest.raises(ConfigurationError):
        get_remote_catalog_config()


def test_remote_catalog_config_requires_credentials(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in REMOTE_ENV:
        monkeypatch.delenv(name, raising=False)

    with pytest.raises(MissingConfigurationError):
        get_remote_catalog_config()


def test_sync_config_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("CATALOGSYNC_FAILURE_THRESHOLD", raising=False)

    config = get_sync_config()

    assert config.failure_threshold == 0.5
    assert config.dependency_timeout_seconds > config.product_timeout_seconds


def test_sync_config_reads_threshold(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CATALOGSYNC_FAILURE_THRESHOLD", "0.8")

    assert get_sync_config().failure_threshold == 0.8


@pytest.mark.parametrize("threshold", [-0.1, 1.5])
def test_sync_config_rejects_out_of_range_threshold(threshold: float) -> None:
    with pytest.raises(ConfigurationError):
        SyncConfig(failure_threshold=threshold)


def test_sync_config_rejects_non_numeric_threshold(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CATALOGSYNC_FAILURE_THRESHOLD", "half")

    with pytest.raises(ConfigurationError):
        get_sync_config()


def test_storage_config_uses_data_dir(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("CATALOGSYNC_DATA_DIR", str(tmp_path))
    monkeypatch.delenv("DATABASE_URI", raising=False)

    storage = get_storage_config()

    assert storage.database_path() == tmp_path.resolve() / "catalogsync.db"
    assert get_database_config().uri.endswith("catalogsync.db")


def test_database_config_prefers_explicit_uri(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DATABASE_URI", "sqlite+pysqlite:///:memory:")

    assert get_database_config().uri == "sqlite+pysqlite:///:memory:"


def test_database_config_reads_echo_flag(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DATABASE_URI", "sqlite+pysqlite:///:memory:")
    monkeypatch.setenv("DATABASE_ECHO", "true")

    database = get_database_config()

    assert database.echo
    assert database.is_sqlite


def test_remote_catalog_config_enables_response_cache(monkeypatch: pytest.MonkeyPatch) -> None:
    for name, value in REMOTE_ENV.items():
        monkeypatch.setenv(name, value)
    monkeypatch.setenv("CATALOG_CACHE_RESPONSES", "yes")

    cache = get_remote_catalog_config().resilience.cache

    assert cache is not None
    assert cache.backend == "sqlite"
    assert get_remote_catalog_config(cache_responses=False).resilience.cache is None


def test_remote_catalog_config_rejects_unknown_cache_flag(monkeypatch: pytest.MonkeyPatch) -> None:
    for name, value in REMOTE_ENV.items():
        monkeypatch.setenv(name, value)
    monkeypatch.setenv("CATALOG_CACHE_RESPONSES", "sometimes")

    with pytest.raises(ConfigurationError, match="CATALOG_CACHE_RESPONSES"):
        get_remote_catalog_config()
