"""Where the catalog store and the HTTP response cache live."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Final

from .env import optional_env_bool

APP_DIR_NAME: Final[str] = "catalogsync"
CATALOG_DB_FILENAME: Final[str] = "catalogsync.db"
HTTP_CACHE_FILENAME: Final[str] = "remote_catalog_cache.db"


@dataclass(frozen=True, slots=True)
class StorageConfig:
    """Local files owned by the sync process; created on first use."""

    data_dir: Path

    def _ensured(self) -> Path:
        directory = self.data_dir.expanduser().resolve()
        directory.mkdir(parents=True, exist_ok=True)
        return directory

    def database_path(self) -> Path:
        return self._ensured() / CATALOG_DB_FILENAME

    def http_cache_path(self) -> Path:
        return self._ensured() / HTTP_CACHE_FILENAME


@dataclass(frozen=True, slots=True)
class DatabaseConfig:
    uri: str
    echo: bool = False

    @property
    def is_sqlite(self) -> bool:
        return self.uri.startswith("sqlite")


def get_storage_config() -> StorageConfig:
    configured = os.getenv("CATALOGSYNC_DATA_DIR")
    if configured:
        return StorageConfig(data_dir=Path(configured))
    xdg_home = os.getenv("XDG_DATA_HOME")
    base = Path(xdg_home) if xdg_home else Path.home() / ".local" / "share"
    return StorageConfig(data_dir=base / APP_DIR_NAME)


def get_database_config(*, storage: StorageConfig | None = None) -> DatabaseConfig:
    """``DATABASE_URI`` wins; otherwise a SQLite file in the data directory."""

    echo = optional_env_bool("DATABASE_ECHO", False)
    uri = os.getenv("DATABASE_URI")
    if uri:
        return DatabaseConfig(uri=uri, echo=echo)
    path = (storage or get_storage_config()).database_path()
    return DatabaseConfig(uri=f"sqlite+pysqlite:///{path}", echo=echo)
