"""Reconciliation run defaults."""

from __future__ import annotations

from dataclasses import dataclass

from .env import optional_env_float
from .errors import ConfigurationError

DEFAULT_FAILURE_THRESHOLD = 0.5
DEFAULT_DEPENDENCY_TIMEOUT_SECONDS = 300.0
DEFAULT_PRODUCT_TIMEOUT_SECONDS = 30.0


@dataclass(frozen=True, slots=True)
class SyncConfig:
    failure_threshold: float = DEFAULT_FAILURE_THRESHOLD
    dependency_timeout_seconds: float = DEFAULT_DEPENDENCY_TIMEOUT_SECONDS
    product_timeout_seconds: float = DEFAULT_PRODUCT_TIMEOUT_SECONDS

    def __post_init__(self) -> None:
        if not 0.0 <= self.failure_threshold <= 1.0:
            raise ConfigurationError(
                f"Failure threshold must be between 0 and 1, got {self.failure_threshold}"
            )
        if self.dependency_timeout_seconds <= 0 or self.product_timeout_seconds <= 0:
            raise ConfigurationError("Transaction timeouts must be positive")


def get_sync_config() -> SyncConfig:
    return SyncConfig(
        failure_threshold=optional_env_float(
            "CATALOGSYNC_FAILURE_THRESHOLD", DEFAULT_FAILURE_THRESHOLD
        ),
        dependency_timeout_seconds=optional_env_float(
            "CATALOGSYNC_DEPENDENCY_TIMEOUT_SECONDS", DEFAULT_DEPENDENCY_TIMEOUT_SECONDS
        ),
        product_timeout_seconds=optional_env_float(
            "CATALOGSYNC_PRODUCT_TIMEOUT_SECONDS", DEFAULT_PRODUCT_TIMEOUT_SECONDS
        ),
    )
