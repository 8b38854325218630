"""Product upsert orchestration."""

from __future__ import annotations

from .orchestrator import MissingMappingError, ProductNotFoundError, ProductUpsertOrchestrator
from .outcome import SubResourceOutcome, UpsertOutcome
from .writers import DEFAULT_STEPS, SubResourceStep, WriteContext

__all__ = [
    "DEFAULT_STEPS",
    "MissingMappingError",
    "ProductNotFoundError",
    "ProductUpsertOrchestrator",
    "SubResourceOutcome",
    "SubResourceStep",
    "UpsertOutcome",
    "WriteContext",
]
