"""Time budgets for bounded transactions."""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass, field


class TransactionTimeoutError(RuntimeError):
    """Raised when a transaction runs past its time budget."""


@dataclass(slots=True)
class Deadline:
    label: str
    seconds: float
    clock: Callable[[], float] = time.monotonic
    _expires_at: float = field(init=False)

    def __post_init__(self) -> None:
        self._expires_at = self.clock() + self.seconds

    @property
    def remaining(self) -> float:
        return self._expires_at - self.clock()

    def check(self) -> None:
        if self.remaining < 0:
            raise TransactionTimeoutError(f"{self.label} exceeded its {self.seconds:g}s budget")
