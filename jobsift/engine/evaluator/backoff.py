"""Capped exponential polling intervals."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator


@dataclass(frozen=True, slots=True)
class PollBackoff:
    """Interval sequence ``initial, initial*m, initial*m^2, ...`` capped at ``maximum``."""

    initial: float = 1.0
    multiplier: float = 1.2
    maximum: float = 600.0

    def __post_init__(self) -> None:
        if self.initial <= 0:
            raise ValueError("initial interval must be > 0")
        if self.multiplier < 1:
            raise ValueError("multiplier must be >= 1")
        if self.maximum < self.initial:
            raise ValueError("maximum must be >= initial")

    def next_interval(self, current: float) -> float:
        return min(current * self.multiplier, self.maximum)

    def __iter__(self) -> Iterator[float]:
        interval = self.initial
        while True:
            yield interval
            interval = self.next_interval(interval)


__all__ = ["PollBackoff"]
