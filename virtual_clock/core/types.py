"""Core type definitions for the virtual clock.

All timestamps are milliseconds since the epoch, matching the persisted record.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional


@dataclass
class ClockState:
    base_real: float
    base_virtual: float
    speed: float = 1.0

    def virtual_at(self, real_ms: float) -> float:
        return self.base_virtual + (real_ms - self.base_real) * self.speed

    def to_record(self) -> Dict[str, float]:
        return {
            "baseRealTime": self.base_real,
            "baseVirtualTime": self.base_virtual,
            "speed": self.speed,
        }


@dataclass(frozen=True)
class ClockSnapshot:
    base_real: float
    base_virtual: float
    speed: float
    virtual_now: float

    def to_dict(self) -> Dict[str, float]:
        return {
            "baseRealTime": self.base_real,
            "baseVirtualTime": self.base_virtual,
            "speed": self.speed,
            "virtualNow": self.virtual_now,
        }


@dataclass(frozen=True)
class WidgetPosition:
    left: float
    top: float


@dataclass(frozen=True)
class PersistResult:
    ok: bool
    error: Optional[str] = None

    @classmethod
    def success(cls) -> "PersistResult":
        return cls(ok=True)

    @classmethod
    def failure(cls, error: BaseException) -> "PersistResult":
        return cls(ok=False, error=f"{type(error).__name__}: {error}")
