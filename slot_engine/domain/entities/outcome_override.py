"""Operator outcome override"""
import time
from dataclasses import dataclass, field
from enum import Enum


def now_ms() -> int:
    """Current epoch time in milliseconds"""
    return int(time.time() * 1000)


class OutcomeOverride(str, Enum):
    """Forced outcome class for the next spin"""

    RNG = 'RNG'
    WIN = 'WIN'
    LOSS = 'LOSS'

    @property
    def is_armed(self) -> bool:
        return self is not OutcomeOverride.RNG

    @classmethod
    def parse(cls, value) -> 'OutcomeOverride':
        """Strict parse, raises ValueError for anything outside the enum"""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            raise ValueError(f"Invalid outcome override value: {value!r}")
        try:
            return cls(value)
        except ValueError:
            raise ValueError(f"Invalid outcome override value: {value!r}") from None


@dataclass(frozen=True)
class OverrideState:
    """The single shared override value and when it was written"""

    outcome_override: OutcomeOverride = OutcomeOverride.RNG
    updated_at: int = field(default_factory=now_ms)

    @property
    def is_armed(self) -> bool:
        return self.outcome_override.is_armed

    def to_dict(self) -> dict:
        return {
            "outcomeOverride": self.outcome_override.value,
            "updatedAt": self.updated_at
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'OverrideState':
        """Create from camelCase dictionary, raises ValueError on bad data"""
        updated_at = data.get('updatedAt')
        return cls(
            outcome_override=OutcomeOverride.parse(data.get('outcomeOverride')),
            updated_at=int(updated_at) if updated_at is not None else now_ms()
        )
