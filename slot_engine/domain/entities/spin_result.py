"""Spin result entity"""
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional
import time

from slot_engine.domain.entities.outcome_override import OutcomeOverride
from slot_engine.domain.entities.slot_symbols import Symbol, format_combination


class GenerationMode(str, Enum):
    """How a spin's reels were produced"""

    RANDOM = 'random'
    WINNING = 'winning'
    LOSING = 'losing'
    LUCKY = 'lucky'


@dataclass
class SpinResult:
    """Domain entity representing one spin outcome"""

    reels: List[Symbol]
    win: int
    bet: int = 0
    balance: int = 0
    mode: Optional[GenerationMode] = None
    override_consumed: Optional[OutcomeOverride] = None
    timestamp: float = field(default_factory=time.time)

    @property
    def spun(self) -> bool:
        """False for the no-op result of a rejected spin"""
        return self.mode is not None

    @property
    def balance_change(self) -> int:
        """Calculate net balance change"""
        return -self.bet + self.win if self.spun else 0

    def to_dict(self) -> dict:
        """Convert to camelCase dictionary"""
        return {
            "reels": [s.value for s in self.reels],
            "display": format_combination(self.reels),
            "win": self.win,
            "bet": self.bet,
            "balance": self.balance,
            "mode": self.mode.value if self.mode else None,
            "overrideConsumed": self.override_consumed.value if self.override_consumed else None,
            "timestamp": self.timestamp
        }
