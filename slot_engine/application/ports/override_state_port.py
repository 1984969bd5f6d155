"""Override state port (interface)"""
from abc import ABC, abstractmethod
from typing import Optional

from slot_engine.domain.entities.outcome_override import OutcomeOverride, OverrideState


class OverrideStatePort(ABC):
    """Narrow access to the shared outcome override

    None of these raise on store or network failure.
    """

    @abstractmethod
    async def get(self) -> OverrideState:
        """Current override, the last known value (or RNG) on failure"""
        pass

    @abstractmethod
    async def try_set(self, outcome_override: OutcomeOverride) -> Optional[OverrideState]:
        """Persist and broadcast a value, None on failure"""
        pass

    @abstractmethod
    async def try_consume_and_reset(self) -> Optional[OutcomeOverride]:
        """Take an armed override and reset it to RNG in one step

        Returns the consumed value, RNG when nothing was armed, None on failure.
        """
        pass
