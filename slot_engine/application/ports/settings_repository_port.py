"""Settings repository port (interface)"""
from abc import ABC, abstractmethod
from typing import Optional, Tuple

from slot_engine.domain.entities.outcome_override import OutcomeOverride, OverrideState


class SettingsRepositoryPort(ABC):
    """Port for the single persisted game settings record"""

    @abstractmethod
    def initialize(self) -> OverrideState:
        """Create the default RNG record if none exists, returns the live record"""
        pass

    @abstractmethod
    def get_settings(self) -> Optional[OverrideState]:
        """Current record, None when nothing was ever written"""
        pass

    @abstractmethod
    def save_settings(self, outcome_override: OutcomeOverride) -> OverrideState:
        """Upsert the record, returns what was written"""
        pass

    @abstractmethod
    def consume_armed(self) -> Optional[Tuple[OutcomeOverride, OverrideState]]:
        """Atomically reset an armed override to RNG

        Returns the consumed value and the reset record written in its place,
        or None when nothing was armed.
        """
        pass
