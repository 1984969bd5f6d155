"""In-process settings repository for single-instance and local runs"""
from threading import Lock
from typing import Optional, Tuple

from slot_engine.application.ports.settings_repository_port import SettingsRepositoryPort
from slot_engine.domain.entities.outcome_override import OutcomeOverride, OverrideState, now_ms


class InMemorySettingsRepository(SettingsRepositoryPort):
    """Settings record held in process memory"""

    def __init__(self, initial: Optional[OverrideState] = None):
        self._state = initial
        self.lock = Lock()

    def initialize(self) -> OverrideState:
        with self.lock:
            if self._state is None:
                self._state = OverrideState(OutcomeOverride.RNG)
            return self._state

    def get_settings(self) -> Optional[OverrideState]:
        with self.lock:
            return self._state

    def save_settings(self, outcome_override: OutcomeOverride) -> OverrideState:
        with self.lock:
            self._state = OverrideState(outcome_override, now_ms())
            return self._state

    def consume_armed(self) -> Optional[Tuple[OutcomeOverride, OverrideState]]:
        with self.lock:
            if self._state is None or not self._state.is_armed:
                return None
            consumed = self._state.outcome_override
            self._state = OverrideState(OutcomeOverride.RNG, now_ms())
            return consumed, self._state
