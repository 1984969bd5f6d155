"""Shared override state backed by the settings store and event channel"""
import logging
from typing import Optional

import sentry_sdk
from sentry_sdk import start_span

from slot_engine.application.ports.event_channel_port import EventChannelPort
from slot_engine.application.ports.override_state_port import OverrideStatePort
from slot_engine.application.ports.settings_repository_port import SettingsRepositoryPort
from slot_engine.domain.entities.game_event import SettingsChangedEvent
from slot_engine.domain.entities.outcome_override import OutcomeOverride, OverrideState
from slot_engine.infrastructure.monitoring import metrics

logger = logging.getLogger(__name__)


class OverrideStateService(OverrideStatePort):
    """Server side override state machine

    Every write goes store first, then broadcast. Store failures are logged
    and swallowed; readers get the last value this process saw.
    """

    def __init__(self, settings_repository: SettingsRepositoryPort, event_channel: EventChannelPort):
        self.settings_repository = settings_repository
        self.event_channel = event_channel
        self._last_known = OverrideState(OutcomeOverride.RNG)

    @property
    def last_known(self) -> OverrideState:
        return self._last_known

    def initialize(self) -> OverrideState:
        """Make sure the settings record exists"""
        try:
            self._last_known = self.settings_repository.initialize()
        except Exception as e:
            logger.error(f"Failed to initialize game settings: {e}")
            sentry_sdk.capture_exception(e)
            metrics.STORE_ERRORS.labels(operation='initialize').inc()
        return self._last_known

    async def get(self) -> OverrideState:
        try:
            state = self.settings_repository.get_settings()
        except Exception as e:
            logger.error(f"Failed to read game settings: {e}")
            sentry_sdk.capture_exception(e)
            metrics.STORE_ERRORS.labels(operation='get').inc()
            return self._last_known

        if state is None:
            return OverrideState(OutcomeOverride.RNG, self._last_known.updated_at)
        self._last_known = state
        return state

    async def try_set(self, outcome_override: OutcomeOverride) -> Optional[OverrideState]:
        with start_span(op="settings.write", name="Persist outcome override") as span:
            span.set_data("outcome_override", outcome_override.value)
            try:
                state = self.settings_repository.save_settings(outcome_override)
            except Exception as e:
                logger.error(f"Failed to update game settings: {e}")
                sentry_sdk.capture_exception(e)
                metrics.STORE_ERRORS.labels(operation='set').inc()
                span.set_tag("settings.persisted", "false")
                return None
            span.set_tag("settings.persisted", "true")

        self._last_known = state
        metrics.OVERRIDE_CHANGES.labels(value=state.outcome_override.value).inc()
        logger.info(f"Outcome override set to {state.outcome_override.value}")
        self._broadcast(state)
        return state

    async def try_consume_and_reset(self) -> Optional[OutcomeOverride]:
        with start_span(op="settings.consume", name="Consume armed override") as span:
            try:
                consumed = self.settings_repository.consume_armed()
            except Exception as e:
                logger.error(f"Failed to consume outcome override: {e}")
                sentry_sdk.capture_exception(e)
                metrics.STORE_ERRORS.labels(operation='consume').inc()
                span.set_tag("override.consumed", "error")
                return None

            if consumed is None:
                span.set_tag("override.consumed", "none")
                return OutcomeOverride.RNG
            value, state = consumed
            span.set_tag("override.consumed", value.value)

        self._last_known = state
        metrics.OVERRIDES_CONSUMED.labels(value=value.value).inc()
        logger.info(f"Consumed {value.value} override, reset to RNG")
        self._broadcast(state)
        return value

    def _broadcast(self, state: OverrideState):
        event = SettingsChangedEvent.from_state(state)
        try:
            if self.event_channel.publish(event):
                metrics.EVENTS_PUBLISHED.labels(type=event.type).inc()
            else:
                logger.warning("Settings change was not broadcast")
        except Exception as e:
            logger.error(f"Failed to publish settings change: {e}")
            sentry_sdk.capture_exception(e)
