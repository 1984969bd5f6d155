import asyncio
from unittest.mock import MagicMock

import pytest

from slot_engine.application.services.override_state_service import OverrideStateService
from slot_engine.domain.entities.game_event import SettingsChangedEvent
from slot_engine.domain.entities.outcome_override import OutcomeOverride, OverrideState
from slot_engine.infrastructure.messaging.event_hub import EventHub
from slot_engine.infrastructure.persistence.in_memory_settings_repository import InMemorySettingsRepository


@pytest.fixture
def hub():
    return EventHub()


@pytest.fixture
def events(hub):
    received = []
    hub.subscribe(received.append)
    return received


@pytest.fixture
def service(hub):
    service = OverrideStateService(InMemorySettingsRepository(), hub)
    service.initialize()
    return service


def test_defaults_to_rng(service):
    state = asyncio.run(service.get())
    assert state.outcome_override == OutcomeOverride.RNG


def test_set_persists_and_broadcasts(service, events):
    state = asyncio.run(service.try_set(OutcomeOverride.WIN))

    assert state.outcome_override == OutcomeOverride.WIN
    assert asyncio.run(service.get()) == state
    assert len(events) == 1
    assert isinstance(events[0], SettingsChangedEvent)
    assert events[0].state == state


def test_setting_same_value_broadcasts_again(service, events):
    asyncio.run(service.try_set(OutcomeOverride.LOSS))
    asyncio.run(service.try_set(OutcomeOverride.LOSS))

    assert [e.outcome_override for e in events] == [OutcomeOverride.LOSS, OutcomeOverride.LOSS]


def test_consume_returns_armed_value_once(service, events):
    asyncio.run(service.try_set(OutcomeOverride.WIN))

    assert asyncio.run(service.try_consume_and_reset()) == OutcomeOverride.WIN
    assert asyncio.run(service.try_consume_and_reset()) == OutcomeOverride.RNG
    assert asyncio.run(service.get()).outcome_override == OutcomeOverride.RNG
    # One for the set, one for the reset
    assert [e.outcome_override for e in events] == [OutcomeOverride.WIN, OutcomeOverride.RNG]


def test_consume_with_nothing_armed_does_not_broadcast(service, events):
    assert asyncio.run(service.try_consume_and_reset()) == OutcomeOverride.RNG
    assert events == []


def test_concurrent_consumers_win_at_most_once(service):
    async def scenario():
        await service.try_set(OutcomeOverride.LOSS)
        return await asyncio.gather(*(service.try_consume_and_reset() for _ in range(10)))

    results = asyncio.run(scenario())
    assert results.count(OutcomeOverride.LOSS) == 1
    assert results.count(OutcomeOverride.RNG) == 9


def test_missing_record_reads_as_rng(hub):
    service = OverrideStateService(InMemorySettingsRepository(), hub)
    assert asyncio.run(service.get()).outcome_override == OutcomeOverride.RNG


def test_read_failure_returns_last_known(hub):
    repository = MagicMock()
    repository.save_settings.return_value = OverrideState(OutcomeOverride.WIN, 1000)
    repository.get_settings.side_effect = ConnectionError("store down")
    service = OverrideStateService(repository, hub)

    asyncio.run(service.try_set(OutcomeOverride.WIN))
    state = asyncio.run(service.get())

    assert state == OverrideState(OutcomeOverride.WIN, 1000)


def test_write_failure_reports_failure_without_broadcast(hub, events):
    repository = MagicMock()
    repository.save_settings.side_effect = ConnectionError("store down")
    service = OverrideStateService(repository, hub)

    assert asyncio.run(service.try_set(OutcomeOverride.WIN)) is None
    assert events == []


def test_consume_failure_returns_none(hub, events):
    repository = MagicMock()
    repository.consume_armed.side_effect = ConnectionError("store down")
    service = OverrideStateService(repository, hub)

    assert asyncio.run(service.try_consume_and_reset()) is None
    assert events == []


def test_initialize_failure_is_soft(hub):
    repository = MagicMock()
    repository.initialize.side_effect = ConnectionError("store down")
    service = OverrideStateService(repository, hub)

    assert service.initialize().outcome_override == OutcomeOverride.RNG


def test_publish_failure_keeps_the_write(service):
    service.event_channel = MagicMock()
    service.event_channel.publish.side_effect = RuntimeError("broker down")

    state = asyncio.run(service.try_set(OutcomeOverride.WIN))
    assert state.outcome_override == OutcomeOverride.WIN
