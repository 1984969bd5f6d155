from unittest.mock import MagicMock, patch

from slot_engine.domain.entities.game_event import HeartbeatEvent, SettingsChangedEvent
from slot_engine.domain.entities.outcome_override import OutcomeOverride
from slot_engine.infrastructure.messaging.event_hub import EventHub


def settings_event(value=OutcomeOverride.WIN):
    return SettingsChangedEvent(outcome_override=value, updated_at=1)


def test_publish_reaches_every_subscriber():
    hub = EventHub()
    first, second = [], []
    hub.subscribe(first.append)
    hub.subscribe(second.append)

    event = settings_event()
    assert hub.publish(event)

    assert first == [event]
    assert second == [event]


def test_closed_subscription_stops_receiving():
    hub = EventHub()
    received = []
    subscription = hub.subscribe(received.append)

    subscription.close()
    subscription.close()
    hub.publish(HeartbeatEvent())

    assert received == []
    assert subscription.closed
    assert hub.subscriber_count == 0


def test_failing_subscriber_does_not_block_others():
    hub = EventHub()
    received = []
    hub.subscribe(MagicMock(side_effect=RuntimeError("boom")))
    hub.subscribe(received.append)

    hub.publish(HeartbeatEvent())
    assert len(received) == 1


def test_relay_carries_events_instead_of_local_dispatch():
    relay = MagicMock()
    relay.publish.return_value = True
    hub = EventHub(relay=relay)
    received = []
    hub.subscribe(received.append)

    event = settings_event()
    assert hub.publish(event)

    relay.publish.assert_called_once_with(event)
    # Delivered once it comes back from the broker
    assert received == []
    hub.dispatch(event)
    assert received == [event]


def test_relay_failure_falls_back_to_local_dispatch():
    relay = MagicMock()
    relay.publish.return_value = False
    hub = EventHub(relay=relay)
    received = []
    hub.subscribe(received.append)

    event = settings_event(OutcomeOverride.LOSS)
    assert not hub.publish(event)
    assert received == [event]


def test_subscriber_may_unsubscribe_during_dispatch():
    hub = EventHub()
    received = []
    subscriptions = []

    def once(event):
        received.append(event)
        subscriptions[0].close()

    subscriptions.append(hub.subscribe(once))
    hub.publish(HeartbeatEvent())
    hub.publish(HeartbeatEvent())

    assert len(received) == 1


def test_subscriber_count_is_logged_under_the_lock():
    hub = EventHub()
    held = []

    with patch('slot_engine.infrastructure.messaging.event_hub.logger') as mock_logger:
        mock_logger.debug.side_effect = lambda message: held.append(hub.lock.locked())
        hub.subscribe(lambda event: None)

    assert held == [True]
