"""In-process fan-out of game events"""
import logging
from threading import Lock
from typing import List, Optional

import sentry_sdk

from slot_engine.application.ports.event_channel_port import (
    EventCallback,
    EventChannelPort,
    EventPublisherPort,
    Subscription,
)
from slot_engine.domain.entities.game_event import GameEvent

logger = logging.getLogger(__name__)


class HubSubscription(Subscription):
    """A listener registered on an EventHub"""

    def __init__(self, hub: 'EventHub', callback: EventCallback):
        self._hub = hub
        self.callback = callback
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        if not self._closed:
            self._closed = True
            self._hub._remove(self)


class EventHub(EventChannelPort):
    """Delivers events to every listener in this process

    With a relay configured, published events travel through the broker and
    come back through ``dispatch`` on every instance, this one included.
    Without one, ``publish`` dispatches directly.
    """

    def __init__(self, relay: Optional[EventPublisherPort] = None):
        self.relay = relay
        self._subscriptions: List[HubSubscription] = []
        self.lock = Lock()

    @property
    def subscriber_count(self) -> int:
        with self.lock:
            return len(self._subscriptions)

    def publish(self, event: GameEvent) -> bool:
        if self.relay is None:
            self.dispatch(event)
            return True

        if self.relay.publish(event):
            return True
        # Broker is down: at least this instance's sessions see the change
        logger.warning(f"Relay publish failed, dispatching {event.type} locally")
        self.dispatch(event)
        return False

    def subscribe(self, callback: EventCallback) -> HubSubscription:
        subscription = HubSubscription(self, callback)
        with self.lock:
            self._subscriptions.append(subscription)
            logger.debug(f"Subscriber added ({len(self._subscriptions)} total)")
        return subscription

    def dispatch(self, event: GameEvent):
        """Hand an event to every open subscription"""
        with self.lock:
            subscriptions = list(self._subscriptions)
        for subscription in subscriptions:
            if subscription.closed:
                continue
            try:
                subscription.callback(event)
            except Exception as e:
                # One broken listener must not starve the others
                logger.error(f"Event subscriber failed on {event.type}: {e}")
                sentry_sdk.capture_exception(e)

    def _remove(self, subscription: HubSubscription):
        with self.lock:
            if subscription in self._subscriptions:
                self._subscriptions.remove(subscription)
