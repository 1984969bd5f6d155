"""Event channel ports (interfaces)"""
from abc import ABC, abstractmethod
from typing import Callable

from slot_engine.domain.entities.game_event import GameEvent

EventCallback = Callable[[GameEvent], None]


class Subscription(ABC):
    """Handle for one registered listener"""

    @abstractmethod
    def close(self) -> None:
        """Stop delivering events to the listener, safe to call twice"""
        pass

    @property
    @abstractmethod
    def closed(self) -> bool:
        pass


class EventPublisherPort(ABC):
    """Port for sending game events to a broadcast medium"""

    @abstractmethod
    def publish(self, event: GameEvent) -> bool:
        """Broadcast an event, returns False when delivery failed"""
        pass


class EventChannelPort(EventPublisherPort):
    """Port for broadcasting game events to every connected session"""

    @abstractmethod
    def subscribe(self, callback: EventCallback) -> Subscription:
        """Register a listener for every subsequently published event"""
        pass
