"""Broadcast events pushed to connected sessions

Events are a closed set. Each serializes to a flat JSON object whose ``type``
field names the kind; ``parse_event`` is the only way back from the wire and
returns None for anything it does not recognise.
"""
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Union

from slot_engine.domain.entities.outcome_override import OutcomeOverride, OverrideState, now_ms

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConnectedEvent:
    """First event on every push stream"""

    message: str = "SSE connection established"
    timestamp: int = field(default_factory=now_ms)

    type = "connected"

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "message": self.message, "timestamp": self.timestamp}


@dataclass(frozen=True)
class SettingsChangedEvent:
    """The shared override was written"""

    outcome_override: OutcomeOverride
    updated_at: int
    timestamp: int = field(default_factory=now_ms)

    type = "settings_changed"

    @classmethod
    def from_state(cls, state: OverrideState) -> 'SettingsChangedEvent':
        return cls(outcome_override=state.outcome_override, updated_at=state.updated_at)

    @property
    def state(self) -> OverrideState:
        return OverrideState(self.outcome_override, self.updated_at)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "outcomeOverride": self.outcome_override.value,
            "updatedAt": self.updated_at,
            "timestamp": self.timestamp
        }


@dataclass(frozen=True)
class HeartbeatEvent:
    """Keep-alive so idle streams can be told apart from dead ones"""

    timestamp: int = field(default_factory=now_ms)

    type = "heartbeat"

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "timestamp": self.timestamp}


@dataclass(frozen=True)
class ErrorEvent:
    """Server side failure reported over the stream"""

    message: str
    timestamp: int = field(default_factory=now_ms)

    type = "error"

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "message": self.message, "timestamp": self.timestamp}


GameEvent = Union[ConnectedEvent, SettingsChangedEvent, HeartbeatEvent, ErrorEvent]


def serialize_event(event: GameEvent) -> str:
    return json.dumps(event.to_dict(), ensure_ascii=False)


def parse_event(raw: Union[str, bytes, Dict[str, Any], None]) -> Optional[GameEvent]:
    """Decode one wire message, None when empty or malformed"""
    if raw is None:
        return None
    if isinstance(raw, (str, bytes)):
        if isinstance(raw, bytes):
            raw = raw.decode('utf-8', errors='replace')
        if not raw.strip():
            return None
        try:
            data = json.loads(raw)
        except ValueError:
            logger.debug(f"Dropping non-JSON event payload: {raw[:100]!r}")
            return None
    else:
        data = raw
    if not isinstance(data, dict):
        return None

    event_type = data.get('type')
    timestamp = data.get('timestamp')
    try:
        timestamp = int(timestamp) if timestamp is not None else now_ms()
        if event_type == ConnectedEvent.type:
            return ConnectedEvent(message=str(data.get('message', '')), timestamp=timestamp)
        if event_type == SettingsChangedEvent.type:
            updated_at = data.get('updatedAt')
            return SettingsChangedEvent(
                outcome_override=OutcomeOverride.parse(data.get('outcomeOverride')),
                updated_at=int(updated_at) if updated_at is not None else timestamp,
                timestamp=timestamp
            )
        if event_type == HeartbeatEvent.type:
            return HeartbeatEvent(timestamp=timestamp)
        if event_type == ErrorEvent.type:
            return ErrorEvent(message=str(data.get('message', '')), timestamp=timestamp)
    except (TypeError, ValueError) as e:
        logger.debug(f"Dropping malformed {event_type} event: {e}")
        return None

    logger.debug(f"Dropping event of unknown type: {event_type!r}")
    return None
