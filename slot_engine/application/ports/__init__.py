from .settings_repository_port import SettingsRepositoryPort
from .event_channel_port import EventChannelPort, EventPublisherPort, Subscription
from .override_state_port import OverrideStatePort

__all__ = [
    'SettingsRepositoryPort',
    'EventChannelPort',
    'EventPublisherPort',
    'Subscription',
    'OverrideStatePort'
]
