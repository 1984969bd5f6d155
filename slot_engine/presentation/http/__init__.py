from .handlers import (
    AdminSettingsHandler,
    ConsumeOverrideHandler,
    GameSettingsHandler,
    HealthHandler,
    MetricsHandler,
    RtpSimulationHandler,
    SessionBetHandler,
    SessionHandler,
    SessionResetHandler,
    SessionSpinHandler,
    SessionsHandler
)
from .event_stream_handler import GameEventsHandler

__all__ = [
    'AdminSettingsHandler',
    'ConsumeOverrideHandler',
    'GameEventsHandler',
    'GameSettingsHandler',
    'HealthHandler',
    'MetricsHandler',
    'RtpSimulationHandler',
    'SessionBetHandler',
    'SessionHandler',
    'SessionResetHandler',
    'SessionSpinHandler',
    'SessionsHandler'
]
