"""
Slot Engine - Clean Architecture Entry Point

Serves the operator override API, the game event stream and server held
player sessions. Configuration comes from environment variables:
- SETTINGS_BACKEND=mongo (default) or memory
- EVENT_BROKER=local (default) or rabbitmq
"""
import os
import logging

import sentry_sdk
from tornado import web, ioloop
from sentry_sdk.integrations.tornado import TornadoIntegration

from slot_engine.config.container import Container
from slot_engine.presentation.http import (
    AdminSettingsHandler,
    ConsumeOverrideHandler,
    GameEventsHandler,
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

logger = logging.getLogger(__name__)


def init_sentry():
    """Initialize Sentry from the environment"""
    version = os.environ.get('APP_VERSION', '1.0.0')
    sentry_debug = os.environ.get('SENTRY_DEBUG', 'false').lower() == 'true'
    sentry_profiles_rate = float(os.environ.get('SENTRY_PROFILES_SAMPLE_RATE', '0'))
    sentry_traces_rate = float(os.environ.get('SENTRY_TRACES_SAMPLE_RATE', '1.0'))
    sentry_environment = os.environ.get('SENTRY_ENVIRONMENT', 'development')

    sentry_sdk.init(
        dsn=os.environ.get('SENTRY_DSN'),
        integrations=[TornadoIntegration()],
        traces_sample_rate=sentry_traces_rate,
        environment=sentry_environment,
        profiles_sample_rate=sentry_profiles_rate,
        debug=sentry_debug,
        release=f"slot-engine@{version}",
        auto_session_tracking=True
    )


def make_app(container: Container = None) -> web.Application:
    """Create Tornado application with Clean Architecture handlers"""
    container = container or Container.get_instance()
    sessions = {"sessions_use_case": container.get_sessions_use_case()}

    routes = [
        (r"/health", HealthHandler),
        (r"/metrics", MetricsHandler),

        # Outcome override
        (r"/game-settings", GameSettingsHandler, {
            "get_settings_use_case": container.get_game_settings_use_case()
        }),
        (r"/game-settings/consume", ConsumeOverrideHandler, {
            "override_state": container.get_override_state()
        }),
        (r"/admin-settings", AdminSettingsHandler, {
            "update_settings_use_case": container.get_update_settings_use_case()
        }),
        (r"/game-events", GameEventsHandler, {
            "event_channel": container.get_event_hub(),
            "override_state": container.get_override_state(),
            "heartbeat_interval": container.heartbeat_interval
        }),

        # Player sessions
        (r"/sessions", SessionsHandler, sessions),
        (r"/sessions/([0-9a-f]+)", SessionHandler, sessions),
        (r"/sessions/([0-9a-f]+)/bet", SessionBetHandler, sessions),
        (r"/sessions/([0-9a-f]+)/spin", SessionSpinHandler, sessions),
        (r"/sessions/([0-9a-f]+)/reset", SessionResetHandler, sessions),

        (r"/rtp-simulation", RtpSimulationHandler, {
            "rtp_use_case": container.get_rtp_use_case()
        }),
    ]

    return web.Application(routes)


def main():
    logging.basicConfig(level=os.environ.get('LOG_LEVEL', 'INFO').upper())
    init_sentry()

    container = Container.get_instance()
    app = make_app(container)
    port = int(os.environ.get('PORT', 8082))
    app.listen(port)
    container.start(ioloop.IOLoop.current())

    logger.info(f"Slot Engine started on :{port}")
    logger.info("Routes: GET /game-settings, POST /admin-settings, GET /game-events, /sessions")

    try:
        ioloop.IOLoop.current().start()
    except KeyboardInterrupt:
        logger.info("Shutting down")
    finally:
        Container.reset_instance()


if __name__ == "__main__":
    main()
