"""HTTP REST handlers for the slot engine"""
import json
import sentry_sdk
from tornado import web
from tornado.ioloop import IOLoop
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST

from slot_engine.application.dto.rtp_simulation_request import RtpSimulationRequest
from slot_engine.application.dto.update_settings_request import UpdateSettingsRequest
from slot_engine.application.ports.override_state_port import OverrideStatePort
from slot_engine.application.use_cases.get_game_settings_use_case import GetGameSettingsUseCase
from slot_engine.application.use_cases.manage_sessions_use_case import ManageSessionsUseCase, SessionNotFoundError
from slot_engine.application.use_cases.simulate_rtp_use_case import SimulateRtpUseCase
from slot_engine.application.use_cases.update_game_settings_use_case import UpdateGameSettingsUseCase


class JsonHandler(web.RequestHandler):
    """Shared JSON helpers"""

    def set_default_headers(self):
        self.set_header('Content-Type', 'application/json')

    def start_transaction(self, op: str, name: str):
        """Continue an upstream trace when the caller sent one"""
        sentry_trace = self.request.headers.get('sentry-trace', '')
        baggage = self.request.headers.get('baggage', '')

        transaction = sentry_sdk.continue_trace({
            "sentry-trace": sentry_trace,
            "baggage": baggage
        }, op=op, name=name)
        return sentry_sdk.start_transaction(transaction)

    def parse_body(self) -> dict:
        """JSON object body, ValueError when it is not one"""
        if not self.request.body:
            return {}
        data = json.loads(self.request.body)
        if not isinstance(data, dict):
            raise ValueError("Request body must be a JSON object")
        return data

    def write_error_json(self, status: int, error: str, message: str = None):
        self.set_status(status)
        body = {"error": error}
        if message:
            body["message"] = message
        self.write(body)


class HealthHandler(web.RequestHandler):
    """Health check endpoint"""

    def get(self):
        self.write({"status": "ok"})


class MetricsHandler(web.RequestHandler):
    """Prometheus metrics endpoint"""

    def get(self):
        self.set_header('Content-Type', CONTENT_TYPE_LATEST)
        self.write(generate_latest())


class GameSettingsHandler(JsonHandler):
    """GET /game-settings - current outcome override"""

    def initialize(self, get_settings_use_case: GetGameSettingsUseCase):
        self.get_settings_use_case = get_settings_use_case

    async def get(self):
        with self.start_transaction(op="settings.get", name="get_game_settings"):
            try:
                result = await self.get_settings_use_case.execute()
                self.write(result.to_dict())
            except Exception as e:
                sentry_sdk.capture_exception(e)
                self.write_error_json(500, "Internal server error", str(e))


class AdminSettingsHandler(JsonHandler):
    """POST /admin-settings - operator sets the outcome override"""

    def initialize(self, update_settings_use_case: UpdateGameSettingsUseCase):
        self.update_settings_use_case = update_settings_use_case

    async def post(self):
        with self.start_transaction(op="settings.update", name="update_admin_settings"):
            try:
                request = UpdateSettingsRequest.from_dict(self.parse_body())
            except ValueError:
                self.write_error_json(400, "Invalid outcome override value")
                return

            try:
                result = await self.update_settings_use_case.execute(request)
                if result.error:
                    self.set_status(500)
                else:
                    sentry_sdk.set_tag("settings.outcome_override", request.outcome_override.value)
                    self.set_status(200)
                self.write(result.to_dict())
            except Exception as e:
                sentry_sdk.capture_exception(e)
                self.write_error_json(500, "Internal server error", str(e))


class ConsumeOverrideHandler(JsonHandler):
    """POST /game-settings/consume - take an armed override for one spin"""

    def initialize(self, override_state: OverrideStatePort):
        self.override_state = override_state

    async def post(self):
        with self.start_transaction(op="settings.consume", name="consume_outcome_override"):
            consumed = await self.override_state.try_consume_and_reset()
            if consumed is None:
                self.write_error_json(503, "Settings store unavailable")
                return
            self.write({"consumed": consumed.value})


class SessionsHandler(JsonHandler):
    """POST /sessions - start a player session"""

    def initialize(self, sessions_use_case: ManageSessionsUseCase):
        self.sessions_use_case = sessions_use_case

    async def post(self):
        with self.start_transaction(op="session.create", name="create_session"):
            try:
                session_id = await self.sessions_use_case.create_session()
                engine = self.sessions_use_case.get_session(session_id)
                self.set_status(201)
                self.write({"sessionId": session_id, **engine.session.to_dict()})
            except Exception as e:
                sentry_sdk.capture_exception(e)
                self.write_error_json(500, "Internal server error", str(e))


class SessionHandlerBase(JsonHandler):
    """Resolves the session id path argument"""

    def initialize(self, sessions_use_case: ManageSessionsUseCase):
        self.sessions_use_case = sessions_use_case

    def write_session(self, session_id: str):
        engine = self.sessions_use_case.get_session(session_id)
        self.write({"sessionId": session_id, **engine.session.to_dict()})

    def write_error(self, status_code: int, **kwargs):
        exc_info = kwargs.get("exc_info")
        if exc_info and isinstance(exc_info[1], SessionNotFoundError):
            self.set_status(404)
            self.finish({"error": "Session not found"})
            return
        if exc_info:
            sentry_sdk.capture_exception(exc_info[1])
        self.finish({"error": self._reason})


class SessionHandler(SessionHandlerBase):
    """GET/DELETE /sessions/<id>"""

    def get(self, session_id: str):
        self.write_session(session_id)

    def delete(self, session_id: str):
        self.sessions_use_case.close_session(session_id)
        self.set_status(204)


class SessionBetHandler(SessionHandlerBase):
    """PUT /sessions/<id>/bet - change the bet, clamped to [min bet, balance]"""

    def put(self, session_id: str):
        try:
            data = self.parse_body()
            amount = int(data["betAmount"])
        except (KeyError, TypeError, ValueError):
            self.write_error_json(400, "betAmount must be an integer")
            return
        self.sessions_use_case.set_bet(session_id, amount)
        self.write_session(session_id)


class SessionSpinHandler(SessionHandlerBase):
    """POST /sessions/<id>/spin - play one round"""

    async def post(self, session_id: str):
        with self.start_transaction(op="game.spin", name="spin"):
            result = await self.sessions_use_case.spin(session_id)
            engine = self.sessions_use_case.get_session(session_id)
            self.write({**result.to_dict(), "session": engine.session.to_dict()})


class SessionResetHandler(SessionHandlerBase):
    """POST /sessions/<id>/reset - fresh balance and stats, override back to RNG"""

    async def post(self, session_id: str):
        await self.sessions_use_case.reset(session_id)
        self.write_session(session_id)


class RtpSimulationHandler(JsonHandler):
    """POST /rtp-simulation - Monte Carlo house edge report"""

    def initialize(self, rtp_use_case: SimulateRtpUseCase):
        self.rtp_use_case = rtp_use_case

    async def post(self):
        with self.start_transaction(op="game.rtp", name="rtp_simulation"):
            try:
                request = RtpSimulationRequest.from_dict(self.parse_body())
            except (TypeError, ValueError) as e:
                self.write_error_json(400, str(e))
                return

            # CPU bound, off the IOLoop thread
            result = await IOLoop.current().run_in_executor(None, self.rtp_use_case.execute, request)
            self.set_status(500 if result.error else 200)
            self.write(result.to_dict())
