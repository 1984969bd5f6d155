"""Server held player sessions use case"""
import logging
import time
import uuid
from typing import Callable, Dict, Optional

import sentry_sdk

from slot_engine.application.ports.event_channel_port import EventChannelPort
from slot_engine.application.ports.override_state_port import OverrideStatePort
from slot_engine.application.services.session_engine import DEFAULT_SPIN_DELAY, GameSessionEngine
from slot_engine.domain.entities.game_session import DEFAULT_BET, INITIAL_BALANCE, MIN_BET, GameSession
from slot_engine.domain.entities.spin_result import SpinResult
from slot_engine.domain.services.reel_generator import ReelGenerator
from slot_engine.infrastructure.monitoring import metrics

logger = logging.getLogger(__name__)

DEFAULT_IDLE_TIMEOUT = 1800.0


class SessionNotFoundError(KeyError):
    """No live session with that id"""


class ManageSessionsUseCase:
    """Creates, plays and closes player sessions kept in this process

    Every session is subscribed to the event channel for its lifetime so its
    override cache follows operator changes. Sessions untouched for
    ``idle_timeout`` seconds are closed by ``close_idle_sessions``.
    """

    def __init__(
        self,
        override_state: OverrideStatePort,
        event_channel: EventChannelPort,
        reel_generator: Optional[ReelGenerator] = None,
        spin_delay: float = DEFAULT_SPIN_DELAY,
        initial_balance: int = INITIAL_BALANCE,
        default_bet: int = DEFAULT_BET,
        min_bet: int = MIN_BET,
        beginners_luck: bool = True,
        idle_timeout: float = DEFAULT_IDLE_TIMEOUT,
        clock: Callable[[], float] = time.monotonic
    ):
        self.override_state = override_state
        self.event_channel = event_channel
        self.reel_generator = reel_generator or ReelGenerator()
        self.spin_delay = spin_delay
        self.initial_balance = initial_balance
        self.default_bet = default_bet
        self.min_bet = min_bet
        self.beginners_luck = beginners_luck
        self.idle_timeout = idle_timeout
        self.clock = clock
        self.sessions: Dict[str, GameSessionEngine] = {}
        self.last_active: Dict[str, float] = {}

    async def create_session(self) -> str:
        """Start a session and sync it with the current override"""
        session = GameSession(
            initial_balance=self.initial_balance,
            min_bet=self.min_bet,
            default_bet=self.default_bet,
            luck_enabled=self.beginners_luck
        )
        engine = GameSessionEngine(
            override_state=self.override_state,
            reel_generator=self.reel_generator,
            session=session,
            spin_delay=self.spin_delay
        )
        engine.attach(self.event_channel.subscribe(engine.on_event))
        await engine.sync()

        session_id = uuid.uuid4().hex
        self.sessions[session_id] = engine
        self.last_active[session_id] = self.clock()
        metrics.ACTIVE_SESSIONS.set(len(self.sessions))
        logger.info(f"Session {session_id} started")
        return session_id

    def get_session(self, session_id: str) -> GameSessionEngine:
        engine = self.sessions.get(session_id)
        if engine is None:
            raise SessionNotFoundError(session_id)
        self.last_active[session_id] = self.clock()
        return engine

    async def spin(self, session_id: str) -> SpinResult:
        engine = self.get_session(session_id)
        sentry_sdk.set_tag("session.id", session_id)
        result = await engine.spin()
        if result.spun:
            logger.info(
                f"Session {session_id} spun {result.mode.value}: "
                f"bet={result.bet} win={result.win} balance={result.balance}"
            )
        return result

    def set_bet(self, session_id: str, amount: int) -> int:
        return self.get_session(session_id).set_bet(amount)

    async def reset(self, session_id: str) -> GameSessionEngine:
        engine = self.get_session(session_id)
        await engine.reset()
        return engine

    def close_session(self, session_id: str):
        """Drop a session and release its subscription"""
        engine = self.sessions.pop(session_id, None)
        if engine is None:
            raise SessionNotFoundError(session_id)
        self.last_active.pop(session_id, None)
        engine.close()
        metrics.ACTIVE_SESSIONS.set(len(self.sessions))
        logger.info(f"Session {session_id} closed")

    def close_all(self):
        for session_id in list(self.sessions):
            self.close_session(session_id)

    def close_idle_sessions(self) -> int:
        """Close sessions idle past ``idle_timeout``, returning how many"""
        deadline = self.clock() - self.idle_timeout
        idle = [
            session_id for session_id, seen in self.last_active.items()
            if seen <= deadline and not self.sessions[session_id].session.is_spinning
        ]
        for session_id in idle:
            logger.info(f"Session {session_id} idle, closing")
            self.close_session(session_id)
        return len(idle)
