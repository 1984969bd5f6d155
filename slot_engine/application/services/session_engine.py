"""Per-player spin orchestration"""
import asyncio
import logging
from typing import Optional

from sentry_sdk import start_span

from slot_engine.application.ports.event_channel_port import Subscription
from slot_engine.application.ports.override_state_port import OverrideStatePort
from slot_engine.domain.entities.game_event import GameEvent, SettingsChangedEvent
from slot_engine.domain.entities.game_session import GameSession
from slot_engine.domain.entities.outcome_override import OutcomeOverride, OverrideState
from slot_engine.domain.entities.spin_result import GenerationMode, SpinResult
from slot_engine.domain.services.payout_evaluator import PayoutEvaluator
from slot_engine.domain.services.reel_generator import ReelGenerator
from slot_engine.infrastructure.monitoring import metrics

logger = logging.getLogger(__name__)

DEFAULT_SPIN_DELAY = 2.0

FORCED_MODES = {
    OutcomeOverride.WIN: GenerationMode.WINNING,
    OutcomeOverride.LOSS: GenerationMode.LOSING,
}


class GameSessionEngine:
    """Runs one player's spins against the shared override

    The engine keeps a local copy of the override, fed by ``on_event`` from
    whatever subscription it is attached to, and consumes an armed value
    through ``OverrideStatePort.try_consume_and_reset`` so that at most one
    session acts on it.
    """

    def __init__(
        self,
        override_state: OverrideStatePort,
        reel_generator: Optional[ReelGenerator] = None,
        payout_evaluator: Optional[PayoutEvaluator] = None,
        session: Optional[GameSession] = None,
        spin_delay: float = DEFAULT_SPIN_DELAY
    ):
        self.override_state = override_state
        self.reel_generator = reel_generator or ReelGenerator()
        self.payout_evaluator = payout_evaluator or PayoutEvaluator(self.reel_generator.payout_table)
        self.session = session or GameSession()
        self.spin_delay = spin_delay
        self.override_cache = OverrideState(OutcomeOverride.RNG)
        self.subscription: Optional[Subscription] = None

    def attach(self, subscription: Subscription) -> 'GameSessionEngine':
        """Own the subscription that feeds ``on_event``"""
        self.subscription = subscription
        return self

    def on_event(self, event: GameEvent):
        """Apply a broadcast event to the local override cache"""
        if isinstance(event, SettingsChangedEvent):
            self.override_cache = event.state
            logger.debug(f"Override cache now {event.outcome_override.value}")

    async def sync(self) -> OverrideState:
        """One-shot fetch of the shared override"""
        self.override_cache = await self.override_state.get()
        return self.override_cache

    async def spin(self) -> SpinResult:
        """Play one round

        A spin already in flight or a balance below the bet makes this a
        no-op: the previous reels come back with a zero win.
        """
        session = self.session
        if not session.can_spin:
            return SpinResult(reels=list(session.reels), win=0, balance=session.balance)

        session.is_spinning = True
        try:
            bet = session.bet_amount
            with start_span(op="game.spin", name="Spin reels") as span:
                if self.spin_delay > 0:
                    await asyncio.sleep(self.spin_delay)

                mode, consumed = await self._resolve_mode()
                reels = self.reel_generator.generate(mode)
                win = self.payout_evaluator.evaluate(reels, bet)
                session.record_spin(reels, bet, win)

                span.set_data("generation_mode", mode.value)
                span.set_data("bet", bet)
                span.set_data("win", win)

            metrics.track_spin(mode.value, bet, win)
            if mode == GenerationMode.LUCKY and not session.beginners_luck:
                logger.info("Beginner's luck has ended")
            return SpinResult(
                reels=reels,
                win=win,
                bet=bet,
                balance=session.balance,
                mode=mode,
                override_consumed=consumed
            )
        finally:
            session.is_spinning = False

    async def _resolve_mode(self):
        """Pick the generation mode, consuming an armed override if we hold one"""
        cached = self.override_cache.outcome_override
        if cached.is_armed:
            consumed = await self.override_state.try_consume_and_reset()
            if consumed is None:
                # Store unreachable: act on what we know, the shared value may stay armed
                logger.warning(f"Could not reset {cached.value} override, consuming it locally only")
                consumed = cached
            self.override_cache = OverrideState(OutcomeOverride.RNG)
            if consumed.is_armed:
                return FORCED_MODES[consumed], consumed
            logger.info(f"{cached.value} override was already consumed elsewhere")

        if self.session.luck_window_open:
            return GenerationMode.LUCKY, None
        return GenerationMode.RANDOM, None

    def set_bet(self, amount: int) -> int:
        return self.session.set_bet(amount)

    async def reset(self):
        """Fresh session, and the shared override back to RNG"""
        self.session.reset()
        state = await self.override_state.try_set(OutcomeOverride.RNG)
        self.override_cache = state or OverrideState(OutcomeOverride.RNG)

    def close(self):
        if self.subscription is not None:
            self.subscription.close()
            self.subscription = None
