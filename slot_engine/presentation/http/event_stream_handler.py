"""Server-Sent Events stream of game events"""
import logging
from typing import Optional

import sentry_sdk
from tornado import web
from tornado.ioloop import PeriodicCallback
from tornado.iostream import StreamClosedError
from tornado.queues import Queue

from slot_engine.application.ports.event_channel_port import EventChannelPort, Subscription
from slot_engine.application.ports.override_state_port import OverrideStatePort
from slot_engine.domain.entities.game_event import (
    ConnectedEvent,
    ErrorEvent,
    GameEvent,
    HeartbeatEvent,
    SettingsChangedEvent,
    serialize_event,
)
from slot_engine.infrastructure.monitoring import metrics

logger = logging.getLogger(__name__)

DEFAULT_HEARTBEAT_INTERVAL = 30.0


class GameEventsHandler(web.RequestHandler):
    """GET /game-events - push stream of override changes

    Opens with ``connected`` and the current override, then forwards every
    channel event and a heartbeat on a fixed interval until the client goes
    away.
    """

    def initialize(
        self,
        event_channel: EventChannelPort,
        override_state: OverrideStatePort,
        heartbeat_interval: float = DEFAULT_HEARTBEAT_INTERVAL
    ):
        self.event_channel = event_channel
        self.override_state = override_state
        self.heartbeat_interval = heartbeat_interval
        self._queue: Queue = Queue()
        self._subscription: Optional[Subscription] = None
        self._heartbeat: Optional[PeriodicCallback] = None
        self._finished = False

    async def get(self):
        self.set_header('Content-Type', 'text/event-stream')
        self.set_header('Cache-Control', 'no-cache')
        self.set_header('Connection', 'keep-alive')
        self.set_header('Access-Control-Allow-Origin', '*')
        self.set_header('Access-Control-Allow-Headers', 'Cache-Control')

        metrics.OPEN_STREAMS.inc()
        try:
            # Subscribe before reading the current state so no change slips between
            self._subscription = self.event_channel.subscribe(self._queue.put_nowait)

            if not await self._send(ConnectedEvent()):
                return
            state = await self.override_state.get()
            if not await self._send(SettingsChangedEvent.from_state(state)):
                return

            self._heartbeat = PeriodicCallback(
                lambda: self._queue.put_nowait(HeartbeatEvent()),
                self.heartbeat_interval * 1000
            )
            self._heartbeat.start()

            while not self._finished:
                event = await self._queue.get()
                if event is None or not await self._send(event):
                    break
        except Exception as e:
            logger.error(f"Event stream failed: {e}")
            sentry_sdk.capture_exception(e)
            await self._send(ErrorEvent(message="Failed to establish real-time connection"))
        finally:
            self._cleanup()
            metrics.OPEN_STREAMS.dec()

    def on_connection_close(self):
        self._finished = True
        self._cleanup()
        # Wake the loop in get()
        self._queue.put_nowait(None)

    async def _send(self, event: GameEvent) -> bool:
        """Write one SSE frame, False once the client is gone"""
        if self._finished:
            return False
        try:
            self.write(f"data: {serialize_event(event)}\n\n")
            await self.flush()
            return True
        except StreamClosedError:
            self._finished = True
            return False

    def _cleanup(self):
        if self._heartbeat is not None:
            self._heartbeat.stop()
            self._heartbeat = None
        if self._subscription is not None:
            self._subscription.close()
            self._subscription = None
