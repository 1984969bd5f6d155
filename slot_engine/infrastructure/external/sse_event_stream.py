"""Client side subscription to the game event push stream"""
import asyncio
import codecs
import logging
from enum import Enum
from typing import Awaitable, Callable, Optional

from tornado.httpclient import AsyncHTTPClient, HTTPRequest

from slot_engine.application.ports.event_channel_port import Subscription
from slot_engine.domain.entities.game_event import GameEvent, HeartbeatEvent, parse_event

logger = logging.getLogger(__name__)

DEFAULT_RECONNECT_DELAY = 3.0
DEFAULT_IDLE_TIMEOUT = 75.0


class StreamState(str, Enum):
    CONNECTING = 'connecting'
    OPEN = 'open'
    CLOSED = 'closed'


class StreamIdleError(Exception):
    """No bytes, not even a heartbeat, within the idle timeout"""


class EventStreamSubscription(Subscription):
    """Long-lived subscription to ``GET /game-events`` with reconnect

    ``start()`` schedules a task that connects, feeds parsed events to
    ``on_event`` and, whenever the stream fails or ends, waits
    ``reconnect_delay`` and connects again until ``close()``. The server
    sends the current override right after connecting, so a reconnect needs
    no further resync.

    If an attempt fails before the stream ever opened, ``on_fallback`` (for
    instance a one-shot settings fetch) runs once for that failure streak.
    """

    def __init__(
        self,
        url: str,
        on_event: Callable[[GameEvent], None],
        reconnect_delay: float = DEFAULT_RECONNECT_DELAY,
        idle_timeout: float = DEFAULT_IDLE_TIMEOUT,
        on_fallback: Optional[Callable[[], Awaitable]] = None,
        client_factory: Callable[[], AsyncHTTPClient] = None
    ):
        self.url = url
        self.on_event = on_event
        self.reconnect_delay = reconnect_delay
        self.idle_timeout = idle_timeout
        self.on_fallback = on_fallback
        self.client_factory = client_factory or (lambda: AsyncHTTPClient(force_instance=True))

        self.state = StreamState.CLOSED
        self.reconnects = 0
        self.last_message_at: Optional[float] = None
        self.last_heartbeat_at: Optional[float] = None

        self._task: Optional[asyncio.Task] = None
        self._client = None
        self._closed = True
        self._attempt = 0
        self._opened = False
        self._status: Optional[int] = None
        self._content_type = ''
        self._buffer = ''
        self._decoder = None

    @property
    def closed(self) -> bool:
        return self._closed

    def start(self) -> 'EventStreamSubscription':
        if self._task is None:
            self._closed = False
            self.state = StreamState.CONNECTING
            self._task = asyncio.ensure_future(self._run())
        return self

    def close(self):
        """Cancel the retry task and drop the open request"""
        self._closed = True
        self.state = StreamState.CLOSED
        if self._task is not None and not self._task.done():
            self._task.cancel()
        if self._client is not None:
            self._client.close()
            self._client = None

    async def wait_closed(self):
        if self._task is not None:
            try:
                await self._task
            except asyncio.CancelledError:
                pass

    async def __aenter__(self) -> 'EventStreamSubscription':
        return self.start()

    async def __aexit__(self, exc_type, exc, tb):
        self.close()
        await self.wait_closed()

    async def _run(self):
        fallback_pending = True
        try:
            while not self._closed:
                self.state = StreamState.CONNECTING
                try:
                    await self._connect_once()
                    logger.info("Event stream ended by server")
                except asyncio.CancelledError:
                    raise
                except Exception as e:
                    logger.warning(f"Event stream error: {e}")

                if self._closed:
                    break
                if self._opened:
                    fallback_pending = True
                elif fallback_pending and self.on_fallback is not None:
                    fallback_pending = False
                    try:
                        await self.on_fallback()
                    except Exception as e:
                        logger.error(f"Fallback settings fetch failed: {e}")

                self.state = StreamState.CONNECTING
                self.reconnects += 1
                logger.info(f"Reconnecting event stream in {self.reconnect_delay}s")
                await asyncio.sleep(self.reconnect_delay)
        finally:
            self.state = StreamState.CLOSED

    async def _connect_once(self):
        loop = asyncio.get_running_loop()
        self._attempt += 1
        attempt = self._attempt
        self._opened = False
        self._status = None
        self._content_type = ''
        self._buffer = ''
        self._decoder = codecs.getincrementaldecoder('utf-8')(errors='replace')
        self.last_message_at = loop.time()

        client = self._client = self.client_factory()
        request = HTTPRequest(
            self.url,
            headers={"Accept": "text/event-stream", "Cache-Control": "no-cache"},
            header_callback=lambda line: self._on_header(attempt, line),
            streaming_callback=lambda chunk: self._on_chunk(attempt, chunk),
            request_timeout=0
        )
        fetch = asyncio.ensure_future(client.fetch(request, raise_error=True))
        try:
            while True:
                remaining = self.last_message_at + self.idle_timeout - loop.time()
                done, _ = await asyncio.wait({fetch}, timeout=max(remaining, 0.01))
                if done:
                    fetch.result()
                    return
                if loop.time() - self.last_message_at >= self.idle_timeout:
                    raise StreamIdleError(f"No data for {self.idle_timeout}s")
        finally:
            if not fetch.done():
                fetch.cancel()
            if self._client is client:
                self._client = None
            client.close()

    def _on_header(self, attempt: int, line: str):
        """Open only on a 2xx ``text/event-stream`` response"""
        if attempt != self._attempt or self._closed:
            return
        line = line.strip()
        if line.startswith('HTTP/'):
            # Start line; a redirect yields one per hop
            parts = line.split(' ', 2)
            self._status = int(parts[1]) if len(parts) > 1 and parts[1].isdigit() else None
            self._content_type = ''
        elif ':' in line:
            name, value = line.split(':', 1)
            if name.strip().lower() == 'content-type':
                self._content_type = value.strip().lower()
        elif not line and self._status is not None and not self._opened:
            if 200 <= self._status < 300 and self._content_type.startswith('text/event-stream'):
                self._opened = True
                self.state = StreamState.OPEN
                logger.info(f"Event stream open: {self.url}")
            elif not 300 <= self._status < 400:
                logger.warning(
                    f"Event stream refused: HTTP {self._status} {self._content_type or 'no content type'}"
                )

    def _on_chunk(self, attempt: int, chunk: bytes):
        if attempt != self._attempt or self._closed:
            return
        self.last_message_at = asyncio.get_running_loop().time()
        if not self._opened:
            # Body of an error or non-stream response
            return

        self._buffer = (self._buffer + self._decoder.decode(chunk)).replace('\r\n', '\n')
        while '\n\n' in self._buffer:
            frame, self._buffer = self._buffer.split('\n\n', 1)
            self._handle_frame(frame)

    def _handle_frame(self, frame: str):
        data_lines = []
        for line in frame.split('\n'):
            if line.startswith('data:'):
                data_lines.append(line[5:].lstrip(' '))
        if not data_lines:
            return

        event = parse_event('\n'.join(data_lines))
        if event is None:
            logger.debug("Discarded malformed stream message")
            return
        if isinstance(event, HeartbeatEvent):
            self.last_heartbeat_at = self.last_message_at
        try:
            self.on_event(event)
        except Exception as e:
            logger.error(f"Event handler failed on {event.type}: {e}")
