import asyncio

from tornado.httpclient import HTTPClientError

from slot_engine.domain.entities.game_event import (
    ConnectedEvent,
    ErrorEvent,
    HeartbeatEvent,
    SettingsChangedEvent,
    serialize_event,
)
from slot_engine.domain.entities.outcome_override import OutcomeOverride
from slot_engine.infrastructure.external.sse_event_stream import EventStreamSubscription, StreamState

URL = 'http://engine.test/game-events'


def frame(event) -> bytes:
    return f"data: {serialize_event(event)}\n\n".encode('utf-8')


async def hang():
    await asyncio.Event().wait()


def respond(request, status, content_type):
    request.header_callback(f"HTTP/1.1 {status} Status\r\n")
    request.header_callback(f"Content-Type: {content_type}\r\n")
    request.header_callback("\r\n")


def send(*chunks, then=hang, status=200, content_type='text/event-stream'):
    """Script that answers with headers, streams ``chunks`` and then runs ``then``"""
    async def script(request):
        respond(request, status, content_type)
        for chunk in chunks:
            request.streaming_callback(chunk)
            await asyncio.sleep(0)
        if then is not None:
            await then()
    return script


def fail(error=ConnectionError("refused")):
    async def script(request):
        raise error
    return script


def refuse(status=404, body=b'<html>no such endpoint</html>'):
    """Error status whose body still reaches the streaming callback"""
    async def raise_http_error():
        raise HTTPClientError(status)
    return send(body, status=status, content_type='text/html', then=raise_http_error)


class FakeClient:
    def __init__(self, script):
        self.script = script
        self.requests = []
        self.closed = False

    async def fetch(self, request, raise_error=True):
        self.requests.append(request)
        return await self.script(request)

    def close(self):
        self.closed = True


class FakeClientFactory:
    """Hands out one scripted client per connection attempt"""

    def __init__(self, *scripts):
        self.scripts = list(scripts)
        self.clients = []

    def __call__(self):
        script = self.scripts.pop(0) if self.scripts else (lambda request: hang())
        client = FakeClient(script)
        self.clients.append(client)
        return client


async def wait_until(predicate, timeout=2.0):
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not met in time")
        await asyncio.sleep(0.005)


def run_subscription(factory, until, **kwargs):
    """Collect events until ``until(events, subscription)`` holds"""
    events = []

    async def scenario():
        subscription = EventStreamSubscription(
            URL, events.append, reconnect_delay=0.01, client_factory=factory, **kwargs
        )
        async with subscription:
            await wait_until(lambda: until(events, subscription))
        return subscription

    return events, asyncio.run(scenario())


def test_frames_split_across_chunks():
    settings = frame(SettingsChangedEvent(outcome_override=OutcomeOverride.WIN, updated_at=1, timestamp=2))
    factory = FakeClientFactory(send(
        frame(ConnectedEvent(timestamp=1))[:10],
        frame(ConnectedEvent(timestamp=1))[10:] + settings[:25],
        settings[25:],
    ))

    events, subscription = run_subscription(factory, lambda events, s: len(events) == 2)

    assert isinstance(events[0], ConnectedEvent)
    assert isinstance(events[1], SettingsChangedEvent)
    assert events[1].outcome_override == OutcomeOverride.WIN
    assert subscription.state == StreamState.CLOSED
    assert factory.clients[0].closed


def test_multibyte_symbols_split_mid_character():
    data = frame(ErrorEvent(message="🍒🍋 down", timestamp=1))
    split = data.index("🍒".encode('utf-8')) + 2
    factory = FakeClientFactory(send(data[:split], data[split:]))

    events, _ = run_subscription(factory, lambda events, s: len(events) == 1)

    assert events[0].message == "🍒🍋 down"


def test_crlf_line_endings():
    body = frame(HeartbeatEvent(timestamp=4)).replace(b'\n', b'\r\n')
    factory = FakeClientFactory(send(body[:-1], body[-1:]))

    events, subscription = run_subscription(factory, lambda events, s: len(events) == 1)

    assert isinstance(events[0], HeartbeatEvent)
    assert subscription.last_heartbeat_at is not None


def test_malformed_frames_are_skipped():
    factory = FakeClientFactory(send(
        b'data: not json\n\n',
        b': comment\n\n',
        b'data: {"type": "settings_changed", "outcomeOverride": "MAYBE"}\n\n',
        frame(HeartbeatEvent(timestamp=9)),
    ))

    events, _ = run_subscription(factory, lambda events, s: len(events) == 1)

    assert events == [HeartbeatEvent(timestamp=9)]


def test_handler_errors_do_not_kill_the_stream():
    received = []

    def on_event(event):
        received.append(event)
        if len(received) == 1:
            raise RuntimeError("handler bug")

    async def scenario():
        factory = FakeClientFactory(send(frame(ConnectedEvent(timestamp=1)), frame(HeartbeatEvent(timestamp=2))))
        async with EventStreamSubscription(URL, on_event, client_factory=factory) as subscription:
            await wait_until(lambda: len(received) == 2)
            return subscription.reconnects

    assert asyncio.run(scenario()) == 0


def test_reconnects_after_failure_and_runs_fallback_once():
    fallbacks = []

    async def fallback():
        fallbacks.append(True)

    factory = FakeClientFactory(fail(), fail(), fail(), send(frame(ConnectedEvent(timestamp=1))))

    events, subscription = run_subscription(
        factory, lambda events, s: len(events) == 1, on_fallback=fallback
    )

    assert subscription.reconnects == 3
    assert len(fallbacks) == 1
    assert len(factory.clients) == 4


def test_fallback_rearms_after_stream_opened():
    fallbacks = []

    async def fallback():
        fallbacks.append(True)

    factory = FakeClientFactory(
        fail(),
        send(frame(ConnectedEvent(timestamp=1)), then=None),
        fail(),
        send(frame(HeartbeatEvent(timestamp=2))),
    )

    run_subscription(factory, lambda events, s: len(events) == 2, on_fallback=fallback)

    assert len(fallbacks) == 2


def test_failing_fallback_keeps_retrying():
    async def fallback():
        raise ConnectionError("settings unavailable")

    factory = FakeClientFactory(fail(), send(frame(ConnectedEvent(timestamp=1))))

    events, subscription = run_subscription(
        factory, lambda events, s: len(events) == 1, on_fallback=fallback
    )

    assert subscription.reconnects == 1


def test_idle_stream_is_dropped_and_reopened():
    factory = FakeClientFactory(
        send(frame(ConnectedEvent(timestamp=1))),
        send(frame(HeartbeatEvent(timestamp=2))),
    )

    events, subscription = run_subscription(
        factory, lambda events, s: len(events) == 2, idle_timeout=0.05
    )

    assert subscription.reconnects >= 1
    assert factory.clients[0].closed


def test_close_cancels_pending_connection():
    factory = FakeClientFactory()

    async def scenario():
        subscription = EventStreamSubscription(URL, lambda event: None, client_factory=factory).start()
        await wait_until(lambda: len(factory.clients) == 1)
        assert subscription.state == StreamState.CONNECTING
        subscription.close()
        await subscription.wait_closed()
        return subscription

    subscription = asyncio.run(scenario())

    assert subscription.closed
    assert subscription.state == StreamState.CLOSED
    assert factory.clients[0].closed
    assert factory.clients[0].requests[0].headers["Accept"] == "text/event-stream"


def test_error_response_never_opens_the_stream():
    events, fallbacks, seen = [], [], set()
    subscription = None

    async def fallback():
        fallbacks.append(subscription.state)

    def observed(script):
        async def run(request):
            try:
                await script(request)
            finally:
                seen.add(subscription.state)
        return run

    factory = FakeClientFactory(
        observed(refuse()),
        observed(refuse(500)),
        observed(send(b'data: {"type": "heartbeat"}\n\n', then=None, content_type='text/plain')),
        send(frame(ConnectedEvent(timestamp=1))),
    )

    async def scenario():
        nonlocal subscription
        subscription = EventStreamSubscription(
            URL, events.append, reconnect_delay=0.01, client_factory=factory, on_fallback=fallback
        )
        async with subscription:
            await wait_until(lambda: len(events) == 1)

    asyncio.run(scenario())

    assert StreamState.OPEN not in seen
    assert fallbacks == [StreamState.CONNECTING]
    assert isinstance(events[0], ConnectedEvent)
    assert subscription.reconnects == 3


def test_state_is_connecting_while_waiting_to_reconnect():
    events = []

    async def scenario():
        factory = FakeClientFactory(send(frame(ConnectedEvent(timestamp=1)), then=None))
        async with EventStreamSubscription(URL, events.append, reconnect_delay=0.5, client_factory=factory) as subscription:
            await wait_until(lambda: subscription.reconnects == 1)
            return subscription.state

    assert asyncio.run(scenario()) == StreamState.CONNECTING
    assert len(events) == 1
