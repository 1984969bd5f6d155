"""Operator command line for a running slot engine

    slot-engine-admin get
    slot-engine-admin set win
    slot-engine-admin watch
    slot-engine-admin play --spins 20 --bet 10
"""
import argparse
import asyncio
import json
import logging
import os
import sys

import requests

from slot_engine.application.services.session_engine import GameSessionEngine
from slot_engine.domain.entities.game_event import GameEvent, SettingsChangedEvent
from slot_engine.domain.entities.game_session import DEFAULT_BET, GameSession
from slot_engine.domain.entities.outcome_override import OutcomeOverride
from slot_engine.infrastructure.external.http_override_client import HttpOverrideClient
from slot_engine.infrastructure.external.sse_event_stream import EventStreamSubscription

logger = logging.getLogger(__name__)

DEFAULT_URL = os.environ.get('SLOT_ENGINE_URL', 'http://localhost:8082')


def get_settings(args) -> int:
    response = requests.get(f"{args.url}/game-settings", timeout=args.timeout)
    print(json.dumps(response.json(), indent=2))
    return 0 if response.ok else 1


def set_settings(args) -> int:
    response = requests.post(
        f"{args.url}/admin-settings",
        json={"outcomeOverride": args.value},
        timeout=args.timeout
    )
    print(json.dumps(response.json(), indent=2))
    return 0 if response.ok else 1


def print_event(event: GameEvent):
    print(json.dumps(event.to_dict(), ensure_ascii=False), flush=True)


async def watch_events(args):
    async with EventStreamSubscription(f"{args.url}/game-events", print_event) as subscription:
        while not subscription.closed:
            await asyncio.sleep(1)


async def play_session(args) -> int:
    client = HttpOverrideClient(args.url)
    engine = GameSessionEngine(override_state=client, session=GameSession(default_bet=args.bet), spin_delay=args.delay)

    def on_event(event: GameEvent):
        engine.on_event(event)
        if isinstance(event, SettingsChangedEvent):
            print(f"override: {event.outcome_override.value}", flush=True)

    stream = EventStreamSubscription(f"{args.url}/game-events", on_event, on_fallback=engine.sync)
    engine.attach(stream.start())
    await engine.sync()

    try:
        for number in range(1, args.spins + 1):
            result = await engine.spin()
            if not result.spun:
                print("Insufficient balance, stopping")
                break
            print(
                f"#{number:>3} {result.to_dict()['display']}  {result.mode.value:<7} "
                f"bet={result.bet} win={result.win} balance={result.balance}",
                flush=True
            )
    finally:
        engine.close()
        await stream.wait_closed()

    print(json.dumps(engine.session.to_dict(), ensure_ascii=False, indent=2))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="slot-engine-admin", description="Slot engine operator tools")
    parser.add_argument("--url", default=DEFAULT_URL, help="Slot engine base URL")
    parser.add_argument("--timeout", type=float, default=5.0, help="HTTP timeout in seconds")
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("get", help="Show the current outcome override")

    set_parser = commands.add_parser("set", help="Arm or clear the outcome override")
    set_parser.add_argument("value", choices=[o.value for o in OutcomeOverride])

    commands.add_parser("watch", help="Print game events as they arrive")

    play_parser = commands.add_parser("play", help="Play a session against the server")
    play_parser.add_argument("--spins", type=int, default=10, help="Number of spins")
    play_parser.add_argument("--bet", type=int, default=DEFAULT_BET, help="Bet per spin")
    play_parser.add_argument("--delay", type=float, default=0.5, help="Seconds per spin")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=os.environ.get('LOG_LEVEL', 'WARNING').upper())
    args.url = args.url.rstrip('/')

    try:
        if args.command == "get":
            return get_settings(args)
        if args.command == "set":
            return set_settings(args)
        if args.command == "watch":
            asyncio.run(watch_events(args))
            return 0
        return asyncio.run(play_session(args))
    except requests.RequestException as e:
        print(f"Request failed: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    sys.exit(main())
