"""Prometheus metrics for the slot engine"""
from prometheus_client import Counter, Gauge

SPINS = Counter(
    'slot_spins_total',
    'Completed spins by generation mode',
    ['mode']
)
WINS = Counter(
    'slot_wins_total',
    'Spins that paid out'
)
BET_VOLUME = Counter(
    'slot_bet_volume_total',
    'Sum of bets placed'
)
PAYOUT_VOLUME = Counter(
    'slot_payout_volume_total',
    'Sum of winnings paid'
)
OVERRIDE_CHANGES = Counter(
    'slot_override_changes_total',
    'Override writes by value',
    ['value']
)
OVERRIDES_CONSUMED = Counter(
    'slot_overrides_consumed_total',
    'Armed overrides consumed by a spin',
    ['value']
)
STORE_ERRORS = Counter(
    'slot_settings_store_errors_total',
    'Settings store operations that failed',
    ['operation']
)
EVENTS_PUBLISHED = Counter(
    'slot_events_published_total',
    'Events published on the broadcast channel',
    ['type']
)
OPEN_STREAMS = Gauge(
    'slot_event_streams_open',
    'Push streams currently connected'
)
ACTIVE_SESSIONS = Gauge(
    'slot_sessions_active',
    'Server held player sessions'
)


def track_spin(mode: str, bet: int, win: int):
    SPINS.labels(mode=mode).inc()
    BET_VOLUME.inc(bet)
    PAYOUT_VOLUME.inc(win)
    if win > 0:
        WINS.inc()
