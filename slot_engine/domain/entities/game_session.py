"""Per-player game session state"""
from dataclasses import dataclass, field
from typing import List

from slot_engine.domain.entities.slot_symbols import INITIAL_REELS, Symbol

INITIAL_BALANCE = 1000
DEFAULT_BET = 10
MIN_BET = 1
BET_STEP = 5
# Spins covered by beginner's luck
LUCK_WINDOW_SPINS = 2


@dataclass
class GameSession:
    """In-memory state of one player's session

    Only the owning session engine mutates it. Nothing is persisted.
    """

    initial_balance: int = INITIAL_BALANCE
    min_bet: int = MIN_BET
    default_bet: int = DEFAULT_BET
    luck_enabled: bool = True
    balance: int = field(init=False)
    bet_amount: int = field(init=False)
    last_win: int = field(init=False)
    total_spins: int = field(init=False)
    total_wins: int = field(init=False)
    is_spinning: bool = field(init=False)
    beginners_luck: bool = field(init=False)
    reels: List[Symbol] = field(init=False)

    def __post_init__(self):
        self.reset()

    def reset(self):
        """Back to a fresh session"""
        self.balance = self.initial_balance
        self.bet_amount = max(self.min_bet, min(self.default_bet, self.balance))
        self.last_win = 0
        self.total_spins = 0
        self.total_wins = 0
        self.is_spinning = False
        self.beginners_luck = self.luck_enabled
        self.reels = list(INITIAL_REELS)

    @property
    def luck_window_open(self) -> bool:
        return self.beginners_luck and self.total_spins < LUCK_WINDOW_SPINS

    @property
    def can_spin(self) -> bool:
        return not self.is_spinning and self.balance >= self.bet_amount

    @property
    def win_rate(self) -> float:
        """Percentage of spins that paid out"""
        if not self.total_spins:
            return 0.0
        return round(self.total_wins / self.total_spins * 100, 1)

    def set_bet(self, amount: int) -> int:
        """Clamp the bet to [min_bet, balance]"""
        self.bet_amount = max(self.min_bet, min(int(amount), self.balance))
        return self.bet_amount

    def increase_bet(self) -> int:
        return self.set_bet(self.bet_amount + BET_STEP)

    def decrease_bet(self) -> int:
        return self.set_bet(self.bet_amount - BET_STEP)

    def record_spin(self, reels: List[Symbol], bet: int, win: int):
        """Apply one completed spin"""
        self.balance = self.balance - bet + win
        self.last_win = win
        self.total_spins += 1
        if win > 0:
            self.total_wins += 1
        self.reels = list(reels)
        # The luck window never reopens once crossed
        if self.total_spins >= LUCK_WINDOW_SPINS:
            self.beginners_luck = False

    def to_dict(self) -> dict:
        return {
            "balance": self.balance,
            "betAmount": self.bet_amount,
            "lastWin": self.last_win,
            "totalSpins": self.total_spins,
            "totalWins": self.total_wins,
            "winRate": self.win_rate,
            "isSpinning": self.is_spinning,
            "beginnersLuck": self.beginners_luck,
            "reels": [s.value for s in self.reels]
        }
