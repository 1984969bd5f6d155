"""Slot machine symbols, weights and payout table"""
from collections import abc
from enum import Enum
from types import MappingProxyType
from typing import Dict, Iterator, List, Mapping, Optional, Sequence, Tuple


class Symbol(str, Enum):
    """Reel symbols"""

    CHERRY = '🍒'
    LEMON = '🍋'
    ORANGE = '🍊'
    BELL = '🔔'
    STAR = '⭐'
    DIAMOND = '💎'
    SEVEN = '7️⃣'


SYMBOLS: List[Symbol] = list(Symbol)

# Higher value symbols are rarer
SYMBOL_WEIGHTS: Dict[Symbol, int] = {
    Symbol.CHERRY: 30,   # most common
    Symbol.LEMON: 25,
    Symbol.ORANGE: 20,
    Symbol.BELL: 10,
    Symbol.STAR: 8,
    Symbol.DIAMOND: 5,
    Symbol.SEVEN: 2,     # least common
}

Combination = Tuple[Symbol, ...]

DEFAULT_PAYOUTS: Dict[Combination, int] = {
    (Symbol.DIAMOND, Symbol.DIAMOND, Symbol.DIAMOND): 50,
    (Symbol.SEVEN, Symbol.SEVEN, Symbol.SEVEN): 30,
    (Symbol.STAR, Symbol.STAR, Symbol.STAR): 20,
    (Symbol.BELL, Symbol.BELL, Symbol.BELL): 15,
    (Symbol.ORANGE, Symbol.ORANGE, Symbol.ORANGE): 10,
    (Symbol.LEMON, Symbol.LEMON, Symbol.LEMON): 8,
    (Symbol.CHERRY, Symbol.CHERRY, Symbol.CHERRY): 5,
    (Symbol.DIAMOND, Symbol.DIAMOND): 3,
    (Symbol.SEVEN, Symbol.SEVEN): 2,
    (Symbol.CHERRY, Symbol.CHERRY): 2,
    (Symbol.CHERRY,): 1,
}

# Known non-paying outcomes used when random losing draws run out
LOSING_COMBINATIONS: List[Combination] = [
    (Symbol.LEMON, Symbol.ORANGE, Symbol.BELL),
    (Symbol.BELL, Symbol.STAR, Symbol.DIAMOND),
    (Symbol.DIAMOND, Symbol.LEMON, Symbol.STAR),
    (Symbol.SEVEN, Symbol.ORANGE, Symbol.LEMON),
    (Symbol.STAR, Symbol.SEVEN, Symbol.BELL),
    (Symbol.ORANGE, Symbol.DIAMOND, Symbol.SEVEN),
]

INITIAL_REELS: Combination = (Symbol.CHERRY, Symbol.LEMON, Symbol.ORANGE)


class PayoutTable(abc.Mapping):
    """Read-only mapping from a 1, 2 or 3 symbol combination to a multiplier"""

    def __init__(self, payouts: Optional[Mapping[Sequence[Symbol], int]] = None):
        entries = {}
        for key, multiplier in (payouts if payouts is not None else DEFAULT_PAYOUTS).items():
            combination = tuple(Symbol(s) for s in key)
            if not 1 <= len(combination) <= 3:
                raise ValueError(f"Payout key must have 1 to 3 symbols: {key!r}")
            if int(multiplier) <= 0:
                raise ValueError(f"Multiplier for {format_combination(combination)} must be positive")
            entries[combination] = int(multiplier)
        self._entries = MappingProxyType(entries)

    def __getitem__(self, key: Sequence[Symbol]) -> int:
        return self._entries[tuple(key)]

    def __iter__(self) -> Iterator[Combination]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def get_multiplier(self, combination: Sequence[Symbol]) -> Optional[int]:
        """Multiplier for an exact key, None when the table has no such key"""
        return self._entries.get(tuple(combination))

    def to_dict(self) -> Dict[str, int]:
        return {format_combination(key): value for key, value in self._entries.items()}


def format_combination(combination: Sequence[Symbol]) -> str:
    """Join symbols into their display string"""
    return ''.join(s.value for s in combination)
