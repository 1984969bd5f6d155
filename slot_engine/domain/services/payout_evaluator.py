"""Payout evaluation"""
from typing import Optional, Sequence

from slot_engine.domain.entities.slot_symbols import PayoutTable, Symbol


class PayoutEvaluator:
    """Maps a 3-symbol outcome and a bet to a win amount

    The first rule whose key exists in the table decides the multiplier:

    1. all three symbols identical: triple key
    2. first two symbols identical: pair key
    3. the exact three symbol key
    4. the first symbol alone: single key

    A triple always resolves before a pair or single key for the same symbol
    can be looked at, so all-cherries pays the triple-cherry multiplier.
    """

    def __init__(self, payout_table: Optional[PayoutTable] = None):
        self.payout_table = payout_table if payout_table is not None else PayoutTable()

    def multiplier(self, reels: Sequence[Symbol]) -> int:
        """Multiplier for an outcome, 0 when nothing pays"""
        if len(reels) != 3:
            raise ValueError(f"Expected 3 reels, got {len(reels)}")
        first, second, third = reels
        table = self.payout_table

        if first == second == third:
            multiplier = table.get_multiplier((first, second, third))
            if multiplier:
                return multiplier

        if first == second:
            multiplier = table.get_multiplier((first, second))
            if multiplier:
                return multiplier

        multiplier = table.get_multiplier((first, second, third))
        if multiplier:
            return multiplier

        multiplier = table.get_multiplier((first,))
        if multiplier:
            return multiplier

        return 0

    def evaluate(self, reels: Sequence[Symbol], bet: int) -> int:
        """Win amount for ``reels`` at ``bet``"""
        if bet < 0:
            raise ValueError(f"Bet must not be negative: {bet}")
        return self.multiplier(reels) * bet

    def is_winning(self, reels: Sequence[Symbol]) -> bool:
        return self.multiplier(reels) > 0
