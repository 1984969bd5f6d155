"""Reel outcome generation"""
import itertools
import logging
import random
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from slot_engine.domain.entities.slot_symbols import (
    LOSING_COMBINATIONS,
    SYMBOL_WEIGHTS,
    SYMBOLS,
    Combination,
    PayoutTable,
    Symbol,
    format_combination,
)
from slot_engine.domain.entities.spin_result import GenerationMode
from slot_engine.domain.services.payout_evaluator import PayoutEvaluator

logger = logging.getLogger(__name__)

REEL_COUNT = 3

# Winning tiers by key multiplier: (lowest multiplier, cumulative selection probability)
HIGH_TIER_MIN_MULTIPLIER = 20
MEDIUM_TIER_MIN_MULTIPLIER = 5
HIGH_TIER_PROBABILITY = 0.10
MEDIUM_TIER_PROBABILITY = 0.30

LUCKY_WIN_PROBABILITY = 0.75
MAX_LOSING_ATTEMPTS = 10


class ReelGenerator:
    """Produces 3-symbol outcomes in one of the generation modes"""

    def __init__(
        self,
        payout_table: Optional[PayoutTable] = None,
        weights: Optional[Mapping[Symbol, int]] = None,
        rng: Optional[random.Random] = None,
        losing_combinations: Optional[Sequence[Combination]] = None
    ):
        self.payout_table = payout_table if payout_table is not None else PayoutTable()
        self.evaluator = PayoutEvaluator(self.payout_table)
        self.rng = rng or random.Random()

        weights = weights if weights is not None else SYMBOL_WEIGHTS
        self.weights: List[Tuple[Symbol, int]] = [(s, int(weights.get(s, 0))) for s in SYMBOLS]
        if any(w < 0 for _, w in self.weights):
            raise ValueError("Symbol weights must not be negative")
        self.total_weight = sum(w for _, w in self.weights)
        if self.total_weight <= 0:
            raise ValueError("Total symbol weight must be positive")

        self.losing_combinations = [
            tuple(c) for c in (losing_combinations if losing_combinations is not None else LOSING_COMBINATIONS)
        ]
        for combination in self.losing_combinations:
            if self.evaluator.is_winning(combination):
                raise ValueError(f"Fallback losing combination pays: {format_combination(combination)}")

        self.winning_tiers = self._build_winning_tiers()

    def generate(self, mode: GenerationMode) -> List[Symbol]:
        """Generate reels for ``mode``"""
        if mode == GenerationMode.RANDOM:
            return self.random_reels()
        if mode == GenerationMode.WINNING:
            return self.winning_reels()
        if mode == GenerationMode.LOSING:
            return self.losing_reels()
        if mode == GenerationMode.LUCKY:
            return self.lucky_reels()
        raise ValueError(f"Unknown generation mode: {mode!r}")

    def select_symbol(self) -> Symbol:
        """One weighted draw"""
        value = self.rng.random() * self.total_weight
        running = 0
        for symbol, weight in self.weights:
            running += weight
            if value < running:
                return symbol
        # Only reachable through float rounding at the upper edge
        return next(s for s, w in reversed(self.weights) if w > 0)

    def random_reels(self) -> List[Symbol]:
        return [self.select_symbol() for _ in range(REEL_COUNT)]

    def winning_reels(self) -> List[Symbol]:
        """Pick a tier, then a payout key in it, then one of its combinations"""
        roll = self.rng.random()
        if roll < HIGH_TIER_PROBABILITY:
            start = 0
        elif roll < HIGH_TIER_PROBABILITY + MEDIUM_TIER_PROBABILITY:
            start = 1
        else:
            start = 2

        # An empty tier falls through to the next lower tier, then back up
        order = list(range(start, 3)) + list(range(start - 1, -1, -1))
        for index in order:
            tier = self.winning_tiers[index]
            if tier:
                combinations = self.rng.choice(tier)
                return list(self.rng.choice(combinations))
        raise RuntimeError("Payout table has no winning combinations")

    def losing_reels(self) -> List[Symbol]:
        """Weighted draws until one pays nothing, bounded by a fallback table"""
        for _ in range(MAX_LOSING_ATTEMPTS):
            reels = self.random_reels()
            if not self.evaluator.is_winning(reels):
                return reels
        logger.debug("No losing draw found, using fallback combination")
        return list(self.rng.choice(self.losing_combinations))

    def lucky_reels(self) -> List[Symbol]:
        if self.rng.random() < LUCKY_WIN_PROBABILITY:
            return self.winning_reels()
        return self.random_reels()

    def _build_winning_tiers(self) -> List[List[List[Combination]]]:
        """Expand every payout key into the concrete outcomes it pays on

        Returns [high, medium, low], each a list with one entry per payout key
        holding that key's combinations.
        """
        tiers: Dict[int, List[List[Combination]]] = {0: [], 1: [], 2: []}
        ordered = sorted(self.payout_table.items(), key=lambda item: item[1], reverse=True)
        for key, multiplier in ordered:
            free = REEL_COUNT - len(key)
            combinations = [
                key + tail for tail in itertools.product(SYMBOLS, repeat=free)
            ]
            combinations = [c for c in combinations if self.evaluator.is_winning(c)]
            if not combinations:
                continue
            if multiplier >= HIGH_TIER_MIN_MULTIPLIER:
                tiers[0].append(combinations)
            elif multiplier >= MEDIUM_TIER_MIN_MULTIPLIER:
                tiers[1].append(combinations)
            else:
                tiers[2].append(combinations)
        return [tiers[0], tiers[1], tiers[2]]
