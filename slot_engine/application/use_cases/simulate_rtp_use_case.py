"""Return-to-player simulation use case"""
import logging
import random
from typing import Optional

import numpy as np
import sentry_sdk
from sentry_sdk import start_span

from slot_engine.application.dto.rtp_simulation_request import RtpSimulationRequest
from slot_engine.application.dto.rtp_simulation_response import RtpSimulationResponse
from slot_engine.domain.entities.slot_symbols import SYMBOLS
from slot_engine.domain.entities.spin_result import GenerationMode
from slot_engine.domain.services.reel_generator import ReelGenerator

logger = logging.getLogger(__name__)


class SimulateRtpUseCase:
    """Use case for measuring the house edge of each generation mode

    Runs the same generator the sessions use, at a bet of 1, and reports the
    mean multiplier (RTP), the share of paying spins and the spread. RANDOM
    mode also gets the exact RTP from the symbol weights.
    """

    def __init__(self, reel_generator: Optional[ReelGenerator] = None):
        self.reel_generator = reel_generator or ReelGenerator()

    def execute(self, request: RtpSimulationRequest) -> RtpSimulationResponse:
        try:
            generator = ReelGenerator(
                payout_table=self.reel_generator.payout_table,
                weights=dict(self.reel_generator.weights),
                rng=random.Random(request.seed),
                losing_combinations=self.reel_generator.losing_combinations
            )
            evaluator = generator.evaluator

            with start_span(op="game.rtp_simulation", name="Simulate spins") as span:
                multipliers = np.empty(request.spins, dtype=np.int64)
                for i in range(request.spins):
                    multipliers[i] = evaluator.multiplier(generator.generate(request.mode))
                span.set_data("spins", request.spins)
                span.set_data("mode", request.mode.value)

            values, counts = np.unique(multipliers, return_counts=True)
            response = RtpSimulationResponse(
                mode=request.mode.value,
                spins=request.spins,
                rtp=round(float(multipliers.mean()), 6),
                hit_frequency=round(float(np.count_nonzero(multipliers) / request.spins), 6),
                max_multiplier=int(multipliers.max()),
                volatility=round(float(multipliers.std()), 6),
                multiplier_counts={str(int(v)): int(c) for v, c in zip(values, counts)}
            )
            if request.mode == GenerationMode.RANDOM:
                response.theoretical_rtp = round(self.theoretical_rtp(), 6)

            logger.info(
                f"RTP simulation {request.mode.value} x{request.spins}: "
                f"rtp={response.rtp} hit={response.hit_frequency}"
            )
            return response

        except Exception as e:
            sentry_sdk.capture_exception(e)
            return RtpSimulationResponse(
                mode=request.mode.value,
                spins=request.spins,
                error=str(e)
            )

    def theoretical_rtp(self) -> float:
        """Exact expected multiplier of weighted-random spins"""
        generator = self.reel_generator
        weights = np.array([w for _, w in generator.weights], dtype=np.float64)
        probabilities = weights / weights.sum()
        joint = np.einsum('i,j,k->ijk', probabilities, probabilities, probabilities)

        size = len(SYMBOLS)
        multipliers = np.zeros((size, size, size), dtype=np.float64)
        for i, first in enumerate(SYMBOLS):
            for j, second in enumerate(SYMBOLS):
                for k, third in enumerate(SYMBOLS):
                    multipliers[i, j, k] = generator.evaluator.multiplier((first, second, third))
        return float((joint * multipliers).sum())
