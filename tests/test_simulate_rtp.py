import pytest

from slot_engine.application.dto.rtp_simulation_request import RtpSimulationRequest
from slot_engine.application.use_cases.simulate_rtp_use_case import SimulateRtpUseCase
from slot_engine.domain.entities.slot_symbols import PayoutTable, Symbol
from slot_engine.domain.entities.spin_result import GenerationMode
from slot_engine.domain.services.reel_generator import ReelGenerator


@pytest.fixture
def use_case():
    return SimulateRtpUseCase(ReelGenerator())


def test_random_rtp_converges_to_theoretical(use_case):
    result = use_case.execute(RtpSimulationRequest(spins=200_000, seed=5))

    assert result.error is None
    assert result.rtp == pytest.approx(result.theoretical_rtp, abs=0.03)


def test_same_seed_same_report(use_case):
    first = use_case.execute(RtpSimulationRequest(spins=2000, seed=1))
    second = use_case.execute(RtpSimulationRequest(spins=2000, seed=1))

    assert first.to_dict() == second.to_dict()


def test_winning_mode_always_hits(use_case):
    result = use_case.execute(RtpSimulationRequest(spins=3000, mode=GenerationMode.WINNING, seed=2))

    assert result.hit_frequency == 1.0
    assert result.rtp > 1.0
    assert result.theoretical_rtp is None
    assert "0" not in result.multiplier_counts


def test_theoretical_rtp_for_single_symbol_reels():
    # Every spin is triple cherry
    generator = ReelGenerator(weights={Symbol.CHERRY: 1})
    assert SimulateRtpUseCase(generator).theoretical_rtp() == pytest.approx(5.0)


def test_theoretical_rtp_with_custom_table():
    table = PayoutTable({(Symbol.CHERRY,): 1})
    generator = ReelGenerator(payout_table=table, weights={Symbol.CHERRY: 1, Symbol.LEMON: 1})
    # Cherry on the first reel half the time
    assert SimulateRtpUseCase(generator).theoretical_rtp() == pytest.approx(0.5)


def test_request_validation():
    with pytest.raises(ValueError):
        RtpSimulationRequest.from_dict({"spins": 2_000_000})
    with pytest.raises(ValueError):
        RtpSimulationRequest.from_dict({"mode": "bonus"})

    request = RtpSimulationRequest.from_dict({"spins": "10", "mode": "lucky", "seed": 3})
    assert request == RtpSimulationRequest(spins=10, mode=GenerationMode.LUCKY, seed=3)
