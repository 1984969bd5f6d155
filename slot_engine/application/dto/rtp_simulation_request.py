"""RTP simulation request DTO"""
from dataclasses import dataclass

from slot_engine.domain.entities.spin_result import GenerationMode

MAX_SIMULATION_SPINS = 1_000_000


@dataclass
class RtpSimulationRequest:
    """Request DTO for a Monte Carlo return-to-player run"""

    spins: int = 100_000
    mode: GenerationMode = GenerationMode.RANDOM
    seed: int = None

    @classmethod
    def from_dict(cls, data: dict) -> 'RtpSimulationRequest':
        """Create from dictionary, raises ValueError on bad input"""
        spins = int(data.get('spins', 100_000))
        if not 1 <= spins <= MAX_SIMULATION_SPINS:
            raise ValueError(f"spins must be between 1 and {MAX_SIMULATION_SPINS}")
        seed = data.get('seed')
        return cls(
            spins=spins,
            mode=GenerationMode(data.get('mode', GenerationMode.RANDOM.value)),
            seed=int(seed) if seed is not None else None
        )
