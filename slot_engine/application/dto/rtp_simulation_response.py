"""RTP simulation response DTO"""
from dataclasses import dataclass
from typing import Optional, Dict


@dataclass
class RtpSimulationResponse:
    """Response DTO for a Monte Carlo return-to-player run"""

    mode: str
    spins: int
    rtp: float = 0.0
    hit_frequency: float = 0.0
    max_multiplier: int = 0
    volatility: float = 0.0
    theoretical_rtp: Optional[float] = None
    multiplier_counts: Optional[Dict[str, int]] = None
    error: Optional[str] = None

    @property
    def house_edge(self) -> float:
        return round(1.0 - self.rtp, 6)

    def to_dict(self) -> dict:
        """Convert to camelCase dictionary"""
        if self.error:
            return {"error": self.error}
        result = {
            "mode": self.mode,
            "spins": self.spins,
            "rtp": self.rtp,
            "houseEdge": self.house_edge,
            "hitFrequency": self.hit_frequency,
            "maxMultiplier": self.max_multiplier,
            "volatility": self.volatility
        }
        if self.theoretical_rtp is not None:
            result["theoreticalRtp"] = self.theoretical_rtp
        if self.multiplier_counts:
            result["multiplierCounts"] = self.multiplier_counts
        return result
