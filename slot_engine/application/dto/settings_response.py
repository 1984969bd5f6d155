"""Game settings response DTO"""
from dataclasses import dataclass
from typing import Optional

from slot_engine.domain.entities.outcome_override import OverrideState


@dataclass
class SettingsResponse:
    """Response DTO for settings reads and writes"""

    state: Optional[OverrideState] = None
    success: Optional[bool] = None
    error: Optional[str] = None
    message: Optional[str] = None

    def to_dict(self) -> dict:
        """Convert to camelCase dictionary"""
        if self.error:
            result = {"error": self.error}
            if self.message:
                result["message"] = self.message
            return result

        result = {}
        if self.success is not None:
            result["success"] = self.success
        if self.state:
            result.update(self.state.to_dict())
        return result
