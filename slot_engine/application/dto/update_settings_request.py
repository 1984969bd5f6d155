"""Update game settings request DTO"""
from dataclasses import dataclass

from slot_engine.domain.entities.outcome_override import OutcomeOverride


@dataclass
class UpdateSettingsRequest:
    """Request DTO for an operator override write"""

    outcome_override: OutcomeOverride

    @classmethod
    def from_dict(cls, data: dict) -> 'UpdateSettingsRequest':
        """Create from camelCase dictionary, raises ValueError on a bad value"""
        if not isinstance(data, dict):
            raise ValueError("Request body must be a JSON object")
        return cls(
            outcome_override=OutcomeOverride.parse(data.get('outcomeOverride'))
        )
