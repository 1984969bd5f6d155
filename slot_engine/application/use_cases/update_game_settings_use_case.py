"""Update game settings use case"""
from slot_engine.application.dto.settings_response import SettingsResponse
from slot_engine.application.dto.update_settings_request import UpdateSettingsRequest
from slot_engine.application.ports.override_state_port import OverrideStatePort


class UpdateGameSettingsUseCase:
    """Use case for the operator arming or clearing the outcome override"""

    def __init__(self, override_state: OverrideStatePort):
        self.override_state = override_state

    async def execute(self, request: UpdateSettingsRequest) -> SettingsResponse:
        """Persist and broadcast, even when the value is unchanged"""
        state = await self.override_state.try_set(request.outcome_override)
        if state is None:
            return SettingsResponse(
                error="Internal server error",
                message="Failed to persist game settings"
            )
        return SettingsResponse(state=state, success=True)
