"""Get game settings use case"""
from slot_engine.application.dto.settings_response import SettingsResponse
from slot_engine.application.ports.override_state_port import OverrideStatePort


class GetGameSettingsUseCase:
    """Use case for reading the current outcome override"""

    def __init__(self, override_state: OverrideStatePort):
        self.override_state = override_state

    async def execute(self) -> SettingsResponse:
        state = await self.override_state.get()
        return SettingsResponse(state=state)
