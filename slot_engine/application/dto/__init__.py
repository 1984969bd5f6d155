from .update_settings_request import UpdateSettingsRequest
from .settings_response import SettingsResponse
from .rtp_simulation_request import RtpSimulationRequest
from .rtp_simulation_response import RtpSimulationResponse

__all__ = [
    'UpdateSettingsRequest',
    'SettingsResponse',
    'RtpSimulationRequest',
    'RtpSimulationResponse'
]
