from .get_game_settings_use_case import GetGameSettingsUseCase
from .update_game_settings_use_case import UpdateGameSettingsUseCase
from .manage_sessions_use_case import ManageSessionsUseCase, SessionNotFoundError
from .simulate_rtp_use_case import SimulateRtpUseCase

__all__ = [
    'GetGameSettingsUseCase',
    'UpdateGameSettingsUseCase',
    'ManageSessionsUseCase',
    'SessionNotFoundError',
    'SimulateRtpUseCase'
]
