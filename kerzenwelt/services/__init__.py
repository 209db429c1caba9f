"""Service layer for business logic."""

from kerzenwelt.services.setting_service import SettingService, get_setting_service

__all__ = [
    "SettingService",
    "get_setting_service",
]
