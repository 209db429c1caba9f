"""Pydantic schemas for request/response validation."""

from kerzenwelt.schemas.common import APIResponse, CamelSchema, ErrorResponse
from kerzenwelt.schemas.setting import (
    ContactSettings,
    HeroSettings,
    SettingCreate,
    SettingResponse,
    SettingUpdate,
)

__all__ = [
    "APIResponse",
    "CamelSchema",
    "ErrorResponse",
    "ContactSettings",
    "HeroSettings",
    "SettingCreate",
    "SettingResponse",
    "SettingUpdate",
]
