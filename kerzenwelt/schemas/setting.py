"""Pydantic schemas for Setting entities and composite settings."""

from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from kerzenwelt.schemas.common import CamelSchema

# Keys served by the composite endpoints under /api/settings
RESERVED_SETTING_KEYS = frozenset({"hero", "contact"})


class SettingCreate(BaseModel):
    """Schema for creating a setting."""

    key: str = Field(..., min_length=1, max_length=255)
    value: str

    @field_validator("key")
    @classmethod
    def key_not_reserved(cls, v: str) -> str:
        """Reject keys that would be shadowed by the composite endpoints."""
        if v in RESERVED_SETTING_KEYS:
            raise ValueError(f"'{v}' is a reserved setting key")
        return v


class SettingUpdate(BaseModel):
    """Schema for updating a setting's value."""

    value: str


class SettingResponse(CamelSchema):
    """A setting as returned by the API (``createdAt``/``updatedAt`` on the wire)."""

    id: int
    key: str
    value: str
    created_at: datetime
    updated_at: datetime


class HeroSettings(CamelSchema):
    """Hero banner settings, stored as JSON under ``heroSettings``."""

    title_text: dict[str, str]
    subtitle_text: dict[str, str]
    title_font_size: str = "4xl md:text-5xl lg:text-6xl"
    title_font_weight: str = "bold"
    title_color: str = "white"
    subtitle_font_size: str = "lg md:text-xl"
    subtitle_font_weight: str = "normal"
    subtitle_color: str = "white opacity-90"


class ContactSettings(CamelSchema):
    """Contact details shown on the contact page and in the footer."""

    address: str = ""
    city: str = ""
    postal_code: str = ""
    phone: str = ""
    email: str = ""
    working_hours: str = ""
