"""Service for managing shop settings."""

import json
import logging

from pydantic import ValidationError
from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from kerzenwelt.exceptions import ConflictException
from kerzenwelt.models.setting import Setting
from kerzenwelt.schemas.setting import ContactSettings, HeroSettings

logger = logging.getLogger(__name__)

HERO_SETTINGS_KEY = "heroSettings"

# Contact settings field -> storage key
CONTACT_SETTING_KEYS = {
    "address": "contact_address",
    "city": "contact_city",
    "postal_code": "contact_postal_code",
    "phone": "contact_phone",
    "email": "contact_email",
    "working_hours": "contact_working_hours",
}

DEFAULT_HERO_SETTINGS = {
    "titleText": {
        "de": "Handgefertigte Kerzen für besondere Momente",
        "hr": "Ručno izrađene svijeće za posebne trenutke",
        "en": "Handmade Candles for Special Moments",
        "it": "Candele artigianali per momenti speciali",
        "sl": "Ročno izdelane sveče za posebne trenutke",
    },
    "subtitleText": {
        "de": "Entdecken Sie unsere einzigartige Sammlung handgefertigter Kerzen, perfekt für jede Gelegenheit.",
        "hr": "Otkrijte našu jedinstvenu kolekciju ručno izrađenih svijeća, savršenih za svaku prigodu.",
        "en": "Discover our unique collection of handcrafted candles, perfect for any occasion.",
        "it": "Scopri la nostra collezione unica di candele artigianali, perfette per ogni occasione.",
        "sl": "Odkrijte našo edinstveno zbirko ročno izdelanih sveč, popolnih za vsako priložnost.",
    },
}


class SettingService:
    """Service for reading and writing key/value settings."""

    async def list_settings(self, db: AsyncSession) -> list[Setting]:
        """Get all settings in insertion order."""
        result = await db.execute(select(Setting).order_by(Setting.id))
        return list(result.scalars().all())

    async def get_setting(self, db: AsyncSession, key: str) -> Setting | None:
        """Get a setting by key."""
        result = await db.execute(select(Setting).where(Setting.key == key))
        return result.scalar_one_or_none()

    async def create_setting(self, db: AsyncSession, key: str, value: str) -> Setting:
        """Create a new setting.

        Raises:
            ConflictException: If a setting with this key already exists,
                including when a concurrent writer wins the unique constraint.
        """
        if await self.get_setting(db, key):
            raise ConflictException(f"Setting with key '{key}' already exists")

        setting = Setting(key=key, value=value)
        db.add(setting)
        try:
            await db.flush()
        except IntegrityError:
            await db.rollback()
            raise ConflictException(f"Setting with key '{key}' already exists")
        await db.refresh(setting)

        logger.info(f"Created setting {key}")
        return setting

    async def update_setting(self, db: AsyncSession, key: str, value: str) -> Setting | None:
        """Update the value of an existing setting. Returns None if it doesn't exist."""
        setting = await self.get_setting(db, key)
        if not setting:
            return None

        setting.value = value
        await db.flush()
        await db.refresh(setting)

        logger.info(f"Updated setting {key}")
        return setting

    async def delete_setting(self, db: AsyncSession, key: str) -> None:
        """Delete a setting by key. Deleting an absent key is a no-op."""
        await db.execute(delete(Setting).where(Setting.key == key))
        await db.flush()
        logger.info(f"Deleted setting {key}")

    async def upsert_setting(self, db: AsyncSession, key: str, value: str) -> Setting:
        """Create or update a setting within the caller's transaction."""
        setting = await self.get_setting(db, key)
        if setting:
            setting.value = value
        else:
            setting = Setting(key=key, value=value)
            db.add(setting)

        await db.flush()
        await db.refresh(setting)
        return setting

    async def get_hero_settings(self, db: AsyncSession) -> HeroSettings:
        """Get hero banner settings, falling back to the built-in defaults."""
        setting = await self.get_setting(db, HERO_SETTINGS_KEY)
        if setting:
            try:
                return HeroSettings.model_validate(json.loads(setting.value))
            except (ValueError, ValidationError) as e:
                logger.warning(f"Stored hero settings are invalid, using defaults: {e}")
        return HeroSettings.model_validate(DEFAULT_HERO_SETTINGS)

    async def save_hero_settings(self, db: AsyncSession, hero: HeroSettings) -> Setting:
        """Store hero banner settings as JSON."""
        value = json.dumps(hero.model_dump(by_alias=True), ensure_ascii=False)
        return await self.upsert_setting(db, HERO_SETTINGS_KEY, value)

    async def get_contact_settings(self, db: AsyncSession) -> ContactSettings:
        """Get contact settings; unset fields are empty strings."""
        result = await db.execute(
            select(Setting).where(Setting.key.in_(CONTACT_SETTING_KEYS.values()))
        )
        stored = {setting.key: setting.value for setting in result.scalars().all()}

        return ContactSettings(
            **{field: stored.get(key, "") for field, key in CONTACT_SETTING_KEYS.items()}
        )

    async def save_contact_settings(self, db: AsyncSession, contact: ContactSettings) -> None:
        """Store each contact field under its own setting key."""
        values = contact.model_dump()
        for field, key in CONTACT_SETTING_KEYS.items():
            await self.upsert_setting(db, key, values[field])


# Singleton instance
_setting_service: SettingService | None = None


def get_setting_service() -> SettingService:
    """Get the setting service singleton."""
    global _setting_service
    if _setting_service is None:
        _setting_service = SettingService()
    return _setting_service
