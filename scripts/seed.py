#!/usr/bin/env python3
"""
Development seed data script.

Creates default shop settings for development:
- store name
- shipping thresholds and rates
- contact details
- hero banner (built-in defaults)

Usage:
    python scripts/seed.py
    python scripts/seed.py --force   # overwrite existing values
"""

import argparse
import asyncio
import sys
from pathlib import Path

# Add the project root to the path
sys.path.insert(0, str(Path(__file__).parent.parent))

from kerzenwelt.database import engine, get_db_context, init_db
from kerzenwelt.schemas.setting import HeroSettings
from kerzenwelt.services.setting_service import DEFAULT_HERO_SETTINGS, get_setting_service

DEFAULT_SETTINGS = {
    "storeName": "Kerzenwelt",
    "freeShippingThreshold": "50",
    "standardShippingRate": "5",
    "expressShippingRate": "15",
    "contact_address": "Ilica 1",
    "contact_city": "Zagreb",
    "contact_postal_code": "10000",
    "contact_phone": "+385 1 234 5678",
    "contact_email": "info@kerzenwelt.hr",
    "contact_working_hours": "Mon-Fri 9:00-17:00",
}


async def seed_database(force: bool = False) -> bool:
    """Seed the database with default settings."""
    print("\n" + "=" * 50)
    print("Kerzenwelt - Seeding Development Settings")
    print("=" * 50 + "\n")

    await init_db()
    service = get_setting_service()

    async with get_db_context() as session:
        for key, value in DEFAULT_SETTINGS.items():
            existing = await service.get_setting(session, key)
            if existing and not force:
                print(f"  = {key} (kept: {existing.value})")
                continue
            await service.upsert_setting(session, key, value)
            print(f"  + {key} = {value}")

        if force or not await service.get_setting(session, "heroSettings"):
            await service.save_hero_settings(session, HeroSettings.model_validate(DEFAULT_HERO_SETTINGS))
            print("  + heroSettings (defaults)")

    print("\n" + "=" * 50)
    print("Seed complete.")
    print("=" * 50 + "\n")
    return True


async def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Seed default Kerzenwelt settings")
    parser.add_argument("--force", action="store_true", help="Overwrite existing values")
    args = parser.parse_args()

    try:
        success = await seed_database(force=args.force)
        sys.exit(0 if success else 1)
    except KeyboardInterrupt:
        print("\n\nAborted by user.")
        sys.exit(1)
    except Exception as e:
        print(f"\nError: {e}")
        import traceback
        traceback.print_exc()
        sys.exit(1)
    finally:
        await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
