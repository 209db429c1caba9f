"""API endpoints for shop settings."""

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from kerzenwelt.database import get_db
from kerzenwelt.exceptions import NotFoundException
from kerzenwelt.schemas.common import APIResponse, ErrorResponse
from kerzenwelt.schemas.setting import (
    ContactSettings,
    HeroSettings,
    SettingCreate,
    SettingResponse,
    SettingUpdate,
)
from kerzenwelt.services.setting_service import get_setting_service
from kerzenwelt.utils.permissions import require_admin

router = APIRouter()


@router.get("", response_model=list[SettingResponse])
async def list_settings(db: AsyncSession = Depends(get_db)):
    """List all settings."""
    service = get_setting_service()
    return await service.list_settings(db)


# Composite settings routes must be registered before the generic /{key:path} routes


@router.get("/hero", response_model=HeroSettings)
async def get_hero_settings(db: AsyncSession = Depends(get_db)):
    """Get hero banner settings (defaults when none are stored)."""
    service = get_setting_service()
    return await service.get_hero_settings(db)


@router.post("/hero", response_model=APIResponse, dependencies=[Depends(require_admin)])
async def save_hero_settings(
    data: HeroSettings,
    db: AsyncSession = Depends(get_db),
):
    """Save hero banner settings."""
    service = get_setting_service()
    await service.save_hero_settings(db, data)
    await db.commit()

    return APIResponse(message="Hero settings updated successfully")


@router.get("/contact", response_model=ContactSettings)
async def get_contact_settings(db: AsyncSession = Depends(get_db)):
    """Get contact settings."""
    service = get_setting_service()
    return await service.get_contact_settings(db)


@router.post("/contact", response_model=APIResponse, dependencies=[Depends(require_admin)])
async def save_contact_settings(
    data: ContactSettings,
    db: AsyncSession = Depends(get_db),
):
    """Save contact settings."""
    service = get_setting_service()
    await service.save_contact_settings(db, data)
    await db.commit()

    return APIResponse(message="Contact settings updated successfully")


@router.get(
    "/{key:path}",
    response_model=SettingResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_setting(key: str, db: AsyncSession = Depends(get_db)):
    """Get a single setting by key."""
    service = get_setting_service()
    setting = await service.get_setting(db, key)

    if not setting:
        raise NotFoundException("Setting")

    return setting


@router.post(
    "",
    response_model=SettingResponse,
    status_code=201,
    responses={409: {"model": ErrorResponse}},
    dependencies=[Depends(require_admin)],
)
async def create_setting(
    data: SettingCreate,
    db: AsyncSession = Depends(get_db),
):
    """Create a new setting."""
    service = get_setting_service()
    setting = await service.create_setting(db, data.key, data.value)
    await db.commit()

    return setting


@router.put(
    "/{key:path}",
    response_model=SettingResponse,
    responses={404: {"model": ErrorResponse}},
    dependencies=[Depends(require_admin)],
)
async def update_setting(
    key: str,
    data: SettingUpdate,
    db: AsyncSession = Depends(get_db),
):
    """Update the value of an existing setting."""
    service = get_setting_service()
    setting = await service.update_setting(db, key, data.value)

    if not setting:
        raise NotFoundException("Setting")

    await db.commit()
    return setting


@router.delete("/{key:path}", status_code=204, dependencies=[Depends(require_admin)])
async def delete_setting(key: str, db: AsyncSession = Depends(get_db)):
    """Delete a setting. Deleting an unknown key succeeds."""
    service = get_setting_service()
    await service.delete_setting(db, key)
    await db.commit()

    return Response(status_code=204)
