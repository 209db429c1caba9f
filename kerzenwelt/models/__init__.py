"""SQLAlchemy models for Kerzenwelt."""

from kerzenwelt.models.base import Base, BaseModel, TimestampMixin
from kerzenwelt.models.setting import Setting

__all__ = [
    "Base",
    "BaseModel",
    "TimestampMixin",
    "Setting",
]
