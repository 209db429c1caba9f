"""Setting model for storefront configuration managed from the back office."""

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from kerzenwelt.models.base import BaseModel


class Setting(BaseModel):
    """Key-value store for shop-wide settings.

    Values are opaque strings. Structured settings (e.g. the hero banner)
    are stored as JSON text under a single key.
    """

    __tablename__ = "settings"

    key: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
        index=True,
    )
    value: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        default="",
    )

    def __repr__(self) -> str:
        return f"<Setting {self.key}={self.value!r}>"
