"""Farm ORM model: the tenant every batch and order belongs to."""

from __future__ import annotations

from sqlalchemy import String, text
from sqlalchemy.orm import Mapped, mapped_column

from harvestline.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin


class Farm(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """A growing operation.

    ``timezone`` is an IANA name; it decides which calendar day "today"
    is for the farm's recommendations and crew boards.
    """

    __tablename__ = "farms"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    timezone: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        default="UTC",
        server_default=text("'UTC'"),
    )

    def __repr__(self) -> str:
        return f"<Farm {self.name!r} tz={self.timezone}>"
