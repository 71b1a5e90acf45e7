"""Order ORM model: customer demand feeding the planning engine."""

from __future__ import annotations

from datetime import date, datetime
from typing import Any

from sqlalchemy import Date, DateTime, Enum, Index, String, func, text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from harvestline.models.base import Base, FarmOwnedMixin, TimestampMixin, UUIDPrimaryKeyMixin
from harvestline.models.enums import OrderStatusEnum


class Order(Base, UUIDPrimaryKeyMixin, FarmOwnedMixin, TimestampMixin):
    """A customer order.

    ``items`` is a JSONB list of ``{"name", "quantity", "unit"}`` line
    items.  ``ordered_at`` is when the customer placed the order and is
    the date demand is attributed to.
    """

    __tablename__ = "orders"
    __table_args__ = (
        Index("ix_orders_farm_ordered_at", "farm_id", "ordered_at"),
        Index("ix_orders_farm_delivery", "farm_id", "requested_delivery_date"),
    )
    external_id: Mapped[str | None] = mapped_column(String(128), nullable=True)
    customer_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    status: Mapped[OrderStatusEnum] = mapped_column(
        Enum(
            OrderStatusEnum,
            name="order_status",
            create_constraint=False,
            native_enum=True,
        ),
        nullable=False,
        default=OrderStatusEnum.pending,
    )
    items: Mapped[list[dict[str, Any]]] = mapped_column(
        JSONB,
        nullable=False,
        default=list,
        server_default=text("'[]'::jsonb"),
    )
    ordered_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    requested_delivery_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    def __repr__(self) -> str:
        return f"<Order {self.external_id or self.id} status={self.status}>"
