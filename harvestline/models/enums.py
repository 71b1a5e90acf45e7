"""PostgreSQL-backed enum types for the ORM models.

Each StrEnum maps 1:1 to a PostgreSQL CREATE TYPE ... AS ENUM.  Stage ids
are not an enum: the legal set depends on the batch's crop category and
lives in ``harvestline.catalog``.
"""

from enum import StrEnum


class CropCategoryEnum(StrEnum):
    """Crop family; selects the unit of measure and the stage list."""

    microgreens = "microgreens"
    leafy_greens = "leafy_greens"
    herbs = "herbs"
    mushrooms = "mushrooms"


class BatchSourceEnum(StrEnum):
    """How a batch entered the system."""

    manual = "manual"
    sowing_schedule = "sowing_schedule"


class OrderStatusEnum(StrEnum):
    """Customer order lifecycle."""

    pending = "pending"
    confirmed = "confirmed"
    packed = "packed"
    delivered = "delivered"
    cancelled = "cancelled"
