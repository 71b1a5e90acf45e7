"""ORM model registry — importing this module registers every table on Base.metadata.

Alembic ``env.py`` imports ``Base`` from here (not from ``base.py``) so that
autogenerate sees all tables.  Application code can also do::

    from harvestline.models import Farm, Batch, Order
"""

# ── Base & Mixins ───────────────────────────────────────────────────────────
from harvestline.models.base import Base, FarmOwnedMixin, TimestampMixin, UUIDPrimaryKeyMixin

# ── Tables ──────────────────────────────────────────────────────────────────
from harvestline.models.batches import Batch

# ── Enums ───────────────────────────────────────────────────────────────────
from harvestline.models.enums import BatchSourceEnum, CropCategoryEnum, OrderStatusEnum
from harvestline.models.farm import Farm
from harvestline.models.orders import Order

__all__ = [
    # Base & mixins
    "Base",
    "FarmOwnedMixin",
    "TimestampMixin",
    "UUIDPrimaryKeyMixin",
    # Tables
    "Batch",
    "Farm",
    "Order",
    # Enums
    "BatchSourceEnum",
    "CropCategoryEnum",
    "OrderStatusEnum",
]
