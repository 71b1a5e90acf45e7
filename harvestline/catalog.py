"""Crop catalog: static reference data for every crop the farm grows.

Each ``CropCategory`` owns a unit of measure and an ordered stage list.
The stage order is the only legal forward path for a batch, and the last
stage of every category is ``harvested``.

Varieties are typed per category:

    microgreens   → MicrogreenVariety  (yield in oz per tray)
    leafy_greens  → WallVariety        (yield in lb per port)
    herbs         → WallVariety        (yield in lb per port)
    mushrooms     → MushroomVariety    (yield in lb per block per flush)

The table is validated once at import; lookups never raise.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from enum import StrEnum

from harvestline.engine.dates import parse_date

HARVESTED = "harvested"

# Fallback dwell when a stage has no specific rule.
DEFAULT_STAGE_DAYS = 3

# Microgreens sit under the dome for this long before blackout starts.
GERMINATION_DAYS = 2


class CatalogError(ValueError):
    """Raised at import when the catalog table is inconsistent."""


class CropCategory(StrEnum):
    microgreens = "microgreens"
    leafy_greens = "leafy_greens"
    herbs = "herbs"
    mushrooms = "mushrooms"


@dataclass(frozen=True, slots=True)
class Stage:
    id: str
    label: str
    description: str = ""


@dataclass(frozen=True, slots=True)
class Variety:
    id: str
    name: str
    category: CropCategory
    grow_days: int
    harvest_window: int
    yield_per_unit: float
    wholesale_price: float
    seed_cost: float | None = None
    notes: str = ""

    @property
    def unit(self) -> str:
        return CATEGORY_UNITS[self.category]


@dataclass(frozen=True, slots=True)
class MicrogreenVariety(Variety):
    blackout_days: int = 3
    presoak: bool = False


@dataclass(frozen=True, slots=True)
class WallVariety(Variety):
    cycles_per_year: int | None = None


@dataclass(frozen=True, slots=True)
class MushroomVariety(Variety):
    flushes: int = 1


@dataclass(frozen=True, slots=True)
class HarvestEstimate:
    harvest_start: date
    harvest_end: date


@dataclass(frozen=True, slots=True)
class SowingSchedule:
    sow_date: date
    soak_date: date | None
    uncover_date: date | None
    harvest_start: date
    harvest_end: date


# ── Categories ──────────────────────────────────────────────────────────────

CATEGORY_LABELS: dict[CropCategory, str] = {
    CropCategory.microgreens: "Microgreens",
    CropCategory.leafy_greens: "Leafy Greens",
    CropCategory.herbs: "Herbs",
    CropCategory.mushrooms: "Mushrooms",
}

CATEGORY_UNITS: dict[CropCategory, str] = {
    CropCategory.microgreens: "tray",
    CropCategory.leafy_greens: "port",
    CropCategory.herbs: "port",
    CropCategory.mushrooms: "block",
}

CATEGORY_STAGES: dict[CropCategory, tuple[Stage, ...]] = {
    CropCategory.microgreens: (
        Stage("germination", "Germination", "Seeds planted, blackout dome on"),
        Stage("blackout", "Blackout", "Growing under weight/dome, no light"),
        Stage("light", "Light", "Dome removed, under grow lights"),
        Stage("ready", "Ready to Harvest", "Within optimal harvest window"),
        Stage(HARVESTED, "Harvested", "Cut and packed"),
    ),
    CropCategory.leafy_greens: (
        Stage("seedling", "Seedling", "Germinating in starter plugs"),
        Stage("transplant", "Transplanted", "Moved to the growing wall"),
        Stage("growing", "Growing", "Active growth in wall system"),
        Stage("ready", "Ready to Harvest", "Within optimal harvest window"),
        Stage(HARVESTED, "Harvested", "Cut, may regrow"),
    ),
    CropCategory.herbs: (
        Stage("seedling", "Seedling", "Germinating in starter plugs"),
        Stage("transplant", "Transplanted", "Moved to the growing wall"),
        Stage("growing", "Growing", "Active growth"),
        Stage("ready", "Ready to Harvest", "Mature enough for first cut"),
        Stage(HARVESTED, "Harvested", "Cut, will regrow"),
    ),
    CropCategory.mushrooms: (
        Stage("inoculation", "Inoculation", "Substrate inoculated with spawn"),
        Stage("incubation", "Incubation", "Mycelium colonizing substrate"),
        Stage("pinning", "Pinning", "Pins forming, ready for fruiting conditions"),
        Stage("fruiting", "Fruiting", "Active mushroom growth"),
        Stage(HARVESTED, "Harvested", "Flush harvested, may produce more flushes"),
    ),
}

# ── Varieties ───────────────────────────────────────────────────────────────
# Research-based starting points; calibrate against harvested batches
# (see harvestline.engine.performance).

_MICRO = CropCategory.microgreens
_LEAFY = CropCategory.leafy_greens
_HERB = CropCategory.herbs
_MUSH = CropCategory.mushrooms

VARIETIES: tuple[Variety, ...] = (
    MicrogreenVariety("broccoli", "Broccoli", _MICRO, 10, 3, 6.5, 20.00, 0.80,
                      "Largest volume item.", blackout_days=3),
    MicrogreenVariety("radish", "Radish", _MICRO, 8, 2, 11.0, 18.00, 0.30,
                      "Fast grower.", blackout_days=3),
    MicrogreenVariety("sunflower", "Black Oil Sunflower", _MICRO, 9, 3, 16.0, 16.00, 1.50,
                      "Presoak required.", blackout_days=4, presoak=True),
    MicrogreenVariety("pea", "Pea Shoots", _MICRO, 9, 3, 16.0, 16.00, 1.20,
                      "Presoak required.", blackout_days=3, presoak=True),
    MicrogreenVariety("kale", "Kale (Microgreen)", _MICRO, 10, 3, 8.0, 22.00, 0.90,
                      blackout_days=3),
    MicrogreenVariety("red-cabbage", "Red Acre Cabbage", _MICRO, 10, 3, 8.0, 20.00, 0.85,
                      blackout_days=3),
    MicrogreenVariety("dill", "Dill", _MICRO, 14, 3, 4.0, 28.00, 1.00,
                      "Slow grower, highest margin microgreen.", blackout_days=4),
    MicrogreenVariety("arugula-micro", "Arugula (Microgreen)", _MICRO, 8, 2, 5.0, 24.00, 0.70,
                      blackout_days=2),
    MicrogreenVariety("nasturtium", "Nasturtium", _MICRO, 14, 3, 4.0, 40.00, 6.00,
                      "Highest seed cost.", blackout_days=4),
    WallVariety("baby-kale", "Baby Kale", _LEAFY, 30, 5, 0.55, 4.75,
                notes="Cut-and-come-again.", cycles_per_year=12),
    WallVariety("romaine", "Romaine Lettuce", _LEAFY, 35, 5, 0.35, 3.00, cycles_per_year=10),
    WallVariety("spinach", "Spinach", _LEAFY, 35, 5, 0.55, 5.00,
                notes="Susceptible to Pythium root rot.", cycles_per_year=8),
    WallVariety("arugula", "Arugula", _LEAFY, 13, 3, 0.75, 8.50, cycles_per_year=28),
    WallVariety("basil", "Basil", _HERB, 28, 7, 0.44, 12.00,
                notes="Highest margin crop.", cycles_per_year=10),
    WallVariety("cilantro", "Cilantro", _HERB, 35, 5, 0.20, 6.00, cycles_per_year=8),
    WallVariety("mint", "Mint", _HERB, 28, 7, 0.35, 14.00, cycles_per_year=10),
    WallVariety("parsley", "Parsley", _HERB, 35, 7, 0.20, 6.00, cycles_per_year=8),
    WallVariety("green-onion", "Green Onions", _HERB, 30, 7, 0.25, 3.00, cycles_per_year=10),
    MushroomVariety("oyster", "Oyster Mushroom", _MUSH, 21, 3, 1.5, 8.00, flushes=3),
    MushroomVariety("lions-mane", "Lion's Mane", _MUSH, 28, 3, 1.0, 12.00, flushes=2),
    MushroomVariety("shiitake", "Shiitake", _MUSH, 60, 5, 1.0, 10.00, flushes=4),
)


def _validate(varieties: tuple[Variety, ...]) -> dict[str, Variety]:
    for category in CropCategory:
        stages = CATEGORY_STAGES.get(category)
        if not stages or stages[-1].id != HARVESTED:
            raise CatalogError(f"category {category} must end with the '{HARVESTED}' stage")
        ids = [stage.id for stage in stages]
        if len(ids) != len(set(ids)):
            raise CatalogError(f"category {category} has duplicate stage ids")
        if category not in CATEGORY_UNITS:
            raise CatalogError(f"category {category} has no unit")

    index: dict[str, Variety] = {}
    for variety in varieties:
        if variety.id in index:
            raise CatalogError(f"duplicate variety id {variety.id!r}")
        if variety.grow_days <= 0 or variety.harvest_window < 0:
            raise CatalogError(f"variety {variety.id!r} has invalid grow parameters")
        if variety.yield_per_unit < 0:
            raise CatalogError(f"variety {variety.id!r} has negative yield")
        index[variety.id] = variety
    return index


_VARIETY_INDEX: dict[str, Variety] = _validate(VARIETIES)


# ── Lookups ─────────────────────────────────────────────────────────────────


def as_category(value: object) -> CropCategory | None:
    """Coerce a stored category token; unknown tokens map to ``None``."""
    if isinstance(value, CropCategory):
        return value
    try:
        return CropCategory(str(value))
    except ValueError:
        return None


def all_varieties() -> tuple[Variety, ...]:
    return VARIETIES


def get_variety(variety_id: str | None) -> Variety | None:
    if not variety_id:
        return None
    return _VARIETY_INDEX.get(variety_id)


def get_category_stages(category: object) -> tuple[Stage, ...]:
    resolved = as_category(category)
    if resolved is None:
        return ()
    return CATEGORY_STAGES[resolved]


def category_unit(category: object) -> str:
    resolved = as_category(category)
    if resolved is None:
        return "unit"
    return CATEGORY_UNITS[resolved]


def match_product(product_name: str | None) -> Variety | None:
    """Match a sold product name to a variety.

    Tries, case-insensitively: exact variety name, variety name contained in
    the product name, then variety id contained in the product name.
    """
    if not product_name:
        return None
    lower = product_name.strip().lower()
    if not lower:
        return None

    for variety in VARIETIES:
        if variety.name.lower() == lower:
            return variety
    for variety in VARIETIES:
        if variety.name.lower() in lower:
            return variety
    # Longest id first so "arugula-micro" wins over "arugula".
    for variety in sorted(VARIETIES, key=lambda item: len(item.id), reverse=True):
        if variety.id in lower:
            return variety
    return None


# ── Date arithmetic ─────────────────────────────────────────────────────────


def get_estimated_harvest(variety_id: str | None, sow_date: object) -> HarvestEstimate | None:
    """Return the harvest window for a variety sown on ``sow_date``.

    ``None`` means "no estimate available" (unknown variety or unusable date).
    """
    variety = get_variety(variety_id)
    sown = parse_date(sow_date)
    if variety is None or sown is None:
        return None
    harvest_start = sown + timedelta(days=variety.grow_days)
    return HarvestEstimate(
        harvest_start=harvest_start,
        harvest_end=harvest_start + timedelta(days=variety.harvest_window),
    )


def expected_stage_days(variety: Variety | None, stage_id: str | None) -> int:
    """Expected dwell time for ``stage_id`` given the variety's grow parameters."""
    if variety is None or stage_id is None:
        return DEFAULT_STAGE_DAYS

    grow = variety.grow_days
    window = variety.harvest_window

    if isinstance(variety, MicrogreenVariety):
        rules = {
            "germination": GERMINATION_DAYS,
            "blackout": variety.blackout_days,
            "light": max(1, grow - variety.blackout_days - GERMINATION_DAYS),
            "ready": window,
        }
    elif isinstance(variety, WallVariety):
        rules = {
            "seedling": 7,
            "transplant": 2,
            "growing": max(1, grow - 9),
            "ready": window,
        }
    elif isinstance(variety, MushroomVariety):
        rules = {
            "inoculation": 3,
            "incubation": 14,
            "pinning": 3,
            "fruiting": window,
        }
    else:
        rules = {}
    return rules.get(stage_id, DEFAULT_STAGE_DAYS)


def schedule_for_sowing(variety: Variety, sow_date: date) -> SowingSchedule:
    """Project the soak/uncover/harvest dates for a batch sown on ``sow_date``."""
    soak_date: date | None = None
    uncover_date: date | None = None
    if isinstance(variety, MicrogreenVariety):
        if variety.presoak:
            soak_date = sow_date - timedelta(days=1)
        uncover_date = sow_date + timedelta(days=GERMINATION_DAYS + variety.blackout_days)

    harvest_start = sow_date + timedelta(days=variety.grow_days)
    return SowingSchedule(
        sow_date=sow_date,
        soak_date=soak_date,
        uncover_date=uncover_date,
        harvest_start=harvest_start,
        harvest_end=harvest_start + timedelta(days=variety.harvest_window),
    )
