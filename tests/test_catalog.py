from __future__ import annotations

from datetime import date

import pytest

from harvestline.catalog import (
    HARVESTED,
    CropCategory,
    MicrogreenVariety,
    all_varieties,
    category_unit,
    expected_stage_days,
    get_category_stages,
    get_estimated_harvest,
    get_variety,
    match_product,
    schedule_for_sowing,
)


def test_every_category_ends_with_harvested() -> None:
    for category in CropCategory:
        stages = get_category_stages(category)
        assert stages
        assert stages[-1].id == HARVESTED


def test_unknown_lookups_return_empty_results() -> None:
    assert get_variety("dragonfruit") is None
    assert get_variety(None) is None
    assert get_category_stages("aquaponics") == ()
    assert category_unit("aquaponics") == "unit"


def test_variety_units_follow_category() -> None:
    assert get_variety("broccoli").unit == "tray"
    assert get_variety("basil").unit == "port"
    assert get_variety("oyster").unit == "block"


def test_variety_ids_are_unique() -> None:
    ids = [variety.id for variety in all_varieties()]
    assert len(ids) == len(set(ids))


def test_estimated_harvest_for_sunflower() -> None:
    estimate = get_estimated_harvest("sunflower", date(2025, 1, 1))
    assert estimate is not None
    assert estimate.harvest_start == date(2025, 1, 10)
    assert estimate.harvest_end == date(2025, 1, 13)


def test_estimated_harvest_accepts_iso_strings() -> None:
    estimate = get_estimated_harvest("sunflower", "2025-01-01")
    assert estimate is not None
    assert estimate.harvest_start == date(2025, 1, 10)


@pytest.mark.parametrize("variety_id,sow_date", [("dragonfruit", date(2025, 1, 1)), ("sunflower", "not-a-date"), ("sunflower", None)])
def test_estimated_harvest_missing_data(variety_id: str, sow_date: object) -> None:
    assert get_estimated_harvest(variety_id, sow_date) is None


def test_match_product_by_name_and_id() -> None:
    assert match_product("Broccoli").id == "broccoli"
    assert match_product("Pea Shoots 4oz clamshell").id == "pea"
    assert match_product("Organic sunflower shoots").id == "sunflower"
    assert match_product("Gift card") is None
    assert match_product("") is None


def test_expected_stage_days() -> None:
    sunflower = get_variety("sunflower")
    basil = get_variety("basil")
    oyster = get_variety("oyster")
    assert expected_stage_days(sunflower, "germination") == 2
    assert expected_stage_days(sunflower, "blackout") == 4
    assert expected_stage_days(sunflower, "light") == 3
    assert expected_stage_days(basil, "growing") == 19
    assert expected_stage_days(oyster, "incubation") == 14
    assert expected_stage_days(None, "germination") == 3


def test_schedule_for_presoaked_microgreen() -> None:
    sunflower = get_variety("sunflower")
    assert isinstance(sunflower, MicrogreenVariety)
    schedule = schedule_for_sowing(sunflower, date(2025, 1, 1))
    assert schedule.soak_date == date(2024, 12, 31)
    assert schedule.uncover_date == date(2025, 1, 7)
    assert schedule.harvest_start == date(2025, 1, 10)
    assert schedule.harvest_end == date(2025, 1, 13)


def test_schedule_for_wall_crop_has_no_microgreen_dates() -> None:
    schedule = schedule_for_sowing(get_variety("basil"), date(2025, 3, 1))
    assert schedule.soak_date is None
    assert schedule.uncover_date is None
    assert schedule.harvest_start == date(2025, 3, 29)
