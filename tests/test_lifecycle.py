from __future__ import annotations

from datetime import UTC, date, datetime, timedelta

import pytest

from harvestline.catalog import HARVESTED, get_category_stages
from harvestline.engine import lifecycle
from harvestline.engine.records import BatchRecord, StageEntry

SOWN = datetime(2025, 1, 1, 8, 0, tzinfo=UTC)


def _batch(**overrides: object) -> BatchRecord:
    fields: dict[str, object] = {
        "id": "b1",
        "crop_category": "microgreens",
        "variety_id": "sunflower",
        "variety_name": "Black Oil Sunflower",
        "quantity": 4,
        "unit": "tray",
        "stage": "germination",
        "sow_date": date(2025, 1, 1),
        "uncover_date": date(2025, 1, 7),
        "estimated_harvest_start": date(2025, 1, 10),
        "estimated_harvest_end": date(2025, 1, 13),
        "expected_yield": 64.0,
        "stage_history": [StageEntry(stage="germination", entered_at=SOWN)],
    }
    fields.update(overrides)
    return BatchRecord.from_mapping(fields)


def _at(day: int, hour: int = 9) -> datetime:
    return datetime(2025, 1, day, hour, 0, tzinfo=UTC)


def test_advance_moves_one_stage_and_logs_history() -> None:
    batch = _batch()
    result = lifecycle.advance(batch, now=_at(3), by="crew-1")

    assert result.ok
    assert result.stage == "blackout"
    assert result.updates["stage"] == "blackout"
    assert result.updates["actual_germination_days"] == 2
    assert result.updates["uncover_date"] == date(2025, 1, 7)
    history = result.updates["stage_history"]
    assert [entry.stage for entry in history] == ["germination", "blackout"]
    assert history[-1].by == "crew-1"
    assert batch.stage == "germination"
    assert len(batch.stage_history) == 1


def test_late_blackout_entry_pushes_uncover_date() -> None:
    result = lifecycle.advance(_batch(), now=_at(5))
    assert result.updates["uncover_date"] == date(2025, 1, 9)


def test_leaving_blackout_records_actual_days() -> None:
    batch = _batch().apply(lifecycle.advance(_batch(), now=_at(3)).updates)
    result = lifecycle.advance(batch, now=_at(8))
    assert result.updates["stage"] == "light"
    assert result.updates["actual_blackout_days"] == 5


def test_advance_never_skips_moves_backwards_or_reaches_harvested() -> None:
    stages = [stage.id for stage in get_category_stages("microgreens")]
    batch = _batch()
    visited = [batch.stage]
    day = 2
    while True:
        result = lifecycle.advance(batch, now=_at(day))
        if not result.ok:
            break
        assert stages.index(result.stage) == stages.index(batch.stage) + 1
        batch = batch.apply(result.updates)
        visited.append(batch.stage)
        day += 1

    assert visited == ["germination", "blackout", "light", "ready"]
    assert HARVESTED not in visited
    assert "harvest the batch instead" in result.reason


def test_harvest_from_any_live_stage() -> None:
    result = lifecycle.harvest(_batch(stage="blackout"), 40.0, now=_at(6))
    assert result.ok
    assert result.updates["stage"] == HARVESTED
    assert result.updates["harvested_at"] == _at(6)
    assert result.updates["harvest_yield"] == 40.0
    assert result.updates["actual_grow_days"] == 5


def test_harvested_is_terminal() -> None:
    batch = _batch().apply(lifecycle.harvest(_batch(), 60.0, now=_at(11)).updates)
    assert lifecycle.is_harvested(batch)

    again = lifecycle.harvest(batch, 10.0, now=_at(12))
    assert not again.ok
    assert again.updates == {}
    assert not lifecycle.advance(batch, now=_at(12)).ok
    assert lifecycle.next_stage(batch) is None


def test_history_has_one_entry_per_stage_entered() -> None:
    batch = _batch()
    moment = _at(2)
    for _ in range(3):
        moment += timedelta(days=1)
        batch = batch.apply(lifecycle.advance(batch, now=moment).updates)
    batch = batch.apply(lifecycle.harvest(batch, 50.0, now=moment + timedelta(days=1)).updates)

    assert len(batch.stage_history) == 3 + 2
    stamps = [entry.entered_at for entry in batch.stage_history]
    assert stamps == sorted(stamps)


def test_unknown_stage_resolves_to_first_stage() -> None:
    batch = _batch(stage="sprouting")
    assert lifecycle.resolve_stage(batch).id == "germination"
    result = lifecycle.advance(batch, now=_at(3))
    assert result.updates["stage"] == "blackout"


def test_invalid_category_uses_variety_category() -> None:
    batch = _batch(crop_category="sprouts", stage="light")
    assert lifecycle.resolve_stage(batch).id == "light"
    assert lifecycle.next_stage(batch).id == "ready"


def test_unknown_category_and_variety_is_rejected() -> None:
    batch = _batch(crop_category="sprouts", variety_id="dragonfruit")
    assert lifecycle.resolve_stage(batch) is None
    result = lifecycle.advance(batch, now=_at(3))
    assert not result.ok
    assert "unknown crop category" in result.reason


def test_mushrooms_harvest_from_fruiting() -> None:
    batch = _batch(crop_category="mushrooms", variety_id="oyster", stage="fruiting", stage_history=[])
    assert lifecycle.next_stage(batch) is None
    assert not lifecycle.advance(batch, now=_at(3)).ok
    assert lifecycle.harvest(batch, 6.0, now=_at(3)).ok


@pytest.mark.parametrize(
    "expected,actual,accuracy",
    [(50, 45, 90), (0, 10, None), (50, None, None), (None, 10, None), (64, 0, 0), (40, 1, 3), (8, 1, 13)],
)
def test_yield_accuracy(expected: float | None, actual: float | None, accuracy: int | None) -> None:
    assert lifecycle.yield_accuracy(expected, actual) == accuracy


def test_harvest_window_status() -> None:
    batch = _batch(stage="ready")

    inside = lifecycle.harvest_window_status(batch, date(2025, 1, 11))
    assert inside.in_window
    assert inside.days_in_window == 1
    assert inside.days_remaining == 2
    assert not inside.is_urgent

    last_day = lifecycle.harvest_window_status(batch, date(2025, 1, 13))
    assert last_day.in_window
    assert last_day.days_remaining == 0
    assert last_day.is_urgent

    assert not lifecycle.harvest_window_status(batch, date(2025, 1, 14)).in_window


def test_harvest_window_falls_back_to_catalog_estimate() -> None:
    batch = _batch(estimated_harvest_start=None, estimated_harvest_end=None)
    status = lifecycle.harvest_window_status(batch, date(2025, 1, 10))
    assert status.harvest_start == date(2025, 1, 10)
    assert status.harvest_end == date(2025, 1, 13)
    assert lifecycle.harvest_window_status(_batch(variety_id="dragonfruit", estimated_harvest_start=None), date(2025, 1, 10)) is None


def test_next_transition_dates() -> None:
    assert lifecycle.next_transition_date(_batch()) == date(2025, 1, 3)
    blackout = _batch(stage="blackout", stage_history=[StageEntry("blackout", _at(3))])
    assert lifecycle.next_transition_date(blackout) == date(2025, 1, 7)
    light = _batch(stage="light", stage_history=[StageEntry("light", _at(7))])
    assert lifecycle.next_transition_date(light) == date(2025, 1, 10)
    assert lifecycle.next_transition_date(_batch(stage="ready")) is None


def test_overdue_is_strictly_longer_than_expected() -> None:
    batch = _batch()
    assert lifecycle.days_in_current_stage(batch, date(2025, 1, 3)) == 2
    assert not lifecycle.is_overdue(batch, date(2025, 1, 3))
    assert lifecycle.is_overdue(batch, date(2025, 1, 4))
    assert lifecycle.needs_stage_advance(batch, date(2025, 1, 3))
    assert not lifecycle.needs_stage_advance(batch, date(2025, 1, 2))


def test_dwell_falls_back_to_sow_date_without_history() -> None:
    batch = _batch(stage_history=[])
    assert lifecycle.stage_entered_on(batch) == date(2025, 1, 1)
    assert lifecycle.days_in_current_stage(batch, date(2024, 12, 30)) == 0
