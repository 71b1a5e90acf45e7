from __future__ import annotations

from datetime import UTC, date, datetime

from harvestline.engine import queries
from harvestline.engine.records import BatchRecord, StageEntry
from harvestline.engine.sowing import SowingNeed, Urgency


def _at(day: int, hour: int = 9) -> datetime:
    return datetime(2025, 1, day, hour, 0, tzinfo=UTC)


def _batch(batch_id: str, stage: str, history: list[StageEntry], **overrides: object) -> BatchRecord:
    fields: dict[str, object] = {
        "id": batch_id,
        "crop_category": "microgreens",
        "variety_id": "sunflower",
        "quantity": 4,
        "stage": stage,
        "sow_date": date(2025, 1, 1),
        "uncover_date": date(2025, 1, 7),
        "estimated_harvest_start": date(2025, 1, 10),
        "estimated_harvest_end": date(2025, 1, 13),
        "stage_history": history,
    }
    fields.update(overrides)
    return BatchRecord.from_mapping(fields)


def _need(crop_id: str, urgency: Urgency, qty: int) -> SowingNeed:
    return SowingNeed(
        crop_id=crop_id,
        crop_name=crop_id.title(),
        crop_category="microgreens",
        weekly_demand=20,
        buffered_demand=24,
        current_pipeline=0,
        pipeline_yield=0,
        days_of_supply=0,
        supply_days=0,
        urgency=urgency,
        recommended_qty=qty,
        batch_unit="tray",
        grow_days=10,
        unit="oz",
        reason="",
    )


def test_needing_stage_advance_overdue_first_and_excludes_terminal() -> None:
    overdue = _batch("a", "germination", [StageEntry("germination", _at(1))])
    due = _batch(
        "b",
        "blackout",
        [StageEntry("germination", _at(1)), StageEntry("blackout", _at(3))],
        uncover_date=date(2025, 1, 5),
    )
    not_yet = _batch("c", "light", [StageEntry("light", _at(4))])
    ready = _batch("d", "ready", [StageEntry("ready", _at(2))])
    harvested = _batch("e", "harvested", [StageEntry("harvested", _at(2))])

    items = queries.needing_stage_advance([due, not_yet, ready, harvested, overdue], date(2025, 1, 5))

    assert [item.batch.id for item in items] == ["a", "b"]
    first, second = items
    assert first.is_overdue
    assert first.suggested_next_stage == "blackout"
    assert first.suggested_next_stage_label == "Blackout"
    assert first.days_in_current_stage == 4
    assert first.expected_days == 2
    assert first.due_date == date(2025, 1, 3)
    assert not second.is_overdue
    assert second.suggested_next_stage == "light"
    assert second.due_date == date(2025, 1, 5)


def test_in_harvest_window_sorted_by_days_remaining() -> None:
    sunflower = _batch("s", "ready", [])
    broccoli = _batch(
        "b",
        "ready",
        [],
        variety_id="broccoli",
        estimated_harvest_start=None,
        estimated_harvest_end=None,
    )
    early = _batch("x", "light", [], estimated_harvest_start=date(2025, 1, 20), estimated_harvest_end=date(2025, 1, 23))
    done = _batch("h", "harvested", [])

    items = queries.in_harvest_window([broccoli, early, done, sunflower], date(2025, 1, 11))

    assert [item.batch.id for item in items] == ["s", "b"]
    assert items[0].days_remaining == 2
    assert items[1].days_remaining == 3
    assert items[0].expected_yield == 64.0
    assert items[1].expected_yield == 26.0


def test_todays_sowing_needs_on_planting_day() -> None:
    needs = [
        _need("radish", Urgency.critical, 2),
        _need("kale", Urgency.warning, 1),
        _need("broccoli", Urgency.healthy, 3),
        _need("pea", Urgency.healthy, 0),
    ]
    thursday = date(2025, 1, 9)
    wednesday = date(2025, 1, 8)

    assert [n.crop_id for n in queries.todays_sowing_needs(needs, thursday)] == ["radish", "kale", "broccoli"]
    assert [n.crop_id for n in queries.todays_sowing_needs(needs, wednesday)] == ["radish", "kale"]
    assert [n.crop_id for n in queries.todays_sowing_needs(needs, wednesday, planting_weekdays=[2])] == [
        "radish",
        "kale",
        "broccoli",
    ]


def test_todays_activity_counts() -> None:
    planted = _batch("p", "germination", [StageEntry("germination", _at(9, 7))])
    moved = _batch(
        "m",
        "light",
        [StageEntry("germination", _at(2)), StageEntry("blackout", _at(4)), StageEntry("light", _at(9, 10))],
    )
    harvested = _batch("h", "harvested", [StageEntry("germination", _at(1)), StageEntry("harvested", _at(9, 12))])

    summary = queries.todays_activity([planted, moved, harvested], date(2025, 1, 9))

    assert (summary.planted, summary.moved, summary.harvested) == (1, 1, 1)
    assert [item.batch_id for item in summary.entries] == ["h", "m", "p"]
