from __future__ import annotations

from datetime import date

from harvestline.engine.pipeline import inspect_pipeline, stage_funnel
from harvestline.engine.records import BatchRecord


def _batch(**overrides: object) -> BatchRecord:
    fields: dict[str, object] = {
        "id": "b1",
        "crop_category": "microgreens",
        "variety_id": "broccoli",
        "quantity": 4,
        "stage": "germination",
        "sow_date": date(2025, 1, 1),
    }
    fields.update(overrides)
    return BatchRecord.from_mapping(fields)


def test_groups_live_batches_by_variety_and_stage() -> None:
    batches = [
        _batch(id="b1", quantity=4, stage="germination"),
        _batch(id="b2", quantity=6, stage="light"),
        _batch(id="b3", quantity=3, stage="harvested"),
        _batch(id="b4", variety_id="radish", quantity=2, stage="blackout"),
    ]
    result = inspect_pipeline(batches)

    broccoli = result["broccoli"]
    assert broccoli.current_pipeline == 10
    assert broccoli.by_stage["germination"].count == 1
    assert broccoli.by_stage["light"].units == 6
    assert "harvested" not in broccoli.by_stage
    assert result["radish"].current_pipeline == 2


def test_unknown_stage_counts_as_first_stage() -> None:
    result = inspect_pipeline([_batch(stage="sprouting")])
    assert result["broccoli"].by_stage["germination"].count == 1


def test_invalid_category_falls_back_to_variety() -> None:
    result = inspect_pipeline([_batch(crop_category="sprouts", stage="light")])
    assert result["broccoli"].crop_category == "microgreens"
    assert result["broccoli"].by_stage["light"].count == 1


def test_unresolvable_batches_are_skipped() -> None:
    result = inspect_pipeline([_batch(crop_category="sprouts", variety_id="dragonfruit")])
    assert result == {}


def test_camel_case_legacy_records() -> None:
    legacy = BatchRecord.from_mapping(
        {"id": "x", "cropCategory": "herbs", "varietyId": "basil", "trayCount": 12, "stage": "growing"}
    )
    result = inspect_pipeline([legacy])
    assert result["basil"].current_pipeline == 12


def test_stage_funnel_uses_canonical_order() -> None:
    batches = [
        _batch(id="b1", stage="ready", quantity=2),
        _batch(id="b2", stage="germination", quantity=3),
        _batch(id="b3", variety_id="oyster", crop_category="mushrooms", stage="incubation", quantity=5),
        _batch(id="b4", stage="germination", variety_id="radish", quantity=1),
    ]
    funnel = stage_funnel(batches)
    assert [stage for stage, _ in funnel] == ["germination", "incubation", "ready"]
    assert funnel[0][1].count == 2
    assert funnel[0][1].units == 4
