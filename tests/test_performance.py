from __future__ import annotations

from datetime import date

from harvestline.engine.performance import variety_performance
from harvestline.engine.records import BatchRecord


def _harvested(**overrides: object) -> BatchRecord:
    fields: dict[str, object] = {
        "id": "b",
        "crop_category": "microgreens",
        "variety_id": "sunflower",
        "quantity": 5,
        "stage": "harvested",
        "sow_date": date(2025, 1, 1),
        "expected_yield": 80.0,
    }
    fields.update(overrides)
    return BatchRecord.from_mapping(fields)


def test_averages_over_harvested_batches() -> None:
    batches = [
        _harvested(id="a", harvest_yield=80, actual_germination_days=2, actual_grow_days=10, loss_count=0),
        _harvested(id="b", harvest_yield=70, actual_germination_days=3, actual_grow_days=11, loss_count=1),
        _harvested(id="live", stage="light", harvest_yield=None),
        _harvested(id="other", variety_id="pea", harvest_yield=10),
    ]
    stats = variety_performance(batches, "sunflower")

    assert stats.sample_size == 2
    assert stats.avg_germination_days == 2.5
    assert stats.avg_grow_days == 10.5
    assert stats.avg_yield_per_unit == 15.0
    assert stats.loss_rate == 0.1
    assert stats.avg_yield_accuracy == 94.0
    assert stats.avg_blackout_days is None


def test_no_sample() -> None:
    stats = variety_performance([], "sunflower")
    assert stats.sample_size == 0
    assert stats.avg_grow_days is None
    assert stats.avg_yield_accuracy is None
