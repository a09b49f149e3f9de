"""Tests for monthly aggregation."""

import random
from collections import namedtuple

import pytest

from econova_api.accounting.aggregator import aggregate
from econova_api.accounting.catalog import DEFAULT_MATERIALS

Row = namedtuple("Row", ["category", "material", "kg"])


def test_scenario_recycling_and_landfill():
    """PET 10 kg recycled and 5 kg organic landfill."""
    result = aggregate([Row("recycling", "PET", 10.0), Row("landfill", "Orgánico", 5.0)])

    assert result.total_recycling == 10.0
    assert result.total_landfill == 5.0
    assert result.total_compost == 0.0
    assert result.total_reuse == 0.0
    assert result.total_waste == 15.0
    assert result.entry_count == 2
    assert result.breakdowns_by_material["recycling"] == {"PET": 10.0}
    assert result.breakdowns_by_material["landfill"] == {"Orgánico": 5.0}


def test_empty_entry_set():
    result = aggregate([])

    assert result.total_waste == 0.0
    assert result.entry_count == 0
    assert result.breakdowns_by_material == {"recycling": {}, "compost": {}, "reuse": {}, "landfill": {}}


def test_same_material_is_summed():
    result = aggregate(
        [
            Row("compost", "Jardinería", 2.5),
            Row("compost", "Jardinería", 4.0),
            Row("compost", "Residuos de cocina", 1.5),
        ]
    )

    assert result.total_compost == 8.0
    assert result.breakdowns_by_material["compost"] == {"Jardinería": 6.5, "Residuos de cocina": 1.5}


@pytest.mark.parametrize("seed", range(20))
def test_total_waste_is_sum_of_categories(seed):
    """totalWaste always equals the four category totals added together."""
    rng = random.Random(seed)
    rows = []
    for _ in range(rng.randint(0, 60)):
        category = rng.choice(list(DEFAULT_MATERIALS))
        rows.append(Row(category, rng.choice(DEFAULT_MATERIALS[category]), round(rng.uniform(0, 500), 3)))

    result = aggregate(rows)

    assert result.total_waste == (
        result.total_recycling + result.total_compost + result.total_reuse + result.total_landfill
    )
    assert result.entry_count == len(rows)
    for category, materials in result.breakdowns_by_material.items():
        assert sum(materials.values()) == pytest.approx(getattr(result, f"total_{category}"))


def test_order_does_not_change_result():
    rows = [
        Row("recycling", "PET", 0.1),
        Row("recycling", "Cartón", 0.2),
        Row("reuse", "Mobiliario", 0.3),
        Row("landfill", "Inorgánico", 0.7),
        Row("recycling", "PET", 0.4),
    ]

    forward = aggregate(rows)
    backward = aggregate(list(reversed(rows)))

    assert forward == backward


def test_aggregate_accepts_generators():
    result = aggregate(Row("reuse", "Mobiliario", float(kg)) for kg in range(4))

    assert result.total_reuse == 6.0
    assert result.entry_count == 4


def test_unknown_category_is_rejected():
    with pytest.raises(ValueError):
        aggregate([Row("incineration", "PET", 1.0)])
