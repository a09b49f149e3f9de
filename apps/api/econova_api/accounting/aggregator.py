"""Monthly aggregation of daily waste entries."""

import math
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Iterable

from econova_api.accounting.catalog import CATEGORIES, COMPOST, LANDFILL, RECYCLING, REUSE


@dataclass(frozen=True)
class MonthlyAggregate:
    """Categorized totals for one tenant-month."""

    total_recycling: float = 0.0
    total_compost: float = 0.0
    total_reuse: float = 0.0
    total_landfill: float = 0.0
    total_waste: float = 0.0
    breakdowns_by_material: dict = field(default_factory=lambda: {c: {} for c in CATEGORIES})
    entry_count: int = 0


def aggregate(entries: Iterable) -> MonthlyAggregate:
    """Recompute totals from the full entry set.

    ``entries`` is any iterable of objects exposing ``category``, ``material``
    and ``kg``. The result depends only on the multiset of entries.
    """
    weights = defaultdict(list)
    by_material = {category: defaultdict(list) for category in CATEGORIES}
    count = 0

    for entry in entries:
        if entry.category not in by_material:
            raise ValueError(f"Unknown waste category '{entry.category}'")
        weights[entry.category].append(entry.kg)
        by_material[entry.category][entry.material].append(entry.kg)
        count += 1

    totals = {category: math.fsum(weights[category]) for category in CATEGORIES}
    breakdowns = {
        category: {material: math.fsum(kgs) for material, kgs in sorted(materials.items())}
        for category, materials in by_material.items()
    }

    return MonthlyAggregate(
        total_recycling=totals[RECYCLING],
        total_compost=totals[COMPOST],
        total_reuse=totals[REUSE],
        total_landfill=totals[LANDFILL],
        total_waste=totals[RECYCLING] + totals[COMPOST] + totals[REUSE] + totals[LANDFILL],
        breakdowns_by_material=breakdowns,
        entry_count=count,
    )
