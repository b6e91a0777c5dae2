from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict


@dataclass(frozen=True)
class HeuristicConfig:
    base_value: float = 35_000.0
    depreciation_per_year: float = 2_000.0
    expected_miles_per_year: int = 12_000
    mileage_rate_per_1000: float = 50.0
    floor_value: float = 2_000.0
    option_value: float = 500.0
    condition_multipliers: Dict[int, float] = field(
        default_factory=lambda: {1: 0.70, 2: 0.85, 3: 1.00, 4: 1.10, 5: 1.20}
    )


@dataclass(frozen=True)
class AggregationConfig:
    max_median_deviation: float = 0.25
    trim_fraction: float = 0.20
    high_confidence_stdev: float = 400.0
    medium_confidence_stdev: float = 900.0
    display_band: int = 500


# Demo providers scale the heuristic to emulate inter-provider disagreement.
DEMO_PROVIDER_BIAS: Dict[str, float] = {
    "BlackBook": 0.97,
    "KBB": 1.02,
    "NADA": 0.99,
    "Manheim": 0.95,
    "Auction": 0.93,
}

LICENSED_PROVIDERS: tuple[str, ...] = ("BlackBook", "KBB", "NADA", "Manheim")
