from __future__ import annotations

import math
from datetime import date

from valuation.config import HeuristicConfig
from valuation.data_models import VehicleDescription


_DEFAULT_CONFIG = HeuristicConfig()


def round_half_up(value: float) -> int:
    """Round to the nearest integer with ties going towards +inf."""
    return int(math.floor(value + 0.5))


def vehicle_age(year: int, current_year: int | None = None) -> int:
    now = current_year if current_year is not None else date.today().year
    return max(0, now - year)


def estimate(
    vehicle: VehicleDescription,
    current_year: int | None = None,
    config: HeuristicConfig = _DEFAULT_CONFIG,
) -> int:
    """Baseline wholesale estimate used by the demo providers.

    Deterministic for a fixed ``current_year``: age drives a linear depreciation,
    mileage above or below ``expected_miles_per_year`` moves the value by
    ``mileage_rate_per_1000`` per thousand miles, the result is floored, scaled
    by condition and bumped per installed option.
    """
    age = vehicle_age(vehicle.year, current_year)
    expected = age * config.expected_miles_per_year
    mileage_adj = (vehicle.mileage - expected) / 1000 * config.mileage_rate_per_1000

    base = config.base_value - age * config.depreciation_per_year - mileage_adj
    base = max(base, config.floor_value)
    base *= config.condition_multipliers.get(vehicle.condition, 1.0)
    base += len(vehicle.options) * config.option_value
    return round_half_up(base)
