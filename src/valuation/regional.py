from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, Literal

from valuation.data_models import VehicleDescription

logger = logging.getLogger(__name__)

Season = Literal["winter", "spring", "summer", "fall"]
VehicleType = Literal["convertible", "awd", "rwd", "truck", "suv"]


@dataclass(frozen=True)
class RegionConfig:
    name: str
    base_multiplier: float
    seasonal_multipliers: Dict[str, float] = field(default_factory=dict)
    vehicle_type_multipliers: Dict[str, float] = field(default_factory=dict)


@dataclass(frozen=True)
class RegionalAdjustment:
    region: str
    season: Season
    vehicle_type: VehicleType | None
    multiplier: float


REGIONS: Dict[str, RegionConfig] = {
    "northeast": RegionConfig(
        name="Northeast (NH, MA, ME, VT)",
        base_multiplier=0.98,
        seasonal_multipliers={"winter": 0.92, "spring": 1.00, "summer": 1.02, "fall": 0.98},
        vehicle_type_multipliers={
            "convertible": 0.90,
            "awd": 1.05,
            "rwd": 0.95,
            "truck": 1.03,
            "suv": 1.02,
        },
    ),
}


def _zip_range(start: int, end: int) -> set[str]:
    return {f"{z:05d}" for z in range(start, end + 1)}


# Greater Boston and southern New Hampshire dealer footprint.
ZIP_TO_REGION: Dict[str, str] = {
    z: "northeast"
    for z in (
        {"02101"}
        | _zip_range(2108, 2135)
        | {"03031"}
        | _zip_range(3101, 3110)
        | _zip_range(3301, 3304)
        | _zip_range(3801, 3803)
    )
}

_CONVERTIBLE_KEYWORDS = ("convertible", "cabriolet", "roadster", "spyder")
_TRUCK_KEYWORDS = (
    "silverado", "f-150", "ram 1500", "tundra", "sierra", "f-250", "f-350", "ram 2500",
    "ram 3500", "titan", "frontier", "colorado", "canyon", "ranger", "tacoma", "gladiator",
)
_SUV_KEYWORDS = (
    "tahoe", "suburban", "explorer", "highlander", "pilot", "expedition", "durango",
    "traverse", "ascent", "telluride", "palisade", "yukon", "escalade", "pathfinder",
    "armada", "sequoia", "4runner",
)
_AWD_OPTION_KEYWORDS = ("awd", "4wd", "all-wheel drive", "quattro", "xdrive")
_RWD_MAKES = ("bmw", "mercedes", "porsche", "corvette", "mustang", "camaro", "challenger", "charger")


def region_for_zip(zip_code: str | None) -> str:
    if not zip_code:
        return "national"
    return ZIP_TO_REGION.get(zip_code.strip(), "national")


def season_for_month(month: int) -> Season:
    if month == 12 or month <= 2:
        return "winter"
    if month <= 5:
        return "spring"
    if month <= 8:
        return "summer"
    return "fall"


def classify_vehicle(vehicle: VehicleDescription) -> VehicleType | None:
    make = vehicle.make.lower()
    model = vehicle.model.lower()

    if any(k in model for k in _CONVERTIBLE_KEYWORDS):
        return "convertible"
    if any(k in model for k in _TRUCK_KEYWORDS):
        return "truck"
    if any(k in model for k in _SUV_KEYWORDS):
        return "suv"
    if any(k in opt.lower() for opt in vehicle.options for k in _AWD_OPTION_KEYWORDS):
        return "awd"
    if any(m in make or m in model for m in _RWD_MAKES):
        return "rwd"
    return None


def regional_adjustment(vehicle: VehicleDescription, month: int | None = None) -> RegionalAdjustment:
    """Market multiplier for the dealer region, season and body style.

    Vehicles without a ZIP code, or outside a configured region, get 1.0.
    """
    season = season_for_month(month if month is not None else date.today().month)
    region_key = region_for_zip(vehicle.zip_code)
    region = REGIONS.get(region_key)
    if region is None:
        return RegionalAdjustment(region="national", season=season, vehicle_type=None, multiplier=1.0)

    vehicle_type = classify_vehicle(vehicle)
    multiplier = region.base_multiplier * region.seasonal_multipliers.get(season, 1.0)
    if vehicle_type is not None:
        multiplier *= region.vehicle_type_multipliers.get(vehicle_type, 1.0)

    logger.debug(
        "Regional adjustment for ZIP %s: region=%s season=%s type=%s multiplier=%.4f",
        vehicle.zip_code, region_key, season, vehicle_type, multiplier,
    )
    return RegionalAdjustment(region=region_key, season=season, vehicle_type=vehicle_type, multiplier=multiplier)
