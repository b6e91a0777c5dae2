from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal, Mapping

from valuation.errors import InvalidVehicleError


ValuationSource = Literal["BlackBook", "KBB", "NADA", "Manheim", "Auction"]
ConfidenceLabel = Literal["high", "medium", "low"]

VALUATION_SOURCES: tuple[str, ...] = ("BlackBook", "KBB", "NADA", "Manheim", "Auction")


@dataclass(frozen=True)
class VehicleDescription:
    year: int
    mileage: int
    condition: int
    options: tuple[str, ...] = ()
    make: str = ""
    model: str = ""
    trim: str | None = None
    zip_code: str | None = None
    vin: str | None = None

    def __post_init__(self) -> None:
        if self.mileage < 0:
            raise InvalidVehicleError("mileage", self.mileage)
        if not 1 <= self.condition <= 5:
            raise InvalidVehicleError("condition", self.condition)
        # Lists coming from JSON payloads are frozen into tuples.
        object.__setattr__(self, "options", tuple(self.options or ()))


@dataclass(frozen=True)
class SourceQuote:
    source: ValuationSource
    value: float
    currency: str = "USD"
    meta: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.source not in VALUATION_SOURCES:
            raise ValueError(f"Unknown valuation source: {self.source}")
        if self.value < 0:
            raise ValueError(f"Quote value must be non-negative, got {self.value}")


@dataclass(frozen=True)
class AggregateResult:
    low: int
    high: int
    avg: int
    confidence: ConfidenceLabel
    stdev: float = 0.0
    sample_size: int = 0

    def summary(self) -> dict[str, Any]:
        return {"low": self.low, "high": self.high, "avg": self.avg, "confidence": self.confidence}
