from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class EngineInfo:
    cylinders: str | None = None
    displacement_l: str | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        if self.cylinders is not None:
            out["cylinders"] = self.cylinders
        if self.displacement_l is not None:
            out["displacementL"] = self.displacement_l
        return out


@dataclass
class VinDecodeResult:
    vin: str
    year: int | None = None
    make: str | None = None
    model: str | None = None
    trim: str | None = None
    body_class: str | None = None
    drive_type: str | None = None
    fuel_type_primary: str | None = None
    engine: EngineInfo | None = None
    errors: list[str] = field(default_factory=list)
    raw: Any = None
    source: str | None = None

    @property
    def usable(self) -> bool:
        return not self.errors and bool(self.year and self.make and self.model)

    def to_dict(self, include_raw: bool = True) -> dict[str, Any]:
        """camelCase JSON shape with absent fields omitted."""
        out: dict[str, Any] = {"vin": self.vin}
        for key, value in (
            ("year", self.year),
            ("make", self.make),
            ("model", self.model),
            ("trim", self.trim),
            ("bodyClass", self.body_class),
            ("driveType", self.drive_type),
            ("fuelTypePrimary", self.fuel_type_primary),
            ("source", self.source),
        ):
            if value is not None:
                out[key] = value
        if self.engine is not None:
            out["engine"] = self.engine.to_dict()
        if self.errors:
            out["errors"] = list(self.errors)
        if include_raw and self.raw is not None:
            out["raw"] = self.raw
        return out

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> VinDecodeResult:
        engine = data.get("engine")
        return cls(
            vin=data["vin"],
            year=data.get("year"),
            make=data.get("make"),
            model=data.get("model"),
            trim=data.get("trim"),
            body_class=data.get("bodyClass"),
            drive_type=data.get("driveType"),
            fuel_type_primary=data.get("fuelTypePrimary"),
            engine=EngineInfo(engine.get("cylinders"), engine.get("displacementL")) if engine is not None else None,
            errors=list(data.get("errors") or []),
            raw=data.get("raw"),
            source=data.get("source"),
        )
