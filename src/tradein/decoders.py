from __future__ import annotations

import logging
import re
from typing import Any, Protocol
from urllib.parse import quote

import httpx

from tradein.retry import RetryPolicy, get_with_retry
from tradein.vin_models import EngineInfo, VinDecodeResult

logger = logging.getLogger(__name__)

_YEAR_RE = re.compile(r"^\d{4}$")


class DecoderBackend(Protocol):
    name: str

    async def decode(self, vin: str) -> VinDecodeResult: ...


def _text(value: Any) -> str | None:
    if value is None:
        return None
    s = str(value).strip()
    return s or None


class AutoDevDecoder:
    """Commercial VIN decoder (auto.dev), bearer-token authenticated."""

    name = "autodev"

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.auto.dev/vin",
        timeout: float = 20.0,
        retry: RetryPolicy | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.retry = retry or RetryPolicy()
        self.transport = transport

    async def decode(self, vin: str) -> VinDecodeResult:
        if not self.api_key:
            return VinDecodeResult(vin=vin, errors=["autodev_api_key_missing"], source=self.name)

        try:
            url = f"{self.base_url}/{quote(vin)}"
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                resp = await get_with_retry(
                    client, url, policy=self.retry,
                    headers={"Authorization": f"Bearer {self.api_key}", "Accept": "application/json"},
                )
            if resp.is_error:
                return VinDecodeResult(vin=vin, errors=[f"autodev_http_{resp.status_code}"], source=self.name)
            data = resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("auto.dev VIN decode failed for %s: %s", vin, exc)
            return VinDecodeResult(vin=vin, errors=["autodev_error", str(exc) or type(exc).__name__], source=self.name)

        if not isinstance(data, dict):
            logger.warning("auto.dev returned a non-object payload for %s", vin)
            return VinDecodeResult(vin=vin, errors=["autodev_invalid_payload"], raw=data, source=self.name)

        engine = data.get("engine") if isinstance(data.get("engine"), dict) else {}
        year = _text(data.get("year"))
        return VinDecodeResult(
            vin=vin,
            year=int(year) if year and year.isdigit() else None,
            make=_text(data.get("make")),
            model=_text(data.get("model")),
            trim=_text(data.get("trim")),
            body_class=_text(data.get("body")),
            fuel_type_primary=_text(data.get("fuelType")),
            drive_type=_text(data.get("drivetrain")),
            engine=EngineInfo(
                cylinders=_text(engine.get("cylinders")),
                displacement_l=_text(engine.get("displacement")),
            ),
            raw=data,
            source=self.name,
        )


class NhtsaDecoder:
    """Public fallback decoder backed by NHTSA vPIC; needs no credentials."""

    name = "nhtsa"

    def __init__(
        self,
        base_url: str = "https://vpic.nhtsa.dot.gov/api/vehicles",
        timeout: float = 20.0,
        retry: RetryPolicy | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.retry = retry or RetryPolicy()
        self.transport = transport

    async def decode(self, vin: str) -> VinDecodeResult:
        try:
            url = f"{self.base_url}/DecodeVinValuesExtended/{quote(vin)}"
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                resp = await get_with_retry(client, url, policy=self.retry, params={"format": "json"})
            if resp.is_error:
                return VinDecodeResult(vin=vin, errors=[f"nhtsa_http_{resp.status_code}"], source=self.name)
            payload = resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("NHTSA VIN decode failed for %s: %s", vin, exc)
            return VinDecodeResult(vin=vin, errors=["nhtsa_error", str(exc) or type(exc).__name__], source=self.name)

        results = payload.get("Results") if isinstance(payload, dict) else None
        row = results[0] if isinstance(results, list) and results else None
        if not isinstance(row, dict):
            logger.warning("NHTSA returned no decodable row for %s", vin)
            return VinDecodeResult(vin=vin, errors=["nhtsa_invalid_payload"], raw=payload, source=self.name)

        year = _text(row.get("ModelYear"))
        result = VinDecodeResult(
            vin=vin,
            year=int(year) if year and _YEAR_RE.match(year) else None,
            make=_text(row.get("Make")),
            model=_text(row.get("Model")),
            trim=_text(row.get("Trim")) or _text(row.get("Series")) or _text(row.get("ModelVariantDescription")),
            body_class=_text(row.get("BodyClass")),
            fuel_type_primary=_text(row.get("FuelTypePrimary")),
            drive_type=_text(row.get("DriveType")),
            engine=EngineInfo(
                cylinders=_text(row.get("EngineCylinders")),
                displacement_l=_text(row.get("DisplacementL")),
            ),
            raw=payload,
            source=self.name,
        )

        # ErrorCode "0" means a clean decode; ErrorText then only restates that.
        error_code = _text(row.get("ErrorCode"))
        if error_code and error_code != "0":
            result.errors.append(f"ErrorCode:{error_code}")
            error_text = _text(row.get("ErrorText"))
            if error_text:
                result.errors.append(f"ErrorText:{error_text}")
        return result
