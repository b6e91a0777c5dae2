from __future__ import annotations

from typing import Any


class ValuationError(Exception):
    """Base error carrying a machine-readable code."""

    code: str = "VALUATION_ERROR"

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        if code is not None:
            self.code = code


class InvalidVehicleError(ValuationError):
    code = "INVALID_VEHICLE"

    def __init__(self, field_name: str, value: Any) -> None:
        super().__init__(f"Invalid vehicle {field_name}: {value!r}")
        self.field_name = field_name
        self.value = value


class ProviderError(ValuationError):
    def __init__(self, provider: str, code: str, message: str | None = None) -> None:
        super().__init__(message or code, code=code)
        self.provider = provider


class ProviderNotConfiguredError(ProviderError):
    def __init__(self, provider: str) -> None:
        super().__init__(
            provider,
            f"{provider.upper()}_NOT_CONFIGURED",
            f"{provider} credentials are not configured",
        )
