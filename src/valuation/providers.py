from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Mapping, Protocol, Sequence

from valuation.config import DEMO_PROVIDER_BIAS, LICENSED_PROVIDERS
from valuation.data_models import SourceQuote, ValuationSource, VehicleDescription
from valuation.errors import ProviderError, ProviderNotConfiguredError
from valuation.heuristic import estimate, round_half_up

logger = logging.getLogger(__name__)


class ProviderAdapter(Protocol):
    name: ValuationSource

    async def quote(self, vehicle: VehicleDescription) -> SourceQuote: ...


@dataclass(frozen=True)
class DemoProvider:
    """Simulated provider: the shared heuristic scaled by a fixed bias."""

    name: ValuationSource
    bias: float
    current_year: int | None = None

    async def quote(self, vehicle: VehicleDescription) -> SourceQuote:
        value = round_half_up(estimate(vehicle, current_year=self.current_year) * self.bias)
        return SourceQuote(source=self.name, value=value, meta={"simulated": True})


@dataclass(frozen=True)
class LicensedProvider:
    """Placeholder for a licensed pricing feed.

    No integration exists yet, so a quote is never produced: without a
    credential the adapter reports ``<NAME>_NOT_CONFIGURED``, with one it
    reports ``<NAME>_NOT_IMPLEMENTED``.
    """

    name: ValuationSource
    api_key: str = ""

    async def quote(self, vehicle: VehicleDescription) -> SourceQuote:
        if not self.api_key:
            raise ProviderNotConfiguredError(self.name)
        raise ProviderError(self.name, f"{self.name.upper()}_NOT_IMPLEMENTED")


def build_providers(
    mode: str = "demo",
    credentials: Mapping[str, str] | None = None,
    current_year: int | None = None,
) -> list[ProviderAdapter]:
    if mode == "demo":
        return [DemoProvider(name, bias, current_year) for name, bias in DEMO_PROVIDER_BIAS.items()]
    if mode == "licensed":
        creds = credentials or {}
        return [LicensedProvider(name, creds.get(name, "")) for name in LICENSED_PROVIDERS]
    raise ValueError(f"Unknown provider mode: {mode}")


async def collect_quotes(
    providers: Sequence[ProviderAdapter],
    vehicle: VehicleDescription,
) -> tuple[list[SourceQuote], dict[str, str]]:
    """Query every provider concurrently; failed providers are left out of the quotes."""
    outcomes = await asyncio.gather(
        *(provider.quote(vehicle) for provider in providers),
        return_exceptions=True,
    )

    quotes: list[SourceQuote] = []
    failures: dict[str, str] = {}
    for provider, outcome in zip(providers, outcomes):
        if isinstance(outcome, ProviderError):
            logger.warning("Provider %s unavailable: %s", provider.name, outcome.code)
            failures[provider.name] = outcome.code
        elif isinstance(outcome, Exception):
            logger.error("Provider %s failed", provider.name, exc_info=outcome)
            failures[provider.name] = f"{provider.name.upper()}_FAILED"
        elif isinstance(outcome, BaseException):
            raise outcome
        else:
            quotes.append(outcome)
    return quotes, failures
