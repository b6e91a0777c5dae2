from __future__ import annotations

import uuid
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, HTTPException, Request, Response
from pydantic import BaseModel, Field

from tradein.cache import RedisCache
from tradein.logging_config import configure_logging, correlation_id
from tradein.settings import ServiceSettings
from tradein.vin import VinResolver, build_decoder_chain
from valuation.aggregate import aggregate
from valuation.data_models import VehicleDescription
from valuation.errors import InvalidVehicleError
from valuation.heuristic import round_half_up
from valuation.providers import build_providers, collect_quotes
from valuation.regional import regional_adjustment


# ── Request / Response Models ───────────────────────────────────────

class AppraiseRequest(BaseModel):
    year: int = Field(ge=1980, le=2100)
    mileage: int = Field(ge=0)
    condition: int = Field(ge=1, le=5)
    options: list[str] = Field(default_factory=list)
    make: str = ""
    model: str = ""
    trim: str | None = None
    zip: str | None = Field(default=None, max_length=10)
    vin: str | None = Field(default=None, max_length=32)


class QuoteOut(BaseModel):
    source: str
    value: int | float


class SummaryOut(BaseModel):
    low: int
    high: int
    avg: int
    confidence: str


class RegionalOut(BaseModel):
    region: str
    season: str
    vehicle_type: str | None
    multiplier: float
    adjusted_avg: int


class ProvenanceOut(BaseModel):
    sources: list[str]
    simulated: bool


class AppraiseResponse(BaseModel):
    id: str
    quotes: list[QuoteOut]
    summary: SummaryOut | None
    failures: dict[str, str]
    regional: RegionalOut | None
    provenance: ProvenanceOut
    note: str


class VinDecodeRequest(BaseModel):
    vin: str = Field(min_length=1, max_length=32)


class HealthResponse(BaseModel):
    status: str


class ReadinessResponse(BaseModel):
    status: str
    checks: dict[str, bool]


# ── App Factory ─────────────────────────────────────────────────────

def create_app(settings: ServiceSettings | None = None) -> FastAPI:
    settings = settings or ServiceSettings()
    configure_logging(level=settings.log_level, fmt=settings.log_format)

    cache = RedisCache(redis_url=settings.redis_url)
    providers = build_providers(settings.provider_mode, settings.provider_credentials())
    simulated = settings.provider_mode == "demo"
    resolver = VinResolver(
        backends=build_decoder_chain(settings),
        cache=cache,
        ttl_seconds=settings.vin_cache_ttl_seconds,
    )

    @asynccontextmanager
    async def lifespan(_: FastAPI):
        await cache.connect()
        try:
            yield
        finally:
            await cache.close()

    app = FastAPI(title="Trade-in Valuation API", version="0.1.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.resolver = resolver
    app.state.providers = providers

    @app.middleware("http")
    async def correlation_id_middleware(request: Request, call_next: Any) -> Response:
        cid = request.headers.get("X-Correlation-ID") or uuid.uuid4().hex[:12]
        correlation_id.set(cid)
        response = await call_next(request)
        response.headers["X-Correlation-ID"] = cid
        return response

    # ── Valuation ───────────────────────────────────────────────────

    @app.post("/appraise", response_model=AppraiseResponse)
    async def appraise(payload: AppraiseRequest) -> AppraiseResponse:
        try:
            vehicle = VehicleDescription(
                year=payload.year,
                mileage=payload.mileage,
                condition=payload.condition,
                options=tuple(payload.options),
                make=payload.make,
                model=payload.model,
                trim=payload.trim,
                zip_code=payload.zip,
                vin=payload.vin,
            )
        except InvalidVehicleError as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc

        quotes, failures = await collect_quotes(app.state.providers, vehicle)
        result = aggregate(quotes)

        regional = None
        if result is not None and vehicle.zip_code:
            adj = regional_adjustment(vehicle)
            regional = RegionalOut(
                region=adj.region,
                season=adj.season,
                vehicle_type=adj.vehicle_type,
                multiplier=round(adj.multiplier, 4),
                adjusted_avg=round_half_up(result.avg * adj.multiplier),
            )

        note = (
            "Simulated providers. Replace adapters with licensed integrations for production."
            if simulated else "Licensed provider mode."
        )
        return AppraiseResponse(
            id=uuid.uuid4().hex,
            quotes=[QuoteOut(source=q.source, value=q.value) for q in quotes],
            summary=SummaryOut(**result.summary()) if result is not None else None,
            failures=failures,
            regional=regional,
            provenance=ProvenanceOut(sources=[p.name for p in app.state.providers], simulated=simulated),
            note=note,
        )

    # ── VIN ─────────────────────────────────────────────────────────

    @app.post("/vin/decode")
    async def decode_vin(payload: VinDecodeRequest) -> dict[str, Any]:
        result = await app.state.resolver.decode(payload.vin)
        return result.to_dict()

    # ── Health ──────────────────────────────────────────────────────

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok")

    @app.get("/ready", response_model=ReadinessResponse)
    async def ready() -> ReadinessResponse:
        checks = {"redis": await cache.ping()}
        # Redis is optional: the cache degrades to memory, so report but don't fail.
        return ReadinessResponse(status="ready" if all(checks.values()) else "degraded", checks=checks)

    return app


app = create_app()
