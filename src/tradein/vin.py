from __future__ import annotations

import logging
import re
from typing import Sequence

from tradein.cache import RedisCache
from tradein.decoders import AutoDevDecoder, DecoderBackend, NhtsaDecoder
from tradein.retry import RetryPolicy
from tradein.settings import ServiceSettings
from tradein.vin_models import VinDecodeResult

logger = logging.getLogger(__name__)

MIN_VIN_LENGTH = 11
MAX_VIN_LENGTH = 17

_NON_ALNUM = re.compile(r"[^A-Za-z0-9]")


def sanitize_vin(raw_vin: str) -> str:
    return _NON_ALNUM.sub("", raw_vin).upper()


class VinResolver:
    """Ordered fallback across decoder backends.

    Backends are tried strictly one after another. The first usable result
    wins; anything else (an exception, a result carrying errors, or one missing
    year/make/model) moves on to the next backend. When every backend has been
    tried, the last one's result is returned as-is so the caller always gets a
    ``VinDecodeResult``.
    """

    def __init__(
        self,
        backends: Sequence[DecoderBackend],
        cache: RedisCache | None = None,
        ttl_seconds: int = 2_592_000,
    ) -> None:
        if not backends:
            raise ValueError("VinResolver needs at least one decoder backend")
        self.backends = list(backends)
        self.cache = cache
        self.ttl_seconds = ttl_seconds

    async def decode(self, raw_vin: str) -> VinDecodeResult:
        vin = sanitize_vin(raw_vin)
        if not MIN_VIN_LENGTH <= len(vin) <= MAX_VIN_LENGTH:
            return VinDecodeResult(vin=vin, errors=["invalid_length"])

        cache_key = f"vin_decode:{vin}"
        if self.cache is not None:
            cached = await self.cache.get_json(cache_key)
            if cached is not None:
                try:
                    hit = VinDecodeResult.from_dict(cached)
                except (KeyError, TypeError, AttributeError) as exc:
                    logger.warning("Ignoring malformed cache entry %s: %r", cache_key, exc)
                else:
                    # Only usable results are ever written.
                    if hit.usable:
                        return hit
                    logger.warning("Ignoring unusable cache entry %s", cache_key)

        result = VinDecodeResult(vin=vin, errors=["no_decoder_available"])
        for backend in self.backends:
            try:
                result = await backend.decode(vin)
            except Exception as exc:
                logger.exception("VIN decoder %s raised for %s", backend.name, vin)
                result = VinDecodeResult(vin=vin, errors=[f"{backend.name}_error", str(exc)], source=backend.name)
                continue

            if result.usable:
                if self.cache is not None:
                    await self.cache.set_json(cache_key, result.to_dict(), ttl_seconds=self.ttl_seconds)
                return result
            logger.info("VIN decoder %s gave no usable result for %s: %s", backend.name, vin, result.errors)

        return result


def build_decoder_chain(settings: ServiceSettings) -> list[DecoderBackend]:
    """Commercial decoder first when licensed, NHTSA always last."""
    retry = RetryPolicy(
        max_attempts=settings.vin_retry_max_attempts,
        initial_delay=settings.vin_retry_initial_delay_seconds,
        max_delay=settings.vin_retry_max_delay_seconds,
    )
    chain: list[DecoderBackend] = []
    if settings.autodev_api_key:
        chain.append(AutoDevDecoder(
            api_key=settings.autodev_api_key,
            base_url=settings.autodev_base_url,
            timeout=settings.vin_request_timeout_seconds,
            retry=retry,
        ))
    chain.append(NhtsaDecoder(
        base_url=settings.nhtsa_base_url,
        timeout=settings.vin_request_timeout_seconds,
        retry=retry,
    ))
    return chain
