from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

import redis.asyncio as redis

logger = logging.getLogger(__name__)


class RedisCache:
    """JSON cache on Redis; falls back to process memory when Redis is unreachable."""

    def __init__(self, redis_url: str, namespace: str = "tradein") -> None:
        self.redis_url = redis_url
        self.namespace = namespace
        self._client: Any = None
        self._mem: dict[str, str] = {}
        self._expiry: dict[str, float] = {}

    def _build_key(self, key: str) -> str:
        return f"{self.namespace}:{key}"

    async def connect(self) -> None:
        self._client = redis.from_url(self.redis_url, decode_responses=True)
        try:
            await asyncio.wait_for(self._client.ping(), timeout=0.75)
        except Exception as exc:
            logger.warning("Redis unavailable at %s, using in-memory cache: %s", self.redis_url, exc)
            await self._client.aclose()
            self._client = None

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def ping(self) -> bool:
        if self._client is None:
            return False
        try:
            return bool(await asyncio.wait_for(self._client.ping(), timeout=0.75))
        except Exception:
            return False

    def _evict_expired(self, now: float) -> None:
        for key in [k for k, deadline in self._expiry.items() if now > deadline]:
            self._mem.pop(key, None)
            self._expiry.pop(key, None)

    async def get_json(self, key: str) -> dict[str, Any] | None:
        full_key = self._build_key(key)
        if self._client is not None:
            try:
                raw = await self._client.get(full_key)
                return None if raw is None else json.loads(raw)
            except Exception as exc:
                logger.warning("Cache read failed for %s: %s", full_key, exc)
                return None
        self._evict_expired(asyncio.get_running_loop().time())
        raw = self._mem.get(full_key)
        return None if raw is None else json.loads(raw)

    async def set_json(self, key: str, value: dict[str, Any], ttl_seconds: int) -> None:
        full_key = self._build_key(key)
        payload = json.dumps(value)
        if self._client is not None:
            try:
                await self._client.set(full_key, payload, ex=ttl_seconds)
                return
            except Exception as exc:
                logger.warning("Cache write failed for %s: %s", full_key, exc)
        now = asyncio.get_running_loop().time()
        self._evict_expired(now)
        self._mem[full_key] = payload
        self._expiry[full_key] = now + ttl_seconds
