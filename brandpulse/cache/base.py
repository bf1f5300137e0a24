from __future__ import annotations

import hashlib
from dataclasses import dataclass
from typing import Protocol

DEFAULT_COUNTRY_CODE = "ES"


def build_cache_key(question_text: str, country_code: str | None, model: str, persona: str | None = None) -> str:
    """Logical key: identical questions under identical setup reuse generations."""
    key = f"{question_text}_{country_code or DEFAULT_COUNTRY_CODE}_{model}"
    if persona:
        key = f"{key}_{persona}"
    return key


def hash_cache_key(key: str, fingerprint: str, model: str) -> str:
    """Storage key actually written to the backend."""
    return hashlib.sha256(f"{key}|{fingerprint}|{model}".encode("utf-8")).hexdigest()


@dataclass
class CacheStats:
    hits: int = 0
    misses: int = 0
    entries: int = 0

    @property
    def hit_rate(self) -> float:
        total = self.hits + self.misses
        return round(self.hits / total, 4) if total else 0.0

    def to_dict(self) -> dict:
        return {
            "hits": self.hits,
            "misses": self.misses,
            "entries": self.entries,
            "hitRate": self.hit_rate,
        }


class ResponseCache(Protocol):
    async def get(self, key: str, fingerprint: str, model: str) -> str | None: ...

    async def set(self, key: str, value: str, fingerprint: str, model: str, ttl_days: int) -> None: ...

    async def invalidate_all(self) -> int: ...

    async def get_stats(self) -> CacheStats: ...

    async def aclose(self) -> None: ...
