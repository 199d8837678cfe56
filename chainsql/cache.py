"""Result cache wrapper around a cachelib backend."""
from __future__ import annotations

import hashlib
import json
import logging
from collections.abc import Callable, Sequence
from typing import Any, TypeVar

from cachelib.base import BaseCache

from chainsql.config import CacheConfig

_logger = logging.getLogger(__name__)

T = TypeVar("T")


class CacheManager:
    """Get-or-compute cache for query results, keyed by SQL and bindings.

    Keys have the shape ``<prefix>:<kind>:<sha256>``, where ``kind`` names the
    fetch flavour (``all_assoc``, ``count``, …) so different reads of the same
    statement never collide.
    """

    def __init__(self, cache: BaseCache, ttl: int | None = None, prefix: str = "qb"):
        self.cache = cache
        self.ttl = ttl
        self.prefix = prefix

    @classmethod
    def from_config(cls, config: CacheConfig) -> "CacheManager":
        return cls(config.backend, ttl=config.ttl, prefix=config.prefix)

    def make_key(self, kind: str, sql: str, bindings: Sequence[Any]) -> str:
        """Hash the SQL text and its serialized bindings into a cache key.

        Bindings are encoded as one JSON array, so values containing
        separators and ``None`` versus ``"None"`` stay distinct.
        """
        encoded = json.dumps(list(bindings), sort_keys=True, default=repr)
        digest = hashlib.sha256(f"{sql}\x00{encoded}".encode("utf-8")).hexdigest()
        return f"{self.prefix}:{kind}:{digest}"

    def has(self, key: str) -> bool:
        return self.cache.has(key)

    def get(self, key: str) -> Any:
        return self.cache.get(key)

    def set(self, key: str, value: Any) -> None:
        if self.ttl is None:
            self.cache.set(key, value)
        else:
            self.cache.set(key, value, timeout=self.ttl)

    def delete(self, key: str) -> None:
        self.cache.delete(key)

    def get_or_compute(self, key: str, compute: Callable[[], T]) -> T:
        """Return the cached value for ``key``, computing and storing it on a miss."""
        if self.cache.has(key):
            _logger.debug("Cache hit (key=%s)", key)
            return self.cache.get(key)
        _logger.debug("Cache miss (key=%s), computing fresh value.", key)
        value = compute()
        self.set(key, value)
        return value
