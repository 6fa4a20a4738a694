"""Format-agnostic asset lookup.

Given a directory-like base path and an extension-less name, probe each
candidate extension in priority order and return the first one that loads as
an image. Hits are memoised in an :class:`AssetPathCache`; misses never are,
so an asset that appears later is found on the next call.

Two callers resolving the same key at once may both miss the cache and probe
independently. Both end up writing the same path, and an ``invalidate`` from
one caller can land between the other's lookup and write-back. No lock guards
this; the writes are idempotent.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional, Tuple

from .cache import AssetPathCache
from .network import LOADER

CANDIDATE_EXTENSIONS: Tuple[str, ...] = ("webp", "jpg", "jpeg", "png", "gif")

Probe = Callable[[str], bool]

LOGGER = logging.getLogger(__name__)


class AssetResolver:
    def __init__(self, probe: Probe | None = None, cache: AssetPathCache | None = None) -> None:
        self._probe = probe or LOADER.exists
        self.cache = cache if cache is not None else AssetPathCache()

    def resolve(self, base_path: str, image_name: str) -> Optional[str]:
        key = AssetPathCache.key(base_path, image_name)
        cached = self.cache.get(key)
        if cached is not None:
            LOGGER.debug("asset cache hit %s -> %s", key, cached)
            return cached

        for extension in CANDIDATE_EXTENSIONS:
            candidate = f"{base_path}/{image_name}.{extension}"
            if self._probe(candidate):
                self.cache.put(key, candidate)
                LOGGER.debug("resolved %s -> %s", key, candidate)
                return candidate

        LOGGER.debug("no candidate found for %s", key)
        return None

    def invalidate(self) -> int:
        return self.cache.clear()