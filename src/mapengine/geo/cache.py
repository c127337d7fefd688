"""TransformCache - read-through memo in front of classify + transform.

Keyed by the exact string form of the input pair. Entries are inserted and
never mutated; the cache is invalidated as a whole, either explicitly, when
the loaded shapefile set changes identity, or when an optional size cap
would be exceeded.
"""

from __future__ import annotations

from typing import Sequence

from loguru import logger

from mapengine.geo.classifier import Classification, classify
from mapengine.geo.errors import ClassificationUnknown, TransformUnresolved
from mapengine.geo.projections import (
    DEFAULT_CANDIDATES,
    UNRESOLVED,
    ProjectionCandidate,
    TransformResult,
    transform,
)

GEOGRAPHIC_NAME = "WGS84"


def cache_key(x: float, y: float) -> str:
    return f"{x!r},{y!r}"


class TransformCache:
    """Memoizes the WGS84 resolution of raw coordinate pairs.

    Usage:
        cache = TransformCache()
        cache.sync(manager.fingerprint())
        result = cache.resolve(x, y)
        if result.success:
            lng, lat = result.coords
    """

    def __init__(
        self,
        candidates: Sequence[ProjectionCandidate] = DEFAULT_CANDIDATES,
        max_entries: int = 0,
    ) -> None:
        self._entries: dict[str, TransformResult] = {}
        self._candidates = tuple(candidates)
        self._max_entries = max_entries
        self._fingerprint: str | None = None
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, pair: tuple[float, float]) -> bool:
        return cache_key(*pair) in self._entries

    @property
    def fingerprint(self) -> str | None:
        return self._fingerprint

    def resolve(self, x: float, y: float) -> TransformResult:
        """Return the cached result for (x, y), computing it on a miss."""
        key = cache_key(x, y)
        cached = self._entries.get(key)
        if cached is not None:
            self.hits += 1
            return cached

        self.misses += 1
        result = self._compute(x, y)
        if self._max_entries and len(self._entries) >= self._max_entries:
            logger.debug(f"Transform cache full ({self._max_entries}), clearing")
            self._entries.clear()
        self._entries[key] = result
        return result

    def _compute(self, x: float, y: float) -> TransformResult:
        kind = classify(x, y)
        if kind is Classification.GEOGRAPHIC:
            return TransformResult(True, (float(x), float(y)), GEOGRAPHIC_NAME)
        if kind is Classification.PROJECTED:
            result = transform(x, y, self._candidates)
            if result.success:
                logger.debug(f"Projected ({x}, {y}) resolved via {result.projection_name}")
            return result
        return UNRESOLVED

    def clear(self) -> None:
        self._entries.clear()

    def sync(self, fingerprint: str) -> bool:
        """Clear the cache if the shapefile-set fingerprint changed.

        Returns:
            True if the cache was cleared.
        """
        if fingerprint == self._fingerprint:
            return False
        self._fingerprint = fingerprint
        logger.debug(f"Shapefile set changed, dropping {len(self._entries)} cached transforms")
        self._entries.clear()
        return True

    def to_geographic(self, x: float, y: float) -> tuple[float, float]:
        """Resolve (x, y) to lon/lat or raise.

        Raises:
            ClassificationUnknown: the pair is neither geographic nor projected.
            TransformUnresolved: no candidate projection produced a valid pair.
        """
        result = self.resolve(x, y)
        if result.success:
            return result.coords
        if classify(x, y) is Classification.PROJECTED:
            raise TransformUnresolved(x, y)
        raise ClassificationUnknown(x, y)
