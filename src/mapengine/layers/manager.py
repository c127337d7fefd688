"""ShapefileManager - registry of shapefiles shown on one map view.

Tracks shapefiles uploaded during this session (local) separately from
those loaded from the store (saved). The visible set is every local
shapefile plus saved shapefiles flagged visible; its fingerprint decides
when cached coordinate transforms must be dropped.
"""

from __future__ import annotations

from datetime import datetime, timezone

from loguru import logger

from mapengine.layers.decoder import ShapefileDecoder
from mapengine.layers.normalizer import (
    DEFAULT_SIMPLIFY_THRESHOLD,
    DEFAULT_SIMPLIFY_TOLERANCE,
    BatchResult,
    normalize_batch,
    simplify_collection,
    tag_features,
)
from mapengine.layers.shapefile import Shapefile


class ShapefileManager:
    """Registry of local and saved shapefiles."""

    def __init__(self, decoder: ShapefileDecoder | None = None) -> None:
        self._local: dict[str, Shapefile] = {}
        self._saved: dict[str, Shapefile] = {}
        self._decoder = decoder

    def add_local(self, shapefile: Shapefile) -> str:
        """Register a freshly uploaded shapefile.

        Returns:
            The shapefile_id of the added shapefile.
        """
        if not shapefile.uploaded_at:
            shapefile.uploaded_at = datetime.now(timezone.utc).isoformat()
        self._local[shapefile.shapefile_id] = shapefile
        logger.info(f'Shapefile added: "{shapefile.name}" with {shapefile.feature_count} features')
        return shapefile.shapefile_id

    def set_saved(self, shapefiles: list[Shapefile]) -> None:
        """Replace the saved set with the store's current contents."""
        self._saved = {s.shapefile_id: s for s in shapefiles}

    def remove(self, shapefile_id: str) -> bool:
        """Remove a shapefile from either set.

        Returns:
            True if it was removed, False if it didn't exist.
        """
        if self._local.pop(shapefile_id, None) is not None:
            return True
        return self._saved.pop(shapefile_id, None) is not None

    @property
    def decoder(self) -> ShapefileDecoder | None:
        return self._decoder

    def get(self, shapefile_id: str) -> Shapefile | None:
        return self._local.get(shapefile_id) or self._saved.get(shapefile_id)

    def set_visibility(self, shapefile_id: str, visible: bool) -> None:
        """Toggle a shapefile's visibility.

        Raises:
            KeyError: If the shapefile_id is not found.
        """
        shapefile = self.get(shapefile_id)
        if shapefile is None:
            raise KeyError(f"Shapefile not found: {shapefile_id}")
        shapefile.is_visible = visible

    def visible(self) -> list[Shapefile]:
        """Local shapefiles followed by visible saved ones."""
        return list(self._local.values()) + [s for s in self._saved.values() if s.is_visible]

    def fingerprint(self) -> str:
        """Identity of the visible set: concatenated ids plus the count."""
        shapefiles = self.visible()
        return "".join(s.shapefile_id for s in shapefiles) + f"#{len(shapefiles)}"

    def most_recent(self) -> Shapefile | None:
        """Latest local upload, else the last visible shapefile."""
        if self._local:
            return list(self._local.values())[-1]
        visible = self.visible()
        return visible[-1] if visible else None

    def normalize_visible(self) -> BatchResult:
        """Normalize every visible shapefile; failures are isolated per shapefile."""
        return normalize_batch(self.visible(), self._decoder)

    def render_collections(
        self,
        simplify_threshold: int = DEFAULT_SIMPLIFY_THRESHOLD,
        simplify_tolerance: float = DEFAULT_SIMPLIFY_TOLERANCE,
    ) -> tuple[list[dict], BatchResult]:
        """Tagged, simplified FeatureCollections ready for the map widget.

        Returns:
            (collections, batch) - one collection per visible shapefile that
            normalized, plus the batch result holding any per-shapefile errors.
        """
        batch = self.normalize_visible()
        collections = []
        for shapefile in self.visible():
            fc = batch.collections.get(shapefile.shapefile_id)
            if fc is None:
                continue
            fc = simplify_collection(fc, simplify_threshold, simplify_tolerance)
            collections.append(tag_features(fc, shapefile))
        logger.debug(f"Rendering {len(collections)} shapefiles, {len(batch.errors)} skipped")
        return collections, batch
