"""MapViewSession - everything one map view instance owns.

A session holds the transform cache, the shapefile registry, the viewport
channel and the navigation controller for a single map view, and wires them
to the injected collaborators. Nothing here is module-level: two views get
two independent sessions.

Lifecycle:
    session = MapViewSession(map_control, notifier, history, scheduler)
    session.init()
    session.on_url_change(url)
    session.set_features(...); session.set_boundaries(...)
    session.set_saved_shapefiles(...)
    ...
    session.dispose()
"""

from __future__ import annotations

from loguru import logger

from mapapp.config import Settings, settings as default_settings
from mapengine.comms.channel import ViewportChannel
from mapengine.geo.cache import TransformCache
from mapengine.geo.containment import BoundaryAccessPolicy
from mapengine.geo.errors import InvalidExtent, ShapefileEmpty, ShapefileError
from mapengine.geo.extent import ViewportCommand, fold_extent, pad_extent, extent_center, zoom_for_extent
from mapengine.geo.geometry import parse_geometry
from mapengine.layers.decoder import ShapefileDecoder
from mapengine.layers.manager import ShapefileManager
from mapengine.layers.normalizer import normalize
from mapengine.layers.shapefile import Shapefile
from mapengine.navigation.controller import NavigationController
from mapengine.navigation.interfaces import MapControl, NotificationSink, Scheduler, UrlHistory
from mapengine.navigation.request import NavigationParams


def _extent_failure(error: InvalidExtent, name: str) -> tuple[str, str]:
    """Notification title and text for an extent that could not be framed."""
    if error.reason == InvalidExtent.PROJECTED_ONLY:
        return (
            "Coordinate System Issue",
            f'Shapefile "{name}" uses projected coordinates that could not be converted. '
            "Provide it in geographic coordinates (WGS84) or include projection information.",
        )
    if error.reason == InvalidExtent.OUT_OF_RANGE:
        return (
            "Coordinate Range Error",
            "Shapefile coordinates are outside valid geographic range. Please check the coordinate system.",
        )
    return (
        "Navigation Error",
        "Unable to calculate a valid shapefile location. The coordinate system may be unsupported.",
    )


class MapViewSession:
    """Owner of per-view engine state and the entry point the host UI drives."""

    def __init__(
        self,
        map_control: MapControl,
        notifier: NotificationSink,
        history: UrlHistory,
        scheduler: Scheduler,
        decoder: ShapefileDecoder | None = None,
        config: Settings | None = None,
        user_role: str | None = None,
    ) -> None:
        self.config = config or default_settings
        self._notifier = notifier
        self.user_role = user_role

        self.channel = ViewportChannel()
        self.cache = TransformCache(max_entries=self.config.transform_cache_max_entries)
        self.shapefiles = ShapefileManager(decoder)
        self._boundaries: list[dict] = []
        self.navigation = NavigationController(
            map_control,
            notifier,
            history,
            scheduler,
            timeout_s=self.config.navigation_timeout_s,
            params=NavigationParams(
                feature=self.config.navigation_feature_param,
                boundary=self.config.navigation_boundary_param,
                dashboard=self.config.navigation_dashboard_param,
            ),
            cache=self.cache,
            channel=self.channel,
            padding_ratio=self.config.extent_padding_ratio,
        )
        self._disposed = False

    # -- lifecycle ---------------------------------------------------------

    def init(self) -> None:
        self.navigation.init()
        self.cache.sync(self.shapefiles.fingerprint())

    def dispose(self) -> None:
        if self._disposed:
            return
        self._disposed = True
        self.navigation.dispose()
        self.channel.close()
        self.cache.clear()

    # -- datasets ----------------------------------------------------------

    def on_url_change(self, url: str) -> None:
        self.navigation.on_url_change(url)

    def set_features(self, features: list[dict]) -> None:
        self.navigation.set_features(features)

    def set_boundaries(self, boundaries: list[dict]) -> None:
        self._boundaries = list(boundaries or [])
        self.navigation.set_boundaries(self._boundaries)

    def set_saved_shapefiles(self, records: list[dict]) -> None:
        self.shapefiles.set_saved([Shapefile.from_record(r) for r in records])
        self._sync_cache()

    def add_local_shapefile(self, shapefile: Shapefile, zoom: bool = True) -> None:
        """Register an upload and, by default, frame it on the map."""
        self.shapefiles.add_local(shapefile)
        self._sync_cache()
        self._notifier.notify(
            "Shapefile Added",
            f'"{shapefile.name}" with {shapefile.feature_count} features',
        )
        if zoom:
            self.zoom_to_shapefile(shapefile)

    def _sync_cache(self) -> None:
        if self.cache.sync(self.shapefiles.fingerprint()):
            logger.debug("Transform cache reset for new shapefile set")

    # -- shapefile zoom ----------------------------------------------------

    def zoom_to_shapefile(self, shapefile: Shapefile) -> ViewportCommand | None:
        """Frame one shapefile; problems become notifications, never exceptions."""
        try:
            fc = normalize(shapefile, self.shapefiles.decoder)
        except ShapefileEmpty:
            self._notifier.notify(
                "Empty Shapefile",
                f'Shapefile "{shapefile.name}" contains no displayable features',
                "destructive",
            )
            return None
        except ShapefileError as e:
            logger.warning(f'Could not parse shapefile "{shapefile.name}": {e}')
            self._notifier.notify("Invalid Shapefile Data", "Could not parse shapefile data", "destructive")
            return None

        geometries = [
            parse_geometry(f["geometry"]) for f in fc["features"] if f.get("geometry") is not None
        ]
        try:
            result = fold_extent(geometries, self.cache)
        except InvalidExtent as e:
            logger.error(f'Invalid extent for shapefile "{shapefile.name}": {e}')
            title, description = _extent_failure(e, shapefile.name)
            self._notifier.notify(title, description, "destructive")
            return None

        padded = pad_extent(result.extent, self.config.extent_padding_ratio)
        lat, lng = extent_center(result.extent)
        command = ViewportCommand(lat=lat, lng=lng, zoom=zoom_for_extent(padded), extent=padded)
        logger.info(
            f'Zooming to shapefile "{shapefile.name}" ({result.coordinate_system} coordinates, '
            f"{result.skipped} skipped), extent {list(padded)}"
        )
        self.channel.publish(command)
        self._notifier.notify(
            "Navigating to Shapefile",
            f'Showing "{shapefile.name}" on the map ({result.coordinate_system} coordinates)',
        )
        return command

    def zoom_to_recent_shapefile(self) -> ViewportCommand | None:
        shapefile = self.shapefiles.most_recent()
        if shapefile is None:
            self._notifier.notify("No Shapefiles", "No shapefiles are currently visible", "destructive")
            return None
        return self.zoom_to_shapefile(shapefile)

    def render_shapefiles(self) -> list[dict]:
        """FeatureCollections for every visible shapefile that normalizes."""
        collections, _ = self.shapefiles.render_collections(
            self.config.shapefile_simplify_threshold,
            self.config.shapefile_simplify_tolerance,
        )
        return collections

    # -- access control ----------------------------------------------------

    def _policy(self) -> BoundaryAccessPolicy:
        return BoundaryAccessPolicy(self._boundaries, strict_edges=self.config.containment_strict_edges)

    def can_place_point(self, lng: float, lat: float) -> bool:
        return self._policy().can_place_point(lng, lat, self.user_role)

    def can_place_polygon(self, polygon_coords: list) -> bool:
        return self._policy().can_place_polygon(polygon_coords, self.user_role)
