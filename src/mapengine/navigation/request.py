"""Deep-link request parsing and query-parameter stripping."""

from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import parse_qs, parse_qsl, urlencode, urlsplit, urlunsplit


@dataclass(frozen=True)
class NavigationParams:
    """Query parameter names understood by the navigation controller."""

    feature: str = "feature"
    boundary: str = "boundary"
    dashboard: str = "tab"


@dataclass(frozen=True)
class NavigationRequest:
    """Targets encoded in one URL. Parsed once per URL."""

    feature_id: str | None = None
    boundary_id: str | None = None
    dashboard_tab: str | None = None

    @property
    def is_dashboard(self) -> bool:
        """True when the URL carries the dashboard marker (any value, even empty)."""
        return self.dashboard_tab is not None

    @property
    def has_target(self) -> bool:
        return bool(self.feature_id or self.boundary_id)


def _first(query: dict[str, list[str]], name: str) -> str | None:
    values = query.get(name)
    return values[0] if values else None


def parse_request(url: str, params: NavigationParams = NavigationParams()) -> NavigationRequest:
    """Extract feature / boundary ids and the dashboard marker from a URL."""
    query = parse_qs(urlsplit(url).query, keep_blank_values=True)
    return NavigationRequest(
        feature_id=_first(query, params.feature) or None,
        boundary_id=_first(query, params.boundary) or None,
        dashboard_tab=_first(query, params.dashboard),
    )


def strip_params(url: str, names: tuple[str, ...]) -> str:
    """Return ``url`` without the given query parameters, everything else intact."""
    parts = urlsplit(url)
    kept = [(k, v) for k, v in parse_qsl(parts.query, keep_blank_values=True) if k not in names]
    return urlunsplit(parts._replace(query=urlencode(kept)))
