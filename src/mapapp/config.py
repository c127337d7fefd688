"""Configuration management using Pydantic settings."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "FieldMap"
    debug: bool = False
    log_level: str = "INFO"

    # Deep-link navigation
    navigation_timeout_s: float = 5.0
    navigation_feature_param: str = "feature"
    navigation_boundary_param: str = "boundary"
    navigation_dashboard_param: str = "tab"   # presence disables deep links

    # Extent / zoom
    extent_padding_ratio: float = 0.1

    # Transform cache - 0 means unbounded
    transform_cache_max_entries: int = 0

    # Containment - also reject drawn edges that cross the boundary
    containment_strict_edges: bool = False

    # Shapefile rendering
    shapefile_simplify_threshold: int = 1000   # features before simplifying
    shapefile_simplify_tolerance: float = 0.01  # degrees


settings = Settings()
