"""
Application configuration module.

Loads settings from environment variables with sensible defaults.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Attributes
    ----------
    log_level : str
        Logging level (DEBUG, INFO, WARNING, ERROR)
    cors_origins : str
        Comma-separated list of allowed CORS origins
    max_inp_chars : int
        Largest network text accepted by the conversion endpoint
    projection_page_size : int
        Results per page of the projection search
    approx_units : str
        Model length units assumed by approximate reprojection
    approx_origin_lon : float
        Longitude the approximate reprojection anchors the model to
    approx_origin_lat : float
        Latitude the approximate reprojection anchors the model to
    pump_curve_points : int
        Default number of sampled points on a fitted pump curve
    """

    # API
    log_level: str = "INFO"
    cors_origins: str = (
        "http://localhost,http://localhost:3000,http://127.0.0.1,http://127.0.0.1:3000"
    )
    max_inp_chars: int = 20_000_000

    # Projections
    projection_page_size: int = 10
    approx_units: str = "meters"
    approx_origin_lon: float = 0.0
    approx_origin_lat: float = 0.0

    # Pump curves
    pump_curve_points: int = 25

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns
    -------
    Settings
        Application settings
    """
    return Settings()
