# Runtime configuration: grid size, geo header names, centroid tables,
# store backend selection and client page timings.

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, field_validator
from typing import Dict, Optional, Tuple

# Approximate country centroids (ISO 3166-1 alpha-2 -> lat, lon)
DEFAULT_COUNTRY_CENTROIDS: Dict[str, Tuple[float, float]] = {
    "GB": (54.0, -2.0),
    "US": (39.8, -98.6),
    "IN": (22.3, 79.0),
    "DE": (51.2, 10.4),
    "FR": (46.2, 2.2),
    "ES": (40.2, -3.7),
    "IT": (41.9, 12.6),
    "IE": (53.4, -8.2),
    "NL": (52.1, 5.3),
    "CA": (56.1, -106.3),
    "AU": (-25.3, 133.8),
    "NZ": (-40.9, 174.9),
    "BR": (-14.2, -51.9),
    "MX": (23.6, -102.6),
    "JP": (36.2, 138.3),
    "CN": (35.9, 104.2),
    "ZA": (-30.6, 22.9),
    "NG": (9.1, 8.7),
    "PH": (12.9, 121.8),
    "VN": (14.1, 108.3),
}

# Approximate city centres, keyed by lower-case city name
DEFAULT_CITY_CENTROIDS: Dict[str, Tuple[float, float]] = {
    "london": (51.5, -0.1),
    "manchester": (53.5, -2.2),
    "dublin": (53.3, -6.3),
    "paris": (48.9, 2.4),
    "berlin": (52.5, 13.4),
    "madrid": (40.4, -3.7),
    "rome": (41.9, 12.5),
    "amsterdam": (52.4, 4.9),
    "new york": (40.7, -74.0),
    "los angeles": (34.1, -118.2),
    "san francisco": (37.8, -122.4),
    "chicago": (41.9, -87.6),
    "toronto": (43.7, -79.4),
    "mumbai": (19.1, 72.9),
    "delhi": (28.6, 77.2),
    "tokyo": (35.7, 139.7),
    "sydney": (-33.9, 151.2),
    "são paulo": (-23.6, -46.6),
}


class Settings(BaseSettings):
    PROJECT_NAME: str = "Into the Ether"
    VERSION: str = "0.2.0"
    BRIEF_DESCRIPTION: str = "Whisper something into the ether. Nothing is stored; only an anonymous, coarse map of where whispers came from."

    ENV: str = Field("development", description="Application environment (e.g., production, development)")

    # --- Grid ---
    # 0.2 degrees is roughly 20-30 km at mid-latitudes
    CELL_SIZE_DEG: float = Field(0.2, gt=0, description="Grid step in degrees used to quantize coordinates")
    MAX_CELL_HINT_LENGTH: int = Field(32, description="Client cell hints must be strictly shorter than this")

    # --- Edge network geo headers ---
    GEO_LATITUDE_HEADER: str = "x-vercel-ip-latitude"
    GEO_LONGITUDE_HEADER: str = "x-vercel-ip-longitude"
    GEO_COUNTRY_HEADER: str = "x-vercel-ip-country"
    GEO_CITY_HEADER: str = "x-vercel-ip-city"
    GEO_TIMEZONE_HEADER: str = "x-vercel-ip-timezone"

    # Replaceable lookup tables (override with JSON in the environment)
    COUNTRY_CENTROIDS: Dict[str, Tuple[float, float]] = Field(
        default_factory=lambda: dict(DEFAULT_COUNTRY_CENTROIDS),
        description="Country code -> (lat, lon) used when no coordinate headers are present",
    )
    CITY_CENTROIDS: Dict[str, Tuple[float, float]] = Field(
        default_factory=lambda: dict(DEFAULT_CITY_CENTROIDS),
        description="City name -> (lat, lon) used when no coordinate headers are present",
    )

    # --- Feature Flags ---
    ENABLE_DEBUG_GEO: bool = Field(True, description="Expose /api/debug-geo header echo")
    ENABLE_REDIS: bool = Field(False, description="Share cell counts across instances through Redis")
    REDIS_URL: Optional[str] = Field(None, description="Redis URL for the shared cell counter")
    REDIS_CELLS_KEY: str = Field("ether:cells", description="Redis hash holding cell -> count")

    # --- Client pages ---
    SNAPSHOT_POLL_SECONDS: int = 10
    SUBMIT_COOLDOWN_SECONDS: int = 8
    MAX_TEXT_LENGTH: int = 2000

    @field_validator("CELL_SIZE_DEG")
    @classmethod
    def cell_size_in_tenths(cls, value: float) -> float:
        # Cells are formatted with one decimal, so the step must be a whole number of tenths
        tenths = value * 10
        if abs(tenths - round(tenths)) > 1e-9:
            raise ValueError("CELL_SIZE_DEG must be a multiple of 0.1")
        return value

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore"
    )

settings = Settings()
