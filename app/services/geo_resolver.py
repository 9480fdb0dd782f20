# app/services/geo_resolver.py
"""Turns the geo signals available on a request into a single grid cell.

Resolution is an ordered chain of strategies; the first one that yields a
cell wins and nothing is blended:

1. explicit cell hint sent by the client (trusted as-is)
2. IP-derived latitude/longitude headers
3. IP-derived city name looked up in the city centroid table
4. IP-derived country code looked up in the country centroid table

Every strategy returns None on missing or malformed input, so resolution
never raises.
"""
import math
from typing import Dict, Mapping, Optional, Protocol, Sequence, Tuple
from urllib.parse import unquote

import structlog
from pydantic import BaseModel

from app.core.config import Settings
from app.models.dto import EtherSubmission
from app.services.area_bucketer import AreaBucketer

logger = structlog.get_logger(__name__)


class GeoSignals(BaseModel):
    """Request-scoped location signals. Never stored; collapsed into a cell or dropped."""
    cell_hint: Optional[str] = None
    ip_latitude: Optional[str] = None
    ip_longitude: Optional[str] = None
    ip_country: Optional[str] = None
    ip_city: Optional[str] = None

    @classmethod
    def from_request_parts(
        cls,
        submission: Optional[EtherSubmission],
        headers: Mapping[str, str],
        settings: Settings,
    ) -> "GeoSignals":
        city = headers.get(settings.GEO_CITY_HEADER)
        return cls(
            cell_hint=submission.cell if submission else None,
            ip_latitude=headers.get(settings.GEO_LATITUDE_HEADER),
            ip_longitude=headers.get(settings.GEO_LONGITUDE_HEADER),
            ip_country=headers.get(settings.GEO_COUNTRY_HEADER),
            # The edge network percent-encodes city names ("S%C3%A3o%20Paulo")
            ip_city=unquote(city) if city else None,
        )


def _finite_float(raw: Optional[str]) -> Optional[float]:
    if raw is None:
        return None
    try:
        value = float(raw.strip())
    except ValueError:
        return None
    return value if math.isfinite(value) else None


# --- Strategies ---

class ResolverStrategy(Protocol):
    name: str

    def __call__(self, signals: GeoSignals) -> Optional[str]: ...


class ExplicitHintStrategy:
    """Trusts a short client-supplied cell without re-quantizing it."""
    name = "hint"

    def __init__(self, max_length: int):
        self.max_length = max_length

    def __call__(self, signals: GeoSignals) -> Optional[str]:
        hint = signals.cell_hint
        if not hint:
            return None
        if len(hint) >= self.max_length:
            logger.info("cell_hint_rejected", reason="too_long", length=len(hint))
            return None
        return hint


class IPCoordinatesStrategy:
    name = "ip_coordinates"

    def __init__(self, cell_size: float):
        self.cell_size = cell_size

    def __call__(self, signals: GeoSignals) -> Optional[str]:
        lat = _finite_float(signals.ip_latitude)
        lon = _finite_float(signals.ip_longitude)
        if lat is None or lon is None:
            return None
        try:
            return AreaBucketer.get_cell(lat, lon, self.cell_size)
        except OverflowError:
            # finite but absurdly large, e.g. "1e308"
            return None


class CentroidStrategy:
    """Looks a code up in a centroid table (case-insensitive) and quantizes the result."""

    def __init__(self, name: str, field: str, table: Mapping[str, Tuple[float, float]], cell_size: float):
        self.name = name
        self.field = field
        self.cell_size = cell_size
        self.table: Dict[str, Tuple[float, float]] = {
            key.strip().casefold(): tuple(value) for key, value in table.items()
        }

    def __call__(self, signals: GeoSignals) -> Optional[str]:
        code = getattr(signals, self.field)
        if not code:
            return None
        centroid = self.table.get(code.strip().casefold())
        if centroid is None:
            return None
        lat, lon = centroid
        return AreaBucketer.get_cell(lat, lon, self.cell_size)


# --- Resolver ---

class GeoResolver:
    """Runs the strategies in order; the first non-empty cell wins."""

    def __init__(self, strategies: Sequence[ResolverStrategy]):
        self.strategies = list(strategies)

    def resolve_with_source(self, signals: GeoSignals) -> Tuple[Optional[str], Optional[str]]:
        for strategy in self.strategies:
            cell = strategy(signals)
            if cell is not None:
                return cell, strategy.name
        return None, None

    def resolve(self, signals: GeoSignals) -> Optional[str]:
        cell, _ = self.resolve_with_source(signals)
        return cell


def build_geo_resolver(settings: Settings) -> GeoResolver:
    step = settings.CELL_SIZE_DEG
    return GeoResolver([
        ExplicitHintStrategy(settings.MAX_CELL_HINT_LENGTH),
        IPCoordinatesStrategy(step),
        CentroidStrategy("city_centroid", "ip_city", settings.CITY_CENTROIDS, step),
        CentroidStrategy("country_centroid", "ip_country", settings.COUNTRY_CENTROIDS, step),
    ])
