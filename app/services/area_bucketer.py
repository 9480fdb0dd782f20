import math
from typing import Optional, Tuple


class AreaBucketer:
    """
    Spatial quantization of coordinates into coarse grid cells.
    Target precision: ~20-30 km (0.2 degree step).
    """

    @staticmethod
    def quantize(value: float, step: float) -> float:
        """
        Rounds a coordinate to the nearest multiple of `step`.

        Halves round up (towards +infinity), the same as the browser's
        Math.round, so a client-quantized hint and a server-quantized
        header land in the same cell. The product is rounded again to strip
        float noise (257 * 0.2 == 51.400000000000006), which also makes the
        operation idempotent. The multiple is an int, so a zero result is
        never -0.0.
        """
        return round(AreaBucketer.round_half_up(value / step) * step, 6)

    @staticmethod
    def round_half_up(quotient: float) -> int:
        """Math.round semantics: nearest int, ties go up (-0.5 -> 0, 2.5 -> 3)."""
        n = math.floor(quotient)
        if quotient - n >= 0.5:
            n += 1
        return n

    @classmethod
    def get_cell(cls, lat: float, lon: float, step: float) -> str:
        """
        Builds the canonical cell key for a coordinate pair.

        Args:
            lat: Latitude
            lon: Longitude
            step: Grid step in degrees.

        Returns:
            String of the form "N.N,N.N" (e.g., "51.4,-0.2"). The step must
            be a multiple of 0.1 (enforced by Settings) for one decimal to be exact.
        """
        return f"{cls.quantize(lat, step):.1f},{cls.quantize(lon, step):.1f}"

    @staticmethod
    def parse_cell(cell: str) -> Optional[Tuple[float, float]]:
        """Splits a cell key back into (lat, lon), or None if it is not one."""
        parts = cell.split(",")
        if len(parts) != 2:
            return None
        try:
            lat, lon = float(parts[0]), float(parts[1])
        except ValueError:
            return None
        if not (math.isfinite(lat) and math.isfinite(lon)):
            return None
        return lat, lon
