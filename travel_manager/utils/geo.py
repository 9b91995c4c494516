"""Towns and activities store coordinates as ``"lat, lon"`` strings."""

from typing import Tuple

from travel_manager.services.errors import InvalidCoordinatesError


def parse_coordinates(text: str) -> Tuple[float, float]:
    """Parse ``"48.8, 2.35"`` (optionally bracketed) into ``(lat, lon)``."""
    cleaned = (text or "").strip().strip("[]()")
    parts = [p.strip() for p in cleaned.split(",")]
    if len(parts) != 2:
        raise InvalidCoordinatesError(f"Expected 'lat, lon', got {text!r}")
    try:
        lat, lon = float(parts[0]), float(parts[1])
    except ValueError:
        raise InvalidCoordinatesError(f"Expected 'lat, lon', got {text!r}") from None

    if not (-90.0 <= lat <= 90.0 and -180.0 <= lon <= 180.0):
        raise InvalidCoordinatesError(f"Coordinates out of range: {text!r}")
    return lat, lon
