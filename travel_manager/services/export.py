"""
Itinerary export — KML, KMZ (KML plus activity images in a zip) and GPX.

Serialisation is delegated to simplekml and gpxpy. Stored coordinates are
``(lat, lon)``; KML wants ``lon,lat``.
"""

import io
import zipfile
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Tuple
from urllib.parse import quote

import gpxpy.gpx
import simplekml

KML_MEDIA_TYPE = "application/vnd.google-earth.kml+xml"
KMZ_MEDIA_TYPE = "application/vnd.google-earth.kmz"
GPX_MEDIA_TYPE = "application/gpx"

KMZ_DOCUMENT = "travel.kml"


@dataclass(frozen=True)
class ItineraryStop:
    """One resolved activity of a travel."""
    id: int
    name: str
    description: str
    lat: float
    lon: float


def kml_coordinates(stop: ItineraryStop) -> Tuple[float, float]:
    """Point geometry in KML axis order."""
    return (stop.lon, stop.lat)


def image_archive_path(activity_id: int) -> str:
    return f"activities/{activity_id}.png"


def _new_kml(stops: Iterable[ItineraryStop], images: Optional[dict] = None) -> simplekml.Kml:
    kml = simplekml.Kml()
    for stop in stops:
        description = stop.description
        href = (images or {}).get(stop.id)
        if href:
            description = f'{description}\n<img src="{href}"/>'
        point = kml.newpoint(
            name=stop.name,
            description=description,
            coords=[kml_coordinates(stop)],
        )
        if href:
            point.style.iconstyle.icon.href = href
    return kml


def build_kml(stops: Iterable[ItineraryStop]) -> str:
    """One Point placemark per stop."""
    return _new_kml(stops).kml()


def build_kmz(stops: Iterable[ItineraryStop], image_dir: Path) -> bytes:
    """
    Zip the KML document with every stop image found in ``image_dir``
    (``<id>.png``). Stops without an image get no icon reference.
    """
    stops = list(stops)
    images = {}
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        for stop in stops:
            source = Path(image_dir) / f"{stop.id}.png"
            if source.is_file():
                href = image_archive_path(stop.id)
                archive.writestr(href, source.read_bytes())
                images[stop.id] = href
        archive.writestr(KMZ_DOCUMENT, _new_kml(stops, images).kml())
    return buffer.getvalue()


def build_gpx(stop: ItineraryStop, creator: str = "Travel Manager GPX Generator") -> str:
    """A GPX 1.1 document holding one waypoint."""
    gpx = gpxpy.gpx.GPX()
    gpx.creator = creator
    gpx.waypoints.append(
        gpxpy.gpx.GPXWaypoint(
            latitude=stop.lat,
            longitude=stop.lon,
            name=stop.name,
            description=stop.description,
        )
    )
    return gpx.to_xml(version="1.1")


def attachment_disposition(filename: str) -> str:
    """
    ``Content-Disposition`` value for a download named ``filename``.
    Non-ASCII names get an ASCII fallback plus an RFC 5987 ``filename*``.
    """
    fallback = filename.encode("ascii", "replace").decode("ascii")
    fallback = fallback.replace("\\", "\\\\").replace('"', '\\"')
    fallback = "".join(ch if ch.isprintable() else "?" for ch in fallback)

    header = f'attachment; filename="{fallback}"'
    if fallback != filename:
        header += f"; filename*=UTF-8''{quote(filename, safe='')}"
    return header
