"""
Track Parser Service

Parses GPX, KML and KMZ documents into an immutable :class:`Track` with
points, named waypoints, elevation range, bounding box, total distance and
map links for the start, finish and waypoints.
"""

import io
import logging
import math
import re
import xml.etree.ElementTree as ET
import zipfile
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Tuple, Union

from grancamino.core.exceptions import MalformedTrackError
from grancamino.services.geo import total_distance_km

logger = logging.getLogger(__name__)

MAPS_URL = "https://www.google.com/maps?q={lat:.6f},{lon:.6f}"
DIRECTIONS_URL = (
    "https://www.google.com/maps/dir/?api=1"
    "&origin={start_lat:.6f},{start_lon:.6f}"
    "&destination={end_lat:.6f},{end_lon:.6f}"
    "&travelmode=bicycling"
)


class TrackFormat(str, Enum):
    GPX = "gpx"
    KML = "kml"


# =============================================================================
# DATA CLASSES
# =============================================================================

@dataclass(frozen=True)
class TrackPoint:
    latitude: float
    longitude: float
    elevation: Optional[float] = None
    timestamp: Optional[str] = None


@dataclass(frozen=True)
class Waypoint:
    name: str
    latitude: float
    longitude: float

    @property
    def map_url(self) -> str:
        return MAPS_URL.format(lat=self.latitude, lon=self.longitude)


@dataclass(frozen=True)
class ElevationRange:
    min: float
    max: float


@dataclass(frozen=True)
class BoundingBox:
    north: float
    south: float
    east: float
    west: float

    def to_dict(self) -> Dict[str, float]:
        return {"north": self.north, "south": self.south, "east": self.east, "west": self.west}


@dataclass(frozen=True)
class NavigationLinks:
    start: str
    finish: str
    directions: str
    waypoints: Tuple[Tuple[str, str], ...] = ()


@dataclass(frozen=True)
class Track:
    """A parsed track. Built once per raw file, never mutated."""
    points: Tuple[TrackPoint, ...] = ()
    waypoints: Tuple[Waypoint, ...] = ()
    elevation_range: Optional[ElevationRange] = None
    bounding_box: Optional[BoundingBox] = None
    total_distance_km: float = 0.0
    name: Optional[str] = None
    source_format: Optional[TrackFormat] = None

    @property
    def is_empty(self) -> bool:
        return not self.points and not self.waypoints

    @property
    def start(self) -> Optional[TrackPoint]:
        return self.points[0] if self.points else None

    @property
    def finish(self) -> Optional[TrackPoint]:
        return self.points[-1] if self.points else None

    def navigation_links(self) -> Optional[NavigationLinks]:
        """Google Maps links for start, finish, the route between them and each waypoint."""
        if not self.points:
            return None
        start, finish = self.start, self.finish
        return NavigationLinks(
            start=MAPS_URL.format(lat=start.latitude, lon=start.longitude),
            finish=MAPS_URL.format(lat=finish.latitude, lon=finish.longitude),
            directions=DIRECTIONS_URL.format(
                start_lat=start.latitude, start_lon=start.longitude,
                end_lat=finish.latitude, end_lon=finish.longitude,
            ),
            waypoints=tuple((wp.name, wp.map_url) for wp in self.waypoints),
        )

    def to_summary(self) -> Dict:
        """Presentation form used in the chat context. Distance is rounded here only."""
        summary: Dict = {
            "name": self.name,
            "format": self.source_format.value if self.source_format else None,
            "distance_km": round(self.total_distance_km, 1),
            "points": len(self.points),
            "elevation_m": None,
            "bounding_box": self.bounding_box.to_dict() if self.bounding_box else None,
            "waypoints": [
                {"name": wp.name, "lat": wp.latitude, "lon": wp.longitude, "map": wp.map_url}
                for wp in self.waypoints
            ],
        }
        if self.elevation_range:
            summary["elevation_m"] = {
                "min": round(self.elevation_range.min, 1),
                "max": round(self.elevation_range.max, 1),
            }
        links = self.navigation_links()
        if links:
            summary["start"] = {"lat": self.start.latitude, "lon": self.start.longitude, "map": links.start}
            summary["finish"] = {"lat": self.finish.latitude, "lon": self.finish.longitude, "map": links.finish}
            summary["directions"] = links.directions
        return summary


# =============================================================================
# ACCUMULATOR (shared by GPX and KML)
# =============================================================================

def _coordinate(raw, limit: float) -> Optional[float]:
    """Parse a latitude/longitude; None unless finite and within +/- limit."""
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(value) or abs(value) > limit:
        return None
    return value


def _optional_float(raw) -> Optional[float]:
    if raw is None or raw == "":
        return None
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return None
    return value if math.isfinite(value) else None


class _TrackAccumulator:
    """Collects points and waypoints in document order and derives the summary fields."""

    def __init__(self, strict: bool = False):
        self.strict = strict
        self.points: List[TrackPoint] = []
        self.waypoints: List[Waypoint] = []
        self._seen_waypoints = set()
        self.skipped = 0
        self._min_ele = math.inf
        self._max_ele = -math.inf

    def _reject(self, what: str, lat_raw, lon_raw) -> None:
        if self.strict:
            raise MalformedTrackError(f"Invalid {what} coordinates lat={lat_raw!r} lon={lon_raw!r}")
        self.skipped += 1

    def add_point(self, lat_raw, lon_raw, ele_raw=None, timestamp: Optional[str] = None) -> None:
        lat = _coordinate(lat_raw, 90.0)
        lon = _coordinate(lon_raw, 180.0)
        if lat is None or lon is None:
            self._reject("track point", lat_raw, lon_raw)
            return

        elevation = _optional_float(ele_raw)
        if elevation is not None:
            self._min_ele = min(self._min_ele, elevation)
            self._max_ele = max(self._max_ele, elevation)

        self.points.append(TrackPoint(lat, lon, elevation, timestamp or None))

    def add_waypoint(self, name: Optional[str], lat_raw, lon_raw) -> None:
        name = (name or "").strip()
        if not name:
            return
        lat = _coordinate(lat_raw, 90.0)
        lon = _coordinate(lon_raw, 180.0)
        if lat is None or lon is None:
            self._reject("waypoint", lat_raw, lon_raw)
            return

        waypoint = Waypoint(name, lat, lon)
        if waypoint not in self._seen_waypoints:
            self._seen_waypoints.add(waypoint)
            self.waypoints.append(waypoint)

    def build(self, name: Optional[str], fmt: TrackFormat) -> Track:
        if self.skipped:
            logger.debug(f"Skipped {self.skipped} invalid points while parsing {fmt.value}")

        elevation_range = None
        if self._min_ele <= self._max_ele:
            elevation_range = ElevationRange(self._min_ele, self._max_ele)

        bounding_box = None
        if self.points:
            lats = [p.latitude for p in self.points]
            lons = [p.longitude for p in self.points]
            bounding_box = BoundingBox(north=max(lats), south=min(lats), east=max(lons), west=min(lons))

        points = tuple(self.points)
        return Track(
            points=points,
            waypoints=tuple(self.waypoints),
            elevation_range=elevation_range,
            bounding_box=bounding_box,
            total_distance_km=total_distance_km(points),
            name=name,
            source_format=fmt,
        )


# =============================================================================
# XML HELPERS
# =============================================================================

def _local(tag) -> str:
    """Local name of an XML tag regardless of namespace."""
    return tag.rsplit("}", 1)[-1] if isinstance(tag, str) else ""


def _child_text(element: ET.Element, name: str) -> Optional[str]:
    for child in element:
        if _local(child.tag) == name:
            text = (child.text or "").strip()
            return text or None
    return None


def _parse_xml(data: bytes) -> ET.Element:
    try:
        return ET.fromstring(data)
    except ET.ParseError as e:
        raise MalformedTrackError(f"Not well-formed track markup: {e}", cause=e) from e


def _extract_kml_from_kmz(data: bytes) -> bytes:
    """Return doc.kml (or the first .kml member) of a KMZ archive."""
    try:
        with zipfile.ZipFile(io.BytesIO(data)) as zf:
            names = zf.namelist()
            member = "doc.kml" if "doc.kml" in names else next(
                (n for n in names if n.lower().endswith(".kml")), None
            )
            if member is None:
                raise MalformedTrackError("KMZ archive does not contain a .kml document")
            return zf.read(member)
    except zipfile.BadZipFile as e:
        raise MalformedTrackError(f"Corrupt KMZ archive: {e}", cause=e) from e


# =============================================================================
# GPX
# =============================================================================

def _gpx_from_root(root: ET.Element, strict: bool) -> Track:
    acc = _TrackAccumulator(strict)

    track_points = [el for el in root.iter() if _local(el.tag) == "trkpt"]
    if not track_points:
        # Route-only files (planned courses) have no trkpt
        track_points = [el for el in root.iter() if _local(el.tag) == "rtept"]

    for el in track_points:
        acc.add_point(el.get("lat"), el.get("lon"), _child_text(el, "ele"), _child_text(el, "time"))

    for el in root.iter():
        if _local(el.tag) == "wpt":
            acc.add_waypoint(_child_text(el, "name"), el.get("lat"), el.get("lon"))

    name = None
    for el in root.iter():
        if _local(el.tag) in ("trk", "metadata", "rte"):
            name = _child_text(el, "name")
            if name:
                break

    return acc.build(name, TrackFormat.GPX)


def parse_gpx(data: Union[bytes, str], strict: bool = False) -> Track:
    if isinstance(data, str):
        data = data.encode("utf-8")
    return _gpx_from_root(_parse_xml(data), strict)


# =============================================================================
# KML
# =============================================================================

_COMMA_SPACING = re.compile(r"\s*,\s*")


def _add_kml_coordinates(acc: _TrackAccumulator, text: Optional[str]) -> None:
    """``lon,lat[,alt]`` tuples separated by whitespace."""
    text = _COMMA_SPACING.sub(",", text or "")
    for token in text.split():
        parts = token.split(",")
        if len(parts) < 2:
            acc.add_point(None, None)
            continue
        acc.add_point(parts[1], parts[0], parts[2] if len(parts) > 2 else None)


def _add_gx_track(acc: _TrackAccumulator, track: ET.Element) -> None:
    """``gx:coord`` values are space separated ``lon lat alt``, paired with ``when``."""
    coords = [c.text for c in track if _local(c.tag) == "coord"]
    whens = [w.text for w in track if _local(w.tag) == "when"]
    for index, coord in enumerate(coords):
        when = whens[index] if index < len(whens) else None
        parts = (coord or "").split()
        if len(parts) < 2:
            acc.add_point(None, None)
            continue
        acc.add_point(parts[1], parts[0], parts[2] if len(parts) > 2 else None,
                      (when or "").strip() or None)


def _kml_from_root(root: ET.Element, strict: bool) -> Track:
    acc = _TrackAccumulator(strict)

    for el in root.iter():
        tag = _local(el.tag)
        if tag == "LineString":
            for child in el:
                if _local(child.tag) == "coordinates":
                    _add_kml_coordinates(acc, child.text)
        elif tag == "Track":
            _add_gx_track(acc, el)
        elif tag == "Placemark":
            name = _child_text(el, "name")
            for point in el.iter():
                if _local(point.tag) != "Point":
                    continue
                text = _COMMA_SPACING.sub(",", _child_text(point, "coordinates") or "")
                parts = text.split()[0].split(",") if text.split() else []
                if len(parts) >= 2:
                    acc.add_waypoint(name, parts[1], parts[0])

    name = None
    document = next((el for el in root.iter() if _local(el.tag) == "Document"), None)
    if document is not None:
        name = _child_text(document, "name")

    return acc.build(name, TrackFormat.KML)


def parse_kml(data: Union[bytes, str], strict: bool = False) -> Track:
    if isinstance(data, str):
        data = data.encode("utf-8")
    if data[:2] == b"PK":
        data = _extract_kml_from_kmz(data)
    return _kml_from_root(_parse_xml(data), strict)


# =============================================================================
# DISPATCH
# =============================================================================

def parse_track(
    data: Union[bytes, str],
    fmt: Optional[TrackFormat] = None,
    strict: bool = False
) -> Track:
    """
    Parse a GPX, KML or KMZ document.

    The root tag decides the vocabulary; ``fmt`` (usually from the file
    classifier) is used when the root tag is neither ``gpx`` nor ``kml``.

    Raises:
        MalformedTrackError: the input is not well-formed markup, or its
            vocabulary cannot be determined.
    """
    if isinstance(data, str):
        data = data.encode("utf-8")

    if data[:2] == b"PK":
        data = _extract_kml_from_kmz(data)
        fmt = TrackFormat.KML

    root = _parse_xml(data)
    root_tag = _local(root.tag).lower()

    if root_tag == "gpx" or (root_tag != "kml" and fmt == TrackFormat.GPX):
        return _gpx_from_root(root, strict)
    if root_tag == "kml" or fmt == TrackFormat.KML:
        return _kml_from_root(root, strict)

    raise MalformedTrackError(f"Unrecognized track document root <{root_tag}>")
