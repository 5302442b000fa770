"""
GPX track parsing and statistics.

Only the first <trk> of a document is used; its <trkpt> elements are read
across all <trkseg> in document order. GPX 1.0, 1.1 and un-namespaced files
are accepted since elements are matched on their local name.
"""
import math
import xml.etree.ElementTree as ET
from typing import Iterable, Optional, Union
import logging

from app.core.exceptions import GpxParseError
from app.modules.tracks.schemas import BoundingBox, Track, TrackPoint, TrackSummary

logger = logging.getLogger(__name__)

EARTH_RADIUS_KM = 6371.0


def _local_name(tag) -> str:
    if not isinstance(tag, str):
        return ""
    return tag.rsplit("}", 1)[-1]


def _find_first(element: ET.Element, name: str) -> Optional[ET.Element]:
    for child in element.iter():
        if _local_name(child.tag) == name:
            return child
    return None


def _child_text(element: ET.Element, name: str) -> Optional[str]:
    for child in element:
        if _local_name(child.tag) == name and child.text is not None:
            return child.text.strip()
    return None


def _parse_point(trkpt: ET.Element) -> TrackPoint:
    try:
        lat = float(trkpt.get("lat"))
        lon = float(trkpt.get("lon"))
    except (TypeError, ValueError):
        raise GpxParseError("Track point without valid lat/lon attributes")

    ele = None
    ele_text = _child_text(trkpt, "ele")
    if ele_text:
        try:
            ele = float(ele_text)
        except ValueError:
            logger.debug(f"Ignoring non-numeric elevation {ele_text!r}")
    return TrackPoint(lat=lat, lon=lon, ele=ele)


def parse_gpx(content: Union[str, bytes]) -> Optional[Track]:
    """
    Parse the first track of a GPX document.
    Returns None when the document has no track or the track has no points.
    Raises GpxParseError for malformed XML or a non-GPX root element.
    """
    try:
        root = ET.fromstring(content)
    except ET.ParseError as e:
        raise GpxParseError(f"Malformed GPX file: {e}")

    if _local_name(root.tag) != "gpx":
        raise GpxParseError("Not a GPX document")

    trk = _find_first(root, "trk")
    if trk is None:
        return None

    points = [_parse_point(el) for el in trk.iter() if _local_name(el.tag) == "trkpt"]
    if not points:
        return None
    return Track(name=_child_text(trk, "name"), points=points)


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance between two coordinates in kilometers"""
    lat1_rad = math.radians(lat1)
    lat2_rad = math.radians(lat2)
    delta_lat = math.radians(lat2 - lat1)
    delta_lon = math.radians(lon2 - lon1)

    a = math.sin(delta_lat / 2) ** 2 + math.cos(lat1_rad) * math.cos(lat2_rad) * math.sin(delta_lon / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def _bounds(points: Iterable[TrackPoint]) -> BoundingBox:
    points = list(points)
    return BoundingBox(
        min_lat=min(p.lat for p in points),
        min_lon=min(p.lon for p in points),
        max_lat=max(p.lat for p in points),
        max_lon=max(p.lon for p in points),
    )


def summarize_track(track: Optional[Track]) -> TrackSummary:
    """Distance (km), cumulative elevation gain and loss (m). Pairs missing an elevation count as zero delta."""
    if track is None or not track.points:
        return TrackSummary.not_found()

    distance = 0.0
    gain = 0.0
    loss = 0.0
    for current, following in zip(track.points, track.points[1:]):
        distance += haversine_km(current.lat, current.lon, following.lat, following.lon)
        if current.ele is None or following.ele is None:
            continue
        delta = following.ele - current.ele
        if delta > 0:
            gain += delta
        else:
            loss -= delta

    return TrackSummary(
        name=track.name,
        distance_km=distance,
        elevation_gain_m=gain,
        elevation_loss_m=loss,
        point_count=len(track.points),
        positions=[(p.lat, p.lon) for p in track.points],
        bounds=_bounds(track.points),
    )
