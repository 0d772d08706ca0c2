"""Route geometry: cumulative distance tables over ordered coordinates.

Coordinates are (lon, lat) pairs in degrees. Elevations are meters, one per
coordinate where available.
"""

import bisect
import math
from dataclasses import dataclass
from typing import Sequence

from cinematic.utils.numeric import is_finite_number

EARTH_RADIUS_M = 6371008.8
METERS_PER_MILE = 1609.344
FEET_PER_METER = 3.28084

Coordinate = tuple[float, float]


@dataclass(frozen=True)
class RouteStats:
    coords: list[Coordinate]
    elevations: list[float]
    cumulative_meters: list[float]
    cumulative_miles: list[float]
    total_meters: float
    total_miles: float

    @property
    def last_index(self) -> int:
        return len(self.coords) - 1


@dataclass(frozen=True)
class RoutePoint:
    index: int
    lat: float
    lon: float


@dataclass(frozen=True)
class SnappedPoint(RoutePoint):
    distance_m: float
    distance_mi: float
    cumulative_mi: float


def haversine_meters(a: Sequence[float], b: Sequence[float]) -> float:
    """Great-circle distance between two (lon, lat) points."""
    lat1 = math.radians(a[1])
    lat2 = math.radians(b[1])
    d_lat = lat2 - lat1
    d_lon = math.radians(b[0] - a[0])
    sin_lat = math.sin(d_lat / 2)
    sin_lon = math.sin(d_lon / 2)
    h = sin_lat * sin_lat + math.cos(lat1) * math.cos(lat2) * sin_lon * sin_lon
    return 2 * EARTH_RADIUS_M * math.asin(min(1.0, math.sqrt(h)))


def build_route_stats(
    coords: Sequence[Sequence[float]] | None,
    elevations: Sequence[float] | None = None,
) -> RouteStats | None:
    """Build cumulative distance tables; None for empty geometry."""
    if not coords:
        return None

    points = [(float(coord[0]), float(coord[1])) for coord in coords]
    cumulative_meters = [0.0]
    for previous, current in zip(points, points[1:]):
        segment = haversine_meters(previous, current)
        cumulative_meters.append(cumulative_meters[-1] + (segment if math.isfinite(segment) else 0.0))

    total_meters = cumulative_meters[-1]
    return RouteStats(
        coords=points,
        elevations=list(elevations or []),
        cumulative_meters=cumulative_meters,
        cumulative_miles=[value / METERS_PER_MILE for value in cumulative_meters],
        total_meters=total_meters,
        total_miles=total_meters / METERS_PER_MILE,
    )


def find_nearest_route_point(
    coords: Sequence[Coordinate], lat: float, lon: float
) -> tuple[int, float] | None:
    """(index, distance in meters) of the route vertex closest to a point."""
    if not coords:
        return None
    best_index = 0
    best_distance = math.inf
    for index, coord in enumerate(coords):
        distance = haversine_meters(coord, (lon, lat))
        if distance < best_distance:
            best_distance = distance
            best_index = index
    return best_index, best_distance


def snap_to_route(stats: RouteStats | None, lat: float, lon: float) -> SnappedPoint | None:
    if stats is None:
        return None
    match = find_nearest_route_point(stats.coords, lat, lon)
    if match is None:
        return None
    index, distance_m = match
    coord = stats.coords[index]
    return SnappedPoint(
        index=index,
        lat=coord[1],
        lon=coord[0],
        distance_m=distance_m,
        distance_mi=distance_m / METERS_PER_MILE,
        cumulative_mi=stats.cumulative_miles[index],
    )


def coordinate_at_distance(stats: RouteStats | None, distance_mi: float) -> RoutePoint | None:
    """First route vertex at or beyond a distance (clamped to the route)."""
    if stats is None or not is_finite_number(distance_mi):
        return None
    clamped_mi = min(max(float(distance_mi), 0.0), stats.total_miles)
    index = bisect.bisect_left(stats.cumulative_meters, clamped_mi * METERS_PER_MILE)
    index = min(index, stats.last_index)
    coord = stats.coords[index]
    return RoutePoint(index=index, lat=coord[1], lon=coord[0])


def elevation_feet(stats: RouteStats | None, index: int) -> float | None:
    if stats is None or not 0 <= index < len(stats.elevations):
        return None
    elevation = stats.elevations[index]
    if not is_finite_number(elevation):
        return None
    return elevation * FEET_PER_METER


def grade_percent(stats: RouteStats | None, index: int) -> float | None:
    """Grade across the neighbours of a vertex, in percent."""
    if stats is None or not 0 <= index < len(stats.coords):
        return None
    prev_index = max(0, index - 1)
    next_index = min(stats.last_index, index + 1)
    if prev_index == next_index or next_index >= len(stats.elevations):
        return None
    distance_m = haversine_meters(stats.coords[prev_index], stats.coords[next_index])
    if not math.isfinite(distance_m) or distance_m <= 0:
        return None
    elev_prev = stats.elevations[prev_index]
    elev_next = stats.elevations[next_index]
    if not is_finite_number(elev_prev) or not is_finite_number(elev_next):
        return None
    return (elev_next - elev_prev) / distance_m * 100
