"""Progress <-> mile <-> route index <-> waveform column conversion."""

import bisect
import math
from dataclasses import dataclass
from typing import Sequence

from cinematic.services.elevation_profile import ElevationPoint
from cinematic.services.route_geometry import RouteStats
from cinematic.utils.numeric import clamp, clamp01, to_finite


@dataclass(frozen=True)
class RouteMapping:
    progress: float
    mile: float
    route_index: int
    elevation_index: int
    waveform_column: int


def find_nearest_index_by_mile(miles: Sequence[float], mile: float) -> int:
    """Index of the value nearest to mile in an ascending sequence.

    The left neighbour wins an exact tie. An empty sequence maps to 0.
    """
    if not miles:
        return 0
    last = len(miles) - 1
    if mile <= miles[0]:
        return 0
    if mile >= miles[last]:
        return last

    right = bisect.bisect_left(miles, mile)
    left = max(0, right - 1)
    if abs(miles[left] - mile) <= abs(miles[right] - mile):
        return left
    return right


def map_progress_to_mile(progress: float, route_length_miles: float) -> float:
    return clamp01(progress) * max(0.0, to_finite(route_length_miles, 0.0))


def map_progress_to_waveform_column(progress: float, columns: int) -> int:
    safe_columns = max(1, math.floor(to_finite(columns, 1)))
    return int(clamp(math.floor(clamp01(progress) * (safe_columns - 1)), 0, safe_columns - 1))


def map_mile_to_progress(mile: float, route_length_miles: float) -> float:
    """Inverse of map_progress_to_mile; 0 on a zero-length route."""
    total = max(0.0, to_finite(route_length_miles, 0.0))
    if total == 0:
        return 0.0
    return clamp01(to_finite(mile, 0.0) / total)


def map_progress_to_route_mapping(
    progress: float,
    route_stats: RouteStats | None,
    elevation_points: Sequence[ElevationPoint],
    waveform_columns: int,
) -> RouteMapping:
    """Resolve one playback progress value against the route.

    Missing geometry or a zero-length route maps to mile 0 and index 0.
    """
    safe_progress = clamp01(progress)
    total_miles = route_stats.total_miles if route_stats is not None else 0.0
    mile = map_progress_to_mile(safe_progress, total_miles)
    route_miles = route_stats.cumulative_miles if route_stats is not None else []
    elevation_miles = [to_finite(point.mile, 0.0) for point in elevation_points]
    return RouteMapping(
        progress=safe_progress,
        mile=mile,
        route_index=find_nearest_index_by_mile(route_miles, mile),
        elevation_index=find_nearest_index_by_mile(elevation_miles, mile),
        waveform_column=map_progress_to_waveform_column(safe_progress, waveform_columns),
    )
