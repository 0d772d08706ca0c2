"""Elevation profile for the timeline waveform.

Builds (mile, elevation) samples from route stats, buckets them into a
fixed number of waveform columns, and finds summit/valley anchors that a
dragged timeline handle can snap to.
"""

import math
from dataclasses import dataclass, replace
from typing import Literal, Sequence

from cinematic.services.route_geometry import RouteStats
from cinematic.utils.numeric import clamp, is_finite_number, to_finite


@dataclass(frozen=True)
class ElevationPoint:
    mile: float
    elevation: float


@dataclass(frozen=True)
class ElevationColumn:
    x: int
    min_elevation: float
    max_elevation: float
    grade_delta: float


@dataclass(frozen=True)
class ElevationAnchor:
    kind: Literal["summit", "valley"]
    index: int
    mile: float
    elevation: float


@dataclass(frozen=True)
class _Bucket:
    min_elevation: float
    max_elevation: float
    first_mile: float
    last_mile: float
    first_elevation: float
    last_elevation: float


def build_elevation_points(stats: RouteStats | None) -> list[ElevationPoint]:
    """Pair cumulative miles with elevations, skipping missing samples."""
    if stats is None:
        return []
    points: list[ElevationPoint] = []
    for mile, elevation in zip(stats.cumulative_miles, stats.elevations):
        if not is_finite_number(elevation):
            continue
        points.append(ElevationPoint(mile=to_finite(mile, 0.0), elevation=to_finite(elevation)))
    return points


def _column_index(mile: float, total_miles: float, columns: int) -> int:
    safe_columns = max(1, int(columns))
    ratio = clamp(mile, 0.0, total_miles) / total_miles
    return int(clamp(math.floor(ratio * (safe_columns - 1)), 0, safe_columns - 1))


def downsample_elevation(
    points: Sequence[ElevationPoint],
    total_miles: float,
    columns: int,
) -> list[ElevationColumn]:
    """Bucket elevation samples into waveform columns.

    Each column keeps min/max elevation and the grade (elevation change per
    mile) between its first and last sample. Empty columns copy their
    nearest filled neighbour so the waveform has no holes.
    """
    if not points:
        return []
    safe_columns = max(1, int(to_finite(columns, 1)))
    fallback_total = points[-1].mile or 1.0
    safe_total = max(0.001, to_finite(total_miles, fallback_total))
    buckets: list[_Bucket | None] = [None] * safe_columns

    for point in points:
        if not is_finite_number(point.elevation):
            continue
        mile = clamp(to_finite(point.mile, 0.0), 0.0, safe_total)
        elevation = point.elevation
        index = _column_index(mile, safe_total, safe_columns)
        bucket = buckets[index]
        if bucket is None:
            buckets[index] = _Bucket(elevation, elevation, mile, mile, elevation, elevation)
            continue

        bucket = replace(
            bucket,
            min_elevation=min(bucket.min_elevation, elevation),
            max_elevation=max(bucket.max_elevation, elevation),
        )
        if mile < bucket.first_mile:
            bucket = replace(bucket, first_mile=mile, first_elevation=elevation)
        if mile >= bucket.last_mile:
            bucket = replace(bucket, last_mile=mile, last_elevation=elevation)
        buckets[index] = bucket

    # Forward then backward fill
    last_known: _Bucket | None = None
    for index, bucket in enumerate(buckets):
        if bucket is not None:
            last_known = bucket
        elif last_known is not None:
            buckets[index] = last_known
    next_known: _Bucket | None = None
    for index in range(len(buckets) - 1, -1, -1):
        if buckets[index] is not None:
            next_known = buckets[index]
        elif next_known is not None:
            buckets[index] = next_known

    columns_out: list[ElevationColumn] = []
    for index, bucket in enumerate(buckets):
        if bucket is None:
            continue
        mile_delta = bucket.last_mile - bucket.first_mile
        grade = (bucket.last_elevation - bucket.first_elevation) / mile_delta if mile_delta > 0 else 0.0
        columns_out.append(
            ElevationColumn(
                x=index,
                min_elevation=bucket.min_elevation,
                max_elevation=bucket.max_elevation,
                grade_delta=grade,
            )
        )
    return columns_out


def detect_elevation_anchors(points: Sequence[ElevationPoint]) -> list[ElevationAnchor]:
    """Strict local maxima (summits) and minima (valleys)."""
    anchors: list[ElevationAnchor] = []
    for index in range(1, len(points) - 1):
        prev, curr, nxt = points[index - 1], points[index], points[index + 1]
        if curr.elevation > prev.elevation and curr.elevation > nxt.elevation:
            anchors.append(ElevationAnchor("summit", index, curr.mile, curr.elevation))
        elif curr.elevation < prev.elevation and curr.elevation < nxt.elevation:
            anchors.append(ElevationAnchor("valley", index, curr.mile, curr.elevation))
    return anchors


def snap_mile_to_anchor(
    raw_mile: float,
    anchors: Sequence[ElevationAnchor],
    threshold_mi: float,
) -> float:
    """Snap to the nearest anchor within threshold_mi, else return raw_mile."""
    threshold = max(0.0, to_finite(threshold_mi, 0.0))
    best_mile = raw_mile
    best_distance = math.inf
    for anchor in anchors:
        distance = abs(anchor.mile - raw_mile)
        if distance > threshold or distance >= best_distance:
            continue
        best_distance = distance
        best_mile = anchor.mile
    return best_mile
