"""Camera keyframes along the route and continuous camera state.

The default camera mode holds from mile 0 to the end of the route. Each
camera override contributes a keyframe at its start (its own mode preset)
and one at its end (back to the default preset). Between keyframes zoom,
bearing and pitch are interpolated; the discrete mode stays on the left
keyframe until the very end of the segment.
"""

import bisect
from dataclasses import dataclass
from typing import Callable, Iterable, Sequence

from cinematic.config import get_settings
from cinematic.schemas.route_media import DEFAULT_CAMERA_MODE, CameraDefaults, CameraMode
from cinematic.services.overlay_semantics import Overlay
from cinematic.services.route_geometry import RouteStats
from cinematic.services.route_mapping import RouteMapping
from cinematic.utils.interpolation import get_easing_function, interpolate
from cinematic.utils.numeric import clamp, to_finite

# Keyframes closer than this share a mile
KEYFRAME_MILE_EPSILON = 1e-9

PRIORITY_DEFAULT = 0
PRIORITY_REVERT = 1
PRIORITY_OVERRIDE = 2


@dataclass(frozen=True)
class CameraPreset:
    zoom: float
    bearing: float
    pitch: float


@dataclass(frozen=True)
class CameraKeyframe:
    mile: float
    mode: CameraMode
    zoom: float
    bearing: float
    pitch: float
    priority: int

    @classmethod
    def from_preset(
        cls, mile: float, mode: CameraMode, preset: CameraPreset, priority: int
    ) -> "CameraKeyframe":
        return cls(
            mile=mile,
            mode=mode,
            zoom=preset.zoom,
            bearing=preset.bearing,
            pitch=preset.pitch,
            priority=priority,
        )


@dataclass(frozen=True)
class CameraState:
    mile: float
    route_index: int
    lat: float
    lon: float
    mode: CameraMode
    zoom: float
    bearing: float
    pitch: float


FALLBACK_PRESET = CameraPreset(zoom=13.0, bearing=0.0, pitch=52.0)


def camera_preset(mode: CameraMode, defaults: CameraDefaults) -> CameraPreset:
    """Derive zoom/bearing/pitch for a mode from the document camera defaults.

    Overview sits higher and flatter than follow, so its zoom range is wider
    out and its pitch is lowered by 18 degrees.
    """
    follow_distance = max(20.0, to_finite(defaults.follow_distance_meters, 120.0) or 120.0)
    altitude = max(20.0, to_finite(defaults.altitude_meters, 90.0) or 90.0)
    heading_offset = to_finite(defaults.heading_offset_deg, 0.0)
    pitch = clamp(to_finite(defaults.pitch_deg, 58.0) or 58.0, 15.0, 78.0)

    if mode == "overview":
        return CameraPreset(
            zoom=clamp(12.6 - altitude / 220, 9.8, 13.8),
            bearing=heading_offset,
            pitch=clamp(pitch - 18, 20.0, 58.0),
        )
    return CameraPreset(
        zoom=clamp(15.4 - follow_distance / 75, 11.5, 16.2),
        bearing=heading_offset,
        pitch=pitch,
    )


def build_camera_keyframes(
    overlays: Iterable[Overlay],
    defaults: CameraDefaults,
    route_length_miles: float,
) -> list[CameraKeyframe]:
    """Ordered keyframes for the default mode plus every camera override.

    Keyframes are sorted by (mile, priority); where several land on the same
    mile only the highest priority one is kept.
    """
    route_miles = max(0.0, to_finite(route_length_miles, 0.0))
    default_mode = defaults.mode or DEFAULT_CAMERA_MODE
    default_preset = camera_preset(default_mode, defaults)
    keyframes = [
        CameraKeyframe.from_preset(0.0, default_mode, default_preset, PRIORITY_DEFAULT),
        CameraKeyframe.from_preset(route_miles, default_mode, default_preset, PRIORITY_DEFAULT),
    ]

    camera_overlays = sorted(
        (overlay for overlay in overlays if overlay.type == "camera"),
        key=lambda overlay: (to_finite(overlay.start_mile, 0.0), overlay.entry_id),
    )
    for overlay in camera_overlays:
        mode = overlay.camera_mode or default_mode
        if mode == default_mode:
            continue
        start_mi = clamp(to_finite(overlay.start_mile, 0.0), 0.0, route_miles)
        end_mi = clamp(to_finite(overlay.end_mile, start_mi), start_mi, route_miles)
        keyframes.append(
            CameraKeyframe.from_preset(start_mi, mode, camera_preset(mode, defaults), PRIORITY_OVERRIDE)
        )
        keyframes.append(
            CameraKeyframe.from_preset(end_mi, default_mode, default_preset, PRIORITY_REVERT)
        )

    keyframes.sort(key=lambda frame: (frame.mile, frame.priority))
    deduped: list[CameraKeyframe] = []
    for frame in keyframes:
        if deduped and abs(deduped[-1].mile - frame.mile) < KEYFRAME_MILE_EPSILON:
            deduped[-1] = frame
        else:
            deduped.append(frame)
    return deduped


def _state_from(
    mapping: RouteMapping, lat: float, lon: float, mode: CameraMode, preset: CameraPreset | CameraKeyframe
) -> CameraState:
    return CameraState(
        mile=mapping.mile,
        route_index=mapping.route_index,
        lat=lat,
        lon=lon,
        mode=mode,
        zoom=preset.zoom,
        bearing=preset.bearing,
        pitch=preset.pitch,
    )


def interpolate_camera_state(
    keyframes: Sequence[CameraKeyframe],
    mapping: RouteMapping,
    route_stats: RouteStats | None,
    *,
    easing: Callable[[float], float] | None = None,
    mode_snap_t: float | None = None,
) -> CameraState:
    """Camera state at the mapped mile.

    Args:
        keyframes: Output of build_camera_keyframes
        mapping: Route mapping for the current progress
        route_stats: Route geometry for lat/lon; None gives (0, 0)
        easing: Easing applied to t; defaults to the configured camera easing
        mode_snap_t: t at which the right keyframe's mode takes over

    Returns:
        Boundary keyframe state outside the keyframe range, interpolated
        state inside it, or a fixed follow preset when there are no keyframes
    """
    lat = lon = 0.0
    if route_stats is not None and route_stats.coords:
        coord = route_stats.coords[clamp(mapping.route_index, 0, route_stats.last_index)]
        lon, lat = coord[0], coord[1]

    if not keyframes:
        return _state_from(mapping, lat, lon, DEFAULT_CAMERA_MODE, FALLBACK_PRESET)

    first = keyframes[0]
    if mapping.mile <= first.mile:
        return _state_from(mapping, lat, lon, first.mode, first)
    last = keyframes[-1]
    if mapping.mile >= last.mile:
        return _state_from(mapping, lat, lon, last.mode, last)

    settings = get_settings()
    easing = easing or get_easing_function(settings.camera_easing)
    snap_t = settings.camera_mode_snap_t if mode_snap_t is None else mode_snap_t

    right_index = max(1, bisect.bisect_left([frame.mile for frame in keyframes], mapping.mile))
    left = keyframes[right_index - 1]
    right = keyframes[right_index]
    span = max(1e-6, right.mile - left.mile)
    t = clamp((mapping.mile - left.mile) / span, 0.0, 1.0)

    return CameraState(
        mile=mapping.mile,
        route_index=mapping.route_index,
        lat=lat,
        lon=lon,
        mode=left.mode if t < snap_t else right.mode,
        zoom=interpolate(t, [0.0, 1.0], [left.zoom, right.zoom], easing=easing),
        bearing=interpolate(t, [0.0, 1.0], [left.bearing, right.bearing], easing=easing),
        pitch=interpolate(t, [0.0, 1.0], [left.pitch, right.pitch], easing=easing),
    )
