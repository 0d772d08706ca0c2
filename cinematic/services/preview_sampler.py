"""One preview frame: route mapping, camera state and overlay state.

sample_preview_frame reads its arguments and builds new values only, so the
playback loop and a scrub handler can both call it on the same inputs.
"""

from dataclasses import dataclass
from typing import Sequence

from cinematic.services.camera_path import CameraKeyframe, CameraState, interpolate_camera_state
from cinematic.services.elevation_profile import ElevationPoint
from cinematic.services.overlay_activation import (
    OverlayActivationState,
    OverlayLookup,
    resolve_overlay_state_at_mile,
)
from cinematic.services.route_geometry import RouteStats
from cinematic.services.route_mapping import RouteMapping, map_progress_to_route_mapping


@dataclass(frozen=True)
class PreviewFrameSample:
    mapping: RouteMapping
    camera: CameraState
    overlays: OverlayActivationState


def sample_preview_frame(
    progress: float,
    route_stats: RouteStats | None,
    elevation_points: Sequence[ElevationPoint],
    waveform_columns: int,
    camera_keyframes: Sequence[CameraKeyframe],
    overlay_lookup: OverlayLookup,
) -> PreviewFrameSample:
    mapping = map_progress_to_route_mapping(progress, route_stats, elevation_points, waveform_columns)
    camera = interpolate_camera_state(camera_keyframes, mapping, route_stats)
    overlays = resolve_overlay_state_at_mile(mapping.mile, overlay_lookup)
    return PreviewFrameSample(mapping=mapping, camera=camera, overlays=overlays)
