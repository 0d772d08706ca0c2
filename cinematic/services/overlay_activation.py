"""Which overlays are on screen at a given mile, and how opaque they are."""

from dataclasses import dataclass, field
from typing import Iterable

from cinematic.config import get_settings
from cinematic.schemas.route_media import PlaybackConfig, Subtitle
from cinematic.services.overlay_semantics import OVERLAY_TYPES, Overlay
from cinematic.services.timeline_lanes import LaneBlock, LaneId, project_overlays_to_lanes
from cinematic.utils.numeric import clamp, to_finite


@dataclass(frozen=True)
class Caption:
    start_mi: float
    end_mi: float
    text: str


@dataclass(frozen=True)
class ActiveTitle:
    entry_id: str
    text: str
    start_mi: float
    end_mi: float
    opacity: float


@dataclass(frozen=True)
class ActivePoi:
    entry_id: str
    label: str
    distance_mi: float
    opacity: float


@dataclass(frozen=True)
class SpeedIndicator:
    entry_id: str
    speed_mi_per_sec: float


@dataclass(frozen=True)
class OverlayActivationState:
    active_titles: list[ActiveTitle] = field(default_factory=list)
    active_pois: list[ActivePoi] = field(default_factory=list)
    speed_indicator: SpeedIndicator | None = None
    active_entry_ids: list[str] = field(default_factory=list)
    active_captions: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class OverlayLookup:
    """Lane blocks prepared once per timeline revision for per-frame lookup."""

    by_lane: dict[LaneId, list[LaneBlock]]
    all_blocks: list[LaneBlock]
    captions: list[Caption]


def build_overlay_lookup(
    overlays: Iterable[Overlay],
    captions: Iterable[Caption] = (),
) -> OverlayLookup:
    lanes = project_overlays_to_lanes(overlays)
    by_lane = {lane: list(lanes[lane]) for lane in OVERLAY_TYPES}
    all_blocks = [block for lane in OVERLAY_TYPES for block in by_lane[lane]]
    return OverlayLookup(by_lane=by_lane, all_blocks=all_blocks, captions=list(captions))


def fade_opacity(mile: float, start_mi: float, end_mi: float) -> float:
    """Opacity ramp at both edges of [start_mi, end_mi]; 0 outside it.

    The ramp is 20% of the span, kept between 0.03 and 0.2 mi.
    """
    if mile < start_mi or mile > end_mi:
        return 0.0
    span = max(0.01, end_mi - start_mi)
    window = max(0.03, min(0.2, span * 0.2))
    lead = clamp((mile - start_mi) / window, 0.0, 1.0)
    tail = clamp((end_mi - mile) / window, 0.0, 1.0)
    return clamp(min(lead, tail, 1.0), 0.0, 1.0)


def resolve_overlay_state_at_mile(
    mile: float,
    lookup: OverlayLookup,
    *,
    poi_window_mi: float | None = None,
) -> OverlayActivationState:
    safe_mile = max(0.0, to_finite(mile, 0.0))
    window = get_settings().poi_window_mi if poi_window_mi is None else poi_window_mi

    active_titles = [
        ActiveTitle(
            entry_id=block.entry_id,
            text=block.label,
            start_mi=block.start_mi,
            end_mi=block.end_mi,
            opacity=fade_opacity(safe_mile, block.start_mi, block.end_mi),
        )
        for block in lookup.by_lane["title"]
        if block.covers(safe_mile)
    ]

    active_captions = [
        caption.text
        for caption in lookup.captions
        if caption.text and caption.start_mi <= safe_mile <= caption.end_mi
    ]

    active_pois: list[ActivePoi] = []
    for block in lookup.by_lane["poi"]:
        distance = abs(block.start_mi - safe_mile)
        if distance > window:
            continue
        active_pois.append(
            ActivePoi(
                entry_id=block.entry_id,
                label=block.label,
                distance_mi=distance,
                opacity=clamp(1 - distance / window, 0.0, 1.0) if window > 0 else 1.0,
            )
        )

    speed_block = next((block for block in lookup.by_lane["speed"] if block.covers(safe_mile)), None)
    speed_indicator = None
    if speed_block is not None:
        speed_indicator = SpeedIndicator(
            entry_id=speed_block.entry_id,
            speed_mi_per_sec=to_finite(speed_block.speed_mi_per_sec, 0.0),
        )

    active_entry_ids = sorted({block.entry_id for block in lookup.all_blocks if block.covers(safe_mile)})

    return OverlayActivationState(
        active_titles=active_titles,
        active_pois=active_pois,
        speed_indicator=speed_indicator,
        active_entry_ids=active_entry_ids,
        active_captions=active_captions,
    )


def captions_from_subtitles(
    subtitles: Iterable[Subtitle], playback: PlaybackConfig
) -> list[Caption]:
    """Place subtitles on the route by inverting the seconds-at-mile estimate."""
    miles_per_second = max(0.05, to_finite(playback.miles_per_second, 1.0))
    hold = max(0.0, to_finite(playback.hold_seconds, 0.0))
    return [
        Caption(
            start_mi=max(0.0, subtitle.start_sec - hold) * miles_per_second,
            end_mi=max(0.0, subtitle.end_sec - hold) * miles_per_second,
            text=subtitle.text,
        )
        for subtitle in subtitles
    ]
