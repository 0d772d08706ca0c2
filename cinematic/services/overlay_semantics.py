"""Overlay semantics: canonical timeline entries <-> typed overlays.

A canonical entry (plus its first linked marker and subtitle) is classified
into zero or more overlays keyed by (entry_id, type). Each overlay keeps a
back-reference to the records it came from so overlays_to_canonical can
rebuild the canonical lists exactly.

Classification per entry, with marker m, default camera mode D and default
speed S:
- poi: m.type == "poi"
- title: not poi and (entry.title non-empty or m.type in {title, subtitle})
- camera: not poi and entry.camera_mode set and != D (D defaults to follow)
- speed: speed finite and > 0 and (S unset or |speed - S| > epsilon)

An entry matching none of these still yields an untitled title overlay so
that it stays visible and editable on the timeline.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable, Literal

from cinematic.config import get_settings
from cinematic.schemas.route_media import (
    DEFAULT_CAMERA_MODE,
    CameraMode,
    Marker,
    RouteMediaDocument,
    Subtitle,
    TimelineEntry,
)
from cinematic.utils.numeric import is_finite_number, to_finite

logger = logging.getLogger(__name__)

OverlayType = Literal["title", "poi", "camera", "speed"]
OVERLAY_TYPES: tuple[OverlayType, ...] = ("title", "poi", "camera", "speed")


def _default_speed_epsilon() -> float:
    return get_settings().speed_epsilon


@dataclass(frozen=True)
class OverlayMappingContext:
    """Document defaults used to decide what counts as an override."""

    default_camera_mode: CameraMode | None = None
    default_speed_mi_per_sec: float | None = None
    speed_epsilon: float = field(default_factory=_default_speed_epsilon)

    @classmethod
    def from_document(cls, document: RouteMediaDocument) -> "OverlayMappingContext":
        return cls(
            default_camera_mode=document.camera.mode,
            default_speed_mi_per_sec=document.playback.miles_per_second,
        )


@dataclass(frozen=True)
class OverlayConfig:
    """Back-reference from an overlay to its canonical records."""

    entry_id: str
    entry_index: int
    entry: TimelineEntry
    marker_id: str | None = None
    marker_index: int | None = None
    marker: Marker | None = None
    subtitle_id: str | None = None
    subtitle_index: int | None = None
    subtitle: Subtitle | None = None
    label: str = ""


@dataclass(frozen=True)
class Overlay:
    id: str
    type: OverlayType
    start_mile: float
    end_mile: float
    config: OverlayConfig
    attached_poi_entry_id: str | None = None

    @property
    def lane(self) -> OverlayType:
        return self.type

    @property
    def entry_id(self) -> str:
        return self.config.entry_id

    @property
    def label(self) -> str:
        return self.config.label

    @property
    def marker_type(self) -> str | None:
        return self.config.marker.type if self.config.marker else None

    @property
    def speed_mi_per_sec(self) -> float | None:
        return self.config.entry.speed_mi_per_sec

    @property
    def camera_mode(self) -> CameraMode | None:
        return self.config.entry.camera_mode


def overlay_id(entry_id: str, overlay_type: OverlayType) -> str:
    return f"{entry_id}:{overlay_type}"


# =============================================================================
# Classification predicates
# =============================================================================


def is_poi_entry(marker: Marker | None) -> bool:
    return marker is not None and marker.type == "poi"


def is_title_entry(entry: TimelineEntry, marker: Marker | None) -> bool:
    if is_poi_entry(marker):
        return False
    if entry.title and entry.title.strip():
        return True
    return marker is not None and marker.type in ("title", "subtitle")


def is_camera_override(
    entry: TimelineEntry, marker: Marker | None, context: OverlayMappingContext
) -> bool:
    if is_poi_entry(marker) or not entry.camera_mode:
        return False
    return entry.camera_mode != (context.default_camera_mode or DEFAULT_CAMERA_MODE)


def is_speed_override(entry: TimelineEntry, context: OverlayMappingContext) -> bool:
    speed = entry.speed_mi_per_sec
    if speed is None or not is_finite_number(speed) or speed <= 0:
        return False
    default_speed = context.default_speed_mi_per_sec
    if default_speed is None or not is_finite_number(default_speed) or default_speed <= 0:
        return True
    epsilon = max(0.0, to_finite(context.speed_epsilon, 1e-4))
    return abs(speed - default_speed) > epsilon


def _overlay_label(overlay_type: OverlayType, entry: TimelineEntry, marker: Marker | None) -> str:
    if overlay_type == "camera":
        return entry.camera_mode or "Camera"
    if overlay_type == "speed":
        return f"Speed {to_finite(entry.speed_mi_per_sec):.2f}"
    return entry.title or (marker.title if marker else "") or entry.id


# =============================================================================
# Canonical -> overlays
# =============================================================================


def canonical_to_overlays(
    timeline: Iterable[TimelineEntry],
    markers: Iterable[Marker],
    subtitles: Iterable[Subtitle],
    title_attachments: dict[str, str] | None = None,
    context: OverlayMappingContext | None = None,
) -> list[Overlay]:
    """Classify canonical entries into typed overlays.

    Args:
        timeline: Canonical entries, in document order
        markers: Document markers
        subtitles: Document subtitles
        title_attachments: title entry id -> POI entry id
        context: Default camera mode / speed; None means no defaults

    Returns:
        Overlays in entry order; within an entry: title, poi, camera, speed
    """
    context = context or OverlayMappingContext()
    attachments = title_attachments or {}
    marker_lookup = {marker.id: (index, marker) for index, marker in enumerate(markers)}
    subtitle_lookup = {subtitle.id: (index, subtitle) for index, subtitle in enumerate(subtitles)}
    overlays: list[Overlay] = []

    for entry_index, entry in enumerate(timeline):
        marker_index, marker = marker_lookup.get(entry.primary_marker_id or "", (None, None))
        subtitle_index, subtitle = subtitle_lookup.get(entry.primary_subtitle_id or "", (None, None))

        matched: list[OverlayType] = []
        if is_title_entry(entry, marker):
            matched.append("title")
        if is_poi_entry(marker):
            matched.append("poi")
        if is_camera_override(entry, marker, context):
            matched.append("camera")
        if is_speed_override(entry, context):
            matched.append("speed")

        fallback = not matched
        if fallback:
            logger.debug(f"Entry {entry.id} has no overlay semantics, showing as untitled title")
            matched.append("title")

        start_mile = to_finite(entry.start_mi, 0.0)
        end_mile = max(start_mile, to_finite(entry.end_mi, start_mile))

        for overlay_type in matched:
            config = OverlayConfig(
                entry_id=entry.id,
                entry_index=entry_index,
                entry=entry,
                marker_id=marker.id if marker else None,
                marker_index=marker_index,
                marker=marker,
                subtitle_id=subtitle.id if subtitle else None,
                subtitle_index=subtitle_index,
                subtitle=subtitle,
                label="" if fallback else _overlay_label(overlay_type, entry, marker),
            )
            overlays.append(
                Overlay(
                    id=overlay_id(entry.id, overlay_type),
                    type=overlay_type,
                    start_mile=start_mile,
                    end_mile=end_mile,
                    config=config,
                    attached_poi_entry_id=attachments.get(entry.id) if overlay_type == "title" else None,
                )
            )

    return overlays


def document_to_overlays(
    document: RouteMediaDocument,
    title_attachments: dict[str, str] | None = None,
    context: OverlayMappingContext | None = None,
) -> list[Overlay]:
    """canonical_to_overlays over a document, using its own defaults."""
    return canonical_to_overlays(
        document.timeline,
        document.markers,
        document.subtitles,
        title_attachments,
        context or OverlayMappingContext.from_document(document),
    )


# =============================================================================
# Overlays -> canonical
# =============================================================================


def overlays_to_canonical(
    overlays: Iterable[Overlay],
) -> tuple[list[TimelineEntry], list[Marker], list[Subtitle]]:
    """Rebuild canonical (timeline, markers, subtitles) from overlays.

    Entries come back in their original order. When one entry produced
    several overlays, the last one (by overlay id) sets the mile range. A
    linked marker shifts by the same amount as its entry's start, so
    unchanged overlays reproduce the input exactly.
    """
    ranges: dict[str, tuple[OverlayConfig, float, float]] = {}

    ordered = sorted(overlays, key=lambda overlay: (overlay.config.entry_index, overlay.id))
    for overlay in ordered:
        source = overlay.config.entry
        start_mi = to_finite(overlay.start_mile, source.start_mi)
        end_mi = max(start_mi, to_finite(overlay.end_mile, source.end_mi))
        first_config = ranges[overlay.entry_id][0] if overlay.entry_id in ranges else overlay.config
        ranges[overlay.entry_id] = (first_config, start_mi, end_mi)

    entries: list[tuple[int, TimelineEntry]] = []
    markers: dict[str, tuple[int, Marker]] = {}
    subtitles: dict[str, tuple[int, Subtitle]] = {}

    for config, start_mi, end_mi in ranges.values():
        source = config.entry
        if start_mi == source.start_mi and end_mi == source.end_mi:
            entries.append((config.entry_index, source))
        else:
            entries.append(
                (config.entry_index, source.model_copy(update={"start_mi": start_mi, "end_mi": end_mi}))
            )

        if config.marker is not None and config.marker.id not in markers:
            marker = config.marker
            shift = start_mi - source.start_mi
            if shift:
                marker = marker.model_copy(update={"at_mi": marker.at_mi + shift})
            index = config.marker_index if config.marker_index is not None else len(markers)
            markers[marker.id] = (index, marker)

        if config.subtitle is not None and config.subtitle.id not in subtitles:
            index = config.subtitle_index if config.subtitle_index is not None else len(subtitles)
            subtitles[config.subtitle.id] = (index, config.subtitle)

    def _in_order(records: Iterable[tuple[int, object]]) -> list:
        return [record for _, record in sorted(records, key=lambda item: item[0])]

    return _in_order(entries), _in_order(markers.values()), _in_order(subtitles.values())
