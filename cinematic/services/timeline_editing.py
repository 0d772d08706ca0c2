"""Timeline editing operations on immutable document snapshots.

Each operation takes a RouteMediaDocument and returns an EditResult holding
the next snapshot. A rejected edit returns the input snapshot unchanged with
an ErrorInfo describing why; nothing is raised across this boundary unless
the host calls EditResult.raise_for_error().
"""

import logging
import uuid
from dataclasses import dataclass
from typing import Callable

from cinematic.config import get_settings
from cinematic.exceptions import (
    CinematicError,
    EditRejectedError,
    EntryNotFoundError,
    InvalidOverlayTypeError,
    NoRoomOnRouteError,
    SplitOutOfRangeError,
    TimelineOverlapError,
)
from cinematic.schemas.envelope import ErrorInfo
from cinematic.schemas.route_media import (
    Marker,
    RouteMediaDocument,
    Subtitle,
    TimelineEntry,
)
from cinematic.services.overlay_semantics import (
    OVERLAY_TYPES,
    OverlayMappingContext,
    canonical_to_overlays,
)
from cinematic.services.timeline_guardrails import (
    MIN_SUBTITLE_DURATION_SEC,
    MIN_TIMELINE_SPAN_MI,
    normalize_subtitle_durations,
    normalize_timeline_entry_range,
    resolve_max_miles,
    sort_timeline_entries,
)
from cinematic.services.timeline_lanes import detect_lane_overlaps, project_overlays_to_lanes
from cinematic.utils.numeric import clamp, to_finite

logger = logging.getLogger(__name__)

IdFactory = Callable[[], str]


def generate_entry_id() -> str:
    return f"entry-{uuid.uuid4().hex[:12]}"


@dataclass(frozen=True)
class EditResult:
    """Outcome of one editing operation."""

    document: RouteMediaDocument
    created_entry_id: str | None = None
    error: ErrorInfo | None = None
    # Start mile of the edited entry after normalization (nudge/move/resize)
    cursor_mi: float | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def raise_for_error(self) -> "EditResult":
        if self.error is not None:
            raise EditRejectedError(self.error)
        return self

    @classmethod
    def rejected(cls, document: RouteMediaDocument, exc: CinematicError) -> "EditResult":
        logger.debug(f"Edit rejected [{exc.code}]: {exc.message}")
        return cls(document=document, error=exc.to_error_info())


# =============================================================================
# Helpers
# =============================================================================


def estimate_seconds_at_mile(document: RouteMediaDocument, mile: float) -> float:
    """Playback second at which the camera reaches a mile."""
    speed = max(0.05, to_finite(document.playback.miles_per_second, 1.0))
    hold = max(0.0, to_finite(document.playback.hold_seconds, 0.0))
    return hold + max(0.0, to_finite(mile, 0.0)) / speed


def _replace_entry(
    timeline: list[TimelineEntry], entry_id: str, replacement: list[TimelineEntry]
) -> list[TimelineEntry]:
    result: list[TimelineEntry] = []
    for entry in timeline:
        if entry.id == entry_id:
            result.extend(replacement)
        else:
            result.append(entry)
    return sort_timeline_entries(result)


def _cascade_links(
    document: RouteMediaDocument, entry: TimelineEntry, start_mi: float
) -> tuple[list[Marker], list[Subtitle]]:
    """Move an entry's linked subtitles and first marker to a new start mile."""
    linked_subtitles = set(entry.subtitle_ids)
    primary_marker_id = entry.primary_marker_id
    next_start_sec = estimate_seconds_at_mile(document, start_mi)

    subtitles: list[Subtitle] = []
    for subtitle in document.subtitles:
        if subtitle.id in linked_subtitles:
            duration = max(MIN_SUBTITLE_DURATION_SEC, subtitle.end_sec - subtitle.start_sec)
            subtitle = subtitle.model_copy(
                update={"start_sec": next_start_sec, "end_sec": next_start_sec + duration}
            )
        subtitles.append(subtitle)

    markers = [
        marker.model_copy(update={"at_mi": start_mi}) if marker.id == primary_marker_id else marker
        for marker in document.markers
    ]
    return markers, normalize_subtitle_durations(subtitles)


def _apply_range(
    document: RouteMediaDocument, entry: TimelineEntry, normalized: TimelineEntry
) -> EditResult:
    markers, subtitles = _cascade_links(document, entry, normalized.start_mi)
    next_document = document.model_copy(
        update={
            "timeline": _replace_entry(document.timeline, entry.id, [normalized]),
            "markers": markers,
            "subtitles": subtitles,
        }
    )
    return EditResult(document=next_document, cursor_mi=normalized.start_mi)


# =============================================================================
# Operations
# =============================================================================


def split_entry(
    document: RouteMediaDocument,
    entry_id: str,
    mile: float,
    *,
    max_miles: float | None = None,
    id_factory: IdFactory = generate_entry_id,
) -> EditResult:
    """Split an entry in two at a mile.

    The first part keeps [start, mile] and its links; the new entry gets
    [mile, end] with no linked subtitles or markers. Rejected unless the
    split leaves at least the minimum span on both sides.
    """
    entry = document.find_entry(entry_id)
    if entry is None:
        return EditResult.rejected(document, EntryNotFoundError(entry_id))

    start_mi = entry.start_mi
    end_mi = entry.end_mi
    split_mi = clamp(to_finite(mile, start_mi), start_mi, end_mi)
    if split_mi <= start_mi + MIN_TIMELINE_SPAN_MI or split_mi >= end_mi - MIN_TIMELINE_SPAN_MI:
        return EditResult.rejected(
            document, SplitOutOfRangeError(entry_id, split_mi, start_mi, end_mi)
        )

    first = normalize_timeline_entry_range(entry, {"start_mi": start_mi, "end_mi": split_mi}, max_miles)
    second_id = id_factory()
    second = normalize_timeline_entry_range(
        entry,
        {
            "id": second_id,
            "start_mi": split_mi,
            "end_mi": end_mi,
            "subtitle_ids": [],
            "marker_ids": [],
        },
        max_miles,
    )

    next_document = document.model_copy(
        update={"timeline": _replace_entry(document.timeline, entry_id, [first, second])}
    )
    logger.debug(f"Split {entry_id} at {split_mi:.3f} mi into {second_id}")
    return EditResult(document=next_document, created_entry_id=second_id)


def duplicate_entry(
    document: RouteMediaDocument,
    entry_id: str,
    *,
    max_miles: float | None = None,
    id_factory: IdFactory = generate_entry_id,
) -> EditResult:
    """Place a copy of an entry just after it, with the same span and no links."""
    entry = document.find_entry(entry_id)
    if entry is None:
        return EditResult.rejected(document, EntryNotFoundError(entry_id))

    span = max(MIN_TIMELINE_SPAN_MI, entry.end_mi - entry.start_mi)
    duplicate_start = entry.start_mi + span + get_settings().duplicate_gap_mi
    limit = resolve_max_miles(max_miles)
    if duplicate_start > limit - MIN_TIMELINE_SPAN_MI:
        return EditResult.rejected(document, NoRoomOnRouteError(entry_id, duplicate_start, limit))

    duplicate_id = id_factory()
    duplicate = normalize_timeline_entry_range(
        entry,
        {
            "id": duplicate_id,
            "start_mi": duplicate_start,
            "end_mi": duplicate_start + span,
            "subtitle_ids": [],
            "marker_ids": [],
        },
        max_miles,
    )
    next_document = document.model_copy(
        update={"timeline": sort_timeline_entries([*document.timeline, duplicate])}
    )
    return EditResult(document=next_document, created_entry_id=duplicate_id)


def nudge_entry(
    document: RouteMediaDocument,
    entry_id: str,
    start_delta_mi: float = 0.0,
    end_delta_mi: float = 0.0,
    *,
    max_miles: float | None = None,
) -> EditResult:
    """Shift an entry's bounds by independent deltas, then renormalize.

    Only the timeline entry changes; linked markers and subtitles stay put.
    """
    entry = document.find_entry(entry_id)
    if entry is None:
        return EditResult.rejected(document, EntryNotFoundError(entry_id))

    normalized = normalize_timeline_entry_range(
        entry,
        {
            "start_mi": entry.start_mi + to_finite(start_delta_mi, 0.0),
            "end_mi": entry.end_mi + to_finite(end_delta_mi, 0.0),
        },
        max_miles,
    )
    next_document = document.model_copy(
        update={"timeline": _replace_entry(document.timeline, entry.id, [normalized])}
    )
    return EditResult(document=next_document, cursor_mi=normalized.start_mi)


def move_entry_to_mile(
    document: RouteMediaDocument,
    entry_id: str,
    mile: float,
    *,
    max_miles: float | None = None,
) -> EditResult:
    """Move an entry to start at a mile, keeping its span where the route allows."""
    entry = document.find_entry(entry_id)
    if entry is None:
        return EditResult.rejected(document, EntryNotFoundError(entry_id))

    limit = resolve_max_miles(max_miles)
    next_mile = clamp(to_finite(mile, 0.0), 0.0, limit)
    span = max(MIN_TIMELINE_SPAN_MI, entry.end_mi - entry.start_mi)
    next_end = clamp(next_mile + span, next_mile, limit)
    normalized = normalize_timeline_entry_range(
        entry, {"start_mi": next_mile, "end_mi": next_end}, max_miles
    )
    return _apply_range(document, entry, normalized)


def update_entry_range(
    document: RouteMediaDocument,
    entry_id: str,
    start_mi: float,
    end_mi: float,
    *,
    max_miles: float | None = None,
) -> EditResult:
    entry = document.find_entry(entry_id)
    if entry is None:
        return EditResult.rejected(document, EntryNotFoundError(entry_id))

    normalized = normalize_timeline_entry_range(
        entry, {"start_mi": start_mi, "end_mi": end_mi}, max_miles
    )
    return _apply_range(document, entry, normalized)


def remove_entry(document: RouteMediaDocument, entry_id: str) -> EditResult:
    """Delete an entry together with its linked markers and subtitles."""
    entry = document.find_entry(entry_id)
    if entry is None:
        return EditResult.rejected(document, EntryNotFoundError(entry_id))

    subtitle_ids = set(entry.subtitle_ids)
    marker_ids = set(entry.marker_ids)
    next_document = document.model_copy(
        update={
            "timeline": [item for item in document.timeline if item.id != entry_id],
            "subtitles": [item for item in document.subtitles if item.id not in subtitle_ids],
            "markers": [item for item in document.markers if item.id not in marker_ids],
        }
    )
    return EditResult(document=next_document)


def create_overlay(
    document: RouteMediaDocument,
    overlay_type: str,
    mile: float,
    *,
    max_miles: float | None = None,
    id_factory: IdFactory = generate_entry_id,
    title_attachments: dict[str, str] | None = None,
    context: OverlayMappingContext | None = None,
) -> EditResult:
    """Create a minimal entry of the given overlay type at a mile.

    title/poi entries get a linked marker and subtitle, camera entries
    toggle away from the default mode, and speed entries run slower than
    the default speed. Rejected if the new block overlaps a block in its
    own lane.
    """
    if overlay_type not in OVERLAY_TYPES:
        return EditResult.rejected(document, InvalidOverlayTypeError(overlay_type))

    settings = get_settings()
    limit = resolve_max_miles(max_miles)
    start_mi = clamp(to_finite(mile, 0.0), 0.0, limit)
    entry_id = id_factory()
    default_mode = document.camera.mode

    entry = normalize_timeline_entry_range(
        TimelineEntry(
            id=entry_id,
            start_mi=start_mi,
            end_mi=start_mi + MIN_TIMELINE_SPAN_MI,
            camera_mode=default_mode,
        ),
        None,
        max_miles,
    )
    markers = document.markers
    subtitles = document.subtitles

    if overlay_type in ("title", "poi"):
        is_poi = overlay_type == "poi"
        subtitle_id = f"subtitle-{entry_id}"
        marker_id = f"marker-{entry_id}"
        start_sec = estimate_seconds_at_mile(document, entry.start_mi)
        hold_seconds = max(MIN_SUBTITLE_DURATION_SEC, document.playback.hold_seconds)

        entry = entry.model_copy(
            update={
                "title": "New POI" if is_poi else "New Title",
                "subtitle_ids": [subtitle_id],
                "marker_ids": [marker_id],
            }
        )
        subtitle = Subtitle(
            id=subtitle_id,
            start_sec=start_sec,
            end_sec=start_sec + hold_seconds,
            text="New POI subtitle" if is_poi else "New title subtitle",
            position="bottom",
        )
        marker = Marker(
            id=marker_id,
            at_mi=entry.start_mi,
            type="poi" if is_poi else "title",
            title="POI" if is_poi else "Title",
        )
        subtitles = normalize_subtitle_durations([*document.subtitles, subtitle])
        markers = [*document.markers, marker]

    elif overlay_type == "camera":
        toggled = "overview" if default_mode == "follow" else "follow"
        entry = entry.model_copy(update={"camera_mode": toggled})

    elif overlay_type == "speed":
        base_speed = max(0.05, to_finite(document.playback.miles_per_second, 1.0))
        entry = entry.model_copy(
            update={"speed_mi_per_sec": max(0.05, base_speed * settings.created_speed_ratio)}
        )

    next_document = document.model_copy(
        update={
            "timeline": sort_timeline_entries([*document.timeline, entry]),
            "markers": markers,
            "subtitles": subtitles,
        }
    )

    overlays = canonical_to_overlays(
        next_document.timeline,
        next_document.markers,
        next_document.subtitles,
        title_attachments,
        context or OverlayMappingContext.from_document(next_document),
    )
    issues = detect_lane_overlaps(project_overlays_to_lanes(overlays, title_attachments))
    conflict = next(
        (issue for issue in issues if entry_id in (issue.entry_id, issue.previous_entry_id)),
        None,
    )
    if conflict is not None:
        logger.info(f"Rejected new {overlay_type} overlay at {start_mi:.3f} mi: {conflict.message}")
        return EditResult.rejected(document, TimelineOverlapError(entry_id, conflict.lane))

    return EditResult(document=next_document, created_entry_id=entry_id)
