"""Normalization primitives for timeline entries and subtitles.

Every mutating timeline operation passes its result through these helpers so
that entries keep a minimum mile span inside the route and subtitles keep a
minimum on-screen duration.
"""

import math
from typing import Any, Iterable

from cinematic.schemas.route_media import RouteMediaDocument, Subtitle, TimelineEntry
from cinematic.utils.numeric import clamp, is_finite_number, to_finite

MIN_TIMELINE_SPAN_MI = 0.01
MIN_SUBTITLE_DURATION_SEC = 0.1


def resolve_max_miles(max_miles: Any) -> float:
    """Route length bound; missing or non-finite means unbounded."""
    if max_miles is None or not is_finite_number(max_miles):
        return math.inf
    return max(0.0, to_finite(max_miles))


def normalize_timeline_entry_range(
    entry: TimelineEntry,
    updates: dict[str, Any] | None = None,
    max_miles: float | None = None,
) -> TimelineEntry:
    """Merge updates into an entry and clamp its range to the route.

    Args:
        entry: Source entry (not modified)
        updates: Field updates keyed by python field name (start_mi, end_mi, ...)
        max_miles: Route length in miles; None means unbounded

    Returns:
        New entry with start in [0, max - MIN_SPAN] and
        end in [start + MIN_SPAN, max]. A zero-length route collapses both to 0,
        and a route shorter than MIN_SPAN yields the whole route [0, max].
    """
    updates = dict(updates or {})
    limit = resolve_max_miles(max_miles)

    raw_start = to_finite(updates.pop("start_mi", entry.start_mi), 0.0)
    raw_end = to_finite(updates.pop("end_mi", entry.end_mi), raw_start)

    if limit == 0:
        start_mi = end_mi = 0.0
    else:
        # Below MIN_SPAN the span cannot be honored; the entry covers the route.
        start_mi = clamp(raw_start, 0.0, max(0.0, limit - MIN_TIMELINE_SPAN_MI))
        min_end = min(limit, start_mi + MIN_TIMELINE_SPAN_MI)
        end_mi = clamp(raw_end, min_end, limit)

    return entry.model_copy(update={**updates, "start_mi": start_mi, "end_mi": end_mi})


def normalize_subtitle_durations(subtitles: Iterable[Subtitle]) -> list[Subtitle]:
    """Clamp subtitle starts to >= 0 and durations to the minimum."""
    normalized: list[Subtitle] = []
    for subtitle in subtitles:
        start_sec = max(0.0, to_finite(subtitle.start_sec, 0.0))
        end_sec = max(start_sec + MIN_SUBTITLE_DURATION_SEC, to_finite(subtitle.end_sec, start_sec))
        if start_sec == subtitle.start_sec and end_sec == subtitle.end_sec:
            normalized.append(subtitle)
        else:
            normalized.append(subtitle.model_copy(update={"start_sec": start_sec, "end_sec": end_sec}))
    return normalized


def timeline_sort_key(entry: TimelineEntry) -> tuple[float, float, str]:
    return (entry.start_mi, entry.end_mi, entry.id)


def sort_timeline_entries(entries: Iterable[TimelineEntry]) -> list[TimelineEntry]:
    """Canonical order: (start_mi, end_mi, id)."""
    return sorted(entries, key=timeline_sort_key)


def normalize_document(
    document: RouteMediaDocument, max_miles: float | None = None
) -> RouteMediaDocument:
    """Apply every guardrail to a whole document before it is written back."""
    timeline = sort_timeline_entries(
        normalize_timeline_entry_range(entry, None, max_miles) for entry in document.timeline
    )
    return document.model_copy(
        update={
            "timeline": timeline,
            "subtitles": normalize_subtitle_durations(document.subtitles),
        }
    )
