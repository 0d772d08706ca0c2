"""Title -> POI attachments.

An attachment pins a title entry to a POI entry so the title follows the
POI when it moves. Attachments are a plain dict of title entry id to POI
entry id owned by the host, alongside (not inside) the document.
"""

from cinematic.config import get_settings
from cinematic.schemas.route_media import RouteMediaDocument
from cinematic.services.overlay_semantics import OverlayMappingContext, document_to_overlays
from cinematic.services.timeline_guardrails import (
    MIN_TIMELINE_SPAN_MI,
    normalize_timeline_entry_range,
    sort_timeline_entries,
)
from cinematic.services.timeline_lanes import find_nearest_poi_entry_id

# Starts closer than this are considered already in sync
SYNC_TOLERANCE_MI = 1e-6


def prune_title_attachments(
    document: RouteMediaDocument, attachments: dict[str, str]
) -> dict[str, str]:
    """Drop attachments whose title or POI entry no longer exists.

    Returns the same dict object when nothing was dropped.
    """
    entry_ids = document.entry_ids
    pruned = {
        title_id: poi_id
        for title_id, poi_id in attachments.items()
        if title_id in entry_ids and poi_id in entry_ids
    }
    return attachments if len(pruned) == len(attachments) else pruned


def detach_entry(attachments: dict[str, str], entry_id: str) -> dict[str, str]:
    """Remove every attachment that mentions entry_id on either side."""
    return {
        title_id: poi_id
        for title_id, poi_id in attachments.items()
        if entry_id not in (title_id, poi_id)
    }


def sync_attached_titles(
    document: RouteMediaDocument,
    attachments: dict[str, str],
    max_miles: float | None = None,
    context: OverlayMappingContext | None = None,
) -> RouteMediaDocument:
    """Move each attached title so it starts where its POI starts.

    The title keeps its span. Attachments pointing at an entry that is not
    currently a POI are ignored. Returns the input document when no title
    needed to move.
    """
    if not attachments:
        return document

    overlays = document_to_overlays(document, attachments, context)
    poi_starts = {overlay.entry_id: overlay.start_mile for overlay in overlays if overlay.type == "poi"}

    changed = False
    timeline = []
    for entry in document.timeline:
        poi_start = poi_starts.get(attachments.get(entry.id, ""))
        if poi_start is None or abs(entry.start_mi - poi_start) < SYNC_TOLERANCE_MI:
            timeline.append(entry)
            continue
        span = max(MIN_TIMELINE_SPAN_MI, entry.end_mi - entry.start_mi)
        timeline.append(
            normalize_timeline_entry_range(
                entry, {"start_mi": poi_start, "end_mi": poi_start + span}, max_miles
            )
        )
        changed = True

    if not changed:
        return document
    return document.model_copy(update={"timeline": sort_timeline_entries(timeline)})


def attach_title_to_nearest_poi(
    document: RouteMediaDocument,
    attachments: dict[str, str],
    title_entry_id: str,
    threshold_mi: float | None = None,
    context: OverlayMappingContext | None = None,
) -> dict[str, str]:
    """Attach a title to the POI starting nearest to it, or detach it if none is close."""
    threshold = get_settings().attach_poi_threshold_mi if threshold_mi is None else threshold_mi
    overlays = document_to_overlays(document, attachments, context)
    title_overlay = next(
        (overlay for overlay in overlays if overlay.type == "title" and overlay.entry_id == title_entry_id),
        None,
    )
    next_attachments = {k: v for k, v in attachments.items() if k != title_entry_id}
    if title_overlay is None:
        return next_attachments

    poi_entry_id = find_nearest_poi_entry_id(title_overlay, overlays, threshold)
    if poi_entry_id is not None and poi_entry_id != title_entry_id:
        next_attachments[title_entry_id] = poi_entry_id
    return next_attachments
