"""Lane projection and intra-lane overlap detection.

Overlays are bucketed into four fixed lanes. Blocks in the same lane must
not overlap; blocks in different lanes may (a title can run over a camera
override), so lanes are never compared with each other.
"""

import math
from dataclasses import dataclass
from typing import Iterable

from cinematic.services.overlay_semantics import OVERLAY_TYPES, Overlay, OverlayType
from cinematic.utils.numeric import to_finite

LaneId = OverlayType
LaneProjection = dict[LaneId, list["LaneBlock"]]


@dataclass(frozen=True)
class LaneDefinition:
    id: LaneId
    label: str
    color: str
    block_height: int


LANE_DEFINITIONS: tuple[LaneDefinition, ...] = (
    LaneDefinition(id="title", label="Title Track", color="#34d399", block_height=28),
    LaneDefinition(id="poi", label="POI Overlay Track", color="#f59e0b", block_height=24),
    LaneDefinition(id="camera", label="Camera Track", color="#60a5fa", block_height=24),
    LaneDefinition(id="speed", label="Speed Track", color="#f472b6", block_height=24),
)


@dataclass(frozen=True)
class LaneBlock:
    """Projection of one overlay into its lane."""

    lane: LaneId
    entry_id: str
    overlay_id: str
    start_mi: float
    end_mi: float
    label: str
    marker_type: str | None = None
    attached_poi_entry_id: str | None = None
    speed_mi_per_sec: float | None = None

    @property
    def span_mi(self) -> float:
        return self.end_mi - self.start_mi

    def covers(self, mile: float) -> bool:
        return self.start_mi <= mile <= self.end_mi


@dataclass(frozen=True)
class LaneOverlapIssue:
    lane: LaneId
    entry_id: str
    previous_entry_id: str
    message: str


def lane_definitions() -> list[LaneDefinition]:
    return list(LANE_DEFINITIONS)


def _block_sort_key(block: LaneBlock) -> tuple[float, float, str]:
    return (block.start_mi, block.end_mi, block.entry_id)


def _lane_block(overlay: Overlay, attached_poi_entry_id: str | None) -> LaneBlock:
    start_mi = to_finite(overlay.start_mile, 0.0)
    end_mi = max(start_mi, to_finite(overlay.end_mile, start_mi))
    return LaneBlock(
        lane=overlay.lane,
        entry_id=overlay.entry_id,
        overlay_id=overlay.id,
        start_mi=start_mi,
        end_mi=end_mi,
        label=overlay.label,
        marker_type=overlay.marker_type,
        attached_poi_entry_id=attached_poi_entry_id,
        speed_mi_per_sec=overlay.speed_mi_per_sec,
    )


def project_overlays_to_lanes(
    overlays: Iterable[Overlay],
    title_attachments: dict[str, str] | None = None,
) -> LaneProjection:
    """Bucket overlays by lane, each lane sorted by (start, end, entry id).

    Title blocks carry their POI attachment, taken from the overlay itself
    or else from title_attachments.
    """
    lanes: LaneProjection = {lane: [] for lane in OVERLAY_TYPES}
    attachments = title_attachments or {}

    for overlay in overlays:
        attached = None
        if overlay.type == "title":
            attached = overlay.attached_poi_entry_id or attachments.get(overlay.entry_id)
        lanes[overlay.lane].append(_lane_block(overlay, attached))

    for lane, blocks in lanes.items():
        lanes[lane] = sorted(blocks, key=_block_sort_key)
    return lanes


def detect_lane_overlaps(lanes: LaneProjection) -> list[LaneOverlapIssue]:
    """Scan adjacent blocks of each lane for overlap.

    Touching blocks (start == previous end) are not an overlap.
    """
    issues: list[LaneOverlapIssue] = []
    for lane, blocks in lanes.items():
        previous: LaneBlock | None = None
        for block in sorted(blocks, key=_block_sort_key):
            if previous is not None and block.start_mi < previous.end_mi:
                issues.append(
                    LaneOverlapIssue(
                        lane=lane,
                        entry_id=block.entry_id,
                        previous_entry_id=previous.entry_id,
                        message=f'Entry "{block.entry_id}" overlaps "{previous.entry_id}" in lane {lane}.',
                    )
                )
            previous = block
    return issues


def snap_to_lane_edge(
    raw_mile: float,
    blocks: Iterable[LaneBlock],
    entry_id: str,
    threshold_mi: float,
) -> float:
    """Snap a dragged mile to the nearest edge of another block in the lane.

    Returns raw_mile unchanged when no edge lies within threshold_mi.
    """
    threshold = max(0.0, to_finite(threshold_mi, 0.0))
    best_mile = raw_mile
    best_distance = math.inf
    for block in blocks:
        if block.entry_id == entry_id:
            continue
        for candidate in (block.start_mi, block.end_mi):
            distance = abs(candidate - raw_mile)
            if distance > threshold or distance >= best_distance:
                continue
            best_distance = distance
            best_mile = candidate
    return best_mile


def find_nearest_poi_entry_id(
    title_overlay: Overlay,
    overlays: Iterable[Overlay],
    threshold_mi: float = 0.2,
) -> str | None:
    """Entry id of the POI block starting closest to the title's start."""
    poi_blocks = project_overlays_to_lanes(overlays)["poi"]
    title_start = to_finite(title_overlay.start_mile, 0.0)
    best_entry_id: str | None = None
    best_distance = math.inf
    for block in poi_blocks:
        distance = abs(block.start_mi - title_start)
        if distance > threshold_mi or distance >= best_distance:
            continue
        best_distance = distance
        best_entry_id = block.entry_id
    return best_entry_id
