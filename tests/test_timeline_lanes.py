"""Tests for lane projection and overlap detection."""

from cinematic.schemas.route_media import Marker, TimelineEntry
from cinematic.services.overlay_semantics import OverlayMappingContext, canonical_to_overlays
from cinematic.services.timeline_lanes import (
    LaneBlock,
    detect_lane_overlaps,
    find_nearest_poi_entry_id,
    lane_definitions,
    project_overlays_to_lanes,
    snap_to_lane_edge,
)

CONTEXT = OverlayMappingContext(default_camera_mode="follow", default_speed_mi_per_sec=1.0)


def _lanes(timeline, markers=(), attachments=None):
    overlays = canonical_to_overlays(timeline, list(markers), [], attachments, CONTEXT)
    return project_overlays_to_lanes(overlays, attachments)


class TestProjectOverlaysToLanes:
    """Tests for project_overlays_to_lanes."""

    def test_blocks_are_bucketed_and_sorted(self):
        """Test that each lane holds its own blocks in mile order."""
        lanes = _lanes(
            [
                TimelineEntry(id="t2", start_mi=3, end_mi=4, title="Second"),
                TimelineEntry(id="t1", start_mi=1, end_mi=2, title="First"),
                TimelineEntry(id="c1", start_mi=1, end_mi=3, camera_mode="overview"),
            ]
        )

        assert list(lanes) == ["title", "poi", "camera", "speed"]
        assert [block.entry_id for block in lanes["title"]] == ["t1", "t2"]
        assert [block.entry_id for block in lanes["camera"]] == ["c1"]
        assert lanes["poi"] == []
        assert lanes["title"][0].label == "First"

    def test_title_blocks_carry_attachment(self):
        """Test that attachments are copied onto title blocks only."""
        lanes = _lanes(
            [TimelineEntry(id="t", start_mi=1, end_mi=2, title="T")],
            attachments={"t": "p"},
        )

        assert lanes["title"][0].attached_poi_entry_id == "p"

    def test_speed_block_carries_speed(self):
        """Test that speed blocks expose their speed value."""
        lanes = _lanes([TimelineEntry(id="s", start_mi=1, end_mi=2, speed_mi_per_sec=0.4)])

        assert lanes["speed"][0].speed_mi_per_sec == 0.4
        assert lanes["speed"][0].label == "Speed 0.40"

    def test_lane_definitions(self):
        """Test the four fixed lanes and their labels."""
        definitions = lane_definitions()

        assert [lane.id for lane in definitions] == ["title", "poi", "camera", "speed"]
        assert definitions[0].label == "Title Track"
        assert definitions[0].block_height == 28


class TestDetectLaneOverlaps:
    """Tests for detect_lane_overlaps."""

    def test_same_lane_overlap_is_reported(self):
        """Test that overlapping titles produce one issue naming the later entry."""
        lanes = _lanes(
            [
                TimelineEntry(id="first", start_mi=0, end_mi=2, title="A"),
                TimelineEntry(id="second", start_mi=1.5, end_mi=2.5, title="B"),
            ]
        )

        issues = detect_lane_overlaps(lanes)

        assert len(issues) == 1
        assert issues[0].lane == "title"
        assert issues[0].entry_id == "second"
        assert issues[0].previous_entry_id == "first"
        assert issues[0].message == 'Entry "second" overlaps "first" in lane title.'

    def test_cross_lane_overlap_is_not_reported(self):
        """Test that a POI over a title at the same miles is allowed."""
        lanes = _lanes(
            [
                TimelineEntry(id="first", start_mi=0, end_mi=2, title="A"),
                TimelineEntry(id="second", start_mi=1.5, end_mi=2.5, marker_ids=["m"]),
            ],
            markers=[Marker(id="m", at_mi=1.5, type="poi", title="POI")],
        )

        assert lanes["poi"][0].entry_id == "second"
        assert detect_lane_overlaps(lanes) == []

    def test_touching_blocks_do_not_overlap(self):
        """Test that a block starting exactly at the previous end is fine."""
        lanes = _lanes(
            [
                TimelineEntry(id="a", start_mi=0, end_mi=1, title="A"),
                TimelineEntry(id="b", start_mi=1, end_mi=2, title="B"),
            ]
        )

        assert detect_lane_overlaps(lanes) == []

    def test_sample_document_is_conflict_free(self, sample_document):
        """Test that the sample fixture has no overlaps despite cross-lane ranges."""
        overlays = canonical_to_overlays(
            sample_document.timeline,
            sample_document.markers,
            sample_document.subtitles,
            None,
            OverlayMappingContext.from_document(sample_document),
        )

        assert detect_lane_overlaps(project_overlays_to_lanes(overlays)) == []


class TestSnapping:
    """Tests for edge snapping and nearest-POI lookup."""

    def _block(self, entry_id, start_mi, end_mi):
        return LaneBlock(
            lane="title", entry_id=entry_id, overlay_id=f"{entry_id}:title",
            start_mi=start_mi, end_mi=end_mi, label=entry_id,
        )

    def test_snaps_to_nearest_edge_within_threshold(self):
        """Test that a nearby edge of another block wins."""
        blocks = [self._block("other", 1.0, 2.0)]

        assert snap_to_lane_edge(1.98, blocks, "dragged", 0.05) == 2.0
        assert snap_to_lane_edge(1.03, blocks, "dragged", 0.05) == 1.0

    def test_no_snap_outside_threshold_or_on_own_block(self):
        """Test that far edges and the dragged entry's own edges are ignored."""
        blocks = [self._block("other", 1.0, 2.0), self._block("dragged", 1.5, 1.6)]

        assert snap_to_lane_edge(1.5, blocks, "dragged", 0.05) == 1.5
        assert snap_to_lane_edge(1.58, blocks, "dragged", 0.05) == 1.58

    def test_find_nearest_poi_entry_id(self):
        """Test that the POI starting nearest the title is chosen."""
        timeline = [
            TimelineEntry(id="title", start_mi=1.0, end_mi=1.3, title="T"),
            TimelineEntry(id="near", start_mi=1.1, end_mi=1.2, marker_ids=["m1"]),
            TimelineEntry(id="far", start_mi=1.9, end_mi=2.0, marker_ids=["m2"]),
        ]
        markers = [
            Marker(id="m1", at_mi=1.1, type="poi"),
            Marker(id="m2", at_mi=1.9, type="poi"),
        ]
        overlays = canonical_to_overlays(timeline, markers, [], None, CONTEXT)
        title_overlay = overlays[0]

        assert find_nearest_poi_entry_id(title_overlay, overlays, 0.2) == "near"
        assert find_nearest_poi_entry_id(title_overlay, overlays, 0.05) is None
