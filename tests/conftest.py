"""
Pytest fixtures for route cinematic tests.

The sample route runs due east along the equator in five equal steps, so
cumulative miles grow linearly and tests can reason about indices directly.
Settings are read from a clean environment for every test.
"""

import os

import pytest

from cinematic.config import get_settings
from cinematic.schemas.route_media import (
    CameraDefaults,
    Marker,
    PlaybackConfig,
    RouteMediaDocument,
    Subtitle,
    TimelineEntry,
)
from cinematic.services.route_geometry import build_route_stats

ROUTE_COORDS = [(0.0, 0.0), (0.01, 0.0), (0.02, 0.0), (0.03, 0.0), (0.04, 0.0), (0.05, 0.0)]
ROUTE_ELEVATIONS = [100.0, 130.0, 90.0, 150.0, 120.0, 110.0]


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch):
    """Drop CINEMATIC_* overrides and the cached Settings instance."""
    for key in [k for k in os.environ if k.startswith("CINEMATIC_")]:
        monkeypatch.delenv(key, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def route_stats():
    """Six-point equatorial route (~3.45 mi)."""
    return build_route_stats(ROUTE_COORDS, ROUTE_ELEVATIONS)


@pytest.fixture
def camera_defaults() -> CameraDefaults:
    return CameraDefaults(
        mode="follow",
        follow_distance_meters=120,
        altitude_meters=90,
        pitch_deg=58,
        heading_offset_deg=10,
    )


def make_document(
    timeline: list[TimelineEntry] | None = None,
    markers: list[Marker] | None = None,
    subtitles: list[Subtitle] | None = None,
    **overrides,
) -> RouteMediaDocument:
    return RouteMediaDocument(
        route_id=overrides.pop("route_id", "route-1"),
        playback=overrides.pop("playback", PlaybackConfig(miles_per_second=0.5, fps=24, hold_seconds=0.75)),
        camera=overrides.pop("camera", CameraDefaults()),
        timeline=timeline or [],
        markers=markers or [],
        subtitles=subtitles or [],
        **overrides,
    )


@pytest.fixture
def document_factory():
    """Build a document with test playback defaults (0.5 mi/s, 0.75 s hold)."""
    return make_document


@pytest.fixture
def sample_document() -> RouteMediaDocument:
    """Title at [0.2, 0.6], POI at [1.0, 1.1], camera override at [1.5, 2.5], speed at [2.0, 2.4]."""
    return make_document(
        timeline=[
            TimelineEntry(
                id="title-1",
                start_mi=0.2,
                end_mi=0.6,
                camera_mode="follow",
                title="Start line",
                subtitle_ids=["sub-1"],
                marker_ids=["marker-1"],
            ),
            TimelineEntry(
                id="poi-1",
                start_mi=1.0,
                end_mi=1.1,
                camera_mode="follow",
                marker_ids=["marker-2"],
            ),
            TimelineEntry(id="cam-1", start_mi=1.5, end_mi=2.5, camera_mode="overview"),
            TimelineEntry(id="speed-1", start_mi=2.0, end_mi=2.4, camera_mode="follow", speed_mi_per_sec=0.25),
        ],
        markers=[
            Marker(id="marker-1", at_mi=0.2, type="title", title="Start"),
            Marker(id="marker-2", at_mi=1.0, type="poi", title="Lighthouse"),
        ],
        subtitles=[
            Subtitle(id="sub-1", start_sec=1.15, end_sec=3.15, text="Welcome", position="bottom"),
        ],
    )
