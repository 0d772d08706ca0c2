"""Tests for the preview playback reducer and controller."""

import math
from dataclasses import replace

import pytest

from cinematic.services.playback_state import (
    FrameMetrics,
    Pause,
    Play,
    PlaybackController,
    PlaybackState,
    Reset,
    Seek,
    SetDuration,
    SetSpeed,
    StepFrame,
    Tick,
    initial_playback_state,
    normalize_speed,
    playback_reducer,
)


class TestPlaybackReducer:
    """Tests for playback_reducer."""

    def test_tick_advances_by_delta_over_duration(self):
        """Test that one second of a ten second preview is 10% progress."""
        state = playback_reducer(initial_playback_state(10), Play())

        state = playback_reducer(state, Tick(1))

        assert state.progress == pytest.approx(0.1)
        assert state.is_playing is True

    def test_tick_scales_by_speed(self):
        """Test that playback speed multiplies the step."""
        state = playback_reducer(initial_playback_state(10), SetSpeed(2.0))

        assert playback_reducer(state, Tick(1)).progress == pytest.approx(0.2)

    def test_reaching_the_end_stops_playback(self):
        """Test that progress clamps at 1 and playback stops."""
        state = PlaybackState(is_playing=True, progress=0.95, duration_seconds=10)

        state = playback_reducer(state, Tick(1))

        assert state.progress == 1.0
        assert state.is_playing is False

    def test_play_requires_duration_and_remaining_progress(self):
        """Test that play is refused at the end or with no duration."""
        assert playback_reducer(initial_playback_state(0), Play()).is_playing is False
        assert playback_reducer(initial_playback_state(10, progress=1), Play()).is_playing is False
        assert playback_reducer(initial_playback_state(10, progress=0.5), Play()).is_playing is True

    def test_seek_pauses_and_clamps(self):
        """Test that seeking stops playback and clamps to [0, 1]."""
        state = PlaybackState(is_playing=True, progress=0.2, duration_seconds=10)

        assert playback_reducer(state, Seek(1.7)) == replace(state, is_playing=False, progress=1.0)
        assert playback_reducer(state, Seek(-1)).progress == 0.0

    def test_step_frame(self):
        """Test that a frame step advances one frame and pauses."""
        state = PlaybackState(is_playing=True, progress=0.0, duration_seconds=10)

        state = playback_reducer(state, StepFrame(25))

        assert state.progress == pytest.approx(0.004)
        assert state.is_playing is False

    def test_zero_duration(self):
        """Test that a zero duration resets progress and stops."""
        state = PlaybackState(is_playing=True, progress=0.5, duration_seconds=10)

        state = playback_reducer(state, SetDuration(0))

        assert (state.progress, state.is_playing, state.duration_seconds) == (0.0, False, 0.0)
        assert playback_reducer(state, Tick(1)).progress == 0.0

    def test_set_duration_keeps_progress(self):
        """Test that a new positive duration keeps the progress fraction."""
        state = PlaybackState(progress=0.5, duration_seconds=10)

        state = playback_reducer(state, SetDuration(20))

        assert state.progress == 0.5
        assert state.current_time_seconds == 10.0

    def test_pause_and_reset(self):
        """Test pause and reset."""
        state = PlaybackState(is_playing=True, progress=0.5, duration_seconds=10)

        assert playback_reducer(state, Pause()).is_playing is False
        assert playback_reducer(state, Reset()) == PlaybackState(duration_seconds=10)

    def test_non_finite_tick_is_ignored(self):
        """Test that NaN and negative deltas do not move progress."""
        state = PlaybackState(is_playing=True, progress=0.5, duration_seconds=10)

        assert playback_reducer(state, Tick(math.nan)).progress == 0.5
        assert playback_reducer(state, Tick(-3)).progress == 0.5

    @pytest.mark.parametrize(
        "value,expected",
        [(0.01, 0.1), (20, 8.0), (math.nan, 1.0), (2.5, 2.5)],
    )
    def test_normalize_speed(self, value, expected):
        """Test speed clamping and its fallback."""
        assert normalize_speed(value) == expected


class TestPlaybackController:
    """Tests for PlaybackController."""

    def test_advance_while_paused_does_nothing(self):
        """Test that frames before play are ignored."""
        controller = PlaybackController(10)

        controller.advance(0.05)

        assert controller.state.progress == 0.0
        assert controller.metrics.frame_count == 0

    def test_large_deltas_are_clamped(self):
        """Test that a long host stall advances at most one clamped tick."""
        controller = PlaybackController(10)
        controller.play()

        controller.advance(5.0)

        assert controller.state.progress == pytest.approx(0.01)
        assert controller.metrics.last_frame_ms == pytest.approx(5000)

    def test_metrics(self):
        """Test frame count, average and max frame time."""
        controller = PlaybackController(10)
        controller.play()

        controller.advance(0.02)
        controller.advance(0.04)

        assert controller.metrics.frame_count == 2
        assert controller.metrics.avg_frame_ms == pytest.approx(30)
        assert controller.metrics.max_frame_ms == pytest.approx(40)
        assert controller.current_time_ms == pytest.approx(60)

    def test_plays_to_the_end(self):
        """Test that playback stops by itself at the end."""
        controller = PlaybackController(0.25)
        controller.play()

        for _ in range(10):
            controller.advance(0.1)

        assert controller.state.progress == 1.0
        assert controller.state.is_playing is False
        assert controller.metrics.frame_count == 3

    def test_step_frame_uses_frame_rate(self):
        """Test that step_frame advances one frame at the controller's rate."""
        controller = PlaybackController(10, frame_rate=20)

        controller.step_frame()

        assert controller.current_time_ms == pytest.approx(50)

    def test_default_frame_rate_from_settings(self, monkeypatch):
        """Test that the frame rate falls back to settings."""
        monkeypatch.setenv("CINEMATIC_DEFAULT_FRAME_RATE", "30")

        assert PlaybackController(10).frame_rate == 30

    def test_seek_and_speed(self):
        """Test controller shortcuts for seek and speed."""
        controller = PlaybackController(10)

        controller.set_speed(100)
        controller.seek(0.25)

        assert controller.state.playback_speed == 8.0
        assert controller.current_time_ms == pytest.approx(2500)

    def test_frame_metrics_record(self):
        """Test the running average."""
        metrics = FrameMetrics().record(10).record(20).record(30)

        assert metrics.avg_frame_ms == pytest.approx(20)
        assert metrics.max_frame_ms == 30
