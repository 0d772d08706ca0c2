"""Preview playback state machine.

playback_reducer is a pure (state, action) -> state function. The host owns
the frame loop and calls PlaybackController.advance() once per frame with
the measured real-time delta; stopping those calls stops playback.
"""

import logging
from dataclasses import dataclass, replace
from typing import Union

from cinematic.config import get_settings
from cinematic.utils.numeric import clamp, clamp01, to_finite

logger = logging.getLogger(__name__)

MIN_PLAYBACK_SPEED = 0.1
MAX_PLAYBACK_SPEED = 8.0


@dataclass(frozen=True)
class PlaybackState:
    is_playing: bool = False
    progress: float = 0.0
    playback_speed: float = 1.0
    duration_seconds: float = 0.0

    @property
    def current_time_seconds(self) -> float:
        return self.progress * self.duration_seconds


# =============================================================================
# Actions
# =============================================================================


@dataclass(frozen=True)
class SetDuration:
    duration_seconds: float


@dataclass(frozen=True)
class SetSpeed:
    playback_speed: float


@dataclass(frozen=True)
class Play:
    pass


@dataclass(frozen=True)
class Pause:
    pass


@dataclass(frozen=True)
class Seek:
    progress: float


@dataclass(frozen=True)
class StepFrame:
    frame_rate: float


@dataclass(frozen=True)
class Tick:
    delta_seconds: float


@dataclass(frozen=True)
class Reset:
    pass


PlaybackAction = Union[SetDuration, SetSpeed, Play, Pause, Seek, StepFrame, Tick, Reset]


# =============================================================================
# Reducer
# =============================================================================


def normalize_duration(value: float) -> float:
    return max(0.0, to_finite(value, 0.0))


def normalize_speed(value: float) -> float:
    return clamp(to_finite(value, 1.0), MIN_PLAYBACK_SPEED, MAX_PLAYBACK_SPEED)


def initial_playback_state(duration_seconds: float, progress: float = 0.0) -> PlaybackState:
    return PlaybackState(
        progress=clamp01(progress),
        duration_seconds=normalize_duration(duration_seconds),
    )


def advance_progress(state: PlaybackState, delta_seconds: float) -> PlaybackState:
    """Move progress forward by real seconds scaled by playback speed."""
    duration = normalize_duration(state.duration_seconds)
    if duration <= 0:
        return replace(state, is_playing=False, progress=0.0)
    step_seconds = max(0.0, to_finite(delta_seconds, 0.0))
    progress = clamp01(state.progress + step_seconds * normalize_speed(state.playback_speed) / duration)
    return replace(state, progress=progress, is_playing=False if progress >= 1 else state.is_playing)


def playback_reducer(state: PlaybackState, action: PlaybackAction) -> PlaybackState:
    if isinstance(action, SetDuration):
        duration = normalize_duration(action.duration_seconds)
        if duration <= 0:
            return replace(state, duration_seconds=duration, progress=0.0, is_playing=False)
        return replace(state, duration_seconds=duration, progress=clamp01(state.progress))
    if isinstance(action, SetSpeed):
        return replace(state, playback_speed=normalize_speed(action.playback_speed))
    if isinstance(action, Play):
        return replace(state, is_playing=state.duration_seconds > 0 and state.progress < 1)
    if isinstance(action, Pause):
        return replace(state, is_playing=False)
    if isinstance(action, Seek):
        return replace(state, is_playing=False, progress=clamp01(action.progress))
    if isinstance(action, StepFrame):
        frame_rate = max(1.0, to_finite(action.frame_rate, 30.0))
        return advance_progress(replace(state, is_playing=False), 1 / frame_rate)
    if isinstance(action, Tick):
        return advance_progress(state, action.delta_seconds)
    if isinstance(action, Reset):
        return replace(state, is_playing=False, progress=0.0)
    return state


# =============================================================================
# Controller
# =============================================================================


@dataclass(frozen=True)
class FrameMetrics:
    frame_count: int = 0
    avg_frame_ms: float = 0.0
    max_frame_ms: float = 0.0
    last_frame_ms: float = 0.0

    def record(self, frame_ms: float) -> "FrameMetrics":
        frame_count = self.frame_count + 1
        return FrameMetrics(
            frame_count=frame_count,
            avg_frame_ms=(self.avg_frame_ms * self.frame_count + frame_ms) / frame_count,
            max_frame_ms=max(self.max_frame_ms, frame_ms),
            last_frame_ms=frame_ms,
        )


class PlaybackController:
    """Holds playback state for a host frame loop."""

    def __init__(self, duration_seconds: float, frame_rate: float | None = None):
        settings = get_settings()
        self.frame_rate = max(1, round(to_finite(frame_rate, settings.default_frame_rate)))
        self.max_tick_delta_seconds = settings.max_tick_delta_seconds
        self.state = initial_playback_state(duration_seconds)
        self.metrics = FrameMetrics()

    def dispatch(self, action: PlaybackAction) -> PlaybackState:
        self.state = playback_reducer(self.state, action)
        return self.state

    def advance(self, raw_delta_seconds: float) -> PlaybackState:
        """Advance one host frame.

        Deltas above max_tick_delta_seconds (e.g. after the host was
        suspended) are clamped so progress does not jump. Metrics record the
        unclamped frame time. Does nothing while paused.
        """
        if not self.state.is_playing:
            return self.state
        raw = max(0.0, to_finite(raw_delta_seconds, 0.0))
        self.metrics = self.metrics.record(raw * 1000)
        state = self.dispatch(Tick(min(raw, self.max_tick_delta_seconds)))
        if not state.is_playing:
            logger.debug(f"Playback stopped at progress {state.progress:.3f} after {self.metrics.frame_count} frames")
        return state

    @property
    def current_time_ms(self) -> float:
        return self.state.current_time_seconds * 1000

    def set_duration(self, duration_seconds: float) -> PlaybackState:
        return self.dispatch(SetDuration(duration_seconds))

    def set_speed(self, playback_speed: float) -> PlaybackState:
        return self.dispatch(SetSpeed(playback_speed))

    def play(self) -> PlaybackState:
        return self.dispatch(Play())

    def pause(self) -> PlaybackState:
        return self.dispatch(Pause())

    def seek(self, progress: float) -> PlaybackState:
        return self.dispatch(Seek(progress))

    def step_frame(self) -> PlaybackState:
        return self.dispatch(StepFrame(self.frame_rate))

    def reset(self) -> PlaybackState:
        return self.dispatch(Reset())
