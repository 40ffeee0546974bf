from __future__ import annotations

from enum import Enum

from geometry import clamp, lerp, lerp_angle_deg
from log import get_logger
from models import (
    InterpolatedState,
    Keyframe,
    KeyframeSequence,
    LookTarget,
    PlaybackFrame,
    PlaybackState,
)

logger = get_logger("player")

MIN_SEGMENT_SEC = 1e-3
LOOKAHEAD_BLEND_START = 0.8


class PlayerStatus(str, Enum):
    IDLE = "idle"
    PLAYING = "playing"
    FINISHED = "finished"


def smoothstep(t: float) -> float:
    return t * t * (3.0 - 2.0 * t)


def interpolate_state(a: Keyframe, b: Keyframe, t: float) -> InterpolatedState:
    return InterpolatedState(
        x=lerp(a.x, b.x, t),
        y=lerp(a.y, b.y, t),
        ground_z=lerp(a.ground_z, b.ground_z, t),
        z=lerp(a.z, b.z, t),
        yaw=lerp_angle_deg(a.yaw, b.yaw, t),
        pitch=lerp(a.pitch, b.pitch, t),
        roll=lerp(a.roll, b.roll, t),
    )


def look_target(b: Keyframe, c: Keyframe | None, t: float) -> LookTarget:
    """Aim at ``b``; over the last fifth of the segment pan toward ``c``."""
    if c is None or t <= LOOKAHEAD_BLEND_START:
        return LookTarget(b.x, b.y, b.ground_z)
    blend = (t - LOOKAHEAD_BLEND_START) / (1.0 - LOOKAHEAD_BLEND_START)
    return LookTarget(
        lerp(b.x, c.x, blend),
        lerp(b.y, c.y, blend),
        lerp(b.ground_z, c.ground_z, blend),
    )


class TrajectoryPlayer:
    """Fixed-step playback over a keyframe sequence.

    ``advance(dt)`` emits the frame for the current elapsed time and then
    moves the clock forward by ``dt``.
    """

    def __init__(self, sequence: KeyframeSequence | None = None):
        self.sequence = KeyframeSequence()
        self.state = PlaybackState()
        self.status = PlayerStatus.IDLE
        if sequence is not None:
            self.load(sequence)

    def load(self, sequence: KeyframeSequence) -> None:
        self.sequence = sequence
        self.state = PlaybackState()
        self.status = PlayerStatus.IDLE

    def start(self) -> bool:
        if self.sequence.is_empty:
            logger.warning("Cannot start playback of an empty sequence")
            return False
        if self.status != PlayerStatus.IDLE:
            return self.status == PlayerStatus.PLAYING
        self.state = PlaybackState()
        self.status = PlayerStatus.PLAYING
        logger.info(
            "Playback started: %d keyframes, %.1fs",
            len(self.sequence), self.sequence.total_duration,
        )
        return True

    def stop(self) -> None:
        self.status = PlayerStatus.IDLE
        self.state = PlaybackState()

    @property
    def is_playing(self) -> bool:
        return self.status == PlayerStatus.PLAYING

    @property
    def is_finished(self) -> bool:
        return self.status == PlayerStatus.FINISHED

    def _last_segment(self) -> int:
        return len(self.sequence) - 1

    def _finish(self) -> None:
        if self.status != PlayerStatus.FINISHED:
            logger.info("Playback finished at %.2fs", self.state.elapsed)
        self.status = PlayerStatus.FINISHED

    def initial_frame(self) -> PlaybackFrame | None:
        """Pose at keyframe 0 looking at keyframe 1, used before the clock starts."""
        if self.sequence.is_empty:
            return None
        kf0 = self.sequence[0]
        kf1 = self.sequence[1] if len(self.sequence) > 1 else kf0
        return PlaybackFrame(
            state=interpolate_state(kf0, kf0, 0.0),
            target=LookTarget(kf1.x, kf1.y, kf1.ground_z),
            segment_index=0,
            elapsed=0.0,
            local_t=0.0,
            t=0.0,
        )

    def advance(self, dt: float) -> PlaybackFrame | None:
        if self.status != PlayerStatus.PLAYING:
            return None

        idx = self.state.segment_index
        if idx >= self._last_segment():
            self._finish()
            return None

        kfs = self.sequence.keyframes
        a = kfs[idx]
        b = kfs[idx + 1]
        c = kfs[idx + 2] if idx + 2 < len(kfs) else None

        elapsed = self.state.elapsed
        seg_duration = max(b.time - a.time, MIN_SEGMENT_SEC)
        local_t = clamp((elapsed - a.time) / seg_duration, 0.0, 1.0)
        t = smoothstep(local_t)

        frame = PlaybackFrame(
            state=interpolate_state(a, b, t),
            target=look_target(b, c, t),
            segment_index=idx,
            elapsed=elapsed,
            local_t=local_t,
            t=t,
        )

        self.state.elapsed = elapsed + dt
        if self.state.elapsed >= b.time:
            self.state.segment_index = idx + 1
            if self.state.segment_index >= self._last_segment():
                self._finish()

        return frame
