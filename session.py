from __future__ import annotations

import threading
from typing import Sequence

from elevation import ElevationSource
from keyframes import generate_keyframes
from log import get_logger
from models import AnimationParams, KeyframeSequence
from player import TrajectoryPlayer
from pose_solver import PoseSolver
from renderer import RendererPort

logger = get_logger("session")


class FlythroughSession:
    """Generates a trajectory and drives a renderer from it on a fixed clock.

    Playback is cooperative: ``stop()`` only raises a flag that the tick
    loop checks before every step. The flag stays raised until the next
    ``generate()`` or ``start()``, so a stop issued before a playback
    thread gets going still cancels it.
    """

    def __init__(
        self,
        renderer: RendererPort,
        elevation: ElevationSource | None,
        *,
        crs: str | None = None,
    ):
        self.renderer = renderer
        self.elevation = elevation
        self.crs = crs
        self.params = AnimationParams()
        self.player = TrajectoryPlayer()
        self.solver: PoseSolver | None = None
        self.frames_emitted = 0
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def sequence(self) -> KeyframeSequence:
        return self.player.sequence

    def generate(self, path: Sequence | None, params: AnimationParams) -> bool:
        if self.is_running:
            logger.info("Stopping current playback before regenerating")
        self.stop()
        self.player.stop()

        sequence = generate_keyframes(path, self.elevation, params, crs=self.crs)
        self.params = params
        self.player.load(sequence)
        self.solver = PoseSolver(
            self.elevation,
            lookahead_distance=params.lookahead_distance,
            camera_height=params.camera_height,
            crs=self.crs,
        )
        self.frames_emitted = 0
        self._stop.clear()
        return not sequence.is_empty

    @property
    def stop_requested(self) -> bool:
        return self._stop.is_set()

    def play(self, *, realtime: bool = True, ready_timeout: float | None = 10.0) -> bool:
        """Run playback to completion or until stopped. Returns False if it never started."""
        if self._stop.is_set():
            logger.info("Playback cancelled before it started")
            return False
        if self.solver is None or not self.player.start():
            return False

        if not self.renderer.wait_ready(ready_timeout):
            logger.error("Renderer was not ready within %ss", ready_timeout)
            self.player.stop()
            return False

        self.solver.reset()
        dt = self.params.frame_interval

        initial = self.player.initial_frame()
        if initial is not None:
            self.renderer.apply_pose(self.solver.solve_frame(initial))

        while not self._stop.is_set():
            frame = self.player.advance(dt)
            if frame is None:
                break
            self.renderer.apply_pose(self.solver.solve_frame(frame))
            self.frames_emitted += 1
            if realtime and self._stop.wait(dt):
                break

        if self._stop.is_set() and not self.player.is_finished:
            logger.info("Playback stopped after %d frames", self.frames_emitted)
            self.player.stop()
        return True

    def start(self, *, realtime: bool = True, ready_timeout: float | None = 10.0) -> threading.Thread:
        self._stop.clear()
        self._thread = threading.Thread(
            target=self.play,
            kwargs={"realtime": realtime, "ready_timeout": ready_timeout},
            daemon=True,
        )
        self._thread.start()
        return self._thread

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def stop(self, timeout: float | None = 5.0) -> None:
        self._stop.set()
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join(timeout)
        self._thread = None
