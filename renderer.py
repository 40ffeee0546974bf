from __future__ import annotations

import threading
from collections import deque

from log import get_logger
from models import CameraPose

logger = get_logger("renderer")


class RendererPort:
    """What playback needs from a host viewport.

    Host adapters implement this once per host version; the playback code
    never probes the host for capabilities.
    """

    def apply_pose(self, pose: CameraPose) -> None:
        raise NotImplementedError

    def viewport_handle(self):
        return None

    def wait_ready(self, timeout: float | None = None) -> bool:
        """Block until the viewport can accept poses; False on timeout."""
        return True


class RecordingRenderer(RendererPort):
    """Headless sink that remembers applied poses."""

    def __init__(self, *, ready: bool = True, history: int | None = 10_000):
        self._ready = threading.Event()
        if ready:
            self._ready.set()
        self._lock = threading.Lock()
        self.poses: deque[CameraPose] = deque(maxlen=history)
        self.applied = 0

    def mark_ready(self) -> None:
        self._ready.set()

    def wait_ready(self, timeout: float | None = None) -> bool:
        return self._ready.wait(timeout)

    def apply_pose(self, pose: CameraPose) -> None:
        with self._lock:
            self.poses.append(pose)
            self.applied += 1

    @property
    def last_pose(self) -> CameraPose | None:
        with self._lock:
            return self.poses[-1] if self.poses else None

    def viewport_handle(self):
        return self


class LoggingRenderer(RendererPort):
    """Logs every ``every``-th pose; used for command line previews."""

    def __init__(self, every: int = 30):
        self.every = max(int(every), 1)
        self.applied = 0

    def apply_pose(self, pose: CameraPose) -> None:
        if self.applied % self.every == 0:
            cx, cy, cz = pose.center
            logger.info(
                "pose #%d: center=(%.1f, %.1f, %.1f) dist=%.1f pitch=%.1f yaw=%.1f",
                self.applied, cx, cy, cz, pose.distance, pose.pitch, pose.yaw,
            )
        self.applied += 1
