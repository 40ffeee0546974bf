"""Orbit-style camera poses that keep the look-at point out of the ground.

The renderer takes a pose as (look-at center, distance, pitch, yaw). The
solver aims a fixed distance ahead of the camera toward the look target,
lifts the look-at point onto sampled terrain, and shortens the look vector
where the pitch ray would otherwise meet the ground before reaching it.
"""
from __future__ import annotations

import math

from elevation import ElevationSource
from geometry import clamp, heading_vector
from log import get_logger
from models import CameraPose, InterpolatedState, LookTarget, PlaybackFrame

logger = get_logger("pose")

MIN_LOOK_DIST = 1.0
MIN_PITCH_DEG = 1.0
MIN_CORRECTABLE_HORIZ = 0.1
CAMERA_FLOOR_MARGIN = 1.0
CAMERA_FLOOR_LIFT = 10.0
DEBUG_POSE_COUNT = 5


class PoseSolver:
    def __init__(
        self,
        elevation: ElevationSource | None,
        *,
        lookahead_distance: float = 1000.0,
        camera_height: float = 200.0,
        crs: str | None = None,
    ):
        self.elevation = elevation
        self.lookahead_distance = lookahead_distance
        self.camera_height = camera_height
        self.crs = crs
        self._debug_count = 0

    def reset(self) -> None:
        self._debug_count = 0

    def _terrain_at(self, x: float, y: float) -> float | None:
        if self.elevation is None:
            return None
        return self.elevation.elevation_at((x, y), self.crs)

    def solve_frame(self, frame: PlaybackFrame) -> CameraPose:
        return self.solve(frame.state, frame.target)

    def solve(self, state: InterpolatedState, target: LookTarget) -> CameraPose:
        x, y, ground_z = state.x, state.y, state.ground_z
        lookahead = self.lookahead_distance

        dx = target.x - x
        dy = target.y - y
        raw_dist = math.hypot(dx, dy)

        if raw_dist > MIN_LOOK_DIST:
            scale = min(1.0, lookahead / raw_dist)
            dx *= scale
            dy *= scale
            ahead_gz = ground_z + (target.ground_z - ground_z) * scale
        else:
            dx, dy = heading_vector(state.yaw, lookahead)
            ahead_gz = ground_z

        final_x = x + dx
        final_y = y + dy

        sampled = self._terrain_at(final_x, final_y)
        if sampled is not None and sampled > ahead_gz:
            ahead_gz = sampled

        cam_z = state.z
        horiz = math.hypot(dx, dy)
        pitch = state.pitch
        final_z = cam_z + horiz * math.tan(math.radians(pitch))

        if final_z < ahead_gz:
            vert_diff = cam_z - ahead_gz
            if vert_diff > 0 and abs(pitch) > MIN_PITCH_DEG and horiz > MIN_CORRECTABLE_HORIZ:
                required_horiz = vert_diff / math.tan(math.radians(abs(pitch)))
                shrink = required_horiz / horiz
                if shrink < 1.0:
                    dx *= shrink
                    dy *= shrink
                    final_x = x + dx
                    final_y = y + dy
                    horiz = required_horiz
                    # the shortened look-at point sits over different ground
                    nearer = self._terrain_at(final_x, final_y)
                    if nearer is not None and nearer > ahead_gz:
                        ahead_gz = nearer
            final_z = ahead_gz

        if cam_z < ground_z + CAMERA_FLOOR_MARGIN:
            cam_z = ground_z + CAMERA_FLOOR_LIFT

        vert = cam_z - final_z
        dist = math.hypot(horiz, vert)
        if dist < MIN_LOOK_DIST:
            dist = self.camera_height

        orbit_pitch = 0.0 if horiz < 1e-3 else math.degrees(math.atan2(vert, horiz))
        orbit_pitch = clamp(orbit_pitch, 0.0, 180.0)
        orbit_yaw = (360.0 - math.degrees(math.atan2(dx, dy))) % 360.0

        pose = CameraPose(
            center=(final_x, final_y, final_z),
            distance=dist,
            pitch=orbit_pitch,
            yaw=orbit_yaw,
        )

        if self._debug_count < DEBUG_POSE_COUNT:
            self._debug_count += 1
            logger.debug(
                "CAM #%d: pos=(%.1f,%.1f,%.0f) look=(%.1f,%.1f,%.0f) dist=%.0f pitch=%.1f",
                self._debug_count, x, y, cam_z, final_x, final_y, final_z, dist, orbit_pitch,
            )
        return pose
