from __future__ import annotations

from typing import Sequence

from elevation import ElevationSource
from geometry import bearing_deg, clamp, densify, distance, normalize_turn_deg, smooth
from log import get_logger
from models import AltitudeMode, AnimationParams, Keyframe, KeyframeSequence

logger = get_logger("keyframes")

SCAN_INTERVAL = 2.0
MAX_ROLL_DEG = 45.0


def scan_max_elevation(
    path: Sequence,
    elevation: ElevationSource,
    *,
    crs: str | None = None,
    interval: float = SCAN_INTERVAL,
) -> float | None:
    """Highest terrain sample along a densified copy of the path, or None if nothing sampled."""
    max_elev: float | None = None
    for pt in densify(path, interval):
        elev = elevation.elevation_at(pt, crs)
        if elev is not None and (max_elev is None or elev > max_elev):
            max_elev = elev
    return max_elev


def _bank_angle(path: Sequence, i: int, banking_factor: float) -> float:
    bearing_in = bearing_deg(path[i - 1], path[i])
    bearing_out = bearing_deg(path[i], path[i + 1])
    turn = normalize_turn_deg(bearing_in, bearing_out)
    return clamp(-turn * banking_factor, -MAX_ROLL_DEG, MAX_ROLL_DEG)


def generate_keyframes(
    path: Sequence | None,
    elevation: ElevationSource | None,
    params: AnimationParams,
    *,
    crs: str | None = None,
    scan_interval: float = SCAN_INTERVAL,
) -> KeyframeSequence:
    """Build timestamped camera keyframes along ``path``.

    Returns an empty sequence when the input cannot produce a flythrough
    (missing path or elevation source, fewer than two vertices, non-positive
    speed). Unavailable elevation samples count as height 0.
    """
    if path is None or elevation is None:
        logger.warning("Keyframe generation needs both a path and an elevation source")
        return KeyframeSequence()
    if params.speed <= 0:
        logger.warning("Speed must be positive, got %s", params.speed)
        return KeyframeSequence()

    vertices = smooth(path, params.smoothing)
    if len(vertices) < 2:
        logger.warning("Path must have at least 2 vertices, got %d", len(vertices))
        return KeyframeSequence()

    exaggeration = params.vertical_exaggeration
    scanned = scan_max_elevation(vertices, elevation, crs=crs, interval=scan_interval)
    max_elev = 0.0 if scanned is None else scanned
    max_elev_scaled = max_elev * exaggeration
    logger.debug("Path max elevation: %.1f (scaled %.1f)", max_elev, max_elev_scaled)

    mode = params.altitude_mode
    fixed_z: float | None = None
    terrain_warning = False
    if mode == AltitudeMode.ABOVE_SAFE_PATH:
        fixed_z = (max_elev + params.camera_height) * exaggeration
        logger.debug("Above safe path: fixed z = %.1f", fixed_z)
    elif mode == AltitudeMode.FIXED_AMSL:
        fixed_z = params.camera_height * exaggeration
        if fixed_z < max_elev_scaled:
            terrain_warning = True
            logger.warning(
                "Fixed altitude %.1f is below the scaled terrain peak %.1f; camera may clip terrain",
                fixed_z, max_elev_scaled,
            )

    keyframes: list[Keyframe] = []
    missing = 0
    current_time = 0.0
    previous_yaw = 0.0
    last = len(vertices) - 1

    for i, point in enumerate(vertices):
        elev = elevation.elevation_at(point, crs)
        if elev is None:
            missing += 1
            elev = 0.0
        ground_z = elev * exaggeration

        if fixed_z is not None:
            z = fixed_z
        else:
            z = ground_z + params.camera_height * exaggeration

        yaw = bearing_deg(point, vertices[i + 1]) if i < last else previous_yaw

        roll = 0.0
        if params.enable_banking and 0 < i < last:
            roll = _bank_angle(vertices, i, params.banking_factor)

        keyframes.append(
            Keyframe(
                time=current_time,
                x=point.x,
                y=point.y,
                z=z,
                ground_z=ground_z,
                yaw=yaw,
                pitch=clamp(params.camera_pitch, -90.0, 90.0),
                roll=roll,
            )
        )

        if i < last:
            current_time += distance(point, vertices[i + 1]) / params.speed
        previous_yaw = yaw

    if missing:
        logger.warning("Elevation unavailable at %d of %d vertices; using 0", missing, len(vertices))

    sequence = KeyframeSequence(
        keyframes=keyframes,
        terrain_warning=terrain_warning,
        max_elevation=max_elev,
    )
    logger.info(
        "Generated %d keyframes (%s), duration %.1fs",
        len(sequence), mode.value, sequence.total_duration,
    )
    return sequence
