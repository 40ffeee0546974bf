"""Planar path preprocessing and angle helpers.

Bearings are map bearings: 0 deg points toward +y (north), angles grow
clockwise toward +x (east). The same convention is used for every
heading-to-vector conversion in this project: ``dx = sin(b)``, ``dy = cos(b)``.
"""
from __future__ import annotations

import math
from typing import Sequence

from models import Point2D


def _point(p) -> Point2D:
    return p if isinstance(p, Point2D) else Point2D(float(p[0]), float(p[1]))


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def lerp(a: float, b: float, t: float) -> float:
    return a + (b - a) * t


def wrap_180(angle_deg: float) -> float:
    return ((angle_deg + 180.0) % 360.0) - 180.0


def lerp_angle_deg(a: float, b: float, t: float) -> float:
    """Interpolate headings along the shorter arc, result in [0, 360)."""
    delta = wrap_180(b - a)
    return (a + delta * t) % 360.0


def distance(p1, p2) -> float:
    return math.hypot(p2[0] - p1[0], p2[1] - p1[1])


def bearing_deg(p1, p2) -> float:
    brng = math.degrees(math.atan2(p2[0] - p1[0], p2[1] - p1[1]))
    return brng % 360.0


def normalize_turn_deg(bearing_in: float, bearing_out: float) -> float:
    """Signed turn from one bearing to the next; positive turns right (clockwise)."""
    return wrap_180(bearing_out - bearing_in)


def heading_vector(yaw_deg: float, length: float = 1.0) -> tuple[float, float]:
    rad = math.radians(yaw_deg)
    return length * math.sin(rad), length * math.cos(rad)


# ─── Preprocessing ───────────────────────────────────────────────────────


def densify(path: Sequence, interval: float) -> list[Point2D]:
    """Insert evenly spaced points so that no segment is longer than ``interval``."""
    points = [_point(p) for p in path]
    if len(points) < 2 or interval <= 0:
        return points

    dense = [points[0]]
    for p1, p2 in zip(points, points[1:]):
        dist = distance(p1, p2)
        if dist <= interval:
            dense.append(p2)
            continue

        steps = math.ceil(dist / interval)
        dx = (p2.x - p1.x) / steps
        dy = (p2.y - p1.y) / steps
        for j in range(1, steps):
            dense.append(Point2D(p1.x + dx * j, p1.y + dy * j))
        dense.append(p2)

    return dense


def smooth(path: Sequence, iterations: int) -> list[Point2D]:
    """Three-point moving average over interior points; endpoints stay pinned."""
    points = [_point(p) for p in path]
    if iterations <= 0 or len(points) < 3:
        return points

    smoothed = points
    for _ in range(iterations):
        nxt = [smoothed[0]]
        for prev, cur, after in zip(smoothed, smoothed[1:], smoothed[2:]):
            nxt.append(
                Point2D(
                    (prev.x + cur.x + after.x) / 3.0,
                    (prev.y + cur.y + after.y) / 3.0,
                )
            )
        nxt.append(smoothed[-1])
        smoothed = nxt

    return smoothed


def path_length(path: Sequence) -> float:
    return sum(distance(a, b) for a, b in zip(path, path[1:]))
