from __future__ import annotations

import math
from statistics import mean

from geometry import wrap_180
from models import KeyframeSequence


def segment_metrics(sequence: KeyframeSequence) -> list[dict]:
    segments: list[dict] = []
    kfs = sequence.keyframes
    for i in range(len(kfs) - 1):
        a = kfs[i]
        b = kfs[i + 1]
        dt = max(b.time - a.time, 1e-6)
        ground_dist = math.hypot(b.x - a.x, b.y - a.y)
        vertical_dist = abs(b.z - a.z)
        dist_3d = math.sqrt(ground_dist**2 + vertical_dist**2)
        segments.append(
            {
                "segment_index": i,
                "t_start": a.time,
                "t_end": b.time,
                "ground_distance": ground_dist,
                "vertical_distance": vertical_dist,
                "distance_3d": dist_3d,
                "speed": dist_3d / dt,
                "heading_change_deg": wrap_180(b.yaw - a.yaw),
            }
        )
    return segments


def summarize_motion(sequence: KeyframeSequence) -> dict:
    segments = segment_metrics(sequence)
    speeds = [s["speed"] for s in segments] or [0.0]
    altitudes = [k.z for k in sequence] or [0.0]
    clearances = [k.z - k.ground_z for k in sequence] or [0.0]
    rolls = [abs(k.roll) for k in sequence] or [0.0]

    return {
        "duration_sec": sequence.total_duration,
        "keyframe_count": len(sequence),
        "segment_count": len(segments),
        "path_length": sum(s["ground_distance"] for s in segments),
        "avg_speed": mean(speeds),
        "min_speed": min(speeds),
        "max_speed": max(speeds),
        "avg_altitude": mean(altitudes),
        "min_altitude": min(altitudes),
        "max_altitude": max(altitudes),
        "min_clearance": min(clearances),
        "max_roll_deg": max(rolls),
        "terrain_warning": sequence.terrain_warning,
    }


def build_sequence_analysis(sequence: KeyframeSequence) -> dict:
    return {
        "sequence": sequence.to_dict(),
        "motion": summarize_motion(sequence),
        "segments": segment_metrics(sequence),
    }
