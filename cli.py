from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from pathlib import Path

from analysis import build_sequence_analysis
from elevation import source_from_config
from log import configure
from models import AltitudeMode, AnimationParams
from path_source import load_path
from renderer import LoggingRenderer
from session import FlythroughSession

_DEFAULTS = AnimationParams()

ALTITUDE_MODE_CHOICES = [m.value for m in AltitudeMode]


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Generate a terrain-aware flythrough camera trajectory from a path and a DEM."
    )
    parser.add_argument("--path", required=True, help="GeoJSON file with a line or point path")
    parser.add_argument("--dem", default=None, help="DEM raster (TIFF/PNG with a world file)")
    parser.add_argument("--dem-nodata", type=float, default=None, help="DEM nodata value")
    parser.add_argument(
        "--elevation-url",
        default=os.getenv("FLYTHROUGH_ELEVATION_URL", ""),
        help="Open-Elevation compatible lookup URL (uses FLYTHROUGH_ELEVATION_URL env var if not provided)",
    )
    parser.add_argument("--flat-elevation", type=float, default=0.0, help="Constant terrain height when no DEM is given")
    parser.add_argument("--crs", default=None, help="Override the path CRS identifier")

    parser.add_argument("--altitude-mode", choices=ALTITUDE_MODE_CHOICES, default=_DEFAULTS.altitude_mode.value)
    parser.add_argument("--camera-height", type=float, default=_DEFAULTS.camera_height)
    parser.add_argument("--camera-pitch", type=float, default=_DEFAULTS.camera_pitch)
    parser.add_argument("--fov", type=float, default=_DEFAULTS.field_of_view, help="Field of view (passed through)")
    parser.add_argument("--exaggeration", type=float, default=_DEFAULTS.vertical_exaggeration)
    parser.add_argument("--speed", type=float, default=_DEFAULTS.speed, help="Speed in path units per second")
    parser.add_argument("--smoothing", type=int, default=_DEFAULTS.smoothing, help="Smoothing iterations")
    parser.add_argument("--no-banking", action="store_true", help="Disable banking on turns")
    parser.add_argument("--banking-factor", type=float, default=_DEFAULTS.banking_factor)
    parser.add_argument("--lookahead", type=float, default=_DEFAULTS.lookahead_distance)
    parser.add_argument("--fps", type=int, default=_DEFAULTS.fps, help="Playback frame rate")

    parser.add_argument("--play", action="store_true", help="Run headless playback and log camera poses")
    parser.add_argument("--realtime", action="store_true", help="Pace playback at the frame rate")
    parser.add_argument("--summary-json", default=None, help="Write the trajectory analysis to this file")
    parser.add_argument("--verbose", action="store_true")

    ns = parser.parse_args(argv)
    if ns.speed <= 0:
        parser.error("--speed must be positive.")
    if ns.fps < 1:
        parser.error("--fps must be at least 1.")
    return ns


def params_from_args(args: argparse.Namespace) -> AnimationParams:
    return AnimationParams(
        altitude_mode=AltitudeMode(args.altitude_mode),
        camera_height=args.camera_height,
        camera_pitch=args.camera_pitch,
        field_of_view=args.fov,
        vertical_exaggeration=args.exaggeration,
        speed=args.speed,
        smoothing=args.smoothing,
        enable_banking=not args.no_banking,
        banking_factor=args.banking_factor,
        lookahead_distance=args.lookahead,
        fps=args.fps,
    )


def elevation_config_from_args(args: argparse.Namespace) -> dict:
    if args.dem:
        return {"type": "raster", "path": args.dem, "nodata": args.dem_nodata}
    if args.elevation_url:
        return {"type": "http", "url": args.elevation_url}
    return {"type": "flat", "value": args.flat_elevation}


def _safe_write_json(path: Path, payload: dict) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    configure(logging.DEBUG if args.verbose else logging.INFO)

    try:
        vertices, path_crs = load_path(args.path)
        elevation = source_from_config(elevation_config_from_args(args))
    except (OSError, ValueError) as exc:
        print(f"[ERROR] {exc}", file=sys.stderr)
        return 2

    crs = args.crs or path_crs
    params = params_from_args(args)
    print(f"[INFO] Path: {args.path} ({len(vertices)} vertices, {crs})")

    renderer = LoggingRenderer(every=max(params.fps, 1))
    session = FlythroughSession(renderer, elevation, crs=crs)
    if not session.generate(vertices, params):
        print("[ERROR] Cannot generate flythrough: the path needs at least 2 vertices.", file=sys.stderr)
        return 1

    analysis = build_sequence_analysis(session.sequence)
    motion = analysis["motion"]
    print(
        f"[INFO] Keyframes: {motion['keyframe_count']} / duration: {motion['duration_sec']:.1f}s"
        f" / altitude: {motion['min_altitude']:.1f}-{motion['max_altitude']:.1f}"
    )
    if session.sequence.terrain_warning:
        print("[WARN] Fixed altitude is below the terrain peak; the camera may clip terrain.")

    if args.summary_json:
        summary_path = Path(args.summary_json)
        _safe_write_json(
            summary_path,
            {"params": params.to_dict(), "motion": motion, "segments": analysis["segments"]},
        )
        print(f"  - summary: {summary_path}")

    if args.play:
        print(f"[INFO] Playing at {params.fps} fps{' (realtime)' if args.realtime else ''}...")
        try:
            session.play(realtime=args.realtime)
        except KeyboardInterrupt:
            session.stop()
        print(f"[DONE] Playback emitted {session.frames_emitted} poses")
    return 0


if __name__ == "__main__":
    sys.exit(main())
