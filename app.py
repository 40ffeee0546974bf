from __future__ import annotations

import threading
import uuid

from flask import Flask, jsonify, request

from analysis import build_sequence_analysis
from elevation import source_from_config
from log import configure, get_logger
from models import AnimationParams
from path_source import parse_path
from renderer import RecordingRenderer
from session import FlythroughSession

app = Flask(__name__)
logger = get_logger("app")

tasks: dict[str, dict] = {}
sessions: dict[str, FlythroughSession] = {}
task_threads: dict[str, threading.Thread] = {}

GENERATE_FAILED = "Cannot generate flythrough: the path needs at least 2 vertices."


def _clamp_int(value, low: int, high: int, default: int) -> int:
    try:
        return min(max(int(value), low), high)
    except (TypeError, ValueError):
        return default


def _request_inputs(data: dict) -> tuple[list, AnimationParams, dict, str | None]:
    if "path" not in data:
        raise ValueError("A path is required.")
    vertices = parse_path(data["path"])
    raw_params = dict(data.get("params") or {})
    if "fps" in raw_params:
        raw_params["fps"] = _clamp_int(raw_params["fps"], 1, 120, 30)
    params = AnimationParams.from_dict(raw_params)
    if params.speed <= 0:
        raise ValueError("Speed must be greater than 0.")
    return vertices, params, data.get("elevation") or {}, data.get("crs")


# ─── API: Generate keyframes ─────────────────────────────────────────────

@app.route("/api/generate", methods=["POST"])
def generate():
    data = request.get_json(force=True)
    try:
        vertices, params, elevation_cfg, crs = _request_inputs(data)
        elevation = source_from_config(elevation_cfg)
    except (OSError, ValueError) as exc:
        return jsonify({"ok": False, "error": str(exc)})

    session = FlythroughSession(RecordingRenderer(), elevation, crs=crs)
    if not session.generate(vertices, params):
        return jsonify({"ok": False, "error": GENERATE_FAILED})

    analysis = build_sequence_analysis(session.sequence)
    return jsonify({
        "ok": True,
        "params": params.to_dict(),
        "totalDuration": session.sequence.total_duration,
        "terrainWarning": session.sequence.terrain_warning,
        "keyframes": analysis["sequence"]["keyframes"],
        "motion": analysis["motion"],
        "segments": analysis["segments"],
    })


# ─── API: Playback tasks ─────────────────────────────────────────────────

def _run_playback(task_id: str, realtime: bool) -> None:
    task = tasks[task_id]
    session = sessions[task_id]
    try:
        started = session.play(realtime=realtime)
        if not started and session.stop_requested:
            task["status"] = "stopped"
        elif not started:
            task["status"] = "error"
            task["error"] = "Playback could not start."
        elif session.player.is_finished:
            task["status"] = "done"
        else:
            task["status"] = "stopped"
    except Exception as exc:
        logger.exception("Playback task %s failed", task_id)
        task["status"] = "error"
        task["error"] = str(exc)
    task["frames"] = session.frames_emitted


@app.route("/api/play", methods=["POST"])
def start_playback():
    data = request.get_json(force=True)
    try:
        vertices, params, elevation_cfg, crs = _request_inputs(data)
        elevation = source_from_config(elevation_cfg)
    except (OSError, ValueError) as exc:
        return jsonify({"ok": False, "error": str(exc)})

    session = FlythroughSession(RecordingRenderer(history=1), elevation, crs=crs)
    if not session.generate(vertices, params):
        return jsonify({"ok": False, "error": GENERATE_FAILED})

    task_id = str(uuid.uuid4())[:8]
    tasks[task_id] = {
        "status": "running",
        "frames": 0,
        "totalDuration": session.sequence.total_duration,
        "fps": params.fps,
    }
    sessions[task_id] = session

    thread = threading.Thread(
        target=_run_playback,
        args=(task_id, bool(data.get("realtime", True))),
        daemon=True,
    )
    task_threads[task_id] = thread
    thread.start()

    return jsonify({"ok": True, "taskId": task_id})


@app.route("/api/task/<task_id>")
def get_task_status(task_id):
    task = tasks.get(task_id)
    if not task:
        return jsonify({"ok": False, "error": "Task not found."})

    session = sessions[task_id]
    pose = session.renderer.last_pose
    return jsonify({
        "ok": True,
        **task,
        "frames": session.frames_emitted,
        "elapsed": session.player.state.elapsed,
        "pose": pose.to_dict() if pose else None,
    })


@app.route("/api/task/<task_id>/stop", methods=["POST"])
def stop_task(task_id):
    session = sessions.get(task_id)
    if session is None:
        return jsonify({"ok": False, "error": "Task not found."})

    session.stop()
    thread = task_threads.get(task_id)
    if thread is not None:
        thread.join(5.0)
    return jsonify({"ok": True, "status": tasks[task_id]["status"]})


if __name__ == "__main__":
    configure()
    app.run(host="127.0.0.1", port=5100, debug=False)
