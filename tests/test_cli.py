import contextlib
import io
import json
import tempfile
import unittest
from pathlib import Path

import cli
from models import AltitudeMode


def _write_route(directory: Path, coords) -> Path:
    path = directory / "route.geojson"
    path.write_text(json.dumps({"type": "LineString", "coordinates": coords}))
    return path


class TestCli(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp = Path(self._tmp.name)

    def tearDown(self):
        self._tmp.cleanup()

    def _run(self, argv):
        out, err = io.StringIO(), io.StringIO()
        with contextlib.redirect_stdout(out), contextlib.redirect_stderr(err):
            code = cli.main(argv)
        return code, out.getvalue(), err.getvalue()

    def test_generate_summary_and_play(self):
        route = _write_route(self.tmp, [[0, 0], [1000, 0]])
        summary = self.tmp / "out" / "summary.json"
        code, out, _ = self._run([
            "--path", str(route),
            "--flat-elevation", "100",
            "--altitude-mode", "terrain_relative",
            "--fps", "4",
            "--summary-json", str(summary),
            "--play",
        ])
        self.assertEqual(code, 0)
        self.assertIn("Keyframes: 2", out)
        self.assertIn("Playback emitted 80 poses", out)

        data = json.loads(summary.read_text())
        self.assertEqual(data["motion"]["keyframe_count"], 2)
        self.assertAlmostEqual(data["motion"]["duration_sec"], 20.0)
        self.assertAlmostEqual(data["motion"]["max_altitude"], 300.0)
        self.assertEqual(data["params"]["altitude_mode"], "terrain_relative")

    def test_single_vertex_path_fails(self):
        route = _write_route(self.tmp, [[0, 0]])
        code, _, err = self._run(["--path", str(route)])
        self.assertEqual(code, 1)
        self.assertIn("Cannot generate flythrough", err)

    def test_missing_path_file(self):
        code, _, err = self._run(["--path", str(self.tmp / "missing.geojson")])
        self.assertEqual(code, 2)
        self.assertIn("not found", err)

    def test_params_from_args(self):
        args = cli.parse_args([
            "--path", "x.geojson",
            "--altitude-mode", "fixed_amsl",
            "--camera-height", "900",
            "--no-banking",
            "--smoothing", "3",
        ])
        params = cli.params_from_args(args)
        self.assertEqual(params.altitude_mode, AltitudeMode.FIXED_AMSL)
        self.assertEqual(params.camera_height, 900.0)
        self.assertFalse(params.enable_banking)
        self.assertEqual(params.smoothing, 3)
        self.assertIn(cli.elevation_config_from_args(args)["type"], ("flat", "http"))

    def test_rejects_non_positive_speed(self):
        with contextlib.redirect_stderr(io.StringIO()):
            with self.assertRaises(SystemExit):
                cli.parse_args(["--path", "x.geojson", "--speed", "0"])


if __name__ == "__main__":
    unittest.main()
