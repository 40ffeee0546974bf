import unittest

from elevation import CallableElevation, FlatElevation
from keyframes import generate_keyframes, scan_max_elevation
from models import AltitudeMode, AnimationParams


def _params(**kwargs) -> AnimationParams:
    base = {"smoothing": 0, "enable_banking": False}
    base.update(kwargs)
    return AnimationParams(**base)


class TestGenerateKeyframes(unittest.TestCase):
    def test_straight_line_terrain_relative(self):
        seq = generate_keyframes(
            [(0.0, 0.0), (1000.0, 0.0)],
            FlatElevation(100.0),
            _params(altitude_mode=AltitudeMode.TERRAIN_RELATIVE, camera_height=200.0, speed=50.0),
        )
        self.assertEqual(len(seq), 2)
        self.assertAlmostEqual(seq[0].z, 300.0)
        self.assertAlmostEqual(seq[0].ground_z, 100.0)
        self.assertEqual(seq[0].time, 0.0)
        self.assertAlmostEqual(seq[1].time, 20.0)
        self.assertAlmostEqual(seq[0].yaw, 90.0)
        self.assertAlmostEqual(seq[1].yaw, 90.0)
        self.assertAlmostEqual(seq.total_duration, 20.0)

    def test_banking_opposes_turn(self):
        seq = generate_keyframes(
            [(0.0, 0.0), (100.0, 0.0), (100.0, 100.0)],
            FlatElevation(0.0),
            _params(enable_banking=True, banking_factor=0.5),
        )
        # east then north is a left (counter-clockwise) turn of -90 deg
        middle = seq[1]
        self.assertGreater(middle.roll, 0.0)
        self.assertLessEqual(abs(middle.roll), 45.0)
        self.assertEqual(seq[0].roll, 0.0)
        self.assertEqual(seq[2].roll, 0.0)

    def test_right_turn_banks_negative(self):
        seq = generate_keyframes(
            [(0.0, 0.0), (0.0, 100.0), (10.0, 110.0)],
            FlatElevation(0.0),
            _params(enable_banking=True, banking_factor=0.5),
        )
        self.assertAlmostEqual(seq[1].roll, -22.5)

    def test_banking_disabled(self):
        seq = generate_keyframes(
            [(0.0, 0.0), (100.0, 0.0), (100.0, 100.0)],
            FlatElevation(0.0),
            _params(enable_banking=False),
        )
        self.assertTrue(all(k.roll == 0.0 for k in seq))

    def test_above_safe_path_uses_scanned_peak(self):
        def terrain(x, y):
            return 500.0 if 40.0 <= x <= 42.0 else 10.0

        seq = generate_keyframes(
            [(0.0, 0.0), (100.0, 0.0)],
            CallableElevation(terrain),
            _params(
                altitude_mode=AltitudeMode.ABOVE_SAFE_PATH,
                camera_height=50.0,
                vertical_exaggeration=2.0,
            ),
        )
        self.assertEqual(len(seq), 2)
        for kf in seq:
            self.assertAlmostEqual(kf.z, 1100.0)
            self.assertAlmostEqual(kf.ground_z, 20.0)
        self.assertEqual(seq.max_elevation, 500.0)

    def test_fixed_amsl_below_peak_flags_warning(self):
        seq = generate_keyframes(
            [(0.0, 0.0), (10.0, 0.0)],
            FlatElevation(300.0),
            _params(altitude_mode=AltitudeMode.FIXED_AMSL, camera_height=100.0, vertical_exaggeration=1.5),
        )
        self.assertFalse(seq.is_empty)
        self.assertTrue(seq.terrain_warning)
        self.assertAlmostEqual(seq[0].z, 150.0)

    def test_fixed_amsl_above_peak(self):
        seq = generate_keyframes(
            [(0.0, 0.0), (10.0, 0.0)],
            FlatElevation(50.0),
            _params(altitude_mode=AltitudeMode.FIXED_AMSL, camera_height=100.0),
        )
        self.assertFalse(seq.terrain_warning)
        self.assertTrue(all(k.z == 100.0 for k in seq))

    def test_time_non_decreasing_from_zero(self):
        path = [(0.0, 0.0), (30.0, 40.0), (30.0, 40.0), (100.0, 10.0), (-50.0, 5.0)]
        seq = generate_keyframes(path, FlatElevation(0.0), _params(speed=7.0, smoothing=2))
        self.assertEqual(seq[0].time, 0.0)
        for a, b in zip(seq, seq.keyframes[1:]):
            self.assertLessEqual(a.time, b.time)
        # endpoints of the smoothed path are pinned
        self.assertEqual((seq[-1].x, seq[-1].y), (-50.0, 5.0))

    def test_unavailable_elevation_counts_as_zero(self):
        seq = generate_keyframes(
            [(0.0, 0.0), (10.0, 0.0)],
            CallableElevation(lambda x, y: None),
            _params(altitude_mode=AltitudeMode.ABOVE_SAFE_PATH, camera_height=80.0),
        )
        self.assertEqual(seq.max_elevation, 0.0)
        self.assertTrue(all(k.ground_z == 0.0 and k.z == 80.0 for k in seq))

    def test_pitch_copied_from_params(self):
        seq = generate_keyframes([(0.0, 0.0), (1.0, 1.0)], FlatElevation(0.0), _params(camera_pitch=-30.0))
        self.assertTrue(all(k.pitch == -30.0 for k in seq))

    def test_pitch_clamped_to_vertical(self):
        path = [(0.0, 0.0), (1.0, 1.0)]
        steep = generate_keyframes(path, FlatElevation(0.0), _params(camera_pitch=135.0))
        self.assertTrue(all(k.pitch == 90.0 for k in steep))
        steep = generate_keyframes(path, FlatElevation(0.0), _params(camera_pitch=-120.0))
        self.assertTrue(all(k.pitch == -90.0 for k in steep))

    def test_invalid_inputs_produce_empty_sequence(self):
        params = _params()
        self.assertTrue(generate_keyframes([(0.0, 0.0)], FlatElevation(0.0), params).is_empty)
        self.assertTrue(generate_keyframes([], FlatElevation(0.0), params).is_empty)
        self.assertTrue(generate_keyframes(None, FlatElevation(0.0), params).is_empty)
        self.assertTrue(generate_keyframes([(0.0, 0.0), (1.0, 0.0)], None, params).is_empty)
        self.assertTrue(generate_keyframes([(0.0, 0.0), (1.0, 0.0)], FlatElevation(0.0), _params(speed=0.0)).is_empty)
        self.assertEqual(generate_keyframes([], FlatElevation(0.0), params).total_duration, 0.0)


class TestScanMaxElevation(unittest.TestCase):
    def test_returns_none_when_nothing_sampled(self):
        self.assertIsNone(scan_max_elevation([(0.0, 0.0), (10.0, 0.0)], CallableElevation(lambda x, y: None)))

    def test_finds_peak_between_vertices(self):
        peak = scan_max_elevation(
            [(0.0, 0.0), (10.0, 0.0)],
            CallableElevation(lambda x, y: 100.0 - abs(x - 6.0)),
        )
        self.assertAlmostEqual(peak, 100.0)


if __name__ == "__main__":
    unittest.main()
