"""
Unit tests for MotionDataProcessor and CalibrationOffset.
"""

import math
import unittest

from head_motion.configs import ProcessorSettings
from head_motion.models import Attitude, GestureKind
from head_motion.processing import CalibrationOffset, MotionDataProcessor

from .support import sample


def pitch_ramp(to_deg: float = -60.0, duration_s: float = 2.0, rate_hz: float = 30.0):
    count = int(duration_s * rate_hz)
    return [sample(i / rate_hz, pitch_deg=to_deg * i / count) for i in range(count + 1)]


def ramp_then_hold(to_deg: float = -60.0, ramp_s: float = 1.0, total_s: float = 2.0, rate_hz: float = 30.0):
    ramp_count = int(ramp_s * rate_hz)
    return [
        sample(i / rate_hz, pitch_deg=to_deg * min(i, ramp_count) / ramp_count)
        for i in range(int(total_s * rate_hz) + 1)
    ]


class TestCalibrationOffset(unittest.TestCase):
    """Test cases for CalibrationOffset."""

    def test_no_offset_returns_sample_unchanged(self):
        calibration = CalibrationOffset()
        s = sample(0.0, pitch_deg=10.0)
        self.assertIs(calibration.apply(s), s)
        self.assertFalse(calibration.is_set)

    def test_offset_is_subtracted_from_attitude_only(self):
        calibration = CalibrationOffset()
        calibration.capture(Attitude(0.1, 0.2, 0.3))
        s = sample(0.0, rate_z=1.5)
        out = calibration.apply(s)
        self.assertAlmostEqual(out.attitude.roll, -0.1)
        self.assertAlmostEqual(out.attitude.pitch, -0.2)
        self.assertAlmostEqual(out.attitude.yaw, -0.3)
        self.assertEqual(out.rotation_rate, s.rotation_rate)
        self.assertEqual(out.gravity, s.gravity)

    def test_clear(self):
        calibration = CalibrationOffset()
        calibration.capture(Attitude(0.1, 0.2, 0.3))
        calibration.clear()
        self.assertIsNone(calibration.offset)


class TestMotionDataProcessor(unittest.TestCase):
    """Test cases for the per-sample pipeline."""

    def test_ramp_emits_single_looking_down_at_first_crossing(self):
        processor = MotionDataProcessor(ProcessorSettings(filtering_enabled=False))
        ramp = pitch_ramp()
        first_crossing = next(s for s in ramp if s.attitude.pitch_degrees < -45.0)

        events = []
        for s in ramp:
            events.extend(processor.process(s)[1])

        self.assertEqual([e.kind for e in events], [GestureKind.LOOKING_DOWN])
        self.assertEqual(events[0].timestamp, first_crossing.timestamp)

    def test_held_pose_respects_cooldown(self):
        settings = ProcessorSettings(filtering_enabled=False)
        processor = MotionDataProcessor(settings)
        stream = ramp_then_hold()
        first_crossing = next(s for s in stream if s.attitude.pitch_degrees < -45.0)

        events = []
        for s in stream:
            events.extend(e for e in processor.process(s)[1] if e.kind is GestureKind.LOOKING_DOWN)

        self.assertEqual(events[0].timestamp, first_crossing.timestamp)
        self.assertGreaterEqual(len(events), 2)
        gaps = [b.timestamp - a.timestamp for a, b in zip(events, events[1:])]
        for gap in gaps:
            self.assertGreaterEqual(gap, settings.event_cooldown_s)
        # Nothing between the first crossing and the end of its cooldown.
        self.assertFalse(any(
            first_crossing.timestamp < e.timestamp < first_crossing.timestamp + settings.event_cooldown_s
            for e in events
        ))

    def test_filtered_ramp_emits_single_looking_down(self):
        processor = MotionDataProcessor()
        ramp = pitch_ramp()
        first_crossing = next(s for s in ramp if s.attitude.pitch_degrees < -45.0)

        events = []
        for s in ramp:
            events.extend(processor.process(s)[1])

        self.assertEqual([e.kind for e in events], [GestureKind.LOOKING_DOWN])
        # The low-pass filter lags the raw signal.
        self.assertGreaterEqual(events[0].timestamp, first_crossing.timestamp)

    def test_calibration_applies_with_filtering_disabled(self):
        processor = MotionDataProcessor(ProcessorSettings(filtering_enabled=False))
        raw = sample(0.0, roll_deg=5.0, pitch_deg=-20.0, yaw_deg=30.0)
        processor.calibrate(raw.attitude)

        filtered, _ = processor.process(raw)

        self.assertEqual(filtered.attitude, Attitude(0.0, 0.0, 0.0))

    def test_calibration_happens_before_filtering(self):
        processor = MotionDataProcessor()
        raw = sample(0.0, pitch_deg=-50.0)
        processor.calibrate(raw.attitude)

        filtered, events = processor.process(raw)

        self.assertAlmostEqual(filtered.attitude.pitch, 0.0)
        self.assertEqual(events, [])

    def test_filtering_smooths_attitude(self):
        processor = MotionDataProcessor()
        processor.process(sample(0.0, pitch_deg=0.0))
        filtered, _ = processor.process(sample(1 / 30, pitch_deg=10.0))
        self.assertLess(filtered.attitude.pitch_degrees, 10.0)
        self.assertGreater(filtered.attitude.pitch_degrees, 0.0)

    def test_median_removes_rate_spike(self):
        processor = MotionDataProcessor()
        spike = math.radians(400.0)
        events = []
        for i, rate in enumerate([0.0, 0.0, 0.0, spike, 0.0]):
            filtered, found = processor.process(sample(i / 30, rate_z=rate))
            events.extend(found)
        self.assertEqual(filtered.rotation_rate.z, 0.0)
        self.assertNotIn(GestureKind.SUDDEN_MOVEMENT, [e.kind for e in events])

    def test_reset_filters(self):
        processor = MotionDataProcessor()
        processor.process(sample(0.0, pitch_deg=0.0))
        processor.reset_filters()

        self.assertEqual(processor.detector.history, [])
        self.assertEqual(processor.stats.total_processed_samples, 0)

        raw = sample(1 / 30, pitch_deg=10.0)
        filtered, _ = processor.process(raw)
        self.assertEqual(filtered.attitude, raw.attitude)

    def test_update_filter_settings(self):
        processor = MotionDataProcessor()
        settings = ProcessorSettings(attitude_lpf_cutoff_hz=2.0, looking_down_threshold_deg=-30.0)
        processor.update_filter_settings(settings)

        self.assertIs(processor.settings, settings)
        self.assertIs(processor.detector.settings, settings)
        _, events = processor.process(sample(0.0, pitch_deg=-35.0))
        self.assertEqual([e.kind for e in events], [GestureKind.LOOKING_DOWN])

    def test_update_filter_settings_resizes_windows(self):
        processor = MotionDataProcessor()
        for i in range(30):
            processor.process(sample(i / 30))

        processor.update_filter_settings(ProcessorSettings(history_size=12, stats_window=5))

        history = processor.detector.history
        self.assertEqual(len(history), 12)
        self.assertEqual(history[-1].timestamp, 29 / 30)
        for i in range(30, 50):
            processor.process(sample(i / 30))
        self.assertEqual(len(processor.detector.history), 12)
        self.assertEqual(len(processor.stats._times), 5)

    def test_update_filter_settings_keeps_cooldowns(self):
        processor = MotionDataProcessor(ProcessorSettings(filtering_enabled=False))
        processor.process(sample(0.0, pitch_deg=-60.0))
        processor.update_filter_settings(ProcessorSettings(filtering_enabled=False, history_size=20))
        _, events = processor.process(sample(0.5, pitch_deg=-60.0))
        self.assertEqual(events, [])

    def test_processing_time_is_recorded(self):
        processor = MotionDataProcessor()
        for i in range(5):
            processor.process(sample(i / 30))
        self.assertEqual(processor.stats.total_processed_samples, 5)
        self.assertGreaterEqual(processor.stats.max_processing_time, processor.stats.average_processing_time)


if __name__ == "__main__":
    unittest.main()
