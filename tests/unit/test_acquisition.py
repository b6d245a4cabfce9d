"""
Unit tests for the motion sources and the MotionRunner.
"""

import asyncio
import math
import unittest

from head_motion.acquisition import (
    ReplayMotionSource,
    SimulatedMotionSource,
    SourceUpdate,
    head_gesture_profile,
)
from head_motion.core import MotionRunner
from head_motion.models import MotionSample
from head_motion.utils import _END

from .support import wait_for


async def drain(queue):
    items = []
    while True:
        item = await queue.get()
        if item is _END:
            return items
        items.append(item)


class TestHeadGestureProfile(unittest.TestCase):

    def test_rest_at_cycle_start(self):
        attitude, rate, _ = head_gesture_profile(0.5)
        self.assertEqual((attitude.pitch, attitude.yaw), (0.0, 0.0))
        self.assertEqual(rate.magnitude, 0.0)

    def test_looking_down_hold(self):
        attitude, rate, _ = head_gesture_profile(3.0)
        self.assertAlmostEqual(attitude.pitch_degrees, -60.0)
        self.assertEqual(rate.x, 0.0)

    def test_looking_up_hold(self):
        attitude, _, _ = head_gesture_profile(9.0)
        self.assertAlmostEqual(attitude.pitch_degrees, 40.0)

    def test_shake_oscillates_yaw_rate(self):
        _, rate, _ = head_gesture_profile(4.5)
        self.assertAlmostEqual(rate.z, 0.15 * 2 * math.pi * 5.0)

    def test_profile_repeats(self):
        self.assertEqual(head_gesture_profile(3.0), head_gesture_profile(13.0))


class TestSimulatedMotionSource(unittest.IsolatedAsyncioTestCase):

    async def test_streams_until_stopped(self):
        source = SimulatedMotionSource(frequency=200.0, seed=3)
        task = asyncio.create_task(source.run())
        await wait_for(lambda: source.output_queue.qsize() >= 3)
        self.assertTrue(source.is_active)

        await source.stop()
        await task
        updates = await drain(source.output_queue)

        self.assertFalse(source.is_active)
        self.assertGreaterEqual(len(updates), 3)
        timestamps = [u.sample.timestamp for u in updates]
        self.assertEqual(timestamps, sorted(timestamps))
        self.assertEqual(timestamps[1] - timestamps[0], 1.0 / 200.0)

    async def test_fail_to_start_never_goes_active(self):
        source = SimulatedMotionSource(fail_to_start=True)
        task = asyncio.create_task(source.run())
        await asyncio.sleep(0.02)

        self.assertFalse(source.is_active)
        self.assertTrue(source.output_queue.empty())

        await source.stop()
        await task

    async def test_fault_after_samples(self):
        source = SimulatedMotionSource(frequency=200.0, fault_after=2)
        task = asyncio.create_task(source.run())
        await wait_for(lambda: source.output_queue.qsize() >= 3)
        await source.stop()
        await task
        updates = await drain(source.output_queue)

        self.assertEqual(len(updates), 3)
        self.assertIsNotNone(updates[0].sample)
        self.assertIsInstance(updates[2].error, RuntimeError)

    async def test_empty_fault(self):
        source = SimulatedMotionSource(frequency=200.0, fault_after=0, fault="empty")
        task = asyncio.create_task(source.run())
        await wait_for(lambda: not source.output_queue.empty())
        await source.stop()
        await task

        self.assertEqual(await drain(source.output_queue), [SourceUpdate()])

    def test_rejects_non_positive_frequency(self):
        with self.assertRaises(ValueError):
            SimulatedMotionSource(frequency=0.0)


class TestReplayMotionSource(unittest.IsolatedAsyncioTestCase):

    async def test_replays_in_order_then_waits(self):
        samples = [MotionSample.from_values(i * 0.1) for i in range(5)]
        source = ReplayMotionSource(samples)
        task = asyncio.create_task(source.run())
        await wait_for(lambda: source.output_queue.qsize() == 5)

        self.assertTrue(source.is_active)
        self.assertFalse(task.done())

        await source.stop()
        await task
        updates = await drain(source.output_queue)
        self.assertEqual([u.sample for u in updates], samples)


class TestMotionRunner(unittest.IsolatedAsyncioTestCase):

    async def test_delivers_updates_in_order(self):
        samples = [MotionSample.from_values(i * 0.1) for i in range(5)]
        received = []
        runner = MotionRunner(ReplayMotionSource(samples), received.append)

        await runner.start()
        await wait_for(lambda: len(received) == 5)
        self.assertTrue(runner.is_active)

        await runner.stop()
        self.assertFalse(runner.is_running)
        self.assertFalse(runner.is_active)
        self.assertEqual([u.sample for u in received], samples)

    async def test_handler_failure_skips_one_update(self):
        samples = [MotionSample.from_values(i * 0.1) for i in range(3)]
        received = []

        def handler(update):
            if update.sample.timestamp == 0.0:
                raise ValueError("boom")
            received.append(update)

        runner = MotionRunner(ReplayMotionSource(samples), handler)
        with self.assertLogs("head_motion.core.runner", level="ERROR"):
            await runner.start()
            await wait_for(lambda: len(received) == 2)
        await runner.stop()

        self.assertEqual([u.sample for u in received], samples[1:])


if __name__ == "__main__":
    unittest.main()
