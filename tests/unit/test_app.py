"""
Unit tests for the factories and the command line entry point.
"""

import unittest

from head_motion.__main__ import parse_args, run
from head_motion.configs import AppSettings, SessionSettings, ZmqSinkConfig
from head_motion.controllers import SimulatedDeviceController
from head_motion.factories import create_manager, create_session_sinks
from head_motion.sinks import ZMQSink


class TestFactories(unittest.IsolatedAsyncioTestCase):

    async def test_no_sinks_by_default(self):
        self.assertEqual(create_session_sinks(AppSettings(zmq=ZmqSinkConfig(enabled=False))), [])

    async def test_zmq_sink_when_enabled(self):
        settings = AppSettings(zmq=ZmqSinkConfig(enabled=True, host="tcp://127.0.0.1:5599"))
        sinks = create_session_sinks(settings)
        try:
            self.assertEqual(len(sinks), 1)
            self.assertIsInstance(sinks[0], ZMQSink)
            self.assertEqual(sinks[0].host, "tcp://127.0.0.1:5599")
        finally:
            for sink in sinks:
                await sink.close()

    async def test_create_manager_uses_settings(self):
        settings = AppSettings()
        manager = create_manager(settings)
        self.assertIsInstance(manager.controller, SimulatedDeviceController)
        self.assertIs(manager.processor.settings, settings.processor)
        self.assertIs(manager.settings, settings.session)
        await manager.close()


class TestCommandLine(unittest.IsolatedAsyncioTestCase):

    def test_parse_args(self):
        args = parse_args(["--duration", "1.5", "--calibrate"])
        self.assertEqual(args.duration, 1.5)
        self.assertTrue(args.calibrate)

    def test_defaults(self):
        args = parse_args([])
        self.assertEqual(args.duration, 20.0)
        self.assertFalse(args.calibrate)

    async def test_short_run(self):
        settings = AppSettings(
            zmq=ZmqSinkConfig(enabled=False),
            session=SessionSettings(calibration_settle_s=0.0),
        )
        with self.assertLogs("main", level="INFO") as captured:
            await run(settings, duration=0.3, calibrate=True)
        self.assertTrue(any("Processed" in line for line in captured.output))


if __name__ == "__main__":
    unittest.main()
