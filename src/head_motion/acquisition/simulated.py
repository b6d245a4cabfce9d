import asyncio
import logging
import math
import random
import time
from datetime import datetime, timezone
from typing import Callable, Literal, Optional

from head_motion.models import Acceleration, Attitude, MotionSample, RotationRate
from .base import MotionSource, SourceUpdate

logger = logging.getLogger(__name__)

# (attitude, rotation rate, user acceleration) at a given time in seconds.
MotionProfile = Callable[[float], tuple[Attitude, RotationRate, Acceleration]]

_CYCLE_S = 10.0


def _ease(t: float, start: float, duration: float) -> tuple[float, float]:
    """Smoothstep from 0 to 1 over [start, start + duration]; returns (value, d/dt)."""
    u = (t - start) / duration
    if u <= 0.0 or u >= 1.0:
        return (0.0 if u <= 0.0 else 1.0), 0.0
    return u * u * (3 - 2 * u), 6 * u * (1 - u) / duration


def _hold(t: float, start: float, end: float, ramp: float) -> tuple[float, float]:
    """Ramps up at `start`, holds, ramps back down to finish at `end`."""
    up, d_up = _ease(t, start, ramp)
    down, d_down = _ease(t, end - ramp, ramp)
    return up - down, d_up - d_down


def head_gesture_profile(t: float) -> tuple[Attitude, RotationRate, Acceleration]:
    """
    A repeating ten second routine: rest, look down, shake, nod, look up.
    """
    phase = t % _CYCLE_S
    pitch = yaw = 0.0
    pitch_rate = yaw_rate = 0.0

    # Look down to -60 deg between 2s and 4s.
    level, d_level = _hold(phase, 2.0, 4.0, 0.5)
    pitch += math.radians(-60.0) * level
    pitch_rate += math.radians(-60.0) * d_level

    # Head shake at 5Hz between 4.5s and 5.5s.
    if 4.5 <= phase < 5.5:
        w = 2 * math.pi * 5.0
        yaw += 0.15 * math.sin(w * (phase - 4.5))
        yaw_rate += 0.15 * w * math.cos(w * (phase - 4.5))

    # Nod at 4Hz between 6.5s and 7.5s.
    if 6.5 <= phase < 7.5:
        w = 2 * math.pi * 4.0
        pitch += 0.12 * math.sin(w * (phase - 6.5))
        pitch_rate += 0.12 * w * math.cos(w * (phase - 6.5))

    # Look up to +40 deg between 8s and 9.5s.
    level, d_level = _hold(phase, 8.0, 9.5, 0.4)
    pitch += math.radians(40.0) * level
    pitch_rate += math.radians(40.0) * d_level

    return (
        Attitude(roll=0.0, pitch=pitch, yaw=yaw),
        RotationRate(x=pitch_rate, y=0.0, z=yaw_rate),
        Acceleration(0.0, 0.0, 0.0),
    )


class SimulatedMotionSource(MotionSource):
    """
    A MotionSource that simulates a head-worn sensor for development and testing.

    It emits samples at a fixed frequency following `profile` with optional
    gaussian noise. It can also misbehave on purpose: never report active
    (`fail_to_start`) or deliver a read fault after a number of samples.
    """

    def __init__(
        self,
        *args,
        frequency: float = 30.0,
        profile: MotionProfile = head_gesture_profile,
        noise: float = 0.0,
        seed: Optional[int] = None,
        fail_to_start: bool = False,
        fault_after: Optional[int] = None,
        fault: Literal["error", "empty"] = "error",
        **kwargs,
    ):
        """
        Initializes the SimulatedMotionSource.

        Args:
            frequency: The frequency in Hz to emit samples.
            profile: Maps elapsed seconds to attitude, rotation rate and acceleration.
            noise: Standard deviation of the noise added to every channel.
            seed: Seed for the noise generator.
            fail_to_start: If True, the source never reports itself as active.
            fault_after: Number of samples after which a fault is delivered.
            fault: "error" delivers an exception, "empty" an update with no data.
        """
        super().__init__(*args, **kwargs)
        if frequency <= 0:
            raise ValueError("Frequency must be positive.")

        self._frequency = frequency
        self._interval_s = 1.0 / frequency
        self._profile = profile
        self._noise = noise
        self._rng = random.Random(seed)
        self._fail_to_start = fail_to_start
        self._fault_after = fault_after
        self._fault = fault

    def _jitter(self, value: float) -> float:
        return value + self._rng.gauss(0.0, self._noise) if self._noise else value

    def _make_sample(self, elapsed: float) -> MotionSample:
        attitude, rate, accel = self._profile(elapsed)
        attitude = Attitude(*(self._jitter(v) for v in (attitude.roll, attitude.pitch, attitude.yaw)))
        rate = RotationRate(*(self._jitter(v) for v in (rate.x, rate.y, rate.z)))
        accel = Acceleration(*(self._jitter(v) for v in (accel.x, accel.y, accel.z)))
        gravity = Acceleration(
            x=math.sin(attitude.roll) * math.cos(attitude.pitch),
            y=math.sin(attitude.pitch),
            z=-math.cos(attitude.roll) * math.cos(attitude.pitch),
        )
        return MotionSample(
            timestamp=elapsed,
            attitude=attitude,
            rotation_rate=rate,
            user_acceleration=accel,
            gravity=gravity,
            received_at=datetime.now(timezone.utc),
        )

    async def _stream(self) -> None:
        if self._fail_to_start:
            logger.warning("Simulated source refusing to start.")
            await self._stop_event.wait()
            return

        start_time = time.monotonic()
        frame_counter = 0
        self._active = True

        logger.info(f"Starting simulated motion stream at {self._frequency} Hz...")
        try:
            while not self._stop_event.is_set():
                target_time = start_time + (frame_counter * self._interval_s)

                if self._fault_after is not None and frame_counter >= self._fault_after:
                    if self._fault == "empty":
                        await self._output_queue.put(SourceUpdate())
                    else:
                        await self._output_queue.put(SourceUpdate(error=RuntimeError("Simulated sensor read error")))
                    await self._stop_event.wait()
                    break

                # Device clock starts at 0 and advances with the frame counter.
                sample = self._make_sample(frame_counter * self._interval_s)
                await self._output_queue.put(SourceUpdate(sample=sample))

                sleep_duration = target_time + self._interval_s - time.monotonic()
                if sleep_duration > 0:
                    await asyncio.sleep(sleep_duration)
                else:
                    await asyncio.sleep(0)

                frame_counter += 1

        except asyncio.CancelledError:
            logger.info("Simulated source run task was cancelled.")
            raise
        finally:
            logger.info("SimulatedMotionSource has stopped after %d samples.", frame_counter)
