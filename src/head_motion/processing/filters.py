import math
from collections import deque
from typing import Deque, Optional


class LowPassFilter:
    """
    Single-pole IIR smoother used on the attitude angles.

    The coefficient is derived once from the cutoff and the sample rate.
    Changing either means building a new filter.
    """

    def __init__(self, cutoff_frequency: float, sample_rate: float = 30.0):
        if cutoff_frequency <= 0:
            raise ValueError("cutoff_frequency must be positive.")
        if sample_rate <= 0:
            raise ValueError("sample_rate must be positive.")

        rc = 1.0 / (2.0 * math.pi * cutoff_frequency)
        dt = 1.0 / sample_rate
        self.alpha: float = dt / (rc + dt)
        self.last_output: Optional[float] = None

    def apply(self, value: float) -> float:
        # The first sample initializes the state unsmoothed.
        if self.last_output is None:
            self.last_output = value
            return value

        output = self.alpha * value + (1.0 - self.alpha) * self.last_output
        self.last_output = output
        return output

    def reset(self) -> None:
        self.last_output = None


class MedianFilter:
    """
    Sliding-window median used for spike rejection on rate/acceleration channels.

    For even buffer lengths the upper-middle element is returned.
    """

    def __init__(self, window_size: int = 5):
        if window_size < 1:
            raise ValueError("window_size must be at least 1.")
        self.window_size = window_size
        self._buffer: Deque[float] = deque(maxlen=window_size)

    def apply(self, value: float) -> float:
        self._buffer.append(value)
        ordered = sorted(self._buffer)
        return ordered[len(ordered) // 2]

    def reset(self) -> None:
        self._buffer.clear()

    def __len__(self) -> int:
        return len(self._buffer)
