"""
Interfaces for signals entering the reservoir, and a few periodic target signals.

InputStream: exogenous drive (or a target) as a function of time.
FeedbackSource: feedback vector computed from the firing rates of the reservoir.
"""
from abc import ABC, abstractmethod

import numpy as np

from typing import Optional

from .utils import check_finite, check_buffer


class InputStream(ABC):

    @abstractmethod
    def size(self) -> int:
        """Number of values written by get_input."""

    @abstractmethod
    def get_input(self, t: float, out: Optional[np.ndarray] = None) -> np.ndarray:
        """
        :param t: The current simulation time
        :param out: Optional buffer of length size() to write into
        :return: out, or a new array if out is None
        """


class FeedbackSource(ABC):

    @abstractmethod
    def fb_size(self) -> int:
        """Number of feedback values, must equal the size of the reservoir."""

    @abstractmethod
    def get_feedback(self, r: np.ndarray, t: float, out: Optional[np.ndarray] = None) -> np.ndarray:
        """
        :param r: Firing rates of the reservoir
        :param t: The current simulation time
        :param out: Optional buffer of length fb_size() to write into
        :return: out, or a new array if out is None
        """


class PeriodicWave(InputStream):
    """Scalar periodic signal with range [-1, 1] and period `period`."""

    def __init__(self, period: float):
        self.period = check_finite(period, 'period', positive=True)

    def size(self) -> int:
        return 1

    @abstractmethod
    def value(self, t: float) -> float:
        pass

    def get_input(self, t: float, out: Optional[np.ndarray] = None) -> np.ndarray:
        if out is None:
            return np.full(1, self.value(t))
        check_buffer(out, 1, 'out')
        out.fill(self.value(t))
        return out


class SineWave(PeriodicWave):

    def value(self, t: float) -> float:
        return np.sin(2 * np.pi * t / self.period)


class TriangleWave(PeriodicWave):

    def value(self, t: float) -> float:
        return abs(4 * ((t / self.period) % 1) - 2) - 1


class SquareWave(PeriodicWave):

    def value(self, t: float) -> float:
        return 2 * np.floor(2 * ((t / self.period) % 1)) - 1


class SawTooth(PeriodicWave):

    def value(self, t: float) -> float:
        return 2 * ((t / self.period) % 1) - 1


class DoubleSineWave(PeriodicWave):
    """Sum of a sine of period `period` and one of twice that period. Range is not limited to [-1, 1]."""

    def value(self, t: float) -> float:
        return np.sin(2 * np.pi * t / self.period) + np.sin(np.pi * t / self.period)


WAVES = {
    'sine': SineWave,
    'triangle': TriangleWave,
    'square': SquareWave,
    'sawtooth': SawTooth,
    'double_sine': DoubleSineWave,
}
