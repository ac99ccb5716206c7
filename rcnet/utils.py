import time
import numbers

import numpy as np

from typing import Callable, Optional

from .errors import InvalidParameterError, DimensionMismatchError


def make_rng(seed: Optional[int] = None, rng: Optional[np.random.Generator] = None) -> np.random.Generator:
    """
    Returns the generator all random draws of an object are taken from.

    :param seed: Seed for a fresh generator. Ignored if rng is given.
    :param rng: Shared generator, e.g. one passed first to the reservoir and then to the readout.
    :return: numpy Generator
    """
    if rng is not None:
        return rng
    return np.random.default_rng(seed)


def sparse_normal_matrix(rng: np.random.Generator, shape: tuple, p: float, scale: float) -> np.ndarray:
    """
    Draws a matrix of normal weights where each entry survives independently with probability p.

    :param rng: Random generator
    :param shape: Shape of the matrix
    :param p: Probability for an entry to be nonzero
    :param scale: Standard deviation of the surviving entries
    :return: Weight matrix
    """
    weights = rng.standard_normal(size=shape) * scale
    mask = rng.uniform(0.0, 1.0, size=shape) < p
    return np.where(mask, weights, 0.0)


def sparse_uniform_matrix(rng: np.random.Generator, shape: tuple, p: float, g: float) -> np.ndarray:
    """
    Draws a matrix of weights uniform on [-g, g] where each entry survives independently with probability p.
    """
    weights = rng.uniform(-g, g, size=shape)
    mask = rng.uniform(0.0, 1.0, size=shape) < p
    return np.where(mask, weights, 0.0)


def check_positive_int(value, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, numbers.Integral) or value <= 0:
        raise InvalidParameterError(f'{name} must be an integer greater than 0, got {value!r}')
    return int(value)


def _is_real(value) -> bool:
    return isinstance(value, numbers.Real) and not isinstance(value, bool)


def check_probability(value, name: str, allow_zero: bool = True) -> float:
    interval = '[0,1]' if allow_zero else '(0,1]'
    if not _is_real(value):
        raise InvalidParameterError(f'{name} must be a number in {interval}, got {value!r}')
    lower_ok = value >= 0 if allow_zero else value > 0
    if not (lower_ok and value <= 1):
        raise InvalidParameterError(f'{name} must be in {interval}, got {value!r}')
    return float(value)


def check_finite(value, name: str, positive: bool = False) -> float:
    if not _is_real(value) or not np.isfinite(value):
        raise InvalidParameterError(f'{name} must be a finite number, got {value!r}')
    if positive and value <= 0:
        raise InvalidParameterError(f'{name} must be a positive finite number, got {value!r}')
    return float(value)


def check_shape(array: np.ndarray, shape: tuple, name: str) -> np.ndarray:
    array = np.asarray(array, dtype=float)
    if array.shape != shape:
        raise DimensionMismatchError(f'{name} must have shape {shape}, got {array.shape}')
    return array


def check_buffer(out: np.ndarray, size: int, name: str) -> np.ndarray:
    """Checks that an output buffer is a vector of length size; it is written in place, so it is not converted."""
    if np.shape(out) != (size,):
        raise DimensionMismatchError(f'{name} must have length {size}, got shape {np.shape(out)}')
    return out


def find_largest_factors(c: int):
    """
    Returns the two largest factors a and b of an integer c, such that a * b = c.
    """
    for a in range(int(c**0.5), 0, -1):
        if c % a == 0:
            b = c // a
            return b, a
    return 1, c


class Stopwatch:
    """Measures elapsed wall time for progress reports. The clock can be swapped out in tests."""

    def __init__(self, clock: Callable[[], float] = time.perf_counter):
        self._clock = clock
        self._start = clock()

    def elapsed_time(self) -> float:
        return self._clock() - self._start

    def restart(self) -> float:
        elapsed = self.elapsed_time()
        self._start = self._clock()
        return elapsed
