import numpy as np
import pandas as pd

from typing import Iterator, Optional

from .errors import DimensionMismatchError, ReplayDesyncError
from .streams import InputStream
from .utils import check_positive_int, check_finite, check_buffer


class TimeSeries:
    """
    Append-only record of vectors of fixed width n_series, one per time point.

    Used to collect training data, to record readouts for later replay and to feed plots.
    """

    def __init__(self, n_series: int):
        self._n_series = check_positive_int(n_series, 'n_series')
        self._points = []

    @property
    def n_series(self) -> int:
        return self._n_series

    @property
    def n_t(self) -> int:
        """Number of stored time points."""
        return len(self._points)

    def __len__(self) -> int:
        return len(self._points)

    def __iter__(self) -> Iterator[np.ndarray]:
        for point in self._points:
            yield point.copy()

    def add_time_point(self, x) -> None:
        """
        Appends one time point. If x is longer than n_series only its first n_series values are stored.

        :param x: 1D array-like of length >= n_series
        """
        x = np.asarray(x, dtype=float).ravel()
        if x.size < self._n_series:
            raise DimensionMismatchError(f'not enough inputs: expected {self._n_series}, got {x.size}')
        self._points.append(x[:self._n_series].copy())

    def get_time_point(self, i: int) -> np.ndarray:
        if not 0 <= i < len(self._points):
            raise IndexError(f'time point {i} out of range for series of length {len(self._points)}')
        return self._points[i].copy()

    def to_matrix(self) -> np.ndarray:
        """
        :return: Array of shape (n_t, n_series)
        """
        if not self._points:
            return np.zeros((0, self._n_series))
        return np.vstack(self._points)

    def to_frame(self, dt: float = 1.0, t0: float = 0.0) -> pd.DataFrame:
        """
        :param dt: Time between two points
        :param t0: Time of the first point
        :return: DataFrame with one column per series, indexed by time
        """
        index = pd.Index(t0 + dt * np.arange(len(self._points)), name='t')
        return pd.DataFrame(self.to_matrix(), index=index, columns=[f'series_{i}' for i in range(self._n_series)])


class TimeSeriesStream(InputStream):
    """
    Replays a recorded TimeSeries as an input stream, one frame per integration step.

    The stream keeps its own clock. Queries have to be within dt (plus a small tolerance) of it, so the
    stages of a Runge-Kutta step can read the current frame but nobody can read an arbitrary point.
    next_frame() has to be called once per integration step; there is no way back to an earlier frame.
    """
    TOLERANCE = 1.0e-10

    def __init__(self, time_series: TimeSeries, dt: float, t: float = 0.0):
        self._time_series = time_series
        self._dt = check_finite(dt, 'dt')
        self._t = check_finite(t, 't')
        self._n_series = time_series.n_series
        self._frame = 0

    @property
    def t(self) -> float:
        return self._t

    @property
    def frame(self) -> int:
        return self._frame

    def size(self) -> int:
        return self._n_series

    def has_more_frames(self) -> bool:
        return self._frame < self._time_series.n_t

    def next_frame(self) -> None:
        self._t += self._dt
        self._frame += 1

    def get_input(self, t: float, out: Optional[np.ndarray] = None) -> np.ndarray:
        if abs(t - self._t) > abs(self._dt) + self.TOLERANCE:
            raise ReplayDesyncError(f'Queried time {t} does not match internal time {self._t} of the stream')
        if self._frame >= self._time_series.n_t:
            raise ReplayDesyncError(f'Time series is out of points to return ({self._time_series.n_t} frames)')

        if out is None:
            return self._time_series.get_time_point(self._frame)
        check_buffer(out, self._n_series, 'out')
        out[:] = self._time_series.get_time_point(self._frame)
        return out
