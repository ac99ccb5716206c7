import logging

import numpy as np

from sklearn.linear_model import LinearRegression
from sklearn.metrics import mean_squared_error
from typing import Tuple

from .errors import DimensionMismatchError, InvalidParameterError
from .readout import Readout
from .reservoir import Reservoir
from .streams import InputStream
from .timeseries import TimeSeries

logger = logging.getLogger(__name__)


def rms_error(prediction: np.ndarray, target: np.ndarray) -> float:
    if prediction.shape != target.shape:
        raise DimensionMismatchError(f'shapes {prediction.shape} and {target.shape} do not match')
    return float(np.sqrt(mean_squared_error(target, prediction)))


class LearningModuleRegression:
    """
    Batch training of a readout: collects (firing rates, target) pairs during a simulation with store()
    and fits the readout weights to all of them at once with learn().
    """

    def __init__(self, reservoir: Reservoir, readout: Readout, target: InputStream):
        if readout.fb_size() != reservoir.size():
            raise DimensionMismatchError('readout and reservoir sizes do not match')
        if target.size() != readout.size():
            raise DimensionMismatchError('target and readout sizes do not match')

        self.dim_reservoir = reservoir.size()
        self.dim_out = readout.size()
        self.reservoir = reservoir
        self.readout = readout
        self.target = target

        self.reset()

    def set_target(self, target: InputStream) -> None:
        if target.size() != self.dim_out:
            raise DimensionMismatchError(f'New target stream has size {target.size()}, expected {self.dim_out}')
        self.target = target

    def get_stored_r(self) -> TimeSeries:
        return self.stored_r

    def get_stored_target(self) -> TimeSeries:
        return self.stored_target

    def store(self) -> None:
        """Stores the current firing rates and the target at the current time of the reservoir."""
        self.stored_r.add_time_point(self.reservoir.get_r_array())
        self.stored_target.add_time_point(self.target.get_input(self.reservoir.t))

    def learn(self) -> Tuple[float, float]:
        """
        Least-squares fit of W_out so that R @ W_out.T ~ Y over all stored samples.

        :return: RMS error before and after learning
        """
        R = self.stored_r.to_matrix()            # (T, N)
        Y = self.stored_target.to_matrix()       # (T, M)
        if R.shape[0] == 0:
            raise InvalidParameterError('No samples stored, call store() before learn()')

        error_before = rms_error(R @ self.readout.get_w_out().T, Y)
        logger.info('RMS error before learning: %.6g', error_before)

        # lstsq based, fine with fewer samples than neurons and rank deficient R
        regression = LinearRegression(fit_intercept=False)
        regression.fit(R, Y)
        W = np.asarray(regression.coef_).reshape(self.dim_out, self.dim_reservoir)

        error_after = rms_error(R @ W.T, Y)
        logger.info('RMS error after learning: %.6g (%d samples)', error_after, R.shape[0])

        self.readout.set_w_out(W)
        return error_before, error_after

    def reset(self) -> None:
        """Drops the stored data by starting new buffers."""
        self.stored_r = TimeSeries(self.dim_reservoir)
        self.stored_target = TimeSeries(self.dim_out)
