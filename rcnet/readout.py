import logging

import numpy as np

from typing import Optional, Tuple

from .errors import DimensionMismatchError
from .streams import InputStream, FeedbackSource
from .utils import (make_rng, sparse_normal_matrix, sparse_uniform_matrix, check_positive_int, check_probability,
                    check_finite, check_shape, check_buffer)

logger = logging.getLogger(__name__)


class Readout(FeedbackSource):
    def __init__(self,
                 dim_out: int,
                 dim_reservoir: int,
                 p: float = 1.0,
                 p_z: float = 1.0,
                 g: float = 1.0,
                 seed: Optional[int] = None,
                 rng: Optional[np.random.Generator] = None):
        """
        M linear readout units of a reservoir with N neurons, which also feed back into the reservoir.

        readout = w_out @ r, feedback = w_back @ readout

        Args:
            dim_out (int): The number of readout units M.
            dim_reservoir (int): The number of reservoir neurons N.
            p (float, optional): The probability of a feedback connection. Defaults to 1.0.
            p_z (float, optional): The probability of a readout connection. Defaults to 1.0.
            g (float, optional): Feedback weights are uniform on [-g, g]. Defaults to 1.0.
            seed (int, optional): Seed for the random generator. Defaults to None.
            rng (np.random.Generator, optional): Shared generator; takes precedence over seed. Defaults to None.

        Readout weights are normal and scaled by 1/sqrt(N*p_z) (Sussillo & Abbott 2009); they are drawn
        before the feedback weights.
        """

        self.dim_out = check_positive_int(dim_out, 'dim_out')
        self.dim_reservoir = check_positive_int(dim_reservoir, 'dim_reservoir')
        self.p = check_probability(p, 'p')
        self.p_z = check_probability(p_z, 'p_z', allow_zero=False)
        self.g = check_finite(g, 'g')

        rng = make_rng(seed, rng)
        self._W_out = sparse_normal_matrix(rng, (self.dim_out, self.dim_reservoir), self.p_z,
                                          1.0 / np.sqrt(self.dim_reservoir * self.p_z))
        self._W_back = sparse_uniform_matrix(rng, (self.dim_reservoir, self.dim_out), self.p, self.g)

        logger.debug('%s with M=%d, N=%d', type(self).__name__, self.dim_out, self.dim_reservoir)

    def size(self) -> int:
        return self.dim_out

    def fb_size(self) -> int:
        return self.dim_reservoir

    def set_w_out(self, W: np.ndarray) -> None:
        self._W_out = check_shape(W, self._W_out.shape, 'W_out').copy()

    def get_w_out(self) -> np.ndarray:
        return self._W_out.copy()

    def get_w_back(self) -> np.ndarray:
        return self._W_back.copy()

    def get_readout(self, r: np.ndarray, t: Optional[float] = None) -> np.ndarray:
        """
        :param r: Firing rates of the reservoir
        :param t: The current time (unused, part of the signature of all readouts)
        :return: Readout of shape (M,)
        """
        return self._W_out @ check_shape(r, (self.dim_reservoir,), 'r')

    def _feedback_drive(self, readout: np.ndarray, t: float) -> np.ndarray:
        """Signal that is projected back into the reservoir through W_back."""
        return readout

    def get_readout_and_feedback(self, r: np.ndarray, t: float) -> Tuple[np.ndarray, np.ndarray]:
        """
        All feedback is computed here.

        :return: (readout of shape (M,), feedback of shape (N,))
        """
        readout = self.get_readout(r, t)
        feedback = self._W_back @ self._feedback_drive(readout, t)
        return readout, feedback

    def get_feedback(self, r: np.ndarray, t: float, out: Optional[np.ndarray] = None) -> np.ndarray:
        _, feedback = self.get_readout_and_feedback(r, t)
        if out is None:
            return feedback
        check_buffer(out, self.dim_reservoir, 'out')
        out[:] = feedback
        return out

    def get_readout_array(self, reservoir) -> np.ndarray:
        """
        Readout of the current firing rates of a reservoir.
        """
        return self.get_readout(reservoir.get_r(), reservoir.t)


class _TargetReadout(Readout):
    """Readout which knows the target it should produce, given as an input stream of width M."""

    def __init__(self, target: InputStream, dim_reservoir: int, **kwargs):
        super().__init__(target.size(), dim_reservoir, **kwargs)
        self.target = target

    def set_target(self, target: InputStream) -> None:
        """
        Replaces the target stream, e.g. by a TimeSeriesStream replaying a recorded readout.
        """
        if target.size() != self.target.size():
            raise DimensionMismatchError(f'New target stream has size {target.size()}, expected {self.target.size()}')
        self.target = target

    def get_target_readout(self, t: float, out: Optional[np.ndarray] = None) -> np.ndarray:
        if out is not None:
            check_buffer(out, self.dim_out, 'readout')
        return self.target.get_input(t, out)

    def get_target_readout_array(self, t: float) -> np.ndarray:
        return np.asarray(self.target.get_input(t), dtype=float).ravel()


class ReadoutClampedFB(_TargetReadout):
    """
    Readout whose feedback can be clamped to a target.

    While clamped (the initial state) the readout is the real readout of the network, but the feedback is
    w_back @ target(t). Unclamped, the feedback is the usual w_back @ readout.
    """

    def __init__(self, target: InputStream, dim_reservoir: int, p: float = 1.0, p_z: float = 1.0, g: float = 1.0,
                 seed: Optional[int] = None, rng: Optional[np.random.Generator] = None):
        super().__init__(target, dim_reservoir, p=p, p_z=p_z, g=g, seed=seed, rng=rng)
        self.is_clamped = True

    def clamp(self) -> None:
        self.is_clamped = True

    def unclamp(self) -> None:
        self.is_clamped = False

    def _feedback_drive(self, readout: np.ndarray, t: float) -> np.ndarray:
        if not self.is_clamped:
            return readout
        return self.get_target_readout(t)


class ReadoutLearningRLS(_TargetReadout):
    def __init__(self, target: InputStream, dim_reservoir: int, p: float = 1.0, p_z: float = 1.0, g: float = 1.0,
                 alpha: float = 1.0, seed: Optional[int] = None, rng: Optional[np.random.Generator] = None):
        """
        Readout trained online with recursive least squares (FORCE learning, Sussillo & Abbott 2009).

        Args:
            target (InputStream): The target readout, its size sets M.
            dim_reservoir (int): The number of reservoir neurons N.
            alpha (float, optional): P starts as I/alpha; small alpha means fast learning. Defaults to 1.0.

        The feedback is always driven by the real readout. The remaining arguments are those of Readout.
        """
        super().__init__(target, dim_reservoir, p=p, p_z=p_z, g=g, seed=seed, rng=rng)
        self.alpha = check_finite(alpha, 'alpha', positive=True)
        self._P = np.eye(self.dim_reservoir) / self.alpha

    def get_p(self) -> np.ndarray:
        return self._P.copy()

    def compute_error(self, r: np.ndarray, t: float) -> np.ndarray:
        """
        (target - readout) * target, per readout unit.
        """
        readout = self.get_readout(r, t)
        target = self.get_target_readout(t)
        return (target - readout) * target

    def get_error_array(self, reservoir) -> np.ndarray:
        return self.compute_error(reservoir.get_r(), reservoir.t)

    def learn(self, reservoir) -> np.ndarray:
        """
        One RLS update of P and W_out from the current state of the reservoir. The caller decides how often
        this is done (typically every few integration steps).

        :return: The error readout - target before the update
        """
        r = reservoir.get_r()
        target = self.get_target_readout(reservoir.t)
        error = self.get_readout(r, reservoir.t) - target

        Pr = self._P @ r
        rP = r @ self._P
        c = 1.0 / (1.0 + float(r @ Pr))
        self._P -= c * np.outer(Pr, rP)

        self._W_out -= np.outer(error, r @ self._P)
        return error
