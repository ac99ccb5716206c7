import logging
import weakref

import numpy as np

from typing import Optional

from .errors import DimensionMismatchError
from .ode import DynamicalEquation, make_integrator
from .streams import InputStream, FeedbackSource
from .utils import (make_rng, sparse_normal_matrix, check_positive_int, check_probability, check_finite,
                    check_shape)

logger = logging.getLogger(__name__)


def generate_connectivity(dim_reservoir: int, p: float, g: float, rng: np.random.Generator) -> np.ndarray:
    """
    Generates a sparse recurrent weight matrix. Each entry is nonzero with probability p and drawn from a
    normal distribution scaled by g/sqrt(N*p) (Sussillo & Abbott 2009), so that sum(W**2) / (N*N*p) ~ g**2 / (N*p).

    :param dim_reservoir: The number of nodes N
    :param p: Probability for a connection
    :param g: Gain of the recurrent connections (chaos factor)
    :param rng: Random generator
    :return: Weight matrix of shape (N, N)
    """
    scale = g / np.sqrt(dim_reservoir * p) if p > 0 else 0.0
    return sparse_normal_matrix(rng, (dim_reservoir, dim_reservoir), p, scale)


class NetworkEquation(DynamicalEquation):
    """
    x'(x, t) = (-x + W tanh(x) + input(t) + feedback(tanh(x), t)) / tau

    Holds only the input/feedback switches and a weak reference to the reservoir it belongs to; W, tau and
    the streams are looked up on the reservoir at every evaluation.
    """

    def __init__(self, reservoir: 'Reservoir', input_on: bool = False, feedback_on: bool = False):
        self._reservoir = weakref.proxy(reservoir)
        self.input_on = input_on
        self.feedback_on = feedback_on

    @property
    def dim(self) -> int:
        return self._reservoir.size()

    def time_deriv(self, x: np.ndarray, t: float) -> np.ndarray:
        res = self._reservoir

        r = np.tanh(x)                              # firing rates of the candidate state
        deriv = res._W @ r                          # recurrent input
        if self.input_on:
            deriv += res.input.get_input(t)
        if self.feedback_on:
            deriv += res.feedback.get_feedback(r, t)
        deriv -= x                                  # leak
        deriv /= res.tau
        return deriv


class Reservoir:
    def __init__(self,
                 dim_reservoir: int = 1000,
                 p: float = 0.1,
                 g: float = 1.5,
                 tau: float = 0.01,
                 dt: float = 0.001,
                 integrator: str = 'rk4',
                 seed: Optional[int] = None,
                 rng: Optional[np.random.Generator] = None):
        """
        Sparsely connected network of rate-model neurons with leaky dynamics, integrated with a fixed step.

        Args:
            dim_reservoir (int, optional): The number of neurons N. Defaults to 1000.
            p (float, optional): The probability of a pairwise connection. Defaults to 0.1.
            g (float, optional): Gain of the recurrent weights; g > 1 gives chaotic activity. Defaults to 1.5.
            tau (float, optional): The time constant of the neurons. Defaults to 0.01.
            dt (float, optional): The integration time step. Defaults to 0.001.
            integrator (str, optional): 'rk4' or 'euler'. Defaults to 'rk4'.
            seed (int, optional): Seed for the random generator. Defaults to None.
            rng (np.random.Generator, optional): Shared generator; takes precedence over seed. Defaults to None.

        The recurrent weights are drawn first, then the small random initial state x0 = 0.1 * N(0, 1).
        Input and feedback are switched off until set_input / set_feedback are called.
        """

        # parameters
        self.dim_reservoir = check_positive_int(dim_reservoir, 'dim_reservoir')
        self.p = check_probability(p, 'p')
        self.g = check_finite(g, 'g')
        self.tau = check_finite(tau, 'tau', positive=True)
        self.dt = check_finite(dt, 'dt')
        self.t = 0.0

        self.integrator = make_integrator(integrator, self.dim_reservoir)
        rng = make_rng(seed, rng)

        # initialize weights and state
        self._W = generate_connectivity(self.dim_reservoir, self.p, self.g, rng)
        self._x = 0.1 * rng.standard_normal(self.dim_reservoir)
        self._r = None  # cached firing rates, None when stale

        self.input = None
        self.feedback = None
        self._equation = NetworkEquation(self)

        logger.debug('Reservoir with N=%d, p=%.3f, g=%.3f, tau=%g, dt=%g', self.dim_reservoir, self.p, self.g,
                     self.tau, self.dt)

    # copies and pickles get their own equation and no cached rates
    def __getstate__(self):
        state = self.__dict__.copy()
        equation = state.pop('_equation')
        state['_switches'] = (equation.input_on, equation.feedback_on)
        state['_r'] = None
        state['_x'] = self._x.copy()
        state['_W'] = self._W.copy()
        return state

    def __setstate__(self, state):
        input_on, feedback_on = state.pop('_switches')
        self.__dict__.update(state)
        self._equation = NetworkEquation(self, input_on, feedback_on)

    def size(self) -> int:
        return self.dim_reservoir

    def set_dt(self, dt: float) -> None:
        self.dt = check_finite(dt, 'dt')

    def get_w(self) -> np.ndarray:
        return self._W.copy()

    def set_w(self, W: np.ndarray) -> None:
        self._W = check_shape(W, self._W.shape, 'W').copy()

    def get_x(self) -> np.ndarray:
        return self._x.copy()

    def set_x(self, x: np.ndarray) -> None:
        self._x = check_shape(x, self._x.shape, 'x').copy()
        self._r = None

    def get_r(self) -> np.ndarray:
        """
        Returns a copy of the firing rates tanh(x). They are only recomputed after the state has changed.
        """
        if self._r is None:
            self._r = np.tanh(self._x)
        return self._r.copy()

    def get_r_array(self) -> np.ndarray:
        return self.get_r().ravel()

    def set_input(self, stream: Optional[InputStream]) -> None:
        """
        Sets the input stream. None switches the input off.
        """
        if stream is None:
            self._equation.input_on = False
            return
        if stream.size() != self.dim_reservoir:
            raise DimensionMismatchError(f'size of input stream must be {self.dim_reservoir}, got {stream.size()}')
        self.input = stream
        self._equation.input_on = True

    def set_feedback(self, source: Optional[FeedbackSource]) -> None:
        """
        Sets the feedback source, e.g. a Readout. None switches the feedback off.
        """
        if source is None:
            self._equation.feedback_on = False
            return
        if source.fb_size() != self.dim_reservoir:
            raise DimensionMismatchError(f'size of feedback must be {self.dim_reservoir}, got {source.fb_size()}')
        self.feedback = source
        self._equation.feedback_on = True

    def step(self, n_steps: int = 1) -> None:
        """
        Performs one or more integration steps.
        """
        for _ in range(n_steps):
            self.integrator.step(self._x, self.t, self._equation, self.dt)
            self._r = None
            self.t += self.dt

    def __repr__(self):
        return f'Reservoir(dim_reservoir={self.dim_reservoir}, p={self.p}, g={self.g}, tau={self.tau}, dt={self.dt}, t={self.t:.4f})'
