"""
Fixed-step solvers for vector ODEs.

A system is described by a DynamicalEquation, which returns the time derivative of a state vector.
An Integrator advances such a state in place by one step of length dt.
"""
from abc import ABC, abstractmethod

import numpy as np

from .errors import DimensionMismatchError, InvalidParameterError
from .utils import check_positive_int


class DynamicalEquation(ABC):

    @property
    @abstractmethod
    def dim(self) -> int:
        """Dimension of the state and of the returned derivative."""

    @abstractmethod
    def time_deriv(self, x: np.ndarray, t: float) -> np.ndarray:
        """
        Returns the time derivative at state x and time t.

        :param x: The current state. Must not be modified.
        :param t: The current simulation time
        :return: Derivative, same shape as x
        """


class Integrator(ABC):
    """
    Performs single integration steps for systems of a fixed dimension.

    The dimension is set on construction; stepping a state or equation of any other dimension raises.
    """

    def __init__(self, dim: int):
        self.dim = check_positive_int(dim, 'dim')

    def _check(self, x: np.ndarray, equation: DynamicalEquation):
        if equation.dim != self.dim:
            raise DimensionMismatchError('Dimension of dynamical equation does not match integrator')
        if x.shape != (self.dim,):
            raise DimensionMismatchError('Dimension of system state does not match integrator')

    @abstractmethod
    def step(self, x: np.ndarray, t: float, equation: DynamicalEquation, dt: float) -> None:
        """Advances x (in place) from t to t + dt."""


class EulerIntegrator(Integrator):

    def step(self, x: np.ndarray, t: float, equation: DynamicalEquation, dt: float) -> None:
        self._check(x, equation)
        x += dt * equation.time_deriv(x, t)


class RKIntegrator(Integrator):
    """Classic 4th-order Runge-Kutta. Every stage evaluates the equation at its own (state, time)."""

    def step(self, x: np.ndarray, t: float, equation: DynamicalEquation, dt: float) -> None:
        self._check(x, equation)

        k1 = equation.time_deriv(x, t)
        k2 = equation.time_deriv(x + 0.5 * dt * k1, t + 0.5 * dt)
        k3 = equation.time_deriv(x + 0.5 * dt * k2, t + 0.5 * dt)
        k4 = equation.time_deriv(x + dt * k3, t + dt)

        x += dt / 6.0 * (k1 + 2.0 * k2 + 2.0 * k3 + k4)


INTEGRATORS = {
    'euler': EulerIntegrator,
    'rk4': RKIntegrator,
}


def make_integrator(name: str, dim: int) -> Integrator:
    """
    :param name: 'euler' or 'rk4'
    :param dim: Dimension of the system
    :return: Integrator bound to dim
    """
    try:
        cls = INTEGRATORS[name.lower()]
    except (KeyError, AttributeError):
        raise InvalidParameterError(f'Unknown integrator {name!r}, choose from {sorted(INTEGRATORS)}') from None
    return cls(dim)
