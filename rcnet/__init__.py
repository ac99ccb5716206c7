"""Rate-model reservoir with readout feedback, trained by batch regression or online RLS (FORCE)."""

from .errors import ReservoirError, InvalidParameterError, DimensionMismatchError, ReplayDesyncError
from .ode import DynamicalEquation, Integrator, EulerIntegrator, RKIntegrator, make_integrator
from .streams import InputStream, FeedbackSource, SineWave, TriangleWave, SquareWave, SawTooth, DoubleSineWave
from .timeseries import TimeSeries, TimeSeriesStream
from .reservoir import Reservoir, NetworkEquation, generate_connectivity
from .readout import Readout, ReadoutClampedFB, ReadoutLearningRLS
from .learning import LearningModuleRegression

__all__ = [
    "ReservoirError",
    "InvalidParameterError",
    "DimensionMismatchError",
    "ReplayDesyncError",
    "DynamicalEquation",
    "Integrator",
    "EulerIntegrator",
    "RKIntegrator",
    "make_integrator",
    "InputStream",
    "FeedbackSource",
    "SineWave",
    "TriangleWave",
    "SquareWave",
    "SawTooth",
    "DoubleSineWave",
    "TimeSeries",
    "TimeSeriesStream",
    "Reservoir",
    "NetworkEquation",
    "generate_connectivity",
    "Readout",
    "ReadoutClampedFB",
    "ReadoutLearningRLS",
    "LearningModuleRegression",
]

__version__ = "0.1.0"
