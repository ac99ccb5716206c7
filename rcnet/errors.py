"""
Exception classes raised by the reservoir simulation.

ReservoirError (base)
├── InvalidParameterError - bad construction parameter (size, probability, scale, time constant)
├── DimensionMismatchError - matrix / vector shapes disagree
└── ReplayDesyncError - a replayed time series was queried off its clock or after its last frame
"""


class ReservoirError(Exception):
    """Base class for all errors raised by rcnet."""


class InvalidParameterError(ReservoirError, ValueError):
    """A constructor parameter is out of its valid range.

    Raised before any state is allocated, so the object is never partially usable.
    """


class DimensionMismatchError(ReservoirError, ValueError):
    """The shape of a matrix or vector does not match the one it replaces or feeds."""


class ReplayDesyncError(ReservoirError, RuntimeError):
    """A TimeSeriesStream was queried at a time that is not its current frame, or after exhaustion."""
