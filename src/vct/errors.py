"""Exceptions raised by the solver when strict checking is on.

In the default (permissive) mode most of these conditions are only logged
and the computation carries on with whatever numbers fall out.
"""


class VCTError(ValueError):
    pass


class InvalidSeriesError(VCTError):
    """Input sequences have inconsistent or unsupported lengths."""


class DegenerateRegressionError(VCTError):
    """Regression window with (near) zero variance in elapsed time."""


class DisturbanceIndexError(VCTError):
    """Disturbance count or year index out of range for the series."""
