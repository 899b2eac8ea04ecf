"""Project-wide exception and warning types."""

import numpy as np


class MLEError(Exception):
    """Base exception for all estimation errors."""


class InvalidDataError(MLEError, ValueError):
    """Raised when the observation sequence is empty or non-finite."""


class OptimizationError(MLEError):
    """Raised when the optimizer stops without meeting its tolerance.

    The scipy ``OptimizeResult`` is kept on ``.result`` so the caller can
    inspect the last iterate and the reason for stopping.
    """

    def __init__(self, message, result=None):
        super().__init__(message)
        self.result = result


class SingularMatrixError(MLEError, np.linalg.LinAlgError):
    """Raised when Ia, J or the sandwich composite cannot be inverted."""


class InvalidCovarianceError(MLEError, ValueError):
    """Raised when a covariance matrix has a negative or non-finite diagonal."""


class DerivativeWarning(RuntimeWarning):
    """Numerical derivatives look inaccurate (e.g. an asymmetric Hessian)."""
