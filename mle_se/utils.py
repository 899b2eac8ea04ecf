"""
Shared utility functions used across the estimation modules.
"""

import numpy as np

from .exceptions import InvalidDataError, SingularMatrixError, InvalidCovarianceError

# Matrices with a larger condition number are treated as singular.
MAX_CONDITION = 1.0 / np.finfo(float).eps


def as_observations(data):
    """
    Convert raw observations to a read-only float array.

    Parameters
    ----------
    data : array_like
        Observations; the first axis indexes observations (T >= 1).

    Returns
    -------
    x : ndarray
        A private, non-writeable float copy of ``data``.
    """
    x = np.array(data, dtype=float)
    if x.ndim == 0:
        x = x.reshape(1)
    if x.shape[0] == 0:
        raise InvalidDataError("need at least one observation")
    if not np.all(np.isfinite(x)):
        raise InvalidDataError("observations contain NaN or infinite values")
    x.flags.writeable = False
    return x


def as_params(params):
    """Return a fresh 1-d float copy of a parameter vector."""
    return np.array(params, dtype=float).ravel()


def symmetrize(A):
    """(A + A') / 2 -- exactly symmetric in floating point."""
    return (A + A.T) / 2


def asymmetry(A):
    """
    Relative asymmetry max|A - A'| / max|A| of a square matrix.

    Zero for an exactly symmetric matrix; NaN if A has no finite scale.
    """
    scale = np.max(np.abs(A))
    if not np.isfinite(scale) or scale == 0:
        return np.nan
    return np.max(np.abs(A - A.T)) / scale


def inv_checked(A, name="matrix"):
    """
    Invert a square matrix, refusing singular or ill-conditioned input.

    Parameters
    ----------
    A : ndarray, shape (k, k)
    name : str
        Label used in the error message (e.g. "Ia", "J").

    Returns
    -------
    A_inv : ndarray, shape (k, k)

    Raises
    ------
    SingularMatrixError
        If A has non-finite entries, is exactly singular, or has a
        condition number above ``MAX_CONDITION``.
    """
    if not np.all(np.isfinite(A)):
        raise SingularMatrixError(f"{name} has non-finite entries")
    cond = np.linalg.cond(A)
    if not np.isfinite(cond) or cond > MAX_CONDITION:
        raise SingularMatrixError(
            f"{name} is singular or ill-conditioned (cond={cond:.3g})"
        )
    try:
        return np.linalg.inv(A)
    except np.linalg.LinAlgError as exc:
        raise SingularMatrixError(f"{name} is singular: {exc}") from exc


def stderrs(cov):
    """
    Standard errors: element-wise square root of the covariance diagonal.

    Parameters
    ----------
    cov : ndarray, shape (k, k)
        Covariance of the estimator (already scaled by 1/T).

    Returns
    -------
    se : ndarray, shape (k,)

    Raises
    ------
    InvalidCovarianceError
        If any diagonal entry is negative or non-finite, which means the
        covariance matrix is not positive semi-definite.
    """
    d = np.diag(cov)
    bad = ~np.isfinite(d) | (d < 0)
    if bad.any():
        raise InvalidCovarianceError(
            f"covariance diagonal has invalid entries at {np.flatnonzero(bad).tolist()}: "
            f"{d[bad]}"
        )
    return np.sqrt(d)
