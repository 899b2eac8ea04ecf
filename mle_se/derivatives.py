"""
Section 1: Numerical Derivatives

First and second derivatives of likelihood functions at a point,
via centered finite differences or the complex-step method.

Step sizes
----------
Central differences balance truncation error O(h^2) against rounding
error O(eps / h) for first derivatives and O(eps / h^2) for second
derivatives, giving

    h_j = eps^(1/3) * s_j      (first derivatives)
    h_j = eps^(1/4) * s_j      (second derivatives)

where s_j is the typical scale of parameter j: the ``typical`` argument
if given, else |x_j| (1 where x_j = 0).  With s_j of the order of the
distance over which f changes appreciably in x_j, this is roughly 1e-10
and 1e-7 relative accuracy whatever the units of the parameters.  A
step that is absolute rather than relative breaks down for parameters
far below one (a variance of 1e-4 would be stepped past zero).

The complex-step derivative Im f(x + i h e_j) / h has no subtraction at
all, so h can be taken as small as 1e-20 and the first derivative is
exact to machine precision.  It requires f to be written with
complex-safe numpy operations (no abs, no comparisons, no casts to
float).
"""

import numpy as np

from .utils import as_params

EPS = np.finfo(float).eps
COMPLEX_STEP = 1e-20
METHODS = ("central", "complex")


def _steps(x, power, typical=None):
    if typical is None:
        scale = np.where(x != 0, np.abs(x), 1.0)
    else:
        scale = np.abs(as_params(typical))
        if scale.shape != x.shape:
            raise ValueError(f"typical has shape {scale.shape}, expected {x.shape}")
    h = EPS ** power * scale
    # make x + h exactly representable so the divisor is the true step
    return (x + h) - x


def _check_method(method):
    if method not in METHODS:
        raise ValueError(f"unknown differentiation method {method!r}; "
                         f"expected one of {METHODS}")


def jacobian(f, x, method="central", typical=None):
    """
    Jacobian of a vector-valued function.

    Parameters
    ----------
    f : callable
        f(x) -> array of length m (or a scalar, treated as m = 1).
    x : ndarray, shape (k,)
        Point of evaluation.
    method : {"central", "complex"}
    typical : array_like, shape (k,), optional
        Typical magnitude of each parameter, used to scale the
        central-difference steps.  Defaults to |x|.

    Returns
    -------
    D : ndarray, shape (m, k)
        D[t, j] = d f_t / d x_j.
    """
    _check_method(method)
    x = as_params(x)
    k = x.size
    cols = []
    if method == "central":
        h = _steps(x, 1 / 3, typical)
        for j in range(k):
            e = np.zeros(k)
            e[j] = h[j]
            f_plus = np.atleast_1d(f(x + e))
            f_minus = np.atleast_1d(f(x - e))
            cols.append((f_plus - f_minus) / (2 * h[j]))
    else:
        for j in range(k):
            xc = x.astype(complex)
            xc[j] += 1j * COMPLEX_STEP
            cols.append(np.imag(np.atleast_1d(f(xc))) / COMPLEX_STEP)
    return np.column_stack(cols)


def gradient(f, x, method="central", typical=None):
    """Gradient of a scalar function, shape (k,)."""
    return jacobian(f, x, method=method, typical=typical)[0]


def hessian(f, x, method="central", typical=None):
    """
    Hessian of a scalar function.

    With method="central" every entry is a second difference of f.
    With method="complex" the Hessian is the central-difference Jacobian
    of the complex-step gradient.

    Neither construction is exactly symmetric in floating point; callers
    that need symmetry must symmetrize the result.

    Parameters
    ----------
    f : callable
        f(x) -> float.
    x : ndarray, shape (k,)
    method : {"central", "complex"}
    typical : array_like, shape (k,), optional
        Step scale, as for `jacobian`.

    Returns
    -------
    H : ndarray, shape (k, k)
    """
    _check_method(method)
    x = as_params(x)
    if method == "complex":
        return jacobian(lambda p: gradient(f, p, method="complex"), x,
                        method="central", typical=typical)

    k = x.size
    h = _steps(x, 1 / 4, typical)
    f0 = f(x)
    H = np.empty((k, k))
    for i in range(k):
        ei = np.zeros(k)
        ei[i] = h[i]
        for j in range(k):
            if i == j:
                H[i, i] = (f(x + ei) - 2 * f0 + f(x - ei)) / h[i] ** 2
                continue
            ej = np.zeros(k)
            ej[j] = h[j]
            H[i, j] = (f(x + ei + ej) - f(x + ei - ej)
                       - f(x - ei + ej) + f(x - ei - ej)) / (4 * h[i] * h[j])
    return H
