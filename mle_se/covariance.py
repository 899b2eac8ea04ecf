"""
Section 4: Covariance of the MLE -- InfoMat, Gradients (BHHH), Sandwich

Three estimators of Var(theta_hat), all built from derivatives of the
log-likelihood at the fitted point:

    Ia = -d^2/dtheta^2 mean_t l_t(theta_hat)          (information matrix)
    J  = (1/T) sum_t s_t s_t',  s_t = dl_t/dtheta    (outer product of scores)

    V_InfoMat   = Ia^{-1} / T
    V_gradients = J^{-1} / T
    V_sandwich  = Ia^{-1} J Ia^{-1} / T

Under correct specification Ia and J estimate the same matrix and the
three agree as T grows; under misspecification only the sandwich is
consistent.

Every estimator shares the signature

    cov_xxx(contributions, params, data, method="central",
            scores=None, hessian=None, typical=None)

where ``scores(params, data) -> (T, k)`` and
``hessian(params, data) -> (k, k)`` (Hessian of the *mean*
log-likelihood) optionally replace the numerical derivatives.

Finite-difference steps are scaled by ``typical``, the magnitude over
which each parameter moves the likelihood.  When it is not given it is
taken from the data as 1 / sqrt(mean_t s_tj^2), the reciprocal root
Fisher information per observation (about sigma and sqrt(2) sigma^2 for
Normal data).  This keeps the steps inside the parameter space for
tiny variances and accurate for parameters that sit near zero.
"""

import warnings

import numpy as np

from . import derivatives
from .exceptions import DerivativeWarning, SingularMatrixError
from .models import mean_loglik
from .utils import as_observations, as_params, asymmetry, inv_checked, symmetrize

# Relative asymmetry of -Hessian above which a DerivativeWarning is issued.
ASYMMETRY_TOL = 1e-6


def information_matrix(contributions, params, data, method="central",
                       hessian=None, typical=None):
    """
    Negative Hessian of the mean log-likelihood, symmetrized.

    Parameters
    ----------
    contributions : callable
        contributions(params, data) -> ndarray, shape (T,).
    params : ndarray, shape (k,)
        Fitted parameters.
    data : array_like
        Observations.
    method : {"central", "complex"}
        Numerical differentiation method.
    hessian : callable or None
        Analytic Hessian of the mean log-likelihood.
    typical : array_like or None
        Step scale for the numerical Hessian; see `natural_scale`.

    Returns
    -------
    Ia : ndarray, shape (k, k)
        (A + A') / 2 with A = -Hessian; exactly symmetric.
    asym : float
        Relative asymmetry of A before symmetrization.
    """
    x = as_observations(data)
    params = as_params(params)
    if hessian is not None:
        A = -np.asarray(hessian(params, x), dtype=float)
    else:
        if typical is None:
            typical = natural_scale(contributions, params, x, method=method)
        A = -derivatives.hessian(mean_loglik(contributions, x), params,
                                 method=method, typical=typical)
    asym = asymmetry(A)
    if asym > ASYMMETRY_TOL:
        warnings.warn(
            f"numerical Hessian is asymmetric (relative asymmetry {asym:.2e}); "
            "derivatives may be inaccurate",
            DerivativeWarning,
            stacklevel=2,
        )
    return symmetrize(A), asym


def score_matrix(contributions, params, data, method="central", scores=None,
                 typical=None):
    """
    Per-observation scores s_t = d l_t / d theta at ``params``.

    Returns
    -------
    dL : ndarray, shape (T, k)
    """
    x = as_observations(data)
    params = as_params(params)
    if scores is not None:
        dL = np.asarray(scores(params, x), dtype=float)
    else:
        dL = derivatives.jacobian(lambda p: contributions(p, x), params,
                                  method=method, typical=typical)
    if dL.shape != (x.shape[0], params.size):
        raise ValueError(
            f"score matrix has shape {dL.shape}, expected "
            f"({x.shape[0]}, {params.size})"
        )
    return dL


def natural_scale(contributions, params, data, method="central", scores=None):
    """
    Typical magnitude of each parameter, 1 / sqrt(mean_t s_tj^2).

    The scores come from ``scores`` if given, else from a first pass of
    numerical derivatives with steps relative to |params|.  Columns whose
    scale is zero or not finite fall back to 1.

    Returns
    -------
    typical : ndarray, shape (k,)
    """
    dL = score_matrix(contributions, params, data, method=method, scores=scores)
    with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
        typical = 1.0 / np.sqrt(np.mean(dL ** 2, axis=0))
    return np.where(np.isfinite(typical) & (typical > 0), typical, 1.0)


def opg_matrix(dL):
    """J = dL' dL / T, the average outer product of the scores."""
    return dL.T @ dL / dL.shape[0]


def information_equality_gap(Ia, J):
    """
    Relative distance ||Ia - J||_F / ||Ia||_F.

    Tends to zero under correct specification (information matrix
    equality); a large value flags misspecification or inaccurate
    derivatives.
    """
    return np.linalg.norm(Ia - J) / np.linalg.norm(Ia)


def _sandwich(Ia, J, T):
    bread = inv_checked(Ia, "Ia")
    V = bread @ J @ bread / T
    if not np.all(np.isfinite(V)):
        raise SingularMatrixError("sandwich composite Ia^-1 J Ia^-1 is not finite")
    return symmetrize(V)


def cov_infomat(contributions, params, data, method="central", scores=None,
                hessian=None, typical=None):
    """
    Information-matrix (inverse Hessian) covariance: Ia^{-1} / T.

    ``scores`` is accepted for the common signature and ignored.

    Returns
    -------
    V : ndarray, shape (k, k)

    Raises
    ------
    SingularMatrixError
        If Ia cannot be inverted.
    """
    x = as_observations(data)
    Ia, _ = information_matrix(contributions, params, x, method=method,
                               hessian=hessian, typical=typical)
    return inv_checked(Ia, "Ia") / x.shape[0]


def cov_gradients(contributions, params, data, method="central", scores=None,
                  hessian=None, typical=None):
    """
    Outer-product-of-gradients (BHHH) covariance: J^{-1} / T.

    ``hessian`` is accepted for the common signature and ignored.

    Returns
    -------
    V : ndarray, shape (k, k)

    Raises
    ------
    SingularMatrixError
        If J cannot be inverted.
    """
    x = as_observations(data)
    if scores is None and typical is None:
        typical = natural_scale(contributions, params, x, method=method)
    J = opg_matrix(score_matrix(contributions, params, x, method=method,
                                scores=scores, typical=typical))
    return inv_checked(J, "J") / x.shape[0]


def cov_sandwich(contributions, params, data, method="central", scores=None,
                 hessian=None, typical=None):
    """
    Sandwich (robust) covariance: Ia^{-1} J Ia^{-1} / T.

    Returns
    -------
    V : ndarray, shape (k, k)

    Raises
    ------
    SingularMatrixError
        If Ia cannot be inverted or the composite is not finite.
    """
    x = as_observations(data)
    if (scores is None or hessian is None) and typical is None:
        typical = natural_scale(contributions, params, x, method=method,
                                scores=scores)
    Ia, _ = information_matrix(contributions, params, x, method=method,
                               hessian=hessian, typical=typical)
    J = opg_matrix(score_matrix(contributions, params, x, method=method,
                                scores=scores, typical=typical))
    return _sandwich(Ia, J, x.shape[0])


def mle_covariances(contributions, params, data, method="central",
                    scores=None, hessian=None, typical=None):
    """
    All three covariance estimators from a single pass of derivatives.

    Ia and the score matrix are computed once from the same data array
    and shared by the three estimators.

    Returns
    -------
    dict with keys:
        infomat   : Ia^{-1} / T
        gradients : J^{-1} / T
        sandwich  : Ia^{-1} J Ia^{-1} / T
        Ia        : symmetrized information matrix
        J         : outer product of scores
        scores    : (T, k) score matrix
        asymmetry : relative asymmetry of -Hessian before symmetrization
        info_gap  : information_equality_gap(Ia, J)
    """
    x = as_observations(data)
    T = x.shape[0]
    if (scores is None or hessian is None) and typical is None:
        typical = natural_scale(contributions, params, x, method=method,
                                scores=scores)
    Ia, asym = information_matrix(contributions, params, x, method=method,
                                  hessian=hessian, typical=typical)
    dL = score_matrix(contributions, params, x, method=method, scores=scores,
                      typical=typical)
    J = opg_matrix(dL)

    return dict(
        infomat=inv_checked(Ia, "Ia") / T,
        gradients=inv_checked(J, "J") / T,
        sandwich=_sandwich(Ia, J, T),
        Ia=Ia,
        J=J,
        scores=dL,
        asymmetry=asym,
        info_gap=information_equality_gap(Ia, J),
    )
