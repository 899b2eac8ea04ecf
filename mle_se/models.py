"""
Section 2: Likelihood Models

A likelihood model is a callable

    contributions(params, data) -> ndarray, shape (T,)

returning the log-likelihood of each observation.  The total
log-likelihood is the sum of the contributions.  Any family with any
number of parameters fits this convention; the Normal model below is the
worked instance, together with its analytic derivatives and closed-form
MLE.

Evaluating a model outside its parameter domain (e.g. sigma2 <= 0 for
the Normal) is not an error: the log-likelihood is NaN or -inf and the
optimizer treats the point as unattractive.
"""

import numpy as np
from scipy import stats

from .utils import as_observations, as_params

LOG_2PI = np.log(2 * np.pi)
NORMAL_PARAM_NAMES = ("mu", "sigma2")


def evaluate(contributions, params, data):
    """
    Evaluate a likelihood model.

    Parameters
    ----------
    contributions : callable
        contributions(params, data) -> per-observation log-likelihoods.
    params : ndarray, shape (k,)
    data : ndarray
        Observations, first axis of length T.

    Returns
    -------
    total : float
        Total log-likelihood (NaN or -inf outside the parameter domain).
    c : ndarray, shape (T,)
        Per-observation contributions.
    """
    with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
        c = np.asarray(contributions(as_params(params), data), dtype=float)
        total = np.sum(c)
    return total, c


def total_loglik(contributions, data):
    """Closure params -> total log-likelihood over ``data``."""
    def _loglik(params):
        return evaluate(contributions, params, data)[0]
    return _loglik


def mean_loglik(contributions, data):
    """
    Closure params -> mean log-likelihood over ``data``.

    Unlike ``total_loglik`` the closure passes ``params`` through
    untouched, so complex parameter vectors (complex-step
    differentiation) reach the model as they are.
    """
    def _mean(params):
        with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
            return np.mean(contributions(params, data))
    return _mean


def normal_contributions(params, x):
    """
    Per-observation Normal log-likelihood.

    l_t = -0.5 ln(2 pi) - 0.5 ln(sigma2) - 0.5 (x_t - mu)^2 / sigma2

    Parameters
    ----------
    params : array_like, (mu, sigma2)
        May be complex (only numpy ufuncs are used).
    x : ndarray, shape (T,)

    Returns
    -------
    ndarray, shape (T,)
    """
    mu, sigma2 = params[0], params[1]
    with np.errstate(divide="ignore", invalid="ignore"):
        return -0.5 * LOG_2PI - 0.5 * np.log(sigma2) - 0.5 * (x - mu) ** 2 / sigma2


def normal_scores(params, x):
    """
    Analytic per-observation scores of the Normal model.

    d l_t / d mu     = (x_t - mu) / sigma2
    d l_t / d sigma2 = -1 / (2 sigma2) + (x_t - mu)^2 / (2 sigma2^2)

    Returns
    -------
    ndarray, shape (T, 2)
    """
    mu, sigma2 = params[0], params[1]
    e = x - mu
    return np.column_stack([
        e / sigma2,
        -0.5 / sigma2 + 0.5 * e ** 2 / sigma2 ** 2,
    ])


def normal_hessian(params, x):
    """
    Analytic Hessian of the mean Normal log-likelihood.

    Returns
    -------
    ndarray, shape (2, 2)
    """
    mu, sigma2 = params[0], params[1]
    e = x - mu
    h_mm = -1.0 / sigma2
    h_ms = -np.mean(e) / sigma2 ** 2
    h_ss = 0.5 / sigma2 ** 2 - np.mean(e ** 2) / sigma2 ** 3
    return np.array([[h_mm, h_ms], [h_ms, h_ss]])


def normal_mle(data):
    """
    Closed-form Normal MLE: sample mean and uncorrected (1/T) variance.

    Returns
    -------
    ndarray, shape (2,)
    """
    x = as_observations(data)
    return np.array([x.mean(), x.var()])


def normal_start(data):
    """
    Starting values for the Normal optimizer from robust statistics.

    Median for mu and the squared normalized IQR for sigma2, so the
    optimizer does not start at the answer.  Falls back to sigma2 = 1
    when the IQR is zero.
    """
    x = as_observations(data)
    sigma = stats.iqr(x) / (stats.norm.ppf(0.75) - stats.norm.ppf(0.25))
    sigma2 = sigma ** 2 if sigma > 0 else 1.0
    return np.array([np.median(x), sigma2])
