"""
Section 3: Maximum Likelihood Estimation -- from scratch

Finds the maximum-likelihood point with scipy.optimize.minimize on the
negated log-likelihood, and provides profile likelihoods and
log-likelihood surfaces for inspecting the fit.

Non-convergence is never returned silently: ``maximize`` raises
``OptimizationError`` whenever scipy reports failure.
"""

import numpy as np
from scipy import stats
from scipy.optimize import minimize

from .exceptions import OptimizationError
from .models import total_loglik
from .utils import as_observations, as_params

DEFAULT_METHOD = "Nelder-Mead"

# Tolerances are absolute and assume an objective of order one, which is
# what the ``scale`` argument of ``maximize`` arranges.
DEFAULT_OPTIONS = {
    "Nelder-Mead": dict(xatol=1e-9, fatol=1e-12, maxiter=20000, maxfev=40000),
    "Powell": dict(xtol=1e-10, ftol=1e-13, maxiter=20000),
    "BFGS": dict(gtol=1e-8, maxiter=5000),
    "L-BFGS-B": dict(ftol=1e-14, gtol=1e-10, maxiter=5000),
}


def _neg_objective(loglik, scale):
    def _f(params):
        val = loglik(params)
        if not np.isfinite(val):
            return np.inf
        return -val / scale
    return _f


def maximize(loglik, start, method=DEFAULT_METHOD, options=None, scale=None,
             track_path=False):
    """
    Maximize a log-likelihood with scipy.optimize.minimize.

    Parameters
    ----------
    loglik : callable
        loglik(params) -> float.  Non-finite values (parameter outside
        the model's domain) are replaced by +inf in the minimized
        objective.
    start : ndarray, shape (k,)
        Starting parameter values (not checked for feasibility).
    method : str
        Any scipy.optimize.minimize method (default Nelder-Mead).
    options : dict or None
        Overrides merged into ``DEFAULT_OPTIONS[method]``.
    scale : float or None
        The objective minimized is -loglik / scale.  Defaults to
        max(|loglik(start)|, 1) so the tolerances are relative.
    track_path : bool
        If True, record the optimization path.

    Returns
    -------
    dict with keys:
        params    : maximizer (new array)
        loglik    : log-likelihood at the maximizer
        converged : bool (always True; failures raise)
        n_iter    : iterations used
        n_fev     : function evaluations used
        message   : scipy termination message
        path      : array of iterates (if track_path)

    Raises
    ------
    OptimizationError
        If the optimizer exhausts its budget or otherwise fails.
    """
    start = as_params(start)
    if scale is None:
        l0 = loglik(start)
        scale = max(abs(l0), 1.0) if np.isfinite(l0) else 1.0

    opts = dict(DEFAULT_OPTIONS.get(method, {}))
    if options:
        opts.update(options)

    path = [start.copy()]
    callback = (lambda xk: path.append(np.array(xk, dtype=float))) if track_path else None

    res = minimize(_neg_objective(loglik, scale), start, method=method,
                   options=opts, callback=callback)
    if not res.success:
        raise OptimizationError(
            f"{method} did not converge after {res.get('nit')} iterations "
            f"({res.get('nfev')} evaluations): {res.message}",
            result=res,
        )

    params = np.array(res.x, dtype=float)
    result = dict(
        params=params,
        loglik=loglik(params),
        converged=bool(res.success),
        n_iter=res.get("nit"),
        n_fev=res.get("nfev"),
        message=res.message,
    )
    if track_path:
        result["path"] = np.array(path)

    return result


def fit_mle(contributions, data, start, method=DEFAULT_METHOD, options=None,
            track_path=False):
    """
    MLE for a likelihood model given as per-observation contributions.

    The objective is the negative *mean* log-likelihood (scale = T),
    which has the same maximizer as the total and keeps the optimizer
    tolerances independent of the sample size.

    Parameters
    ----------
    contributions : callable
        contributions(params, data) -> ndarray, shape (T,).
    data : array_like
        Observations.
    start : ndarray, shape (k,)
    method, options, track_path : see ``maximize``.

    Returns
    -------
    dict -- as ``maximize``, plus ``n_obs`` (T).
    """
    x = as_observations(data)
    fit = maximize(total_loglik(contributions, x), start, method=method,
                   options=options, scale=x.shape[0], track_path=track_path)
    fit["n_obs"] = x.shape[0]
    return fit


def profile_likelihood(contributions, data, params_hat, profile_idx, grid,
                       level=0.95, method=DEFAULT_METHOD):
    """
    Compute the profile likelihood for a single parameter.

    For each value of params[profile_idx] on the grid, maximizes
    the log-likelihood over all other parameters.

    Parameters
    ----------
    contributions : callable
    data : array_like
    params_hat : ndarray
        MLE estimates (used as starting values).
    profile_idx : int
        Index of the parameter to profile.
    grid : ndarray
        Grid of values for the profiled parameter.
    level : float
        Confidence level of the likelihood-ratio interval.

    Returns
    -------
    dict with keys:
        grid        : parameter values
        profile_ll  : profile log-likelihood at each grid point
        ci          : (lo, hi) likelihood-ratio interval on the grid
    """
    x = as_observations(data)
    params_hat = as_params(params_hat)
    grid = np.asarray(grid, dtype=float)
    k = params_hat.size
    other_idx = [j for j in range(k) if j != profile_idx]
    loglik = total_loglik(contributions, x)

    profile_ll = np.empty(len(grid))
    for i, val in enumerate(grid):
        def _partial_ll(p_other, _val=val):
            p_full = np.empty(k)
            p_full[profile_idx] = _val
            p_full[other_idx] = p_other
            return loglik(p_full)

        if other_idx:
            res = maximize(_partial_ll, params_hat[other_idx], method=method,
                           scale=x.shape[0])
            profile_ll[i] = res["loglik"]
        else:
            profile_ll[i] = _partial_ll(np.empty(0))

    # LR interval: log-likelihood within chi2_1(level)/2 of the maximum
    drop = stats.chi2.ppf(level, 1) / 2
    ll_max = np.nanmax(profile_ll)
    in_ci = profile_ll >= (ll_max - drop)
    if in_ci.any():
        ci = (grid[in_ci].min(), grid[in_ci].max())
    else:
        ci = (np.nan, np.nan)

    return dict(grid=grid, profile_ll=profile_ll, ci=ci)


def log_likelihood_surface(contributions, data, grid_0, grid_1):
    """
    Compute the log-likelihood on a 2-d grid (for contour plots).

    Parameters
    ----------
    contributions : callable
        Two-parameter likelihood model.
    data : array_like
    grid_0 : ndarray
        Grid for first parameter.
    grid_1 : ndarray
        Grid for second parameter.

    Returns
    -------
    P0, P1 : meshgrid arrays
    LL : ndarray
        Log-likelihood values on the grid (NaN/-inf outside the domain).
    """
    x = as_observations(data)
    loglik = total_loglik(contributions, x)
    P0, P1 = np.meshgrid(grid_0, grid_1)
    LL = np.array([
        [loglik(np.array([P0[i, j], P1[i, j]]))
         for j in range(len(grid_0))]
        for i in range(len(grid_1))
    ])
    return P0, P1, LL
