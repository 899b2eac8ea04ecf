"""
Section 5: Normal Fit -- point estimates and standard-error table

End-to-end pipeline for the Normal model: fit by MLE, compute the three
covariance estimators and lay the results out next to the textbook
("traditional") estimates.
"""

import numpy as np
import pandas as pd

from .covariance import mle_covariances
from .mle import DEFAULT_METHOD, fit_mle
from .models import (NORMAL_PARAM_NAMES, normal_contributions, normal_hessian,
                     normal_scores, normal_start)
from .utils import as_observations, stderrs

ESTIMATOR_COLUMNS = {
    "infomat": "MLE (InfoMat)",
    "gradients": "MLE (gradients)",
    "sandwich": "MLE (sandwich)",
}


def traditional_estimates(data):
    """
    Textbook estimates of mean and variance with their standard errors.

    se(mean) = s / sqrt(T),  se(s^2) = s^2 * sqrt(2 / (T - 1))

    Returns
    -------
    dict with keys:
        params : [mean, s^2] (unbiased variance)
        se     : [se(mean), se(s^2)]; NaN when T = 1
    """
    x = as_observations(data)
    T = x.shape[0]
    with np.errstate(divide="ignore", invalid="ignore"):
        s2 = x.var(ddof=1) if T > 1 else np.nan
        se = np.array([np.sqrt(s2 / T), s2 * np.sqrt(2 / (T - 1)) if T > 1 else np.nan])
    return dict(params=np.array([x.mean(), s2]), se=se)


def estimate_table(fit, se, traditional, names=NORMAL_PARAM_NAMES):
    """
    Assemble the comparison table.

    Parameters
    ----------
    fit : dict
        Output of ``fit_mle``.
    se : dict
        Standard errors keyed by "infomat", "gradients", "sandwich".
    traditional : dict
        Output of ``traditional_estimates``.
    names : sequence of str
        Parameter names.

    Returns
    -------
    pandas.DataFrame
        Rows: each parameter, then "se(<name>)" for each parameter.
        Columns: "traditional", "MLE (InfoMat)", "MLE (gradients)",
        "MLE (sandwich)".
    """
    index = list(names) + [f"se({n})" for n in names]
    columns = {"traditional": np.concatenate([traditional["params"], traditional["se"]])}
    for key, label in ESTIMATOR_COLUMNS.items():
        columns[label] = np.concatenate([fit["params"], se[key]])
    return pd.DataFrame(columns, index=index)


def fit_normal(data, start=None, method="central", optimizer=DEFAULT_METHOD,
               options=None):
    """
    Fit a Normal(mu, sigma2) by MLE and compute all standard errors.

    Parameters
    ----------
    data : array_like, shape (T,)
        Observations.
    start : ndarray or None
        Starting values; defaults to ``normal_start(data)``.
    method : {"central", "complex", "analytic"}
        How derivatives are obtained for the covariance estimators.
    optimizer : str
        scipy.optimize.minimize method.
    options : dict or None
        Optimizer options (see ``mle.DEFAULT_OPTIONS``).

    Returns
    -------
    dict with keys:
        fit         : output of ``fit_mle``
        covariances : output of ``mle_covariances``
        se          : dict of standard-error vectors per estimator
        traditional : output of ``traditional_estimates``
        table       : pandas.DataFrame (see ``estimate_table``)
    """
    x = as_observations(data)
    if start is None:
        start = normal_start(x)

    fit = fit_mle(normal_contributions, x, start, method=optimizer,
                  options=options)

    if method == "analytic":
        covs = mle_covariances(normal_contributions, fit["params"], x,
                               scores=normal_scores, hessian=normal_hessian)
    else:
        covs = mle_covariances(normal_contributions, fit["params"], x,
                               method=method)

    se = {key: stderrs(covs[key]) for key in ESTIMATOR_COLUMNS}
    traditional = traditional_estimates(x)

    return dict(
        fit=fit,
        covariances=covs,
        se=se,
        traditional=traditional,
        table=estimate_table(fit, se, traditional),
    )
