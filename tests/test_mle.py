import numpy as np
import pytest
from numpy.testing import assert_allclose

from mle_se.exceptions import OptimizationError
from mle_se.mle import fit_mle, log_likelihood_surface, maximize, profile_likelihood
from mle_se.models import evaluate, normal_contributions, normal_mle, normal_start


def regression_contributions(params, data):
    """Normal linear model y = b0 + b1 z + e, e ~ N(0, s2); data columns (y, z)."""
    y, z = data[:, 0], data[:, 1]
    b0, b1, s2 = params[0], params[1], params[2]
    return normal_contributions([0.0, s2], y - b0 - b1 * z)


@pytest.fixture
def x():
    return np.random.default_rng(7).normal(-1.5, 2.0, 500)


def test_large_sample_recovers_true_parameters():
    x = np.random.default_rng(12345).normal(0.05, 0.9, 100_000)
    fit = fit_mle(normal_contributions, x, [0.0, 1.0])
    mu_hat, sigma2_hat = fit["params"]
    assert abs(mu_hat - 0.05) < 0.01
    assert abs(sigma2_hat - 0.81) < 0.02
    assert fit["n_obs"] == 100_000


def test_optimizer_matches_closed_form(x):
    fit = fit_mle(normal_contributions, x, normal_start(x))
    assert fit["converged"]
    assert_allclose(fit["params"], normal_mle(x), atol=1e-6)
    assert_allclose(fit["loglik"], evaluate(normal_contributions, normal_mle(x), x)[0],
                    rtol=1e-10)


def test_optimizer_from_distant_start(x):
    fit = fit_mle(normal_contributions, x, [5.0, 0.1])
    assert_allclose(fit["params"], normal_mle(x), atol=1e-6)


def test_start_is_not_mutated(x):
    start = np.array([0.0, 1.0])
    fit_mle(normal_contributions, x, start)
    assert np.array_equal(start, [0.0, 1.0])


def test_nonfinite_objective_is_avoided():
    # defined only for p > 0, maximum at p = 2
    loglik = lambda p: -(p[0] - 2.0) ** 2 if p[0] > 0 else np.nan
    res = maximize(loglik, [0.01])
    assert_allclose(res["params"], [2.0], atol=1e-6)


def test_budget_exhaustion_raises(x):
    with pytest.raises(OptimizationError) as excinfo:
        fit_mle(normal_contributions, x, [0.0, 1.0], options={"maxiter": 3})
    assert excinfo.value.result is not None
    assert not excinfo.value.result.success


def test_track_path(x):
    fit = fit_mle(normal_contributions, x, [0.0, 1.0], track_path=True)
    path = fit["path"]
    assert path.shape[1] == 2
    assert_allclose(path[0], [0.0, 1.0])
    assert len(path) > 1
    assert_allclose(path[-1], fit["params"], atol=1e-6)


def test_three_parameter_model_matches_least_squares():
    rng = np.random.default_rng(3)
    z = rng.uniform(0, 4, 2000)
    y = 1.0 + 0.5 * z + rng.normal(0, 0.7, 2000)
    data = np.column_stack([y, z])

    fit = fit_mle(regression_contributions, data, [0.0, 0.0, 1.0])

    Z = np.column_stack([np.ones_like(z), z])
    b = np.linalg.lstsq(Z, y, rcond=None)[0]
    e = y - Z @ b
    assert_allclose(fit["params"], [b[0], b[1], e @ e / len(y)], atol=1e-5)


def test_profile_likelihood_for_mean(x):
    mu_hat, sigma2_hat = normal_mle(x)
    T = len(x)
    grid = np.linspace(mu_hat - 0.5, mu_hat + 0.5, 501)

    prof = profile_likelihood(normal_contributions, x, [mu_hat, sigma2_hat], 0, grid)

    # sigma2 concentrated out: sigma2(mu) = mean((x - mu)^2)
    s2_mu = np.array([np.mean((x - m) ** 2) for m in grid])
    expected = -0.5 * T * (np.log(2 * np.pi) + np.log(s2_mu) + 1)
    assert_allclose(prof["profile_ll"], expected, rtol=1e-8)

    lo, hi = prof["ci"]
    half_width = 1.96 * np.sqrt(sigma2_hat / T)
    assert lo < mu_hat < hi
    assert abs((hi - lo) / 2 - half_width) < 0.005


def test_log_likelihood_surface(x):
    g0 = np.linspace(-2, -1, 5)
    g1 = np.linspace(3, 5, 4)
    P0, P1, LL = log_likelihood_surface(normal_contributions, x, g0, g1)
    assert LL.shape == (4, 5)
    assert LL[2, 3] == evaluate(normal_contributions, [P0[2, 3], P1[2, 3]], x)[0]
