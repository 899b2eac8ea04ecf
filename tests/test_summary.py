import numpy as np
import pandas as pd
import pytest
from numpy.testing import assert_allclose

from mle_se.exceptions import InvalidDataError
from mle_se.models import normal_mle
from mle_se.summary import fit_normal, traditional_estimates


@pytest.fixture(scope="module")
def x():
    return np.random.default_rng(2024).normal(0.05, 0.9, 5000)


@pytest.fixture(scope="module")
def result(x):
    return fit_normal(x)


def test_table_layout(result):
    table = result["table"]
    assert isinstance(table, pd.DataFrame)
    assert list(table.columns) == ["traditional", "MLE (InfoMat)",
                                   "MLE (gradients)", "MLE (sandwich)"]
    assert list(table.index) == ["mu", "sigma2", "se(mu)", "se(sigma2)"]
    assert table.notna().all().all()


def test_point_estimates(result, x):
    table = result["table"]
    for col in ("MLE (InfoMat)", "MLE (gradients)", "MLE (sandwich)"):
        assert_allclose(table.loc[["mu", "sigma2"], col], normal_mle(x), atol=1e-6)
    assert table.loc["mu", "traditional"] == pytest.approx(x.mean())
    assert table.loc["sigma2", "traditional"] == pytest.approx(x.var(ddof=1))


def test_standard_errors_close_for_normal_data(result, x):
    table = result["table"]
    se = table.loc[["se(mu)", "se(sigma2)"]]
    for col in ("MLE (InfoMat)", "MLE (gradients)", "MLE (sandwich)"):
        assert_allclose(se[col], se["traditional"], rtol=0.1)
    s2 = normal_mle(x)[1]
    assert_allclose(se["MLE (InfoMat)"], np.sqrt([s2 / len(x), 2 * s2 ** 2 / len(x)]),
                    rtol=1e-5)


@pytest.mark.parametrize("method", ["complex", "analytic"])
def test_derivative_methods_agree(result, x, method):
    other = fit_normal(x, method=method)
    for key in ("infomat", "gradients", "sandwich"):
        assert_allclose(other["se"][key], result["se"][key], rtol=1e-5)


def test_traditional_estimates():
    trad = traditional_estimates([1.0, 2.0, 3.0, 4.0])
    assert_allclose(trad["params"], [2.5, 5 / 3])
    assert_allclose(trad["se"], [np.sqrt(5 / 3 / 4), 5 / 3 * np.sqrt(2 / 3)])


def test_single_observation_has_undefined_traditional_se():
    trad = traditional_estimates([1.5])
    assert trad["params"][0] == 1.5
    assert np.isnan(trad["se"]).all()


def test_bad_data_rejected():
    with pytest.raises(InvalidDataError):
        fit_normal([])
    with pytest.raises(InvalidDataError):
        fit_normal([0.1, np.nan, 0.3])


@pytest.mark.parametrize("method", ["central", "complex"])
@pytest.mark.parametrize("sd", [0.01, 0.001])
def test_small_variance_data(sd, method):
    x = np.random.default_rng(42).normal(0.0005, sd, 2000)
    out = fit_normal(x, method=method)
    p = normal_mle(x)
    T = len(x)
    assert_allclose(out["fit"]["params"], p, rtol=1e-4)
    assert_allclose(out["se"]["infomat"], np.sqrt([p[1] / T, 2 * p[1] ** 2 / T]),
                    rtol=1e-4)
    for key in ("gradients", "sandwich"):
        assert_allclose(out["se"][key], out["traditional"]["se"], rtol=0.1)
