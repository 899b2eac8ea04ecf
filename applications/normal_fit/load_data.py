"""
Data loaders for the Normal MLE analysis.
=========================================

Two sources, both returning a flat float array of observations:

1. **CSV file** -- one numeric column of a tabular file, read with
   pandas.  Non-numeric cells are coerced to NaN and dropped.

2. **Simulation** -- i.i.d. draws from N(mu, sigma2), for checking the
   estimators against known parameters.
"""

import numpy as np
import pandas as pd


def load_csv_column(path, column=None):
    """
    Read one numeric column of a CSV file.

    Parameters
    ----------
    path : str or Path
    column : str or None
        Column name; defaults to the first column with any numeric value.

    Returns
    -------
    x : ndarray, shape (T,)
    """
    df = pd.read_csv(path)
    if column is None:
        numeric = [c for c in df.columns
                   if pd.to_numeric(df[c], errors="coerce").notna().any()]
        if not numeric:
            raise RuntimeError(f"No numeric column found in {path}")
        column = numeric[0]
    elif column not in df.columns:
        raise RuntimeError(
            f"Column {column!r} not in {path}; available: {list(df.columns)}"
        )

    values = pd.to_numeric(df[column], errors="coerce")
    n_dropped = int(values.isna().sum())
    if n_dropped:
        print(f"[Data] Dropped {n_dropped} non-numeric rows from {column!r}")
    x = values.dropna().to_numpy(dtype=float)
    if x.size == 0:
        raise RuntimeError(f"Column {column!r} in {path} has no numeric values")
    return x


def simulate_normal(n=1000, mu=0.05, sigma2=0.81, seed=42):
    """
    Simulate i.i.d. Normal draws.

    Returns
    -------
    dict with keys: x, mu, sigma2
    """
    rng = np.random.default_rng(seed)
    x = rng.normal(mu, np.sqrt(sigma2), n)
    return dict(x=x, mu=mu, sigma2=sigma2)
