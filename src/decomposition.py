# decomposition.py
"""
Robust seasonal-trend decomposition of the daily demand series.
Diagnostic only: the components are plotted, never fed into the model.
"""

import pandas as pd
from statsmodels.tsa.seasonal import MSTL, STL

from utils.constants import DECOMPOSITION_PERIODS


def usable_periods(n_obs: int, periods=DECOMPOSITION_PERIODS) -> list[int]:
    """Periods with more than two full cycles in a series of n_obs points."""
    return sorted({int(p) for p in periods if 2 <= int(p) and 2 * int(p) < n_obs})


def decompose(series: pd.Series, periods=DECOMPOSITION_PERIODS, robust: bool = True) -> pd.DataFrame:
    """
    Split series into trend, one seasonal component per usable period, and remainder.

    A single usable period goes through STL, several through MSTL (both
    loess-based). Returned columns: observed, trend, seasonal_<p>..., remainder.
    """
    if series.isna().any():
        raise ValueError("Cannot decompose a series with missing values; gap-fill it first.")

    used = usable_periods(len(series), periods)
    if not used:
        raise ValueError(
            f"Series of {len(series)} days is too short for any of the periods {list(periods)}."
        )

    y = series.astype(float)
    if len(used) == 1:
        res = STL(y, period=used[0], robust=robust).fit()
        seasonal = pd.DataFrame({f"seasonal_{used[0]}": res.seasonal}, index=y.index)
    else:
        res = MSTL(y, periods=used, stl_kwargs={"robust": robust}).fit()
        seasonal = pd.DataFrame(res.seasonal, index=y.index)
        seasonal.columns = [f"seasonal_{p}" for p in used]

    out = pd.DataFrame({"observed": y, "trend": res.trend}, index=y.index)
    out = pd.concat([out, seasonal], axis=1)
    out["remainder"] = res.resid
    return out
