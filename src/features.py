# features.py
from typing import List, Tuple

import numpy as np
import pandas as pd

from utils.constants import DATE_COL, DAY_ORDER, EXOG_COLS
from utils.schema import TREND_COL, DOW_COLS, regressor_cols


def join_weather(demand: pd.DataFrame, weather: pd.DataFrame) -> pd.DataFrame:
    """
    Left-join the daily demand series with weather on date.

    Assumptions:
      - demand is indexed by a daily DatetimeIndex (output of cleaning.fill_gaps).
      - weather is indexed by date (output of cleaning.clean_weather).
    Every demand date is kept; dates without weather get NaN covariates.
    """
    weather = weather.copy()
    weather.index = pd.DatetimeIndex(weather.index).normalize()
    overlap = [c for c in weather.columns if c in demand.columns]
    if overlap:
        raise ValueError(f"Weather columns collide with demand columns: {overlap}")

    out = demand.join(weather, how="left")
    out.index.name = DATE_COL
    return out


def cutoff_month(value) -> pd.Timestamp:
    """First day of the month containing value."""
    ts = pd.Timestamp(value)
    if pd.isna(ts):
        raise ValueError(f"Invalid cutoff date: {value!r}")
    return ts.to_period("M").to_timestamp()


def split_train_test(joined: pd.DataFrame, cutoff) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """
    Partition by date: everything before the cutoff month is training data,
    the cutoff month onward is the test window.
    """
    start = cutoff_month(cutoff)
    dates = pd.DatetimeIndex(joined.index)
    in_train = dates < start

    df_train = joined[in_train]
    df_test = joined[~in_train]
    if df_train.empty or df_test.empty:
        raise ValueError(
            f"Empty train/test after splitting at {start.date()}. "
            f"Data covers {dates.min().date()} to {dates.max().date()}."
        )
    return df_train, df_test


def make_regressors(
    frame: pd.DataFrame,
    exog_cols: List[str] = EXOG_COLS,
    origin: pd.Timestamp | None = None,
) -> pd.DataFrame:
    """
    Build the ARIMA design matrix: linear trend, day-of-week dummies and
    weather covariates.

    The trend counts days since origin (defaults to the first date in frame)
    so a test window continues the training trend when given the training origin.
    Day categories are fixed, so any window yields the same dummy columns.
    """
    missing = [c for c in exog_cols if c not in frame.columns]
    if missing:
        raise KeyError(f"Missing exogenous columns: {missing}")

    dates = pd.DatetimeIndex(frame.index)
    if origin is None:
        origin = dates.min()

    out = pd.DataFrame(index=frame.index)
    out[TREND_COL] = ((dates - pd.Timestamp(origin)) / pd.Timedelta(days=1)).astype(float)

    day_of_week = pd.Categorical(dates.day_name().str.lower(), categories=DAY_ORDER, ordered=True)
    dummies = pd.get_dummies(day_of_week, prefix="dow", prefix_sep="_", dtype=float)
    dummies.index = frame.index
    out = pd.concat([out, dummies[DOW_COLS]], axis=1)

    for c in exog_cols:
        out[c] = pd.to_numeric(frame[c], errors="coerce").astype(float)

    return out[regressor_cols(exog_cols)]


def missing_report(frame: pd.DataFrame, cols: List[str]) -> dict:
    """Count of missing values per column, only for columns that have any."""
    counts = frame[cols].isna().sum()
    return {c: int(n) for c, n in counts.items() if n > 0}


def calendar_is_complete(index: pd.Index) -> bool:
    """True when index is a gap-free run of consecutive days."""
    dates = pd.DatetimeIndex(index)
    if len(dates) == 0:
        return False
    expected = pd.date_range(dates.min(), dates.max(), freq="D")
    return len(dates) == len(expected) and bool(np.all(dates.sort_values() == expected))
