# cleaning.py
"""
Cleaning steps that turn raw sales/weather rows into a gap-free daily series.

- Prices arrive as currency strings ("3,50 €") and are parsed under a
  configurable decimal/currency policy; malformed strings raise.
- Sales are reduced to one article and one row per calendar date.
- Missing calendar dates are inserted with zero demand and the last known price.
- Weather gaps are zero-filled for a fixed set of fields, other fields are dropped.
"""

import re
from numbers import Number

import numpy as np
import pandas as pd

from utils.constants import (
    DATE_COL, TIMESTAMP_COL, ARTICLE_COL, QTY_COL, PRICE_COL, FILLED_COL,
    PRICE_DECIMAL, PRICE_CURRENCY, PRICE_AGGREGATION, PRICE_AGGREGATIONS,
    WEATHER_ZERO_FILL, WEATHER_DROP, TOP_N_PRODUCTS,
)


class CleaningError(Exception):
    """Raised when the input data cannot be cleaned without guessing."""


class PriceFormatError(CleaningError):
    """Raised for price strings that do not follow the configured currency format."""


class MissingPriceError(CleaningError):
    """Raised when a gap-filled day has no earlier price to carry forward."""


# ------------------ Prices ------------------
def _price_pattern(decimal: str, currency: str) -> re.Pattern:
    seps = re.escape(decimal) + (r"\." if decimal != "." else "")
    cur = rf"(?:\s*{re.escape(currency)})?" if currency else ""
    return re.compile(rf"^(-?\d+(?:[{seps}]\d+)?){cur}$")


def parse_price(value, decimal: str = PRICE_DECIMAL, currency: str = PRICE_CURRENCY) -> float:
    """
    Parse one price value to float.

    Numbers are returned unchanged (as float) so parsing is idempotent, and
    missing values come back as NaN. Strings must look like "3,50 €" under
    the given policy, otherwise PriceFormatError is raised.
    """
    if isinstance(value, Number) and not isinstance(value, bool):
        return float(value)
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return np.nan
    if not isinstance(value, str):
        raise PriceFormatError(f"Unsupported price value: {value!r}")

    match = _price_pattern(decimal, currency).match(value.strip())
    if match is None:
        raise PriceFormatError(f"Malformed price string: {value!r}")
    return float(match.group(1).replace(decimal, "."))


def parse_prices(prices: pd.Series, decimal: str = PRICE_DECIMAL, currency: str = PRICE_CURRENCY) -> pd.Series:
    """Vectorised parse_price; reports every malformed value in one error."""
    parsed, bad = [], []
    for raw in prices.astype(object):
        try:
            parsed.append(parse_price(raw, decimal, currency))
        except PriceFormatError:
            bad.append(raw)
            parsed.append(np.nan)
    if bad:
        raise PriceFormatError(
            f"{len(bad)} malformed price value(s), e.g. {bad[:5]}. "
            f"Expected format like '3{decimal}50 {currency}'."
        )
    return pd.Series(parsed, index=prices.index, name=prices.name, dtype="float64")


# ------------------ Sales ------------------
def top_products(sales: pd.DataFrame, n: int = TOP_N_PRODUCTS) -> pd.DataFrame:
    """The n articles with the largest total quantity sold."""
    totals = (
        sales.groupby(ARTICLE_COL, observed=True)[QTY_COL].sum()
        .sort_values(ascending=False, kind="mergesort")
        .head(n)
    )
    return totals.reset_index()


def daily_demand(
    sales: pd.DataFrame,
    article: str,
    price_policy: str = PRICE_AGGREGATION,
    decimal: str = PRICE_DECIMAL,
    currency: str = PRICE_CURRENCY,
) -> pd.DataFrame:
    """
    Aggregate transactions of one article to one row per date:
    summed quantity and a representative price chosen by price_policy.
    """
    if price_policy not in PRICE_AGGREGATIONS:
        raise ValueError(f"price_policy must be one of {PRICE_AGGREGATIONS}, got {price_policy!r}")

    rows = sales[sales[ARTICLE_COL] == article]
    if rows.empty:
        raise CleaningError(f"Article {article!r} does not occur in the sales data.")

    rows = rows.assign(**{PRICE_COL: parse_prices(rows[PRICE_COL], decimal, currency)})
    order = [DATE_COL, TIMESTAMP_COL] if TIMESTAMP_COL in rows.columns else [DATE_COL]
    rows = rows.sort_values(order, kind="mergesort")

    daily = rows.groupby(DATE_COL).agg(
        **{QTY_COL: (QTY_COL, "sum"), PRICE_COL: (PRICE_COL, price_policy)}
    )
    return daily.sort_index()


def fill_gaps(daily: pd.DataFrame) -> pd.DataFrame:
    """
    Insert a row for every missing calendar date between the first and last
    observed date. Inserted rows get zero quantity and the most recent prior
    price; a FILLED_COL flag marks them.
    """
    if daily.empty:
        raise CleaningError("Cannot gap-fill an empty daily series.")

    index = pd.DatetimeIndex(daily.index)
    if index.has_duplicates:
        raise CleaningError("Daily series has duplicate dates; aggregate before gap-filling.")

    full_range = pd.date_range(index.min(), index.max(), freq="D", name=DATE_COL)
    out = daily.set_axis(index).reindex(full_range)
    out[FILLED_COL] = ~full_range.isin(index)

    out[QTY_COL] = out[QTY_COL].fillna(0.0)
    out[PRICE_COL] = out[PRICE_COL].ffill()

    no_price = out[PRICE_COL].isna()
    if no_price.any():
        dates = [d.date().isoformat() for d in out.index[no_price][:5]]
        raise MissingPriceError(
            f"No earlier price to carry forward for {int(no_price.sum())} day(s), "
            f"first: {dates}."
        )
    return out


# ------------------ Weather ------------------
def clean_weather(
    weather: pd.DataFrame,
    zero_fill: list[str] = WEATHER_ZERO_FILL,
    drop: list[str] = WEATHER_DROP,
) -> pd.DataFrame:
    """Zero-fill the listed fields, drop the listed fields, and require no remaining gaps."""
    missing = [c for c in zero_fill if c not in weather.columns]
    if missing:
        raise KeyError(f"Missing weather columns to impute: {missing}")

    out = weather.drop(columns=[c for c in drop if c in weather.columns])
    out[list(zero_fill)] = out[list(zero_fill)].fillna(0.0)

    still_na = out.columns[out.isna().any()].tolist()
    if still_na:
        raise CleaningError(
            f"Weather columns still contain missing values after imputation: {still_na}"
        )
    return out.set_index(DATE_COL).sort_index()


def clean(sales: pd.DataFrame, weather: pd.DataFrame, cfg: dict) -> tuple[pd.DataFrame, pd.DataFrame]:
    """Run all cleaning steps with the policies from a loaded config."""
    price_cfg = cfg.get("price") or {}
    weather_cfg = cfg.get("weather") or {}

    daily = daily_demand(
        sales,
        article=cfg["product"]["article"],
        price_policy=price_cfg.get("aggregation", PRICE_AGGREGATION),
        decimal=price_cfg.get("decimal", PRICE_DECIMAL),
        currency=price_cfg.get("currency", PRICE_CURRENCY),
    )
    demand = fill_gaps(daily)
    weather_clean = clean_weather(
        weather,
        zero_fill=weather_cfg.get("zero_fill", WEATHER_ZERO_FILL),
        drop=weather_cfg.get("drop", WEATHER_DROP),
    )
    return demand, weather_clean
