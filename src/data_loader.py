"""
data_loader.py
Simple CSV loaders with schema checks.
- Normalizes column names to snake_case (e.g. "Unit Price" -> unit_price).
- Drops pandas index artefacts (unnamed_0, ...).
- Ensures required columns exist (from utils.constants).
- Enforces dtypes:
    * date -> datetime64 (sales also get a timestamp when a time column exists)
    * quantity -> float64 (non-null)
    * unit_price -> string (currency parsing is a cleaning step)
    * weather fields -> float64 (allow NA; cleaning decides)
- Raises DataLoaderError with a concise summary if any row fails validation.
"""

import re

import pandas as pd

from utils.constants import (
    DATE_COL, TIME_COL, TIMESTAMP_COL, ARTICLE_COL, QTY_COL, PRICE_COL,
    SALES_REQUIRED_COLUMNS, WEATHER_REQUIRED_COLUMNS, NA_VALUES,
)
from utils.io_utils import load_config, resolve_path


class DataLoaderError(Exception):
    """Raised when rows fail validation while loading a dataset."""


def normalize_columns(df: pd.DataFrame) -> pd.DataFrame:
    """Lower-case column names and collapse non-alphanumeric runs to underscores."""
    out = df.copy()
    out.columns = [
        re.sub(r"[^0-9a-z]+", "_", str(c).strip().lower()).strip("_")
        for c in out.columns
    ]
    artefacts = [c for c in out.columns if c == "" or c.startswith("unnamed")]
    return out.drop(columns=artefacts)


def _ensure_required_columns(df: pd.DataFrame, required: list[str]) -> None:
    missing = [c for c in required if c not in df.columns]
    if missing:
        raise KeyError(f"Missing required columns: {missing}")


def _raise_if_invalid(invalid_mask: pd.Series, what: str) -> None:
    if invalid_mask.any():
        example_idx = list(invalid_mask[invalid_mask].index[:5])
        raise DataLoaderError(
            f"Validation failed for {int(invalid_mask.sum())} {what} row(s). "
            f"Offending row indices (first 5): {example_idx}."
        )


def _read_csv(path: str) -> pd.DataFrame:
    return pd.read_csv(
        resolve_path(path),
        dtype="string",
        keep_default_na=True,
        na_values=NA_VALUES,
    )


def load_sales(path: str | None = None, config_path: str | None = None) -> pd.DataFrame:
    """
    Read the sales transactions CSV and return a typed DataFrame.
    One row per transaction line: date, [timestamp], article, quantity, unit_price.
    """
    if path is None:
        path = load_config(config_path)["data"]["sales"]

    df = normalize_columns(_read_csv(path))
    _ensure_required_columns(df, SALES_REQUIRED_COLUMNS)

    # ---------- Coercions & validation ----------
    df[DATE_COL] = pd.to_datetime(df[DATE_COL], errors="coerce")
    df[QTY_COL] = pd.to_numeric(df[QTY_COL], errors="coerce")
    df[ARTICLE_COL] = df[ARTICLE_COL].str.strip()

    invalid_mask = df[DATE_COL].isna() | df[QTY_COL].isna() | df[ARTICLE_COL].isna()
    _raise_if_invalid(invalid_mask, "sales")

    # ---------- Final tidy types ----------
    df[DATE_COL] = df[DATE_COL].dt.normalize()
    df[QTY_COL] = df[QTY_COL].astype("float64")
    df[PRICE_COL] = df[PRICE_COL].astype("string")
    if TIME_COL in df.columns:
        df[TIMESTAMP_COL] = pd.to_datetime(
            df[DATE_COL].dt.strftime("%Y-%m-%d") + " " + df[TIME_COL].fillna("00:00"),
            errors="coerce",
        )

    return df.reset_index(drop=True)


def load_weather(path: str | None = None, config_path: str | None = None) -> pd.DataFrame:
    """
    Read the daily weather CSV. Every non-date column is coerced to float64;
    missing observations are kept as NaN for the cleaning step.
    """
    if path is None:
        path = load_config(config_path)["data"]["weather"]

    df = normalize_columns(_read_csv(path))
    _ensure_required_columns(df, WEATHER_REQUIRED_COLUMNS)

    df[DATE_COL] = pd.to_datetime(df[DATE_COL], errors="coerce")
    _raise_if_invalid(df[DATE_COL].isna(), "weather")
    df[DATE_COL] = df[DATE_COL].dt.normalize()

    dup = df[DATE_COL].duplicated(keep=False)
    if dup.any():
        dates = sorted(df.loc[dup, DATE_COL].dt.date.astype(str).unique())[:5]
        raise DataLoaderError(f"Weather data has duplicate dates (first 5): {dates}")

    for c in df.columns:
        if c != DATE_COL:
            df[c] = pd.to_numeric(df[c], errors="coerce").astype("float64")

    return df.sort_values(DATE_COL).reset_index(drop=True)
