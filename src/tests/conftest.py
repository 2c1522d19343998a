# src/tests/conftest.py
import sys
from pathlib import Path

import numpy as np
import pandas as pd
import pytest
import yaml

# Add the parent directory of this tests folder (i.e., src/) to sys.path
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))


ARTICLE = "TRADITIONAL BAGUETTE"


@pytest.fixture
def raw_sales() -> pd.DataFrame:
    """A few transaction lines in the bakery export layout (prices as strings)."""
    return pd.DataFrame({
        "Unnamed: 0": [0, 1, 2, 3, 4, 5, 6],
        "date": ["2021-01-02", "2021-01-02", "2021-01-03", "2021-01-04",
                 "2021-01-04", "2021-01-06", "2021-01-06"],
        "time": ["08:38", "09:14", "10:00", "11:02", "12:40", "08:00", "09:30"],
        "ticket_number": [150040, 150041, 150042, 150043, 150044, 150045, 150046],
        "article": [ARTICLE, "CROISSANT", ARTICLE, ARTICLE, ARTICLE, ARTICLE, "CROISSANT"],
        "Quantity": [10, 3, 0, 8, 4, 9, 5],
        "unit_price": ["0,90 €", "1,10 €", "0,90 €", "0,90 €", "1,00 €", "1,00 €", "1,10 €"],
    })


@pytest.fixture
def raw_weather() -> pd.DataFrame:
    """Meteostat-style daily weather with gaps in the imputed and dropped fields."""
    dates = pd.date_range("2021-01-01", "2021-01-08", freq="D")
    n = len(dates)
    return pd.DataFrame({
        "date": dates.strftime("%Y-%m-%d"),
        "tavg": np.linspace(2.0, 6.0, n),
        "tmin": np.linspace(-1.0, 3.0, n),
        "tmax": np.linspace(5.0, 9.0, n),
        "prcp": [0.0, 1.2, 0.0, 0.4, 0.0, 0.0, 3.1, 0.0],
        "snow": [np.nan] * n,
        "wdir": [200, np.nan, 210, 220, 230, np.nan, 240, 250],
        "wspd": [10.0, 12.0, np.nan, 14.0, 9.0, 8.0, 7.0, 11.0],
        "wpgt": [np.nan] * n,
        "pres": [1012.0, 1013.5, 1011.0, np.nan, 1009.0, 1010.0, 1015.0, 1016.0],
        "tsun": [np.nan] * n,
    })


@pytest.fixture
def sales_csv(tmp_path, raw_sales):
    p = tmp_path / "sales.csv"
    raw_sales.to_csv(p, index=False)
    return p


@pytest.fixture
def weather_csv(tmp_path, raw_weather):
    p = tmp_path / "weather.csv"
    raw_weather.to_csv(p, index=False)
    return p


def _synthetic_frames(start="2022-05-01", end="2022-08-31", seed=7):
    """
    Daily demand driven by trend, weekday and temperature, written as
    transaction lines, plus matching weather. Every 17th day has no sales.
    """
    rng = np.random.default_rng(seed)
    dates = pd.date_range(start, end, freq="D")
    t = np.arange(len(dates))
    tavg = 15.0 + 6.0 * np.sin(2 * np.pi * t / 60.0) + rng.normal(0, 1.0, len(dates))
    wspd = rng.uniform(5.0, 25.0, len(dates))
    pres = 1013.0 + rng.normal(0, 4.0, len(dates))
    weekday = np.array([0, -4, -3, -2, 2, 8, 6])[dates.dayofweek]
    qty = np.round(40 + 0.05 * t + weekday + 0.8 * tavg - 0.1 * wspd + rng.normal(0, 2.0, len(dates)))

    rows = []
    for i, (d, q) in enumerate(zip(dates, qty)):
        if i % 17 == 16:
            continue
        half = int(q // 2)
        rows.append({"date": d.strftime("%Y-%m-%d"), "time": "08:15", "article": ARTICLE,
                     "Quantity": half, "unit_price": "1,20 €"})
        rows.append({"date": d.strftime("%Y-%m-%d"), "time": "17:45", "article": ARTICLE,
                     "Quantity": int(q) - half, "unit_price": "1,30 €" if i % 5 == 0 else "1,20 €"})
        rows.append({"date": d.strftime("%Y-%m-%d"), "time": "10:05", "article": "CROISSANT",
                     "Quantity": 5, "unit_price": "1,10 €"})
    sales = pd.DataFrame(rows)

    weather = pd.DataFrame({
        "date": dates.strftime("%Y-%m-%d"),
        "tavg": tavg, "tmin": tavg - 4.0, "tmax": tavg + 4.0, "prcp": 0.0,
        "snow": np.nan, "wdir": 180.0, "wspd": wspd, "wpgt": np.nan,
        "pres": pres, "tsun": np.nan,
    })
    return sales, weather


@pytest.fixture
def synthetic_frames():
    return _synthetic_frames()


@pytest.fixture
def synthetic_config(tmp_path, synthetic_frames) -> Path:
    """A config.yaml pointing at synthetic CSVs, with an August 2022 test window."""
    sales, weather = synthetic_frames
    sales.to_csv(tmp_path / "sales.csv", index=False)
    weather.to_csv(tmp_path / "weather.csv", index=False)

    cfg = {
        "data": {"sales": "sales.csv", "weather": "weather.csv"},
        "product": {"article": ARTICLE, "top_n": 5},
        "price": {"decimal": ",", "currency": "€", "aggregation": "max"},
        "weather": {"zero_fill": ["snow", "wdir", "wspd", "wpgt", "pres"], "drop": ["tsun"]},
        "split": {"cutoff": "2022-08-01"},
        "decomposition": {"periods": [7, 365], "robust": True},
        "model": {"exog": ["tavg", "wspd", "pres"], "max_p": 2, "max_d": 1, "max_q": 2,
                  "seasonal": False, "min_train_days": 28, "levels": [80, 95]},
        "report": {"out_dir": "reports", "history_days": 30},
    }
    path = tmp_path / "config.yaml"
    with open(path, "w", encoding="utf-8") as f:
        yaml.safe_dump(cfg, f, allow_unicode=True)
    return path


@pytest.fixture
def train_test(synthetic_frames):
    """Cleaned, joined and split synthetic data ready for the model."""
    from cleaning import fill_gaps, daily_demand, clean_weather
    from data_loader import normalize_columns
    from features import join_weather, split_train_test

    sales, weather = synthetic_frames
    sales = normalize_columns(sales)
    sales["date"] = pd.to_datetime(sales["date"])
    sales["quantity"] = sales["quantity"].astype(float)
    weather = weather.assign(date=pd.to_datetime(weather["date"]))

    demand = fill_gaps(daily_demand(sales, ARTICLE))
    joined = join_weather(demand, clean_weather(weather))
    return split_train_test(joined, "2022-08-01")
