import numpy as np
import pandas as pd
import pytest

from cleaning import (
    parse_price, parse_prices, top_products, daily_demand, fill_gaps, clean_weather, clean,
    CleaningError, PriceFormatError, MissingPriceError,
)
from data_loader import load_sales, load_weather
from features import calendar_is_complete

ARTICLE = "TRADITIONAL BAGUETTE"


# ------------------ Prices ------------------
def test_parse_price_currency_string():
    assert parse_price("3,50 €") == pytest.approx(3.50)
    assert parse_price("0,90€") == pytest.approx(0.90)
    assert parse_price(" 12 € ") == pytest.approx(12.0)


def test_parse_price_is_idempotent():
    """Parsing an already-numeric value gives the same value back."""
    once = parse_price("3,50 €")
    assert parse_price(once) == once
    assert parse_price(2) == 2.0
    assert parse_price(np.float64(1.25)) == 1.25


def test_parse_price_missing_is_nan():
    assert np.isnan(parse_price(None))
    assert np.isnan(parse_price(pd.NA))


@pytest.mark.parametrize("bad", ["3,50 $", "abc", "3,5,0 €", "", "€ 3,50"])
def test_parse_price_malformed_raises(bad):
    with pytest.raises(PriceFormatError):
        parse_price(bad)


def test_parse_price_configurable_policy():
    assert parse_price("4.25 $", decimal=".", currency="$") == pytest.approx(4.25)
    with pytest.raises(PriceFormatError):
        parse_price("4,25 $", decimal=".", currency="$")


def test_parse_prices_reports_all_bad_values():
    s = pd.Series(["1,00 €", "oops", "2,00 €", "n/a €"])
    with pytest.raises(PriceFormatError, match="2 malformed"):
        parse_prices(s)


# ------------------ Sales ------------------
def test_top_products(sales_csv):
    sales = load_sales(str(sales_csv))
    top = top_products(sales, n=5)
    assert list(top.columns) == ["article", "quantity"]
    assert top.iloc[0]["article"] == ARTICLE
    assert top.iloc[0]["quantity"] == 31
    assert len(top) == 2


def test_daily_demand_sums_and_takes_max_price(sales_csv):
    sales = load_sales(str(sales_csv))
    daily = daily_demand(sales, ARTICLE)
    assert daily.loc[pd.Timestamp("2021-01-04"), "quantity"] == 12
    assert daily.loc[pd.Timestamp("2021-01-04"), "unit_price"] == pytest.approx(1.00)
    assert daily.index.is_unique


def test_daily_demand_other_price_policy(sales_csv):
    sales = load_sales(str(sales_csv))
    daily = daily_demand(sales, ARTICLE, price_policy="min")
    assert daily.loc[pd.Timestamp("2021-01-04"), "unit_price"] == pytest.approx(0.90)
    with pytest.raises(ValueError):
        daily_demand(sales, ARTICLE, price_policy="mode")


def test_daily_demand_last_price_follows_transaction_time():
    """File order 17:00 then 08:00: the later sale of the day sets the price."""
    sales = pd.DataFrame({
        "date": pd.to_datetime(["2022-01-01", "2022-01-01"]),
        "timestamp": pd.to_datetime(["2022-01-01 17:00", "2022-01-01 08:00"]),
        "article": [ARTICLE, ARTICLE],
        "quantity": [3.0, 2.0],
        "unit_price": ["2,00 €", "1,00 €"],
    })
    daily = daily_demand(sales, ARTICLE, price_policy="last")
    assert daily.loc[pd.Timestamp("2022-01-01"), "unit_price"] == pytest.approx(2.0)
    assert daily.loc[pd.Timestamp("2022-01-01"), "quantity"] == 5

    # without a time of day the file order decides
    daily = daily_demand(sales.drop(columns="timestamp"), ARTICLE, price_policy="last")
    assert daily.loc[pd.Timestamp("2022-01-01"), "unit_price"] == pytest.approx(1.0)


def test_daily_demand_unknown_article(sales_csv):
    sales = load_sales(str(sales_csv))
    with pytest.raises(CleaningError):
        daily_demand(sales, "PAIN AU CHOCOLAT")


# ------------------ Gap filling ------------------
def _daily(dates, qty, price):
    return pd.DataFrame(
        {"quantity": qty, "unit_price": price},
        index=pd.DatetimeIndex(pd.to_datetime(dates), name="date"),
    )


def test_fill_gaps_end_to_end_scenario():
    """[10, 0, 12] then a missing day then 9 -> the inserted day has 0 and day three's price."""
    daily = _daily(
        ["2022-01-01", "2022-01-02", "2022-01-03", "2022-01-05"],
        [10, 0, 12, 9],
        [1.0, 1.1, 1.2, 1.3],
    )
    out = fill_gaps(daily)
    assert len(out) == 5
    assert out["quantity"].tolist() == [10, 0, 12, 0, 9]
    assert out.loc[pd.Timestamp("2022-01-04"), "unit_price"] == pytest.approx(1.2)
    assert out["filled"].tolist() == [False, False, False, True, False]


def test_fill_gaps_contiguous_and_prices_carried():
    daily = _daily(["2022-03-01", "2022-03-04", "2022-03-10"], [5, 6, 7], [2.0, 2.5, 3.0])
    out = fill_gaps(daily)
    assert calendar_is_complete(out.index)
    assert out.index.min() == pd.Timestamp("2022-03-01")
    assert out.index.max() == pd.Timestamp("2022-03-10")

    filled = out[out["filled"]]
    assert (filled["quantity"] == 0).all()
    for d, row in filled.iterrows():
        prior = daily.loc[:d, "unit_price"].iloc[-1]
        assert row["unit_price"] == prior


def test_fill_gaps_without_prior_price_raises():
    daily = _daily(["2022-01-01", "2022-01-03"], [4, 5], [np.nan, 1.0])
    with pytest.raises(MissingPriceError):
        fill_gaps(daily)


def test_fill_gaps_empty_raises():
    with pytest.raises(CleaningError):
        fill_gaps(_daily([], [], []))


# ------------------ Weather ------------------
def test_clean_weather_imputes_and_drops(weather_csv):
    weather = clean_weather(load_weather(str(weather_csv)))
    for c in ["snow", "wdir", "wspd", "wpgt", "pres"]:
        assert weather[c].notna().all()
    assert "tsun" not in weather.columns
    assert weather.loc[pd.Timestamp("2021-01-02"), "wdir"] == 0.0
    assert weather.index.name == "date"


def test_clean_weather_remaining_gap_raises(weather_csv):
    weather = load_weather(str(weather_csv))
    weather.loc[3, "tavg"] = np.nan
    with pytest.raises(CleaningError, match="tavg"):
        clean_weather(weather)


def test_clean_weather_unknown_zero_fill_column(weather_csv):
    with pytest.raises(KeyError):
        clean_weather(load_weather(str(weather_csv)), zero_fill=["humidity"])


def test_clean_uses_config_policy(sales_csv, weather_csv):
    cfg = {
        "product": {"article": ARTICLE},
        "price": {"decimal": ",", "currency": "€", "aggregation": "max"},
        "weather": {"zero_fill": ["snow", "wdir", "wspd", "wpgt", "pres"], "drop": ["tsun"]},
    }
    demand, weather = clean(load_sales(str(sales_csv)), load_weather(str(weather_csv)), cfg)
    assert len(demand) == 5  # 2021-01-02 .. 2021-01-06
    assert demand.loc[pd.Timestamp("2021-01-05"), "quantity"] == 0
    assert demand.loc[pd.Timestamp("2021-01-05"), "unit_price"] == pytest.approx(1.00)
    assert "tsun" not in weather.columns
