# pipeline.py
"""
Bakery demand forecast report.

CLI:
- Full report (clean -> decompose -> fit -> forecast -> evaluate -> plot -> HTML):
  python pipeline.py report --config config.yaml --out-dir ../reports

- Export the cleaned, weather-joined daily series:
  python pipeline.py clean --out daily.csv

- Show the best-selling products:
  python pipeline.py top-products -n 5
"""

from __future__ import annotations

import os
import sys
from typing import Optional

import pandas as pd

from data_loader import load_sales, load_weather
from cleaning import clean, top_products
from features import join_weather, split_train_test
from decomposition import decompose
from models.modeling import fit as model_fit, forecast as model_forecast, evaluate, order_summary
from reporting.plots import plot_decomposition, plot_forecast
from reporting.report import render_report

from utils.constants import DECOMPOSITION_PERIODS, EXOG_COLS, FILLED_COL, INTERVAL_LEVELS, MAXITER, TOP_N_PRODUCTS
from utils.schema import TARGET_COL
from utils.io_utils import load_config


# ---------- Helpers ----------
def _load_cfg(config_path: Optional[str], sales: Optional[str], weather: Optional[str],
              out_dir: Optional[str] = None) -> dict:
    cfg = load_config(config_path)
    cfg["data"] = cfg.get("data") or {}
    cfg["report"] = cfg.get("report") or {}
    if sales:
        cfg["data"]["sales"] = sales
    if weather:
        cfg["data"]["weather"] = weather
    if out_dir:
        cfg["report"]["out_dir"] = out_dir
    return cfg


def _slug(text: str) -> str:
    return "".join(ch if ch.isalnum() else "_" for ch in text.lower()).strip("_")


def build_daily(cfg: dict) -> tuple[pd.DataFrame, pd.DataFrame]:
    """Load, clean and join. Returns (sales, joined daily frame)."""
    sales = load_sales(cfg["data"]["sales"])
    weather = load_weather(cfg["data"]["weather"])
    print(f"Loaded {len(sales)} sales rows and {len(weather)} weather days")

    demand, weather_clean = clean(sales, weather, cfg)
    print(f"Daily series: {len(demand)} days, {int(demand[FILLED_COL].sum())} gap-filled")
    return sales, join_weather(demand, weather_clean)


def run_report(cfg: dict) -> dict:
    """Run the whole analysis and write the HTML report. Returns paths, metrics and model label."""
    article = cfg["product"]["article"]
    model_cfg = cfg.get("model") or {}
    levels = model_cfg.get("levels", INTERVAL_LEVELS)
    exog = model_cfg.get("exog", EXOG_COLS)
    out_dir = (cfg.get("report") or {}).get("out_dir") or os.path.join(os.getcwd(), "reports")
    prefix = _slug(article)

    sales, joined = build_daily(cfg)
    top = top_products(sales, n=int(cfg["product"].get("top_n", TOP_N_PRODUCTS)))

    df_train, df_test = split_train_test(joined, cfg["split"]["cutoff"])
    print(f"Train: {df_train.index.min().date()} -> {df_train.index.max().date()} ({len(df_train)} days)")
    print(f"Test:  {df_test.index.min().date()} -> {df_test.index.max().date()} ({len(df_test)} days)")

    dec_cfg = cfg.get("decomposition") or {}
    components = decompose(
        df_train[TARGET_COL],
        periods=dec_cfg.get("periods", DECOMPOSITION_PERIODS),
        robust=bool(dec_cfg.get("robust", True)),
    )
    decomposition_png = plot_decomposition(
        components,
        os.path.join(out_dir, f"{prefix}_decomposition.png"),
        title=f"{article}: STL decomposition of daily quantity",
    )

    fitted = model_fit(
        df_train,
        exog_cols=exog,
        information_criterion=model_cfg.get("information_criterion", "aic"),
        max_p=int(model_cfg.get("max_p", 3)),
        max_d=int(model_cfg.get("max_d", 2)),
        max_q=int(model_cfg.get("max_q", 3)),
        seasonal=bool(model_cfg.get("seasonal", False)),
        m=int(model_cfg.get("m", 7)),
        min_train_days=int(model_cfg.get("min_train_days", 28)),
        maxiter=int(model_cfg.get("maxiter", MAXITER)),
    )
    label = order_summary(fitted)
    print(f"✅ Fitted {label}")

    forecasts = model_forecast(fitted, df_test, levels=levels)
    metrics = evaluate(forecasts, df_test[TARGET_COL], levels=levels)
    print(f"✅ Test metrics: {metrics}")

    history_days = int((cfg.get("report") or {}).get("history_days", 90))
    forecast_png = plot_forecast(
        df_train[TARGET_COL].iloc[-history_days:],
        forecasts,
        df_test[TARGET_COL],
        os.path.join(out_dir, f"{prefix}_forecast.png"),
        levels=levels,
        title=f"{article}: forecast vs actual",
    )

    report_path = render_report(
        os.path.join(out_dir, f"{prefix}_report.html"),
        article=article,
        top=top,
        decomposition_png=decomposition_png,
        forecast_png=forecast_png,
        metrics=metrics,
        model_label=label,
        train_range=(df_train.index.min(), df_train.index.max()),
        test_range=(df_test.index.min(), df_test.index.max()),
    )
    print(f"✅ Report saved to: {report_path}")

    return {
        "report": report_path,
        "decomposition_png": decomposition_png,
        "forecast_png": forecast_png,
        "metrics": metrics,
        "model": label,
        "forecasts": forecasts,
    }


# ---------- Commands ----------
def cmd_report(config_path: Optional[str], sales: Optional[str], weather: Optional[str], out_dir: Optional[str]):
    cfg = _load_cfg(config_path, sales, weather, out_dir)
    return run_report(cfg)


def cmd_clean(config_path: Optional[str], sales: Optional[str], weather: Optional[str], out_csv: str):
    cfg = _load_cfg(config_path, sales, weather)
    _, joined = build_daily(cfg)
    joined.to_csv(out_csv, index=True, date_format="%Y-%m-%d")
    print(f"✅ Cleaned daily series saved to: {out_csv}")
    return joined


def cmd_top_products(config_path: Optional[str], sales: Optional[str], n: Optional[int]):
    cfg = _load_cfg(config_path, sales, None)
    top = top_products(load_sales(cfg["data"]["sales"]), n=n or int(cfg["product"].get("top_n", TOP_N_PRODUCTS)))
    print(top.to_string(index=False))
    return top


# ---------- CLI ----------
def main():
    import argparse
    parser = argparse.ArgumentParser(description="Bakery demand forecast report")
    sub = parser.add_subparsers(dest="cmd", required=True)

    p_rep = sub.add_parser("report", help="Run the full analysis and render the HTML report")
    p_rep.add_argument("--config", default=None)
    p_rep.add_argument("--sales", default=None)
    p_rep.add_argument("--weather", default=None)
    p_rep.add_argument("--out-dir", default=None)

    p_clean = sub.add_parser("clean", help="Export the cleaned daily series joined with weather")
    p_clean.add_argument("--config", default=None)
    p_clean.add_argument("--sales", default=None)
    p_clean.add_argument("--weather", default=None)
    p_clean.add_argument("--out", required=True)

    p_top = sub.add_parser("top-products", help="Print the best-selling products")
    p_top.add_argument("--config", default=None)
    p_top.add_argument("--sales", default=None)
    p_top.add_argument("-n", type=int, default=None)

    args = parser.parse_args()
    if args.cmd == "report":
        cmd_report(args.config, args.sales, args.weather, args.out_dir)
    elif args.cmd == "clean":
        cmd_clean(args.config, args.sales, args.weather, args.out)
    elif args.cmd == "top-products":
        cmd_top_products(args.config, args.sales, args.n)
    else:
        parser.print_help()


if __name__ == "__main__":
    try:
        main()
    except Exception as e:
        print(f"[ERROR] {e}", file=sys.stderr)
        sys.exit(1)
