# plots.py
"""
Figures for the forecast report. Every function writes a PNG and returns its path.
"""

import os

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import pandas as pd

from utils.schema import POINT_COL


def plot_decomposition(components: pd.DataFrame, path: str, title: str = "") -> str:
    """One stacked panel per component (observed, trend, seasonal_*, remainder)."""
    n = len(components.columns)
    fig, axes = plt.subplots(n, 1, figsize=(12, 2.2 * n), sharex=True)
    if n == 1:
        axes = [axes]

    for ax, col in zip(axes, components.columns):
        ax.plot(components.index, components[col], linewidth=0.8)
        if col == "remainder":
            ax.axhline(0.0, color="grey", linewidth=0.6)
        ax.set_ylabel(col.replace("_", " "))
        ax.grid(True, alpha=0.3)

    axes[0].set_title(title or "STL decomposition")
    fig.tight_layout()
    os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)
    fig.savefig(path, dpi=110)
    plt.close(fig)
    return path


def plot_forecast(
    history: pd.Series,
    forecasts: pd.DataFrame,
    actual: pd.Series,
    path: str,
    levels=(80, 95),
    title: str = "",
) -> str:
    """Training tail, realised test values, point forecast and shaded interval bands."""
    fig, ax = plt.subplots(figsize=(12, 5))

    ax.plot(history.index, history, color="black", linewidth=0.9, label="Training")
    ax.plot(actual.index, actual, color="black", linestyle="--", linewidth=0.9, label="Actual")

    # widest band first so narrower ones stay visible on top
    for level in sorted(levels, reverse=True):
        lvl = int(level)
        alpha = 0.18 if lvl == max(int(v) for v in levels) else 0.35
        ax.fill_between(
            forecasts.index,
            forecasts[f"lo_{lvl}"],
            forecasts[f"hi_{lvl}"],
            color="tab:blue",
            alpha=alpha,
            label=f"{lvl}% interval",
        )
    ax.plot(forecasts.index, forecasts[POINT_COL], color="tab:blue", linewidth=1.4, label="Forecast")

    ax.set_title(title or "Forecast vs actual")
    ax.set_xlabel("Date")
    ax.set_ylabel("Quantity")
    ax.grid(True, alpha=0.3)
    ax.legend(loc="upper left")
    fig.tight_layout()
    os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)
    fig.savefig(path, dpi=110)
    plt.close(fig)
    return path
