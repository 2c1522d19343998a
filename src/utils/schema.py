# schema.py
"""
Schema definition for forecasting regressors and target.
"""

from utils.constants import DAY_ORDER, INTERVAL_LEVELS

TARGET_COL = "quantity"

TREND_COL = "trend"

# Monday is the baseline level of the weekly effect
DOW_COLS = [f"dow_{d}" for d in DAY_ORDER[1:]]

POINT_COL = "forecast"


def regressor_cols(exog_cols: list[str]) -> list[str]:
    """Full design-matrix column order for a given set of weather covariates."""
    return [TREND_COL] + DOW_COLS + list(exog_cols)


def forecast_cols(levels=INTERVAL_LEVELS) -> list[str]:
    cols = [POINT_COL]
    for level in levels:
        cols += [f"lo_{int(level)}", f"hi_{int(level)}"]
    return cols
