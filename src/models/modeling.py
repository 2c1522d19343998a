# modeling.py
"""
Model fitting, forecasting and evaluation for daily demand.
- Regression with ARIMA errors: linear trend + day-of-week dummies + weather covariates.
- ARIMA orders are picked by pmdarima.auto_arima (stepwise search, information criterion).
- Forecasts carry prediction intervals at the configured nominal levels.
- Every failure (missing values, short history, non-convergence) raises ForecastError.
"""

import numpy as np
import pandas as pd
import pmdarima as pm
from sklearn.metrics import mean_absolute_error, mean_squared_error

from features import make_regressors, missing_report, calendar_is_complete
from utils.constants import EXOG_COLS, INTERVAL_LEVELS, MAXITER, MIN_TRAIN_DAYS
from utils.schema import TARGET_COL, POINT_COL, forecast_cols
from utils.math_utils import mape, interval_coverage, level_to_alpha


class ForecastError(Exception):
    """Raised when the model cannot be fitted or cannot forecast the requested window."""


class FittedForecaster:
    """A fitted auto_arima model plus what is needed to build future regressors."""

    def __init__(self, model, exog_cols, origin, train_end):
        self.model = model
        self.exog_cols = list(exog_cols)
        self.origin = pd.Timestamp(origin)
        self.train_end = pd.Timestamp(train_end)

    @property
    def order(self):
        return self.model.order

    @property
    def seasonal_order(self):
        return self.model.seasonal_order

    @property
    def aic(self) -> float:
        return float(self.model.aic())


# ------------------ Input checks ------------------
def _check_train(train: pd.DataFrame, exog_cols, min_train_days: int):
    """Column, NA, length and calendar checks before fitting."""
    needed = [TARGET_COL] + list(exog_cols)
    missing_cols = [c for c in needed if c not in train.columns]
    if missing_cols:
        raise ForecastError(f"Training data is missing columns: {missing_cols}")

    na = missing_report(train, needed)
    if na:
        raise ForecastError(f"Training data contains missing values: {na}")

    if len(train) < min_train_days:
        raise ForecastError(
            f"Insufficient training data: {len(train)} day(s), need at least {min_train_days}."
        )
    if not calendar_is_complete(train.index):
        raise ForecastError("Training dates must be a gap-free daily range.")


def _check_horizon(fitted: FittedForecaster, test: pd.DataFrame):
    """The forecast window must start the day after training and have complete regressors."""
    missing_cols = [c for c in fitted.exog_cols if c not in test.columns]
    if missing_cols:
        raise ForecastError(f"Forecast window is missing regressor columns: {missing_cols}")

    na = missing_report(test, fitted.exog_cols)
    if na:
        raise ForecastError(f"Exogenous regressors incomplete for the forecast window: {na}")

    if test.empty:
        raise ForecastError("Forecast window is empty.")
    if not calendar_is_complete(test.index):
        raise ForecastError("Forecast dates must be a gap-free daily range.")

    first = pd.DatetimeIndex(test.index).min()
    if first != fitted.train_end + pd.Timedelta(days=1):
        raise ForecastError(
            f"Forecast window must start on {(fitted.train_end + pd.Timedelta(days=1)).date()}, "
            f"got {first.date()}."
        )


# ------------------ Training ------------------
def fit(
    train: pd.DataFrame,
    exog_cols=EXOG_COLS,
    information_criterion: str = "aic",
    max_p: int = 3,
    max_d: int = 2,
    max_q: int = 3,
    seasonal: bool = False,
    m: int = 7,
    min_train_days: int = MIN_TRAIN_DAYS,
    maxiter: int = MAXITER,
) -> FittedForecaster:
    """
    Fit an ARIMA model with trend, weekly and weather regressors on the training window.

    Orders are chosen by a bounded stepwise search minimising information_criterion.
    The weekly effect enters through the day-of-week dummies; seasonal=True
    additionally lets the search add seasonal ARIMA terms of period m.
    maxiter caps the optimiser iterations of every candidate fit.
    """
    _check_train(train, exog_cols, min_train_days)

    origin = pd.DatetimeIndex(train.index).min()
    X = make_regressors(train, exog_cols, origin=origin)
    y = train[TARGET_COL].astype(float)

    try:
        model = pm.auto_arima(
            y.to_numpy(),
            X=X.to_numpy(),
            start_p=0, start_q=0,
            max_p=max_p, max_d=max_d, max_q=max_q,
            seasonal=seasonal,
            m=m if seasonal else 1,
            information_criterion=information_criterion,
            maxiter=maxiter,
            stepwise=True,
            error_action="ignore",
            suppress_warnings=True,
            trace=False,
        )
    except (ValueError, np.linalg.LinAlgError) as e:
        raise ForecastError(f"ARIMA order selection failed: {e}") from e

    retvals = getattr(model.arima_res_, "mle_retvals", None) or {}
    if not retvals.get("converged", True):
        raise ForecastError(
            f"Selected model ARIMA{model.order} did not converge "
            f"(optimizer warnflag={retvals.get('warnflag')})."
        )

    return FittedForecaster(model, exog_cols, origin, pd.DatetimeIndex(train.index).max())


# ------------------ Forecasting ------------------
def forecast(fitted: FittedForecaster, test: pd.DataFrame, levels=INTERVAL_LEVELS) -> pd.DataFrame:
    """
    Point forecast and prediction intervals for every date in test.
    Returns one row per test date with columns forecast, lo_<level>, hi_<level>.
    """
    _check_horizon(fitted, test)

    X_future = make_regressors(test, fitted.exog_cols, origin=fitted.origin)
    n = len(test)

    out = pd.DataFrame(index=test.index)
    for level in levels:
        preds, conf_int = fitted.model.predict(
            n_periods=n,
            X=X_future.to_numpy(),
            return_conf_int=True,
            alpha=level_to_alpha(level),
        )
        conf_int = np.asarray(conf_int, dtype=float)
        out[POINT_COL] = np.asarray(preds, dtype=float)
        out[f"lo_{int(level)}"] = conf_int[:, 0]
        out[f"hi_{int(level)}"] = conf_int[:, 1]

    if out.isna().any().any():
        raise ForecastError("Model produced missing forecasts; check the regressors.")
    return out[forecast_cols(levels)]


def order_summary(fitted: FittedForecaster) -> str:
    """Readable model label, e.g. 'ARIMA(1,0,2) with trend, weekday and tavg/wspd/pres regressors'."""
    p, d, q = fitted.order
    label = f"ARIMA({p},{d},{q})"
    P, D, Q, s = fitted.seasonal_order
    if s and s > 1 and (P or D or Q):
        label += f"({P},{D},{Q})[{s}]"
    return (
        f"{label} with trend, weekday and {'/'.join(fitted.exog_cols)} regressors "
        f"(AIC {fitted.aic:.1f})"
    )


# ------------------ Evaluation ------------------
def evaluate(forecasts: pd.DataFrame, actual: pd.Series, levels=INTERVAL_LEVELS) -> dict:
    """
    Compare forecasts with the realised test-window demand.
    Returns dict with mae (primary), rmse, mape_pct and coverage_<level>.
    """
    if len(forecasts) != len(actual) or not forecasts.index.equals(actual.index):
        raise ValueError(
            f"Forecasts and actuals are not aligned: {len(forecasts)} vs {len(actual)} row(s)."
        )
    if pd.isnull(actual).any():
        raise ValueError("Actual demand contains NaN values.")

    y_true = actual.to_numpy(dtype=float)
    y_pred = forecasts[POINT_COL].to_numpy(dtype=float)

    metrics = {
        "mae": float(mean_absolute_error(y_true, y_pred)),
        "rmse": float(np.sqrt(mean_squared_error(y_true, y_pred))),
        "mape_pct": mape(y_true, y_pred),
    }
    for level in levels:
        lvl = int(level)
        metrics[f"coverage_{lvl}"] = interval_coverage(
            y_true, forecasts[f"lo_{lvl}"], forecasts[f"hi_{lvl}"]
        )
    return metrics