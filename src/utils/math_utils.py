import numpy as np

def mape(y_true, y_pred) -> float:
    """Mean Absolute Percentage Error (MAPE) in %. Days with zero actual demand are skipped."""
    y_true = np.asarray(y_true, dtype=float).ravel()
    y_pred = np.asarray(y_pred, dtype=float).ravel()
    mask = y_true != 0
    if not np.any(mask):
        return np.nan
    return float(np.mean(np.abs((y_true[mask] - y_pred[mask]) / y_true[mask])) * 100.0)

def interval_coverage(y_true, lower, upper) -> float:
    """Share of observations inside [lower, upper]."""
    y_true = np.asarray(y_true, dtype=float).ravel()
    lower = np.asarray(lower, dtype=float).ravel()
    upper = np.asarray(upper, dtype=float).ravel()
    if y_true.size == 0:
        return np.nan
    return float(np.mean((y_true >= lower) & (y_true <= upper)))

def level_to_alpha(level: float) -> float:
    """Nominal coverage in percent (e.g. 95) -> significance level (0.05)."""
    level = float(level)
    if not 0.0 < level < 100.0:
        raise ValueError(f"Interval level must be in (0, 100), got {level}")
    return round(1.0 - level / 100.0, 10)
