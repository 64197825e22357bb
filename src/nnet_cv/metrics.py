"""Error and explained-variance metrics for regression."""

from __future__ import annotations

import numpy as np

from .errors import DegenerateVariance, InvalidArgument


def mse(y_true, y_pred) -> float:
    y_true = np.asarray(y_true, dtype=float).ravel()
    y_pred = np.asarray(y_pred, dtype=float).ravel()
    if y_true.shape != y_pred.shape:
        raise InvalidArgument(
            f"y_true and y_pred must have the same length ({len(y_true)} != {len(y_pred)})"
        )
    if len(y_true) == 0:
        raise InvalidArgument("cannot compute MSE of an empty vector")
    return float(np.sum((y_true - y_pred) ** 2) / len(y_true))


def population_variance(y) -> float:
    """Variance of ``y`` with divisor ``n``, matching the MSE divisor.

    A constant ``y`` gives exactly 0.0; ``np.var`` alone can leave rounding
    noise such as ``7.9e-31`` for ``np.full(10, 4.2)``.
    """
    y = np.asarray(y, dtype=float).ravel()
    if len(y) == 0:
        raise InvalidArgument("cannot compute the variance of an empty vector")
    if np.ptp(y) == 0:
        return 0.0
    return float(np.var(y, ddof=0))


def response_variance(y) -> float:
    """Population variance of ``y``; raises ``DegenerateVariance`` when it is 0."""
    var = population_variance(y)
    if var == 0.0:
        raise DegenerateVariance("response has zero variance; R² is undefined")
    return var


def r_squared_from_mse(mse_value: float, y) -> float:
    """``1 - mse / Var(y)``; raises ``DegenerateVariance`` for a constant ``y``."""
    return float(1.0 - mse_value / response_variance(y))


def holdout_r2(y_true, y_pred) -> float:
    return r_squared_from_mse(mse(y_true, y_pred), y_true)


def regression_metrics(y_true, y_pred) -> dict[str, float]:
    err = mse(y_true, y_pred)
    resid = np.asarray(y_true, dtype=float).ravel() - np.asarray(y_pred, dtype=float).ravel()
    return {
        "mse": err,
        "rmse": float(np.sqrt(err)),
        "mae": float(np.mean(np.abs(resid))),
        "r2": r_squared_from_mse(err, y_true),
    }
