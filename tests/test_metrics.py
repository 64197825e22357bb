import numpy as np
import pytest

from nnet_cv.errors import DegenerateVariance, InvalidArgument
from nnet_cv.metrics import holdout_r2, mse, population_variance, r_squared_from_mse, regression_metrics


def test_mse_divides_by_n() -> None:
    assert mse([1.0, 2.0, 3.0], [1.0, 2.0, 5.0]) == pytest.approx(4.0 / 3.0)


def test_population_variance_uses_n() -> None:
    y = np.array([1.0, 2.0, 3.0, 4.0])
    assert population_variance(y) == pytest.approx(1.25)


def test_r2_bounds_for_exact_and_mean_predictions() -> None:
    y = np.array([3.0, -1.0, 2.0, 8.0, 0.5])
    assert holdout_r2(y, y) == pytest.approx(1.0)
    assert holdout_r2(y, np.full_like(y, y.mean())) == pytest.approx(0.0)


def test_r2_can_be_negative() -> None:
    y = np.array([0.0, 1.0, 2.0])
    assert holdout_r2(y, np.array([2.0, 1.0, 0.0])) < 0


def test_zero_variance_is_reported_distinctly() -> None:
    with pytest.raises(DegenerateVariance):
        r_squared_from_mse(0.5, [2.0, 2.0, 2.0])


@pytest.mark.parametrize("value", [0.1, 0.3, 4.2])
@pytest.mark.parametrize("n", [3, 10, 30])
def test_constant_vector_has_exactly_zero_variance(value: float, n: int) -> None:
    y = np.full(n, value)

    assert population_variance(y) == 0.0
    with pytest.raises(DegenerateVariance):
        holdout_r2(y, y + 0.1)


def test_shape_mismatch_and_empty_input() -> None:
    with pytest.raises(InvalidArgument):
        mse([1.0, 2.0], [1.0])
    with pytest.raises(InvalidArgument):
        mse([], [])


def test_regression_metrics_keys() -> None:
    out = regression_metrics([1.0, 2.0, 3.0], [1.5, 2.0, 2.5])
    assert set(out) == {"mse", "rmse", "mae", "r2"}
    assert out["rmse"] == pytest.approx(np.sqrt(out["mse"]))
    assert out["mae"] == pytest.approx(1.0 / 3.0)
