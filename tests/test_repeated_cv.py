from __future__ import annotations

import numpy as np
import pandas as pd
import pytest

from nnet_cv.errors import DegenerateVariance, InvalidArgument, TrainingFailure
from nnet_cv.folds import complement, make_folds
from nnet_cv.modeling import NNetConfig
from nnet_cv.repeated_cv import fold_seed, run_repeated_cv, run_single_repeat

MEAN = NNetConfig(size=1, decay=0.0)
ORACLE = NNetConfig(size=2, decay=0.0)


def _toy_data(n: int = 30, seed: int = 0) -> tuple[pd.DataFrame, np.ndarray]:
    rng = np.random.default_rng(seed)
    y = rng.normal(size=n) * 3.0 + 1.0
    # the first column leaks the response so the oracle model can be exact
    X = pd.DataFrame({"leak": y, "noise": rng.normal(size=n)})
    return X, y


def _train(X, y, config: NNetConfig, seed: int):
    if config == ORACLE:
        return "oracle"
    return float(np.mean(y))


def _predict(model, X) -> np.ndarray:
    if model == "oracle":
        return X["leak"].to_numpy()
    return np.full(len(X), model)


def test_every_row_gets_exactly_one_prediction_per_candidate() -> None:
    X, y = _toy_data(31)
    rep = run_single_repeat(
        X, y, [MEAN, ORACLE], n_folds=4, repeat_id=0, seed=5, train_fn=_train, predict_fn=_predict
    )

    for cand in (MEAN, ORACLE):
        assert rep.oof_predictions[cand].shape == (31,)
        assert np.all(np.isfinite(rep.oof_predictions[cand]))
    assert sorted(np.concatenate(rep.folds).tolist()) == list(range(31))


def test_oof_predictions_come_from_models_that_never_saw_the_row() -> None:
    X, y = _toy_data(20)
    rep = run_single_repeat(
        X, y, [MEAN], n_folds=4, repeat_id=1, seed=3, train_fn=_train, predict_fn=_predict
    )

    for fold_id, test_idx in enumerate(rep.folds):
        expected = np.mean(y[complement(rep.folds, fold_id)])
        assert np.allclose(rep.oof_predictions[MEAN][test_idx], expected)


def test_trainer_called_repeats_times_folds_times_candidates() -> None:
    X, y = _toy_data(24)
    calls: list[tuple[NNetConfig, int]] = []
    candidates = [NNetConfig(size=s, decay=0.1) for s in (1, 2, 3)]

    def counting_train(X_tr, y_tr, config, seed):
        calls.append((config, seed))
        return float(np.mean(y_tr))

    run_repeated_cv(
        X,
        y,
        candidates,
        n_folds=4,
        n_repeats=2,
        seed=11,
        train_fn=counting_train,
        predict_fn=_predict,
    )

    assert len(calls) == 2 * 4 * 3
    expected_seeds = {fold_seed(11 + j, k) for j in range(2) for k in range(4)}
    assert {seed for _, seed in calls} == expected_seeds


def test_exact_predictions_give_r2_of_one() -> None:
    X, y = _toy_data(30)
    result = run_repeated_cv(
        X, y, [ORACLE], n_folds=3, n_repeats=2, seed=0, train_fn=_train, predict_fn=_predict
    )

    assert result.r2()[ORACLE] == pytest.approx(1.0)
    assert np.allclose(result.mse_table[ORACLE.name], 0.0)


def test_predicting_the_full_mean_gives_r2_of_zero() -> None:
    X, y = _toy_data(30)
    y_bar = float(np.mean(y))

    result = run_repeated_cv(
        X,
        y,
        [MEAN],
        n_folds=3,
        n_repeats=2,
        seed=0,
        train_fn=lambda X_tr, y_tr, config, seed: y_bar,
        predict_fn=_predict,
    )

    assert result.r2()[MEAN] == pytest.approx(0.0, abs=1e-12)


def test_averaged_mse_matches_manual_out_of_fold_computation() -> None:
    X, y = _toy_data(30, seed=4)
    seed = 17

    result = run_repeated_cv(
        X, y, [MEAN], n_folds=3, n_repeats=2, seed=seed, train_fn=_train, predict_fn=_predict
    )

    per_repeat = []
    for j in range(2):
        folds = make_folds(30, 3, random_state=seed + j)
        yhat = np.empty(30)
        for k, test_idx in enumerate(folds):
            yhat[test_idx] = np.mean(y[complement(folds, k)])
        per_repeat.append(np.sum((y - yhat) ** 2) / 30)

    assert result.mse_table[MEAN.name].tolist() == pytest.approx(per_repeat)
    summary = result.summary.set_index("candidate")
    assert summary.loc[MEAN.name, "mean_mse"] == pytest.approx(np.mean(per_repeat))
    assert summary.loc[MEAN.name, "r2"] == pytest.approx(1 - np.mean(per_repeat) / np.var(y))


def test_repeats_use_fresh_partitions() -> None:
    X, y = _toy_data(40)
    result = run_repeated_cv(
        X, y, [MEAN], n_folds=4, n_repeats=2, seed=1, train_fn=_train, predict_fn=_predict
    )

    first, second = result.repeats
    assert first.seed == 1 and second.seed == 2
    assert not all(np.array_equal(a, b) for a, b in zip(first.folds, second.folds))


def test_summary_and_best_candidate() -> None:
    X, y = _toy_data(30)
    result = run_repeated_cv(
        X, y, [MEAN, ORACLE], n_folds=5, n_repeats=3, seed=2, train_fn=_train, predict_fn=_predict
    )

    assert result.mse_table.shape == (3, 2)
    assert list(result.summary.columns) == ["candidate", "size", "decay", "mean_mse", "std_mse", "r2"]
    assert result.best_candidate() == ORACLE


def test_single_repeat_summary_has_zero_spread() -> None:
    X, y = _toy_data(12)
    result = run_repeated_cv(
        X, y, [MEAN], n_folds=3, n_repeats=1, seed=0, train_fn=_train, predict_fn=_predict
    )
    assert result.summary["std_mse"].tolist() == [0.0]


def test_numpy_inputs_are_accepted() -> None:
    X, y = _toy_data(15)
    result = run_repeated_cv(
        X.to_numpy(),
        y,
        [MEAN],
        n_folds=3,
        n_repeats=1,
        seed=0,
        train_fn=_train,
        predict_fn=lambda model, X_te: np.full(len(X_te), model),
    )
    assert np.isfinite(result.r2()[MEAN])


def test_training_failure_carries_context() -> None:
    X, y = _toy_data(12)

    def flaky_train(X_tr, y_tr, config, seed):
        if config == ORACLE and seed == fold_seed(0, 1):
            raise FloatingPointError("did not converge")
        return _train(X_tr, y_tr, config, seed)

    with pytest.raises(TrainingFailure) as excinfo:
        run_repeated_cv(
            X, y, [MEAN, ORACLE], n_folds=3, n_repeats=2, seed=0, train_fn=flaky_train, predict_fn=_predict
        )

    err = excinfo.value
    assert err.repeat_id == 0
    assert err.fold_id == 1
    assert err.candidate == ORACLE
    assert isinstance(err.__cause__, FloatingPointError)
    assert "did not converge" in str(err)


def test_non_finite_predictions_are_a_training_failure() -> None:
    X, y = _toy_data(12)

    with pytest.raises(TrainingFailure, match="non-finite"):
        run_repeated_cv(
            X,
            y,
            [MEAN],
            n_folds=3,
            n_repeats=1,
            seed=0,
            train_fn=_train,
            predict_fn=lambda model, X_te: np.full(len(X_te), np.nan),
        )


def test_constant_response_is_degenerate_before_training() -> None:
    X, _ = _toy_data(12)
    calls: list[int] = []

    def train(X_tr, y_tr, config, seed):
        calls.append(seed)
        return 0.0

    with pytest.raises(DegenerateVariance):
        run_repeated_cv(
            X, np.full(12, 4.2), [MEAN], n_folds=3, n_repeats=1, seed=0, train_fn=train, predict_fn=_predict
        )
    assert calls == []


@pytest.mark.parametrize("value", [0.1, 0.3, 4.2])
@pytest.mark.parametrize("n", [3, 10, 30])
def test_constant_response_with_rounding_noise_is_degenerate(value: float, n: int) -> None:
    X = pd.DataFrame({"leak": np.arange(n, dtype=float)})

    with pytest.raises(DegenerateVariance):
        run_repeated_cv(
            X,
            np.full(n, value),
            [MEAN],
            n_folds=3,
            n_repeats=1,
            seed=0,
            train_fn=lambda X_tr, y_tr, config, seed: value + 0.1,
            predict_fn=_predict,
        )
    with pytest.raises(DegenerateVariance):
        run_single_repeat(
            X, np.full(n, value), [MEAN], n_folds=3, repeat_id=0, seed=0, train_fn=_train, predict_fn=_predict
        )


def test_fold_seeds_fit_random_state_range_and_stay_distinct() -> None:
    for repeat_seed in (0, 1, 429_497, 500_000, 2**40):
        for k in range(50):
            seed = fold_seed(repeat_seed, 10_000 + k)
            assert 0 <= seed <= 2**32 - 1
            assert seed != fold_seed(repeat_seed + 1, k)
            assert seed != fold_seed(repeat_seed, k)
    assert fold_seed(3, 1) == fold_seed(3, 1)


def test_single_repeat_validates_inputs() -> None:
    X, y = _toy_data(10)
    kwargs = dict(train_fn=_train, predict_fn=_predict, repeat_id=0, seed=0)

    with pytest.raises(InvalidArgument, match="same length"):
        run_single_repeat(X.iloc[:5], y, [MEAN], n_folds=3, **kwargs)
    with pytest.raises(InvalidArgument):
        run_single_repeat(X, y, [MEAN], n_folds=11, **kwargs)
    with pytest.raises(InvalidArgument):
        run_single_repeat(X, y, [MEAN], n_folds=3, train_fn=_train, predict_fn=_predict, repeat_id=-1, seed=0)


def test_invalid_run_arguments() -> None:
    X, y = _toy_data(10)
    kwargs = dict(train_fn=_train, predict_fn=_predict, seed=0)

    with pytest.raises(InvalidArgument):
        run_repeated_cv(X, y, [], n_folds=3, n_repeats=1, **kwargs)
    with pytest.raises(InvalidArgument, match="duplicate"):
        run_repeated_cv(X, y, [MEAN, NNetConfig(1, 0.0)], n_folds=3, n_repeats=1, **kwargs)
    with pytest.raises(InvalidArgument):
        run_repeated_cv(X, y, [MEAN], n_folds=1, n_repeats=1, **kwargs)
    with pytest.raises(InvalidArgument):
        run_repeated_cv(X, y, [MEAN], n_folds=11, n_repeats=1, **kwargs)
    with pytest.raises(InvalidArgument):
        run_repeated_cv(X, y, [MEAN], n_folds=3, n_repeats=0, **kwargs)
    with pytest.raises(InvalidArgument):
        run_repeated_cv(X.iloc[:5], y, [MEAN], n_folds=3, n_repeats=1, **kwargs)
