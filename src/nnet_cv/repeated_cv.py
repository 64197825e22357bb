"""Repeated k-fold cross-validation with out-of-fold predictions.

Each repeat draws a fresh partition, trains every candidate on the
complement of each fold and predicts the held-out rows, so that by the end
of the repeat every row carries exactly one out-of-fold prediction per
candidate. The repeat's MSE is computed from that assembled vector (not as
an average of per-fold scores). Repeats are returned as immutable
``RepeatResult`` records and merged into a ``CVResult`` by the caller.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Mapping

import numpy as np
import pandas as pd
from joblib import Parallel, delayed

from .errors import InvalidArgument, TrainingFailure
from .folds import check_int, complement, make_folds
from .metrics import mse, response_variance
from .modeling.candidates import validate_candidates
from .modeling.nnet import NNetConfig, make_nnet_trainer, predict_nnet

logger = logging.getLogger(__name__)

TrainFn = Callable[[Any, np.ndarray, NNetConfig, int], Any]
PredictFn = Callable[[Any, Any], np.ndarray]


def fold_seed(repeat_seed: int, fold_id: int) -> int:
    """Seed handed to the trainer for one fold of one repeat.

    Always in ``[0, 2**32 - 1]``, the range scikit-learn accepts for
    ``random_state``, and distinct per ``(repeat_seed, fold_id)``.
    """
    state = np.random.SeedSequence([repeat_seed, fold_id]).generate_state(1)
    return int(state[0])


def _check_inputs(X, y, n_folds: int) -> tuple[np.ndarray, float]:
    y_arr = np.asarray(y, dtype=float).ravel()
    if len(X) != len(y_arr):
        raise InvalidArgument(f"X and y must have the same length ({len(X)} != {len(y_arr)})")
    if n_folds > len(y_arr):
        raise InvalidArgument(f"n_folds must be <= n (n_folds={n_folds}, n={len(y_arr)})")
    return y_arr, response_variance(y_arr)


@dataclass(frozen=True)
class RepeatResult:
    repeat_id: int
    seed: int
    folds: tuple[np.ndarray, ...]
    oof_predictions: Mapping[NNetConfig, np.ndarray]
    mse: Mapping[NNetConfig, float]


@dataclass(frozen=True)
class CVResult:
    candidates: tuple[NNetConfig, ...]
    repeats: tuple[RepeatResult, ...]
    response_variance: float
    n_folds: int
    seed: int

    @property
    def mse_table(self) -> pd.DataFrame:
        """Per-repeat MSE, one row per repeat and one column per candidate."""
        rows = [[rep.mse[c] for c in self.candidates] for rep in self.repeats]
        return pd.DataFrame(
            rows,
            index=pd.Index([rep.repeat_id for rep in self.repeats], name="repeat"),
            columns=[c.name for c in self.candidates],
        )

    @property
    def summary(self) -> pd.DataFrame:
        table = self.mse_table
        mean_mse = table.mean(axis=0)
        std_mse = table.std(axis=0, ddof=1).fillna(0.0)
        return pd.DataFrame(
            {
                "candidate": [c.name for c in self.candidates],
                "size": [c.size for c in self.candidates],
                "decay": [c.decay for c in self.candidates],
                "mean_mse": mean_mse.to_numpy(),
                "std_mse": std_mse.to_numpy(),
                "r2": 1.0 - mean_mse.to_numpy() / self.response_variance,
            }
        )

    def r2(self) -> dict[NNetConfig, float]:
        summary = self.summary
        return dict(zip(self.candidates, summary["r2"].astype(float)))

    def best_candidate(self) -> NNetConfig:
        summary = self.summary
        return self.candidates[int(summary["mean_mse"].to_numpy().argmin())]


def _take_rows(X, idx: np.ndarray):
    if isinstance(X, (pd.DataFrame, pd.Series)):
        return X.iloc[idx]
    return np.asarray(X)[idx]


def _fit_predict(
    X_train,
    y_train: np.ndarray,
    X_test,
    candidate: NNetConfig,
    *,
    seed: int,
    train_fn: TrainFn,
    predict_fn: PredictFn,
    repeat_id: int,
    fold_id: int,
) -> np.ndarray:
    try:
        model = train_fn(X_train, y_train, candidate, seed)
        pred = np.asarray(predict_fn(model, X_test), dtype=float).ravel()
    except Exception as exc:
        raise TrainingFailure(
            f"{type(exc).__name__}: {exc}",
            repeat_id=repeat_id,
            fold_id=fold_id,
            candidate=candidate,
        ) from exc

    if pred.shape[0] != len(X_test):
        raise TrainingFailure(
            f"predict returned {pred.shape[0]} values for {len(X_test)} rows",
            repeat_id=repeat_id,
            fold_id=fold_id,
            candidate=candidate,
        )
    if not np.all(np.isfinite(pred)):
        raise TrainingFailure(
            "non-finite predictions",
            repeat_id=repeat_id,
            fold_id=fold_id,
            candidate=candidate,
        )
    return pred


def run_single_repeat(
    X,
    y,
    candidates: Iterable[NNetConfig],
    *,
    n_folds: int,
    repeat_id: int,
    seed: int,
    train_fn: TrainFn | None = None,
    predict_fn: PredictFn = predict_nnet,
    n_jobs: int = 1,
) -> RepeatResult:
    """Run one repeat with a partition drawn from ``seed + repeat_id``."""
    candidates = validate_candidates(candidates)
    train_fn = make_nnet_trainer() if train_fn is None else train_fn
    n_folds = check_int("n_folds", n_folds, 2)
    repeat_id = check_int("repeat_id", repeat_id, 0)
    seed = check_int("seed", seed, 0)
    y_arr, _ = _check_inputs(X, y, n_folds)
    n = len(y_arr)

    repeat_seed = seed + repeat_id
    folds = make_folds(n, n_folds, random_state=repeat_seed)
    oof = {cand: np.full(n, np.nan) for cand in candidates}

    for fold_id, test_idx in enumerate(folds):
        train_idx = complement(folds, fold_id)
        X_train = _take_rows(X, train_idx)
        X_test = _take_rows(X, test_idx)
        y_train = y_arr[train_idx]
        job_seed = fold_seed(repeat_seed, fold_id)

        logger.debug(
            "repeat=%s fold=%s train=%s test=%s seed=%s",
            repeat_id,
            fold_id,
            len(train_idx),
            len(test_idx),
            job_seed,
        )
        jobs = (
            delayed(_fit_predict)(
                X_train,
                y_train,
                X_test,
                cand,
                seed=job_seed,
                train_fn=train_fn,
                predict_fn=predict_fn,
                repeat_id=repeat_id,
                fold_id=fold_id,
            )
            for cand in candidates
        )
        if n_jobs == 1:
            preds = [fn(*args, **kwargs) for fn, args, kwargs in jobs]
        else:
            preds = Parallel(n_jobs=n_jobs)(jobs)

        for cand, pred in zip(candidates, preds):
            oof[cand][test_idx] = pred

    errors = {cand: mse(y_arr, oof[cand]) for cand in candidates}
    logger.info(
        "repeat=%s seed=%s best MSE=%.6g",
        repeat_id,
        repeat_seed,
        min(errors.values()),
    )
    return RepeatResult(
        repeat_id=repeat_id,
        seed=repeat_seed,
        folds=folds,
        oof_predictions=oof,
        mse=errors,
    )


def run_repeated_cv(
    X,
    y,
    candidates: Iterable[NNetConfig],
    *,
    n_folds: int,
    n_repeats: int,
    seed: int,
    train_fn: TrainFn | None = None,
    predict_fn: PredictFn = predict_nnet,
    n_jobs: int = 1,
) -> CVResult:
    """Estimate out-of-fold R² for every candidate by repeated k-fold CV.

    ``train_fn(X_train, y_train, candidate, seed)`` and
    ``predict_fn(model, X_test)`` are called ``n_repeats * n_folds *
    len(candidates)`` times. Any failure aborts the run with a
    ``TrainingFailure`` naming the repeat, fold and candidate.
    """
    candidates = validate_candidates(candidates)
    n_repeats = check_int("n_repeats", n_repeats, 1)
    n_folds = check_int("n_folds", n_folds, 2)
    seed = check_int("seed", seed, 0)
    y_arr, variance = _check_inputs(X, y, n_folds)

    logger.info(
        "Repeated CV: %s folds x %s repeats, %s candidates, n=%s",
        n_folds,
        n_repeats,
        len(candidates),
        len(y_arr),
    )

    repeats = tuple(
        run_single_repeat(
            X,
            y_arr,
            candidates,
            n_folds=n_folds,
            repeat_id=repeat_id,
            seed=seed,
            train_fn=train_fn,
            predict_fn=predict_fn,
            n_jobs=n_jobs,
        )
        for repeat_id in range(n_repeats)
    )

    return CVResult(
        candidates=candidates,
        repeats=repeats,
        response_variance=variance,
        n_folds=n_folds,
        seed=seed,
    )
