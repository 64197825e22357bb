"""Single-hidden-layer regression network used as the trainable model."""

from __future__ import annotations

import warnings
from dataclasses import dataclass

import numpy as np
import pandas as pd
from sklearn.exceptions import ConvergenceWarning
from sklearn.neural_network import MLPRegressor
from sklearn.pipeline import Pipeline
from sklearn.preprocessing import StandardScaler

from ..errors import InvalidArgument

DEFAULT_MAX_ITER = 500


@dataclass(frozen=True, order=True)
class NNetConfig:
    """Hidden-layer width and weight-decay coefficient of one candidate."""

    size: int
    decay: float

    def __post_init__(self) -> None:
        if isinstance(self.size, bool) or int(self.size) != self.size or self.size < 1:
            raise InvalidArgument(f"size must be a positive integer, got {self.size!r}")
        if not np.isfinite(self.decay) or self.decay < 0:
            raise InvalidArgument(f"decay must be a non-negative number, got {self.decay!r}")
        object.__setattr__(self, "size", int(self.size))
        object.__setattr__(self, "decay", float(self.decay))

    @property
    def name(self) -> str:
        return f"size={self.size},decay={self.decay:g}"

    def __str__(self) -> str:
        return self.name


def build_nnet(
    config: NNetConfig,
    *,
    random_state: int | None = None,
    max_iter: int = DEFAULT_MAX_ITER,
) -> Pipeline:
    # lbfgs with a logistic hidden layer and linear output, inputs standardised
    net = MLPRegressor(
        hidden_layer_sizes=(config.size,),
        activation="logistic",
        solver="lbfgs",
        alpha=config.decay,
        max_iter=max_iter,
        random_state=random_state,
    )
    return Pipeline([("scale", StandardScaler()), ("net", net)])


def train_nnet(
    X: pd.DataFrame | np.ndarray,
    y: pd.Series | np.ndarray,
    config: NNetConfig,
    *,
    random_state: int | None = None,
    max_iter: int = DEFAULT_MAX_ITER,
    strict_convergence: bool = False,
) -> Pipeline:
    """Fit a network for ``config``.

    With ``strict_convergence`` a ``ConvergenceWarning`` from the optimiser
    is raised as an error instead of being emitted as a warning.
    """
    model = build_nnet(config, random_state=random_state, max_iter=max_iter)
    X_arr = np.asarray(X, dtype=float)
    y_arr = np.asarray(y, dtype=float).ravel()

    with warnings.catch_warnings():
        if strict_convergence:
            warnings.simplefilter("error", ConvergenceWarning)
        else:
            warnings.simplefilter("ignore", ConvergenceWarning)
        model.fit(X_arr, y_arr)
    return model


def predict_nnet(model: Pipeline, X: pd.DataFrame | np.ndarray) -> np.ndarray:
    return np.asarray(model.predict(np.asarray(X, dtype=float)), dtype=float).ravel()


def make_nnet_trainer(
    *,
    max_iter: int = DEFAULT_MAX_ITER,
    strict_convergence: bool = False,
):
    """Return a ``train_fn(X, y, config, seed)`` for the CV driver."""

    def train_fn(X, y, config: NNetConfig, seed: int) -> Pipeline:
        return train_nnet(
            X,
            y,
            config,
            random_state=seed,
            max_iter=max_iter,
            strict_convergence=strict_convergence,
        )

    return train_fn
