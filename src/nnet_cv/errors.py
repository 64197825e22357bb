"""Exceptions raised by the cross-validation pipeline."""

from __future__ import annotations

from typing import Any


class NNetCVError(Exception):
    """Base class for all nnet_cv errors."""


class InvalidArgument(NNetCVError, ValueError):
    """Raised for malformed fold counts, repeat counts or candidate sets."""


class DegenerateVariance(NNetCVError, ValueError):
    """Raised when the response has zero variance and R² is undefined."""


class TrainingFailure(NNetCVError, RuntimeError):
    """A train or predict call failed for one (repeat, fold, candidate)."""

    def __init__(self, message: str, *, repeat_id: int, fold_id: int, candidate: Any) -> None:
        self.repeat_id = repeat_id
        self.fold_id = fold_id
        self.candidate = candidate
        super().__init__(
            f"{message} (repeat={repeat_id}, fold={fold_id}, candidate={candidate})"
        )
