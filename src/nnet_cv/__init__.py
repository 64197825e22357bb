"""Repeated k-fold tuning of single-hidden-layer regression networks."""

from .errors import DegenerateVariance, InvalidArgument, NNetCVError, TrainingFailure
from .folds import CVFold, fold_sizes, iter_cv_folds, make_folds
from .metrics import holdout_r2, mse, population_variance, r_squared_from_mse
from .modeling import NNetConfig, grid_candidates, sobol_candidates
from .repeated_cv import CVResult, RepeatResult, run_repeated_cv, run_single_repeat

__version__ = "0.1.0"

__all__ = [
    "CVFold",
    "CVResult",
    "DegenerateVariance",
    "InvalidArgument",
    "NNetCVError",
    "NNetConfig",
    "RepeatResult",
    "TrainingFailure",
    "fold_sizes",
    "grid_candidates",
    "holdout_r2",
    "iter_cv_folds",
    "make_folds",
    "mse",
    "population_variance",
    "r_squared_from_mse",
    "run_repeated_cv",
    "run_single_repeat",
    "sobol_candidates",
]
