"""Trainable network and candidate generation."""

from .candidates import grid_candidates, sobol_candidates, validate_candidates
from .nnet import NNetConfig, build_nnet, make_nnet_trainer, predict_nnet, train_nnet

__all__ = [
    "NNetConfig",
    "build_nnet",
    "grid_candidates",
    "make_nnet_trainer",
    "predict_nnet",
    "sobol_candidates",
    "train_nnet",
    "validate_candidates",
]
