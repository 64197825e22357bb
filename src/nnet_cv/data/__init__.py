"""Dataset acquisition and loading utilities."""

from .datasets import (
    DATASETS,
    NEWS,
    SHOPPING,
    DatasetSpec,
    download_dataset,
    get_dataset_spec,
    holdout_split,
    load_dataset,
    one_hot_align_train_test,
    subsample,
)

__all__ = [
    "DATASETS",
    "NEWS",
    "SHOPPING",
    "DatasetSpec",
    "download_dataset",
    "get_dataset_spec",
    "holdout_split",
    "load_dataset",
    "one_hot_align_train_test",
    "subsample",
]
