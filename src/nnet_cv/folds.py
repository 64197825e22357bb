"""Random k-fold partitioning with repeat metadata."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator

import numpy as np

from .errors import InvalidArgument


@dataclass(frozen=True)
class CVFold:
    repeat_id: int
    fold_id: int
    train_idx: np.ndarray
    test_idx: np.ndarray
    seed: int


def check_int(name: str, value: object, minimum: int) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
        raise InvalidArgument(f"{name} must be an integer, got {value!r}")
    if value < minimum:
        raise InvalidArgument(f"{name} must be >= {minimum}, got {value}")
    return int(value)


def fold_sizes(n: int, kp: int) -> list[int]:
    """Sizes of the ``kp`` folds in fold order; the first ``n % kp`` get one extra."""
    n = check_int("n", n, 1)
    kp = check_int("kp", kp, 1)
    if kp > n:
        raise InvalidArgument(f"kp must be <= n (kp={kp}, n={n})")

    m = n // kp
    r = n - m * kp
    return [m + 1 if k < r else m for k in range(kp)]


def make_folds(
    n: int,
    kp: int,
    *,
    random_state: int | np.random.Generator | None = None,
) -> tuple[np.ndarray, ...]:
    """Partition ``0..n-1`` into ``kp`` near-equal random groups.

    A single uniform permutation of the indices is drawn and cut into
    contiguous slices: the first ``n % kp`` slices have ``n // kp + 1``
    elements, the rest ``n // kp``. The same seed always gives the same
    partition.
    """
    sizes = fold_sizes(n, kp)

    rng = np.random.default_rng(random_state)
    perm = rng.permutation(n)

    bounds = np.concatenate([[0], np.cumsum(sizes)])
    return tuple(perm[bounds[k]:bounds[k + 1]] for k in range(len(sizes)))


def complement(folds: tuple[np.ndarray, ...], fold_id: int) -> np.ndarray:
    """Indices of every fold except ``fold_id``, in ascending order."""
    others = [group for k, group in enumerate(folds) if k != fold_id]
    if not others:
        return np.empty(0, dtype=np.int64)
    return np.sort(np.concatenate(others))


def iter_cv_folds(
    n: int,
    *,
    n_folds: int,
    n_repeats: int,
    seed: int,
) -> Iterator[CVFold]:
    """Yield train/test splits for repeated k-fold CV with repeat metadata."""
    n_repeats = check_int("n_repeats", n_repeats, 1)
    for repeat_id in range(n_repeats):
        repeat_seed = seed + repeat_id
        folds = make_folds(n, n_folds, random_state=repeat_seed)
        for fold_id, test_idx in enumerate(folds):
            yield CVFold(
                repeat_id=repeat_id,
                fold_id=fold_id,
                train_idx=complement(folds, fold_id),
                test_idx=test_idx,
                seed=repeat_seed,
            )
