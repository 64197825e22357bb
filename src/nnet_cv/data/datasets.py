"""UCI tabular datasets: download, load, one-hot alignment and splits."""

from __future__ import annotations

import io
import logging
import zipfile
from dataclasses import dataclass
from pathlib import Path

import numpy as np
import pandas as pd
import requests
from sklearn.model_selection import train_test_split

from ..errors import InvalidArgument

logger = logging.getLogger(__name__)

DEFAULT_CACHE_DIR = Path("data")


@dataclass(frozen=True)
class DatasetSpec:
    name: str
    url: str
    filename: str
    response: str
    log_response: bool = False
    drop_columns: tuple[str, ...] = ()
    categorical_columns: tuple[str, ...] = ()
    # member of the downloaded zip archive holding the CSV, if any
    archive_member: str | None = None


SHOPPING = DatasetSpec(
    name="shopping",
    url="https://archive.ics.uci.edu/ml/machine-learning-databases/00468/online_shoppers_intention.csv",
    filename="online_shoppers_intention.csv",
    response="PageValues",
    categorical_columns=(
        "Month",
        "OperatingSystems",
        "Browser",
        "Region",
        "TrafficType",
        "VisitorType",
    ),
)

NEWS = DatasetSpec(
    name="news",
    url="https://archive.ics.uci.edu/ml/machine-learning-databases/00332/OnlineNewsPopularity.zip",
    filename="OnlineNewsPopularity.csv",
    response="shares",
    log_response=True,
    drop_columns=("url", "timedelta"),
    archive_member="OnlineNewsPopularity/OnlineNewsPopularity.csv",
)

DATASETS: dict[str, DatasetSpec] = {spec.name: spec for spec in (SHOPPING, NEWS)}


def get_dataset_spec(name: str) -> DatasetSpec:
    try:
        return DATASETS[name]
    except KeyError:
        raise InvalidArgument(
            f"Unknown dataset {name!r}; expected one of {sorted(DATASETS)}"
        ) from None


def download_dataset(name: str, cache_dir: str | Path = DEFAULT_CACHE_DIR) -> Path:
    """Download ``name`` into ``cache_dir`` unless it is already cached."""
    spec = get_dataset_spec(name)
    cache_dir = Path(cache_dir)
    cache_dir.mkdir(parents=True, exist_ok=True)
    path = cache_dir / spec.filename
    if path.exists():
        return path

    logger.info("Downloading %s from %s", spec.name, spec.url)
    resp = requests.get(spec.url, timeout=120)
    resp.raise_for_status()

    if spec.archive_member is not None:
        with zipfile.ZipFile(io.BytesIO(resp.content)) as archive:
            path.write_bytes(archive.read(spec.archive_member))
    else:
        path.write_bytes(resp.content)

    logger.info("Saved %s (%d bytes)", path, path.stat().st_size)
    return path


def load_dataset(
    name: str,
    path: str | Path | None = None,
    *,
    response: str | None = None,
    log_response: bool | None = None,
    cache_dir: str | Path = DEFAULT_CACHE_DIR,
) -> tuple[pd.DataFrame, pd.Series]:
    """Load a dataset as predictors ``X`` and numeric response ``y``.

    ``path`` points at a local CSV; when omitted the file is downloaded into
    ``cache_dir``. Rows with missing values are dropped, booleans become 0/1
    and the columns listed as categorical are kept as strings so that they
    can be one-hot encoded per fold.
    """
    spec = get_dataset_spec(name)
    response = spec.response if response is None else response
    log_response = spec.log_response if log_response is None else log_response

    csv_path = Path(path) if path is not None else download_dataset(name, cache_dir)
    frame = pd.read_csv(csv_path, skipinitialspace=True)
    # the news CSV pads its header names with spaces
    frame.columns = [str(c).strip() for c in frame.columns]

    if response not in frame.columns:
        raise InvalidArgument(f"Response column {response!r} not found in {csv_path}")

    frame = frame.drop(columns=[c for c in spec.drop_columns if c in frame.columns])
    frame = frame.dropna().reset_index(drop=True)

    y = frame.pop(response).astype(float)
    if log_response:
        if (y < 0).any():
            raise InvalidArgument(f"Cannot log-transform negative values in {response!r}")
        y = np.log1p(y)
    y.name = response

    for col in frame.columns:
        if frame[col].dtype == bool:
            frame[col] = frame[col].astype(int)
    for col in spec.categorical_columns:
        if col in frame.columns:
            frame[col] = frame[col].astype(str)

    logger.info("Loaded %s: X=%s y_mean=%.4f y_var=%.4f", name, frame.shape, y.mean(), y.var(ddof=0))
    return frame, y


def one_hot_align_train_test(
    X_train: pd.DataFrame,
    X_test: pd.DataFrame,
    *,
    drop_first: bool = False,
) -> tuple[pd.DataFrame, pd.DataFrame]:
    """One-hot encode train and test separately and align test to train columns.

    Categories seen only in test are dropped; categories missing from test
    are filled with 0.
    """
    X_train_oh = pd.get_dummies(X_train, drop_first=drop_first)
    X_test_oh = pd.get_dummies(X_test, drop_first=drop_first)

    X_test_oh = X_test_oh.reindex(columns=X_train_oh.columns, fill_value=0)

    return X_train_oh.astype(float), X_test_oh.astype(float)


def holdout_split(
    X: pd.DataFrame,
    y: pd.Series,
    *,
    test_size: float = 0.25,
    seed: int = 42,
) -> tuple[pd.DataFrame, pd.DataFrame, pd.Series, pd.Series]:
    if not 0.0 < test_size < 1.0:
        raise InvalidArgument("test_size must be between 0 and 1 (exclusive)")
    X_train, X_test, y_train, y_test = train_test_split(
        X, y, test_size=test_size, random_state=seed
    )
    return (
        X_train.reset_index(drop=True),
        X_test.reset_index(drop=True),
        y_train.reset_index(drop=True),
        y_test.reset_index(drop=True),
    )


def subsample(
    X: pd.DataFrame,
    y: pd.Series,
    *,
    max_rows: int,
    seed: int,
) -> tuple[pd.DataFrame, pd.Series]:
    """Keep at most ``max_rows`` randomly chosen rows."""
    if max_rows < 1:
        raise InvalidArgument(f"max_rows must be >= 1, got {max_rows}")
    if len(X) <= max_rows:
        return X, y
    rng = np.random.default_rng(seed)
    idx = np.sort(rng.choice(len(X), size=max_rows, replace=False))
    return X.iloc[idx].reset_index(drop=True), y.iloc[idx].reset_index(drop=True)
