"""Run configuration: defaults, JSON file overrides and validation."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path
from typing import Any

from .errors import InvalidArgument
from .modeling.candidates import DEFAULT_DECAYS, DEFAULT_SIZES


@dataclass(frozen=True)
class RunConfig:
    dataset: str = "shopping"
    data_path: str | None = None
    output_dir: str = "results"
    seed: int = 42
    folds: int = 5
    repeats: int = 3
    sizes: tuple[int, ...] = DEFAULT_SIZES
    decays: tuple[float, ...] = DEFAULT_DECAYS
    optimizer: str = "grid"
    budget: int = 16
    max_rows: int | None = None
    test_size: float = 0.25
    max_iter: int = 500
    strict_convergence: bool = False
    n_jobs: int = 1
    ale_features: tuple[str, ...] = ()
    ale_bins: int = 20

    def validate(self) -> "RunConfig":
        if self.folds < 2:
            raise InvalidArgument("folds must be >= 2")
        if self.repeats < 1:
            raise InvalidArgument("repeats must be >= 1")
        if self.optimizer not in ("grid", "sobol"):
            raise InvalidArgument(f"optimizer must be 'grid' or 'sobol', got {self.optimizer!r}")
        if self.optimizer == "sobol" and self.budget < 1:
            raise InvalidArgument("budget must be >= 1 for optimizer='sobol'")
        if not 0.0 < self.test_size < 1.0:
            raise InvalidArgument("test_size must be between 0 and 1 (exclusive)")
        if self.max_rows is not None and self.max_rows < self.folds:
            raise InvalidArgument("max_rows must be >= folds")
        if self.ale_bins < 1:
            raise InvalidArgument("ale_bins must be >= 1")
        return self

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


_TUPLE_FIELDS = {"sizes", "decays", "ale_features"}


def _normalise(values: dict[str, Any]) -> dict[str, Any]:
    known = {f.name for f in fields(RunConfig)}
    unknown = sorted(set(values) - known)
    if unknown:
        raise InvalidArgument(f"Unknown config keys: {unknown}")
    out = dict(values)
    for key in _TUPLE_FIELDS & set(out):
        out[key] = tuple(out[key])
    return out


def load_run_config(path: str | Path | None = None, **overrides: Any) -> RunConfig:
    """Build a ``RunConfig`` from defaults, an optional JSON file and overrides.

    Overrides whose value is ``None`` are ignored so that unset CLI flags do
    not clobber values from the file.
    """
    config = RunConfig()
    if path is not None:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            raise InvalidArgument(f"Config file {path} must contain a JSON object")
        config = replace(config, **_normalise(data))

    given = {k: v for k, v in overrides.items() if v is not None}
    if given:
        config = replace(config, **_normalise(given))
    return config.validate()
