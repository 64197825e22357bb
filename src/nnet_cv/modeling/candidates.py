"""Candidate (size, decay) sets: a full grid or a scrambled Sobol sample."""

from __future__ import annotations

import math
from typing import Any, Dict, Iterable, List, Sequence

from scipy.stats import qmc
from sklearn.model_selection import ParameterGrid

from ..errors import InvalidArgument
from .nnet import NNetConfig

DEFAULT_SIZES = (1, 3, 5, 10)
DEFAULT_DECAYS = (0.0, 0.01, 0.1, 1.0)

DEFAULT_SPACE = {
    "size": {"type": "int", "low": 1, "high": 15},
    "decay": {"type": "float", "low": 1e-4, "high": 10.0, "log": True},
}


def validate_candidates(candidates: Iterable[NNetConfig]) -> tuple[NNetConfig, ...]:
    """Check that the candidate set is non-empty and has no duplicates."""
    out = tuple(candidates)
    if not out:
        raise InvalidArgument("candidate set must be non-empty")
    for cand in out:
        if not isinstance(cand, NNetConfig):
            raise InvalidArgument(f"candidates must be NNetConfig, got {type(cand).__name__}")
    if len(set(out)) != len(out):
        dupes = sorted({c.name for c in out if out.count(c) > 1})
        raise InvalidArgument(f"duplicate candidates: {dupes}")
    return out


def grid_candidates(
    sizes: Sequence[int] = DEFAULT_SIZES,
    decays: Sequence[float] = DEFAULT_DECAYS,
) -> List[NNetConfig]:
    if not sizes or not decays:
        raise InvalidArgument("sizes and decays must both be non-empty")

    out: List[NNetConfig] = []
    for params in ParameterGrid({"size": list(sizes), "decay": list(decays)}):
        cand = NNetConfig(size=params["size"], decay=params["decay"])
        if cand not in out:
            out.append(cand)
    # ParameterGrid iterates keys alphabetically; present size-major order
    return sorted(out)


def _map_u(u: float, spec: Dict[str, Any]) -> Any:
    t = spec["type"]
    if t == "float":
        lo, hi = float(spec["low"]), float(spec["high"])
        if spec.get("log", False):
            lo, hi = math.log(lo), math.log(hi)
            val = math.exp(lo + u * (hi - lo))
        else:
            val = lo + u * (hi - lo)
        # 3 significant digits, kept inside the declared bounds
        return min(max(float(f"{val:.3g}"), float(spec["low"])), float(spec["high"]))

    if t == "int":
        lo, hi = int(spec["low"]), int(spec["high"])
        return int(lo + math.floor(u * (hi - lo + 1)))

    raise InvalidArgument(f"Unknown param spec type: {t}")


def sobol_candidates(
    space: Dict[str, Dict[str, Any]] | None = None,
    *,
    budget: int,
    seed: int,
) -> List[NNetConfig]:
    """Sample up to ``budget`` distinct candidates with a scrambled Sobol sequence."""
    space = DEFAULT_SPACE if space is None else space
    if set(space) != {"size", "decay"}:
        raise InvalidArgument("space must define exactly 'size' and 'decay'")
    if budget < 1:
        raise InvalidArgument(f"budget must be >= 1, got {budget}")

    keys = list(space.keys())
    m = int(math.ceil(math.log2(max(budget, 1))))
    engine = qmc.Sobol(d=len(keys), scramble=True, seed=seed)
    U = engine.random_base2(m=m)[:budget]

    out: List[NNetConfig] = []
    for row in U:
        params = {k: _map_u(float(u), space[k]) for k, u in zip(keys, row)}
        cand = NNetConfig(size=params["size"], decay=params["decay"])
        if cand not in out:
            out.append(cand)
    return out
