"""Tables, plots and the markdown summary written after a run."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd

from .repeated_cv import CVResult

logger = logging.getLogger(__name__)

MSE_BY_REPEAT_CSV = "cv_mse_by_repeat.csv"
SUMMARY_CSV = "cv_summary.csv"
R2_PLOT = "cv_r2_by_candidate.png"


def write_json(path: str | Path, obj: dict[str, Any]) -> None:
    with open(path, "w", encoding="utf-8") as f:
        json.dump(obj, f, indent=2, sort_keys=True)


def fmt_mean_std(mean: float, std: float, ndigits: int = 4) -> str:
    return f"{mean:.{ndigits}f} ± {std:.{ndigits}f}"


def write_cv_artifacts(result: CVResult, out_dir: str | Path) -> dict[str, Path]:
    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)

    paths = {
        "mse_by_repeat": out_dir / MSE_BY_REPEAT_CSV,
        "summary": out_dir / SUMMARY_CSV,
    }
    result.mse_table.to_csv(paths["mse_by_repeat"])
    result.summary.sort_values("mean_mse").to_csv(paths["summary"], index=False)
    logger.info("Wrote CV tables to %s", out_dir)
    return paths


def plot_cv_r2(summary: pd.DataFrame, out_path: str | Path, *, title: str | None = None) -> None:
    """Bar chart of CV R² per candidate, error bars from the MSE spread."""
    labels = summary["candidate"].tolist()
    r2 = summary["r2"].to_numpy(dtype=float)
    # std of MSE across repeats mapped onto the R² scale
    mean_mse = summary["mean_mse"].to_numpy(dtype=float)
    with np.errstate(divide="ignore", invalid="ignore"):
        scale = np.where(mean_mse > 0, (1.0 - r2) / mean_mse, 0.0)
    err = summary["std_mse"].to_numpy(dtype=float) * scale

    x = np.arange(len(labels))

    plt.figure(figsize=(max(6.0, 0.6 * len(labels) + 2.0), 4.8))
    plt.bar(x, r2, yerr=err, capsize=4)
    plt.xticks(x, labels, rotation=60, ha="right", fontsize=8)
    plt.ylabel("cross-validated R²")
    plt.title(title or "Repeated k-fold CV R² by candidate")
    plt.axhline(0.0, linestyle="--", linewidth=1)
    plt.grid(axis="y", linestyle="--", linewidth=0.5, alpha=0.6)
    plt.tight_layout()
    plt.savefig(out_path, dpi=220)
    plt.close()


def write_markdown_report(
    *,
    out_path: str | Path,
    dataset: str,
    result: CVResult,
    holdout: dict[str, float],
    plots: list[str],
) -> None:
    summary = result.summary.sort_values("mean_mse").copy()
    summary["mse"] = [fmt_mean_std(m, s) for m, s in zip(summary["mean_mse"], summary["std_mse"])]
    summary["r2"] = summary["r2"].map(lambda v: f"{v:.4f}")
    best = result.best_candidate()

    lines: list[str] = []
    lines.append(f"# Repeated CV report: {dataset}")
    lines.append("")
    lines.append("## Selected configuration")
    lines.append(f"- Best candidate: **{best.name}**")
    lines.append(
        f"- {result.n_folds}-fold CV x {len(result.repeats)} repeats, seed {result.seed}"
    )
    lines.append("")
    lines.append("## Held-out performance (refit on full training set)")
    for key in ("r2", "mse", "rmse", "mae"):
        if key in holdout:
            lines.append(f"- {key.upper()}: **{float(holdout[key]):.4f}**")
    lines.append("")
    lines.append("## Cross-validated summary (MSE mean ± std across repeats)")
    lines.append("")
    lines.append("```")
    lines.append(summary[["candidate", "mse", "r2"]].to_string(index=False))
    lines.append("```")
    lines.append("")
    lines.append("## Generated plots")
    for p in plots:
        lines.append(f"- `{p}`")
    lines.append("")

    Path(out_path).write_text("\n".join(lines), encoding="utf-8")
