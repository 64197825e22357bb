"""End-to-end run: load, split, tune by repeated CV, refit, evaluate, explain."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

import joblib

from .config import RunConfig
from .data import holdout_split, load_dataset, one_hot_align_train_test, subsample
from .experiment_utils import create_run_metadata, generate_run_id, set_global_seed
from .explain import compute_ale, plot_ale
from .metrics import regression_metrics
from .modeling import (
    NNetConfig,
    grid_candidates,
    make_nnet_trainer,
    predict_nnet,
    sobol_candidates,
    train_nnet,
)
from .repeated_cv import CVResult, run_repeated_cv
from .report import R2_PLOT, plot_cv_r2, write_cv_artifacts, write_json, write_markdown_report

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RunArtifacts:
    run_id: str
    results_dir: Path
    summary_path: Path
    holdout_path: Path
    model_path: Path
    best: NNetConfig
    holdout_metrics: dict[str, float]
    cv_result: CVResult


def build_candidates(config: RunConfig) -> list[NNetConfig]:
    if config.optimizer == "sobol":
        return sobol_candidates(budget=config.budget, seed=config.seed)
    return grid_candidates(config.sizes, config.decays)


def run_from_config(
    config: RunConfig,
    *,
    run_id: str | None = None,
) -> RunArtifacts:
    config.validate()
    set_global_seed(config.seed)
    run_id = run_id or generate_run_id(prefix=f"nnet-cv-{config.dataset}")
    results_dir = Path(config.output_dir) / run_id
    results_dir.mkdir(parents=True, exist_ok=True)

    X_raw, y = load_dataset(config.dataset, config.data_path)
    if config.max_rows is not None:
        X_raw, y = subsample(X_raw, y, max_rows=config.max_rows, seed=config.seed)
        logger.info("Subsampled to %d rows", len(X_raw))

    X_train_raw, X_test_raw, y_train, y_test = holdout_split(
        X_raw, y, test_size=config.test_size, seed=config.seed
    )
    X_train, X_test = one_hot_align_train_test(X_train_raw, X_test_raw)
    logger.info("Train=%s Test=%s features=%d", len(X_train), len(X_test), X_train.shape[1])

    candidates = build_candidates(config)
    logger.info("Evaluating %d candidates: %s", len(candidates), [c.name for c in candidates])

    train_fn = make_nnet_trainer(
        max_iter=config.max_iter,
        strict_convergence=config.strict_convergence,
    )
    cv_result = run_repeated_cv(
        X_train,
        y_train,
        candidates,
        n_folds=config.folds,
        n_repeats=config.repeats,
        seed=config.seed,
        train_fn=train_fn,
        predict_fn=predict_nnet,
        n_jobs=config.n_jobs,
    )
    paths = write_cv_artifacts(cv_result, results_dir)
    plots = [str(results_dir / R2_PLOT)]
    plot_cv_r2(cv_result.summary, plots[0], title=f"{config.dataset}: repeated CV R² by candidate")

    best = cv_result.best_candidate()
    logger.info("Best candidate %s (CV R²=%.4f)", best.name, cv_result.r2()[best])

    final_model = train_nnet(
        X_train,
        y_train,
        best,
        random_state=config.seed,
        max_iter=config.max_iter,
        strict_convergence=config.strict_convergence,
    )
    holdout = regression_metrics(y_test, predict_nnet(final_model, X_test))
    holdout["cv_r2"] = float(cv_result.r2()[best])
    holdout_path = results_dir / "holdout_metrics.json"
    write_json(holdout_path, {"best": best.name, **holdout})
    logger.info("Held-out R²=%.4f MSE=%.6g", holdout["r2"], holdout["mse"])

    for feature in config.ale_features:
        ale = compute_ale(
            lambda frame: predict_nnet(final_model, frame),
            X_train,
            feature,
            n_bins=config.ale_bins,
        )
        ale.to_csv(results_dir / f"ale_{feature}.csv", index=False)
        out = results_dir / f"ale_{feature}.png"
        plot_ale(ale, feature, out, title=f"ALE of {feature} ({best.name})")
        plots.append(str(out))

    model_path = results_dir / "final_model.joblib"
    joblib.dump(final_model, model_path)

    metadata = create_run_metadata(
        run_id=run_id,
        seed=config.seed,
        extra={
            "config": config.to_dict(),
            "candidates": [c.name for c in candidates],
            "best": best.name,
            "n_train": len(X_train),
            "n_test": len(X_test),
            "feature_columns": list(X_train.columns),
        },
    )
    write_json(results_dir / "run_metadata.json", metadata)
    write_markdown_report(
        out_path=results_dir / "report.md",
        dataset=config.dataset,
        result=cv_result,
        holdout=holdout,
        plots=plots,
    )

    return RunArtifacts(
        run_id=run_id,
        results_dir=results_dir,
        summary_path=paths["summary"],
        holdout_path=holdout_path,
        model_path=model_path,
        best=best,
        holdout_metrics=holdout,
        cv_result=cv_result,
    )
