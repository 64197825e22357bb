"""Tune a single-hidden-layer network by repeated k-fold CV and report held-out R²."""

from __future__ import annotations

import argparse
import logging

from nnet_cv.config import load_run_config
from nnet_cv.data import DATASETS
from nnet_cv.experiment_utils import configure_logging, generate_run_id
from nnet_cv.pipeline import run_from_config


def _csv(cast):
    def parse(text: str):
        return tuple(cast(part) for part in text.split(",") if part.strip())

    return parse


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Repeated k-fold CV for nnet size/decay")
    parser.add_argument("--config", help="JSON file with RunConfig fields")
    parser.add_argument("--dataset", choices=sorted(DATASETS))
    parser.add_argument("--data-path", help="Local CSV instead of downloading")
    parser.add_argument("--output-dir", help="Base output dir")
    parser.add_argument("--seed", type=int)
    parser.add_argument("--folds", type=int)
    parser.add_argument("--repeats", type=int)
    parser.add_argument("--sizes", type=_csv(int), help="Comma-separated hidden sizes")
    parser.add_argument("--decays", type=_csv(float), help="Comma-separated weight decays")
    parser.add_argument("--optimizer", choices=["grid", "sobol"])
    parser.add_argument("--budget", type=int, help="Candidates to sample for optimizer=sobol")
    parser.add_argument("--max-rows", type=int)
    parser.add_argument("--test-size", type=float)
    parser.add_argument("--max-iter", type=int)
    parser.add_argument("--strict-convergence", action="store_true", default=None)
    parser.add_argument("--n-jobs", type=int)
    parser.add_argument("--ale-features", type=_csv(str), help="Comma-separated features to plot")
    parser.add_argument("--ale-bins", type=int)
    parser.add_argument("--verbose", action="store_true")
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    config = load_run_config(
        args.config,
        dataset=args.dataset,
        data_path=args.data_path,
        output_dir=args.output_dir,
        seed=args.seed,
        folds=args.folds,
        repeats=args.repeats,
        sizes=args.sizes,
        decays=args.decays,
        optimizer=args.optimizer,
        budget=args.budget,
        max_rows=args.max_rows,
        test_size=args.test_size,
        max_iter=args.max_iter,
        strict_convergence=args.strict_convergence,
        n_jobs=args.n_jobs,
        ale_features=args.ale_features,
        ale_bins=args.ale_bins,
    )

    run_id = generate_run_id(prefix=f"nnet-cv-{config.dataset}")
    logger = configure_logging(
        run_id=run_id,
        seed=config.seed,
        log_file=f"{config.output_dir}/{run_id}/run.log",
        level=logging.DEBUG if args.verbose else logging.INFO,
        force=True,
    )

    artifacts = run_from_config(config, run_id=run_id)

    logger.info("Results written to %s", artifacts.results_dir)
    print(f"Best candidate: {artifacts.best.name}")
    print(f"Held-out R²: {artifacts.holdout_metrics['r2']:.4f}")
    print(f"Wrote results to {artifacts.results_dir}")


if __name__ == "__main__":
    main()
