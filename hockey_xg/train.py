# hockey_xg/train.py
import argparse
import json
import warnings
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Sequence

import pandas as pd
from loguru import logger

from hockey_xg.build_dataset import ShotDataset, build_training_table, load_events
from hockey_xg.config import (
    DEFAULT_POLICY, N_FOLDS, POLICIES, SEED, TEST_SIZE, ModelingPolicy,
)
from hockey_xg.evaluate import EvaluationReport, evaluate_model, quantile_bands
from hockey_xg.model_selection import SelectionResult, make_folds, select_recipe, split_train_test
from hockey_xg.recipes import RECIPES, RECIPES_BY_NAME, Recipe
from hockey_xg.tracking import log_model, log_table, start_run
from hockey_xg.tuning import ParamSpace, TuningResult, tune

warnings.filterwarnings("ignore", category=UserWarning, module="xgboost")


@dataclass
class PipelineResult:
    dataset: ShotDataset
    train: ShotDataset
    test: ShotDataset
    selection: SelectionResult
    tuning: TuningResult
    report: EvaluationReport
    bands: pd.DataFrame


def run_pipeline(season_frames: Iterable[pd.DataFrame],
                 policy: ModelingPolicy = DEFAULT_POLICY,
                 recipes: Sequence[Recipe] = RECIPES,
                 test_size: float = TEST_SIZE,
                 n_splits: int = N_FOLDS,
                 n_candidates: int = 30,
                 burn_in: int = 3,
                 alpha: float = 0.05,
                 n_jobs: int = -1,
                 seed: int = SEED,
                 space: ParamSpace = ParamSpace()) -> PipelineResult:
    """events -> features -> split -> recipe selection -> tuning -> evaluation."""
    dataset = build_training_table(season_frames, policy)
    train, test = split_train_test(dataset, test_size, seed)
    logger.info(f"split: train={len(train)} test={len(test)}")

    # same folds for recipe selection and tuning
    folds = make_folds(train.target, n_splits, seed)
    selection = select_recipe(train, recipes, seed=seed, folds=folds)
    tuning = tune(selection.best, train, space, n_candidates, folds=folds,
                  burn_in=burn_in, alpha=alpha, n_jobs=n_jobs, seed=seed)

    report = evaluate_model(tuning.model, train, test)
    bands = quantile_bands(test.target, tuning.model.predict_proba(test.features))
    logger.info(f"train AUC {report.train_auc:.3f} | test AUC {report.test_auc:.3f} "
                f"| goals {report.actual_goals} vs xG {report.predicted_goals:.1f} "
                f"({report.goal_diff_pct:+.1f}%)")
    return PipelineResult(dataset, train, test, selection, tuning, report, bands)


def main():
    ap = argparse.ArgumentParser()
    ap.add_argument("--events_csv", nargs="+", required=True, help="one play-by-play CSV per season")
    ap.add_argument("--out_dir", type=str, default="models")
    ap.add_argument("--policy", choices=sorted(POLICIES), default=DEFAULT_POLICY.name)
    ap.add_argument("--recipes", nargs="+", choices=sorted(RECIPES_BY_NAME), default=None)
    ap.add_argument("--test_size", type=float, default=TEST_SIZE)
    ap.add_argument("--folds", type=int, default=N_FOLDS)
    ap.add_argument("--n_candidates", type=int, default=30)
    ap.add_argument("--burn_in", type=int, default=3)
    ap.add_argument("--alpha", type=float, default=0.05)
    ap.add_argument("--n_jobs", type=int, default=-1)
    ap.add_argument("--seed", type=int, default=SEED)
    ap.add_argument("--run_name", type=str, default="xgboost_xg_tuned")
    ap.add_argument("--no_wandb", action="store_true", help="do not log to WandB (local debugging)")
    args = ap.parse_args()

    out_dir = Path(args.out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    recipes = [RECIPES_BY_NAME[n] for n in args.recipes] if args.recipes else RECIPES

    run = start_run(args.run_name, vars(args), enabled=not args.no_wandb)

    seasons = [load_events(p) for p in args.events_csv]
    result = run_pipeline(
        seasons, POLICIES[args.policy], recipes,
        test_size=args.test_size, n_splits=args.folds, n_candidates=args.n_candidates,
        burn_in=args.burn_in, alpha=args.alpha, n_jobs=args.n_jobs, seed=args.seed,
    )

    result.dataset.to_frame().to_csv(out_dir / "shots_train.csv", index=False)
    recipe_board = result.selection.leaderboard()
    tuning_board = result.tuning.leaderboard()
    recipe_board.to_csv(out_dir / "recipe_leaderboard.csv", index=False)
    tuning_board.to_csv(out_dir / "tuning_leaderboard.csv", index=False)
    result.bands.to_csv(out_dir / "quantile_bands.csv", index=False)
    with open(out_dir / "evaluation.json", "w", encoding="utf-8") as f:
        json.dump({"recipe": result.selection.best.name,
                   "best_params": result.tuning.best_params,
                   **result.report.to_dict()}, f, indent=2)

    model_path = result.tuning.model.save(out_dir / "xg_model.joblib")
    logger.info(f"saved model -> {model_path}")

    run.config.update({"recipe": result.selection.best.name, **result.tuning.best_params},
                      allow_val_change=True)
    run.log(result.report.to_dict())
    if not args.no_wandb:
        log_table(run, "recipe_leaderboard", recipe_board)
        log_table(run, "tuning_leaderboard", tuning_board)
        log_table(run, "quantile_bands", result.bands)
        log_model(run, model_path, extra_files=[out_dir / "evaluation.json"])
    run.finish()


if __name__ == "__main__":
    main()
