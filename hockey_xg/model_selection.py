# hockey_xg/model_selection.py
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd
from loguru import logger
from sklearn.metrics import roc_auc_score
from sklearn.model_selection import StratifiedKFold, train_test_split

from hockey_xg.build_dataset import ShotDataset
from hockey_xg.config import N_FOLDS, SEED, TEST_SIZE
from hockey_xg.model import make_pipeline
from hockey_xg.recipes import RECIPES, Recipe


@dataclass(frozen=True)
class Folds:
    splits: List[Tuple[np.ndarray, np.ndarray]]
    fold_ids: np.ndarray

    def __len__(self):
        return len(self.splits)


@dataclass
class CandidateResult:
    """Cross-validated AUC of one candidate (a recipe, or a recipe + params)."""

    name: str
    fold_scores: List[float] = field(default_factory=list)
    params: Dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None
    eliminated_after: Optional[int] = None

    @property
    def failed(self) -> bool:
        return self.error is not None

    @property
    def n_folds(self) -> int:
        return len(self.fold_scores)

    @property
    def mean_auc(self) -> float:
        if self.failed or not self.fold_scores:
            return float("-inf")
        return float(np.mean(self.fold_scores))

    @property
    def std_err(self) -> float:
        if self.failed or len(self.fold_scores) < 2:
            return float("inf")
        return float(np.std(self.fold_scores, ddof=1) / np.sqrt(len(self.fold_scores)))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "mean_auc": self.mean_auc,
            "std_err": self.std_err,
            "n_folds": self.n_folds,
            "failed": self.failed,
            "error": self.error,
            "eliminated_after": self.eliminated_after,
            **self.params,
        }


def rank_candidates(results: Sequence[CandidateResult]) -> List[CandidateResult]:
    # best mean AUC first, lower standard error breaks ties
    return sorted(results, key=lambda r: (-r.mean_auc, r.std_err))


def leaderboard(results: Sequence[CandidateResult]) -> pd.DataFrame:
    return pd.DataFrame([r.to_dict() for r in rank_candidates(results)])


def split_train_test(dataset: ShotDataset, test_size: float = TEST_SIZE,
                     seed: int = SEED) -> Tuple[ShotDataset, ShotDataset]:
    idx = np.arange(len(dataset))
    train_idx, test_idx = train_test_split(
        idx, test_size=test_size, stratify=dataset.target, random_state=seed
    )
    return dataset.subset(np.sort(train_idx)), dataset.subset(np.sort(test_idx))


def make_folds(target: pd.Series, n_splits: int = N_FOLDS, seed: int = SEED) -> Folds:
    skf = StratifiedKFold(n_splits=n_splits, shuffle=True, random_state=seed)
    y = np.asarray(target)
    splits = list(skf.split(np.zeros(len(y)), y))
    fold_ids = np.empty(len(y), dtype=int)
    for k, (_, test_idx) in enumerate(splits):
        fold_ids[test_idx] = k
    return Folds(splits=splits, fold_ids=fold_ids)


def score_fold(recipe: Recipe, train: ShotDataset, train_idx, test_idx,
               params: Optional[Dict[str, Any]] = None, seed: int = SEED):
    """Fit on one fold's training rows, AUC on its held-out rows.

    Returns (auc, None) or (nan, error message) when the fit fails.
    """
    y = train.target
    try:
        X = train.features[recipe.columns]
        pipe = make_pipeline(recipe, params, seed)
        pipe.fit(X.iloc[train_idx], y.iloc[train_idx])
        proba = pipe.predict_proba(X.iloc[test_idx])[:, 1]
        return float(roc_auc_score(y.iloc[test_idx], proba)), None
    except Exception as e:
        return float("nan"), f"{type(e).__name__}: {e}"


def cross_validate_recipe(recipe: Recipe, train: ShotDataset, folds: Folds,
                          params: Optional[Dict[str, Any]] = None,
                          seed: int = SEED) -> CandidateResult:
    result = CandidateResult(name=recipe.name, params=dict(params or {}))
    for train_idx, test_idx in folds.splits:
        auc, err = score_fold(recipe, train, train_idx, test_idx, params, seed)
        if err is not None:
            result.error = err
            logger.warning(f"[{recipe.name}] fit failed: {err}")
            break
        result.fold_scores.append(auc)
    return result


@dataclass
class SelectionResult:
    best: Recipe
    results: List[CandidateResult]
    folds: Folds

    def leaderboard(self) -> pd.DataFrame:
        return leaderboard(self.results)


def select_recipe(train: ShotDataset, recipes: Sequence[Recipe] = RECIPES,
                  n_splits: int = N_FOLDS, seed: int = SEED,
                  folds: Optional[Folds] = None) -> SelectionResult:
    """Cross-validate every recipe at default hyperparameters and keep the best."""
    if folds is None:
        folds = make_folds(train.target, n_splits, seed)

    results = []
    for recipe in recipes:
        res = cross_validate_recipe(recipe, train, folds, seed=seed)
        logger.info(f"[{recipe.name}] CV AUC = {res.mean_auc:.4f} (se {res.std_err:.4f})")
        results.append(res)

    ranked = rank_candidates(results)
    if ranked[0].failed:
        raise RuntimeError("every recipe failed to fit")
    best = next(r for r in recipes if r.name == ranked[0].name)
    logger.info(f"selected recipe: {best.name}")
    return SelectionResult(best=best, results=results, folds=folds)
