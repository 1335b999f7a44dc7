# hockey_xg/tuning.py
from dataclasses import dataclass, fields
from typing import Any, Dict, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd
from joblib import Parallel, delayed
from loguru import logger
from scipy import stats
from scipy.stats import qmc

from hockey_xg.build_dataset import ShotDataset
from hockey_xg.config import N_FOLDS, SEED
from hockey_xg.model import XGModel
from hockey_xg.model_selection import (
    CandidateResult, Folds, leaderboard, make_folds, rank_candidates, score_fold,
)
from hockey_xg.recipes import Recipe

INTEGER_PARAMS = {"n_estimators", "max_depth", "min_child_weight"}


@dataclass(frozen=True)
class ParamSpace:
    """Bounded ranges for the xgboost hyperparameters being tuned.

    colsample_bynode is the fraction of features tried per split and
    min_child_weight stands in for the minimum samples per leaf.
    """

    n_estimators: Tuple[int, int] = (50, 500)
    max_depth: Tuple[int, int] = (2, 8)
    colsample_bynode: Tuple[float, float] = (0.3, 1.0)
    min_child_weight: Tuple[int, int] = (1, 40)
    subsample: Tuple[float, float] = (0.5, 1.0)

    def names(self) -> List[str]:
        return [f.name for f in fields(self)]


def latin_hypercube(space: ParamSpace = ParamSpace(), n_candidates: int = 30,
                    seed: int = SEED) -> List[Dict[str, Any]]:
    """Space-filling sample of configurations across the ranges."""
    names = space.names()
    sampler = qmc.LatinHypercube(d=len(names), seed=np.random.default_rng(seed))
    unit = sampler.random(n_candidates)

    candidates = []
    for row in unit:
        params = {}
        for u, name in zip(row, names):
            lo, hi = getattr(space, name)
            if name in INTEGER_PARAMS:
                params[name] = int(min(hi, lo + np.floor(u * (hi - lo + 1))))
            else:
                params[name] = round(float(lo + u * (hi - lo)), 4)
        candidates.append(params)
    return candidates


def _eliminate(results: List[CandidateResult], alive: List[int], alpha: float,
               n_done: int) -> List[int]:
    """Drop candidates whose paired AUC gap to the leader is significantly > 0."""
    if len(alive) < 2 or n_done < 2:
        return alive
    leader = max(alive, key=lambda i: (results[i].mean_auc, -results[i].std_err))
    lead_scores = np.asarray(results[leader].fold_scores)
    t_crit = stats.t.ppf(1 - alpha, n_done - 1)

    keep = []
    for i in alive:
        if i == leader:
            keep.append(i)
            continue
        diff = lead_scores - np.asarray(results[i].fold_scores)
        se = diff.std(ddof=1) / np.sqrt(n_done)
        if diff.mean() - t_crit * se > 0:
            results[i].eliminated_after = n_done
            logger.debug(f"[{results[i].name}] eliminated after {n_done} folds "
                         f"(gap {diff.mean():.4f} to {results[leader].name})")
        else:
            keep.append(i)
    return keep


def race(recipe: Recipe, train: ShotDataset, candidates: Sequence[Dict[str, Any]],
         folds: Folds, burn_in: int = 3, alpha: float = 0.05, n_jobs: int = -1,
         seed: int = SEED) -> List[CandidateResult]:
    """Cross-validate candidates fold by fold, discarding dominated ones.

    Every candidate runs the burn-in folds; after that only survivors get
    the next fold. Fits are spread over a joblib worker pool.
    """
    results = [CandidateResult(name=f"cand_{i:03d}", params=dict(p))
               for i, p in enumerate(candidates)]
    alive = list(range(len(results)))
    n_folds = len(folds)
    burn_in = max(1, burn_in)
    done = 0

    with Parallel(n_jobs=n_jobs) as parallel:
        while done < n_folds and alive:
            batch = list(range(done, min(burn_in, n_folds))) if done == 0 else [done]
            jobs = [(i, k) for i in alive for k in batch]
            scores = parallel(
                delayed(score_fold)(recipe, train, *folds.splits[k], results[i].params, seed)
                for i, k in jobs
            )
            for (i, _), (auc, err) in zip(jobs, scores):
                res = results[i]
                if res.failed:
                    continue
                if err is not None:
                    res.error = err
                    logger.warning(f"[{res.name}] fit failed: {err}")
                else:
                    res.fold_scores.append(auc)

            done = batch[-1] + 1
            alive = [i for i in alive if not results[i].failed]
            alive = _eliminate(results, alive, alpha, done)
            logger.info(f"racing: {done}/{n_folds} folds, {len(alive)} candidates left")
    return results


@dataclass
class TuningResult:
    best: CandidateResult
    results: List[CandidateResult]
    model: XGModel

    @property
    def best_params(self) -> Dict[str, Any]:
        return dict(self.best.params)

    def leaderboard(self) -> pd.DataFrame:
        return leaderboard(self.results)

    @property
    def n_fits(self) -> int:
        return sum(r.n_folds for r in self.results)


def pick_best(results: Sequence[CandidateResult], n_folds: int) -> CandidateResult:
    finished = [r for r in results if not r.failed and r.n_folds == n_folds]
    ranked = rank_candidates(finished or list(results))
    if ranked[0].failed:
        raise RuntimeError("every hyperparameter configuration failed to fit")
    return ranked[0]


def tune(recipe: Recipe, train: ShotDataset, space: ParamSpace = ParamSpace(),
         n_candidates: int = 30, folds: Optional[Folds] = None, n_splits: int = N_FOLDS,
         burn_in: int = 3, alpha: float = 0.05, n_jobs: int = -1,
         seed: int = SEED) -> TuningResult:
    if folds is None:
        folds = make_folds(train.target, n_splits, seed)

    candidates = latin_hypercube(space, n_candidates, seed)
    logger.info(f"tuning {recipe.name}: {len(candidates)} candidates x {len(folds)} folds")
    results = race(recipe, train, candidates, folds, burn_in, alpha, n_jobs, seed)

    best = pick_best(results, len(folds))
    n_fits = sum(r.n_folds for r in results)
    logger.info(f"best params {best.params} | CV AUC {best.mean_auc:.4f} "
                f"| {n_fits}/{len(candidates) * len(folds)} fold fits")

    # final refit on the whole training partition
    model = XGModel.fit(recipe, train.features, train.target, best.params, seed, n_jobs=None)
    return TuningResult(best=best, results=results, model=model)
