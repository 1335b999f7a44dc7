# hockey_xg/evaluate.py
from dataclasses import asdict, dataclass

import numpy as np
import pandas as pd
from sklearn.metrics import roc_auc_score

from hockey_xg.build_dataset import ShotDataset
from hockey_xg.config import DSA_THRESHOLD
from hockey_xg.model import XGModel


@dataclass(frozen=True)
class EvaluationReport:
    train_auc: float
    test_auc: float
    n_shots: int
    actual_goals: int
    predicted_goals: float
    goal_diff: float
    goal_diff_pct: float
    rule_dsa_goal_capture: float
    threshold_dsa_goal_capture: float

    def to_dict(self):
        return asdict(self)


def goal_capture(y_true, flagged) -> float:
    """Share of actual goals that carry the flag."""
    y_true = np.asarray(y_true).astype(bool)
    flagged = np.asarray(flagged).astype(bool)
    total = y_true.sum()
    return float((y_true & flagged).sum() / total) if total > 0 else float("nan")


def quantile_bands(y_true, proba, n_bands: int = 5) -> pd.DataFrame:
    """Equal-size buckets by predicted probability, lowest band first."""
    df = pd.DataFrame({"goal": np.asarray(y_true).astype(int), "xg": np.asarray(proba, dtype=float)})
    # rank first so ties still split into equal-size buckets
    df["band"] = pd.qcut(df["xg"].rank(method="first"), n_bands, labels=False)
    total_goals = df["goal"].sum()

    bands = (df
             .groupby("band")
             .agg(shots=("goal", "size"),
                  goals=("goal", "sum"),
                  min_xg=("xg", "min"),
                  median_xg=("xg", "median"),
                  mean_xg=("xg", "mean"))
             .reset_index())
    bands["pct_of_goals"] = 100.0 * bands["goals"] / total_goals if total_goals > 0 else np.nan
    return bands[["band", "shots", "goals", "pct_of_goals", "min_xg", "median_xg", "mean_xg"]]


def evaluate_model(model: XGModel, train: ShotDataset, test: ShotDataset,
                   dsa_threshold: float = DSA_THRESHOLD) -> EvaluationReport:
    train_proba = model.predict_proba(train.features)
    test_proba = model.predict_proba(test.features)
    y_test = test.target.to_numpy()

    actual = int(y_test.sum())
    predicted = float(test_proba.sum())
    diff = predicted - actual
    return EvaluationReport(
        train_auc=float(roc_auc_score(train.target, train_proba)),
        test_auc=float(roc_auc_score(y_test, test_proba)),
        n_shots=int(len(y_test)),
        actual_goals=actual,
        predicted_goals=predicted,
        goal_diff=diff,
        goal_diff_pct=100.0 * diff / actual if actual > 0 else float("nan"),
        rule_dsa_goal_capture=goal_capture(y_test, test.meta["is_dsa"]),
        threshold_dsa_goal_capture=goal_capture(y_test, test_proba >= dsa_threshold),
    )


def calibration_within(report: EvaluationReport, tolerance: float = 0.10) -> bool:
    """Summed xG within +/- tolerance of the actual goal count."""
    if report.actual_goals == 0:
        return False
    return abs(report.goal_diff) <= tolerance * report.actual_goals
