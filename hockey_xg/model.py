# hockey_xg/model.py
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import joblib
import numpy as np
import pandas as pd
from sklearn.pipeline import Pipeline
from xgboost import XGBClassifier

from hockey_xg.config import SEED
from hockey_xg.recipes import Recipe

BASE_PARAMS = dict(
    objective="binary:logistic",
    eval_metric="logloss",
    tree_method="hist",
)


def make_classifier(params: Optional[Dict[str, Any]] = None, seed: int = SEED,
                    n_jobs: Optional[int] = 1) -> XGBClassifier:
    return XGBClassifier(**BASE_PARAMS, random_state=seed, n_jobs=n_jobs, **(params or {}))


def make_pipeline(recipe: Recipe, params: Optional[Dict[str, Any]] = None,
                  seed: int = SEED, n_jobs: Optional[int] = 1) -> Pipeline:
    return Pipeline([
        ("prep", recipe.build_preprocessor()),
        ("clf", make_classifier(params, seed, n_jobs)),
    ])


class XGModel:
    """Fitted encoding + xgboost classifier for one recipe."""

    def __init__(self, pipeline: Pipeline, recipe: Recipe, params: Dict[str, Any]):
        self._pipeline = pipeline
        self.recipe = recipe
        self.params = dict(params)

    @classmethod
    def fit(cls, recipe: Recipe, features: pd.DataFrame, target: pd.Series,
            params: Optional[Dict[str, Any]] = None, seed: int = SEED,
            n_jobs: Optional[int] = 1) -> "XGModel":
        pipe = make_pipeline(recipe, params, seed, n_jobs)
        pipe.fit(features[recipe.columns], target)
        return cls(pipe, recipe, params or {})

    def predict_proba(self, features: pd.DataFrame) -> np.ndarray:
        return self._pipeline.predict_proba(features[self.recipe.columns])[:, 1]

    def predict_probability(self, feature_row: Mapping[str, Any]) -> float:
        row = pd.DataFrame([{c: feature_row[c] for c in self.recipe.columns}])
        return float(self.predict_proba(row)[0])

    def save(self, path) -> Path:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        joblib.dump({"pipeline": self._pipeline, "recipe": self.recipe, "params": self.params}, path)
        return path

    @classmethod
    def load(cls, path) -> "XGModel":
        blob = joblib.load(path)
        return cls(blob["pipeline"], blob["recipe"], blob["params"])
