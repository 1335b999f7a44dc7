# hockey_xg/recipes.py
from dataclasses import dataclass
from typing import List, Tuple

import pandas as pd
from sklearn.compose import ColumnTransformer
from sklearn.preprocessing import FunctionTransformer, OneHotEncoder

from hockey_xg.config import RARE_LEVEL_FREQUENCY

GEOMETRY = ["shot_distance", "shot_angle"]

INTERACTIONS = [
    ("shot_distance", "shot_angle"),
    ("shot_distance", "is_rebound"),
    ("shot_angle", "lateral_movement"),
    ("time_since_last", "lateral_movement"),
]


def add_interactions(X: pd.DataFrame) -> pd.DataFrame:
    X = X.copy()
    for a, b in INTERACTIONS:
        if a in X.columns and b in X.columns:
            X[f"{a}_x_{b}"] = X[a] * X[b]
    return X


@dataclass(frozen=True)
class Recipe:
    """A named predictor subset plus its encoding policy."""

    name: str
    numeric: Tuple[str, ...]
    categorical: Tuple[str, ...] = ()
    interactions: bool = False
    min_frequency: float = RARE_LEVEL_FREQUENCY

    @property
    def columns(self) -> List[str]:
        return list(self.numeric) + list(self.categorical)

    def build_preprocessor(self) -> ColumnTransformer:
        # unfitted: fit on training rows only, then transform any partition
        num = FunctionTransformer(add_interactions) if self.interactions else "passthrough"
        transformers = [("num", num, list(self.numeric))]
        if self.categorical:
            transformers.append((
                "cat",
                OneHotEncoder(
                    handle_unknown="infrequent_if_exist",
                    min_frequency=self.min_frequency,
                    sparse_output=False,
                ),
                list(self.categorical),
            ))
        return ColumnTransformer(transformers, remainder="drop")


_ALL_NUMERIC = (
    *GEOMETRY, "period", "event_pp", "event_sh", "time_since_last",
    "lateral_movement", "is_rebound", "is_penalty_shot",
)
_ALL_CATEGORICAL = ("shot_type", "lag_event_type", "lag2_event_type", "lag_zone")

RECIPES = [
    Recipe("geometry", tuple(GEOMETRY)),
    Recipe("geometry_shot_type", tuple(GEOMETRY), ("shot_type",)),
    Recipe("geometry_special_teams", (*GEOMETRY, "event_pp", "event_sh", "period")),
    Recipe("geometry_lags", (*GEOMETRY, "is_rebound", "is_penalty_shot"),
           ("lag_event_type", "lag2_event_type", "lag_zone")),
    Recipe("geometry_timing", (*GEOMETRY, "time_since_last", "lateral_movement", "period")),
    Recipe("all_features", _ALL_NUMERIC, _ALL_CATEGORICAL),
    Recipe("all_features_interactions", _ALL_NUMERIC, _ALL_CATEGORICAL, interactions=True),
]

RECIPES_BY_NAME = {r.name: r for r in RECIPES}
