# hockey_xg/build_dataset.py
import argparse
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List

import numpy as np
import pandas as pd
from loguru import logger

from hockey_xg.config import (
    ATTEMPT_LABEL, DEFAULT_POLICY, GOAL, GOAL_LABEL, POLICIES, SHOT_EVENTS, UNKNOWN,
    ModelingPolicy,
)
from hockey_xg.coords import normalize_coordinates
from hockey_xg.danger import flag_dangerous
from hockey_xg.features_basic import build_basic_features
from hockey_xg.features_v2 import (
    add_rebound_flags, build_last_event_features, ensure_game_seconds, ensure_period_seconds,
    sort_events,
)
from hockey_xg.pp_utils import compute_game_state

REQUIRED_COLUMNS = {
    "game_id", "period", "event_type", "x", "y", "event_team",
    "home_team", "away_team", "zone_code", "situation_code",
}

NUMERIC_FEATURES = [
    "shot_distance", "shot_angle", "period", "event_pp", "event_sh",
    "time_since_last", "lateral_movement", "is_rebound", "is_penalty_shot",
]
CATEGORICAL_FEATURES = ["shot_type", "lag_event_type", "lag2_event_type", "lag_zone"]
META_COLUMNS = ["row_id", "game_id", "season", "event_type", "outcome", "is_dsa"]


class SchemaError(ValueError):
    """Raw events break the upstream contract (missing column or shooter)."""


@dataclass(frozen=True)
class ShotDataset:
    """Index-aligned predictors, binary target and non-feature metadata."""

    features: pd.DataFrame
    target: pd.Series
    meta: pd.DataFrame

    def __len__(self):
        return len(self.target)

    def subset(self, idx) -> "ShotDataset":
        idx = np.asarray(idx)
        return ShotDataset(
            features=self.features.iloc[idx].reset_index(drop=True),
            target=self.target.iloc[idx].reset_index(drop=True),
            meta=self.meta.iloc[idx].reset_index(drop=True),
        )

    def to_frame(self) -> pd.DataFrame:
        return pd.concat([self.meta, self.features, self.target.rename("is_goal")], axis=1)


def validate_events(events: pd.DataFrame) -> None:
    missing = REQUIRED_COLUMNS - set(events.columns)
    if "period_seconds" not in events.columns and "period_time" not in events.columns:
        missing.add("period_seconds")
    if missing:
        raise SchemaError(f"missing columns: {sorted(missing)}")

    shots = events[events["event_type"].isin(SHOT_EVENTS)]
    if shots.empty:
        return
    has_shooter = pd.Series(False, index=shots.index)
    if "shooter_id" in shots.columns:
        has_shooter |= shots["shooter_id"].notna()
    if "scorer_id" in shots.columns:
        has_shooter |= (shots["event_type"] == GOAL) & shots["scorer_id"].notna()
    if not has_shooter.all():
        bad = shots.loc[~has_shooter, ["game_id", "event_type"]].head(5)
        raise SchemaError(
            f"{int((~has_shooter).sum())} shot events without a shooter id, e.g.\n{bad}"
        )


def concat_seasons(season_frames: Iterable[pd.DataFrame]) -> pd.DataFrame:
    """Concatenate per-season tables, sort chronologically, assign row_id."""
    frames: List[pd.DataFrame] = list(season_frames)
    if not frames:
        raise ValueError("no season tables given")
    for df in frames:
        validate_events(df)

    events = pd.concat(frames, ignore_index=True)
    events["period_seconds"] = ensure_period_seconds(events)
    events["game_seconds"] = ensure_game_seconds(events)
    events = sort_events(events)
    events["row_id"] = np.arange(len(events), dtype=np.int64)
    logger.info(f"events: {len(events)} rows from {len(frames)} season table(s)")
    return events


def enrich_events(events: pd.DataFrame, policy: ModelingPolicy = DEFAULT_POLICY) -> pd.DataFrame:
    df = normalize_coordinates(events)
    df = build_basic_features(df)
    df = compute_game_state(df)
    df = build_last_event_features(df)
    df = add_rebound_flags(df, policy)
    df["is_dsa"] = flag_dangerous(df["shot_distance"], df["shot_angle"])

    no_geo = df["event_type"].isin(SHOT_EVENTS) & df["shot_distance"].isna()
    if no_geo.any():
        logger.info(f"{int(no_geo.sum())} shot events without geometry (no offensive-zone median or no coordinates)")
    return df


def assemble_dataset(enriched: pd.DataFrame, policy: ModelingPolicy = DEFAULT_POLICY) -> ShotDataset:
    df = enriched[enriched["event_type"].isin(policy.event_types)]
    df = df[~df["event_on_en"].astype(bool)]
    df = df[~df["period"].isin(policy.excluded_periods)].copy()

    df["outcome"] = np.where(df["event_type"] == GOAL, GOAL_LABEL, ATTEMPT_LABEL)

    if "shot_type" not in df.columns:
        df["shot_type"] = UNKNOWN
    if "season" not in df.columns:
        df["season"] = np.nan
    for c in CATEGORICAL_FEATURES:
        df[c] = df[c].fillna(UNKNOWN).astype(str)

    # NaN geometry is kept; only negative values are clock/boundary artifacts
    invalid = (df["shot_distance"] < 0) | (df["time_since_last"] < 0)
    if invalid.any():
        logger.info(f"dropped {int(invalid.sum())} shots with negative distance or elapsed time")
    df = df[~invalid].reset_index(drop=True)

    features = df[NUMERIC_FEATURES + CATEGORICAL_FEATURES].copy()
    for c in ["event_pp", "event_sh", "is_rebound", "is_penalty_shot"]:
        features[c] = features[c].astype(int)

    target = (df["outcome"] == GOAL_LABEL).astype(int).rename("is_goal")
    meta = df[META_COLUMNS].copy()
    logger.info(f"shots: {len(df)} rows, goals={int(target.sum())}")
    return ShotDataset(features=features, target=target, meta=meta)


def build_training_table(season_frames: Iterable[pd.DataFrame],
                         policy: ModelingPolicy = DEFAULT_POLICY) -> ShotDataset:
    events = concat_seasons(season_frames)
    return assemble_dataset(enrich_events(events, policy), policy)


def load_events(csv_path: str) -> pd.DataFrame:
    return pd.read_csv(csv_path)


def main():
    ap = argparse.ArgumentParser()
    ap.add_argument("--events_csv", nargs="+", required=True,
                    help="one play-by-play CSV per season")
    ap.add_argument("--out_csv", type=str, default="data/processed/shots_train.csv")
    ap.add_argument("--policy", choices=sorted(POLICIES), default=DEFAULT_POLICY.name)
    args = ap.parse_args()

    seasons = [load_events(p) for p in args.events_csv]
    dataset = build_training_table(seasons, POLICIES[args.policy])

    outp = Path(args.out_csv)
    outp.parent.mkdir(parents=True, exist_ok=True)
    dataset.to_frame().to_csv(outp, index=False)
    logger.info(f"saved training table -> {outp} | rows={len(dataset)}")


if __name__ == "__main__":
    main()
