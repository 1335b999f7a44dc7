# hockey_xg/features_v2.py
import numpy as np
import pandas as pd

from hockey_xg.config import (
    DEFAULT_POLICY, PERIOD_LENGTH_SECONDS, SHOT_ON_GOAL, UNKNOWN, ModelingPolicy,
)

ORDER_KEYS = ["game_id", "game_date", "period", "period_seconds", "sort_order"]


def mmss_to_sec(s):
    if not isinstance(s, str) or ":" not in s:
        return np.nan
    m, ss = s.split(":")
    return int(m) * 60 + int(ss)


def ensure_period_seconds(df: pd.DataFrame) -> pd.Series:
    if "period_seconds" in df.columns:
        return pd.to_numeric(df["period_seconds"], errors="coerce").astype(float)
    if "period_time" not in df.columns:
        raise KeyError("events need period_seconds or period_time")
    return df["period_time"].map(mmss_to_sec).astype(float)


def ensure_game_seconds(df: pd.DataFrame) -> pd.Series:
    if "game_seconds" in df.columns:
        return pd.to_numeric(df["game_seconds"], errors="coerce").astype(float)
    periods = pd.to_numeric(df["period"], errors="coerce")
    return (periods - 1) * PERIOD_LENGTH_SECONDS + ensure_period_seconds(df)


def sort_events(df: pd.DataFrame) -> pd.DataFrame:
    """Chronological order: game, date, period, time in period, sort sequence."""
    keys = [k for k in ORDER_KEYS if k in df.columns]
    return df.sort_values(keys, kind="mergesort", na_position="last").reset_index(drop=True)


def lateral_displacement(y, last_y) -> np.ndarray:
    """Cross-ice movement between two events.

    Same-sign y: absolute difference. Opposite signs: the puck crossed the
    middle of the ice, so the absolute values add up.
    """
    y = np.asarray(y, dtype=float)
    last_y = np.asarray(last_y, dtype=float)
    same_side = np.sign(y) * np.sign(last_y) >= 0
    moved = np.where(same_side, np.abs(y - last_y), np.abs(y) + np.abs(last_y))
    return np.nan_to_num(moved, nan=0.0)


def build_last_event_features(df: pd.DataFrame) -> pd.DataFrame:
    # one continuous stream, no reset at period or game boundaries
    df = df.copy()
    y = pd.to_numeric(df["y"], errors="coerce")

    df["lag_event_type"] = df["event_type"].shift(1).fillna(UNKNOWN)
    df["lag2_event_type"] = df["event_type"].shift(2).fillna(UNKNOWN)
    df["lag_zone"] = df["zone_code"].shift(1).fillna(UNKNOWN)

    # 0 only where there is no predecessor; a missing clock stays missing
    elapsed = df["period_seconds"].diff(1)
    if len(elapsed):
        elapsed.iloc[0] = 0.0
    df["time_since_last"] = elapsed
    df["lateral_movement"] = lateral_displacement(y, y.shift(1))
    return df


def add_rebound_flags(df: pd.DataFrame, policy: ModelingPolicy = DEFAULT_POLICY) -> pd.DataFrame:
    df = df.copy()
    elapsed = df["time_since_last"]

    if policy.rebound_strictly_positive:
        in_window = (elapsed > 0) & (elapsed < policy.rebound_max_seconds)
    else:
        in_window = (elapsed >= 0) & (elapsed < policy.rebound_max_seconds)

    df["is_rebound"] = (
        (df["lag_event_type"] == SHOT_ON_GOAL)
        & (df["lateral_movement"] >= 1)
        & in_window
    )

    if "penalty_desc" in df.columns:
        last_desc = df["penalty_desc"].shift(1).fillna("").astype(str)
    else:
        last_desc = pd.Series("", index=df.index)
    df["is_penalty_shot"] = last_desc.str[:2].str.lower() == policy.penalty_shot_code
    return df
