# hockey_xg/coords.py
import numpy as np
import pandas as pd

from hockey_xg.config import OFFENSIVE_ZONE, SHOT_EVENTS

SLICE_KEYS = ["game_id", "event_team", "period"]


def offensive_zone_medians(events: pd.DataFrame) -> pd.Series:
    """Median raw x of each (game, team, period) over its offensive-zone events."""
    oz = events[events["zone_code"] == OFFENSIVE_ZONE][SLICE_KEYS].copy()
    oz["x"] = pd.to_numeric(events.loc[oz.index, "x"], errors="coerce")
    return (oz
            .groupby(SLICE_KEYS)["x"]
            .median()
            .rename("oz_median_x"))


def attack_sign(events: pd.DataFrame) -> np.ndarray:
    """+1 / -1 per event depending on where its team attacks in that period.

    NaN when the slice has no offensive-zone events with coordinates.
    """
    medians = offensive_zone_medians(events).reset_index()
    merged = events[SLICE_KEYS].merge(medians, on=SLICE_KEYS, how="left")
    med = merged["oz_median_x"].to_numpy(dtype=float)
    return np.where(np.isnan(med), np.nan, np.where(med < 0, -1.0, 1.0))


def normalize_coordinates(events: pd.DataFrame) -> pd.DataFrame:
    df = events.copy()
    x = pd.to_numeric(df["x"], errors="coerce").to_numpy(dtype=float)
    y = pd.to_numeric(df["y"], errors="coerce").to_numpy(dtype=float)

    sign = attack_sign(df)
    is_shot = df["event_type"].isin(SHOT_EVENTS).to_numpy()

    # attacking-team frame: every team shoots at (89, 0)
    fixed_x = np.where(is_shot, x * sign, np.nan)
    fixed_y = np.where(is_shot, y * sign, np.nan)
    df["fixed_x"] = fixed_x
    df["fixed_y"] = fixed_y

    # shared frame: home attacks +x, away mirrored about the origin
    mirror = np.where(df["event_team"].to_numpy() == df["home_team"].to_numpy(), 1.0, -1.0)
    df["home_x"] = fixed_x * mirror
    df["home_y"] = fixed_y * mirror
    return df
