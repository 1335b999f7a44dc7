# hockey_xg/features_basic.py
import numpy as np
import pandas as pd

from hockey_xg.config import NET_X, NET_Y, SHOT_EVENTS


# 1) shot distance to the net center (89, 0)
def compute_shot_distance(x, y):
    return np.round(np.hypot(np.asarray(x, dtype=float) - NET_X,
                             np.asarray(y, dtype=float) - NET_Y), 1)


# 2) shot angle off the face of the net, in degrees
def compute_shot_angle(x, y):
    # arctan2(|dy|, 89 - x) gives atan(|dy| / dx) in front of the goal line
    # and 180 - that behind it; zero distance gives 0
    dy = np.abs(np.asarray(y, dtype=float) - NET_Y)
    dx = NET_X - np.asarray(x, dtype=float)
    return np.round(np.degrees(np.arctan2(dy, dx)), 1)


# 3) attach geometry to shot events, NaN everywhere else
def build_basic_features(df: pd.DataFrame) -> pd.DataFrame:
    df = df.copy()
    is_shot = df["event_type"].isin(SHOT_EVENTS).to_numpy()

    dist = compute_shot_distance(df["fixed_x"], df["fixed_y"])
    angle = compute_shot_angle(df["fixed_x"], df["fixed_y"])
    df["shot_distance"] = np.where(is_shot, dist, np.nan)
    df["shot_angle"] = np.where(is_shot, angle, np.nan)
    return df
