# hockey_xg/pp_utils.py
from typing import Optional, Tuple

import numpy as np
import pandas as pd


def decode_situation_code(code) -> Optional[Tuple[int, int, int, int]]:
    """Split a situation code into (away goalie, away skaters, home skaters, home goalie).

    Returns None for a missing or malformed code.
    """
    if pd.isna(code):
        return None
    if isinstance(code, float):
        code = int(code)
    s = str(code).strip().zfill(4)
    if len(s) != 4 or not s.isdigit():
        return None
    return int(s[0]), int(s[1]), int(s[2]), int(s[3])


def is_power_play(own_goalie, own_skaters, opp_skaters):
    """Power play for one side.

    With the goalie pulled the extra attacker does not count, so the side
    needs more than a one-skater edge.
    """
    own_goalie = np.asarray(own_goalie)
    diff = np.asarray(own_skaters) - np.asarray(opp_skaters)
    return ((own_goalie == 1) & (diff > 0)) | ((own_goalie == 0) & (diff > 1))


def compute_game_state(events: pd.DataFrame) -> pd.DataFrame:
    df = events.copy()

    decoded = [decode_situation_code(c) for c in df["situation_code"]]
    cols = ["away_goalie", "away_skaters", "home_skaters", "home_goalie"]
    state = pd.DataFrame(
        [d if d is not None else (np.nan,) * 4 for d in decoded],
        columns=cols, index=df.index, dtype=float,
    )
    for c in cols:
        df[c] = state[c]

    # NaN compares False, so unknown codes give no power play
    df["home_pp"] = is_power_play(state["home_goalie"], state["home_skaters"], state["away_skaters"])
    df["away_pp"] = is_power_play(state["away_goalie"], state["away_skaters"], state["home_skaters"])

    is_home = (df["event_team"] == df["home_team"]).to_numpy()
    is_away = (df["event_team"] == df["away_team"]).to_numpy()

    df["event_pp"] = np.where(is_home, df["home_pp"], np.where(is_away, df["away_pp"], False))
    df["event_sh"] = np.where(is_home, df["away_pp"], np.where(is_away, df["home_pp"], False))

    home_off = (state["home_goalie"] == 0).to_numpy()
    away_off = (state["away_goalie"] == 0).to_numpy()
    df["event_on_en"] = np.where(is_home, away_off, np.where(is_away, home_off, False))
    df["event_own_en"] = np.where(is_home, home_off, np.where(is_away, away_off, False))

    for c in ["home_pp", "away_pp", "event_pp", "event_sh", "event_on_en", "event_own_en"]:
        df[c] = df[c].astype(bool)
    return df
