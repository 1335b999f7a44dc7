"""
Pytest Configuration and Fixtures

Synthetic play-by-play games for the xG pipeline tests.
"""

import numpy as np
import pandas as pd
import pytest

SHOT_TYPES = ["wrist", "slap", "snap", "backhand"]


def event(game_id, period, seconds, event_type, team, x, y, zone, sort_order,
          situation_code="1551", **extra):
    row = {
        "game_id": game_id,
        "season": 20222023,
        "game_date": "2023-01-01",
        "period": period,
        "period_seconds": seconds,
        "sort_order": sort_order,
        "event_type": event_type,
        "event_team": team,
        "home_team": "HOM",
        "away_team": "AWY",
        "x": x,
        "y": y,
        "zone_code": zone,
        "situation_code": situation_code,
        "shot_type": None,
        "penalty_desc": None,
        "shooter_id": None,
    }
    row.update(extra)
    return row


def attack_sign(team, period):
    """Home attacks +x in periods 1 and 3, away the other way."""
    home_sign = 1.0 if period % 2 == 1 else -1.0
    return home_sign if team == "HOM" else -home_sign


def shot_at(game_id, period, seconds, team, distance, angle, sort_order,
            event_type="shot-on-goal", shot_type="wrist"):
    """A shot placed by (distance, angle) in the shooter's frame, written in raw rink coordinates."""
    fx = 89.0 - distance * np.cos(np.radians(angle))
    fy = distance * np.sin(np.radians(angle))
    s = attack_sign(team, period)
    return event(game_id, period, seconds, event_type, team, fx * s, fy * s, "O", sort_order,
                 shot_type=shot_type, shooter_id=8470000 + sort_order)


def make_game(game_id, rng, n_shots=40):
    rows = []
    order = 0
    per_period = n_shots // 3
    for period in (1, 2, 3):
        t = 0
        rows.append(event(game_id, period, t, "faceoff", "HOM", 0.0, 0.0, "N", order))
        order += 1
        for _ in range(per_period):
            t += int(rng.integers(5, 40))
            team = "HOM" if rng.random() < 0.5 else "AWY"
            distance = float(rng.uniform(3, 60))
            angle = float(rng.uniform(0, 75))
            p_goal = 1.0 / (1.0 + np.exp(-(1.5 - 0.12 * distance)))
            if rng.random() < p_goal:
                etype = "goal"
            else:
                etype = "shot-on-goal" if rng.random() < 0.6 else "missed-shot"
            rows.append(shot_at(game_id, period, t, team, distance, angle, order,
                                event_type=etype, shot_type=SHOT_TYPES[int(rng.integers(0, 4))]))
            order += 1
    return rows


def make_events(n_games, seed=0, n_shots=40, first_game=2022020001):
    rng = np.random.default_rng(seed)
    rows = []
    for g in range(n_games):
        rows.extend(make_game(first_game + g, rng, n_shots))
    return pd.DataFrame(rows)


@pytest.fixture
def small_events():
    return make_events(30, seed=1)


@pytest.fixture(scope="session")
def scenario_games():
    """A clean breakaway goal (distance 10, angle 5) and a point-shot goal (distance 55, angle 20)."""
    breakaway = [
        event(2022029001, 1, 0, "faceoff", "HOM", 0.0, 0.0, "N", 0),
        shot_at(2022029001, 1, 30, "HOM", 10.0, 5.0, 1, event_type="goal"),
    ]
    point = [
        event(2022029002, 1, 0, "faceoff", "AWY", 0.0, 0.0, "N", 0),
        shot_at(2022029002, 1, 45, "AWY", 55.0, 20.0, 1, event_type="goal"),
    ]
    return pd.DataFrame(breakaway + point)
