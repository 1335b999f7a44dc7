"""
End-to-end: raw events -> features -> selection -> tuning -> evaluation.
"""

import pytest

from hockey_xg.config import DSA_THRESHOLD
from hockey_xg.evaluate import calibration_within, goal_capture
from hockey_xg.model import XGModel
from hockey_xg.train import run_pipeline
from hockey_xg.tuning import ParamSpace

from conftest import make_events

SMALL_SPACE = ParamSpace(n_estimators=(30, 120), max_depth=(2, 4))


@pytest.fixture(scope="module")
def result(scenario_games):
    seasons = [make_events(120, seed=2022), scenario_games]
    return run_pipeline(seasons, test_size=0.25, n_splits=3, n_candidates=4,
                        burn_in=2, n_jobs=1, seed=42, space=SMALL_SPACE)


def _scenario_row(result, game_id):
    meta = result.dataset.meta
    idx = meta.index[(meta["game_id"] == game_id) & (meta["event_type"] == "goal")][0]
    return result.dataset.features.loc[idx]


def test_scenario_geometry(result):
    breakaway = _scenario_row(result, 2022029001)
    point = _scenario_row(result, 2022029002)

    assert breakaway["shot_distance"] == pytest.approx(10.0, abs=0.1)
    assert breakaway["shot_angle"] == pytest.approx(5.0, abs=0.1)
    assert point["shot_distance"] == pytest.approx(55.0, abs=0.1)
    assert point["shot_angle"] == pytest.approx(20.0, abs=0.1)


def test_breakaway_scores_higher_than_point_shot(result):
    model = result.tuning.model
    p_breakaway = model.predict_probability(_scenario_row(result, 2022029001).to_dict())
    p_point = model.predict_probability(_scenario_row(result, 2022029002).to_dict())

    assert 0.0 <= p_point <= 1.0 and 0.0 <= p_breakaway <= 1.0
    assert p_breakaway > p_point + 0.2


def test_recipe_selected_from_every_candidate(result):
    board = result.selection.leaderboard()
    assert len(board) == 7
    assert board["name"].iloc[0] == result.selection.best.name
    assert result.tuning.model.recipe == result.selection.best


def test_held_out_diagnostics(result):
    report = result.report

    assert report.n_shots == len(result.test)
    assert 0.65 < report.test_auc <= 1.0
    assert report.train_auc >= report.test_auc - 0.05
    # regression guard on summed xG vs actual goals
    assert calibration_within(report, tolerance=0.3)

    bands = result.bands
    assert bands["shots"].sum() == len(result.test)
    assert bands["goals"].iloc[-1] > bands["goals"].iloc[0]


def test_danger_flags_capture_goals(result):
    report = result.report
    test = result.test
    proba = result.tuning.model.predict_proba(test.features)

    assert 0.0 <= report.rule_dsa_goal_capture <= 1.0
    assert 0.0 <= report.threshold_dsa_goal_capture <= 1.0
    assert report.rule_dsa_goal_capture == pytest.approx(goal_capture(test.target, test.meta["is_dsa"]))
    assert report.threshold_dsa_goal_capture == pytest.approx(
        goal_capture(test.target, proba >= DSA_THRESHOLD))
    # close-range shots score more often, so flagged shots over-represent goals
    assert report.rule_dsa_goal_capture > test.meta["is_dsa"].astype(bool).mean()


def test_model_round_trip(result, tmp_path):
    path = result.tuning.model.save(tmp_path / "xg_model.joblib")
    loaded = XGModel.load(path)
    row = _scenario_row(result, 2022029001).to_dict()

    assert loaded.predict_probability(row) == pytest.approx(result.tuning.model.predict_probability(row))
