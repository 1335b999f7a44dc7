"""
Tests for situation-code decoding and power-play flags.
"""

import pandas as pd
import pytest

from hockey_xg.pp_utils import compute_game_state, decode_situation_code, is_power_play


class TestDecodeSituationCode:
    def test_even_strength(self):
        assert decode_situation_code("1551") == (1, 5, 5, 1)

    def test_pulled_away_goalie(self):
        assert decode_situation_code("0541") == (0, 5, 4, 1)

    def test_integer_code_is_zero_padded(self):
        assert decode_situation_code(541) == (0, 5, 4, 1)
        assert decode_situation_code(1451.0) == (1, 4, 5, 1)

    @pytest.mark.parametrize("code", [None, float("nan"), "abc", "15511"])
    def test_bad_code(self, code):
        assert decode_situation_code(code) is None


class TestIsPowerPlay:
    def test_goalie_in_with_more_skaters(self):
        assert bool(is_power_play(1, 5, 4)) is True

    def test_even_strength(self):
        assert bool(is_power_play(1, 5, 5)) is False

    def test_extra_attacker_alone_is_not_power_play(self):
        assert bool(is_power_play(0, 6, 5)) is False

    def test_goalie_pulled_with_two_skater_edge(self):
        assert bool(is_power_play(0, 6, 4)) is True


def _events(codes, teams):
    return pd.DataFrame({
        "situation_code": codes,
        "event_team": teams,
        "home_team": "HOM",
        "away_team": "AWY",
    })


def test_1551_no_power_play():
    out = compute_game_state(_events(["1551"], ["HOM"]))
    row = out.iloc[0]

    assert (row["away_goalie"], row["away_skaters"], row["home_skaters"], row["home_goalie"]) == (1, 5, 5, 1)
    assert not row["home_pp"] and not row["away_pp"]
    assert not row["event_pp"] and not row["event_sh"]


def test_0541_neither_side_on_power_play():
    out = compute_game_state(_events(["0541", "0541"], ["HOM", "AWY"]))

    assert not out["home_pp"].any()
    assert not out["away_pp"].any()
    # home shoots at the empty away net; away skates with its own net empty
    assert out.loc[0, "event_on_en"] and not out.loc[0, "event_own_en"]
    assert out.loc[1, "event_own_en"] and not out.loc[1, "event_on_en"]


def test_event_power_play_and_short_handed():
    out = compute_game_state(_events(["1541", "1541"], ["AWY", "HOM"]))

    assert out.loc[0, "away_pp"]
    assert out.loc[0, "event_pp"] and not out.loc[0, "event_sh"]
    assert out.loc[1, "event_sh"] and not out.loc[1, "event_pp"]


def test_missing_code_gives_false_flags():
    out = compute_game_state(_events([None], ["HOM"]))

    assert pd.isna(out.loc[0, "home_skaters"])
    assert not out.loc[0, "event_pp"]
    assert not out.loc[0, "event_on_en"]
