"""Tests for best-of-N set scoring."""

import pytest

from sportsfest_backend.core.errors import (
    RuleViolation,
    INVALID_ACTION,
    INVALID_SET_SCORE,
    MATCH_ALREADY_DECIDED,
    NO_ACTIVE_SET,
    SET_IN_PROGRESS,
)
from sportsfest_backend.core.sport_config import Sport
from sportsfest_backend.engines import set_based
from sportsfest_backend.models.action_schemas import parse_action


def act(state, sport=Sport.BADMINTON, **payload):
    return set_based.apply(sport, state, parse_action(payload), now=0.0)


def play_set(state, winner="A", points=(21, 0), sport=Sport.BADMINTON):
    state = act(state, sport=sport, action="startSet").state
    return act(
        state,
        sport=sport,
        action="endSet",
        winning_team=winner,
        final_points_a=points[0],
        final_points_b=points[1],
    )


def test_badminton_first_set_to_21():
    state = set_based.initial_state(Sport.BADMINTON, max_sets=3)
    state = act(state, action="startSet", set_number=1).state
    for _ in range(21):
        state = act(state, action="updateSetPoints", team="A", delta=1).state
    assert state["current_set"]["points_a"] == 21

    result = act(state, action="endSet", winning_team="A", final_points_a=21, final_points_b=0)

    assert result.state["score_a"] == 1
    assert result.state["score_b"] == 0
    assert result.state["current_set"] is None
    assert result.state["set_details"][0]["winner"] == "A"
    assert result.completed is False


def test_unfinished_set_cannot_be_ended():
    state = set_based.initial_state(Sport.BADMINTON)
    state = act(state, action="startSet").state
    for _ in range(20):
        state = act(state, action="updateSetPoints", team="A").state

    with pytest.raises(RuleViolation) as exc:
        act(state, action="endSet", winning_team="A")
    assert exc.value.kind == INVALID_SET_SCORE
    assert state["current_set"]["points_a"] == 20
    assert state["score_a"] == 0


def test_end_set_for_wrong_side_is_rejected():
    state = set_based.initial_state(Sport.TABLE_TENNIS)
    state = act(state, sport=Sport.TABLE_TENNIS, action="startSet").state
    with pytest.raises(RuleViolation) as exc:
        act(state, sport=Sport.TABLE_TENNIS, action="endSet", winning_team="B", final_points_a=11, final_points_b=5)
    assert exc.value.kind == INVALID_SET_SCORE


@pytest.mark.parametrize(
    "points_a, points_b, expected",
    [
        (21, 19, "A"),
        (21, 20, None),
        (22, 20, "A"),
        (20, 22, "B"),
        (23, 20, None),
        (30, 28, "A"),
        (30, 29, "A"),
        (31, 29, None),
    ],
)
def test_badminton_win_by_two_with_cap(points_a, points_b, expected):
    assert set_based.set_winner(Sport.BADMINTON, 1, 3, points_a, points_b) == expected


def test_volleyball_deciding_set_plays_to_15():
    assert set_based.set_winner(Sport.VOLLEYBALL, 3, 3, 15, 13) == "A"
    assert set_based.set_winner(Sport.VOLLEYBALL, 1, 3, 15, 13) is None
    assert set_based.set_winner(Sport.VOLLEYBALL, 1, 3, 25, 23) == "A"


def test_two_sets_decide_best_of_three():
    state = set_based.initial_state(Sport.BADMINTON, max_sets=3)
    state = play_set(state, "A").state
    result = play_set(state, "A", points=(21, 15))

    assert result.completed is True
    assert result.winner == "A"

    with pytest.raises(RuleViolation) as exc:
        act(result.state, action="startSet")
    assert exc.value.kind == MATCH_ALREADY_DECIDED


def test_set_lifecycle_errors():
    state = set_based.initial_state(Sport.BADMINTON)
    with pytest.raises(RuleViolation) as exc:
        act(state, action="updateSetPoints", team="A")
    assert exc.value.kind == NO_ACTIVE_SET

    state = act(state, action="startSet").state
    with pytest.raises(RuleViolation) as exc:
        act(state, action="startSet")
    assert exc.value.kind == SET_IN_PROGRESS

    with pytest.raises(RuleViolation) as exc:
        act(state, action="updateSetPoints", team="B", delta=-1)
    assert exc.value.kind == INVALID_ACTION


def test_only_best_of_three_or_five():
    with pytest.raises(RuleViolation) as exc:
        set_based.initial_state(Sport.VOLLEYBALL, max_sets=4)
    assert exc.value.kind == INVALID_ACTION


def test_toss_serve_sets_server():
    state = set_based.initial_state(Sport.BADMINTON)
    state = act(state, action="setToss", winner="B", decision="SERVE").state
    assert state["current_server"] == "B"
    state = act(state, action="toggleServer").state
    assert state["current_server"] == "A"
