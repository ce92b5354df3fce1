# sportsfest_backend/engines/set_based.py
# Best-of-N set scoring for badminton, table tennis and volleyball.

from typing import Any, Dict, Optional

from sportsfest_backend.core.errors import (
    RuleViolation,
    INVALID_ACTION,
    INVALID_SET_SCORE,
    MATCH_ALREADY_DECIDED,
    NO_ACTIVE_SET,
    SET_IN_PROGRESS,
)
from sportsfest_backend.core.sport_config import (
    ALLOWED_MAX_SETS,
    DEFAULT_MAX_SETS,
    SET_RULES,
    sets_to_win,
)
from sportsfest_backend.engines.base import (
    EngineResult,
    dispatch,
    other_side,
    record_toss,
    score_key,
    working_copy,
)
from sportsfest_backend.models.action_schemas import (
    EndSetAction,
    SetTossAction,
    StartSetAction,
    ToggleServerAction,
    UpdateSetPointsAction,
)


def initial_state(sport, max_sets: Optional[int] = None, **_options) -> Dict[str, Any]:
    sets = DEFAULT_MAX_SETS if max_sets is None else max_sets
    if sets not in ALLOWED_MAX_SETS:
        raise RuleViolation(INVALID_ACTION, f"max_sets must be one of {ALLOWED_MAX_SETS}")

    return {
        "toss": None,
        "max_sets": sets,
        "score_a": 0,          # Sets won by A
        "score_b": 0,          # Sets won by B
        "current_set": None,   # {"set_number", "points_a", "points_b"} while a set is open
        "set_details": [],
        "current_server": "A",
    }


def has_started(state: Dict[str, Any]) -> bool:
    return state["current_set"] is not None or bool(state["set_details"])


# ============================
# 📏 Set win rules
# ============================

def set_target(sport, set_number: int, max_sets: int) -> int:
    rules = SET_RULES[sport]
    if rules["deciding_points"] and set_number == max_sets:
        return rules["deciding_points"]
    return rules["points"]


def set_winner(sport, set_number: int, max_sets: int, points_a: int, points_b: int) -> Optional[str]:
    """
    Returns the side that has legitimately won the set with this final score,
    or None when the score is not a finished set.

    A set is won by reaching the target with a lead of at least 2; past the
    target the lead must be exactly 2 (deuce). Badminton caps the set at 30,
    where 30-29 wins outright.
    """
    target = set_target(sport, set_number, max_sets)
    cap = SET_RULES[sport]["cap"]

    high, low = max(points_a, points_b), min(points_a, points_b)
    if high == low:
        return None
    side = "A" if points_a > points_b else "B"

    if cap is not None and high == cap and low == cap - 1:
        return side
    if cap is not None and high > cap:
        return None
    if high == target and low <= target - 2:
        return side
    if high > target and high - low == 2:
        return side
    return None


def _decided(state) -> Optional[str]:
    needed = sets_to_win(state["max_sets"])
    if state["score_a"] >= needed:
        return "A"
    if state["score_b"] >= needed:
        return "B"
    return None


# ============================
# 🏸 Actions
# ============================

def _start_set(state, action: StartSetAction, sport) -> EngineResult:
    if state["current_set"] is not None:
        raise RuleViolation(SET_IN_PROGRESS, f"Set {state['current_set']['set_number']} is still in progress")
    if _decided(state):
        raise RuleViolation(MATCH_ALREADY_DECIDED, "A side has already won enough sets")

    expected = len(state["set_details"]) + 1
    if action.set_number is not None and action.set_number != expected:
        raise RuleViolation(INVALID_ACTION, f"Next set is set {expected}, not set {action.set_number}")

    state["current_set"] = {"set_number": expected, "points_a": 0, "points_b": 0}
    return EngineResult(state)


def _update_set_points(state, action: UpdateSetPointsAction, sport) -> EngineResult:
    current = state["current_set"]
    if current is None:
        raise RuleViolation(NO_ACTIVE_SET, "No set is in progress")

    key = f"points_{action.team.lower()}"
    new_points = current[key] + action.delta
    if new_points < 0:
        raise RuleViolation(INVALID_ACTION, f"Team {action.team} has no points to remove")

    current[key] = new_points
    return EngineResult(state)


def _toggle_server(state, action: ToggleServerAction, sport) -> EngineResult:
    state["current_server"] = other_side(state["current_server"])
    return EngineResult(state)


def _end_set(state, action: EndSetAction, sport) -> EngineResult:
    current = state["current_set"]
    if current is None:
        raise RuleViolation(NO_ACTIVE_SET, "No set is in progress")

    points_a = current["points_a"] if action.final_points_a is None else action.final_points_a
    points_b = current["points_b"] if action.final_points_b is None else action.final_points_b
    set_number = current["set_number"]

    winner = set_winner(sport, set_number, state["max_sets"], points_a, points_b)
    if winner is None:
        target = set_target(sport, set_number, state["max_sets"])
        raise RuleViolation(
            INVALID_SET_SCORE,
            f"{points_a}-{points_b} does not finish set {set_number} (first to {target}, win by 2)",
        )
    if winner != action.winning_team:
        raise RuleViolation(
            INVALID_SET_SCORE,
            f"{points_a}-{points_b} is a set for team {winner}, not team {action.winning_team}",
        )

    state["set_details"].append({
        "set_number": set_number,
        "points_a": points_a,
        "points_b": points_b,
        "winner": winner,
    })
    state[score_key(winner)] += 1
    state["current_set"] = None

    match_winner = _decided(state)
    if match_winner:
        return EngineResult(state, completed=True, winner=match_winner)
    return EngineResult(state)


def _set_toss(state, action: SetTossAction, sport) -> EngineResult:
    record_toss(state, action, sport, has_started(state))
    if action.decision == "SERVE":
        state["current_server"] = action.winner
    return EngineResult(state)


_HANDLERS = {
    StartSetAction: _start_set,
    UpdateSetPointsAction: _update_set_points,
    ToggleServerAction: _toggle_server,
    EndSetAction: _end_set,
    SetTossAction: _set_toss,
}


def apply(sport, state: Dict[str, Any], action, now: float) -> EngineResult:
    """Apply one set-based action to a copy of the match state."""
    handler = dispatch(_HANDLERS, action, sport, "set-based scoring")
    return handler(working_copy(state), action, sport)
