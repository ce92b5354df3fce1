# sportsfest_backend/engines/timed.py
# Timed-period scoring for football, basketball, kho-kho and kabaddi.
#
# The game clock is stored as (start_time, elapsed_seconds) and never ticks on
# the server: elapsed time is derived from the wall clock whenever it is needed,
# and viewers run their own countdown from the broadcast start_time.

from typing import Any, Dict, Optional

from sportsfest_backend.core.errors import (
    RuleViolation,
    ALL_PERIODS_COMPLETE,
    INVALID_ACTION,
    INVALID_TIMER_STATE,
)
from sportsfest_backend.core.foul_config import RED_CARD, YELLOW_CARD
from sportsfest_backend.core.sport_config import (
    DEFAULT_MAX_PERIODS,
    PERIOD_LABEL,
    SCORE_POINTS,
    SCORE_TYPE_LABEL,
    SHOOTOUT_SPORTS,
)
from sportsfest_backend.engines import shootout
from sportsfest_backend.engines.base import (
    EngineResult,
    dispatch,
    record_toss,
    score_key,
    working_copy,
)
from sportsfest_backend.models.action_schemas import (
    AdvancePeriodAction,
    RecordScoreAction,
    SetTossAction,
    TimerAction,
    TimerKind,
)


def _fresh_timer() -> Dict[str, Any]:
    return {
        "is_running": False,
        "is_paused": False,
        "start_time": None,       # Epoch seconds of the current running stretch
        "elapsed_seconds": 0.0,   # Time banked before start_time
        "added_time": 0,          # Stoppage time announced for this period (seconds)
    }


def initial_state(sport, max_periods: Optional[int] = None, **_options) -> Dict[str, Any]:
    periods = DEFAULT_MAX_PERIODS[sport] if max_periods is None else max_periods
    if periods < 1:
        raise RuleViolation(INVALID_ACTION, "max_periods must be at least 1")

    return {
        "toss": None,
        "period": 1,
        "max_periods": periods,
        "period_label": PERIOD_LABEL[sport],
        "timer": _fresh_timer(),
        "score_a": 0,
        "score_b": 0,
        "cards_a": {"yellow": 0, "red": 0},
        "cards_b": {"yellow": 0, "red": 0},
        "scorers": [],
        "penalty_shootout": None,
    }


def has_started(state: Dict[str, Any]) -> bool:
    timer = state["timer"]
    return bool(
        timer["is_running"] or timer["is_paused"] or timer["elapsed_seconds"]
        or state["period"] > 1 or state["score_a"] or state["score_b"]
    )


# ============================
# ⏱️ Clock
# ============================

def elapsed_seconds(timer: Dict[str, Any], now: float) -> float:
    """Elapsed game time at `now`, a pure function of the stored timer."""
    elapsed = timer["elapsed_seconds"]
    if timer["is_running"] and timer["start_time"] is not None:
        elapsed += max(0.0, now - timer["start_time"])
    return elapsed


def _bank(timer: Dict[str, Any], now: float) -> None:
    timer["elapsed_seconds"] = round(elapsed_seconds(timer, now), 3)
    timer["start_time"] = None


def _timer_action(state, action: TimerAction, sport, now: float) -> EngineResult:
    timer = state["timer"]
    kind = action.kind

    if kind == TimerKind.START:
        if timer["is_running"] or timer["is_paused"]:
            raise RuleViolation(INVALID_TIMER_STATE, "Timer is already started; use resume after a pause")
        timer["start_time"] = now
        timer["is_running"] = True

    elif kind == TimerKind.PAUSE:
        if not timer["is_running"]:
            raise RuleViolation(INVALID_TIMER_STATE, "Timer is not running")
        _bank(timer, now)
        timer["is_running"] = False
        timer["is_paused"] = True

    elif kind == TimerKind.RESUME:
        if not timer["is_paused"]:
            raise RuleViolation(INVALID_TIMER_STATE, "Timer is not paused")
        timer["start_time"] = now
        timer["is_paused"] = False
        timer["is_running"] = True

    elif kind == TimerKind.STOP:
        if not (timer["is_running"] or timer["is_paused"]):
            raise RuleViolation(INVALID_TIMER_STATE, "Timer is not started")
        if timer["is_running"]:
            _bank(timer, now)
        timer["start_time"] = None
        timer["is_running"] = False
        timer["is_paused"] = False

    elif kind == TimerKind.ADD_TIME:
        if not action.seconds:
            raise RuleViolation(INVALID_ACTION, "addTime needs a positive number of seconds")
        timer["added_time"] += action.seconds

    return EngineResult(state)


# ============================
# ⚽ Scoring
# ============================

def _record_score(state, action: RecordScoreAction, sport, now: float) -> EngineResult:
    shootout_state = state.get("penalty_shootout")
    if shootout_state and shootout_state["status"] == shootout.IN_PROGRESS:
        raise RuleViolation(INVALID_ACTION, "Scores cannot change during a penalty shootout")

    allowed = SCORE_POINTS[sport]
    points = action.points
    if abs(points) not in allowed:
        raise RuleViolation(INVALID_ACTION, f"{sport.value} scores must be one of {sorted(allowed)} points")

    key = score_key(action.team)
    if state[key] + points < 0:
        raise RuleViolation(INVALID_ACTION, f"Team {action.team} score cannot go below 0")
    state[key] += points

    if points < 0:
        # Correction: drop the latest matching scorer entry, if any
        for index in range(len(state["scorers"]) - 1, -1, -1):
            entry = state["scorers"][index]
            if entry["team"] == action.team and entry["points"] == -points:
                del state["scorers"][index]
                break
        return EngineResult(state)

    if action.player_name:
        minute = action.time
        if minute is None:
            minute = int(elapsed_seconds(state["timer"], now) // 60) + 1
        state["scorers"].append({
            "team": action.team,
            "player_name": action.player_name,
            "time": minute,
            "type": action.score_type or SCORE_TYPE_LABEL[sport],
            "points": points,
            "period": state["period"],
        })
    return EngineResult(state)


def _advance_period(state, action: AdvancePeriodAction, sport, now: float) -> EngineResult:
    if state["period"] + 1 > state["max_periods"]:
        raise RuleViolation(
            ALL_PERIODS_COMPLETE,
            f"All {state['max_periods']} periods are complete; end the match instead",
        )
    # Each period starts with a stopped, zeroed clock
    state["period"] += 1
    state["timer"] = _fresh_timer()
    return EngineResult(state)


def _set_toss(state, action: SetTossAction, sport, now: float) -> EngineResult:
    record_toss(state, action, sport, has_started(state))
    return EngineResult(state)


# ============================
# 🟨🟥 Card counters (driven by the foul sub-ledger)
# ============================

def apply_card(state: Dict[str, Any], team: str, foul_type: str, delta: int) -> Dict[str, Any]:
    """Return a copy of the state with the team's card counter moved by delta."""
    field = {YELLOW_CARD: "yellow", RED_CARD: "red"}.get(foul_type)
    next_state = working_copy(state)
    if field is None:
        return next_state
    cards = next_state[f"cards_{team.lower()}"]
    cards[field] = max(0, cards[field] + delta)
    return next_state


_HANDLERS = {
    RecordScoreAction: _record_score,
    TimerAction: _timer_action,
    AdvancePeriodAction: _advance_period,
    SetTossAction: _set_toss,
}


def apply(sport, state: Dict[str, Any], action, now: float) -> EngineResult:
    """Apply one timed-period action to a copy of the match state."""
    if sport in SHOOTOUT_SPORTS and isinstance(action, shootout.SHOOTOUT_ACTIONS):
        return shootout.apply(sport, state, action, now)
    handler = dispatch(_HANDLERS, action, sport, "timed-period scoring")
    return handler(working_copy(state), action, sport, now)
