# sportsfest_backend/engines/shootout.py
# Penalty shootout for knockout draws.
#
# Rounds 1-5 alternate A then B. The shootout ends early once one side cannot
# be caught with the kicks it has left; level after five rounds goes to sudden
# death, decided by the first round where exactly one side scores.

from typing import Any, Dict

from sportsfest_backend.core.errors import (
    RuleViolation,
    MATCH_ALREADY_DECIDED,
    NO_ACTIVE_SHOOTOUT,
    SHOOTOUT_IN_PROGRESS,
)
from sportsfest_backend.core.sport_config import SHOOTOUT_REGULATION_ROUNDS
from sportsfest_backend.engines.base import EngineResult, dispatch, other_side, working_copy
from sportsfest_backend.models.action_schemas import (
    DeclareWinnerAction,
    RecordKickAction,
    StartShootoutAction,
)

IN_PROGRESS = "IN_PROGRESS"
COMPLETED = "COMPLETED"


def _goals(kicks: list) -> int:
    return sum(1 for kick in kicks if kick["scored"])


def _kicks(shootout: Dict[str, Any], side: str) -> list:
    return shootout[f"team_{side.lower()}"]


def _active(state: Dict[str, Any]) -> Dict[str, Any]:
    shootout = state.get("penalty_shootout")
    if not shootout or shootout["status"] != IN_PROGRESS:
        raise RuleViolation(NO_ACTIVE_SHOOTOUT, "No penalty shootout is in progress")
    return shootout


def _finish(state: Dict[str, Any], shootout: Dict[str, Any], winner: str) -> EngineResult:
    shootout["status"] = COMPLETED
    shootout["winner"] = winner
    shootout["final_score"] = {
        "A": _goals(shootout["team_a"]),
        "B": _goals(shootout["team_b"]),
    }
    return EngineResult(state, completed=True, winner=winner)


def _check_winner(shootout: Dict[str, Any], kick_round: int):
    kicks_a, kicks_b = shootout["team_a"], shootout["team_b"]
    goals_a, goals_b = _goals(kicks_a), _goals(kicks_b)

    if kick_round <= SHOOTOUT_REGULATION_ROUNDS:
        # Can the trailing side still draw level with the kicks it has left?
        left_a = max(0, SHOOTOUT_REGULATION_ROUNDS - len(kicks_a))
        left_b = max(0, SHOOTOUT_REGULATION_ROUNDS - len(kicks_b))
        if goals_a > goals_b + left_b:
            return "A"
        if goals_b > goals_a + left_a:
            return "B"
        return None

    # Sudden death: only decided once both sides have kicked in this round
    if len(kicks_a) == len(kicks_b) and kicks_a[-1]["scored"] != kicks_b[-1]["scored"]:
        return "A" if kicks_a[-1]["scored"] else "B"
    return None


def _start(state, action: StartShootoutAction) -> EngineResult:
    existing = state.get("penalty_shootout")
    if existing and existing["status"] == IN_PROGRESS:
        raise RuleViolation(SHOOTOUT_IN_PROGRESS, "A penalty shootout is already in progress")
    if existing and existing["status"] == COMPLETED:
        raise RuleViolation(MATCH_ALREADY_DECIDED, "The penalty shootout has already been decided")

    state["penalty_shootout"] = {
        "status": IN_PROGRESS,
        "team_a": [],
        "team_b": [],
        "current_round": 1,
        "current_team": "A",
        "winner": None,
        "final_score": None,
    }
    return EngineResult(state)


def _record_kick(state, action: RecordKickAction) -> EngineResult:
    shootout = _active(state)
    side = shootout["current_team"]
    kick_round = shootout["current_round"]

    _kicks(shootout, side).append({
        "round": kick_round,
        "scored": action.scored,
        "miss_type": None if action.scored else (action.miss_type.value if action.miss_type else "MISSED"),
        "player_name": action.player_name,
    })
    shootout["current_team"] = other_side(side)

    winner = _check_winner(shootout, kick_round)

    if side == "B":
        shootout["current_round"] = kick_round + 1

    if winner:
        return _finish(state, shootout, winner)
    return EngineResult(state)


def _declare_winner(state, action: DeclareWinnerAction) -> EngineResult:
    shootout = _active(state)
    return _finish(state, shootout, action.team)


_HANDLERS = {
    StartShootoutAction: _start,
    RecordKickAction: _record_kick,
    DeclareWinnerAction: _declare_winner,
}

SHOOTOUT_ACTIONS = tuple(_HANDLERS)


def apply(sport, state: Dict[str, Any], action, now: float) -> EngineResult:
    """Apply one shootout action to a copy of the match state."""
    handler = dispatch(_HANDLERS, action, sport, "penalty shootout")
    return handler(working_copy(state), action)
