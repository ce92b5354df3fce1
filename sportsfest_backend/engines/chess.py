# sportsfest_backend/engines/chess.py
# Chess boards are not scored move by move: the arbiter records the result.

from typing import Any, Dict

from sportsfest_backend.engines.base import EngineResult, dispatch, record_toss, working_copy
from sportsfest_backend.models.action_schemas import RecordResultAction, SetTossAction


def initial_state(sport, **_options) -> Dict[str, Any]:
    return {"toss": None, "score_a": 0, "score_b": 0, "result": None}


def has_started(state: Dict[str, Any]) -> bool:
    return state["result"] is not None


def _record_result(state, action: RecordResultAction, sport) -> EngineResult:
    state["result"] = action.result
    if action.result == "DRAW":
        return EngineResult(state, completed=True, winner=None)
    state[f"score_{action.result.lower()}"] = 1
    return EngineResult(state, completed=True, winner=action.result)


def _set_toss(state, action: SetTossAction, sport) -> EngineResult:
    record_toss(state, action, sport, has_started(state))
    return EngineResult(state)


_HANDLERS = {
    RecordResultAction: _record_result,
    SetTossAction: _set_toss,
}


def apply(sport, state: Dict[str, Any], action, now: float) -> EngineResult:
    handler = dispatch(_HANDLERS, action, sport, "chess")
    return handler(working_copy(state), action, sport)
