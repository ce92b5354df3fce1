# sportsfest_backend/engines/base.py
# Shared pieces of the sport rule engines.
#
# An engine is a module exposing:
#   initial_state(sport, **options) -> dict
#   apply(sport, state, action, now) -> EngineResult
#   has_started(state) -> bool
# Engines never touch the database or the broadcast channel, and never mutate
# the state they are given: they work on a deep copy and return it.

import copy
from dataclasses import dataclass
from typing import Any, Dict, Optional

from sportsfest_backend.core.errors import (
    RuleViolation,
    UNSUPPORTED_ACTION,
    INVALID_ACTION,
    TOSS_ALREADY_SET,
)
from sportsfest_backend.core.sport_config import toss_decisions_for


@dataclass
class EngineResult:
    """Next scoring state, plus whether the action decided the match."""
    state: Dict[str, Any]
    completed: bool = False
    winner: Optional[str] = None  # "A", "B" or None (draw / tie)


def other_side(side: str) -> str:
    return "B" if side == "A" else "A"


def score_key(side: str) -> str:
    return f"score_{side.lower()}"


def working_copy(state: Dict[str, Any]) -> Dict[str, Any]:
    return copy.deepcopy(state)


def dispatch(handlers: Dict[type, Any], action, sport, engine_name: str):
    """Pick the handler for an action type, or refuse it for this sport."""
    handler = handlers.get(type(action))
    if handler is None:
        raise RuleViolation(
            UNSUPPORTED_ACTION,
            f"Action '{action.action}' is not supported for {engine_name} ({sport.value})",
        )
    return handler


def record_toss(state: Dict[str, Any], action, sport, started: bool) -> Dict[str, Any]:
    """
    Store the toss result. Allowed once, and only before play begins.
    """
    if state.get("toss") is not None:
        raise RuleViolation(TOSS_ALREADY_SET, "Toss has already been recorded")
    if started:
        raise RuleViolation(TOSS_ALREADY_SET, "Toss cannot be recorded after play has started")

    allowed = toss_decisions_for(sport)
    if action.decision not in allowed:
        raise RuleViolation(
            INVALID_ACTION,
            f"Toss decision '{action.decision}' is not valid for {sport.value} (expected one of {allowed})",
        )

    state["toss"] = {"winner": action.winner, "decision": action.decision}
    return state
