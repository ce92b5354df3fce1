# sportsfest_backend/core/errors.py
# Error taxonomy for live match updates.
# Every error carries a stable "kind" that the admin console keys its message on.

from fastapi import Request
from fastapi.responses import JSONResponse

# =====================================
# Error kinds
# =====================================
MATCH_NOT_FOUND = "MATCH_NOT_FOUND"
MATCH_NOT_LIVE = "MATCH_NOT_LIVE"
UNSUPPORTED_ACTION = "UNSUPPORTED_ACTION"
INVALID_STATUS_TRANSITION = "INVALID_STATUS_TRANSITION"
INVALID_ACTION = "INVALID_ACTION"

# Cricket
NO_BATSMAN = "NO_BATSMAN"
OVER_IN_PROGRESS = "OVER_IN_PROGRESS"
TOSS_ALREADY_SET = "TOSS_ALREADY_SET"
INNINGS_COMPLETE = "INNINGS_COMPLETE"
PLAYER_NOT_IN_SQUAD = "PLAYER_NOT_IN_SQUAD"

# Set-based
SET_IN_PROGRESS = "SET_IN_PROGRESS"
NO_ACTIVE_SET = "NO_ACTIVE_SET"
MATCH_ALREADY_DECIDED = "MATCH_ALREADY_DECIDED"
INVALID_SET_SCORE = "INVALID_SET_SCORE"

# Timed-period
ALL_PERIODS_COMPLETE = "ALL_PERIODS_COMPLETE"
INVALID_TIMER_STATE = "INVALID_TIMER_STATE"

# Penalty shootout
SHOOTOUT_IN_PROGRESS = "SHOOTOUT_IN_PROGRESS"
NO_ACTIVE_SHOOTOUT = "NO_ACTIVE_SHOOTOUT"

# Foul sub-ledger
FOUL_NOT_FOUND = "FOUL_NOT_FOUND"
INVALID_FOUL = "INVALID_FOUL"

# HTTP status per kind (anything not listed is a 409 state conflict)
STATUS_BY_KIND = {
    MATCH_NOT_FOUND: 404,
    FOUL_NOT_FOUND: 404,
    UNSUPPORTED_ACTION: 400,
    INVALID_ACTION: 422,
    INVALID_FOUL: 422,
    INVALID_SET_SCORE: 422,
    PLAYER_NOT_IN_SQUAD: 422,
}


class MatchError(Exception):
    """A match update was refused. The match document is left untouched."""

    def __init__(self, kind: str, message: str):
        super().__init__(message)
        self.kind = kind
        self.message = message

    @property
    def status_code(self) -> int:
        return STATUS_BY_KIND.get(self.kind, 409)

    def to_dict(self) -> dict:
        return {"kind": self.kind, "message": self.message}

    def __repr__(self):
        return f"{type(self).__name__}({self.kind!r}, {self.message!r})"


class RuleViolation(MatchError):
    """Raised by a rule engine when an action breaks a precondition of the sport."""


async def match_error_handler(request: Request, exc: MatchError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())
