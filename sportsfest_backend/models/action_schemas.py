# sportsfest_backend/models/action_schemas.py
# Live update actions sent by the admin console.
# Every payload carries an "action" tag; the remaining fields depend on the tag.

from enum import Enum
from typing import Any, ClassVar, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter, ValidationError
from typing_extensions import Annotated

from sportsfest_backend.core.errors import INVALID_ACTION, UNSUPPORTED_ACTION, MatchError

Side = Literal["A", "B"]


class ExtraType(str, Enum):
    WIDE = "WIDE"
    NO_BALL = "NO_BALL"
    BYE = "BYE"
    LEG_BYE = "LEG_BYE"
    PENALTY = "PENALTY"


class WicketType(str, Enum):
    BOWLED = "BOWLED"
    CAUGHT = "CAUGHT"
    LBW = "LBW"
    RUN_OUT = "RUN_OUT"
    STUMPED = "STUMPED"
    HIT_WICKET = "HIT_WICKET"
    RETIRED = "RETIRED"


class TimerKind(str, Enum):
    START = "start"
    PAUSE = "pause"
    RESUME = "resume"
    STOP = "stop"
    ADD_TIME = "addTime"


class MissType(str, Enum):
    SAVED = "SAVED"
    MISSED = "MISSED"
    HIT_POST = "HIT_POST"


class BaseAction(BaseModel):
    # Scoring actions need a LIVE match; the others are also accepted while SCHEDULED
    scoring: ClassVar[bool] = True


# ==========================================
# SHARED
# ==========================================

class SetTossAction(BaseAction):
    scoring: ClassVar[bool] = False
    action: Literal["setToss"]
    winner: Side
    decision: str


# ==========================================
# CRICKET
# ==========================================

class SquadPlayerIn(BaseModel):
    """Player entry when configuring a cricket squad"""
    player_id: Optional[str] = None
    player_name: str = Field(min_length=1)
    role: str = "BATSMAN"
    batting_order: Optional[int] = Field(default=None, ge=1)
    jersey_number: Optional[int] = Field(default=None, ge=0)


class RecordBallAction(BaseAction):
    action: Literal["recordBall"]
    runs: int = Field(default=0, ge=0, le=6)  # runs run or hit off this delivery
    extra_type: Optional[ExtraType] = None
    wicket_type: Optional[WicketType] = None
    out_by: Optional[str] = None  # fielder / bowler credited with the dismissal
    dismissed_batsman: Literal["striker", "non_striker"] = "striker"


class ChangeBowlerAction(BaseAction):
    action: Literal["changeBowler"]
    player_id: str
    player_name: Optional[str] = None


class EndInningsAction(BaseAction):
    action: Literal["endInnings"]


class UndoBallAction(BaseAction):
    action: Literal["undoBall"]


class SelectBatsmanAction(BaseAction):
    action: Literal["selectBatsman"]
    player_id: str
    player_name: str = Field(min_length=1)
    position: Literal["striker", "non_striker"] = "striker"


class SwitchStrikeAction(BaseAction):
    action: Literal["switchStrike"]


class SetSquadAction(BaseAction):
    scoring: ClassVar[bool] = False
    action: Literal["setSquad"]
    team: Side
    players: List[SquadPlayerIn]


# ==========================================
# SET-BASED (badminton / table tennis / volleyball)
# ==========================================

class StartSetAction(BaseAction):
    action: Literal["startSet"]
    set_number: Optional[int] = Field(default=None, ge=1)


class UpdateSetPointsAction(BaseAction):
    action: Literal["updateSetPoints"]
    team: Side
    delta: Literal[1, -1] = 1


class ToggleServerAction(BaseAction):
    action: Literal["toggleServer"]


class EndSetAction(BaseAction):
    action: Literal["endSet"]
    winning_team: Side
    final_points_a: Optional[int] = Field(default=None, ge=0)
    final_points_b: Optional[int] = Field(default=None, ge=0)


# ==========================================
# TIMED-PERIOD (football / basketball / kho-kho / kabaddi)
# ==========================================

class RecordScoreAction(BaseAction):
    action: Literal["recordScore"]
    team: Side
    points: int = 1
    player_name: Optional[str] = None
    time: Optional[int] = Field(default=None, ge=0)  # game minute
    score_type: Optional[str] = None


class TimerAction(BaseAction):
    action: Literal["timerAction"]
    kind: TimerKind
    seconds: Optional[int] = Field(default=None, gt=0)  # addTime only


class AdvancePeriodAction(BaseAction):
    action: Literal["advancePeriod"]


# ==========================================
# PENALTY SHOOTOUT
# ==========================================

class StartShootoutAction(BaseAction):
    action: Literal["startShootout"]


class RecordKickAction(BaseAction):
    action: Literal["recordKick"]
    scored: bool
    miss_type: Optional[MissType] = None
    player_name: Optional[str] = None


class DeclareWinnerAction(BaseAction):
    action: Literal["declareWinner"]
    team: Side


# ==========================================
# CHESS
# ==========================================

class RecordResultAction(BaseAction):
    action: Literal["recordResult"]
    result: Literal["A", "B", "DRAW"]


MatchAction = Annotated[
    Union[
        SetTossAction,
        RecordBallAction,
        ChangeBowlerAction,
        EndInningsAction,
        UndoBallAction,
        SelectBatsmanAction,
        SwitchStrikeAction,
        SetSquadAction,
        StartSetAction,
        UpdateSetPointsAction,
        ToggleServerAction,
        EndSetAction,
        RecordScoreAction,
        TimerAction,
        AdvancePeriodAction,
        StartShootoutAction,
        RecordKickAction,
        DeclareWinnerAction,
        RecordResultAction,
    ],
    Field(discriminator="action"),
]

_action_adapter = TypeAdapter(MatchAction)


def parse_action(payload: Dict[str, Any]):
    """
    Validate a raw action payload into its typed action model.

    Unknown action tags are UNSUPPORTED_ACTION; bad parameters are INVALID_ACTION.
    """
    try:
        return _action_adapter.validate_python(payload)
    except ValidationError as exc:
        errors = exc.errors()
        if any(err["type"] in ("union_tag_invalid", "union_tag_not_found") for err in errors):
            raise MatchError(UNSUPPORTED_ACTION, f"Unknown action: {payload.get('action')!r}")
        details = "; ".join(
            f"{'.'.join(str(part) for part in err['loc'][1:]) or 'payload'}: {err['msg']}"
            for err in errors
        )
        raise MatchError(INVALID_ACTION, details)
