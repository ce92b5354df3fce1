# sportsfest_backend/models/match_model.py
# Defines the Match document (fixed attributes + sport-specific scoring state)
# and the schemas used to create, update and return it.

from typing import Optional, List, Dict, Any
from datetime import datetime
from sqlmodel import SQLModel, Field, JSON, Column
from pydantic import BaseModel, ConfigDict, model_validator

from sportsfest_backend.core.sport_config import Sport, MatchStatus, MatchCategory
from sportsfest_backend.models.action_schemas import Side
from sportsfest_backend.models.foul_model import FoulRead


class Match(SQLModel, table=True):
    """
    One live-scored match between two departments.
    The scoring substructure differs per sport and is stored as a JSON document.
    """
    id: Optional[int] = Field(default=None, primary_key=True)

    # Fixed attributes
    sport: Sport = Field(index=True)
    team_a: str                                           # Department reference (side A)
    team_b: str                                           # Department reference (side B)
    scheduled_at: Optional[datetime] = None
    venue: str = Field(default="Main Ground")
    category: MatchCategory = Field(default=MatchCategory.REGULAR)

    # Lifecycle
    status: MatchStatus = Field(default=MatchStatus.SCHEDULED, index=True)
    winner: Optional[str] = None                          # Set only when COMPLETED

    # Sport-specific scoring state (cricket innings, sets, timer, shootout...)
    # Example (set-based): {"max_sets": 3, "score_a": 1, "score_b": 0, "current_set": None, ...}
    state: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON))

    # Incremented on every save so viewers can drop stale snapshots
    version: int = Field(default=0)

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


# -------------------------------
# Pydantic schemas for API requests/responses
# -------------------------------

class MatchCreate(BaseModel):
    """Schema for scheduling a new match"""
    sport: Sport
    team_a: str
    team_b: str
    scheduled_at: Optional[datetime] = None
    venue: str = "Main Ground"
    category: MatchCategory = MatchCategory.REGULAR

    # Sport-specific setup (ignored by sports that do not use them)
    total_overs: Optional[int] = None
    max_sets: Optional[int] = None
    max_periods: Optional[int] = None

    @model_validator(mode="after")
    def teams_must_differ(self):
        if self.team_a == self.team_b:
            raise ValueError("A team cannot play against itself")
        return self


class StatusUpdate(BaseModel):
    """Schema for moving a match along SCHEDULED -> LIVE -> COMPLETED"""
    status: MatchStatus
    winner: Optional[Side] = None       # Explicit winner when completing (else derived from scores)
    abandoned: bool = False             # Allows SCHEDULED -> COMPLETED


class SuspendedPlayer(BaseModel):
    player_name: str
    team: str
    yellow: int
    red: int


class MatchRead(BaseModel):
    """Full match document as returned by the API and pushed to live subscribers."""
    id: int
    sport: Sport
    team_a: str
    team_b: str
    scheduled_at: Optional[datetime] = None
    venue: str
    category: MatchCategory
    status: MatchStatus
    winner: Optional[str] = None
    toss: Optional[Dict[str, Any]] = None
    state: Dict[str, Any]
    version: int
    created_at: datetime
    updated_at: datetime

    fouls: List[FoulRead] = []
    suspended_players: List[SuspendedPlayer] = []

    model_config = ConfigDict(from_attributes=True)
