# sportsfest_backend/models/foul_model.py
# Defines the Foul table: the append-only disciplinary sub-ledger of a match.
# Records are never edited; they are only added or removed by id.
# Suspensions (2 yellows or 1 red) are derived from these rows, never stored.

from typing import Optional
from datetime import datetime
from sqlmodel import SQLModel, Field
from pydantic import BaseModel, ConfigDict, Field as SchemaField

from sportsfest_backend.models.action_schemas import Side


class Foul(SQLModel, table=True):
    """Database model for a single foul or card."""
    id: Optional[int] = Field(default=None, primary_key=True)
    match_id: int = Field(foreign_key="match.id", index=True)

    team: str                                   # "A" or "B"
    foul_type: str                              # e.g. "YELLOW_CARD", "PERSONAL_FOUL"
    player_name: str
    jersey_number: Optional[int] = None
    game_time: Optional[int] = None             # Minute of play
    consequence: Optional[str] = None           # From the foul type's fixed list
    pitch_location: Optional[str] = None        # Tactical zone label
    reason: Optional[str] = None

    timestamp: datetime = Field(default_factory=datetime.utcnow)


class FoulCreate(BaseModel):
    """Schema for recording a foul"""
    team: Side
    foul_type: str
    player_name: str
    jersey_number: Optional[int] = SchemaField(default=None, ge=0)
    game_time: Optional[int] = SchemaField(default=None, ge=0)
    consequence: Optional[str] = None
    pitch_location: Optional[str] = None
    reason: Optional[str] = None


class FoulRead(BaseModel):
    id: int
    match_id: int
    team: str
    foul_type: str
    player_name: str
    jersey_number: Optional[int] = None
    game_time: Optional[int] = None
    consequence: Optional[str] = None
    pitch_location: Optional[str] = None
    reason: Optional[str] = None
    timestamp: datetime

    model_config = ConfigDict(from_attributes=True)
