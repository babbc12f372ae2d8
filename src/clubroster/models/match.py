"""Match fixture model."""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict


Venue = Literal["home", "away"]


class Match(BaseModel):
    """One fixture of a team; its alignment lives under ``alignments/<id>``."""

    id: str = Field(..., min_length=1)
    matchday: int = Field(..., ge=1)
    opponent: str = Field(..., min_length=1)
    date: Optional[str] = None
    venue: Venue = "home"
    venue_detail: Optional[str] = Field(default=None, alias="venueDetail")
    result: Optional[str] = None
    opponent_notes: Optional[str] = Field(default=None, alias="opponentNotes")
    strategy: Optional[str] = None
    team_id: Optional[str] = Field(default=None, alias="teamId")
    created_at: Optional[str] = Field(default=None, alias="createdAt")

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    def to_document(self) -> dict:
        return self.model_dump(by_alias=True, exclude={"id"}, exclude_none=True)
