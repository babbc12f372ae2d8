from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field

from clubroster.models import Match, Venue


class MatchCreateRequest(BaseModel):
    matchday: int = Field(..., ge=1)
    opponent: str = Field(..., min_length=1)
    date: Optional[str] = None
    venue: Venue = "home"
    venue_detail: Optional[str] = None
    opponent_notes: Optional[str] = None
    strategy: Optional[str] = None


class MatchUpdateRequest(BaseModel):
    matchday: Optional[int] = Field(default=None, ge=1)
    opponent: Optional[str] = Field(default=None, min_length=1)
    date: Optional[str] = None
    venue: Optional[Venue] = None
    venue_detail: Optional[str] = None
    result: Optional[str] = None
    opponent_notes: Optional[str] = None
    strategy: Optional[str] = None


class MatchListResponse(BaseModel):
    matches: List[Match]
