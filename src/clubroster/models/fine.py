"""Fine (club penalty) model."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict


class Fine(BaseModel):
    id: str = Field(..., min_length=1)
    player_id: str = Field(..., min_length=1, alias="playerId")
    reason: str = ""
    amount: float = Field(..., gt=0)
    date: Optional[str] = None
    paid: bool = False
    paid_at: Optional[str] = Field(default=None, alias="paidAt")
    team_id: Optional[str] = Field(default=None, alias="teamId")
    created_at: Optional[str] = Field(default=None, alias="createdAt")

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    def to_document(self) -> dict:
        return self.model_dump(by_alias=True, exclude={"id"}, exclude_none=True)
