"""Canonical player model shared by caches, services and the lineup engine."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict


class Player(BaseModel):
    """Roster or match-only player.

    Roster players are persisted in the ``players`` collection; temporary
    players only exist inside a match alignment payload. The lineup engine
    treats both the same way.
    """

    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    number: int = Field(0, ge=0)
    position: str = ""
    image: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    foot: Optional[str] = None
    team_id: Optional[str] = Field(default=None, alias="teamId")
    active: bool = True
    is_temporary: bool = Field(default=False, alias="isTemporary")

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    def to_document(self) -> dict:
        """Document payload as stored remotely (camelCase keys, no id)."""

        return self.model_dump(by_alias=True, exclude={"id"}, exclude_none=True)


class TemporaryPlayerPayload(BaseModel):
    """Embedded temporary player entry inside a match alignment document."""

    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    number: int = Field(0, ge=0)
    position: str = ""

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_player(cls, player: Player) -> "TemporaryPlayerPayload":
        return cls(id=player.id, name=player.name, number=player.number, position=player.position)

    def to_player(self) -> Player:
        return Player(
            id=self.id,
            name=self.name,
            number=self.number,
            position=self.position,
            is_temporary=True,
        )
