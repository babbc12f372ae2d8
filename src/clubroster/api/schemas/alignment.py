from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from clubroster.models import Player


class SlotResponse(BaseModel):
    slot_id: str
    line: str
    x: float
    y: float


class FormationResponse(BaseModel):
    formation_id: str
    name: str
    slots: List[SlotResponse]


class RoleResponse(BaseModel):
    role_id: str
    label: str
    badge: str
    badge_color: str
    background_color: str


class AssignRequest(BaseModel):
    player_id: str = Field(..., min_length=1)


class SubstituteRequest(BaseModel):
    player_id: str = Field(..., min_length=1)


class TemporaryPlayerRequest(BaseModel):
    name: str
    # Validated by the lineup engine.
    number: int | str
    position: str = ""
    slot_id: Optional[str] = None
    as_substitute: bool = False


class FormationRequest(BaseModel):
    formation_id: str = Field(..., min_length=1)


class RoleRequest(BaseModel):
    player_id: Optional[str] = None


class AlignmentResponse(BaseModel):
    match_id: str
    loaded: bool
    formation_id: str
    lineup: Dict[str, Optional[Player]]
    substitutes: List[Player]
    temporary_players: List[Player]
    special_roles: Dict[str, Optional[str]]
    role_holders: Dict[str, str]
    pending_write: bool
    last_error: Optional[str] = None


class ActionResponse(BaseModel):
    changed: bool
    alignment: AlignmentResponse


class TemporaryPlayerResponse(ActionResponse):
    player: Optional[Player] = None


class BadgeResponse(BaseModel):
    role_id: str
    angle: float
    x: float
    y: float
