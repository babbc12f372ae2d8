from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field

from clubroster.models import Fine, Player, StaffMember


class PlayerCreateRequest(BaseModel):
    name: str = Field(..., min_length=1)
    number: int = Field(..., ge=0)
    position: str = Field(..., min_length=1)
    image: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    foot: Optional[str] = None


class PlayerUpdateRequest(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    number: Optional[int] = Field(default=None, ge=0)
    position: Optional[str] = None
    image: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    foot: Optional[str] = None


class StaffCreateRequest(BaseModel):
    name: str = Field(..., min_length=1)
    position: str = Field(..., min_length=1)
    phone: Optional[str] = None
    email: Optional[str] = None
    image: Optional[str] = None


class StaffUpdateRequest(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    position: Optional[str] = Field(default=None, min_length=1)
    phone: Optional[str] = None
    email: Optional[str] = None
    image: Optional[str] = None


class FineCreateRequest(BaseModel):
    amount: float = Field(..., gt=0)
    reason: str = ""
    date: Optional[str] = None
    paid: bool = False


class FineUpdateRequest(BaseModel):
    amount: Optional[float] = Field(default=None, gt=0)
    reason: Optional[str] = None
    date: Optional[str] = None
    paid: Optional[bool] = None


class FinePaidRequest(BaseModel):
    paid: bool = True


class FineStatisticsResponse(BaseModel):
    count: int
    pending_count: int
    pending_total: float
    paid_total: float
    total_amount: float


class PlayerFinesResponse(BaseModel):
    player: Player
    fines: List[Fine]
    statistics: FineStatisticsResponse


class PlayerDebtResponse(BaseModel):
    player: Player
    pending_count: int
    pending_total: float


class TeamStatisticsResponse(BaseModel):
    total_players: int
    total_fines: int
    pending_fines: int
    total_debt: float
    debtors: List[PlayerDebtResponse]


class StaffListResponse(BaseModel):
    staff: List[StaffMember]


class PlayerListResponse(BaseModel):
    players: List[Player]
