"""Pydantic models for API I/O."""

from .alignment import (
    ActionResponse,
    AlignmentResponse,
    AssignRequest,
    BadgeResponse,
    FormationRequest,
    FormationResponse,
    RoleRequest,
    RoleResponse,
    SlotResponse,
    SubstituteRequest,
    TemporaryPlayerRequest,
    TemporaryPlayerResponse,
)
from .matches import MatchCreateRequest, MatchListResponse, MatchUpdateRequest
from .roster import (
    FineCreateRequest,
    FinePaidRequest,
    FineStatisticsResponse,
    FineUpdateRequest,
    PlayerCreateRequest,
    PlayerDebtResponse,
    PlayerFinesResponse,
    PlayerListResponse,
    PlayerUpdateRequest,
    StaffCreateRequest,
    StaffListResponse,
    StaffUpdateRequest,
    TeamStatisticsResponse,
)

__all__ = [
    "ActionResponse",
    "AlignmentResponse",
    "AssignRequest",
    "BadgeResponse",
    "FormationRequest",
    "FormationResponse",
    "RoleRequest",
    "RoleResponse",
    "SlotResponse",
    "SubstituteRequest",
    "TemporaryPlayerRequest",
    "TemporaryPlayerResponse",
    "FineCreateRequest",
    "FinePaidRequest",
    "FineStatisticsResponse",
    "FineUpdateRequest",
    "MatchCreateRequest",
    "MatchListResponse",
    "MatchUpdateRequest",
    "PlayerCreateRequest",
    "PlayerDebtResponse",
    "PlayerFinesResponse",
    "PlayerListResponse",
    "PlayerUpdateRequest",
    "StaffCreateRequest",
    "StaffListResponse",
    "StaffUpdateRequest",
    "TeamStatisticsResponse",
]
