"""Staff, team profile and the authenticated user context."""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict


class StaffMember(BaseModel):
    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    position: str = Field(..., min_length=1)
    phone: Optional[str] = None
    email: Optional[str] = None
    image: Optional[str] = None
    team_id: Optional[str] = Field(default=None, alias="teamId")
    active: bool = True

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    def to_document(self) -> dict:
        return self.model_dump(by_alias=True, exclude={"id"}, exclude_none=True)


class TeamProfile(BaseModel):
    id: str = Field(..., min_length=1)
    name: str = ""
    category: Optional[str] = None
    home_field: Optional[str] = Field(default=None, alias="homeField")
    logo: Optional[str] = None

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")


UserRole = Literal["admin", "coach"]


class UserContext(BaseModel):
    """Read-only identity used to scope queries and authorize writes."""

    user_id: str = Field(..., min_length=1)
    role: UserRole
    team_id: str = Field(..., min_length=1)

    model_config = ConfigDict(frozen=True)

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    @property
    def is_coach(self) -> bool:
        return self.role == "coach"
