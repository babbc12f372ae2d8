"""Special-role catalogue (captain, set-piece takers)."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Tuple


@dataclass(frozen=True)
class RoleDefinition:
    role_id: str
    label: str
    badge: str
    badge_color: str
    background_color: str


SPECIAL_ROLES: Tuple[RoleDefinition, ...] = (
    RoleDefinition("captain", "Captain", "C", "#000000", "#FFC107"),
    RoleDefinition("freeKicks", "Long free kicks", "F", "#FFFFFF", "#FF5722"),
    RoleDefinition("freeKicksNear", "Near free kicks", "f", "#000000", "#FF9800"),
    RoleDefinition("corners", "Corners", "flag", "#FFFFFF", "#2196F3"),
    RoleDefinition("penalties", "Penalties", "P", "#FFFFFF", "#E91E63"),
)

ROLE_IDS: Tuple[str, ...] = tuple(role.role_id for role in SPECIAL_ROLES)

_ROLES_BY_ID: Dict[str, RoleDefinition] = {role.role_id: role for role in SPECIAL_ROLES}


def get_role(role_id: str) -> RoleDefinition:
    if role_id not in _ROLES_BY_ID:
        raise KeyError(f"Unknown special role {role_id!r}")
    return _ROLES_BY_ID[role_id]


def is_role(role_id: str) -> bool:
    return role_id in _ROLES_BY_ID
