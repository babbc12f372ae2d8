"""Static catalogues: formations and special roles."""

from .formations import (
    DEFAULT_FORMATION_ID,
    Formation,
    Slot,
    find_formation,
    get_formation,
    iter_formations,
    slot_line,
)
from .roles import ROLE_IDS, SPECIAL_ROLES, RoleDefinition, get_role, is_role

__all__ = [
    "DEFAULT_FORMATION_ID",
    "Formation",
    "Slot",
    "find_formation",
    "get_formation",
    "iter_formations",
    "slot_line",
    "ROLE_IDS",
    "SPECIAL_ROLES",
    "RoleDefinition",
    "get_role",
    "is_role",
]
