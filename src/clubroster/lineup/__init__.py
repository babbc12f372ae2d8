"""Lineup assignment, special roles and the match editor session."""

from .alignment import MatchAlignment, apply_alignment, encode_alignment
from .engine import LineupEditor
from .roles import UNASSIGNED, RoleBadge, SpecialRoleEngine, badge_angles, badge_layout
from .selector import StartingPlayer, all_players, available_players, starting_players
from .session import AlignmentCache, AlignmentSession, WriteResult

__all__ = [
    "AlignmentCache",
    "AlignmentSession",
    "LineupEditor",
    "MatchAlignment",
    "RoleBadge",
    "SpecialRoleEngine",
    "StartingPlayer",
    "UNASSIGNED",
    "WriteResult",
    "all_players",
    "apply_alignment",
    "available_players",
    "badge_angles",
    "badge_layout",
    "encode_alignment",
    "starting_players",
]
