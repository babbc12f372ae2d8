"""Typed entities validated at the document store boundary."""

from .documents import parse_document, parse_documents
from .fine import Fine
from .match import Match, Venue
from .player import Player, TemporaryPlayerPayload
from .team import StaffMember, TeamProfile, UserContext, UserRole

__all__ = [
    "Fine",
    "Match",
    "Player",
    "StaffMember",
    "TeamProfile",
    "TemporaryPlayerPayload",
    "UserContext",
    "UserRole",
    "Venue",
    "parse_document",
    "parse_documents",
]
