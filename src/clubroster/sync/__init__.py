"""Live synchronization layer: subscriptions, caches and derived aggregates."""

from .cache import CollectionCache, DocumentCache, EntityCache
from .caches import FinesCache, MatchesCache, PlayersCache, StaffCache, TeamProfileCache
from .stats import (
    FineStatistics,
    PlayerDebt,
    TeamStatistics,
    fine_statistics,
    players_with_pending_fines,
    team_statistics,
)
from .subscription import Subscription, subscribe_collection, subscribe_document

__all__ = [
    "CollectionCache",
    "DocumentCache",
    "EntityCache",
    "FineStatistics",
    "FinesCache",
    "MatchesCache",
    "PlayerDebt",
    "PlayersCache",
    "StaffCache",
    "Subscription",
    "TeamProfileCache",
    "TeamStatistics",
    "fine_statistics",
    "players_with_pending_fines",
    "subscribe_collection",
    "subscribe_document",
    "team_statistics",
]
