"""Concrete caches for the collections the club views watch."""

from __future__ import annotations

from clubroster.models import Fine, Match, Player, StaffMember, TeamProfile, UserContext
from clubroster.store.types import FINES, MATCHES, PLAYERS, STAFF, TEAMS, CollectionQuery, DocumentStore, document_path
from clubroster.sync.cache import CollectionCache, DocumentCache
from clubroster.sync.stats import FineStatistics, fine_statistics


def team_players_query(context: UserContext) -> CollectionQuery:
    return CollectionQuery(PLAYERS).where("teamId", context.team_id).where("active", True).ordered("number")


def team_staff_query(context: UserContext) -> CollectionQuery:
    return CollectionQuery(STAFF).where("teamId", context.team_id).where("active", True).ordered("name")


def team_matches_query(context: UserContext) -> CollectionQuery:
    return CollectionQuery(MATCHES).where("teamId", context.team_id).ordered("matchday")


def player_fines_query(player_id: str) -> CollectionQuery:
    return CollectionQuery(FINES).where("playerId", player_id).ordered("createdAt", descending=True)


def team_fines_query(context: UserContext) -> CollectionQuery:
    return CollectionQuery(FINES).where("teamId", context.team_id).ordered("createdAt", descending=True)


class PlayersCache(CollectionCache[Player]):
    def __init__(self, store: DocumentStore):
        super().__init__(store, Player, name="players")

    def watch(self, context: UserContext) -> None:
        self.activate(team_players_query(context))


class StaffCache(CollectionCache[StaffMember]):
    def __init__(self, store: DocumentStore):
        super().__init__(store, StaffMember, name="staff")

    def watch(self, context: UserContext) -> None:
        self.activate(team_staff_query(context))


class MatchesCache(CollectionCache[Match]):
    def __init__(self, store: DocumentStore):
        super().__init__(store, Match, name="matches")

    def watch(self, context: UserContext) -> None:
        self.activate(team_matches_query(context))


class FinesCache(CollectionCache[Fine]):
    """Fines of one player, or of a whole team via :meth:`watch_team`."""

    def __init__(self, store: DocumentStore):
        super().__init__(store, Fine, name="fines")

    def watch(self, player_id: str) -> None:
        self.activate(player_fines_query(player_id))

    def watch_team(self, context: UserContext) -> None:
        self.activate(team_fines_query(context))

    @property
    def statistics(self) -> FineStatistics:
        return fine_statistics(self._snapshot)


class TeamProfileCache(DocumentCache[TeamProfile]):
    def __init__(self, store: DocumentStore):
        super().__init__(store, TeamProfile, name="team-profile")

    def watch(self, context: UserContext) -> None:
        self.activate(document_path(TEAMS, context.team_id))
