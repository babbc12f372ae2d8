"""Write-side service for match fixtures.

A match owns its alignment record: deleting the match is the only way the
alignment document goes away.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Set
from uuid import uuid4

from clubroster.errors import EntityNotFound
from clubroster.models import Match, Venue, parse_document, parse_documents
from clubroster.services.roster import _TeamService, _now
from clubroster.store.types import ALIGNMENTS, MATCHES, document_path
from clubroster.sync.caches import team_matches_query


logger = logging.getLogger(__name__)

_MATCH_FIELDS = {"matchday", "opponent", "date", "venue", "venue_detail", "result", "opponent_notes", "strategy"}


class MatchService(_TeamService):
    def list_matches(self) -> List[Match]:
        return parse_documents(Match, self.store.get_documents(team_matches_query(self.context)))

    def get_match(self, match_id: str) -> Match:
        match = parse_document(Match, self.store.get_document(document_path(MATCHES, match_id)))
        if match is None or match.team_id != self.context.team_id:
            raise EntityNotFound("Match", match_id)
        return match

    def add_match(
        self,
        matchday: int,
        opponent: str,
        *,
        date: Optional[str] = None,
        venue: Venue = "home",
        **fields: Any,
    ) -> Match:
        self._require("admin", "coach")
        extra = self._pick(fields, _MATCH_FIELDS - {"matchday", "opponent", "date", "venue"})
        now = _now()
        match = Match(
            id=uuid4().hex,
            matchday=matchday,
            opponent=(opponent or "").strip(),
            date=date,
            venue=venue,
            team_id=self.context.team_id,
            created_at=now,
            **extra,
        )
        payload = match.to_document()
        payload["updatedAt"] = now
        self.store.write_document(document_path(MATCHES, match.id), payload)
        logger.info("Match %s (matchday %d vs %s) created", match.id, match.matchday, match.opponent)
        return match

    def update_match(self, match_id: str, **changes: Any) -> Match:
        self._require("admin", "coach")
        current = self.get_match(match_id)
        updates = self._pick(changes, _MATCH_FIELDS)
        updated = Match.model_validate({**current.model_dump(), **updates})
        payload = {key: value for key, value in updated.to_document().items() if key in _aliases(updates)}
        payload["updatedAt"] = _now()
        self.store.write_document(document_path(MATCHES, match_id), payload, merge=True)
        logger.info("Match %s updated (%s)", match_id, ", ".join(sorted(updates)))
        return updated

    def delete_match(self, match_id: str) -> None:
        """Hard delete of the match and its alignment record."""

        self._require("admin", "coach")
        self.get_match(match_id)
        self.store.delete_document(document_path(ALIGNMENTS, match_id))
        self.store.delete_document(document_path(MATCHES, match_id))
        logger.info("Match %s deleted with its alignment", match_id)


def _aliases(updates: Dict[str, Any]) -> Set[str]:
    return {Match.model_fields[name].alias or name for name in updates}
