"""Persisted match alignment record and its conversion to editor state."""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict

from clubroster.config.formations import DEFAULT_FORMATION_ID
from clubroster.config.roles import ROLE_IDS
from clubroster.lineup.engine import LineupEditor
from clubroster.lineup.roles import SpecialRoleEngine
from clubroster.models import Player, TemporaryPlayerPayload


logger = logging.getLogger(__name__)


def _empty_roles() -> Dict[str, Optional[str]]:
    return {role_id: None for role_id in ROLE_IDS}


class MatchAlignment(BaseModel):
    """One document per match under ``alignments/<match_id>``."""

    id: str = Field(..., min_length=1)
    team_id: Optional[str] = Field(default=None, alias="teamId")
    formation_id: str = Field(default=DEFAULT_FORMATION_ID, alias="formationId")
    lineup: Dict[str, Optional[str]] = Field(default_factory=dict)
    substitutes: List[str] = Field(default_factory=list)
    special_roles: Dict[str, Optional[str]] = Field(default_factory=_empty_roles, alias="specialRoles")
    temporary_players: List[TemporaryPlayerPayload] = Field(default_factory=list, alias="temporaryPlayers")

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    def to_document(self) -> dict:
        return self.model_dump(by_alias=True, exclude={"id"})


def encode_alignment(
    match_id: str,
    editor: LineupEditor,
    roles: SpecialRoleEngine,
    *,
    team_id: Optional[str] = None,
) -> MatchAlignment:
    return MatchAlignment(
        id=match_id,
        team_id=team_id,
        formation_id=editor.formation.formation_id,
        lineup={slot_id: (player.id if player else None) for slot_id, player in editor.lineup.items()},
        substitutes=[player.id for player in editor.substitutes],
        special_roles=roles.holders,
        temporary_players=[TemporaryPlayerPayload.from_player(player) for player in editor.temporary_players],
    )


def apply_alignment(
    alignment: MatchAlignment,
    roster: Sequence[Player],
    editor: LineupEditor,
    roles: SpecialRoleEngine,
) -> List[str]:
    """Load ``alignment`` into the engines; returns ids that could not be resolved.

    Ids are looked up among the embedded temporary players first, then the
    roster. Unresolved lineup and substitute entries are dropped; role
    holders are kept as-is and read as unassigned while stale.
    """

    temporary = [payload.to_player() for payload in alignment.temporary_players]
    by_id: Dict[str, Player] = {player.id: player for player in roster}
    by_id.update({player.id: player for player in temporary})

    missing: List[str] = []
    lineup: Dict[str, Optional[Player]] = {}
    for slot_id, player_id in alignment.lineup.items():
        if player_id is None:
            continue
        player = by_id.get(player_id)
        if player is None:
            missing.append(player_id)
            continue
        lineup[slot_id] = player

    substitutes: List[Player] = []
    for player_id in alignment.substitutes:
        player = by_id.get(player_id)
        if player is None:
            missing.append(player_id)
            continue
        substitutes.append(player)

    if missing:
        logger.warning("Alignment %s references unknown players: %s", alignment.id, ", ".join(missing))

    editor.load(alignment.formation_id, lineup, substitutes, temporary)
    roles.load(alignment.special_roles)
    return missing
