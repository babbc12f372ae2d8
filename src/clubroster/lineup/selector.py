"""Read-side helpers deriving player lists from the lineup state."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Mapping, Optional, Sequence, Set

from clubroster.models import Player


@dataclass(frozen=True)
class StartingPlayer:
    slot_id: str
    player: Player


def selected_ids(lineup: Mapping[str, Optional[Player]], substitutes: Iterable[Player]) -> Set[str]:
    ids = {player.id for player in lineup.values() if player is not None}
    ids.update(player.id for player in substitutes)
    return ids


def all_players(roster_players: Sequence[Player], temporary_players: Sequence[Player]) -> List[Player]:
    """Roster followed by temporary players, first occurrence of each id wins."""

    seen: Set[str] = set()
    combined: List[Player] = []
    for player in list(roster_players) + list(temporary_players):
        if player.id in seen:
            continue
        seen.add(player.id)
        combined.append(player)
    return combined


def available_players(
    lineup: Mapping[str, Optional[Player]],
    substitutes: Sequence[Player],
    temporary_players: Sequence[Player],
    roster_players: Sequence[Player],
) -> List[Player]:
    """Players not yet placed in a slot or the substitute pool.

    Pure and order preserving: roster order first, then temporary players
    in creation order.
    """

    taken = selected_ids(lineup, substitutes)
    return [player for player in all_players(roster_players, temporary_players) if player.id not in taken]


def starting_players(
    lineup: Mapping[str, Optional[Player]],
    slot_order: Optional[Sequence[str]] = None,
) -> List[StartingPlayer]:
    order = list(slot_order) if slot_order is not None else list(lineup.keys())
    starters: List[StartingPlayer] = []
    for slot_id in order:
        player = lineup.get(slot_id)
        if player is not None:
            starters.append(StartingPlayer(slot_id=slot_id, player=player))
    return starters
