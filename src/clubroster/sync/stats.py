"""Aggregates derived from cache snapshots; always recomputed, never stored."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Sequence, Tuple

from clubroster.models import Fine, Player


@dataclass(frozen=True)
class FineStatistics:
    count: int
    pending_count: int
    pending_total: float
    paid_total: float

    @property
    def total_amount(self) -> float:
        return self.pending_total + self.paid_total


@dataclass(frozen=True)
class TeamStatistics:
    total_players: int
    total_fines: int
    pending_fines: int
    total_debt: float


@dataclass(frozen=True)
class PlayerDebt:
    player: Player
    pending: Tuple[Fine, ...]
    pending_total: float


def fine_statistics(fines: Iterable[Fine]) -> FineStatistics:
    count = 0
    pending_count = 0
    pending_total = 0.0
    paid_total = 0.0
    for fine in fines:
        count += 1
        if fine.paid:
            paid_total += fine.amount
        else:
            pending_count += 1
            pending_total += fine.amount
    return FineStatistics(
        count=count,
        pending_count=pending_count,
        pending_total=round(pending_total, 2),
        paid_total=round(paid_total, 2),
    )


def team_statistics(players: Sequence[Player], fines: Iterable[Fine]) -> TeamStatistics:
    stats = fine_statistics(fines)
    return TeamStatistics(
        total_players=len(players),
        total_fines=stats.count,
        pending_fines=stats.pending_count,
        total_debt=stats.pending_total,
    )


def players_with_pending_fines(players: Iterable[Player], fines: Iterable[Fine]) -> List[PlayerDebt]:
    """Players owing money, in roster order, with their unpaid fines."""

    pending_by_player: Dict[str, List[Fine]] = {}
    for fine in fines:
        if not fine.paid:
            pending_by_player.setdefault(fine.player_id, []).append(fine)

    result: List[PlayerDebt] = []
    for player in players:
        pending = pending_by_player.get(player.id)
        if not pending:
            continue
        result.append(
            PlayerDebt(
                player=player,
                pending=tuple(pending),
                pending_total=round(sum(fine.amount for fine in pending), 2),
            )
        )
    return result
