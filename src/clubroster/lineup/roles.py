"""Special-role assignments and the badge layout drawn around a player."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Callable, Dict, List, Mapping, Optional

from clubroster.config.roles import ROLE_IDS, is_role
from clubroster.models import Player


logger = logging.getLogger(__name__)

UNASSIGNED = "Unassigned"

BADGE_RADIUS = 28.0
SINGLE_BADGE_ANGLE = 60.0
ARC_START_ANGLE = 150.0
ARC_END_ANGLE = 30.0


class SpecialRoleEngine:
    """Role -> player id map; one holder per role, many roles per player.

    ``resolve`` looks a player id up among the current lineup, substitutes
    and temporary players. Holders it cannot find are stale and read as
    unassigned.
    """

    def __init__(self, resolve: Callable[[str], Optional[Player]]):
        self._resolve = resolve
        self._holders: Dict[str, Optional[str]] = {role_id: None for role_id in ROLE_IDS}
        self.revision = 0

    @property
    def holders(self) -> Dict[str, Optional[str]]:
        return dict(self._holders)

    def set_role(self, role_id: str, player_id: Optional[str]) -> bool:
        if not is_role(role_id):
            logger.warning("Ignoring unknown special role %r", role_id)
            return False
        if player_id is not None and (not isinstance(player_id, str) or not player_id):
            logger.warning("Ignoring malformed holder %r for role %s", player_id, role_id)
            return False
        if self._holders[role_id] == player_id:
            return False
        self._holders[role_id] = player_id
        self.revision += 1
        return True

    def holder_of(self, role_id: str) -> Optional[Player]:
        """Current holder, or None when unassigned or stale."""

        player_id = self._holders.get(role_id)
        if player_id is None:
            return None
        return self._resolve(player_id)

    def get_holder_name(self, role_id: str) -> str:
        player = self.holder_of(role_id)
        return player.name if player is not None else UNASSIGNED

    def roles_for(self, player_id: str) -> List[str]:
        """Roles held by ``player_id`` in catalogue order."""

        return [role_id for role_id in ROLE_IDS if self._holders[role_id] == player_id]

    def load(self, holders: Mapping[str, Optional[str]]) -> None:
        self._holders = {role_id: None for role_id in ROLE_IDS}
        for role_id, player_id in holders.items():
            if not is_role(role_id):
                logger.warning("Dropping stored holder for unknown role %r", role_id)
                continue
            self._holders[role_id] = player_id or None
        self.revision += 1


@dataclass(frozen=True)
class RoleBadge:
    role_id: str
    angle: float
    x: float
    y: float


def badge_angles(count: int) -> List[float]:
    """Angles in degrees, clockwise from vertical, for ``count`` badges."""

    if count <= 0:
        return []
    if count == 1:
        return [SINGLE_BADGE_ANGLE]
    step = (ARC_START_ANGLE - ARC_END_ANGLE) / (count - 1)
    return [ARC_START_ANGLE - index * step for index in range(count)]


def badge_layout(role_ids: List[str], radius: float = BADGE_RADIUS) -> List[RoleBadge]:
    badges: List[RoleBadge] = []
    for role_id, angle in zip(role_ids, badge_angles(len(role_ids))):
        radians = math.radians(angle)
        badges.append(
            RoleBadge(
                role_id=role_id,
                angle=angle,
                x=round(math.sin(radians) * radius, 6),
                y=round(-math.cos(radians) * radius, 6),
            )
        )
    return badges
