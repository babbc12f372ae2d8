"""Lineup assignment engine: slots, substitute pool and temporary players."""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Set
from uuid import uuid4

from clubroster.config.formations import DEFAULT_FORMATION_ID, Formation, find_formation, get_formation
from clubroster.models import Player


logger = logging.getLogger(__name__)

TEMPORARY_ID_PREFIX = "temp_"


class LineupEditor:
    """Mutable lineup state of the match currently open in the editor.

    Every operation is total: invalid input is logged and ignored. The
    methods return True when state changed so callers know whether to
    persist. The invariants hold after every call:

    * a player id occupies at most one slot;
    * slot occupants and the substitute pool never share a player id.
    """

    def __init__(self, formation_id: str = DEFAULT_FORMATION_ID):
        self._formation: Formation = get_formation(formation_id)
        self._slots: Dict[str, Player] = {}
        self._substitutes: List[Player] = []
        self._temporary: List[Player] = []
        self.revision = 0

    # State views

    @property
    def formation(self) -> Formation:
        return self._formation

    @property
    def lineup(self) -> Dict[str, Optional[Player]]:
        """Every slot of the active formation, in order, mapped to its occupant."""

        return {slot_id: self._slots.get(slot_id) for slot_id in self._formation.slot_ids}

    @property
    def substitutes(self) -> List[Player]:
        return list(self._substitutes)

    @property
    def temporary_players(self) -> List[Player]:
        return list(self._temporary)

    def slot_of(self, player_id: str) -> Optional[str]:
        for slot_id, player in self._slots.items():
            if player.id == player_id:
                return slot_id
        return None

    def is_substitute(self, player_id: str) -> bool:
        return any(player.id == player_id for player in self._substitutes)

    def find_player(self, player_id: str) -> Optional[Player]:
        """Look a player up among slot occupants, substitutes and temporary players."""

        for player in list(self._slots.values()) + self._substitutes + self._temporary:
            if player.id == player_id:
                return player
        return None

    # Mutations

    def assign(self, slot_id: str, player: Player) -> bool:
        if not self._formation.has_slot(slot_id):
            logger.warning("Ignoring assignment to unknown slot %r in formation %s", slot_id, self._formation.name)
            return False
        if not isinstance(player, Player) or not player.id:
            logger.warning("Ignoring assignment of malformed player %r to slot %s", player, slot_id)
            return False
        current = self._slots.get(slot_id)
        if current is not None and current.id == player.id and not self.is_substitute(player.id):
            return False

        previous_slot = self.slot_of(player.id)
        if previous_slot is not None:
            del self._slots[previous_slot]
        self._substitutes = [sub for sub in self._substitutes if sub.id != player.id]
        self._slots[slot_id] = player
        self._touch()
        logger.debug("Assigned %s to %s (moved from %s)", player.id, slot_id, previous_slot)
        return True

    def clear(self, slot_id: str) -> bool:
        if slot_id not in self._slots:
            if not self._formation.has_slot(slot_id):
                logger.warning("Ignoring clear of unknown slot %r", slot_id)
            return False
        del self._slots[slot_id]
        self._touch()
        return True

    def add_substitute(self, player: Player) -> bool:
        if not isinstance(player, Player) or not player.id:
            logger.warning("Ignoring malformed substitute %r", player)
            return False
        if self.slot_of(player.id) is not None or self.is_substitute(player.id):
            return False
        self._substitutes.append(player)
        self._touch()
        return True

    def remove_substitute(self, player_id: str) -> bool:
        remaining = [sub for sub in self._substitutes if sub.id != player_id]
        if len(remaining) == len(self._substitutes):
            return False
        self._substitutes = remaining
        self._touch()
        return True

    def add_temporary_player(
        self,
        name: str,
        number: int,
        position: str,
        *,
        roster: Sequence[Player] = (),
    ) -> Optional[Player]:
        """Create a match-only player; returns None when the input is rejected."""

        clean_name = (name or "").strip()
        if not clean_name:
            logger.warning("Rejecting temporary player without a name")
            return None
        try:
            shirt = int(number)
        except (TypeError, ValueError):
            logger.warning("Rejecting temporary player %r with non-numeric number %r", clean_name, number)
            return None
        if shirt <= 0:
            logger.warning("Rejecting temporary player %r with number %s", clean_name, shirt)
            return None
        known = list(roster) + self._temporary
        if any(player.number == shirt for player in known):
            logger.warning("Rejecting temporary player %r: number %s already in use", clean_name, shirt)
            return None

        taken_ids = {player.id for player in known}
        taken_ids.update(player.id for player in self._slots.values())
        taken_ids.update(player.id for player in self._substitutes)
        player = Player(
            id=self._new_temporary_id(taken_ids),
            name=clean_name,
            number=shirt,
            position=position or "",
            is_temporary=True,
        )
        self._temporary.append(player)
        self._touch()
        return player

    def set_formation(self, formation_id: str) -> bool:
        """Switch formation, re-homing occupants of slots the new one lacks.

        Occupants keep their slot id when the new formation has it, move to a
        free slot of the same line (GK/DEF/MID/FWD) otherwise, and fall back
        to the substitute pool when their line is full.
        """

        new_formation = find_formation(formation_id)
        if new_formation is None:
            logger.warning("Ignoring unknown formation %r", formation_id)
            return False
        if new_formation.formation_id == self._formation.formation_id:
            return False

        old_order = [slot_id for slot_id in self._formation.slot_ids if slot_id in self._slots]
        new_slots: Dict[str, Player] = {}
        displaced: List[Player] = []
        for slot_id in old_order:
            if new_formation.has_slot(slot_id):
                new_slots[slot_id] = self._slots[slot_id]
            else:
                displaced.append(self._slots[slot_id])

        for player in displaced:
            old_slot = self.slot_of(player.id)
            line = self._formation.get_slot(old_slot).line if old_slot else None
            target = next(
                (
                    slot.slot_id
                    for slot in new_formation.slots
                    if slot.line == line and slot.slot_id not in new_slots
                ),
                None,
            )
            if target is not None:
                new_slots[target] = player
            else:
                logger.info("No %s slot left in %s for %s; moving to substitutes", line, new_formation.name, player.id)
                self._substitutes.append(player)

        self._formation = new_formation
        self._slots = new_slots
        self._touch()
        return True

    def load(
        self,
        formation_id: str,
        lineup: Mapping[str, Optional[Player]],
        substitutes: Iterable[Player] = (),
        temporary_players: Iterable[Player] = (),
    ) -> None:
        """Replace the whole state, dropping entries that would break the invariants."""

        formation = find_formation(formation_id)
        if formation is None:
            logger.warning("Stored formation %r unknown; using %s", formation_id, self._formation.name)
            formation = self._formation
        slots: Dict[str, Player] = {}
        placed: Set[str] = set()
        for slot_id in formation.slot_ids:
            player = lineup.get(slot_id)
            if player is None or player.id in placed:
                continue
            slots[slot_id] = player
            placed.add(player.id)
        for slot_id in lineup:
            if not formation.has_slot(slot_id):
                logger.warning("Dropping stored slot %r not present in %s", slot_id, formation.name)

        subs: List[Player] = []
        for player in substitutes:
            if player.id in placed:
                continue
            placed.add(player.id)
            subs.append(player)

        self._formation = formation
        self._slots = slots
        self._substitutes = subs
        self._temporary = list(temporary_players)
        self._touch()

    def _touch(self) -> None:
        self.revision += 1

    @staticmethod
    def _new_temporary_id(taken: Set[str]) -> str:
        while True:
            candidate = f"{TEMPORARY_ID_PREFIX}{uuid4().hex[:12]}"
            if candidate not in taken:
                return candidate
