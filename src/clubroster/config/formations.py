"""Formation catalogue: ordered named slots with normalized pitch coordinates."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, Mapping, Optional, Tuple


@dataclass(frozen=True)
class Slot:
    slot_id: str
    x: float
    y: float

    @property
    def line(self) -> str:
        """Tactical line of the slot (GK, DEF, MID or FWD)."""

        return slot_line(self.slot_id)


@dataclass(frozen=True)
class Formation:
    formation_id: str
    name: str
    slots: Tuple[Slot, ...]

    @property
    def slot_ids(self) -> Tuple[str, ...]:
        return tuple(slot.slot_id for slot in self.slots)

    def has_slot(self, slot_id: str) -> bool:
        return any(slot.slot_id == slot_id for slot in self.slots)

    def get_slot(self, slot_id: str) -> Optional[Slot]:
        for slot in self.slots:
            if slot.slot_id == slot_id:
                return slot
        return None


def _slots(layout: Iterable[Tuple[str, int, int]]) -> Tuple[Slot, ...]:
    # Layout entries are (slot_id, top %, left %) as drawn on the pitch.
    return tuple(Slot(slot_id=slot_id, x=left / 100, y=top / 100) for slot_id, top, left in layout)


_BACK_FOUR = (("DEF1", 72, 25), ("DEF2", 75, 42), ("DEF3", 75, 58), ("DEF4", 72, 75))
_BACK_THREE = (("DEF1", 72, 30), ("DEF2", 75, 50), ("DEF3", 72, 70))
_GOALKEEPER = (("GK", 88, 50),)

_FORMATIONS: Dict[str, Formation] = {
    "442": Formation(
        formation_id="442",
        name="4-4-2",
        slots=_slots(
            _GOALKEEPER
            + _BACK_FOUR
            + (
                ("MID1", 52, 25),
                ("MID2", 55, 42),
                ("MID3", 55, 58),
                ("MID4", 52, 75),
                ("FWD1", 28, 38),
                ("FWD2", 28, 62),
            )
        ),
    ),
    "433": Formation(
        formation_id="433",
        name="4-3-3",
        slots=_slots(
            _GOALKEEPER
            + _BACK_FOUR
            + (
                ("MID1", 58, 35),
                ("MID2", 62, 50),
                ("MID3", 58, 65),
                ("FWD1", 32, 20),
                ("FWD2", 25, 50),
                ("FWD3", 32, 80),
            )
        ),
    ),
    "352": Formation(
        formation_id="352",
        name="3-5-2",
        slots=_slots(
            _GOALKEEPER
            + _BACK_THREE
            + (
                ("MID1", 55, 15),
                ("MID2", 62, 35),
                ("MID3", 65, 50),
                ("MID4", 62, 65),
                ("MID5", 55, 85),
                ("FWD1", 28, 38),
                ("FWD2", 28, 62),
            )
        ),
    ),
    "532": Formation(
        formation_id="532",
        name="5-3-2",
        slots=_slots(
            _GOALKEEPER
            + (
                ("DEF1", 70, 15),
                ("DEF2", 75, 32),
                ("DEF3", 78, 50),
                ("DEF4", 75, 68),
                ("DEF5", 70, 85),
                ("MID1", 52, 32),
                ("MID2", 55, 50),
                ("MID3", 52, 68),
                ("FWD1", 28, 38),
                ("FWD2", 28, 62),
            )
        ),
    ),
    "343": Formation(
        formation_id="343",
        name="3-4-3",
        slots=_slots(
            _GOALKEEPER
            + _BACK_THREE
            + (
                ("MID1", 52, 20),
                ("MID2", 58, 40),
                ("MID3", 58, 60),
                ("MID4", 52, 80),
                ("FWD1", 32, 25),
                ("FWD2", 25, 50),
                ("FWD3", 32, 75),
            )
        ),
    ),
    "451": Formation(
        formation_id="451",
        name="4-5-1",
        slots=_slots(
            _GOALKEEPER
            + _BACK_FOUR
            + (
                ("MID1", 52, 18),
                ("MID2", 60, 35),
                ("MID3", 62, 50),
                ("MID4", 60, 65),
                ("MID5", 52, 82),
                ("FWD1", 25, 50),
            )
        ),
    ),
    "4231": Formation(
        formation_id="4231",
        name="4-2-3-1",
        slots=_slots(
            _GOALKEEPER
            + _BACK_FOUR
            + (
                ("MID1", 58, 40),
                ("MID2", 58, 60),
                ("MID3", 42, 25),
                ("MID4", 38, 50),
                ("MID5", 42, 75),
                ("FWD1", 22, 50),
            )
        ),
    ),
    "4141": Formation(
        formation_id="4141",
        name="4-1-4-1",
        slots=_slots(
            _GOALKEEPER
            + _BACK_FOUR
            + (
                ("MID1", 62, 50),
                ("MID2", 45, 25),
                ("MID3", 48, 40),
                ("MID4", 48, 60),
                ("MID5", 45, 75),
                ("FWD1", 25, 50),
            )
        ),
    ),
    "541": Formation(
        formation_id="541",
        name="5-4-1",
        slots=_slots(
            _GOALKEEPER
            + (
                ("DEF1", 70, 18),
                ("DEF2", 75, 35),
                ("DEF3", 78, 50),
                ("DEF4", 75, 65),
                ("DEF5", 70, 82),
                ("MID1", 52, 25),
                ("MID2", 55, 42),
                ("MID3", 55, 58),
                ("MID4", 52, 75),
                ("FWD1", 25, 50),
            )
        ),
    ),
}

DEFAULT_FORMATION_ID = "442"

FORMATION_CATEGORIES: Mapping[str, Tuple[str, ...]] = {
    "DEFENSIVE": ("532", "541"),
    "BALANCED": ("442", "352", "4141"),
    "OFFENSIVE": ("433", "343", "4231", "451"),
}


def slot_line(slot_id: str) -> str:
    """Strip the trailing index from a slot id: ``DEF3`` -> ``DEF``."""

    return slot_id.rstrip("0123456789")


def iter_formations() -> Iterable[Formation]:
    """Return an iterator over the catalogue in display order."""

    return _FORMATIONS.values()


def get_formation(key: str) -> Formation:
    """Fetch a formation by id ("433") or display name ("4-3-3").

    Raises KeyError when the formation is not in the catalogue.
    """

    if not isinstance(key, str):
        raise TypeError("formation key must be a str")

    if key in _FORMATIONS:
        return _FORMATIONS[key]
    compact = key.replace("-", "").strip()
    if compact in _FORMATIONS:
        return _FORMATIONS[compact]
    raise KeyError(f"No formation configured for {key!r}")


def find_formation(key: Optional[str]) -> Optional[Formation]:
    """Like :func:`get_formation` but returns None for unknown keys."""

    if not key:
        return None
    try:
        return get_formation(key)
    except (KeyError, TypeError):
        return None
