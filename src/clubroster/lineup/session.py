"""Editor session for one match: engines, live record and the write seam."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

from clubroster.config.formations import DEFAULT_FORMATION_ID
from clubroster.errors import StoreError
from clubroster.lineup.alignment import MatchAlignment, apply_alignment, encode_alignment
from clubroster.lineup.engine import LineupEditor
from clubroster.lineup.roles import RoleBadge, SpecialRoleEngine, badge_layout
from clubroster.lineup.selector import all_players, available_players
from clubroster.models import Player
from clubroster.store.types import ALIGNMENTS, DocumentStore, document_path
from clubroster.sync.cache import DocumentCache


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WriteResult:
    """Outcome of one editor action.

    ``changed`` tells whether local state moved; ``ok`` is False when the
    store rejected the write, in which case ``error`` holds the reason and
    local state is left as-is for the caller to retry.
    """

    changed: bool
    ok: bool = True
    error: Optional[Exception] = None


class AlignmentCache(DocumentCache[MatchAlignment]):
    def __init__(self, store: DocumentStore):
        super().__init__(store, MatchAlignment, name="alignment")

    def watch(self, match_id: str) -> None:
        self.activate(document_path(ALIGNMENTS, match_id))


class AlignmentSession:
    """Single editor of a match alignment.

    Actions update local state first and then hand the encoded record to the
    store. Write failures are not compensated: they are recorded on
    ``last_error`` and returned to the caller. Remote snapshots replace local
    state only until the first local edit.

    Every write replaces the whole record, so actions are refused until the
    first snapshot of the stored record (or its absence) has been applied.
    A record owned by another team is never loaded nor overwritten.
    """

    def __init__(
        self,
        store: DocumentStore,
        match_id: str,
        roster: Callable[[], Sequence[Player]],
        *,
        team_id: Optional[str] = None,
        default_formation: str = DEFAULT_FORMATION_ID,
    ):
        self.store = store
        self.match_id = match_id
        self.team_id = team_id
        self._roster = roster
        self.editor = LineupEditor(default_formation)
        self.roles = SpecialRoleEngine(self.editor.find_player)
        self.cache = AlignmentCache(store)
        self._remove_listener: Optional[Callable[[], None]] = None
        self._loaded = False
        self._local_edits = 0
        self._last_written: Optional[MatchAlignment] = None
        self._remote: Optional[MatchAlignment] = None
        self.last_error: Optional[Exception] = None
        self.pending_write = False

    @property
    def path(self) -> str:
        return document_path(ALIGNMENTS, self.match_id)

    @property
    def loaded(self) -> bool:
        return self._loaded

    # Lifecycle

    def open(self) -> None:
        if self._remove_listener is None:
            self._remove_listener = self.cache.add_listener(lambda _cache: self._on_remote())
        self.cache.watch(self.match_id)

    def close(self) -> None:
        self.cache.deactivate()
        if self._remove_listener is not None:
            self._remove_listener()
            self._remove_listener = None

    def __enter__(self) -> "AlignmentSession":
        self.open()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def roster_changed(self) -> None:
        """Re-resolve the stored record after the roster snapshot moved."""

        if self._remote is not None and self._local_edits == 0:
            self._load_remote(self._remote)

    def _owns(self, alignment: MatchAlignment) -> bool:
        return self.team_id is None or alignment.team_id in (None, self.team_id)

    def _on_remote(self) -> None:
        if self.cache.snapshot_count == 0:
            # Error before any snapshot: the stored record is still unknown.
            return
        alignment = self.cache.value
        if alignment is not None and not self._owns(alignment):
            logger.warning(
                "Alignment of match %s belongs to team %s, not %s; ignoring it",
                self.match_id,
                alignment.team_id,
                self.team_id,
            )
            self._loaded = False
            return
        self._loaded = True
        if alignment is None:
            return
        self._remote = alignment
        if self._last_written is not None and alignment == self._last_written:
            self.pending_write = False
            return
        if self._local_edits:
            logger.debug("Keeping local edits of %s over remote snapshot", self.match_id)
            return
        self._load_remote(alignment)

    def _load_remote(self, alignment: MatchAlignment) -> None:
        apply_alignment(alignment, self._roster(), self.editor, self.roles)

    # Read side

    @property
    def roster(self) -> List[Player]:
        return list(self._roster())

    def available_players(self) -> List[Player]:
        return available_players(
            self.editor.lineup,
            self.editor.substitutes,
            self.editor.temporary_players,
            self._roster(),
        )

    def lookup(self, player_id: str) -> Optional[Player]:
        for player in all_players(self._roster(), self.editor.temporary_players):
            if player.id == player_id:
                return player
        return None

    def badges_for(self, player_id: str) -> List[RoleBadge]:
        return badge_layout(self.roles.roles_for(player_id))

    def record(self) -> MatchAlignment:
        return encode_alignment(self.match_id, self.editor, self.roles, team_id=self.team_id)

    # Actions

    def assign(self, slot_id: str, player_id: str) -> WriteResult:
        if not self._writable():
            return WriteResult(changed=False)
        player = self.lookup(player_id)
        if player is None:
            logger.warning("Ignoring assignment of unknown player %r to %s", player_id, slot_id)
            return WriteResult(changed=False)
        return self._commit(self.editor.assign(slot_id, player))

    def clear(self, slot_id: str) -> WriteResult:
        if not self._writable():
            return WriteResult(changed=False)
        return self._commit(self.editor.clear(slot_id))

    def add_substitute(self, player_id: str) -> WriteResult:
        if not self._writable():
            return WriteResult(changed=False)
        player = self.lookup(player_id)
        if player is None:
            logger.warning("Ignoring unknown substitute %r", player_id)
            return WriteResult(changed=False)
        return self._commit(self.editor.add_substitute(player))

    def remove_substitute(self, player_id: str) -> WriteResult:
        if not self._writable():
            return WriteResult(changed=False)
        return self._commit(self.editor.remove_substitute(player_id))

    def add_temporary_player(
        self,
        name: str,
        number: int,
        position: str,
        *,
        slot_id: Optional[str] = None,
        as_substitute: bool = False,
    ) -> tuple[Optional[Player], WriteResult]:
        if not self._writable():
            return None, WriteResult(changed=False)
        player = self.editor.add_temporary_player(name, number, position, roster=self._roster())
        if player is None:
            return None, WriteResult(changed=False)
        if slot_id is not None:
            self.editor.assign(slot_id, player)
        elif as_substitute:
            self.editor.add_substitute(player)
        return player, self._commit(True)

    def set_formation(self, formation_id: str) -> WriteResult:
        if not self._writable():
            return WriteResult(changed=False)
        return self._commit(self.editor.set_formation(formation_id))

    def set_role(self, role_id: str, player_id: Optional[str]) -> WriteResult:
        if not self._writable():
            return WriteResult(changed=False)
        return self._commit(self.roles.set_role(role_id, player_id))

    def retry(self) -> WriteResult:
        """Send the current local state again after a rejected write."""

        if not self._writable():
            return WriteResult(changed=False)
        return self._persist(changed=False)

    # Write seam

    def _writable(self) -> bool:
        if not self._loaded:
            logger.warning("Ignoring edit of match %s before its stored alignment is loaded", self.match_id)
        return self._loaded

    def _commit(self, changed: bool) -> WriteResult:
        if not changed:
            return WriteResult(changed=False)
        self._local_edits += 1
        return self._persist(changed=True)

    def _persist(self, *, changed: bool) -> WriteResult:
        record = self.record()
        self._last_written = record
        self.pending_write = True
        try:
            self.store.write_document(self.path, record.to_document())
        except StoreError as exc:
            logger.error("Saving alignment of match %s failed: %s", self.match_id, exc)
            self.last_error = exc
            return WriteResult(changed=changed, ok=False, error=exc)
        self.last_error = None
        return WriteResult(changed=changed)
