"""Write-side services for players, fines and staff.

Every write goes through the document store; in-memory views pick the
change up through their subscriptions, never from the return value here.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional
from uuid import uuid4

from clubroster.errors import DuplicateNumber, EntityNotFound, PermissionDenied
from clubroster.models import Fine, Player, StaffMember, UserContext, parse_document, parse_documents
from clubroster.services.uploads import ImageUploader, resolve_image_field
from clubroster.store.types import FINES, PLAYERS, STAFF, CollectionQuery, DocumentStore, document_path
from clubroster.sync.caches import player_fines_query, team_players_query, team_staff_query


logger = logging.getLogger(__name__)

_PLAYER_FIELDS = {"name", "number", "position", "image", "phone", "email", "foot"}
_STAFF_FIELDS = {"name", "position", "phone", "email", "image"}
_FINE_FIELDS = {"amount", "reason", "date", "paid"}


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _matches(term: str, *values: Optional[Any]) -> bool:
    return any(value is not None and term in str(value).lower() for value in values)


class _TeamService:
    def __init__(
        self,
        store: DocumentStore,
        context: UserContext,
        *,
        uploader: Optional[ImageUploader] = None,
    ):
        self.store = store
        self.context = context
        self.uploader = uploader

    def _require(self, *roles: str) -> None:
        if self.context.role not in roles:
            raise PermissionDenied(f"Role {self.context.role!r} cannot perform this action (needs {' or '.join(roles)})")

    @staticmethod
    def _pick(changes: Dict[str, Any], allowed: Iterable[str]) -> Dict[str, Any]:
        allowed_set = set(allowed)
        unknown = set(changes) - allowed_set
        if unknown:
            raise ValueError(f"Unsupported fields: {', '.join(sorted(unknown))}")
        return {key: value for key, value in changes.items() if value is not None}


class PlayerService(_TeamService):
    def list_players(self) -> List[Player]:
        return parse_documents(Player, self.store.get_documents(team_players_query(self.context)))

    def get_player(self, player_id: str) -> Player:
        player = parse_document(Player, self.store.get_document(document_path(PLAYERS, player_id)))
        if player is None or player.team_id != self.context.team_id:
            raise EntityNotFound("Player", player_id)
        return player

    def search_players(self, term: str) -> List[Player]:
        players = self.list_players()
        needle = (term or "").strip().lower()
        if not needle:
            return players
        return [player for player in players if _matches(needle, player.name, player.number, player.position)]

    def _check_number(self, number: int, *, exclude_id: Optional[str] = None) -> None:
        query = team_players_query(self.context).where("number", int(number))
        for document in self.store.get_documents(query):
            if document.id != exclude_id:
                raise DuplicateNumber(f"Shirt number {number} is already taken")

    def add_player(self, name: str, number: int, position: str, **fields: Any) -> Player:
        self._require("admin", "coach")
        extra = self._pick(fields, _PLAYER_FIELDS - {"name", "number", "position"})
        now = _now()
        player = Player(
            id=uuid4().hex,
            name=(name or "").strip(),
            number=int(number),
            position=position,
            team_id=self.context.team_id,
            active=True,
            **extra,
        )
        self._check_number(player.number)
        payload = resolve_image_field(player.to_document(), self.uploader, folder="players")
        payload.update({"createdAt": now, "updatedAt": now})
        self.store.write_document(document_path(PLAYERS, player.id), payload)
        logger.info("Player %s (%s) created", player.id, player.name)
        return player.model_copy(update={"image": payload.get("image")})

    def update_player(self, player_id: str, **changes: Any) -> Player:
        self._require("admin", "coach")
        current = self.get_player(player_id)
        updates = self._pick(changes, _PLAYER_FIELDS)
        if "number" in updates:
            updates["number"] = int(updates["number"])
            if updates["number"] != current.number:
                self._check_number(updates["number"], exclude_id=player_id)
        updated = Player.model_validate({**current.model_dump(), **updates})
        payload = resolve_image_field(
            {key: value for key, value in updated.to_document().items() if key in updates},
            self.uploader,
            folder="players",
        )
        payload["updatedAt"] = _now()
        self.store.write_document(document_path(PLAYERS, player_id), payload, merge=True)
        logger.info("Player %s updated (%s)", player_id, ", ".join(sorted(updates)))
        return updated.model_copy(update={"image": payload.get("image", updated.image)})

    def delete_player(self, player_id: str) -> None:
        """Soft delete: the player leaves every roster query but keeps history."""

        self._require("admin", "coach")
        self.get_player(player_id)
        now = _now()
        self.store.write_document(
            document_path(PLAYERS, player_id),
            {"active": False, "deletedAt": now, "updatedAt": now},
            merge=True,
        )
        logger.info("Player %s deactivated", player_id)


class FineService(_TeamService):
    def list_fines(self, player_id: str) -> List[Fine]:
        return parse_documents(Fine, self.store.get_documents(player_fines_query(player_id)))

    def get_fine(self, fine_id: str) -> Fine:
        fine = parse_document(Fine, self.store.get_document(document_path(FINES, fine_id)))
        if fine is None or fine.team_id != self.context.team_id:
            raise EntityNotFound("Fine", fine_id)
        return fine

    def add_fine(
        self,
        player_id: str,
        amount: float,
        reason: str,
        *,
        date: Optional[str] = None,
        paid: bool = False,
    ) -> Fine:
        self._require("coach")
        PlayerService(self.store, self.context).get_player(player_id)
        now = _now()
        fine = Fine(
            id=uuid4().hex,
            player_id=player_id,
            amount=amount,
            reason=reason,
            date=date or now[:10],
            paid=paid,
            paid_at=now if paid else None,
            team_id=self.context.team_id,
            created_at=now,
        )
        payload = fine.to_document()
        payload["updatedAt"] = now
        self.store.write_document(document_path(FINES, fine.id), payload)
        logger.info("Fine %s of %.2f added to player %s", fine.id, fine.amount, player_id)
        return fine

    def update_fine(self, fine_id: str, **changes: Any) -> Fine:
        self._require("admin", "coach")
        current = self.get_fine(fine_id)
        updates = self._pick(changes, _FINE_FIELDS)
        updated = Fine.model_validate({**current.model_dump(), **updates})
        payload = {key: value for key, value in updated.to_document().items() if key in updates}
        if "paid" in updates and updates["paid"] != current.paid:
            payload["paidAt"] = _now() if updated.paid else None
            updated = updated.model_copy(update={"paid_at": payload["paidAt"]})
        payload["updatedAt"] = _now()
        self.store.write_document(document_path(FINES, fine_id), payload, merge=True)
        logger.info("Fine %s updated (%s)", fine_id, ", ".join(sorted(updates)))
        return updated

    def set_paid(self, fine_id: str, paid: bool) -> Fine:
        return self.update_fine(fine_id, paid=bool(paid))

    def delete_fine(self, fine_id: str) -> None:
        self._require("admin", "coach")
        self.get_fine(fine_id)
        self.store.delete_document(document_path(FINES, fine_id))
        logger.info("Fine %s deleted", fine_id)

    def team_fines(self) -> List[Fine]:
        query = CollectionQuery(FINES).where("teamId", self.context.team_id)
        return parse_documents(Fine, self.store.get_documents(query))


class StaffService(_TeamService):
    def list_staff(self) -> List[StaffMember]:
        return parse_documents(StaffMember, self.store.get_documents(team_staff_query(self.context)))

    def get_staff(self, staff_id: str) -> StaffMember:
        member = parse_document(StaffMember, self.store.get_document(document_path(STAFF, staff_id)))
        if member is None or member.team_id != self.context.team_id:
            raise EntityNotFound("Staff member", staff_id)
        return member

    def search_staff(self, term: str) -> List[StaffMember]:
        members = self.list_staff()
        needle = (term or "").strip().lower()
        if not needle:
            return members
        return [m for m in members if _matches(needle, m.name, m.position, m.phone, m.email)]

    def add_staff(self, name: str, position: str, **fields: Any) -> StaffMember:
        self._require("admin", "coach")
        extra = self._pick(fields, _STAFF_FIELDS - {"name", "position"})
        member = StaffMember(
            id=uuid4().hex,
            name=(name or "").strip(),
            position=(position or "").strip(),
            team_id=self.context.team_id,
            **extra,
        )
        now = _now()
        payload = resolve_image_field(member.to_document(), self.uploader, folder="staff")
        payload.update({"createdAt": now, "updatedAt": now})
        self.store.write_document(document_path(STAFF, member.id), payload)
        logger.info("Staff member %s (%s) created", member.id, member.name)
        return member.model_copy(update={"image": payload.get("image")})

    def update_staff(self, staff_id: str, **changes: Any) -> StaffMember:
        self._require("admin", "coach")
        current = self.get_staff(staff_id)
        updates = self._pick(changes, _STAFF_FIELDS)
        updated = StaffMember.model_validate({**current.model_dump(), **updates})
        payload = resolve_image_field(
            {key: value for key, value in updated.to_document().items() if key in updates},
            self.uploader,
            folder="staff",
        )
        payload["updatedAt"] = _now()
        self.store.write_document(document_path(STAFF, staff_id), payload, merge=True)
        return updated.model_copy(update={"image": payload.get("image", updated.image)})

    def delete_staff(self, staff_id: str) -> None:
        self._require("admin", "coach")
        self.get_staff(staff_id)
        now = _now()
        self.store.write_document(
            document_path(STAFF, staff_id),
            {"active": False, "deletedAt": now, "updatedAt": now},
            merge=True,
        )
        logger.info("Staff member %s deactivated", staff_id)
