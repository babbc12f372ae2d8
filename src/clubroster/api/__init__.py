"""REST API for the club roster, fines and match alignments."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager, contextmanager
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple

from fastapi import FastAPI, Header, HTTPException, Query
from pydantic import ValidationError

from clubroster.api.schemas import (
    ActionResponse,
    AlignmentResponse,
    AssignRequest,
    BadgeResponse,
    FineCreateRequest,
    FinePaidRequest,
    FineStatisticsResponse,
    FineUpdateRequest,
    FormationRequest,
    FormationResponse,
    MatchCreateRequest,
    MatchListResponse,
    MatchUpdateRequest,
    PlayerCreateRequest,
    PlayerDebtResponse,
    PlayerFinesResponse,
    PlayerListResponse,
    PlayerUpdateRequest,
    RoleRequest,
    RoleResponse,
    SlotResponse,
    StaffCreateRequest,
    StaffListResponse,
    StaffUpdateRequest,
    SubstituteRequest,
    TeamStatisticsResponse,
    TemporaryPlayerRequest,
    TemporaryPlayerResponse,
)
from clubroster.config import ROLE_IDS, SPECIAL_ROLES, Formation, find_formation, iter_formations
from clubroster.config_loader import Settings
from clubroster.errors import (
    DuplicateNumber,
    EntityNotFound,
    PermissionDenied,
    StoreError,
    UploadFailed,
)
from clubroster.lineup import AlignmentSession, WriteResult
from clubroster.models import Fine, Match, Player, StaffMember, UserContext
from clubroster.services import (
    FineService,
    HttpImageUploader,
    ImageUploader,
    MatchService,
    PlayerService,
    StaffService,
    is_remote_reference,
)
from clubroster.store import DocumentStore, SQLiteDocumentStore
from clubroster.sync import PlayersCache, fine_statistics, players_with_pending_fines, team_statistics


logger = logging.getLogger(__name__)


@contextmanager
def _service_errors() -> Iterator[None]:
    try:
        yield
    except PermissionDenied as exc:
        raise HTTPException(status_code=403, detail=str(exc)) from exc
    except EntityNotFound as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except DuplicateNumber as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except (ValidationError, ValueError) as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except (UploadFailed, StoreError) as exc:
        logger.error("Backend failure: %s", exc)
        raise HTTPException(status_code=502, detail=str(exc)) from exc


def _user_context(
    user_id: Optional[str],
    role: Optional[str],
    team_id: Optional[str],
) -> UserContext:
    if not user_id or not team_id:
        raise HTTPException(status_code=401, detail="X-User-Id and X-Team-Id headers are required")
    try:
        return UserContext(user_id=user_id, role=(role or "").lower(), team_id=team_id)
    except ValidationError as exc:
        raise HTTPException(status_code=403, detail=f"Unsupported role {role!r}") from exc


def _remote_image_only(fields: Dict[str, Any]) -> Dict[str, Any]:
    # Local image paths are accepted from in-process callers only.
    image = fields.get("image")
    if image and not is_remote_reference(image):
        raise HTTPException(status_code=400, detail="image must be an http(s) URL")
    return fields


def _formation_to_response(formation: Formation) -> FormationResponse:
    return FormationResponse(
        formation_id=formation.formation_id,
        name=formation.name,
        slots=[SlotResponse(slot_id=slot.slot_id, line=slot.line, x=slot.x, y=slot.y) for slot in formation.slots],
    )


def _alignment_to_response(session: AlignmentSession) -> AlignmentResponse:
    editor = session.editor
    return AlignmentResponse(
        match_id=session.match_id,
        loaded=session.loaded,
        formation_id=editor.formation.formation_id,
        lineup=editor.lineup,
        substitutes=editor.substitutes,
        temporary_players=editor.temporary_players,
        special_roles=session.roles.holders,
        role_holders={role_id: session.roles.get_holder_name(role_id) for role_id in ROLE_IDS},
        pending_write=session.pending_write,
        last_error=str(session.last_error) if session.last_error is not None else None,
    )


def _action_response(session: AlignmentSession, result: WriteResult) -> ActionResponse:
    if not result.ok:
        raise HTTPException(status_code=502, detail=f"Alignment saved locally but not stored: {result.error}")
    return ActionResponse(changed=result.changed, alignment=_alignment_to_response(session))


def create_app(
    store: Optional[DocumentStore] = None,
    settings: Optional[Settings] = None,
    uploader: Optional[ImageUploader] = None,
) -> FastAPI:
    settings = settings or Settings.from_env()
    store = store or SQLiteDocumentStore(settings.db_path)
    if uploader is None and settings.upload_endpoint:
        uploader = HttpImageUploader(
            settings.upload_endpoint,
            upload_preset=settings.upload_preset,
            timeout=settings.upload_timeout,
        )

    rosters: Dict[str, PlayersCache] = {}
    sessions: Dict[Tuple[str, str], AlignmentSession] = {}
    roster_listeners: Dict[Tuple[str, str], Callable[[], None]] = {}

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        yield
        for session in sessions.values():
            session.close()
        for cache in rosters.values():
            cache.deactivate()
        sessions.clear()
        roster_listeners.clear()
        rosters.clear()
        if isinstance(uploader, HttpImageUploader):
            uploader.close()

    app = FastAPI(title="clubroster", lifespan=lifespan)
    app.state.store = store
    app.state.settings = settings
    app.state.uploader = uploader
    app.state.rosters = rosters
    app.state.sessions = sessions

    def roster_cache(context: UserContext) -> PlayersCache:
        cache = rosters.get(context.team_id)
        if cache is None:
            cache = PlayersCache(store)
            rosters[context.team_id] = cache
        cache.watch(context)
        return cache

    def match_session(context: UserContext, match_id: str) -> AlignmentSession:
        with _service_errors():
            MatchService(store, context).get_match(match_id)
        key = (context.team_id, match_id)
        session = sessions.get(key)
        if session is None:
            cache = roster_cache(context)
            session = AlignmentSession(
                store,
                match_id,
                roster=lambda: cache.items,
                team_id=context.team_id,
                default_formation=settings.default_formation,
            )
            roster_listeners[key] = cache.add_listener(lambda _cache: session.roster_changed())
            session.open()
            sessions[key] = session
            logger.info("Opened alignment session for match %s (team %s)", match_id, context.team_id)
        else:
            roster_cache(context)
            session.open()
        return session

    def close_session(context: UserContext, match_id: str) -> None:
        key = (context.team_id, match_id)
        session = sessions.pop(key, None)
        if session is not None:
            session.close()
        remove_listener = roster_listeners.pop(key, None)
        if remove_listener is not None:
            remove_listener()

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    # Catalogues

    @app.get("/formations", response_model=List[FormationResponse])
    async def list_formations():
        return [_formation_to_response(formation) for formation in iter_formations()]

    @app.get("/formations/{formation_id}", response_model=FormationResponse)
    async def get_formation(formation_id: str):
        formation = find_formation(formation_id)
        if formation is None:
            raise HTTPException(status_code=404, detail="Formation not found")
        return _formation_to_response(formation)

    @app.get("/roles", response_model=List[RoleResponse])
    async def list_roles():
        return [
            RoleResponse(
                role_id=role.role_id,
                label=role.label,
                badge=role.badge,
                badge_color=role.badge_color,
                background_color=role.background_color,
            )
            for role in SPECIAL_ROLES
        ]

    # Players

    @app.get("/players", response_model=PlayerListResponse)
    async def list_players(
        search: Optional[str] = Query(default=None),
        x_user_id: Optional[str] = Header(default=None),
        x_user_role: Optional[str] = Header(default=None),
        x_team_id: Optional[str] = Header(default=None),
    ):
        context = _user_context(x_user_id, x_user_role, x_team_id)
        with _service_errors():
            service = PlayerService(store, context)
            players = service.search_players(search) if search else service.list_players()
        return PlayerListResponse(players=players)

    @app.post("/players", response_model=Player, status_code=201)
    async def create_player(
        payload: PlayerCreateRequest,
        x_user_id: Optional[str] = Header(default=None),
        x_user_role: Optional[str] = Header(default=None),
        x_team_id: Optional[str] = Header(default=None),
    ):
        context = _user_context(x_user_id, x_user_role, x_team_id)
        with _service_errors():
            return PlayerService(store, context, uploader=uploader).add_player(
                **_remote_image_only(payload.model_dump(exclude_none=True))
            )

    @app.get("/players/{player_id}", response_model=Player)
    async def get_player(
        player_id: str,
        x_user_id: Optional[str] = Header(default=None),
        x_user_role: Optional[str] = Header(default=None),
        x_team_id: Optional[str] = Header(default=None),
    ):
        context = _user_context(x_user_id, x_user_role, x_team_id)
        with _service_errors():
            return PlayerService(store, context).get_player(player_id)

    @app.patch("/players/{player_id}", response_model=Player)
    async def update_player(
        player_id: str,
        payload: PlayerUpdateRequest,
        x_user_id: Optional[str] = Header(default=None),
        x_user_role: Optional[str] = Header(default=None),
        x_team_id: Optional[str] = Header(default=None),
    ):
        context = _user_context(x_user_id, x_user_role, x_team_id)
        with _service_errors():
            return PlayerService(store, context, uploader=uploader).update_player(
                player_id, **_remote_image_only(payload.model_dump(exclude_none=True))
            )

    @app.delete("/players/{player_id}", status_code=204)
    async def delete_player(
        player_id: str,
        x_user_id: Optional[str] = Header(default=None),
        x_user_role: Optional[str] = Header(default=None),
        x_team_id: Optional[str] = Header(default=None),
    ):
        context = _user_context(x_user_id, x_user_role, x_team_id)
        with _service_errors():
            PlayerService(store, context).delete_player(player_id)

    # Fines

    @app.get("/players/{player_id}/fines", response_model=PlayerFinesResponse)
    async def player_fines(
        player_id: str,
        x_user_id: Optional[str] = Header(default=None),
        x_user_role: Optional[str] = Header(default=None),
        x_team_id: Optional[str] = Header(default=None),
    ):
        context = _user_context(x_user_id, x_user_role, x_team_id)
        with _service_errors():
            player = PlayerService(store, context).get_player(player_id)
            fines = FineService(store, context).list_fines(player_id)
        stats = fine_statistics(fines)
        return PlayerFinesResponse(
            player=player,
            fines=fines,
            statistics=FineStatisticsResponse(
                count=stats.count,
                pending_count=stats.pending_count,
                pending_total=stats.pending_total,
                paid_total=stats.paid_total,
                total_amount=stats.total_amount,
            ),
        )

    @app.post("/players/{player_id}/fines", response_model=Fine, status_code=201)
    async def create_fine(
        player_id: str,
        payload: FineCreateRequest,
        x_user_id: Optional[str] = Header(default=None),
        x_user_role: Optional[str] = Header(default=None),
        x_team_id: Optional[str] = Header(default=None),
    ):
        context = _user_context(x_user_id, x_user_role, x_team_id)
        with _service_errors():
            return FineService(store, context).add_fine(
                player_id,
                payload.amount,
                payload.reason,
                date=payload.date,
                paid=payload.paid,
            )

    @app.patch("/fines/{fine_id}", response_model=Fine)
    async def update_fine(
        fine_id: str,
        payload: FineUpdateRequest,
        x_user_id: Optional[str] = Header(default=None),
        x_user_role: Optional[str] = Header(default=None),
        x_team_id: Optional[str] = Header(default=None),
    ):
        context = _user_context(x_user_id, x_user_role, x_team_id)
        with _service_errors():
            return FineService(store, context).update_fine(fine_id, **payload.model_dump(exclude_none=True))

    @app.post("/fines/{fine_id}/paid", response_model=Fine)
    async def mark_fine_paid(
        fine_id: str,
        payload: FinePaidRequest,
        x_user_id: Optional[str] = Header(default=None),
        x_user_role: Optional[str] = Header(default=None),
        x_team_id: Optional[str] = Header(default=None),
    ):
        context = _user_context(x_user_id, x_user_role, x_team_id)
        with _service_errors():
            return FineService(store, context).set_paid(fine_id, payload.paid)

    @app.delete("/fines/{fine_id}", status_code=204)
    async def delete_fine(
        fine_id: str,
        x_user_id: Optional[str] = Header(default=None),
        x_user_role: Optional[str] = Header(default=None),
        x_team_id: Optional[str] = Header(default=None),
    ):
        context = _user_context(x_user_id, x_user_role, x_team_id)
        with _service_errors():
            FineService(store, context).delete_fine(fine_id)

    @app.get("/team/statistics", response_model=TeamStatisticsResponse)
    async def team_stats(
        x_user_id: Optional[str] = Header(default=None),
        x_user_role: Optional[str] = Header(default=None),
        x_team_id: Optional[str] = Header(default=None),
    ):
        context = _user_context(x_user_id, x_user_role, x_team_id)
        with _service_errors():
            players = PlayerService(store, context).list_players()
            fines = FineService(store, context).team_fines()
        stats = team_statistics(players, fines)
        return TeamStatisticsResponse(
            total_players=stats.total_players,
            total_fines=stats.total_fines,
            pending_fines=stats.pending_fines,
            total_debt=stats.total_debt,
            debtors=[
                PlayerDebtResponse(
                    player=debt.player,
                    pending_count=len(debt.pending),
                    pending_total=debt.pending_total,
                )
                for debt in players_with_pending_fines(players, fines)
            ],
        )

    # Staff

    @app.get("/staff", response_model=StaffListResponse)
    async def list_staff(
        search: Optional[str] = Query(default=None),
        x_user_id: Optional[str] = Header(default=None),
        x_user_role: Optional[str] = Header(default=None),
        x_team_id: Optional[str] = Header(default=None),
    ):
        context = _user_context(x_user_id, x_user_role, x_team_id)
        with _service_errors():
            service = StaffService(store, context)
            staff = service.search_staff(search) if search else service.list_staff()
        return StaffListResponse(staff=staff)

    @app.post("/staff", response_model=StaffMember, status_code=201)
    async def create_staff(
        payload: StaffCreateRequest,
        x_user_id: Optional[str] = Header(default=None),
        x_user_role: Optional[str] = Header(default=None),
        x_team_id: Optional[str] = Header(default=None),
    ):
        context = _user_context(x_user_id, x_user_role, x_team_id)
        with _service_errors():
            return StaffService(store, context, uploader=uploader).add_staff(
                **_remote_image_only(payload.model_dump(exclude_none=True))
            )

    @app.patch("/staff/{staff_id}", response_model=StaffMember)
    async def update_staff(
        staff_id: str,
        payload: StaffUpdateRequest,
        x_user_id: Optional[str] = Header(default=None),
        x_user_role: Optional[str] = Header(default=None),
        x_team_id: Optional[str] = Header(default=None),
    ):
        context = _user_context(x_user_id, x_user_role, x_team_id)
        with _service_errors():
            return StaffService(store, context, uploader=uploader).update_staff(
                staff_id, **_remote_image_only(payload.model_dump(exclude_none=True))
            )

    @app.delete("/staff/{staff_id}", status_code=204)
    async def delete_staff(
        staff_id: str,
        x_user_id: Optional[str] = Header(default=None),
        x_user_role: Optional[str] = Header(default=None),
        x_team_id: Optional[str] = Header(default=None),
    ):
        context = _user_context(x_user_id, x_user_role, x_team_id)
        with _service_errors():
            StaffService(store, context).delete_staff(staff_id)

    # Matches

    @app.get("/matches", response_model=MatchListResponse)
    async def list_matches(
        x_user_id: Optional[str] = Header(default=None),
        x_user_role: Optional[str] = Header(default=None),
        x_team_id: Optional[str] = Header(default=None),
    ):
        context = _user_context(x_user_id, x_user_role, x_team_id)
        with _service_errors():
            return MatchListResponse(matches=MatchService(store, context).list_matches())

    @app.post("/matches", response_model=Match, status_code=201)
    async def create_match(
        payload: MatchCreateRequest,
        x_user_id: Optional[str] = Header(default=None),
        x_user_role: Optional[str] = Header(default=None),
        x_team_id: Optional[str] = Header(default=None),
    ):
        context = _user_context(x_user_id, x_user_role, x_team_id)
        fields = payload.model_dump(exclude_none=True)
        with _service_errors():
            return MatchService(store, context).add_match(fields.pop("matchday"), fields.pop("opponent"), **fields)

    @app.get("/matches/{match_id}", response_model=Match)
    async def get_match(
        match_id: str,
        x_user_id: Optional[str] = Header(default=None),
        x_user_role: Optional[str] = Header(default=None),
        x_team_id: Optional[str] = Header(default=None),
    ):
        context = _user_context(x_user_id, x_user_role, x_team_id)
        with _service_errors():
            return MatchService(store, context).get_match(match_id)

    @app.patch("/matches/{match_id}", response_model=Match)
    async def update_match(
        match_id: str,
        payload: MatchUpdateRequest,
        x_user_id: Optional[str] = Header(default=None),
        x_user_role: Optional[str] = Header(default=None),
        x_team_id: Optional[str] = Header(default=None),
    ):
        context = _user_context(x_user_id, x_user_role, x_team_id)
        with _service_errors():
            return MatchService(store, context).update_match(match_id, **payload.model_dump(exclude_none=True))

    @app.delete("/matches/{match_id}", status_code=204)
    async def delete_match(
        match_id: str,
        x_user_id: Optional[str] = Header(default=None),
        x_user_role: Optional[str] = Header(default=None),
        x_team_id: Optional[str] = Header(default=None),
    ):
        context = _user_context(x_user_id, x_user_role, x_team_id)
        with _service_errors():
            MatchService(store, context).delete_match(match_id)
        close_session(context, match_id)

    # Match alignments

    @app.get("/matches/{match_id}/alignment", response_model=AlignmentResponse)
    async def get_alignment(
        match_id: str,
        x_user_id: Optional[str] = Header(default=None),
        x_user_role: Optional[str] = Header(default=None),
        x_team_id: Optional[str] = Header(default=None),
    ):
        session = match_session(_user_context(x_user_id, x_user_role, x_team_id), match_id)
        return _alignment_to_response(session)

    @app.put("/matches/{match_id}/alignment/slots/{slot_id}", response_model=ActionResponse)
    async def assign_slot(
        match_id: str,
        slot_id: str,
        payload: AssignRequest,
        x_user_id: Optional[str] = Header(default=None),
        x_user_role: Optional[str] = Header(default=None),
        x_team_id: Optional[str] = Header(default=None),
    ):
        session = match_session(_user_context(x_user_id, x_user_role, x_team_id), match_id)
        return _action_response(session, session.assign(slot_id, payload.player_id))

    @app.delete("/matches/{match_id}/alignment/slots/{slot_id}", response_model=ActionResponse)
    async def clear_slot(
        match_id: str,
        slot_id: str,
        x_user_id: Optional[str] = Header(default=None),
        x_user_role: Optional[str] = Header(default=None),
        x_team_id: Optional[str] = Header(default=None),
    ):
        session = match_session(_user_context(x_user_id, x_user_role, x_team_id), match_id)
        return _action_response(session, session.clear(slot_id))

    @app.post("/matches/{match_id}/alignment/substitutes", response_model=ActionResponse)
    async def add_substitute(
        match_id: str,
        payload: SubstituteRequest,
        x_user_id: Optional[str] = Header(default=None),
        x_user_role: Optional[str] = Header(default=None),
        x_team_id: Optional[str] = Header(default=None),
    ):
        session = match_session(_user_context(x_user_id, x_user_role, x_team_id), match_id)
        return _action_response(session, session.add_substitute(payload.player_id))

    @app.delete("/matches/{match_id}/alignment/substitutes/{player_id}", response_model=ActionResponse)
    async def remove_substitute(
        match_id: str,
        player_id: str,
        x_user_id: Optional[str] = Header(default=None),
        x_user_role: Optional[str] = Header(default=None),
        x_team_id: Optional[str] = Header(default=None),
    ):
        session = match_session(_user_context(x_user_id, x_user_role, x_team_id), match_id)
        return _action_response(session, session.remove_substitute(player_id))

    @app.post("/matches/{match_id}/alignment/temporary-players", response_model=TemporaryPlayerResponse)
    async def add_temporary_player(
        match_id: str,
        payload: TemporaryPlayerRequest,
        x_user_id: Optional[str] = Header(default=None),
        x_user_role: Optional[str] = Header(default=None),
        x_team_id: Optional[str] = Header(default=None),
    ):
        session = match_session(_user_context(x_user_id, x_user_role, x_team_id), match_id)
        player, result = session.add_temporary_player(
            payload.name,
            payload.number,
            payload.position,
            slot_id=payload.slot_id,
            as_substitute=payload.as_substitute,
        )
        action = _action_response(session, result)
        return TemporaryPlayerResponse(changed=action.changed, alignment=action.alignment, player=player)

    @app.put("/matches/{match_id}/alignment/formation", response_model=ActionResponse)
    async def set_formation(
        match_id: str,
        payload: FormationRequest,
        x_user_id: Optional[str] = Header(default=None),
        x_user_role: Optional[str] = Header(default=None),
        x_team_id: Optional[str] = Header(default=None),
    ):
        session = match_session(_user_context(x_user_id, x_user_role, x_team_id), match_id)
        return _action_response(session, session.set_formation(payload.formation_id))

    @app.put("/matches/{match_id}/alignment/roles/{role_id}", response_model=ActionResponse)
    async def set_role(
        match_id: str,
        role_id: str,
        payload: RoleRequest,
        x_user_id: Optional[str] = Header(default=None),
        x_user_role: Optional[str] = Header(default=None),
        x_team_id: Optional[str] = Header(default=None),
    ):
        session = match_session(_user_context(x_user_id, x_user_role, x_team_id), match_id)
        return _action_response(session, session.set_role(role_id, payload.player_id))

    @app.post("/matches/{match_id}/alignment/retry", response_model=ActionResponse)
    async def retry_alignment(
        match_id: str,
        x_user_id: Optional[str] = Header(default=None),
        x_user_role: Optional[str] = Header(default=None),
        x_team_id: Optional[str] = Header(default=None),
    ):
        session = match_session(_user_context(x_user_id, x_user_role, x_team_id), match_id)
        return _action_response(session, session.retry())

    @app.get("/matches/{match_id}/alignment/available-players", response_model=PlayerListResponse)
    async def available_players(
        match_id: str,
        x_user_id: Optional[str] = Header(default=None),
        x_user_role: Optional[str] = Header(default=None),
        x_team_id: Optional[str] = Header(default=None),
    ):
        session = match_session(_user_context(x_user_id, x_user_role, x_team_id), match_id)
        return PlayerListResponse(players=session.available_players())

    @app.get("/matches/{match_id}/alignment/badges/{player_id}", response_model=List[BadgeResponse])
    async def player_badges(
        match_id: str,
        player_id: str,
        x_user_id: Optional[str] = Header(default=None),
        x_user_role: Optional[str] = Header(default=None),
        x_team_id: Optional[str] = Header(default=None),
    ):
        session = match_session(_user_context(x_user_id, x_user_role, x_team_id), match_id)
        return [
            BadgeResponse(role_id=badge.role_id, angle=badge.angle, x=badge.x, y=badge.y)
            for badge in session.badges_for(player_id)
        ]

    return app
