"""Command-line interface for inspecting club data and serving the API."""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Optional, Sequence

from clubroster.config import iter_formations
from clubroster.config_loader import Settings
from clubroster.errors import ClubRosterError
from clubroster.lineup import AlignmentSession
from clubroster.models import UserContext
from clubroster.services import FineService, MatchService, PlayerService
from clubroster.store import SQLiteDocumentStore
from clubroster.sync import fine_statistics


logger = logging.getLogger(__name__)


def _parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Club roster, fines and match alignments")
    parser.add_argument("--settings", type=Path, default=None, help="Load settings JSON instead of environment")
    parser.add_argument("--save-settings", type=Path, default=None, help="Write the resolved settings JSON")
    parser.add_argument("--db", default=None, help="SQLite database path (overrides settings)")
    parser.add_argument("--log-level", default=None, help="Logging level (overrides settings)")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("formations", help="List the formation catalogue")

    alignment = sub.add_parser("alignment", help="Print the stored alignment of a match")
    alignment.add_argument("match_id")
    alignment.add_argument("--team", required=True, help="Team id owning the roster")

    matches = sub.add_parser("matches", help="List the matches of a team")
    matches.add_argument("--team", required=True, help="Team id owning the matches")

    fines = sub.add_parser("fines", help="Print the fines of a player")
    fines.add_argument("player_id")
    fines.add_argument("--team", required=True, help="Team id owning the player")

    serve = sub.add_parser("serve", help="Run the HTTP API with uvicorn")
    serve.add_argument("--host", default=None)
    serve.add_argument("--port", type=int, default=None)

    return parser.parse_args(argv)


def _resolve_settings(args: argparse.Namespace) -> Settings:
    settings = Settings.load(args.settings) if args.settings else Settings.from_env()
    if args.db:
        settings.db_path = args.db
    if args.log_level:
        settings.log_level = args.log_level.upper()
    if args.save_settings:
        settings.save(args.save_settings)
        print(f"Saved settings to {args.save_settings}")
    return settings


def _print_formations() -> None:
    for formation in iter_formations():
        slots = " ".join(slot.slot_id for slot in formation.slots)
        print(f"{formation.name:<10} {slots}")


def _print_alignment(store: SQLiteDocumentStore, settings: Settings, match_id: str, team_id: str) -> None:
    context = UserContext(user_id="cli", role="admin", team_id=team_id)
    match = MatchService(store, context).get_match(match_id)
    roster = PlayerService(store, context).list_players()
    with AlignmentSession(
        store,
        match_id,
        roster=lambda: roster,
        team_id=team_id,
        default_formation=settings.default_formation,
    ) as session:
        editor = session.editor
        print(f"Matchday {match.matchday} vs {match.opponent} - formation {editor.formation.name}")
        for slot_id, player in editor.lineup.items():
            label = f"#{player.number} {player.name}" if player else "-"
            print(f"  {slot_id:<5} {label}")
        subs = ", ".join(f"#{player.number} {player.name}" for player in editor.substitutes)
        print(f"Substitutes: {subs or '-'}")
        for role_id in session.roles.holders:
            print(f"  {role_id:<14} {session.roles.get_holder_name(role_id)}")


def _print_matches(store: SQLiteDocumentStore, team_id: str) -> None:
    context = UserContext(user_id="cli", role="admin", team_id=team_id)
    for match in MatchService(store, context).list_matches():
        print(f"{match.matchday:>3} {match.date or '-':<10} {match.venue:<4} {match.opponent:<24} {match.result or ''} {match.id}")


def _print_fines(store: SQLiteDocumentStore, player_id: str, team_id: str) -> None:
    context = UserContext(user_id="cli", role="admin", team_id=team_id)
    player = PlayerService(store, context).get_player(player_id)
    fines = FineService(store, context).list_fines(player_id)
    stats = fine_statistics(fines)
    print(f"#{player.number} {player.name}: {stats.count} fines, {stats.pending_count} pending")
    for fine in fines:
        state = "paid" if fine.paid else "pending"
        print(f"  {fine.date or '-':<10} {fine.amount:>8.2f} {state:<7} {fine.reason}")
    print(json.dumps({"pending_total": stats.pending_total, "paid_total": stats.paid_total}))


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _parse_args(argv)
    settings = _resolve_settings(args)
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "formations":
        _print_formations()
        return 0

    if args.command == "serve":
        import uvicorn

        from clubroster.api import create_app

        uvicorn.run(
            create_app(settings=settings),
            host=args.host or settings.host,
            port=args.port or settings.port,
            log_level=settings.log_level.lower(),
        )
        return 0

    store = SQLiteDocumentStore(settings.db_path, read_only=True)
    try:
        if args.command == "alignment":
            _print_alignment(store, settings, args.match_id, args.team)
        elif args.command == "matches":
            _print_matches(store, args.team)
        elif args.command == "fines":
            _print_fines(store, args.player_id, args.team)
    except ClubRosterError as exc:
        logger.error("%s", exc)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
