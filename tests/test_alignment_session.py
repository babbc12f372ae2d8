import pytest

from clubroster.errors import WriteRejected
from clubroster.lineup import AlignmentSession, LineupEditor, MatchAlignment, SpecialRoleEngine, apply_alignment, encode_alignment
from clubroster.models import Player
from clubroster.store import ALIGNMENTS, Document, document_path

from tests.mocks import FakeDocumentStore


ROSTER = [Player(id=f"p{i}", name=f"Player {i}", number=i, team_id="team-1") for i in range(1, 8)]
PATH = document_path(ALIGNMENTS, "m1")


@pytest.fixture
def store() -> FakeDocumentStore:
    return FakeDocumentStore()


@pytest.fixture
def session(store: FakeDocumentStore) -> AlignmentSession:
    session = AlignmentSession(store, "m1", roster=lambda: ROSTER, default_formation="433")
    session.open()
    store.emit_document(PATH, None)
    yield session
    session.close()


def test_encode_alignment_shapes_the_document():
    editor = LineupEditor("433")
    roles = SpecialRoleEngine(editor.find_player)
    guest = editor.add_temporary_player("Guest", 40, "FWD")
    editor.assign("GK", ROSTER[0])
    editor.assign("FWD1", guest)
    editor.add_substitute(ROSTER[1])
    roles.set_role("captain", "p1")

    doc = encode_alignment("m1", editor, roles).to_document()

    assert doc["formationId"] == "433"
    assert doc["lineup"]["GK"] == "p1"
    assert doc["lineup"]["DEF1"] is None
    assert doc["substitutes"] == ["p2"]
    assert doc["specialRoles"]["captain"] == "p1"
    assert doc["temporaryPlayers"] == [{"id": guest.id, "name": "Guest", "number": 40, "position": "FWD"}]


def test_apply_alignment_drops_unknown_ids_but_keeps_role_holders():
    alignment = MatchAlignment.model_validate(
        {
            "id": "m1",
            "formationId": "442",
            "lineup": {"GK": "p1", "DEF1": "gone", "FWD1": "temp_x"},
            "substitutes": ["p2", "gone-too"],
            "specialRoles": {"captain": "gone", "corners": "p2"},
            "temporaryPlayers": [{"id": "temp_x", "name": "Guest", "number": 40, "position": "FWD"}],
        }
    )
    editor = LineupEditor()
    roles = SpecialRoleEngine(editor.find_player)

    missing = apply_alignment(alignment, ROSTER, editor, roles)

    assert missing == ["gone", "gone-too"]
    assert editor.lineup["GK"].id == "p1"
    assert editor.lineup["DEF1"] is None
    assert editor.lineup["FWD1"].is_temporary
    assert [player.id for player in editor.substitutes] == ["p2"]
    assert roles.holders["captain"] == "gone"
    assert roles.get_holder_name("captain") == "Unassigned"
    assert roles.get_holder_name("corners") == "Player 2"


def test_actions_write_the_whole_record(session: AlignmentSession, store: FakeDocumentStore):
    result = session.assign("GK", "p1")

    assert result.changed and result.ok
    path, payload, merge = store.writes[-1]
    assert path == PATH
    assert merge is False
    assert payload["lineup"]["GK"] == "p1"
    assert session.pending_write


def test_noop_actions_do_not_write(session: AlignmentSession, store: FakeDocumentStore):
    assert session.clear("GK").changed is False
    assert session.remove_substitute("p9").changed is False
    assert session.assign("NOPE", "p1").changed is False
    assert session.assign("GK", "unknown").changed is False
    assert session.set_role("goalHanger", "p1").changed is False
    assert store.writes == []


def test_write_failure_is_surfaced_and_not_rolled_back(session: AlignmentSession, store: FakeDocumentStore):
    store.reject_writes = "permission denied"

    result = session.assign("GK", "p1")

    assert result.changed
    assert not result.ok
    assert isinstance(result.error, WriteRejected)
    assert session.last_error is result.error
    assert session.editor.lineup["GK"].id == "p1"

    store.reject_writes = None
    retried = session.retry()
    assert retried.ok
    assert session.last_error is None
    assert store.writes[-1][1]["lineup"]["GK"] == "p1"


def test_remote_snapshot_loads_until_first_local_edit(session: AlignmentSession, store: FakeDocumentStore):
    store.emit_document(
        PATH,
        Document(id="m1", data={"formationId": "442", "lineup": {"GK": "p3"}, "substitutes": ["p4"]}),
    )
    assert session.editor.formation.formation_id == "442"
    assert session.editor.lineup["GK"].id == "p3"

    session.assign("DEF1", "p5")
    store.emit_document(PATH, Document(id="m1", data={"formationId": "433", "lineup": {}}))

    assert session.editor.formation.formation_id == "442"
    assert session.editor.lineup["DEF1"].id == "p5"


def test_echo_of_own_write_clears_pending_flag(session: AlignmentSession, store: FakeDocumentStore):
    session.add_substitute("p2")
    assert session.pending_write

    store.echo_document(PATH)

    assert not session.pending_write
    assert [player.id for player in session.editor.substitutes] == ["p2"]


def test_roster_arriving_late_resolves_stored_ids(store: FakeDocumentStore):
    roster: list[Player] = []
    session = AlignmentSession(store, "m1", roster=lambda: roster)
    session.open()
    store.emit_document(PATH, Document(id="m1", data={"formationId": "442", "lineup": {"GK": "p1"}}))
    assert session.editor.lineup["GK"] is None

    roster.extend(ROSTER)
    session.roster_changed()

    assert session.editor.lineup["GK"].id == "p1"
    session.close()


def test_temporary_player_can_go_straight_into_a_slot(session: AlignmentSession, store: FakeDocumentStore):
    player, result = session.add_temporary_player("Guest", 40, "GK", slot_id="GK")

    assert result.ok and result.changed
    assert session.editor.lineup["GK"] == player
    written = store.writes[-1][1]
    assert written["lineup"]["GK"] == player.id
    assert written["temporaryPlayers"][0]["id"] == player.id
    assert all(path == PATH for path, _, _ in store.writes)


def test_rejected_temporary_player_writes_nothing(session: AlignmentSession, store: FakeDocumentStore):
    player, result = session.add_temporary_player("Guest", 3, "GK")
    assert player is None
    assert result.changed is False
    assert store.writes == []


def test_available_players_and_badges(session: AlignmentSession):
    session.assign("GK", "p1")
    session.add_substitute("p2")
    session.set_role("captain", "p1")
    session.set_role("penalties", "p1")

    assert [player.id for player in session.available_players()] == ["p3", "p4", "p5", "p6", "p7"]
    assert [badge.angle for badge in session.badges_for("p1")] == [150.0, 30.0]


def test_set_formation_is_persisted(session: AlignmentSession, store: FakeDocumentStore):
    session.assign("FWD3", "p1")
    assert session.set_formation("4-4-2").ok
    assert store.writes[-1][1]["formationId"] == "442"
    assert session.editor.slot_of("p1") == "FWD1"


def test_close_is_idempotent(store: FakeDocumentStore):
    session = AlignmentSession(store, "m1", roster=lambda: ROSTER)
    session.open()
    session.close()
    session.close()
    assert store.unsubscribe_calls == 1


def test_edits_wait_for_the_stored_record(store: FakeDocumentStore):
    store.documents[("alignments", "m1")] = {
        "formationId": "442",
        "lineup": {"GK": "p1"},
        "substitutes": ["p2", "p3"],
        "specialRoles": {"captain": "p1"},
    }
    session = AlignmentSession(store, "m1", roster=lambda: ROSTER)
    session.open()

    assert not session.loaded
    assert session.assign("FWD1", "p4").changed is False
    assert session.set_role("corners", "p4").changed is False
    assert session.retry().changed is False
    assert store.writes == []
    assert session.editor.lineup["FWD1"] is None

    store.echo_document(PATH)
    assert session.loaded
    assert session.assign("FWD1", "p4").ok

    written = store.writes[-1][1]
    assert written["substitutes"] == ["p2", "p3"]
    assert written["specialRoles"]["captain"] == "p1"
    assert written["lineup"]["FWD1"] == "p4"
    session.close()


def test_error_before_first_snapshot_keeps_session_read_only(store: FakeDocumentStore):
    session = AlignmentSession(store, "m1", roster=lambda: ROSTER)
    session.open()

    store.emit_error(ALIGNMENTS, RuntimeError("offline"))

    assert session.cache.has_error
    assert not session.loaded
    assert session.add_substitute("p2").changed is False
    assert store.writes == []
    session.close()


def test_record_of_another_team_is_neither_loaded_nor_overwritten(store: FakeDocumentStore):
    session = AlignmentSession(store, "m1", roster=lambda: ROSTER, team_id="team-1")
    session.open()
    store.emit_document(
        PATH,
        Document(id="m1", data={"teamId": "team-2", "formationId": "433", "lineup": {"GK": "p1"}}),
    )

    assert not session.loaded
    assert session.editor.lineup["GK"] is None
    assert session.assign("GK", "p2").changed is False
    assert store.writes == []
    session.close()


def test_written_record_carries_the_team(store: FakeDocumentStore):
    session = AlignmentSession(store, "m1", roster=lambda: ROSTER, team_id="team-1")
    session.open()
    store.emit_document(PATH, None)

    session.assign("GK", "p1")

    assert store.writes[-1][1]["teamId"] == "team-1"
    store.echo_document(PATH)
    assert not session.pending_write
    session.close()
