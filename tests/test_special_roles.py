import math

import pytest

from clubroster.lineup import UNASSIGNED, LineupEditor, SpecialRoleEngine, badge_angles, badge_layout
from clubroster.models import Player


@pytest.fixture
def editor() -> LineupEditor:
    editor = LineupEditor("433")
    editor.assign("GK", Player(id="p1", name="Ana", number=1))
    editor.add_substitute(Player(id="p2", name="Bea", number=12))
    return editor


@pytest.fixture
def roles(editor: LineupEditor) -> SpecialRoleEngine:
    return SpecialRoleEngine(editor.find_player)


def test_set_role_only_touches_that_role(roles: SpecialRoleEngine):
    assert roles.set_role("captain", "p1")
    assert roles.set_role("penalties", "p2")
    assert roles.set_role("captain", "p2")

    holders = roles.holders
    assert holders["captain"] == "p2"
    assert holders["penalties"] == "p2"
    assert holders["corners"] is None


def test_one_player_can_hold_several_roles(roles: SpecialRoleEngine):
    for role_id in ("penalties", "captain", "corners"):
        roles.set_role(role_id, "p1")
    assert roles.roles_for("p1") == ["captain", "corners", "penalties"]


def test_unknown_role_is_ignored(roles: SpecialRoleEngine):
    revision = roles.revision
    assert roles.set_role("goalHanger", "p1") is False
    assert roles.revision == revision
    assert "goalHanger" not in roles.holders


def test_clearing_a_role(roles: SpecialRoleEngine):
    roles.set_role("captain", "p1")
    assert roles.set_role("captain", None)
    assert roles.get_holder_name("captain") == UNASSIGNED


def test_holder_name_resolves_starters_and_substitutes(roles: SpecialRoleEngine):
    roles.set_role("captain", "p1")
    roles.set_role("corners", "p2")
    assert roles.get_holder_name("captain") == "Ana"
    assert roles.get_holder_name("corners") == "Bea"


def test_stale_holder_reads_as_unassigned_but_is_kept(editor: LineupEditor, roles: SpecialRoleEngine):
    roles.set_role("captain", "p1")
    editor.clear("GK")

    assert roles.get_holder_name("captain") == UNASSIGNED
    assert roles.holder_of("captain") is None
    assert roles.holders["captain"] == "p1"

    editor.assign("DEF1", Player(id="p1", name="Ana", number=1))
    assert roles.get_holder_name("captain") == "Ana"


def test_load_ignores_unknown_roles(roles: SpecialRoleEngine):
    roles.load({"captain": "p1", "goalHanger": "p2", "corners": ""})
    assert roles.holders == {
        "captain": "p1",
        "freeKicks": None,
        "freeKicksNear": None,
        "corners": None,
        "penalties": None,
    }


def test_badge_angles():
    assert badge_angles(0) == []
    assert badge_angles(1) == [60.0]
    assert badge_angles(3) == [150.0, 90.0, 30.0]
    assert badge_angles(5) == [150.0, 120.0, 90.0, 60.0, 30.0]


def test_badge_layout_positions_on_circle():
    badges = badge_layout(["captain", "corners", "penalties"])

    assert [badge.role_id for badge in badges] == ["captain", "corners", "penalties"]
    middle = badges[1]
    assert middle.angle == 90.0
    assert middle.x == pytest.approx(28.0)
    assert middle.y == pytest.approx(0.0, abs=1e-6)
    first = badges[0]
    assert first.x == pytest.approx(math.sin(math.radians(150)) * 28, abs=1e-6)
    assert first.y == pytest.approx(-math.cos(math.radians(150)) * 28, abs=1e-6)
    assert first.y > 0


def test_badges_for_player_follow_catalogue_order(roles: SpecialRoleEngine):
    roles.set_role("penalties", "p1")
    roles.set_role("captain", "p1")
    layout = badge_layout(roles.roles_for("p1"))
    assert [(badge.role_id, badge.angle) for badge in layout] == [("captain", 150.0), ("penalties", 30.0)]
