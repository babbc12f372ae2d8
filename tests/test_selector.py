from clubroster.lineup import all_players, available_players, starting_players
from clubroster.models import Player


ROSTER = [Player(id=f"p{i}", name=f"Player {i}", number=i) for i in range(1, 6)]
GUEST = Player(id="temp_abc", name="Guest", number=40, is_temporary=True)


def test_available_players_excludes_starters_and_substitutes_in_roster_order():
    lineup = {"GK": ROSTER[1], "DEF1": None, "DEF2": ROSTER[3]}
    available = available_players(lineup, [ROSTER[0]], [GUEST], ROSTER)
    assert [player.id for player in available] == ["p3", "p5", "temp_abc"]


def test_available_players_does_not_mutate_inputs():
    lineup = {"GK": ROSTER[0]}
    substitutes = [ROSTER[1]]
    temporary = [GUEST]
    roster = list(ROSTER)

    available_players(lineup, substitutes, temporary, roster)

    assert lineup == {"GK": ROSTER[0]}
    assert substitutes == [ROSTER[1]]
    assert temporary == [GUEST]
    assert roster == ROSTER


def test_all_players_first_occurrence_wins():
    shadow = Player(id="p1", name="Shadow", number=99)
    combined = all_players(ROSTER[:2], [shadow, GUEST])
    assert [player.name for player in combined] == ["Player 1", "Player 2", "Guest"]


def test_starting_players_follow_slot_order():
    lineup = {"FWD1": ROSTER[0], "GK": ROSTER[1], "DEF1": None}
    starters = starting_players(lineup, slot_order=["GK", "DEF1", "FWD1"])
    assert [(s.slot_id, s.player.id) for s in starters] == [("GK", "p2"), ("FWD1", "p1")]
