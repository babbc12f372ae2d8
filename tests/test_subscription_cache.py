from clubroster.errors import StoreError, SubscriptionFailed
from clubroster.models import UserContext
from clubroster.store import FINES, MATCHES, PLAYERS, STAFF, Document
from clubroster.sync import FinesCache, MatchesCache, PlayersCache, StaffCache, Subscription, TeamProfileCache, subscribe_collection
from clubroster.sync.caches import team_players_query

from tests.mocks import FakeDocumentStore, fine_doc, player_doc


CONTEXT = UserContext(user_id="u1", role="coach", team_id="team-1")


def test_dispose_is_idempotent():
    store = FakeDocumentStore()
    received = []
    subscription = subscribe_collection(store, team_players_query(CONTEXT), received.append, received.append)

    subscription.dispose()
    subscription.dispose()

    assert subscription.disposed
    assert store.unsubscribe_calls == 1


def test_late_callbacks_after_dispose_are_dropped():
    store = FakeDocumentStore()
    received = []
    subscription = subscribe_collection(store, team_players_query(CONTEXT), received.append, received.append)
    subscription.dispose()

    store.emit_collection(PLAYERS, [player_doc("p1", "Ana", 9)], include_inactive=True)
    store.emit_error(PLAYERS, StoreError("late"), include_inactive=True)

    assert received == []


def test_bind_after_dispose_unsubscribes_immediately():
    calls = []
    subscription = Subscription("players")
    subscription.dispose()
    subscription.bind(lambda: calls.append("unsubscribed"))
    assert calls == ["unsubscribed"]
    assert not subscription.active


def test_snapshot_replaces_previous_contents():
    store = FakeDocumentStore()
    cache = PlayersCache(store)
    cache.watch(CONTEXT)
    assert cache.loading

    store.emit_collection(PLAYERS, [player_doc("p1", "Ana", 9), player_doc("p2", "Bea", 4)])
    store.emit_collection(PLAYERS, [player_doc("p3", "Cris", 7)])

    assert [player.id for player in cache.items] == ["p3"]
    assert not cache.loading
    assert cache.snapshot_count == 2


def test_error_keeps_last_snapshot_and_next_snapshot_clears_it():
    store = FakeDocumentStore()
    cache = PlayersCache(store)
    cache.watch(CONTEXT)
    store.emit_collection(PLAYERS, [player_doc("p1", "Ana", 9)])

    store.emit_error(PLAYERS, StoreError("permission denied"))

    assert cache.has_error
    assert [player.id for player in cache.items] == ["p1"]

    store.emit_collection(PLAYERS, [player_doc("p2", "Bea", 4)])
    assert not cache.has_error
    assert [player.id for player in cache.items] == ["p2"]


def test_fines_cache_error_after_two_snapshots_keeps_the_second():
    store = FakeDocumentStore()
    cache = FinesCache(store)
    cache.watch("p1")

    store.emit_collection(FINES, [fine_doc("f1", "p1", 10.0)])
    store.emit_collection(FINES, [fine_doc("f1", "p1", 10.0), fine_doc("f2", "p1", 5.0, paid=True)])
    store.emit_error(FINES, StoreError("network"))

    assert cache.has_error
    assert [fine.id for fine in cache.items] == ["f1", "f2"]
    stats = cache.statistics
    assert (stats.count, stats.pending_count, stats.pending_total, stats.paid_total) == (2, 1, 10.0, 5.0)


def test_switching_key_resets_snapshot_and_drops_old_subscription():
    store = FakeDocumentStore()
    cache = FinesCache(store)
    cache.watch("p1")
    store.emit_collection(FINES, [fine_doc("f1", "p1", 10.0)])

    cache.watch("p2")

    assert cache.items == []
    assert len(store.live()) == 1
    assert store.unsubscribe_calls == 1

    # A late snapshot of the old query must not leak into the new key.
    old = store.listeners[0]
    old.on_snapshot([fine_doc("f1", "p1", 10.0)])
    assert cache.items == []


def test_watching_same_key_twice_keeps_one_subscription():
    store = FakeDocumentStore()
    cache = PlayersCache(store)
    cache.watch(CONTEXT)
    cache.watch(CONTEXT)
    assert len(store.listeners) == 1


def test_deactivate_is_idempotent_and_discards_late_snapshots():
    store = FakeDocumentStore()
    cache = PlayersCache(store)
    cache.watch(CONTEXT)
    store.emit_collection(PLAYERS, [player_doc("p1", "Ana", 9)])

    cache.deactivate()
    cache.deactivate()
    store.emit_collection(PLAYERS, [player_doc("p2", "Bea", 4)], include_inactive=True)

    assert store.unsubscribe_calls == 1
    assert not cache.active
    assert [player.id for player in cache.items] == ["p1"]


def test_failed_subscribe_sets_error_and_can_be_retried():
    store = FakeDocumentStore()
    store.fail_subscribe = RuntimeError("offline")
    cache = PlayersCache(store)

    cache.watch(CONTEXT)
    assert isinstance(cache.error, SubscriptionFailed)
    assert not cache.active

    store.fail_subscribe = None
    cache.watch(CONTEXT)
    store.emit_collection(PLAYERS, [player_doc("p1", "Ana", 9)])
    assert cache.active
    assert not cache.has_error
    assert [player.id for player in cache.items] == ["p1"]


def test_listeners_are_notified_and_removable():
    store = FakeDocumentStore()
    cache = PlayersCache(store)
    seen = []
    remove = cache.add_listener(lambda c: seen.append(len(c.items)))
    cache.watch(CONTEXT)

    store.emit_collection(PLAYERS, [player_doc("p1", "Ana", 9)])
    remove()
    store.emit_collection(PLAYERS, [])

    assert seen == [1]


def test_malformed_documents_are_skipped():
    store = FakeDocumentStore()
    cache = PlayersCache(store)
    cache.watch(CONTEXT)
    store.emit_collection(PLAYERS, [player_doc("p1", "Ana", 9), Document(id="p2", data={"number": 3})])
    assert [player.id for player in cache.items] == ["p1"]


def test_staff_and_team_profile_caches():
    store = FakeDocumentStore()
    staff = StaffCache(store)
    profile = TeamProfileCache(store)
    staff.watch(CONTEXT)
    profile.watch(CONTEXT)

    store.emit_collection(STAFF, [Document(id="s1", data={"name": "Zoe", "position": "Coach", "teamId": "team-1"})])
    store.emit_document("teams/team-1", Document(id="team-1", data={"name": "Club", "homeField": "North"}))

    assert [member.name for member in staff.items] == ["Zoe"]
    assert profile.value.home_field == "North"

    store.emit_document("teams/team-1", None)
    assert profile.value is None


def test_matches_cache_watches_team_fixtures():
    store = FakeDocumentStore()
    cache = MatchesCache(store)
    cache.watch(CONTEXT)

    query = store.live("collection")[0].target
    assert query.collection == MATCHES
    assert ("teamId", "team-1") in query.filters

    store.emit_collection(
        MATCHES,
        [
            Document(id="m1", data={"matchday": 1, "opponent": "Rivals FC", "teamId": "team-1"}),
            Document(id="m2", data={"matchday": 0, "opponent": "Broken"}),
        ],
    )
    assert [match.id for match in cache.items] == ["m1"]
    assert cache.get("m1").venue == "home"
