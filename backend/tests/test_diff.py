import pytest

from helpers import T0, entry, minutes
from tracker.errors import IntegrityViolation, PersistenceError
from tracker.models import Territory, TerritoryLog
from tracker.services.territories.diff import DiffEngine, LogRange, compute_transitions
from tracker.services.territories.integrity import accept, check_integrity
from tracker.services.territories.store import TerritoryStore


def test_integrity_accepts_without_prior_state():
    assert accept(None, [entry('Detlas', 'Alpha')])
    assert accept(None, [])


def test_integrity_rejects_older_snapshot():
    assert accept(T0, [entry('Detlas', 'Alpha', T0)])
    assert accept(T0, [entry('Detlas', 'Alpha', T0 - minutes(5)), entry('Ragni', 'Beta', T0 + minutes(1))])
    assert not accept(T0, [entry('Detlas', 'Alpha', T0 - minutes(1))])
    assert not accept(T0, [])
    with pytest.raises(IntegrityViolation):
        check_integrity(T0, [entry('Detlas', 'Alpha', T0 - minutes(1))])


def test_compute_transitions_only_for_changed_owners():
    previous = {'Detlas': ('Alpha', T0), 'Ragni': ('Alpha', T0), 'Almuj': ('Gamma', T0)}
    snapshot = [
        entry('Detlas', 'Beta', T0 + minutes(90)),
        entry('Ragni', 'Alpha', T0),
        entry('Nemract', 'Beta', T0),  # new, no transition
        # Almuj disappeared, no transition
    ]
    [t] = compute_transitions(previous, snapshot)
    assert (t.territory_name, t.old_guild_name, t.new_guild_name) == ('Detlas', 'Alpha', 'Beta')
    assert t.old_guild_terr_amt == 1
    assert t.new_guild_terr_amt == 2
    assert t.time_diff_ms == 90 * 60 * 1000


def test_log_range_empty():
    assert LogRange(3, 3).empty
    assert not LogRange(3, 5).empty


def test_commit_records_transition(flask_app):
    store = TerritoryStore()
    engine = DiffEngine(store)
    assert engine.commit([entry('Detlas', 'Alpha', T0), entry('Ragni', 'Alpha', T0)]) == []

    t2 = T0 + minutes(30)
    [log] = engine.commit([entry('Detlas', 'Beta', t2), entry('Ragni', 'Alpha', T0)])
    assert log.territory_name == 'Detlas'
    assert log.old_guild_name == 'Alpha'
    assert log.old_guild_terr_amt == 1
    assert log.new_guild_name == 'Beta'
    assert log.new_guild_terr_amt == 1
    assert log.acquired == t2
    assert log.time_diff == 30 * 60 * 1000
    assert Territory.query.get('Detlas').guild_name == 'Beta'
    assert store.latest_acquired() == t2


def test_commit_same_snapshot_twice_is_idempotent(flask_app):
    engine = DiffEngine(TerritoryStore())
    engine.commit([entry('Detlas', 'Alpha')])
    snapshot = [entry('Detlas', 'Beta', T0 + minutes(1))]
    assert len(engine.commit(snapshot)) == 1
    second = engine.commit_range(snapshot)
    assert second.empty
    assert TerritoryLog.query.count() == 1


def test_commit_replaces_whole_snapshot(flask_app):
    store = TerritoryStore()
    engine = DiffEngine(store)
    engine.commit([entry('Detlas', 'Alpha'), entry('Almuj', 'Gamma')])
    log_range = engine.commit_range([entry('Detlas', 'Alpha'), entry('Nemract', 'Beta')])
    assert log_range.empty
    assert [t.name for t in store.all_territories()] == ['Detlas', 'Nemract']


def test_log_range_covers_exactly_this_commit(flask_app):
    store = TerritoryStore()
    engine = DiffEngine(store)
    engine.commit([entry('A', 'x'), entry('B', 'x'), entry('C', 'x')])
    first = engine.commit_range([entry('A', 'y'), entry('B', 'y'), entry('C', 'x')])
    second = engine.commit_range([entry('A', 'y'), entry('B', 'y'), entry('C', 'z')])
    assert (first.old_id, first.new_id) == (0, 2)
    assert (second.old_id, second.new_id) == (2, 3)
    assert [log.territory_name for log in store.find_log_range(first.old_id, first.new_id)] == ['A', 'B']
    assert [log.territory_name for log in store.find_log_range(second.old_id, second.new_id)] == ['C']
    assert store.current_max_log_id() == 3


def test_duplicate_names_abort_without_changes(flask_app):
    store = TerritoryStore()
    store.replace_snapshot([entry('Detlas', 'Alpha')])
    with pytest.raises(PersistenceError):
        store.commit_and_range([entry('Detlas', 'Beta'), entry('Detlas', 'Gamma')])
    assert Territory.query.get('Detlas').guild_name == 'Alpha'
    assert TerritoryLog.query.count() == 0


def test_guild_ranking(flask_app):
    store = TerritoryStore()
    store.replace_snapshot([
        entry('A', 'Alpha'), entry('B', 'Alpha'), entry('C', 'Beta'), entry('D', 'Beta'), entry('E', 'Gamma'),
    ])
    assert store.guild_territory_numbers() == [('Alpha', 2), ('Beta', 2), ('Gamma', 1)]
    assert store.count_guild_territories('Beta') == 2
    assert store.guild_ranking('Alpha') == 1
    assert store.guild_ranking('Beta') == 1
    assert store.guild_ranking('Gamma') == 3
    assert store.guild_ranking('Nobody') == 0


def test_stores_share_one_snapshot_lock(flask_app):
    first, second = TerritoryStore(), TerritoryStore()
    with first._lock:
        assert not second._lock.acquire(blocking=False)
    assert second._lock.acquire(blocking=False)
    second._lock.release()
