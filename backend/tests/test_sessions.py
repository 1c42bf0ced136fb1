import threading

import pytest

from baghchal.services.sessions import (
    InternalError,
    InvalidInput,
    RoomExists,
    RoomFull,
    RoomNotFound,
    SessionManager,
)
from baghchal.services.sessions.lifecycle import DELETED, LEFT
from baghchal.services.sessions.store import RoomStore


@pytest.fixture()
def manager(notifier, clock):
    return SessionManager(store=RoomStore(shards=4), notifier=notifier, ttl=7200, sweep_interval=1800, clock=clock)


def test_create_twice_is_rejected(manager):
    assert manager.create_room('ABC', 'Alice') == 'ABC'
    with pytest.raises(RoomExists):
        manager.create_room('ABC', 'Alice')


@pytest.mark.parametrize('code,name', [('', 'Alice'), ('ABC', ''), (None, 'Alice'), ('ABC', None)])
def test_create_requires_code_and_name(manager, code, name):
    with pytest.raises(InvalidInput):
        manager.create_room(code, name)
    assert not manager.room_exists('ABC')


def test_codes_are_case_sensitive(manager):
    manager.create_room('abc', 'Alice')
    assert manager.room_exists('abc')
    assert not manager.room_exists('ABC')


def test_join_missing_room(manager):
    with pytest.raises(RoomNotFound):
        manager.join_room('NOPE', 'Bob')


def test_join_full_room(manager):
    manager.create_room('ABC', 'Alice')
    assert manager.join_room('ABC', 'Bob') == 1
    with pytest.raises(RoomFull):
        manager.join_room('ABC', 'Cara')
    _, slots = manager.get_state('ABC')
    assert [p.name for p in slots] == ['Alice', 'Bob']


def test_create_then_join_lists_both_players(manager):
    manager.create_room('ABC', 'Alice')
    manager.join_room('ABC', 'Bob')
    state, slots = manager.get_state('ABC')
    assert state is None
    assert [p.name for p in slots] == ['Alice', 'Bob']
    assert manager.get_room('ABC').status == 'active'


def test_update_then_get_returns_same_payload(manager):
    manager.create_room('ABC', 'Alice')
    payload = {
        'tigerPositions': [[0, 0], [0, 4], [4, 0], [4, 4]],
        'goatPositions': [],
        'totalGoatsPlaced': 0,
        'goatsCaptured': 0,
        'tigerTurn': True,
    }
    manager.update_state('ABC', payload)
    state, _ = manager.get_state('ABC')
    assert state == payload

    # the stored value is a copy, not the caller's object
    payload['goatsCaptured'] = 3
    assert manager.get_state('ABC')[0]['goatsCaptured'] == 0


def test_last_write_wins(manager):
    manager.create_room('ABC', 'Alice')
    manager.update_state('ABC', {'turn': 1})
    manager.update_state('ABC', {'other': True})
    assert manager.get_state('ABC')[0] == {'other': True}


def test_update_requires_state_and_room(manager):
    with pytest.raises(InvalidInput):
        manager.update_state('ABC', None)
    with pytest.raises(RoomNotFound):
        manager.update_state('ABC', {'x': 1})
    with pytest.raises(RoomNotFound):
        manager.get_state('ABC')


def test_snapshots_do_not_leak_into_store(manager):
    manager.create_room('ABC', 'Alice')
    room = manager.get_room('ABC')
    room.slots.append(room.slots[0])
    room.game_state = {'tampered': True}
    fresh = manager.get_room('ABC')
    assert fresh.player_names() == ['Alice']
    assert fresh.game_state is None


def test_join_and_update_bump_last_activity(manager, clock):
    manager.create_room('ABC', 'Alice')
    created = manager.get_room('ABC').last_activity
    clock.advance(10)
    manager.join_room('ABC', 'Bob')
    assert manager.get_room('ABC').last_activity == created + 10
    clock.advance(5)
    manager.update_state('ABC', {'x': 1})
    room = manager.get_room('ABC')
    assert room.last_activity == created + 15
    assert room.created_at == created


def test_players_ready_goes_to_both_connections(manager, notifier):
    manager.create_room('ABC', 'Alice', connection_id='sid-a')
    manager.join_room('ABC', 'Bob', connection_id='sid-b')
    for sid in ('sid-a', 'sid-b'):
        events = notifier.events_for(sid)
        assert events == [('players_ready', {'roomCode': 'ABC', 'players': ['Alice', 'Bob']})]


def test_move_is_pushed_to_opponent_only(manager, notifier):
    manager.create_room('ABC', 'Alice', connection_id='sid-a')
    manager.join_room('ABC', 'Bob', connection_id='sid-b')
    notifier.sent.clear()

    manager.update_state('ABC', {'tigerTurn': False}, connection_id='sid-a')

    assert notifier.events_for('sid-b') == [
        ('opponent_move', {'roomCode': 'ABC', 'gameState': {'tigerTurn': False}})
    ]
    assert notifier.events_for('sid-a') == []


def test_pull_sender_is_matched_by_name(manager, notifier):
    manager.create_room('ABC', 'Alice', connection_id='sid-a')
    manager.join_room('ABC', 'Bob')
    notifier.sent.clear()
    manager.update_state('ABC', {'x': 1}, sender_name='Alice')
    assert notifier.sent == []
    manager.update_state('ABC', {'x': 2}, sender_name='Bob')
    assert [e for e, _ in notifier.events_for('sid-a')] == ['opponent_move']


def test_disconnect_only_occupant_deletes_room(manager, notifier):
    manager.create_room('ABC', 'Alice', connection_id='sid-a')
    assert manager.disconnect('sid-a') == DELETED
    assert not manager.room_exists('ABC')
    assert notifier.sent == []


def test_disconnect_one_of_two_keeps_room(manager, notifier):
    manager.create_room('ABC', 'Alice', connection_id='sid-a')
    manager.join_room('ABC', 'Bob', connection_id='sid-b')
    notifier.sent.clear()

    assert manager.disconnect('sid-a') == LEFT

    room = manager.get_room('ABC')
    assert room.player_names() == ['Bob']
    assert room.status == 'closing'
    assert notifier.events_for('sid-b') == [('opponent_left', {'roomCode': 'ABC', 'players': ['Bob']})]

    # the room can be filled again
    manager.join_room('ABC', 'Cara', connection_id='sid-c')
    assert manager.get_room('ABC').player_names() == ['Bob', 'Cara']


def test_disconnect_without_binding_is_noop(manager, notifier):
    assert manager.disconnect('stranger') is None
    manager.create_room('ABC', 'Alice', connection_id='sid-a')
    assert manager.disconnect('stranger') is None
    assert manager.room_exists('ABC')


def test_disconnect_after_room_expired_is_noop(manager, clock):
    manager.create_room('ABC', 'Alice', connection_id='sid-a')
    clock.advance(7201)
    assert manager.sweep() == 1
    assert manager.presence.lookup('sid-a') is None
    assert manager.disconnect('sid-a') is None


def test_connection_moves_between_rooms(manager, notifier):
    manager.create_room('ONE', 'Alice', connection_id='sid-a')
    manager.create_room('TWO', 'Alice', connection_id='sid-a')
    assert not manager.room_exists('ONE')
    assert manager.presence.lookup('sid-a') == ('TWO', 0)


def test_same_connection_cannot_take_both_seats(manager):
    manager.create_room('ABC', 'Alice', connection_id='sid-a')
    with pytest.raises(InvalidInput):
        manager.join_room('ABC', 'Alice again', connection_id='sid-a')


def test_leave_by_name(manager):
    manager.create_room('ABC', 'Alice')
    manager.join_room('ABC', 'Bob')
    assert manager.leave_room('ABC', name='Alice') == LEFT
    assert manager.get_room('ABC').player_names() == ['Bob']
    assert manager.leave_room('ABC', name='Nobody') is None
    assert manager.leave_room('ABC', name='Bob') == DELETED
    assert not manager.room_exists('ABC')
    assert manager.leave_room('ABC', name='Bob') is None


def test_leave_requires_name(manager):
    manager.create_room('ABC', 'Alice')
    with pytest.raises(InvalidInput):
        manager.leave_room('ABC')


def test_unexpected_failure_becomes_internal_error(manager, monkeypatch):
    def _boom(code):
        raise KeyError('shard exploded')

    monkeypatch.setattr(manager.store, 'get', _boom)
    with pytest.raises(InternalError) as exc:
        manager.get_room('ABC')
    assert 'shard' not in exc.value.message
    assert exc.value.kind == 'Internal'


def test_concurrent_creates_have_one_winner(manager):
    workers = 16
    barrier = threading.Barrier(workers)
    results = []
    lock = threading.Lock()

    def _create(i):
        barrier.wait()
        try:
            manager.create_room('RACE', f'player-{i}')
            outcome = 'ok'
        except RoomExists:
            outcome = 'exists'
        with lock:
            results.append(outcome)

    threads = [threading.Thread(target=_create, args=(i,)) for i in range(workers)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert results.count('ok') == 1
    assert results.count('exists') == workers - 1


def test_concurrent_joins_fill_one_seat(manager):
    manager.create_room('RACE', 'Host')
    workers = 8
    barrier = threading.Barrier(workers)
    results = []
    lock = threading.Lock()

    def _join(i):
        barrier.wait()
        try:
            manager.join_room('RACE', f'guest-{i}')
            outcome = 'ok'
        except RoomFull:
            outcome = 'full'
        with lock:
            results.append(outcome)

    threads = [threading.Thread(target=_join, args=(i,)) for i in range(workers)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert results.count('ok') == 1
    assert len(manager.get_room('RACE').slots) == 2


def test_store_for_each_visits_copies():
    from baghchal.services.sessions.models import Participant, Room

    store = RoomStore(shards=3)
    for code in ('A', 'B', 'C'):
        store.create(code, Room(code, Participant(f'host-{code}'), now=0))
    seen = []

    def _visit(room):
        seen.append(room.code)
        room.slots.clear()

    store.for_each(_visit)
    assert sorted(seen) == ['A', 'B', 'C']
    assert len(store) == 3
    assert store.get('A').player_names() == ['host-A']
    assert store.delete('A') is True
    assert store.delete('A') is False
