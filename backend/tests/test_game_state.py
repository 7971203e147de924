import threading
from datetime import datetime, timedelta, timezone

import pytest

from quizarena import db
from quizarena.errors import ConfigurationError, ValidationError
from quizarena.services.clock import parse_instant, to_iso
from quizarena.services.game_state import MAX_MILLIS, current_store

T0 = datetime(2025, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


def at(ms):
    return T0 + timedelta(milliseconds=ms)


def test_default_state_is_created_on_first_read(flask_app):
    state = current_store().read().to_dict()
    assert state == {
        'active': False,
        'startTime': None,
        'endTime': None,
        'duration': 600000,
        'isPaused': False,
        'pausedTimeRemaining': 0,
    }


def test_partial_update_only_touches_present_fields(flask_app):
    store = current_store()
    store.write({'duration': 300000}, now=T0)
    state = store.write({'endTime': to_iso(at(5000))}, now=T0).to_dict()
    assert state['duration'] == 300000
    assert state['endTime'] == to_iso(at(5000))
    assert state['active'] is False


def test_activation_sets_start_time_and_clears_timer(flask_app):
    store = current_store()
    store.write({'endTime': to_iso(at(1000)), 'isPaused': True, 'pausedTimeRemaining': 42}, now=T0)
    state = store.write({'active': True}, now=at(2000)).to_dict()
    assert state['active'] is True
    assert state['startTime'] == to_iso(at(2000))
    assert state['endTime'] is None
    assert state['isPaused'] is False
    assert state['pausedTimeRemaining'] == 0


def test_activation_keeps_explicit_end_time(flask_app):
    store = current_store()
    state = store.write({'active': True, 'endTime': to_iso(at(60000))}, now=T0).to_dict()
    assert state['startTime'] == to_iso(T0)
    assert state['endTime'] == to_iso(at(60000))


def test_reactivation_refreshes_start_time(flask_app):
    store = current_store()
    store.write({'active': True}, now=T0)
    store.write({'active': False}, now=at(1000))
    state = store.write({'active': True}, now=at(5000)).to_dict()
    assert state['startTime'] == to_iso(at(5000))


def test_already_active_write_does_not_restamp(flask_app):
    store = current_store()
    store.write({'active': True}, now=T0)
    state = store.write({'active': True}, now=at(9000)).to_dict()
    assert state['startTime'] == to_iso(T0)


def test_pause_requires_remaining_time(flask_app):
    with pytest.raises(ValidationError):
        current_store().write({'isPaused': True}, now=T0)


def test_pause_keeps_supplied_remaining_verbatim(flask_app):
    state = current_store().write({'isPaused': True, 'pausedTimeRemaining': 123456}, now=T0).to_dict()
    assert state['isPaused'] is True
    assert state['pausedTimeRemaining'] == 123456


def test_client_computed_resume_clears_remaining(flask_app):
    store = current_store()
    store.write({'isPaused': True, 'pausedTimeRemaining': 5000}, now=T0)
    state = store.write({'isPaused': False, 'endTime': to_iso(at(5000))}, now=T0).to_dict()
    assert state['isPaused'] is False
    assert state['pausedTimeRemaining'] == 0
    assert state['endTime'] == to_iso(at(5000))


def test_duration_edit_recomputes_live_end_time(flask_app):
    store = current_store()
    store.write({'active': True, 'endTime': to_iso(at(600000))}, now=T0)
    state = store.write({'duration': 900000}, now=at(1000)).to_dict()
    assert state['endTime'] == to_iso(at(900000))


def test_duration_edit_while_paused_leaves_remaining(flask_app):
    store = current_store()
    store.write({'active': True, 'endTime': to_iso(at(600000))}, now=T0)
    store.write({'isPaused': True, 'pausedTimeRemaining': 100000}, now=at(500000))
    state = store.write({'duration': 900000}, now=at(510000)).to_dict()
    assert state['pausedTimeRemaining'] == 100000
    assert state['endTime'] == to_iso(at(600000))


def test_duration_edit_without_timer_only_sets_duration(flask_app):
    store = current_store()
    store.write({'active': True}, now=T0)
    state = store.write({'duration': 120000}, now=T0).to_dict()
    assert state['duration'] == 120000
    assert state['endTime'] is None


@pytest.mark.parametrize('bad', ['not-a-date', '2025-13-45T99:00:00Z', True, {'x': 1}])
def test_invalid_end_time_is_rejected_without_writing(flask_app, bad):
    store = current_store()
    with pytest.raises(ValidationError):
        store.write({'active': True, 'endTime': bad}, now=T0)
    assert store.read().to_dict()['active'] is False


def test_end_time_accepts_epoch_millis_and_null(flask_app):
    store = current_store()
    epoch_ms = int(at(1000).timestamp() * 1000)
    assert store.write({'endTime': epoch_ms}, now=T0).to_dict()['endTime'] == to_iso(at(1000))
    assert store.write({'endTime': None}, now=T0).to_dict()['endTime'] is None


def test_non_boolean_flags_are_rejected(flask_app):
    with pytest.raises(ValidationError):
        current_store().write({'active': 'yes'}, now=T0)


@pytest.mark.parametrize('key,bad', [
    ('duration', float('nan')),
    ('duration', float('inf')),
    ('duration', 10 ** 15),
    ('duration', 0),
    ('pausedTimeRemaining', float('nan')),
    ('pausedTimeRemaining', MAX_MILLIS + 1),
    ('pausedTimeRemaining', -1),
])
def test_out_of_range_millis_are_rejected(flask_app, key, bad):
    store = current_store()
    partial = {key: bad}
    if key == 'pausedTimeRemaining':
        partial['isPaused'] = True
    with pytest.raises(ValidationError):
        store.write(partial, now=T0)
    state = store.read().to_dict()
    assert state['duration'] == 600000
    assert state['pausedTimeRemaining'] == 0


def test_largest_duration_still_starts_a_timer(admin_client):
    assert admin_client.put('/api/game-state', json={'duration': MAX_MILLIS}).status_code == 200
    res = admin_client.post('/api/game-state/timer/force-start')
    assert res.status_code == 200
    assert res.get_json()['endTime'] is not None


def test_oversized_duration_over_http_is_a_400(admin_client):
    res = admin_client.put('/api/game-state', json={'duration': 10 ** 15})
    assert res.status_code == 400
    assert admin_client.post('/api/game-state/timer/force-start').status_code == 200


def test_iso_fraction_of_any_width_is_accepted():
    assert parse_instant('2025-03-01T12:00:00.5Z') == at(500)
    assert parse_instant('2025-03-01T12:00:00.25Z') == at(250)
    assert parse_instant('2025-03-01T12:00:00.1234567Z') == T0 + timedelta(microseconds=123456)


def test_current_store_before_init_raises_typed_error(flask_app):
    store = flask_app.extensions.pop('game_state_store')
    try:
        with pytest.raises(ConfigurationError):
            current_store()
    finally:
        flask_app.extensions['game_state_store'] = store


def test_concurrent_read_modify_writes_lose_nothing(flask_app):
    store = current_store()
    store.write({'duration': 1000}, now=T0)
    db.session.remove()

    bumpers, bumps, flips = 4, 25, 10
    start = threading.Barrier(bumpers + 1)
    errors = []

    def bump_duration():
        try:
            with flask_app.app_context():
                start.wait()
                for _ in range(bumps):
                    store.transact(lambda state, now: {'duration': state.duration + 1})
        except Exception as exc:
            errors.append(exc)

    def flip_pause():
        try:
            with flask_app.app_context():
                start.wait()
                for _ in range(flips):
                    store.transact(lambda state, now: (
                        {'isPaused': False} if state.is_paused
                        else {'isPaused': True, 'pausedTimeRemaining': 4242}
                    ))
        except Exception as exc:
            errors.append(exc)

    workers = [threading.Thread(target=bump_duration) for _ in range(bumpers)]
    workers.append(threading.Thread(target=flip_pause))
    for w in workers:
        w.start()
    for w in workers:
        w.join(timeout=30)

    assert errors == []
    db.session.expire_all()
    state = store.read().to_dict()
    assert state['duration'] == 1000 + bumpers * bumps
    assert state['isPaused'] is False
    assert state['pausedTimeRemaining'] == 0
