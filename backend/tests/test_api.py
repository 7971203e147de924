from quizarena import db
from quizarena.models import Problem, Submission, Team
from quizarena.services import teams as team_service


def _enroll(client, name, email=None):
    return client.post('/api/enroll', json={'teamName': name, 'email': email or f'{name.lower()}@example.com'})


def _add_problem(answer='Garbage Collector', active=True):
    problem = Problem(title='Memory Manager', description='Who cleans up?', expected_answer=answer, active=active)
    db.session.add(problem)
    db.session.commit()
    return problem


def test_index(client):
    res = client.get('/')
    assert res.status_code == 200


def test_login_rejects_bad_password(client):
    res = client.post('/login', json={'username': 'admin', 'password': 'nope'})
    assert res.status_code == 401
    assert res.get_json()['success'] is False


def test_admin_routes_require_login(client):
    assert client.post('/api/game-state/toggle').status_code == 401
    assert client.put('/api/game-state', json={'active': True}).status_code == 401
    assert client.post('/api/admin/teams/1/block').status_code == 401


def test_get_game_state_is_public(client):
    res = client.get('/api/game-state')
    assert res.status_code == 200
    body = res.get_json()
    assert set(body) == {'active', 'startTime', 'endTime', 'duration', 'isPaused', 'pausedTimeRemaining'}


def test_put_game_state_merges(admin_client):
    res = admin_client.put('/api/game-state', json={'active': True})
    assert res.status_code == 200
    body = res.get_json()
    assert body['active'] is True
    assert body['startTime'] is not None
    assert body['endTime'] is None

    res = admin_client.put('/api/game-state', json={'endTime': 'garbage'})
    assert res.status_code == 400
    assert res.get_json()['error'] == 'Invalid time value'


def test_timer_endpoints_flow(admin_client):
    assert admin_client.post('/api/game-state/timer/pause').status_code == 409

    started = admin_client.post('/api/game-state/timer/force-start').get_json()
    assert started['active'] is True
    assert started['endTime'] is not None

    paused = admin_client.post('/api/game-state/timer/pause').get_json()
    assert paused['isPaused'] is True
    assert 0 < paused['pausedTimeRemaining'] <= 600000

    resumed = admin_client.post('/api/game-state/timer/resume').get_json()
    assert resumed['isPaused'] is False
    assert resumed['pausedTimeRemaining'] == 0

    stopped = admin_client.post('/api/game-state/toggle').get_json()
    assert stopped['active'] is False
    assert stopped['endTime'] is None


def test_enroll_and_status(client):
    problem = _add_problem()
    res = _enroll(client, 'Alpha')
    assert res.status_code == 201
    assert res.get_json()['assignedProblem'] is True

    status = client.get('/api/enroll?teamName=Alpha').get_json()
    assert status['enrolled'] is True
    assert status['isBlocked'] is False
    assert Team.query.filter_by(team_name='Alpha').one().assigned_problem_id == problem.id

    assert client.get('/api/enroll?teamName=Nobody').get_json() == {'enrolled': False}
    listing = client.get('/api/enroll').get_json()
    assert [t['teamName'] for t in listing] == ['Alpha']


def test_enroll_duplicate_team_name_fails(client):
    assert _enroll(client, 'Alpha').status_code == 201
    res = _enroll(client, 'Alpha', 'other@example.com')
    assert res.status_code == 400
    assert res.get_json()['error'] == 'Team name already taken'
    assert Team.query.filter_by(team_name='Alpha').count() == 1


def test_enroll_race_on_unique_name_is_a_400(client, monkeypatch):
    # Both requests pass the lookup; the unique index rejects the second insert
    assert _enroll(client, 'Alpha').status_code == 201
    monkeypatch.setattr(team_service, '_name_taken', lambda name: False)
    res = _enroll(client, 'Alpha', 'other@example.com')
    assert res.status_code == 400
    assert res.get_json()['error'] == 'Team name already taken'
    assert Team.query.filter_by(team_name='Alpha').count() == 1
    assert _enroll(client, 'Beta').status_code == 201


def test_enroll_requires_fields(client):
    assert client.post('/api/enroll', json={'teamName': 'Alpha'}).status_code == 400


def test_enroll_without_problems_assigns_none(client):
    res = _enroll(client, 'Alpha')
    assert res.get_json()['assignedProblem'] is False


def test_block_by_name_is_idempotent(client):
    _enroll(client, 'Alpha')
    for _ in range(2):
        res = client.post('/api/admin/teams/block-by-name', json={'teamName': 'Alpha', 'reason': 'tab hidden'})
        assert res.status_code == 200
        body = res.get_json()
        assert body['success'] is True
        assert body['team']['isBlocked'] is True
    assert Team.query.filter_by(team_name='Alpha').one().is_blocked is True


def test_block_by_name_unknown_team(client):
    res = client.post('/api/admin/teams/block-by-name', json={'teamName': 'Ghost'})
    assert res.status_code == 404
    assert client.post('/api/admin/teams/block-by-name', json={}).status_code == 400


def test_admin_block_unblock_by_id(admin_client):
    _enroll(admin_client, 'Alpha')
    team_id = Team.query.filter_by(team_name='Alpha').one().id
    assert admin_client.post(f'/api/admin/teams/{team_id}/block').get_json()['team']['isBlocked'] is True
    assert admin_client.post(f'/api/admin/teams/{team_id}/unblock').get_json()['team']['isBlocked'] is False
    assert admin_client.post('/api/admin/teams/999/block').status_code == 404


def test_win_and_lose_are_exclusive(admin_client):
    _enroll(admin_client, 'Alpha')
    team_id = Team.query.filter_by(team_name='Alpha').one().id
    won = admin_client.post(f'/api/admin/teams/{team_id}/win').get_json()['team']
    assert (won['win'], won['lose']) == (True, False)
    lost = admin_client.post(f'/api/admin/teams/{team_id}/lose').get_json()['team']
    assert (lost['win'], lost['lose']) == (False, True)


def test_delete_team_cascades_submissions(admin_client):
    _add_problem()
    _enroll(admin_client, 'Alpha')
    admin_client.post('/api/game-state/timer/force-start')
    assert admin_client.post('/api/submissions', json={'teamName': 'Alpha', 'answer': 'wrong'}).status_code == 201
    team_id = Team.query.filter_by(team_name='Alpha').one().id

    res = admin_client.delete(f'/api/admin/teams/{team_id}')
    assert res.status_code == 200
    assert res.get_json()['deletedTeam']['teamName'] == 'Alpha'
    assert Team.query.count() == 0
    assert Submission.query.count() == 0


def test_submission_requires_active_round(client):
    _add_problem()
    _enroll(client, 'Alpha')
    res = client.post('/api/submissions', json={'teamName': 'Alpha', 'answer': 'Garbage Collector'})
    assert res.status_code == 409


def test_correct_submission_qualifies_team(admin_client):
    _add_problem()
    _enroll(admin_client, 'Alpha')
    admin_client.post('/api/game-state/timer/force-start')

    wrong = admin_client.post('/api/submissions', json={'teamName': 'Alpha', 'answer': 'Stack'}).get_json()
    assert wrong['correct'] is False
    assert wrong['qualified'] is False

    right = admin_client.post('/api/submissions', json={'teamName': 'Alpha', 'answer': '  garbage   collector '}).get_json()
    assert right['correct'] is True
    assert right['qualified'] is True
    assert right['remainingSlots'] == 1

    board = admin_client.get('/api/leaderboard').get_json()
    assert [row['teamName'] for row in board['leaderboard']] == ['Alpha']


def test_blocked_team_cannot_submit(admin_client):
    _add_problem()
    _enroll(admin_client, 'Alpha')
    admin_client.post('/api/game-state/timer/force-start')
    admin_client.post('/api/admin/teams/block-by-name', json={'teamName': 'Alpha'})
    res = admin_client.post('/api/submissions', json={'teamName': 'Alpha', 'answer': 'Garbage Collector'})
    assert res.status_code == 409
    assert res.get_json()['error'] == 'Team is blocked'


def test_paused_round_rejects_submissions(admin_client):
    _add_problem()
    _enroll(admin_client, 'Alpha')
    admin_client.post('/api/game-state/timer/force-start')
    admin_client.post('/api/game-state/timer/pause')
    res = admin_client.post('/api/submissions', json={'teamName': 'Alpha', 'answer': 'Garbage Collector'})
    assert res.get_json()['error'] == 'Game is paused'


def test_assigned_problem_hides_answer(admin_client):
    _add_problem()
    _enroll(admin_client, 'Alpha')
    assert admin_client.get('/api/teams/Alpha/problem').status_code == 409
    admin_client.post('/api/game-state/toggle')
    body = admin_client.get('/api/teams/Alpha/problem').get_json()
    assert body['problem']['title'] == 'Memory Manager'
    assert 'expectedAnswer' not in body['problem']


def test_problem_admin_crud(admin_client):
    res = admin_client.post('/api/problems', json={
        'title': 'Key Keeper', 'description': 'Pairs', 'expectedAnswer': 'HashMap', 'difficulty': 'medium',
    })
    assert res.status_code == 201
    pid = res.get_json()['id']
    assert admin_client.put(f'/api/problems/{pid}/activate').get_json()['problem']['active'] is True
    assert admin_client.put(f'/api/problems/{pid}/deactivate').get_json()['problem']['active'] is False
    assert admin_client.post('/api/problems', json={'title': 'x'}).status_code == 400
    assert admin_client.delete(f'/api/problems/{pid}').status_code == 200
    assert admin_client.delete(f'/api/problems/{pid}').status_code == 404


def test_deleting_last_active_problem_activates_another(admin_client):
    first = _add_problem(active=True)
    second = _add_problem(answer='Compiler', active=False)
    admin_client.delete(f'/api/problems/{first.id}')
    assert db.session.get(Problem, second.id).active is True


def test_seed_riddles_replaces_problems(admin_client):
    _add_problem()
    res = admin_client.post('/api/admin/seed-riddles')
    assert res.status_code == 200
    assert Problem.query.count() > 1
    assert Problem.query.filter_by(expected_answer='Garbage Collector').count() == 1
