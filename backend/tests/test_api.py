import pytest
from fastapi.testclient import TestClient

from wordbomb.application import create_app
from wordbomb.dictionary import WordDictionary
from wordbomb.runtime import GameRuntime
from wordbomb.store_memory import MemoryRoomStore

from conftest import TEST_WORDS


@pytest.fixture()
def client():
    runtime = GameRuntime(store=MemoryRoomStore(), dictionary=WordDictionary(words=TEST_WORDS))
    with TestClient(create_app(runtime)) as test_client:
        yield test_client


def create_room(client, **extra):
    response = client.post('/api/rooms/create', json={'hostName': 'Host', **extra})
    assert response.status_code == 200
    body = response.json()
    return body['roomCode'], body['playerId']


def join(client, code, name):
    response = client.post(f'/api/rooms/{code}/join', json={'name': name})
    assert response.status_code == 200
    return response.json()['playerId']


def test_health_reports_memory_store(client):
    body = client.get('/api/health').json()
    assert body['ok'] is True
    assert body['store'] == 'MemoryRoomStore'
    assert body['database'] == 'disabled'
    assert body['dictionary']['loaded'] is True


def test_validate_word_endpoint(client):
    ok = client.post('/api/words/validate', json={'word': 'Water', 'combo': 'er'}).json()
    assert ok['ok'] is True
    assert ok['result']['points'] == 25

    used = client.post(
        '/api/words/validate',
        json={'word': 'water', 'combo': 'ER', 'usedWords': ['WATER'], 'multiplayer': True},
    ).json()
    assert used['ok'] is False
    assert used['result']['reason'] == 'already_used'
    assert used['result']['message'] == 'Word already used!'

    status = client.get('/api/words/status').json()
    assert status['size'] == len(TEST_WORDS)


def test_join_errors_map_to_status_codes(client):
    code, _ = create_room(client)
    assert client.post('/api/rooms/ZZZZZZ/join', json={'name': 'Alice'}).status_code == 404
    assert client.post(f'/api/rooms/{code}/join', json={'name': 'Host'}).status_code == 409
    assert client.post('/api/rooms/create', json={'hostName': '   '}).status_code == 422
    assert client.get('/api/rooms/ZZZZZZ').status_code == 404


def test_only_host_can_start(client):
    code, host_id = create_room(client)
    guest_id = join(client, code, 'Alice')

    denied = client.post(f'/api/rooms/{code}/start', json={'hostId': guest_id})
    assert denied.status_code == 403

    started = client.post(f'/api/rooms/{code}/start', json={'hostId': host_id})
    assert started.status_code == 200
    assert started.json()['round']['roundNumber'] == 1

    again = client.post(f'/api/rooms/{code}/start', json={'hostId': host_id})
    assert again.status_code == 409


def test_game_flow_over_http(client):
    code, host_id = create_room(client, maxRounds=5)
    guest_id = join(client, code, 'Alice')
    assert client.post(f'/api/rooms/{code}/start', json={'hostId': host_id}).status_code == 200

    published = client.post(
        f'/api/rooms/{code}/round',
        json={'hostId': host_id, 'combo': 'er', 'roundNumber': 2},
    )
    assert published.status_code == 200
    assert published.json()['round']['currentCombo'] == 'ER'

    stale = client.post(
        f'/api/rooms/{code}/round',
        json={'hostId': host_id, 'combo': 'TH', 'roundNumber': 1},
    )
    assert stale.status_code == 409

    answer = client.post(
        f'/api/rooms/{code}/answers',
        json={'playerId': guest_id, 'word': 'Water', 'roundNumber': 2},
    ).json()
    assert answer['ok'] is True
    assert answer['result']['points'] == 55

    taken = client.post(
        f'/api/rooms/{code}/answers',
        json={'playerId': host_id, 'word': 'water', 'roundNumber': 2},
    ).json()
    assert taken['ok'] is False
    assert taken['result']['message'] == 'Word already used!'

    answers = client.get(f'/api/rooms/{code}/answers', params={'round': 2}).json()
    assert [item['word'] for item in answers['answers']] == ['water']

    leaderboard = client.get(f'/api/rooms/{code}/leaderboard').json()
    assert leaderboard['players'][0]['name'] == 'Alice'
    assert leaderboard['players'][0]['score'] == 55
    assert leaderboard['teams'] == []

    paused = client.post(f'/api/rooms/{code}/status', json={'hostId': host_id, 'action': 'pause'}).json()
    assert paused['room']['status'] == 'paused'
    assert paused['room']['pausedTimeRemaining'] is not None
    resumed = client.post(f'/api/rooms/{code}/status', json={'hostId': host_id, 'action': 'resume'}).json()
    assert resumed['room']['status'] == 'playing'
    skipped = client.post(f'/api/rooms/{code}/status', json={'hostId': host_id, 'action': 'skip'}).json()
    assert skipped['room']['currentRound'] == 3
    ended = client.post(f'/api/rooms/{code}/status', json={'hostId': host_id, 'action': 'end'}).json()
    assert ended['room']['status'] == 'finished'

    chat = client.get(f'/api/rooms/{code}/chat').json()
    assert [item['message'] for item in chat['messages']] == [
        'Game paused by host',
        'Game resumed by host',
        'Round 2 skipped by host',
        'Game ended by host',
    ]


def test_team_lobby_over_http(client):
    code, host_id = create_room(client, gameMode='team_2')
    alice_id = join(client, code, 'Alice')
    bot = client.post(f'/api/rooms/{code}/bots', json={'hostId': host_id, 'difficulty': 'easy'}).json()
    assert bot['player']['isBot'] is True

    selected = client.post(f'/api/rooms/{code}/teams/select', json={'playerId': alice_id, 'teamNumber': 2}).json()
    assert selected['player']['teamNumber'] == 2

    teams = client.get(f'/api/rooms/{code}/teams').json()
    assert [team['name'] for team in teams['teams']] == ['Blue', 'Red']
    assert [player['name'] for player in teams['teams'][1]['players']] == ['Alice']
    assert len(teams['waiting']) == 2

    blocked = client.post(f'/api/rooms/{code}/start', json={'hostId': host_id})
    assert blocked.status_code == 400

    assigned = client.post(f'/api/rooms/{code}/teams/assign', json={'hostId': host_id, 'shuffle': False}).json()
    assert sorted(player['teamNumber'] for player in assigned['players']) == [1, 1, 2]
    assert client.post(f'/api/rooms/{code}/start', json={'hostId': host_id}).status_code == 200

    removed = client.delete(f'/api/rooms/{code}/bots', params={'hostId': host_id}).json()
    assert removed['removed'] == 1


def test_chat_and_kick_over_http(client):
    code, host_id = create_room(client)
    alice_id = join(client, code, 'Alice')

    sent = client.post(f'/api/rooms/{code}/chat', json={'playerId': alice_id, 'message': '  hi all  '}).json()
    assert sent['message']['message'] == 'hi all'
    assert client.post(f'/api/rooms/{code}/chat', json={'playerId': alice_id, 'message': ' '}).status_code == 400

    kicked = client.post(f'/api/rooms/{code}/kick', json={'hostId': host_id, 'playerId': alice_id}).json()
    assert kicked['player']['isActive'] is False
    players = client.get(f'/api/rooms/{code}/players').json()['players']
    assert [player['name'] for player in players] == ['Host']


def test_websocket_snapshot_and_push(client):
    code, host_id = create_room(client)
    with client.websocket_connect(f'/api/rooms/{code}/ws') as websocket:
        snapshot = websocket.receive_json()
        assert snapshot['type'] == 'snapshot'
        assert snapshot['data']['code'] == code

        websocket.send_json({'type': 'ping'})
        assert websocket.receive_json()['type'] == 'pong'

        client.post(f'/api/rooms/{code}/chat', json={'playerId': host_id, 'message': 'hello'})
        pushed = websocket.receive_json()
        assert pushed['type'] == 'chat'
        assert pushed['data']['message'] == 'hello'


def test_websocket_rejects_unknown_room(client):
    with client.websocket_connect('/api/rooms/NOROOM/ws') as websocket:
        message = websocket.receive_json()
    assert message['code'] == 'ROOM_NOT_FOUND'
    assert client.get('/api/ws-stats').json()['stats']['connectRejected'] == 1


def test_live_round_combo_cannot_be_swapped(client):
    code, host_id = create_room(client)
    join(client, code, 'Alice')
    started = client.post(f'/api/rooms/{code}/start', json={'hostId': host_id}).json()
    combo = started['round']['currentCombo']

    swapped = client.post(
        f'/api/rooms/{code}/round',
        json={'hostId': host_id, 'combo': 'ZZ', 'roundNumber': 1},
    )
    assert swapped.status_code == 409
    assert client.get(f'/api/rooms/{code}/round').json()['round']['currentCombo'] == combo
