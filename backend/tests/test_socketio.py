from mazechat import socketio


def lines(sio):
    # Plain `message` events carry the bare string in 'args'
    return [pkt['args'] for pkt in sio.get_received('/ws') if pkt['name'] == 'message']


def test_index_and_session_identity(client):
    res = client.get('/')
    assert res.status_code == 200
    assert res.get_json()['socket_namespace'] == '/ws'
    first = client.get('/session').get_json()
    second = client.get('/session').get_json()
    assert first['identity']
    # Identity is stable for the same browser session
    assert first['identity'] == second['identity']
    assert first['member'] is None


def test_connect_refused_without_session(flask_app, game_server):
    sio = socketio.test_client(flask_app, namespace='/ws')
    assert not sio.is_connected('/ws')
    assert game_server.registry.all_members() == []


def test_socket_connect_joins_member(connect, game_server, client):
    sio, identity = connect(client)
    assert sio.is_connected('/ws')
    assert lines(sio) == [f'[server] Member joined: {identity}.']
    member = client.get('/session').get_json()['member']
    assert member['identity'] == identity
    assert member['connections'] == 1


def test_broadcast_reaches_all(connect):
    alice, alice_id = connect()
    bob, _ = connect()
    lines(alice)
    lines(bob)
    alice.send('/user Alice', namespace='/ws')
    alice.send('hello', namespace='/ws')
    expected = ['[server] Member renamed from %s to Alice' % alice_id, '[Alice] hello']
    assert lines(alice) == expected
    assert lines(bob) == expected


def test_rename_error_goes_to_sender(connect):
    alice, _ = connect()
    bob, _ = connect()
    lines(alice)
    lines(bob)
    alice.send('/user ' + 'x' * 51, namespace='/ws')
    assert lines(alice) == ['[server::help] new name is too long: 50 characters limit']
    assert lines(bob) == []


def test_game_action_room_isolation(connect):
    a, _ = connect()
    b, _ = connect()
    c, _ = connect()
    a.send('/join hall', namespace='/ws')
    b.send('/join hall', namespace='/ws')
    c.send('/join cellar', namespace='/ws')
    for sio in (a, b, c):
        lines(sio)
    c.send('@hall#p1->/move:north', namespace='/ws')
    assert lines(a) == ['@hall#p1->/move:north']
    assert lines(b) == ['@hall#p1->/move:north']
    assert lines(c) == []


def test_non_text_payloads_are_ignored(connect):
    a, _ = connect()
    lines(a)
    a.emit('message', {'text': 'hello'}, namespace='/ws')
    assert lines(a) == []


def test_tabs_share_identity_until_last_disconnect(connect, game_server, client):
    tab1, identity = connect(client)
    tab2, same_identity = connect(client)
    observer, _ = connect()
    assert identity == same_identity
    assert len(game_server.registry.lookup(identity).transports) == 2
    lines(observer)

    tab1.disconnect(namespace='/ws')
    assert game_server.registry.lookup(identity) is not None
    assert lines(observer) == []

    tab2.disconnect(namespace='/ws')
    assert game_server.registry.lookup(identity) is None
    assert lines(observer) == [f'[server] Member left: {identity}.']


def test_history_replayed_on_connect(connect):
    a, a_id = connect()
    a.send('first', namespace='/ws')
    late, late_id = connect()
    assert lines(late) == [f'[{a_id}] first', f'[server] Member joined: {late_id}.']


def test_parse_line_cli(flask_app):
    runner = flask_app.test_cli_runner()
    result = runner.invoke(args=['parse-line', '@hall#p1->/move:north'])
    assert result.exit_code == 0
    assert "GameAction(room='hall', sender='p1', action='move', payload='north')" in result.output
