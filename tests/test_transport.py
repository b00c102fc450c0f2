""" Run the real WebSocket transport against a local server, to confirm
    the event plumbing behaves the way the client expects.
"""

import json
import threading

import pytest
from websockets.sync.server import serve

import cexprime
from cexprime import signature


# Legacy use of the websockets client surfaces as a DeprecationWarning.
pytestmark = pytest.mark.filterwarnings('error::DeprecationWarning')


def handler(connection):

    for message in connection:
        frame = json.loads(message)
        event = frame.get('e')

        if event == 'ping':
            connection.send('{"e": "pong"}')
            continue

        if event == 'auth':
            auth = frame['auth']
            expected = signature.websocket(auth['key'], 'S', auth['timestamp'])
            if auth['key'] == 'K' and auth['signature'] == expected:
                data = {'ok': 'ok'}
            else:
                data = {'ok': 'fail', 'error': 'bad sig'}
            connection.send(json.dumps({'e': 'auth', 'oid': 'auth', 'data': data}))
            continue

        if event == 'hang':
            continue

        if event == 'garble':
            connection.send(b'\xff\xfe')

        if event == 'drop':
            connection.close()
            return

        if event == 'notify':
            connection.send(json.dumps({'e': 'account_update', 'data': frame['data']}))

        reply = {'oid': frame['oid'], 'ok': 'ok', 'data': {'echo': frame['data']}}
        connection.send(json.dumps(reply))


@pytest.fixture
def server():
    server = serve(handler, '127.0.0.1', 0)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()

    port = server.socket.getsockname()[1]
    yield 'ws://127.0.0.1:%d' % (port)

    server.shutdown()
    thread.join(timeout=5)


def _client(url, *credentials):
    options = {'ws_url': url, 'ws_url_public': url, 'ws_reply_timeout': 5}
    return cexprime.WebsocketClient(*credentials, options=options)


def test_public_round_trip(server):
    client = _client(server)
    client.connect().result(timeout=5)

    assert client.connected

    futures = [client.call_public('echo', {'n': number}) for number in range(10)]
    for number,future in enumerate(futures):
        assert future.result(timeout=5) == {'echo': {'n': number}}

    client.ping()

    client.disconnect()


def test_undecodable_binary_frame(server):
    client = _client(server)
    client.connect().result(timeout=5)

    hanging = client.call_public('hang')

    # The garbage frame arrives ahead of the reply and is dropped.
    result = client.call_public('garble', {'n': 1}).result(timeout=5)
    assert result == {'echo': {'n': 1}}

    assert client.connected
    assert hanging.done() == False

    client.disconnect()


def test_private_round_trip(server):
    client = _client(server, 'K', 'S')
    client.connect().result(timeout=5)

    assert client.authorized

    received = list()
    event = threading.Event()

    def on_update(frame):
        received.append(frame)
        event.set()

    client.subscribe('account_update', on_update)

    result = client.call_private('notify', {'balance': 100}).result(timeout=5)
    assert result == {'echo': {'balance': 100}}

    assert event.wait(5)
    assert received[0]['data'] == {'balance': 100}

    client.disconnect()


def test_private_bad_secret(server):
    client = _client(server, 'K', 'wrong')

    with pytest.raises(cexprime.AuthFailure, match='bad sig'):
        client.connect().result(timeout=5)


def test_server_drop(server):
    closed = threading.Event()

    client = _client(server)
    client.connect(on_close=lambda reason: closed.set()).result(timeout=5)

    hanging = client.call_public('hang')
    client.call_public('drop')

    with pytest.raises(cexprime.Disconnected):
        hanging.result(timeout=5)

    assert closed.wait(5)
    assert client.connected == False
    assert len(client.pending) == 0


def test_client_disconnect(server):
    closed = threading.Event()

    client = _client(server)
    client.connect(on_close=lambda reason: closed.set()).result(timeout=5)

    hanging = client.call_public('hang')
    client.disconnect()

    with pytest.raises(cexprime.Disconnected):
        hanging.result(timeout=5)

    assert closed.wait(5)


def test_connection_refused():
    errors = list()

    client = _client('ws://127.0.0.1:1')
    ready = client.connect(on_error=errors.append)

    with pytest.raises(cexprime.Disconnected):
        ready.result(timeout=15)

    assert len(errors) == 1
    assert client.transport is None


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
