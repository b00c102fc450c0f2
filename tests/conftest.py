import json
import pytest

import cexprime


class FakeTransport(cexprime.transport.Transport):
    """ In-memory stand-in for the WebSocket transport. Events are fired
        synchronously from whichever thread calls the server_* helpers,
        which keeps the ordering of a test fully deterministic.
    """

    def __init__(self, url, verify=True):
        super().__init__(url)
        self.verify = verify
        self.opened = False
        self.connected = False
        self.sent = list()
        self.fail_send = None

    @property
    def is_open(self):
        return self.connected

    def open(self):
        self.opened = True

    def close(self):
        if self.connected:
            self.server_close('client closed')

    def send(self, text):
        if self.fail_send is not None:
            raise self.fail_send
        self.sent.append(json.loads(text))

    # Server side of the conversation.

    def server_open(self):
        self.connected = True
        self._fire(self.on_open)

    def deliver(self, frame):
        if not isinstance(frame, (str, bytes)):
            frame = json.dumps(frame)
        self._fire(self.on_message, frame)

    def server_close(self, reason='server closed'):
        self.connected = False
        self._fire(self.on_close, reason)

    def fail(self, error):
        self.connected = False
        self._fire(self.on_error, error)

    def requests(self):
        """ Return the sent frames that carry a correlation id, excluding
            the auth handshake.
        """

        return [frame for frame in self.sent if frame.get('oid') not in (None, 'auth')]


@pytest.fixture
def transports():
    return list()


@pytest.fixture
def factory(transports):

    def factory(url, verify):
        transport = FakeTransport(url, verify)
        transports.append(transport)
        return transport

    return factory


@pytest.fixture
def public_client(factory, transports):
    client = cexprime.WebsocketClient(options={'ws_reply_timeout': 5}, transport_factory=factory)
    ready = client.connect()
    transports[-1].server_open()
    ready.result(timeout=1)
    return client


@pytest.fixture
def private_client(factory, transports):
    client = cexprime.WebsocketClient('K', 'S', options={'ws_reply_timeout': 5}, transport_factory=factory)
    ready = client.connect()
    transports[-1].server_open()
    transports[-1].deliver({'e': 'auth', 'oid': 'auth', 'ok': 'ok', 'data': {'ok': 'ok'}})
    ready.result(timeout=1)
    return client


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
