""" Persistent WebSocket client for the private and public venue APIs.

    A single socket carries everything: correlated request/reply traffic,
    unsolicited account and order events, and the keepalive exchange.
    Requests are fire-and-forget on the wire; each one carries a
    client-generated correlation id (``oid``) that the server echoes in its
    reply, and the reply settles the :class:`concurrent.futures.Future`
    handed back to the caller.
"""

from __future__ import annotations

import concurrent.futures
import functools
import logging
import threading
import time
from typing import Any, Callable, Dict, Optional

from . import config
from . import signature
from .errors import (
    ApplicationError,
    AuthFailure,
    ClientError,
    Disconnected,
    NotAuthorized,
    NotConnected,
    RequestTimeout,
    TransportError,
    WrongClientMode,
)
from .keepalive import Heartbeat
from .protocol import fields, wire
from .session import CorrelationTable, PendingRequest, cancel, correlation_id, rejected, settle
from .transport import Transport, WebsocketTransport


logger = logging.getLogger(__name__)


def _default_transport(url: str, verify: bool) -> Transport:
    return WebsocketTransport(url, verify=verify)


class WebsocketClient:
    """ A client built with an *api_key* and *api_secret* is a private
        client: it connects to the private endpoint and authenticates as
        soon as the socket opens. A client built without credentials is a
        public client and may only issue public calls.

        *options* overrides the values from :func:`cexprime.config.options`.
        *transport_factory*, if given, is called as ``factory(url, verify)``
        and must return a :class:`cexprime.transport.Transport`.

        :ivar connected: True while the socket is open.
        :ivar authorized: True once the auth handshake succeeded on the
            current connection; always False for a public client.
        :ivar pending: the :class:`cexprime.session.CorrelationTable` of
            requests awaiting a reply.
    """

    def __init__(self, api_key=None, api_secret=None, options=None, transport_factory=None):

        self.is_public_client = api_key is None and api_secret is None

        if self.is_public_client == False and (not api_key or not api_secret):
            raise ValueError('a private client requires both api_key and api_secret')

        self.api_key = api_key
        self.api_secret = api_secret
        self.options = config.options(options)

        if transport_factory is None:
            transport_factory = _default_transport
        self.transport_factory = transport_factory

        self.transport: Optional[Transport] = None
        self.connected = False
        self.authorized = False

        self.pending = CorrelationTable(self.options['ws_reply_timeout'])

        # User subscriptions and internal one-shot handlers live in separate
        # tables; the internal table is consulted first and its entries are
        # consumed on dispatch.

        self.handlers: Dict[str, Callable[[dict], Any]] = dict()
        self._internal: Dict[str, Callable[[dict], Any]] = dict()

        self._lock = threading.Lock()
        self._ready: Optional[concurrent.futures.Future] = None
        self._auth: Optional[PendingRequest] = None
        self._heartbeat: Optional[Heartbeat] = None
        self._on_close_callback = None
        self._on_error_callback = None


    @property
    def url(self) -> str:
        if self.is_public_client:
            return self.options['ws_url_public']
        return self.options['ws_url']


    # --- connection lifecycle ---

    def connect(self, on_close=None, on_error=None) -> concurrent.futures.Future:
        """ Open the socket and return a future that resolves (with None)
            once the session is usable: immediately after the socket opens
            for a public client, after a successful auth handshake for a
            private client. The future is rejected if the socket fails or
            closes first, or if the handshake fails.

            *on_close* is called with the close reason whenever this
            connection closes; *on_error* is called with the exception if
            the connection fails. Neither triggers a reconnect.
        """

        with self._lock:
            if self.transport is not None:
                return rejected(ClientError('client is already connected'))

            transport = self.transport_factory(self.url, self.options['reject_unauthorized'])
            transport.on_open = functools.partial(self._on_open, transport)
            transport.on_message = functools.partial(self._on_message, transport)
            transport.on_close = functools.partial(self._on_close, transport)
            transport.on_error = functools.partial(self._on_error, transport)

            ready = concurrent.futures.Future()

            self.transport = transport
            self._ready = ready
            self._on_close_callback = on_close
            self._on_error_callback = on_error

        transport.open()
        return ready


    def disconnect(self) -> None:
        """ Close the connection to the server, if there is one open.
            In-flight requests are rejected when the close completes.
        """

        transport = self.transport
        if transport is not None and transport.is_open:
            transport.close()


    def _on_open(self, transport: Transport) -> None:

        if transport is not self.transport:
            return

        self.connected = True

        if self.is_public_client:
            self._session_ready()
        else:
            self._authenticate(transport)


    def _on_message(self, transport: Transport, raw) -> None:

        if transport is not self.transport:
            return

        logger.debug('incoming message: %s', raw)

        frame = wire.parse_frame(raw)
        if frame is None:
            logger.warning('Ignoring ws message that is not a JSON object: %r', raw)
            return

        self._route(frame)


    def _on_close(self, transport: Transport, reason) -> None:

        callbacks = self._teardown(transport, reason)
        if callbacks is None:
            return

        callback = callbacks[0]
        if callback is not None:
            callback(reason)


    def _on_error(self, transport: Transport, error: BaseException) -> None:

        callbacks = self._teardown(transport, error)
        if callbacks is None:
            return

        callback = callbacks[1]
        if callback is not None:
            callback(error)


    def _teardown(self, transport: Transport, reason) -> Optional[tuple]:
        """ Drop all session state for *transport*. Returns the (on_close,
            on_error) callbacks bound by :func:`connect` for this connection,
            or None if the event belongs to a transport that is no longer
            current.
        """

        with self._lock:
            if transport is not self.transport:
                return None

            self.transport = None
            self.connected = False
            self.authorized = False

            ready = self._ready
            auth = self._auth
            heartbeat = self._heartbeat
            self._ready = None
            self._auth = None
            self._heartbeat = None

            self._internal.clear()
            drained = self.pending.drain()

            callbacks = (self._on_close_callback, self._on_error_callback)
            self._on_close_callback = None
            self._on_error_callback = None

        if heartbeat is not None:
            heartbeat.stop()

        if auth is not None:
            auth.reject(Disconnected(reason, oid=fields.AUTH))

        cancel(drained, reason)

        if ready is not None:
            error = Disconnected(reason)
            if isinstance(reason, BaseException):
                error.__cause__ = reason
            settle(ready, error=error)

        return callbacks


    def _session_ready(self) -> None:

        with self._lock:
            ready = self._ready
            period = self.options['keepalive']
            if period and self._heartbeat is None:
                self._heartbeat = Heartbeat(self.ping, period)

        if ready is not None:
            settle(ready)


    def _fail_session(self, error: BaseException) -> None:
        """ The session can never become usable: reject :func:`connect` and
            close the socket.
        """

        ready = self._ready
        if ready is not None:
            settle(ready, error=error)

        self.disconnect()


    # --- auth gate ---

    def _authenticate(self, transport: Transport) -> None:

        pending = PendingRequest(fields.AUTH)

        with self._lock:
            if transport is not self.transport:
                return
            self._auth = pending
            self._internal[fields.AUTH] = self._on_auth_reply

        pending.arm(self.options['ws_reply_timeout'], self._auth_expired, pending)

        timestamp = time.time()
        frame = wire.auth_frame(
            self.api_key,
            signature.websocket(self.api_key, self.api_secret, timestamp),
            timestamp,
        )

        logger.debug('sending auth request for key %s', self.api_key)

        try:
            transport.send(frame)
        except Exception as e:
            self._internal.pop(fields.AUTH, None)
            error = TransportError('auth request failed: %s' % (e))
            error.__cause__ = e
            if pending.reject(error):
                self._fail_session(error)


    def _on_auth_reply(self, frame: dict) -> None:

        pending = self._auth
        if pending is None:
            return

        data = frame.get(fields.DATA)

        if isinstance(data, dict) and data.get(fields.STATUS) == fields.OK:
            if pending.resolve(data):
                self.authorized = True
                logger.info('authorized on %s', self.url)
                self._session_ready()
        else:
            error = AuthFailure(wire.error_of(data))
            if pending.reject(error):
                logger.warning('%s', error)
                self._fail_session(error)


    def _auth_expired(self, pending: PendingRequest) -> None:

        error = RequestTimeout('auth reply timeout', oid=fields.AUTH)

        if pending.reject(error):
            self._internal.pop(fields.AUTH, None)
            logger.warning('no auth reply within %.1f sec', self.options['ws_reply_timeout'])
            self._fail_session(error)


    # --- message router ---

    def _route(self, frame: dict) -> None:
        """ Dispatch one inbound frame. This is only ever invoked from the
            transport's I/O thread, one frame at a time, in arrival order.
            Nothing raised in here escapes to the transport.
        """

        event = frame.get(fields.EVENT)

        if event is not None:
            handler = self._internal.pop(event, None)
            if handler is not None:
                handler(frame)
                return

            handler = self.handlers.get(event)
            if handler is not None:
                try:
                    handler(frame)
                except Exception:
                    logger.exception('subscriber for %r raised', event)
                return

        if frame.get(fields.OID):
            self._handle_reply(frame)
            return

        if event == fields.PONG:
            return

        logger.warning('Ignoring ws message because of unknown message format: %s', frame)


    def _handle_reply(self, frame: dict) -> None:

        oid = frame[fields.OID]
        pending = self.pending.pop(oid)

        if pending is None:
            # Most likely the request already timed out.
            logger.warning('Got message from server with oid but without handler on client side: %s (pending: %s)', oid, self.pending.ids())
            return

        data = frame.get(fields.DATA)

        if wire.is_success(frame):
            pending.resolve(data)
        else:
            pending.reject(ApplicationError(wire.error_of(data), data, oid))


    # --- subscriptions ---

    def subscribe(self, event: str, callback: Callable[[dict], Any]) -> None:
        """ Invoke *callback* with every frame whose event name is *event*,
            for example ``account_update`` or ``executionReport``. Only one
            callback is kept per event name; the latest registration wins.
            The callback runs on the I/O thread and should not block.
        """

        self.handlers[event] = callback


    def unsubscribe(self, event: str) -> None:
        self.handlers.pop(event, None)


    # --- request engine ---

    def ping(self) -> None:
        transport = self.transport
        if transport is None or not transport.is_open:
            raise NotConnected()

        transport.send(wire.ping_frame())


    def call_public(self, action: str, params=None) -> concurrent.futures.Future:

        if self.is_public_client == False:
            return rejected(WrongClientMode('Attempt to call public method on private client'))

        return self._call_request(action, params)


    def call_private(self, action: str, params=None) -> concurrent.futures.Future:

        if self.is_public_client:
            return rejected(WrongClientMode('Attempt to call private method on public client'))

        if self.authorized == False:
            return rejected(NotAuthorized('Not authorized'))

        return self._call_request(action, params)


    def _call_request(self, action: str, params) -> concurrent.futures.Future:

        transport = self.transport
        if transport is None or not transport.is_open:
            return rejected(NotConnected())

        if params is None:
            params = dict()

        oid = correlation_id(action)
        pending = self.pending.register(oid)

        frame = wire.request_frame(action, params, oid)
        logger.debug('sending message: %s', frame)

        try:
            transport.send(frame)
        except Exception as e:
            # Only the path that removes the entry settles it; a close
            # event racing with this send may already have done so.
            if self.pending.pop(oid) is not None:
                error = TransportError('send failed: %s' % (e))
                error.__cause__ = e
                pending.reject(error)

        return pending.future


# end of class WebsocketClient


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
