"""WebSocket transport built on the ``websockets`` threading client."""

from __future__ import annotations

import logging
import ssl
import threading
from typing import Optional

from websockets.exceptions import ConnectionClosed, ConnectionClosedOK
from websockets.sync.client import ClientConnection, connect

from .base import Transport


logger = logging.getLogger(__name__)


def _ssl_context(url: str, verify: bool) -> Optional[ssl.SSLContext]:
    if not url.startswith("wss://"):
        return None

    context = ssl.create_default_context()
    if not verify:
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE
    return context


def _close_reason(exc: ConnectionClosed) -> str:
    frame = exc.rcvd or exc.sent
    if frame is not None and frame.reason:
        return frame.reason
    return str(exc)


class WebsocketTransport(Transport):
    """Own one WebSocket connection and a dedicated I/O thread.

    The I/O thread establishes the connection, then loops on ``recv()``;
    open, message, close and error events are all fired from that thread,
    so they are naturally serialized. :meth:`send` may be called from any
    thread.
    """

    open_timeout = 10

    def __init__(self, url: str, verify: bool = True):
        super().__init__(url)
        self.verify = verify

        self._connection: Optional[ClientConnection] = None
        self._open = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def is_open(self) -> bool:
        return self._open.is_set()

    def open(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            raise RuntimeError("transport is already running")

        self._thread = threading.Thread(target=self.run, daemon=True)
        self._thread.start()

    def close(self) -> None:
        connection = self._connection
        if connection is not None and self.is_open:
            connection.close()

    def send(self, text: str) -> None:
        connection = self._connection
        if connection is None or not self.is_open:
            raise ConnectionError("socket is not open")
        connection.send(text)

    def run(self) -> None:
        logger.info("connecting to: %s", self.url)

        established = False

        try:
            with connect(
                self.url,
                ssl=_ssl_context(self.url, self.verify),
                open_timeout=self.open_timeout,
            ) as connection:
                established = True
                self._connection = connection
                self._open.set()
                self._serve(connection)

        except Exception as exc:
            if established:
                # Events were already fired from _serve().
                logger.info("error closing connection to %s: %s", self.url, exc)
                return

            logger.info("connection to %s failed: %s", self.url, exc)
            self._fire(self.on_error, exc)

    def _serve(self, connection: ClientConnection) -> None:
        try:
            self._fire(self.on_open)

            while True:
                message = connection.recv()
                self._fire(self.on_message, message)

        except ConnectionClosedOK as exc:
            self._finish()
            logger.info("connection to %s closed: %s", self.url, exc)
            self._fire(self.on_close, _close_reason(exc))

        except ConnectionClosed as exc:
            self._finish()
            logger.info("connection to %s lost: %s", self.url, exc)
            self._fire(self.on_close, _close_reason(exc))

        except Exception as exc:
            # Anything escaping an event handler ends the session; the
            # owner hears about it the same way as a socket failure.
            logger.exception("error on connection to %s", self.url)
            self._finish()
            connection.close()
            self._fire(self.on_error, exc)

    def _finish(self) -> None:
        self._open.clear()
        self._connection = None
