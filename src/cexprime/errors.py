"""Exceptions raised or delivered (via future rejection) by the clients.

Everything derives from :class:`ClientError`; the socket-level failures
additionally derive from :class:`TransportError`, so a caller can catch
"anything went wrong with the connection" in one place.
"""


class ClientError(Exception):
    """Base class for all cexprime errors."""


class WrongClientMode(ClientError):
    """A private call on a public client, or a public call on a private one."""


class NotAuthorized(ClientError):
    """A private call was issued before the auth handshake succeeded."""


class AuthFailure(ClientError):
    """The server rejected the auth handshake."""

    def __init__(self, error):
        self.error = error
        super().__init__(f"Authorization failure: {error}")


class ApplicationError(ClientError):
    """The server replied to a correlated request with a failure status.

    :ivar error: the ``error`` field of the reply payload.
    :ivar payload: the full ``data`` section of the reply.
    :ivar oid: the correlation id of the failed request.
    """

    def __init__(self, error, payload=None, oid=None):
        self.error = error
        self.payload = payload
        self.oid = oid
        super().__init__(str(error))


class RateLimitReached(ClientError):
    """The local API call rate limit is exhausted."""


class RestError(ClientError):
    """A REST call returned a non-200 status or an application ``error``."""

    def __init__(self, status_code, body):
        self.status_code = status_code
        self.body = body

        error = None
        if isinstance(body, dict):
            error = body.get('error')
        if error is None:
            error = body

        super().__init__(f"HTTP {status_code}: {error}")


# Transport errors

class TransportError(ClientError):
    """Base class for socket-level failures."""


class NotConnected(TransportError):
    """There is no open socket to send on."""

    def __init__(self, message='Not connected'):
        super().__init__(message)


class Disconnected(TransportError):
    """The connection went away while a request was in flight.

    :ivar reason: the close reason or the underlying exception.
    :ivar oid: correlation id of the request being rejected, if any.
    """

    def __init__(self, reason=None, oid=None):
        self.reason = reason
        self.oid = oid
        if reason is None or reason == '':
            reason = 'connection closed'
        super().__init__(str(reason))


class RequestTimeout(TransportError):
    """A correlated request did not receive a reply in time."""

    def __init__(self, message='request timeout', oid=None):
        self.oid = oid
        super().__init__(message)
