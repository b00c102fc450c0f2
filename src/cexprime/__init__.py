""" Python client for the Prime liquidity API. Two clients are provided:
    :class:`RestClient` for stateless signed HTTP calls, and
    :class:`WebsocketClient` for a persistent connection carrying
    correlated requests, account/order events and keepalives.
"""

# Utility components.

from . import config
from . import errors
from . import signature

# Submodules used by multiple other components.

from . import protocol
from . import session
from . import transport

# Primary public-facing interfaces.

from .errors import (
    ApplicationError,
    AuthFailure,
    ClientError,
    Disconnected,
    NotAuthorized,
    NotConnected,
    RateLimitReached,
    RequestTimeout,
    RestError,
    TransportError,
    WrongClientMode,
)
from .rest import RestClient
from .websocket import WebsocketClient

__version__ = '1.0.0'

# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
