"""Transport layer implementations."""

from .base import Transport
from .websocket import WebsocketTransport
