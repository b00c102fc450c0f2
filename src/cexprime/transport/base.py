"""Transport interface.

This is the (small) contract the WebSocket engine relies on. The engine
never touches a socket directly, so a test can substitute an in-memory
transport without patching anything.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Callable, Optional


class Transport(ABC):
    """Minimal contract for a duplex, message-oriented transport.

    The owner assigns the four event callbacks before calling :meth:`open`.
    Implementations must deliver every event on a single thread, in the
    order the events occurred, and must deliver exactly one of
    ``on_close``/``on_error`` per :meth:`open`.
    """

    def __init__(self, url: str):
        self.url = url
        self.on_open: Optional[Callable[[], Any]] = None
        self.on_message: Optional[Callable[[Any], Any]] = None
        self.on_close: Optional[Callable[[Any], Any]] = None
        self.on_error: Optional[Callable[[BaseException], Any]] = None

    @abstractmethod
    def open(self) -> None:
        """Begin establishing the connection; returns without waiting."""

    @abstractmethod
    def close(self) -> None:
        """Close the connection if it is open; otherwise a no-op."""

    @abstractmethod
    def send(self, text: str) -> None:
        """Send one text frame. Raises if the frame cannot be handed off."""

    @property
    def is_open(self) -> bool:
        """Whether the transport is currently connected."""
        return False

    # --- helpers for implementations ---
    def _fire(self, callback: Optional[Callable], *args) -> None:
        if callback is not None:
            callback(*args)
