"""Correlation of requests and replies over a shared channel."""

from __future__ import annotations

import concurrent.futures
import itertools
import logging
import threading
import time
from typing import Any, Callable, Dict, List, Optional

from .errors import Disconnected, RequestTimeout


logger = logging.getLogger(__name__)

_sequence = itertools.count(1)
_sequence_lock = threading.Lock()


def correlation_id(action: str) -> str:
    """Return ``<ms timestamp><sequence>_<action>``.

    The sequence is process-wide and never reset, so two ids minted in the
    same millisecond for the same action still differ, including across
    reconnects and across client instances.
    """

    with _sequence_lock:
        sequence = next(_sequence)

    milliseconds = int(time.time() * 1000)
    return f"{milliseconds}{sequence}_{action}"


def settle(future: concurrent.futures.Future, result: Any = None, error: Optional[BaseException] = None) -> bool:
    """Resolve or reject *future* unless it is already done.

    Returns True if this call settled it.
    """

    if future.done():
        return False

    try:
        if error is None:
            future.set_result(result)
        else:
            future.set_exception(error)
    except concurrent.futures.InvalidStateError:
        return False

    return True


def rejected(error: BaseException) -> concurrent.futures.Future:
    """Return a future that has already failed with *error*."""

    future: concurrent.futures.Future = concurrent.futures.Future()
    future.set_exception(error)
    return future


class PendingRequest:
    """One in-flight correlated call: its future plus its timeout timer.

    The ``settled`` flag is checked and set under the entry's own lock, so
    at most one of :meth:`resolve`/:meth:`reject` ever takes effect.
    """

    def __init__(self, oid: str):
        self.oid = oid
        self.future: concurrent.futures.Future = concurrent.futures.Future()
        self.timer: Optional[threading.Timer] = None
        self.settled = False
        self._lock = threading.Lock()

    def arm(self, timeout: float, callback: Callable, *args) -> None:
        """Start the timeout; *callback* is invoked with *args* on expiry."""

        timer = threading.Timer(timeout, callback, args=args)
        timer.daemon = True
        self.timer = timer
        timer.start()

    def cancel_timer(self) -> None:
        timer = self.timer
        if timer is not None:
            timer.cancel()

    def resolve(self, payload: Any) -> bool:
        return self._settle(payload, None)

    def reject(self, error: BaseException) -> bool:
        return self._settle(None, error)

    def _settle(self, payload: Any, error: Optional[BaseException]) -> bool:
        with self._lock:
            if self.settled:
                return False
            self.settled = True

        self.cancel_timer()

        # A future cancelled by the caller still counts as settled here.
        settle(self.future, payload, error)
        return True


def cancel(entries: List[PendingRequest], reason: Any = None) -> int:
    """Reject each of *entries* with :class:`Disconnected`; return the count."""

    for pending in entries:
        pending.reject(Disconnected(reason, oid=pending.oid))

    if entries:
        logger.info("cancelled %d pending request(s): %s", len(entries), reason or "connection closed")

    return len(entries)


class CorrelationTable:
    """Map correlation ids to :class:`PendingRequest` instances.

    Every removal goes through :meth:`pop` or :meth:`drain` under the table
    lock, and only the thread that removed an entry settles it. The router,
    a timer, a send failure and a disconnect can therefore race for the
    same entry without settling it twice.
    """

    def __init__(self, timeout: float):
        self.timeout = timeout
        self._pending: Dict[str, PendingRequest] = {}
        self._lock = threading.Lock()

    def __contains__(self, oid: str) -> bool:
        with self._lock:
            return oid in self._pending

    def __len__(self) -> int:
        with self._lock:
            return len(self._pending)

    def ids(self) -> List[str]:
        with self._lock:
            return list(self._pending.keys())

    def register(self, oid: str) -> PendingRequest:
        """Create, store and arm a new entry for *oid*."""

        pending = PendingRequest(oid)

        with self._lock:
            if oid in self._pending:
                raise KeyError(f"duplicate correlation id: {oid}")
            self._pending[oid] = pending

        pending.arm(self.timeout, self._expire, oid)
        return pending

    def pop(self, oid: str) -> Optional[PendingRequest]:
        with self._lock:
            return self._pending.pop(oid, None)

    def drain(self) -> List[PendingRequest]:
        with self._lock:
            drained = list(self._pending.values())
            self._pending.clear()
        return drained

    def reject_all(self, reason: Any = None) -> int:
        """Reject every entry with :class:`Disconnected`.

        Returns the number of entries rejected; the table is empty
        afterwards.
        """

        return cancel(self.drain(), reason)

    def _expire(self, oid: str) -> None:
        pending = self.pop(oid)
        if pending is None:
            return

        logger.warning("request timeout: %s", oid)
        pending.reject(RequestTimeout(oid=oid))
