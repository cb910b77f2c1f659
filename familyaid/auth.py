"""
Session State.

``SessionManager`` holds the single cached identity record for the
whole client.  Every route guard reads it; only ``SessionResolver``
writes it (login, logout, refresh).

The record distinguishes three situations:

- unresolved (``is_resolved`` is ``False``): no answer from the server yet;
- resolved to ``None``: confirmed logged out;
- resolved to an ``Identity``: logged in.

Writes carry a monotonically increasing ``version``.  A background
refresh snapshots the version when it starts and only commits its
result if nothing else was written in between, so a login that lands
while a refresh is in flight always wins.

Usage::

    session = SessionManager()
    unsubscribe = session.subscribe(lambda identity: print(identity))
    session.write(identity)
"""

from __future__ import annotations

import threading
import time
from typing import Callable, Optional

from familyaid.models.identity import Identity

IdentityListener = Callable[[Optional[Identity]], None]


class SessionManager:
    """Injectable holder for the cached identity.

    Parameters
    ----------
    clock:
        Monotonic clock in seconds; tests inject a fake one.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock: Callable[[], float] = clock
        self._lock: threading.RLock = threading.RLock()
        self._identity: Optional[Identity] = None
        self._resolved: bool = False
        self._in_flight: int = 0
        self._initial_fetch: bool = False
        self._error: Optional[Exception] = None
        self._fetched_at: Optional[float] = None
        self._settled_at: Optional[float] = None
        self._version: int = 0
        self._listeners: list[IdentityListener] = []

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @property
    def identity(self) -> Optional[Identity]:
        with self._lock:
            return self._identity

    @property
    def is_resolved(self) -> bool:
        """``False`` until the server has answered at least once."""
        with self._lock:
            return self._resolved

    @property
    def is_loading(self) -> bool:
        """``True`` while a fetch is running and nothing is cached yet."""
        with self._lock:
            return self._in_flight > 0 and not self._resolved

    @property
    def is_fetching(self) -> bool:
        """``True`` while any identity fetch is running."""
        with self._lock:
            return self._in_flight > 0

    @property
    def error(self) -> Optional[Exception]:
        """Last identity-fetch failure, cleared by any successful write."""
        with self._lock:
            return self._error

    @property
    def version(self) -> int:
        with self._lock:
            return self._version

    @property
    def settled_at(self) -> Optional[float]:
        """Clock reading when the identity last stopped loading."""
        with self._lock:
            return self._settled_at

    @property
    def is_authenticated(self) -> bool:
        with self._lock:
            return self._identity is not None

    def now(self) -> float:
        return self._clock()

    def get_current_identity(self) -> Identity:
        """Return the logged-in identity.

        Raises:
            RuntimeError: If nobody is logged in.
        """
        with self._lock:
            if self._identity is None:
                raise RuntimeError("No user is currently authenticated. Login required.")
            return self._identity

    def is_fresh(self, max_age_s: float) -> bool:
        """``True`` when a resolved value is younger than *max_age_s*."""
        with self._lock:
            if not self._resolved or self._fetched_at is None:
                return False
            return (self._clock() - self._fetched_at) < max_age_s

    # ------------------------------------------------------------------
    # Loading lifecycle
    # ------------------------------------------------------------------

    def begin_loading(self) -> int:
        """Mark a fetch as started and return the version it is based on."""
        with self._lock:
            self._in_flight += 1
            if not self._resolved:
                self._initial_fetch = True
            return self._version

    def finish_loading(self, error: Optional[Exception] = None) -> None:
        """Mark one fetch as done, recording *error* if it failed.

        Fetches may overlap; loading ends when the last one finishes.
        Only fetches that started with nothing cached move
        ``settled_at``; background revalidation does not.
        """
        with self._lock:
            self._in_flight = max(0, self._in_flight - 1)
            if error is not None:
                self._error = error
            if self._in_flight > 0:
                return
            if self._initial_fetch or self._settled_at is None:
                self._settled_at = self._clock()
            self._initial_fetch = False

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def write(self, identity: Optional[Identity]) -> int:
        """Unconditionally store *identity*; returns the new version."""
        with self._lock:
            version = self._store(identity)
        self._notify(identity)
        return version

    def write_if_current(self, identity: Optional[Identity], expected_version: int) -> bool:
        """Store *identity* only if no write happened since *expected_version*."""
        with self._lock:
            if self._version != expected_version:
                return False
            self._store(identity)
        self._notify(identity)
        return True

    def clear(self) -> None:
        """Record a confirmed logout."""
        self.write(None)

    def _store(self, identity: Optional[Identity]) -> int:
        # Caller holds self._lock.
        self._identity = identity
        self._resolved = True
        self._error = None
        self._fetched_at = self._clock()
        if self._settled_at is None:
            self._settled_at = self._fetched_at
        self._version += 1
        return self._version

    # ------------------------------------------------------------------
    # Change notification
    # ------------------------------------------------------------------

    def subscribe(self, listener: IdentityListener) -> Callable[[], None]:
        """Call *listener* after every write; returns an unsubscribe callable."""
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, identity: Optional[Identity]) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            listener(identity)
