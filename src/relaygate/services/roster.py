"""RosterCache: single-writer, multi-reader snapshot of the team roster.

Readers take ``cache.snapshot`` (one attribute read) and get a complete,
immutable :class:`RosterSnapshot`. The writer builds a whole new snapshot
and swaps the reference; nothing is ever updated in place.

A failed refresh keeps the previous snapshot. Before the first successful
fetch the cache holds an empty snapshot with ``fetched_at=None``, which
policies treat as "nobody is on the team".
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable

from relaygate.domain.types import RosterSnapshot
from relaygate.infrastructure.well_known import RosterFetchError

logger = logging.getLogger(__name__)

RosterFetcher = Callable[[], RosterSnapshot]

DEFAULT_REFRESH_INTERVAL = 3600.0


class RosterCache:
    """Holds the current roster and knows how to refresh it."""

    def __init__(
        self,
        fetcher: RosterFetcher | None = None,
        *,
        initial: RosterSnapshot | None = None,
    ) -> None:
        self._fetcher = fetcher
        self._snapshot = initial or RosterSnapshot()
        self._write_lock = threading.Lock()

    @property
    def snapshot(self) -> RosterSnapshot:
        """The current snapshot (never partially updated)."""
        return self._snapshot

    @property
    def ever_fetched(self) -> bool:
        return self._snapshot.fetched_at is not None

    def contains(self, pubkey_hex: str) -> bool:
        return self._snapshot.contains(pubkey_hex)

    def replace(self, snapshot: RosterSnapshot) -> None:
        """Swap in *snapshot* as the new current roster."""
        with self._write_lock:
            self._snapshot = snapshot

    def refresh(self) -> bool:
        """Fetch a new roster; keep the old one on any failure.

        Returns True if the snapshot was replaced.
        """
        if self._fetcher is None:
            logger.debug("No roster source configured; skipping refresh")
            return False
        try:
            snapshot = self._fetcher()
        except RosterFetchError as exc:
            logger.warning("Roster refresh failed, keeping previous roster: %s", exc)
            return False
        except Exception:
            logger.exception("Unexpected error during roster refresh, keeping previous roster")
            return False

        self.replace(snapshot)
        logger.info("Roster updated: %d names", len(snapshot.names))
        for name, pubkey in snapshot.names.items():
            logger.debug("roster member %s %s", name, pubkey)
        return True


class RosterRefresher:
    """Background thread that refreshes a :class:`RosterCache` on an interval.

    ``start()`` performs one synchronous refresh so the first policy call
    already sees whatever the source returned, then schedules the rest.
    """

    def __init__(self, cache: RosterCache, *, interval: float = DEFAULT_REFRESH_INTERVAL) -> None:
        if interval <= 0:
            msg = f"interval must be positive, got {interval}"
            raise ValueError(msg)
        self._cache = cache
        self._interval = interval
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._cache.refresh()
        self._thread = threading.Thread(
            target=self._run, name="relaygate-roster", daemon=True
        )
        self._thread.start()

    def stop(self, timeout: float | None = 5.0) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    def _run(self) -> None:
        while not self._stop.wait(self._interval):
            self._cache.refresh()
