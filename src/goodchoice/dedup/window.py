"""Deduplication window for inbound message ids.

Meta delivers webhooks at-least-once and redelivers when an ack is slow. The
window remembers recently seen message ids for a fixed retention period; while
an id is present it triggers at most one dispatch.
"""

import os
import threading
import time
from typing import Callable, Protocol

from psycopg2.extensions import cursor as PgCursor

from goodchoice.infra import db
from goodchoice.observability.logging import get_logger
from goodchoice.observability.redaction import id_prefix, safe_log_context

logger = get_logger(__name__)

DEFAULT_RETENTION_SECONDS = 300.0


class DedupWindow(Protocol):
    """Time-bounded membership set of message ids."""

    def seen(self, message_id: str) -> bool:
        ...

    def record(self, message_id: str) -> None:
        ...

    def check_and_record(self, message_id: str) -> bool:
        """Atomically record the id. True if it was new, False if already present."""
        ...


class InMemoryDedupWindow:
    """Process-local window. Expired entries are evicted lazily on access.

    Safe to share between the event loop and worker threads.
    """

    def __init__(
        self,
        retention_seconds: float = DEFAULT_RETENTION_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if retention_seconds <= 0:
            raise ValueError("retention_seconds must be positive")
        self.retention_seconds = retention_seconds
        self._clock = clock
        self._entries: dict[str, float] = {}
        self._lock = threading.Lock()

    def _evict_expired(self, now: float) -> None:
        # dicts keep insertion order, so expired ids sit at the front
        cutoff = now - self.retention_seconds
        while self._entries:
            oldest_id, inserted_at = next(iter(self._entries.items()))
            if inserted_at > cutoff:
                break
            del self._entries[oldest_id]

    def seen(self, message_id: str) -> bool:
        with self._lock:
            self._evict_expired(self._clock())
            return message_id in self._entries

    def record(self, message_id: str) -> None:
        with self._lock:
            now = self._clock()
            self._evict_expired(now)
            # re-insert so the id moves to the back of the eviction order
            self._entries.pop(message_id, None)
            self._entries[message_id] = now

    def check_and_record(self, message_id: str) -> bool:
        with self._lock:
            now = self._clock()
            self._evict_expired(now)
            if message_id in self._entries:
                return False
            self._entries[message_id] = now
            return True

    def __len__(self) -> int:
        with self._lock:
            self._evict_expired(self._clock())
            return len(self._entries)


class PostgresDedupWindow:
    """Window shared by several instances through the ``processed_messages`` table.

    The insert uses ``ON CONFLICT DO NOTHING``, so the database arbitrates
    concurrent deliveries of the same id.
    """

    def __init__(self, retention_seconds: float = DEFAULT_RETENTION_SECONDS) -> None:
        self.retention_seconds = retention_seconds

    def _purge(self, cur: PgCursor) -> None:
        cur.execute(
            "DELETE FROM processed_messages WHERE received_at < now() - make_interval(secs => %s)",
            (self.retention_seconds,),
        )

    def seen(self, message_id: str) -> bool:
        with db.txn() as cur:
            self._purge(cur)
            row = db.fetchone(
                cur,
                "SELECT 1 FROM processed_messages WHERE message_id = %s",
                (message_id,),
            )
        return row is not None

    def record(self, message_id: str) -> None:
        with db.txn() as cur:
            self._purge(cur)
            cur.execute(
                """
                INSERT INTO processed_messages (message_id)
                VALUES (%s)
                ON CONFLICT (message_id) DO UPDATE SET received_at = now()
                """,
                (message_id,),
            )

    def check_and_record(self, message_id: str) -> bool:
        with db.txn() as cur:
            self._purge(cur)
            cur.execute(
                """
                INSERT INTO processed_messages (message_id)
                VALUES (%s)
                ON CONFLICT (message_id) DO NOTHING
                """,
                (message_id,),
            )
            return cur.rowcount == 1


def check_and_record_fail_open(window: DedupWindow, message_id: str) -> bool:
    """Run check_and_record, treating an unavailable window as "not seen".

    Errors are logged and the message goes through (fail open).
    """
    try:
        return window.check_and_record(message_id)
    except Exception:
        logger.exception(
            "dedup window unavailable, processing message anyway",
            extra={"extra_fields": safe_log_context(message_id_prefix=id_prefix(message_id))},
        )
        return True


def build_dedup_window() -> DedupWindow:
    """Select the window from DEDUP_BACKEND ("memory" or "postgres").

    Raises:
        ValueError: If DEDUP_BACKEND is unknown.
    """
    backend = os.environ.get("DEDUP_BACKEND", "memory")
    retention = float(os.environ.get("DEDUP_RETENTION_SECONDS", DEFAULT_RETENTION_SECONDS))

    if backend == "memory":
        return InMemoryDedupWindow(retention_seconds=retention)
    if backend == "postgres":
        return PostgresDedupWindow(retention_seconds=retention)
    raise ValueError(f"Unknown DEDUP_BACKEND: {backend}")
