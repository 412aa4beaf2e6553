"""Key-value record store with SQLite / Redis / in-memory swap.

Every portal record lives under a "<type-prefix>:<id>" key and is stored as a
JSON document. All backends share one small API:

    store.get("group:1700000000000")
    store.set("group:1700000000000", {...})
    store.delete("group:1700000000000")
    store.get_by_prefix("group:")            # values, ordered by key

    with store.transaction("connections:a", "connections:b"):
        ...                                  # read-modify-write both keys

Usage:
    from record_store import init_store, get_store
    init_store(app)          # called once in create_app()
    store = get_store()      # inside an app/request context
"""

from __future__ import annotations

import json
import logging
import threading
import time
import zlib
from contextlib import ExitStack, contextmanager
from datetime import datetime
from typing import Any, ContextManager, Iterator, Protocol

from flask import current_app, g
from redis.exceptions import LockError
from redis.lock import Lock

logger = logging.getLogger(__name__)

LOCK_PREFIX = "lock:"


class StoreLockTimeout(RuntimeError):
    """Raised when a transaction cannot lock its keys in time."""


# ── Protocol ───────────────────────────────────────────────

class RecordStore(Protocol):
    def get(self, key: str) -> Any | None: ...
    def set(self, key: str, value: Any) -> None: ...
    def delete(self, key: str) -> None: ...
    def get_by_prefix(self, prefix: str) -> list[Any]: ...
    def transaction(self, *keys: str) -> ContextManager[None]: ...


# ── In-Memory Implementation ──────────────────────────────

class InMemoryRecordStore:
    """Dict of JSON strings guarded by a lock, with striped transaction locks."""

    def __init__(self, lock_stripes: int = 64) -> None:
        self._data: dict[str, str] = {}
        self._lock = threading.Lock()
        # Fixed pool of transaction locks; a key always maps to the same stripe
        self._stripes = [threading.RLock() for _ in range(lock_stripes)]

    def get(self, key: str) -> Any | None:
        with self._lock:
            raw = self._data.get(key)
        return json.loads(raw) if raw is not None else None

    def set(self, key: str, value: Any) -> None:
        raw = json.dumps(value)
        with self._lock:
            self._data[key] = raw

    def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def get_by_prefix(self, prefix: str) -> list[Any]:
        with self._lock:
            matches = sorted((k, v) for k, v in self._data.items() if k.startswith(prefix))
        return [json.loads(v) for _, v in matches]

    @contextmanager
    def transaction(self, *keys: str) -> Iterator[None]:
        # Stripes are taken in index order so two writers never deadlock
        indexes = sorted({zlib.crc32(k.encode()) % len(self._stripes) for k in keys})
        with ExitStack() as stack:
            for i in indexes:
                stack.enter_context(self._stripes[i])
            yield


# ── SQLite Implementation ─────────────────────────────────

class SqliteRecordStore:
    """Records in the kv_store table of the application database."""

    def get(self, key: str) -> Any | None:
        from database import get_db
        row = get_db().execute("SELECT value FROM kv_store WHERE key = ?", (key,)).fetchone()
        return json.loads(row["value"]) if row else None

    def set(self, key: str, value: Any) -> None:
        from database import get_db
        db = get_db()
        db.execute(
            "INSERT OR REPLACE INTO kv_store (key, value, updated_at) VALUES (?, ?, ?)",
            (key, json.dumps(value), datetime.now().isoformat()),
        )
        self._commit_unless_in_transaction(db)

    def delete(self, key: str) -> None:
        from database import get_db
        db = get_db()
        db.execute("DELETE FROM kv_store WHERE key = ?", (key,))
        self._commit_unless_in_transaction(db)

    def get_by_prefix(self, prefix: str) -> list[Any]:
        from database import get_db
        rows = get_db().execute(
            "SELECT value FROM kv_store WHERE substr(key, 1, ?) = ? ORDER BY key",
            (len(prefix), prefix),
        ).fetchall()
        return [json.loads(r["value"]) for r in rows]

    @staticmethod
    def _commit_unless_in_transaction(db) -> None:
        if not g.get("kv_transaction"):
            db.commit()

    @contextmanager
    def transaction(self, *keys: str) -> Iterator[None]:
        # SQLite locks the whole database, so the key list only documents intent
        from database import get_db
        if g.get("kv_transaction"):
            yield
            return

        db = get_db()
        db.execute("BEGIN IMMEDIATE")
        g.kv_transaction = True
        try:
            yield
        except BaseException:
            db.rollback()
            raise
        else:
            db.commit()
        finally:
            g.kv_transaction = False


# ── Redis Implementation ──────────────────────────────────

def _escape_glob(pattern: str) -> str:
    for ch in "\\*?[]":
        pattern = pattern.replace(ch, "\\" + ch)
    return pattern


class RedisRecordStore:
    """Wraps redis.Redis; transactions hold redis-py locks taken in sorted key order.

    ``lock_timeout`` bounds how long a transaction waits for a lock;
    ``lock_ttl`` is how long a held lock lives before Redis expires it, and is
    kept well above the wait so a slow transaction does not lose its lock.
    """

    def __init__(self, redis_client, lock_timeout: float = 5.0, lock_ttl: float = 30.0) -> None:
        self._redis = redis_client
        self._lock_timeout = lock_timeout
        self._lock_ttl = max(lock_ttl, lock_timeout * 2)
        self._held = threading.local()

    @staticmethod
    def _decode(raw: Any) -> Any:
        return json.loads(raw.decode() if isinstance(raw, bytes) else raw)

    def get(self, key: str) -> Any | None:
        raw = self._redis.get(key)
        return self._decode(raw) if raw is not None else None

    def set(self, key: str, value: Any) -> None:
        self._redis.set(key, json.dumps(value))

    def delete(self, key: str) -> None:
        self._redis.delete(key)

    def get_by_prefix(self, prefix: str) -> list[Any]:
        keys = sorted(
            k.decode() if isinstance(k, bytes) else k
            for k in self._redis.scan_iter(match=_escape_glob(prefix) + "*")
        )
        if not keys:
            return []
        return [self._decode(raw) for raw in self._redis.mget(keys) if raw is not None]

    def _acquire(self, key: str) -> Lock:
        lock = self._redis.lock(
            f"{LOCK_PREFIX}{key}",
            timeout=self._lock_ttl,
            blocking_timeout=self._lock_timeout,
        )
        if not lock.acquire():
            raise StoreLockTimeout(f"Timed out locking {key}")
        return lock

    @staticmethod
    def _release(key: str, lock: Lock) -> None:
        try:
            lock.release()
        except LockError as e:
            logger.warning("Lock on %s expired before release: %s", key, e)

    @contextmanager
    def transaction(self, *keys: str) -> Iterator[None]:
        held: set[str] = getattr(self._held, "keys", None) or set()
        self._held.keys = held
        acquired: list[tuple[str, Lock]] = []
        try:
            for key in sorted(set(keys) - held):
                acquired.append((key, self._acquire(key)))
                held.add(key)
            yield
        finally:
            for key, lock in reversed(acquired):
                self._release(key, lock)
                held.discard(key)


# ── App wiring ────────────────────────────────────────────

def init_store(app) -> RecordStore:
    """Pick the record store backend from config. Call once from create_app()."""
    backend = app.config.get("RECORD_STORE", "sqlite")
    store: RecordStore | None = None

    if backend == "redis":
        redis_url = app.config.get("REDIS_URL", "")
        try:
            import redis
            client = redis.Redis.from_url(redis_url, decode_responses=False)
            client.ping()
            store = RedisRecordStore(
                client,
                lock_timeout=app.config.get("STORE_LOCK_TIMEOUT", 5.0),
                lock_ttl=app.config.get("STORE_LOCK_TTL", 30.0),
            )
            app.logger.info("Record store: Redis (%s)", redis_url)
        except Exception as e:
            app.logger.warning("Redis connection failed (%s) — falling back to SQLite.", e)
            backend = "sqlite"

    if backend == "memory":
        store = InMemoryRecordStore()
        app.logger.info("Record store: in-memory")
    elif store is None:
        import database
        database.init_app(app)
        store = SqliteRecordStore()
        app.logger.info("Record store: SQLite (%s)", app.config.get("DATABASE"))

    app.extensions["record_store"] = store
    return store


def get_store() -> RecordStore:
    """Return the active record store for the current app."""
    return current_app.extensions["record_store"]


def new_record_key(store: RecordStore, prefix: str) -> str:
    """Build "<prefix>:<epoch-millis>", bumping the millisecond past taken keys.

    Only safe against concurrent creators while the caller holds
    ``store.transaction(f"{prefix}:")``; use ``insert_record`` for that.
    """
    stamp = int(time.time() * 1000)
    while store.get(f"{prefix}:{stamp}") is not None:
        stamp += 1
    return f"{prefix}:{stamp}"


def insert_record(store: RecordStore, prefix: str, record: dict[str, Any]) -> dict[str, Any]:
    """Store ``record`` under a fresh "<prefix>:<epoch-millis>" key and return it with its id.

    Key selection and the write share one transaction on the prefix, so two
    creators in the same millisecond always end up with distinct keys.
    """
    with store.transaction(f"{prefix}:"):
        key = new_record_key(store, prefix)
        stored = {**record, "id": key}
        store.set(key, stored)
    return stored
