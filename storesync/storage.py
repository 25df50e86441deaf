# storesync/storage.py
import json
import os
import sqlite3
from contextlib import contextmanager
from typing import Any, Callable, Dict, List, Optional

from .logger import get_logger
from .models import ANONYMOUS, Owner, now_utc, to_iso

logger = get_logger(__name__)

DB_PATH = os.getenv("DB_PATH", "/data/storefront_state.sqlite3")

# listener(key, value_or_None, origin)
StorageListener = Callable[[str, Optional[str], Any], None]


class SqliteKeyValueStore:
    """
    Synchronous string key-value store backed by a single SQLite table.

    Every write notifies subscribed listeners, which is how several stores
    sharing one backing file (one per open tab) see each other's changes.
    """

    def __init__(self, path: str = DB_PATH):
        self.path = path
        self._listeners: List[StorageListener] = []
        self.ensure_db()

    @contextmanager
    def _connect(self):
        """Connection that commits on success and is always closed."""
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        con = sqlite3.connect(self.path)
        try:
            with con:
                yield con
        finally:
            con.close()

    def ensure_db(self):
        with self._connect() as con:
            cur = con.cursor()
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS kv (
                    key TEXT PRIMARY KEY,
                    value TEXT,
                    updated_at TEXT
                )
            """
            )
            con.commit()

    def get(self, key: str) -> Optional[str]:
        with self._connect() as con:
            cur = con.cursor()
            cur.execute("SELECT value FROM kv WHERE key=?", (key,))
            row = cur.fetchone()
        return row[0] if row else None

    def set(self, key: str, value: str, origin: Any = None) -> None:
        with self._connect() as con:
            cur = con.cursor()
            cur.execute(
                """
                INSERT INTO kv (key, value, updated_at)
                VALUES (?,?,?)
                ON CONFLICT(key) DO UPDATE SET
                    value=excluded.value,
                    updated_at=excluded.updated_at
            """,
                (key, value, to_iso(now_utc())),
            )
            con.commit()
        self._notify(key, value, origin)

    def delete(self, key: str, origin: Any = None) -> None:
        with self._connect() as con:
            cur = con.cursor()
            cur.execute("DELETE FROM kv WHERE key=?", (key,))
            con.commit()
        self._notify(key, None, origin)

    def subscribe(self, listener: StorageListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, key: str, value: Optional[str], origin: Any) -> None:
        for listener in list(self._listeners):
            try:
                listener(key, value, origin)
            except Exception as e:
                logger.exception("Storage listener failed for key %s: %s", key, e)


def storage_key(collection: str, owner: Owner) -> str:
    return f"{collection}:{owner.scope}"


def decode_collection(raw: Optional[str], key: str = "") -> List[Dict[str, Any]]:
    """
    Parse a stored blob into a list of entries. Anything that is not a JSON
    list reads as empty; the next write replaces it.
    """
    if raw is None:
        return []
    try:
        data = json.loads(raw)
    except ValueError:
        logger.debug("Discarding unparseable blob under %s", key)
        return []
    if not isinstance(data, list):
        logger.debug("Discarding non-list blob under %s", key)
        return []
    return data


class ScopedPersistence:
    """
    Reads and writes one named collection under the key of the current owner.
    """

    def __init__(self, kv: SqliteKeyValueStore, collection: str, owner: Owner = ANONYMOUS):
        self.kv = kv
        self.collection = collection
        self.owner = owner

    @property
    def storage_key(self) -> str:
        return storage_key(self.collection, self.owner)

    def point_at(self, owner: Owner) -> None:
        self.owner = owner

    def read(self) -> List[Dict[str, Any]]:
        key = self.storage_key
        return decode_collection(self.kv.get(key), key)

    def write(self, entries: List[Dict[str, Any]], origin: Any = None) -> None:
        self.kv.set(self.storage_key, json.dumps(entries), origin=origin)
