# storesync/resource_store.py
from typing import Any, Callable, Hashable, List, Optional

from remotes.base import RemoteError

from .dispatch import BackgroundQueue
from .logger import get_logger
from .models import ANONYMOUS, Owner
from .overlay import ADD, REMOVE, OptimisticOverlay
from .storage import ScopedPersistence, SqliteKeyValueStore, decode_collection

logger = get_logger(__name__)

TokenProvider = Callable[[], Optional[str]]


def _no_token() -> Optional[str]:
    return None


class ScopedCollection:
    """
    Shared plumbing: a named collection persisted under the current owner's
    scope, an entry codec, and a queue for fire-and-forget remote calls.
    Subclasses provide key_of/encode/decode.
    """

    collection = ""

    def __init__(
        self,
        kv: SqliteKeyValueStore,
        client: Any,
        queue: BackgroundQueue,
        credentials: TokenProvider = _no_token,
    ):
        self._client = client
        self._queue = queue
        self._credentials = credentials
        self._owner = ANONYMOUS
        self._persistence = ScopedPersistence(kv, self.collection)
        self._local: List[Any] = self._load_local()
        self._unsubscribe = kv.subscribe(self._on_storage_change)

    def key_of(self, entry: Any) -> Hashable:
        raise NotImplementedError

    def encode(self, entry: Any) -> Any:
        raise NotImplementedError

    def decode(self, raw: Any) -> Any:
        raise NotImplementedError

    @property
    def owner(self) -> Owner:
        return self._owner

    @property
    def authenticated(self) -> bool:
        return self._owner.is_authenticated

    @property
    def storage_key(self) -> str:
        return self._persistence.storage_key

    def items(self) -> List[Any]:
        return list(self._local)

    def find(self, key: Hashable) -> Optional[Any]:
        for entry in self.items():
            if self.key_of(entry) == key:
                return entry
        return None

    def close(self) -> None:
        self._unsubscribe()

    def _send(self, description: str, fn: Callable[..., Any], *args) -> None:
        """Queue a remote call with the credential current at issue time."""
        self._queue.submit(
            f"{self.collection} {description}", fn, *args, token=self._credentials()
        )

    def _load_local(self) -> List[Any]:
        return self._decode_all(self._persistence.read())

    def _decode_all(self, raw_entries: List[Any]) -> List[Any]:
        out: List[Any] = []
        seen = set()
        for raw in raw_entries:
            try:
                entry = self.decode(raw)
            except (KeyError, TypeError, ValueError) as e:
                logger.debug("Dropping undecodable %s entry %r: %s", self.collection, raw, e)
                continue
            key = self.key_of(entry)
            if key in seen:
                continue
            seen.add(key)
            out.append(entry)
        return out

    def _store_local(self, entries: List[Any]) -> None:
        self._local = entries
        self._persistence.write([self.encode(e) for e in entries], origin=self)

    def _follows_local_storage(self) -> bool:
        return True

    def _on_storage_change(self, key: str, value: Optional[str], origin: Any) -> None:
        if origin is self or key != self._persistence.storage_key:
            return
        if not self._follows_local_storage():
            return
        # last writer wins
        logger.debug("%s changed in another tab; reloading.", self.collection)
        self._local = self._decode_all(decode_collection(value, key))


class DualModeStore(ScopedCollection):
    """
    A collection whose source of truth depends on who is signed in.

    Anonymous: the collection lives in local storage under the guest scope
    and every mutation is written straight through.
    Authenticated: the collection is the last remote snapshot with the
    optimistic overlay applied; mutations update the overlay and queue the
    matching remote call. Nothing is written locally in this mode, and the
    guest collection is neither merged nor touched; it is read back on logout.
    """

    def __init__(self, *args, **kwargs):
        self._overlay = OptimisticOverlay()
        self._snapshot: List[Any] = []
        super().__init__(*args, **kwargs)

    @property
    def overlay(self) -> OptimisticOverlay:
        return self._overlay

    def items(self) -> List[Any]:
        """The authoritative collection, recomputed on every call."""
        if self.authenticated:
            return self._overlay.apply(self._snapshot, self.key_of)
        return list(self._local)

    def switch_owner(self, owner: Owner) -> None:
        previous = self._owner
        self._overlay.clear()
        self._snapshot = []
        self._owner = owner
        self._persistence.point_at(owner)
        logger.info(
            "%s store switched owner %s -> %s",
            self.collection, previous.scope, owner.scope,
        )
        if owner.is_authenticated:
            self.refresh()
        else:
            self._local = self._load_local()

    def refresh(self) -> bool:
        """
        Pull a fresh snapshot. Anonymous stores re-read local storage.
        Returns False when the remote fetch failed; the previous snapshot
        (empty right after login) stays in place.
        """
        if not self.authenticated:
            self._local = self._load_local()
            return True
        try:
            snapshot = self._client.list(self._credentials())
        except RemoteError as e:
            logger.warning("Failed to fetch %s snapshot: %s", self.collection, e)
            return False
        self._snapshot = list(snapshot)
        self._overlay.clear()
        logger.debug("Fetched %s snapshot with %d entries.", self.collection, len(self._snapshot))
        return True

    def _upsert(self, key: Hashable, entry: Any) -> None:
        if self.authenticated:
            self._overlay.record_pending(ADD, key, entry)
            return
        local = list(self._local)
        for idx, existing in enumerate(local):
            if self.key_of(existing) == key:
                local[idx] = entry
                break
        else:
            local.append(entry)
        self._store_local(local)

    def _discard(self, key: Hashable) -> None:
        if self.authenticated:
            self._overlay.record_pending(REMOVE, key)
            return
        local = [e for e in self._local if self.key_of(e) != key]
        if len(local) != len(self._local):
            self._store_local(local)

    def _follows_local_storage(self) -> bool:
        return not self.authenticated


class SingleModeStore(ScopedCollection):
    """
    A collection kept locally under whichever owner is current, in both
    modes. When authenticated, mutations are mirrored to the remote service
    in the background and refresh() replaces the local copy with the remote
    listing. There is no overlay: the local copy is the authoritative one.
    """

    def switch_owner(self, owner: Owner) -> None:
        previous = self._owner
        self._owner = owner
        self._persistence.point_at(owner)
        self._local = self._load_local()
        logger.info(
            "%s store switched owner %s -> %s",
            self.collection, previous.scope, owner.scope,
        )
        if owner.is_authenticated:
            self.refresh()

    def fetch_remote(self) -> Optional[List[Any]]:
        """Remote listing for this collection, or None when there is none."""
        return None

    def refresh(self) -> bool:
        self._local = self._load_local()
        if not self.authenticated:
            return True
        try:
            remote = self.fetch_remote()
        except RemoteError as e:
            logger.warning("Failed to fetch %s listing: %s", self.collection, e)
            return False
        if remote is not None:
            self._store_local(self.normalize_snapshot(list(remote)))
        return True

    def normalize_snapshot(self, entries: List[Any]) -> List[Any]:
        return entries
