# storesync/session.py
import json
from typing import Any, Callable, Dict, Iterable, List, Optional

from .logger import get_logger
from .models import ANONYMOUS, Owner
from .storage import SqliteKeyValueStore

logger = get_logger(__name__)

AUTH_TOKEN_KEY = "auth_token"
AUTH_USER_KEY = "auth_user"

OwnerListener = Callable[[Owner], None]


class Session:
    """
    Who is signed in. The bearer token and user record live in the key-value
    store, so a login or logout written by another tab is picked up through
    the store's change notifications.
    """

    def __init__(self, kv: SqliteKeyValueStore):
        self._kv = kv
        self._listeners: List[OwnerListener] = []
        self._token: Optional[str] = kv.get(AUTH_TOKEN_KEY)
        self._user: Optional[Dict[str, Any]] = self._parse_user(kv.get(AUTH_USER_KEY))
        self._owner = self._derive_owner()
        self._unsubscribe = kv.subscribe(self._on_storage_change)

    @staticmethod
    def _parse_user(raw: Optional[str]) -> Optional[Dict[str, Any]]:
        if not raw:
            return None
        try:
            user = json.loads(raw)
        except ValueError:
            logger.debug("Discarding unparseable %s blob", AUTH_USER_KEY)
            return None
        if not isinstance(user, dict) or not user.get("key"):
            return None
        return user

    def _derive_owner(self) -> Owner:
        if self._token and self._user:
            return Owner(str(self._user["key"]))
        return ANONYMOUS

    @property
    def owner(self) -> Owner:
        return self._owner

    @property
    def token(self) -> Optional[str]:
        return self._token if self._owner.is_authenticated else None

    @property
    def user_name(self) -> str:
        return str((self._user or {}).get("name") or "")

    def login(self, token: str, user_key: str, name: str = "") -> None:
        if not token or not user_key:
            raise ValueError("login needs a token and a user key")
        self._token = token
        self._user = {"key": user_key, "name": name}
        self._kv.set(AUTH_TOKEN_KEY, token, origin=self)
        self._kv.set(AUTH_USER_KEY, json.dumps(self._user), origin=self)
        self._update_owner()

    def logout(self) -> None:
        self._token = None
        self._user = None
        self._kv.delete(AUTH_TOKEN_KEY, origin=self)
        self._kv.delete(AUTH_USER_KEY, origin=self)
        self._update_owner()

    def subscribe(self, listener: OwnerListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def close(self) -> None:
        self._unsubscribe()

    def _update_owner(self) -> None:
        owner = self._derive_owner()
        if owner == self._owner:
            return
        previous, self._owner = self._owner, owner
        logger.info("Owner changed %s -> %s", previous.scope, owner.scope)
        for listener in list(self._listeners):
            listener(owner)

    def _on_storage_change(self, key: str, value: Optional[str], origin: Any) -> None:
        if origin is self:
            return
        if key == AUTH_TOKEN_KEY:
            self._token = value
        elif key == AUTH_USER_KEY:
            self._user = self._parse_user(value)
        else:
            return
        self._update_owner()


class SessionTransitionHandler:
    """
    Re-points every store when the owner changes: the store drops its
    overlay, switches its storage scope and, when a user is now signed in,
    fetches a fresh snapshot.
    """

    def __init__(self, session: Session, stores: Iterable[Any]):
        self.session = session
        self.stores = list(stores)
        self._unsubscribe = session.subscribe(self.on_owner_change)

    def on_owner_change(self, owner: Owner) -> None:
        for store in self.stores:
            try:
                store.switch_owner(owner)
            except Exception as e:
                logger.exception(
                    "Failed to switch %s to %s: %s",
                    getattr(store, "collection", store), owner.scope, e,
                )

    def close(self) -> None:
        self._unsubscribe()
