# storesync/app.py
from typing import Dict, Optional

import requests

from remotes import build_clients
from remotes.base import API_BASE_URL, REMOTE_MAX_ATTEMPTS

from .addresses import AddressBook
from .cart import CartStore
from .dispatch import BackgroundQueue
from .logger import get_logger
from .orders import OrderHistory, checkout
from .session import Session, SessionTransitionHandler
from .storage import SqliteKeyValueStore
from .wishlist import WishlistStore

logger = get_logger(__name__)


class Storefront:
    """
    Application root. Builds one of everything and hands the pieces to each
    other by reference; view code holds on to this object.
    """

    def __init__(
        self,
        kv: SqliteKeyValueStore,
        base_url: str = API_BASE_URL,
        http: Optional[requests.Session] = None,
        clients: Optional[Dict[str, object]] = None,
        max_attempts: int = REMOTE_MAX_ATTEMPTS,
    ):
        self.kv = kv
        self.session = Session(kv)
        self.queue = BackgroundQueue()
        if clients is None:
            clients = build_clients(base_url, http=http, max_attempts=max_attempts)

        def credentials():
            return self.session.token

        self.cart = CartStore(kv, clients["cart"], self.queue, credentials)
        self.wishlist = WishlistStore(kv, clients["wishlist"], self.queue, credentials)
        self.addresses = AddressBook(kv, clients["addresses"], self.queue, credentials)
        self.orders = OrderHistory(kv, clients["orders"], self.queue, credentials)
        self.transitions = SessionTransitionHandler(
            self.session,
            [self.cart, self.wishlist, self.addresses, self.orders],
        )
        if self.session.owner.is_authenticated:
            # restored session: stores start anonymous, move them over
            self.transitions.on_owner_change(self.session.owner)

    def login(self, token: str, user_key: str, name: str = "") -> None:
        self.session.login(token, user_key, name)

    def logout(self) -> None:
        self.session.logout()

    def refresh_all(self) -> Dict[str, bool]:
        results = {}
        for store in self.transitions.stores:
            results[store.collection] = store.refresh()
        return results

    def checkout(self, payment_method: str = "cod", address_id=None, placed_at=None):
        return checkout(
            self.cart, self.addresses, self.orders,
            payment_method=payment_method,
            address_id=address_id,
            placed_at=placed_at,
        )

    def close(self) -> None:
        self.transitions.close()
        for store in self.transitions.stores:
            store.close()
        self.session.close()
