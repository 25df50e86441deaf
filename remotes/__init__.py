# remotes/__init__.py
from . import address
from . import cart
from . import orders
from . import wishlist
from .base import REMOTE_MAX_ATTEMPTS, build_session

CLIENTS = {
    "cart": cart.CartClient,
    "wishlist": wishlist.WishlistClient,
    "addresses": address.AddressClient,
    "orders": orders.OrderClient,
}


def build_clients(base_url, http=None, max_attempts=REMOTE_MAX_ATTEMPTS):
    """One client per collection, all sharing the same HTTP session."""
    http = http or build_session()
    return {
        name: cls(base_url, http=http, max_attempts=max_attempts)
        for name, cls in CLIENTS.items()
    }
