"""Shared fixtures: a real SQLite key-value store and in-memory remote services."""

from __future__ import annotations

from dataclasses import replace

import pytest

from remotes.base import RemoteError
from storesync.app import Storefront
from storesync.dispatch import BackgroundQueue
from storesync.models import DEFAULT_VARIANT, CartLine
from storesync.storage import SqliteKeyValueStore


class FakeRemote:
    """Records calls; raises RemoteError when told to fail."""

    def __init__(self) -> None:
        self.calls: list[tuple] = []
        self.tokens: list = []
        self.fail_list = False
        self.fail_writes = False

    def _record(self, name: str, token, *args) -> None:
        self.calls.append((name, *args))
        self.tokens.append(token)
        if name == "list" and self.fail_list:
            raise RemoteError("list unavailable")
        if name != "list" and self.fail_writes:
            raise RemoteError(f"{name} rejected")
        if token is None:
            raise RemoteError("no bearer token")


class FakeCartService(FakeRemote):
    def __init__(self) -> None:
        super().__init__()
        self.lines: dict[str, CartLine] = {}

    def list(self, token):
        self._record("list", token)
        return list(self.lines.values())

    def add(self, resource_id, quantity, token):
        self._record("add", token, resource_id, quantity)
        existing = self.lines.get(resource_id)
        if existing is None:
            self.lines[resource_id] = CartLine(resource_id=resource_id, quantity=quantity)
        else:
            self.lines[resource_id] = replace(existing, quantity=existing.quantity + quantity)

    def update(self, resource_id, quantity, token):
        self._record("update", token, resource_id, quantity)
        self.lines[resource_id] = replace(self.lines[resource_id], quantity=quantity)

    def remove(self, resource_id, token):
        self._record("remove", token, resource_id)
        self.lines.pop(resource_id, None)

    def seed(self, resource_id: str, quantity: int = 1, unit_price: float = 10.0) -> None:
        self.lines[resource_id] = CartLine(
            resource_id=resource_id,
            unit_price=unit_price,
            reference_price=unit_price,
            variant=DEFAULT_VARIANT,
            quantity=quantity,
        )


class FakeWishlistService(FakeRemote):
    def __init__(self) -> None:
        super().__init__()
        self.ids: list[str] = []

    def list(self, token):
        self._record("list", token)
        return list(self.ids)

    def add(self, resource_id, token):
        self._record("add", token, resource_id)
        if resource_id not in self.ids:
            self.ids.append(resource_id)

    def remove(self, resource_id, token):
        self._record("remove", token, resource_id)
        if resource_id in self.ids:
            self.ids.remove(resource_id)


class FakeAddressService(FakeRemote):
    def __init__(self) -> None:
        super().__init__()
        self.addresses: list = []

    def list(self, token):
        self._record("list", token)
        return list(self.addresses)

    def add(self, saved, token):
        self._record("add", token, saved.address_id)

    def update(self, address_id, fields, token):
        self._record("update", token, address_id, fields)

    def remove(self, address_id, token):
        self._record("remove", token, address_id)


class FakeOrderService(FakeRemote):
    def __init__(self) -> None:
        super().__init__()
        self.next_id = "SRV-1"

    def create(self, address_id, items, token):
        self._record("create", token, address_id, len(items))
        return {"orderId": self.next_id}


@pytest.fixture
def kv(tmp_path) -> SqliteKeyValueStore:
    return SqliteKeyValueStore(str(tmp_path / "state.sqlite3"))


@pytest.fixture
def queue() -> BackgroundQueue:
    return BackgroundQueue()


@pytest.fixture
def cart_service() -> FakeCartService:
    return FakeCartService()


@pytest.fixture
def wishlist_service() -> FakeWishlistService:
    return FakeWishlistService()


@pytest.fixture
def address_service() -> FakeAddressService:
    return FakeAddressService()


@pytest.fixture
def order_service() -> FakeOrderService:
    return FakeOrderService()


@pytest.fixture
def services(cart_service, wishlist_service, address_service, order_service) -> dict:
    return {
        "cart": cart_service,
        "wishlist": wishlist_service,
        "addresses": address_service,
        "orders": order_service,
    }


@pytest.fixture
def storefront(kv, services):
    app = Storefront(kv, clients=services)
    yield app
    app.close()
