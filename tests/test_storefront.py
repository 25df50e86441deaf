from __future__ import annotations

import datetime
import json

import pytz

import storefront as sync_main
from storesync.app import Storefront
from storesync.models import DeliveryAddress, Owner, SavedAddress
from storesync.session import AUTH_TOKEN_KEY, AUTH_USER_KEY

HOME = DeliveryAddress(full_name="Asha Rao", phone="9000000001", city="Pune", pincode="411001")
PLACED = datetime.datetime(2024, 3, 1, tzinfo=pytz.UTC)


def sign_in_elsewhere(kv, user_key: str = "alice", token: str = "tok") -> None:
    kv.set(AUTH_TOKEN_KEY, token, origin="other-tab")
    kv.set(AUTH_USER_KEY, json.dumps({"key": user_key, "name": user_key.title()}), origin="other-tab")


def test_login_moves_every_store_to_the_user(storefront: Storefront, cart_service, wishlist_service) -> None:
    storefront.cart.add("guest-item", "red")
    cart_service.seed("p1")
    wishlist_service.ids = ["w1"]

    storefront.login("tok", "alice", "Alice")

    assert storefront.session.owner == Owner("alice")
    assert [line.resource_id for line in storefront.cart.lines] == ["p1"]
    assert storefront.wishlist.ids == ["w1"]
    assert storefront.addresses.owner == Owner("alice")
    assert storefront.orders.owner == Owner("alice")


def test_logout_brings_back_guest_state(storefront: Storefront, cart_service) -> None:
    storefront.cart.add("guest-item", "red")
    storefront.wishlist.add("guest-wish")
    storefront.login("tok", "alice")
    storefront.cart.add("member-item")

    storefront.logout()

    assert [line.resource_id for line in storefront.cart.lines] == ["guest-item"]
    assert storefront.wishlist.ids == ["guest-wish"]
    assert len(storefront.cart.overlay) == 0


def test_queued_call_keeps_the_token_it_was_issued_with(storefront: Storefront, cart_service) -> None:
    storefront.login("tok-alice", "alice")
    storefront.cart.add("p1")
    storefront.logout()

    storefront.queue.drain()

    assert cart_service.calls[-1] == ("add", "p1", 1)
    assert cart_service.tokens[-1] == "tok-alice"
    assert storefront.queue.failures == 0


def test_restored_session_loads_remote_state(kv, services, cart_service) -> None:
    cart_service.seed("p1", quantity=2)
    sign_in_elsewhere(kv)

    app = Storefront(kv, clients=services)

    assert app.session.token == "tok"
    assert app.cart.get_line("p1").quantity == 2
    app.close()


def test_login_in_another_tab_switches_stores(kv, storefront: Storefront, cart_service) -> None:
    cart_service.seed("p1")

    sign_in_elsewhere(kv, "bob")

    assert storefront.session.owner == Owner("bob")
    assert [line.resource_id for line in storefront.cart.lines] == ["p1"]


def test_refresh_all_reports_per_collection(storefront: Storefront, cart_service) -> None:
    storefront.login("tok", "alice")
    cart_service.fail_list = True

    results = storefront.refresh_all()

    assert results == {"cart": False, "wishlist": True, "addresses": True, "orders": True}


def test_checkout_uses_default_address(storefront: Storefront, address_service, order_service) -> None:
    address_service.addresses = [SavedAddress("r1", HOME, is_default=True)]
    storefront.login("tok", "alice")
    storefront.cart.add("p1", quantity=2)

    order = storefront.checkout("online", placed_at=PLACED)

    assert order.order_id == "SRV-1"
    assert order_service.calls == [("create", "r1", 1)]
    assert storefront.cart.lines == []


class TestSyncLoop:
    def test_sync_cycle_flushes_then_refreshes(self, storefront: Storefront, cart_service) -> None:
        storefront.login("tok", "alice")
        storefront.cart.add("p2", quantity=3)

        results = sync_main.sync_cycle(storefront)

        assert all(results.values())
        assert len(storefront.queue) == 0
        assert len(storefront.cart.overlay) == 0
        assert storefront.cart.get_line("p2").quantity == 3

    def test_summarize(self, storefront: Storefront) -> None:
        storefront.cart.add("p1", quantity=2)
        storefront.addresses.add(HOME)

        summary = sync_main.summarize(storefront)

        assert summary["owner"] == "guest"
        assert summary["cart_count"] == 2
        assert summary["addresses"] == 1
        assert summary["default_address"] is not None
        assert summary["background_failures"] == 0

    def test_run_once_exit_code(self, monkeypatch, kv, services, cart_service) -> None:
        sign_in_elsewhere(kv)
        cart_service.fail_list = True
        monkeypatch.setattr(sync_main, "build_storefront", lambda: Storefront(kv, clients=services))

        assert sync_main.run_once() == 1

        cart_service.fail_list = False
        assert sync_main.run_once() == 0
