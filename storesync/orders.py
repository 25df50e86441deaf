# storesync/orders.py
import datetime
import time
import uuid
from dataclasses import replace
from typing import Any, Dict, List, Optional

from remotes.base import RemoteError

from .ids import RawId, normalize
from .logger import get_logger
from .models import (
    CANCELLED,
    ORDER_STATUSES,
    PAYMENT_METHODS,
    CartLine,
    DeliveryAddress,
    Order,
    now_utc,
)
from .resource_store import SingleModeStore
from .timeline import build_timeline, estimated_delivery

logger = get_logger(__name__)


class CheckoutError(Exception):
    """A foreground checkout step did not succeed; nothing was recorded."""


def _local_order_id() -> str:
    return f"ORD-{int(time.time() * 1000)}-{uuid.uuid4().hex[:4].upper()}"


class OrderHistory(SingleModeStore):
    """
    The owner's placed orders, newest first. Orders are never deleted; only
    their status, payment and tracking fields change after placement.
    """

    collection = "orders"

    def key_of(self, entry: Order) -> str:
        return entry.order_id

    def encode(self, entry: Order) -> Dict[str, Any]:
        return entry.to_dict()

    def decode(self, raw: Dict[str, Any]) -> Order:
        return Order.from_dict(raw)

    @property
    def orders(self) -> List[Order]:
        return [o.snapshot() for o in self.items()]

    def get_by_id(self, order_id: RawId) -> Optional[Order]:
        found = self.find(normalize(order_id))
        return found.snapshot() if found is not None else None

    def place_order(
        self,
        lines: List[CartLine],
        address: DeliveryAddress,
        payment_method: str,
        total: Optional[float] = None,
        placed_at: Optional[datetime.datetime] = None,
        address_id: Optional[str] = None,
    ) -> Order:
        """
        Record a new order. When signed in, the remote order service must
        accept it first; its order id is used and a refusal raises
        CheckoutError with nothing recorded.
        """
        if payment_method not in PAYMENT_METHODS:
            raise ValueError(f"unknown payment method {payment_method!r}")
        items = list(lines)
        if not items:
            raise ValueError("an order needs at least one line")
        if total is None:
            total = sum(line.unit_price * line.quantity for line in items)
        placed_at = placed_at or now_utc()

        order_id = _local_order_id()
        if self.authenticated:
            try:
                remote = self._client.create(address_id or "", items, self._credentials())
            except RemoteError as e:
                logger.error("Order submission failed: %s", e)
                raise CheckoutError(str(e)) from e
            order_id = str(remote.get("orderId") or remote.get("_id"))

        order = Order(
            order_id=order_id,
            items=items,
            address=address,
            total=total,
            payment_method=payment_method,
            placed_at=placed_at,
            estimated_delivery=estimated_delivery(placed_at),
            tracking_events=build_timeline(placed_at),
        )
        self._store_local([order] + self.items())
        logger.info("Placed order %s (%d lines, total %.2f).", order_id, len(items), total)
        return order.snapshot()

    def _replace(self, order: Order) -> None:
        self._store_local([
            order if o.order_id == order.order_id else o for o in self.items()
        ])

    def _require(self, order_id: RawId) -> Order:
        order = self.find(normalize(order_id))
        if order is None:
            raise ValueError(f"unknown order {order_id}")
        return order

    def update_status(
        self,
        order_id: RawId,
        status: str,
        at: Optional[datetime.datetime] = None,
    ) -> Order:
        """
        Apply a status change. Tracking events up to and including the new
        status are marked completed; the timeline itself is not rebuilt.
        Statuses only move forward.
        """
        order = self._require(order_id).snapshot()
        if status == CANCELLED:
            order.status = CANCELLED
        elif status in ORDER_STATUSES:
            reached = ORDER_STATUSES.index(status)
            if order.status in ORDER_STATUSES and reached < ORDER_STATUSES.index(order.status):
                raise ValueError(
                    f"order {order.order_id} is already {order.status}; cannot go back to {status}"
                )
            events = []
            for ev in order.tracking_events:
                if ev.status in ORDER_STATUSES and ORDER_STATUSES.index(ev.status) <= reached:
                    stamp = at if (at is not None and ev.status == status) else ev.timestamp
                    ev = replace(ev, completed=True, timestamp=stamp)
                events.append(ev)
            order.tracking_events = events
            order.status = status
        else:
            raise ValueError(f"unknown order status {status!r}")
        self._replace(order)
        return order.snapshot()

    def confirm_payment(self, order_id: RawId, payment_reference: str) -> Order:
        order = self._require(order_id).snapshot()
        order.payment_status = "paid"
        order.payment_reference = payment_reference
        if order.status == "placed":
            order.status = "confirmed"
        self._replace(order)
        logger.info("Payment confirmed for order %s.", order.order_id)
        return order.snapshot()


def checkout(
    cart,
    addresses,
    history: OrderHistory,
    payment_method: str = "cod",
    address_id: Optional[RawId] = None,
    placed_at: Optional[datetime.datetime] = None,
) -> Order:
    """
    Turn the cart into an order for the chosen (or default) address, then
    empty the cart. The cart is left untouched when the order is refused.
    """
    lines = cart.lines
    if not lines:
        raise CheckoutError("cart is empty")
    saved = addresses.get_by_id(address_id) if address_id is not None else addresses.get_default()
    if saved is None:
        raise CheckoutError("no delivery address selected")
    order = history.place_order(
        lines,
        saved.address,
        payment_method,
        total=cart.total,
        placed_at=placed_at,
        address_id=saved.address_id,
    )
    cart.clear()
    return order
