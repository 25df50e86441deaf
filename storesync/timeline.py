# storesync/timeline.py
import datetime
from typing import List, Optional

from .models import TrackingEvent

DELIVERY_DAYS = 5

# (status, label, description, offset from placement, completed at creation)
_STAGES = (
    ("placed", "Order Placed",
     "Your order has been placed successfully.",
     datetime.timedelta(0), True),
    ("confirmed", "Confirmed",
     "The seller has confirmed your order.",
     datetime.timedelta(hours=2), True),
    ("shipped", "Shipped",
     "Your order has left the warehouse.",
     datetime.timedelta(days=1), False),
    ("out_for_delivery", "Out for Delivery",
     "Your order is out for delivery today.",
     datetime.timedelta(days=4), False),
    ("delivered", "Delivered",
     "Your order has been delivered.",
     datetime.timedelta(days=DELIVERY_DAYS), False),
)


def build_timeline(placed_at: datetime.datetime) -> List[TrackingEvent]:
    """
    The five tracking events for an order placed at placed_at. Orders are
    confirmed on placement, so the first two events start completed.
    """
    return [
        TrackingEvent(
            status=status,
            label=label,
            description=description,
            timestamp=placed_at + offset,
            completed=completed,
        )
        for status, label, description, offset, completed in _STAGES
    ]


def estimated_delivery(placed_at: datetime.datetime) -> datetime.datetime:
    return placed_at + datetime.timedelta(days=DELIVERY_DAYS)


def current_event_index(events: List[TrackingEvent]) -> Optional[int]:
    for idx in range(len(events) - 1, -1, -1):
        if events[idx].completed:
            return idx
    return None


def delivery_countdown(estimated: datetime.datetime, today: datetime.date) -> str:
    days = (estimated.date() - today).days
    if days == 0:
        return "Today"
    if days == 1:
        return "Tomorrow"
    if days > 1:
        return f"In {days} days"
    return "Delayed"
