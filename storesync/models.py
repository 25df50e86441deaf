# storesync/models.py
import datetime
import hashlib
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional

import pytz

from .ids import ResourceId, normalize

DEFAULT_VARIANT = "#000"
ANONYMOUS_SCOPE = "guest"

PAYMENT_METHODS = ("cod", "online")

# Timeline order; "cancelled" sits outside it.
ORDER_STATUSES = ("placed", "confirmed", "shipped", "out_for_delivery", "delivered")
CANCELLED = "cancelled"


def now_utc() -> datetime.datetime:
    return datetime.datetime.now(tz=pytz.UTC)


def to_iso(ts: datetime.datetime) -> str:
    if ts.tzinfo is None:
        ts = pytz.UTC.localize(ts)
    return ts.isoformat()


def from_iso(value: str) -> datetime.datetime:
    ts = datetime.datetime.fromisoformat(value)
    if ts.tzinfo is None:
        ts = pytz.UTC.localize(ts)
    return ts


@dataclass(frozen=True)
class Owner:
    """
    Whoever currently holds the collections: the anonymous browser scope
    (user_key None) or an authenticated user.
    """
    user_key: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        return self.user_key is not None

    @property
    def scope(self) -> str:
        if self.user_key is None:
            return ANONYMOUS_SCOPE
        digest = hashlib.sha1(self.user_key.encode("utf-8")).hexdigest()
        return f"user-{digest[:16]}"


ANONYMOUS = Owner()


@dataclass(frozen=True)
class ProductDetails:
    name: str = ""
    unit_price: float = 0.0
    reference_price: Optional[float] = None
    image: str = ""


@dataclass(frozen=True)
class CartLine:
    """
    One cart row. A line is identified by (resource_id, variant); prices are
    plain currency units as shown to the shopper.
    """
    resource_id: ResourceId
    name: str = ""
    unit_price: float = 0.0
    reference_price: float = 0.0
    image: str = ""
    variant: str = DEFAULT_VARIANT
    quantity: int = 1

    @property
    def key(self) -> tuple:
        return (self.resource_id, self.variant)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "resource_id": self.resource_id,
            "name": self.name,
            "unit_price": self.unit_price,
            "reference_price": self.reference_price,
            "image": self.image,
            "variant": self.variant,
            "quantity": self.quantity,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CartLine":
        quantity = int(data["quantity"])
        if quantity < 1:
            raise ValueError(f"cart line quantity must be >= 1, got {quantity}")
        unit_price = float(data.get("unit_price") or 0.0)
        reference = data.get("reference_price")
        return cls(
            resource_id=normalize(data["resource_id"]),
            name=str(data.get("name") or ""),
            unit_price=unit_price,
            reference_price=float(reference) if reference is not None else unit_price,
            image=str(data.get("image") or ""),
            variant=str(data.get("variant") or DEFAULT_VARIANT),
            quantity=quantity,
        )


@dataclass(frozen=True)
class DeliveryAddress:
    full_name: str
    phone: str
    email: str = ""
    address_line1: str = ""
    address_line2: str = ""
    city: str = ""
    state: str = ""
    pincode: str = ""
    landmark: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "full_name": self.full_name,
            "phone": self.phone,
            "email": self.email,
            "address_line1": self.address_line1,
            "address_line2": self.address_line2,
            "city": self.city,
            "state": self.state,
            "pincode": self.pincode,
            "landmark": self.landmark,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DeliveryAddress":
        return cls(
            full_name=str(data["full_name"]),
            phone=str(data["phone"]),
            email=str(data.get("email") or ""),
            address_line1=str(data.get("address_line1") or ""),
            address_line2=str(data.get("address_line2") or ""),
            city=str(data.get("city") or ""),
            state=str(data.get("state") or ""),
            pincode=str(data.get("pincode") or ""),
            landmark=str(data.get("landmark") or ""),
        )


@dataclass(frozen=True)
class SavedAddress:
    address_id: ResourceId
    address: DeliveryAddress
    label: str = "Home"
    is_default: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "address_id": self.address_id,
            "label": self.label,
            "is_default": self.is_default,
            "address": self.address.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SavedAddress":
        return cls(
            address_id=normalize(data["address_id"]),
            address=DeliveryAddress.from_dict(data["address"]),
            label=str(data.get("label") or "Home"),
            is_default=bool(data.get("is_default", False)),
        )


@dataclass(frozen=True)
class TrackingEvent:
    status: str
    label: str
    description: str
    timestamp: datetime.datetime
    completed: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status,
            "label": self.label,
            "description": self.description,
            "timestamp": to_iso(self.timestamp),
            "completed": self.completed,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TrackingEvent":
        return cls(
            status=str(data["status"]),
            label=str(data.get("label") or ""),
            description=str(data.get("description") or ""),
            timestamp=from_iso(data["timestamp"]),
            completed=bool(data.get("completed", False)),
        )


@dataclass
class Order:
    """
    A placed order. Items and address are copies taken at placement time;
    only status, payment and tracking fields change afterwards.
    """
    order_id: str
    items: List[CartLine]
    address: DeliveryAddress
    total: float
    payment_method: str
    placed_at: datetime.datetime
    estimated_delivery: datetime.datetime
    status: str = "placed"
    payment_status: str = "pending"
    payment_reference: str = ""
    tracking_events: List[TrackingEvent] = field(default_factory=list)

    def snapshot(self) -> "Order":
        return replace(
            self,
            items=list(self.items),
            tracking_events=list(self.tracking_events),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "order_id": self.order_id,
            "items": [it.to_dict() for it in self.items],
            "address": self.address.to_dict(),
            "total": self.total,
            "payment_method": self.payment_method,
            "placed_at": to_iso(self.placed_at),
            "estimated_delivery": to_iso(self.estimated_delivery),
            "status": self.status,
            "payment_status": self.payment_status,
            "payment_reference": self.payment_reference,
            "tracking_events": [ev.to_dict() for ev in self.tracking_events],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Order":
        return cls(
            order_id=str(data["order_id"]),
            items=[CartLine.from_dict(it) for it in data["items"]],
            address=DeliveryAddress.from_dict(data["address"]),
            total=float(data["total"]),
            payment_method=str(data["payment_method"]),
            placed_at=from_iso(data["placed_at"]),
            estimated_delivery=from_iso(data["estimated_delivery"]),
            status=str(data.get("status") or "placed"),
            payment_status=str(data.get("payment_status") or "pending"),
            payment_reference=str(data.get("payment_reference") or ""),
            tracking_events=[
                TrackingEvent.from_dict(ev) for ev in data.get("tracking_events") or []
            ],
        )
