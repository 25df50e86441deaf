# storesync/cart.py
from dataclasses import replace
from typing import Any, Dict, List, Optional

from .ids import RawId, normalize
from .logger import get_logger
from .models import DEFAULT_VARIANT, CartLine, ProductDetails
from .resource_store import DualModeStore

logger = get_logger(__name__)


class CartStore(DualModeStore):
    """
    Shopping cart. Lines merge on (resource id, variant); quantities below
    one remove the line.
    """

    collection = "cart"

    def key_of(self, entry: CartLine) -> tuple:
        return entry.key

    def encode(self, entry: CartLine) -> Dict[str, Any]:
        return entry.to_dict()

    def decode(self, raw: Dict[str, Any]) -> CartLine:
        return CartLine.from_dict(raw)

    @property
    def lines(self) -> List[CartLine]:
        return self.items()

    def get_line(self, resource_id: RawId, variant: str = DEFAULT_VARIANT) -> Optional[CartLine]:
        return self.find((normalize(resource_id), variant))

    @property
    def count(self) -> int:
        return sum(line.quantity for line in self.items())

    @property
    def total(self) -> float:
        return sum(line.unit_price * line.quantity for line in self.items())

    def add(
        self,
        resource_id: RawId,
        variant: str = DEFAULT_VARIANT,
        quantity: int = 1,
        details: Optional[ProductDetails] = None,
    ) -> CartLine:
        if quantity < 1:
            raise ValueError(f"quantity to add must be >= 1, got {quantity}")
        rid = normalize(resource_id)
        existing = self.find((rid, variant))
        if existing is not None:
            line = replace(existing, quantity=existing.quantity + quantity)
            logger.debug("Cart line %s/%s now x%d", rid, variant, line.quantity)
        else:
            details = details or ProductDetails()
            reference = details.reference_price
            line = CartLine(
                resource_id=rid,
                name=details.name,
                unit_price=details.unit_price,
                reference_price=reference if reference is not None else details.unit_price,
                image=details.image,
                variant=variant,
                quantity=quantity,
            )
            logger.debug("Cart line %s/%s added x%d", rid, variant, quantity)
        self._upsert(line.key, line)
        if self.authenticated:
            self._send(f"add {rid}", self._client.add, rid, quantity)
        return line

    def _remote_quantity(self, rid: str) -> int:
        # the remote cart holds one row per product across all variants
        return sum(line.quantity for line in self.items() if line.resource_id == rid)

    def remove(self, resource_id: RawId, variant: str = DEFAULT_VARIANT) -> None:
        rid = normalize(resource_id)
        if self.find((rid, variant)) is None:
            return
        self._discard((rid, variant))
        if not self.authenticated:
            return
        remaining = self._remote_quantity(rid)
        if remaining:
            self._send(f"update {rid}", self._client.update, rid, remaining)
        else:
            self._send(f"remove {rid}", self._client.remove, rid)

    def update_quantity(self, resource_id: RawId, variant: str, quantity: int) -> None:
        if quantity < 1:
            self.remove(resource_id, variant)
            return
        rid = normalize(resource_id)
        existing = self.find((rid, variant))
        if existing is None or existing.quantity == quantity:
            return
        self._upsert(existing.key, replace(existing, quantity=quantity))
        if self.authenticated:
            self._send(f"update {rid}", self._client.update, rid, self._remote_quantity(rid))

    def clear(self) -> None:
        if not self.authenticated:
            if self._local:
                self._store_local([])
            return
        # no bulk endpoint: one remove per line
        for line in self.items():
            self.remove(line.resource_id, line.variant)
