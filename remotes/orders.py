# remotes/orders.py
from typing import Any, Dict, List, Optional

from storesync.models import CartLine

from .base import RemoteError, ResourceClient


class OrderClient(ResourceClient):
    def create(self, address_id: str, items: List[CartLine], token: Optional[str]) -> Dict[str, Any]:
        """
        Submit an order for checkout and return the remote order record.
        Raises RemoteError when the service does not accept it.
        """
        path = "/order/create-razorpay-order"
        payload = self._write(
            "POST", path, token,
            {
                "addressId": address_id,
                "items": [
                    {"productId": line.resource_id, "quantity": line.quantity}
                    for line in items
                ],
            },
        )
        order = (payload.get("data") or {}).get("order") if isinstance(payload, dict) else None
        if not isinstance(order, dict) or not (order.get("orderId") or order.get("_id")):
            raise RemoteError(f"{path}: response carries no order")
        return order
