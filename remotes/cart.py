# remotes/cart.py
from typing import Any, Dict, List, Optional

from storesync.ids import normalize
from storesync.logger import get_logger
from storesync.models import DEFAULT_VARIANT, CartLine

from .base import ResourceClient, response_items

logger = get_logger(__name__)


def line_from_api(item: Dict[str, Any]) -> CartLine:
    """
    Map a remote cart row ({product, quantity}) to a CartLine. The remote
    cart has no variant dimension, so every line carries DEFAULT_VARIANT.
    """
    product = item["product"]
    price = float(product["price"])
    sale_price = product.get("salePrice")
    return CartLine(
        resource_id=normalize(product["_id"]),
        name=str(product.get("name") or ""),
        unit_price=float(sale_price) if sale_price is not None else price,
        reference_price=price,
        image=str(product.get("image") or ""),
        variant=DEFAULT_VARIANT,
        quantity=int(item["quantity"]),
    )


class CartClient(ResourceClient):
    def list(self, token: Optional[str]) -> List[CartLine]:
        rows = response_items(self._get("/cart", token), "/cart")
        lines: List[CartLine] = []
        for row in rows:
            try:
                line = line_from_api(row)
            except (KeyError, TypeError, ValueError) as e:
                logger.debug("Skipping malformed cart row %s: %s", row, e)
                continue
            if line.quantity >= 1:
                lines.append(line)
        return lines

    def add(self, resource_id: str, quantity: int, token: Optional[str]) -> Any:
        return self._write(
            "POST", "/cart/add", token,
            {"productId": resource_id, "quantity": quantity},
        )

    def update(self, resource_id: str, quantity: int, token: Optional[str]) -> Any:
        return self._write(
            "PUT", "/cart/update", token,
            {"productId": resource_id, "quantity": quantity},
        )

    def remove(self, resource_id: str, token: Optional[str]) -> Any:
        return self._write("DELETE", "/cart/remove", token, {"productId": resource_id})
