# remotes/wishlist.py
from typing import Any, List, Optional

from storesync.ids import ResourceId, normalize
from storesync.logger import get_logger

from .base import ResourceClient, response_items

logger = get_logger(__name__)


class WishlistClient(ResourceClient):
    def list(self, token: Optional[str]) -> List[ResourceId]:
        rows = response_items(self._get("/wishlist", token), "/wishlist")
        ids: List[ResourceId] = []
        for row in rows:
            if not isinstance(row, dict) or row.get("_id") is None:
                logger.debug("Skipping malformed wishlist row %s", row)
                continue
            rid = normalize(row["_id"])
            if rid not in ids:
                ids.append(rid)
        return ids

    def add(self, resource_id: str, token: Optional[str]) -> Any:
        return self._write("POST", "/wishlist/add", token, {"productId": resource_id})

    def remove(self, resource_id: str, token: Optional[str]) -> Any:
        return self._write("DELETE", "/wishlist/remove", token, {"productId": resource_id})
