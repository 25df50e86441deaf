# remotes/address.py
import os
from typing import Any, Dict, List, Optional

from storesync.ids import normalize
from storesync.logger import get_logger
from storesync.models import DeliveryAddress, SavedAddress

from .base import ResourceClient, response_items

logger = get_logger(__name__)

ADDRESS_PAGE_LIMIT = int(os.getenv("ADDRESS_PAGE_LIMIT", "20"))

# local field -> remote field
_FIELD_MAP = {
    "full_name": "full_name",
    "phone": "mobile_number",
    "email": "email_address",
    "address_line1": "address_line_1",
    "address_line2": "address_line_2",
    "city": "city",
    "state": "state",
    "pincode": "pincode",
    "landmark": "landmark",
}


def address_from_api(row: Dict[str, Any]) -> SavedAddress:
    return SavedAddress(
        address_id=normalize(row["_id"]),
        address=DeliveryAddress(
            full_name=str(row["full_name"]),
            phone=str(row["mobile_number"]),
            email=str(row.get("email_address") or ""),
            address_line1=str(row.get("address_line_1") or ""),
            address_line2=str(row.get("address_line_2") or ""),
            city=str(row.get("city") or ""),
            state=str(row.get("state") or ""),
            pincode=str(row.get("pincode") or ""),
            landmark=str(row.get("landmark") or ""),
        ),
        label=str(row.get("address_type") or "Home"),
        is_default=bool(row.get("is_default", False)),
    )


def address_to_api(
    address: Optional[DeliveryAddress] = None,
    label: Optional[str] = None,
    is_default: Optional[bool] = None,
) -> Dict[str, Any]:
    """Request body for add/update; fields left as None are omitted."""
    body: Dict[str, Any] = {}
    if address is not None:
        values = address.to_dict()
        for local, remote in _FIELD_MAP.items():
            body[remote] = values[local]
    if label is not None:
        body["address_type"] = label
    if is_default is not None:
        body["is_default"] = is_default
    return body


class AddressClient(ResourceClient):
    def list(self, token: Optional[str]) -> List[SavedAddress]:
        out: List[SavedAddress] = []
        page = 1
        while True:
            payload = self._get(
                "/address/list", token,
                params={"page": page, "limit": ADDRESS_PAGE_LIMIT},
            )
            rows = response_items(payload, "/address/list")
            for row in rows:
                try:
                    out.append(address_from_api(row))
                except (KeyError, TypeError, ValueError) as e:
                    logger.debug("Skipping malformed address row %s: %s", row, e)
            total = payload.get("total")
            if not rows or not isinstance(total, int) or page * ADDRESS_PAGE_LIMIT >= total:
                break
            page += 1
        return out

    def add(self, saved: SavedAddress, token: Optional[str]) -> Any:
        body = address_to_api(saved.address, saved.label, saved.is_default)
        return self._write("POST", "/address/add", token, body)

    def update(self, address_id: str, fields: Dict[str, Any], token: Optional[str]) -> Any:
        return self._write("PUT", f"/address/update/{address_id}", token, fields)

    def remove(self, address_id: str, token: Optional[str]) -> Any:
        return self._write("DELETE", f"/address/delete/{address_id}", token)
