# storesync/addresses.py
import uuid
from dataclasses import replace
from typing import Any, Dict, List, Optional

from remotes.address import address_to_api

from .ids import RawId, ResourceId, normalize
from .logger import get_logger
from .models import DeliveryAddress, SavedAddress
from .resource_store import SingleModeStore

logger = get_logger(__name__)


def _new_address_id() -> ResourceId:
    return ResourceId(f"addr-{uuid.uuid4().hex[:12]}")


def enforce_single_default(addresses: List[SavedAddress]) -> List[SavedAddress]:
    """Keep the first default flag and clear any later ones."""
    out: List[SavedAddress] = []
    seen_default = False
    for addr in addresses:
        if addr.is_default and seen_default:
            addr = replace(addr, is_default=False)
        seen_default = seen_default or addr.is_default
        out.append(addr)
    return out


class AddressBook(SingleModeStore):
    """
    Saved delivery addresses. At most one address is the default at any
    time; the first address saved becomes the default, and deleting the
    default promotes the first remaining address.
    """

    collection = "addresses"

    def key_of(self, entry: SavedAddress) -> ResourceId:
        return entry.address_id

    def encode(self, entry: SavedAddress) -> Dict[str, Any]:
        return entry.to_dict()

    def decode(self, raw: Dict[str, Any]) -> SavedAddress:
        return SavedAddress.from_dict(raw)

    def _load_local(self) -> List[SavedAddress]:
        return enforce_single_default(super()._load_local())

    def fetch_remote(self) -> Optional[List[SavedAddress]]:
        return self._client.list(self._credentials())

    def normalize_snapshot(self, entries: List[SavedAddress]) -> List[SavedAddress]:
        return enforce_single_default(entries)

    @property
    def addresses(self) -> List[SavedAddress]:
        return self.items()

    def get_by_id(self, address_id: RawId) -> Optional[SavedAddress]:
        return self.find(normalize(address_id))

    def get_default(self) -> Optional[SavedAddress]:
        for addr in self.items():
            if addr.is_default:
                return addr
        return None

    def add(self, address: DeliveryAddress, label: str = "Home") -> SavedAddress:
        current = self.items()
        saved = SavedAddress(
            address_id=_new_address_id(),
            address=address,
            label=label,
            is_default=not current,
        )
        self._store_local(current + [saved])
        logger.debug("Saved address %s (%s).", saved.address_id, label)
        if self.authenticated:
            self._send(f"add {saved.address_id}", self._client.add, saved)
        return saved

    def update(
        self,
        address_id: RawId,
        address: Optional[DeliveryAddress] = None,
        label: Optional[str] = None,
    ) -> SavedAddress:
        aid = normalize(address_id)
        current = self.items()
        for idx, existing in enumerate(current):
            if existing.address_id == aid:
                break
        else:
            raise ValueError(f"unknown address {aid}")
        updated = replace(
            existing,
            address=address if address is not None else existing.address,
            label=label if label is not None else existing.label,
        )
        current[idx] = updated
        self._store_local(current)
        if self.authenticated:
            self._send(
                f"update {aid}", self._client.update, aid,
                address_to_api(address, label),
            )
        return updated

    def remove(self, address_id: RawId) -> None:
        aid = normalize(address_id)
        current = self.items()
        target = self.find(aid)
        if target is None:
            return
        remaining = [a for a in current if a.address_id != aid]
        promoted = None
        if target.is_default and remaining:
            promoted = replace(remaining[0], is_default=True)
            remaining[0] = promoted
        self._store_local(remaining)
        if self.authenticated:
            self._send(f"remove {aid}", self._client.remove, aid)
            if promoted is not None:
                self._send(
                    f"promote {promoted.address_id}", self._client.update,
                    promoted.address_id, address_to_api(is_default=True),
                )

    def set_default(self, address_id: RawId) -> SavedAddress:
        aid = normalize(address_id)
        if self.find(aid) is None:
            raise ValueError(f"unknown address {aid}")
        updated = [replace(a, is_default=a.address_id == aid) for a in self.items()]
        self._store_local(updated)
        if self.authenticated:
            self._send(
                f"default {aid}", self._client.update, aid,
                address_to_api(is_default=True),
            )
        return self.find(aid)
