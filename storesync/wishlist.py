# storesync/wishlist.py
from typing import List

from .ids import RawId, ResourceId, normalize
from .resource_store import DualModeStore


class WishlistStore(DualModeStore):
    collection = "wishlist"

    def key_of(self, entry: ResourceId) -> ResourceId:
        return entry

    def encode(self, entry: ResourceId) -> str:
        return entry

    def decode(self, raw) -> ResourceId:
        if not isinstance(raw, (int, float, str)):
            raise TypeError(f"wishlist entry must be an id, got {type(raw).__name__}")
        return normalize(raw)

    @property
    def ids(self) -> List[ResourceId]:
        return self.items()

    @property
    def count(self) -> int:
        return len(self.items())

    def contains(self, resource_id: RawId) -> bool:
        return self.find(normalize(resource_id)) is not None

    def add(self, resource_id: RawId) -> None:
        rid = normalize(resource_id)
        if self.contains(rid):
            return
        self._upsert(rid, rid)
        if self.authenticated:
            self._send(f"add {rid}", self._client.add, rid)

    def remove(self, resource_id: RawId) -> None:
        rid = normalize(resource_id)
        if not self.contains(rid):
            return
        self._discard(rid)
        if self.authenticated:
            self._send(f"remove {rid}", self._client.remove, rid)

    def toggle(self, resource_id: RawId) -> bool:
        """Flip membership; returns whether the id is present afterwards."""
        if self.contains(resource_id):
            self.remove(resource_id)
            return False
        self.add(resource_id)
        return True

    def clear(self) -> None:
        for rid in self.items():
            self.remove(rid)
