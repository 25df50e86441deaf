# storesync/overlay.py
from typing import Any, Callable, Dict, Hashable, List, Optional, Set

from .logger import get_logger

logger = get_logger(__name__)

ADD = "add"
REMOVE = "remove"


class OptimisticOverlay:
    """
    Mutations issued against the remote service but not yet seen in a
    snapshot. The effective collection is (snapshot + pending adds) minus
    pending removes; the whole overlay is dropped whenever a fresh snapshot
    arrives.
    """

    def __init__(self):
        self._adds: Dict[Hashable, Any] = {}
        self._removes: Set[Hashable] = set()

    def record_pending(self, op: str, key: Hashable, item: Optional[Any] = None) -> None:
        if op == ADD:
            if item is None:
                raise ValueError("pending add needs the item it adds")
            self._removes.discard(key)
            # re-insert so issue order is kept for appended entries
            self._adds.pop(key, None)
            self._adds[key] = item
        elif op == REMOVE:
            self._adds.pop(key, None)
            self._removes.add(key)
        else:
            raise ValueError(f"unknown overlay op {op!r}")

    def apply(self, snapshot: List[Any], key_of: Callable[[Any], Hashable]) -> List[Any]:
        effective: List[Any] = []
        seen: Set[Hashable] = set()
        for entry in snapshot:
            key = key_of(entry)
            seen.add(key)
            if key in self._removes:
                continue
            effective.append(self._adds.get(key, entry))
        for key, item in self._adds.items():
            if key not in seen:
                effective.append(item)
        return effective

    def pending_adds(self) -> List[Hashable]:
        return list(self._adds)

    def pending_removes(self) -> Set[Hashable]:
        return set(self._removes)

    def clear(self) -> None:
        if self._adds or self._removes:
            logger.debug(
                "Dropping overlay (%d adds, %d removes).",
                len(self._adds), len(self._removes),
            )
        self._adds.clear()
        self._removes.clear()

    def __len__(self) -> int:
        return len(self._adds) + len(self._removes)
