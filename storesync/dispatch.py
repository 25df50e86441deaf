# storesync/dispatch.py
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Callable, Deque, Dict, Tuple

from .logger import get_logger

logger = get_logger(__name__)


@dataclass
class RemoteCall:
    description: str
    fn: Callable[..., Any]
    args: Tuple[Any, ...] = ()
    kwargs: Dict[str, Any] = field(default_factory=dict)


class BackgroundQueue:
    """
    Fire-and-forget remote calls. Mutations enqueue here and return at once;
    drain() runs the calls in issue order on the caller's turn. A failing
    call is logged and counted, never retried and never rolled back.
    """

    def __init__(self):
        self._pending: Deque[RemoteCall] = deque()
        self.failures = 0

    def submit(self, description: str, fn: Callable[..., Any], *args, **kwargs) -> None:
        self._pending.append(RemoteCall(description, fn, args, kwargs))
        logger.debug("Queued background call: %s", description)

    def drain(self) -> int:
        ran = 0
        while self._pending:
            call = self._pending.popleft()
            ran += 1
            try:
                call.fn(*call.args, **call.kwargs)
            except Exception as e:
                self.failures += 1
                logger.warning("Background call failed (%s): %s", call.description, e)
        return ran

    def __len__(self) -> int:
        return len(self._pending)
