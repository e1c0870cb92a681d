from __future__ import annotations
import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, Optional

logger = logging.getLogger(__name__)

@dataclass
class PendingCall:
    id: str
    method: str
    future: "asyncio.Future[Any]" = field(repr=False)

    def resolve(self, result: Any) -> None:
        if not self.future.done():
            self.future.set_result(result)

    def reject(self, error: BaseException) -> None:
        if not self.future.done():
            self.future.set_exception(error)


class PendingCallTable:
    """Outstanding outbound calls keyed by correlation id."""

    def __init__(self) -> None:
        self._calls: Dict[str, PendingCall] = {}

    def __len__(self) -> int:
        return len(self._calls)

    def __contains__(self, call_id: object) -> bool:
        return call_id in self._calls

    def __iter__(self) -> Iterator[PendingCall]:
        return iter(list(self._calls.values()))

    def add(self, call_id: str, method: str) -> PendingCall:
        if call_id in self._calls:
            raise KeyError(f"call id already outstanding: {call_id}")
        call = PendingCall(call_id, method, asyncio.get_running_loop().create_future())
        self._calls[call_id] = call
        return call

    def pop(self, call_id: str) -> Optional[PendingCall]:
        return self._calls.pop(call_id, None)

    def discard(self, call_id: str) -> None:
        self._calls.pop(call_id, None)

    def fail_all(self, error: BaseException) -> int:
        """Reject and drop every outstanding call; returns how many there were."""
        calls = list(self._calls.values())
        self._calls.clear()
        for call in calls:
            call.reject(error)
        if calls:
            logger.info("failed %d outstanding call(s): %s", len(calls), error)
        return len(calls)
