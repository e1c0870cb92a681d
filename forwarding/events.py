from __future__ import annotations
import asyncio
import inspect
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, ClassVar, Dict, List, Optional, Set, Union

from .message import Frame

logger = logging.getLogger(__name__)

CONNECTED    = "connected"
DISCONNECTED = "disconnected"
ERROR        = "error"
MESSAGE      = "message"
METHOD       = "method"

def method_event(name: str) -> str:
    """Namespaced event name that receives calls for one method only."""
    return f"{METHOD}:{name}"


@dataclass(frozen=True)
class Connected:
    name: ClassVar[str] = CONNECTED
    url: str

@dataclass(frozen=True)
class Disconnected:
    name: ClassVar[str] = DISCONNECTED
    url: str
    intentional: bool = False

@dataclass(frozen=True)
class ErrorEvent:
    name: ClassVar[str] = ERROR
    error: BaseException

@dataclass(frozen=True)
class MessageEvent:
    name: ClassVar[str] = MESSAGE
    frame: Frame

@dataclass(frozen=True)
class MethodCall:
    """
    A peer-initiated call. Answer it by awaiting `respond(result)` or
    `respond(error=...)`.
    """
    name: ClassVar[str] = METHOD
    id: Any
    method: str
    params: Any
    respond: Callable[..., Awaitable[None]] = field(repr=False, compare=False)

Event = Union[Connected, Disconnected, ErrorEvent, MessageEvent, MethodCall]
Handler = Callable[[Any], Any]


class EventBus:
    """
    Synchronous fan-out keyed by event name.

    A MethodCall is delivered to 'method' subscribers and then to
    'method:<name>' subscribers. Handlers returning an awaitable are
    scheduled on the running loop.
    """

    def __init__(self) -> None:
        self._handlers: Dict[str, List[Handler]] = {}
        self._tasks: Set["asyncio.Task[Any]"] = set()

    def on(self, event: str, handler: Handler) -> None:
        handlers = self._handlers.setdefault(event, [])
        if handler not in handlers:
            handlers.append(handler)

    def off(self, event: str, handler: Handler) -> None:
        handlers = self._handlers.get(event)
        if not handlers:
            return
        try:
            handlers.remove(handler)
        except ValueError:
            return
        if not handlers:
            del self._handlers[event]

    def listeners(self, event: str) -> List[Handler]:
        return list(self._handlers.get(event, ()))

    def emit(self, event: Event) -> None:
        self._invoke(event.name, event)
        if isinstance(event, MethodCall):
            self._invoke(method_event(event.method), event)

    def spawn(self, awaitable: Awaitable[Any], label: str = "handler") -> "asyncio.Task[Any]":
        """Run an awaitable as a tracked task; failures are logged, not raised."""
        task = asyncio.ensure_future(awaitable)
        self._tasks.add(task)
        task.add_done_callback(lambda t: self._reap(t, label))
        return task

    async def drain(self, timeout: Optional[float] = None) -> None:
        """Wait for every task spawned so far (and any they spawn) to finish."""
        while self._tasks:
            await asyncio.wait(list(self._tasks), timeout=timeout)
            if timeout is not None:
                break

    def _invoke(self, name: str, event: Event) -> None:
        # snapshot: handlers may call on/off while we iterate
        for handler in list(self._handlers.get(name, ())):
            try:
                result = handler(event)
            except Exception:
                logger.exception("%s handler %r failed", name, handler)
                continue
            if inspect.isawaitable(result):
                self.spawn(result, name)

    def _reap(self, task: "asyncio.Task[Any]", label: str) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("%s task failed", label, exc_info=exc)
