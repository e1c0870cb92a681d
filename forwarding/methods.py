from __future__ import annotations
import inspect
import logging
import time
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

from .events import EventBus, METHOD, MethodCall
from .message import ClientIdentity

logger = logging.getLogger(__name__)

MethodHandler = Callable[[Any], Union[Any, Awaitable[Any]]]

PING_METHOD = "flutter.test.ping"
PING_MESSAGE = "Flutter client is responsive"


class MethodRegistry:
    """
    Named handlers for peer-initiated calls.

    Handlers may be plain functions or coroutines; they receive the call's
    params. Every handler registered under a name runs for each call to that
    name and each one answers it, so register one handler per method.
    """

    def __init__(self, bus: EventBus):
        self._bus = bus
        self._handlers: Dict[str, List[MethodHandler]] = {}
        bus.on(METHOD, self._on_call)

    def register(self, name: str, handler: MethodHandler) -> None:
        logger.debug("registering method handler for %s", name)
        self._handlers.setdefault(name, []).append(handler)

    def unregister(self, name: str, handler: Optional[MethodHandler] = None) -> None:
        if handler is None:
            self._handlers.pop(name, None)
            return
        handlers = self._handlers.get(name, [])
        if handler in handlers:
            handlers.remove(handler)
        if not handlers:
            self._handlers.pop(name, None)

    def __contains__(self, name: object) -> bool:
        return name in self._handlers

    def _on_call(self, call: MethodCall) -> None:
        handlers = list(self._handlers.get(call.method, ()))
        if not handlers:
            logger.debug("no handler registered for %s", call.method)
            return
        for handler in handlers:
            self._bus.spawn(self._run(handler, call), f"method {call.method}")

    async def _run(self, handler: MethodHandler, call: MethodCall) -> None:
        try:
            result = handler(call.params)
            if inspect.isawaitable(result):
                result = await result
        except Exception as ex:
            logger.warning("method %s failed: %s", call.method, ex)
            await call.respond(error={"message": str(ex)})
            return
        await call.respond(result)


def ping_handler(identity: ClientIdentity) -> MethodHandler:
    """Liveness probe answered without touching any other capability."""
    def ping(params: Any) -> Dict[str, Any]:
        logger.debug("received ping with params: %r", params)
        return {
            "success": True,
            "timestamp": int(time.time() * 1000),
            "message": PING_MESSAGE,
            "clientId": identity.client_id,
            "clientType": str(identity.client_type),
        }
    return ping
