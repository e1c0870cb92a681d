from __future__ import annotations
import logging
from dataclasses import asdict, dataclass
from typing import Any, Awaitable, Callable, Dict

from .errors import RemoteError
from .events import EventBus, MessageEvent, MethodCall
from .message import Frame, FrameKind, classify
from .pending import PendingCallTable
from .transport import RawFrame
from . import wire

logger = logging.getLogger(__name__)

SendFrame = Callable[[str], Awaitable[None]]


@dataclass
class DispatchStats:
    frames: int = 0
    malformed: int = 0
    calls: int = 0
    unmatched: int = 0
    resolved: int = 0
    failed: int = 0

    def as_dict(self) -> Dict[str, int]:
        return asdict(self)


class Responder:
    """Answers one inbound call: `await respond(result)` or `await respond(error=exc)`."""

    def __init__(self, call_id: Any, method: str, send: SendFrame):
        self.call_id = call_id
        self.method = method
        self._send = send

    async def __call__(self, result: Any = None, *, error: Any = None) -> None:
        if error is None and isinstance(result, BaseException):
            result, error = None, result
        if error is not None:
            frame = wire.error_frame(self.call_id, error)
        else:
            frame = wire.result_frame(self.call_id, result)
        try:
            await self._send(wire.encode(frame))
        except Exception as ex:
            # The caller on the far side is gone with the connection.
            logger.warning("cannot send response for %s (%s): %s", self.method, self.call_id, ex)

    def __repr__(self) -> str:
        return f"Responder({self.method!r}, {self.call_id!r})"


class InboundDispatcher:
    """
    Turns raw inbound frames into events or call resolutions.

    Every decodable frame is published as a 'message' event first; calls are
    then published as MethodCall events and responses settle the matching
    pending call exactly once.
    """

    def __init__(self, bus: EventBus, pending: PendingCallTable, send: SendFrame):
        self._bus = bus
        self._pending = pending
        self._send = send
        self.stats = DispatchStats()

    def dispatch(self, raw: RawFrame) -> None:
        self.stats.frames += 1
        try:
            frame = wire.decode(raw)
        except wire.FrameError as ex:
            self.stats.malformed += 1
            logger.warning("dropping malformed frame: %s", ex)
            return

        self._bus.emit(MessageEvent(frame))

        kind = classify(frame)
        if kind is FrameKind.CALL:
            self._on_call(frame)
        elif kind is FrameKind.RESPONSE:
            self._on_response(frame)

    def _on_call(self, frame: Frame) -> None:
        call_id = frame["id"]
        method = str(frame["method"])
        self.stats.calls += 1
        logger.debug("inbound call %s (%s)", method, call_id)
        self._bus.emit(MethodCall(
            id=call_id,
            method=method,
            params=frame.get("params"),
            respond=Responder(call_id, method, self._send),
        ))

    def _on_response(self, frame: Frame) -> None:
        call_id = frame["id"]
        call = self._pending.pop(call_id) if isinstance(call_id, str) else None
        if call is None:
            self.stats.unmatched += 1
            logger.warning("no pending call for response id %r", call_id)
            return
        error = frame.get("error")
        if error is not None:
            message, code, data = wire.error_message(error)
            self.stats.failed += 1
            logger.debug("call %s (%s) failed: %s", call.method, call.id, message)
            call.reject(RemoteError(message, code=code, data=data))
        else:
            self.stats.resolved += 1
            call.resolve(frame.get("result"))
