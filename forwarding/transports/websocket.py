from __future__ import annotations
import asyncio
import logging
from typing import Any, Dict, Optional

from websockets.asyncio.client import ClientConnection, connect
from websockets.exceptions import ConnectionClosed, ConnectionClosedError, WebSocketException
from websockets.protocol import State

from ..errors import TransportError
from ..transport import Transport

logger = logging.getLogger(__name__)

class WebSocketTransport(Transport):
    """Transport over a single WebSocket connection.

    Mapping:
    - each outbound frame -> one text message
    - each inbound text (or binary) message -> one frame, delivered in order
    - abnormal closure -> on_error(ConnectionClosedError), then on_close
    - clean closure (either side) -> on_close only

    The reader runs as a task on the loop that called open().
    """

    def __init__(self, *, open_timeout: Optional[float] = 10.0, **connect_kwargs: Any):
        super().__init__()
        self.open_timeout = open_timeout
        self.connect_kwargs: Dict[str, Any] = connect_kwargs
        self.url: Optional[str] = None
        self._ws: Optional[ClientConnection] = None
        self._reader: Optional["asyncio.Task[None]"] = None

    @property
    def connected(self) -> bool:
        return self._ws is not None and self._ws.state is State.OPEN

    async def open(self, url: str) -> None:
        if self._ws is not None or self._close_reported:
            raise TransportError("transport handle already used")
        self.url = url
        try:
            ws = await connect(url, open_timeout=self.open_timeout, **self.connect_kwargs)
        except (OSError, asyncio.TimeoutError, WebSocketException) as ex:
            raise TransportError(f"could not open {url}: {ex}") from ex
        self._ws = ws
        self._reader = asyncio.create_task(self._rx_loop(ws), name="forwarding-ws-reader")

    async def send(self, frame: str) -> None:
        ws = self._ws
        if ws is None:
            raise TransportError("transport is not open")
        try:
            await ws.send(frame)
        except ConnectionClosed as ex:
            raise TransportError(f"send failed: {ex}") from ex

    async def close(self) -> None:
        ws = self._ws
        if ws is None:
            return
        try:
            await ws.close()
        finally:
            reader = self._reader
            if reader is not None and reader is not asyncio.current_task():
                await asyncio.gather(reader, return_exceptions=True)

    async def _rx_loop(self, ws: ClientConnection) -> None:
        try:
            async for message in ws:
                self._deliver(message)
        except ConnectionClosedError as ex:
            logger.debug("websocket %s closed abnormally: %s", self.url, ex)
            self._report_error(ex)
        finally:
            self._ws = None
            self._report_close()
