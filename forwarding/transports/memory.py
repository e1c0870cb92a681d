from __future__ import annotations
import asyncio
import json
from typing import Any, List, Optional

from ..errors import TransportError
from ..transport import RawFrame, Transport

class MemoryTransport(Transport):
    """In-process transport whose far end is a MemoryPeer."""

    def __init__(self, peer: "MemoryPeer"):
        super().__init__()
        self.peer = peer
        self.url: Optional[str] = None
        self._open = False

    @property
    def connected(self) -> bool:
        return self._open

    async def open(self, url: str) -> None:
        if self._open or self._close_reported:
            raise TransportError("transport handle already used")
        self.url = url
        if self.peer.open_delay:
            await asyncio.sleep(self.peer.open_delay)
        self.peer._accept(self, url)
        self._open = True

    async def send(self, frame: str) -> None:
        if not self._open:
            raise TransportError("transport is not open")
        self.peer._outbox.put_nowait(frame)

    async def close(self) -> None:
        if not self._open:
            return
        self._open = False
        self.peer._release(self)
        self._report_close()

    def _drop(self, error: Optional[BaseException]) -> None:
        if not self._open:
            return
        self._open = False
        if error is not None:
            self._report_error(error)
        self._report_close()


class MemoryPeer:
    """
    Stands in for a forwarding server: accepts MemoryTransport handles,
    records what the client sends and pushes frames back.

    Use `peer.transport` as the client's transport factory.
    """

    def __init__(self) -> None:
        self.urls: List[str] = []
        self.refuse: Optional[BaseException] = None   # next open() fails with this
        self.refuse_always = False
        self.open_delay = 0.0   # seconds each open() waits before it is accepted
        self.current: Optional[MemoryTransport] = None
        self._outbox: "asyncio.Queue[str]" = asyncio.Queue()

    def transport(self) -> MemoryTransport:
        return MemoryTransport(self)

    @property
    def connected(self) -> bool:
        return self.current is not None and self.current.connected

    @property
    def open_attempts(self) -> int:
        return len(self.urls)

    def deliver(self, payload: Any) -> None:
        """Push a frame to the client. Dicts/lists are JSON encoded; str/bytes go as-is."""
        if self.current is None:
            raise TransportError("no client connected")
        raw: RawFrame = payload if isinstance(payload, (str, bytes)) else json.dumps(payload)
        self.current._deliver(raw)

    async def receive(self, timeout: float = 1.0, *, raw: bool = False) -> Any:
        """Next frame the client sent, JSON decoded unless raw=True."""
        frame = await asyncio.wait_for(self._outbox.get(), timeout)
        return frame if raw else json.loads(frame)

    def sent_count(self) -> int:
        return self._outbox.qsize()

    def drop(self, error: Optional[BaseException] = None) -> None:
        """Close the connection from this side, optionally reporting an error first."""
        transport, self.current = self.current, None
        if transport is not None:
            transport._drop(error)

    def _accept(self, transport: MemoryTransport, url: str) -> None:
        self.urls.append(url)
        if self.refuse is not None or self.refuse_always:
            error = self.refuse or ConnectionRefusedError("refused")
            if not self.refuse_always:
                self.refuse = None
            raise TransportError(f"could not open {url}: {error}") from error
        self.current = transport

    def _release(self, transport: MemoryTransport) -> None:
        if self.current is transport:
            self.current = None
