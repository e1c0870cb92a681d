from __future__ import annotations
import logging
from abc import ABC, abstractmethod
from typing import Callable, List, Optional, Union

logger = logging.getLogger(__name__)

RawFrame = Union[str, bytes]

class Transport(ABC):
    """
    One message-stream connection. A handle is opened at most once;
    reconnecting creates a new handle.

    Implementations report inbound frames, errors and the final close
    through the callbacks registered with on_receive/on_error/on_close.
    A close must be reported exactly once, whoever initiated it.
    """

    def __init__(self) -> None:
        self._receive_cbs: List[Callable[[RawFrame], None]] = []
        self._error_cbs: List[Callable[[BaseException], None]] = []
        self._close_cbs: List[Callable[[], None]] = []
        self._close_reported = False

    @property
    @abstractmethod
    def connected(self) -> bool:
        raise NotImplementedError

    @abstractmethod
    async def open(self, url: str) -> None:
        """Open the stream; raise TransportError on failure."""
        raise NotImplementedError

    @abstractmethod
    async def send(self, frame: str) -> None:
        """Send one text frame."""
        raise NotImplementedError

    @abstractmethod
    async def close(self) -> None:
        raise NotImplementedError

    def on_receive(self, cb: Callable[[RawFrame], None]) -> None:
        self._receive_cbs.append(cb)

    def on_error(self, cb: Callable[[BaseException], None]) -> None:
        self._error_cbs.append(cb)

    def on_close(self, cb: Callable[[], None]) -> None:
        self._close_cbs.append(cb)

    # ---- for implementations ----
    def _deliver(self, frame: RawFrame) -> None:
        for cb in list(self._receive_cbs):
            try:
                cb(frame)
            except Exception:
                # Receivers should not disrupt the transport.
                logger.exception("receive callback failed")

    def _report_error(self, error: BaseException) -> None:
        for cb in list(self._error_cbs):
            try:
                cb(error)
            except Exception:
                logger.exception("error callback failed")

    def _report_close(self) -> None:
        if self._close_reported:
            return
        self._close_reported = True
        for cb in list(self._close_cbs):
            try:
                cb()
            except Exception:
                logger.exception("close callback failed")
