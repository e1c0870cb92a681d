from __future__ import annotations
from typing import Any, Optional


class ForwardingError(Exception):
    """Base class for every error raised by the forwarding client."""


class NotConnectedError(ForwardingError):
    """Raised when a call or message is issued while not connected."""

    def __init__(self, message: str = "Not connected to forwarding server"):
        super().__init__(message)


class TransportError(ForwardingError):
    """Raised when the transport cannot open or send."""


class ConnectionLostError(ForwardingError):
    """Raised into outstanding calls when the connection goes away."""


class CallTimeoutError(ForwardingError):
    """Raised when a call gets no response within its timeout."""


class RemoteError(ForwardingError):
    """The peer answered a call with an error payload."""

    def __init__(self, message: str, *, code: Optional[int] = None, data: Any = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.data = data
