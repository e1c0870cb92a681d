"""
Public API:
- ForwardingClient: one connection to a forwarding server; calls out, answers calls in,
  reconnects on its own
- create_client: one-call factory (transport label, method table, config)
- ClientConfig: connection defaults, loadable from FORWARDING_SERVER_* variables
- EventBus and event types: Connected, Disconnected, ErrorEvent, MessageEvent, MethodCall
- Transport: abstract class transports must implement
  (WebSocketTransport, MemoryTransport/MemoryPeer in forwarding.transports)
- RetryPolicy strategies: FixedInterval, ExponentialBackoff
- Errors: ForwardingError and subclasses
"""

# Core client
from .client import ForwardingClient
from .factory import create_client
from .config import ClientConfig

# Identity & frames
from .message import ClientIdentity, ClientType, ConnectionState, FrameKind, classify

# Events
from .events import (
    EventBus,
    Connected,
    Disconnected,
    ErrorEvent,
    MessageEvent,
    MethodCall,
    method_event,
)

# Building blocks
from .connection import ConnectionManager, ExponentialBackoff, FixedInterval, RetryPolicy
from .dispatcher import DispatchStats, InboundDispatcher, Responder
from .ids import IdGenerator
from .methods import MethodRegistry, PING_METHOD
from .pending import PendingCall, PendingCallTable
from .transport import Transport

# Errors
from .errors import (
    CallTimeoutError,
    ConnectionLostError,
    ForwardingError,
    NotConnectedError,
    RemoteError,
    TransportError,
)

__all__ = [
    "ForwardingClient",
    "create_client",
    "ClientConfig",
    "ClientIdentity",
    "ClientType",
    "ConnectionState",
    "FrameKind",
    "classify",
    "EventBus",
    "Connected",
    "Disconnected",
    "ErrorEvent",
    "MessageEvent",
    "MethodCall",
    "method_event",
    "ConnectionManager",
    "RetryPolicy",
    "FixedInterval",
    "ExponentialBackoff",
    "DispatchStats",
    "InboundDispatcher",
    "Responder",
    "IdGenerator",
    "MethodRegistry",
    "PING_METHOD",
    "PendingCall",
    "PendingCallTable",
    "Transport",
    "ForwardingError",
    "NotConnectedError",
    "TransportError",
    "ConnectionLostError",
    "CallTimeoutError",
    "RemoteError",
]

__version__ = "0.1.0"
