from .memory import MemoryPeer, MemoryTransport
from .websocket import WebSocketTransport

__all__ = ["MemoryPeer", "MemoryTransport", "WebSocketTransport"]
