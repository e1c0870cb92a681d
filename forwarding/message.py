from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, Optional
from enum import StrEnum
import uuid

JSONRPC_VERSION = "2.0"

Frame = Dict[str, Any]

# Who is on this end of the connection
class ClientType(StrEnum):
    INSPECTOR = "inspector"
    FLUTTER   = "flutter"

class ConnectionState(StrEnum):
    DISCONNECTED = "disconnected"
    CONNECTING   = "connecting"
    CONNECTED    = "connected"

# How an inbound frame is routed
class FrameKind(StrEnum):
    CALL     = "call"          # has method and id: the peer wants an answer
    RESPONSE = "response"      # has id only: answers one of our calls
    OTHER    = "other"         # anything else, only seen by 'message' observers

@dataclass(frozen=True)
class ClientIdentity:
    """
    Fixed for the lifetime of a client; sent as query parameters
    on every (re)connect.
    """
    client_id: str
    client_type: ClientType

    @staticmethod
    def create(client_type: ClientType | str, client_id: Optional[str] = None) -> "ClientIdentity":
        return ClientIdentity(
            client_id=client_id or str(uuid.uuid4()),
            client_type=ClientType(client_type),
        )

    def query(self) -> Dict[str, str]:
        return {"clientType": str(self.client_type), "clientId": self.client_id}

def classify(frame: Frame) -> FrameKind:
    if "method" in frame and "id" in frame:
        return FrameKind.CALL
    if "id" in frame:
        return FrameKind.RESPONSE
    return FrameKind.OTHER
