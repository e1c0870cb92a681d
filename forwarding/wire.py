from __future__ import annotations
import json
from typing import Any, Mapping, Optional, Union

from .message import Frame, JSONRPC_VERSION

class FrameError(ValueError):
    """Inbound data that is not a single JSON object."""

def encode(obj: Any) -> str:
    return json.dumps(obj, separators=(",", ":"))

def decode(raw: Union[str, bytes]) -> Frame:
    try:
        text = raw.decode("utf-8") if isinstance(raw, (bytes, bytearray)) else raw
        obj = json.loads(text)
    except (UnicodeDecodeError, json.JSONDecodeError) as ex:
        raise FrameError(f"undecodable frame: {ex}") from ex
    if not isinstance(obj, dict):
        raise FrameError(f"expected a JSON object, got {type(obj).__name__}")
    return obj

def request_frame(call_id: str, method: str, params: Any) -> Frame:
    return {
        "jsonrpc": JSONRPC_VERSION,
        "id":      call_id,
        "method":  method,
        "params":  params,
    }

def result_frame(call_id: Any, result: Any) -> Frame:
    return {"jsonrpc": JSONRPC_VERSION, "id": call_id, "result": result}

def error_frame(call_id: Any, error: Any) -> Frame:
    return {"jsonrpc": JSONRPC_VERSION, "id": call_id, "error": error_payload(error)}

def error_payload(error: Any) -> Mapping[str, Any]:
    """Normalize an exception, string or mapping into {'message': ...}."""
    if isinstance(error, Mapping):
        payload = dict(error)
        payload.setdefault("message", "Unknown error")
        return payload
    return {"message": str(error)}

def error_message(error: Any) -> tuple[str, Optional[int], Any]:
    """Pull (message, code, data) out of an inbound error payload."""
    if isinstance(error, Mapping):
        message = error.get("message")
        code = error.get("code")
        return (
            str(message) if message is not None else "Unknown error",
            code if isinstance(code, int) else None,
            error.get("data"),
        )
    if isinstance(error, str) and error:
        return error, None, None
    return "Unknown error", None, None
