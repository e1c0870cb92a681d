from __future__ import annotations
from typing import Callable, Mapping, Optional, Union

from .client import ForwardingClient
from .config import ClientConfig
from .connection import RetryPolicy
from .message import ClientType
from .methods import MethodHandler
from .transport import Transport

def create_client(client_type: Union[ClientType, str],
                  *,
                  transport: Union[str, Callable[[], Transport]] = "websocket",
                  methods: Optional[Mapping[str, MethodHandler]] = None,
                  config: Optional[ClientConfig] = None,
                  client_id: Optional[str] = None,
                  retry_policy: Optional[RetryPolicy] = None,
                  **transport_kwargs) -> ForwardingClient:
    """
    One-liner factory:
      create_client("flutter", methods={"echo": lambda params: params})
      create_client("inspector", transport=peer.transport, config=ClientConfig.from_env())

    - client_type: "inspector" | "flutter"
    - transport: "websocket" | "memory" | zero-argument callable returning a Transport
    - methods: mapping of method name -> handler, registered before returning
    - config: connection defaults; ClientConfig() when omitted
    - **transport_kwargs: passed to the transport constructor
      (for "memory", pass peer=<MemoryPeer>)
    """
    config = config or ClientConfig()

    # Resolve transport
    if isinstance(transport, str):
        tlabel = transport.lower()
        if tlabel == "websocket":
            from .transports.websocket import WebSocketTransport
            transport_kwargs.setdefault("open_timeout", config.open_timeout)
            factory: Callable[[], Transport] = lambda: WebSocketTransport(**transport_kwargs)
        elif tlabel == "memory":
            from .transports.memory import MemoryPeer
            peer = transport_kwargs.pop("peer", None) or MemoryPeer()
            factory = peer.transport
        else:
            raise ValueError(f"Unknown transport label: {transport}")
    else:
        factory = transport

    client = ForwardingClient(client_type, client_id=client_id, config=config,
                              transport_factory=factory, retry_policy=retry_policy)

    for name, handler in (methods or {}).items():
        client.register_method(name, handler)

    return client
