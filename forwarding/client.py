from __future__ import annotations
import asyncio
import logging
from typing import Any, Optional

from .config import ClientConfig
from .connection import ConnectionManager, FixedInterval, RetryPolicy, TransportFactory
from .dispatcher import DispatchStats, InboundDispatcher
from .errors import CallTimeoutError, NotConnectedError, TransportError
from .events import EventBus, Handler
from .ids import IdGenerator
from .message import ClientIdentity, ClientType, ConnectionState
from .methods import MethodHandler, MethodRegistry, PING_METHOD, ping_handler
from .pending import PendingCallTable
from .transport import Transport
from . import wire

logger = logging.getLogger(__name__)


class ForwardingClient:
    """
    Client for a forwarding server: calls methods on other clients through it,
    answers calls they make, and keeps the connection up.

        client = ForwardingClient("flutter")
        await client.connect("localhost", 8143)
        result = await client.call_method("echo", {"x": 1})

    Events (see forwarding.events): 'connected', 'disconnected', 'error',
    'message', 'method' and 'method:<name>'.
    """

    def __init__(self, client_type: ClientType | str, *,
                 client_id: Optional[str] = None,
                 config: Optional[ClientConfig] = None,
                 transport_factory: Optional[TransportFactory] = None,
                 retry_policy: Optional[RetryPolicy] = None):
        self.config = config or ClientConfig()
        self.identity = ClientIdentity.create(client_type, client_id)
        if transport_factory is None:
            transport_factory = self._websocket_factory

        self._bus = EventBus()
        self._pending = PendingCallTable()
        self._ids = IdGenerator()
        self._connection = ConnectionManager(
            self.identity, self._bus, self._pending,
            transport_factory=transport_factory,
            retry_policy=retry_policy or FixedInterval(self.config.reconnect_interval),
            scheme=self.config.scheme,
        )
        self._dispatcher = InboundDispatcher(self._bus, self._pending, self._connection.send)
        self._connection.set_frame_handler(self._dispatcher.dispatch)
        self._methods = MethodRegistry(self._bus)

        self.register_method(PING_METHOD, ping_handler(self.identity))

    # ---- identity / state ----
    @property
    def client_id(self) -> str:
        return self.identity.client_id

    @property
    def client_type(self) -> ClientType:
        return self.identity.client_type

    @property
    def state(self) -> ConnectionState:
        return self._connection.state

    @property
    def url(self) -> Optional[str]:
        return self._connection.url

    @property
    def stats(self) -> DispatchStats:
        return self._dispatcher.stats

    @property
    def pending_calls(self) -> int:
        return len(self._pending)

    def is_connected(self) -> bool:
        return self._connection.is_connected()

    # ---- connection ----
    async def connect(self, host: Optional[str] = None, port: Optional[int] = None,
                      path: Optional[str] = None) -> None:
        """Connect to the forwarding server; omitted arguments come from the config."""
        await self._connection.connect(
            host if host is not None else self.config.host,
            port if port is not None else self.config.port,
            path if path is not None else self.config.path,
        )

    async def disconnect(self) -> None:
        """Close the connection and stop reconnecting."""
        await self._connection.disconnect()

    async def __aenter__(self) -> "ForwardingClient":
        await self.connect()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.disconnect()

    # ---- API ----
    async def call_method(self, method: str, params: Any = None, *,
                          timeout: Optional[float] = None) -> Any:
        """
        Call `method` on the far side and return its result.

        Raises NotConnectedError without sending anything when offline,
        RemoteError when the peer answers with an error, ConnectionLostError
        when the connection drops first and CallTimeoutError after `timeout`
        seconds (default: config.call_timeout, None waits indefinitely).
        """
        if not self.is_connected():
            raise NotConnectedError()
        if timeout is None:
            timeout = self.config.call_timeout

        call_id = self._ids.next()
        call = self._pending.add(call_id, method)
        logger.debug("calling %s (%s)", method, call_id)
        try:
            await self._connection.send(wire.encode(
                wire.request_frame(call_id, method, {} if params is None else params)))
            return await asyncio.wait_for(call.future, timeout)
        except asyncio.TimeoutError as ex:
            raise CallTimeoutError(f"{method} ({call_id}) timed out after {timeout}s") from ex
        finally:
            self._pending.discard(call_id)

    async def send_message(self, payload: Any) -> None:
        """Send any JSON-serializable payload as-is, without correlation."""
        if not self.is_connected():
            raise NotConnectedError()
        try:
            frame = wire.encode(payload)
        except (TypeError, ValueError) as ex:
            raise TransportError(f"payload is not JSON serializable: {ex}") from ex
        await self._connection.send(frame)

    def register_method(self, name: str, handler: MethodHandler) -> None:
        self._methods.register(name, handler)

    def unregister_method(self, name: str, handler: Optional[MethodHandler] = None) -> None:
        self._methods.unregister(name, handler)

    def on(self, event: str, handler: Handler) -> None:
        self._bus.on(event, handler)

    def off(self, event: str, handler: Handler) -> None:
        self._bus.off(event, handler)

    async def drain(self, timeout: Optional[float] = None) -> None:
        """Wait for in-flight method handlers and async event handlers."""
        await self._bus.drain(timeout)

    def _websocket_factory(self) -> Transport:
        from .transports.websocket import WebSocketTransport
        return WebSocketTransport(open_timeout=self.config.open_timeout)
