from __future__ import annotations
import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, Optional, Protocol as TypingProtocol, Tuple
from urllib.parse import urlencode

from .config import DEFAULT_PATH, normalize_path
from .errors import ConnectionLostError, ForwardingError, NotConnectedError, TransportError
from .events import Connected, Disconnected, ErrorEvent, EventBus
from .message import ClientIdentity, ConnectionState
from .pending import PendingCallTable
from .transport import RawFrame, Transport

logger = logging.getLogger(__name__)

Target = Tuple[str, int, str]
TransportFactory = Callable[[], Transport]


class RetryPolicy(TypingProtocol):
    def delay(self, attempt: int) -> float:
        """Seconds to wait before reconnect tick number `attempt` (0-based)."""
        ...

@dataclass(frozen=True)
class FixedInterval:
    interval: float = 2.0

    def delay(self, attempt: int) -> float:
        return self.interval

@dataclass(frozen=True)
class ExponentialBackoff:
    initial: float = 0.5
    maximum: float = 30.0
    factor: float = 2.0

    def delay(self, attempt: int) -> float:
        return min(self.initial * (self.factor ** attempt), self.maximum)


def build_url(scheme: str, host: str, port: int, path: str, identity: ClientIdentity) -> str:
    return f"{scheme}://{host}:{port}{normalize_path(path)}?{urlencode(identity.query())}"


class ConnectionManager:
    """
    Owns the transport handle, the connection state and the reconnect
    supervisor.

    After the first connect(), successful or not, the supervisor keeps
    retrying the same target on every tick that finds the connection down,
    until disconnect() is called. A connect() still in flight when
    disconnect() runs closes what it opened and raises ConnectionLostError.
    """

    def __init__(self, identity: ClientIdentity, bus: EventBus, pending: PendingCallTable, *,
                 transport_factory: TransportFactory,
                 retry_policy: Optional[RetryPolicy] = None,
                 scheme: str = "ws"):
        self.identity = identity
        self.scheme = scheme
        self.retry_policy: RetryPolicy = retry_policy or FixedInterval()
        self._bus = bus
        self._pending = pending
        self._transport_factory = transport_factory
        self._frame_handler: Optional[Callable[[RawFrame], None]] = None

        self._state = ConnectionState.DISCONNECTED
        self._transport: Optional[Transport] = None
        self._url: Optional[str] = None
        self._target: Optional[Target] = None
        self._closing = False
        # bumped by disconnect(); a connect() started under an older value gives up
        self._generation = 0
        self._connect_lock = asyncio.Lock()
        self._reconnect_task: Optional["asyncio.Task[None]"] = None

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def url(self) -> Optional[str]:
        return self._url

    @property
    def reconnecting(self) -> bool:
        task = self._reconnect_task
        return task is not None and not task.done()

    def is_connected(self) -> bool:
        transport = self._transport
        return self._state is ConnectionState.CONNECTED and transport is not None and transport.connected

    def set_frame_handler(self, handler: Optional[Callable[[RawFrame], None]]) -> None:
        self._frame_handler = handler

    # ---- lifecycle ----
    async def connect(self, host: str, port: int, path: str = DEFAULT_PATH) -> None:
        target: Target = (host, int(port), normalize_path(path))
        generation = self._generation
        async with self._connect_lock:
            if generation != self._generation:
                raise ConnectionLostError("disconnected before the connection was opened")
            if self.is_connected():
                logger.debug("already connected to %s", self._url)
                return

            stale, self._transport = self._transport, None
            if stale is not None:
                logger.info("closing stale transport before reconnecting")
                try:
                    await stale.close()
                except Exception as ex:
                    # the handle is unusable either way
                    logger.debug("error closing stale transport: %s", ex)
                self._pending.fail_all(ConnectionLostError("connection replaced"))

            url = build_url(self.scheme, *target, identity=self.identity)
            transport = self._transport_factory()
            transport.on_receive(lambda frame: self._handle_frame(transport, frame))
            transport.on_error(lambda error: self._handle_error(transport, error))
            transport.on_close(lambda: self._handle_close(transport))

            logger.info("connecting to forwarding server at %s", url)
            self._state = ConnectionState.CONNECTING
            try:
                await transport.open(url)
            except TransportError as ex:
                self._open_failed(ex, target, generation)
                raise
            except asyncio.CancelledError:
                self._state = ConnectionState.DISCONNECTED
                raise
            except Exception as ex:
                error = TransportError(f"could not open {url}: {ex}")
                self._open_failed(error, target, generation)
                raise error from ex

            if generation != self._generation:
                self._state = ConnectionState.DISCONNECTED
                logger.info("disconnected while connecting to %s; closing the new transport", url)
                try:
                    await transport.close()
                except Exception as ex:
                    logger.debug("error closing transport: %s", ex)
                raise ConnectionLostError(f"disconnected while connecting to {url}")

            self._transport = transport
            self._url = url
            self._target = target
            self._closing = False
            self._state = ConnectionState.CONNECTED
            logger.info("connected to %s", url)
            self._bus.emit(Connected(url))
            self._arm_reconnect(target)

    async def disconnect(self) -> None:
        self._generation += 1
        self._cancel_reconnect()
        self._target = None
        transport = self._transport
        if transport is None:
            self._state = ConnectionState.DISCONNECTED
            return
        self._closing = True
        try:
            await transport.close()
        except Exception as ex:
            logger.warning("error closing transport: %s", ex)
        finally:
            if self._transport is transport:
                # close callback never came; no event, the caller asked for this
                self._transport = None
                self._pending.fail_all(ConnectionLostError("disconnected"))
            self._state = ConnectionState.DISCONNECTED
            self._closing = False

    async def send(self, frame: str) -> None:
        transport = self._transport
        if not self.is_connected() or transport is None:
            raise NotConnectedError()
        logger.debug("-> %s", frame)
        try:
            await transport.send(frame)
        except TransportError:
            raise
        except Exception as ex:
            raise TransportError(f"send failed: {ex}") from ex

    # ---- transport callbacks ----
    def _handle_frame(self, transport: Transport, frame: RawFrame) -> None:
        if transport is not self._transport:
            return
        logger.debug("<- %s", frame)
        if self._frame_handler is not None:
            self._frame_handler(frame)

    def _open_failed(self, error: TransportError, target: Target, generation: int) -> None:
        self._state = ConnectionState.DISCONNECTED
        logger.warning("%s", error)
        self._bus.emit(ErrorEvent(error))
        if generation == self._generation:
            self._target = target
            self._arm_reconnect(target)

    def _handle_error(self, transport: Transport, error: BaseException) -> None:
        if transport is not self._transport:
            return
        logger.warning("transport error: %s", error)
        self._bus.emit(ErrorEvent(error))

    def _handle_close(self, transport: Transport) -> None:
        if transport is not self._transport:
            return
        intentional = self._closing
        self._transport = None
        self._state = ConnectionState.DISCONNECTED
        logger.info("disconnected from %s", self._url)
        self._pending.fail_all(ConnectionLostError(f"connection to {self._url} closed"))
        self._bus.emit(Disconnected(self._url or "", intentional=intentional))
        if not intentional and self._target is not None and not self.reconnecting:
            self._arm_reconnect(self._target)

    # ---- reconnect supervisor ----
    def _arm_reconnect(self, target: Target) -> None:
        task = self._reconnect_task
        if task is not None and task is asyncio.current_task():
            # connect() succeeded from inside the supervisor; keep it running
            return
        self._cancel_reconnect()
        self._reconnect_task = asyncio.create_task(
            self._reconnect_loop(target), name="forwarding-reconnect")

    def _cancel_reconnect(self) -> None:
        task, self._reconnect_task = self._reconnect_task, None
        if task is not None and task is not asyncio.current_task():
            task.cancel()

    async def _reconnect_loop(self, target: Target) -> None:
        attempt = 0
        while True:
            await asyncio.sleep(self.retry_policy.delay(attempt))
            if self.is_connected():
                attempt = 0
                continue
            attempt += 1
            logger.info("attempting to reconnect to forwarding server (attempt %d)", attempt)
            try:
                await self.connect(*target)
            except ForwardingError as ex:
                logger.warning("reconnect failed: %s", ex)
            except Exception:
                logger.exception("reconnect failed")
