"""
Pytest fixtures for forwarding client tests.

Most tests talk to an in-process MemoryPeer standing in for the forwarding
server; reconnect ticks are shortened so the loop is observable quickly.
"""
import pytest

from forwarding import FixedInterval, ForwardingClient
from forwarding.transports.memory import MemoryPeer


@pytest.fixture
def peer():
    return MemoryPeer()


@pytest.fixture
def client(peer):
    return ForwardingClient(
        "flutter",
        client_id="client-1",
        transport_factory=peer.transport,
        retry_policy=FixedInterval(0.01),
    )


@pytest.fixture
def recorder(client):
    """Collects every lifecycle event the client emits, in order."""
    seen = []
    for name in ("connected", "disconnected", "error", "message", "method"):
        client.on(name, seen.append)
    return seen
