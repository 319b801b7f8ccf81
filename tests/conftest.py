"""
Shared test fixtures for the gsrcon test suite.

Provides:
- FakeChannel: in-memory datagram channel that records sends
- A server record and a client wired to FakeChannel
- Helpers for building server datagrams
"""

import os
import sys
import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

os.environ.setdefault("RCON_PASSWORD", "test-rcon-password")

from gsrcon.channel import DatagramChannel
from gsrcon.client import RconClient
from gsrcon.models import RconServer, ServerData


class FakeChannel(DatagramChannel):
    """Records outgoing datagrams; tests push inbound traffic by hand.

    Send callbacks fire synchronously. Set `send_error` to make the next
    send fail, or `auto_challenge` / `auto_reply` to answer automatically.
    """

    instances = []

    def __init__(self):
        super().__init__()
        self.sent = []
        self.closed = False
        self.send_error = None
        self.auto_challenge = None
        self.auto_reply = None
        FakeChannel.instances.append(self)

    def send(self, data, address, callback=None):
        err, self.send_error = self.send_error, None
        if err is None:
            self.sent.append((data, address))
        if callback:
            callback(err)
        if err is not None:
            return
        if self.auto_challenge and data.endswith(b"challenge rcon\n"):
            self.deliver(oob(f"challenge rcon {self.auto_challenge}\n"))
        elif self.auto_reply is not None and data[4:].startswith(b"rcon "):
            self.deliver(oob(self.auto_reply(data)))

    def close(self):
        self.closed = True

    def deliver(self, data, addr=("127.0.0.1", 27015)):
        self._dispatch_message(data, addr)

    def fail(self, exc):
        self._dispatch_error(exc)


def oob(text: str) -> bytes:
    """Build a server datagram with the out-of-band marker."""
    return b"\xff\xff\xff\xff" + text.encode("utf-8")


@pytest.fixture
def server():
    return RconServer(
        id="server-1",
        server_data=ServerData(host="127.0.0.1", port=27015, rcon_password="secret"),
    )


@pytest.fixture
def channels():
    FakeChannel.instances = []
    yield FakeChannel.instances
    FakeChannel.instances = []


@pytest.fixture
def client(server, channels):
    return RconClient("127.0.0.1", 27015, server, channel_factory=FakeChannel)


@pytest.fixture
def connected(client, channels):
    """Client that has completed the handshake with token 12345."""
    client.connect()
    channels[-1].deliver(oob("challenge rcon 12345\n"))
    assert client.challenge == "12345"
    return client


class Recorder:
    """Collects listener invocations per event."""

    def __init__(self, client):
        self.events = []
        for name in ("connect", "disconnect", "message", "error"):
            client.on(name, self._make(name))

    def _make(self, name):
        def _listener(*args):
            self.events.append((name, args))
        return _listener

    def names(self):
        return [name for name, _ in self.events]

    def of(self, name):
        return [args for n, args in self.events if n == name]


@pytest.fixture
def recorder(client):
    return Recorder(client)
