"""
Datagram channels used by the RCON client.

A channel is a fire-and-proceed UDP endpoint: `send` returns immediately and
reports the outcome later through its callback; inbound datagrams and
socket errors are delivered through the `on_message` / `on_error` hooks.
"""

import asyncio
import socket
import logging

from .errors import ChannelClosedError

logger = logging.getLogger('gsrcon.channel')


class DatagramChannel:
    """
    Interface consumed by RconClient.

    Hooks:
        on_message  fn(data: bytes, addr: tuple)
        on_error    fn(exc: Exception)
    """

    def __init__(self):
        self.on_message = None
        self.on_error = None

    def send(self, data, address, callback=None):
        """Transmit one datagram. callback(err) fires once with None on success."""
        raise NotImplementedError

    def close(self):
        raise NotImplementedError

    def _dispatch_message(self, data, addr):
        if self.on_message:
            self.on_message(data, addr)

    def _dispatch_error(self, exc):
        if self.on_error:
            self.on_error(exc)


class _ChannelProtocol(asyncio.DatagramProtocol):

    def __init__(self, channel):
        self.channel = channel

    def datagram_received(self, data, addr):
        self.channel._dispatch_message(data, addr)

    def error_received(self, exc):
        self.channel._dispatch_error(exc)

    def connection_lost(self, exc):
        if exc is not None:
            self.channel._dispatch_error(exc)


class UdpChannel(DatagramChannel):
    """
    asyncio UDP channel bound to an ephemeral IPv4 port.

    Must be created while an event loop is running; the endpoint is opened
    in the background and sends queue behind it.
    """

    def __init__(self, local_addr=("0.0.0.0", 0)):
        super().__init__()
        self._loop = asyncio.get_running_loop()
        self._transport = None
        self._closed = False
        self._resolved = {}
        self._opening = self._loop.create_task(self._open(local_addr))

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def local_address(self):
        if self._transport is None:
            return None
        return self._transport.get_extra_info('sockname')

    async def wait_open(self):
        await asyncio.shield(self._opening)

    async def _open(self, local_addr):
        transport, _ = await self._loop.create_datagram_endpoint(
            lambda: _ChannelProtocol(self),
            local_addr=local_addr,
            family=socket.AF_INET,
        )
        if self._closed:
            transport.close()
            return
        self._transport = transport
        logger.debug(f"Channel open on {transport.get_extra_info('sockname')}")

    async def _resolve(self, address):
        if address not in self._resolved:
            host, port = address
            infos = await self._loop.getaddrinfo(
                host, port, family=socket.AF_INET, type=socket.SOCK_DGRAM,
            )
            if not infos:
                raise OSError(f"Cannot resolve {host}:{port}")
            self._resolved[address] = infos[0][4]
        return self._resolved[address]

    async def _send(self, data, address):
        await asyncio.shield(self._opening)
        if self._closed or self._transport is None:
            raise ChannelClosedError()
        target = await self._resolve(address)
        if self._closed:
            raise ChannelClosedError()
        self._transport.sendto(data, target)

    def send(self, data, address, callback=None):
        if self._closed:
            if callback:
                self._loop.call_soon(callback, ChannelClosedError())
            return

        task = self._loop.create_task(self._send(data, address))

        def _done(t):
            if t.cancelled():
                return
            err = t.exception()
            if err is not None:
                logger.warning(f"Send to {address[0]}:{address[1]} failed: {err}")
            if callback:
                callback(err)

        task.add_done_callback(_done)

    def close(self):
        if self._closed:
            return
        self._closed = True
        if self._transport is not None:
            self._transport.close()
            self._transport = None
