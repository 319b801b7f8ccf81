"""
Goldsource RCON client.

Handles the session lifecycle over a connectionless channel:
  1. challenge rcon → challenge rcon <token>
  2. rcon <token> "<password>" <command> → reply text
  3. disconnect

The protocol has no request ids, so replies are matched to commands in the
order the commands were sent.
"""

import asyncio
import logging
from collections import defaultdict, deque
from functools import partial

from .defs import (
    SessionState, EVENTS,
    EVENT_CONNECT, EVENT_DISCONNECT, EVENT_MESSAGE, EVENT_ERROR,
)
from .channel import UdpChannel
from .errors import RconError, NotConnectedError, ChallengeError, ConnectionClosedError
from .models import RconResponse
from .protocol import (
    build_challenge_request, build_command,
    parse_connectionless, is_challenge_reply, parse_challenge,
)

logger = logging.getLogger('gsrcon.client')


class PendingReply:
    """A queued reply slot. Settles at most once: resolved, failed or abandoned."""

    def __init__(self, command, callback=None, user=None, log=True):
        self.command = command
        self.callback = callback
        self.user = user
        self.log = log
        self.done = False

    def resolve(self, body):
        if self.done:
            return
        self.done = True
        if self.callback:
            self.callback(None, body)

    def fail(self, err):
        if self.done:
            return
        self.done = True
        if self.callback:
            self.callback(err, None)

    def abandon(self):
        """Keep the slot in the queue but never invoke the callback."""
        self.done = True


class Handshake:
    """Completion of one connection attempt.

    Success is reported at most once. Failures always reach the callback,
    including transport errors that arrive after the session authenticated.
    """

    def __init__(self, callback=None):
        self.callback = callback
        self.settled = False

    def succeed(self):
        if self.settled:
            return False
        self.settled = True
        if self.callback:
            self.callback(None)
        return True

    def fail(self, err):
        self.settled = True
        if self.callback:
            self.callback(err)


class RconClient:
    """
    Event-driven RCON session with one Goldsource server.

    Usage:
        client = RconClient("10.0.0.5", 27015, server)
        client.on("message", print_reply)
        client.connect(on_connected)
        client.send("status", None, True, on_status)

    Callbacks are error-first: connect's callback(err), send's
    callback(err, body).
    """

    def __init__(self, host, port, server, channel_factory=UdpChannel):
        self.host = host
        self.port = port
        self.server = server
        self._channel_factory = channel_factory

        # Session state
        self.channel = None
        self.challenge = None
        self.pending = deque()
        self._handshake = None

        # Listeners
        self._listeners = defaultdict(list)
        self._tasks = set()

    # --- Properties ---

    @property
    def address(self):
        return (self.host, self.port)

    @property
    def state(self) -> SessionState:
        if self.channel is None:
            return SessionState.DISCONNECTED
        if self.challenge is None:
            return SessionState.CONNECTING
        return SessionState.AUTHENTICATED

    @property
    def authenticated(self) -> bool:
        return self.state is SessionState.AUTHENTICATED

    # --- Listeners ---

    def on(self, event, listener):
        """Register a listener for connect, disconnect, message or error."""
        if event not in EVENTS:
            raise ValueError(f"Unknown event: {event}")
        self._listeners[event].append(listener)
        return listener

    def remove_listener(self, event, listener):
        try:
            self._listeners[event].remove(listener)
        except ValueError:
            pass

    def listener_count(self, event) -> int:
        return len(self._listeners[event])

    def _emit(self, event, *args):
        listeners = list(self._listeners[event])
        if event == EVENT_ERROR and not listeners:
            logger.warning(f"Unhandled RCON error ({self.host}:{self.port}): {args[0]}")
            return

        for listener in listeners:
            try:
                result = listener(*args)
                if asyncio.iscoroutine(result):
                    task = asyncio.get_running_loop().create_task(result)
                    self._tasks.add(task)
                    task.add_done_callback(self._tasks.discard)
            except Exception as e:
                logger.error(f"Listener for '{event}' failed: {e}", exc_info=True)

    # --- Public API ---

    def connect(self, callback=None) -> bool:
        """Open the channel and request a challenge. False if already connected."""
        if self.channel is not None:
            return False

        logger.info(f"Connecting to {self.host}:{self.port}")
        channel = self._channel_factory()
        self.channel = channel
        self._handshake = Handshake(callback)

        channel.on_error = partial(self._on_channel_error, channel)
        channel.on_message = partial(self._on_channel_message, channel)
        channel.send(
            build_challenge_request(),
            self.address,
            partial(self._on_challenge_sent, channel),
        )
        return True

    def send(self, command, user=None, log=True, callback=None):
        """Send an authenticated command. The reply arrives via callback(err, body)."""
        self._submit(command, user, log, callback)

    def _submit(self, command, user, log, callback):
        if self.channel is None or not self.challenge:
            err = NotConnectedError()
            if callback:
                callback(err, None)
            self._emit(EVENT_ERROR, err)
            return None

        password = self.server.server_data.rcon_password
        payload = build_command(self.challenge, password, command)

        entry = None
        if callback:
            entry = PendingReply(command, callback, user, log)
            self.pending.append(entry)

        if log:
            logger.info(f"RCON {self.host}:{self.port} > {command}")

        self.channel.send(payload, self.address, partial(self._on_command_sent, entry))
        return entry

    def disconnect(self) -> bool:
        """Close the channel. False if already disconnected."""
        if self.channel is None:
            return False

        channel = self.channel
        self.channel = None
        self.challenge = None
        handshake = self._handshake
        self._handshake = None
        pending = list(self.pending)
        self.pending.clear()

        channel.close()
        logger.info(f"Disconnected from {self.host}:{self.port}")

        if handshake is not None and not handshake.settled:
            handshake.fail(ConnectionClosedError())
        for entry in pending:
            entry.fail(ConnectionClosedError())

        self._emit(EVENT_DISCONNECT)
        return True

    # --- Awaitable API ---

    async def handshake(self, timeout=None):
        """Connect and wait until the server issues a challenge."""
        if self.authenticated:
            return

        loop = asyncio.get_running_loop()
        future = loop.create_future()

        def _done(err):
            if future.done():
                return
            if err is not None:
                future.set_exception(err)
            else:
                future.set_result(None)

        if not self.connect(_done):
            raise RconError(f"Connection attempt to {self.host}:{self.port} already in progress")

        try:
            await asyncio.wait_for(future, timeout)
        except asyncio.TimeoutError:
            logger.warning(f"Handshake with {self.host}:{self.port} timed out")
            self.disconnect()
            raise
        except ChallengeError:
            self.disconnect()
            raise

    async def execute(self, command, user=None, log=True, timeout=None) -> str:
        """Send a command and return the reply body."""
        loop = asyncio.get_running_loop()
        future = loop.create_future()

        def _done(err, body):
            if future.done():
                return
            if err is not None:
                future.set_exception(err)
            else:
                future.set_result(body)

        entry = self._submit(command, user, log, _done)

        try:
            return await asyncio.wait_for(future, timeout)
        except asyncio.TimeoutError:
            # The late reply must still be consumed by this slot
            if entry is not None:
                entry.abandon()
            logger.warning(f"RCON {self.host}:{self.port} '{command}' timed out")
            raise

    async def __aenter__(self):
        await self.handshake()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        self.disconnect()

    # --- Channel events ---

    def _on_challenge_sent(self, channel, err):
        if err is None or channel is not self.channel:
            return
        logger.error(f"Challenge request to {self.host}:{self.port} failed: {err}")
        if self._handshake is not None:
            self._handshake.fail(err)
        self.disconnect()

    def _on_command_sent(self, entry, err):
        if err is None or entry is None:
            return
        try:
            self.pending.remove(entry)
        except ValueError:
            pass
        entry.fail(err)

    def _on_channel_error(self, channel, err):
        if channel is not self.channel:
            return
        logger.error(f"Channel error ({self.host}:{self.port}): {err}")
        if self._handshake is not None:
            self._handshake.fail(err)
        self._emit(EVENT_ERROR, err)
        self.disconnect()

    def _on_channel_message(self, channel, data, addr=None):
        if channel is not self.channel:
            return
        self._on_message(data)

    def _on_message(self, data):
        """Classify an inbound datagram."""
        text = parse_connectionless(data)
        if text is None:
            return

        if is_challenge_reply(text):
            self._on_challenge(text)
        else:
            self._on_reply(data, text)

    def _on_challenge(self, text):
        self.challenge = parse_challenge(text)
        handshake = self._handshake
        if handshake is None:
            return

        if self.challenge is None:
            logger.warning(f"Challenge reply from {self.host}:{self.port} had no token")
            if not handshake.settled:
                handshake.fail(ChallengeError("Challenge reply carried no token"))
            return

        logger.info(f"Got challenge from {self.host}:{self.port}: {self.challenge}")
        if handshake.succeed():
            self._emit(EVENT_CONNECT)

    def _on_reply(self, data, text):
        response = RconResponse(size=len(data) - 4, body=text)
        if self.pending:
            entry = self.pending.popleft()
            entry.resolve(text)
        self._emit(EVENT_MESSAGE, response)
