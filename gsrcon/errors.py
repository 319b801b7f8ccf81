"""
Exceptions raised or reported by the RCON client.

Transport failures are not wrapped: the socket layer's OSError is passed
through unchanged.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class RconError(Exception):
    message: str

    def __str__(self) -> str:
        return self.message


class NotConnectedError(RconError):
    """Command submitted without an open channel or a challenge."""

    def __init__(self, message: str = "Not connected"):
        super().__init__(message)


class ChallengeError(RconError):
    """The server's challenge reply carried no token."""


class ConnectionClosedError(RconError):
    """The session was closed while a reply or handshake was outstanding."""

    def __init__(self, message: str = "Connection closed"):
        super().__init__(message)


class ChannelClosedError(RconError):
    def __init__(self, message: str = "Channel is closed"):
        super().__init__(message)
