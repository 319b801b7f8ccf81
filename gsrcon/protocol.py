"""
Goldsource RCON wire format.

Builds the two client datagrams (challenge request, authenticated command)
and classifies what the server sends back. No I/O happens here.
"""

import struct
import logging
from typing import Optional

from .defs import (
    OOB_HEADER, CONNECTIONLESS_MARKER, MIN_PACKET_LEN,
    CHALLENGE_REQUEST, CHALLENGE_REPLY, PRINT_HEADER, A2C_PRINT,
)

logger = logging.getLogger('gsrcon.protocol')


def build_oob(text: str) -> bytes:
    """Prefix a text payload with the out-of-band marker."""
    return OOB_HEADER + text.encode("utf-8")


def build_challenge_request() -> bytes:
    return build_oob(f"{CHALLENGE_REQUEST}\n")


def build_command(challenge: str, password: str, command) -> bytes:
    """Encode an authenticated command: rcon <challenge> "<password>" <command>\\n"""
    if isinstance(command, (bytes, bytearray)):
        command = bytes(command).decode("utf-8", errors="replace")
    return build_oob(f'rcon {challenge} "{password}" {command}\n')


def parse_connectionless(data: bytes) -> Optional[str]:
    """Return the text payload of an OOB datagram, or None if it is not one."""
    if len(data) < MIN_PACKET_LEN:
        logger.debug(f"Dropping short datagram ({len(data)} bytes)")
        return None

    marker = struct.unpack_from('<i', data, 0)[0]
    if marker != CONNECTIONLESS_MARKER:
        logger.debug(f"Dropping datagram with marker {marker}")
        return None

    return bytes(data[4:]).decode("utf-8", errors="replace")


def is_challenge_reply(text: str) -> bool:
    return text.startswith(CHALLENGE_REPLY)


def parse_challenge(text: str) -> Optional[str]:
    """Extract the token from a "challenge rcon <token>" reply.

    Goldsource answers "challenge rcon <token>\\n". Some servers put extra
    fields before the token, so the last word after the marker is taken.
    Returns None when no token is present.
    """
    parts = text.replace("\x00", " ").split()
    if len(parts) < 3:
        return None
    return parts[-1]


def strip_print_header(text: str) -> str:
    """Strip the console print header and trailing padding from a reply body."""
    if text.startswith(PRINT_HEADER):
        text = text[len(PRINT_HEADER):]
    elif text.startswith(A2C_PRINT):
        text = text[len(A2C_PRINT):]
    return text.strip("\x00\r\n ")
