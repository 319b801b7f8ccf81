"""
Goldsource RCON protocol constants.

All RCON traffic is connectionless: every datagram starts with the 4-byte
out-of-band marker followed by a text payload.
"""

import enum

# --- Protocol constants ---
OOB_HEADER = b"\xff\xff\xff\xff"

# The marker read as a signed little-endian int32
CONNECTIONLESS_MARKER = -1

# Marker plus at least one payload byte
MIN_PACKET_LEN = len(OOB_HEADER) + 1

MAX_PACKET_SIZE = 8192

CHALLENGE_REQUEST = "challenge rcon"
CHALLENGE_REPLY = "challenge rcon"

# Goldsource prefixes console output with A2C_PRINT ('l'); some builds send "print\n"
PRINT_HEADER = "print\n"
A2C_PRINT = "l"

DEFAULT_PORT = 27015


# --- Session states ---
class SessionState(enum.Enum):
    DISCONNECTED = 0
    CONNECTING = 1
    AUTHENTICATED = 2


# --- Events emitted to listeners ---
EVENT_CONNECT = "connect"
EVENT_DISCONNECT = "disconnect"
EVENT_MESSAGE = "message"
EVENT_ERROR = "error"

EVENTS = (EVENT_CONNECT, EVENT_DISCONNECT, EVENT_MESSAGE, EVENT_ERROR)
