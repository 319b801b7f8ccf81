from .client import RconClient
from .channel import DatagramChannel, UdpChannel
from .defs import SessionState
from .errors import (
    RconError, NotConnectedError, ChallengeError,
    ConnectionClosedError, ChannelClosedError,
)
from .models import RconResponse, RconServer, ServerData
