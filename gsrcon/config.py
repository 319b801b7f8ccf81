"""
Environment configuration for the RCON client, runner and API.
"""

import os
import logging

from .defs import DEFAULT_PORT
from .models import RconServer, ServerData

logger = logging.getLogger('gsrcon.config')

GAME_SERVER_HOST = os.environ.get("GAME_SERVER_HOST", "127.0.0.1")
GAME_SERVER_PORT = int(os.environ.get("GAME_SERVER_PORT", str(DEFAULT_PORT)))
RCON_PASSWORD = os.environ.get("RCON_PASSWORD", "")
RCON_TIMEOUT = float(os.environ.get("RCON_TIMEOUT", "2.0"))


def load_server(host=None, port=None, password=None, server_id="server-1") -> RconServer:
    """Build the server record, falling back to the environment for unset fields."""
    if password is None:
        password = os.environ.get("RCON_PASSWORD", RCON_PASSWORD)
    if not password:
        logger.warning("RCON_PASSWORD is empty; the server will reject commands")

    return RconServer(
        id=server_id,
        server_data=ServerData(
            host=host or os.environ.get("GAME_SERVER_HOST", GAME_SERVER_HOST),
            port=int(port or os.environ.get("GAME_SERVER_PORT", GAME_SERVER_PORT)),
            rcon_password=password,
        ),
    )
