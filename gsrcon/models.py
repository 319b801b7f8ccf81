from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field

from .defs import DEFAULT_PORT


# ── Collaborator ─────────────────────────────────────────────

class ServerData(BaseModel):
    host: str = "127.0.0.1"
    port: int = DEFAULT_PORT
    rcon_password: str = ""


class RconServer(BaseModel):
    """The server the client talks to; owns the RCON password."""
    id: str = "server-1"
    server_data: ServerData = Field(default_factory=ServerData)


# ── Replies ──────────────────────────────────────────────────

class RconResponse(BaseModel):
    """A command reply as published on the "message" event.

    The Goldsource protocol carries no request id or packet type, so `id`
    and `type` are always 0 and `user` is always None. Replies are matched
    to commands by arrival order only.
    """
    size: int
    id: Literal[0] = 0
    type: Literal[0] = 0
    body: str
    user: Optional[Any] = None
    timestamp: datetime = Field(default_factory=datetime.now)
    log: bool = True


# ── API Schemas ──────────────────────────────────────────────

class CommandRequest(BaseModel):
    command: str
    timeout: Optional[float] = None
    log: bool = True
    raw: bool = False


class CommandResponse(BaseModel):
    command: str
    response: str


class SessionStatus(BaseModel):
    server_id: str
    host: str
    port: int
    state: str
    authenticated: bool
    pending: int
