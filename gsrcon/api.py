"""
gsrcon API: FastAPI service exposing one RCON session over HTTP and WebSocket.

Run with any ASGI server, e.g. `uvicorn gsrcon.api:app`.
"""

import asyncio
import logging

from fastapi import FastAPI, APIRouter, Depends, HTTPException, Request, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware

from .client import RconClient
from .config import RCON_TIMEOUT, load_server
from .defs import SessionState
from .errors import RconError, NotConnectedError
from .hub import WebSocketHub
from .models import CommandRequest, CommandResponse, SessionStatus
from .protocol import strip_print_header

logger = logging.getLogger('gsrcon.api')

router = APIRouter(tags=["rcon"])


def get_client(request: Request) -> RconClient:
    return request.app.state.rcon


def _status(client: RconClient) -> SessionStatus:
    return SessionStatus(
        server_id=client.server.id,
        host=client.host,
        port=client.port,
        state=client.state.name.lower(),
        authenticated=client.authenticated,
        pending=len(client.pending),
    )


@router.get("/api/rcon/status", response_model=SessionStatus)
def session_status(client: RconClient = Depends(get_client)):
    return _status(client)


@router.post("/api/rcon/connect", response_model=SessionStatus)
async def connect_session(client: RconClient = Depends(get_client)):
    if client.state is SessionState.CONNECTING:
        raise HTTPException(status_code=409, detail="Handshake already in progress")

    try:
        await client.handshake(timeout=RCON_TIMEOUT)
    except asyncio.TimeoutError:
        raise HTTPException(status_code=504, detail="Handshake timed out")
    except (RconError, OSError) as e:
        raise HTTPException(status_code=502, detail=str(e))

    logger.info(f"Session open: {client.host}:{client.port}")
    return _status(client)


@router.post("/api/rcon/disconnect", response_model=SessionStatus)
async def disconnect_session(client: RconClient = Depends(get_client)):
    client.disconnect()
    return _status(client)


@router.post("/api/rcon/command", response_model=CommandResponse)
async def run_command(payload: CommandRequest, client: RconClient = Depends(get_client)):
    command = payload.command.strip()
    if not command:
        raise HTTPException(status_code=400, detail="Command is required")

    timeout = payload.timeout if payload.timeout is not None else RCON_TIMEOUT
    try:
        body = await client.execute(command, None, payload.log, timeout)
    except NotConnectedError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except asyncio.TimeoutError:
        raise HTTPException(status_code=504, detail="No reply from server")
    except (RconError, OSError) as e:
        raise HTTPException(status_code=502, detail=str(e))

    return CommandResponse(
        command=command,
        response=body if payload.raw else strip_print_header(body),
    )


@router.websocket("/ws/events")
async def websocket_events(ws: WebSocket):
    hub: WebSocketHub = ws.app.state.hub
    await hub.connect(ws)
    await ws.send_json({"event_type": "subscribed", "data": {"ok": True}})
    try:
        while True:
            msg = await ws.receive_text()
            if msg.lower() == "ping":
                await ws.send_json({"event_type": "pong", "data": {"ok": True}})
    except WebSocketDisconnect:
        await hub.disconnect(ws)
    except Exception:
        await hub.disconnect(ws)


def create_app(client: RconClient = None) -> FastAPI:
    if client is None:
        server = load_server()
        client = RconClient(server.server_data.host, server.server_data.port, server)

    hub = WebSocketHub()
    hub.attach(client)

    app = FastAPI(title="gsrcon", version="0.1.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.rcon = client
    app.state.hub = hub
    app.include_router(router)

    @app.on_event("shutdown")
    async def _close_session():
        client.disconnect()

    return app


app = create_app()
