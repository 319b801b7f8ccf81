"""
Tests for the command-line runner.
"""

import io

import pytest

from gsrcon.client import RconClient
from gsrcon.run import build_parser, run_commands

from conftest import FakeChannel


def make_client(server, challenge="99", reply=None):
    def factory():
        channel = FakeChannel()
        channel.auto_challenge = challenge
        channel.auto_reply = reply
        return channel

    return RconClient("127.0.0.1", 27015, server, channel_factory=factory)


def test_parser_defaults():
    args = build_parser().parse_args(["status"])
    assert args.commands == ["status"]
    assert args.port == 27015
    assert args.raw is False


def test_parser_options():
    args = build_parser().parse_args(
        ["--host", "10.0.0.5", "--port", "27016", "--password", "pw", "--raw", "a", "b c"],
    )
    assert args.host == "10.0.0.5"
    assert args.port == 27016
    assert args.password == "pw"
    assert args.commands == ["a", "b c"]


@pytest.mark.asyncio
async def test_run_commands_prints_replies(server, channels):
    client = make_client(server, reply=lambda data: "print\nreply to " + data[4:].decode().split('" ')[1])
    out = io.StringIO()

    code = await run_commands(client, ["status", "users"], timeout=1.0, out=out)

    assert code == 0
    assert out.getvalue() == "reply to status\nreply to users\n"
    assert client.channel is None


@pytest.mark.asyncio
async def test_run_commands_raw(server, channels):
    client = make_client(server, reply=lambda data: "lok\n")
    out = io.StringIO()

    code = await run_commands(client, ["status"], timeout=1.0, raw=True, out=out)

    assert code == 0
    assert out.getvalue() == "lok\n\n"


@pytest.mark.asyncio
async def test_run_commands_handshake_timeout(server, channels):
    client = make_client(server, challenge=None)
    out = io.StringIO()

    code = await run_commands(client, ["status"], timeout=0.01, out=out)

    assert code == 1
    assert out.getvalue() == ""


@pytest.mark.asyncio
async def test_run_commands_reply_timeout(server, channels):
    client = make_client(server)
    out = io.StringIO()

    code = await run_commands(client, ["status"], timeout=0.01, out=out)

    assert code == 1
    assert client.channel is None
