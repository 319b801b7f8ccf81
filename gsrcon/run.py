#!/usr/bin/env python3
"""
gsrcon runner - sends RCON commands to a Goldsource server and prints replies.

Usage:
    python -m gsrcon.run --host 10.0.0.5 --port 27015 --password secret status "changelevel de_dust2"

Defaults come from GAME_SERVER_HOST, GAME_SERVER_PORT, RCON_PASSWORD and
RCON_TIMEOUT. With no commands, commands are read from stdin one per line.
"""

import asyncio
import argparse
import logging
import sys

from . import config
from .client import RconClient
from .errors import RconError
from .protocol import strip_print_header

logger = logging.getLogger('gsrcon.runner')


def build_parser():
    parser = argparse.ArgumentParser(description='Goldsource RCON client')
    parser.add_argument('--host', default=config.GAME_SERVER_HOST,
                        help='Game server address')
    parser.add_argument('--port', type=int, default=config.GAME_SERVER_PORT,
                        help='Game server UDP port (default: 27015)')
    parser.add_argument('--password', default=None,
                        help='RCON password (default: $RCON_PASSWORD)')
    parser.add_argument('--timeout', type=float, default=config.RCON_TIMEOUT,
                        help='Seconds to wait for each reply')
    parser.add_argument('--raw', action='store_true',
                        help='Print replies without stripping the print header')
    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Debug logging')
    parser.add_argument('commands', nargs='*',
                        help='Commands to run in order')
    return parser


def _read_commands(stream):
    for line in stream:
        line = line.strip()
        if line:
            yield line


async def run_commands(client, commands, timeout, raw=False, out=sys.stdout):
    """Handshake, run each command in order, disconnect. Returns the exit code."""
    try:
        await client.handshake(timeout=timeout)
    except asyncio.TimeoutError:
        logger.error(f"No challenge from {client.host}:{client.port}")
        return 1
    except (RconError, OSError) as e:
        logger.error(f"Handshake failed: {e}")
        return 1

    try:
        for command in commands:
            try:
                body = await client.execute(command, timeout=timeout)
            except asyncio.TimeoutError:
                logger.error(f"No reply to '{command}'")
                return 1
            except (RconError, OSError) as e:
                logger.error(f"'{command}' failed: {e}")
                return 1
            print(body if raw else strip_print_header(body), file=out)
    finally:
        client.disconnect()

    return 0


async def main(argv=None):
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s [%(name)s] %(levelname)s: %(message)s',
    )

    server = config.load_server(args.host, args.port, args.password)
    client = RconClient(server.server_data.host, server.server_data.port, server)

    commands = args.commands or list(_read_commands(sys.stdin))
    if not commands:
        logger.error("No commands given")
        return 2

    return await run_commands(client, commands, args.timeout, raw=args.raw)


def cli():
    sys.exit(asyncio.run(main()))


if __name__ == '__main__':
    cli()
