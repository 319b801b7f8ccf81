"""
Tests for the wire format: packet building, OOB parsing, challenge extraction.
"""

from gsrcon.protocol import (
    build_challenge_request, build_command, parse_connectionless,
    is_challenge_reply, parse_challenge, strip_print_header,
)


class TestPacketBuilding:

    def test_challenge_request(self):
        assert build_challenge_request() == b"\xff\xff\xff\xffchallenge rcon\n"

    def test_command(self):
        packet = build_command("12345", "secret", "status")
        assert packet == b'\xff\xff\xff\xffrcon 12345 "secret" status\n'

    def test_command_from_bytes(self):
        packet = build_command("1", "pw", b"changelevel de_dust2")
        assert packet.endswith(b'"pw" changelevel de_dust2\n')

    def test_command_keeps_quotes_in_command(self):
        packet = build_command("7", "pw", 'say "hello world"')
        assert packet[4:].decode() == 'rcon 7 "pw" say "hello world"\n'


class TestConnectionless:

    def test_too_short(self):
        assert parse_connectionless(b"") is None
        assert parse_connectionless(b"\xff\xff\xff\xff") is None

    def test_wrong_marker(self):
        assert parse_connectionless(b"\xfe\xff\xff\xffhello") is None
        assert parse_connectionless(b"\x00\x00\x00\x00hello") is None

    def test_valid(self):
        assert parse_connectionless(b"\xff\xff\xff\xffx") == "x"

    def test_invalid_utf8_replaced(self):
        text = parse_connectionless(b"\xff\xff\xff\xffab\xffcd")
        assert text.startswith("ab")
        assert text.endswith("cd")


class TestChallenge:

    def test_is_challenge_reply(self):
        assert is_challenge_reply("challenge rcon 123\n")
        assert not is_challenge_reply("lHostname: test\n")
        assert not is_challenge_reply(" challenge rcon 123")

    def test_goldsource_reply(self):
        assert parse_challenge("challenge rcon 3141592653\n") == "3141592653"

    def test_extra_field_before_token(self):
        assert parse_challenge("challenge rcon 0 12345") == "12345"

    def test_missing_token(self):
        assert parse_challenge("challenge rcon") is None
        assert parse_challenge("challenge rcon \n") is None

    def test_trailing_nul(self):
        assert parse_challenge("challenge rcon 42\n\x00") == "42"


class TestPrintHeader:

    def test_print_prefix(self):
        assert strip_print_header("print\nmap: de_dust2\n") == "map: de_dust2"

    def test_a2c_print_prefix(self):
        assert strip_print_header("lBad rcon_password.\n\x00") == "Bad rcon_password."

    def test_no_prefix(self):
        assert strip_print_header("") == ""
