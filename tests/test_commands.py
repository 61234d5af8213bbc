"""Tests for command parsing and filename validation."""

import pytest

from fileshare_common.commands import (
    Auth, Get, ListFiles, Put, Quit, is_safe_filename, parse_auth, parse_command
)
from fileshare_common.errors import AuthError, ProtocolError, UnknownCommand, ValidationError


@pytest.mark.parametrize("text,expected", [
    ("LIST", ListFiles()),
    ("GET a.txt", Get("a.txt")),
    ("PUT big.dat", Put("big.dat")),
    ("QUIT", Quit()),
    ("  GET   spaced.txt  ", Get("spaced.txt")),
    ("GET first second", Get("first")),
])
def test_parse_command(text, expected):
    assert parse_command(text) == expected


@pytest.mark.parametrize("text", ["GET ../../etc/passwd", "GET a/b", "GET a\\b", "GET ", "GET", "PUT ..", "PUT x/.."])
def test_unsafe_names_are_validation_errors(text):
    with pytest.raises(ValidationError) as exc_info:
        parse_command(text)
    assert exc_info.value.reason == "BadName"


@pytest.mark.parametrize("text", ["FOO", "", "list", "AUTH alice secret"])
def test_unknown_commands(text):
    with pytest.raises(UnknownCommand) as exc_info:
        parse_command(text)
    assert exc_info.value.reason == "UnknownCmd"
    assert isinstance(exc_info.value, ProtocolError)


def test_safe_filenames():
    assert is_safe_filename("report.final.pdf")
    assert is_safe_filename(".hidden")
    assert not is_safe_filename("")
    assert not is_safe_filename("a..b")


def test_parse_auth():
    assert parse_auth("AUTH alice secret") == Auth("alice", "secret")
    assert parse_auth("AUTH alice secret trailing") == Auth("alice", "secret")


@pytest.mark.parametrize("text", ["", "AUTH", "AUTH alice", "LOGIN alice secret", "auth alice secret"])
def test_malformed_auth(text):
    with pytest.raises(AuthError):
        parse_auth(text)


def test_commands_encode_to_wire_text():
    assert Auth("alice", "secret").encode() == "AUTH alice secret"
    assert ListFiles().encode() == "LIST"
    assert Get("a.txt").encode() == "GET a.txt"
    assert Put("b.bin").encode() == "PUT b.bin"
    assert Quit().encode() == "QUIT"
