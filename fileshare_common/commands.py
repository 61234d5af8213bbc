# fileshare_common/commands.py
"""Command frames exchanged after the connection is established.

``parse_command`` turns frame text into one of the command types below,
checking arity and filename rules once so handlers never look at raw text.
"""
from dataclasses import dataclass

from fileshare_common.errors import AuthError, UnknownCommand, ValidationError
from fileshare_common.protocol import (
    CMD_AUTH, CMD_LIST_FILES, CMD_GET_FILE, CMD_PUT_FILE, CMD_QUIT
)


@dataclass(frozen=True)
class Auth:
    username: str
    password: str

    def encode(self):
        return f"{CMD_AUTH} {self.username} {self.password}"


@dataclass(frozen=True)
class ListFiles:
    def encode(self):
        return CMD_LIST_FILES


@dataclass(frozen=True)
class Get:
    filename: str

    def encode(self):
        return f"{CMD_GET_FILE} {self.filename}"


@dataclass(frozen=True)
class Put:
    filename: str

    def encode(self):
        return f"{CMD_PUT_FILE} {self.filename}"


@dataclass(frozen=True)
class Quit:
    def encode(self):
        return CMD_QUIT


def is_safe_filename(name):
    """Bare names only: non-empty, no '..', no '/' and no '\\'."""
    return bool(name) and '..' not in name and '/' not in name and '\\' not in name


def validate_filename(name):
    if not is_safe_filename(name):
        raise ValidationError(f"Unsafe filename: {name!r}")
    return name


def parse_auth(text):
    """Parse the first frame of a connection. Raises ``AuthError`` on any malformed line."""
    parts = text.split()
    if len(parts) < 3 or parts[0] != CMD_AUTH:
        raise AuthError("Malformed AUTH line")
    return Auth(parts[1], parts[2])


def parse_command(text):
    """Parse a command frame sent after authentication.

    Tokens beyond the ones a command needs are ignored. Raises
    ``ValidationError`` for unsafe filenames and ``UnknownCommand`` for
    anything else that is not LIST, GET, PUT or QUIT.
    """
    parts = text.split()
    keyword = parts[0] if parts else ""
    argument = parts[1] if len(parts) > 1 else ""

    if keyword == CMD_LIST_FILES:
        return ListFiles()
    elif keyword == CMD_GET_FILE:
        return Get(validate_filename(argument))
    elif keyword == CMD_PUT_FILE:
        return Put(validate_filename(argument))
    elif keyword == CMD_QUIT:
        return Quit()
    raise UnknownCommand(f"Unknown command: {keyword!r}")
