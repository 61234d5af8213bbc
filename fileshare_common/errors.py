# fileshare_common/errors.py
from fileshare_common.protocol import ERR_BAD_NAME, ERR_NOT_FOUND, ERR_UNKNOWN_CMD


class FileShareError(Exception):
    """Base class for every protocol-level failure."""


class TransportError(FileShareError):
    """Socket read/write failure or premature close. Always fatal to the connection."""


class ConnectionClosed(TransportError):
    """Peer closed the stream cleanly between two frames."""


class ProtocolError(FileShareError):
    """Malformed or unexpected message. Reported as ``ERR <reason>`` when recoverable."""
    reason = "Protocol"
    fatal = False


class UnknownCommand(ProtocolError):
    reason = ERR_UNKNOWN_CMD


class FrameTooLarge(ProtocolError):
    # The rest of the frame is still on the wire, so the stream is unusable
    fatal = True


class PayloadTooLarge(ProtocolError):
    fatal = True


class AuthError(FileShareError):
    """Bad credentials or malformed AUTH line; answered with AUTH_FAIL and a close."""


class ValidationError(ProtocolError):
    reason = ERR_BAD_NAME


class NotFoundError(FileShareError):
    reason = ERR_NOT_FOUND


class ServerError(FileShareError):
    """Client side: the server answered with something other than the expected response."""

    def __init__(self, response):
        super().__init__(response)
        self.response = response


class ListingError(ServerError):
    """Client side: LIST succeeded on the wire but the server could not read its root."""
