# fileshare_common/framing.py
"""Length-prefixed control frames.

Frame layout:
    [4 bytes - payload length (big-endian, unsigned)]
    [N bytes - payload]

A zero-length frame is valid and carries the empty string.
"""
import socket
import struct

from fileshare_common.errors import ConnectionClosed, FrameTooLarge, TransportError
from fileshare_common.protocol import FRAME_HEADER_SIZE, MAX_FRAME_SIZE

_FRAME_HEADER = struct.Struct("!I")
_MAX_ENCODABLE = 0xFFFFFFFF


def recv_exact(sock, n):
    """Read exactly *n* bytes from *sock* or raise ``TransportError``."""
    buf = bytearray()
    while len(buf) < n:
        try:
            part = sock.recv(n - len(buf))
        except socket.timeout:
            raise TransportError(f"Timeout after {len(buf)}/{n} bytes")
        except OSError as e:
            raise TransportError(f"Socket error during recv: {e}") from e
        if not part:
            raise TransportError(f"Connection closed after {len(buf)}/{n} bytes")
        buf.extend(part)
    return bytes(buf)


def send_all(sock, data):
    try:
        sock.sendall(data)
    except OSError as e:
        raise TransportError(f"Socket error during send: {e}") from e


def send_frame(sock, data):
    if len(data) > _MAX_ENCODABLE:
        raise FrameTooLarge(f"Frame of {len(data)} bytes does not fit a 32-bit length")
    send_all(sock, _FRAME_HEADER.pack(len(data)) + bytes(data))


def recv_frame(sock, max_size=MAX_FRAME_SIZE):
    """Return the payload of the next frame.

    Raises ``ConnectionClosed`` if the peer closed the stream before any byte of
    a new frame arrived, and a plain ``TransportError`` if it closed mid-frame.
    """
    try:
        first = sock.recv(FRAME_HEADER_SIZE)
    except socket.timeout:
        raise TransportError("Timeout waiting for frame")
    except OSError as e:
        raise TransportError(f"Socket error during recv: {e}") from e
    if not first:
        raise ConnectionClosed("Connection closed by peer")

    header = first + recv_exact(sock, FRAME_HEADER_SIZE - len(first))
    (length,) = _FRAME_HEADER.unpack(header)
    if max_size is not None and length > max_size:
        raise FrameTooLarge(f"Declared frame length {length} exceeds limit {max_size}")
    if length == 0:
        return b""
    return recv_exact(sock, length)


def send_text(sock, text, errors="strict"):
    send_frame(sock, text.encode("utf-8", errors=errors))


def recv_text(sock, max_size=MAX_FRAME_SIZE, errors="replace"):
    """Decode the next frame as UTF-8.

    With ``errors="surrogateescape"`` undecodable bytes survive a round trip
    through ``send_text`` and the filesystem unchanged.
    """
    return recv_frame(sock, max_size).decode("utf-8", errors=errors)
