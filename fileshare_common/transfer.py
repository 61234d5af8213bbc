# fileshare_common/transfer.py
"""Bulk payload transfer.

Layout:
    [8 bytes - total length (big-endian, unsigned)]
    [total length bytes, each XORed with the obfuscation key, sent in chunks]
"""
import logging
import os
import struct

from fileshare_common.codec import transform_in_place
from fileshare_common.errors import PayloadTooLarge, TransportError
from fileshare_common.framing import recv_exact, send_all
from fileshare_common.protocol import BULK_HEADER_SIZE, CHUNK_SIZE

logger = logging.getLogger(__name__)

_BULK_HEADER = struct.Struct("!Q")


def send_bulk(sock, total_length, source, chunk_size=CHUNK_SIZE, progress=None):
    """Send *total_length* bytes read from *source* as a bulk payload.

    *progress*, if given, is called as ``progress(bytes_sent, total_length)``
    after every chunk. Returns the number of payload bytes sent.
    """
    send_all(sock, _BULK_HEADER.pack(total_length))

    sent = 0
    while sent < total_length:
        data = source.read(min(chunk_size, total_length - sent))
        if not data:
            # The header already promised total_length bytes
            raise TransportError(f"Source ended after {sent}/{total_length} bytes")
        chunk = bytearray(data)
        transform_in_place(chunk)
        send_all(sock, chunk)
        sent += len(chunk)
        if progress:
            progress(sent, total_length)
    return sent


def recv_bulk_header(sock, max_length=None):
    """Read the 8-byte length header of a bulk payload."""
    (total_length,) = _BULK_HEADER.unpack(recv_exact(sock, BULK_HEADER_SIZE))
    if max_length is not None and total_length > max_length:
        raise PayloadTooLarge(f"Declared payload length {total_length} exceeds limit {max_length}")
    return total_length


def recv_bulk_body(sock, destination, total_length, chunk_size=CHUNK_SIZE, progress=None):
    remaining = total_length
    while remaining > 0:
        chunk = bytearray(recv_exact(sock, min(chunk_size, remaining)))
        transform_in_place(chunk)
        destination.write(chunk)
        remaining -= len(chunk)
        if progress:
            progress(total_length - remaining, total_length)
    return total_length


def recv_bulk(sock, destination, chunk_size=CHUNK_SIZE, progress=None, max_length=None):
    """Receive a bulk payload into *destination* and return its declared length.

    Bytes written before a failure stay in *destination*.
    """
    total_length = recv_bulk_header(sock, max_length)
    return recv_bulk_body(sock, destination, total_length, chunk_size=chunk_size, progress=progress)


def send_file(sock, path, progress=None, chunk_size=CHUNK_SIZE):
    with open(path, 'rb') as f:
        file_size = os.fstat(f.fileno()).st_size
        logger.debug("Sending '%s' (%d bytes)", path, file_size)
        return send_bulk(sock, file_size, f, chunk_size=chunk_size, progress=progress)


def receive_file(sock, path, progress=None, atomic=False, max_length=None, chunk_size=CHUNK_SIZE):
    """Receive a bulk payload into the file at *path*.

    *path* is only opened once a valid header has arrived, so an existing file
    is untouched when the peer sends nothing or declares too much.
    With ``atomic=False`` a failure after that leaves a truncated file behind.
    With ``atomic=True`` data lands in ``<path>.part`` and replaces *path* only
    once the whole payload arrived.
    """
    total_length = recv_bulk_header(sock, max_length)
    target = f"{path}.part" if atomic else path
    try:
        with open(target, 'wb') as f:
            recv_bulk_body(sock, f, total_length, chunk_size=chunk_size, progress=progress)
    except BaseException:
        if atomic and os.path.exists(target):
            os.remove(target)
        raise
    if atomic:
        os.replace(target, path)
    logger.debug("Received '%s' (%d bytes)", path, total_length)
    return total_length
