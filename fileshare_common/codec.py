# fileshare_common/codec.py
"""Byte-wise XOR obfuscation applied to bulk payloads.

This is an obfuscation transform, not encryption: the key is a fixed public
constant and offers no secrecy. Each byte is transformed independently, so the
result does not depend on how a stream is split into chunks, and applying the
transform twice returns the original bytes.
"""
from fileshare_common.protocol import XOR_KEY

_XOR_TABLE = bytes(b ^ XOR_KEY for b in range(256))


def transform(buffer):
    """Return a transformed copy of ``buffer``."""
    return bytes(buffer).translate(_XOR_TABLE)


def transform_in_place(buffer: bytearray, length=None):
    """Transform the first ``length`` bytes of a mutable buffer (all of it by default)."""
    if length is None:
        length = len(buffer)
    buffer[:length] = buffer[:length].translate(_XOR_TABLE)
    return buffer
