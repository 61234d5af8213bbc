"""Tests for the XOR obfuscation transform (not encryption)."""

import os

from fileshare_common.codec import transform, transform_in_place
from fileshare_common.protocol import XOR_KEY


def test_transform_xors_every_byte_with_key():
    assert XOR_KEY == 0x5A
    assert transform(b"\x00\xff\x5a") == b"\x5a\xa5\x00"
    assert transform(b"A") == b"\x1b"


def test_transform_is_self_inverse():
    data = os.urandom(1000)
    assert transform(transform(data)) == data
    assert transform(b"") == b""


def test_transform_ignores_chunk_boundaries():
    data = os.urandom(999)
    pieces = [data[:1], data[1:500], data[500:]]
    assert b"".join(transform(p) for p in pieces) == transform(data)


def test_transform_in_place_with_length():
    buf = bytearray(b"\x00\x00\x00\x00")
    transform_in_place(buf, 2)
    assert buf == bytearray(b"\x5a\x5a\x00\x00")


def test_obfuscation_leaks_key_on_zero_bytes():
    # Obfuscation only: a run of zero bytes exposes the key directly
    assert set(transform(bytes(16))) == {XOR_KEY}
