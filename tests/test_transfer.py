"""Tests for bulk payload transfer."""

import io
import struct

import pytest

from conftest import LoopbackStream
from fileshare_common.codec import transform
from fileshare_common.errors import PayloadTooLarge, TransportError
from fileshare_common.protocol import CHUNK_SIZE
from fileshare_common.transfer import receive_file, recv_bulk, send_bulk, send_file


def _payload(length):
    return bytes((i * 7 + 3) % 256 for i in range(length))


@pytest.mark.parametrize("length", [0, 1, CHUNK_SIZE - 1, CHUNK_SIZE, CHUNK_SIZE + 1, 150000])
def test_bulk_roundtrip(length):
    data = _payload(length)
    stream = LoopbackStream(max_read=CHUNK_SIZE)
    assert send_bulk(stream, length, io.BytesIO(data)) == length

    out = io.BytesIO()
    assert recv_bulk(stream, out) == length
    assert out.getvalue() == data
    assert not stream.buffer


def test_bulk_wire_format(loopback):
    data = b"payload"
    send_bulk(loopback, len(data), io.BytesIO(data))
    raw = bytes(loopback.buffer)
    assert raw[:8] == struct.pack("!Q", len(data)) == b"\x00" * 7 + b"\x07"
    assert raw[8:] == transform(data)


def test_send_progress_is_monotonic_per_chunk(loopback):
    data = _payload(150000)
    seen = []
    send_bulk(loopback, len(data), io.BytesIO(data), progress=lambda done, total: seen.append((done, total)))
    assert [done for done, _ in seen] == [65536, 131072, 150000]
    assert all(total == 150000 for _, total in seen)


def test_recv_progress_reaches_total():
    stream = LoopbackStream(max_read=CHUNK_SIZE)
    send_bulk(stream, 10, io.BytesIO(b"0123456789"), chunk_size=4)
    seen = []
    recv_bulk(stream, io.BytesIO(), chunk_size=4, progress=lambda done, total: seen.append(done))
    assert seen == [4, 8, 10]


def test_short_source_raises(loopback):
    with pytest.raises(TransportError):
        send_bulk(loopback, 100, io.BytesIO(b"only ten.."))


def test_premature_close_keeps_partial_output():
    stream = LoopbackStream(struct.pack("!Q", 100) + transform(b"x" * 40), max_read=CHUNK_SIZE)
    out = io.BytesIO()
    with pytest.raises(TransportError):
        recv_bulk(stream, out, chunk_size=16)
    assert out.getvalue() == b"x" * 32


def test_declared_length_over_limit():
    stream = LoopbackStream(struct.pack("!Q", 1 << 40))
    with pytest.raises(PayloadTooLarge):
        recv_bulk(stream, io.BytesIO(), max_length=1 << 30)


def test_send_file_and_receive_file(tmp_path):
    src = tmp_path / "src.dat"
    src.write_bytes(_payload(70000))
    stream = LoopbackStream(max_read=CHUNK_SIZE)
    assert send_file(stream, str(src)) == 70000

    dest = tmp_path / "dest.dat"
    assert receive_file(stream, str(dest)) == 70000
    assert dest.read_bytes() == src.read_bytes()


def test_failed_receive_leaves_truncated_file(tmp_path):
    stream = LoopbackStream(struct.pack("!Q", 100) + transform(b"y" * 10))
    dest = tmp_path / "partial.dat"
    with pytest.raises(TransportError):
        receive_file(stream, str(dest), chunk_size=4)
    assert dest.read_bytes() == b"y" * 8


def test_atomic_receive_leaves_nothing_on_failure(tmp_path):
    dest = tmp_path / "target.dat"
    dest.write_bytes(b"old contents")
    stream = LoopbackStream(struct.pack("!Q", 100) + transform(b"y" * 10))
    with pytest.raises(TransportError):
        receive_file(stream, str(dest), atomic=True)
    assert dest.read_bytes() == b"old contents"
    assert not (tmp_path / "target.dat.part").exists()


def test_atomic_receive_replaces_on_success(tmp_path):
    dest = tmp_path / "target.dat"
    dest.write_bytes(b"old contents")
    stream = LoopbackStream(max_read=CHUNK_SIZE)
    send_bulk(stream, 3, io.BytesIO(b"new"))
    receive_file(stream, str(dest), atomic=True)
    assert dest.read_bytes() == b"new"


def test_missing_header_leaves_existing_file_untouched(tmp_path):
    dest = tmp_path / "existing.dat"
    dest.write_bytes(b"old contents")
    with pytest.raises(TransportError):
        receive_file(LoopbackStream(b""), str(dest))
    assert dest.read_bytes() == b"old contents"


def test_oversized_declaration_leaves_existing_file_untouched(tmp_path):
    dest = tmp_path / "existing.dat"
    dest.write_bytes(b"old contents")
    stream = LoopbackStream(struct.pack("!Q", 1 << 40))
    with pytest.raises(PayloadTooLarge):
        receive_file(stream, str(dest), max_length=1 << 30)
    assert dest.read_bytes() == b"old contents"
