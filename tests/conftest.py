"""Shared pytest fixtures for all tests."""

import socket
import threading

import pytest

from fileshare_common.config import ServerConfig
from fileshare_common.framing import recv_text, send_text
from fileshare_server.server import Server


class LoopbackStream:
    """In-memory stand-in for a connected socket.

    Everything passed to ``sendall`` can be read back with ``recv``, at most
    ``max_read`` bytes per call, so short reads are exercised.
    """

    def __init__(self, data=b"", max_read=7):
        self.buffer = bytearray(data)
        self.max_read = max_read
        self.closed = False

    def sendall(self, data):
        if self.closed:
            raise BrokenPipeError("stream closed")
        self.buffer.extend(data)

    def recv(self, n):
        n = min(n, self.max_read, len(self.buffer))
        data = bytes(self.buffer[:n])
        del self.buffer[:n]
        return data


@pytest.fixture
def loopback():
    return LoopbackStream()


@pytest.fixture
def shared_root(tmp_path):
    """
    Create a shared root holding two files and the uploads directory.

    Returns:
        Path to the shared root
    """
    root = tmp_path / 'server_files'
    root.mkdir()
    (root / 'uploads').mkdir()
    (root / 'a.txt').write_text('alpha file')
    (root / 'b.bin').write_bytes(bytes(range(256)) * 10)
    return root


@pytest.fixture
def users_file(tmp_path):
    path = tmp_path / 'users.txt'
    path.write_text('alice:secret\nbob:hunter2\n')
    return path


@pytest.fixture
def server_config(shared_root, users_file):
    return ServerConfig(
        host='127.0.0.1',
        port=0,
        shared_root=str(shared_root),
        users_file=str(users_file),
    )


@pytest.fixture
def running_server(server_config):
    """
    Start a server on an ephemeral port in a background thread.

    Yields:
        The bound Server instance; it is shut down after the test
    """
    server = Server(server_config)
    server.bind()
    thread = threading.Thread(target=server.start, daemon=True)
    thread.start()
    yield server
    server.shutdown()
    thread.join(timeout=5)


@pytest.fixture
def server_address(running_server):
    host, port = running_server.address[:2]
    return host, port


@pytest.fixture
def raw_connection(server_address):
    sock = socket.create_connection(server_address, timeout=5)
    yield sock
    sock.close()


@pytest.fixture
def authed_connection(raw_connection):
    send_text(raw_connection, 'AUTH alice secret')
    assert recv_text(raw_connection) == 'AUTH_OK'
    return raw_connection
