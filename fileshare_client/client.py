# fileshare_client/client.py
import logging
import os
import socket

from fileshare_common.commands import Auth, Get, ListFiles, Put, Quit, is_safe_filename
from fileshare_common.config import ClientConfig
from fileshare_common.errors import FileShareError, ListingError, ServerError, TransportError
from fileshare_common.framing import recv_text, send_text
from fileshare_common.protocol import (
    RESP_AUTH_OK, RESP_OK, RESP_BYE, LIST_ERROR_PREFIX
)
from fileshare_common.transfer import receive_file, send_bulk

logger = logging.getLogger(__name__)


class Client:
    """Initiator side of the protocol.

    The ``request_*`` methods return ``(result, message)`` pairs for the UIs.
    A transport failure drops the connection, since the stream position is
    unknown afterwards.
    """

    def __init__(self, host, port, downloads_dir=None, timeout=None):
        defaults = ClientConfig()
        self.host = host
        self.port = port
        self.downloads_dir = downloads_dir or defaults.downloads_dir
        self.timeout = timeout
        self.client_socket = None
        self.authenticated = False

    @classmethod
    def from_config(cls, config):
        return cls(config.host, config.port, downloads_dir=config.downloads_dir, timeout=config.timeout)

    @property
    def connected(self):
        return self.client_socket is not None

    def connect(self):
        try:
            self.client_socket = socket.create_connection((self.host, self.port), timeout=self.timeout)
            self.client_socket.settimeout(self.timeout)
            self.authenticated = False
            return True, f"Connected to server at {self.host}:{self.port}"
        except socket.timeout:
            self.client_socket = None
            return False, f"Connection to server {self.host}:{self.port} timed out."
        except OSError as e:
            self.client_socket = None
            return False, f"Error connecting to server: {e}"

    def disconnect(self, send_quit_cmd=True):
        if self.client_socket:
            try:
                if send_quit_cmd:
                    self._send(Quit().encode())
                    if self._receive() != RESP_BYE:
                        logger.debug("Server did not answer QUIT with %s", RESP_BYE)
            except TransportError as e:
                logger.debug("Ignoring error while quitting: %s", e)
            finally:
                self._close()
        return "Disconnected."

    def authenticate(self, username, password):
        if not self.connected:
            return False, "Not connected."
        if not username or not password or any(c.isspace() for c in username + password):
            return False, "Username and password must be non-empty and contain no spaces."
        try:
            self._send(Auth(username, password).encode())
            response = self._receive()
        except TransportError as e:
            self._close()
            return False, f"No auth response: {e}"
        if response != RESP_AUTH_OK:
            # The server closes the connection after a failed attempt
            self._close()
            return False, "Authentication failed."
        self.authenticated = True
        return True, "Authentication successful."

    def request_list_files(self):
        if not self.connected:
            return None, "Not connected."
        try:
            files = self.list_files()
            return files, f"Found {len(files)} files."
        except ServerError as e:
            return None, f"Server error listing: {e.response}"
        except TransportError as e:
            self._close()
            return None, f"Comm error listing: {e}"

    def list_files(self):
        self._send(ListFiles().encode())
        self._expect_ok()
        payload = self._receive()
        if payload.startswith(LIST_ERROR_PREFIX):
            raise ListingError(payload.strip())
        return [line for line in payload.split("\n") if line]

    def request_download_file(self, filename, progress_callback=None):
        """Download *filename* from the shared root into the downloads directory."""
        if not self.connected:
            return False, "Not connected."
        if not is_safe_filename(filename):
            return False, f"Invalid filename: '{filename}'"
        save_path = os.path.join(self.downloads_dir, filename)
        try:
            os.makedirs(self.downloads_dir, exist_ok=True)
            self._send(Get(filename).encode())
            self._expect_ok()
            total = receive_file(self.client_socket, save_path, progress=self._progress(filename, progress_callback))
            return True, f"File '{filename}' ({total} bytes) downloaded successfully to {save_path}"
        except ServerError as e:
            return False, f"Server: {e.response}"
        except TransportError as e:
            self._close()
            return False, f"Download of '{filename}' failed: {e}"
        except OSError as e:
            # The payload is already in flight and cannot be skipped
            self._close()
            return False, f"Cannot write '{save_path}': {e}"

    def request_upload_file(self, path, progress_callback=None):
        """Upload a local file; it is stored on the server under its base name."""
        if not self.connected:
            return False, "Not connected."
        filename = os.path.basename(path.replace('\\', '/'))
        try:
            f = open(path, 'rb')
        except OSError as e:
            return False, f"Cannot open '{path}': {e}"
        with f:
            file_size = os.fstat(f.fileno()).st_size
            return self.upload_stream(filename, f, file_size, progress_callback)

    def upload_stream(self, filename, source, size, progress_callback=None):
        if not self.connected:
            return False, "Not connected."
        if not is_safe_filename(filename):
            return False, f"Invalid filename: '{filename}'"
        try:
            self._send(Put(filename).encode())
            self._expect_ok()
            send_bulk(self.client_socket, size, source, progress=self._progress(filename, progress_callback))
            return True, f"File '{filename}' ({size} bytes) uploaded successfully."
        except ServerError as e:
            return False, f"Server: {e.response}"
        except FileShareError as e:
            self._close()
            return False, f"Upload of '{filename}' failed: {e}"
        except OSError as e:
            self._close()
            return False, f"Cannot read '{filename}': {e}"

    def _progress(self, filename, progress_callback):
        if not progress_callback:
            return None
        return lambda done, total: progress_callback(filename, done, total)

    def _expect_ok(self):
        response = self._receive()
        if response != RESP_OK:
            raise ServerError(response)

    def _send(self, text):
        if not self.client_socket:
            raise TransportError("Not connected.")
        send_text(self.client_socket, text)

    def _receive(self):
        if not self.client_socket:
            raise TransportError("Not connected.")
        return recv_text(self.client_socket)

    def _close(self):
        if self.client_socket:
            self.client_socket.close()
        self.client_socket = None
        self.authenticated = False
