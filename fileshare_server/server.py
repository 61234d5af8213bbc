# fileshare_server/server.py
import enum
import logging
import os
import socket
import threading

from fileshare_common.commands import Get, ListFiles, Put, Quit, parse_auth, parse_command
from fileshare_common.config import ServerConfig
from fileshare_common.errors import AuthError, FrameTooLarge, NotFoundError, ProtocolError, TransportError
from fileshare_common.framing import recv_text, send_text
from fileshare_common.protocol import (
    LISTEN_BACKLOG, RESP_AUTH_OK, RESP_AUTH_FAIL, RESP_OK, RESP_ERROR, RESP_BYE
)
from fileshare_common.transfer import receive_file, send_bulk
from fileshare_server.credentials import CredentialStore
from fileshare_server.storage import FileStore

logger = logging.getLogger(__name__)

ACCEPT_POLL_INTERVAL = 0.5  # seconds between checks of the stop flag


class SessionState(enum.Enum):
    CONNECTED = "connected"
    AUTHENTICATING = "authenticating"
    AUTHENTICATED = "authenticated"
    CLOSED = "closed"


class ClientHandler(threading.Thread):
    """Runs one connection's session from AUTH to QUIT or disconnect.

    Handlers share no in-memory state: the credential store is re-read on
    every check and files are accessed directly, so no locks are taken.
    Concurrent PUT and GET of the same name are not serialised.
    """

    def __init__(self, client_socket, client_address, server):
        super().__init__(daemon=True)
        self.client_socket = client_socket
        self.client_address = client_address
        self.server = server
        self.config = server.config
        self.state = SessionState.CONNECTED
        self.username = None
        logger.info("[%s] New connection.", self.client_address)

    def run(self):
        try:
            if self.authenticate():
                self.command_loop()
        except TransportError as e:
            logger.info("[%s] Connection lost: %s", self.client_address, e)
        except ProtocolError as e:
            logger.warning("[%s] Dropping connection: %s", self.client_address, e)
        except OSError as e:
            logger.error("[%s] Local I/O error: %s", self.client_address, e)
        except Exception:
            logger.exception("[%s] Unexpected error in session", self.client_address)
        finally:
            self.state = SessionState.CLOSED
            try:
                self.client_socket.close()
            finally:
                self.server.deregister(self)
            logger.info("[%s] Client disconnected.", self.client_address)

    def close_connection(self):
        """Unblock the session thread by shutting down its socket."""
        try:
            self.client_socket.shutdown(socket.SHUT_RDWR)
        except OSError as e:
            logger.debug("[%s] Note during socket.shutdown: %s", self.client_address, e)

    # Undecodable bytes in names and passwords are kept as surrogates, never rewritten
    def send(self, text):
        send_text(self.client_socket, text, errors="surrogateescape")

    def receive(self):
        return recv_text(self.client_socket, self.config.max_frame_size, errors="surrogateescape")

    def authenticate(self):
        self.state = SessionState.AUTHENTICATING
        try:
            try:
                line = self.receive()
            except FrameTooLarge as e:
                raise AuthError(f"Oversized AUTH frame: {e}") from e
            auth = parse_auth(line)
            if not self.server.credentials.check(auth.username, auth.password):
                raise AuthError(f"Invalid credentials for user {auth.username!r}")
        except AuthError as e:
            logger.info("[%s] Auth failed: %s", self.client_address, e)
            self.send(RESP_AUTH_FAIL)
            return False

        self.send(RESP_AUTH_OK)
        self.username = auth.username
        self.state = SessionState.AUTHENTICATED
        logger.info("[%s] Auth OK for user: %r", self.client_address, self.username)
        return True

    def command_loop(self):
        while self.state is SessionState.AUTHENTICATED:
            line = self.receive()
            try:
                command = parse_command(line)
            except ProtocolError as e:
                logger.info("[%s] Rejected command: %s", self.client_address, e)
                self.send(f"{RESP_ERROR} {e.reason}")
                continue

            logger.debug("[%s] RX: %s", self.client_address, command)
            if isinstance(command, ListFiles):
                self.handle_list_files()
            elif isinstance(command, Get):
                self.handle_get_file(command.filename)
            elif isinstance(command, Put):
                self.handle_put_file(command.filename)
            elif isinstance(command, Quit):
                logger.info("[%s] Quit requested.", self.client_address)
                self.send(RESP_BYE)
                self.state = SessionState.CLOSED

    def handle_list_files(self):
        payload = self.server.store.listing_payload()
        self.send(RESP_OK)
        self.send(payload)
        logger.info("[%s] Sent file list.", self.client_address)

    def handle_get_file(self, filename):
        try:
            f = self.server.store.open_for_read(filename)
        except NotFoundError as e:
            logger.info("[%s] %s", self.client_address, e)
            self.send(f"{RESP_ERROR} {e.reason}")
            return

        with f:
            file_size = os.fstat(f.fileno()).st_size
            self.send(RESP_OK)
            send_bulk(self.client_socket, file_size, f, progress=self._progress("GET", filename))
        logger.info("[%s] Sent %r (%d bytes).", self.client_address, filename, file_size)

    def handle_put_file(self, filename):
        path = self.server.store.upload_path(filename)
        self.send(RESP_OK)
        total = receive_file(
            self.client_socket, path,
            progress=self._progress("PUT", filename),
            atomic=self.config.atomic_uploads,
            max_length=self.config.max_upload_size,
        )
        logger.info("[%s] Stored upload %r (%d bytes).", self.client_address, filename, total)

    def _progress(self, operation, filename):
        def report(done, total):
            logger.debug("[%s] %s %r: %d/%d bytes", self.client_address, operation, filename, done, total)
        return report


class Server:
    """Owns the listening socket and the per-connection handler threads."""

    def __init__(self, config=None):
        self.config = config or ServerConfig()
        self.credentials = CredentialStore(self.config.users_file)
        self.store = FileStore(self.config.shared_root, self.config.uploads_dir)
        self.server_socket = None
        self._stop_event = threading.Event()
        self._lock = threading.RLock()  # shutdown() may run from a signal handler
        self._handlers = set()

    @property
    def address(self):
        return self.server_socket.getsockname() if self.server_socket else None

    @property
    def active_sessions(self):
        with self._lock:
            return len(self._handlers)

    def bind(self):
        if self.server_socket:
            return
        self.store.ensure_dirs()
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        try:
            sock.bind((self.config.host, self.config.port))
            sock.listen(LISTEN_BACKLOG)
        except OSError:
            sock.close()
            raise
        sock.settimeout(ACCEPT_POLL_INTERVAL)
        self.server_socket = sock
        logger.info("Server is listening on %s:%s", *self.address[:2])
        logger.info("Serving files from: %s", os.path.abspath(self.config.shared_root))

    def start(self):
        """Bind if needed and accept connections until ``shutdown()`` is called."""
        self.bind()
        listener = self.server_socket
        try:
            while not self._stop_event.is_set():
                try:
                    client_socket, client_address = listener.accept()
                except socket.timeout:
                    continue
                except OSError as e:
                    if self._stop_event.is_set():
                        break
                    logger.error("Accept failed: %s", e)
                    continue

                handler = ClientHandler(client_socket, client_address, self)
                with self._lock:
                    self._handlers.add(handler)
                handler.start()
        except KeyboardInterrupt:
            logger.info("Server is shutting down.")
            self.shutdown()
        finally:
            self._close_listener()

    def shutdown(self, timeout=5.0):
        """Stop accepting, end live sessions and wait up to *timeout* seconds for their threads."""
        self._stop_event.set()
        self._close_listener()
        with self._lock:
            handlers = list(self._handlers)
        for handler in handlers:
            handler.close_connection()
        for handler in handlers:
            if handler is not threading.current_thread():
                handler.join(timeout)

    def deregister(self, handler):
        with self._lock:
            self._handlers.discard(handler)

    def _close_listener(self):
        with self._lock:
            sock, self.server_socket = self.server_socket, None
        if sock:
            sock.close()
            logger.info("Server socket closed.")
