# fileshare_server/storage.py
import logging
import os

from fileshare_common.commands import validate_filename
from fileshare_common.errors import NotFoundError
from fileshare_common.protocol import LIST_ERROR_PREFIX

logger = logging.getLogger(__name__)


class FileStore:
    """Shared root (LIST/GET) with the reserved uploads directory beneath it (PUT)."""

    def __init__(self, shared_root, uploads_dir):
        self.shared_root = shared_root
        self.uploads_dir = uploads_dir
        self.uploads_root = os.path.join(shared_root, uploads_dir)

    def ensure_dirs(self):
        os.makedirs(self.shared_root, exist_ok=True)
        os.makedirs(self.uploads_root, exist_ok=True)

    def list_entries(self):
        """Names in the shared root, without the uploads directory. Raises ``OSError``."""
        return [name for name in os.listdir(self.shared_root) if name != self.uploads_dir]

    def listing_payload(self):
        """Text of the LIST data frame: one name per line, or the open-failure message."""
        try:
            entries = self.list_entries()
        except OSError as e:
            logger.error("Cannot list '%s': %s", self.shared_root, e)
            return f"{LIST_ERROR_PREFIX} cannot open {os.path.basename(os.path.normpath(self.shared_root))}\n"
        return "".join(f"{name}\n" for name in entries)

    def open_for_read(self, filename):
        """Open a shared file for GET. Raises ``NotFoundError`` unless it is a readable regular file."""
        path = os.path.join(self.shared_root, validate_filename(filename))
        if not os.path.isfile(path):
            raise NotFoundError(f"No such file: {filename!r}")
        try:
            return open(path, 'rb')
        except OSError as e:
            raise NotFoundError(f"Cannot open {filename!r}: {e}") from e

    def upload_path(self, filename):
        return os.path.join(self.uploads_root, validate_filename(filename))
