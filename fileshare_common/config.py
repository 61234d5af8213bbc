# fileshare_common/config.py
"""Runtime configuration for both endpoints.

Defaults come from ``fileshare_common.protocol``; every field can be
overridden through a ``FILESHARE_*`` environment variable and, in the run
scripts, through command-line flags.
"""
import os
from dataclasses import dataclass
from typing import Optional

from fileshare_common.protocol import (
    HOST, CLIENT_HOST, PORT, SHARED_ROOT, UPLOADS_DIR, USERS_FILE, DOWNLOADS_DIR,
    MAX_FRAME_SIZE, MAX_UPLOAD_SIZE
)


def _env_bool(name, default):
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_float(name, default):
    value = os.environ.get(name)
    if not value:
        return default
    return float(value)


@dataclass
class ServerConfig:
    host: str = HOST
    port: int = PORT
    shared_root: str = SHARED_ROOT
    uploads_dir: str = UPLOADS_DIR
    users_file: str = USERS_FILE
    max_frame_size: int = MAX_FRAME_SIZE
    max_upload_size: int = MAX_UPLOAD_SIZE
    atomic_uploads: bool = False

    @property
    def uploads_root(self):
        return os.path.join(self.shared_root, self.uploads_dir)

    @classmethod
    def from_env(cls):
        return cls(
            host=os.environ.get("FILESHARE_HOST", HOST),
            port=int(os.environ.get("FILESHARE_PORT", PORT)),
            shared_root=os.environ.get("FILESHARE_SHARED_ROOT", SHARED_ROOT),
            uploads_dir=os.environ.get("FILESHARE_UPLOADS_DIR", UPLOADS_DIR),
            users_file=os.environ.get("FILESHARE_USERS_FILE", USERS_FILE),
            max_frame_size=int(os.environ.get("FILESHARE_MAX_FRAME_SIZE", MAX_FRAME_SIZE)),
            max_upload_size=int(os.environ.get("FILESHARE_MAX_UPLOAD_SIZE", MAX_UPLOAD_SIZE)),
            atomic_uploads=_env_bool("FILESHARE_ATOMIC_UPLOADS", False),
        )


@dataclass
class ClientConfig:
    host: str = CLIENT_HOST
    port: int = PORT
    downloads_dir: str = DOWNLOADS_DIR
    timeout: Optional[float] = None  # Blocking sockets unless set

    @classmethod
    def from_env(cls):
        return cls(
            host=os.environ.get("FILESHARE_SERVER_HOST", CLIENT_HOST),
            port=int(os.environ.get("FILESHARE_SERVER_PORT", PORT)),
            downloads_dir=os.environ.get("FILESHARE_DOWNLOADS_DIR", DOWNLOADS_DIR),
            timeout=_env_float("FILESHARE_TIMEOUT", None),
        )
