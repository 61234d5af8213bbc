# fileshare_server/credentials.py
import logging

logger = logging.getLogger(__name__)


class CredentialStore:
    """Flat ``username:password`` file, re-read on every check.

    Nothing is cached, so concurrent sessions can call ``check`` without
    locking and edits to the file apply to the next login.
    """

    def __init__(self, path):
        self.path = path

    def lookup(self, username):
        """Return the password stored for *username*; the first matching line wins."""
        try:
            # Same surrogateescape decoding as the wire text, so non-UTF-8 bytes compare exactly
            with open(self.path, 'r', encoding='utf-8', errors='surrogateescape') as f:
                for line in f:
                    line = line.rstrip('\r\n')
                    user, sep, password = line.partition(':')
                    if not sep:
                        continue
                    if user == username:
                        return password
        except OSError as e:
            logger.warning("Cannot read credential file '%s': %s", self.path, e)
        return None

    def check(self, username, password):
        if not username or not password:
            return False
        stored = self.lookup(username)
        return stored is not None and stored == password
