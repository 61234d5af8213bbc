# fileshare_common/logging_config.py
import logging
import os
import re
import sys
from typing import Optional


class SensitiveDataFilter(logging.Filter):
    """Filter to mask passwords in log records."""

    PATTERNS = [
        (re.compile(r'(\bAUTH\s+\S+\s+)(\S+)'), r'\1***MASKED***'),
        (re.compile(r'(password["\']?\s*[:=]\s*["\']?)([^"\'}\s,]+)', re.IGNORECASE), r'\1***MASKED***'),
        (re.compile(r'(secret["\']?\s*[:=]\s*["\']?)([^"\'}\s,]+)', re.IGNORECASE), r'\1***MASKED***'),
    ]

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            record.msg = self._mask_value(record.msg)

        if record.args:
            if isinstance(record.args, dict):
                record.args = {k: self._mask_value(v) for k, v in record.args.items()}
            elif isinstance(record.args, tuple):
                record.args = tuple(self._mask_value(arg) for arg in record.args)

        return True

    def _mask_value(self, value):
        if isinstance(value, str):
            for pattern, replacement in self.PATTERNS:
                value = pattern.sub(replacement, value)
        return value


def setup_logging(component_name: str, log_level: Optional[str] = None) -> logging.Logger:
    """
    Set up logging for one process.

    Args:
        component_name: Name of the component ('server', 'client', 'streamlit')
        log_level: DEBUG, INFO, WARNING or ERROR. Defaults to FILESHARE_LOG_LEVEL or INFO

    Returns:
        The component logger
    """
    if log_level is None:
        log_level = os.getenv('FILESHARE_LOG_LEVEL', 'INFO').upper()

    level = getattr(logging, log_level, logging.INFO)

    # Package loggers (fileshare_server.server, ...) hang off the root logger
    root = logging.getLogger()
    root.setLevel(level)

    if not any(getattr(h, '_fileshare', False) for h in root.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        ))
        handler.addFilter(SensitiveDataFilter())
        handler._fileshare = True
        root.addHandler(handler)

    for handler in root.handlers:
        if getattr(handler, '_fileshare', False):
            handler.setLevel(level)

    return logging.getLogger(component_name)
