"""CLI logging setup and secret redaction."""

import logging
import re
import sys

_MIN_SECRET_LENGTH = 8  # skip short values to avoid false positives

_secrets: set[str] = set()


def register_secret(value: str):
    """Redact ``value`` from every log record from now on."""
    if value and len(value) >= _MIN_SECRET_LENGTH:
        _secrets.add(value)


def clear_secrets():
    _secrets.clear()


def redact_secrets(text: str) -> str:
    """Replace registered secret values with '***'."""
    # Longer values first so a secret containing another is fully hidden
    for value in sorted(_secrets, key=len, reverse=True):
        text = re.sub(re.escape(value), "***", text)
    return text


class SecretRedactingFilter(logging.Filter):
    """Logging filter that replaces registered secrets in log records with '***'.

    Handles both pre-formatted messages and %-style messages with args.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        if _secrets:
            record.msg = redact_secrets(str(record.msg))
            if isinstance(record.args, dict):
                record.args = {k: redact_secrets(v) if isinstance(v, str) else v for k, v in record.args.items()}
            elif isinstance(record.args, tuple):
                record.args = tuple(redact_secrets(a) if isinstance(a, str) else a for a in record.args)
        return True


def setup_cli_logging(verbose: bool = False):
    """Configure the root logger with a plain message format on stdout."""
    root = logging.getLogger()
    root.setLevel(logging.DEBUG if verbose else logging.INFO)
    root.handlers.clear()
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter("%(message)s"))
    handler.addFilter(SecretRedactingFilter())
    root.addHandler(handler)
    # urllib3 and paramiko are chatty at DEBUG
    for name in ("urllib3", "paramiko"):
        logging.getLogger(name).setLevel(logging.WARNING)
