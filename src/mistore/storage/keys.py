"""Object key generation for uploaded artifacts and images."""

import re
import secrets
import time

_WHITESPACE = re.compile(r"\s+")
_UNSAFE = re.compile(r"[^A-Za-z0-9._-]")
_KEY_NAME = re.compile(r"^\d+-[0-9a-f]{8}-(?P<name>.+)$")

MAX_NAME_LENGTH = 120


def sanitize_filename(filename: str | None) -> str:
    """Collapse whitespace to ``_`` and drop characters outside ``[A-Za-z0-9._-]``."""
    name = (filename or "").rsplit("/", 1)[-1].rsplit("\\", 1)[-1]
    name = _WHITESPACE.sub("_", name.strip())
    name = _UNSAFE.sub("", name).lstrip(".")
    return name[-MAX_NAME_LENGTH:] or "file"


def generate_object_key(prefix: str, filename: str | None) -> str:
    """Fresh key ``<prefix>/<epoch-millis>-<8 hex>-<name>``.

    The millisecond prefix keeps keys time-ordered; the random component
    keeps two uploads of the same file in the same millisecond apart.
    """
    millis = int(time.time() * 1000)
    return f"{prefix.strip('/')}/{millis}-{secrets.token_hex(4)}-{sanitize_filename(filename)}"


def filename_from_key(key: str) -> str:
    """Recover the sanitized original file name from a generated key."""
    last = key.rsplit("/", 1)[-1]
    match = _KEY_NAME.match(last)
    return match.group("name") if match else last
