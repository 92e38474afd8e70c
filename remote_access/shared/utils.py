"""Shared validation helpers for credentials and remote file paths."""
import re
from typing import Tuple

PASSWORD_BLACKLIST = {
    "123456",
    "123456789",
    "password",
    "qwerty",
    "111111",
    "12345678",
    "remotedesk",
}


def is_password_strong(password: str, min_length: int = 10) -> bool:
    """Return True if password meets simple strength requirements."""
    if len(password) < min_length:
        return False
    if password.lower() in PASSWORD_BLACKLIST:
        return False
    return not re.fullmatch(r"\d+", password)


def split_remote_path(path: str) -> Tuple[str, ...]:
    """Split a client supplied path into safe relative components.

    Raises ValueError for empty paths and for any ``..`` component.
    """
    parts = tuple(p for p in re.split(r"[\\/]+", path) if p and p != ".")
    if not parts:
        raise ValueError("Empty path")
    if ".." in parts:
        raise ValueError(f"Path escapes the transfer directory: {path}")
    return parts
