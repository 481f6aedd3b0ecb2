from __future__ import annotations

import re
import secrets

ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
SESSION_CODE_LENGTH = 6

_SEPARATORS_RE = re.compile(r"[\s\-]+")


def generate_session_code(length: int = SESSION_CODE_LENGTH) -> str:
    """Generates a short uppercase session code without 0/O/1/I characters."""
    if length <= 0:
        raise ValueError("length must be positive")
    return "".join(secrets.choice(ALPHABET) for _ in range(length))


def normalize_session_code(code: str) -> str:
    return _SEPARATORS_RE.sub("", code or "").upper()


def is_valid_session_code(code: str) -> bool:
    normalized = normalize_session_code(code)
    if len(normalized) != SESSION_CODE_LENGTH:
        return False
    return all(char in ALPHABET for char in normalized)


def format_session_code(code: str) -> str:
    """Formats a code for display, e.g. ``ABCDEF`` -> ``ABC DEF``."""
    normalized = normalize_session_code(code)
    if len(normalized) != SESSION_CODE_LENGTH:
        return normalized
    return f"{normalized[:3]} {normalized[3:]}"
