"""Content fingerprints for cached translation files."""

from __future__ import annotations

import hashlib


def digest(content: str | bytes) -> str:
    """Compute the SHA-1 hex digest of content (text is UTF-8 encoded)."""
    if isinstance(content, str):
        content = content.encode("utf-8")
    return hashlib.sha1(content).hexdigest()
