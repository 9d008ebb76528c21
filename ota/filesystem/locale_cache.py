"""Disk-backed per-locale cache for one translation file."""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from dataclasses import asdict, dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

from ota.exceptions import InvalidArgumentError
from ota.services.digest_service import digest

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)

MEMORY_FILE = "memory.json"


class CacheStatus(StrEnum):
    """Freshness and integrity of one cached locale."""

    NOT_CACHED = "not_cached"
    INVALID = "invalid"
    EXPIRED = "expired"
    VALID = "valid"


@dataclass(frozen=True)
class CacheRecord:
    """Index entry written alongside each cached locale file."""

    version: int
    fingerprint: str


def is_safe_locale(locale: str) -> bool:
    """Return True when a locale code can be used as a file name inside the store."""
    if not locale or locale in {".", "..", MEMORY_FILE}:
        return False
    return "/" not in locale and "\\" not in locale and "\x00" not in locale


def _atomic_write(path: Path, data: bytes) -> None:
    """Write bytes to path through a temporary file in the same directory."""
    fd, temp_path = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        os.replace(temp_path, path)
    except BaseException:
        # The temp file must not outlive a failed write.
        try:
            os.unlink(temp_path)
        except FileNotFoundError:
            pass
        raise


class LocaleCacheStore:
    """Cached content of one translation file, one file per locale code.

    The index (``memory.json``) maps each locale to the manifest version it
    was downloaded for and the fingerprint of its content. A single lock
    guards the index and the content files, so a reader never observes a
    content file that does not match its index entry.
    """

    def __init__(self, root: Path) -> None:
        self.root = root
        self.memory_file = root / MEMORY_FILE
        self._lock = threading.Lock()
        self.root.mkdir(parents=True, exist_ok=True)
        self._memory: dict[str, CacheRecord] = self._load_memory()

    def _load_memory(self) -> dict[str, CacheRecord]:
        if not self.memory_file.exists():
            return {}
        try:
            data = json.loads(self.memory_file.read_text(encoding="utf-8"))
            return {
                locale: CacheRecord(version=int(v["version"]), fingerprint=str(v["fingerprint"]))
                for locale, v in data.items()
            }
        except (OSError, ValueError, TypeError, KeyError, AttributeError) as exc:
            logger.warning(
                "Failed to load cache index %s, starting empty: %s", self.memory_file, exc
            )
            return {}

    def _save_memory(self, memory: dict[str, CacheRecord]) -> None:
        data = {locale: asdict(record) for locale, record in memory.items()}
        _atomic_write(self.memory_file, json.dumps(data, indent=2).encode("utf-8"))

    def _read_bytes(self, locale: str) -> bytes | None:
        if not is_safe_locale(locale):
            return None
        path = self.root / locale
        try:
            return path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as exc:
            logger.debug("Cache file %s exists but is not readable: %s", path, exc)
            return None

    def _status(self, locale: str, current_version: int) -> tuple[CacheStatus, bytes | None]:
        record = self._memory.get(locale)
        if record is None:
            return CacheStatus.NOT_CACHED, None
        raw = self._read_bytes(locale)
        if raw is None or digest(raw) != record.fingerprint:
            return CacheStatus.INVALID, None
        if record.version < current_version:
            return CacheStatus.EXPIRED, raw
        return CacheStatus.VALID, raw

    def locales(self) -> list[str]:
        """Locales that have an index entry."""
        with self._lock:
            return list(self._memory)

    def classify(self, locale: str, current_version: int) -> CacheStatus:
        """Classify a cached locale against the latest known manifest version."""
        with self._lock:
            status, _ = self._status(locale, current_version)
        return status

    def read(self, locale: str, current_version: int, allow_expired: bool) -> str | None:
        """Return cached content, or None if it is missing, corrupted or too old.

        Expired content is returned only when ``allow_expired`` is set.
        """
        with self._lock:
            status, raw = self._status(locale, current_version)
        if status is CacheStatus.VALID or (status is CacheStatus.EXPIRED and allow_expired):
            assert raw is not None
            return raw.decode("utf-8")
        return None

    def write(self, locale: str, content: str, version: int) -> None:
        """Store content for a locale and record it in the index."""
        if not is_safe_locale(locale):
            msg = f"Locale code cannot be stored on disk: {locale!r}"
            raise InvalidArgumentError(msg)
        data = content.encode("utf-8")
        record = CacheRecord(version=version, fingerprint=digest(data))
        with self._lock:
            _atomic_write(self.root / locale, data)
            memory = {**self._memory, locale: record}
            self._save_memory(memory)
            self._memory = memory
