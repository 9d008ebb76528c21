"""Per-file download planning and refresh against the local cache."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING

import httpx

from ota.exceptions import InvalidArgumentError
from ota.filesystem.locale_cache import CacheStatus, LocaleCacheStore, is_safe_locale
from ota.services.digest_service import digest
from ota.services.worker_pool import WorkerPool

if TYPE_CHECKING:
    from collections.abc import Mapping

    from ota.client import DistributionClient
    from ota.schemas.manifest import DistributionManifest

logger = logging.getLogger(__name__)

DEFAULT_CONCURRENCY = 16

_UNAVAILABLE = frozenset({CacheStatus.NOT_CACHED, CacheStatus.INVALID})


@dataclass
class RefreshResult:
    """Outcome of one refresh pass."""

    requested: list[str] = field(default_factory=list)
    downloaded: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)


class TranslationFileSync:
    """Keeps the cached locales of one translation file up to date."""

    def __init__(
        self,
        client: DistributionClient,
        file_name: str,
        file_index: int,
        manifest: DistributionManifest | None = None,
    ) -> None:
        self.client = client
        self.file_name = file_name
        self.file_index = file_index
        self.manifest = manifest if manifest is not None else client.manifest
        self._lock = threading.RLock()
        self.store = LocaleCacheStore(client.cache_dir / digest(file_name))
        self.urls: Mapping[str, str] = MappingProxyType(self._build_urls())
        self.refresh(include_expired=True, concurrency=client.concurrency)

    @property
    def manifest_version(self) -> int:
        return self.manifest.version

    def _build_urls(self) -> dict[str, str]:
        urls: dict[str, str] = {}
        for locale in self.manifest.content:
            path = self.manifest.path_for(locale, self.file_index)
            if path is None:
                logger.warning(
                    "Locale %s has no path for file #%d (%s), skipping",
                    locale,
                    self.file_index,
                    self.file_name,
                )
                continue
            if not is_safe_locale(locale):
                logger.warning("Locale code %r is not usable as a cache file name, skipping", locale)
                continue
            urls[locale] = f"{self.client.url_for(path)}?version={self.manifest_version}"
        return urls

    def locales(self) -> list[str]:
        """Locales this file can be downloaded for."""
        return list(self.urls)

    def status(self) -> dict[str, CacheStatus]:
        """Classify every downloadable locale."""
        with self._lock:
            return {
                locale: self.store.classify(locale, self.manifest_version) for locale in self.urls
            }

    def refresh(
        self, include_expired: bool = False, concurrency: int = DEFAULT_CONCURRENCY
    ) -> RefreshResult:
        """Download every locale that is missing or corrupted, plus expired ones if asked.

        Blocks until all downloads have finished. Individual failures are logged
        and leave the affected locale as it was.
        """
        if concurrency < 1:
            msg = f"Concurrency must be greater than 0, got {concurrency}"
            raise InvalidArgumentError(msg)
        with self._lock:
            result = RefreshResult()
            for locale, status in self.status().items():
                if status in _UNAVAILABLE or (include_expired and status is CacheStatus.EXPIRED):
                    result.requested.append(locale)
            logger.info(
                "Downloading %d locale(s) of %s", len(result.requested), self.file_name
            )
            if not result.requested:
                return result
            with WorkerPool(min(concurrency, len(result.requested))) as pool:
                futures = {locale: pool.submit(self.download, locale) for locale in result.requested}
                pool.join()
            for locale, future in futures.items():
                if future.exception() is None and future.result():
                    result.downloaded.append(locale)
                else:
                    result.failed.append(locale)
            if result.failed:
                logger.warning(
                    "Failed to download %d locale(s) of %s: %s",
                    len(result.failed),
                    self.file_name,
                    ", ".join(result.failed),
                )
            return result

    def download(self, locale: str) -> bool:
        """Download one locale into the cache. Returns True if successful."""
        url = self.urls.get(locale)
        if url is None:
            msg = f"Unknown locale for {self.file_name}: {locale}"
            raise InvalidArgumentError(msg)
        logger.debug("Downloading %s for %s", self.file_name, locale)
        try:
            resp = self.client.http.get(url)
        except httpx.HTTPError as exc:
            logger.warning("Failed to download %s for %s: %s", self.file_name, locale, exc)
            return False
        if not resp.is_success:
            logger.warning(
                "Failed to download %s for %s: HTTP %d", self.file_name, locale, resp.status_code
            )
            return False
        self.store.write(locale, resp.text, self.manifest_version)
        logger.info("Downloaded %s for %s", self.file_name, locale)
        return True

    def get_content(self, locale: str) -> str | None:
        """Cached content for a canonical locale code; expired content is still served."""
        with self._lock:
            return self.store.read(locale, self.manifest_version, allow_expired=True)

    def get_content_by_alias(self, scheme_name: str, alias_code: str) -> str | None:
        """Cached content for a locale code given in a custom naming scheme."""
        return self.get_content(self.client.resolve_canonical(alias_code, scheme_name))
