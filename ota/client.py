"""Entry point for reading translations from an over-the-air distribution."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING

import httpx
from pydantic import ValidationError

from ota.exceptions import ConfigurationError, ManifestFetchError, ManifestParseError
from ota.schemas.manifest import DistributionManifest
from ota.services.file_sync import DEFAULT_CONCURRENCY
from ota.services.registry import DistributionRegistry

if TYPE_CHECKING:
    from ota.config import Settings
    from ota.services.file_sync import TranslationFileSync

logger = logging.getLogger(__name__)

MANIFEST_PATH = "manifest.json"


def ensure_cache_dir(cache_dir: Path) -> None:
    """Create the cache directory if needed, failing if the path is unusable."""
    if cache_dir.exists() and not cache_dir.is_dir():
        msg = f"Cache path exists but is not a directory: {cache_dir}"
        raise ConfigurationError(msg)
    try:
        cache_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        msg = f"Cannot create cache directory {cache_dir}: {exc}"
        raise ConfigurationError(msg) from exc


def parse_manifest(text: str) -> DistributionManifest:
    """Parse and validate a manifest document."""
    try:
        data = json.loads(text)
    except ValueError as exc:
        msg = f"Failed to parse distribution manifest: {exc}"
        raise ManifestParseError(msg) from exc
    if not isinstance(data, dict):
        msg = "Failed to parse distribution manifest: root must be a JSON object"
        raise ManifestParseError(msg)
    try:
        return DistributionManifest.model_validate(data)
    except ValidationError as exc:
        msg = f"Invalid distribution manifest: {exc}"
        raise ManifestParseError(msg) from exc


class DistributionClient:
    """Client for one distribution: its manifest, locale aliases and cached files.

    Constructing a client fetches the manifest and brings every declared file
    up to date in the cache, so construction blocks on network I/O. Reads made
    afterwards are served from disk only.
    """

    def __init__(
        self,
        distribution_url: str,
        cache_dir: Path,
        *,
        http_client: httpx.Client | None = None,
        concurrency: int = DEFAULT_CONCURRENCY,
        timeout: float = 30.0,
    ) -> None:
        self.distribution_url = distribution_url.rstrip("/")
        self.cache_dir = Path(cache_dir)
        self.concurrency = concurrency
        self._owns_http = http_client is None
        self.http = http_client if http_client is not None else httpx.Client(timeout=timeout)
        try:
            ensure_cache_dir(self.cache_dir)
            self.manifest = self._fetch_manifest()
            self.registry = DistributionRegistry(self, self.manifest)
        except BaseException:
            self.close()
            raise

    @classmethod
    def from_settings(
        cls, settings: Settings, *, http_client: httpx.Client | None = None
    ) -> DistributionClient:
        """Create a client from application settings."""
        if not settings.distribution_url:
            msg = "No distribution URL configured (set OTA_DISTRIBUTION_URL)"
            raise ConfigurationError(msg)
        return cls(
            settings.distribution_url,
            settings.cache_dir,
            http_client=http_client,
            concurrency=settings.concurrency,
            timeout=settings.request_timeout,
        )

    def close(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._owns_http:
            self.http.close()

    def __enter__(self) -> DistributionClient:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def url_for(self, path: str) -> str:
        """Absolute URL of a path inside the distribution; a leading slash is optional."""
        return f"{self.distribution_url}/{path.lstrip('/')}"

    def _fetch_manifest(self) -> DistributionManifest:
        url = self.url_for(MANIFEST_PATH)
        try:
            resp = self.http.get(url)
        except httpx.HTTPError as exc:
            msg = f"Failed to get distribution manifest: {exc}"
            raise ManifestFetchError(msg) from exc
        if not resp.is_success:
            msg = f"Failed to get distribution manifest: HTTP {resp.status_code}"
            raise ManifestFetchError(msg)
        manifest = parse_manifest(resp.text)
        logger.info(
            "Loaded manifest %s (version %d, %d file(s), %d locale(s))",
            url,
            manifest.version,
            len(manifest.files),
            len(manifest.content),
        )
        return manifest

    def reload_manifest(self) -> None:
        """Fetch the manifest again and rebuild the file registry.

        If the new manifest cannot be fetched or its files cannot be set up,
        the client keeps its previous manifest and registry.

        Cached entries are kept; those written for an older version become
        expired and are downloaded again by the rebuilt files.
        """
        manifest = self._fetch_manifest()
        registry = DistributionRegistry(self, manifest)
        self.manifest, self.registry = manifest, registry

    @property
    def manifest_version(self) -> int:
        return self.manifest.version

    def resolve_alias(self, canonical_code: str, scheme_name: str) -> str:
        """Map a canonical locale code to its alias under ``scheme_name``.

        For example, with ``"tr": {"locale": "tr-TR"}`` in the manifest's
        language mapping, ``resolve_alias("tr", "locale")`` returns ``"tr-TR"``.
        Returns the input unchanged when no mapping exists.
        """
        return self.manifest.resolve_alias(canonical_code, scheme_name)

    def resolve_canonical(self, alias_code: str, scheme_name: str) -> str:
        """Map an alias under ``scheme_name`` back to its canonical locale code.

        Returns the input unchanged when no mapping exists.
        """
        return self.manifest.resolve_canonical(alias_code, scheme_name)

    def list_files(self) -> list[str]:
        """List the translation files declared by the manifest."""
        return self.registry.list_files()

    def get_file(self, file_name: str) -> TranslationFileSync | None:
        """Look up a translation file by its logical name."""
        return self.registry.get_file(file_name)
