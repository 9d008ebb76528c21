"""Registry of the translation files declared by a manifest."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ota.services.file_sync import TranslationFileSync

if TYPE_CHECKING:
    from ota.client import DistributionClient
    from ota.schemas.manifest import DistributionManifest


class DistributionRegistry:
    """Maps logical file names to their TranslationFileSync, in manifest order."""

    def __init__(self, client: DistributionClient, manifest: DistributionManifest) -> None:
        self._files: dict[str, TranslationFileSync] = {}
        for index, file_name in enumerate(manifest.files):
            self._files[file_name] = TranslationFileSync(client, file_name, index, manifest)

    def list_files(self) -> list[str]:
        """List the logical file names of the manifest."""
        return list(self._files)

    def get_file(self, file_name: str) -> TranslationFileSync | None:
        """Look up a file by its logical name. Returns None if the manifest lacks it."""
        return self._files.get(file_name)
