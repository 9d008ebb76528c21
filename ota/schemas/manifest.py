"""Distribution manifest schema."""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType

from pydantic import BaseModel, ConfigDict, Field, StrictInt, field_validator


class DistributionManifest(BaseModel):
    """Published snapshot of the remote translations.

    ``content`` maps each canonical locale code to one relative path per entry
    of ``files``, in the same order. ``language_mapping`` maps a canonical
    code to ``{scheme name: alias code}``. All collections are read-only.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    timestamp: StrictInt
    files: tuple[str, ...]
    content: Mapping[str, tuple[str, ...]]
    language_mapping: Mapping[str, Mapping[str, str]] = Field(
        default_factory=dict, validate_default=True
    )

    @field_validator("content")
    @classmethod
    def _freeze_content(
        cls, value: Mapping[str, tuple[str, ...]]
    ) -> Mapping[str, tuple[str, ...]]:
        return MappingProxyType(dict(value))

    @field_validator("language_mapping")
    @classmethod
    def _freeze_language_mapping(
        cls, value: Mapping[str, Mapping[str, str]]
    ) -> Mapping[str, Mapping[str, str]]:
        return MappingProxyType(
            {code: MappingProxyType(dict(aliases)) for code, aliases in value.items()}
        )

    @property
    def version(self) -> int:
        """Version marker of this snapshot."""
        return self.timestamp

    def path_for(self, locale: str, file_index: int) -> str | None:
        """Relative path of a file for a locale, or None if the locale does not cover it."""
        paths = self.content.get(locale)
        if paths is None or len(paths) <= file_index:
            return None
        return paths[file_index]

    def resolve_alias(self, canonical_code: str, scheme_name: str) -> str:
        """Map a canonical locale code to its alias under a scheme, or return it unchanged."""
        return self.language_mapping.get(canonical_code, {}).get(scheme_name, canonical_code)

    def resolve_canonical(self, alias_code: str, scheme_name: str) -> str:
        """Map an alias under a scheme back to the canonical code, or return it unchanged.

        The first canonical code (in manifest order) whose alias matches wins.
        """
        for canonical_code, aliases in self.language_mapping.items():
            if aliases.get(scheme_name) == alias_code:
                return canonical_code
        return alias_code
