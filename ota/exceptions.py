"""Library exception types.

Convention:
- ``OTAError`` is the common base, so callers can guard a whole client with a
  single ``except`` clause.
- Construction of a client fails with ``ConfigurationError``,
  ``ManifestFetchError`` or ``ManifestParseError``.
- Per-locale download failures are never raised; they are logged and leave the
  cached locale as it was.
"""

from __future__ import annotations


class OTAError(Exception):
    """Base class for all errors raised by the distribution cache."""


class ConfigurationError(OTAError):
    """Raised when the cache directory cannot be used."""


class ManifestFetchError(OTAError):
    """Raised when the distribution manifest cannot be retrieved."""


class ManifestParseError(OTAError):
    """Raised when the distribution manifest is structurally invalid."""


class InvalidArgumentError(OTAError, ValueError):
    """Raised for invalid caller input, such as a non-positive concurrency."""
