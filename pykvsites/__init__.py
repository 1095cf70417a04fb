"""pykvsites - publish static asset sites to a key-value namespace."""

from .api import KVClient
from .exceptions import (
    ConfigError,
    KeyEnumerationError,
    KVAPIError,
    KVAuthenticationError,
    KVInvalidResponseError,
    KVNetworkError,
    KVNotFoundError,
    KVPermissionError,
    KVRateLimitError,
    KVSitesError,
    ManifestError,
    ScanError,
    format_error,
)
from .project import AccountMode, Target, load_target

__all__ = [
    "KVClient",
    "AccountMode",
    "Target",
    "load_target",
    "ConfigError",
    "KeyEnumerationError",
    "KVAPIError",
    "KVAuthenticationError",
    "KVInvalidResponseError",
    "KVNetworkError",
    "KVNotFoundError",
    "KVPermissionError",
    "KVRateLimitError",
    "KVSitesError",
    "ManifestError",
    "ScanError",
    "format_error",
]
