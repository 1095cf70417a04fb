"""Exceptions raised by pykvsites."""

from typing import Optional

# Well-known API error codes and a hint for each
_ERROR_HINTS: dict[int, str] = {
    10000: "Check your API key and email, or run with a scoped API token.",
    10009: "Check that the namespace id in kvsites.toml exists in your account.",
    10013: "The namespace may still be propagating, wait a moment and try again.",
}


class KVSitesError(Exception):
    """Base exception for all pykvsites errors."""


class ConfigError(KVSitesError):
    """Raised when a required project or user setting is missing or invalid."""


class ScanError(KVSitesError):
    """Raised when the local asset directory cannot be scanned."""


class ManifestError(KVSitesError):
    """Raised when the asset manifest cannot be read or written."""


class KeyEnumerationError(KVSitesError):
    """Raised when listing remote keys fails part way through."""


class KVAPIError(KVSitesError):
    """Raised when the key-value REST API returns an error."""

    def __init__(
        self,
        message: str,
        code: Optional[int] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message)
        self.code = code
        self.status_code = status_code


class KVAuthenticationError(KVAPIError):
    """Raised on 401 responses."""


class KVPermissionError(KVAPIError):
    """Raised on 403 responses."""


class KVNotFoundError(KVAPIError):
    """Raised on 404 responses."""


class KVRateLimitError(KVAPIError):
    """Raised on 429 responses."""


class KVNetworkError(KVAPIError):
    """Raised when the request never reached the API."""


class KVInvalidResponseError(KVAPIError):
    """Raised when the API answers with a body that is not a valid envelope."""


def format_error(error: Exception) -> str:
    """Format an error as a single user-facing line.

    API errors that carry a known error code get a remediation hint appended.

    Args:
        error: Exception to format

    Returns:
        Human-readable message

    Examples:
        >>> format_error(KVAPIError("namespace not found", code=10009))
        'Code 10009: namespace not found\\nCheck that the namespace id in kvsites.toml exists in your account.'
    """
    if isinstance(error, KVAPIError) and error.code is not None:
        message = f"Code {error.code}: {error}"
        hint = _ERROR_HINTS.get(error.code)
        if hint:
            message = f"{message}\n{hint}"
        return message
    return str(error)
