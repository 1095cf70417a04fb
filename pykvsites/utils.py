"""Utility functions for pykvsites."""

from collections.abc import Iterator, Sequence
from typing import TypeVar

T = TypeVar("T")

# =============================================================================
# Constants for API operations
# =============================================================================

# Maximum number of keys returned by one listing page
DEFAULT_LIST_PAGE_SIZE: int = 1000

# Maximum number of pairs or keys accepted by one bulk write/delete request
DEFAULT_BULK_BATCH_SIZE: int = 10000

# Length of the content hash embedded in asset keys
CONTENT_HASH_LENGTH: int = 10

# Binding name under which the static asset namespace is exposed to the worker
SITE_NAMESPACE_BINDING: str = "__STATIC_CONTENT"


# =============================================================================
# Size formatting utilities
# =============================================================================


def format_size(size_bytes: int) -> str:
    """Format file size in human-readable format.

    Args:
        size_bytes: Size in bytes

    Returns:
        Formatted size string (e.g., "1.5 MB", "256 B")
    """
    if size_bytes < 1024:
        return f"{size_bytes} B"
    elif size_bytes < 1024 * 1024:
        return f"{size_bytes / 1024:.1f} KB"
    elif size_bytes < 1024 * 1024 * 1024:
        return f"{size_bytes / 1024 / 1024:.1f} MB"
    else:
        return f"{size_bytes / 1024 / 1024 / 1024:.1f} GB"


# =============================================================================
# Batching utilities
# =============================================================================


def chunked(items: Sequence[T], size: int) -> Iterator[Sequence[T]]:
    """Split a sequence into consecutive batches.

    Args:
        items: Sequence to split
        size: Maximum batch size (must be positive)

    Yields:
        Slices of at most ``size`` items, in order

    Examples:
        >>> list(chunked([1, 2, 3, 4, 5], 2))
        [[1, 2], [3, 4], [5]]
    """
    if size < 1:
        raise ValueError("Batch size must be at least 1")
    for start in range(0, len(items), size):
        yield items[start : start + size]
