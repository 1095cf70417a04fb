"""Bulk write and delete operations used to apply a sync plan."""

import logging
from collections.abc import Sequence
from typing import Callable, Optional

from ..api import KVClient
from ..utils import DEFAULT_BULK_BATCH_SIZE, chunked
from .keys import KeyValuePair

logger = logging.getLogger(__name__)


class SiteOperations:
    """Sends uploads and deletions to a namespace in bulk batches."""

    def __init__(self, client: KVClient, account_id: str):
        """Initialize site operations.

        Args:
            client: API client
            account_id: Account owning the namespace
        """
        self.client = client
        self.account_id = account_id

    def upload(
        self,
        namespace_id: str,
        pairs: Sequence[KeyValuePair],
        batch_size: int = DEFAULT_BULK_BATCH_SIZE,
        progress_callback: Optional[Callable[[int], None]] = None,
    ) -> int:
        """Write pairs to a namespace.

        Args:
            namespace_id: Target namespace
            pairs: Pairs to write
            batch_size: Maximum pairs per request
            progress_callback: Optional callback called with each batch size

        Returns:
            Number of pairs written
        """
        written = 0
        for batch in chunked(pairs, batch_size):
            logger.debug(f"Writing batch of {len(batch)} pair(s)")
            self.client.write_bulk(self.account_id, namespace_id, batch)
            written += len(batch)
            if progress_callback:
                progress_callback(len(batch))
        return written

    def delete(
        self,
        namespace_id: str,
        keys: Sequence[str],
        batch_size: int = DEFAULT_BULK_BATCH_SIZE,
        progress_callback: Optional[Callable[[int], None]] = None,
    ) -> int:
        """Delete keys from a namespace.

        Args:
            namespace_id: Target namespace
            keys: Keys to delete
            batch_size: Maximum keys per request
            progress_callback: Optional callback called with each batch size

        Returns:
            Number of keys deleted
        """
        deleted = 0
        for batch in chunked(keys, batch_size):
            logger.debug(f"Deleting batch of {len(batch)} key(s)")
            self.client.delete_bulk(self.account_id, namespace_id, batch)
            deleted += len(batch)
            if progress_callback:
                progress_callback(len(batch))
        return deleted
