"""Lazy, cursor-paginated listing of the keys in a namespace."""

import logging
from collections import deque
from collections.abc import Iterator
from dataclasses import dataclass
from typing import Any, Optional

from ..api import KVClient
from ..exceptions import KVInvalidResponseError
from ..utils import DEFAULT_LIST_PAGE_SIZE

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class KeyRecord:
    """A key as reported by the listing endpoint."""

    name: str
    """Full key name"""

    expiration: Optional[int] = None
    """Absolute expiration as a Unix timestamp, if any"""

    metadata: Optional[dict[str, Any]] = None
    """Arbitrary metadata attached to the key"""

    @classmethod
    def from_api_response(cls, data: dict[str, Any]) -> "KeyRecord":
        """Create a KeyRecord from an API result item."""
        return cls(
            name=data["name"],
            expiration=data.get("expiration"),
            metadata=data.get("metadata"),
        )


class KeyList:
    """Iterator over every key in a namespace.

    Pages are fetched on demand, one request at a time, while the caller
    iterates. The iterator is single-use: once exhausted or failed it stays
    that way, and a fresh ``KeyList`` is needed to list again. Any listing
    failure, including a malformed page, raises a ``KVAPIError`` from
    ``__next__``.

    Examples:
        >>> keys = KeyList(client, account_id, namespace_id)
        >>> names = {record.name for record in keys}
    """

    def __init__(
        self,
        client: KVClient,
        account_id: str,
        namespace_id: str,
        prefix: Optional[str] = None,
        page_size: int = DEFAULT_LIST_PAGE_SIZE,
    ):
        """Initialize the key listing.

        Args:
            client: API client
            account_id: Account identifier
            namespace_id: Namespace to list
            prefix: Only list keys starting with this prefix
            page_size: Number of keys requested per page
        """
        self.client = client
        self.account_id = account_id
        self.namespace_id = namespace_id
        self.prefix = prefix
        self.page_size = page_size
        self._buffer: deque[KeyRecord] = deque()
        self._cursor: Optional[str] = None
        self._pages_fetched = 0
        self._done = False

    def __iter__(self) -> Iterator[KeyRecord]:
        return self

    def __next__(self) -> KeyRecord:
        while not self._buffer:
            if self._done:
                raise StopIteration
            self._fetch_page()
        return self._buffer.popleft()

    def _fetch_page(self) -> None:
        """Fetch the next page into the buffer."""
        # Mark done first so a failing page is never requested twice
        self._done = True
        page = self.client.list_keys_page(
            self.account_id,
            self.namespace_id,
            cursor=self._cursor,
            prefix=self.prefix,
            limit=self.page_size,
        )
        self._pages_fetched += 1

        results = page.get("result") or []
        for item in results:
            if not isinstance(item, dict) or not isinstance(item.get("name"), str):
                raise KVInvalidResponseError(
                    f"Malformed key in listing page {self._pages_fetched}: {item!r}"
                )
        cursor = (page.get("result_info") or {}).get("cursor")
        if cursor and cursor == self._cursor:
            raise KVInvalidResponseError(
                f"Key listing cursor did not advance after page "
                f"{self._pages_fetched}: {cursor!r}"
            )

        self._buffer = deque(KeyRecord.from_api_response(item) for item in results)
        logger.debug(
            "Fetched key page %d with %d key(s), cursor=%r",
            self._pages_fetched,
            len(self._buffer),
            cursor,
        )
        if cursor:
            self._cursor = cursor
            self._done = False
