"""Key-value namespace helpers."""

from .key_list import KeyList, KeyRecord

__all__ = ["KeyList", "KeyRecord"]
