"""Content-addressed asset keys.

Every asset is stored under a key made of its logical path with a short
content hash spliced in before the extension::

    css/site.css  ->  css/site.1a2b3c4d5e.css
    LICENSE       ->  LICENSE.1a2b3c4d5e

An unchanged file always produces the same key, so key equality doubles as
a content equality check. A changed file produces a new key for the same
logical path.
"""

import hashlib
import re
from dataclasses import asdict, dataclass
from pathlib import Path, PurePosixPath
from typing import Any, Optional, Union

from ..utils import CONTENT_HASH_LENGTH

_HASH_RE = re.compile(rf"^[0-9a-f]{{{CONTENT_HASH_LENGTH}}}$")


def get_digest(content: bytes) -> str:
    """Return the short content hash used in asset keys.

    Args:
        content: File contents

    Returns:
        First ``CONTENT_HASH_LENGTH`` hex characters of the BLAKE2b digest
    """
    return hashlib.blake2b(content).hexdigest()[:CONTENT_HASH_LENGTH]


def url_safe_path(path: Union[str, Path]) -> str:
    """Convert a relative path to the forward-slash form used in keys."""
    posix = PurePosixPath(Path(path).as_posix())
    return "/".join(part for part in posix.parts if part not in ("", "."))


def generate_path_with_hash(path: Union[str, Path], digest: str) -> str:
    """Splice ``digest`` into the file name of ``path``.

    Examples:
        >>> generate_path_with_hash("css/site.css", "1a2b3c4d5e")
        'css/site.1a2b3c4d5e.css'
        >>> generate_path_with_hash("LICENSE", "1a2b3c4d5e")
        'LICENSE.1a2b3c4d5e'
    """
    posix = PurePosixPath(url_safe_path(path))
    if posix.suffix:
        name = f"{posix.stem}.{digest}{posix.suffix}"
    else:
        name = f"{posix.name}.{digest}"
    return str(posix.with_name(name))


def remove_hash_from_path(key: str) -> str:
    """Strip the content hash from an asset key.

    Keys without a recognizable hash segment are returned unchanged.

    Examples:
        >>> remove_hash_from_path("css/site.1a2b3c4d5e.css")
        'css/site.css'
        >>> remove_hash_from_path("LICENSE.1a2b3c4d5e")
        'LICENSE'
        >>> remove_hash_from_path("archive.tar.1a2b3c4d5e.gz")
        'archive.tar.gz'
    """
    head, sep, name = key.rpartition("/")
    parts = name.split(".")

    if len(parts) >= 3 and _HASH_RE.match(parts[-2]):
        del parts[-2]
    elif len(parts) >= 2 and parts[0] and _HASH_RE.match(parts[-1]):
        del parts[-1]
    else:
        return key

    return f"{head}{sep}{'.'.join(parts)}"


class ContentKey(str):
    """An asset key of the form ``<logical-path-with-hash>``.

    Behaves exactly like ``str`` for equality, hashing and serialization.
    """

    @classmethod
    def from_content(cls, path: Union[str, Path], content: bytes) -> "ContentKey":
        """Build the key for a file at relative ``path`` with ``content``."""
        return cls(generate_path_with_hash(path, get_digest(content)))

    @property
    def logical_path(self) -> str:
        """The path with the content hash removed."""
        return remove_hash_from_path(self)


def generate_path_and_key(
    path: Path, directory: Path, content: Optional[bytes] = None
) -> tuple[str, str]:
    """Compute the logical path and the key for a file.

    Args:
        path: Absolute or relative path of the file
        directory: Root of the asset tree
        content: File contents; when omitted, the key equals the logical path

    Returns:
        Tuple of (url safe logical path, content key)
    """
    relative = url_safe_path(path.relative_to(directory))
    if content is None:
        return relative, relative
    return relative, ContentKey.from_content(relative, content)


@dataclass(frozen=True)
class KeyValuePair:
    """One entry of a bulk write request."""

    key: str
    """Content key the value is stored under"""

    value: str
    """Stored value (base64 text when ``base64`` is set)"""

    expiration_ttl: Optional[int] = None
    """Seconds from now after which the key expires"""

    expiration: Optional[int] = None
    """Absolute expiration as a Unix timestamp"""

    base64: Optional[bool] = None
    """Whether ``value`` is base64 encoded binary data"""

    def to_dict(self) -> dict[str, Any]:
        """Convert to the bulk write wire format, omitting unset fields."""
        return {k: v for k, v in asdict(self).items() if v is not None}
