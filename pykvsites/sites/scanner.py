"""Directory scanning for static asset sites."""

import base64
import logging
from collections.abc import Iterator
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Optional

from ..exceptions import ScanError
from .keys import KeyValuePair, generate_path_and_key

logger = logging.getLogger(__name__)

AssetManifest = dict[str, str]

# Directory names that are never part of a site
DEFAULT_EXCLUDED_DIRS = frozenset({"node_modules"})


class DirectoryScanner:
    """Scans an asset directory into content-addressed key-value pairs.

    Dot-files and ``node_modules`` are always skipped. When ``include``
    patterns are given only matching files are scanned and ``exclude`` is
    ignored; otherwise files matching an ``exclude`` pattern are skipped.
    Patterns are glob patterns matched against both the relative path and
    the file name.

    Examples:
        >>> scanner = DirectoryScanner(exclude=["*.map"])
        >>> pairs, manifest, total_size = scanner.scan(Path("./public"))
        >>> manifest["index.html"]
        'index.1a2b3c4d5e.html'
    """

    def __init__(
        self,
        include: Optional[list[str]] = None,
        exclude: Optional[list[str]] = None,
    ):
        """Initialize directory scanner.

        Args:
            include: Glob patterns of files to include
            exclude: Glob patterns of files or directories to exclude
        """
        self.include = include or []
        self.exclude = exclude or []

    @staticmethod
    def _matches(patterns: list[str], relative_path: str, name: str) -> bool:
        return any(
            fnmatchcase(relative_path, pattern) or fnmatchcase(name, pattern)
            for pattern in patterns
        )

    def should_ignore(self, path: Path, base_path: Path, is_dir: bool = False) -> bool:
        """Check if a path should be skipped.

        Args:
            path: Path to check
            base_path: Root of the scan
            is_dir: Whether the path is a directory

        Returns:
            True if the path should be skipped
        """
        if path.name.startswith("."):
            return True

        if is_dir and path.name in DEFAULT_EXCLUDED_DIRS:
            return True

        relative_path = path.relative_to(base_path).as_posix()
        if self.include:
            # Directories are always walked so nested includes can match
            return not is_dir and not self._matches(
                self.include, relative_path, path.name
            )

        if self._matches(self.exclude, relative_path, path.name):
            logger.debug(f"Ignoring (excluded): {relative_path}")
            return True
        return False

    def iter_files(self, directory: Path, base_path: Path) -> Iterator[Path]:
        """Yield the files to scan below ``directory`` in sorted order."""
        for item in sorted(directory.iterdir()):
            is_dir = item.is_dir()
            if self.should_ignore(item, base_path, is_dir=is_dir):
                continue
            if is_dir:
                yield from self.iter_files(item, base_path)
            elif item.is_file():
                yield item

    def scan(self, directory: Path) -> tuple[list[KeyValuePair], AssetManifest, int]:
        """Scan a directory into key-value pairs and a manifest.

        Args:
            directory: Root of the asset tree

        Returns:
            Tuple of (pairs in scan order, manifest mapping each logical path
            to its key, total size of the scanned files in bytes)

        Raises:
            ScanError: If the directory is missing or a file cannot be read
        """
        if not directory.exists():
            raise ScanError(f"Asset directory does not exist: {directory}")
        if not directory.is_dir():
            raise ScanError(f"Asset path is not a directory: {directory}")

        pairs: list[KeyValuePair] = []
        manifest: AssetManifest = {}
        total_size = 0

        try:
            for file_path in self.iter_files(directory, directory):
                content = file_path.read_bytes()
                logical_path, key = generate_path_and_key(
                    file_path, directory, content
                )
                pairs.append(
                    KeyValuePair(
                        key=key,
                        value=base64.b64encode(content).decode("ascii"),
                        base64=True,
                    )
                )
                manifest[logical_path] = key
                total_size += len(content)
        except OSError as e:
            raise ScanError(f"Failed to scan {directory}: {e}") from e

        logger.debug(f"Scanned {len(pairs)} file(s) from {directory}")
        return pairs, manifest, total_size
