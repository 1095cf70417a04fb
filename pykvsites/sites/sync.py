"""Reconciliation of a local asset tree with a remote namespace.

Given the keys currently stored remotely and the content-addressed pairs
produced from the local directory, work out which pairs must be uploaded,
which remote keys must be deleted, and repair the asset manifest for paths
outside the active subset. Nothing here talks to the network except through
the key listing handed to ``build_remote_key_set``; applying the plan is
the caller's job.
"""

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Any, Optional, Union

from ..api import KVClient
from ..exceptions import (
    ConfigError,
    KeyEnumerationError,
    KVInvalidResponseError,
    KVSitesError,
    format_error,
)
from ..kv import KeyList, KeyRecord
from ..project import Target, site_namespace_id, validate_target
from .keys import KeyValuePair, remove_hash_from_path
from .scanner import AssetManifest, DirectoryScanner

logger = logging.getLogger(__name__)

KeySet = frozenset[str]


@dataclass
class SyncPlan:
    """Result of reconciling one local tree against one namespace."""

    to_upload: list[KeyValuePair]
    """Pairs whose key is not yet stored remotely, in scan order"""

    to_delete: list[str]
    """Remote keys in the subset that no longer exist locally"""

    manifest: AssetManifest
    """Logical path to live key mapping, patched outside the subset"""

    unchanged: int = 0
    """Number of local pairs in the subset that are already stored remotely"""


def path_in_subset(path: str, subset: str) -> bool:
    """Check whether ``path`` lies under ``subset``.

    The comparison is made on whole path components, so ``docs`` covers
    ``docs/index.html`` but not ``docs-old/index.html``. An empty subset
    covers every path.

    Examples:
        >>> path_in_subset("docs/index.1a2b3c4d5e.html", "docs")
        True
        >>> path_in_subset("docs-old/index.html", "docs")
        False
        >>> path_in_subset("anything", "")
        True
    """
    if not subset:
        return True
    prefix = PurePosixPath(subset).parts
    return PurePosixPath(path).parts[: len(prefix)] == prefix


def build_remote_key_set(
    records: Iterable[Union[KeyRecord, dict[str, Any], Exception]],
) -> KeySet:
    """Collect the names of remote keys into a set.

    ``records`` is consumed once. It may raise a ``KVSitesError`` while
    iterating, or yield an exception instance in place of a record; either
    way the build stops at the first failure and no partial set is returned.

    Args:
        records: Key listing, e.g. a ``KeyList``

    Returns:
        Set of key names

    Raises:
        KeyEnumerationError: If the listing fails
    """
    keys: set[str] = set()
    failure: Optional[Exception] = None
    try:
        for record in records:
            if isinstance(record, Exception):
                failure = record
                break
            if isinstance(record, KeyRecord):
                keys.add(record.name)
            elif isinstance(record, dict) and isinstance(record.get("name"), str):
                keys.add(record["name"])
            else:
                failure = KVInvalidResponseError(f"Malformed key record: {record!r}")
                break
    except KVSitesError as e:
        raise KeyEnumerationError(format_error(e)) from e

    if failure is not None:
        raise KeyEnumerationError(format_error(failure)) from failure

    logger.debug(f"Found {len(keys)} remote key(s)")
    return frozenset(keys)


def build_local_key_set(pairs: Iterable[KeyValuePair]) -> KeySet:
    """Collect the keys of the local pairs into a set."""
    return frozenset(pair.key for pair in pairs)


def subset_keys(keys: Iterable[str], subset: str) -> KeySet:
    """Keep only the keys under ``subset``."""
    return frozenset(key for key in keys if path_in_subset(key, subset))


def filter_files(
    pairs: Iterable[KeyValuePair], already_uploaded: KeySet, subset: str
) -> list[KeyValuePair]:
    """Select the pairs that need uploading.

    A pair is selected when its key lies under ``subset`` and is not already
    stored remotely. Since keys embed a content hash, an unchanged file is
    never re-uploaded.

    Args:
        pairs: Local pairs in scan order
        already_uploaded: Remote keys within the subset
        subset: Active subset path

    Returns:
        Selected pairs, in input order
    """
    return [
        pair
        for pair in pairs
        if path_in_subset(pair.key, subset) and pair.key not in already_uploaded
    ]


def reconcile(
    pairs: Sequence[KeyValuePair], remote_subset: KeySet, subset: str
) -> tuple[list[KeyValuePair], list[str]]:
    """Compute the upload and delete sets.

    A content change shows up as one new key to upload and the old key to
    delete, both for the same logical path.

    Args:
        pairs: All local pairs
        remote_subset: Remote keys within the subset
        subset: Active subset path

    Returns:
        Tuple of (pairs to upload, keys to delete). The delete list is
        sorted; its order carries no meaning.
    """
    local_subset = subset_keys(build_local_key_set(pairs), subset)

    to_upload = filter_files(pairs, remote_subset, subset)
    to_delete = sorted(remote_subset - local_subset)

    logger.debug(
        f"Reconciled {len(local_subset)} local and {len(remote_subset)} remote "
        f"key(s): {len(to_upload)} to upload, {len(to_delete)} to delete"
    )
    return to_upload, to_delete


def patch_manifest(
    manifest: AssetManifest, remote_keys: Iterable[str], subset: str
) -> AssetManifest:
    """Point manifest entries outside ``subset`` at their live remote keys.

    A sync limited to a subset never touches keys outside it, but an earlier
    sync of another subset may have replaced them. For each manifest entry
    outside the subset, the remote key whose hash-stripped path equals the
    entry's logical path becomes the entry's value. Entries inside the subset
    are left alone.

    Hashes are assumed collision free. If several remote keys strip to the
    same path, a warning is logged and the first one in sorted order wins.

    Args:
        manifest: Manifest to patch in place
        remote_keys: Every remote key, not only the subset
        subset: Active subset path

    Returns:
        The same manifest object
    """
    outside = [path for path in manifest if not path_in_subset(path, subset)]
    if not outside:
        return manifest

    live_keys: dict[str, list[str]] = {}
    for key in sorted(remote_keys):
        live_keys.setdefault(remove_hash_from_path(key), []).append(key)

    for path in outside:
        candidates = live_keys.get(path)
        if not candidates:
            continue
        if len(candidates) > 1:
            logger.warning(
                f"Remote keys {candidates} all map to {path!r}; using {candidates[0]!r}"
            )
        live = candidates[0]
        if manifest[path] != live:
            logger.debug(f"Manifest entry {path!r}: {manifest[path]!r} -> {live!r}")
            manifest[path] = live

    return manifest


def sync(
    client: KVClient,
    target: Target,
    directory: Optional[Path] = None,
) -> SyncPlan:
    """Build the sync plan for a project's site.

    Lists every remote key in the site namespace, scans the local asset
    directory, reconciles the two within the configured subset and patches
    the manifest.

    Args:
        client: API client
        target: Project settings
        directory: Asset directory (defaults to the site's bucket)

    Returns:
        SyncPlan with the uploads, deletions and patched manifest

    Raises:
        ConfigError: If required project settings are missing
        KeyEnumerationError: If listing remote keys fails
        ScanError: If the local directory cannot be scanned
    """
    validate_target(target)
    namespace_id = site_namespace_id(target)
    subset = target.subset

    if directory is None:
        if target.site is None:
            raise ConfigError(
                "Your project config has no `[site]` section. Add one with a "
                "`bucket` or pass the asset directory explicitly."
            )
        directory = target.site.bucket

    remote_keys = build_remote_key_set(
        KeyList(client, target.account_id, namespace_id)
    )
    remote_subset = subset_keys(remote_keys, subset)

    if target.site is not None:
        scanner = DirectoryScanner(
            include=target.site.include, exclude=target.site.exclude
        )
    else:
        scanner = DirectoryScanner()
    pairs, manifest, _ = scanner.scan(directory)

    to_upload, to_delete = reconcile(pairs, remote_subset, subset)
    patch_manifest(manifest, remote_keys, subset)

    in_subset = sum(1 for pair in pairs if path_in_subset(pair.key, subset))
    logger.info("Success")
    return SyncPlan(
        to_upload=to_upload,
        to_delete=to_delete,
        manifest=manifest,
        unchanged=in_subset - len(to_upload),
    )
