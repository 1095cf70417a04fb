"""Static asset sites backed by a key-value namespace."""

from .engine import SiteEngine
from .keys import ContentKey, KeyValuePair, generate_path_and_key, remove_hash_from_path
from .manifest import ManifestStore
from .operations import SiteOperations
from .scanner import AssetManifest, DirectoryScanner
from .sync import (
    SyncPlan,
    build_local_key_set,
    build_remote_key_set,
    filter_files,
    patch_manifest,
    path_in_subset,
    reconcile,
    subset_keys,
    sync,
)

__all__ = [
    "SiteEngine",
    "SiteOperations",
    "ContentKey",
    "KeyValuePair",
    "generate_path_and_key",
    "remove_hash_from_path",
    "ManifestStore",
    "AssetManifest",
    "DirectoryScanner",
    "SyncPlan",
    "build_local_key_set",
    "build_remote_key_set",
    "filter_files",
    "patch_manifest",
    "path_in_subset",
    "reconcile",
    "subset_keys",
    "sync",
]
