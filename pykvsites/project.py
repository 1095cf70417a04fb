"""Project settings loaded from ``kvsites.toml``.

Example file::

    name = "my-site"
    account_id = "0123456789abcdef"
    zone_id = "fedcba9876543210"
    route = "example.com/*"

    [site]
    bucket = "./public"
    subset = "docs"
    exclude = ["*.map"]
    manifest = ".kvsites/manifest.json"

    [[kv_namespaces]]
    binding = "__STATIC_CONTENT"
    id = "abcdef0123456789"
"""

import logging
import tomllib
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Optional

from .exceptions import ConfigError
from .utils import SITE_NAMESPACE_BINDING

logger = logging.getLogger(__name__)

DEFAULT_PROJECT_FILE = "kvsites.toml"


class AccountMode(str, Enum):
    """Worker capability of an account."""

    SINGLE_SCRIPT = "single"
    """Account can deploy one script; routes are plain filters"""

    MULTI_SCRIPT = "multi"
    """Account can deploy many scripts; routes name a script"""

    @classmethod
    def from_multiscript(cls, multiscript: bool) -> "AccountMode":
        """Select the mode from a multiscript capability flag."""
        return cls.MULTI_SCRIPT if multiscript else cls.SINGLE_SCRIPT


@dataclass
class KVNamespace:
    """A namespace bound to the worker."""

    binding: str
    id: str


@dataclass
class SiteConfig:
    """Settings of the static asset site."""

    bucket: Path
    """Local directory holding the assets"""

    subset: Optional[str] = None
    """Only sync keys under this path prefix"""

    include: list[str] = field(default_factory=list)
    """Glob patterns of files to include (overrides exclude)"""

    exclude: list[str] = field(default_factory=list)
    """Glob patterns of files to exclude"""

    manifest_path: Optional[Path] = None
    """Where the asset manifest is persisted, if anywhere"""

    @property
    def subset_path(self) -> str:
        """The subset as a prefix string, empty when unset."""
        return self.subset or ""


@dataclass
class Target:
    """A deployable project as described by ``kvsites.toml``."""

    name: str
    account_id: str = ""
    zone_id: Optional[str] = None
    route: Optional[str] = None
    site: Optional[SiteConfig] = None
    kv_namespaces: list[KVNamespace] = field(default_factory=list)

    @property
    def subset(self) -> str:
        """Active subset path, empty when the project has no site."""
        return self.site.subset_path if self.site else ""


def _string_list(value: Any, key: str) -> list[str]:
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ConfigError(f"`{key}` must be a list of strings")
    return value


def _parse_site(data: dict[str, Any], base_dir: Path) -> SiteConfig:
    if not isinstance(data, dict):
        raise ConfigError("`site` must be a table")
    bucket = data.get("bucket")
    if not bucket:
        raise ConfigError(
            "Your project config has an error, check your `kvsites.toml`: "
            "`[site]` must define `bucket`."
        )
    manifest = data.get("manifest")
    subset = data.get("subset")
    if subset is not None and not isinstance(subset, str):
        raise ConfigError("`site.subset` must be a string")

    return SiteConfig(
        bucket=base_dir / bucket,
        subset=subset.strip("/") if subset else None,
        include=_string_list(data.get("include"), "site.include"),
        exclude=_string_list(data.get("exclude"), "site.exclude"),
        manifest_path=base_dir / manifest if manifest else None,
    )


def target_from_dict(data: dict[str, Any], base_dir: Path) -> Target:
    """Build a Target from parsed TOML data.

    Args:
        data: Parsed project file
        base_dir: Directory relative paths are resolved against

    Returns:
        Target instance

    Raises:
        ConfigError: If the data is malformed
    """
    name = data.get("name")
    if not name:
        raise ConfigError(
            "Your project config has an error, check your `kvsites.toml`: "
            "`name` must be provided."
        )

    namespaces = []
    for item in data.get("kv_namespaces") or []:
        if not isinstance(item, dict) or "binding" not in item or "id" not in item:
            raise ConfigError("Each `kv_namespaces` entry needs `binding` and `id`")
        namespaces.append(KVNamespace(binding=item["binding"], id=item["id"]))

    site_data = data.get("site")
    return Target(
        name=name,
        account_id=data.get("account_id", ""),
        zone_id=data.get("zone_id"),
        route=data.get("route"),
        site=_parse_site(site_data, base_dir) if site_data is not None else None,
        kv_namespaces=namespaces,
    )


def load_target(path: Path) -> Target:
    """Load a project file.

    Args:
        path: Path to ``kvsites.toml``

    Returns:
        Target instance

    Raises:
        ConfigError: If the file is missing or invalid
    """
    if not path.exists():
        raise ConfigError(f"Project file not found: {path}")

    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML in {path}: {e}") from e

    logger.debug(f"Loaded project file {path}")
    return target_from_dict(data, path.parent)


def validate_target(target: Target) -> None:
    """Check the settings every namespace operation needs.

    Raises:
        ConfigError: If ``account_id`` is missing
    """
    if not target.account_id:
        raise ConfigError(
            "Your project config is missing `account_id`. Add it to "
            "`kvsites.toml`; you can find it in your account dashboard."
        )


def site_namespace_id(target: Target) -> str:
    """Return the id of the namespace serving the site's assets.

    Raises:
        ConfigError: If no namespace is bound as the static content namespace
    """
    for namespace in target.kv_namespaces:
        if namespace.binding == SITE_NAMESPACE_BINDING:
            return namespace.id
    raise ConfigError(
        f"No namespace bound as `{SITE_NAMESPACE_BINDING}`. Add a "
        "`[[kv_namespaces]]` entry with that binding to `kvsites.toml`."
    )
