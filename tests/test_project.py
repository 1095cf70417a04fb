"""Tests for project settings."""

import pytest

from pykvsites.exceptions import ConfigError
from pykvsites.project import (
    AccountMode,
    KVNamespace,
    Target,
    load_target,
    site_namespace_id,
    validate_target,
)

PROJECT_TOML = """
name = "my-site"
account_id = "acc123"
zone_id = "zone123"
route = "example.com/*"

[site]
bucket = "./public"
subset = "/docs/"
exclude = ["*.map"]
manifest = ".kvsites/manifest.json"

[[kv_namespaces]]
binding = "__STATIC_CONTENT"
id = "ns123"
"""


class TestLoadTarget:
    """Tests for load_target."""

    def test_load_full_project(self, tmp_path):
        """All settings are read and paths resolved against the file."""
        path = tmp_path / "kvsites.toml"
        path.write_text(PROJECT_TOML)

        target = load_target(path)

        assert target.name == "my-site"
        assert target.account_id == "acc123"
        assert target.zone_id == "zone123"
        assert target.route == "example.com/*"
        assert target.site is not None
        assert target.site.bucket == tmp_path / "public"
        assert target.site.exclude == ["*.map"]
        assert target.site.manifest_path == tmp_path / ".kvsites" / "manifest.json"
        assert target.kv_namespaces == [KVNamespace("__STATIC_CONTENT", "ns123")]

    def test_subset_is_normalized(self, tmp_path):
        """Leading and trailing slashes are stripped from the subset."""
        path = tmp_path / "kvsites.toml"
        path.write_text(PROJECT_TOML)

        assert load_target(path).subset == "docs"

    def test_subset_defaults_to_empty(self, tmp_path):
        """Without a subset the whole namespace is in scope."""
        path = tmp_path / "kvsites.toml"
        path.write_text('name = "x"\n[site]\nbucket = "public"\n')

        assert load_target(path).subset == ""

    def test_missing_file(self, tmp_path):
        """A missing project file raises ConfigError."""
        with pytest.raises(ConfigError, match="not found"):
            load_target(tmp_path / "kvsites.toml")

    def test_invalid_toml(self, tmp_path):
        """Unparseable TOML raises ConfigError."""
        path = tmp_path / "kvsites.toml"
        path.write_text("name = ")
        with pytest.raises(ConfigError, match="Invalid TOML"):
            load_target(path)

    def test_missing_name(self, tmp_path):
        """The project name is required."""
        path = tmp_path / "kvsites.toml"
        path.write_text('account_id = "a"\n')
        with pytest.raises(ConfigError, match="`name` must be provided"):
            load_target(path)

    def test_site_without_bucket(self, tmp_path):
        """A site section needs a bucket."""
        path = tmp_path / "kvsites.toml"
        path.write_text('name = "x"\n[site]\nsubset = "docs"\n')
        with pytest.raises(ConfigError, match="bucket"):
            load_target(path)

    def test_empty_site_section(self, tmp_path):
        """An empty site section is reported as missing its bucket."""
        path = tmp_path / "kvsites.toml"
        path.write_text('name = "x"\n[site]\n')
        with pytest.raises(ConfigError, match="`\\[site\\]` must define `bucket`"):
            load_target(path)

    def test_no_site_section(self, tmp_path):
        """Without a site section the target has no site."""
        path = tmp_path / "kvsites.toml"
        path.write_text('name = "x"\n')
        assert load_target(path).site is None


class TestValidation:
    """Tests for validate_target and site_namespace_id."""

    def test_validate_requires_account_id(self):
        """A target without account id is rejected with a hint."""
        with pytest.raises(ConfigError, match="account_id"):
            validate_target(Target(name="x"))

    def test_validate_accepts_account_id(self):
        """A target with account id passes."""
        validate_target(Target(name="x", account_id="acc"))

    def test_site_namespace_id(self):
        """The static content binding is found among namespaces."""
        target = Target(
            name="x",
            kv_namespaces=[
                KVNamespace("OTHER", "other"),
                KVNamespace("__STATIC_CONTENT", "ns"),
            ],
        )
        assert site_namespace_id(target) == "ns"

    def test_site_namespace_missing(self):
        """Without the binding a ConfigError is raised."""
        with pytest.raises(ConfigError, match="__STATIC_CONTENT"):
            site_namespace_id(Target(name="x"))


class TestAccountMode:
    """Tests for AccountMode."""

    def test_from_multiscript(self):
        """The capability flag selects the mode."""
        assert AccountMode.from_multiscript(True) is AccountMode.MULTI_SCRIPT
        assert AccountMode.from_multiscript(False) is AccountMode.SINGLE_SCRIPT
