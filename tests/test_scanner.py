"""Tests for the asset directory scanner."""

import base64

import pytest

from pykvsites.exceptions import ScanError
from pykvsites.sites.keys import ContentKey
from pykvsites.sites.scanner import DirectoryScanner


@pytest.fixture
def site_dir(tmp_path):
    """Create a small asset tree."""
    (tmp_path / "index.html").write_text("<html></html>")
    (tmp_path / "css").mkdir()
    (tmp_path / "css" / "site.css").write_text("body {}")
    (tmp_path / "css" / "site.css.map").write_text("{}")
    (tmp_path / ".env").write_text("SECRET=1")
    (tmp_path / "node_modules").mkdir()
    (tmp_path / "node_modules" / "dep.js").write_text("module.exports = 1")
    return tmp_path


class TestDirectoryScanner:
    """Tests for DirectoryScanner.scan."""

    def test_scan_builds_pairs_and_manifest(self, site_dir):
        """Each file becomes a base64 pair and a manifest entry."""
        pairs, manifest, total_size = DirectoryScanner().scan(site_dir)

        expected_key = ContentKey.from_content("index.html", b"<html></html>")
        assert manifest["index.html"] == expected_key

        pair = next(p for p in pairs if p.key == expected_key)
        assert pair.base64 is True
        assert base64.b64decode(pair.value) == b"<html></html>"
        assert total_size == sum(
            len(base64.b64decode(p.value)) for p in pairs
        )

    def test_scan_skips_dot_files_and_node_modules(self, site_dir):
        """Dot-files and node_modules are never scanned."""
        _, manifest, _ = DirectoryScanner().scan(site_dir)

        assert ".env" not in manifest
        assert not any(path.startswith("node_modules") for path in manifest)

    def test_scan_order_is_sorted(self, site_dir):
        """Pairs follow sorted path order."""
        _, manifest, _ = DirectoryScanner().scan(site_dir)
        assert list(manifest) == ["css/site.css", "css/site.css.map", "index.html"]

    def test_exclude_patterns(self, site_dir):
        """Files matching an exclude pattern are skipped."""
        _, manifest, _ = DirectoryScanner(exclude=["*.map"]).scan(site_dir)
        assert "css/site.css.map" not in manifest
        assert "css/site.css" in manifest

    def test_exclude_directory(self, site_dir):
        """Excluding a directory skips everything under it."""
        _, manifest, _ = DirectoryScanner(exclude=["css"]).scan(site_dir)
        assert list(manifest) == ["index.html"]

    def test_include_overrides_exclude(self, site_dir):
        """With include patterns only matching files are scanned."""
        scanner = DirectoryScanner(include=["*.css"], exclude=["*.css"])
        _, manifest, _ = scanner.scan(site_dir)
        assert list(manifest) == ["css/site.css"]

    def test_rescan_is_stable(self, site_dir):
        """Scanning twice without changes yields the same keys."""
        first, _, _ = DirectoryScanner().scan(site_dir)
        second, _, _ = DirectoryScanner().scan(site_dir)
        assert [p.key for p in first] == [p.key for p in second]

    def test_changed_file_changes_key(self, site_dir):
        """Editing a file produces a new key for the same path."""
        _, before, _ = DirectoryScanner().scan(site_dir)
        (site_dir / "index.html").write_text("<html>v2</html>")
        _, after, _ = DirectoryScanner().scan(site_dir)

        assert before["index.html"] != after["index.html"]
        assert before["css/site.css"] == after["css/site.css"]

    def test_missing_directory_raises(self, tmp_path):
        """A missing directory raises ScanError."""
        with pytest.raises(ScanError, match="does not exist"):
            DirectoryScanner().scan(tmp_path / "missing")

    def test_file_instead_of_directory_raises(self, tmp_path):
        """A file path raises ScanError."""
        file_path = tmp_path / "file.txt"
        file_path.write_text("x")
        with pytest.raises(ScanError, match="not a directory"):
            DirectoryScanner().scan(file_path)
