"""
Tests for the path utilities.

Covers:
- join_path / normalize_path
- same_path / is_within (prefix pitfalls)
- rebase_path (file, directory descendants, unrelated)
- settings file locations
"""

import os
from pathlib import Path

from tnet.workspace.paths import (
    DEFAULT_SETTINGS_DIR,
    is_within,
    join_path,
    keywords_file_path,
    normalize_path,
    rebase_path,
    same_path,
    session_file_path,
    settings_dir_path,
)


class TestJoinAndNormalize:
    def test_join_uses_platform_separator(self) -> None:
        assert join_path("a", "b", "c.md") == os.path.join("a", "b", "c.md")

    def test_normalize_removes_dot_segments(self, tmp_path: Path) -> None:
        messy = os.path.join(str(tmp_path), "notes", ".", "x", "..", "a.md")
        assert normalize_path(messy) == os.path.join(str(tmp_path), "notes", "a.md")

    def test_normalize_makes_absolute(self) -> None:
        assert os.path.isabs(normalize_path("relative/file.md"))

    def test_normalize_accepts_path_objects(self, tmp_path: Path) -> None:
        assert normalize_path(tmp_path / "a.md") == str(tmp_path / "a.md")


class TestComparisons:
    def test_same_path_ignores_trailing_separator(self, tmp_path: Path) -> None:
        assert same_path(str(tmp_path) + os.sep, str(tmp_path))

    def test_same_path_different(self, tmp_path: Path) -> None:
        assert not same_path(tmp_path / "a.md", tmp_path / "b.md")

    def test_is_within_direct_child(self, tmp_path: Path) -> None:
        assert is_within(tmp_path / "a" / "b.md", tmp_path / "a")

    def test_is_within_deep_descendant(self, tmp_path: Path) -> None:
        assert is_within(tmp_path / "a" / "b" / "c" / "d.md", tmp_path / "a")

    def test_is_within_is_strict(self, tmp_path: Path) -> None:
        """A path is not within itself."""
        assert not is_within(tmp_path / "a", tmp_path / "a")

    def test_is_within_not_fooled_by_prefix(self, tmp_path: Path) -> None:
        """/x/ab.md is not inside /x/a."""
        assert not is_within(tmp_path / "ab.md", tmp_path / "a")


class TestRebasePath:
    def test_exact_match_returns_new(self, tmp_path: Path) -> None:
        old = str(tmp_path / "a.md")
        new = str(tmp_path / "b.md")
        assert rebase_path(old, old, new) == new

    def test_descendant_is_rebased(self, tmp_path: Path) -> None:
        old_dir = str(tmp_path / "old")
        new_dir = str(tmp_path / "new")
        child = str(tmp_path / "old" / "sub" / "n.md")
        assert rebase_path(child, old_dir, new_dir) == os.path.join(new_dir, "sub", "n.md")

    def test_unrelated_returns_none(self, tmp_path: Path) -> None:
        assert rebase_path(str(tmp_path / "other.md"), str(tmp_path / "a.md"), "x") is None

    def test_sibling_with_common_prefix_is_unrelated(self, tmp_path: Path) -> None:
        assert rebase_path(str(tmp_path / "old2" / "n.md"), str(tmp_path / "old"), "x") is None


class TestSettingsLocations:
    def test_default_settings_dir(self) -> None:
        assert DEFAULT_SETTINGS_DIR == ".tnet"

    def test_files_live_in_settings_dir(self, tmp_path: Path) -> None:
        root = str(tmp_path)
        assert settings_dir_path(root) == tmp_path / ".tnet"
        assert session_file_path(root) == tmp_path / ".tnet" / "session.json"
        assert keywords_file_path(root) == tmp_path / ".tnet" / "keywords.json"

    def test_custom_settings_dir(self, tmp_path: Path) -> None:
        assert session_file_path(str(tmp_path), ".notes") == tmp_path / ".notes" / "session.json"
