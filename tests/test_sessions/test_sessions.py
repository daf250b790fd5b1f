"""
Tests for the session store.

Covers:
- save / load round-trip (order preserved)
- load errors: missing and corrupt session files
- remove_path / retarget_path (in place, directories)
- prune
- empty-root sentinel (no filesystem access)
"""

import json
from pathlib import Path
from unittest.mock import patch

import pytest

from tnet.workspace.errors import ReadError, WriteError
from tnet.workspace.sessions import SessionStore


# ── Fixtures ──────────────────────────────────────────────────────────────


@pytest.fixture
def store(tmp_path: Path) -> SessionStore:
    return SessionStore(str(tmp_path))


@pytest.fixture
def files(tmp_path: Path) -> list[str]:
    """Three existing notes, in tab order."""
    paths = []
    for name in ("c.md", "a.md", "b.md"):
        p = tmp_path / name
        p.write_text(name, encoding="utf-8")
        paths.append(str(p))
    return paths


# ── Tests ─────────────────────────────────────────────────────────────────


class TestSaveLoad:
    def test_round_trip_preserves_order(self, store: SessionStore, files: list[str]) -> None:
        store.save(files)
        assert store.load() == files

    def test_round_trip_any_strings(self, store: SessionStore) -> None:
        paths = ["/z/ü.md", "relative/x.md", "/a.md", "/a.md"]
        store.save(paths)
        assert store.load() == paths

    def test_file_location_and_format(self, store: SessionStore, tmp_path: Path) -> None:
        store.save(["/x.md"])
        session_file = tmp_path / ".tnet" / "session.json"
        assert store.session_file == session_file
        assert json.loads(session_file.read_text(encoding="utf-8")) == ["/x.md"]

    def test_save_empty_list(self, store: SessionStore) -> None:
        store.save([])
        assert store.load() == []

    def test_custom_settings_dir(self, tmp_path: Path) -> None:
        store = SessionStore(str(tmp_path), settings_dir=".notes")
        store.save(["/x.md"])
        assert (tmp_path / ".notes" / "session.json").exists()

    def test_save_failure_propagates(self, store: SessionStore) -> None:
        with patch("tnet.workspace.sessions.write_json_atomic", side_effect=WriteError("boom")):
            with pytest.raises(WriteError):
                store.save(["/x.md"])


class TestLoadErrors:
    def test_missing_file_raises(self, store: SessionStore) -> None:
        with pytest.raises(ReadError):
            store.load()

    def test_invalid_json_raises(self, store: SessionStore, tmp_path: Path) -> None:
        (tmp_path / ".tnet").mkdir()
        (tmp_path / ".tnet" / "session.json").write_text("[broken", encoding="utf-8")
        with pytest.raises(ReadError, match="Corrupt session file"):
            store.load()

    def test_wrong_shape_raises(self, store: SessionStore, tmp_path: Path) -> None:
        (tmp_path / ".tnet").mkdir()
        (tmp_path / ".tnet" / "session.json").write_text('{"a": 1}', encoding="utf-8")
        with pytest.raises(ReadError):
            store.load()

    def test_non_string_entries_raise(self, store: SessionStore, tmp_path: Path) -> None:
        (tmp_path / ".tnet").mkdir()
        (tmp_path / ".tnet" / "session.json").write_text('["a", 2]', encoding="utf-8")
        with pytest.raises(ReadError):
            store.load()


class TestRemovePath:
    def test_remove(self, store: SessionStore, files: list[str]) -> None:
        store.save(files)
        assert store.remove_path(files[1]) is True
        assert store.load() == [files[0], files[2]]

    def test_remove_absent_does_not_write(self, store: SessionStore, tmp_path: Path) -> None:
        assert store.remove_path(str(tmp_path / "x.md")) is False
        assert not (tmp_path / ".tnet" / "session.json").exists()

    def test_remove_directory_entries(self, store: SessionStore, tmp_path: Path) -> None:
        inside = str(tmp_path / "dir" / "n.md")
        outside = str(tmp_path / "dir2.md")
        store.save([inside, outside])
        assert store.remove_path(str(tmp_path / "dir")) is True
        assert store.load() == [outside]

    def test_remove_from_corrupt_session(self, store: SessionStore, tmp_path: Path) -> None:
        (tmp_path / ".tnet").mkdir()
        (tmp_path / ".tnet" / "session.json").write_text("nope", encoding="utf-8")
        assert store.remove_path(str(tmp_path / "x.md")) is False

    def test_remove_from_unreadable_session(self, store: SessionStore, files: list[str]) -> None:
        store.save(files)
        with patch.object(Path, "read_text", side_effect=PermissionError(13, "denied")):
            assert store.remove_path(files[0]) is False

    def test_exists_is_not_consulted(self, store: SessionStore, files: list[str]) -> None:
        store.save(files)
        with patch.object(Path, "exists", side_effect=PermissionError(13, "denied")):
            assert store.remove_path(files[0]) is True
        assert store.load() == files[1:]


class TestRetargetPath:
    def test_position_preserved(self, store: SessionStore, files: list[str], tmp_path: Path) -> None:
        store.save(files)
        new = str(tmp_path / "renamed.md")
        assert store.retarget_path(files[1], new) is True
        assert store.load() == [files[0], new, files[2]]

    def test_directory_rename(self, store: SessionStore, tmp_path: Path) -> None:
        first = str(tmp_path / "x.md")
        store.save([first, str(tmp_path / "old" / "n.md"), str(tmp_path / "old" / "s" / "m.md")])
        store.retarget_path(str(tmp_path / "old"), str(tmp_path / "new"))
        assert store.load() == [
            first,
            str(tmp_path / "new" / "n.md"),
            str(tmp_path / "new" / "s" / "m.md"),
        ]

    def test_unrelated_returns_false(self, store: SessionStore, files: list[str], tmp_path: Path) -> None:
        store.save(files)
        assert store.retarget_path(str(tmp_path / "zzz.md"), str(tmp_path / "y.md")) is False
        assert store.load() == files


class TestPrune:
    def test_prune_missing(self, store: SessionStore, files: list[str], tmp_path: Path) -> None:
        gone = str(tmp_path / "gone.md")
        store.save([files[0], gone, files[1]])
        assert store.prune() == [gone]
        assert store.load() == [files[0], files[1]]

    def test_prune_nothing(self, store: SessionStore, files: list[str]) -> None:
        store.save(files)
        assert store.prune() == []
        assert store.load() == files

    def test_prune_without_session_file(self, store: SessionStore) -> None:
        assert store.prune() == []


class TestNoWorkspace:
    def test_load_empty_root(self) -> None:
        """No workspace open: empty session, filesystem untouched."""
        with patch("tnet.workspace.sessions.read_file") as read:
            assert SessionStore("").load() == []
        read.assert_not_called()

    def test_mutations_are_noops(self) -> None:
        store = SessionStore("")
        with patch("tnet.workspace.sessions.write_json_atomic") as write:
            store.save(["/a.md"])
            assert store.remove_path("/a.md") is False
            assert store.retarget_path("/a.md", "/b.md") is False
            assert store.prune() == []
        write.assert_not_called()
        assert store.session_file is None
