"""
Path utilities for the workspace engine.

Stateless helpers to join, normalize and compare filesystem paths.
Paths travel through the engine as plain strings (the keyword index and
the session persist them as JSON strings), so comparisons must ignore
cosmetic differences such as trailing separators or "a/./b".
"""

import os
from pathlib import Path

SESSION_FILE_NAME = "session.json"
KEYWORDS_FILE_NAME = "keywords.json"
DEFAULT_SETTINGS_DIR = ".tnet"


def join_path(*parts: str) -> str:
    """Join path components with the platform separator."""
    return os.path.join(*parts)


def normalize_path(path: str | Path) -> str:
    """Return an absolute, normalized version of ``path``.

    Symlinks are not resolved: the engine stores the path the caller used,
    it only removes redundant separators and "." / ".." components.

    Example:
        >>> normalize_path("/notes/./a/../b.md")
        '/notes/b.md'
    """
    return os.path.normpath(os.path.abspath(os.fspath(path)))


def _comparable(path: str | Path) -> str:
    return os.path.normcase(normalize_path(path))


def same_path(a: str | Path, b: str | Path) -> bool:
    """True if ``a`` and ``b`` refer to the same location."""
    return _comparable(a) == _comparable(b)


def is_within(path: str | Path, parent: str | Path) -> bool:
    """True if ``path`` is strictly below ``parent``.

    Example:
        >>> is_within("/notes/a/b.md", "/notes/a")
        True
        >>> is_within("/notes/ab.md", "/notes/a")
        False
    """
    child = _comparable(path)
    base = _comparable(parent)
    if child == base:
        return False
    try:
        return os.path.commonpath([child, base]) == base
    except ValueError:
        # Different drives on Windows
        return False


def rebase_path(path: str, old: str, new: str) -> str | None:
    """Map ``path`` from under ``old`` to under ``new``.

    Returns ``new`` if ``path`` is ``old`` itself, the rebased path if
    ``path`` is below ``old``, and None if ``path`` is unrelated.
    """
    if same_path(path, old):
        return new
    if is_within(path, old):
        return os.path.join(new, os.path.relpath(normalize_path(path), normalize_path(old)))
    return None


def settings_dir_path(root: str, settings_dir: str = DEFAULT_SETTINGS_DIR) -> Path:
    """Hidden per-workspace directory holding session and keyword files."""
    return Path(root) / settings_dir


def session_file_path(root: str, settings_dir: str = DEFAULT_SETTINGS_DIR) -> Path:
    return settings_dir_path(root, settings_dir) / SESSION_FILE_NAME


def keywords_file_path(root: str, settings_dir: str = DEFAULT_SETTINGS_DIR) -> Path:
    return settings_dir_path(root, settings_dir) / KEYWORDS_FILE_NAME
