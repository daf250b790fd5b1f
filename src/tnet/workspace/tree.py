"""
Directory tree builder - hierarchical listing of a workspace directory.

Builds a fresh, immutable tree of ``FileNode`` on every call. Within each
directory, sub-directories come first, then files; each group is ordered
by name with a locale-like comparison (case-insensitive first, raw name as
tie breaker) so the order never depends on what the filesystem returns.

A nested directory that cannot be listed (permissions, vanished while
walking) is still reported, with no children. Only a failure to list the
requested directory itself is an error.
"""

import os
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any

import structlog

from .errors import TreeError

logger = structlog.get_logger()


@dataclass(frozen=True)
class FileNode:
    """One filesystem entry of a directory tree."""

    name: str
    path: str
    is_directory: bool
    children: tuple["FileNode", ...] = field(default_factory=tuple)

    def to_dict(self) -> dict[str, Any]:
        """Presentation shape; ``children`` only appears on directories."""
        data: dict[str, Any] = {
            "name": self.name,
            "path": self.path,
            "isDirectory": self.is_directory,
        }
        if self.is_directory:
            data["children"] = [child.to_dict() for child in self.children]
        return data


def _sort_key(node: FileNode) -> tuple[bool, str, str]:
    return (not node.is_directory, node.name.casefold(), node.name)


def sort_nodes(nodes: list[FileNode]) -> list[FileNode]:
    """Directories first, then files, each group ordered by name."""
    return sorted(nodes, key=_sort_key)


def _scan(dir_path: str, show_hidden: bool) -> list[tuple[str, str, bool]]:
    """List immediate entries as (name, path, is_dir). Raises OSError."""
    entries: list[tuple[str, str, bool]] = []
    with os.scandir(dir_path) as it:
        for entry in it:
            if not show_hidden and entry.name.startswith("."):
                continue
            try:
                is_dir = entry.is_dir(follow_symlinks=False)
            except OSError:
                is_dir = False
            entries.append((entry.name, os.path.join(dir_path, entry.name), is_dir))
    return entries


def _build(dir_path: str, show_hidden: bool) -> list[FileNode]:
    nodes: list[FileNode] = []
    for name, path, is_dir in _scan(dir_path, show_hidden):
        if is_dir:
            nodes.append(_directory_node(name, path, show_hidden))
        else:
            nodes.append(FileNode(name=name, path=path, is_directory=False))
    return sort_nodes(nodes)


def _directory_node(name: str, path: str, show_hidden: bool) -> FileNode:
    try:
        children = _build(path, show_hidden)
    except OSError as e:
        logger.debug("tree.subdir_unreadable", path=path, error=str(e))
        children = []
    return FileNode(name=name, path=path, is_directory=True, children=tuple(children))


def get_file_tree(
    dir_path: str,
    *,
    show_hidden: bool = True,
    max_workers: int = 1,
) -> list[FileNode]:
    """List ``dir_path`` recursively.

    Args:
        dir_path: Directory to list
        show_hidden: If False, entries whose name starts with "." are skipped
        max_workers: If > 1, immediate sub-directories are walked in
            parallel with a thread pool. The result is the same either way.

    Returns:
        Sorted list of top-level nodes, directories populated recursively.

    Raises:
        TreeError: If ``dir_path`` itself cannot be listed
    """
    try:
        entries = _scan(dir_path, show_hidden)
    except OSError as e:
        logger.error("tree.list_failed", path=dir_path, error=str(e))
        raise TreeError(f"Could not list directory: {dir_path}", dir_path) from e

    subdirs = [(name, path) for name, path, is_dir in entries if is_dir]
    files = [
        FileNode(name=name, path=path, is_directory=False)
        for name, path, is_dir in entries
        if not is_dir
    ]

    if max_workers > 1 and len(subdirs) > 1:
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            futures = [
                pool.submit(_directory_node, name, path, show_hidden)
                for name, path in subdirs
            ]
            dir_nodes = [f.result() for f in futures]
    else:
        dir_nodes = [_directory_node(name, path, show_hidden) for name, path in subdirs]

    return sort_nodes(dir_nodes + files)


def format_tree(nodes: list[FileNode]) -> str:
    """Render nodes with Unicode connectors, one entry per line.

    Example:
        ├── notes/
        │   └── a.md
        └── b.md
    """
    lines: list[str] = []
    _render(nodes, lines, prefix="")
    return "\n".join(lines) if lines else "(empty)"


def _render(nodes: list[FileNode] | tuple[FileNode, ...], lines: list[str], prefix: str) -> None:
    for i, node in enumerate(nodes):
        is_last = i == len(nodes) - 1
        connector = "└── " if is_last else "├── "
        if node.is_directory:
            lines.append(f"{prefix}{connector}{node.name}/")
            _render(node.children, lines, prefix + ("    " if is_last else "│   "))
        else:
            lines.append(f"{prefix}{connector}{node.name}")
