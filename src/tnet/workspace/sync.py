"""
Workspace synchronizer — keeps files, keyword index and session consistent.

Every mutating operation first changes the filesystem, then brings the
metadata in line with what is now on disk:

    write   → write file     → refresh the file's keywords
    delete  → delete file    → drop it from the session → drop its keywords
    rename  → move entry     → retarget session entries → retarget keywords
    create  → create from template (no metadata: nothing to index, not open)

If the filesystem step fails nothing else happens and its typed error
propagates. If a metadata step fails, the remaining steps still run and
the filesystem change is kept. Depending on ``metadata_errors`` the caller then
gets a ``MetadataSyncError`` ("raise") or the failure is only logged
("log"). ``reindex()`` and ``prune_session()`` repair diverged metadata.

Calls are not serialized: two concurrent operations on the same root can
interleave between the filesystem step and the metadata steps.
"""

import os
from typing import Any, Callable, Literal

import structlog

from ..config.schema import AppConfig
from ..logging.human import HumanLog
from . import store
from .errors import MetadataSyncError, WorkspaceError
from .keywords import DEFAULT_EXTENSIONS, DEFAULT_TAG, KeywordIndex
from .paths import DEFAULT_SETTINGS_DIR, is_within, normalize_path
from .sessions import SessionStore
from .tree import FileNode, get_file_tree

logger = structlog.get_logger()

MetadataStep = tuple[str, Callable[[], Any]]


class WorkspaceSync:
    """Entry point of the engine for one workspace root.

    Attributes:
        root: Normalized workspace root, or "" when no workspace is open
        session_store: SessionStore for the root
        keyword_index: KeywordIndex for the root
    """

    def __init__(
        self,
        root: str,
        *,
        settings_dir: str = DEFAULT_SETTINGS_DIR,
        keyword_tag: str = DEFAULT_TAG,
        keyword_extensions: tuple[str, ...] | list[str] = DEFAULT_EXTENSIONS,
        metadata_errors: Literal["raise", "log"] = "raise",
        show_hidden: bool = True,
        tree_max_workers: int = 1,
    ) -> None:
        """Initialize the synchronizer.

        Args:
            root: Workspace root directory; "" means no workspace is open
            settings_dir: Hidden settings directory name inside root
            keyword_tag: Tag name of keyword declaration blocks
            keyword_extensions: File extensions scanned by reindex()
            metadata_errors: "raise" or "log" (see module docstring)
            show_hidden: Include dot-entries in file_tree()
            tree_max_workers: Threads used by file_tree()
        """
        self.root = normalize_path(root) if root else ""
        self.session_store = SessionStore(self.root, settings_dir)
        self.keyword_index = KeywordIndex(self.root, settings_dir, keyword_tag)
        self.keyword_extensions = tuple(keyword_extensions)
        self.metadata_errors = metadata_errors
        self.show_hidden = show_hidden
        self.tree_max_workers = tree_max_workers
        self.hlog = HumanLog(logger)

    @classmethod
    def from_config(cls, config: AppConfig, root: str | None = None) -> "WorkspaceSync":
        """Build a synchronizer from the application configuration.

        Args:
            config: Validated AppConfig
            root: Overrides config.workspace.root when given
        """
        return cls(
            config.workspace.root if root is None else root,
            settings_dir=config.workspace.settings_dir,
            keyword_tag=config.keywords.tag,
            keyword_extensions=config.keywords.extensions,
            metadata_errors=config.sync.metadata_errors,
            show_hidden=config.tree.show_hidden,
            tree_max_workers=config.tree.max_workers,
        )

    @property
    def is_open(self) -> bool:
        """False for the "no workspace open" sentinel."""
        return bool(self.root)

    def __repr__(self) -> str:
        return f"<WorkspaceSync(root='{self.root}', metadata_errors='{self.metadata_errors}')>"

    def _display(self, path: str) -> str:
        if self.root and is_within(path, self.root):
            return os.path.relpath(normalize_path(path), self.root)
        return str(path)

    def _run_metadata_steps(
        self,
        operation: str,
        path: str,
        steps: list[MetadataStep],
    ) -> dict[str, Any]:
        """Run every metadata step, collecting failures instead of stopping.

        Returns:
            Step name → step result, for the steps that succeeded.

        Raises:
            MetadataSyncError: If any step failed and metadata_errors is "raise"
        """
        if not self.root:
            return {}

        results: dict[str, Any] = {}
        failures: list[tuple[str, Exception]] = []
        for step, fn in steps:
            try:
                results[step] = fn()
            except WorkspaceError as e:
                logger.error(
                    "workspace.metadata_step_failed",
                    operation=operation,
                    path=path,
                    step=step,
                    error=str(e),
                )
                failures.append((step, e))

        if failures:
            self.hlog.metadata_failed(operation, self._display(path), [s for s, _ in failures])
            if self.metadata_errors == "raise":
                raise MetadataSyncError(operation, path, failures) from failures[0][1]
        return results

    # ── Mutations ─────────────────────────────────────────────────────────

    def write(self, file_path: str, content: str) -> list[str]:
        """Write a note and re-derive its keyword declarations.

        Returns:
            The keyword names the new content declares (empty if the
            index could not be updated under metadata_errors="log").

        Raises:
            WriteError: If the file cannot be written (nothing else happens)
            MetadataSyncError: If the index update failed (file is written)
        """
        store.write_raw(file_path, content)
        results = self._run_metadata_steps(
            "write",
            file_path,
            [("keywords", lambda: self.keyword_index.refresh_for_file(file_path, content))],
        )
        names = results.get("keywords", [])
        self.hlog.file_written(self._display(file_path), len(names))
        return names

    def delete(self, file_path: str) -> None:
        """Delete a file, then drop it from the session and the index.

        Raises:
            DeleteError: If the file cannot be deleted (nothing else happens)
            MetadataSyncError: If session or index could not be updated
        """
        store.delete_file(file_path)
        self.hlog.file_deleted(self._display(file_path))
        self._run_metadata_steps(
            "delete",
            file_path,
            [
                ("session", lambda: self.session_store.remove_path(file_path)),
                ("keywords", lambda: self.keyword_index.purge_path(file_path)),
            ],
        )

    def rename(self, old_path: str, new_path: str) -> None:
        """Move a file or directory, then retarget session and index entries.

        Raises:
            RenameError: If the move fails (nothing else happens)
            MetadataSyncError: If session or index could not be updated
        """
        store.rename_entry(old_path, new_path)
        self.hlog.entry_renamed(self._display(old_path), self._display(new_path))
        self._run_metadata_steps(
            "rename",
            old_path,
            [
                ("session", lambda: self.session_store.retarget_path(old_path, new_path)),
                ("keywords", lambda: self.keyword_index.retarget_path(old_path, new_path)),
            ],
        )

    def create(self, file_path: str) -> None:
        """Create a new note from the template. No metadata is touched.

        Raises:
            AlreadyExistsError: If something exists at file_path
        """
        store.create_file(file_path)
        self.hlog.file_created(self._display(file_path))

    def create_directory(self, dir_path: str) -> None:
        """Create a directory (the leaf must not exist).

        Raises:
            MkdirError: If the leaf exists or cannot be created
        """
        store.create_directory(dir_path)
        self.hlog.directory_created(self._display(dir_path))

    # ── Queries ───────────────────────────────────────────────────────────

    def read(self, file_path: str) -> str:
        return store.read_file(file_path)

    def file_tree(self, dir_path: str | None = None) -> list[FileNode]:
        """Tree of ``dir_path`` (the workspace root by default).

        Raises:
            TreeError: If the directory cannot be listed
        """
        return get_file_tree(
            dir_path if dir_path is not None else self.root,
            show_hidden=self.show_hidden,
            max_workers=self.tree_max_workers,
        )

    def load_session(self) -> list[str]:
        return self.session_store.load()

    def save_session(self, paths: list[str]) -> None:
        self.session_store.save(paths)

    def keywords(self) -> dict[str, str]:
        return self.keyword_index.load()

    # ── Repair ────────────────────────────────────────────────────────────

    def reindex(self) -> dict[str, str]:
        """Rebuild the keyword index from the files on disk.

        Raises:
            ReadError: If the workspace root is not a directory
        """
        keywords = self.keyword_index.rebuild(self.keyword_extensions)
        if self.root:
            self.hlog.reindexed(len(keywords))
        return keywords

    def prune_session(self) -> list[str]:
        """Drop session entries whose file no longer exists."""
        removed = self.session_store.prune()
        if self.root:
            self.hlog.session_pruned(removed)
        return removed
