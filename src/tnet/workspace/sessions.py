"""
Session store - the ordered list of files open in a workspace.

The session is saved in ``<root>/.tnet/session.json`` as a JSON array of
absolute paths, in the order the user arranged their tabs. ``save`` and
``load`` keep that order verbatim; the synchronizer uses ``remove_path``
and ``retarget_path`` so the list never points at a deleted or renamed
file.

Unlike the keyword index, ``load`` does not fall back to an empty list:
a missing or corrupt session for an open workspace is reported to the
caller as a ``ReadError``.
"""

import json
import os
from pathlib import Path

import structlog

from .errors import ReadError
from .paths import DEFAULT_SETTINGS_DIR, is_within, rebase_path, same_path, session_file_path
from .store import read_file, write_json_atomic

logger = structlog.get_logger()


class SessionStore:
    """Persists and restores the open-files session of one workspace.

    An empty ``root`` is the "no workspace open" sentinel: ``load`` returns
    ``[]`` and every mutation is a no-op, without touching the filesystem.
    """

    def __init__(self, root: str, settings_dir: str = DEFAULT_SETTINGS_DIR) -> None:
        """Initialize the session store.

        Args:
            root: Workspace root directory, or "" when no workspace is open.
            settings_dir: Name of the hidden settings directory inside root.
        """
        self.root = root
        self.settings_dir = settings_dir

    @property
    def session_file(self) -> Path | None:
        if not self.root:
            return None
        return session_file_path(self.root, self.settings_dir)

    def save(self, paths: list[str]) -> None:
        """Replace the persisted session with ``paths`` (order preserved).

        Raises:
            WriteError: If the session file cannot be written
        """
        if self.session_file is None:
            logger.debug("session.save_skipped", reason="no workspace")
            return
        write_json_atomic(self.session_file, list(paths))
        logger.debug("session.saved", root=self.root, files=len(paths))

    def load(self) -> list[str]:
        """Load the persisted session.

        Returns:
            The saved paths in their saved order; ``[]`` if no workspace is open.

        Raises:
            ReadError: If the session file is missing, unreadable or not a
                JSON array of strings
        """
        if self.session_file is None:
            return []

        raw = read_file(self.session_file)
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.error("session.load_error", path=str(self.session_file), error=str(e))
            raise ReadError(
                f"Corrupt session file: {self.session_file}", str(self.session_file)
            ) from e

        if not isinstance(data, list) or not all(isinstance(p, str) for p in data):
            logger.error("session.invalid_format", path=str(self.session_file))
            raise ReadError(
                f"Corrupt session file: {self.session_file}", str(self.session_file)
            )

        return data

    def _load_or_empty(self) -> list[str]:
        """Load for an update: a missing, unreadable or corrupt session counts as empty."""
        try:
            return self.load()
        except ReadError as e:
            if not isinstance(e.__cause__, FileNotFoundError):
                logger.warning("session.reset", path=str(self.session_file), error=str(e))
            return []

    def remove_path(self, path: str) -> bool:
        """Remove ``path`` (and anything below it) from the session.

        Returns:
            True if the session changed.
        """
        if not self.root:
            return False
        paths = self._load_or_empty()
        kept = [p for p in paths if not (same_path(p, path) or is_within(p, path))]
        if len(kept) == len(paths):
            return False
        self.save(kept)
        logger.debug("session.path_removed", path=path, removed=len(paths) - len(kept))
        return True

    def retarget_path(self, old_path: str, new_path: str) -> bool:
        """Replace ``old_path`` with ``new_path`` in place.

        Entries below ``old_path`` (a renamed directory) are rebased below
        ``new_path``. Positions in the list do not change.

        Returns:
            True if the session changed.
        """
        if not self.root:
            return False
        paths = self._load_or_empty()
        changed = False
        updated: list[str] = []
        for p in paths:
            rebased = rebase_path(p, old_path, new_path)
            if rebased is None:
                updated.append(p)
            else:
                updated.append(rebased)
                changed = True
        if changed:
            self.save(updated)
            logger.debug("session.path_retargeted", old=old_path, new=new_path)
        return changed

    def prune(self) -> list[str]:
        """Drop session entries whose file no longer exists.

        Returns:
            The paths that were removed.
        """
        if not self.root:
            return []
        paths = self._load_or_empty()
        missing = [p for p in paths if not os.path.exists(p)]
        if missing:
            self.save([p for p in paths if p not in missing])
            logger.info("session.pruned", root=self.root, removed=len(missing))
        return missing
