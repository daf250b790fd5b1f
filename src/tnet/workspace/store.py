"""
Raw file store — create, read, write, delete and move files on disk.

This is the I/O boundary of the engine: every OSError raised by the
operating system is logged here and re-raised as one of the typed errors
in ``tnet.workspace.errors`` with a stable, user-presentable message.
Nothing in this module knows about keywords or sessions.
"""

import json
import os
import stat
import tempfile
from pathlib import Path
from typing import Any

import structlog

from .errors import (
    AlreadyExistsError,
    DeleteError,
    MkdirError,
    ReadError,
    RenameError,
    WriteError,
)

logger = structlog.get_logger()

# Starting structure for a new note: a keyword block skeleton
# followed by a collapsible proof block.
FILE_TEMPLATE = """<keyword name="">
### 変数・条件


### 主張

</keyword>

<details>
<summary>証明</summary>

</details>"""


def read_file(path: str | Path) -> str:
    """Read a UTF-8 text file.

    Raises:
        ReadError: If the file does not exist, is unreadable or is not UTF-8
    """
    try:
        return Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.error("store.read.failed", path=str(path), error=str(e))
        raise ReadError(f"Could not read file: {path}", str(path)) from e


def _ensure_parent(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)


def write_raw(path: str | Path, content: str) -> None:
    """Write ``content`` to ``path``, creating parent directories.

    An existing file is overwritten.

    Raises:
        WriteError: On any I/O failure (permissions, disk full, parent is a file...)
    """
    target = Path(path)
    try:
        _ensure_parent(target)
        target.write_text(content, encoding="utf-8")
    except OSError as e:
        logger.error("store.write.failed", path=str(path), error=str(e))
        raise WriteError(f"Could not write file: {path}", str(path)) from e
    logger.debug("store.write", path=str(path), chars=len(content))


def create_file(path: str | Path, template: str = FILE_TEMPLATE) -> None:
    """Create a new note at ``path`` filled with ``template``.

    Unlike ``write_raw`` this never overwrites: the file is opened in
    exclusive-create mode.

    Raises:
        AlreadyExistsError: If anything already exists at ``path``
        WriteError: On any other I/O failure
    """
    target = Path(path)
    try:
        _ensure_parent(target)
    except OSError as e:
        logger.error("store.create.failed", path=str(path), error=str(e))
        raise WriteError(f"Could not create file: {path}", str(path)) from e
    try:
        with open(target, "x", encoding="utf-8") as f:
            f.write(template)
    except FileExistsError as e:
        logger.warning("store.create.exists", path=str(path))
        raise AlreadyExistsError(f"File already exists: {path}", str(path)) from e
    except OSError as e:
        logger.error("store.create.failed", path=str(path), error=str(e))
        raise WriteError(f"Could not create file: {path}", str(path)) from e
    logger.debug("store.create", path=str(path))


def create_directory(path: str | Path) -> None:
    """Create ``path`` and any missing intermediate directories.

    Intermediate directories may already exist; the leaf must not.

    Raises:
        MkdirError: If the leaf exists or the directory cannot be created
    """
    try:
        Path(path).mkdir(parents=True, exist_ok=False)
    except FileExistsError as e:
        logger.warning("store.mkdir.exists", path=str(path))
        raise MkdirError(f"Directory already exists: {path}", str(path)) from e
    except OSError as e:
        logger.error("store.mkdir.failed", path=str(path), error=str(e))
        raise MkdirError(f"Could not create directory: {path}", str(path)) from e
    logger.debug("store.mkdir", path=str(path))


def delete_file(path: str | Path) -> None:
    """Remove a single file.

    Raises:
        DeleteError: If the file is absent, is a directory or cannot be removed
    """
    target = Path(path)
    if target.is_dir() and not target.is_symlink():
        logger.warning("store.delete.is_directory", path=str(path))
        raise DeleteError(f"Not a file: {path}", str(path))
    try:
        target.unlink()
    except FileNotFoundError as e:
        logger.warning("store.delete.not_found", path=str(path))
        raise DeleteError(f"File not found: {path}", str(path)) from e
    except OSError as e:
        logger.error("store.delete.failed", path=str(path), error=str(e))
        raise DeleteError(f"Could not delete file: {path}", str(path)) from e
    logger.debug("store.delete", path=str(path))


def rename_entry(old_path: str | Path, new_path: str | Path) -> None:
    """Move a file or directory from ``old_path`` to ``new_path``.

    The destination's parent directories are created if needed. An
    existing destination is never replaced, except when it is the same
    file as the source (case-only rename on a case-insensitive filesystem).

    Raises:
        RenameError: If the source is absent, the destination exists, or
            the move fails
    """
    source = Path(old_path)
    target = Path(new_path)

    if not os.path.lexists(source):
        logger.warning("store.rename.not_found", old=str(old_path), new=str(new_path))
        raise RenameError(f"Source not found: {old_path}", str(old_path))

    if os.path.lexists(target):
        try:
            same = os.path.samefile(source, target)
        except OSError:
            same = False
        if not same:
            logger.warning("store.rename.target_exists", old=str(old_path), new=str(new_path))
            raise RenameError(f"Destination already exists: {new_path}", str(new_path))

    try:
        _ensure_parent(target)
        os.replace(source, target)
    except OSError as e:
        logger.error(
            "store.rename.failed", old=str(old_path), new=str(new_path), error=str(e)
        )
        raise RenameError(f"Could not move {old_path} to {new_path}", str(old_path)) from e
    logger.debug("store.rename", old=str(old_path), new=str(new_path))


def _replacement_mode(target: Path) -> int:
    """Permission bits for a file about to replace ``target``."""
    try:
        return stat.S_IMODE(os.stat(target).st_mode)
    except FileNotFoundError:
        umask = os.umask(0)
        os.umask(umask)
        return 0o666 & ~umask


def write_json_atomic(path: str | Path, data: Any) -> None:
    """Serialize ``data`` as JSON and atomically replace ``path`` with it.

    The document is written to a temporary file in the same directory,
    flushed to disk, then moved over the target, so a reader never sees a
    half-written file and a crash leaves the previous version intact.
    The result keeps the permissions of the file it replaces, or gets the
    usual umask-based ones when it is new.

    Raises:
        WriteError: If the directory or the file cannot be written
    """
    target = Path(path)
    tmp_name: str | None = None
    try:
        _ensure_parent(target)
        with tempfile.NamedTemporaryFile(
            "w",
            delete=False,
            dir=str(target.parent),
            prefix=f".{target.name}.",
            suffix=".tmp",
            encoding="utf-8",
        ) as tmp:
            tmp_name = tmp.name
            json.dump(data, tmp, indent=2, ensure_ascii=False)
            tmp.flush()
            os.fsync(tmp.fileno())
        os.chmod(tmp_name, _replacement_mode(target))
        os.replace(tmp_name, target)
    except OSError as e:
        logger.error("store.json_write.failed", path=str(path), error=str(e))
        if tmp_name is not None:
            try:
                os.unlink(tmp_name)
            except OSError:
                pass
        raise WriteError(f"Could not write file: {path}", str(path)) from e
