"""
Error types raised by the workspace engine.

Low-level I/O failures are translated into these at the raw store
boundary, so callers never need to inspect platform error codes.
"""


class WorkspaceError(Exception):
    """Base class for all workspace engine errors.

    Attributes:
        path: Filesystem path the failed operation was working on (may be empty)
    """

    def __init__(self, message: str, path: str = "") -> None:
        super().__init__(message)
        self.message = message
        self.path = path


class ReadError(WorkspaceError):
    """A file (or persisted session) could not be read or parsed."""

    pass


class WriteError(WorkspaceError):
    """A file could not be written."""

    pass


class AlreadyExistsError(WriteError):
    """Create refused because something already exists at the target path."""

    pass


class MkdirError(WriteError):
    """A directory could not be created, or the leaf already exists."""

    pass


class DeleteError(WorkspaceError):
    """A file could not be deleted."""

    pass


class RenameError(WorkspaceError):
    """A file or directory could not be moved."""

    pass


class TreeError(WorkspaceError):
    """The top-level directory of a tree query could not be listed."""

    pass


class DeclarationSyntaxError(WorkspaceError):
    """Malformed keyword declaration markup (strict scanning only).

    Attributes:
        line: 1-based line number where the problem was detected
    """

    def __init__(self, message: str, line: int) -> None:
        super().__init__(f"{message} (line {line})")
        self.line = line


class MetadataSyncError(WorkspaceError):
    """A filesystem change succeeded but one or more metadata updates failed.

    The filesystem change is NOT rolled back. The keyword index and the
    session can be repaired with ``reindex`` / ``prune_session``.

    Attributes:
        operation: "write", "delete" or "rename"
        failures: list of (step name, exception) pairs, in execution order
    """

    def __init__(
        self,
        operation: str,
        path: str,
        failures: list[tuple[str, Exception]],
    ) -> None:
        steps = ", ".join(step for step, _ in failures)
        super().__init__(
            f"{operation} of {path} succeeded on disk but metadata update failed ({steps})",
            path,
        )
        self.operation = operation
        self.failures = failures
