"""
Workspace module - files, keyword index and session of a note workspace.

``WorkspaceSync`` is the entry point; the other modules can be used on
their own (the raw store knows nothing about metadata, the stores know
nothing about each other).
"""

from .errors import (
    AlreadyExistsError,
    DeclarationSyntaxError,
    DeleteError,
    MetadataSyncError,
    MkdirError,
    ReadError,
    RenameError,
    TreeError,
    WorkspaceError,
    WriteError,
)
from .keywords import Declaration, KeywordIndex, extract_declared_names, scan_declarations
from .sessions import SessionStore
from .sync import WorkspaceSync
from .tree import FileNode, format_tree, get_file_tree

__all__ = [
    "WorkspaceSync",
    "SessionStore",
    "KeywordIndex",
    "Declaration",
    "extract_declared_names",
    "scan_declarations",
    "FileNode",
    "format_tree",
    "get_file_tree",
    "WorkspaceError",
    "ReadError",
    "WriteError",
    "AlreadyExistsError",
    "MkdirError",
    "DeleteError",
    "RenameError",
    "TreeError",
    "DeclarationSyntaxError",
    "MetadataSyncError",
]
