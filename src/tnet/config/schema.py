"""
Pydantic models for tnet configuration.

Defines all configuration schemas using Pydantic v2 for validation,
defaults, and serialization. These settings drive the engine itself
(where the workspace lives, how metadata failures are reported, how
the tree is listed); editor and preview preferences are not stored here.
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator


class LoggingConfig(BaseModel):
    """Logging system configuration."""

    level: Literal["debug", "info", "human", "warn", "error"] = "human"
    file: Path | None = None
    verbose: int = 0

    model_config = {"extra": "forbid"}


class WorkspaceConfig(BaseModel):
    """Workspace (project root) configuration.

    An empty ``root`` means no workspace is open: file operations still
    work, session and keyword operations return empty results.
    """

    root: str = "."
    settings_dir: str = Field(
        default=".tnet",
        description="Hidden directory inside root holding session.json and keywords.json.",
    )

    model_config = {"extra": "forbid"}

    @field_validator("settings_dir")
    @classmethod
    def _plain_name(cls, v: str) -> str:
        if not v or "/" in v or "\\" in v or v in (".", ".."):
            raise ValueError("settings_dir must be a single directory name")
        return v


class KeywordsConfig(BaseModel):
    """Keyword declaration scanning configuration."""

    tag: str = Field(
        default="keyword",
        pattern=r"^[A-Za-z][A-Za-z0-9_-]*$",
        description="Tag name of declaration blocks: <keyword name=\"...\">...</keyword>.",
    )
    extensions: list[str] = Field(
        default_factory=lambda: [".md", ".markdown", ".txt"],
        description="File extensions scanned when the whole index is rebuilt.",
    )

    model_config = {"extra": "forbid"}


class SyncConfig(BaseModel):
    """Behaviour of the synchronizer when metadata cannot be updated.

    The filesystem change is never rolled back. With "raise" the caller
    gets a MetadataSyncError once every metadata step has been attempted;
    with "log" the failure is only logged.
    """

    metadata_errors: Literal["raise", "log"] = "raise"

    model_config = {"extra": "forbid"}


class TreeConfig(BaseModel):
    """Directory tree listing configuration."""

    show_hidden: bool = True
    max_workers: int = Field(
        default=1,
        ge=1,
        le=32,
        description="Threads used to walk top-level sub-directories. 1 = sequential.",
    )

    model_config = {"extra": "forbid"}


class AppConfig(BaseModel):
    """Complete application configuration.

    This is the root of the configuration tree. It combines all sections
    and is the entry point for validation.
    """

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    workspace: WorkspaceConfig = Field(default_factory=WorkspaceConfig)
    keywords: KeywordsConfig = Field(default_factory=KeywordsConfig)
    sync: SyncConfig = Field(default_factory=SyncConfig)
    tree: TreeConfig = Field(default_factory=TreeConfig)

    model_config = {"extra": "forbid"}
