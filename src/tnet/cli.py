"""
Main CLI for tnet using Click.

Every command opens the workspace from the merged configuration
(defaults < YAML < env < flags), performs one engine operation and maps
engine errors to exit codes. Command output goes to stdout; the HUMAN
trace and technical logs go to stderr.
"""

import json
import os
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Callable, Iterator

import click
from pydantic import ValidationError

from . import __version__
from .config.loader import load_config
from .config.schema import AppConfig
from .logging import configure_logging
from .workspace import (
    DeclarationSyntaxError,
    MetadataSyncError,
    WorkspaceError,
    WorkspaceSync,
    format_tree,
    scan_declarations,
)

# Exit codes
EXIT_SUCCESS = 0
EXIT_FAILED = 1
EXIT_METADATA = 2
EXIT_CONFIG_ERROR = 3


def _common_options(fn: Callable) -> Callable:
    """Options shared by every workspace command."""
    options = [
        click.option(
            "-w",
            "--workspace",
            type=str,
            default=None,
            help="Workspace root directory (empty string: no workspace open)",
        ),
        click.option(
            "-c",
            "--config",
            type=click.Path(exists=True, path_type=Path),
            help="Path to the YAML configuration file",
        ),
        click.option(
            "-v",
            "--verbose",
            count=True,
            help="Technical logs on stderr (-v info, -vv debug)",
        ),
        click.option(
            "--quiet",
            is_flag=True,
            help="No logs on stderr, only command output",
        ),
        click.option(
            "--log-file",
            type=click.Path(path_type=Path),
            help="Also write structured JSON logs to this file",
        ),
    ]
    for option in reversed(options):
        fn = option(fn)
    return fn


def _load_app_config(
    config: Path | None,
    workspace: str | None,
    verbose: int,
    log_file: Path | None,
    metadata_errors: str | None = None,
) -> AppConfig:
    cli_args: dict[str, Any] = {
        "workspace": workspace,
        "verbose": verbose,
        "log_file": log_file,
        "metadata_errors": metadata_errors,
    }
    try:
        return load_config(config_path=config, cli_args=cli_args)
    except FileNotFoundError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(EXIT_CONFIG_ERROR)
    except (ValidationError, ValueError) as e:
        click.echo(f"Invalid configuration: {e}", err=True)
        sys.exit(EXIT_CONFIG_ERROR)


def _open_workspace(
    config: Path | None,
    workspace: str | None,
    verbose: int,
    quiet: bool,
    log_file: Path | None,
    metadata_errors: str | None = None,
    json_output: bool = False,
) -> WorkspaceSync:
    """Load configuration, configure logging and build the synchronizer."""
    app_config = _load_app_config(config, workspace, verbose, log_file, metadata_errors)
    configure_logging(app_config.logging, json_output=json_output, quiet=quiet)
    return WorkspaceSync.from_config(app_config)


@contextmanager
def _engine_errors() -> Iterator[None]:
    """Turn engine errors into a message on stderr and an exit code."""
    try:
        yield
    except MetadataSyncError as e:
        click.echo(f"Warning: {e}", err=True)
        click.echo("Run 'tnet reindex' or 'tnet session prune' to repair.", err=True)
        sys.exit(EXIT_METADATA)
    except WorkspaceError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(EXIT_FAILED)


def _abs(path: str) -> str:
    return os.path.abspath(path)


@click.group()
@click.version_option(version=__version__, prog_name="tnet")
def main() -> None:
    """tnet - keep a note workspace, its keyword index and its session in sync.

    Files on disk are the source of truth; the keyword index and the
    list of open files live in a hidden settings directory of the
    workspace and are updated after every change.
    """
    pass


# ── Files ─────────────────────────────────────────────────────────────────


@main.command()
@click.argument("directory", required=False)
@click.option("--json", "json_output", is_flag=True, help="Print the tree as JSON")
@_common_options
def tree(
    directory: str | None,
    json_output: bool,
    workspace: str | None,
    config: Path | None,
    verbose: int,
    quiet: bool,
    log_file: Path | None,
) -> None:
    """Show the directory tree of the workspace (or of DIRECTORY)."""
    ws = _open_workspace(config, workspace, verbose, quiet, log_file, json_output=json_output)
    with _engine_errors():
        nodes = ws.file_tree(_abs(directory) if directory else None)

    if json_output:
        click.echo(json.dumps([n.to_dict() for n in nodes], indent=2, ensure_ascii=False))
    else:
        click.echo(format_tree(nodes))


@main.command()
@click.argument("path")
@_common_options
def read(
    path: str,
    workspace: str | None,
    config: Path | None,
    verbose: int,
    quiet: bool,
    log_file: Path | None,
) -> None:
    """Print the contents of PATH."""
    ws = _open_workspace(config, workspace, verbose, quiet, log_file)
    with _engine_errors():
        content = ws.read(_abs(path))
    click.echo(content, nl=False)


@main.command()
@click.argument("path")
@click.option(
    "--input",
    "input_file",
    type=click.File("r", encoding="utf-8"),
    default="-",
    help="Read the new content from this file (default: stdin)",
)
@click.option(
    "--metadata-errors",
    type=click.Choice(["raise", "log"]),
    default=None,
    help="Fail (raise) or only log when the keyword index cannot be updated",
)
@_common_options
def write(
    path: str,
    input_file,
    metadata_errors: str | None,
    workspace: str | None,
    config: Path | None,
    verbose: int,
    quiet: bool,
    log_file: Path | None,
) -> None:
    """Write PATH and refresh its keyword declarations."""
    ws = _open_workspace(config, workspace, verbose, quiet, log_file, metadata_errors)
    content = input_file.read()
    with _engine_errors():
        ws.write(_abs(path), content)


@main.command()
@click.argument("path")
@_common_options
def create(
    path: str,
    workspace: str | None,
    config: Path | None,
    verbose: int,
    quiet: bool,
    log_file: Path | None,
) -> None:
    """Create a new note at PATH from the template."""
    ws = _open_workspace(config, workspace, verbose, quiet, log_file)
    with _engine_errors():
        ws.create(_abs(path))


@main.command()
@click.argument("path")
@_common_options
def mkdir(
    path: str,
    workspace: str | None,
    config: Path | None,
    verbose: int,
    quiet: bool,
    log_file: Path | None,
) -> None:
    """Create the directory PATH (and missing parents)."""
    ws = _open_workspace(config, workspace, verbose, quiet, log_file)
    with _engine_errors():
        ws.create_directory(_abs(path))


@main.command()
@click.argument("path")
@click.option(
    "--metadata-errors",
    type=click.Choice(["raise", "log"]),
    default=None,
    help="Fail (raise) or only log when session or index cannot be updated",
)
@_common_options
def delete(
    path: str,
    metadata_errors: str | None,
    workspace: str | None,
    config: Path | None,
    verbose: int,
    quiet: bool,
    log_file: Path | None,
) -> None:
    """Delete the file PATH and drop it from session and index."""
    ws = _open_workspace(config, workspace, verbose, quiet, log_file, metadata_errors)
    with _engine_errors():
        ws.delete(_abs(path))


@main.command()
@click.argument("old")
@click.argument("new")
@click.option(
    "--metadata-errors",
    type=click.Choice(["raise", "log"]),
    default=None,
    help="Fail (raise) or only log when session or index cannot be updated",
)
@_common_options
def rename(
    old: str,
    new: str,
    metadata_errors: str | None,
    workspace: str | None,
    config: Path | None,
    verbose: int,
    quiet: bool,
    log_file: Path | None,
) -> None:
    """Move OLD to NEW (file or directory) and retarget its metadata."""
    ws = _open_workspace(config, workspace, verbose, quiet, log_file, metadata_errors)
    with _engine_errors():
        ws.rename(_abs(old), _abs(new))


# ── Session ───────────────────────────────────────────────────────────────


@main.group()
def session() -> None:
    """Inspect or change the list of open files."""
    pass


@session.command("show")
@_common_options
def session_show(
    workspace: str | None,
    config: Path | None,
    verbose: int,
    quiet: bool,
    log_file: Path | None,
) -> None:
    """Print the saved session, one path per line."""
    ws = _open_workspace(config, workspace, verbose, quiet, log_file)
    if not ws.is_open:
        click.echo("No workspace open.", err=True)
        return
    with _engine_errors():
        paths = ws.load_session()

    if not paths:
        click.echo("Session is empty.", err=True)
        return
    for p in paths:
        click.echo(p)


@session.command("save")
@click.argument("paths", nargs=-1)
@_common_options
def session_save(
    paths: tuple[str, ...],
    workspace: str | None,
    config: Path | None,
    verbose: int,
    quiet: bool,
    log_file: Path | None,
) -> None:
    """Replace the session with PATHS (none: empty session)."""
    ws = _open_workspace(config, workspace, verbose, quiet, log_file)
    with _engine_errors():
        ws.save_session([_abs(p) for p in paths])


@session.command("prune")
@_common_options
def session_prune(
    workspace: str | None,
    config: Path | None,
    verbose: int,
    quiet: bool,
    log_file: Path | None,
) -> None:
    """Drop session entries whose file no longer exists."""
    ws = _open_workspace(config, workspace, verbose, quiet, log_file)
    with _engine_errors():
        ws.prune_session()


# ── Keywords ──────────────────────────────────────────────────────────────


@main.command()
@click.argument("name", required=False)
@click.option("--json", "json_output", is_flag=True, help="Print the index as JSON")
@_common_options
def keywords(
    name: str | None,
    json_output: bool,
    workspace: str | None,
    config: Path | None,
    verbose: int,
    quiet: bool,
    log_file: Path | None,
) -> None:
    """List the keyword index, or print the file that declares NAME."""
    ws = _open_workspace(config, workspace, verbose, quiet, log_file, json_output=json_output)
    if name is not None:
        target = ws.keyword_index.lookup(name)
        if target is None:
            click.echo(f"Error: keyword '{name}' is not declared in the workspace.", err=True)
            sys.exit(EXIT_FAILED)
        click.echo(target)
        return

    index = ws.keywords()
    if json_output:
        click.echo(json.dumps(index, indent=2, ensure_ascii=False, sort_keys=True))
        return

    if not index:
        click.echo("No keywords indexed.", err=True)
        return
    width = max(len(k) for k in index)
    for keyword in sorted(index):
        path = index[keyword]
        shown = os.path.relpath(path, ws.root) if ws.root else path
        click.echo(f"  {keyword:<{width}s}  {shown}")


@main.command()
@click.argument("path")
@_common_options
def check(
    path: str,
    workspace: str | None,
    config: Path | None,
    verbose: int,
    quiet: bool,
    log_file: Path | None,
) -> None:
    """Strictly validate the keyword blocks of PATH and list them."""
    ws = _open_workspace(config, workspace, verbose, quiet, log_file)
    with _engine_errors():
        content = ws.read(_abs(path))
    try:
        declarations = scan_declarations(content, tag=ws.keyword_index.tag, strict=True)
    except DeclarationSyntaxError as e:
        click.echo(f"Error: {path}: {e}", err=True)
        sys.exit(EXIT_FAILED)

    for d in declarations:
        marker = "" if d.indexed else "  (noindex)"
        click.echo(f"  line {d.line:<5d} {d.name}{marker}")


@main.command()
@_common_options
def reindex(
    workspace: str | None,
    config: Path | None,
    verbose: int,
    quiet: bool,
    log_file: Path | None,
) -> None:
    """Rebuild the keyword index from every note in the workspace."""
    ws = _open_workspace(config, workspace, verbose, quiet, log_file)
    if not ws.is_open:
        click.echo("Error: no workspace open.", err=True)
        sys.exit(EXIT_FAILED)
    with _engine_errors():
        ws.reindex()


# ── Configuration ─────────────────────────────────────────────────────────


@main.command("validate-config")
@click.option(
    "-c",
    "--config",
    type=click.Path(exists=True, path_type=Path),
    help="Path to the YAML configuration file",
)
def validate_config(config: Path | None) -> None:
    """Validate a YAML configuration file."""
    try:
        app_config = load_config(config_path=config)
    except FileNotFoundError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(EXIT_CONFIG_ERROR)
    except (ValidationError, ValueError) as e:
        click.echo(f"Invalid configuration: {e}", err=True)
        sys.exit(EXIT_CONFIG_ERROR)

    click.echo("Valid configuration")
    click.echo(f"  Workspace: {app_config.workspace.root or '(none)'}")
    click.echo(f"  Settings dir: {app_config.workspace.settings_dir}")
    click.echo(f"  Keyword tag: <{app_config.keywords.tag}>")
    click.echo(f"  Metadata errors: {app_config.sync.metadata_errors}")


if __name__ == "__main__":
    main()
