"""
Human Log - formatter and helper for readable workspace traces.

Turns the HUMAN-level events emitted by the synchronizer into short lines
on stderr, so a user running the CLI sees what changed without the
technical noise of INFO/DEBUG.

Example output:
    wrote notes/topology.md (3 keywords)
    renamed notes/a.md → notes/b.md
    ⚠  metadata not updated after delete of notes/c.md (session)
"""

import logging
import sys

from .levels import HUMAN


class HumanFormatter:
    """Formats workspace events as readable text.

    Each event type has its own format; unknown events are not shown.
    """

    def format_event(self, event: str, **kw) -> str | None:
        """Format an event as readable text.

        Args:
            event: Event name (e.g. "workspace.write")
            **kw: Event parameters

        Returns:
            Formatted text, or None if the event has no human format
        """
        match event:

            # ── FILES ─────────────────────────────────────────────────────
            case "workspace.write":
                path = kw.get("path", "?")
                keywords = kw.get("keywords", 0)
                noun = "keyword" if keywords == 1 else "keywords"
                return f"wrote {path} ({keywords} {noun})"

            case "workspace.create":
                return f"created {kw.get('path', '?')}"

            case "workspace.mkdir":
                return f"created directory {kw.get('path', '?')}/"

            case "workspace.delete":
                return f"deleted {kw.get('path', '?')}"

            case "workspace.rename":
                return f"renamed {kw.get('old', '?')} → {kw.get('new', '?')}"

            # ── METADATA ──────────────────────────────────────────────────
            case "workspace.metadata_failed":
                operation = kw.get("operation", "?")
                path = kw.get("path", "?")
                steps = kw.get("steps", [])
                steps_str = ", ".join(steps) if steps else "?"
                return f"⚠  metadata not updated after {operation} of {path} ({steps_str})"

            case "workspace.reindex":
                count = kw.get("keywords", 0)
                return f"reindexed workspace ({count} keywords)"

            case "workspace.session_pruned":
                removed = kw.get("removed", [])
                if not removed:
                    return "session already up to date"
                return f"removed {len(removed)} missing files from session"

            case _:
                return None


class HumanLogHandler(logging.Handler):
    """Logging handler that formats HUMAN events.

    Only processes records at exactly the HUMAN level (25). Writes to
    stderr so stdout stays clean for command output.
    """

    _RESERVED = frozenset({
        "msg", "args", "levelname", "levelno", "pathname",
        "filename", "module", "exc_info", "exc_text", "stack_info",
        "lineno", "funcName", "created", "msecs", "relativeCreated",
        "thread", "threadName", "processName", "process", "message",
        "taskName", "name", "event",
    })

    def __init__(self, stream=None) -> None:
        super().__init__(level=HUMAN)
        self.stream = stream or sys.stderr
        self.formatter_inst = HumanFormatter()

    def emit(self, record: logging.LogRecord) -> None:
        try:
            if record.levelno != HUMAN:
                return

            # structlog passes the event dict as the record message
            msg = record.msg
            if isinstance(msg, dict):
                event = msg.get("event", "")
                kw = {k: v for k, v in msg.items() if k != "event"}
            else:
                event = getattr(record, "event", None) or record.getMessage()
                kw = {
                    k: v for k, v in record.__dict__.items()
                    if not k.startswith("_") and k not in self._RESERVED
                }

            formatted = self.formatter_inst.format_event(event, **kw)
            if formatted is not None:
                self.stream.write(formatted + "\n")
                self.stream.flush()
        except Exception:
            self.handleError(record)


class HumanLog:
    """Typed helper for emitting HUMAN-level events.

    Usage:
        hlog = HumanLog(structlog.get_logger())
        hlog.file_written("notes/a.md", keywords=2)
        hlog.entry_renamed("notes/a.md", "notes/b.md")
    """

    def __init__(self, logger) -> None:
        self._log = logger

    def file_written(self, path: str, keywords: int) -> None:
        self._log.log(HUMAN, "workspace.write", path=path, keywords=keywords)

    def file_created(self, path: str) -> None:
        self._log.log(HUMAN, "workspace.create", path=path)

    def directory_created(self, path: str) -> None:
        self._log.log(HUMAN, "workspace.mkdir", path=path)

    def file_deleted(self, path: str) -> None:
        self._log.log(HUMAN, "workspace.delete", path=path)

    def entry_renamed(self, old: str, new: str) -> None:
        self._log.log(HUMAN, "workspace.rename", old=old, new=new)

    def metadata_failed(self, operation: str, path: str, steps: list[str]) -> None:
        self._log.log(HUMAN, "workspace.metadata_failed", operation=operation, path=path, steps=steps)

    def reindexed(self, keywords: int) -> None:
        self._log.log(HUMAN, "workspace.reindex", keywords=keywords)

    def session_pruned(self, removed: list[str]) -> None:
        self._log.log(HUMAN, "workspace.session_pruned", removed=removed)
