"""
Keyword index - which file declares which keyword.

A note declares a keyword with a tagged block::

    <keyword name="Compactness">
    ...
    </keyword>

Only the ``name`` attribute matters to the index; the block's content is
ignored. A block carrying a bare ``noindex`` attribute is still parsed
(it nests like any other block) but does not declare a keyword.

The index is a flat JSON object ``{keyword name: absolute file path}``
stored in ``<root>/.tnet/keywords.json``. It is a cache derived from the
files on disk: a missing or corrupt index file loads as an empty mapping,
and ``rebuild()`` regenerates it from scratch.
"""

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator

import structlog

from .errors import DeclarationSyntaxError, ReadError
from .paths import (
    DEFAULT_SETTINGS_DIR,
    is_within,
    keywords_file_path,
    normalize_path,
    rebase_path,
    same_path,
)
from .store import read_file, write_json_atomic

logger = structlog.get_logger()

DEFAULT_TAG = "keyword"
DEFAULT_EXTENSIONS: tuple[str, ...] = (".md", ".markdown", ".txt")


# ── Scanner ──────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Declaration:
    """One keyword declaration found in a document.

    Attributes:
        name: Value of the ``name`` attribute (may be empty, e.g. in the new-note template)
        start: Offset of the opening ``<``
        end: Offset just past the closing tag
        line: 1-based line of the opening tag
        indexed: False when the tag carries ``noindex``
    """

    name: str
    start: int
    end: int
    line: int
    indexed: bool = True


@dataclass(frozen=True)
class _Tag:
    kind: str  # "open" | "close" | "self"
    attrs: dict[str, str | None]
    start: int
    end: int
    line: int


class _Malformed(Exception):
    def __init__(self, message: str, pos: int) -> None:
        super().__init__(message)
        self.pos = pos


def _at_boundary(content: str, i: int) -> bool:
    """The tag name ends at ``i`` (so ``<keywords>`` is not ``<keyword``).

    End of input counts as a boundary so a truncated tag is reported.
    """
    return i >= len(content) or content[i].isspace() or content[i] in ">/"


def _parse_attrs(content: str, i: int) -> tuple[dict[str, str | None], int, bool]:
    """Parse attributes from ``i`` up to the end of the tag.

    Returns (attrs, offset past the tag, self_closing).
    """
    n = len(content)
    attrs: dict[str, str | None] = {}
    while True:
        while i < n and content[i].isspace():
            i += 1
        if i >= n:
            raise _Malformed("unterminated tag", i)
        if content[i] == ">":
            return attrs, i + 1, False
        if content.startswith("/>", i):
            return attrs, i + 2, True

        name_start = i
        while i < n and not content[i].isspace() and content[i] not in "=>/\"'<":
            i += 1
        if i == name_start:
            raise _Malformed(f"unexpected character {content[i]!r} in tag", i)
        attr_name = content[name_start:i]

        j = i
        while j < n and content[j].isspace():
            j += 1
        if j < n and content[j] == "=":
            j += 1
            while j < n and content[j].isspace():
                j += 1
            if j >= n:
                raise _Malformed("unterminated tag", j)
            quote = content[j]
            if quote in "\"'":
                close = content.find(quote, j + 1)
                if close == -1:
                    raise _Malformed("unterminated attribute value", j)
                attrs[attr_name] = content[j + 1:close]
                i = close + 1
            else:
                value_start = j
                while j < n and not content[j].isspace() and content[j] != ">":
                    j += 1
                attrs[attr_name] = content[value_start:j]
                i = j
        else:
            attrs[attr_name] = None


def _tokenize(content: str, tag: str, strict: bool) -> Iterator[_Tag]:
    """Yield open/close/self-closing ``tag`` tokens in document order.

    Runs in a single forward pass over ``content``. In lenient mode a
    malformed tag is skipped and scanning resumes after its ``<``.
    """
    open_marker = "<" + tag
    close_marker = "</" + tag
    pos = 0
    line = 1
    counted_to = 0

    while True:
        lt = content.find("<", pos)
        if lt == -1:
            return
        line += content.count("\n", counted_to, lt)
        counted_to = lt

        try:
            if content.startswith(close_marker, lt) and _at_boundary(content, lt + len(close_marker)):
                i = lt + len(close_marker)
                while i < len(content) and content[i].isspace():
                    i += 1
                if i >= len(content) or content[i] != ">":
                    raise _Malformed(f"malformed closing </{tag}> tag", lt)
                yield _Tag("close", {}, lt, i + 1, line)
                pos = i + 1
            elif content.startswith(open_marker, lt) and _at_boundary(content, lt + len(open_marker)):
                attrs, end, self_closing = _parse_attrs(content, lt + len(open_marker))
                yield _Tag("self" if self_closing else "open", attrs, lt, end, line)
                pos = end
            else:
                pos = lt + 1
        except _Malformed as e:
            if strict:
                raise DeclarationSyntaxError(str(e), line) from None
            logger.debug("keywords.scan.skipped", reason=str(e), line=line)
            pos = lt + 1


def _declaration(opener: _Tag, end: int) -> Declaration | None:
    name = opener.attrs.get("name")
    if name is None:
        return None
    return Declaration(
        name=name,
        start=opener.start,
        end=end,
        line=opener.line,
        indexed="noindex" not in opener.attrs,
    )


def scan_declarations(
    content: str,
    *,
    tag: str = DEFAULT_TAG,
    strict: bool = True,
) -> list[Declaration]:
    """Find every keyword declaration block in ``content``.

    Blocks may nest; every named block is reported, ordered by position.

    Args:
        content: Document text
        tag: Tag name of declaration blocks
        strict: If True, malformed markup raises. If False, malformed tags
            are skipped and blocks that are never closed are dropped.

    Raises:
        DeclarationSyntaxError: (strict only) unterminated tag or attribute
            value, closing tag without an open block, or unclosed block
    """
    stack: list[_Tag] = []
    found: list[Declaration] = []

    for token in _tokenize(content, tag, strict):
        if token.kind == "open":
            stack.append(token)
            continue
        if token.kind == "self":
            opener, end = token, token.end
        elif stack:
            opener, end = stack.pop(), token.end
        else:
            if strict:
                raise DeclarationSyntaxError(
                    f"closing </{tag}> without an open block", token.line
                )
            continue
        declaration = _declaration(opener, end)
        if declaration is not None:
            found.append(declaration)

    if stack and strict:
        raise DeclarationSyntaxError(f"unclosed <{tag}> block", stack[-1].line)

    found.sort(key=lambda d: d.start)
    return found


def extract_declared_names(content: str, *, tag: str = DEFAULT_TAG) -> list[str]:
    """Names declared in ``content``, unique, in first-encountered order.

    Scans leniently: a note with broken markup still indexes its
    well-formed blocks. Empty names and ``noindex`` blocks are skipped.
    """
    names = [
        d.name
        for d in scan_declarations(content, tag=tag, strict=False)
        # the new-note template declares name=""
        if d.indexed and d.name
    ]
    return list(dict.fromkeys(names))


# ── Persisted index ──────────────────────────────────────────────────────


def _load_or_empty(path: Path) -> dict[str, str]:
    """Read the index file, treating missing or unreadable files as empty."""
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return {}
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        logger.warning("keywords.load_error", path=str(path), error=str(e))
        return {}
    if not isinstance(data, dict) or not all(
        isinstance(k, str) and isinstance(v, str) for k, v in data.items()
    ):
        logger.warning("keywords.invalid_format", path=str(path))
        return {}
    return data


class KeywordIndex:
    """Keyword name -> declaring file, persisted per workspace root.

    An empty ``root`` is the "no workspace open" sentinel: loads return an
    empty mapping and mutations do nothing.
    """

    def __init__(
        self,
        root: str,
        settings_dir: str = DEFAULT_SETTINGS_DIR,
        tag: str = DEFAULT_TAG,
    ) -> None:
        self.root = root
        self.settings_dir = settings_dir
        self.tag = tag

    @property
    def index_file(self) -> Path | None:
        if not self.root:
            return None
        return keywords_file_path(self.root, self.settings_dir)

    def load(self) -> dict[str, str]:
        """Current mapping; ``{}`` if no workspace, or the file is missing/corrupt."""
        if self.index_file is None:
            return {}
        return _load_or_empty(self.index_file)

    def lookup(self, name: str) -> str | None:
        """Path of the file declaring ``name``, if any."""
        return self.load().get(name)

    def _save(self, keywords: dict[str, str]) -> None:
        assert self.index_file is not None
        write_json_atomic(self.index_file, keywords)

    def refresh_for_file(self, file_path: str, content: str) -> list[str]:
        """Re-derive the entries of ``file_path`` from its new ``content``.

        Every entry pointing at ``file_path`` is dropped, then each name the
        content declares is pointed at it (taking it over from any other
        file). The whole new mapping is built before the single atomic write.

        Returns:
            The names ``content`` declares.

        Raises:
            WriteError: If the index file cannot be written
        """
        if not self.root:
            return []
        names = extract_declared_names(content, tag=self.tag)
        target = normalize_path(file_path)

        keywords = {k: v for k, v in self.load().items() if not same_path(v, target)}
        for name in names:
            keywords[name] = target

        self._save(keywords)
        logger.debug("keywords.refreshed", path=target, declared=len(names))
        return names

    def purge_path(self, file_path: str) -> list[str]:
        """Drop entries pointing at ``file_path`` (or inside it, for a directory).

        Returns:
            The keyword names that were removed.
        """
        if not self.root:
            return []
        keywords = self.load()
        kept = {
            k: v for k, v in keywords.items()
            if not (same_path(v, file_path) or is_within(v, file_path))
        }
        removed = [k for k in keywords if k not in kept]
        if removed:
            self._save(kept)
            logger.debug("keywords.purged", path=file_path, removed=len(removed))
        return removed

    def retarget_path(self, old_path: str, new_path: str) -> list[str]:
        """Point entries of ``old_path`` at ``new_path``.

        Entries for files below ``old_path`` (a renamed directory) are
        rebased below ``new_path``.

        Returns:
            The keyword names that were retargeted.
        """
        if not self.root:
            return []
        keywords = self.load()
        target = normalize_path(new_path)
        changed: list[str] = []
        for name, path in list(keywords.items()):
            rebased = rebase_path(path, old_path, target)
            if rebased is not None:
                keywords[name] = rebased
                changed.append(name)
        if changed:
            self._save(keywords)
            logger.debug("keywords.retargeted", old=old_path, new=target, count=len(changed))
        return changed

    def rebuild(self, extensions: tuple[str, ...] | list[str] = DEFAULT_EXTENSIONS) -> dict[str, str]:
        """Regenerate the whole index by scanning the workspace.

        Hidden directories (including the settings directory) are skipped.
        Files are visited in sorted path order; when two files declare the
        same keyword the later one wins and the clash is logged.

        Returns:
            The new mapping (also persisted).

        Raises:
            ReadError: If the workspace root is not a directory (nothing
                is written)
        """
        if not self.root:
            return {}
        if not os.path.isdir(self.root):
            logger.error("keywords.rebuild.no_root", root=self.root)
            raise ReadError(f"Workspace root is not a directory: {self.root}", self.root)
        suffixes = {ext.lower() for ext in extensions}
        keywords: dict[str, str] = {}

        for dirpath, dirnames, filenames in os.walk(self.root):
            dirnames[:] = sorted(d for d in dirnames if not d.startswith("."))
            for filename in sorted(filenames):
                if Path(filename).suffix.lower() not in suffixes:
                    continue
                file_path = normalize_path(os.path.join(dirpath, filename))
                try:
                    content = read_file(file_path)
                except ReadError:
                    logger.warning("keywords.rebuild.unreadable", path=file_path)
                    continue
                for name in extract_declared_names(content, tag=self.tag):
                    previous = keywords.get(name)
                    if previous is not None and previous != file_path:
                        logger.warning(
                            "keywords.duplicate", keyword=name, kept=file_path, dropped=previous
                        )
                    keywords[name] = file_path

        self._save(keywords)
        logger.info("keywords.rebuilt", root=self.root, keywords=len(keywords))
        return keywords
