"""Directory and file filtering for the combine command."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from .config import DEFAULT_KNOWN_TEXT_FILES, KNOWN_TEXT_MATCH_MODES, ConfigurationError

if TYPE_CHECKING:
    from .config import SweepConfig
    from .walker import WalkEntry

HIDDEN_PREFIX = "."

# Version control, editor, dependency and build-output directories
IGNORED_DIRECTORIES: frozenset[str] = frozenset({
    "node_modules",
    "target",
    "vendor",
    ".git",
    ".svn",
    ".hg",
    ".idea",
    ".vscode",
    "dist",
    "build",
    "coverage",
    "__pycache__",
})

# Lock files, OS metadata and secrets
IGNORED_FILES: frozenset[str] = frozenset({
    "package-lock.json",
    "yarn.lock",
    "pnpm-lock.yaml",
    "Cargo.lock",
    "composer.lock",
    ".DS_Store",
    "Thumbs.db",
    ".env",
})

# Images, fonts, media, archives and compiled objects
BINARY_EXTENSIONS: frozenset[str] = frozenset({
    "png", "jpg", "jpeg", "gif", "ico", "svg",
    "woff", "woff2", "ttf", "eot",
    "mp4", "webm",
    "zip", "tar", "gz",
    "exe", "dll", "so", "dylib", "class", "pyc",
})

KNOWN_TEXT_FILES: frozenset[str] = frozenset(DEFAULT_KNOWN_TEXT_FILES)


def file_extension(name: str) -> str | None:
    """Return the last extension of a file name without the dot.

    Names with no dot or a leading dot only (``.bashrc``) have no extension
    and give None. A trailing dot (``notes.``) gives an empty extension.
    """
    stem, dot, ext = name.rpartition(".")
    if not dot or not stem.strip(HIDDEN_PREFIX):
        return None
    return ext


def is_ignored_directory(name: str) -> bool:
    """Check a directory name against the ignore list and the hidden marker."""
    return name.startswith(HIDDEN_PREFIX) or name in IGNORED_DIRECTORIES


def directory_predicate(entry: WalkEntry) -> bool:
    """Walker predicate for combine: prune ignored directories, pass everything else."""
    return not (entry.is_dir and is_ignored_directory(entry.name))


@dataclass(frozen=True)
class FilterDecision:
    """Whether a file goes into the combined output, and with which tag."""

    include: bool
    extension: str = ""
    reason: str = ""

    @classmethod
    def accept(cls, extension: str) -> FilterDecision:
        return cls(include=True, extension=extension)

    @classmethod
    def reject(cls, reason: str) -> FilterDecision:
        return cls(include=False, reason=reason)

    def __bool__(self) -> bool:
        return self.include


class ContentFilter:
    """Decides, file by file, what the combine command emits.

    Rules are checked in order and the first decisive one wins: blocked
    names and hidden files, the output file itself, extension include /
    exclude / binary lists, then the known-text check for files without an
    extension.

    Args:
        include: Extensions to keep. Empty means no include restriction.
        exclude: Extensions to drop.
        output_path: File being written, never fed back into itself.
        known_text_files: Extensionless names treated as text.
        known_text_match: ``"suffix"`` (``MY_LICENSE`` matches ``LICENSE``)
            or ``"exact"``.

    """

    def __init__(
        self,
        include: Iterable[str] = (),
        exclude: Iterable[str] = (),
        *,
        output_path: Path | None = None,
        known_text_files: Iterable[str] = KNOWN_TEXT_FILES,
        known_text_match: str = "suffix",
    ) -> None:
        if known_text_match not in KNOWN_TEXT_MATCH_MODES:
            raise ConfigurationError(f"Unknown known_text_match mode: {known_text_match!r}")

        self.include: frozenset[str] = frozenset(include)
        self.exclude: frozenset[str] = frozenset(exclude)
        self.known_text_files: tuple[str, ...] = tuple(known_text_files)
        self.known_text_match = known_text_match
        self._output_path = output_path.resolve() if output_path is not None else None

    @classmethod
    def from_config(
        cls,
        config: SweepConfig,
        *,
        include: Iterable[str] | None = None,
        exclude: Iterable[str] | None = None,
        output_path: Path | None = None,
    ) -> ContentFilter:
        """Build a filter from config, letting explicit lists override it."""
        return cls(
            include=config.include_extensions if include is None else include,
            exclude=config.exclude_extensions if exclude is None else exclude,
            output_path=output_path,
            known_text_files=config.known_text_files,
            known_text_match=config.known_text_match,
        )

    def is_known_text(self, name: str) -> bool:
        if self.known_text_match == "exact":
            return name in self.known_text_files
        return any(name.endswith(known) for known in self.known_text_files)

    def decide(self, path: Path) -> FilterDecision:
        """Decide whether ``path`` is emitted.

        Args:
            path: File to check.

        Returns:
            FilterDecision carrying the extension tag when accepted.

        """
        name = path.name

        if name in IGNORED_FILES or name.startswith(HIDDEN_PREFIX):
            return FilterDecision.reject("ignored name")

        if self._output_path is not None and self._is_output(path):
            return FilterDecision.reject("output file")

        ext = file_extension(name)
        if ext is not None:
            if self.include and ext not in self.include:
                return FilterDecision.reject("not in include list")
            if ext in self.exclude:
                return FilterDecision.reject("in exclude list")
            if ext in BINARY_EXTENSIONS:
                return FilterDecision.reject("binary extension")
            return FilterDecision.accept(ext)

        if not self.is_known_text(name):
            return FilterDecision.reject("no extension")
        return FilterDecision.accept("")

    def _is_output(self, path: Path) -> bool:
        try:
            return path.resolve() == self._output_path
        except OSError:
            return False
