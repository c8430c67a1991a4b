"""Combine text files from a tree into one annotated stream."""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Protocol, TextIO

from .config import ConfigurationError, SweepConfig, require_directory
from .filters import ContentFilter, directory_predicate
from .walker import TreeWalker, WalkError

if TYPE_CHECKING:
    from collections.abc import Iterable

logger = logging.getLogger(__name__)

BLOCK_FOOTER = "\n```\n"


def format_header(relative_path: str, extension: str) -> str:
    return f"\n# File: {relative_path}\n```{extension}\n"


class OutputSink(Protocol):
    """Append-only destination for combined blocks."""

    # Real file being written (checked against its own input), or None
    path: Path | None
    # Whether a completion summary may be printed after the run
    reports_summary: bool

    def write(self, text: str) -> None: ...

    def flush(self) -> None: ...

    def close(self) -> None: ...


class StreamSink:
    """Writes blocks to an already-open stream, stdout by default."""

    path: Path | None = None
    reports_summary: bool = False

    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream if stream is not None else sys.stdout

    def write(self, text: str) -> None:
        self._stream.write(text)

    def flush(self) -> None:
        self._stream.flush()

    def close(self) -> None:
        self.flush()


class FileSink:
    """Writes blocks to a newly created file."""

    reports_summary: bool = True

    def __init__(self, path: Path, stream: TextIO) -> None:
        self.path: Path | None = path
        self._stream = stream

    @classmethod
    def create(cls, path: Path) -> FileSink:
        """Create (or truncate) the output file.

        Raises:
            ConfigurationError: If the file cannot be created.

        """
        try:
            stream = path.open("w", encoding="utf-8", newline="")
        except OSError as e:
            raise ConfigurationError(f"Cannot create output file {path}: {e}") from e
        return cls(path, stream)

    def write(self, text: str) -> None:
        self._stream.write(text)

    def flush(self) -> None:
        self._stream.flush()

    def close(self) -> None:
        self._stream.close()


def estimate_tokens(text: str) -> int:
    """Rough token count: four characters per token."""
    return len(text) // 4


@dataclass
class CombineStats:
    """Totals for one combine run."""

    files: int = 0
    total_bytes: int = 0
    estimated_tokens: int = 0
    walk_errors: list[WalkError] = field(default_factory=list)
    # Copied from the sink: where the blocks went and whether to summarize them
    output_path: Path | None = None
    reports_summary: bool = False


class CodeCombiner:
    """Streams accepted files from a tree into a sink, one block per file."""

    def __init__(self, sink: OutputSink, content_filter: ContentFilter | None = None) -> None:
        self.sink = sink
        self.content_filter = content_filter or ContentFilter(output_path=sink.path)

    def combine(self, root: Path) -> CombineStats:
        """Walk ``root`` and write a block for every accepted text file.

        Files that fail to decode as UTF-8 are skipped without a message.

        Raises:
            ConfigurationError: If ``root`` is not an existing directory.

        """
        require_directory(root)
        stats = CombineStats(output_path=self.sink.path, reports_summary=self.sink.reports_summary)
        walker = TreeWalker(root, directory_predicate)

        for entry in walker:
            if not entry.is_file:
                continue

            decision = self.content_filter.decide(entry.path)
            if not decision:
                logger.debug("Skipping %s: %s", entry.path, decision.reason)
                continue

            content = self._read_text(entry.path)
            if content is None:
                continue

            relative = entry.path.relative_to(root).as_posix()
            self.sink.write(format_header(relative, decision.extension))
            self.sink.write(content)
            self.sink.write(BLOCK_FOOTER)
            self.sink.flush()

            stats.files += 1
            stats.total_bytes += len(content.encode("utf-8"))
            stats.estimated_tokens += estimate_tokens(content)

        stats.walk_errors = list(walker.errors)
        return stats

    @staticmethod
    def _read_text(path: Path) -> str | None:
        try:
            with path.open(encoding="utf-8", newline="") as f:
                return f.read()
        except UnicodeDecodeError:
            return None
        except OSError as e:
            logger.warning("Cannot read %s: %s", path, e)
            return None


def open_sink(output_path: Path | None) -> OutputSink:
    """Return a file sink for ``output_path`` or a stdout stream sink."""
    if output_path is None:
        return StreamSink()
    return FileSink.create(output_path)


def combine_code(
    root: Path,
    output_path: Path | None = None,
    *,
    include: Iterable[str] | None = None,
    exclude: Iterable[str] | None = None,
    config: SweepConfig | None = None,
) -> CombineStats:
    """Combine the text files under ``root`` into ``output_path`` (stdout if None).

    The root is validated before the output file is created, so a bad root
    leaves no empty output behind.

    Raises:
        ConfigurationError: If the root is invalid or the output cannot be
            created or written.
        BrokenPipeError: If the reader of a streamed output went away.

    """
    require_directory(root)
    config = config or SweepConfig()
    content_filter = ContentFilter.from_config(config, include=include, exclude=exclude, output_path=output_path)
    sink = open_sink(output_path)
    try:
        try:
            return CodeCombiner(sink, content_filter).combine(root)
        finally:
            sink.close()
    except BrokenPipeError:
        raise
    except OSError as e:
        target = output_path if output_path is not None else "stdout"
        raise ConfigurationError(f"Cannot write output to {target}: {e}") from e
