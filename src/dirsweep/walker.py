"""Lazy depth-first directory traversal with on-demand subtree pruning.

The walker yields one ``WalkEntry`` per visited node. A directory's children
are only listed after the consumer resumes iteration, so calling
``entry.prune()`` (or ``TreeWalker.skip_subtree()``) right after receiving a
directory keeps the walker out of it entirely. Pruning an ancestor whose
listing is already open drops its remaining unvisited descendants.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

logger = logging.getLogger(__name__)


class EntryKind(Enum):
    """File-type tag of a visited node."""

    DIRECTORY = "directory"
    FILE = "file"
    OTHER = "other"


@dataclass(eq=False)
class WalkEntry:
    """A single visited filesystem node.

    Doubles as the pruning handle for directories: ``prune()`` marks the
    subtree so the walker never descends (or stops descending) into it.
    """

    path: Path
    depth: int
    kind: EntryKind
    parent: WalkEntry | None = None
    pruned: bool = field(default=False, repr=False)

    @property
    def name(self) -> str:
        return self.path.name

    @property
    def parent_path(self) -> Path:
        return self.parent.path if self.parent is not None else self.path.parent

    @property
    def is_dir(self) -> bool:
        return self.kind is EntryKind.DIRECTORY

    @property
    def is_file(self) -> bool:
        return self.kind is EntryKind.FILE

    def prune(self) -> None:
        """Skip every not-yet-visited descendant of this entry."""
        self.pruned = True


@dataclass(frozen=True)
class WalkError:
    """A per-entry I/O failure that did not stop the walk."""

    path: Path
    error: OSError

    def __str__(self) -> str:
        return f"{self.path}: {self.error.strerror or self.error}"


EntryPredicate = Callable[[WalkEntry], bool]


class TreeWalker:
    """Depth-first iterator over a directory tree.

    Args:
        root: Directory to walk. It is always yielded first (depth 0),
            whatever the predicate says about it.
        predicate: Called for every non-root entry before it is yielded.
            Returning False omits a file, or prunes a directory.

    Per-entry errors (unreadable directory, vanished entry) are logged and
    collected in ``errors``; iteration carries on with the next sibling.
    """

    def __init__(self, root: Path, predicate: EntryPredicate | None = None) -> None:
        self.root = root
        self._predicate = predicate
        self._current: WalkEntry | None = None
        self.errors: list[WalkError] = []

    def __iter__(self) -> Iterator[WalkEntry]:
        root_kind = EntryKind.DIRECTORY if self.root.is_dir() else EntryKind.OTHER
        root_entry = WalkEntry(path=self.root, depth=0, kind=root_kind)

        self._current = root_entry
        yield root_entry

        stack: list[tuple[WalkEntry, Iterator[WalkEntry]]] = []
        if root_entry.is_dir and not root_entry.pruned:
            stack.append((root_entry, self._children(root_entry)))

        while stack:
            self._drop_pruned_frames(stack)
            if not stack:
                break

            entry = next(stack[-1][1], None)
            if entry is None:
                stack.pop()
                continue

            if self._predicate is not None and not self._predicate(entry):
                continue

            self._current = entry
            yield entry

            if entry.is_dir and not entry.pruned:
                stack.append((entry, self._children(entry)))

        self._current = None

    def skip_subtree(self) -> None:
        """Prune the entry most recently yielded."""
        if self._current is not None:
            self._current.prune()

    @staticmethod
    def _drop_pruned_frames(stack: list[tuple[WalkEntry, Iterator[WalkEntry]]]) -> None:
        for index, (entry, _children) in enumerate(stack):
            if entry.pruned:
                del stack[index:]
                return

    def _children(self, parent: WalkEntry) -> Iterator[WalkEntry]:
        """List one directory level and yield its entries."""
        try:
            with os.scandir(parent.path) as it:
                dirents = list(it)
        except OSError as e:
            self._report(parent.path, e)
            return

        for dirent in dirents:
            path = parent.path / dirent.name
            try:
                kind = self._classify(dirent)
            except OSError as e:
                self._report(path, e)
                continue
            yield WalkEntry(path=path, depth=parent.depth + 1, kind=kind, parent=parent)

    @staticmethod
    def _classify(dirent: os.DirEntry[str]) -> EntryKind:
        # Links to directories are never followed; links to files count as files
        if dirent.is_dir(follow_symlinks=False):
            return EntryKind.DIRECTORY
        if dirent.is_file():
            return EntryKind.FILE
        if dirent.is_symlink() and not os.path.exists(dirent.path):
            logger.debug("Broken symlink: %s", dirent.path)
        return EntryKind.OTHER

    def _report(self, path: Path, error: OSError) -> None:
        walk_error = WalkError(path=path, error=error)
        self.errors.append(walk_error)
        logger.warning("Cannot read %s", walk_error)


def directory_size(path: Path) -> int:
    """Sum the sizes of all regular files below ``path`` (links not followed)."""
    total = 0
    for entry in TreeWalker(path):
        if entry.kind is not EntryKind.FILE:
            continue
        try:
            total += entry.path.lstat().st_size
        except OSError as e:
            logger.debug("Cannot stat %s: %s", entry.path, e)
    return total
