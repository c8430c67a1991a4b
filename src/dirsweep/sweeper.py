"""Cleanup mode: find and optionally delete dependency / build directories."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass, field
from pathlib import Path

from .cleaner import Candidate, CandidateHandler, DirectoryRemover, DryRunReporter
from .config import SweepConfig, require_directory
from .rules import RuleMatcher
from .walker import TreeWalker, WalkError, directory_size

logger = logging.getLogger(__name__)


@dataclass
class SweepStats:
    """Statistics for one sweep."""

    matched: int = 0
    removed: int = 0
    failed: int = 0
    bytes_found: int = 0
    bytes_freed: int = 0
    walk_errors: list[WalkError] = field(default_factory=list)


class ProjectSweeper:
    """Walks a tree once, matching directories against the cleanup rules.

    Args:
        config: Sweep configuration.
        force: Delete matches instead of only reporting them.
        matcher: Rule matcher; defaults to the built-in rule table.

    """

    def __init__(
        self,
        config: SweepConfig | None = None,
        *,
        force: bool = False,
        matcher: RuleMatcher | None = None,
    ) -> None:
        self.config = config or SweepConfig()
        self.force = force
        self.matcher = matcher or RuleMatcher()
        self.handler: CandidateHandler = DirectoryRemover(logger) if force else DryRunReporter(logger)
        self.stats = SweepStats()

    def sweep(self, root: Path) -> Iterator[Candidate]:
        """Yield each matched directory after it has been handled.

        The root itself is never a candidate. Every match is pruned from the
        walk whether or not its deletion succeeded, so nothing below a
        candidate is visited or reported.

        Raises:
            ConfigurationError: If ``root`` is not an existing directory.
                Raised on the call itself, before any traversal.

        """
        require_directory(root)
        self.stats = SweepStats()
        return self._sweep(root)

    def _sweep(self, root: Path) -> Iterator[Candidate]:
        walker = TreeWalker(root)

        logger.info("Scanning %s (%s)", root, "delete" if self.force else "dry run")

        for entry in walker:
            if entry.depth == 0 or not entry.is_dir:
                continue

            rule = self.matcher.match(entry.name, entry.parent_path)
            if rule is None:
                continue

            candidate = Candidate(path=entry.path, rule=rule)
            try:
                if self.config.measure_sizes:
                    candidate.size_bytes = directory_size(entry.path)
                self.handler.handle(candidate)
            finally:
                walker.skip_subtree()

            self._record(candidate)
            yield candidate

        self.stats.walk_errors = list(walker.errors)

    def _record(self, candidate: Candidate) -> None:
        size = candidate.size_bytes or 0
        self.stats.matched += 1
        self.stats.bytes_found += size
        if candidate.deleted:
            self.stats.removed += 1
            self.stats.bytes_freed += size
        elif candidate.failed:
            self.stats.failed += 1
