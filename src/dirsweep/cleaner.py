"""Deletion of matched dependency and build directories."""

from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from .rules import CleanupRule


class CandidateStatus(Enum):
    """Outcome of handling a candidate."""

    PENDING = "pending"
    DELETED = "deleted"
    FAILED = "failed"


@dataclass
class Candidate:
    """A directory claimed by a cleanup rule during a sweep."""

    path: Path
    rule: CleanupRule
    size_bytes: int | None = None
    status: CandidateStatus = CandidateStatus.PENDING
    error: str | None = None

    @property
    def deleted(self) -> bool:
        return self.status is CandidateStatus.DELETED

    @property
    def failed(self) -> bool:
        return self.status is CandidateStatus.FAILED


class CandidateHandler(Protocol):
    """Something that acts on a candidate once it has been matched."""

    removes_files: bool

    def handle(self, candidate: Candidate) -> Candidate:
        """Act on the candidate and return it with its outcome filled in."""
        ...


class DryRunReporter:
    """Records matches without touching the filesystem."""

    removes_files: bool = False

    def __init__(self, logger: logging.Logger) -> None:
        self.logger = logger

    def handle(self, candidate: Candidate) -> Candidate:
        self.logger.debug("Would delete %s (%s)", candidate.path, candidate.rule.description)
        return candidate


class DirectoryRemover:
    """Recursively removes candidate directories."""

    removes_files: bool = True

    def __init__(self, logger: logging.Logger) -> None:
        """Initialize the remover.

        Args:
            logger: Logger instance.

        """
        self.logger = logger

    def handle(self, candidate: Candidate) -> Candidate:
        """Delete a candidate directory and everything under it.

        Failures are recorded on the candidate instead of raised, so the
        sweep can carry on with the next directory.

        Args:
            candidate: Directory to delete.

        Returns:
            The same candidate with status and error set.

        """
        path = candidate.path

        if not path.is_dir():
            candidate.status = CandidateStatus.FAILED
            candidate.error = "Directory no longer exists"
            return candidate

        try:
            shutil.rmtree(path)
        except PermissionError as e:
            self.logger.error("Permission denied deleting %s: %s", path, e)
            candidate.status = CandidateStatus.FAILED
            candidate.error = f"Permission denied: {e}"
            return candidate
        except OSError as e:
            self.logger.error("Error deleting %s: %s", path, e)
            candidate.status = CandidateStatus.FAILED
            candidate.error = str(e)
            return candidate

        self.logger.info("Deleted %s (%s)", path, candidate.rule.description)
        candidate.status = CandidateStatus.DELETED
        return candidate
