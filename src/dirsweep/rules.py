"""Cleanup rule table and matcher.

A rule names a dependency or build-output directory and, optionally, a
sibling "indicator" that proves the parent really is a project of that
ecosystem before the directory is treated as disposable.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

logger = logging.getLogger(__name__)


class IndicatorKind(Enum):
    """How a rule confirms its project type."""

    ALWAYS = "always"
    SIBLING_FILE = "sibling_file"
    SIBLING_EXTENSION = "sibling_extension"


@dataclass(frozen=True)
class ProjectIndicator:
    """Condition checked against the parent directory of a candidate."""

    kind: IndicatorKind
    value: str = ""

    @classmethod
    def always(cls) -> ProjectIndicator:
        return cls(IndicatorKind.ALWAYS)

    @classmethod
    def sibling_file(cls, filename: str) -> ProjectIndicator:
        return cls(IndicatorKind.SIBLING_FILE, filename)

    @classmethod
    def sibling_extension(cls, extension: str) -> ProjectIndicator:
        return cls(IndicatorKind.SIBLING_EXTENSION, extension)

    def matches(self, parent: Path) -> bool:
        """Check the indicator against ``parent``.

        Extension indicators compare the last extension of each direct child
        file exactly (case-sensitive); there is no glob engine behind them.
        """
        if self.kind is IndicatorKind.ALWAYS:
            return True

        if self.kind is IndicatorKind.SIBLING_FILE:
            return (parent / self.value).exists()

        try:
            with os.scandir(parent) as it:
                for dirent in it:
                    stem, dot, ext = dirent.name.rpartition(".")
                    if dot and stem and ext == self.value and dirent.is_file():
                        return True
        except OSError as e:
            logger.warning("Cannot list %s for indicator check: %s", parent, e)
        return False

    def __str__(self) -> str:
        if self.kind is IndicatorKind.SIBLING_FILE:
            return self.value
        if self.kind is IndicatorKind.SIBLING_EXTENSION:
            return f"*.{self.value}"
        return "-"


@dataclass(frozen=True)
class CleanupRule:
    """A disposable directory name and the project it belongs to."""

    folder_name: str
    indicator: ProjectIndicator
    description: str


CLEANUP_RULES: tuple[CleanupRule, ...] = (
    CleanupRule("node_modules", ProjectIndicator.sibling_file("package.json"), "Node.js dependencies"),
    CleanupRule("target", ProjectIndicator.sibling_file("Cargo.toml"), "Rust build artifacts"),
    CleanupRule("vendor", ProjectIndicator.sibling_file("composer.json"), "PHP dependencies"),
    CleanupRule("venv", ProjectIndicator.always(), "Python virtual environment"),
    CleanupRule(".venv", ProjectIndicator.always(), "Python virtual environment"),
    CleanupRule("bin", ProjectIndicator.sibling_extension("csproj"), ".NET build output"),
    CleanupRule("obj", ProjectIndicator.sibling_extension("csproj"), ".NET intermediate output"),
)


class RuleMatcher:
    """Finds the first rule that claims a directory."""

    def __init__(self, rules: Iterable[CleanupRule] = CLEANUP_RULES) -> None:
        self.rules: tuple[CleanupRule, ...] = tuple(rules)
        self._names: frozenset[str] = frozenset(rule.folder_name for rule in self.rules)

    def match(self, directory_name: str, parent: Path) -> CleanupRule | None:
        """Return the first rule whose name and indicator both match.

        Args:
            directory_name: Base name of the directory being evaluated.
            parent: Directory containing it.

        Returns:
            The matching rule, or None.

        """
        if directory_name not in self._names:
            return None

        for rule in self.rules:
            if rule.folder_name == directory_name and rule.indicator.matches(parent):
                return rule
        return None


def match_rule(directory_name: str, parent: Path) -> CleanupRule | None:
    """Match against the built-in rule table."""
    return _DEFAULT_MATCHER.match(directory_name, parent)


_DEFAULT_MATCHER = RuleMatcher()
