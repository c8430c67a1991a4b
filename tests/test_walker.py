"""Tests for the depth-first tree walker."""

from __future__ import annotations

import os
import shutil
from pathlib import Path

import pytest

from dirsweep.walker import EntryKind, TreeWalker, WalkEntry, directory_size


def _make_tree(root: Path, files: list[str]) -> None:
    """Create files (and their parent directories) below root."""
    for rel in files:
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(rel)


def _relative(root: Path, entries: list[WalkEntry]) -> set[str]:
    return {entry.path.relative_to(root).as_posix() for entry in entries if entry.depth > 0}


class TestTraversal:
    """Tests for basic depth-first traversal."""

    def test_root_is_first_entry(self, tmp_path: Path) -> None:
        """The root is yielded first at depth 0."""
        _make_tree(tmp_path, ["a.txt"])

        entries = list(TreeWalker(tmp_path))

        assert entries[0].path == tmp_path
        assert entries[0].depth == 0
        assert entries[0].kind is EntryKind.DIRECTORY
        assert entries[0].parent is None

    def test_visits_every_entry(self, tmp_path: Path) -> None:
        """All files and directories are visited."""
        _make_tree(tmp_path, ["a.txt", "src/b.py", "src/pkg/c.py"])

        entries = list(TreeWalker(tmp_path))

        assert _relative(tmp_path, entries) == {"a.txt", "src", "src/b.py", "src/pkg", "src/pkg/c.py"}

    def test_depth_and_parent(self, tmp_path: Path) -> None:
        """Depth counts from the root and parent points at the containing entry."""
        _make_tree(tmp_path, ["src/pkg/c.py"])

        by_name = {entry.name: entry for entry in TreeWalker(tmp_path)}

        assert by_name["src"].depth == 1
        assert by_name["pkg"].depth == 2
        assert by_name["c.py"].depth == 3
        assert by_name["c.py"].parent is by_name["pkg"]
        assert by_name["c.py"].parent_path == tmp_path / "src" / "pkg"
        assert by_name["c.py"].kind is EntryKind.FILE

    def test_children_follow_their_directory(self, tmp_path: Path) -> None:
        """A directory's descendants come right after it, before its siblings' subtrees."""
        _make_tree(tmp_path, ["one/x.txt", "one/deep/y.txt", "two/z.txt"])

        names = [entry.name for entry in TreeWalker(tmp_path) if entry.depth > 0]

        one = names.index("one")
        assert set(names[one + 1 : one + 4]) == {"x.txt", "deep", "y.txt"}
        assert names.index("deep") < names.index("y.txt")

    def test_empty_directory(self, tmp_path: Path) -> None:
        """An empty root yields only itself."""
        entries = list(TreeWalker(tmp_path))

        assert len(entries) == 1


class TestPredicate:
    """Tests for the inclusion predicate."""

    def test_excluded_directory_is_pruned(self, tmp_path: Path) -> None:
        """Excluding a directory hides it and everything below it."""
        _make_tree(tmp_path, ["keep/a.txt", "skip/b.txt", "skip/inner/c.txt"])

        walker = TreeWalker(tmp_path, lambda entry: entry.name != "skip")
        visited = _relative(tmp_path, list(walker))

        assert visited == {"keep", "keep/a.txt"}

    def test_excluded_file_is_omitted(self, tmp_path: Path) -> None:
        """Excluding a file omits only that file."""
        _make_tree(tmp_path, ["a.txt", "b.log"])

        walker = TreeWalker(tmp_path, lambda entry: not entry.name.endswith(".log"))

        assert _relative(tmp_path, list(walker)) == {"a.txt"}

    def test_root_bypasses_predicate(self, tmp_path: Path) -> None:
        """The root is entered even when its name would be excluded."""
        root = tmp_path / ".hidden_root"
        _make_tree(root, ["a.txt"])

        walker = TreeWalker(root, lambda entry: not entry.name.startswith("."))

        assert _relative(root, list(walker)) == {"a.txt"}

    def test_predicate_sees_entry_before_children(self, tmp_path: Path) -> None:
        """The predicate is never asked about children of an excluded directory."""
        _make_tree(tmp_path, ["skip/inner/c.txt"])
        seen: list[str] = []

        def predicate(entry: WalkEntry) -> bool:
            seen.append(entry.name)
            return entry.name != "skip"

        list(TreeWalker(tmp_path, predicate))

        assert seen == ["skip"]


class TestPruning:
    """Tests for explicit pruning during iteration."""

    def test_prune_handle_skips_subtree(self, tmp_path: Path) -> None:
        """Calling prune() on a yielded directory skips its children."""
        _make_tree(tmp_path, ["cut/a.txt", "cut/inner/b.txt", "other/c.txt"])

        visited: list[WalkEntry] = []
        for entry in TreeWalker(tmp_path):
            visited.append(entry)
            if entry.name == "cut":
                entry.prune()

        assert _relative(tmp_path, visited) == {"cut", "other", "other/c.txt"}

    def test_skip_subtree_prunes_current(self, tmp_path: Path) -> None:
        """skip_subtree() prunes the entry most recently yielded."""
        _make_tree(tmp_path, ["cut/a.txt", "other/c.txt"])

        walker = TreeWalker(tmp_path)
        visited: list[WalkEntry] = []
        for entry in walker:
            visited.append(entry)
            if entry.name == "cut":
                walker.skip_subtree()

        assert _relative(tmp_path, visited) == {"cut", "other", "other/c.txt"}

    def test_pruning_ancestor_drops_remaining_descendants(self, tmp_path: Path) -> None:
        """Pruning a directory mid-listing stops the rest of its subtree."""
        _make_tree(tmp_path, ["parent/a.txt", "parent/b.txt", "parent/c.txt", "sibling.txt"])

        visited: list[WalkEntry] = []
        for entry in TreeWalker(tmp_path):
            visited.append(entry)
            if entry.depth == 2:
                entry.parent.prune()

        names = _relative(tmp_path, visited)
        assert len([n for n in names if n.startswith("parent/")]) == 1
        assert "sibling.txt" in names

    def test_deleting_pruned_directory_is_safe(self, tmp_path: Path) -> None:
        """A directory removed right after pruning does not break the walk."""
        _make_tree(tmp_path, ["gone/a.txt", "gone/deep/b.txt", "kept/c.txt"])

        walker = TreeWalker(tmp_path)
        visited: list[WalkEntry] = []
        for entry in walker:
            visited.append(entry)
            if entry.name == "gone":
                shutil.rmtree(entry.path)
                walker.skip_subtree()

        assert _relative(tmp_path, visited) == {"gone", "kept", "kept/c.txt"}
        assert walker.errors == []


class TestErrors:
    """Tests for per-entry error handling."""

    @pytest.mark.skipif(os.geteuid() == 0, reason="root ignores directory permissions")
    def test_unreadable_directory_is_reported(self, tmp_path: Path) -> None:
        """An unreadable directory is recorded and the walk continues."""
        _make_tree(tmp_path, ["locked/a.txt", "open/b.txt"])
        locked = tmp_path / "locked"
        locked.chmod(0o000)

        try:
            walker = TreeWalker(tmp_path)
            visited = _relative(tmp_path, list(walker))
        finally:
            locked.chmod(0o755)

        assert "open/b.txt" in visited
        assert "locked/a.txt" not in visited
        assert [error.path for error in walker.errors] == [locked]

    def test_vanished_directory_is_reported(self, tmp_path: Path) -> None:
        """A directory that disappears before listing is reported, not raised."""
        _make_tree(tmp_path, ["gone/a.txt", "kept/b.txt"])

        walker = TreeWalker(tmp_path)
        visited: list[WalkEntry] = []
        for entry in walker:
            visited.append(entry)
            if entry.name == "gone":

                shutil.rmtree(entry.path)

        assert "kept/b.txt" in _relative(tmp_path, visited)
        assert len(walker.errors) == 1
        assert walker.errors[0].path == tmp_path / "gone"


class TestSymlinks:
    """Tests for symlink handling."""

    def test_directory_symlink_not_followed(self, tmp_path: Path) -> None:
        """Links to directories are reported as OTHER and never entered."""
        _make_tree(tmp_path, ["real/a.txt"])
        (tmp_path / "link").symlink_to(tmp_path / "real", target_is_directory=True)

        by_path = {entry.path: entry for entry in TreeWalker(tmp_path)}

        assert by_path[tmp_path / "link"].kind is EntryKind.OTHER
        assert tmp_path / "link" / "a.txt" not in by_path

    def test_file_symlink_is_file(self, tmp_path: Path) -> None:
        """Links to files count as files."""
        _make_tree(tmp_path, ["real.txt"])
        (tmp_path / "link.txt").symlink_to(tmp_path / "real.txt")

        by_path = {entry.path: entry for entry in TreeWalker(tmp_path)}

        assert by_path[tmp_path / "link.txt"].kind is EntryKind.FILE

    def test_broken_symlink_is_other(self, tmp_path: Path) -> None:
        """Broken links are visited as OTHER without errors."""
        (tmp_path / "dangling").symlink_to(tmp_path / "missing")

        walker = TreeWalker(tmp_path)
        by_path = {entry.path: entry for entry in walker}

        assert by_path[tmp_path / "dangling"].kind is EntryKind.OTHER
        assert walker.errors == []


class TestDirectorySize:
    """Tests for directory_size."""

    def test_sums_nested_files(self, tmp_path: Path) -> None:
        """Sizes of all nested files are added up."""
        (tmp_path / "a.bin").write_bytes(b"x" * 10)
        (tmp_path / "sub").mkdir()
        (tmp_path / "sub" / "b.bin").write_bytes(b"y" * 5)

        assert directory_size(tmp_path) == 15

    def test_empty_directory(self, tmp_path: Path) -> None:
        """An empty directory has size zero."""
        assert directory_size(tmp_path) == 0
