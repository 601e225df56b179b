"""Tests for the directory walker."""

from __future__ import annotations

import os
import shutil
import sys
from pathlib import Path

import pytest

from deploybundle.cancellation import CancellationToken
from deploybundle.errors import CancellationError
from deploybundle.walker import CandidatePath, walk


def _paths(root: Path, **kwargs) -> list[str]:
    return [c.relative_path for c in walk(root, **kwargs)]


class TestWalk:
    def test_files_only_lexicographic(self, make_tree) -> None:
        root = make_tree(["b.txt", "a/z.txt", "a/b/c.txt", "a.txt", "empty/", "B/c.txt"])
        assert _paths(root) == ["B/c.txt", "a.txt", "a/b/c.txt", "a/z.txt", "b.txt"]

    def test_order_is_sorted(self, make_tree) -> None:
        root = make_tree(["x-y/1", "x/1", "x.y/1", "x0", "x/a/b/c"])
        paths = _paths(root)
        assert paths == sorted(paths)

    def test_segments(self, make_tree) -> None:
        root = make_tree(["a/b/c.txt"])
        (candidate,) = list(walk(root))
        assert candidate == CandidatePath("a/b/c.txt", ("a", "b", "c.txt"))

    def test_restartable(self, make_tree) -> None:
        root = make_tree(["a.txt", "d/b.txt"])
        tree = walk(root)
        assert list(tree) == list(tree)

    def test_lazy(self, make_tree) -> None:
        root = make_tree(["a.txt", "b.txt"])
        iterator = iter(walk(root))
        assert next(iterator).relative_path == "a.txt"

    def test_missing_root_yields_nothing(self, tmp_path: Path) -> None:
        assert _paths(tmp_path / "missing") == []


@pytest.mark.skipif(sys.platform == "win32", reason="symlinks need privileges on Windows")
class TestWalkSymlinks:
    def test_cycle_is_skipped(self, make_tree) -> None:
        root = make_tree(["a/file.txt"])
        os.symlink(root, root / "a" / "loop")
        assert _paths(root) == ["a/file.txt"]

    def test_linked_directory_followed_once(self, make_tree, tmp_path: Path) -> None:
        root = make_tree(["app.R"])
        shared = tmp_path / "shared"
        shared.mkdir()
        (shared / "lib.R").write_text("x")
        os.symlink(shared, root / "link1")
        os.symlink(shared, root / "link2")
        assert _paths(root) == ["app.R", "link1/lib.R"]

    def test_linked_file_included(self, make_tree, tmp_path: Path) -> None:
        root = make_tree(["app.R"])
        outside = tmp_path / "data.csv"
        outside.write_text("1,2")
        os.symlink(outside, root / "data.csv")
        assert _paths(root) == ["app.R", "data.csv"]

    def test_broken_link_skipped(self, make_tree, tmp_path: Path) -> None:
        root = make_tree(["app.R"])
        os.symlink(tmp_path / "nowhere", root / "dangling")
        assert _paths(root) == ["app.R"]

    def test_no_follow(self, make_tree, tmp_path: Path) -> None:
        root = make_tree(["app.R"])
        shared = tmp_path / "shared"
        shared.mkdir()
        (shared / "lib.R").write_text("x")
        os.symlink(shared, root / "link")
        assert _paths(root, follow_symlinks=False) == ["app.R"]


@pytest.mark.skipif(
    sys.platform == "win32" or (hasattr(os, "geteuid") and os.geteuid() == 0),
    reason="permission bits are not enforced",
)
class TestWalkUnreadable:
    def test_unreadable_subtree_skipped(self, make_tree) -> None:
        root = make_tree(["a.txt", "locked/secret.txt", "z/b.txt"])
        locked = root / "locked"
        locked.chmod(0)
        try:
            assert _paths(root) == ["a.txt", "z/b.txt"]
        finally:
            locked.chmod(0o755)


class TestWalkCancellation:
    def test_cancelled_before_start(self, make_tree) -> None:
        root = make_tree(["a.txt"])
        token = CancellationToken()
        token.cancel("stop")
        with pytest.raises(CancellationError, match="stop"):
            list(walk(root, cancel_token=token))

    def test_cancelled_mid_walk(self, make_tree) -> None:
        root = make_tree([f"f{i:02d}.txt" for i in range(10)])
        token = CancellationToken()
        seen: list[str] = []
        with pytest.raises(CancellationError):
            for candidate in walk(root, cancel_token=token, batch_size=3):
                seen.append(candidate.relative_path)
                token.cancel()
        assert seen == ["f00.txt", "f01.txt", "f02.txt"]


class TestWalkErrors:
    def _fail_scandir_for(self, monkeypatch: pytest.MonkeyPatch, name: str, error: OSError) -> None:
        real_scandir = os.scandir

        def scandir(path):
            if os.path.basename(os.fspath(path)) == name:
                raise error
            return real_scandir(path)

        monkeypatch.setattr(os, "scandir", scandir)

    def test_permission_denied_subtree_skipped(self, make_tree, monkeypatch: pytest.MonkeyPatch) -> None:
        root = make_tree(["a.txt", "locked/secret.txt", "locked/deep/x.txt", "z/b.txt"])
        self._fail_scandir_for(monkeypatch, "locked", PermissionError(13, "Permission denied"))
        assert _paths(root) == ["a.txt", "z/b.txt"]

    def test_vanished_subtree_skipped(self, make_tree, monkeypatch: pytest.MonkeyPatch) -> None:
        root = make_tree(["a.txt", "gone/x.txt", "z/b.txt"])
        self._fail_scandir_for(monkeypatch, "gone", FileNotFoundError(2, "No such file or directory"))
        assert _paths(root) == ["a.txt", "z/b.txt"]

    def test_directory_deleted_mid_walk(self, make_tree) -> None:
        root = make_tree(["a.txt", "m/x.txt", "z/b.txt"])
        seen: list[str] = []
        for candidate in walk(root):
            seen.append(candidate.relative_path)
            if candidate.relative_path == "a.txt":
                shutil.rmtree(root / "m")
        assert seen == ["a.txt", "z/b.txt"]
