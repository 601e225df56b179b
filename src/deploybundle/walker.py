"""Directory walker producing candidate files in a stable order.

The walk is depth-first and lazy. Entries of each directory are visited in
an order that makes the emitted relative paths lexicographically sorted
(directories sort as ``name/``), so output is reproducible across runs and
memory stays bounded by tree depth.
"""

from __future__ import annotations

import os
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path

from deploybundle.cancellation import CancellationToken
from deploybundle.logger import get_logger

logger = get_logger(__name__)

DEFAULT_BATCH_SIZE = 256


@dataclass(frozen=True, slots=True)
class CandidatePath:
    """A regular file discovered under the application root."""

    relative_path: str
    segments: tuple[str, ...]

    @classmethod
    def from_relative(cls, path: str | os.PathLike[str]) -> CandidatePath:
        """Build a candidate from a relative path in any separator style."""
        text = os.fspath(path).replace("\\", "/")
        while text.startswith("./"):
            text = text[2:]
        parts = tuple(part for part in text.split("/") if part and part != ".")
        return cls(relative_path="/".join(parts), segments=parts)

    @property
    def name(self) -> str:
        return self.segments[-1] if self.segments else ""

    @property
    def directories(self) -> tuple[str, ...]:
        return self.segments[:-1]


def _physical_key(path: str | os.PathLike[str]) -> tuple[int, int] | None:
    try:
        st = os.stat(path)
    except OSError:
        return None
    return (st.st_dev, st.st_ino)


@dataclass
class TreeWalk:
    """Restartable walk over an application root.

    Every iteration performs a fresh traversal, so iterating twice over an
    unchanged tree yields the same candidates in the same order.
    """

    root: Path
    follow_symlinks: bool = True
    batch_size: int = DEFAULT_BATCH_SIZE
    cancel_token: CancellationToken | None = None

    def __iter__(self) -> Iterator[CandidatePath]:
        root_key = _physical_key(self.root)
        if root_key is None:
            logger.warning("walk_root_unreadable", path=str(self.root))
            return
        yield from self._walk_dir(self.root, "", {root_key})

    def _check_cancelled(self) -> None:
        if self.cancel_token is not None:
            self.cancel_token.check()

    def _walk_dir(
        self,
        directory: Path | str,
        prefix: str,
        visited: set[tuple[int, int]],
    ) -> Iterator[CandidatePath]:
        self._check_cancelled()
        try:
            with os.scandir(directory) as it:
                entries = list(it)
        except OSError as exc:
            logger.warning("walk_dir_unreadable", path=str(directory), error=str(exc))
            return

        items: list[tuple[str, os.DirEntry[str], bool]] = []
        for entry in entries:
            try:
                if entry.is_dir(follow_symlinks=self.follow_symlinks):
                    items.append((entry.name + "/", entry, True))
                elif entry.is_file(follow_symlinks=self.follow_symlinks):
                    items.append((entry.name, entry, False))
            except OSError as exc:
                # Entry vanished between listing and stat.
                logger.debug("walk_entry_skipped", path=entry.path, error=str(exc))
        items.sort(key=lambda item: item[0])

        for index, (_, entry, is_dir) in enumerate(items):
            if index and index % self.batch_size == 0:
                self._check_cancelled()
            relative = prefix + entry.name
            if not is_dir:
                yield CandidatePath(relative, tuple(relative.split("/")))
                continue

            key = _physical_key(entry.path)
            if key is None:
                logger.debug("walk_entry_skipped", path=entry.path, error="stat failed")
                continue
            # Real directories are always walked; a symlinked directory only
            # when its target has not been walked yet.
            if key in visited and entry.is_symlink():
                logger.debug("walk_symlink_revisit", path=entry.path)
                continue
            visited.add(key)
            yield from self._walk_dir(entry.path, relative + "/", visited)


def walk(
    root: str | Path,
    *,
    follow_symlinks: bool = True,
    batch_size: int = DEFAULT_BATCH_SIZE,
    cancel_token: CancellationToken | None = None,
) -> TreeWalk:
    """Enumerate every regular file under ``root`` as a CandidatePath.

    Symlinked directories are followed at most once per physical target,
    which also breaks cycles. Unreadable subtrees are skipped and logged.
    """
    return TreeWalk(
        root=Path(root),
        follow_symlinks=follow_symlinks,
        batch_size=max(1, batch_size),
        cancel_token=cancel_token,
    )
