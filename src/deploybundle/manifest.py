"""Manifest generation and manifest file I/O.

A manifest is the ordered list of relative paths that make up a deployment
bundle. On disk it is plain UTF-8 text, one path per line, with a trailing
newline and nothing else.
"""

from __future__ import annotations

import itertools
import os
import tempfile
from collections.abc import Iterable, Iterator
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path

from deploybundle.cancellation import CancellationToken
from deploybundle.errors import ManifestReadError, ManifestWriteError, RootNotFoundError
from deploybundle.logger import get_logger
from deploybundle.matcher import is_excluded
from deploybundle.rules import LineReader, RuleSet, load_rule_set, read_rule_lines
from deploybundle.walker import DEFAULT_BATCH_SIZE, CandidatePath, walk

logger = get_logger(__name__)


def _batched(items: Iterable[CandidatePath], size: int) -> Iterator[list[CandidatePath]]:
    iterator = iter(items)
    while batch := list(itertools.islice(iterator, size)):
        yield batch


def _filter_batch(
    batch: list[CandidatePath],
    rules: RuleSet,
    skip: frozenset[str],
) -> list[str]:
    kept: list[str] = []
    for candidate in batch:
        path = candidate.relative_path
        if path in skip or is_excluded(candidate, rules):
            continue
        if "\n" in path or "\r" in path:
            logger.warning("manifest_path_unrepresentable", path=path)
            continue
        kept.append(path)
    return kept


def filter_candidates(
    candidates: Iterable[CandidatePath],
    rules: RuleSet,
    *,
    workers: int = 1,
    batch_size: int = DEFAULT_BATCH_SIZE,
    cancel_token: CancellationToken | None = None,
    skip: Iterable[str] = (),
) -> list[str]:
    """Drop excluded candidates, keeping walk order.

    With ``workers > 1`` batches are matched on a thread pool and the
    results are reassembled in submission order.
    """
    skip_set = frozenset(skip)
    batch_size = max(1, batch_size)
    kept: list[str] = []

    if workers <= 1:
        for batch in _batched(candidates, batch_size):
            if cancel_token is not None:
                cancel_token.check()
            kept.extend(_filter_batch(batch, rules, skip_set))
        return kept

    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="deploybundle") as pool:
        futures: list[Future[list[str]]] = []
        try:
            for batch in _batched(candidates, batch_size):
                if cancel_token is not None:
                    cancel_token.check()
                futures.append(pool.submit(_filter_batch, batch, rules, skip_set))
            for future in futures:
                if cancel_token is not None:
                    cancel_token.check()
                kept.extend(future.result())
        except BaseException:
            for future in futures:
                future.cancel()
            raise
    return kept


def _relative_to_root(path: Path, root: Path) -> str | None:
    try:
        return path.resolve().relative_to(root.resolve()).as_posix()
    except (OSError, ValueError):
        return None


def generate_manifest(
    root: str | Path,
    output_path: str | Path | None = None,
    *,
    patterns: Iterable[str] | None = None,
    workers: int = 1,
    batch_size: int = DEFAULT_BATCH_SIZE,
    follow_symlinks: bool = True,
    exclude_manifest: bool = True,
    cancel_token: CancellationToken | None = None,
    read_lines: LineReader = read_rule_lines,
) -> list[str]:
    """Compute the files to bundle for an application directory.

    Args:
        root: Application directory.
        output_path: When given, the result is also written there as a
            manifest file, replacing any existing file.
        patterns: Explicit enhanced-convention rules used instead of the
            pattern ignore file.
        workers: Threads used for matching; 1 keeps everything on the
            calling thread.
        batch_size: Candidates per shard and between cancellation checks.
        follow_symlinks: Follow symlinked files and directories.
        exclude_manifest: Leave the manifest file itself out of the result
            when it is written inside ``root``.
        cancel_token: Checked between batches; cancelling raises
            :class:`~deploybundle.errors.CancellationError`.
        read_lines: Rule source reader.

    Returns:
        Relative paths in lexicographic order.

    Raises:
        RootNotFoundError: ``root`` is not a directory.
        ManifestWriteError: The manifest could not be written. The filtered
            list is available on the exception as ``files``.
    """
    root = Path(root)
    if not root.is_dir():
        raise RootNotFoundError(str(root))

    rules = load_rule_set(root, patterns=patterns, read_lines=read_lines)

    skip: set[str] = set()
    if output_path is not None and exclude_manifest:
        manifest_rel = _relative_to_root(Path(output_path), root)
        if manifest_rel:
            skip.add(manifest_rel)

    candidates = walk(
        root,
        follow_symlinks=follow_symlinks,
        batch_size=batch_size,
        cancel_token=cancel_token,
    )
    kept = filter_candidates(
        candidates,
        rules,
        workers=workers,
        batch_size=batch_size,
        cancel_token=cancel_token,
        skip=skip,
    )
    files = list(dict.fromkeys(kept))

    logger.debug(
        "manifest_generated",
        root=str(root),
        rules=len(rules),
        files=len(files),
        workers=workers,
    )

    if output_path is not None:
        write_manifest(output_path, files)
    return files


def write_manifest(path: str | Path, files: Iterable[str]) -> Path:
    """Write ``files`` to ``path``, one per line, with a trailing newline.

    The file is written to a temporary sibling and moved into place, so a
    failure never leaves a truncated manifest behind. Names that came from
    undecodable filesystem bytes are written back as those same bytes.
    """
    path = Path(path)
    files = list(files)
    content = "".join(f"{name}\n" for name in files)

    tmp_name: str | None = None
    try:
        with tempfile.NamedTemporaryFile(
            "w",
            encoding="utf-8",
            errors="surrogateescape",
            newline="",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
        ) as handle:
            tmp_name = handle.name
            handle.write(content)
        os.replace(tmp_name, path)
    except (OSError, UnicodeError) as exc:
        reason = exc.strerror if isinstance(exc, OSError) and exc.strerror else str(exc)
        raise ManifestWriteError(str(path), reason, files=files) from exc
    finally:
        # Only still present when the write or the replace failed.
        if tmp_name is not None and os.path.lexists(tmp_name):
            try:
                os.unlink(tmp_name)
            except OSError as exc:
                logger.warning("manifest_tmp_cleanup_failed", path=tmp_name, error=str(exc))

    logger.debug("manifest_written", path=str(path), count=len(files))
    return path


def read_manifest(path: str | Path) -> list[str]:
    """Read a manifest file back into its list of relative paths."""
    path = Path(path)
    try:
        with open(path, encoding="utf-8", errors="surrogateescape", newline="") as handle:
            text = handle.read()
    except OSError as exc:
        raise ManifestReadError(str(path), str(exc)) from exc

    if not text:
        return []
    lines = text.split("\n")
    if lines[-1] == "":
        lines.pop()
    return lines
