"""Global test fixtures for deploybundle."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from pathlib import Path

import pytest
import structlog


@pytest.fixture(autouse=True)
def _structlog_via_stdlib():
    """Send library log events through stdlib logging instead of stdout."""
    structlog.configure(
        processors=[structlog.stdlib.filter_by_level, structlog.processors.KeyValueRenderer()],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )
    yield
    structlog.reset_defaults()


@pytest.fixture
def make_tree(tmp_path: Path) -> Callable[..., Path]:
    """Create files under a fresh app root.

    Paths ending in ``/`` become empty directories; other paths become
    files whose content is their own relative path.
    """

    def _make(paths: Iterable[str], *, rules: str | None = None, basic: str | None = None) -> Path:
        root = tmp_path / "app"
        root.mkdir(exist_ok=True)
        for rel in paths:
            target = root / rel
            if rel.endswith("/"):
                target.mkdir(parents=True, exist_ok=True)
                continue
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(rel, encoding="utf-8")
        if rules is not None:
            (root / ".rsconnectignore").write_text(rules, encoding="utf-8")
        if basic is not None:
            (root / ".rscignore").write_text(basic, encoding="utf-8")
        return root

    return _make
