"""Ignore-rule loading and parsing.

Two conventions live at the root of an application directory:

- ``.rscignore`` (basic): one exact base name per line.
- ``.rsconnectignore`` (enhanced): one pattern per line, with ``*`` / ``?``
  wildcards and a trailing ``/`` for directory rules.

Both are parsed into a single immutable :class:`RuleSet`. Comments are
whole-line only; a ``#`` anywhere else is part of the pattern text.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path

from deploybundle.logger import get_logger

logger = get_logger(__name__)

BASIC_IGNORE_FILE = ".rscignore"
PATTERN_IGNORE_FILE = ".rsconnectignore"

WILDCARD_CHARS = frozenset("*?")

# Reads one rule source; returns its lines, or an empty list when absent.
LineReader = Callable[[Path], list[str]]


class PatternKind(StrEnum):
    """Matching semantics of one parsed rule."""

    EXACT_NAME = "exact_name"
    WILDCARD = "wildcard"
    DIRECTORY = "directory"
    WILDCARD_DIRECTORY = "wildcard_directory"

    @property
    def is_directory(self) -> bool:
        return self in (PatternKind.DIRECTORY, PatternKind.WILDCARD_DIRECTORY)

    @property
    def is_wildcard(self) -> bool:
        return self in (PatternKind.WILDCARD, PatternKind.WILDCARD_DIRECTORY)


@dataclass(frozen=True, slots=True)
class Pattern:
    """One parsed ignore rule.

    ``body`` is the match template: ``raw`` with separators normalized to
    ``/``, repeated separators collapsed, and leading and trailing
    separators removed.
    A leading ``/`` sets ``anchored`` so the rule only applies from the
    application root.
    """

    raw: str
    kind: PatternKind
    body: str
    anchored: bool = False

    @property
    def has_separator(self) -> bool:
        return "/" in self.body

    @property
    def segments(self) -> tuple[str, ...]:
        return tuple(self.body.split("/"))


@dataclass(frozen=True, slots=True)
class RuleSet:
    """Union of the rules from both conventions for one application root."""

    exact_rules: frozenset[str] = field(default_factory=frozenset)
    pattern_rules: tuple[Pattern, ...] = ()

    def __len__(self) -> int:
        return len(self.exact_rules) + len(self.pattern_rules)

    @property
    def is_empty(self) -> bool:
        return not self.exact_rules and not self.pattern_rules


def _clean_line(line: str) -> str | None:
    """Strip a rule line; return None for blanks and whole-line comments."""
    text = line.strip()
    if not text or text.startswith("#"):
        return None
    return text


def parse_pattern(line: str) -> Pattern | None:
    """Classify one enhanced-convention line.

    Returns None for blank lines, comments, and lines that are nothing but
    separators. Any other text is a valid pattern, however broad.
    """
    text = _clean_line(line)
    if text is None:
        return None

    normalized = text.replace("\\", "/")
    is_directory = normalized.endswith("/")
    anchored = normalized.startswith("/")
    body = "/".join(part for part in normalized.split("/") if part)
    if not body:
        return None

    is_wildcard = any(ch in WILDCARD_CHARS for ch in body)
    if is_directory:
        kind = PatternKind.WILDCARD_DIRECTORY if is_wildcard else PatternKind.DIRECTORY
    else:
        kind = PatternKind.WILDCARD if is_wildcard else PatternKind.EXACT_NAME
    return Pattern(raw=text, kind=kind, body=body, anchored=anchored)


def parse_rules(basic_lines: Iterable[str], enhanced_lines: Iterable[str]) -> RuleSet:
    """Build a RuleSet from the raw lines of both ignore conventions."""
    exact: set[str] = set()
    for line in basic_lines:
        text = _clean_line(line)
        if text is not None:
            exact.add(text)

    patterns: list[Pattern] = []
    for line in enhanced_lines:
        pattern = parse_pattern(line)
        if pattern is not None:
            patterns.append(pattern)

    return RuleSet(exact_rules=frozenset(exact), pattern_rules=tuple(patterns))


def read_rule_lines(path: Path) -> list[str]:
    """Read a rule source from disk.

    A missing or unreadable file contributes no rules and is never an error.
    """
    try:
        text = path.read_text(encoding="utf-8-sig", errors="replace")
    except FileNotFoundError:
        return []
    except OSError as exc:
        logger.warning("rule_source_unreadable", path=str(path), error=str(exc))
        return []
    return text.splitlines()


def load_rule_set(
    root: str | Path,
    *,
    patterns: Iterable[str] | None = None,
    read_lines: LineReader = read_rule_lines,
) -> RuleSet:
    """Load the RuleSet for an application root.

    Args:
        root: Application directory holding the ignore files.
        patterns: Explicit enhanced-convention lines used instead of the
            pattern file. The basic file is still read.
        read_lines: Source reader; swap in an in-memory reader for tests.
    """
    root = Path(root)
    basic_lines = read_lines(root / BASIC_IGNORE_FILE)
    if patterns is None:
        enhanced_lines = read_lines(root / PATTERN_IGNORE_FILE)
    else:
        enhanced_lines = list(patterns)

    rules = parse_rules(basic_lines, enhanced_lines)
    logger.debug(
        "rules_loaded",
        root=str(root),
        exact=len(rules.exact_rules),
        patterns=len(rules.pattern_rules),
        override=patterns is not None,
    )
    return rules
