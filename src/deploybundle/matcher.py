"""Path matching against parsed ignore rules.

All matching is case-sensitive and works on ``/``-separated segments.
``*`` matches any run of characters inside one segment and ``?`` exactly
one character; neither crosses a ``/``.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable
from functools import lru_cache

from deploybundle.rules import Pattern, PatternKind, RuleSet, parse_pattern
from deploybundle.walker import CandidatePath


@lru_cache(maxsize=1024)
def translate_wildcard(template: str) -> re.Pattern[str]:
    """Compile a ``*`` / ``?`` template into a full-match regex."""
    parts: list[str] = []
    for ch in template:
        if ch == "*":
            parts.append("[^/]*")
        elif ch == "?":
            parts.append("[^/]")
        else:
            parts.append(re.escape(ch))
    return re.compile("".join(parts), re.DOTALL)


def _segment_matches(template: str, segment: str, wildcard: bool) -> bool:
    if wildcard:
        return translate_wildcard(template).fullmatch(segment) is not None
    return template == segment


def _match_exact(pattern: Pattern, candidate: CandidatePath) -> bool:
    if pattern.has_separator or pattern.anchored:
        return candidate.relative_path == pattern.body
    return candidate.name == pattern.body


def _match_wildcard(pattern: Pattern, candidate: CandidatePath) -> bool:
    regex = translate_wildcard(pattern.body)
    if pattern.has_separator or pattern.anchored:
        return regex.fullmatch(candidate.relative_path) is not None
    return regex.fullmatch(candidate.name) is not None


def _match_directory(pattern: Pattern, candidate: CandidatePath) -> bool:
    wanted = pattern.segments
    wildcard = pattern.kind.is_wildcard
    directories = candidate.directories
    last_start = len(directories) - len(wanted)
    if last_start < 0:
        return False
    starts = range(1) if pattern.anchored else range(last_start + 1)
    for start in starts:
        if all(
            _segment_matches(template, directories[start + offset], wildcard)
            for offset, template in enumerate(wanted)
        ):
            return True
    return False


_MATCHERS: dict[PatternKind, Callable[[Pattern, CandidatePath], bool]] = {
    PatternKind.EXACT_NAME: _match_exact,
    PatternKind.WILDCARD: _match_wildcard,
    PatternKind.DIRECTORY: _match_directory,
    PatternKind.WILDCARD_DIRECTORY: _match_directory,
}


def matches_pattern(pattern: Pattern, candidate: CandidatePath) -> bool:
    """Return whether one rule excludes ``candidate``."""
    return _MATCHERS[pattern.kind](pattern, candidate)


def is_excluded(candidate: CandidatePath, rules: RuleSet) -> bool:
    """Return whether any rule in ``rules`` excludes ``candidate``.

    Pure function of its arguments; safe to call from several threads.
    """
    if candidate.name in rules.exact_rules:
        return True
    return any(matches_pattern(pattern, candidate) for pattern in rules.pattern_rules)


def excluded_by_pattern(
    candidates: Iterable[str | CandidatePath],
    pattern: str,
) -> list[str]:
    """Return the candidates a single enhanced-convention pattern excludes.

    Used to try out a rule before adding it to the ignore file. A blank or
    comment line excludes nothing.
    """
    parsed = parse_pattern(pattern)
    if parsed is None:
        return []

    excluded: list[str] = []
    for item in candidates:
        candidate = item if isinstance(item, CandidatePath) else CandidatePath.from_relative(item)
        if matches_pattern(parsed, candidate):
            excluded.append(candidate.relative_path)
    return excluded
