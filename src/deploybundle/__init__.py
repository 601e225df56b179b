"""Deploybundle - deployment bundle file selection.

Walks an application directory, applies the ``.rscignore`` and
``.rsconnectignore`` rules found at its root, and returns (or writes) the
ordered manifest of files to bundle.
"""

from __future__ import annotations

__version__ = "0.1.0"

from deploybundle.manifest import generate_manifest, read_manifest, write_manifest
from deploybundle.matcher import excluded_by_pattern, is_excluded
from deploybundle.rules import Pattern, PatternKind, RuleSet, load_rule_set, parse_rules
from deploybundle.walker import CandidatePath, walk

__all__ = [
    "CandidatePath",
    "Pattern",
    "PatternKind",
    "RuleSet",
    "__version__",
    "excluded_by_pattern",
    "generate_manifest",
    "is_excluded",
    "load_rule_set",
    "parse_rules",
    "read_manifest",
    "walk",
    "write_manifest",
]
