"""Regex-based scanning primitives: corpus, rules, matcher and result models.

The domain aggregators live in ``nodesecurescan.scanners.domains``.
"""

from .corpus import CorpusResolver, SourceFile
from .matcher import Match, MatchMode, MatchResult, PatternMatcher
from .patterns import Rule, Severity

__all__ = [
    "CorpusResolver",
    "Match",
    "MatchMode",
    "MatchResult",
    "PatternMatcher",
    "Rule",
    "Severity",
    "SourceFile",
]
