"""Pluggable fuzzy scorers for command suggestions.

A scorer is any callable ``scorer(query, candidate)`` returning an int
score (higher is better) or None when the candidate does not match.
"""
from typing import NamedTuple, Optional

from rapidfuzz import fuzz

EXACT_SCORE = 100
PREFIX_FLOOR = 75
SUBSTRING_FLOOR = 50
TIER_SPAN = 25


class Match(NamedTuple):
    command: str
    score: int


def is_subsequence(query: str, candidate: str) -> bool:
    it = iter(candidate)
    return all(ch in it for ch in query)


class SubsequenceScorer:
    """Ordered-subsequence matcher with tiered scores.

    exact (100) > prefix (75-99) > substring (50-74) > scattered (0-49).
    Inside a tier, candidates closer to the query in length score higher.
    """

    def __call__(self, query: str, candidate: str) -> Optional[int]:
        q = query.lower()
        c = candidate.lower()
        if not q:
            return None
        if c == q:
            return EXACT_SCORE
        if c.startswith(q):
            return PREFIX_FLOOR + int(fuzz.ratio(q, c) * TIER_SPAN / 100)
        if q in c:
            return SUBSTRING_FLOOR + int(fuzz.ratio(q, c) * TIER_SPAN / 100)
        if not is_subsequence(q, c):
            return None
        return int(fuzz.partial_ratio(q, c) * SUBSTRING_FLOOR / 100)


class PartialRatioScorer:
    """Typo tolerant matcher: best partial alignment above a cutoff."""

    def __init__(self, cutoff=60):
        self.cutoff = cutoff

    def __call__(self, query: str, candidate: str) -> Optional[int]:
        if not query:
            return None
        score = fuzz.partial_ratio(query.lower(), candidate.lower(), score_cutoff=self.cutoff)
        if not score:
            return None
        return int(round(score))


def find_matches(query, candidates, scorer, limit=None):
    """Score `candidates` against `query`, best first.

    The sort is stable, so equal scores keep the order of `candidates`.
    """
    matches = []
    for cand in candidates:
        score = scorer(query, cand)
        if score is not None:
            matches.append(Match(cand, score))
    matches.sort(key=lambda m: m.score, reverse=True)
    if limit is not None:
        matches = matches[:limit]
    return matches
