"""Fuzzy similarity between the release being tagged and a catalog candidate."""

from __future__ import annotations

from typing import TYPE_CHECKING

from rapidfuzz import fuzz

from tagsmith.utils.constants import WEIGHT_ARTIST, WEIGHT_RELEASE

if TYPE_CHECKING:
    from tagsmith.models.metadata import MetadataModel


class FuzzyMatcher:
    """Scores candidates for display next to each search result.

    Scores are informational: the coordinator never reorders or filters
    candidates by them.
    """

    def similarity(self, str_a: str | None, str_b: str | None) -> float:
        """Similarity between two strings (0.0 - 100.0).

        Weighted blend of ratio, partial_ratio and token_sort_ratio so that
        typos, substrings and word reordering all score reasonably.
        """
        if not str_a or not str_b:
            return 0.0

        a = str_a.strip().lower()
        b = str_b.strip().lower()
        if a == b:
            return 100.0

        ratio = fuzz.ratio(a, b)
        partial = fuzz.partial_ratio(a, b)
        token_sort = fuzz.token_sort_ratio(a, b)
        return (ratio * 0.4) + (partial * 0.3) + (token_sort * 0.3)

    def compare_release(self, hint: MetadataModel, candidate: MetadataModel) -> float:
        """Confidence (0-100) that *candidate* describes the release in *hint*.

        Only fields present in the hint count; with neither a release title
        nor an artist the score is 0.
        """
        weighted = []
        if hint.release:
            weighted.append((WEIGHT_RELEASE, self.similarity(hint.release, candidate.release)))
        artist = hint.release_artist
        if artist:
            weighted.append((WEIGHT_ARTIST, self.similarity(artist, candidate.release_artist)))
        if not weighted:
            return 0.0
        total_weight = sum(weight for weight, _ in weighted)
        return sum(weight * score for weight, score in weighted) / total_weight
