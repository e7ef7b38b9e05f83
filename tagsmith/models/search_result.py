"""Search result models -- candidate release metadata returned by the coordinator."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator

from tagsmith.models.metadata import MetadataCollection, MetadataSource


@dataclass
class SearchResult:
    """One candidate release.

    Attributes:
        metadata: Aggregate metadata with one record per track.
        source: Catalog that produced the candidate.
        query: Name of the sub-query that found it (e.g. ``"release"``).
        confidence: Similarity (0-100) between the candidate and the
            release being tagged. Shown to the user; never used for ordering.
    """

    metadata: MetadataCollection
    source: MetadataSource = MetadataSource.NOT_SPECIFIED
    query: str = ""
    confidence: float = 0.0

    @property
    def display_label(self) -> str:
        parts = [self.metadata.release_artist or "Unknown Artist", self.metadata.release or "Unknown Release"]
        label = " - ".join(parts)
        if self.metadata.year:
            label += f" ({self.metadata.year})"
        return f"[{self.source.label}] {label}"

    def describe(self, track_count: int | None = None) -> str:
        """Summary text; flags whether the candidate's track count matches."""
        lines = [f"Confidence:  {self.confidence:.0f}%"]
        if track_count is not None:
            lines.append(f"Track count match: {self.metadata.track_count == track_count}")
        lines.append(self.metadata.describe())
        return "\n".join(lines)


@dataclass
class SearchResultSet:
    """Ordered candidates, provider priority order first, no deduplication."""

    results: list[SearchResult] = field(default_factory=list)

    @property
    def has_match(self) -> bool:
        return bool(self.results)

    def extend(self, results: list[SearchResult]) -> None:
        self.results.extend(results)

    def __len__(self) -> int:
        return len(self.results)

    def __iter__(self) -> Iterator[SearchResult]:
        return iter(self.results)

    def __getitem__(self, index: int) -> SearchResult:
        return self.results[index]

    def describe(self, track_count: int | None = None) -> str:
        """Numbered listing of every candidate (or "No match")."""
        if not self.results:
            return "No match"
        blocks = []
        for number, result in enumerate(self.results, start=1):
            blocks.append(f"{number}) {result.display_label}\n{result.describe(track_count)}")
        return "\n\n".join(blocks)
