"""Publish report -- what happened when a selection was written to a release."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path


class PublishStatus(Enum):
    """Outcome of publishing one release."""

    EMPTY = "empty"
    SUCCESS = "success"
    PARTIAL = "partial"
    FAILED = "failed"


@dataclass
class TrackFailure:
    """A track that could not be published, and why."""

    path: Path
    reason: str


@dataclass
class PublishReport:
    """Per-release publish outcome.

    Attributes:
        release_path: Directory of the release.
        published: Tracks whose tags were written.
        failures: Tracks that failed, with the reason.
        art_path: Downloaded cover image, if any.
        checksum_path: Generated checksum sidecar, if any.
    """

    release_path: Path
    published: list[Path] = field(default_factory=list)
    failures: list[TrackFailure] = field(default_factory=list)
    art_path: Path | None = None
    checksum_path: Path | None = None

    @property
    def status(self) -> PublishStatus:
        if not self.published and not self.failures:
            return PublishStatus.EMPTY
        if not self.failures:
            return PublishStatus.SUCCESS
        if not self.published:
            return PublishStatus.FAILED
        return PublishStatus.PARTIAL

    @property
    def ok(self) -> bool:
        return self.status in (PublishStatus.SUCCESS, PublishStatus.PARTIAL)

    def record_failure(self, path: Path, reason: str) -> None:
        self.failures.append(TrackFailure(path=path, reason=reason))

    def summary(self) -> str:
        text = (
            f"{self.release_path.name}: {self.status.value} "
            f"({len(self.published)} published, {len(self.failures)} failed)"
        )
        for failure in self.failures:
            text += f"\n  {failure.path.name}: {failure.reason}"
        return text
