"""Shared fixtures and in-memory collaborators for the Tagsmith tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from tagsmith.core.errors import ArtDownloadError
from tagsmith.core.node import Release, Track
from tagsmith.models.metadata import Metadata


class FakeTagEditor:
    """Tag codec that keeps tags in memory.

    ``write`` appends a few bytes to the file so tests can tell pre-write
    content from post-write content.
    """

    def __init__(self, tags: dict[str, Metadata] | None = None, fail: set[str] | None = None) -> None:
        self.tags = dict(tags or {})
        self.fail = set(fail or ())
        self.written: dict[str, Metadata] = {}
        self.pictures: dict[str, tuple[bytes, str]] = {}

    def read(self, path: Path) -> Metadata:
        return self.tags.get(path.name, Metadata()).copy()

    def write(self, path: Path, metadata: Metadata) -> bool:
        if path.name in self.fail:
            return False
        with open(path, "ab") as f:
            f.write(b"TAG")
        self.written[path.name] = metadata.copy()
        return True

    def embed_picture(self, path: Path, image_data: bytes, mime_type: str = "image/jpeg") -> bool:
        self.pictures[path.name] = (image_data, mime_type)
        return True


class FakeArtFetcher:
    """Art fetcher answering from a fixed set of reachable URLs."""

    def __init__(self, reachable: set[str] | None = None, data: bytes = b"\xff\xd8jpeg") -> None:
        self.reachable = set(reachable or ())
        self.data = data
        self.checked: list[str] = []

    def check(self, url: str, timeout: float = 1.0) -> bool:
        self.checked.append(url)
        return url in self.reachable

    def fetch(self, url: str, timeout: float = 20.0) -> tuple[bytes, str]:
        if url not in self.reachable:
            raise ArtDownloadError(f"Could not download image from {url}")
        return self.data, "image/jpeg"


def write_file(path: Path, content: bytes = b"audio") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(content)
    return path


def add_track(release: Release, name: str, track: int | str = "00", title: str = "", content: bytes = b"audio") -> Track:
    """Create *name* inside *release* on disk and adopt it as a track."""
    path = write_file(release.path / name, content)
    node = Track(path, Metadata(track=track, title=title or Path(name).stem))
    release.add(node)
    return node


@pytest.fixture
def fake_editor() -> FakeTagEditor:
    return FakeTagEditor()


@pytest.fixture
def library(tmp_path: Path) -> Release:
    """Empty scanned-root release at ``tmp_path/library``."""
    root = tmp_path / "library"
    root.mkdir()
    return Release(root)


@pytest.fixture
def album(library: Release) -> Release:
    """Level-1 release folder ``library/album`` with no children."""
    path = library.path / "album"
    path.mkdir()
    release = Release(path, 1)
    library.add(release)
    return release
