"""Tree scanner -- builds the release tree from a folder on disk."""

from __future__ import annotations

import re
from pathlib import Path

from tagsmith.core.comparator import Comparator
from tagsmith.core.errors import MetadataValueError, TranscodeError
from tagsmith.core.node import FlatFile, Node, Release, Track
from tagsmith.core.tag_editor import TagEditor
from tagsmith.core.transcoder import Transcoder
from tagsmith.models.node_kind import NodeKind
from tagsmith.utils.constants import (
    DEFAULT_TRACK_NUMBER,
    FILENAME_ARTIST_PATTERN,
    FILENAME_TRACK_PATTERN,
    LEVEL_ROOT,
)
from tagsmith.utils.logger import get_logger

logger = get_logger("core.scanner")

_TRACK_RE = re.compile(FILENAME_TRACK_PATTERN, re.IGNORECASE)
_ARTIST_RE = re.compile(FILENAME_ARTIST_PATTERN, re.IGNORECASE)


def parse_track_from_filename(name: str) -> str | None:
    """A 1-2 digit number standing on its own, not at the end of *name*.

    ``"03 - Artist - Song"`` gives ``"03"``; ``"Track3"`` and ``"Song 5"``
    give None.
    """
    match = _TRACK_RE.search(name)
    return match.group("track").strip() if match else None


def parse_artist_from_filename(name: str) -> str | None:
    """The text between a leading number (or the start) and the next hyphen.

    ``"03-Artist-Song"`` gives ``"Artist"``.
    """
    match = _ARTIST_RE.search(name)
    if not match:
        return None
    return match.group("artist").strip() or None


class TreeScanner:
    """Walks a folder and returns a :class:`Release` tree.

    Sub-folders become releases and files become tracks or flat files.
    Entries are visited folders first, each group in name order. Tags are
    read through the tag editor and completed from the file name.
    """

    def __init__(
        self,
        tag_editor: TagEditor | None = None,
        comparator: Comparator | None = None,
        transcoder: Transcoder | None = None,
        target_format: str | None = None,
        filename_track_overrides_tag: bool = True,
        artist_from_filename: bool = True,
    ) -> None:
        self.tag_editor = tag_editor or TagEditor()
        self.comparator = comparator or Comparator()
        self.transcoder = transcoder
        self.target_format = target_format
        self.filename_track_overrides_tag = filename_track_overrides_tag
        self.artist_from_filename = artist_from_filename

    def build(self, root: Path | str) -> Release:
        """Scan *root* into a tree.

        Raises:
            FileNotFoundError: If *root* does not exist.
            NotADirectoryError: If *root* is a file.
        """
        root = Path(root).expanduser().resolve()
        if not root.exists():
            raise FileNotFoundError(f"Library folder not found: {root}")
        if not root.is_dir():
            raise NotADirectoryError(f"Library path is not a folder: {root}")

        logger.info("Scanning %s", root)
        tree = self._build_release(root, LEVEL_ROOT)
        logger.info(
            "Scan complete: %d releases, %d tracks",
            sum(1 for n in tree.walk() if n.kind is NodeKind.RELEASE),
            sum(1 for n in tree.walk() if n.kind is NodeKind.TRACK),
        )
        return tree

    def _build_release(self, path: Path, depth: int) -> Release:
        release = Release(path, depth, self.comparator)
        release.target_format = self.target_format

        entries = sorted(path.iterdir(), key=lambda p: p.name.casefold())
        for entry in (e for e in entries if e.is_dir()):
            release.add(self._build_release(entry, depth + 1))
        for entry in (e for e in entries if e.is_file()):
            release.add(self.build_file(entry, depth + 1))

        # Untitled releases take their folder name
        if depth > LEVEL_ROOT and not release.metadata.release:
            release.metadata.release = release.name
        return release

    def build_file(self, path: Path, depth: int = LEVEL_ROOT) -> Node:
        """Create the leaf for one file, transcoding and reading tags as needed."""
        if NodeKind.from_extension(path.suffix) is not NodeKind.TRACK:
            return FlatFile(path, depth)

        path = self._transcode_if_needed(path)
        metadata = self.tag_editor.read(path)
        track = Track(path, metadata, depth)
        track.target_format = self.target_format
        self.apply_filename_hints(track)
        return track

    def apply_filename_hints(self, track: Track) -> None:
        """Fill gaps in *track*'s record from its file name."""
        metadata = track.metadata

        number = parse_track_from_filename(track.name)
        if number and (self.filename_track_overrides_tag or metadata.track == DEFAULT_TRACK_NUMBER):
            try:
                metadata.track = number
            except MetadataValueError:
                logger.debug("Ignoring track number %r in %s", number, track.file_name)
        logger.debug("Parsed track [%s] from %s", number or "", track.file_name)

        if self.artist_from_filename and not metadata.artist:
            artist = parse_artist_from_filename(track.name)
            if artist:
                metadata.artist = artist
                logger.debug("Parsed artist [%s] from %s", artist, track.file_name)

        if not metadata.title:
            metadata.title = track.name

        if not metadata.artist:
            logger.debug("No artist set for %s", track.file_name)
        if not metadata.release:
            logger.debug("No release set for %s", track.file_name)

    def _transcode_if_needed(self, path: Path) -> Path:
        if not self.target_format or self.transcoder is None:
            return path
        if path.suffix.lower() == self.target_format.lower():
            return path
        try:
            return self.transcoder.transcode(path, self.target_format)
        except TranscodeError as e:
            logger.warning("Keeping %s in its original format: %s", path.name, e)
            return path
