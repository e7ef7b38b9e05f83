"""Node kind -- which variant of the release tree a path belongs to."""

from __future__ import annotations

from enum import Enum

from tagsmith.utils.file_utils import is_audio_extension


class NodeKind(Enum):
    """Closed set of node variants."""

    RELEASE = "release"
    TRACK = "track"
    FLAT = "flat"

    @classmethod
    def from_extension(cls, extension: str | None) -> NodeKind:
        """Derive the kind from a dot-inclusive extension.

        No extension means a directory (release); a playable extension means
        a track; anything else is a flat file.
        """
        if not extension:
            return cls.RELEASE
        if is_audio_extension(extension):
            return cls.TRACK
        return cls.FLAT
