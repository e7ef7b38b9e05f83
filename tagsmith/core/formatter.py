"""Text formatter -- character replacement and casing for names and tag text."""

from __future__ import annotations

import re
from enum import Enum
from typing import Mapping

from tagsmith.models.node_kind import NodeKind
from tagsmith.utils.constants import (
    CASING_LOWER,
    CASING_TITLE,
    CASING_UPPER,
    DEFAULT_REPLACEMENTS,
)
from tagsmith.utils.file_utils import replace_ignore_case

# A word is a run of letters/digits, optionally joined by apostrophes (don't)
_WORD_RE = re.compile(r"[^\W_]+(?:'[^\W_]+)*")


class Casing(Enum):
    TITLE = CASING_TITLE
    LOWER = CASING_LOWER
    UPPER = CASING_UPPER

    def apply(self, text: str) -> str:
        if self is Casing.LOWER:
            return text.lower()
        if self is Casing.UPPER:
            return text.upper()
        return title_case(text)


def title_case(text: str) -> str:
    """Capitalize the first letter of every word and lowercase the rest.

    Words written entirely in capitals (acronyms such as ``DJ`` or ``EP``)
    are kept as they are.
    """

    def _word(match: re.Match) -> str:
        word = match.group(0)
        if word.isupper():
            return word
        return word[0].upper() + word[1:].lower()

    return _WORD_RE.sub(_word, text)


class Formatter:
    """Normalizes text for a node name or a tag field.

    Replacements run first, literally and ignoring case, in insertion
    order. Casing is then chosen by context: release, track and flat file
    names each have their own casing, and ``None`` selects the metadata
    casing.

    Usage:
        formatter = Formatter(track_casing=Casing.LOWER)
        formatter.add(" ", "_")
        formatter.format(NodeKind.TRACK, "01 Seven Nation Army")  # '01_seven_nation_army'
    """

    def __init__(
        self,
        replacements: Mapping[str, str] | None = None,
        release_casing: Casing = Casing.TITLE,
        track_casing: Casing = Casing.TITLE,
        flat_casing: Casing = Casing.TITLE,
        metadata_casing: Casing = Casing.TITLE,
    ) -> None:
        source = DEFAULT_REPLACEMENTS if replacements is None else replacements
        self._replacements: dict[str, str] = dict(source)
        self.release_casing = release_casing
        self.track_casing = track_casing
        self.flat_casing = flat_casing
        self.metadata_casing = metadata_casing

    @property
    def replacements(self) -> dict[str, str]:
        return dict(self._replacements)

    def add(self, pattern: str, replacement: str) -> None:
        """Append a replacement rule.

        Raises:
            ValueError: If *pattern* already has a rule.
        """
        if pattern in self._replacements:
            raise ValueError(f"Replacement for {pattern!r} already defined")
        self._replacements[pattern] = replacement

    def casing_for(self, kind: NodeKind | None) -> Casing:
        if kind is NodeKind.RELEASE:
            return self.release_casing
        if kind is NodeKind.TRACK:
            return self.track_casing
        if kind is NodeKind.FLAT:
            return self.flat_casing
        return self.metadata_casing

    def format(self, kind: NodeKind | None, text: str | None) -> str | None:
        """Apply every replacement, then the casing selected by *kind*."""
        if not text:
            return text
        for pattern, replacement in self._replacements.items():
            text = replace_ignore_case(text, pattern, replacement)
        return self.casing_for(kind).apply(text)

    def __repr__(self) -> str:
        return (
            f"Formatter(release={self.release_casing.value}, track={self.track_casing.value}, "
            f"flat={self.flat_casing.value}, metadata={self.metadata_casing.value}, "
            f"rules={len(self._replacements)})"
        )
