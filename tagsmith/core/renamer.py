"""Renamer -- expands ``%Token%`` templates into file and folder names."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Callable

from tagsmith.models.node_kind import NodeKind
from tagsmith.utils.constants import (
    DEFAULT_FLAT_TEMPLATE,
    DEFAULT_RELEASE_TEMPLATE,
    DEFAULT_TRACK_TEMPLATE,
)
from tagsmith.utils.logger import get_logger

if TYPE_CHECKING:
    from tagsmith.core.node import Node
    from tagsmith.models.metadata import MetadataModel

logger = get_logger("core.renamer")

_TOKENS: dict[str, Callable[[MetadataModel], str]] = {
    "track": lambda m: m.track,
    "releaseartist": lambda m: m.release_artist,
    "artist": lambda m: m.artist,
    "release": lambda m: m.release,
    "title": lambda m: m.title,
    "genre": lambda m: m.genre,
    "releaseyear": lambda m: m.year,
}

_TOKEN_RE = re.compile(
    r"%(" + "|".join(sorted(_TOKENS, key=len, reverse=True)) + r")%",
    re.IGNORECASE,
)


def expand_template(template: str, metadata: MetadataModel) -> str:
    """Substitute every recognized token in one pass; leave others verbatim.

    Substituted values are never re-scanned, so a title containing
    ``%Artist%`` stays literal.
    """
    return _TOKEN_RE.sub(lambda m: _TOKENS[m.group(1).lower()](metadata) or "", template)


class Renamer:
    """Holds one template per node kind.

    ``%ReleaseArtist%`` falls back to the track artist when the album
    artist is empty.
    """

    def __init__(
        self,
        release_template: str = DEFAULT_RELEASE_TEMPLATE,
        track_template: str = DEFAULT_TRACK_TEMPLATE,
        flat_template: str = DEFAULT_FLAT_TEMPLATE,
    ) -> None:
        self.release_template = release_template
        self.track_template = track_template
        self.flat_template = flat_template

    def template_for(self, kind: NodeKind) -> str:
        if kind is NodeKind.RELEASE:
            return self.release_template
        if kind is NodeKind.TRACK:
            return self.track_template
        return self.flat_template

    def rename(self, node: Node) -> str:
        """Return the new name (without extension) for *node*.

        The node's last formatter, if any, is applied to the result.
        """
        template = self.template_for(node.kind)
        name = expand_template(template, node.metadata)
        if node.formatter is not None:
            name = node.formatter.format(node.kind, name)
        logger.debug("Template %s -> %s for %s", template, name, node.name)
        return name
