"""Child ordering inside a release."""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable

from tagsmith.models.node_kind import NodeKind
from tagsmith.utils.constants import SORT_BY_TITLE, SORT_BY_TRACK, VALID_SORT_KEYS

if TYPE_CHECKING:
    from tagsmith.core.node import Node


class Comparator:
    """Sort policy: every non-track child first, then tracks by key.

    Non-track children keep their relative order. Tracks are compared by
    numeric track number (default) or by case-folded title; ties keep
    insertion order.
    """

    def __init__(self, sort_by: str = SORT_BY_TRACK) -> None:
        if sort_by not in VALID_SORT_KEYS:
            raise ValueError(f"Unknown sort key {sort_by!r}; expected one of {sorted(VALID_SORT_KEYS)}")
        self.sort_by = sort_by

    def key(self, node: Node) -> tuple:
        if node.kind is not NodeKind.TRACK:
            return (0,)
        if self.sort_by == SORT_BY_TITLE:
            return (1, node.metadata.title.casefold())
        return (1, int(node.metadata.track))

    def sort(self, nodes: Iterable[Node]) -> list[Node]:
        return sorted(nodes, key=self.key)
