"""Release tree -- releases (folders), tracks and flat files as one composite.

A scanned library is a tree of :class:`Node` objects. :class:`Release`
nodes own an ordered child list and an aggregate metadata view over their
tracks; :class:`Track` and :class:`FlatFile` nodes are leaves. Every
mutating operation keeps the disk and the tree in step.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Iterator

from tagsmith.core.comparator import Comparator
from tagsmith.core.errors import NodeIndexError, UnsupportedOperationError
from tagsmith.models.metadata import Metadata, MetadataCollection, MetadataModel
from tagsmith.models.node_kind import NodeKind
from tagsmith.utils.constants import LEVEL_RELEASE, LEVEL_ROOT, LEVEL_TRACK
from tagsmith.utils.file_utils import case_safe_rename, safe_move
from tagsmith.utils.logger import get_logger

if TYPE_CHECKING:
    from tagsmith.core.formatter import Formatter
    from tagsmith.core.renamer import Renamer

logger = get_logger("core.node")


class Node:
    """Base class for every entry in the release tree.

    Attributes:
        path: Absolute location on disk.
        name: Display name (file stem or folder name). Formatting and
            renaming change it before the disk entry is moved.
        extension: Lowercase, dot-inclusive extension ("" for folders).
        depth: Distance from the scanned root (root = 0).
        parent: Owning release, or None for the root and detached nodes.
        formatter: Last formatter applied by :meth:`format`.
        target_format: Preferred audio extension, if transcoding is on.
    """

    kind: NodeKind = NodeKind.FLAT

    def __init__(self, path: Path | str, depth: int = LEVEL_ROOT) -> None:
        self.parent: Release | None = None
        self.depth = depth
        self.formatter: Formatter | None = None
        self.target_format: str | None = None
        self._set_path(Path(path))

    # --- Identity ---

    def _set_path(self, path: Path) -> None:
        self.path = path
        if self.kind is NodeKind.RELEASE:
            self.name = path.name
            self.extension = ""
        else:
            self.name = path.stem
            self.extension = path.suffix.lower()

    @property
    def file_name(self) -> str:
        return f"{self.name}{self.extension}"

    def exists(self) -> bool:
        return self.path.exists()

    @property
    def metadata(self) -> MetadataModel:
        raise NotImplementedError

    # --- Composite interface (leaf defaults) ---

    @property
    def children(self) -> list[Node]:
        raise UnsupportedOperationError("children", self.kind.value)

    def add(self, child: Node) -> None:
        raise UnsupportedOperationError("add", self.kind.value)

    def remove(self, child: Node) -> None:
        raise UnsupportedOperationError("remove", self.kind.value)

    def get(self, index: int) -> Node:
        """A leaf is its own child at every index."""
        return self

    @property
    def count(self) -> int:
        return 1

    def tracks(self) -> Iterator[Node]:
        """Single-element sequence holding this leaf."""
        yield self

    def releases(self) -> Iterator[Node]:
        yield self

    # --- Lifecycle ---

    def detach(self) -> None:
        """Remove this node from its parent's child list (disk untouched)."""
        if self.parent is not None:
            self.parent.remove(self)

    def delete(self) -> None:
        """Detach from the parent and remove the file from disk."""
        logger.info("Deleting file %s", self.path)
        self.detach()
        self.path.unlink(missing_ok=True)

    def collapse(self) -> None:
        raise NotImplementedError

    def move(self, levels: int) -> None:
        """Move this file *levels* folders up the tree.

        If a file of the same name already exists there, this node is a
        duplicate and is deleted instead.
        """
        if levels <= 0 or self.parent is None:
            return

        target = self.parent
        for _ in range(levels):
            if target.parent is None:
                break
            target = target.parent

        destination = target.path / self.file_name
        if destination.exists():
            logger.info("Duplicate %s already in %s; deleting", self.file_name, target.path)
            self.delete()
            return

        logger.info("Moving %s to %s", self.file_name, target.path)
        safe_move(self.path, destination)
        self.detach()
        self._set_path(destination)
        target.add(self)

    # --- Naming ---

    def format(self, formatter: Formatter) -> None:
        """Format the display name and remember *formatter* for renaming."""
        self.formatter = formatter
        self.name = formatter.format(self.kind, self.name)

    def rename(self, renamer: Renamer) -> None:
        """Compute the new name from the renamer and move the file there."""
        self.name = renamer.rename(self)
        folder = self.parent.path if self.parent is not None else self.path.parent
        final = case_safe_rename(self.path, folder / self.file_name)
        self._set_path(final)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({str(self.path)!r}, depth={self.depth})"


class Track(Node):
    """A playable audio file with its own tag record."""

    kind = NodeKind.TRACK

    def __init__(
        self,
        path: Path | str,
        metadata: Metadata | None = None,
        depth: int = LEVEL_ROOT,
    ) -> None:
        super().__init__(path, depth)
        self._metadata = metadata if metadata is not None else Metadata(title=self.name)

    @property
    def metadata(self) -> Metadata:
        return self._metadata

    @metadata.setter
    def metadata(self, value: Metadata) -> None:
        self._metadata = value

    def collapse(self) -> None:
        if self.depth > LEVEL_TRACK:
            self.move(self.depth - LEVEL_TRACK)


class FlatFile(Node):
    """Any non-audio file inside a release (art, logs, playlists...).

    Its metadata is the lead record of the owning release.
    """

    kind = NodeKind.FLAT

    @property
    def metadata(self) -> Metadata:
        if self.parent is None:
            return Metadata()
        return self.parent.metadata.first

    def collapse(self) -> None:
        # Level-1 files sit directly in the scanned root and are left alone
        if self.depth >= LEVEL_TRACK:
            self.delete()


class Release(Node):
    """A folder: ordered children plus an aggregate view of its tracks."""

    kind = NodeKind.RELEASE

    def __init__(
        self,
        path: Path | str,
        depth: int = LEVEL_ROOT,
        comparator: Comparator | None = None,
    ) -> None:
        super().__init__(path, depth)
        self.comparator = comparator or Comparator()
        self._children: list[Node] = []
        self._metadata: MetadataModel = MetadataCollection()

    @property
    def metadata(self) -> MetadataModel:
        return self._metadata

    @metadata.setter
    def metadata(self, value: MetadataModel) -> None:
        self._metadata = value

    # --- Composite interface ---

    @property
    def children(self) -> list[Node]:
        return list(self._children)

    @property
    def count(self) -> int:
        return sum(1 for child in self._children if child.kind is NodeKind.TRACK)

    def __contains__(self, node: object) -> bool:
        return any(child is node for child in self._children)

    def add(self, child: Node) -> None:
        """Adopt *child* and re-sort.

        Children missing from disk are ignored, and a child already present
        is not inserted twice. A child owned by another release is taken
        away from it first. Only track records join the aggregate.
        """
        if not child.exists():
            logger.debug("Skipping missing entry %s", child.path)
            return

        if child.parent is not None and child.parent is not self:
            child.parent.remove(child)

        if child.kind is NodeKind.TRACK and isinstance(self._metadata, MetadataCollection):
            self._metadata.add(child.metadata)
        child.parent = self
        child.depth = self.depth + 1

        if self.name and child not in self:
            self._children.append(child)
            self._children = self.comparator.sort(self._children)

    def remove(self, child: Node) -> None:
        """Detach *child* from this release; the disk entry stays."""
        child.parent = None
        self._children = [c for c in self._children if c is not child]
        if child.kind is NodeKind.TRACK and isinstance(self._metadata, MetadataCollection):
            self._metadata.remove(child.metadata)

    def get(self, index: int) -> Node:
        """Return the child at *index*.

        Raises:
            NodeIndexError: If there are no children or the index is out of range.
        """
        if not self._children or index < 0 or index >= len(self._children):
            raise NodeIndexError(
                f"Child index {index} out of range for {self.name} ({len(self._children)} children)"
            )
        return self._children[index]

    def tracks(self) -> Iterator[Node]:
        return (child for child in list(self._children) if child.kind is NodeKind.TRACK)

    def releases(self) -> Iterator[Node]:
        return (child for child in list(self._children) if child.kind is NodeKind.RELEASE)

    def walk(self) -> Iterator[Node]:
        """Depth-first iteration over every descendant."""
        for child in list(self._children):
            yield child
            if isinstance(child, Release):
                yield from child.walk()

    # --- Lifecycle ---

    def delete(self) -> None:
        """Delete every child, then this folder."""
        for child in list(self._children):
            child.delete()
        logger.info("Deleting folder %s", self.path)
        self.detach()
        try:
            self.path.rmdir()
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning("Folder %s not removed: %s", self.path, e)

    def collapse(self) -> None:
        """Flatten this subtree so tracks end up directly in top-level releases."""
        for child in list(self._children):
            child.collapse()
        if self.depth > LEVEL_RELEASE:
            self.delete()

    def move(self, levels: int) -> None:
        raise UnsupportedOperationError("move", self.kind.value)

    # --- Naming ---

    def format(self, formatter: Formatter) -> None:
        self.formatter = formatter
        for child in list(self._children):
            child.format(formatter)
        self.name = formatter.format(self.kind, self.name)

    def rename(self, renamer: Renamer) -> None:
        """Rename children first, then this folder."""
        for child in list(self._children):
            child.rename(renamer)

        self.name = renamer.rename(self)
        folder = self.parent.path if self.parent is not None else self.path.parent
        final = case_safe_rename(self.path, folder / self.name)
        self._set_path(final)
        self._relocate_children()

    def _relocate_children(self) -> None:
        for child in self._children:
            child.path = self.path / child.path.name
            if isinstance(child, Release):
                child._relocate_children()


def node_from_path(path: Path | str, metadata: Metadata | None = None, depth: int = LEVEL_ROOT) -> Node:
    """Build the node variant matching *path* (folder, audio file, other file)."""
    path = Path(path)
    if path.is_dir():
        return Release(path, depth)
    kind = NodeKind.from_extension(path.suffix)
    if kind is NodeKind.TRACK:
        return Track(path, metadata, depth)
    return FlatFile(path, depth)
