"""MD5 checksum sidecar for a release."""

from __future__ import annotations

import hashlib
from pathlib import Path

from tagsmith.core.node import FlatFile, Node
from tagsmith.utils.constants import (
    CHECKSUM_EXTENSION,
    CHECKSUM_FILE_STEM,
    CHECKSUM_READ_CHUNK,
    CHECKSUM_SEPARATOR,
)
from tagsmith.utils.logger import get_logger

logger = get_logger("core.checksum")


def md5_digest(path: Path) -> str:
    """Uppercase hex MD5 of the file at *path*."""
    digest = hashlib.md5()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(CHECKSUM_READ_CHUNK), b""):
            digest.update(chunk)
    return digest.hexdigest().upper()


class Md5Checksum(FlatFile):
    """Accumulates ``HASH !file`` lines and writes them to ``checksum.md5``.

    One instance is shared by all tracks of a release. It counts as
    existing once at least one file has been hashed. Lines name each file
    as it is called when the sidecar is written, so generating again after
    a rename lists the new names.
    """

    def __init__(self, folder: Path, depth: int = 0) -> None:
        super().__init__(folder / f"{CHECKSUM_FILE_STEM}{CHECKSUM_EXTENSION}", depth)
        self._entries: list[tuple[str, Node]] = []

    @property
    def buffer(self) -> str:
        return "".join(
            f"{digest}{CHECKSUM_SEPARATOR}{node.file_name}\n" for digest, node in self._entries
        )

    def exists(self) -> bool:
        return bool(self._entries)

    def record(self, node: Node, digest: str) -> None:
        """Record a digest computed earlier for *node*."""
        self._entries.append((digest, node))
        logger.debug("MD5 %s %s", digest, node.file_name)

    def hash(self, node: Node) -> str:
        """Hash *node*'s file as it is on disk now and record the line."""
        digest = md5_digest(node.path)
        self.record(node, digest)
        return digest

    def generate(self) -> Path | None:
        """Write the buffer to the sidecar file (nothing when empty)."""
        if not self._entries:
            return None
        if self.parent is not None:
            self.path = self.parent.path / self.file_name
        self.path.write_text(self.buffer, encoding="utf-8")
        logger.info("Wrote checksum file %s (%d entries)", self.path, len(self._entries))
        return self.path
