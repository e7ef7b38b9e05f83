"""Path helpers and safe file operations for Tagsmith."""

from __future__ import annotations

import re
import shutil
from pathlib import Path

from tagsmith.utils.constants import AUDIO_EXTENSIONS, RENAME_SENTINEL
from tagsmith.utils.logger import get_logger

logger = get_logger("utils.file_utils")


def is_audio_extension(extension: str | None) -> bool:
    """Return True if *extension* (dot-inclusive, any case) is a playable format."""
    return bool(extension) and extension.lower() in AUDIO_EXTENSIONS


def replace_ignore_case(text: str, old: str, new: str) -> str:
    """Replace every occurrence of *old* in *text*, ignoring case.

    *old* is matched literally and *new* is inserted literally.
    """
    if not old:
        return text
    return re.sub(re.escape(old), lambda _m: new, text, flags=re.IGNORECASE)


def safe_move(src: Path, dst: Path) -> Path:
    """Move a file, creating parent directories as needed.

    Falls back to copy + delete when ``rename()`` fails (cross-device), and
    only removes the source once the copy has the same size.

    Raises:
        FileNotFoundError: If source does not exist.
        OSError: If the move fails or the copy is incomplete.
    """
    if not src.exists():
        raise FileNotFoundError(f"Source file not found: {src}")

    dst.parent.mkdir(parents=True, exist_ok=True)

    try:
        src.rename(dst)
    except OSError:
        src_size = src.stat().st_size
        shutil.copy2(src, dst)
        dst_size = dst.stat().st_size if dst.exists() else -1
        if dst_size != src_size:
            dst.unlink(missing_ok=True)
            raise OSError(
                f"Cross-device move failed: size mismatch "
                f"(src={src_size}, dst={dst_size}): {dst}"
            )
        src.unlink()

    logger.debug("Moved: %s -> %s", src, dst)
    return dst


def unique_path(path: Path) -> Path:
    """Return *path*, or a ``name (n).ext`` variant that does not exist yet."""
    if not path.exists():
        return path

    counter = 1
    while True:
        candidate = path.parent / f"{path.stem} ({counter}){path.suffix}"
        if not candidate.exists():
            return candidate
        counter += 1


def _same_entry(a: Path, b: Path) -> bool:
    try:
        return a.exists() and b.exists() and a.samefile(b)
    except OSError:
        return False


def case_safe_rename(src: Path, dst: Path) -> Path:
    """Rename a file or directory, forcing case-only changes through.

    On case-insensitive filesystems ``Song.mp3 -> song.mp3`` is a silent
    no-op, so the entry is first renamed to ``dst + "_"`` and then to
    ``dst``. A destination that is a different existing entry gets a
    ``(n)`` suffix instead of being overwritten.

    Returns:
        The final path.
    """
    if src == dst:
        return dst

    if src.name.lower() == dst.name.lower() and src.parent == dst.parent:
        intermediate = unique_path(dst.with_name(dst.name + RENAME_SENTINEL))
        src.rename(intermediate)
        intermediate.rename(dst)
        logger.debug("Renamed (case only): %s -> %s", src, dst)
        return dst

    if dst.exists() and not _same_entry(src, dst):
        dst = unique_path(dst)

    src.rename(dst)
    logger.debug("Renamed: %s -> %s", src, dst)
    return dst
