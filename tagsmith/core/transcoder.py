"""Audio transcoder -- converts a file to another container/codec with ffmpeg."""

from __future__ import annotations

import shutil
import subprocess
from pathlib import Path

from tagsmith.core.errors import TranscodeError
from tagsmith.utils.constants import FFMPEG_BINARY, TRANSCODE_TIMEOUT_SECONDS
from tagsmith.utils.file_utils import unique_path
from tagsmith.utils.logger import get_logger

logger = get_logger("core.transcoder")


class Transcoder:
    """Runs ``ffmpeg -i <src> <dst>`` and replaces the source with the result."""

    def __init__(self, binary: str = FFMPEG_BINARY, timeout: float = TRANSCODE_TIMEOUT_SECONDS) -> None:
        self.binary = binary
        self.timeout = timeout

    def resolve_binary(self) -> Path:
        """Locate the ffmpeg executable on PATH.

        Raises:
            TranscodeError: If it cannot be found.
        """
        found = shutil.which(self.binary)
        if not found:
            raise TranscodeError(f"Transcoder binary not found: {self.binary}")
        return Path(found)

    def build_command(self, binary: Path, source: Path, destination: Path) -> list[str]:
        return [
            str(binary),
            "-hide_banner",
            "-loglevel", "error",
            "-n",
            "-i", str(source),
            "-map_metadata", "0",
            "-vn",
            str(destination),
        ]

    def transcode(self, path: Path, target_format: str) -> Path:
        """Convert *path* to *target_format* (e.g. ``".mp3"``).

        The new file is written next to the source and the source is
        removed once conversion succeeds.

        Returns:
            Path of the converted file.

        Raises:
            TranscodeError: If ffmpeg is missing, fails or times out.
        """
        extension = target_format.lower()
        if not extension.startswith("."):
            extension = f".{extension}"
        if path.suffix.lower() == extension:
            return path

        destination = unique_path(path.with_suffix(extension))
        cmd = self.build_command(self.resolve_binary(), path, destination)
        logger.info("Transcoding %s -> %s", path.name, destination.name)
        logger.debug("Running: %s", " ".join(cmd))

        try:
            result = subprocess.run(cmd, capture_output=True, text=True, timeout=self.timeout)
        except subprocess.TimeoutExpired as e:
            destination.unlink(missing_ok=True)
            raise TranscodeError(f"Transcoding {path} timed out after {self.timeout:.0f}s") from e
        except OSError as e:
            raise TranscodeError(f"Could not start transcoder: {e}") from e

        if result.returncode != 0:
            destination.unlink(missing_ok=True)
            raise TranscodeError(
                f"Transcoding {path} failed with exit code {result.returncode}: {result.stderr.strip()}"
            )

        path.unlink()
        return destination
