"""Tag editor -- reads and writes track records on audio files via mutagen."""

from __future__ import annotations

import base64
from pathlib import Path
from typing import Any

import mutagen
from mutagen.aiff import AIFF
from mutagen.asf import ASF
from mutagen.easyid3 import EasyID3
from mutagen.flac import FLAC, Picture
from mutagen.id3 import APIC, COMM, ID3, Frames, ID3NoHeaderError
from mutagen.mp4 import MP4, MP4Cover
from mutagen.oggopus import OggOpus
from mutagen.oggvorbis import OggVorbis
from mutagen.wave import WAVE

from tagsmith.core.errors import MetadataValueError
from tagsmith.models.metadata import Metadata
from tagsmith.utils.constants import (
    DEFAULT_TRACK_NUMBER,
    ID3_ENCODING_UTF8,
    ID3_PICTURE_TYPE_COVER_FRONT,
)
from tagsmith.utils.logger import get_logger

logger = get_logger("core.tag_editor")


# --- Tag key mapping ---
# Record field -> EasyID3 / Vorbis comment key. Track number, year and
# comment are handled separately.
_EASY_MAP = {
    "title": "title",
    "artist": "artist",
    "release": "album",
    "album_artist": "albumartist",
    "genre": "genre",
    "amazon_id": "asin",
    "musicbrainz_release_id": "musicbrainz_albumid",
    "musicbrainz_artist_id": "musicbrainz_artistid",
    "musicbrainz_track_id": "musicbrainz_trackid",
    "release_type": "musicbrainz_albumtype",
}

_MP4_MAP = {
    "title": "\xa9nam",
    "artist": "\xa9ART",
    "release": "\xa9alb",
    "album_artist": "aART",
    "genre": "\xa9gen",
    "comment": "\xa9cmt",
}

_ID3_FRAMES = {
    "title": "TIT2",
    "artist": "TPE1",
    "release": "TALB",
    "album_artist": "TPE2",
    "genre": "TCON",
    "track": "TRCK",
    "year": "TDRC",
}

_ASF_MAP = {
    "title": "Title",
    "artist": "Author",
    "release": "WM/AlbumTitle",
    "album_artist": "WM/AlbumArtist",
    "genre": "WM/Genre",
    "comment": "Description",
    "musicbrainz_release_id": "MusicBrainz/Album Id",
    "musicbrainz_artist_id": "MusicBrainz/Artist Id",
    "musicbrainz_track_id": "MusicBrainz/Track Id",
}


class TagEditor:
    """Reads and writes the tag of one audio file at a time.

    Every call opens the file afresh, so a track that has been moved or
    renamed only needs its new path. Writers never raise: codec and I/O
    failures are logged and reported as ``False``.
    """

    def read(self, path: Path) -> Metadata:
        """Read the tag of *path* into a new record.

        Missing files, unreadable tags and malformed numbers all yield
        default values rather than errors.
        """
        metadata = Metadata()
        if not path.exists():
            logger.warning("File not found for tag reading: %s", path)
            return metadata

        try:
            audio = mutagen.File(path, easy=True)
            if audio is None:
                logger.warning("Mutagen could not open: %s", path)
                return metadata

            for field_name, key in _EASY_MAP.items():
                value = self._get_tag(audio, key)
                if value:
                    setattr(metadata, field_name, value)
            metadata.track = self._parse_track_number(self._get_tag(audio, "tracknumber"))
            metadata.year = self._parse_year(self._get_tag(audio, "date"))
            metadata.comment = self._read_comment(path) or ""

            logger.debug("Read tags for: %s -> %s - %s", path.name, metadata.artist, metadata.title)

        except (mutagen.MutagenError, OSError, ValueError) as e:
            logger.error("Error reading tags from %s: %s", path, e)

        return metadata

    def write(self, path: Path, metadata: Metadata) -> bool:
        """Write *metadata* to *path*; empty fields leave the tag untouched.

        Returns:
            True if the tag was saved.
        """
        if not path.exists():
            logger.error("File not found for tag writing: %s", path)
            return False

        try:
            suffix = path.suffix.lower()

            if suffix == ".mp3":
                return self._write_mp3_tags(path, metadata)
            elif suffix == ".flac":
                return self._write_vorbis_tags(FLAC(path), metadata)
            elif suffix in (".m4a", ".aac", ".mp4"):
                return self._write_mp4_tags(path, metadata)
            elif suffix == ".ogg":
                return self._write_vorbis_tags(OggVorbis(path), metadata)
            elif suffix == ".opus":
                return self._write_vorbis_tags(OggOpus(path), metadata)
            elif suffix in (".wma", ".asf"):
                return self._write_asf_tags(path, metadata)
            elif suffix in (".aiff", ".aif"):
                return self._write_chunk_id3_tags(AIFF(path), metadata)
            elif suffix == ".wav":
                return self._write_chunk_id3_tags(WAVE(path), metadata)
            else:
                return self._write_easy_tags(path, metadata)

        except (mutagen.MutagenError, OSError, ValueError) as e:
            logger.error("Error writing tags to %s: %s", path, e)
            return False

    def embed_picture(self, path: Path, image_data: bytes, mime_type: str = "image/jpeg") -> bool:
        """Embed *image_data* as the front cover of *path*.

        Returns:
            True if the picture was saved.
        """
        suffix = path.suffix.lower()

        try:
            if suffix == ".mp3":
                return self._write_mp3_cover(path, image_data, mime_type)
            elif suffix == ".flac":
                return self._write_flac_cover(path, image_data, mime_type)
            elif suffix in (".m4a", ".aac", ".mp4"):
                return self._write_mp4_cover(path, image_data, mime_type)
            elif suffix in (".ogg", ".opus"):
                return self._write_vorbis_cover(path, image_data, mime_type)
            else:
                logger.warning("Cover art not supported for format: %s", suffix)
                return False
        except (mutagen.MutagenError, OSError, ValueError) as e:
            logger.error("Error writing cover art to %s: %s", path, e)
            return False

    # --- Private: Read helpers ---

    def _get_tag(self, audio: mutagen.FileType, key: str) -> str | None:
        """Return the first value stored under *key*, or None."""
        try:
            value = audio.get(key)
            if value:
                if isinstance(value, list):
                    return str(value[0]).strip() if value[0] else None
                return str(value).strip() or None
        except (KeyError, IndexError, TypeError, ValueError):
            pass
        return None

    def _read_comment(self, path: Path) -> str | None:
        """Comments are not exposed by the easy interfaces; read them raw."""
        suffix = path.suffix.lower()
        if suffix == ".mp3":
            try:
                frames = ID3(path).getall("COMM")
            except ID3NoHeaderError:
                return None
            return str(frames[0].text[0]) if frames and frames[0].text else None
        if suffix in (".flac", ".ogg", ".opus"):
            audio = mutagen.File(path)
            return self._get_tag(audio, "comment") if audio is not None else None
        return None

    def _parse_year(self, date_str: str | None) -> str:
        """Year from a date tag ("2004", "2004-05-01"); "" when unusable."""
        if not date_str:
            return ""
        year = date_str.strip()[:4]
        return year if len(year) == 4 and year.isdigit() else ""

    def _parse_track_number(self, raw: str | None) -> str:
        """Track number from "5" or "5/12"; "00" when unusable."""
        if not raw:
            return DEFAULT_TRACK_NUMBER
        try:
            return Metadata(track=raw).track
        except MetadataValueError:
            logger.debug("Ignoring malformed track number %r", raw)
            return DEFAULT_TRACK_NUMBER

    # --- Private: Write helpers per format ---

    def _write_mp3_tags(self, path: Path, metadata: Metadata) -> bool:
        try:
            audio = EasyID3(path)
        except ID3NoHeaderError:
            audio = EasyID3()
            audio.save(path)
            audio = EasyID3(path)

        self._set_easy_tags(audio, metadata)
        audio.save()

        if metadata.comment:
            id3 = ID3(path)
            id3.delall("COMM")
            id3.add(COMM(encoding=ID3_ENCODING_UTF8, lang="eng", desc="", text=[metadata.comment]))
            id3.save(path)

        logger.debug("Wrote MP3 tags: %s", path.name)
        return True

    def _write_vorbis_tags(self, audio: Any, metadata: Metadata) -> bool:
        """Write to any Vorbis-comment container (FLAC, OGG Vorbis, Opus)."""
        for field_name, key in _EASY_MAP.items():
            value = getattr(metadata, field_name)
            if value:
                audio[key] = [value]
        if metadata.track != DEFAULT_TRACK_NUMBER:
            audio["tracknumber"] = [metadata.track]
        if metadata.year:
            audio["date"] = [metadata.year]
        if metadata.comment:
            audio["comment"] = [metadata.comment]
        audio.save()
        logger.debug("Wrote Vorbis comments: %s", audio.filename)
        return True

    def _write_mp4_tags(self, path: Path, metadata: Metadata) -> bool:
        audio = MP4(path)
        for field_name, key in _MP4_MAP.items():
            value = getattr(metadata, field_name)
            if value:
                audio[key] = [value]
        if metadata.year:
            audio["\xa9day"] = [metadata.year]
        if metadata.track != DEFAULT_TRACK_NUMBER:
            audio["trkn"] = [(int(metadata.track), 0)]
        audio.save()
        logger.debug("Wrote MP4 tags: %s", path.name)
        return True

    def _write_asf_tags(self, path: Path, metadata: Metadata) -> bool:
        audio = ASF(path)
        for field_name, key in _ASF_MAP.items():
            value = getattr(metadata, field_name)
            if value:
                audio[key] = [value]
        if metadata.year:
            audio["WM/Year"] = [metadata.year]
        if metadata.track != DEFAULT_TRACK_NUMBER:
            audio["WM/TrackNumber"] = [metadata.track]
        audio.save()
        logger.debug("Wrote ASF tags: %s", path.name)
        return True

    def _write_chunk_id3_tags(self, audio: Any, metadata: Metadata) -> bool:
        """AIFF and WAVE keep their ID3 tag in a chunk, so frames are set directly."""
        if audio.tags is None:
            audio.add_tags()
        for field_name, frame_id in _ID3_FRAMES.items():
            value = getattr(metadata, field_name)
            if value and not (field_name == "track" and value == DEFAULT_TRACK_NUMBER):
                audio.tags.setall(frame_id, [Frames[frame_id](encoding=ID3_ENCODING_UTF8, text=[value])])
        if metadata.comment:
            audio.tags.delall("COMM")
            audio.tags.add(COMM(encoding=ID3_ENCODING_UTF8, lang="eng", desc="", text=[metadata.comment]))
        audio.save()
        logger.debug("Wrote ID3 chunk: %s", audio.filename)
        return True

    def _write_easy_tags(self, path: Path, metadata: Metadata) -> bool:
        audio = mutagen.File(path, easy=True)
        if audio is None:
            logger.warning("Cannot open for writing: %s", path)
            return False
        if audio.tags is None:
            audio.add_tags()

        self._set_easy_tags(audio, metadata)
        audio.save()
        logger.debug("Wrote easy tags: %s", path.name)
        return True

    def _set_easy_tags(self, audio: Any, metadata: Metadata) -> None:
        for field_name, key in _EASY_MAP.items():
            value = getattr(metadata, field_name)
            if value:
                try:
                    audio[key] = value
                except (KeyError, ValueError):
                    logger.debug("Tag %s not supported by %s", key, type(audio).__name__)
        if metadata.track != DEFAULT_TRACK_NUMBER:
            audio["tracknumber"] = metadata.track
        if metadata.year:
            audio["date"] = metadata.year

    # --- Private: Cover art writers ---

    def _picture(self, image_data: bytes, mime_type: str) -> Picture:
        pic = Picture()
        pic.type = ID3_PICTURE_TYPE_COVER_FRONT
        pic.mime = mime_type
        pic.desc = "Cover"
        pic.data = image_data
        return pic

    def _write_mp3_cover(self, path: Path, image_data: bytes, mime_type: str) -> bool:
        try:
            audio = ID3(path)
        except ID3NoHeaderError:
            audio = ID3()

        audio.delall("APIC")
        audio.add(
            APIC(
                encoding=ID3_ENCODING_UTF8,
                mime=mime_type,
                type=ID3_PICTURE_TYPE_COVER_FRONT,
                desc="Cover",
                data=image_data,
            )
        )
        audio.save(path)
        return True

    def _write_flac_cover(self, path: Path, image_data: bytes, mime_type: str) -> bool:
        audio = FLAC(path)
        audio.clear_pictures()
        audio.add_picture(self._picture(image_data, mime_type))
        audio.save()
        return True

    def _write_mp4_cover(self, path: Path, image_data: bytes, mime_type: str) -> bool:
        audio = MP4(path)
        fmt = MP4Cover.FORMAT_PNG if mime_type == "image/png" else MP4Cover.FORMAT_JPEG
        audio["covr"] = [MP4Cover(image_data, imageformat=fmt)]
        audio.save()
        return True

    def _write_vorbis_cover(self, path: Path, image_data: bytes, mime_type: str) -> bool:
        """OGG Vorbis/Opus carry pictures as base64 METADATA_BLOCK_PICTURE."""
        audio = mutagen.File(path)
        if audio is None:
            return False

        pic = self._picture(image_data, mime_type)
        audio["metadata_block_picture"] = [base64.b64encode(pic.write()).decode("ascii")]
        audio.save()
        return True
