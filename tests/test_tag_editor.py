"""Tests for TagEditor -- read/write tag round-trips and parsing helpers."""

from __future__ import annotations

from pathlib import Path

import pytest

from tagsmith.core.tag_editor import TagEditor
from tagsmith.models.metadata import Metadata


@pytest.fixture
def editor() -> TagEditor:
    return TagEditor()


# ------------------------------------------------------------------
# Parsing helper tests (no audio files needed)
# ------------------------------------------------------------------


class TestParseYear:
    def test_four_digit_year(self, editor: TagEditor):
        assert editor._parse_year("2024") == "2024"

    def test_date_string(self, editor: TagEditor):
        assert editor._parse_year("2024-03-15") == "2024"

    def test_invalid_year(self, editor: TagEditor):
        assert editor._parse_year("abcd") == ""

    def test_none(self, editor: TagEditor):
        assert editor._parse_year(None) == ""

    def test_short_value(self, editor: TagEditor):
        assert editor._parse_year("99") == ""


class TestParseTrackNumber:
    def test_simple_number(self, editor: TagEditor):
        assert editor._parse_track_number("5") == "05"

    def test_fraction_format(self, editor: TagEditor):
        assert editor._parse_track_number("5/12") == "05"

    def test_none(self, editor: TagEditor):
        assert editor._parse_track_number(None) == "00"

    def test_invalid(self, editor: TagEditor):
        assert editor._parse_track_number("abc") == "00"

    def test_zero(self, editor: TagEditor):
        assert editor._parse_track_number("0") == "00"

    def test_whitespace(self, editor: TagEditor):
        assert editor._parse_track_number(" 7 / 14 ") == "07"

    def test_three_digits_kept(self, editor: TagEditor):
        assert editor._parse_track_number("112") == "112"


# ------------------------------------------------------------------
# Round-trip read/write tests using actual audio files
# ------------------------------------------------------------------


@pytest.fixture
def mp3_file(tmp_path: Path) -> Path:
    """Ten silent MPEG1 Layer3 frames (128kbps, 44100Hz, 417 bytes each)."""
    p = tmp_path / "test.mp3"
    frame = bytes([0xFF, 0xFB, 0x90, 0x00]) + b"\x00" * 413
    p.write_bytes(frame * 10)
    return p


class TestReadWriteRoundTrip:
    """Writing tags and reading them back preserves values."""

    @pytest.mark.slow
    def test_mp3_round_trip(self, editor: TagEditor, mp3_file: Path):
        metadata = Metadata(
            artist="Test Artist",
            album_artist="Album Artist",
            release="Test Release",
            title="Test Title",
            track=3,
            year=2024,
            genre="Rock",
            comment="0123456789ABCDEF",
            musicbrainz_release_id="mb-release",
        )

        assert editor.write(mp3_file, metadata)

        result = editor.read(mp3_file)

        assert result.title == "Test Title"
        assert result.artist == "Test Artist"
        assert result.album_artist == "Album Artist"
        assert result.release == "Test Release"
        assert result.track == "03"
        assert result.year == "2024"
        assert result.comment == "0123456789ABCDEF"
        assert result.musicbrainz_release_id == "mb-release"

    @pytest.mark.slow
    def test_mp3_cover(self, editor: TagEditor, mp3_file: Path):
        assert editor.embed_picture(mp3_file, b"\xff\xd8jpeg", "image/jpeg")

        from mutagen.id3 import ID3

        pictures = ID3(mp3_file).getall("APIC")
        assert len(pictures) == 1
        assert pictures[0].data == b"\xff\xd8jpeg"

    def test_read_nonexistent_file(self, editor: TagEditor):
        """Reading from a nonexistent file gives an empty record."""
        result = editor.read(Path("/nonexistent/file.mp3"))
        assert result == Metadata()

    def test_write_nonexistent_file(self, editor: TagEditor):
        assert editor.write(Path("/nonexistent/file.mp3"), Metadata(title="Ghost")) is False

    def test_read_non_audio_content(self, editor: TagEditor, tmp_path: Path):
        bogus = tmp_path / "noise.flac"
        bogus.write_bytes(b"not really flac")
        assert editor.read(bogus).title == ""

    def test_write_non_audio_content(self, editor: TagEditor, tmp_path: Path):
        bogus = tmp_path / "noise.flac"
        bogus.write_bytes(b"not really flac")
        assert editor.write(bogus, Metadata(title="Ghost")) is False

    def test_cover_unsupported_format(self, editor: TagEditor, tmp_path: Path):
        assert editor.embed_picture(tmp_path / "song.wma", b"img") is False
