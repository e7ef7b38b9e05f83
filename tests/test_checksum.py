"""Tests for the MD5 checksum sidecar."""

from __future__ import annotations

import hashlib
from pathlib import Path

from conftest import add_track
from tagsmith.core.checksum import Md5Checksum, md5_digest
from tagsmith.core.node import Release


class TestMd5Digest:
    def test_uppercase_hex(self, tmp_path: Path):
        path = tmp_path / "a.bin"
        path.write_bytes(b"hello")
        assert md5_digest(path) == hashlib.md5(b"hello").hexdigest().upper()


class TestMd5Checksum:
    def test_empty_does_not_exist(self, tmp_path: Path):
        checksum = Md5Checksum(tmp_path)
        assert not checksum.exists()
        assert checksum.generate() is None
        assert not (tmp_path / "checksum.md5").exists()

    def test_hash_appends_line(self, album: Release):
        track = add_track(album, "01.mp3", 1, content=b"one")
        checksum = Md5Checksum(album.path)
        digest = checksum.hash(track)
        assert digest == hashlib.md5(b"one").hexdigest().upper()
        assert checksum.buffer == f"{digest} !01.mp3\n"
        assert checksum.exists()

    def test_generate_writes_sidecar(self, album: Release):
        first = add_track(album, "01.mp3", 1, content=b"one")
        second = add_track(album, "02.mp3", 2, content=b"two")
        checksum = Md5Checksum(album.path)
        checksum.hash(first)
        checksum.hash(second)
        album.add(checksum)

        path = checksum.generate()

        assert path == album.path / "checksum.md5"
        lines = path.read_text(encoding="utf-8").splitlines()
        assert lines == [
            f"{hashlib.md5(b'one').hexdigest().upper()} !01.mp3",
            f"{hashlib.md5(b'two').hexdigest().upper()} !02.mp3",
        ]
        assert checksum in album
        assert album.count == 2

    def test_record_uses_current_file_name(self, album: Release):
        track = add_track(album, "01.mp3", 1, content=b"one")
        checksum = Md5Checksum(album.path)
        checksum.record(track, "ABC")
        track.name = "01-renamed"
        assert checksum.buffer == "ABC !01-renamed.mp3\n"
