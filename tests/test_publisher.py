"""Tests for Publisher -- art, per-track tags and checksum, end to end on a temp folder."""

from __future__ import annotations

import hashlib

import pytest

from conftest import FakeArtFetcher, FakeTagEditor, add_track, write_file
from tagsmith.core.art import Art, ArtResolver
from tagsmith.core.checksum import Md5Checksum
from tagsmith.core.node import FlatFile, Release
from tagsmith.core.publisher import Publisher
from tagsmith.models.metadata import Metadata, MetadataCollection, MetadataSource
from tagsmith.models.publish_result import PublishStatus

ART_URL = "http://art.example/cover.jpg"


def _md5(data: bytes) -> str:
    return hashlib.md5(data).hexdigest().upper()


def _selection(count: int = 2, art_url: str = "") -> MetadataCollection:
    titles = ["Opening", "Closing", "Encore"]
    return MetadataCollection(
        Metadata(
            artist="Artist",
            album_artist="Artist",
            release="Record",
            title=titles[i],
            track=i + 1,
            year=2004,
            art_url=art_url,
            source=MetadataSource.MUSICBRAINZ,
        )
        for i in range(count)
    )


@pytest.fixture
def release(album: Release) -> Release:
    add_track(album, "a.mp3", content=b"first")
    add_track(album, "b.mp3", content=b"second")
    return album


class TestPublishEndToEnd:
    def test_two_tracks_with_art(self, release: Release):
        editor = FakeTagEditor()
        fetcher = FakeArtFetcher({ART_URL}, data=b"IMG")
        report = Publisher(editor, fetcher).publish(release, _selection(art_url=ART_URL))

        assert report.status is PublishStatus.SUCCESS
        assert report.published == [release.path / "a.mp3", release.path / "b.mp3"]

        written_a = editor.written["a.mp3"]
        written_b = editor.written["b.mp3"]
        assert (written_a.artist, written_a.release, written_a.track, written_a.title) == (
            "Artist", "Record", "01", "Opening",
        )
        assert (written_b.artist, written_b.release, written_b.track, written_b.title) == (
            "Artist", "Record", "02", "Closing",
        )

        checksum_lines = (release.path / "checksum.md5").read_text(encoding="utf-8").splitlines()
        assert checksum_lines == [f"{_md5(b'first')} !a.mp3", f"{_md5(b'second')} !b.mp3"]
        assert report.checksum_path == release.path / "checksum.md5"

        assert editor.pictures == {"a.mp3": (b"IMG", "image/jpeg"), "b.mp3": (b"IMG", "image/jpeg")}
        assert (release.path / "image.jpg").read_bytes() == b"IMG"
        assert report.art_path == release.path / "image.jpg"

    def test_hash_taken_before_tag_write(self, release: Release):
        editor = FakeTagEditor()
        Publisher(editor, FakeArtFetcher()).publish(release, _selection())
        assert editor.written["a.mp3"].comment == _md5(b"first")
        assert (release.path / "a.mp3").read_bytes() == b"firstTAG"

    def test_selection_comment_kept(self, release: Release):
        editor = FakeTagEditor()
        selection = _selection()
        selection.comment = "ripped by me"
        Publisher(editor, FakeArtFetcher()).publish(release, selection)
        assert editor.written["a.mp3"].comment == "ripped by me"

    def test_tree_metadata_updated_in_place(self, release: Release):
        lead = release.metadata.get(0)
        Publisher(FakeTagEditor(), FakeArtFetcher()).publish(release, _selection())
        assert release.metadata.get(0) is lead
        assert release.metadata.release == "Record"
        assert [t.metadata.title for t in release.tracks()] == ["Opening", "Closing"]

    def test_art_and_checksum_become_children(self, release: Release):
        Publisher(FakeTagEditor(), FakeArtFetcher({ART_URL})).publish(release, _selection(art_url=ART_URL))
        kinds = [type(c) for c in release.children]
        assert Art in kinds
        assert Md5Checksum in kinds
        assert release.count == 2

    def test_republish_replaces_old_sidecars(self, release: Release):
        write_file(release.path / "checksum.md5", b"old")
        release.add(FlatFile(release.path / "checksum.md5"))
        Publisher(FakeTagEditor(), FakeArtFetcher()).publish(release, _selection())
        sidecars = [c for c in release.children if c.file_name == "checksum.md5"]
        assert len(sidecars) == 1
        assert isinstance(sidecars[0], Md5Checksum)


class TestArtHandling:
    def test_no_art_url(self, release: Release):
        editor = FakeTagEditor()
        report = Publisher(editor, FakeArtFetcher()).publish(release, _selection())
        assert report.art_path is None
        assert editor.pictures == {}
        assert not any(isinstance(c, Art) for c in release.children)
        assert report.status is PublishStatus.SUCCESS

    def test_failed_download_removes_art(self, release: Release):
        editor = FakeTagEditor()
        report = Publisher(editor, FakeArtFetcher()).publish(release, _selection(art_url=ART_URL))
        assert report.art_path is None
        assert not any(isinstance(c, Art) for c in release.children)
        assert editor.pictures == {}
        assert len(report.published) == 2

    def test_resolver_used_when_selection_has_no_url(self, release: Release):
        url = "http://covers/mb-1.jpg"
        fetcher = FakeArtFetcher({url})
        resolver = ArtResolver({"covers": "http://covers/%MBRELEASEID%.jpg"}, fetcher)
        selection = _selection()
        selection.musicbrainz_release_id = "mb-1"

        editor = FakeTagEditor()
        report = Publisher(editor, fetcher, resolver).publish(release, selection)

        assert report.art_path == release.path / "image.jpg"
        assert editor.written["a.mp3"].art_url == url
        assert set(editor.pictures) == {"a.mp3", "b.mp3"}


class TestFailures:
    def test_one_track_fails(self, release: Release):
        editor = FakeTagEditor(fail={"b.mp3"})
        report = Publisher(editor, FakeArtFetcher()).publish(release, _selection())
        assert report.status is PublishStatus.PARTIAL
        assert report.published == [release.path / "a.mp3"]
        assert [f.path for f in report.failures] == [release.path / "b.mp3"]
        assert report.ok

    def test_failed_track_keeps_its_record(self, release: Release):
        second = list(release.tracks())[1]
        record = second.metadata
        Publisher(FakeTagEditor(fail={"b.mp3"}), FakeArtFetcher()).publish(release, _selection())

        assert second.metadata is record
        assert second.metadata.title == "b"
        assert second.metadata.release == ""
        assert list(release.tracks())[0].metadata.title == "Opening"

    def test_failed_track_left_out_of_checksum(self, release: Release):
        Publisher(FakeTagEditor(fail={"b.mp3"}), FakeArtFetcher()).publish(release, _selection())
        lines = (release.path / "checksum.md5").read_text(encoding="utf-8").splitlines()
        assert lines == [f"{_md5(b'first')} !a.mp3"]

    def test_every_track_fails(self, release: Release):
        editor = FakeTagEditor(fail={"a.mp3", "b.mp3"})
        report = Publisher(editor, FakeArtFetcher()).publish(release, _selection())
        assert report.status is PublishStatus.FAILED
        assert not report.ok
        assert report.checksum_path is None
        assert not (release.path / "checksum.md5").exists()

    def test_short_selection(self, release: Release):
        report = Publisher(FakeTagEditor(), FakeArtFetcher()).publish(release, _selection(count=1))
        assert report.status is PublishStatus.PARTIAL
        assert "out of range" in report.failures[0].reason

    def test_missing_file_does_not_stop_loop(self, release: Release):
        (release.path / "a.mp3").unlink()
        editor = FakeTagEditor()
        report = Publisher(editor, FakeArtFetcher()).publish(release, _selection())
        assert [f.path.name for f in report.failures] == ["a.mp3"]
        assert list(editor.written) == ["b.mp3"]

    def test_empty_release(self, album: Release):
        report = Publisher(FakeTagEditor(), FakeArtFetcher()).publish(album, _selection())
        assert report.status is PublishStatus.EMPTY
        assert report.checksum_path is None
        assert not (album.path / "checksum.md5").exists()
