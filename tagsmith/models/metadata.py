"""Metadata model -- per-track records and the release-level aggregate view.

A :class:`Metadata` holds the tag fields of one track. A
:class:`MetadataCollection` is an ordered list of such records that behaves
like a single record: scalar reads come from the lead record (index 0) and
scalar writes are applied to every record.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Any, Iterable, Iterator

from tagsmith.core.errors import MetadataValueError, NodeIndexError
from tagsmith.utils.constants import DEFAULT_TRACK_NUMBER, TRACK_NUMBER_WIDTH

if TYPE_CHECKING:
    from tagsmith.core.formatter import Formatter


class MetadataSource(Enum):
    """Which catalog produced a record."""

    MUSICBRAINZ = "musicbrainz"
    LASTFM = "lastfm"
    ITUNES = "itunes"
    NOT_SPECIFIED = "unspecified"

    @property
    def label(self) -> str:
        return {
            MetadataSource.MUSICBRAINZ: "MusicBrainz",
            MetadataSource.LASTFM: "Last.fm",
            MetadataSource.ITUNES: "iTunes",
            MetadataSource.NOT_SPECIFIED: "Not specified",
        }[self]


# Plain text fields, in display order
TEXT_FIELDS = (
    "artist",
    "album_artist",
    "release",
    "title",
    "genre",
    "art_url",
    "amazon_id",
    "musicbrainz_release_id",
    "musicbrainz_artist_id",
    "musicbrainz_track_id",
    "release_type",
    "comment",
)

FIELD_NAMES = TEXT_FIELDS + ("track", "year", "source")

# Human-readable fields that go through the metadata formatter
FORMATTED_FIELDS = ("artist", "album_artist", "release", "title", "genre", "release_type")


def parse_track_number(value: Any) -> str:
    """Normalize a track number to zero-padded text.

    Accepts ints, ``"7"``, ``"07"`` and ``"7/12"``. Empty values become
    ``"00"``.

    Raises:
        MetadataValueError: If the value is negative or not numeric.
    """
    if value is None or value == "":
        return DEFAULT_TRACK_NUMBER
    if isinstance(value, bool):
        raise MetadataValueError("track number", value)
    if isinstance(value, int):
        number = value
    else:
        text = str(value).split("/")[0].strip()
        if not text:
            return DEFAULT_TRACK_NUMBER
        if not text.isdigit():
            raise MetadataValueError("track number", value)
        number = int(text)
    if number < 0:
        raise MetadataValueError("track number", value)
    return str(number).zfill(TRACK_NUMBER_WIDTH)


def parse_year(value: Any) -> str:
    """Normalize a release year to four-digit text (``""`` when unknown).

    Date strings such as ``"2004-03-15"`` keep their year.

    Raises:
        MetadataValueError: If no year can be read from the value.
    """
    if value is None or value == "":
        return ""
    if isinstance(value, bool):
        raise MetadataValueError("year", value)
    text = str(value).strip()
    if not text:
        return ""
    year = text[:4]
    if len(year) != 4 or not year.isdigit():
        raise MetadataValueError("year", value)
    return year


class MetadataModel:
    """Operations shared by a single record and an aggregate."""

    @property
    def track_count(self) -> int:
        raise NotImplementedError

    @property
    def leaves(self) -> list[Metadata]:
        raise NotImplementedError

    @property
    def first(self) -> Metadata:
        raise NotImplementedError

    def get(self, index: int) -> Metadata:
        raise NotImplementedError

    def copy(self) -> MetadataModel:
        raise NotImplementedError

    def __iter__(self) -> Iterator[Metadata]:
        return iter(self.leaves)

    @property
    def release_artist(self) -> str:
        """Album artist, or the track artist when no album artist is set."""
        return self.album_artist or self.artist

    def format(self, formatter: Formatter) -> None:
        """Run the human-readable text fields of every record through *formatter*."""
        for leaf in self.leaves:
            for name in FORMATTED_FIELDS:
                setattr(leaf, name, formatter.format(None, getattr(leaf, name)))

    def describe(self) -> str:
        """Multi-line summary used by front ends to present a candidate."""
        lines = [
            f"Source:      {self.source.label}",
            f"Artist:      {self.release_artist}",
            f"Release:     {self.release}",
        ]
        if self.release_type:
            lines.append(f"Type:        {self.release_type}")
        if self.year:
            lines.append(f"Year:        {self.year}")
        if self.genre:
            lines.append(f"Genre:       {self.genre}")
        if self.amazon_id:
            lines.append(f"ASIN:        {self.amazon_id}")
        if self.art_url:
            lines.append(f"Art:         {self.art_url}")
        lines.append(f"Tracks:      {self.track_count}")
        for leaf in self.leaves:
            lines.append(f"  {leaf.track}. {leaf.artist} - {leaf.title}")
        return "\n".join(lines)


class Metadata(MetadataModel):
    """Tag fields of one track.

    ``track`` and ``year`` are validated on assignment; every other field is
    free text and defaults to ``""``.
    """

    def __init__(
        self,
        artist: str = "",
        album_artist: str = "",
        release: str = "",
        title: str = "",
        track: Any = DEFAULT_TRACK_NUMBER,
        year: Any = "",
        genre: str = "",
        art_url: str = "",
        amazon_id: str = "",
        musicbrainz_release_id: str = "",
        musicbrainz_artist_id: str = "",
        musicbrainz_track_id: str = "",
        release_type: str = "",
        comment: str = "",
        source: MetadataSource = MetadataSource.NOT_SPECIFIED,
    ) -> None:
        self.artist = artist or ""
        self.album_artist = album_artist or ""
        self.release = release or ""
        self.title = title or ""
        self.track = track
        self.year = year
        self.genre = genre or ""
        self.art_url = art_url or ""
        self.amazon_id = amazon_id or ""
        self.musicbrainz_release_id = musicbrainz_release_id or ""
        self.musicbrainz_artist_id = musicbrainz_artist_id or ""
        self.musicbrainz_track_id = musicbrainz_track_id or ""
        self.release_type = release_type or ""
        self.comment = comment or ""
        self.source = source

    @property
    def track(self) -> str:
        return self._track

    @track.setter
    def track(self, value: Any) -> None:
        self._track = parse_track_number(value)

    @property
    def year(self) -> str:
        return self._year

    @year.setter
    def year(self, value: Any) -> None:
        self._year = parse_year(value)

    @property
    def track_count(self) -> int:
        return 1

    @property
    def leaves(self) -> list[Metadata]:
        return [self]

    @property
    def first(self) -> Metadata:
        return self

    def get(self, index: int) -> Metadata:
        """A single record is its own slice for every position."""
        return self

    def copy(self) -> Metadata:
        return Metadata(**self.to_dict())

    def update(self, other: Metadata) -> None:
        """Overwrite every field with *other*'s, keeping this object's identity."""
        for name in FIELD_NAMES:
            setattr(self, name, getattr(other, name))

    def to_dict(self) -> dict[str, Any]:
        return {name: getattr(self, name) for name in FIELD_NAMES}

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Metadata):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self) -> str:
        return (
            f"Metadata(track={self.track!r}, artist={self.artist!r}, "
            f"title={self.title!r}, release={self.release!r})"
        )


def _delegated(name: str) -> property:
    """Property that reads from the lead record and writes to every record."""

    def getter(self: MetadataCollection) -> Any:
        return getattr(self.first, name)

    def setter(self: MetadataCollection, value: Any) -> None:
        for leaf in self._leaves:
            setattr(leaf, name, value)

    return property(getter, setter, doc=f"Aggregate view of ``{name}``.")


class MetadataCollection(MetadataModel):
    """Ordered aggregate of track records for one release.

    The lead record is the one at ``lead_index`` (always 0), fixed by
    insertion order. With no records, reads return the defaults of an empty
    :class:`Metadata` and writes are no-ops.
    """

    lead_index = 0

    def __init__(self, leaves: Iterable[MetadataModel] = ()) -> None:
        self._leaves: list[Metadata] = []
        for leaf in leaves:
            self.add(leaf)

    artist = _delegated("artist")
    album_artist = _delegated("album_artist")
    release = _delegated("release")
    title = _delegated("title")
    track = _delegated("track")
    year = _delegated("year")
    genre = _delegated("genre")
    art_url = _delegated("art_url")
    amazon_id = _delegated("amazon_id")
    musicbrainz_release_id = _delegated("musicbrainz_release_id")
    musicbrainz_artist_id = _delegated("musicbrainz_artist_id")
    musicbrainz_track_id = _delegated("musicbrainz_track_id")
    release_type = _delegated("release_type")
    comment = _delegated("comment")
    source = _delegated("source")

    def add(self, metadata: MetadataModel) -> None:
        """Append a record (an aggregate contributes all of its records)."""
        for leaf in metadata.leaves:
            if not any(leaf is existing for existing in self._leaves):
                self._leaves.append(leaf)

    def remove(self, metadata: MetadataModel) -> None:
        """Drop the given record(s) by identity; unknown records are ignored."""
        doomed = {id(leaf) for leaf in metadata.leaves}
        self._leaves = [leaf for leaf in self._leaves if id(leaf) not in doomed]

    @property
    def track_count(self) -> int:
        return len(self._leaves)

    @property
    def leaves(self) -> list[Metadata]:
        return list(self._leaves)

    @property
    def first(self) -> Metadata:
        if not self._leaves:
            return Metadata()
        return self._leaves[self.lead_index]

    def get(self, index: int) -> Metadata:
        """Return the record at *index*.

        Raises:
            NodeIndexError: If the index is out of range.
        """
        if index < 0 or index >= len(self._leaves):
            raise NodeIndexError(
                f"Metadata index {index} out of range (track count {len(self._leaves)})"
            )
        return self._leaves[index]

    def copy(self) -> MetadataCollection:
        return MetadataCollection(leaf.copy() for leaf in self._leaves)

    def __len__(self) -> int:
        return len(self._leaves)

    def __bool__(self) -> bool:
        return True

    def __repr__(self) -> str:
        return (
            f"MetadataCollection(artist={self.artist!r}, release={self.release!r}, "
            f"tracks={self.track_count})"
        )
