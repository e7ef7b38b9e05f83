"""Typed configuration model for Tagsmith.

Built from ``config/config.yaml`` by :func:`tagsmith.main.load_config` and
passed to every component that needs a setting.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from pathlib import Path

from tagsmith.utils.constants import (
    API_TIMEOUT_SECONDS,
    ART_DOWNLOAD_TIMEOUT_SECONDS,
    ART_CHECK_TIMEOUT_SECONDS,
    CASING_LOWER,
    CASING_TITLE,
    DEFAULT_ART_SITES,
    DEFAULT_DB_FILENAME,
    DEFAULT_FLAT_TEMPLATE,
    DEFAULT_MAX_RESULTS,
    DEFAULT_PROVIDER_ORDER,
    DEFAULT_RELEASE_TEMPLATE,
    DEFAULT_REPLACEMENTS,
    DEFAULT_TRACK_TEMPLATE,
    ITUNES_DEFAULT_COUNTRY,
    ITUNES_RATE_LIMIT,
    LASTFM_RATE_LIMIT,
    MUSICBRAINZ_RATE_LIMIT,
    SORT_BY_TRACK,
)


@dataclass
class AppConfig:
    """Strongly-typed configuration for Tagsmith.

    Attributes:
        library_path: Folder whose sub-folders are releases. Collapsing
            deletes directories inside it, so it must not be a system path.
        release_template: Rename template for release folders.
        track_template: Rename template for audio files.
        flat_template: Rename template for other files in a release.
        replacements: Literal substring replacements applied (ignoring
            case, in order) before casing, for both metadata and names.
        name_replacements: Extra replacements applied to file and folder
            names only (e.g. spaces to underscores).
        metadata_casing: Casing of tag text ("title", "lower", "upper").
        release_casing: Casing of release folder names.
        track_casing: Casing of track file names.
        flat_casing: Casing of other file names.
        sort_by: Track ordering key inside a release ("track" or "title").
        providers: Search providers in priority order.
        max_results: Total candidate cap across all providers.
        lastfm_api_key: Last.fm API key. Last.fm is skipped without one.
        itunes_country: Storefront used for iTunes searches.
        musicbrainz_rate_limit: Seconds between MusicBrainz requests.
        lastfm_rate_limit: Seconds between Last.fm requests.
        itunes_rate_limit: Seconds between iTunes requests.
        request_timeout: HTTP timeout for catalog requests, in seconds.
        art_sites: Ordered site-name -> URL template table for cover art.
        art_check_timeout: Seconds to wait when checking an art URL.
        art_download_timeout: Seconds to wait when downloading art.
        filename_track_overrides_tag: Use a track number found in the file
            name even when the tag has one.
        artist_from_filename: Read the artist from the file name when the
            tag has none.
        target_format: Audio extension (e.g. ".mp3") to transcode other
            formats into while scanning. None disables transcoding.
        use_cache: Cache catalog responses in SQLite.
        cache_path: SQLite cache file.
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR).
        log_file: Path to log file (None = console only).
    """

    # --- Library ---
    library_path: str = ""

    # --- Renaming ---
    release_template: str = DEFAULT_RELEASE_TEMPLATE
    track_template: str = DEFAULT_TRACK_TEMPLATE
    flat_template: str = DEFAULT_FLAT_TEMPLATE

    # --- Formatting ---
    replacements: dict[str, str] = field(default_factory=lambda: dict(DEFAULT_REPLACEMENTS))
    name_replacements: dict[str, str] = field(default_factory=lambda: {" ": "_"})
    metadata_casing: str = CASING_TITLE
    release_casing: str = CASING_TITLE
    track_casing: str = CASING_LOWER
    flat_casing: str = CASING_LOWER
    sort_by: str = SORT_BY_TRACK

    # --- Search ---
    providers: list[str] = field(default_factory=lambda: list(DEFAULT_PROVIDER_ORDER))
    max_results: int = DEFAULT_MAX_RESULTS
    lastfm_api_key: str = ""
    itunes_country: str = ITUNES_DEFAULT_COUNTRY

    # --- Rate Limits / Timeouts ---
    musicbrainz_rate_limit: float = MUSICBRAINZ_RATE_LIMIT
    lastfm_rate_limit: float = LASTFM_RATE_LIMIT
    itunes_rate_limit: float = ITUNES_RATE_LIMIT
    request_timeout: float = API_TIMEOUT_SECONDS

    # --- Cover Art ---
    art_sites: dict[str, str] = field(default_factory=lambda: dict(DEFAULT_ART_SITES))
    art_check_timeout: float = ART_CHECK_TIMEOUT_SECONDS
    art_download_timeout: float = ART_DOWNLOAD_TIMEOUT_SECONDS

    # --- Scanning ---
    filename_track_overrides_tag: bool = True
    artist_from_filename: bool = True
    target_format: str | None = None

    # --- Cache ---
    use_cache: bool = True
    cache_path: str = DEFAULT_DB_FILENAME

    # --- Logging ---
    log_level: str = "INFO"
    log_file: str | None = None

    @classmethod
    def from_dict(cls, data: dict) -> AppConfig:
        """Create an AppConfig from a raw dictionary (e.g. parsed YAML).

        Unknown keys and ``None`` values are ignored.
        """
        known_fields = {f.name for f in cls.__dataclass_fields__.values()}
        filtered = {k: v for k, v in data.items() if k in known_fields and v is not None}
        return cls(**filtered)

    def to_dict(self) -> dict:
        return asdict(self)

    @property
    def library_path_resolved(self) -> Path | None:
        """Return the library_path as a resolved Path, or None if not set."""
        if not self.library_path:
            return None
        return Path(self.library_path).expanduser().resolve()

    @property
    def target_extension(self) -> str | None:
        """``target_format`` normalized to a lowercase dot-inclusive extension."""
        if not self.target_format:
            return None
        ext = self.target_format.lower()
        return ext if ext.startswith(".") else f".{ext}"
