"""Search providers -- MusicBrainz, Last.fm and iTunes release lookups.

Each provider turns a release hint into query tokens and exposes an ordered
list of sub-queries, most specific first. :meth:`SearchProvider.search`
runs them against a shared result budget: every sub-query asks for no more
than what is left, and its results are subtracted before the next one runs.
"""

from __future__ import annotations

import hashlib
import json
import re
import time
from dataclasses import dataclass
from typing import Any, Callable, TypeVar

import musicbrainzngs
import requests

from tagsmith.core.errors import ProviderError
from tagsmith.models.metadata import Metadata, MetadataCollection, MetadataModel, MetadataSource
from tagsmith.models.search_result import SearchResult
from tagsmith.utils.constants import (
    API_MAX_RETRIES,
    API_RETRY_BACKOFF_SECONDS,
    API_TIMEOUT_SECONDS,
    APP_NAME,
    APP_VERSION,
    ITUNES_ARTWORK_SIZE,
    ITUNES_DEFAULT_COUNTRY,
    ITUNES_LOOKUP_URL,
    ITUNES_RATE_LIMIT,
    ITUNES_SEARCH_URL,
    LASTFM_API_URL,
    LASTFM_RATE_LIMIT,
    MUSICBRAINZ_APP_NAME,
    MUSICBRAINZ_APP_VERSION,
    MUSICBRAINZ_CONTACT,
    MUSICBRAINZ_RATE_LIMIT,
    PROVIDER_ITUNES,
    PROVIDER_LASTFM,
    PROVIDER_MUSICBRAINZ,
)
from tagsmith.utils.logger import get_logger
from tagsmith.utils.rate_limiter import RateLimiter, rate_limiter

logger = get_logger("core.search_providers")

T = TypeVar("T")

# Characters that break Lucene and URL query strings
_QUERY_SPECIAL_RE = re.compile(r'[+\-&|!(){}\[\]^"~*?:\\/%#]')
_YEAR_RE = re.compile(r"(?<!\d)\d{4}(?!\d)")
_MB_STRIP_RE = re.compile(r"[()_\-]")

_RETRYABLE = (requests.RequestException, musicbrainzngs.NetworkError)


def clean_for_search(text: str | None) -> str:
    """Strip query-hostile characters and collapse whitespace."""
    if not text:
        return ""
    return " ".join(_QUERY_SPECIAL_RE.sub(" ", text).split())


def _retry(
    func: Callable[[], T],
    service_name: str,
    max_retries: int = API_MAX_RETRIES,
    backoff: float = API_RETRY_BACKOFF_SECONDS,
) -> T:
    """Call *func*, retrying network failures with linear backoff.

    Raises:
        ProviderError: When every attempt failed, or on a non-network
            error reported by the service.
    """
    for attempt in range(1, max_retries + 1):
        try:
            return func()
        except _RETRYABLE as e:
            if attempt >= max_retries:
                raise ProviderError(service_name, f"request failed after {max_retries} attempts: {e}") from e
            wait_time = backoff * attempt
            logger.warning(
                "%s request failed (attempt %d/%d): %s -- retrying in %.0fs",
                service_name, attempt, max_retries, e, wait_time,
            )
            time.sleep(wait_time)
        except (musicbrainzngs.WebServiceError, ValueError) as e:
            raise ProviderError(service_name, str(e)) from e
    raise ProviderError(service_name, "no attempts made")


def _safe_year(value: Any) -> str:
    text = str(value or "").strip()[:4]
    return text if len(text) == 4 and text.isdigit() else ""


def _published_year(text: str) -> str:
    """Year from a Last.fm wiki date such as ``"01 Jan 2004, 00:00"``."""
    match = _YEAR_RE.search(text or "")
    return match.group(0) if match else ""


def _as_list(value: Any) -> list:
    """Last.fm returns a bare object instead of a one-element list."""
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


def _format_artist_credit(artist_credit: list) -> str:
    """Join a MusicBrainz artist-credit list ("A feat. B")."""
    parts = []
    for credit in artist_credit:
        if isinstance(credit, dict):
            artist = credit.get("artist", {})
            name = credit.get("name") or artist.get("name", "")
            parts.append(name + credit.get("joinphrase", ""))
        elif isinstance(credit, str):
            parts.append(credit)
    return "".join(parts).strip()


@dataclass(frozen=True)
class SubQuery:
    """One query strategy of a provider.

    Attributes:
        name: Short label ("track", "release", "artist"...).
        required: Token keys that must be non-empty for the query to run.
        run: ``run(tokens, limit)`` returning at most *limit* aggregates.
    """

    name: str
    required: tuple[str, ...]
    run: Callable[[dict[str, str], int], list[MetadataCollection]]

    def usable(self, tokens: dict[str, str]) -> bool:
        return all(tokens.get(key) for key in self.required)


class SearchProvider:
    """Base class for catalog providers."""

    name = "provider"
    source = MetadataSource.NOT_SPECIFIED

    def __init__(
        self,
        api_cache: Any | None = None,
        rate_limit: float = 0.0,
        limiter: RateLimiter | None = None,
        max_retries: int = API_MAX_RETRIES,
    ) -> None:
        self._api_cache = api_cache
        self._rate_limit = rate_limit
        self._limiter = limiter or rate_limiter
        self._max_retries = max_retries

    # --- Interface ---

    def is_available(self) -> bool:
        return True

    def build_tokens(self, hint: MetadataModel) -> dict[str, str]:
        """Query tokens from the release hint (lead track title, artist, release)."""
        return {
            "artist": clean_for_search(hint.artist or hint.album_artist),
            "release": clean_for_search(hint.release),
            "title": clean_for_search(hint.title),
        }

    def sub_queries(self) -> list[SubQuery]:
        raise NotImplementedError

    def has_usable_query(self, tokens: dict[str, str]) -> bool:
        return any(query.usable(tokens) for query in self.sub_queries())

    def search(self, tokens: dict[str, str], limit: int) -> list[SearchResult]:
        """Run the sub-queries in order until *limit* results are collected.

        A failing sub-query is logged and counts as zero results.
        """
        results: list[SearchResult] = []
        remaining = limit

        for query in self.sub_queries():
            if remaining <= 0:
                break
            if not query.usable(tokens):
                logger.debug("%s: skipping %s query (missing tokens)", self.name, query.name)
                continue

            started = time.monotonic()
            try:
                found = query.run(tokens, remaining)
            except ProviderError as e:
                logger.warning("%s %s query failed: %s", self.name, query.name, e)
                found = []

            found = found[:remaining]
            for aggregate in found:
                aggregate.source = self.source
                results.append(SearchResult(metadata=aggregate, source=self.source, query=query.name))
            remaining -= len(found)
            logger.info(
                "%s %s query: %d result(s) in %.2fs, %d left in budget",
                self.name, query.name, len(found), time.monotonic() - started, remaining,
            )

        return results

    # --- Helpers ---

    def _cache_key(self, operation: str, params: dict[str, Any]) -> str:
        raw = json.dumps(params, sort_keys=True, ensure_ascii=False)
        return f"{self.name}:{operation}:{hashlib.sha256(raw.encode()).hexdigest()[:16]}"

    def _cached(self, operation: str, params: dict[str, Any], fetch: Callable[[], Any]) -> Any:
        """Return a cached response for (*operation*, *params*) or fetch and store it."""
        key = self._cache_key(operation, params)
        if self._api_cache is not None:
            cached = self._api_cache.get(key)
            if cached is not None:
                logger.debug("API cache hit: %s", key)
                return cached

        def _call() -> Any:
            self._limiter.wait(self.name, self._rate_limit)
            return fetch()

        data = _retry(_call, self.name, self._max_retries)
        if self._api_cache is not None and data is not None:
            self._api_cache.put(key, data)
        return data


class HttpSearchProvider(SearchProvider):
    """Provider that talks JSON over HTTP through a persistent session."""

    def __init__(
        self,
        session: requests.Session | None = None,
        timeout: float = API_TIMEOUT_SECONDS,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self._timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.update({"User-Agent": f"{APP_NAME}/{APP_VERSION}"})

    def _get_json(self, url: str, params: dict[str, Any], operation: str) -> Any:
        def _fetch() -> Any:
            response = self._session.get(url, params=params, timeout=self._timeout)
            response.raise_for_status()
            return response.json()

        return self._cached(operation, params, _fetch)


class MusicBrainzProvider(SearchProvider):
    """MusicBrainz via musicbrainzngs.

    Sub-queries: direct release id lookup, recording + artist, release +
    artist, artist only. Every hit is expanded to a full track list.
    """

    name = PROVIDER_MUSICBRAINZ
    source = MetadataSource.MUSICBRAINZ

    _RELEASE_INCLUDES = ["artists", "recordings", "release-groups", "artist-credits"]

    def __init__(self, rate_limit: float = MUSICBRAINZ_RATE_LIMIT, **kwargs: Any) -> None:
        super().__init__(rate_limit=rate_limit, **kwargs)
        musicbrainzngs.set_useragent(MUSICBRAINZ_APP_NAME, MUSICBRAINZ_APP_VERSION, MUSICBRAINZ_CONTACT)

    def build_tokens(self, hint: MetadataModel) -> dict[str, str]:
        """Also drops ``()_-`` and 4-digit years, which derail release searches."""
        tokens = {}
        for key, value in super().build_tokens(hint).items():
            value = _MB_STRIP_RE.sub(" ", value)
            if key != "artist":
                value = _YEAR_RE.sub(" ", value)
            tokens[key] = " ".join(value.split())
        tokens["release_id"] = hint.musicbrainz_release_id
        return tokens

    def sub_queries(self) -> list[SubQuery]:
        return [
            SubQuery("release-id", ("release_id",), self._lookup_release_id),
            SubQuery("track", ("title", "artist"), self._search_by_track),
            SubQuery("release", ("release", "artist"), self._search_by_release),
            SubQuery("artist", ("artist",), self._search_by_artist),
        ]

    def _lookup_release_id(self, tokens: dict[str, str], limit: int) -> list[MetadataCollection]:
        return [self._release(tokens["release_id"])]

    def _search_by_track(self, tokens: dict[str, str], limit: int) -> list[MetadataCollection]:
        params = {"recording": tokens["title"], "artist": tokens["artist"], "limit": limit}
        data = self._cached(
            "search_recordings", params,
            lambda: musicbrainzngs.search_recordings(strict=False, **params),
        )
        release_ids: list[str] = []
        for recording in data.get("recording-list", []):
            for release in recording.get("release-list", []):
                release_id = release.get("id")
                if release_id and release_id not in release_ids:
                    release_ids.append(release_id)
        return [self._release(release_id) for release_id in release_ids[:limit]]

    def _search_by_release(self, tokens: dict[str, str], limit: int) -> list[MetadataCollection]:
        return self._search_releases({"release": tokens["release"], "artist": tokens["artist"], "limit": limit})

    def _search_by_artist(self, tokens: dict[str, str], limit: int) -> list[MetadataCollection]:
        return self._search_releases({"artist": tokens["artist"], "limit": limit})

    def _search_releases(self, params: dict[str, Any]) -> list[MetadataCollection]:
        data = self._cached(
            "search_releases", params,
            lambda: musicbrainzngs.search_releases(strict=False, **params),
        )
        ids = [r["id"] for r in data.get("release-list", []) if r.get("id")]
        return [self._release(release_id) for release_id in ids[: params["limit"]]]

    def _release(self, release_id: str) -> MetadataCollection:
        data = self._cached(
            "get_release", {"id": release_id},
            lambda: musicbrainzngs.get_release_by_id(release_id, includes=self._RELEASE_INCLUDES),
        )
        return self.parse_release(data)

    @staticmethod
    def parse_release(data: dict) -> MetadataCollection:
        """Convert a ``get_release_by_id`` response into an aggregate."""
        release = data.get("release", data)
        credits = release.get("artist-credit", [])
        artist = _format_artist_credit(credits) or release.get("artist-credit-phrase", "")
        artist_id = ""
        if credits and isinstance(credits[0], dict):
            artist_id = credits[0].get("artist", {}).get("id", "")
        group = release.get("release-group", {})

        common = {
            "album_artist": artist,
            "release": release.get("title", ""),
            "year": _safe_year(release.get("date")),
            "amazon_id": release.get("asin", ""),
            "musicbrainz_release_id": release.get("id", ""),
            "musicbrainz_artist_id": artist_id,
            "release_type": group.get("primary-type") or group.get("type", ""),
            "source": MetadataSource.MUSICBRAINZ,
        }

        leaves = []
        for medium in release.get("medium-list", []):
            for track in medium.get("track-list", []):
                recording = track.get("recording", {})
                track_credits = track.get("artist-credit") or recording.get("artist-credit") or []
                leaves.append(Metadata(
                    artist=_format_artist_credit(track_credits) or artist,
                    title=recording.get("title") or track.get("title", ""),
                    track=len(leaves) + 1,
                    musicbrainz_track_id=recording.get("id", ""),
                    **common,
                ))
        if not leaves:
            leaves.append(Metadata(artist=artist, **common))
        return MetadataCollection(leaves)


class LastfmProvider(HttpSearchProvider):
    """Last.fm web service (API key required).

    Sub-queries: track search, album search, the artist's top albums.
    Each hit is expanded with ``album.getInfo``.
    """

    name = PROVIDER_LASTFM
    source = MetadataSource.LASTFM

    def __init__(self, api_key: str = "", rate_limit: float = LASTFM_RATE_LIMIT, **kwargs: Any) -> None:
        super().__init__(rate_limit=rate_limit, **kwargs)
        self._api_key = api_key

    def is_available(self) -> bool:
        return bool(self._api_key)

    def sub_queries(self) -> list[SubQuery]:
        return [
            SubQuery("track", ("title", "artist"), self._search_by_track),
            SubQuery("release", ("release", "artist"), self._search_by_release),
            SubQuery("artist", ("artist",), self._search_by_artist),
        ]

    def _call(self, method: str, **params: Any) -> dict:
        query = {"method": method, "api_key": self._api_key, "format": "json", **params}
        data = self._get_json(LASTFM_API_URL, query, method)
        if isinstance(data, dict) and "error" in data:
            raise ProviderError(self.name, f"{method}: {data.get('message', data['error'])}")
        return data

    def _search_by_track(self, tokens: dict[str, str], limit: int) -> list[MetadataCollection]:
        data = self._call("track.search", track=tokens["title"], artist=tokens["artist"], limit=limit)
        matches = _as_list(data.get("results", {}).get("trackmatches", {}).get("track"))
        albums: list[tuple[str, str]] = []
        for match in matches:
            info = self._call("track.getInfo", track=match.get("name", ""), artist=match.get("artist", ""))
            album = info.get("track", {}).get("album")
            if not album:
                continue
            key = (album.get("artist", ""), album.get("title", ""))
            if all(key) and key not in albums:
                albums.append(key)
            if len(albums) >= limit:
                break
        return [self._album(artist, title) for artist, title in albums]

    def _search_by_release(self, tokens: dict[str, str], limit: int) -> list[MetadataCollection]:
        data = self._call("album.search", album=f"{tokens['artist']} {tokens['release']}", limit=limit)
        matches = _as_list(data.get("results", {}).get("albummatches", {}).get("album"))
        return [self._album(m.get("artist", ""), m.get("name", "")) for m in matches[:limit]]

    def _search_by_artist(self, tokens: dict[str, str], limit: int) -> list[MetadataCollection]:
        data = self._call("artist.getTopAlbums", artist=tokens["artist"], limit=limit)
        albums = _as_list(data.get("topalbums", {}).get("album"))
        return [
            self._album(a.get("artist", {}).get("name", tokens["artist"]), a.get("name", ""))
            for a in albums[:limit]
        ]

    def _album(self, artist: str, title: str) -> MetadataCollection:
        return self.parse_album(self._call("album.getInfo", artist=artist, album=title))

    @staticmethod
    def parse_album(data: dict) -> MetadataCollection:
        """Convert an ``album.getInfo`` response into an aggregate."""
        album = data.get("album", {})
        artist = album.get("artist", "")
        images = [i.get("#text", "") for i in _as_list(album.get("image")) if i.get("#text")]
        tags = _as_list(album.get("tags", {}).get("tag")) if isinstance(album.get("tags"), dict) else []

        common = {
            "album_artist": artist,
            "release": album.get("name", ""),
            "year": _published_year(album.get("wiki", {}).get("published", "")),
            "genre": tags[0].get("name", "").title() if tags else "",
            "art_url": images[-1] if images else "",
            "musicbrainz_release_id": album.get("mbid", ""),
            "source": MetadataSource.LASTFM,
        }

        leaves = []
        tracks = album.get("tracks", {})
        for track in _as_list(tracks.get("track") if isinstance(tracks, dict) else None):
            track_artist = track.get("artist", {})
            leaves.append(Metadata(
                artist=(track_artist.get("name") if isinstance(track_artist, dict) else track_artist) or artist,
                title=track.get("name", ""),
                track=len(leaves) + 1,
                **common,
            ))
        if not leaves:
            leaves.append(Metadata(artist=artist, **common))
        return MetadataCollection(leaves)


class ITunesProvider(HttpSearchProvider):
    """iTunes Search API (no key).

    Sub-queries: song search, album search, album search by artist. Each
    hit is expanded with a collection lookup.
    """

    name = PROVIDER_ITUNES
    source = MetadataSource.ITUNES

    def __init__(
        self,
        country: str = ITUNES_DEFAULT_COUNTRY,
        rate_limit: float = ITUNES_RATE_LIMIT,
        **kwargs: Any,
    ) -> None:
        super().__init__(rate_limit=rate_limit, **kwargs)
        self._country = country

    def sub_queries(self) -> list[SubQuery]:
        return [
            SubQuery("track", ("title", "artist"), self._search_by_track),
            SubQuery("release", ("release", "artist"), self._search_by_release),
            SubQuery("artist", ("artist",), self._search_by_artist),
        ]

    def _search(self, limit: int, **params: Any) -> list[MetadataCollection]:
        query = {"country": self._country, "media": "music", "limit": limit, **params}
        data = self._get_json(ITUNES_SEARCH_URL, query, "search")
        ids: list[int] = []
        for item in data.get("results", []):
            collection_id = item.get("collectionId")
            if collection_id and collection_id not in ids:
                ids.append(collection_id)
        return [self._collection(collection_id) for collection_id in ids[:limit]]

    def _search_by_track(self, tokens: dict[str, str], limit: int) -> list[MetadataCollection]:
        return self._search(limit, term=f"{tokens['artist']} {tokens['title']}", entity="song")

    def _search_by_release(self, tokens: dict[str, str], limit: int) -> list[MetadataCollection]:
        return self._search(limit, term=f"{tokens['artist']} {tokens['release']}", entity="album")

    def _search_by_artist(self, tokens: dict[str, str], limit: int) -> list[MetadataCollection]:
        return self._search(limit, term=tokens["artist"], entity="album", attribute="artistTerm")

    def _collection(self, collection_id: int) -> MetadataCollection:
        params = {"id": collection_id, "entity": "song", "country": self._country}
        return self.parse_lookup(self._get_json(ITUNES_LOOKUP_URL, params, "lookup"))

    @staticmethod
    def parse_lookup(data: dict) -> MetadataCollection:
        """Convert a collection ``lookup`` response (album first, then songs)."""
        results = data.get("results", [])
        album = next((r for r in results if r.get("wrapperType") == "collection"), {})
        songs = sorted(
            (r for r in results if r.get("wrapperType") == "track"),
            key=lambda s: (s.get("discNumber") or 1, s.get("trackNumber") or 0),
        )
        artwork = album.get("artworkUrl100", "")
        if artwork:
            artwork = artwork.replace("100x100bb", ITUNES_ARTWORK_SIZE)

        artist = album.get("artistName", "")
        common = {
            "album_artist": artist,
            "release": album.get("collectionName", ""),
            "year": _safe_year(album.get("releaseDate")),
            "genre": album.get("primaryGenreName", ""),
            "art_url": artwork,
            "release_type": album.get("collectionType", ""),
            "source": MetadataSource.ITUNES,
        }

        leaves = [
            Metadata(
                artist=song.get("artistName") or artist,
                title=song.get("trackName", ""),
                track=position,
                **common,
            )
            for position, song in enumerate(songs, start=1)
        ]
        if not leaves:
            leaves.append(Metadata(artist=artist, **common))
        return MetadataCollection(leaves)
