"""Cover art -- URL resolution against site templates, download and embedding."""

from __future__ import annotations

from pathlib import Path, PurePosixPath
from typing import Mapping
from urllib.parse import quote, urlparse

import requests

from tagsmith.core.errors import ArtDownloadError
from tagsmith.core.node import FlatFile
from tagsmith.models.metadata import MetadataModel
from tagsmith.utils.constants import (
    APP_NAME,
    APP_VERSION,
    ART_DOWNLOAD_TIMEOUT_SECONDS,
    ART_FILE_STEM,
    ART_CHECK_TIMEOUT_SECONDS,
    DEFAULT_ART_SITES,
)
from tagsmith.utils.logger import get_logger

logger = get_logger("core.art")

_IMAGE_EXTENSIONS = {".jpg": "image/jpeg", ".jpeg": "image/jpeg", ".png": "image/png", ".gif": "image/gif"}
_DEFAULT_IMAGE_EXTENSION = ".jpg"


def image_extension(url: str) -> str:
    """Extension of the image behind *url*, ``.jpg`` when it cannot be told."""
    suffix = PurePosixPath(urlparse(url).path).suffix.lower()
    return suffix if suffix in _IMAGE_EXTENSIONS else _DEFAULT_IMAGE_EXTENSION


class ArtFetcher:
    """HTTP access to cover images.

    ``check`` answers "is there an image at this URL" within a short
    timeout; ``fetch`` downloads it with a longer one.
    """

    def __init__(self, session: requests.Session | None = None) -> None:
        self._session = session or requests.Session()
        self._session.headers.update({"User-Agent": f"{APP_NAME}/{APP_VERSION}"})

    def check(self, url: str, timeout: float = ART_CHECK_TIMEOUT_SECONDS) -> bool:
        """Return True if *url* answers 200 within *timeout*; failures mean no."""
        try:
            with self._session.get(url, timeout=timeout, stream=True, allow_redirects=True) as response:
                return response.status_code == requests.codes.ok
        except requests.RequestException as e:
            logger.debug("Art check failed for %s: %s", url, e)
            return False

    def fetch(self, url: str, timeout: float = ART_DOWNLOAD_TIMEOUT_SECONDS) -> tuple[bytes, str]:
        """Download *url*.

        Returns:
            The image bytes and their MIME type.

        Raises:
            ArtDownloadError: On timeout, HTTP error or an empty body.
        """
        try:
            response = self._session.get(url, timeout=timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            raise ArtDownloadError(f"Could not download image from {url}: {e}") from e

        if not response.content:
            raise ArtDownloadError(f"Empty image from {url}")

        mime = response.headers.get("Content-Type", "").split(";")[0].strip()
        if not mime.startswith("image/"):
            mime = _IMAGE_EXTENSIONS[image_extension(url)]
        return response.content, mime


class ArtResolver:
    """Finds a reachable cover URL for a release from an ordered site table.

    Templates may use ``%ASIN%``, ``%ARTIST%``, ``%ALBUM%``,
    ``%MBRELEASEID%``, ``%MBARTISTID%``, ``%ALBUMCHAR0%`` and
    ``%ALBUMCHAR1%``. A template whose placeholders cannot all be filled
    from the metadata is skipped.
    """

    def __init__(
        self,
        sites: Mapping[str, str] | None = None,
        fetcher: ArtFetcher | None = None,
        check_timeout: float = ART_CHECK_TIMEOUT_SECONDS,
    ) -> None:
        self.sites = dict(DEFAULT_ART_SITES if sites is None else sites)
        self.fetcher = fetcher or ArtFetcher()
        self.check_timeout = check_timeout

    def candidates(self, metadata: MetadataModel) -> list[str]:
        """Every URL the site table yields for *metadata*, in table order."""
        release = metadata.release.lower()
        values = {
            "%ASIN%": metadata.amazon_id,
            "%ARTIST%": metadata.release_artist.lower(),
            "%ALBUM%": release,
            "%MBRELEASEID%": metadata.musicbrainz_release_id,
            "%MBARTISTID%": metadata.musicbrainz_artist_id,
            "%ALBUMCHAR0%": release[0:1],
            "%ALBUMCHAR1%": release[1:2],
        }

        urls = []
        for site, template in self.sites.items():
            url = template
            usable = True
            for placeholder, value in values.items():
                if placeholder in url:
                    if not value:
                        usable = False
                        break
                    url = url.replace(placeholder, quote(value, safe=""))
            if usable:
                urls.append(url)
            else:
                logger.debug("Skipping art site %s: missing template values", site)
        return urls

    def resolve(self, metadata: MetadataModel) -> str:
        """Check each candidate; store and return the first reachable URL ("" if none)."""
        for url in self.candidates(metadata):
            logger.debug("Testing art URL %s", url)
            if self.fetcher.check(url, self.check_timeout):
                logger.info("Cover art found: %s", url)
                metadata.art_url = url
                return url
        logger.info("No cover art found for %s", metadata.release or "release")
        return ""


class Art(FlatFile):
    """Cover image of a release.

    An Art node "exists" as soon as it has a URL; the image file and the
    embeddable bytes appear only after :meth:`download`.
    """

    def __init__(self, folder: Path, url: str = "", depth: int = 0) -> None:
        super().__init__(folder / f"{ART_FILE_STEM}{image_extension(url)}", depth)
        self.url = url
        self.data: bytes | None = None
        self.mime_type = _IMAGE_EXTENSIONS[self.extension]

    def exists(self) -> bool:
        return bool(self.url)

    @property
    def has_picture(self) -> bool:
        return self.data is not None

    def download(self, fetcher: ArtFetcher, timeout: float = ART_DOWNLOAD_TIMEOUT_SECONDS) -> bool:
        """Fetch the image and save it next to the tracks.

        Returns:
            True if the image is on disk and ready to embed. A failed
            download is logged and leaves the node without a picture.
        """
        if not self.url:
            return False

        logger.info("Downloading image from %s", self.url)
        try:
            data, mime = fetcher.fetch(self.url, timeout)
        except ArtDownloadError as e:
            logger.warning("%s", e)
            return False

        self.path.write_bytes(data)
        self.data = data
        self.mime_type = mime
        logger.debug("Saved cover art: %s (%d bytes)", self.path, len(data))
        return True
