"""Publisher -- writes a selected candidate onto every track of a release.

Order of work for one release:

1. Cover art is attached to the release and downloaded (resolved through
   the site table first when the candidate carries no URL).
2. Each track, in position order, is hashed as it is on disk, gets the
   hash as its comment, takes the candidate record at the same position,
   has its tag saved and the cover embedded.
3. The checksum sidecar is attached to the release and written.

A failing track is recorded in the report and the loop moves on. Its
record in the tree keeps the old values and it gets no checksum line.
"""

from __future__ import annotations

from tagsmith.core.art import Art, ArtFetcher, ArtResolver
from tagsmith.core.checksum import Md5Checksum, md5_digest
from tagsmith.core.errors import TagsmithError
from tagsmith.core.node import Node, Release
from tagsmith.core.tag_editor import TagEditor
from tagsmith.models.metadata import MetadataModel
from tagsmith.models.publish_result import PublishReport
from tagsmith.utils.constants import ART_DOWNLOAD_TIMEOUT_SECONDS
from tagsmith.utils.logger import get_logger

logger = get_logger("core.publisher")


class Publisher:
    def __init__(
        self,
        tag_editor: TagEditor | None = None,
        art_fetcher: ArtFetcher | None = None,
        art_resolver: ArtResolver | None = None,
        download_timeout: float = ART_DOWNLOAD_TIMEOUT_SECONDS,
    ) -> None:
        self.tag_editor = tag_editor or TagEditor()
        self.art_fetcher = art_fetcher or ArtFetcher()
        self.art_resolver = art_resolver
        self.download_timeout = download_timeout

    def publish(self, release: Release, selection: MetadataModel) -> PublishReport:
        """Materialize *selection* onto *release*.

        Args:
            release: Release folder whose tracks are retagged.
            selection: Candidate chosen by the user; record ``i`` goes to
                the ``i``-th track in child order.

        Returns:
            What was published, what failed and which files were produced.
        """
        report = PublishReport(release_path=release.path)
        logger.info("Publishing %s (%d tracks)", release.name, release.count)

        art = self._attach_art(release, selection)
        if art is not None:
            report.art_path = art.path

        checksum = Md5Checksum(release.path, release.depth + 1)
        for position, track in enumerate(list(release.tracks())):
            try:
                self._publish_track(track, position, selection, checksum, art)
            except (TagsmithError, OSError, IndexError) as e:
                logger.error("Failed to publish %s: %s", track.file_name, e)
                report.record_failure(track.path, str(e))
                continue
            report.published.append(track.path)

        if checksum.exists():
            self._replace_child(release, checksum)
            release.add(checksum)
        report.checksum_path = checksum.generate()

        logger.info("%s", report.summary())
        return report

    def _attach_art(self, release: Release, selection: MetadataModel) -> Art | None:
        url = selection.art_url
        if not url and self.art_resolver is not None:
            url = self.art_resolver.resolve(selection)

        art = Art(release.path, url, release.depth + 1)
        if not art.exists():
            logger.info("No cover art for %s", release.name)
            return None

        self._replace_child(release, art)
        release.add(art)
        if not art.download(self.art_fetcher, self.download_timeout):
            release.remove(art)
            return None
        return art

    def _publish_track(
        self,
        track: Node,
        position: int,
        selection: MetadataModel,
        checksum: Md5Checksum,
        art: Art | None,
    ) -> None:
        # Hash before the tag changes the file
        digest = md5_digest(track.path)

        record = selection.get(position).copy()
        if not record.comment:
            record.comment = digest
        if art is not None:
            record.art_url = art.url

        if not self.tag_editor.write(track.path, record):
            raise TagsmithError(f"tag write failed for {track.file_name}")

        # The tree only takes the record once it is on disk
        track.metadata.update(record)
        checksum.record(track, digest)

        if art is not None and art.has_picture:
            if not self.tag_editor.embed_picture(track.path, art.data, art.mime_type):
                logger.warning("Cover not embedded in %s", track.file_name)

        logger.debug("Published %s as %s - %s", track.file_name, track.metadata.track, track.metadata.title)

    @staticmethod
    def _replace_child(release: Release, node: Node) -> None:
        """Drop an older child that points at the same file as *node*."""
        for child in release.children:
            if child is not node and child.path == node.path:
                release.remove(child)
