"""Release processor -- the operations a front end drives, wired from config."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from tagsmith.core.art import ArtFetcher, ArtResolver
from tagsmith.core.checksum import Md5Checksum
from tagsmith.core.comparator import Comparator
from tagsmith.core.formatter import Casing, Formatter
from tagsmith.core.node import Node, Release
from tagsmith.core.publisher import Publisher
from tagsmith.core.renamer import Renamer
from tagsmith.core.scanner import TreeScanner
from tagsmith.core.search_coordinator import SearchCoordinator, build_providers
from tagsmith.core.tag_editor import TagEditor
from tagsmith.core.transcoder import Transcoder
from tagsmith.models.config import AppConfig
from tagsmith.models.metadata import MetadataModel
from tagsmith.models.publish_result import PublishReport, PublishStatus
from tagsmith.models.search_result import SearchResultSet
from tagsmith.utils.logger import get_logger

logger = get_logger("core.release_processor")


def build_metadata_formatter(config: AppConfig) -> Formatter:
    """Formatter for tag text (metadata casing, shared replacements)."""
    return Formatter(
        replacements=config.replacements,
        metadata_casing=Casing(config.metadata_casing),
    )


def build_name_formatter(config: AppConfig) -> Formatter:
    """Formatter for file and folder names (shared and name-only replacements)."""
    formatter = Formatter(
        replacements=config.replacements,
        release_casing=Casing(config.release_casing),
        track_casing=Casing(config.track_casing),
        flat_casing=Casing(config.flat_casing),
        metadata_casing=Casing(config.metadata_casing),
    )
    for pattern, replacement in config.name_replacements.items():
        if pattern not in formatter.replacements:
            formatter.add(pattern, replacement)
    return formatter


class ReleaseProcessor:
    """Scan, search, publish, format and rename releases.

    Usage:
        processor = ReleaseProcessor.from_config(config, api_cache)
        root = processor.build_tree()
        for release in root.releases():
            results = processor.resolve(release)
            if results.has_match:
                processor.apply_selection(release, results[0].metadata)
    """

    def __init__(
        self,
        config: AppConfig,
        scanner: TreeScanner,
        coordinator: SearchCoordinator,
        publisher: Publisher,
        metadata_formatter: Formatter,
        name_formatter: Formatter,
        renamer: Renamer,
    ) -> None:
        self.config = config
        self.scanner = scanner
        self.coordinator = coordinator
        self.publisher = publisher
        self.metadata_formatter = metadata_formatter
        self.name_formatter = name_formatter
        self.renamer = renamer

    @classmethod
    def from_config(cls, config: AppConfig, api_cache: Any | None = None) -> ReleaseProcessor:
        tag_editor = TagEditor()
        fetcher = ArtFetcher()
        transcoder = Transcoder() if config.target_extension else None
        scanner = TreeScanner(
            tag_editor=tag_editor,
            comparator=Comparator(config.sort_by),
            transcoder=transcoder,
            target_format=config.target_extension,
            filename_track_overrides_tag=config.filename_track_overrides_tag,
            artist_from_filename=config.artist_from_filename,
        )
        coordinator = SearchCoordinator(build_providers(config, api_cache), config.max_results)
        publisher = Publisher(
            tag_editor=tag_editor,
            art_fetcher=fetcher,
            art_resolver=ArtResolver(config.art_sites, fetcher, config.art_check_timeout),
            download_timeout=config.art_download_timeout,
        )
        renamer = Renamer(config.release_template, config.track_template, config.flat_template)
        return cls(
            config,
            scanner,
            coordinator,
            publisher,
            build_metadata_formatter(config),
            build_name_formatter(config),
            renamer,
        )

    def build_tree(self, root: Path | str | None = None) -> Release:
        """Scan *root* (default: the configured library) into a tree."""
        target = root if root is not None else self.config.library_path_resolved
        if target is None:
            raise ValueError("No library path given and none configured")
        return self.scanner.build(target)

    def resolve(self, release: Release) -> SearchResultSet:
        return self.coordinator.search(release.metadata)

    def publish(self, release: Release, selection: MetadataModel) -> PublishReport:
        return self.publisher.publish(release, selection)

    def format(self, node: Node, formatter: Formatter | None = None) -> None:
        node.format(formatter or self.name_formatter)

    def rename(self, node: Node, renamer: Renamer | None = None) -> None:
        node.rename(renamer or self.renamer)

    def apply_selection(self, release: Release, selection: MetadataModel) -> PublishReport:
        """Format the candidate's text, publish it, then rename the release.

        Names change only when every track was published; after renaming
        the checksum sidecar is written again with the new file names.
        """
        selection.format(self.metadata_formatter)
        report = self.publish(release, selection)
        if report.status is not PublishStatus.SUCCESS:
            logger.warning("Publish of %s was %s; names left unchanged", release.name, report.status.value)
            return report

        self.format(release)
        self.rename(release)
        for child in release.children:
            if isinstance(child, Md5Checksum):
                report.checksum_path = child.generate()
        logger.info("Release renamed to %s", release.path)
        return report
