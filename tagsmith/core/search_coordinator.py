"""Search coordinator -- fans a release hint out to the providers in priority order."""

from __future__ import annotations

from typing import Any, Iterable

from tagsmith.core.fuzzy_matcher import FuzzyMatcher
from tagsmith.core.search_providers import (
    ITunesProvider,
    LastfmProvider,
    MusicBrainzProvider,
    SearchProvider,
)
from tagsmith.models.config import AppConfig
from tagsmith.models.metadata import MetadataModel
from tagsmith.models.search_result import SearchResultSet
from tagsmith.utils.constants import (
    DEFAULT_MAX_RESULTS,
    PROVIDER_ITUNES,
    PROVIDER_LASTFM,
    PROVIDER_MUSICBRAINZ,
)
from tagsmith.utils.logger import get_logger

logger = get_logger("core.search_coordinator")


class SearchCoordinator:
    """Collects candidate releases from every provider.

    Providers are queried one after another in the given order. The result
    cap is shared: each provider gets only the budget its predecessors left,
    and the final list never holds more than ``max_results`` candidates.
    Candidates keep provider order and are not deduplicated.
    """

    def __init__(
        self,
        providers: Iterable[SearchProvider],
        max_results: int = DEFAULT_MAX_RESULTS,
        matcher: FuzzyMatcher | None = None,
    ) -> None:
        self.providers = list(providers)
        self.max_results = max_results
        self.matcher = matcher or FuzzyMatcher()

    def search(self, hint: MetadataModel) -> SearchResultSet:
        """Return the candidates for the release described by *hint*.

        An empty set means "no match"; it is not an error.
        """
        result_set = SearchResultSet()
        remaining = self.max_results

        for provider in self.providers:
            if remaining <= 0:
                break
            if not provider.is_available():
                logger.info("Skipping %s: not configured", provider.name)
                continue

            tokens = provider.build_tokens(hint)
            if not provider.has_usable_query(tokens):
                logger.info("Skipping %s: no usable search tokens", provider.name)
                continue

            logger.info("Searching %s (budget %d)", provider.name, remaining)
            results = provider.search(tokens, remaining)[:remaining]
            for result in results:
                result.confidence = self.matcher.compare_release(hint, result.metadata)
            result_set.extend(results)
            remaining -= len(results)

        logger.info(
            "Search for %s - %s: %d candidate(s)",
            hint.release_artist or "?", hint.release or "?", len(result_set),
        )
        return result_set


def build_providers(config: AppConfig, api_cache: Any | None = None) -> list[SearchProvider]:
    """Instantiate the configured providers in priority order."""
    factories = {
        PROVIDER_MUSICBRAINZ: lambda: MusicBrainzProvider(
            api_cache=api_cache,
            rate_limit=config.musicbrainz_rate_limit,
        ),
        PROVIDER_LASTFM: lambda: LastfmProvider(
            api_key=config.lastfm_api_key,
            api_cache=api_cache,
            rate_limit=config.lastfm_rate_limit,
            timeout=config.request_timeout,
        ),
        PROVIDER_ITUNES: lambda: ITunesProvider(
            country=config.itunes_country,
            api_cache=api_cache,
            rate_limit=config.itunes_rate_limit,
            timeout=config.request_timeout,
        ),
    }

    providers = []
    for name in config.providers:
        factory = factories.get(name)
        if factory is None:
            logger.warning("Unknown search provider ignored: %s", name)
            continue
        providers.append(factory())
    return providers
