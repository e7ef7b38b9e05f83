"""Exception hierarchy for Tagsmith."""

from __future__ import annotations


class TagsmithError(RuntimeError):
    """Base class for errors raised by Tagsmith."""


class UnsupportedOperationError(TagsmithError, NotImplementedError):
    """The operation does not apply to this kind of node or record."""

    def __init__(self, operation: str, kind: str) -> None:
        super().__init__(f"{operation} is not supported for {kind} nodes")
        self.operation = operation
        self.kind = kind


class NodeIndexError(TagsmithError, IndexError):
    """A child index is negative, too large, or the release has no children."""


class MetadataValueError(TagsmithError, ValueError):
    """A track number or year could not be parsed."""

    def __init__(self, field_name: str, value: object) -> None:
        super().__init__(f"Invalid {field_name}: {value!r}")
        self.field_name = field_name
        self.value = value


class ProviderError(TagsmithError):
    """A search provider failed to answer a query."""

    def __init__(self, provider: str, message: str) -> None:
        super().__init__(f"{provider}: {message}")
        self.provider = provider


class ArtDownloadError(TagsmithError):
    """Cover art could not be fetched."""


class TranscodeError(TagsmithError):
    """The external transcoder is missing or failed."""
