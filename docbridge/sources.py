"""
Input source classification and validation.

Turns whatever the caller handed us (a path, an http(s) URI, or an open
readable object) into an immutable Source. Validation is eager: a missing
file fails here, not on first read.
"""

import logging
import os
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Optional
from urllib.parse import urlparse

from .errors import (
    InvalidUriError,
    SourceNotFoundError,
    SourceNotReadableError,
    StreamReadError,
    UnsupportedSourceError,
)

if TYPE_CHECKING:
    from .fetch import UriFetcher

logger = logging.getLogger(__name__)

URI_SCHEMES = {"http", "https"}


class SourceKind(str, Enum):
    """Origin of the document bytes."""

    PATH = "path"
    URI = "uri"
    STREAM = "stream"


@dataclass(frozen=True)
class Source:
    """A classified, validated document origin. Exactly one kind is active."""

    kind: SourceKind
    value: Any

    @property
    def is_path(self) -> bool:
        return self.kind is SourceKind.PATH

    @property
    def is_uri(self) -> bool:
        return self.kind is SourceKind.URI

    @property
    def is_stream(self) -> bool:
        return self.kind is SourceKind.STREAM

    @classmethod
    def from_path(cls, path: "os.PathLike | str") -> "Source":
        """Build a path source, failing if the file is missing or unreadable."""
        path = os.fsdecode(os.fspath(path))
        if not os.path.isfile(path):
            raise SourceNotFoundError(path)
        if not os.access(path, os.R_OK):
            raise SourceNotReadableError(path)
        return cls(SourceKind.PATH, path)

    @classmethod
    def from_uri(cls, uri: str) -> "Source":
        """Build a URI source. Only http and https are accepted."""
        if not is_uri(uri):
            raise InvalidUriError(uri)
        return cls(SourceKind.URI, uri)

    @classmethod
    def from_stream(cls, stream: Any) -> "Source":
        """Build a stream source over a caller-owned readable object."""
        if not is_readable(stream):
            raise UnsupportedSourceError(stream)
        return cls(SourceKind.STREAM, stream)

    def read_bytes(self, fetcher: Optional["UriFetcher"] = None) -> bytes:
        """
        Materialize the document bytes.

        Streams get a single full read() and are left open. URIs go through
        the fetcher, which raises FetchError on network failure.
        """
        if self.kind is SourceKind.PATH:
            with open(self.value, "rb") as f:
                return f.read()

        if self.kind is SourceKind.URI:
            if fetcher is None:
                from .fetch import UriFetcher
                fetcher = UriFetcher()
            return fetcher.fetch(self.value)

        try:
            data = self.value.read()
        except (OSError, ValueError) as e:
            raise StreamReadError(f"Failed to read stream: {e}") from e
        if data is None:
            raise StreamReadError("Stream returned no data (non-blocking stream?)")
        if isinstance(data, str):
            data = data.encode("utf-8")
        logger.debug("Read %d bytes from %s", len(data), type(self.value).__name__)
        return bytes(data)


def is_readable(value: Any) -> bool:
    """Check if value exposes a callable read()."""
    return callable(getattr(value, "read", None))


def is_uri(value: str) -> bool:
    """Check if a string is an http(s) URI with a host."""
    parsed = urlparse(value)
    return parsed.scheme.lower() in URI_SCHEMES and bool(parsed.netloc)


def classify(value: Any) -> Source:
    """
    Classify an arbitrary input into a Source.

    Args:
        value: Path string, os.PathLike, http(s) URI string, or readable object

    Returns:
        Validated Source

    Raises:
        UnsupportedSourceError: value is none of the accepted shapes
        SourceNotFoundError: value looks like a path but the file is missing
    """
    if is_readable(value):
        return Source.from_stream(value)

    if isinstance(value, os.PathLike):
        return Source.from_path(value)

    if isinstance(value, str):
        if is_uri(value):
            return Source.from_uri(value)
        return Source.from_path(value)

    raise UnsupportedSourceError(value)
