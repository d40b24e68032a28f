"""
Document wrapper and one-shot read.

A Document classifies and validates its input on construction, then
invokes the extraction engine on demand. Results are kept on the instance,
so repeated text/metadata access is consistent and a borrowed stream is
only read once.
"""

import io
import logging
import mimetypes
from datetime import datetime
from functools import cached_property
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .config import get_config
from .engine import BaseEngine, ExtractionResult, OutputKind, Payload, get_engine
from .fetch import UriFetcher
from .sources import Source, classify

logger = logging.getLogger(__name__)

CREATION_DATE_KEYS = ("dcterms:created", "Creation-Date", "meta:creation-date", "created")


class Document:
    """A document to extract text and metadata from."""

    def __init__(
        self,
        source: Any,
        *,
        engine: Optional[BaseEngine] = None,
        fetcher: Optional[UriFetcher] = None,
    ):
        """
        Classify and validate the input.

        Args:
            source: Path string or os.PathLike, http(s) URI, or readable object
            engine: Engine to use (process-wide engine if omitted)
            fetcher: Fetcher for URI sources (built from settings if omitted)

        Raises:
            UnsupportedSourceError: source is not an accepted shape
            SourceNotFoundError: source is a path to a missing file
        """
        self._source = classify(source)
        self._engine = engine
        self._fetcher = fetcher
        self._results: Dict[OutputKind, ExtractionResult] = {}

    def __repr__(self) -> str:
        return f"Document({self._source.kind.value}={self._source.value!r})"

    @property
    def source(self) -> Source:
        return self._source

    @property
    def is_path(self) -> bool:
        return self._source.is_path

    @property
    def is_uri(self) -> bool:
        return self._source.is_uri

    @property
    def is_stream(self) -> bool:
        return self._source.is_stream

    @property
    def path(self) -> Optional[str]:
        return self._source.value if self.is_path else None

    @property
    def uri(self) -> Optional[str]:
        return self._source.value if self.is_uri else None

    @property
    def stream(self) -> Any:
        return self._source.value if self.is_stream else None

    @property
    def engine(self) -> BaseEngine:
        if self._engine is None:
            self._engine = get_engine()
        return self._engine

    @cached_property
    def data(self) -> bytes:
        """Raw document bytes, read once from the source."""
        fetcher = self._fetcher
        if self.is_uri and fetcher is None:
            fetcher = UriFetcher(get_config().fetch)
        return self._source.read_bytes(fetcher)

    def _payload(self) -> Payload:
        # Local files are handed to the engine by path; everything else by content
        if self.is_path:
            return Path(self._source.value)
        return self.data

    def extract(self, kind: Union[OutputKind, str]) -> ExtractionResult:
        """Run the engine for one output kind, reusing an earlier result."""
        kind = OutputKind.parse(kind)
        if kind not in self._results:
            logger.debug("Extracting %s from %r", kind.value, self)
            self._results[kind] = self.engine.extract(self._payload(), kind)
        return self._results[kind]

    @property
    def text(self) -> str:
        """Extracted plain text."""
        return self.extract(OutputKind.TEXT).text

    @property
    def html(self) -> str:
        """Extracted XHTML."""
        return self.extract(OutputKind.HTML).html

    @property
    def metadata(self) -> Dict[str, str]:
        """Extracted metadata keyed by Tika property name."""
        return dict(self.extract(OutputKind.METADATA).metadata)

    @property
    def mimetype(self) -> Optional[str]:
        """Detected content type, without parameters."""
        content_type = self.metadata.get("Content-Type")
        if not content_type:
            return None
        return content_type.split(";", 1)[0].strip()

    @property
    def extensions(self) -> List[str]:
        """File extensions registered for the detected content type."""
        mimetype = self.mimetype
        if mimetype is None:
            return []
        return mimetypes.guess_all_extensions(mimetype)

    @property
    def creation_date(self) -> Optional[datetime]:
        """Document creation date, if the engine reported a parseable one."""
        metadata = self.metadata
        for key in CREATION_DATE_KEYS:
            value = metadata.get(key)
            if value:
                return _parse_date(value.split(", ", 1)[0])
        return None


def _parse_date(value: str) -> Optional[datetime]:
    value = value.strip()
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        logger.debug("Unparseable creation date: %r", value)
        return None


def read(
    kind: Union[OutputKind, str],
    source: Any,
    *,
    engine: Optional[BaseEngine] = None,
    fetcher: Optional[UriFetcher] = None,
) -> Union[str, Dict[str, str]]:
    """
    Classify, validate and extract in one call.

    Args:
        kind: OutputKind or its name ('text', 'metadata', 'html')
        source: Anything Document accepts, or the document content as bytes
        engine: Engine to use (process-wide engine if omitted)
        fetcher: Fetcher for URI sources

    Returns:
        Text or HTML as a string, or metadata as a dict
    """
    kind = OutputKind.parse(kind)
    if isinstance(source, (bytes, bytearray)):
        source = io.BytesIO(bytes(source))
    document = Document(source, engine=engine, fetcher=fetcher)
    return document.extract(kind).value
