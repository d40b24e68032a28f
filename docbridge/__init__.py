"""
docbridge: document text and metadata extraction

A thin wrapper that accepts a file path, an http(s) URI, or an open stream
and hands the document to Apache Tika for text and metadata extraction.
"""

__version__ = "0.1.0"
__license__ = "MIT"

from .document import Document, read
from .engine import ExtractionResult, OutputKind, configure_engine, get_engine
from .errors import (
    DocbridgeError,
    EngineNotFoundError,
    EngineTimeoutError,
    ExtractionError,
    FetchError,
    InvalidUriError,
    InvocationError,
    SourceError,
    SourceNotFoundError,
    SourceNotReadableError,
    StreamReadError,
    UnsupportedSourceError,
)
from .sources import Source, SourceKind, classify

__all__ = [
    "Document",
    "DocbridgeError",
    "EngineNotFoundError",
    "EngineTimeoutError",
    "ExtractionError",
    "ExtractionResult",
    "FetchError",
    "InvalidUriError",
    "InvocationError",
    "OutputKind",
    "Source",
    "SourceError",
    "SourceKind",
    "SourceNotFoundError",
    "SourceNotReadableError",
    "StreamReadError",
    "UnsupportedSourceError",
    "classify",
    "configure_engine",
    "get_engine",
    "read",
]
