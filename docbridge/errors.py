"""
Error taxonomy.

Construction-time errors (SourceError) mean a request can never succeed.
Invocation-time errors (InvocationError) mean a request failed this time.
"""

import errno
import os
from typing import Optional


class DocbridgeError(Exception):
    """Base class for all docbridge errors."""
    pass


class SourceError(DocbridgeError):
    """Raised while classifying or validating an input."""
    pass


class UnsupportedSourceError(SourceError, TypeError):
    """Input is not a path string, URI string, or readable stream."""

    def __init__(self, value: object):
        self.value = value
        super().__init__(
            f"Unsupported input type: {type(value).__name__} "
            "(expected a path, an http(s) URI, or an object with read())"
        )


class SourceNotFoundError(SourceError, FileNotFoundError):
    """Path-shaped input does not name an existing file."""

    def __init__(self, path: str):
        super().__init__(errno.ENOENT, os.strerror(errno.ENOENT), path)


class SourceNotReadableError(SourceError, PermissionError):
    """Path names an existing file the process cannot read."""

    def __init__(self, path: str):
        super().__init__(errno.EACCES, os.strerror(errno.EACCES), path)


class InvalidUriError(SourceError, ValueError):
    """String given as a URI is not an http(s) URI with a host."""

    def __init__(self, uri: str):
        self.uri = uri
        super().__init__(f"Not an http(s) URI: {uri!r}")


class InvocationError(DocbridgeError):
    """Raised while materializing a source or running the engine."""
    pass


class FetchError(InvocationError, OSError):
    """Remote document could not be retrieved."""

    def __init__(self, uri: str, message: str, status_code: int = 0):
        self.uri = uri
        self.status_code = status_code
        super().__init__(f"{message} (uri={uri})")


class StreamReadError(InvocationError, OSError):
    """Caller-supplied stream could not be read."""
    pass


class ExtractionError(InvocationError):
    """Extraction engine rejected or failed to parse the content."""

    def __init__(self, message: str, stderr: Optional[str] = None, returncode: Optional[int] = None):
        self.stderr = stderr
        self.returncode = returncode
        super().__init__(message)


class EngineNotFoundError(ExtractionError):
    """Extraction engine (java runtime or Tika jar) is not available."""
    pass


class EngineTimeoutError(ExtractionError):
    """Extraction engine did not finish within the configured timeout."""
    pass
