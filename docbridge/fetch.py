"""
Remote document retrieval.

URIs are fetched here, not by the engine, so network failures surface as
FetchError before the engine is ever started.
"""

import logging
from typing import Optional

import httpx

from .config import FetchSettings
from .errors import FetchError
from .sources import is_uri

logger = logging.getLogger(__name__)


class UriFetcher:
    """Download http(s) documents into memory with a size limit."""

    def __init__(
        self,
        settings: Optional[FetchSettings] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        """
        Initialize the fetcher.

        Args:
            settings: Fetch configuration (defaults if omitted)
            transport: Optional httpx transport, used by tests
        """
        self.settings = settings or FetchSettings()
        self._transport = transport

    def _client(self) -> httpx.Client:
        return httpx.Client(
            timeout=self.settings.timeout,
            follow_redirects=True,
            headers={"User-Agent": self.settings.user_agent},
            transport=self._transport,
        )

    def fetch(self, uri: str) -> bytes:
        """
        Fetch a URI's bytes.

        Raises:
            FetchError: unsupported scheme, transport failure, non-2xx
                status, or body larger than max_bytes
        """
        if not is_uri(uri):
            raise FetchError(uri, "Only http and https URIs can be fetched")

        max_bytes = self.settings.max_bytes
        try:
            with self._client() as client:
                with client.stream("GET", uri) as response:
                    if not response.is_success:
                        raise FetchError(
                            uri,
                            f"HTTP {response.status_code} {response.reason_phrase}",
                            status_code=response.status_code,
                        )

                    chunks = []
                    received = 0
                    for chunk in response.iter_bytes():
                        received += len(chunk)
                        if received > max_bytes:
                            raise FetchError(
                                uri,
                                f"Document exceeds {max_bytes} bytes",
                                status_code=response.status_code,
                            )
                        chunks.append(chunk)
        except httpx.HTTPError as e:
            raise FetchError(uri, f"Request failed: {type(e).__name__}: {e}") from e

        logger.debug("Fetched %d bytes from %s", received, uri)
        return b"".join(chunks)
