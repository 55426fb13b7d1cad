"""Document text extraction adapters.

Extraction itself (PDF/DOCX parsing) is owned by a separate service; this
module only fetches its output. Every adapter honours the same contract:
``extract`` never raises and returns "" when no text is available.
"""

import logging
from typing import Protocol, runtime_checkable

import httpx

logger = logging.getLogger(__name__)


@runtime_checkable
class TextExtractor(Protocol):
    """Anything that turns a document reference into plain text."""

    async def extract(self, document_ref: str) -> str: ...


class NullTextExtractor:
    """Extractor used when no extraction service is configured."""

    async def extract(self, document_ref: str) -> str:
        return ""


class HttpTextExtractor:
    """Fetch extracted text from an HTTP extraction service.

    Sends ``POST {url}`` with ``{"url": document_ref}`` and expects
    ``{"text": "..."}`` back.

    Args:
        url: Extraction endpoint.
        timeout: Request timeout in seconds.
        client: Optional pre-built httpx client (owned by the caller).
    """

    def __init__(
        self,
        url: str,
        timeout: float = 20.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._url = url
        self._timeout = timeout
        self._client = client
        self._owns_client = client is None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
        return self._client

    async def extract(self, document_ref: str) -> str:
        if not document_ref:
            return ""
        try:
            response = await self._get_client().post(
                self._url, json={"url": document_ref}
            )
            response.raise_for_status()
            text = response.json().get("text")
        except (httpx.HTTPError, ValueError, AttributeError) as e:
            logger.warning("Text extraction failed for %s: %s", document_ref, e)
            return ""
        return text if isinstance(text, str) else ""

    async def close(self) -> None:
        """Close the underlying client if this adapter created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
        self._client = None
