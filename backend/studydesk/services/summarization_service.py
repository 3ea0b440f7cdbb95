"""
Summarization Service Module

Async client for the external summarization service. PDFs are sent as
multipart form data; the service answers with JSON containing the summary
and some processing metadata.

Endpoints used:
    POST {base_url}/summarize-pdf            single page
    POST {base_url}/summarize-full-document  whole document
"""

import logging
from typing import Any

import httpx

from ..config import config

logger = logging.getLogger(__name__)


class SummarizationError(Exception):
    """Base class for summarization failures"""


class SummarizationNotConfiguredError(SummarizationError):
    """No service URL has been configured"""


class SummarizationUnavailableError(SummarizationError):
    """The service could not be reached"""


class SummarizationUpstreamError(SummarizationError):
    """The service answered with a non-2xx status"""

    def __init__(self, status_code: int, details: str):
        super().__init__(f"Summarization service returned {status_code}: {details}")
        self.status_code = status_code
        self.details = details


class SummarizationService:
    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = (base_url if base_url is not None else config.SUMMARIZER_BASE_URL) or ""
        self.timeout = timeout if timeout is not None else config.SUMMARIZER_TIMEOUT
        self._transport = transport

    @property
    def configured(self) -> bool:
        return bool(self.base_url)

    async def summarize_page(
        self, pdf_bytes: bytes, page_number: int, user_id: str, document_id: str
    ) -> dict[str, Any]:
        """
        Summarize one page, sent as a single-page PDF.

        Returns:
            dict with "summary" and "metadata" (processing_time, model, confidence)
        """
        result = await self._post(
            "/summarize-pdf",
            files={"file": (f"page_{page_number}.pdf", pdf_bytes, "application/pdf")},
            data={
                "page_number": str(page_number),
                "user_id": user_id,
                "document_id": document_id,
            },
        )
        return self._normalize(result)

    async def summarize_document(
        self, pdf_bytes: bytes, file_name: str, user_id: str, document_id: str
    ) -> dict[str, Any]:
        """
        Summarize a whole document.

        The service has answered with "summary", "text" or "result" over time;
        the first present one wins.
        """
        result = await self._post(
            "/summarize-full-document",
            files={"file": (file_name, pdf_bytes, "application/pdf")},
            data={"user_id": user_id, "document_id": document_id},
        )
        return self._normalize(result)

    def _normalize(self, result: dict[str, Any]) -> dict[str, Any]:
        summary = result.get("summary") or result.get("text") or result.get("result")
        return {
            "summary": summary,
            "metadata": {
                "processing_time": result.get("processing_time"),
                "model": result.get("model_used"),
                "confidence": result.get("confidence"),
            },
        }

    async def _post(
        self, path: str, files: dict[str, Any], data: dict[str, str]
    ) -> dict[str, Any]:
        if not self.configured:
            raise SummarizationNotConfiguredError(
                "Summarization service is not configured (set SUMMARIZER_BASE_URL)"
            )

        url = f"{self.base_url.rstrip('/')}{path}"
        logger.info(f"Sending summarization request to {url}")

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                response = await client.post(url, files=files, data=data)
        except httpx.TransportError as e:
            logger.error(f"Summarization service unreachable at {url}: {e}")
            raise SummarizationUnavailableError(
                f"Cannot reach summarization service at {self.base_url}"
            ) from e

        if response.is_error:
            logger.error(
                f"Summarization service error {response.status_code}: {response.text}"
            )
            raise SummarizationUpstreamError(response.status_code, response.text)

        try:
            result = response.json()
        except ValueError as e:
            raise SummarizationUpstreamError(
                response.status_code, "Response is not valid JSON"
            ) from e

        if not isinstance(result, dict):
            raise SummarizationUpstreamError(
                response.status_code, "Response is not a JSON object"
            )

        logger.info(f"Summarization completed by {url}")
        return result
