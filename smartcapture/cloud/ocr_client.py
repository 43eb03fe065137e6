"""High-fidelity cloud OCR over a bearer-authenticated JSON API."""

import asyncio
import base64
import time

import httpx

from smartcapture.cloud.exceptions import NetworkUnavailableError, ParseError, ProviderError
from smartcapture.cloud.models import CloudOcrResult
from smartcapture.cloud.retry import RetryPolicy
from smartcapture.cloud.validator import build_ocr_result
from smartcapture.documents.models import DocumentType
from smartcapture.logging.logger import Log
from smartcapture.vision.exceptions import InvalidInputError


class CloudOcrClient:
    """Calls the OCR endpoint with the shared retry policy."""

    def __init__(
        self,
        *,
        api_key: str,
        base_url: str,
        retry_policy: RetryPolicy,
        request_timeout_seconds: float = 60.0,
        resource_timeout_seconds: float = 120.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._url = base_url
        self._retry_policy = retry_policy
        self._resource_timeout_seconds = resource_timeout_seconds
        self._http = http_client or httpx.AsyncClient(
            timeout=httpx.Timeout(request_timeout_seconds)
        )
        self._headers = {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }

    async def extract_text(
        self,
        image: bytes,
        document_type: DocumentType,
        language_hints: list[str] | None = None,
    ) -> CloudOcrResult:
        """Extract text, blocks and tables from an encoded image.

        Raises:
            InvalidInputError: if ``image`` is empty.
            ProviderError: on a non-200 answer (after retries for 5xx).
            NetworkUnavailableError: if the endpoint is unreachable after retries.
            ParseError: if the body does not match the OCR schema.
        """
        if not image:
            raise InvalidInputError("Cannot send an empty image to cloud OCR")

        payload = {
            "image": base64.b64encode(image).decode("ascii"),
            "mode": "high_fidelity",
            "language_hints": language_hints or ["en", "ar"],
            "document_type": document_type.value,
            "extract_tables": True,
            "extract_structure": True,
            "return_bounding_boxes": True,
        }
        started = time.perf_counter()
        response = await self._retry_policy.call(lambda: self._post(payload), name="cloud_ocr")
        try:
            data = response.json()
        except ValueError as exc:
            raise ParseError(f"OCR response is not JSON: {exc}") from exc
        if not isinstance(data, dict):
            raise ParseError("OCR response must be an object")

        result = build_ocr_result(data, int((time.perf_counter() - started) * 1000))
        Log.info(
            "Cloud OCR completed",
            blocks=len(result.text_blocks),
            tables=len(result.tables),
            elapsed_ms=result.processing_time_ms,
        )
        return result

    async def _post(self, payload: dict[str, object]) -> httpx.Response:
        try:
            response = await asyncio.wait_for(
                self._http.post(self._url, json=payload, headers=self._headers),
                timeout=self._resource_timeout_seconds,
            )
        except (httpx.TransportError, asyncio.TimeoutError) as exc:
            raise NetworkUnavailableError(f"OCR endpoint unreachable: {exc}") from exc
        if response.status_code != 200:
            raise ProviderError(
                f"OCR endpoint returned {response.status_code}", response.status_code
            )
        return response

    async def aclose(self) -> None:
        await self._http.aclose()
