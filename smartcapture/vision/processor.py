import asyncio

from smartcapture.documents.models import DocumentType
from smartcapture.vision.barcode_detector import detect_barcodes
from smartcapture.vision.base import BaseTextRecognizer
from smartcapture.vision.classifier import classify_document_type
from smartcapture.vision.exceptions import InvalidInputError
from smartcapture.vision.imaging import decode_image
from smartcapture.vision.models import DetectedBarcode, DetectedPHI, OnDeviceResult
from smartcapture.vision.phi_detector import PhiDetector


class OnDeviceVisionProcessor:
    """Fully offline recognition: OCR, classification, PHI and barcodes."""

    def __init__(self, recognizer: BaseTextRecognizer, phi_detector: PhiDetector) -> None:
        self._recognizer = recognizer
        self._phi_detector = phi_detector

    async def recognize_text(
        self,
        image: bytes,
        language_hints: list[str] | None = None,
    ) -> OnDeviceResult:
        return await self._recognizer.recognize_text(image, language_hints)

    def classify_document_type(self, text: str, image: bytes | None = None) -> DocumentType:
        return classify_document_type(text)

    def detect_phi(self, text: str, sensitive_words: list[str] | None = None) -> list[DetectedPHI]:
        return self._phi_detector.detect(text, sensitive_words)

    def redact_phi(self, text: str, detections: list[DetectedPHI]) -> str:
        return self._phi_detector.redact(text, detections)

    async def detect_barcodes(self, image: bytes) -> list[DetectedBarcode]:
        """Raises InvalidInputError for undecodable images."""
        decoded = decode_image(image)
        if decoded is None:
            raise InvalidInputError("Image could not be decoded for barcode detection")
        return await asyncio.to_thread(detect_barcodes, decoded)
