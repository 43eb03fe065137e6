"""Carry a PHI redaction over to every piece of recognized text."""

from dataclasses import replace

from smartcapture.cloud.models import CloudOcrResult
from smartcapture.documents.models import TableStructure, TextBlock
from smartcapture.vision.models import OnDeviceResult
from smartcapture.vision.processor import OnDeviceVisionProcessor


class TextRedactor:
    def __init__(self, vision: OnDeviceVisionProcessor, sensitive_words: list[str]) -> None:
        self._vision = vision
        self._sensitive_words = sensitive_words

    def redact(self, text: str) -> str:
        if not text:
            return text
        detections = self._vision.detect_phi(text, self._sensitive_words)
        return self._vision.redact_phi(text, detections) if detections else text

    def redact_blocks(
        self,
        blocks: list[TextBlock],
        text: str,
        redacted_text: str,
    ) -> list[TextBlock]:
        # Masking keeps lengths, so newline-joined blocks map back line by line.
        lines = redacted_text.split("\n")
        if text == "\n".join(block.text for block in blocks) and len(lines) == len(blocks):
            return [replace(block, text=line) for block, line in zip(blocks, lines)]
        return [replace(block, text=self.redact(block.text)) for block in blocks]

    def redact_tables(self, tables: list[TableStructure]) -> list[TableStructure]:
        return [
            replace(
                table,
                rows=[[self.redact(cell) for cell in row] for row in table.rows],
            )
            for table in tables
        ]

    def apply_to_on_device(self, result: OnDeviceResult, redacted_text: str) -> OnDeviceResult:
        return replace(
            result,
            text=redacted_text,
            text_blocks=self.redact_blocks(result.text_blocks, result.text, redacted_text),
        )

    def apply_to_cloud_ocr(self, result: CloudOcrResult) -> CloudOcrResult:
        redacted_text = self.redact(result.text)
        return replace(
            result,
            text=redacted_text,
            text_blocks=self.redact_blocks(result.text_blocks, result.text, redacted_text),
            tables=self.redact_tables(result.tables),
        )
