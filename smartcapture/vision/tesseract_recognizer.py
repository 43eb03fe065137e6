"""Offline text recognition using Tesseract.

Words reported by ``pytesseract.image_to_data`` are grouped into lines; each
line becomes a ``TextBlock`` with a normalized bounding box and a heuristic
block type.
"""

import asyncio
import re
import time

import cv2
import numpy as np
import pytesseract
from PIL import Image

from smartcapture.documents.models import BoundingBox, TextBlock, TextBlockType
from smartcapture.logging.logger import Log
from smartcapture.vision.base import BaseTextRecognizer
from smartcapture.vision.imaging import decode_image
from smartcapture.vision.models import OnDeviceResult

_ARABIC_RE = re.compile(r"[\u0600-\u06FF\u0750-\u077F\uFB50-\uFDFF\uFE70-\uFEFF]")
_LATIN_RE = re.compile(r"[A-Za-z\u00C0-\u024F]")
_NUMBERED_RE = re.compile(r"^\d+[.)]\s*\S")
_BULLETS = ("•", "-", "*")

# Tesseract language codes for the BCP-47 hints callers pass in.
_HINT_TO_TESSERACT = {"en": "eng", "ar": "ara"}


def classify_block(text: str) -> TextBlockType:
    """Heading for short upper-case or colon-terminated lines, list for bullets."""
    trimmed = text.strip()
    if len(trimmed) < 50 and (trimmed.endswith(":") or trimmed.upper() == trimmed):
        return TextBlockType.HEADING
    if trimmed.startswith(_BULLETS) or _NUMBERED_RE.match(trimmed):
        return TextBlockType.LIST
    return TextBlockType.PARAGRAPH


def detect_language(text: str) -> str:
    """Return ``ar``, ``en`` or ``mixed`` from the share of Arabic letters."""
    arabic = len(_ARABIC_RE.findall(text))
    latin = len(_LATIN_RE.findall(text))
    total = arabic + latin
    if total == 0:
        return "en"
    ratio = arabic / total
    if ratio > 0.6:
        return "ar"
    if ratio > 0.2:
        return "mixed"
    return "en"


class TesseractTextRecognizer(BaseTextRecognizer):
    """Tesseract OCR engine run in a worker thread."""

    def __init__(self, languages: str = "eng+ara", psm: int = 3, oem: int = 3) -> None:
        self._languages = languages
        self._psm = psm
        self._oem = oem

    def _tesseract_languages(self, language_hints: list[str] | None) -> str:
        if not language_hints:
            return self._languages
        codes = [_HINT_TO_TESSERACT.get(hint, hint) for hint in language_hints]
        return "+".join(dict.fromkeys(codes))

    async def recognize_text(
        self,
        image: bytes,
        language_hints: list[str] | None = None,
    ) -> OnDeviceResult:
        started = time.perf_counter()
        decoded = decode_image(image)
        if decoded is None:
            Log.warning("On-device OCR skipped: image could not be decoded")
            return OnDeviceResult.invalid(int((time.perf_counter() - started) * 1000))

        languages = self._tesseract_languages(language_hints)
        blocks = await asyncio.to_thread(self._recognize, decoded, languages)

        text = "\n".join(block.text for block in blocks)
        confidence = (
            sum(block.confidence for block in blocks) / len(blocks) if blocks else 0.0
        )
        elapsed_ms = int((time.perf_counter() - started) * 1000)
        Log.info("On-device OCR completed", blocks=len(blocks), elapsed_ms=elapsed_ms)
        return OnDeviceResult(
            text=text,
            text_blocks=blocks,
            confidence=round(confidence, 4),
            language=detect_language(text),
            processing_time_ms=elapsed_ms,
        )

    def _recognize(self, image: np.ndarray, languages: str) -> list[TextBlock]:
        height, width = image.shape[:2]
        pil_image = Image.fromarray(cv2.cvtColor(image, cv2.COLOR_BGR2RGB))
        try:
            data = pytesseract.image_to_data(
                pil_image,
                lang=languages,
                config=f"--psm {self._psm} --oem {self._oem}",
                output_type=pytesseract.Output.DICT,
            )
        except (pytesseract.TesseractError, pytesseract.TesseractNotFoundError) as exc:
            Log.warning(
                "On-device OCR engine failed, returning empty text",
                languages=languages,
                error=str(exc),
            )
            return []
        return self._group_lines(data, width, height)

    @staticmethod
    def _group_lines(data: dict, width: int, height: int) -> list[TextBlock]:
        lines: dict[tuple[int, int, int], list[int]] = {}
        for i, word in enumerate(data["text"]):
            if not str(word).strip() or float(data["conf"][i]) < 0:
                continue
            key = (data["block_num"][i], data["par_num"][i], data["line_num"][i])
            lines.setdefault(key, []).append(i)

        blocks: list[TextBlock] = []
        for indices in lines.values():
            text = " ".join(str(data["text"][i]).strip() for i in indices)
            left = min(data["left"][i] for i in indices)
            top = min(data["top"][i] for i in indices)
            right = max(data["left"][i] + data["width"][i] for i in indices)
            bottom = max(data["top"][i] + data["height"][i] for i in indices)
            confidence = sum(float(data["conf"][i]) for i in indices) / len(indices) / 100.0
            blocks.append(
                TextBlock(
                    text=text,
                    bounding_box=BoundingBox(
                        x=left / width,
                        y=top / height,
                        width=(right - left) / width,
                        height=(bottom - top) / height,
                    ),
                    confidence=min(max(confidence, 0.0), 1.0),
                    type=classify_block(text),
                    language=detect_language(text),
                )
            )
        return blocks
