"""PHI detection and equal-length redaction.

Processing flow:
1. Named entities (person/organization/place) from the pluggable recognizer,
   on the text as given.
2. Transliterate the text to Latin-ASCII-lowercase via ICU, keeping a
   character mapping back to the original offsets.
3. On the transliterated copy: user sensitive-word dictionary, then regex
   patterns (MRN, email, national ID, dates, phones).
4. Map every span back to original offsets.

Redaction masks each merged span with ``*`` of the same length, working
from the highest offset down.
"""

import re
from dataclasses import dataclass
from typing import ClassVar

import icu  # type: ignore[import-untyped]

from smartcapture.logging.logger import Log
from smartcapture.vision.base import BaseEntityRecognizer
from smartcapture.vision.models import DetectedPHI, PhiType

MASK_CHAR = "*"

_ENTITY_CONFIDENCE = 0.8
_DICTIONARY_CONFIDENCE = 1.0


@dataclass
class _Detection:
    """A detected PHI span in the transliterated text."""

    type: PhiType
    trans_start: int
    trans_end: int
    confidence: float


class PhiDetector:
    """Deterministic PHI detector with an optional NER backend."""

    _ICU_TRANSFORM: ClassVar[str] = "Any-Latin; Latin-ASCII; Lower"

    _MONTHS: ClassVar[str] = (
        r"(?:jan|feb|mar|apr|may|jun|jul|aug|sep|sept|oct|nov|dec)[a-z]*\.?"
    )

    # Patterns run on lower-cased ASCII; order sets precedence on ties.
    _REGEX_RULES: ClassVar[list[tuple[PhiType, re.Pattern[str], float]]] = [
        (
            PhiType.MEDICAL_RECORD_NUMBER,
            re.compile(r"\b(?:mrn|patient id)[:\s]*[a-z0-9]{6,12}\b"),
            0.85,
        ),
        (PhiType.EMAIL, re.compile(r"[\w.\-+]+@[\w.\-]+\.\w{2,}"), 0.95),
        (PhiType.NATIONAL_ID, re.compile(r"\b[1-2][0-9]{9}\b"), 0.75),
        (
            PhiType.DATE,
            re.compile(
                r"\b\d{4}-\d{1,2}-\d{1,2}\b"
                r"|\b\d{1,2}[/.\-]\d{1,2}[/.\-]\d{2,4}\b"
                rf"|\b{_MONTHS}\s+\d{{1,2}},?\s+\d{{4}}\b"
                rf"|\b\d{{1,2}}\s+{_MONTHS}\s+\d{{4}}\b"
            ),
            0.9,
        ),
        (PhiType.PHONE, re.compile(r"(?<!\w)\+?\d[\d\s\-().]{7,18}\d(?!\w)"), 0.95),
    ]

    _MIN_PHONE_DIGITS: ClassVar[int] = 9

    def __init__(self, entity_recognizer: BaseEntityRecognizer | None = None) -> None:
        self._entity_recognizer = entity_recognizer
        self._transliterator: icu.Transliterator = icu.Transliterator.createInstance(
            self._ICU_TRANSFORM
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def detect(self, text: str, sensitive_words: list[str] | None = None) -> list[DetectedPHI]:
        """Find PHI spans in ``text``.

        Args:
            text: Recognized document text.
            sensitive_words: Extra words (names) the user wants treated as PHI.

        Returns:
            Detections sorted by start offset. Spans may overlap.
        """
        if not text:
            return []

        spans: list[tuple[PhiType, int, int, float]] = []
        if self._entity_recognizer is not None:
            for entity in self._entity_recognizer.recognize(text):
                spans.append((entity.type, entity.start, entity.end, _ENTITY_CONFIDENCE))

        transliterated, trans_to_orig = self._transliterate_with_mapping(text)
        dictionary = {self._transliterator.transliterate(w).strip() for w in sensitive_words or []}
        detections = self._detect_dictionary(transliterated, dictionary)
        detections.extend(self._detect_regex(transliterated))
        for detection in detections:
            mapped = self._map_to_original(detection, trans_to_orig)
            if mapped is not None:
                spans.append((detection.type, mapped[0], mapped[1], detection.confidence))

        seen: set[tuple[PhiType, int, int]] = set()
        results: list[DetectedPHI] = []
        for phi_type, start, end, confidence in sorted(spans, key=lambda s: (s[1], -s[2])):
            if (phi_type, start, end) in seen or end <= start:
                continue
            seen.add((phi_type, start, end))
            results.append(DetectedPHI(phi_type, text[start:end], start, end, confidence))

        if results:
            Log.info("PHI detected", count=len(results))
        return results

    @staticmethod
    def redact(text: str, detections: list[DetectedPHI]) -> str:
        """Mask every detected span with an equal-length run of ``*``.

        Overlapping spans are merged first; the result has the same length as
        ``text`` and every character outside a span is unchanged.
        """
        merged: list[list[int]] = []
        for start, end in sorted((d.start, d.end) for d in detections):
            start, end = max(start, 0), min(end, len(text))
            if start >= end:
                continue
            if merged and start <= merged[-1][1]:
                merged[-1][1] = max(merged[-1][1], end)
            else:
                merged.append([start, end])

        result = text
        for start, end in reversed(merged):
            result = result[:start] + MASK_CHAR * (end - start) + result[end:]
        return result

    # ------------------------------------------------------------------
    # Transliteration with char mapping
    # ------------------------------------------------------------------

    def _transliterate_with_mapping(self, text: str) -> tuple[str, list[int]]:
        """Transliterate ``text`` character-by-character.

        Returns (transliterated, trans_to_orig) where ``trans_to_orig[j]`` is
        the index in ``text`` that produced transliterated char ``j``.
        """
        parts: list[str] = []
        trans_to_orig: list[int] = []
        for orig_idx, ch in enumerate(text):
            t = self._transliterator.transliterate(ch)
            parts.append(t)
            trans_to_orig.extend([orig_idx] * len(t))
        return "".join(parts), trans_to_orig

    # ------------------------------------------------------------------
    # Detectors on the transliterated copy
    # ------------------------------------------------------------------

    @staticmethod
    def _detect_dictionary(transliterated: str, dictionary: set[str]) -> list[_Detection]:
        detections: list[_Detection] = []
        for word in dictionary:
            if not word:
                continue
            start = 0
            while True:
                idx = transliterated.find(word, start)
                if idx == -1:
                    break
                end = idx + len(word)
                before_ok = idx == 0 or not transliterated[idx - 1].isalnum()
                after_ok = end == len(transliterated) or not transliterated[end].isalnum()
                if before_ok and after_ok:
                    detections.append(_Detection(PhiType.NAME, idx, end, _DICTIONARY_CONFIDENCE))
                start = idx + 1
        return detections

    def _detect_regex(self, transliterated: str) -> list[_Detection]:
        detections: list[_Detection] = []
        for phi_type, pattern, confidence in self._REGEX_RULES:
            for m in pattern.finditer(transliterated):
                if phi_type is PhiType.PHONE and (
                    sum(ch.isdigit() for ch in m.group()) < self._MIN_PHONE_DIGITS
                ):
                    continue
                detections.append(_Detection(phi_type, m.start(), m.end(), confidence))
        return detections

    @staticmethod
    def _map_to_original(
        detection: _Detection,
        trans_to_orig: list[int],
    ) -> tuple[int, int] | None:
        """Map a transliterated span to an (start, end) span in the original."""
        if detection.trans_start >= len(trans_to_orig) or detection.trans_end < 1:
            return None
        orig_start = trans_to_orig[detection.trans_start]
        last = min(detection.trans_end - 1, len(trans_to_orig) - 1)
        return orig_start, trans_to_orig[last] + 1
