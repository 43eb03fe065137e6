from unittest.mock import AsyncMock, MagicMock, patch

import numpy as np
import pytest

from smartcapture.config.settings import Settings
from smartcapture.documents.models import DocumentType
from smartcapture.vision.exceptions import InvalidInputError
from smartcapture.vision.factory import VisionProcessorFactory
from smartcapture.vision.models import OnDeviceResult
from smartcapture.vision.phi_detector import PhiDetector
from smartcapture.vision.processor import OnDeviceVisionProcessor
from smartcapture.vision.spacy_recognizer import SpacyEntityRecognizer
from smartcapture.vision.tesseract_recognizer import TesseractTextRecognizer


def _make_processor() -> tuple[OnDeviceVisionProcessor, MagicMock]:
    recognizer = MagicMock()
    recognizer.recognize_text = AsyncMock(return_value=OnDeviceResult(text="Glucose: 40", confidence=0.9))
    return OnDeviceVisionProcessor(recognizer, PhiDetector()), recognizer


class TestOnDeviceVisionProcessor:
    async def test_recognize_text_delegates(self) -> None:
        processor, recognizer = _make_processor()
        result = await processor.recognize_text(b"img", ["en"])
        assert result.text == "Glucose: 40"
        recognizer.recognize_text.assert_awaited_once_with(b"img", ["en"])

    def test_classify_document_type(self) -> None:
        processor, _ = _make_processor()
        assert processor.classify_document_type("Lab test results") is DocumentType.LAB_REPORT

    def test_detect_and_redact_phi(self) -> None:
        processor, _ = _make_processor()
        text = "Email me: a.b@clinic.org"
        detections = processor.detect_phi(text)
        redacted = processor.redact_phi(text, detections)
        assert "a.b@clinic.org" not in redacted
        assert redacted.startswith("Email me: ")

    async def test_detect_barcodes_rejects_undecodable_image(self) -> None:
        processor, _ = _make_processor()
        with pytest.raises(InvalidInputError):
            await processor.detect_barcodes(b"garbage")

    async def test_detect_barcodes_on_blank_image(self, small_png_bytes: bytes) -> None:
        processor, _ = _make_processor()
        assert await processor.detect_barcodes(small_png_bytes) == []


class TestVisionProcessorFactory:
    def test_builds_tesseract_and_spacy(self) -> None:
        settings = MagicMock(tesseract_languages="eng", spacy_model="en_core_web_sm")
        processor = VisionProcessorFactory.create(settings)
        assert isinstance(processor._recognizer, TesseractTextRecognizer)
        assert isinstance(processor._phi_detector._entity_recognizer, SpacyEntityRecognizer)

    def test_empty_model_disables_ner(self) -> None:
        settings = Settings(spacy_model="")
        processor = VisionProcessorFactory.create(settings)
        assert processor._phi_detector._entity_recognizer is None


class TestSpacyEntityRecognizer:
    def test_maps_labels_to_phi_types(self) -> None:
        entity = MagicMock(label_="PERSON", start_char=0, end_char=4)
        ignored = MagicMock(label_="CARDINAL", start_char=5, end_char=7)
        nlp = MagicMock(return_value=MagicMock(ents=[entity, ignored]))
        with patch("smartcapture.vision.spacy_recognizer.spacy.load", return_value=nlp) as load:
            recognizer = SpacyEntityRecognizer("en_core_web_sm")
            entities = recognizer.recognize("John 42")
            recognizer.recognize("again")

        assert len(entities) == 1
        assert (entities[0].start, entities[0].end) == (0, 4)
        load.assert_called_once()

    def test_missing_model_finds_nothing(self) -> None:
        with patch(
            "smartcapture.vision.spacy_recognizer.spacy.load",
            side_effect=OSError("not found"),
        ) as load:
            recognizer = SpacyEntityRecognizer("missing_model")
            assert recognizer.recognize("John Smith") == []
            assert recognizer.recognize("Jane Doe") == []
        load.assert_called_once()

    def test_missing_model_keeps_pattern_detection(self) -> None:
        with patch(
            "smartcapture.vision.spacy_recognizer.spacy.load",
            side_effect=OSError("not found"),
        ):
            detector = PhiDetector(SpacyEntityRecognizer("missing_model"))
            detections = detector.detect("John wrote to john@mail.com", ["john"])

        assert {d.type.value for d in detections} == {"name", "email"}


def test_decode_image_round_trip(small_png_bytes: bytes) -> None:
    from smartcapture.vision.imaging import decode_image

    image = decode_image(small_png_bytes)
    assert isinstance(image, np.ndarray)
    assert image.shape == (100, 200, 3)
