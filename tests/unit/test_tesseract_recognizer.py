from unittest.mock import patch

import pytest
import pytesseract

from smartcapture.documents.models import TextBlockType
from smartcapture.vision.tesseract_recognizer import (
    TesseractTextRecognizer,
    classify_block,
    detect_language,
)


def _make_data(words: list[tuple[str, float, int, int, int, int]]) -> dict[str, list]:
    """Build an image_to_data dict from (text, conf, line, left, top, width) rows."""
    data: dict[str, list] = {
        key: []
        for key in ("text", "conf", "block_num", "par_num", "line_num", "left", "top", "width", "height")
    }
    for text, conf, line, left, top, width in words:
        data["text"].append(text)
        data["conf"].append(conf)
        data["block_num"].append(1)
        data["par_num"].append(1)
        data["line_num"].append(line)
        data["left"].append(left)
        data["top"].append(top)
        data["width"].append(width)
        data["height"].append(20)
    return data


class TestHelpers:
    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("RESULTS", TextBlockType.HEADING),
            ("Patient details:", TextBlockType.HEADING),
            ("- take with food after meals", TextBlockType.LIST),
            ("1. first instruction for the patient", TextBlockType.LIST),
            ("The patient was seen today and is doing well", TextBlockType.PARAGRAPH),
        ],
    )
    def test_classify_block(self, text: str, expected: TextBlockType) -> None:
        assert classify_block(text) is expected

    def test_detect_language(self) -> None:
        assert detect_language("Blood test") == "en"
        assert detect_language("تحليل الدم") == "ar"
        assert detect_language("12345") == "en"


class TestTesseractTextRecognizer:
    async def test_undecodable_image_is_invalid(self) -> None:
        result = await TesseractTextRecognizer().recognize_text(b"not an image")
        assert result.is_valid is False
        assert result.text == ""
        assert result.confidence == 0.0

    async def test_empty_image_is_invalid(self) -> None:
        result = await TesseractTextRecognizer().recognize_text(b"")
        assert result.is_valid is False

    async def test_groups_words_into_lines(self, small_png_bytes: bytes) -> None:
        data = _make_data(
            [
                ("Glucose:", 90, 1, 10, 10, 60),
                ("40", 80, 1, 80, 10, 20),
                ("", -1, 1, 0, 0, 0),
                ("Normal", 70, 2, 10, 40, 50),
            ]
        )
        with patch(
            "smartcapture.vision.tesseract_recognizer.pytesseract.image_to_data",
            return_value=data,
        ):
            result = await TesseractTextRecognizer().recognize_text(small_png_bytes)

        assert result.is_valid
        assert result.text == "Glucose: 40\nNormal"
        assert [block.text for block in result.text_blocks] == ["Glucose: 40", "Normal"]
        first = result.text_blocks[0]
        assert first.confidence == pytest.approx(0.85)
        assert first.bounding_box.x == pytest.approx(0.05)
        assert first.bounding_box.y == pytest.approx(0.1)
        assert first.bounding_box.width == pytest.approx(0.45)
        assert result.confidence == pytest.approx(0.775)
        assert result.language == "en"

    async def test_no_words_gives_empty_valid_result(self, small_png_bytes: bytes) -> None:
        with patch(
            "smartcapture.vision.tesseract_recognizer.pytesseract.image_to_data",
            return_value=_make_data([]),
        ):
            result = await TesseractTextRecognizer().recognize_text(small_png_bytes)
        assert result.is_valid
        assert result.text == ""
        assert result.confidence == 0.0

    @pytest.mark.parametrize(
        "error",
        [
            pytesseract.TesseractError(1, "Failed loading language 'ara'"),
            pytesseract.TesseractNotFoundError(),
        ],
    )
    async def test_engine_failure_gives_empty_valid_result(
        self, small_png_bytes: bytes, error: Exception
    ) -> None:
        with patch(
            "smartcapture.vision.tesseract_recognizer.pytesseract.image_to_data",
            side_effect=error,
        ):
            result = await TesseractTextRecognizer().recognize_text(small_png_bytes)
        assert result.is_valid
        assert result.text == ""
        assert result.text_blocks == []
        assert result.confidence == 0.0

    def test_language_hints_map_to_tesseract_codes(self) -> None:
        recognizer = TesseractTextRecognizer(languages="eng")
        assert recognizer._tesseract_languages(["en", "ar"]) == "eng+ara"
        assert recognizer._tesseract_languages(None) == "eng"
