from smartcapture.cloud.models import CloudOcrResult
from smartcapture.documents.models import BoundingBox, TableStructure, TextBlock
from smartcapture.processor.redaction import TextRedactor
from smartcapture.vision.models import OnDeviceResult
from smartcapture.vision.phi_detector import PhiDetector
from smartcapture.vision.processor import OnDeviceVisionProcessor

_BOX = BoundingBox(0.0, 0.0, 1.0, 0.1)


def _make_redactor(sensitive_words: list[str] | None = None) -> TextRedactor:
    vision = OnDeviceVisionProcessor(recognizer=None, phi_detector=PhiDetector())
    return TextRedactor(vision, sensitive_words or [])


def _block(text: str) -> TextBlock:
    return TextBlock(text=text, bounding_box=_BOX, confidence=0.9)


class TestTextRedactor:
    def test_redact_keeps_length(self) -> None:
        redactor = _make_redactor()
        text = "Mail a@b.io now"
        redacted = redactor.redact(text)
        assert len(redacted) == len(text)
        assert "a@b.io" not in redacted

    def test_text_without_phi_unchanged(self) -> None:
        assert _make_redactor().redact("Glucose 40") == "Glucose 40"

    def test_blocks_follow_redacted_lines(self) -> None:
        redactor = _make_redactor(["Alice"])
        result = OnDeviceResult(
            text="Name: Alice\nGlucose 40",
            text_blocks=[_block("Name: Alice"), _block("Glucose 40")],
            confidence=0.9,
        )
        redacted_text = redactor.redact(result.text)

        redacted = redactor.apply_to_on_device(result, redacted_text)

        assert redacted.text == "Name: *****\nGlucose 40"
        assert [b.text for b in redacted.text_blocks] == ["Name: *****", "Glucose 40"]
        assert redacted.text_blocks[0].bounding_box == _BOX
        assert result.text == "Name: Alice\nGlucose 40"

    def test_cloud_result_blocks_and_tables_redacted(self) -> None:
        redactor = _make_redactor(["Alice"])
        result = CloudOcrResult(
            text="Report for Alice",
            text_blocks=[_block("Report for"), _block("Alice")],
            tables=[
                TableStructure(
                    rows=[["Patient", "Alice"], ["Glucose", "40"]],
                    bounding_box=_BOX,
                    confidence=0.9,
                )
            ],
            confidence=0.95,
        )

        redacted = redactor.apply_to_cloud_ocr(result)

        assert redacted.text == "Report for *****"
        assert [b.text for b in redacted.text_blocks] == ["Report for", "*****"]
        assert redacted.tables[0].rows == [["Patient", "*****"], ["Glucose", "40"]]
        assert redacted.confidence == 0.95
