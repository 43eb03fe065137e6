import pytest

from smartcapture.documents.models import DocumentType
from smartcapture.vision.classifier import classify_document_type, is_tabular


class TestClassifyDocumentType:
    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("Final diagnosis: hypertension", DocumentType.MEDICAL_REPORT),
            ("Rx: amoxicillin 500 mg, dose twice daily", DocumentType.PRESCRIPTION),
            ("Laboratory results for CBC", DocumentType.LAB_REPORT),
            ("Insurance claim form", DocumentType.INSURANCE_CLAIM),
            ("Nutrition Facts  Calories 250", DocumentType.FOOD_LABEL),
            ("This agreement is made between the parties", DocumentType.CONTRACT),
            ("Hello world", DocumentType.GENERIC),
            ("", DocumentType.GENERIC),
        ],
    )
    def test_keywords(self, text: str, expected: DocumentType) -> None:
        assert classify_document_type(text) is expected

    def test_earlier_table_wins(self) -> None:
        assert classify_document_type("Patient lab test") is DocumentType.MEDICAL_REPORT

    def test_keywords_match_whole_words_only(self) -> None:
        assert classify_document_type("contestant fatigue") is DocumentType.GENERIC

    def test_tabular_text_is_spreadsheet(self) -> None:
        text = "Item  Qty  Price\nApples  3  1.20\nPears  5  2.00\nPlums  1  0.50"
        assert classify_document_type(text) is DocumentType.SPREADSHEET

    def test_is_idempotent(self) -> None:
        text = "Laboratory results for CBC"
        assert classify_document_type(text) is classify_document_type(text)


class TestIsTabular:
    def test_tab_separated(self) -> None:
        assert is_tabular("a\tb\tc\nd\te\tf")

    def test_prose_is_not_tabular(self) -> None:
        assert not is_tabular("one line of prose\nanother line of prose")

    def test_empty(self) -> None:
        assert not is_tabular("")
