import pytest

from smartcapture.vision.base import BaseEntityRecognizer
from smartcapture.vision.models import DetectedPHI, NamedEntity, PhiType
from smartcapture.vision.phi_detector import MASK_CHAR, PhiDetector


class FakeEntityRecognizer(BaseEntityRecognizer):
    def __init__(self, entities: list[NamedEntity]) -> None:
        self._entities = entities
        self.calls: list[str] = []

    def recognize(self, text: str) -> list[NamedEntity]:
        self.calls.append(text)
        return self._entities


def _types(detections: list[DetectedPHI]) -> set[PhiType]:
    return {detection.type for detection in detections}


class TestRegexDetection:
    def test_email(self) -> None:
        text = "Contact john.doe@example.com for results"
        detections = PhiDetector().detect(text)
        emails = [d for d in detections if d.type is PhiType.EMAIL]
        assert len(emails) == 1
        assert emails[0].value == "john.doe@example.com"
        assert text[emails[0].start : emails[0].end] == emails[0].value

    def test_medical_record_number(self) -> None:
        detections = PhiDetector().detect("MRN: AB123456 admitted")
        mrn = [d for d in detections if d.type is PhiType.MEDICAL_RECORD_NUMBER]
        assert [d.value for d in mrn] == ["MRN: AB123456"]

    def test_phone_number(self) -> None:
        detections = PhiDetector().detect("Call +966 50 123 4567 today")
        phones = [d for d in detections if d.type is PhiType.PHONE]
        assert [d.value for d in phones] == ["+966 50 123 4567"]

    def test_short_numbers_are_not_phones(self) -> None:
        detections = PhiDetector().detect("Glucose: 40 mg/dL (70-100)")
        assert PhiType.PHONE not in _types(detections)

    def test_iso_date(self) -> None:
        detections = PhiDetector().detect("Collected 2024-01-15 at noon")
        dates = [d for d in detections if d.type is PhiType.DATE]
        assert [d.value for d in dates] == ["2024-01-15"]

    def test_national_id(self) -> None:
        detections = PhiDetector().detect("ID 1234567890")
        assert PhiType.NATIONAL_ID in _types(detections)

    def test_clean_text_has_no_phi(self) -> None:
        assert PhiDetector().detect("Hemoglobin 13.5 g/dL within range") == []

    def test_empty_text(self) -> None:
        assert PhiDetector().detect("") == []


class TestDictionaryAndEntities:
    def test_sensitive_word_is_case_insensitive(self) -> None:
        text = "Patient AHMED visited"
        detections = PhiDetector().detect(text, sensitive_words=["Ahmed"])
        names = [d for d in detections if d.type is PhiType.NAME]
        assert len(names) == 1
        assert (names[0].start, names[0].end) == (8, 13)
        assert names[0].confidence == 1.0

    def test_sensitive_word_needs_word_boundaries(self) -> None:
        detections = PhiDetector().detect("Ahmedabad office", sensitive_words=["ahmed"])
        assert PhiType.NAME not in _types(detections)

    def test_entity_recognizer_spans_are_used(self) -> None:
        recognizer = FakeEntityRecognizer([NamedEntity(PhiType.NAME, 0, 10)])
        detections = PhiDetector(recognizer).detect("Sara Smith has a follow-up")
        assert recognizer.calls == ["Sara Smith has a follow-up"]
        assert detections[0] == DetectedPHI(PhiType.NAME, "Sara Smith", 0, 10, 0.8)

    def test_results_sorted_by_start(self) -> None:
        text = "2024-01-15 email a@b.co phone +966 50 123 4567"
        starts = [d.start for d in PhiDetector().detect(text)]
        assert starts == sorted(starts)


class TestRedact:
    def test_preserves_length_and_masks_spans(self) -> None:
        text = "Call +966 50 123 4567 now"
        detections = PhiDetector().detect(text)
        redacted = PhiDetector.redact(text, detections)

        assert len(redacted) == len(text)
        for detection in detections:
            assert set(redacted[detection.start : detection.end]) == {MASK_CHAR}
        assert redacted.startswith("Call ")
        assert redacted.endswith(" now")

    def test_overlapping_spans_are_merged(self) -> None:
        detections = [
            DetectedPHI(PhiType.NAME, "abcde", 0, 5, 1.0),
            DetectedPHI(PhiType.NAME, "defgh", 3, 8, 1.0),
        ]
        assert PhiDetector.redact("abcdefghij", detections) == "********ij"

    def test_out_of_range_spans_are_clamped(self) -> None:
        detections = [DetectedPHI(PhiType.NAME, "xyz", 7, 20, 1.0)]
        assert PhiDetector.redact("abcdefghij", detections) == "abcdefg***"

    @pytest.mark.parametrize(
        "text",
        [
            "MRN: 12345678 seen on 01/02/2024",
            "Reach me at x@y.org or +1 415 555 0100",
            "No personal data here",
        ],
    )
    def test_redaction_never_changes_length(self, text: str) -> None:
        detections = PhiDetector().detect(text)
        assert len(PhiDetector.redact(text, detections)) == len(text)
