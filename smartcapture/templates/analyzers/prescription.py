import re
from dataclasses import dataclass

from smartcapture.cloud.models import Entity
from smartcapture.documents.models import DocumentType, TableStructure
from smartcapture.templates.base import BaseTemplateAnalyzer
from smartcapture.templates.models import Interpretation, TemplateAnalysisResult, TemplateFinding

# Common generic names recognized when no analyzer supplied medication entities.
DRUG_LEXICON: tuple[str, ...] = (
    "acetaminophen", "amlodipine", "amoxicillin", "aspirin", "atorvastatin",
    "azithromycin", "cetirizine", "ciprofloxacin", "clopidogrel", "gabapentin",
    "ibuprofen", "insulin", "levothyroxine", "lisinopril", "losartan",
    "metformin", "metoprolol", "omeprazole", "pantoprazole", "paracetamol",
    "prednisone", "salbutamol", "sertraline", "simvastatin", "warfarin",
)

FREQUENCIES: tuple[str, ...] = (
    "once daily",
    "twice daily",
    "three times daily",
    "four times daily",
    "every 12 hours",
    "every 8 hours",
    "at bedtime",
    "as needed",
)

PILL_ORGANIZER_THRESHOLD = 3

_DOSAGE_RE = re.compile(
    r"(\d+(?:\.\d+)?\s*(?:mg|mcg|ml|g|units?|tablets?|capsules?))\b", re.IGNORECASE
)
_DURATION_RE = re.compile(r"for\s+(\d+\s+(?:days?|weeks?|months?))", re.IGNORECASE)
_WINDOW_CHARS = 160


@dataclass(frozen=True)
class Medication:
    name: str
    dosage: str
    frequency: str
    duration: str | None


def _window(text: str, start: int) -> str:
    """Text after a mention, up to the end of its line."""
    end = text.find("\n", start)
    if end == -1:
        end = len(text)
    return text[start : min(end, start + _WINDOW_CHARS)]


def _mentions(text: str, entities: list[Entity]) -> list[tuple[str, int]]:
    """(name, end offset) of each distinct medication, in order of appearance."""
    names = [e.value for e in entities if e.type.lower() == "medication"]
    lowered = text.lower()
    mentions: dict[str, tuple[str, int]] = {}
    for name in names:
        idx = lowered.find(name.lower())
        mentions.setdefault(name.lower(), (name, idx + len(name) if idx >= 0 else -1))
    for drug in DRUG_LEXICON:
        match = re.search(rf"\b{drug}\b", lowered)
        if match is not None:
            mentions.setdefault(drug, (text[match.start() : match.end()], match.end()))
    ordered = sorted(mentions.values(), key=lambda m: (m[1] < 0, m[1]))
    return ordered


def extract_medications(text: str, entities: list[Entity]) -> list[Medication]:
    medications: list[Medication] = []
    for name, end in _mentions(text, entities):
        window = _window(text, end) if end >= 0 else ""
        dosage = _DOSAGE_RE.search(window)
        duration = _DURATION_RE.search(window)
        lowered = window.lower()
        frequency = next((f for f in FREQUENCIES if f in lowered), None)
        medications.append(
            Medication(
                name=name,
                dosage=dosage.group(1) if dosage else "As prescribed",
                frequency=frequency.capitalize() if frequency else "As directed",
                duration=duration.group(1) if duration else None,
            )
        )
    return medications


class PrescriptionAnalyzer(BaseTemplateAnalyzer):
    def analyze(
        self,
        document_type: DocumentType,
        text: str,
        tables: list[TableStructure],
        entities: list[Entity],
    ) -> TemplateAnalysisResult:
        medications = extract_medications(text, entities)
        findings = [
            TemplateFinding(
                category="Medication",
                key=medication.name,
                value=medication.dosage,
                unit=medication.frequency,
            )
            for medication in medications
        ]
        interpretations = [
            Interpretation(
                title=medication.name,
                description=(
                    f"Dosage: {medication.dosage}\n"
                    f"Frequency: {medication.frequency}\n"
                    f"Duration: {medication.duration or 'As prescribed'}"
                ),
                confidence=0.9,
            )
            for medication in medications
        ]
        recommendations = [
            "Take medications exactly as prescribed",
            "Set reminders for medication times",
            "Contact pharmacist for any questions",
        ]
        if len(medications) > PILL_ORGANIZER_THRESHOLD:
            recommendations.append("Consider using a pill organizer for multiple medications")

        return TemplateAnalysisResult(
            template_type=DocumentType.PRESCRIPTION,
            findings=findings,
            interpretations=interpretations,
            recommendations=recommendations,
        )
