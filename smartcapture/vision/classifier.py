import re

import numpy as np

from smartcapture.documents.models import DocumentType

# Checked in order; the first table with a matching word wins.
_KEYWORD_TABLES: list[tuple[DocumentType, frozenset[str]]] = [
    (DocumentType.MEDICAL_REPORT, frozenset({"diagnosis", "patient", "medical", "hospital", "clinic"})),
    (DocumentType.PRESCRIPTION, frozenset({"medication", "prescription", "dose", "pharmacy", "rx"})),
    (DocumentType.LAB_REPORT, frozenset({"test", "result", "lab", "laboratory", "analysis"})),
    (DocumentType.INSURANCE_CLAIM, frozenset({"insurance", "claim", "policy", "coverage", "premium"})),
    (DocumentType.FOOD_LABEL, frozenset({"nutrition", "calories", "ingredients", "serving", "fat"})),
    (DocumentType.CONTRACT, frozenset({"agreement", "contract", "terms", "conditions", "party"})),
]

_WORD_RE = re.compile(r"\w+")
_COLUMN_SEPARATOR_RE = re.compile(r"\t| {2,}")


def is_tabular(text: str) -> bool:
    """True when most lines split into a similar number (>1) of columns.

    Columns are separated by tabs or runs of two or more spaces.
    """
    lines = text.splitlines()
    if not lines:
        return False
    counts = [len(_COLUMN_SEPARATOR_RE.split(line.strip())) for line in lines]
    average = sum(counts) // len(counts)
    similar = sum(1 for count in counts if abs(count - average) <= 1)
    return average > 1 and similar / len(lines) > 0.7


def classify_document_type(text: str, image: np.ndarray | None = None) -> DocumentType:
    """Classify recognized text into a document type.

    Pure function of ``text``; the image is accepted for callers that have it
    but does not influence the result.
    """
    words = {word.lower() for word in _WORD_RE.findall(text)}
    for document_type, keywords in _KEYWORD_TABLES:
        if words & keywords:
            return document_type
    if is_tabular(text):
        return DocumentType.SPREADSHEET
    return DocumentType.GENERIC
