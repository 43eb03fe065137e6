"""Semantic document analysis through a multimodal chat model."""

import time
from pathlib import Path

from smartcapture.cloud.base import BaseChatClient
from smartcapture.cloud.models import VisionAnalysis
from smartcapture.cloud.prompt_loader import load_prompt_template
from smartcapture.cloud.retry import RetryPolicy
from smartcapture.cloud.validator import build_vision_analysis, parse_json_object
from smartcapture.documents.models import DocumentType
from smartcapture.logging.logger import Log
from smartcapture.vision.exceptions import InvalidInputError

_FOCUS = {
    DocumentType.MEDICAL_REPORT: "Focus on medical findings, diagnoses, and clinical significance.",
    DocumentType.LAB_REPORT: "Focus on medical findings, diagnoses, and clinical significance.",
    DocumentType.PRESCRIPTION: "Focus on medications, dosages, and usage instructions.",
    DocumentType.PHARMACY_LABEL: "Focus on medications, dosages, and usage instructions.",
    DocumentType.INSURANCE_CLAIM: "Focus on claim details, coverage, and any issues or denials.",
    DocumentType.FOOD_LABEL: "Focus on nutritional information and dietary considerations.",
}

_NO_TEXT = "(no text extracted)"


def display_name(document_type: DocumentType) -> str:
    return document_type.value.replace("_", " ")


class VisionAnalysisClient:
    """Returns summary, insights, action items and entities for a document image."""

    def __init__(
        self,
        *,
        chat: BaseChatClient,
        model: str,
        retry_policy: RetryPolicy,
        temperature: float = 0.2,
        default_confidence: float = 0.85,
        prompt_dir: Path | None = None,
    ) -> None:
        self._chat = chat
        self._model = model
        self._retry_policy = retry_policy
        self._temperature = temperature
        self._default_confidence = default_confidence
        self._prompt_template = load_prompt_template("vision_prompt.txt", prompt_dir)

    def build_prompt(self, document_type: DocumentType, extracted_text: str | None) -> str:
        return self._prompt_template.format(
            document_type=display_name(document_type),
            focus=_FOCUS.get(document_type, ""),
            extracted_text=extracted_text or _NO_TEXT,
        )

    async def analyze(
        self,
        image: bytes,
        document_type: DocumentType,
        extracted_text: str | None = None,
    ) -> VisionAnalysis:
        """Raises InvalidInputError, ProviderError, NetworkUnavailableError or ParseError."""
        if not image:
            raise InvalidInputError("Cannot analyze an empty image")
        prompt = self.build_prompt(document_type, extracted_text)
        started = time.perf_counter()
        raw = await self._retry_policy.call(
            lambda: self._chat.create_vision_completion(
                model=self._model,
                temperature=self._temperature,
                prompt=prompt,
                image=image,
            ),
            name="vision_analysis",
        )
        analysis = build_vision_analysis(
            parse_json_object(raw),
            default_confidence=self._default_confidence,
            processing_time_ms=int((time.perf_counter() - started) * 1000),
            model=self._model,
        )
        Log.info(
            "Vision analysis completed",
            model=self._model,
            entities=len(analysis.entities),
            actions=len(analysis.action_items),
        )
        return analysis

    async def aclose(self) -> None:
        await self._chat.aclose()
