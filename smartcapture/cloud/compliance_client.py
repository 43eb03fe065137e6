"""Bilingual compliance analysis through a second multimodal chat provider."""

import time
from pathlib import Path

from smartcapture.cloud.base import BaseChatClient
from smartcapture.cloud.models import ComplianceAnalysis
from smartcapture.cloud.prompt_loader import load_prompt_template
from smartcapture.cloud.retry import RetryPolicy
from smartcapture.cloud.validator import build_compliance_analysis, parse_json_object
from smartcapture.cloud.vision_client import display_name
from smartcapture.documents.models import DocumentType
from smartcapture.logging.logger import Log
from smartcapture.vision.exceptions import InvalidInputError


class ComplianceAnalysisClient:
    """Returns bilingual summaries, compliance checks, clinical codes and risk flags."""

    def __init__(
        self,
        *,
        chat: BaseChatClient,
        model: str,
        retry_policy: RetryPolicy,
        secondary_language: str = "Arabic",
        temperature: float = 0.0,
        default_confidence: float = 0.88,
        prompt_dir: Path | None = None,
    ) -> None:
        self._chat = chat
        self._model = model
        self._retry_policy = retry_policy
        self._secondary_language = secondary_language
        self._temperature = temperature
        self._default_confidence = default_confidence
        self._prompt_template = load_prompt_template("compliance_prompt.txt", prompt_dir)

    def build_prompt(self, document_type: DocumentType, extracted_text: str | None) -> str:
        return self._prompt_template.format(
            document_type=display_name(document_type),
            secondary_language=self._secondary_language,
            extracted_text=extracted_text or "(no text extracted)",
        )

    async def analyze(
        self,
        image: bytes,
        document_type: DocumentType,
        extracted_text: str | None = None,
    ) -> ComplianceAnalysis:
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
            name="compliance_analysis",
        )
        analysis = build_compliance_analysis(
            parse_json_object(raw),
            default_confidence=self._default_confidence,
            processing_time_ms=int((time.perf_counter() - started) * 1000),
            model=self._model,
        )
        Log.info(
            "Compliance analysis completed",
            model=self._model,
            checks=len(analysis.compliance_checks),
            codes=len(analysis.medical_codes),
        )
        return analysis

    async def aclose(self) -> None:
        await self._chat.aclose()
