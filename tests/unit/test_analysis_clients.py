import json
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from smartcapture.cloud.base import BaseChatClient
from smartcapture.cloud.compliance_client import ComplianceAnalysisClient
from smartcapture.cloud.exceptions import CloudClientError, ParseError, ProviderError
from smartcapture.cloud.prompt_loader import load_prompt_template
from smartcapture.cloud.retry import RetryPolicy
from smartcapture.cloud.vision_client import VisionAnalysisClient
from smartcapture.documents.models import DocumentType
from smartcapture.vision.exceptions import InvalidInputError


async def _no_sleep(seconds: float) -> None:
    return None


def _make_chat(*replies: object) -> MagicMock:
    chat = MagicMock(spec=BaseChatClient)
    chat.create_vision_completion = AsyncMock(side_effect=list(replies))
    chat.aclose = AsyncMock()
    return chat


def _policy() -> RetryPolicy:
    return RetryPolicy(max_attempts=3, backoff_cap_seconds=10.0, sleep=_no_sleep)


class TestVisionAnalysisClient:
    def test_prompt_includes_focus_and_text(self) -> None:
        client = VisionAnalysisClient(chat=_make_chat(), model="gpt-4o", retry_policy=_policy())
        prompt = client.build_prompt(DocumentType.PRESCRIPTION, "Amoxicillin 500mg")
        assert "prescription" in prompt
        assert "medications, dosages" in prompt
        assert "Amoxicillin 500mg" in prompt

    def test_prompt_without_text(self) -> None:
        client = VisionAnalysisClient(chat=_make_chat(), model="gpt-4o", retry_policy=_policy())
        assert "(no text extracted)" in client.build_prompt(DocumentType.GENERIC, None)

    async def test_analyze_parses_reply(self) -> None:
        reply = json.dumps(
            {"summary": "Low glucose", "entities": [{"type": "lab_value", "value": "40"}]}
        )
        chat = _make_chat(reply)
        client = VisionAnalysisClient(chat=chat, model="gpt-4o", retry_policy=_policy())

        analysis = await client.analyze(b"img", DocumentType.LAB_REPORT, "Glucose 40")

        assert analysis.summary == "Low glucose"
        assert analysis.confidence == 0.85
        assert analysis.model == "gpt-4o"
        kwargs = chat.create_vision_completion.call_args.kwargs
        assert kwargs["model"] == "gpt-4o"
        assert kwargs["temperature"] == 0.2
        assert kwargs["image"] == b"img"

    async def test_retries_server_error_then_succeeds(self) -> None:
        chat = _make_chat(ProviderError("busy", 502), '{"summary": "ok"}')
        client = VisionAnalysisClient(chat=chat, model="m", retry_policy=_policy())
        analysis = await client.analyze(b"img", DocumentType.GENERIC)
        assert analysis.summary == "ok"
        assert chat.create_vision_completion.await_count == 2

    async def test_bad_json_is_not_retried(self) -> None:
        chat = _make_chat("definitely not json")
        client = VisionAnalysisClient(chat=chat, model="m", retry_policy=_policy())
        with pytest.raises(ParseError):
            await client.analyze(b"img", DocumentType.GENERIC)
        assert chat.create_vision_completion.await_count == 1

    async def test_empty_image_rejected(self) -> None:
        chat = _make_chat()
        client = VisionAnalysisClient(chat=chat, model="m", retry_policy=_policy())
        with pytest.raises(InvalidInputError):
            await client.analyze(b"", DocumentType.GENERIC)
        chat.create_vision_completion.assert_not_awaited()

    async def test_aclose_closes_chat(self) -> None:
        chat = _make_chat()
        client = VisionAnalysisClient(chat=chat, model="m", retry_policy=_policy())
        await client.aclose()
        chat.aclose.assert_awaited_once()


class TestComplianceAnalysisClient:
    def test_prompt_names_secondary_language(self) -> None:
        client = ComplianceAnalysisClient(
            chat=_make_chat(), model="gemini", retry_policy=_policy(), secondary_language="French"
        )
        prompt = client.build_prompt(DocumentType.INSURANCE_CLAIM, "Claim 123")
        assert "French" in prompt
        assert "insurance claim" in prompt
        assert "Claim 123" in prompt

    async def test_analyze_parses_reply(self) -> None:
        reply = json.dumps(
            {
                "summary_en": "Claim is complete",
                "summary_secondary": "المطالبة مكتملة",
                "compliance_checks": [{"rule": "Signed", "status": "passed"}],
            }
        )
        chat = _make_chat(reply)
        client = ComplianceAnalysisClient(chat=chat, model="gemini", retry_policy=_policy())

        analysis = await client.analyze(b"img", DocumentType.INSURANCE_CLAIM)

        assert analysis.summary == "Claim is complete"
        assert analysis.confidence == 0.88
        assert chat.create_vision_completion.call_args.kwargs["temperature"] == 0.0

    async def test_client_error_surfaces_after_one_call(self) -> None:
        chat = _make_chat(ProviderError("forbidden", 403))
        client = ComplianceAnalysisClient(chat=chat, model="gemini", retry_policy=_policy())
        with pytest.raises(ProviderError):
            await client.analyze(b"img", DocumentType.GENERIC)
        assert chat.create_vision_completion.await_count == 1


class TestLoadPromptTemplate:
    def test_loads_bundled_templates(self) -> None:
        assert "{extracted_text}" in load_prompt_template("vision_prompt.txt")
        assert "{secondary_language}" in load_prompt_template("compliance_prompt.txt")

    def test_loads_custom_directory(self, tmp_path: Path) -> None:
        (tmp_path / "vision_prompt.txt").write_text("Describe {document_type}")
        assert load_prompt_template("vision_prompt.txt", tmp_path) == "Describe {document_type}"

    def test_missing_file_raises(self) -> None:
        with pytest.raises(CloudClientError, match="Failed to load prompt"):
            load_prompt_template("missing.txt", Path("/nonexistent"))
