from typing import ClassVar

from smartcapture.cloud.compliance_client import ComplianceAnalysisClient
from smartcapture.cloud.ocr_client import CloudOcrClient
from smartcapture.cloud.openai_chat_adapter import OpenAIChatAdapter
from smartcapture.cloud.retry import RetryPolicy
from smartcapture.cloud.vision_client import VisionAnalysisClient
from smartcapture.config.settings import Settings


class CloudClientFactory:
    """Creates the configured cloud clients.

    A client whose API key is empty is not configured and comes back as
    ``None``; the orchestrator then defers that provider's work.
    """

    OPENAI_COMPATIBLE_BASE_URLS: ClassVar[dict[str, str]] = {
        "gemini": "https://generativelanguage.googleapis.com/v1beta/openai/",
        "openrouter": "https://openrouter.ai/api/v1",
        "groq": "https://api.groq.com/openai/v1",
        "together": "https://api.together.xyz/v1",
        "ollama": "http://localhost:11434/v1",
    }

    @classmethod
    def create_retry_policy(cls, settings: Settings) -> RetryPolicy:
        return RetryPolicy(settings.cloud_max_attempts, settings.cloud_backoff_cap_seconds)

    @classmethod
    def create_ocr_client(cls, settings: Settings) -> CloudOcrClient | None:
        if not settings.ocr_api_key:
            return None
        return CloudOcrClient(
            api_key=settings.ocr_api_key,
            base_url=settings.ocr_base_url,
            retry_policy=cls.create_retry_policy(settings),
            request_timeout_seconds=settings.ocr_request_timeout_seconds,
            resource_timeout_seconds=settings.ocr_resource_timeout_seconds,
        )

    @classmethod
    def create_vision_client(cls, settings: Settings) -> VisionAnalysisClient | None:
        if not settings.vision_api_key:
            return None
        chat = OpenAIChatAdapter(
            api_key=settings.vision_api_key,
            request_timeout_seconds=settings.vision_request_timeout_seconds,
            resource_timeout_seconds=settings.vision_resource_timeout_seconds,
            base_url=cls._resolve_base_url(settings.vision_provider, settings.vision_base_url),
        )
        return VisionAnalysisClient(
            chat=chat,
            model=settings.vision_model_name,
            retry_policy=cls.create_retry_policy(settings),
        )

    @classmethod
    def create_compliance_client(cls, settings: Settings) -> ComplianceAnalysisClient | None:
        if not settings.compliance_api_key:
            return None
        chat = OpenAIChatAdapter(
            api_key=settings.compliance_api_key,
            request_timeout_seconds=settings.vision_request_timeout_seconds,
            resource_timeout_seconds=settings.vision_resource_timeout_seconds,
            base_url=cls._resolve_base_url(
                settings.compliance_provider, settings.compliance_base_url
            ),
        )
        return ComplianceAnalysisClient(
            chat=chat,
            model=settings.compliance_model_name,
            retry_policy=cls.create_retry_policy(settings),
            secondary_language=settings.compliance_secondary_language,
        )

    @classmethod
    def _resolve_base_url(cls, provider: str, configured_url: str) -> str | None:
        provider = provider.lower()
        if provider == "openai":
            return None
        if provider == "openai_compatible":
            url = (configured_url or "").strip()
            if not url:
                raise ValueError(
                    "A base URL is required for provider=openai_compatible"
                )
            return url
        default_base_url = cls.OPENAI_COMPATIBLE_BASE_URLS.get(provider)
        if default_base_url is not None:
            return (configured_url or "").strip() or default_base_url
        supported = ["openai", "openai_compatible", *sorted(cls.OPENAI_COMPATIBLE_BASE_URLS)]
        raise ValueError(f"Unknown vision provider '{provider}'. Choose from: {supported}")
