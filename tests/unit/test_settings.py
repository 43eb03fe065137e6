import pytest
from pydantic import ValidationError

from smartcapture.config.settings import Settings


class TestSettingsDefaults:
    def test_default_app_env(self) -> None:
        s = Settings()
        assert s.app_env == "dev"

    def test_default_db_port(self) -> None:
        s = Settings()
        assert s.db_port == 5432

    def test_default_job_priority(self) -> None:
        s = Settings()
        assert s.offline_job_priority == 5

    def test_default_retry_policy(self) -> None:
        s = Settings()
        assert s.cloud_max_attempts == 3
        assert s.cloud_backoff_cap_seconds == 10.0

    def test_default_quad_gates(self) -> None:
        s = Settings()
        assert s.quad_min_confidence == 0.6
        assert (s.quad_min_aspect_ratio, s.quad_max_aspect_ratio) == (0.3, 1.0)

    def test_default_providers(self) -> None:
        s = Settings()
        assert s.vision_provider == "openai"
        assert s.compliance_provider == "gemini"

    def test_default_audit_sink(self) -> None:
        s = Settings()
        assert s.audit_sink == "log"


class TestSettingsFromEnv:
    def test_loads_app_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("APP_ENV", "production")
        s = Settings()
        assert s.app_env == "production"

    def test_loads_log_level(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("LOG_LEVEL", "DEBUG")
        s = Settings()
        assert s.log_level == "DEBUG"

    def test_loads_storage_backend(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("STORAGE_BACKEND", "memory")
        s = Settings()
        assert s.storage_backend == "memory"

    def test_loads_ocr_api_key(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("OCR_API_KEY", "sk-test")
        s = Settings()
        assert s.ocr_api_key == "sk-test"

    def test_loads_max_attempts(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CLOUD_MAX_ATTEMPTS", "5")
        s = Settings()
        assert s.cloud_max_attempts == 5


class TestSettingsValidation:
    def test_invalid_db_port_raises(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("DB_PORT", "not_a_number")
        with pytest.raises(ValidationError):
            Settings()

    def test_invalid_backoff_cap_raises(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CLOUD_BACKOFF_CAP_SECONDS", "soon")
        with pytest.raises(ValidationError):
            Settings()
