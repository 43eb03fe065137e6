from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    log_level: str = "INFO"

    storage_backend: str = "postgres"
    db_host: str = "localhost"
    db_port: int = 5432
    db_database: str = "smartcapture"
    db_username: str = "smartcapture"
    db_password: str = "secret"
    db_connect_timeout_seconds: float = 10.0

    offline_job_priority: int = 5
    drain_poll_interval_seconds: int = 15
    connectivity_probe_url: str = "https://api.openai.com/v1/models"
    connectivity_probe_timeout_seconds: float = 5.0

    camera_index: int = 0
    quad_min_confidence: float = 0.6
    quad_min_aspect_ratio: float = 0.3
    quad_max_aspect_ratio: float = 1.0

    tesseract_languages: str = "eng+ara"
    spacy_model: str = "en_core_web_sm"

    cloud_max_attempts: int = 3
    cloud_backoff_cap_seconds: float = 10.0

    ocr_api_key: str = ""
    ocr_base_url: str = "https://api.deepseek.com/v1/ocr"
    ocr_request_timeout_seconds: float = 60.0
    ocr_resource_timeout_seconds: float = 120.0

    vision_provider: str = "openai"
    vision_api_key: str = ""
    vision_base_url: str = ""
    vision_model_name: str = "gpt-4o"
    vision_request_timeout_seconds: float = 90.0
    vision_resource_timeout_seconds: float = 180.0

    compliance_provider: str = "gemini"
    compliance_api_key: str = ""
    compliance_base_url: str = ""
    compliance_model_name: str = "gemini-1.5-pro"
    compliance_secondary_language: str = "Arabic"

    audit_sink: str = "log"
    audit_sink_url: str = ""
    audit_sink_api_key: str = ""
