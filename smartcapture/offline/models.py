import base64
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import TypeAdapter

from smartcapture.documents.models import DocumentType


class JobType(str, Enum):
    CLOUD_OCR = "cloud_ocr"
    VISION_ANALYSIS = "vision_analysis"
    COMPLIANCE_ANALYSIS = "compliance_analysis"


class JobStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(frozen=True)
class JobPayload:
    """What a deferred provider call needs. The image is kept base64-encoded.

    ``sensitive_words`` is set only when the first run redacted the document,
    so a replayed result can be redacted the same way.
    """

    image_base64: str
    document_type: DocumentType
    text: str | None = None
    sensitive_words: list[str] = field(default_factory=list)

    @classmethod
    def from_image(
        cls,
        image: bytes,
        document_type: DocumentType,
        text: str | None = None,
        sensitive_words: list[str] | None = None,
    ) -> "JobPayload":
        return cls(
            base64.b64encode(image).decode("ascii"),
            document_type,
            text,
            list(sensitive_words or []),
        )

    @property
    def image(self) -> bytes:
        return base64.b64decode(self.image_base64)


@dataclass
class OfflineCaptureJob:
    document_id: str
    job_type: JobType
    payload: JobPayload
    priority: int = 5
    status: JobStatus = JobStatus.PENDING
    retry_count: int = 0
    last_retry_at: datetime | None = None
    last_error: str | None = None
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_record(self) -> dict[str, Any]:
        return _JOB_ADAPTER.dump_python(self, mode="json")

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "OfflineCaptureJob":
        """Raises pydantic.ValidationError for malformed records."""
        return _JOB_ADAPTER.validate_python(record)


_JOB_ADAPTER = TypeAdapter(OfflineCaptureJob)
