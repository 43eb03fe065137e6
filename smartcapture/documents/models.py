"""Document primitives shared by capture, recognition, cloud and template code."""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from smartcapture.documents.exceptions import InvalidStageTransitionError


class DocumentType(str, Enum):
    MEDICAL_REPORT = "medical_report"
    PRESCRIPTION = "prescription"
    INSURANCE_CLAIM = "insurance_claim"
    LAB_REPORT = "lab_report"
    PHARMACY_LABEL = "pharmacy_label"
    FOOD_LABEL = "food_label"
    SPREADSHEET = "spreadsheet"
    CONTRACT = "contract"
    GENERIC = "generic"


class ProcessingStage(str, Enum):
    """Pipeline stage marker. Forward-only; ``failed`` is reachable from any live stage."""

    CAPTURED = "captured"
    ON_DEVICE_VISION = "on_device_vision"
    CLOUD_OCR = "cloud_ocr"
    MULTIMODAL_ANALYSIS = "multimodal_analysis"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (ProcessingStage.COMPLETED, ProcessingStage.FAILED)


_STAGE_ORDER: tuple[ProcessingStage, ...] = (
    ProcessingStage.CAPTURED,
    ProcessingStage.ON_DEVICE_VISION,
    ProcessingStage.CLOUD_OCR,
    ProcessingStage.MULTIMODAL_ANALYSIS,
    ProcessingStage.COMPLETED,
)


def can_transition(current: ProcessingStage, target: ProcessingStage) -> bool:
    """Return True if ``current -> target`` is a legal stage move.

    Skipping forward is allowed (e.g. offline captures never reach
    ``cloud_ocr``); staying put, moving back, and leaving a terminal stage
    are not.
    """
    if current.is_terminal:
        return False
    if target is ProcessingStage.FAILED:
        return True
    return _STAGE_ORDER.index(target) > _STAGE_ORDER.index(current)


class TextBlockType(str, Enum):
    HEADING = "heading"
    PARAGRAPH = "paragraph"
    LIST = "list"
    TABLE = "table"
    SIGNATURE = "signature"
    STAMP = "stamp"


@dataclass(frozen=True)
class BoundingBox:
    """Normalized (0-1) rectangle locating an element in an image."""

    x: float
    y: float
    width: float
    height: float


@dataclass(frozen=True)
class TextBlock:
    text: str
    bounding_box: BoundingBox
    confidence: float
    type: TextBlockType = TextBlockType.PARAGRAPH
    language: str | None = None


@dataclass(frozen=True)
class TableStructure:
    rows: list[list[str]]
    bounding_box: BoundingBox
    confidence: float
    headers: list[str] | None = None


@dataclass(frozen=True)
class CaptureMetadata:
    """How a document image was obtained and how good it is."""

    capture_mode: str = "auto"
    quality_score: float = 1.0
    quality_level: str = "good"
    perspective_corrected: bool = False
    blur_score: float = 0.0
    brightness: float = 0.0
    width: int = 0
    height: int = 0
    file_size: int = 0


@dataclass
class CapturedDocument:
    """A captured physical document.

    Everything except ``processing_stage`` is fixed at creation; the stage
    marker only moves through :meth:`advance_stage`.
    """

    image_data: bytes
    document_type: DocumentType = DocumentType.GENERIC
    language: str = "en"
    pages: int = 1
    metadata: CaptureMetadata = field(default_factory=CaptureMetadata)
    offline_mode: bool = False
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    page_images: list[bytes] = field(default_factory=list)
    processing_stage: ProcessingStage = ProcessingStage.CAPTURED

    def __setattr__(self, name: str, value: object) -> None:
        if name != "processing_stage" and name in self.__dict__:
            raise AttributeError(f"CapturedDocument.{name} is immutable after capture")
        super().__setattr__(name, value)

    def advance_stage(self, target: ProcessingStage) -> None:
        """Move the stage marker forward (or to ``failed``).

        Raises:
            InvalidStageTransitionError: on a backwards or post-terminal move.
        """
        if not can_transition(self.processing_stage, target):
            raise InvalidStageTransitionError(
                f"Cannot move document {self.id} from "
                f"{self.processing_stage.value} to {target.value}"
            )
        object.__setattr__(self, "processing_stage", target)
