"""Camera capture session: preview, capture, batch mode and document hand-off."""

import threading
import uuid

import cv2
import numpy as np

from smartcapture.camera.base import BaseCameraDevice
from smartcapture.camera.boundary import correct_perspective, detect_quads, select_quad
from smartcapture.camera.exceptions import (
    BatchStateError,
    CameraBusyError,
    HardwareUnavailableError,
)
from smartcapture.camera.models import CapturedPage, DetectedQuad
from smartcapture.camera.quality import assess_quality
from smartcapture.documents.models import CaptureMetadata, CapturedDocument, DocumentType
from smartcapture.logging.logger import Log

_JPEG_QUALITY = 90


def encode_jpeg(image: np.ndarray) -> bytes:
    ok, buffer = cv2.imencode(".jpg", image, [cv2.IMWRITE_JPEG_QUALITY, _JPEG_QUALITY])
    if not ok:
        raise HardwareUnavailableError("Captured frame could not be encoded")
    return buffer.tobytes()


class CaptureSession:
    """Owns the camera for the duration of a capture.

    Only one session may hold the camera at a time. ``stop()`` releases the
    device synchronously and is safe to call from any exit path; the session
    is also a context manager (sync and async) that always stops on exit.
    """

    _owner_lock = threading.Lock()
    _owner: "CaptureSession | None" = None

    def __init__(
        self,
        device: BaseCameraDevice,
        min_quad_confidence: float = 0.6,
        min_aspect_ratio: float = 0.3,
        max_aspect_ratio: float = 1.0,
    ) -> None:
        self._device = device
        self._min_quad_confidence = min_quad_confidence
        self._min_aspect_ratio = min_aspect_ratio
        self._max_aspect_ratio = max_aspect_ratio
        self._running = False
        self._batch_mode = False
        self._batch_id: str | None = None
        self._pages: list[CapturedPage] = []
        self.detected_quads: list[DetectedQuad] = []

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def batch_mode(self) -> bool:
        return self._batch_mode

    @property
    def batch_id(self) -> str | None:
        return self._batch_id

    @property
    def pages(self) -> list[CapturedPage]:
        return list(self._pages)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Claim exclusive ownership of the camera and open it.

        Raises:
            CameraBusyError: if another session is running.
            HardwareUnavailableError: if the device cannot be opened.
        """
        if self._running:
            return
        with CaptureSession._owner_lock:
            if CaptureSession._owner is not None:
                raise CameraBusyError("Another capture session owns the camera")
            CaptureSession._owner = self
        try:
            self._device.open()
        except BaseException:
            self._device.release()
            self._release_ownership()
            raise
        self._running = True
        Log.info("Capture session started")

    def stop(self) -> None:
        """Release the camera. Idempotent."""
        try:
            self._device.release()
        finally:
            was_running = self._running
            self._running = False
            self._release_ownership()
            if was_running:
                Log.info("Capture session stopped")

    def _release_ownership(self) -> None:
        with CaptureSession._owner_lock:
            if CaptureSession._owner is self:
                CaptureSession._owner = None

    def __enter__(self) -> "CaptureSession":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()

    async def __aenter__(self) -> "CaptureSession":
        self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.stop()

    # ------------------------------------------------------------------
    # Frames
    # ------------------------------------------------------------------

    def _read_frame(self) -> np.ndarray:
        if not self._running:
            raise HardwareUnavailableError("Capture session is not running")
        try:
            return self._device.read_frame()
        except HardwareUnavailableError:
            self.stop()
            raise

    def preview_frame(self) -> list[DetectedQuad]:
        """Detect document outlines on the live frame for visual feedback only."""
        frame = self._read_frame()
        self.detected_quads = detect_quads(frame)
        return self.detected_quads

    def capture_frame(self) -> CapturedPage:
        """Commit the current frame as a page.

        The best quad is used for perspective correction only when it passes
        the confidence and aspect-ratio gates; otherwise the raw frame is kept.
        In batch mode the page is appended to the open batch.
        """
        frame = self._read_frame()
        quad = select_quad(
            detect_quads(frame),
            self._min_quad_confidence,
            self._min_aspect_ratio,
            self._max_aspect_ratio,
        )
        image = correct_perspective(frame, quad) if quad is not None else frame
        quality = assess_quality(image)

        page = CapturedPage(
            image=image,
            original=frame,
            page_number=len(self._pages) + 1 if self._batch_mode else 1,
            quality=quality,
            perspective_corrected=quad is not None,
            quad=quad,
        )
        if quality.retake_recommended:
            Log.warning("Poor capture quality, retake recommended", page=page.page_number)
        if self._batch_mode:
            self._pages.append(page)
        return page

    def capture_document(self, document_type: DocumentType = DocumentType.GENERIC) -> CapturedDocument:
        """Capture a single frame and finalize it immediately.

        Raises:
            BatchStateError: while a batch is open.
        """
        if self._batch_mode:
            raise BatchStateError("Use add_page() while batch mode is enabled")
        page = self.capture_frame()
        return self._build_document([page], document_type, capture_mode="single")

    # ------------------------------------------------------------------
    # Batch mode
    # ------------------------------------------------------------------

    def enable_batch(self) -> str:
        """Open a new batch and return its id."""
        self._batch_mode = True
        self._batch_id = str(uuid.uuid4())
        self._pages = []
        Log.info("Batch mode enabled", batch_id=self._batch_id)
        return self._batch_id

    def add_page(self) -> CapturedPage:
        if not self._batch_mode:
            raise BatchStateError("Batch mode is not enabled")
        return self.capture_frame()

    def finalize_batch(self, document_type: DocumentType = DocumentType.GENERIC) -> CapturedDocument:
        """Close the batch and hand its pages over as one document."""
        if not self._batch_mode:
            raise BatchStateError("Batch mode is not enabled")
        if not self._pages:
            raise BatchStateError("Cannot finalize an empty batch")
        document = self._build_document(self._pages, document_type, capture_mode="batch")
        Log.info("Batch finalized", batch_id=self._batch_id, pages=len(self._pages))
        self.clear_batch()
        return document

    def clear_batch(self) -> None:
        self._batch_mode = False
        self._batch_id = None
        self._pages = []

    # ------------------------------------------------------------------
    # Document assembly
    # ------------------------------------------------------------------

    @staticmethod
    def _build_document(
        pages: list[CapturedPage],
        document_type: DocumentType,
        capture_mode: str,
    ) -> CapturedDocument:
        encoded = [encode_jpeg(page.image) for page in pages]
        first = pages[0]
        worst = min(pages, key=lambda page: page.quality.level.rank)
        height, width = first.image.shape[:2]
        metadata = CaptureMetadata(
            capture_mode=capture_mode,
            quality_score=worst.quality.score,
            quality_level=worst.quality.level.value,
            perspective_corrected=first.perspective_corrected,
            blur_score=first.quality.blur_score,
            brightness=first.quality.brightness,
            width=int(width),
            height=int(height),
            file_size=len(encoded[0]),
        )
        return CapturedDocument(
            image_data=encoded[0],
            document_type=document_type,
            pages=len(pages),
            metadata=metadata,
            page_images=encoded,
        )
