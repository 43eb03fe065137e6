from abc import ABC, abstractmethod

from smartcapture.vision.models import NamedEntity, OnDeviceResult


class BaseTextRecognizer(ABC):
    """Contract for offline OCR engines."""

    @abstractmethod
    async def recognize_text(
        self,
        image: bytes,
        language_hints: list[str] | None = None,
    ) -> OnDeviceResult:
        """Recognize text in an encoded image.

        Never raises. Undecodable input gives ``OnDeviceResult.invalid()``; an
        engine failure on a decodable image gives an empty valid result.
        """


class BaseEntityRecognizer(ABC):
    """Contract for named-entity recognizers used by PHI detection."""

    @abstractmethod
    def recognize(self, text: str) -> list[NamedEntity]:
        """Return person, organization and place spans in ``text``."""
