from smartcapture.config.settings import Settings
from smartcapture.vision.phi_detector import PhiDetector
from smartcapture.vision.processor import OnDeviceVisionProcessor
from smartcapture.vision.spacy_recognizer import SpacyEntityRecognizer
from smartcapture.vision.tesseract_recognizer import TesseractTextRecognizer


class VisionProcessorFactory:
    """Creates the on-device vision processor."""

    @classmethod
    def create(cls, settings: Settings) -> OnDeviceVisionProcessor:
        recognizer = TesseractTextRecognizer(languages=settings.tesseract_languages)
        entity_recognizer = (
            SpacyEntityRecognizer(settings.spacy_model) if settings.spacy_model else None
        )
        return OnDeviceVisionProcessor(recognizer, PhiDetector(entity_recognizer))
