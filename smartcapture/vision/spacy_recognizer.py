import spacy

from smartcapture.logging.logger import Log
from smartcapture.vision.base import BaseEntityRecognizer
from smartcapture.vision.models import NamedEntity, PhiType

_LABEL_TO_PHI = {
    "PERSON": PhiType.NAME,
    "ORG": PhiType.ORGANIZATION,
    "GPE": PhiType.LOCATION,
    "LOC": PhiType.LOCATION,
    "FAC": PhiType.LOCATION,
}


class SpacyEntityRecognizer(BaseEntityRecognizer):
    """Named-entity recognizer backed by a spaCy pipeline.

    The model is loaded on first use so importing the module stays cheap.
    When the model is not installed the recognizer finds nothing and PHI
    detection falls back to its patterns and the sensitive-word dictionary.
    """

    def __init__(self, model_name: str = "en_core_web_sm") -> None:
        self._model_name = model_name
        self._nlp = None
        self._unavailable = False

    def _load(self):
        if self._nlp is None and not self._unavailable:
            try:
                self._nlp = spacy.load(self._model_name, disable=["lemmatizer"])
            except OSError as exc:
                self._unavailable = True
                Log.warning(
                    "spaCy model not installed, named entities will not be detected",
                    model=self._model_name,
                    error=str(exc),
                )
                return None
            Log.info("spaCy model loaded", model=self._model_name)
        return self._nlp

    def recognize(self, text: str) -> list[NamedEntity]:
        nlp = self._load()
        if nlp is None:
            return []
        return [
            NamedEntity(_LABEL_TO_PHI[ent.label_], ent.start_char, ent.end_char)
            for ent in nlp(text).ents
            if ent.label_ in _LABEL_TO_PHI
        ]
