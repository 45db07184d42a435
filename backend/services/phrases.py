import logging
from typing import Dict, Iterable, Optional

import yaml

from config import settings

logger = logging.getLogger(__name__)


class PhraseNotFound(LookupError):
    """A phrase key (or its translation) is missing from the phrase book.

    This is a configuration defect: it is raised at lookup time and never
    turned into a chat message.
    """


class PhraseBook:
    """Localized phrases loaded from a YAML document of key -> {lang: text}."""

    def __init__(self, phrases: Dict[str, Dict[str, str]], language: str = "en"):
        self._phrases = phrases
        self.language = language

    @classmethod
    def load(cls, path: str, language: str = "en") -> "PhraseBook":
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        logger.info("Loaded %d phrases from %s", len(data), path)
        return cls(data, language)

    def get(self, key: str) -> str:
        entry = self._phrases.get(key)
        if not entry:
            raise PhraseNotFound(f"Invalid phrase: {key}")
        text = entry.get(self.language)
        if text is None:
            raise PhraseNotFound(f"Phrase {key} has no '{self.language}' translation")
        return text

    def require(self, keys: Iterable[str]) -> None:
        """Fail fast if any of ``keys`` cannot be looked up."""
        for key in keys:
            self.get(key)

    def __contains__(self, key: str) -> bool:
        return key in self._phrases


_phrase_book: Optional[PhraseBook] = None


def get_phrase_book() -> PhraseBook:
    """Lazy singleton built from settings on first call."""
    global _phrase_book
    if _phrase_book is None:
        _phrase_book = PhraseBook.load(settings.phrases_path, settings.language)
    return _phrase_book
