"""Grouping keys for recurring postings.

Recurring descriptions usually differ only in the period they mention
("Huur kantoor januari 2024", "Huur kantoor februari 2024"). The normalizer
removes years, month names and punctuation so those postings share a key.
"""

import re

from transitoria.config.locales import LocaleVocabulary, load_locale
from transitoria.config.settings import get_settings

KEY_SEPARATOR = " | "

_YEAR_PATTERN = re.compile(r"\b20[2-3]\d\b")
_NON_LETTER_PATTERN = re.compile(r"[^a-z\s]")
_WHITESPACE_PATTERN = re.compile(r"\s+")
_MIN_CLEAN_LENGTH = 3


class KeyNormalizer:
    """Maps (counterparty, description) pairs to stable grouping keys."""

    def __init__(
        self,
        vocabulary: LocaleVocabulary | None = None,
        fallback_length: int | None = None,
    ):
        settings = get_settings()
        self._vocabulary = vocabulary or load_locale(settings.locale)
        self._fallback_length = fallback_length or settings.fallback_length

    @property
    def vocabulary(self) -> LocaleVocabulary:
        return self._vocabulary

    def clean_description(self, description: str) -> str:
        """Strip years, month names and non-letters from a description.

        Falls back to a prefix of the original description when too little
        text survives, so unrelated short residuals are not merged.
        """
        cleaned = description.lower()
        cleaned = _YEAR_PATTERN.sub("", cleaned)
        cleaned = self._vocabulary.month_pattern.sub("", cleaned)
        cleaned = _NON_LETTER_PATTERN.sub("", cleaned)
        cleaned = _WHITESPACE_PATTERN.sub(" ", cleaned).strip()

        if len(cleaned) < _MIN_CLEAN_LENGTH:
            return description[: self._fallback_length]
        return cleaned

    def normalize(self, counterparty: str, description: str) -> str:
        """Return the grouping key for a posting."""
        return f"{counterparty}{KEY_SEPARATOR}{self.clean_description(description)}"

