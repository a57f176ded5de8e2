"""Exception hierarchy for Transitoria."""

from typing import Any


class TransitoriaError(Exception):
    """Base exception for Transitoria errors."""

    def __init__(self, message: str, details: Any = None):
        super().__init__(message)
        self.details = details


class LocaleError(TransitoriaError):
    """Unknown locale or malformed locale vocabulary file."""

    pass


class ImportFormatError(TransitoriaError):
    """Ledger file could not be read or lacks required columns."""

    pass


class AdvisorError(TransitoriaError):
    """LLM advice request failed."""

    pass
