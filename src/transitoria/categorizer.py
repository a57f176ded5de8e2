"""Period categorizer for individual postings.

Suggests whether a posting belongs on the balance sheet as prepaid costs,
accrued revenue or accrued expenses by comparing periods mentioned in its
description with the posting date. Rules are evaluated in priority order;
the first one that fires wins.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from datetime import date
from decimal import Decimal

import structlog

from transitoria.config.locales import LocaleVocabulary, load_locale
from transitoria.config.settings import get_settings
from transitoria.models import CategoryAssessment, LedgerEntry, TransitoriaCategory

logger = structlog.get_logger(__name__)

_YEAR_MENTION = re.compile(r"\b(20\d{2})\b")
_QUARTER_MENTION = re.compile(r"\bq([1-4])\b")

PREPAID = TransitoriaCategory.PREPAID_COSTS
ACCRUED_EXPENSES = TransitoriaCategory.ACCRUED_EXPENSES
ACCRUED_REVENUE = TransitoriaCategory.ACCRUED_REVENUE
UNKNOWN = TransitoriaCategory.UNKNOWN


def month_offset(mentioned: int, posted: int) -> int:
    """Signed month distance, wrapped across the year boundary.

    A January mention on a December posting is one month ahead (+1), not
    eleven months behind.
    """
    diff = mentioned - posted
    if diff < -6:
        diff += 12
    if diff > 6:
        diff -= 12
    return diff


class PeriodCategorizer:
    """Heuristic accrual/deferral classifier."""

    def __init__(
        self,
        vocabulary: LocaleVocabulary | None = None,
        large_amount_threshold: float | None = None,
    ):
        settings = get_settings()
        self._vocabulary = vocabulary or load_locale(settings.locale)
        threshold = (
            large_amount_threshold
            if large_amount_threshold is not None
            else settings.large_amount_threshold
        )
        self._large_amount_threshold = Decimal(str(threshold))
        self._logger = logger.bind(component="period_categorizer")

    def categorize(
        self, description: str, amount: Decimal, posted_on: date
    ) -> CategoryAssessment:
        """Assess a single posting."""
        text = description.lower()

        # Year mismatch is the strongest signal
        for match in _YEAR_MENTION.finditer(description):
            year = int(match.group(1))
            if year > posted_on.year:
                return CategoryAssessment(PREPAID, 0.95, f"Relates to {year} (future)")
            if year < posted_on.year:
                return CategoryAssessment(
                    ACCRUED_EXPENSES, 0.85, f"Relates to {year} (past)"
                )

        mentioned_month = self._vocabulary.month_of(text)
        if mentioned_month is not None:
            diff = month_offset(mentioned_month, posted_on.month - 1)
            if diff > 1:
                return CategoryAssessment(
                    PREPAID, 0.9, f"Relates to month {mentioned_month + 1} (paid in advance)"
                )
            if diff < -1:
                return CategoryAssessment(
                    ACCRUED_EXPENSES,
                    0.8,
                    f"Relates to month {mentioned_month + 1} (late invoice)",
                )

        quarter_match = _QUARTER_MENTION.search(text)
        if quarter_match:
            quarter = int(quarter_match.group(1))
            posted_quarter = (posted_on.month - 1) // 3 + 1
            if quarter > posted_quarter:
                return CategoryAssessment(PREPAID, 0.85, f"Relates to Q{quarter} (future)")
            if quarter < posted_quarter:
                return CategoryAssessment(
                    ACCRUED_EXPENSES, 0.6, f"Relates to Q{quarter} (past)"
                )

        vocab = self._vocabulary
        if vocab.has_keyword("correction", text):
            return CategoryAssessment(ACCRUED_EXPENSES, 0.5, "Check correction posting")
        if vocab.has_keyword("prepaid", text):
            return CategoryAssessment(PREPAID, 0.8, "Spread over period")
        if vocab.has_keyword("annual", text):
            return CategoryAssessment(PREPAID, 0.6, "Possibly spread over the year")
        if vocab.has_keyword("accrued_revenue", text):
            return CategoryAssessment(ACCRUED_REVENUE, 0.9, "To be invoiced")
        if vocab.has_keyword("provision", text):
            return CategoryAssessment(ACCRUED_EXPENSES, 0.7, "Addition to provision")

        # Large round amounts often are annual fees or contracts
        if abs(amount) > self._large_amount_threshold and amount % 100 == 0:
            return CategoryAssessment(UNKNOWN, 0.4, "Large round amount: check contract")

        return CategoryAssessment(UNKNOWN, 0.0, "Direct")

    def categorize_entry(self, entry: LedgerEntry) -> LedgerEntry:
        """Return the entry annotated with its assessment."""
        return entry.with_assessment(
            self.categorize(entry.description, entry.amount, entry.date)
        )

    def categorize_all(self, entries: Iterable[LedgerEntry]) -> list[LedgerEntry]:
        annotated = [self.categorize_entry(entry) for entry in entries]
        self._logger.debug(
            "entries_categorized",
            entries=len(annotated),
            flagged=sum(1 for e in annotated if e.anomaly_score > 0),
        )
        return annotated
