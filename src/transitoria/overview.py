"""Ledger-wide monthly overview and summary figures."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from decimal import Decimal

from transitoria.config.locales import LocaleVocabulary, load_locale
from transitoria.config.settings import get_settings
from transitoria.models import MONTHS_PER_YEAR, ZERO, LedgerEntry, ReviewStatus


@dataclass(frozen=True)
class MonthOverview:
    """Booked versus period-allocated amount for one calendar month."""

    month_index: int
    label: str
    booked: Decimal
    allocated: Decimal


@dataclass(frozen=True)
class LedgerSummary:
    total_amount: Decimal
    entry_count: int
    high_risk_count: int
    pending_count: int


def monthly_overview(
    entries: Sequence[LedgerEntry],
    vocabulary: LocaleVocabulary | None = None,
    spread_threshold: float | None = None,
) -> list[MonthOverview]:
    """Compare booked amounts per month with an even spread of annual items.

    An entry is treated as an annual item when its absolute amount exceeds
    ``spread_threshold`` and its description carries a spread keyword
    ("jaar"); its allocated amount is divided over all twelve months.
    """
    settings = get_settings()
    vocab = vocabulary or load_locale(settings.locale)
    limit = Decimal(
        str(spread_threshold if spread_threshold is not None else settings.spread_threshold)
    )

    booked = [ZERO] * MONTHS_PER_YEAR
    allocated = [ZERO] * MONTHS_PER_YEAR
    for entry in entries:
        booked[entry.month_index] += entry.amount
        if abs(entry.amount) > limit and vocab.has_keyword("spread", entry.description):
            share = entry.amount / MONTHS_PER_YEAR
            for month in range(MONTHS_PER_YEAR):
                allocated[month] += share
        else:
            allocated[entry.month_index] += entry.amount

    return [
        MonthOverview(
            month_index=month,
            label=vocab.month_labels[month],
            booked=booked[month],
            allocated=allocated[month],
        )
        for month in range(MONTHS_PER_YEAR)
    ]


def ledger_summary(
    entries: Sequence[LedgerEntry], high_risk_score: float | None = None
) -> LedgerSummary:
    """Headline figures: total value, high-risk and pending counts."""
    threshold = (
        high_risk_score if high_risk_score is not None else get_settings().high_risk_score
    )
    return LedgerSummary(
        total_amount=sum((entry.amount for entry in entries), ZERO),
        entry_count=len(entries),
        high_risk_count=sum(1 for entry in entries if entry.anomaly_score > threshold),
        pending_count=sum(1 for entry in entries if entry.status is ReviewStatus.PENDING),
    )


def filter_by_status(
    entries: Iterable[LedgerEntry], status: ReviewStatus | None = None
) -> list[LedgerEntry]:
    """Entries with the given review status; all entries when status is None."""
    return [entry for entry in entries if status is None or entry.status is status]


def audit_log(entries: Iterable[LedgerEntry]) -> list[LedgerEntry]:
    """Postings that have been approved or rejected, in ledger order."""
    return [entry for entry in entries if entry.is_processed]
