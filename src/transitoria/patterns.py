"""Gap and shift detection for recurring ledger postings.

A recurring group with an empty month inside its active range either
missed a posting (gap) or had that month's amount booked in a neighboring
month (shift). A neighbor whose magnitude exceeds the group average times
``shift_threshold`` is taken as evidence of a shift.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import replace
from decimal import Decimal

import structlog

from transitoria.aggregator import MonthlyAggregator
from transitoria.config.settings import get_settings
from transitoria.models import MONTHS_PER_YEAR, ZERO, Group, LedgerEntry

logger = structlog.get_logger(__name__)


class PatternClassifier:
    """Classifies empty in-range months of a group as gaps or shifts."""

    def __init__(
        self,
        shift_threshold: float | None = None,
        min_active_months: int | None = None,
    ):
        settings = get_settings()
        threshold = shift_threshold if shift_threshold is not None else settings.shift_threshold
        self._shift_threshold = Decimal(str(threshold))
        self._min_active_months = (
            min_active_months if min_active_months is not None else settings.min_active_months
        )

    @property
    def shift_threshold(self) -> Decimal:
        return self._shift_threshold

    @property
    def min_active_months(self) -> int:
        return self._min_active_months

    def classify(self, group: Group) -> Group:
        """Return a copy of the group with gaps and shifts filled in."""
        if group.active_months < self._min_active_months:
            return replace(group, gaps=(), shifts=())

        active_range = group.active_range
        if active_range is None:
            return replace(group, gaps=(), shifts=())
        first_active, last_active = active_range

        amounts = group.monthly_amounts
        threshold = abs(group.average_amount * self._shift_threshold)
        gaps: list[int] = []
        shifts: list[int] = []

        for i in range(first_active, last_active + 1):
            if group.monthly_counts[i] > 0:
                continue
            prev_amount = amounts[i - 1] if i > 0 else ZERO
            next_amount = amounts[i + 1] if i < MONTHS_PER_YEAR - 1 else ZERO
            if abs(prev_amount) > threshold or abs(next_amount) > threshold:
                shifts.append(i)
            else:
                gaps.append(i)

        return replace(group, gaps=tuple(gaps), shifts=tuple(shifts))


def sort_groups(groups: Iterable[Group]) -> list[Group]:
    """Order groups by gap count (most first), then by key."""
    return sorted(groups, key=lambda group: (-len(group.gaps), group.key))


def missing_items(groups: Sequence[Group], limit: int | None = None) -> list[Group]:
    """Return groups with at least one gap, keeping report order."""
    with_gaps = [group for group in groups if group.gaps]
    if limit is not None:
        return with_gaps[:limit]
    return with_gaps


class RecurringPatternAnalyzer:
    """Runs normalization, aggregation and classification over a ledger."""

    def __init__(
        self,
        aggregator: MonthlyAggregator | None = None,
        classifier: PatternClassifier | None = None,
    ):
        self._aggregator = aggregator or MonthlyAggregator()
        self._classifier = classifier or PatternClassifier()
        self._logger = logger.bind(component="pattern_analyzer")

    def scope(
        self, entries: Iterable[LedgerEntry], fiscal_year: int | None = None
    ) -> list[LedgerEntry]:
        """Return the entries to analyze for a fiscal year.

        Without a fiscal year every entry is kept and a warning is logged
        when the input spans more than one year.
        """
        all_entries = list(entries)
        if fiscal_year is not None:
            scoped = [entry for entry in all_entries if entry.date.year == fiscal_year]
            if len(scoped) != len(all_entries):
                self._logger.info(
                    "entries_outside_fiscal_year",
                    fiscal_year=fiscal_year,
                    excluded=len(all_entries) - len(scoped),
                )
            return scoped

        years = fiscal_years(all_entries)
        if len(years) > 1:
            self._logger.warning(
                "multi_year_input",
                years=years,
                detail="months from different years share one slot",
            )
        return all_entries

    def analyze(
        self,
        entries: Iterable[LedgerEntry],
        fiscal_year: int | None = None,
    ) -> list[Group]:
        """Analyze a ledger and return all groups, most gaps first.

        Args:
            entries: Ledger postings; dates must be valid.
            fiscal_year: When given, only postings dated in this year are used.

        Returns:
            Classified groups sorted by gap count desc, then key asc.
        """
        return self.analyze_scoped(self.scope(entries, fiscal_year))

    def analyze_scoped(self, scoped: Sequence[LedgerEntry]) -> list[Group]:
        """Analyze entries already passed through ``scope()``."""
        groups = self._aggregator.aggregate(scoped)
        classified = sort_groups(self._classifier.classify(g) for g in groups.values())

        self._logger.info(
            "groups_analyzed",
            entries=len(scoped),
            groups=len(classified),
            with_gaps=sum(1 for g in classified if g.gaps),
            with_shifts=sum(1 for g in classified if g.shifts),
        )
        return classified


def analyze(
    entries: Iterable[LedgerEntry],
    fiscal_year: int | None = None,
) -> list[Group]:
    """Analyze entries with settings-derived defaults."""
    return RecurringPatternAnalyzer().analyze(entries, fiscal_year=fiscal_year)


def fiscal_years(entries: Iterable[LedgerEntry]) -> list[int]:
    """Return the distinct posting years in ascending order."""
    return sorted({entry.date.year for entry in entries})

