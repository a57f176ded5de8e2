"""Monthly aggregation of ledger entries into recurring posting groups."""

from __future__ import annotations

from collections.abc import Iterable
from functools import reduce

import structlog

from transitoria.models import Group, LedgerEntry
from transitoria.normalizer import KEY_SEPARATOR, KeyNormalizer

logger = structlog.get_logger(__name__)


class MonthlyAggregator:
    """Folds ledger entries into 12 calendar-month slots per group key."""

    def __init__(self, normalizer: KeyNormalizer | None = None):
        self._normalizer = normalizer or KeyNormalizer()
        self._logger = logger.bind(component="monthly_aggregator")

    @property
    def normalizer(self) -> KeyNormalizer:
        return self._normalizer

    def _fold(self, groups: dict[str, Group], entry: LedgerEntry) -> dict[str, Group]:
        key = self._normalizer.normalize(entry.counterparty, entry.description)
        current = groups.get(key) or Group(
            key=key,
            counterparty=entry.counterparty,
            name=key[len(entry.counterparty) + len(KEY_SEPARATOR) :],
        )
        groups[key] = current.add(entry)
        return groups

    def aggregate(self, entries: Iterable[LedgerEntry]) -> dict[str, Group]:
        """Group entries by normalized key and bucket them by calendar month.

        Year is ignored when bucketing; scope the input to one fiscal year
        if months from different years must not be merged.
        """
        groups: dict[str, Group] = reduce(self._fold, entries, {})
        self._logger.debug("entries_aggregated", groups=len(groups))
        return groups
