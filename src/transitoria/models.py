"""Domain models for ledger entries and recurring posting groups."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date
from decimal import Decimal
from enum import Enum

MONTHS_PER_YEAR = 12
ZERO = Decimal("0")


class TransitoriaCategory(str, Enum):
    """Accrual/deferral category suggested for a posting."""

    PREPAID_COSTS = "PREPAID_COSTS"
    ACCRUED_REVENUE = "ACCRUED_REVENUE"
    DEFERRED_REVENUE = "DEFERRED_REVENUE"
    ACCRUED_EXPENSES = "ACCRUED_EXPENSES"
    UNKNOWN = "UNKNOWN"


class ReviewStatus(str, Enum):
    """Review state of a posting."""

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


@dataclass(frozen=True)
class CategoryAssessment:
    """Result of the period categorizer for one posting."""

    category: TransitoriaCategory
    score: float  # 0.0 to 1.0 - higher is more suspicious
    allocation: str


@dataclass(frozen=True)
class LedgerEntry:
    """A single general ledger posting."""

    counterparty: str
    description: str
    date: date
    amount: Decimal
    account: str = ""
    source: str = ""
    status: ReviewStatus = ReviewStatus.PENDING
    category: TransitoriaCategory = TransitoriaCategory.UNKNOWN
    anomaly_score: float = 0.0
    allocation: str = ""

    @property
    def month_index(self) -> int:
        """Calendar month slot of the posting (0=Jan..11=Dec)."""
        return self.date.month - 1

    def with_assessment(self, assessment: CategoryAssessment) -> LedgerEntry:
        """Return a copy carrying the categorizer outcome."""
        return replace(
            self,
            category=assessment.category,
            anomaly_score=assessment.score,
            allocation=assessment.allocation,
        )

    def with_status(self, status: ReviewStatus) -> LedgerEntry:
        """Return a copy with a new review status."""
        return replace(self, status=status)

    @property
    def is_processed(self) -> bool:
        """True once the posting has been approved or rejected."""
        return self.status is not ReviewStatus.PENDING


def _empty_amounts() -> tuple[Decimal, ...]:
    return (ZERO,) * MONTHS_PER_YEAR


def _empty_counts() -> tuple[int, ...]:
    return (0,) * MONTHS_PER_YEAR


@dataclass(frozen=True)
class Group:
    """Postings sharing a normalized counterparty + description key.

    Monthly slots are year-blind: postings from different years that fall
    in the same calendar month share a slot.
    """

    key: str
    counterparty: str
    name: str
    monthly_amounts: tuple[Decimal, ...] = field(default_factory=_empty_amounts)
    monthly_counts: tuple[int, ...] = field(default_factory=_empty_counts)
    total: Decimal = ZERO
    gaps: tuple[int, ...] = ()
    shifts: tuple[int, ...] = ()

    def add(self, entry: LedgerEntry) -> Group:
        """Return a new group with the entry folded into its month slot."""
        index = entry.month_index
        amounts = list(self.monthly_amounts)
        counts = list(self.monthly_counts)
        amounts[index] += entry.amount
        counts[index] += 1
        return replace(
            self,
            monthly_amounts=tuple(amounts),
            monthly_counts=tuple(counts),
            total=self.total + entry.amount,
        )

    @property
    def active_months(self) -> int:
        """Number of month slots with at least one posting."""
        return sum(1 for count in self.monthly_counts if count > 0)

    @property
    def average_amount(self) -> Decimal:
        """Total divided by active months, zero when nothing is active."""
        active = self.active_months
        if active == 0:
            return ZERO
        return self.total / active

    @property
    def active_range(self) -> tuple[int, int] | None:
        """First and last month index with a posting, or None."""
        active = [i for i, count in enumerate(self.monthly_counts) if count > 0]
        if not active:
            return None
        return active[0], active[-1]
