"""Transitoria - recurring ledger posting analysis for period-end review."""

__version__ = "0.1.0"

from transitoria.aggregator import MonthlyAggregator
from transitoria.categorizer import PeriodCategorizer
from transitoria.config import configure_logging, get_settings, load_locale
from transitoria.exceptions import (
    AdvisorError,
    ImportFormatError,
    LocaleError,
    TransitoriaError,
)
from transitoria.importer import ImportResult, LedgerImporter, RowError
from transitoria.models import (
    CategoryAssessment,
    Group,
    LedgerEntry,
    ReviewStatus,
    TransitoriaCategory,
)
from transitoria.normalizer import KeyNormalizer
from transitoria.patterns import (
    PatternClassifier,
    RecurringPatternAnalyzer,
    analyze,
    missing_items,
)

__all__ = [
    # Version
    "__version__",
    # Models
    "LedgerEntry",
    "Group",
    "CategoryAssessment",
    "TransitoriaCategory",
    "ReviewStatus",
    # Analysis
    "KeyNormalizer",
    "MonthlyAggregator",
    "PatternClassifier",
    "RecurringPatternAnalyzer",
    "analyze",
    "missing_items",
    "PeriodCategorizer",
    # Import
    "LedgerImporter",
    "ImportResult",
    "RowError",
    # Errors
    "TransitoriaError",
    "LocaleError",
    "ImportFormatError",
    "AdvisorError",
    # Config
    "get_settings",
    "configure_logging",
    "load_locale",
]
