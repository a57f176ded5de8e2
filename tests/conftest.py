"""Pytest configuration and fixtures."""

import os
from datetime import date
from decimal import Decimal

import pytest

# Keep tests independent of a developer's environment
os.environ.pop("GOOGLE_API_KEY", None)
os.environ.setdefault("TRANSITORIA_LOCALE", "nl")

from transitoria.config.locales import load_locale  # noqa: E402
from transitoria.config.settings import get_settings  # noqa: E402
from transitoria.models import LedgerEntry  # noqa: E402


@pytest.fixture(autouse=True)
def fresh_settings():
    """Drop cached settings so monkeypatched env vars take effect."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def nl_vocab():
    return load_locale("nl")


@pytest.fixture
def en_vocab():
    return load_locale("en")


def make_entry(
    month: int,
    amount: str | int = "1000",
    counterparty: str = "Vastgoed BV",
    description: str | None = None,
    year: int = 2024,
    day: int = 1,
) -> LedgerEntry:
    """Build a posting; the default description names the month."""
    months = [
        "januari", "februari", "maart", "april", "mei", "juni",
        "juli", "augustus", "september", "oktober", "november", "december",
    ]
    if description is None:
        description = f"Huur kantoor {months[month - 1]} {year}"
    return LedgerEntry(
        counterparty=counterparty,
        description=description,
        date=date(year, month, day),
        amount=Decimal(str(amount)),
    )


@pytest.fixture
def entry_factory():
    return make_entry


@pytest.fixture
def rent_ledger():
    """Monthly rent with April missing and normal neighbors."""
    return [make_entry(month) for month in range(1, 13) if month != 4]
