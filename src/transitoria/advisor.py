"""LLM-backed review advice for accrual and deferral postings."""

from __future__ import annotations

from collections.abc import Sequence

import structlog

from transitoria.clients.gemini import GeminiClient
from transitoria.config.settings import get_settings
from transitoria.exceptions import AdvisorError
from transitoria.models import Group, LedgerEntry, ReviewStatus

logger = structlog.get_logger(__name__)

MAX_PRIORITY_ENTRIES = 35
MAX_GAP_GROUPS = 10
PRIORITY_SCORE = 0.5
MISSING_KEY_MESSAGE = "API key missing. Configure GOOGLE_API_KEY to enable AI analysis."
EMPTY_RESPONSE_MESSAGE = "No analysis available."

LANGUAGES = {"nl": "Dutch", "en": "English"}

SYSTEM_PROMPT = """You are a strict financial controller specialised in accruals and \
deferrals (prepaid costs, accrued revenue, accrued expenses). You review general \
ledger postings for errors in period allocation."""

TASK_PROMPT = """Review the postings below.

Postings (priority items):
{postings}

Recurring postings with missing months:
{gaps}

Perform these checks:
1. CATEGORY: for notable postings decide whether they are prepaid costs, accrued \
revenue or accrued expenses.
2. ANOMALIES: look for illogical allocations, e.g. an annual invoice expensed at once \
instead of via the balance sheet, an invoice for January booked in March without an \
accrual, or large round contract-like amounts that were not spread.
3. ADVICE: state concretely which postings should be corrected.

Answer in {language} as concise business advice (at most 5 points), using bullet points."""


def priority_entries(entries: Sequence[LedgerEntry]) -> list[LedgerEntry]:
    """Entries worth sending to the model: suspicious or still pending."""
    selected = [
        entry
        for entry in entries
        if entry.anomaly_score > PRIORITY_SCORE or entry.status is ReviewStatus.PENDING
    ]
    return selected[:MAX_PRIORITY_ENTRIES]


def build_prompt(
    entries: Sequence[LedgerEntry],
    groups: Sequence[Group] = (),
    locale: str = "nl",
) -> str:
    postings = "\n".join(
        f"Date: {entry.date.isoformat()} | Description: \"{entry.description}\" | "
        f"Amount: EUR {entry.amount} | Counterparty: {entry.counterparty} | "
        f"Score: {entry.anomaly_score}"
        for entry in priority_entries(entries)
    )
    gap_lines = "\n".join(
        f"{group.key}: missing month(s) {', '.join(str(m + 1) for m in group.gaps)}"
        for group in [g for g in groups if g.gaps][:MAX_GAP_GROUPS]
    )
    return TASK_PROMPT.format(
        postings=postings or "(none)",
        gaps=gap_lines or "(none)",
        language=LANGUAGES.get(locale, "English"),
    )


class TransitoriaAdvisor:
    """Asks Gemini for correction advice on a categorized ledger."""

    def __init__(self, client: GeminiClient | None = None, locale: str | None = None):
        settings = get_settings()
        self._client = client
        self._locale = locale or settings.locale
        self._logger = logger.bind(component="advisor")

    def _get_client(self) -> GeminiClient | None:
        if self._client is None:
            settings = get_settings()
            if settings.google_api_key is None or not settings.google_api_key.get_secret_value():
                return None
            self._client = GeminiClient()
        return self._client

    async def advise(
        self,
        entries: Sequence[LedgerEntry],
        groups: Sequence[Group] = (),
    ) -> str:
        """Return review advice text for the ledger.

        Raises:
            AdvisorError: If the Gemini request fails.
        """
        client = self._get_client()
        if client is None:
            self._logger.warning("advice_skipped", reason="missing_api_key")
            return MISSING_KEY_MESSAGE

        prompt = build_prompt(entries, groups, self._locale)
        try:
            response = await client.generate(SYSTEM_PROMPT, prompt)
        except Exception as exc:
            self._logger.error("advice_failed", error=str(exc))
            raise AdvisorError(f"Gemini request failed: {exc}") from exc

        return response.content or EMPTY_RESPONSE_MESSAGE
