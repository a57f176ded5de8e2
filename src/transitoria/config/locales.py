"""Loader for locale vocabularies (month names, keywords, import headers)."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from functools import cached_property, lru_cache
from pathlib import Path
from typing import Any

import yaml  # type: ignore[import-untyped]

from transitoria.exceptions import LocaleError

LOCALES_DIR = Path(__file__).resolve().parent / "locales"

KEYWORD_GROUPS = (
    "correction",
    "prepaid",
    "annual",
    "accrued_revenue",
    "provision",
    "spread",
)
HEADER_FIELDS = ("date", "description", "amount", "counterparty", "account")
OPTIONAL_HEADER_FIELDS = ("status",)
STATUS_VALUES = ("pending", "approved", "rejected")


@dataclass(frozen=True)
class LocaleVocabulary:
    """Vocabulary for one locale.

    ``months`` holds twelve tuples (January first); each tuple lists the
    full month name followed by its accepted abbreviations.
    """

    tag: str
    months: tuple[tuple[str, ...], ...]
    month_labels: tuple[str, ...]
    keywords: dict[str, tuple[str, ...]]
    headers: dict[str, tuple[str, ...]]
    defaults: dict[str, str]
    template_headers: tuple[str, ...]
    statuses: dict[str, tuple[str, ...]] = field(default_factory=dict)

    @cached_property
    def month_pattern(self) -> re.Pattern[str]:
        """Whole-word pattern matching any month name or abbreviation."""
        tokens = sorted(
            {token for variants in self.months for token in variants},
            key=len,
            reverse=True,
        )
        return re.compile(r"\b(?:" + "|".join(map(re.escape, tokens)) + r")\b")

    def month_of(self, text: str) -> int | None:
        """Return the 0-based index of the first month mentioned in text.

        Months are tried in calendar order, so "januari ... maart" yields 0.
        """
        lowered = text.lower()
        for index, variants in enumerate(self.months):
            for variant in variants:
                if re.search(rf"\b{re.escape(variant)}\b", lowered):
                    return index
        return None

    def has_keyword(self, group: str, text: str) -> bool:
        """Return True if any keyword of the group occurs in text."""
        lowered = text.lower()
        return any(keyword in lowered for keyword in self.keywords.get(group, ()))

    def status_of(self, text: str) -> str | None:
        """Map a status cell ("Goedgekeurd", "rejected", ...) to a status name."""
        lowered = text.strip().lower()
        for name, aliases in self.statuses.items():
            if lowered == name or lowered in aliases:
                return name
        return None


def _as_str_tuple(path: Path, name: str, value: Any) -> tuple[str, ...]:
    if isinstance(value, str):
        return (value.strip().lower(),)
    if not isinstance(value, list) or not value:
        raise LocaleError(f"{path.name}: {name} must be a non-empty list")
    return tuple(str(item).strip().lower() for item in value)


def _parse_locale(path: Path, data: dict[str, Any]) -> LocaleVocabulary:
    months_raw = data.get("months")
    if not isinstance(months_raw, list) or len(months_raw) != 12:
        raise LocaleError(f"{path.name}: months must list exactly 12 entries")
    months = tuple(
        _as_str_tuple(path, f"months[{index}]", variants)
        for index, variants in enumerate(months_raw)
    )

    labels_raw = data.get("month_labels")
    if labels_raw is None:
        month_labels = tuple(variants[0][:3].title() for variants in months)
    elif isinstance(labels_raw, list) and len(labels_raw) == 12:
        month_labels = tuple(str(label) for label in labels_raw)
    else:
        raise LocaleError(f"{path.name}: month_labels must list exactly 12 entries")

    keywords_raw = data.get("keywords") or {}
    if not isinstance(keywords_raw, dict):
        raise LocaleError(f"{path.name}: keywords must be a mapping")
    keywords = {
        group: _as_str_tuple(path, f"keywords.{group}", keywords_raw[group])
        for group in KEYWORD_GROUPS
        if group in keywords_raw
    }

    headers_raw = data.get("headers") or {}
    if not isinstance(headers_raw, dict):
        raise LocaleError(f"{path.name}: headers must be a mapping")
    missing = [name for name in HEADER_FIELDS if name not in headers_raw]
    if missing:
        raise LocaleError(f"{path.name}: headers missing {', '.join(missing)}")
    headers = {
        name: _as_str_tuple(path, f"headers.{name}", headers_raw[name])
        for name in HEADER_FIELDS + OPTIONAL_HEADER_FIELDS
        if name in headers_raw
    }

    statuses_raw = data.get("statuses") or {}
    if not isinstance(statuses_raw, dict):
        raise LocaleError(f"{path.name}: statuses must be a mapping")
    statuses = {
        name: _as_str_tuple(path, f"statuses.{name}", statuses_raw[name])
        for name in STATUS_VALUES
        if name in statuses_raw
    }

    defaults = {str(k): str(v) for k, v in (data.get("defaults") or {}).items()}
    template_headers = tuple(str(h) for h in data.get("template_headers") or ())

    return LocaleVocabulary(
        tag=path.stem,
        months=months,
        month_labels=month_labels,
        keywords=keywords,
        headers=headers,
        defaults=defaults,
        template_headers=template_headers,
        statuses=statuses,
    )


def available_locales() -> list[str]:
    """Return the tags of all shipped locale files."""
    return sorted(path.stem for path in LOCALES_DIR.glob("*.yaml"))


@lru_cache
def load_locale(tag: str) -> LocaleVocabulary:
    """Load and validate the vocabulary for a locale tag (e.g. "nl", "en").

    Raises:
        LocaleError: If the locale is unknown or its file is malformed.
    """
    path = LOCALES_DIR / f"{tag.strip().lower()}.yaml"
    if not path.exists():
        raise LocaleError(
            f"Unknown locale {tag!r}; available: {', '.join(available_locales())}"
        )

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise LocaleError(f"{path.name}: invalid YAML") from exc
    if not isinstance(data, dict):
        raise LocaleError(f"{path.name}: top level must be a mapping")

    return _parse_locale(path, data)
