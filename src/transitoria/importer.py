"""CSV and Excel ledger import.

Columns are located by keyword: a header matches a field when it contains
one of the locale's aliases ("datum", "omschrijving", "bedrag", ...).
Rows with an unusable date, amount or review status are reported as row
errors instead of being imported. The status column is optional; blank
cells mean the posting is still pending.
"""

from __future__ import annotations

import csv
import io
import re
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, BinaryIO

import structlog
from openpyxl import Workbook, load_workbook
from openpyxl.utils import get_column_letter

from transitoria.categorizer import PeriodCategorizer
from transitoria.config.locales import LocaleVocabulary, load_locale
from transitoria.config.settings import get_settings
from transitoria.exceptions import ImportFormatError
from transitoria.models import LedgerEntry, ReviewStatus

logger = structlog.get_logger(__name__)

EXCEL_EPOCH = date(1899, 12, 30)
REQUIRED_FIELDS = ("date", "amount")

_DATE_SPLIT = re.compile(r"[-/]")


@dataclass(frozen=True)
class RowError:
    """A data row that could not be imported.

    ``row`` is the 1-based row number in the source file (the header is row 1).
    """

    row: int
    message: str
    source: str = ""


@dataclass
class ImportResult:
    """Entries parsed from one or more files plus row-level problems."""

    entries: list[LedgerEntry] = field(default_factory=list)
    errors: list[RowError] = field(default_factory=list)

    def extend(self, other: ImportResult) -> None:
        self.entries.extend(other.entries)
        self.errors.extend(other.errors)


def _clean_cell(value: Any) -> str:
    return str(value if value is not None else "").strip().strip('"')


def parse_amount(raw: Any, separator: str | None = None) -> Decimal:
    """Parse a monetary cell.

    Semicolon-separated files use Dutch notation (1.234,56); comma-separated
    files use 1,234.56. Without a known separator, a comma after the last
    dot is read as a decimal comma.

    Raises:
        ValueError: If the value is not a number.
    """
    if isinstance(raw, bool):
        raise ValueError(f"not an amount: {raw!r}")
    if isinstance(raw, (int, float, Decimal)):
        return Decimal(str(raw))

    text = _clean_cell(raw).replace("€", "").replace(" ", "")
    if not text:
        raise ValueError("empty amount")

    if separator == ";":
        text = text.replace(".", "").replace(",", ".")
    elif separator == ",":
        text = text.replace(",", "")
    elif "," in text and text.index(",") > text.rfind("."):
        text = text.replace(".", "").replace(",", ".")

    try:
        amount = Decimal(text)
    except InvalidOperation as exc:
        raise ValueError(f"not an amount: {raw!r}") from exc
    if not amount.is_finite():
        raise ValueError(f"not a finite amount: {raw!r}")
    return amount


def parse_date(raw: Any) -> date:
    """Parse a date cell: native dates, Excel serials, YYYY-MM-DD or DD-MM-YYYY.

    Raises:
        ValueError: If the value is missing or not a valid calendar date.
    """
    if isinstance(raw, datetime):
        return raw.date()
    if isinstance(raw, date):
        return raw
    if isinstance(raw, (int, float)) and not isinstance(raw, bool):
        try:
            return EXCEL_EPOCH + timedelta(days=int(raw))
        except (OverflowError, ValueError) as exc:
            raise ValueError(f"invalid Excel date serial: {raw!r}") from exc

    text = _clean_cell(raw)
    if not text:
        raise ValueError("missing date")
    # Drop a time component such as "2024-01-31 00:00:00"
    text = text.split()[0]

    parts = _DATE_SPLIT.split(text)
    if len(parts) != 3 or not all(part.isdigit() for part in parts):
        raise ValueError(f"unrecognized date: {raw!r}")
    if len(parts[0]) == 4:
        year, month, day = (int(p) for p in parts)
    else:
        day, month, year = (int(p) for p in parts)
    return date(year, month, day)


class LedgerImporter:
    """Maps spreadsheet rows onto ledger entries."""

    def __init__(
        self,
        vocabulary: LocaleVocabulary | None = None,
        categorizer: PeriodCategorizer | None = None,
    ):
        self._vocabulary = vocabulary or load_locale(get_settings().locale)
        self._categorizer = categorizer or PeriodCategorizer(vocabulary=self._vocabulary)
        self._logger = logger.bind(component="ledger_importer")

    def _locate_columns(self, headers: list[Any], source: str) -> dict[str, int]:
        clean_headers = [_clean_cell(h).lower() for h in headers]
        columns: dict[str, int] = {}
        for field_name, aliases in self._vocabulary.headers.items():
            # Aliases are tried in order, so "relatie" wins over "crediteur"
            for alias in aliases:
                index = next(
                    (i for i, header in enumerate(clean_headers) if alias in header),
                    None,
                )
                if index is not None:
                    columns[field_name] = index
                    break

        missing = [name for name in REQUIRED_FIELDS if name not in columns]
        if missing:
            raise ImportFormatError(
                f"{source}: missing required column(s): {', '.join(missing)}",
                details={"headers": clean_headers},
            )
        return columns

    def _parse_status(self, raw: Any) -> ReviewStatus:
        text = _clean_cell(raw)
        if not text:
            return ReviewStatus.PENDING
        name = self._vocabulary.status_of(text)
        if name is None:
            raise ValueError(f"unknown status: {text!r}")
        return ReviewStatus(name.upper())

    def _map_rows(
        self,
        headers: list[Any],
        rows: list[list[Any]],
        source: str,
        separator: str | None = None,
    ) -> ImportResult:
        columns = self._locate_columns(headers, source)
        defaults = self._vocabulary.defaults
        result = ImportResult()

        def cell(row: list[Any], field_name: str) -> Any:
            index = columns.get(field_name)
            if index is None or index >= len(row):
                return None
            return row[index]

        # Row numbers are 1-based with the header on row 1
        for row_number, row in enumerate(rows, start=2):
            if not row or all(_clean_cell(value) == "" for value in row):
                continue

            try:
                posted_on = parse_date(cell(row, "date"))
                amount = parse_amount(cell(row, "amount"), separator)
                status = self._parse_status(cell(row, "status"))
            except ValueError as exc:
                result.errors.append(RowError(row=row_number, message=str(exc), source=source))
                self._logger.debug(
                    "row_skipped", source=source, row=row_number, reason=str(exc)
                )
                continue

            entry = LedgerEntry(
                counterparty=_clean_cell(cell(row, "counterparty"))
                or defaults.get("counterparty", ""),
                description=_clean_cell(cell(row, "description"))
                or defaults.get("description", ""),
                date=posted_on,
                amount=amount,
                account=_clean_cell(cell(row, "account")) or defaults.get("account", ""),
                source=source,
                status=status,
            )
            result.entries.append(self._categorizer.categorize_entry(entry))

        self._logger.info(
            "ledger_imported",
            source=source,
            entries=len(result.entries),
            errors=len(result.errors),
        )
        return result

    def parse_csv(self, text: str, source: str) -> ImportResult:
        """Parse CSV text; the separator is ';' when the header line has one."""
        lines = text.lstrip("\ufeff").splitlines()
        if not lines or not lines[0].strip():
            return ImportResult()

        separator = ";" if ";" in lines[0] else ","
        reader = csv.reader(lines, delimiter=separator)
        headers = next(reader)
        rows = [row for row in reader]
        return self._map_rows(headers, rows, source, separator)

    def parse_excel(self, data: str | Path | bytes | BinaryIO, source: str) -> ImportResult:
        """Parse the first worksheet of an XLSX workbook."""
        handle: Any = io.BytesIO(data) if isinstance(data, bytes) else data
        try:
            workbook = load_workbook(handle, read_only=True, data_only=True)
        except Exception as exc:
            raise ImportFormatError(f"{source}: cannot read workbook: {exc}") from exc

        try:
            sheet = workbook.worksheets[0]
            all_rows = [list(row) for row in sheet.iter_rows(values_only=True)]
        finally:
            workbook.close()

        if not all_rows:
            return ImportResult()
        return self._map_rows(all_rows[0], all_rows[1:], source)

    def parse_file(self, path: str | Path) -> ImportResult:
        """Parse a .csv/.txt or .xlsx/.xlsm file by extension."""
        path = Path(path)
        suffix = path.suffix.lower()
        if suffix in (".csv", ".txt"):
            try:
                text = path.read_text(encoding="utf-8-sig")
            except UnicodeDecodeError:
                text = path.read_text(encoding="latin-1")
            return self.parse_csv(text, path.name)
        if suffix in (".xlsx", ".xlsm"):
            return self.parse_excel(path, path.name)
        raise ImportFormatError(f"{path.name}: unsupported file type {suffix or '(none)'}")

    def parse_files(self, paths: list[str | Path]) -> ImportResult:
        combined = ImportResult()
        for path in paths:
            combined.extend(self.parse_file(path))
        return combined


def write_template(path: str | Path, vocabulary: LocaleVocabulary | None = None) -> Path:
    """Write an empty XLSX import template with the locale's header row."""
    vocab = vocabulary or load_locale(get_settings().locale)
    path = Path(path)

    workbook = Workbook()
    sheet = workbook.active
    sheet.title = "Transitoria Template"
    sheet.append(list(vocab.template_headers))
    for index in range(1, len(vocab.template_headers) + 1):
        sheet.column_dimensions[get_column_letter(index)].width = 20
    workbook.save(path)

    logger.info("template_written", path=str(path), locale=vocab.tag)
    return path
