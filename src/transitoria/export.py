"""Excel and CSV export of analysis results."""

from __future__ import annotations

import csv
from collections.abc import Sequence
from pathlib import Path
from typing import TextIO

import structlog
from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill
from openpyxl.utils import get_column_letter

from transitoria.config.locales import LocaleVocabulary, load_locale
from transitoria.config.settings import get_settings
from transitoria.models import Group, LedgerEntry
from transitoria.overview import audit_log

logger = structlog.get_logger(__name__)

GAP_FILL = PatternFill(start_color="F8D7DA", end_color="F8D7DA", fill_type="solid")
SHIFT_FILL = PatternFill(start_color="FFF3CD", end_color="FFF3CD", fill_type="solid")
HEADER_FONT = Font(bold=True)


def _month_names(indices: Sequence[int], vocab: LocaleVocabulary) -> str:
    return ", ".join(vocab.month_labels[i] for i in indices)


def matrix_header(vocab: LocaleVocabulary) -> list[str]:
    return ["Key", "Counterparty", *vocab.month_labels, "Total", "Gaps", "Shifts"]


def matrix_row(group: Group, vocab: LocaleVocabulary) -> list[object]:
    """One period-matrix row: monthly amounts plus gap/shift month labels."""
    return [
        group.key,
        group.counterparty,
        *(float(amount) for amount in group.monthly_amounts),
        float(group.total),
        _month_names(group.gaps, vocab),
        _month_names(group.shifts, vocab),
    ]


def _autosize(sheet) -> None:
    for index, column in enumerate(sheet.iter_cols(values_only=True), start=1):
        width = max((len(str(value)) for value in column if value is not None), default=8)
        sheet.column_dimensions[get_column_letter(index)].width = min(max(width + 2, 8), 60)


def export_workbook(
    path: str | Path,
    groups: Sequence[Group],
    entries: Sequence[LedgerEntry],
    vocabulary: LocaleVocabulary | None = None,
) -> Path:
    """Write period matrix, missing items, records and audit log sheets to an XLSX file."""
    vocab = vocabulary or load_locale(get_settings().locale)
    path = Path(path)
    workbook = Workbook()

    matrix = workbook.active
    matrix.title = "Period matrix"
    matrix.append(matrix_header(vocab))
    for group in groups:
        matrix.append(matrix_row(group, vocab))
        row = matrix.max_row
        # Month columns start after Key and Counterparty
        for month in group.gaps:
            matrix.cell(row=row, column=3 + month).fill = GAP_FILL
        for month in group.shifts:
            matrix.cell(row=row, column=3 + month).fill = SHIFT_FILL

    missing = workbook.create_sheet("Missing items")
    missing.append(["Counterparty", "Description", "Missing months", "Average amount"])
    for group in groups:
        if group.gaps:
            missing.append(
                [
                    group.counterparty,
                    group.name,
                    _month_names(group.gaps, vocab),
                    float(group.average_amount),
                ]
            )

    records = workbook.create_sheet("Records")
    records.append(
        [
            "Date",
            "Account",
            "Description",
            "Counterparty",
            "Amount",
            "Category",
            "Score",
            "Allocation",
            "Status",
            "Source",
        ]
    )
    for entry in entries:
        records.append(
            [
                entry.date,
                entry.account,
                entry.description,
                entry.counterparty,
                float(entry.amount),
                entry.category.value,
                entry.anomaly_score,
                entry.allocation,
                entry.status.value,
                entry.source,
            ]
        )

    audit = workbook.create_sheet("Audit log")
    audit.append(["Date", "Description", "Counterparty", "Amount", "Category", "Status"])
    for entry in audit_log(entries):
        audit.append(
            [
                entry.date,
                entry.description,
                entry.counterparty,
                float(entry.amount),
                entry.category.value,
                entry.status.value,
            ]
        )

    for sheet in workbook.worksheets:
        for cell in sheet[1]:
            cell.font = HEADER_FONT
        _autosize(sheet)

    workbook.save(path)
    logger.info(
        "workbook_exported",
        path=str(path),
        groups=len(groups),
        entries=len(entries),
    )
    return path


def export_matrix_csv(
    stream: TextIO,
    groups: Sequence[Group],
    vocabulary: LocaleVocabulary | None = None,
) -> int:
    """Write the period matrix as semicolon-separated CSV; returns rows written."""
    vocab = vocabulary or load_locale(get_settings().locale)
    writer = csv.writer(stream, delimiter=";")
    writer.writerow(matrix_header(vocab))
    for group in groups:
        writer.writerow(
            [
                group.key,
                group.counterparty,
                *(str(amount) for amount in group.monthly_amounts),
                str(group.total),
                _month_names(group.gaps, vocab),
                _month_names(group.shifts, vocab),
            ]
        )
    return len(groups)
