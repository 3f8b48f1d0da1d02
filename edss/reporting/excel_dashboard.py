#!/usr/bin/env python3
"""
EDSS Excel Results Workbook Generator.

Generates an Excel workbook with:
- EDSS Results (one row per record: outcome, score, deciding rule)
- Summary (outcome counts and EDSS distribution, rebuilt on every update)

Append-not-overwrite: rows are keyed by (record ID, source, occurrence of the
ID within the batch). Existing rows are updated, new ones are appended.
Reviewer columns are never overwritten once filled in.
"""
from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional

from openpyxl import Workbook, load_workbook
from openpyxl.formatting.rule import CellIsRule
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.datavalidation import DataValidation

from edss.reporting.rule_explainer import explain_rule
from edss.scoring.model import EDSS_STEPS, RecordOutcome, RecordResult


# ---------------------------------------------------------------------------
# Palette (openpyxl uses ARGB hex without #)
# ---------------------------------------------------------------------------
_ROSE_LIGHT = PatternFill(start_color="FFFDF2F8", end_color="FFFDF2F8", fill_type="solid")
_AMBER_LIGHT = PatternFill(start_color="FFFEF3C7", end_color="FFFEF3C7", fill_type="solid")
_EMERALD_LIGHT = PatternFill(start_color="FFD1FAE5", end_color="FFD1FAE5", fill_type="solid")
_GRAY_FILL = PatternFill(start_color="FFF3F4F6", end_color="FFF3F4F6", fill_type="solid")

_HEADER_FONT = Font(name="Calibri", size=11, bold=True, color="FFFFFFFF")
_HEADER_FILL = PatternFill(start_color="FF1E3A8A", end_color="FF1E3A8A", fill_type="solid")
_BODY_FONT = Font(name="Calibri", size=10)
_BOLD_FONT = Font(name="Calibri", size=10, bold=True)
_THIN_BORDER = Border(
    left=Side(style="thin", color="FFE5E7EB"),
    right=Side(style="thin", color="FFE5E7EB"),
    top=Side(style="thin", color="FFE5E7EB"),
    bottom=Side(style="thin", color="FFE5E7EB"),
)

RESULTS_SHEET = "EDSS Results"
SUMMARY_SHEET = "Summary"

RESULT_HEADERS = [
    "Record ID", "Source", "Outcome", "EDSS", "Rule", "Rule Description",
    "Message", "Last Evaluated",
    # Reviewer columns (operator-only — never auto-populated by engine)
    "Review Status", "Reviewer Notes",
]
_OUTCOME_COL = 3
_REVIEW_COL_START = 9
_REVIEW_COL_END = 10

_OUTCOME_FILLS = [
    (RecordOutcome.SCORED.value, _EMERALD_LIGHT),
    (RecordOutcome.INCOMPLETE.value, _GRAY_FILL),
    (RecordOutcome.PARSE_ERROR.value, _AMBER_LIGHT),
    (RecordOutcome.DOMAIN_ERROR.value, _ROSE_LIGHT),
]


def _style_header_row(ws, num_cols: int) -> None:
    """Apply header styling to first row."""
    for col in range(1, num_cols + 1):
        cell = ws.cell(row=1, column=col)
        cell.font = _HEADER_FONT
        cell.fill = _HEADER_FILL
        cell.alignment = Alignment(horizontal="center", vertical="center", wrap_text=True)
        cell.border = _THIN_BORDER


def _add_conditional_formatting(ws, col_letter: str, max_row: int, values_colors: List) -> None:
    """Add conditional formatting rules for a column."""
    for val, fill in values_colors:
        ws.conditional_formatting.add(
            f"{col_letter}2:{col_letter}{max_row}",
            CellIsRule(operator="equal", formula=[f'"{val}"'], fill=fill)
        )


def _find_record_row(ws, record_id: str, source: str, occurrence: int = 1) -> Optional[int]:
    """Find the `occurrence`-th existing row for a record (column A) from a source (column B)."""
    seen = 0
    for row in range(2, ws.max_row + 1):
        if str(ws.cell(row=row, column=1).value) != str(record_id):
            continue
        if str(ws.cell(row=row, column=2).value or "") != str(source):
            continue
        seen += 1
        if seen == occurrence:
            return row
    return None


# ---------------------------------------------------------------------------
# Sheet builders
# ---------------------------------------------------------------------------

def _write_result_row(ws, result: RecordResult, row: int, source: str) -> None:
    """Populate one row of the results sheet."""
    data = [
        result.record_id,
        source,
        result.outcome.value,
        result.score or "",
        result.rule_id or "",
        explain_rule(result.rule_id) if result.rule_id else "",
        result.message,
        datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
    ]
    for col, val in enumerate(data, 1):
        cell = ws.cell(row=row, column=col, value=val)
        cell.font = _BOLD_FONT if col in (1, 4) else _BODY_FONT
        cell.border = _THIN_BORDER
        cell.alignment = Alignment(vertical="center", wrap_text=(col in (6, 7)))

    # Reviewer columns: preserve existing values, never overwrite
    for col in range(_REVIEW_COL_START, _REVIEW_COL_END + 1):
        cell = ws.cell(row=row, column=col)
        if cell.value is None:
            cell.value = ""
        cell.font = _BODY_FONT
        cell.border = _THIN_BORDER
        cell.alignment = Alignment(vertical="center", wrap_text=(col == _REVIEW_COL_END))


def _rebuild_summary_sheet(wb: Workbook) -> None:
    """Recount outcomes and scores from the results sheet."""
    if SUMMARY_SHEET in wb.sheetnames:
        del wb[SUMMARY_SHEET]
    ws = wb.create_sheet(SUMMARY_SHEET)
    results_ws = wb[RESULTS_SHEET]

    outcomes: Dict[str, int] = {o.value: 0 for o in RecordOutcome}
    scores: Dict[str, int] = {s: 0 for s in EDSS_STEPS}
    for row in range(2, results_ws.max_row + 1):
        outcome = results_ws.cell(row=row, column=_OUTCOME_COL).value
        if outcome in outcomes:
            outcomes[outcome] += 1
        score = results_ws.cell(row=row, column=_OUTCOME_COL + 1).value
        if score is not None and str(score) in scores:
            scores[str(score)] += 1

    ws.cell(row=1, column=1, value="Outcome")
    ws.cell(row=1, column=2, value="Records")
    _style_header_row(ws, 2)
    r = 2
    for outcome, count in outcomes.items():
        ws.cell(row=r, column=1, value=outcome).font = _BOLD_FONT
        ws.cell(row=r, column=2, value=count).font = _BODY_FONT
        r += 1

    r += 1
    hdr_row = r
    ws.cell(row=hdr_row, column=1, value="EDSS")
    ws.cell(row=hdr_row, column=2, value="Records")
    for col in (1, 2):
        cell = ws.cell(row=hdr_row, column=col)
        cell.font = _HEADER_FONT
        cell.fill = _HEADER_FILL
        cell.alignment = Alignment(horizontal="center")
    for score in EDSS_STEPS:
        r += 1
        ws.cell(row=r, column=1, value=score).font = _BOLD_FONT
        ws.cell(row=r, column=2, value=scores[score]).font = _BODY_FONT

    ws.column_dimensions["A"].width = 18
    ws.column_dimensions["B"].width = 10


# ---------------------------------------------------------------------------
# Create workbook
# ---------------------------------------------------------------------------

def _create_workbook() -> Workbook:
    """Create a new workbook with the results sheet and its header row."""
    wb = Workbook()

    ws = wb.active
    ws.title = RESULTS_SHEET
    for col, h in enumerate(RESULT_HEADERS, 1):
        ws.cell(row=1, column=col, value=h)
    _style_header_row(ws, len(RESULT_HEADERS))
    ws.freeze_panes = "B2"
    ws.auto_filter.ref = f"A1:{get_column_letter(len(RESULT_HEADERS))}1"

    widths = [16, 22, 15, 8, 10, 45, 45, 20, 16, 30]
    for i, w in enumerate(widths, 1):
        ws.column_dimensions[get_column_letter(i)].width = w

    dv_review = DataValidation(
        type="list", formula1='"Pending,Confirmed,Corrected,Excluded"', allow_blank=True
    )
    dv_review.prompt = "Select review status"
    dv_review.promptTitle = "Review Status"
    ws.add_data_validation(dv_review)
    dv_review.add(f"{get_column_letter(_REVIEW_COL_START)}2:{get_column_letter(_REVIEW_COL_START)}5000")

    _add_conditional_formatting(ws, get_column_letter(_OUTCOME_COL), 5000, _OUTCOME_FILLS)
    return wb


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def update_excel_dashboard(
    results: List[RecordResult],
    output_path: Path,
    source: str = "",
) -> Path:
    """
    Add or update record rows in the EDSS results workbook.

    If the file exists, opens it and updates/appends.
    If not, creates a new workbook with formatting.

    Args:
        results: Record results from batch_eval.evaluate_records()
        output_path: Path to Excel file
        source: Dataset name written in the Source column

    Returns:
        Path to the Excel file
    """
    if output_path.exists():
        wb = load_workbook(output_path)
    else:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        wb = _create_workbook()

    ws = wb[RESULTS_SHEET]
    # Longitudinal exports repeat a record ID once per visit; the n-th row
    # with an ID maps to the n-th workbook row for that (ID, source)
    seen: Dict[str, int] = {}
    for result in results:
        seen[result.record_id] = seen.get(result.record_id, 0) + 1
        row = _find_record_row(ws, result.record_id, source, seen[result.record_id]) or ws.max_row + 1
        _write_result_row(ws, result, row, source)

    _rebuild_summary_sheet(wb)
    wb.save(output_path)
    return output_path
