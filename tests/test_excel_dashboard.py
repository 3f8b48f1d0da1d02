from openpyxl import load_workbook

from edss.ingestion.batch_eval import evaluate_records
from edss.ingestion.field_maps import FIELDS_DEFAULT
from edss.reporting.excel_dashboard import (
    RESULTS_SHEET,
    SUMMARY_SHEET,
    update_excel_dashboard,
)
from edss.scoring.model import RecordOutcome, RecordResult


def _results():
    return [
        RecordResult(record_id="P-001", outcome=RecordOutcome.SCORED, score="4", rule_id="R6b-ii"),
        RecordResult(record_id="P-002", outcome=RecordOutcome.SCORED, score="7.5", rule_id="AMB_11"),
        RecordResult(
            record_id="P-003",
            outcome=RecordOutcome.INCOMPLETE,
            message="Missing 1 of 8 required scores",
            missing_fields=["ambulation_score"],
        ),
    ]


def test_creates_workbook(tmp_path):
    path = update_excel_dashboard(_results(), tmp_path / "out" / "edss.xlsx", source="visits.csv")
    wb = load_workbook(path)
    assert wb.sheetnames == [RESULTS_SHEET, SUMMARY_SHEET]

    ws = wb[RESULTS_SHEET]
    assert ws.cell(row=1, column=1).value == "Record ID"
    assert ws.max_row == 4
    assert ws.cell(row=2, column=1).value == "P-001"
    assert ws.cell(row=2, column=2).value == "visits.csv"
    assert ws.cell(row=2, column=3).value == "SCORED"
    assert ws.cell(row=2, column=4).value == "4"
    assert ws.cell(row=2, column=5).value == "R6b-ii"
    assert ws.cell(row=3, column=6).value.startswith("Ambulation 11")
    assert ws.cell(row=4, column=3).value == "INCOMPLETE"


def test_updates_existing_rows_and_keeps_reviewer_notes(tmp_path):
    path = tmp_path / "edss.xlsx"
    update_excel_dashboard(_results(), path)

    wb = load_workbook(path)
    ws = wb[RESULTS_SHEET]
    ws.cell(row=4, column=10, value="Ambulation not assessed at visit")
    wb.save(path)

    corrected = RecordResult(record_id="P-003", outcome=RecordOutcome.SCORED, score="2", rule_id="R8")
    new = RecordResult(record_id="P-004", outcome=RecordOutcome.SCORED, score="0", rule_id="R10")
    update_excel_dashboard([corrected, new], path)

    ws = load_workbook(path)[RESULTS_SHEET]
    assert ws.max_row == 5
    assert ws.cell(row=4, column=3).value == "SCORED"
    assert ws.cell(row=4, column=4).value == "2"
    assert ws.cell(row=4, column=10).value == "Ambulation not assessed at visit"
    assert ws.cell(row=5, column=1).value == "P-004"


def test_summary_sheet_counts(tmp_path):
    path = update_excel_dashboard(_results(), tmp_path / "edss.xlsx")
    ws = load_workbook(path)[SUMMARY_SHEET]
    counts = {}
    for row in ws.iter_rows(min_row=2, values_only=True):
        if row[0] is not None and row[1] is not None:
            counts[str(row[0])] = row[1]
    assert counts["SCORED"] == 2
    assert counts["INCOMPLETE"] == 1
    assert counts["PARSE_ERROR"] == 0
    assert counts["4"] == 1
    assert counts["7.5"] == 1
    assert counts["10"] == 0


def _visit(record_id, ambulation):
    return {
        "record_id": record_id,
        **{key: "0" for key in FIELDS_DEFAULT.values()},
        FIELDS_DEFAULT["ambulation"]: str(ambulation),
    }


def _rows(path):
    ws = load_workbook(path)[RESULTS_SHEET]
    return [
        (ws.cell(row=r, column=1).value, ws.cell(row=r, column=2).value, ws.cell(row=r, column=4).value)
        for r in range(2, ws.max_row + 1)
    ]


def test_repeated_record_id_keeps_every_visit(tmp_path):
    path = tmp_path / "edss.xlsx"
    results = evaluate_records([_visit("P1", 0), _visit("P1", 16)])
    update_excel_dashboard(results, path, source="visits.csv")
    assert _rows(path) == [("P1", "visits.csv", "0"), ("P1", "visits.csv", "10")]

    # Re-running the same export updates those rows instead of appending
    update_excel_dashboard(results, path, source="visits.csv")
    assert len(_rows(path)) == 2


def test_same_record_id_from_another_source_is_appended(tmp_path):
    path = tmp_path / "edss.xlsx"
    update_excel_dashboard(evaluate_records([{"visual_functions_score": "1"}]), path, source="a.csv")
    update_excel_dashboard(evaluate_records([_visit("", 3)]), path, source="b.csv")

    rows = _rows(path)
    assert [(rid, src) for rid, src, _ in rows] == [("row_1", "a.csv"), ("row_1", "b.csv")]
    assert rows[1][2] == "5"
