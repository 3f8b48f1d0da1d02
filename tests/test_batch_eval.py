import csv
import json

import pytest
from openpyxl import Workbook

from edss.governance.failure_log import FailureLog
from edss.ingestion.batch_eval import (
    evaluate_record,
    evaluate_records,
    generate_report,
    main,
    read_records,
    summarize_outcomes,
    write_results_json,
)
from edss.ingestion.field_maps import FIELDS_DEFAULT, FIELDS_REDCAP_PT
from edss.scoring.model import SCORE_ROLES, RecordOutcome

HEADER = ["record_id"] + [FIELDS_DEFAULT[r] for r in SCORE_ROLES]

ROWS = [
    ["P-001", "1", "2", "1", "3", "1", "4", "2", "1"],   # EDSS 4
    ["P-002", "0", "0", "0", "0", "0", "0", "0", "16"],  # EDSS 10
    ["P-003", "0", "0", "", "0", "0", "0", "0", "0"],    # incomplete
    ["P-004", "0", "0", "two", "0", "0", "0", "0", "0"], # parse error
    ["P-005", "0", "0", "0", "0", "0", "0", "0", "20"],  # domain error
]


def _write_csv(path, header, rows):
    with open(path, "w", encoding="utf-8", newline="") as f:
        w = csv.writer(f)
        w.writerow(header)
        w.writerows(rows)
    return path


def _write_xlsx(path, header, rows):
    wb = Workbook()
    ws = wb.active
    ws.append(header)
    for row in rows:
        ws.append(row)
    wb.save(path)
    return path


@pytest.fixture
def export_csv(tmp_path):
    return _write_csv(tmp_path / "visits.csv", HEADER, ROWS)


def test_read_records_csv(export_csv):
    records = read_records(export_csv)
    assert len(records) == 5
    assert records[0]["record_id"] == "P-001"
    assert records[0]["ambulation_score"] == "1"


def test_read_records_xlsx_with_numeric_cells(tmp_path):
    path = _write_xlsx(
        tmp_path / "visits.xlsx",
        HEADER,
        [["P-010", 0, 0, 1, 0, 0, 0, 0, 0], ["P-011", 0, 0, 0, 0, 0, 0, 0, None], [None] * 9],
    )
    records = read_records(path)
    assert len(records) == 2
    results = evaluate_records(records)
    assert [r.outcome for r in results] == [RecordOutcome.SCORED, RecordOutcome.INCOMPLETE]
    assert results[0].score == "1"


def test_read_records_rejects_unknown_format(tmp_path):
    path = tmp_path / "visits.txt"
    path.write_text("x", encoding="utf-8")
    with pytest.raises(SystemExit):
        read_records(path)


def test_read_records_missing_file(tmp_path):
    with pytest.raises(SystemExit):
        read_records(tmp_path / "absent.csv")


def test_evaluate_records_outcomes(export_csv):
    results = evaluate_records(read_records(export_csv))
    by_id = {r.record_id: r for r in results}

    assert by_id["P-001"].outcome == RecordOutcome.SCORED
    assert by_id["P-001"].score == "4"
    assert by_id["P-001"].rule_id == "R6b-ii"
    assert by_id["P-002"].score == "10"

    assert by_id["P-003"].outcome == RecordOutcome.INCOMPLETE
    assert by_id["P-003"].missing_fields == ["pyramidal_functions_score"]
    assert by_id["P-003"].score is None

    assert by_id["P-004"].outcome == RecordOutcome.PARSE_ERROR
    assert by_id["P-004"].offending_key == "pyramidal_functions_score"

    assert by_id["P-005"].outcome == RecordOutcome.DOMAIN_ERROR
    assert by_id["P-005"].offending_key == "ambulation_score"


def test_record_id_falls_back_to_row_number():
    record = {FIELDS_DEFAULT[r]: "0" for r in SCORE_ROLES}
    assert evaluate_record(record, index=7).record_id == "row_7"


def test_evaluate_record_with_redcap_suffix():
    record = {f"{FIELDS_REDCAP_PT[r]}_long": "0" for r in SCORE_ROLES}
    record["record_id"] = "42"
    r = evaluate_record(record, FIELDS_REDCAP_PT, suffix="_long")
    assert r.outcome == RecordOutcome.SCORED
    assert r.score == "0"


def test_failures_are_logged(export_csv, tmp_path):
    log = FailureLog(tmp_path / "log.jsonl")
    evaluate_records(read_records(export_csv), failure_log=log, command="batch visits.csv")
    assert log.summary() == {"incomplete": 1, "parse": 1, "domain": 1}
    entries = {e.record_id: e for e in log.read_all()}
    assert entries["P-004"].field == "pyramidal_functions_score"
    assert entries["P-005"].field == "ambulation_score"
    assert entries["P-003"].metadata == {"missing": ["pyramidal_functions_score"]}
    assert all(e.command == "batch visits.csv" for e in entries.values())


def test_summarize_outcomes(export_csv):
    summary = summarize_outcomes(evaluate_records(read_records(export_csv)))
    assert summary["total"] == 5
    assert summary["outcomes"] == {
        "SCORED": 2,
        "INCOMPLETE": 1,
        "PARSE_ERROR": 1,
        "DOMAIN_ERROR": 1,
    }
    assert summary["scores"] == {"4": 1, "10": 1}


def test_generate_report(export_csv, tmp_path):
    results = evaluate_records(read_records(export_csv))
    out = tmp_path / "report.txt"
    text = generate_report(results, out, source="visits.csv")
    assert out.read_text(encoding="utf-8") == text
    assert "EDSS — BATCH SCORING REPORT" in text
    assert "[PARSE_ERROR] P-004" in text
    assert "[DOMAIN_ERROR] P-005" in text
    assert "P-003: missing pyramidal_functions_score" in text
    assert "P-001: EDSS 4 (R6b-ii)" in text
    # Distribution sorted numerically: 4 before 10
    assert text.index("EDSS    4: 1") < text.index("EDSS   10: 1")


def test_write_results_json(export_csv, tmp_path):
    results = evaluate_records(read_records(export_csv))
    path = write_results_json(results, tmp_path / "out" / "results.json", source="visits.csv")
    payload = json.loads(path.read_text(encoding="utf-8"))
    assert payload["engine_version"]
    assert payload["table_version"]
    assert payload["summary"]["total"] == 5
    assert payload["results"][0]["outcome"] == "SCORED"
    assert payload["results"][0]["score"] == "4"


def test_main_writes_outputs(export_csv, tmp_path, capsys):
    out_dir = tmp_path / "out"
    assert main(["--input", str(export_csv), "--output-dir", str(out_dir), "--excel"]) == 0
    assert (out_dir / "visits_edss_report.txt").exists()
    assert (out_dir / "visits_edss_results.json").exists()
    assert (out_dir / "edss_dashboard.xlsx").exists()
    assert FailureLog(out_dir / "failure_log.jsonl").count() == 3
    assert "Done." in capsys.readouterr().out


def test_main_with_custom_field_map_file(tmp_path):
    fields = {r: f"c_{r}" for r in SCORE_ROLES}
    fmap = tmp_path / "fields.json"
    fmap.write_text(json.dumps({"meta": {"locked": True}, "fields": fields}), encoding="utf-8")
    export = _write_csv(tmp_path / "study.csv", ["id"] + [fields[r] for r in SCORE_ROLES], [["S1"] + ["0"] * 7 + ["4"]])
    out_dir = tmp_path / "out"
    assert main(["-i", str(export), "-f", str(fmap), "--id-field", "id", "--output-dir", str(out_dir)]) == 0
    payload = json.loads((out_dir / "study_edss_results.json").read_text(encoding="utf-8"))
    assert payload["results"][0]["record_id"] == "S1"
    assert payload["results"][0]["score"] == "5.5"
