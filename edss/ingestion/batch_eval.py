#!/usr/bin/env python3
"""
EDSS Batch Evaluator and Report Generator.

Scores every record of a dataset export (CSV or XLSX with a header row) and
generates a structured summary report. Records that cannot be scored are
kept in the output with their outcome (INCOMPLETE, PARSE_ERROR,
DOMAIN_ERROR) and logged to the data-quality log.

Usage:
    python -m edss.ingestion.batch_eval --input exports/visits.csv
    python -m edss.ingestion.batch_eval --input redcap.xlsx --fields redcap_pt --suffix _long --excel
"""
from __future__ import annotations

import argparse
import csv
import json
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from openpyxl import load_workbook

from edss import ENGINE_VERSION, TABLE_VERSION
from edss.governance.failure_log import (
    FailureLog,
    log_domain_error,
    log_incomplete_record,
    log_parse_error,
)
from edss.ingestion.field_maps import FIELDS_DEFAULT, get_field_map, resolve_keys
from edss.ingestion.record_mapper import evaluate_from_map, missing_keys
from edss.scoring.model import DomainError, ParseError, RecordOutcome, RecordResult

DEFAULT_ID_FIELD = "record_id"
_OUTPUT_DIR = Path("outputs") / "edss"


# ---------------------------------------------------------------------------
# Input readers
# ---------------------------------------------------------------------------

def _read_csv(path: Path) -> List[Dict[str, Any]]:
    with open(path, "r", encoding="utf-8-sig", newline="") as f:
        return [dict(row) for row in csv.DictReader(f)]


def _read_xlsx(path: Path) -> List[Dict[str, Any]]:
    wb = load_workbook(path, read_only=True, data_only=True)
    try:
        ws = wb.worksheets[0]
        rows = ws.iter_rows(values_only=True)
        header = next(rows, None)
        if header is None:
            return []
        columns = [str(h).strip() if h is not None else "" for h in header]
        records: List[Dict[str, Any]] = []
        for values in rows:
            if values is None or all(v is None for v in values):
                continue
            records.append({c: v for c, v in zip(columns, values) if c})
        return records
    finally:
        wb.close()


def read_records(path: Path) -> List[Dict[str, Any]]:
    """Read a dataset export into a list of records (one dict per row)."""
    if not path.exists():
        raise SystemExit(f"Missing input: {path}")
    ext = path.suffix.lower()
    if ext == ".csv":
        return _read_csv(path)
    if ext in (".xlsx", ".xlsm"):
        return _read_xlsx(path)
    raise SystemExit(f"Unsupported input format: {path.name} (expected .csv or .xlsx)")


# ---------------------------------------------------------------------------
# Evaluation
# ---------------------------------------------------------------------------

def _record_id(record: Mapping[str, Any], id_field: str, index: int) -> str:
    value = record.get(id_field)
    if value is None or str(value).strip() == "":
        return f"row_{index}"
    return str(value).strip()


def evaluate_record(
    record: Mapping[str, Any],
    field_map: Mapping[str, str] = FIELDS_DEFAULT,
    suffix: str = "",
    id_field: str = DEFAULT_ID_FIELD,
    index: int = 1,
) -> RecordResult:
    """
    Score one record. Data problems become outcomes, never exceptions.
    """
    rid = _record_id(record, id_field, index)

    try:
        result = evaluate_from_map(record, field_map, suffix)
    except ParseError as e:
        return RecordResult(
            record_id=rid,
            outcome=RecordOutcome.PARSE_ERROR,
            message=str(e),
            offending_key=e.key,
        )
    except DomainError as e:
        keys = resolve_keys(field_map, suffix)
        return RecordResult(
            record_id=rid,
            outcome=RecordOutcome.DOMAIN_ERROR,
            message=str(e),
            offending_key=keys.get(e.role),
        )

    if result is None:
        missing = missing_keys(record, field_map, suffix)
        return RecordResult(
            record_id=rid,
            outcome=RecordOutcome.INCOMPLETE,
            message=f"Missing {len(missing)} of 8 required scores",
            missing_fields=missing,
        )

    return RecordResult(
        record_id=rid,
        outcome=RecordOutcome.SCORED,
        score=result.score,
        rule_id=result.rule_id,
    )


def evaluate_records(
    records: List[Mapping[str, Any]],
    field_map: Mapping[str, str] = FIELDS_DEFAULT,
    suffix: str = "",
    id_field: str = DEFAULT_ID_FIELD,
    failure_log: Optional[FailureLog] = None,
    command: str = "",
) -> List[RecordResult]:
    """Score every record; data-quality problems are appended to failure_log if given."""
    results: List[RecordResult] = []
    for i, record in enumerate(records, start=1):
        r = evaluate_record(record, field_map, suffix, id_field, index=i)
        results.append(r)
        if failure_log is not None:
            _log_failure(failure_log, r, record, command)
    return results


def _log_failure(log: FailureLog, r: RecordResult, record: Mapping[str, Any], command: str) -> None:
    key = r.offending_key or ""
    if r.outcome == RecordOutcome.PARSE_ERROR:
        log_parse_error(log, r.record_id, key, record.get(key), command=command)
    elif r.outcome == RecordOutcome.DOMAIN_ERROR:
        log_domain_error(log, r.record_id, key, record.get(key), r.message, command=command)
    elif r.outcome == RecordOutcome.INCOMPLETE:
        log_incomplete_record(log, r.record_id, r.missing_fields, command=command)


def summarize_outcomes(results: List[RecordResult]) -> Dict[str, Any]:
    """Outcome counts and the EDSS distribution of scored records."""
    outcomes: Dict[str, int] = {o.value: 0 for o in RecordOutcome}
    scores: Dict[str, int] = {}
    for r in results:
        outcomes[r.outcome.value] += 1
        if r.score is not None:
            scores[r.score] = scores.get(r.score, 0) + 1
    return {"total": len(results), "outcomes": outcomes, "scores": scores}


# ---------------------------------------------------------------------------
# Outputs
# ---------------------------------------------------------------------------

def write_results_json(results: List[RecordResult], output_path: Path, source: str = "") -> Path:
    payload = {
        "engine_version": ENGINE_VERSION,
        "table_version": TABLE_VERSION,
        "generated_at": datetime.now().isoformat(timespec="seconds"),
        "source": source,
        "summary": summarize_outcomes(results),
        "results": [r.to_dict() for r in results],
    }
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
    return output_path


def generate_report(
    results: List[RecordResult],
    output_path: Optional[Path] = None,
    source: str = "",
) -> str:
    """
    Generate a human-readable batch report.

    Returns the report text. Optionally writes to file.
    """
    summary = summarize_outcomes(results)
    outcomes = summary["outcomes"]

    lines = []
    lines.append("=" * 70)
    lines.append("EDSS — BATCH SCORING REPORT")
    lines.append("=" * 70)
    lines.append("")
    lines.append(f"Source:           {source or 'Unknown'}")
    lines.append(f"Engine:           {ENGINE_VERSION} ({TABLE_VERSION})")
    lines.append(f"Records:          {summary['total']}")
    lines.append("")

    lines.append("-" * 70)
    lines.append("SUMMARY")
    lines.append("-" * 70)
    for o in RecordOutcome:
        lines.append(f"  {o.value + ':':<18}{outcomes[o.value]}")
    lines.append("")

    if summary["scores"]:
        lines.append("-" * 70)
        lines.append("EDSS DISTRIBUTION")
        lines.append("-" * 70)
        for score in sorted(summary["scores"], key=float):
            lines.append(f"  EDSS {score:>4}: {summary['scores'][score]}")
        lines.append("")

    # Data problems first: they need review before the scores are used
    problems = [r for r in results if r.outcome in (RecordOutcome.PARSE_ERROR, RecordOutcome.DOMAIN_ERROR)]
    if problems:
        lines.append("-" * 70)
        lines.append("INVALID RECORDS (REQUIRES DATA REVIEW)")
        lines.append("-" * 70)
        for r in problems:
            lines.append(f"  [{r.outcome.value}] {r.record_id}: {r.message}")
        lines.append("")

    incomplete = [r for r in results if r.outcome == RecordOutcome.INCOMPLETE]
    if incomplete:
        lines.append("-" * 70)
        lines.append("INCOMPLETE RECORDS (NOT SCORED)")
        lines.append("-" * 70)
        for r in incomplete:
            lines.append(f"  {r.record_id}: missing {', '.join(r.missing_fields)}")
        lines.append("")

    scored = [r for r in results if r.outcome == RecordOutcome.SCORED]
    if scored:
        lines.append("-" * 70)
        lines.append("SCORED RECORDS")
        lines.append("-" * 70)
        for r in scored:
            lines.append(f"  {r.record_id}: EDSS {r.score} ({r.rule_id})")
        lines.append("")

    lines.append("=" * 70)
    text = "\n".join(lines) + "\n"

    if output_path is not None:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(text, encoding="utf-8")
    return text


def main(argv=None) -> int:
    ap = argparse.ArgumentParser(
        description="EDSS — Score every record of a CSV/XLSX export"
    )
    ap.add_argument("--input", "-i", required=True, help="CSV or XLSX export with a header row")
    ap.add_argument("--fields", "-f", default="default",
                    help="Field dictionary: 'default', 'redcap_pt' or a .json file")
    ap.add_argument("--suffix", default="", help="Suffix appended to every field name (e.g. _long)")
    ap.add_argument("--id-field", default=DEFAULT_ID_FIELD, help="Column holding the record identifier")
    ap.add_argument("--output-dir", help="Output directory (default: outputs/edss)")
    ap.add_argument("--excel", action="store_true", help="Update the Excel results workbook")
    ap.add_argument("--failure-log", help="Data-quality log path (default: <output-dir>/failure_log.jsonl)")
    args = ap.parse_args(argv)

    input_path = Path(args.input)
    out_dir = Path(args.output_dir) if args.output_dir else _OUTPUT_DIR
    field_map = get_field_map(args.fields)
    failure_log = FailureLog(Path(args.failure_log) if args.failure_log else out_dir / "failure_log.jsonl")

    print(f"EDSS -- Scoring: {input_path.name}")
    records = read_records(input_path)
    print(f"  {len(records)} records")

    results = evaluate_records(
        records,
        field_map=field_map,
        suffix=args.suffix,
        id_field=args.id_field,
        failure_log=failure_log,
        command=f"batch {input_path.name}",
    )

    summary = summarize_outcomes(results)
    print(f"  Outcomes: {summary['outcomes']}")

    report_path = out_dir / f"{input_path.stem}_edss_report.txt"
    generate_report(results, report_path, source=str(input_path))
    print(f"  Text:  {report_path}")

    json_path = write_results_json(results, out_dir / f"{input_path.stem}_edss_results.json", source=str(input_path))
    print(f"  JSON:  {json_path}")

    if args.excel:
        from edss.reporting.excel_dashboard import update_excel_dashboard
        excel_path = out_dir / "edss_dashboard.xlsx"
        update_excel_dashboard(results, excel_path, source=input_path.name)
        print(f"  Excel: {excel_path}")

    flagged = summary["total"] - summary["outcomes"][RecordOutcome.SCORED.value]
    if flagged:
        print(f"  Log:   {failure_log.path} ({flagged} records not scored)")

    print("Done.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
