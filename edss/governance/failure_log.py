#!/usr/bin/env python3
"""
EDSS Data Quality Log — append-only observational record.

Records data-quality issues detected while scoring datasets. Never modifies
scoring behavior — purely observational.

Storage: JSON Lines format (one JSON object per line) at outputs/edss/failure_log.jsonl

Categories:
- parse: A score field holds a value that is not an integer
- domain: A score is an integer outside its valid range
- incomplete: A record lacks one or more of the 8 required scores
"""
from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional


@dataclass
class FailureEntry:
    """A single data-quality record."""
    timestamp: str           # ISO 8601 timestamp
    section: str             # Scoring stage that rejected the record (e.g., "record_mapper", "normalizer")
    category: str            # "parse", "domain", "incomplete"
    description: str         # Factual, non-interpretive description
    command: str             # Triggering command or context (e.g., "batch visits.csv")
    detection_source: str    # "batch"
    record_id: Optional[str] = None    # Record identifier if applicable
    field: Optional[str] = None        # Offending record key if applicable
    metadata: Optional[Dict[str, Any]] = None  # Additional structured data


_DEFAULT_LOG_PATH = Path("outputs") / "edss" / "failure_log.jsonl"


class FailureLog:
    """
    Append-only data-quality log.

    Thread-safe for single-process usage (file append is atomic on most OSes).
    """

    def __init__(self, log_path: Optional[Path] = None):
        self._path = log_path or _DEFAULT_LOG_PATH

    @property
    def path(self) -> Path:
        return self._path

    def append(self, entry: FailureEntry) -> None:
        """Append a failure entry to the log file."""
        self._path.parent.mkdir(parents=True, exist_ok=True)
        record = asdict(entry)
        # Remove None values for cleaner output
        record = {k: v for k, v in record.items() if v is not None}
        with open(self._path, "a", encoding="utf-8") as f:
            f.write(json.dumps(record, default=str) + "\n")

    def read_all(self) -> List[FailureEntry]:
        """Read all failure entries from the log file."""
        if not self._path.exists():
            return []

        entries: List[FailureEntry] = []
        with open(self._path, "r", encoding="utf-8") as f:
            for line in f:
                line = line.strip()
                if not line:
                    continue
                try:
                    data = json.loads(line)
                except json.JSONDecodeError:
                    continue  # Skip malformed lines
                entries.append(FailureEntry(
                    timestamp=data.get("timestamp", ""),
                    section=data.get("section", ""),
                    category=data.get("category", ""),
                    description=data.get("description", ""),
                    command=data.get("command", ""),
                    detection_source=data.get("detection_source", ""),
                    record_id=data.get("record_id"),
                    field=data.get("field"),
                    metadata=data.get("metadata"),
                ))

        return entries

    def count(self) -> int:
        """Count total entries without loading all into memory."""
        if not self._path.exists():
            return 0
        count = 0
        with open(self._path, "r", encoding="utf-8") as f:
            for line in f:
                if line.strip():
                    count += 1
        return count

    def summary(self) -> Dict[str, int]:
        """Return counts by category."""
        counts: Dict[str, int] = {}
        for entry in self.read_all():
            counts[entry.category] = counts.get(entry.category, 0) + 1
        return counts


# ---------------------------------------------------------------------------
# Convenience functions for common failure types
# ---------------------------------------------------------------------------

def log_parse_error(
    log: FailureLog,
    record_id: str,
    field: str,
    value: Any,
    command: str = "",
    detection_source: str = "batch",
) -> None:
    """Log a score field whose value could not be parsed as an integer."""
    log.append(FailureEntry(
        timestamp=datetime.now().isoformat(),
        section="record_mapper",
        category="parse",
        description=f"Field '{field}' has non-integer value {value!r}",
        command=command,
        detection_source=detection_source,
        record_id=record_id,
        field=field,
        metadata={"value": str(value)},
    ))


def log_domain_error(
    log: FailureLog,
    record_id: str,
    field: str,
    value: Any,
    reason: str,
    command: str = "",
    detection_source: str = "batch",
) -> None:
    """Log a score outside its documented range."""
    log.append(FailureEntry(
        timestamp=datetime.now().isoformat(),
        section="normalizer",
        category="domain",
        description=reason,
        command=command,
        detection_source=detection_source,
        record_id=record_id,
        field=field,
        metadata={"value": str(value)},
    ))


def log_incomplete_record(
    log: FailureLog,
    record_id: str,
    missing: List[str],
    command: str = "",
) -> None:
    """Log a record lacking one or more required scores."""
    log.append(FailureEntry(
        timestamp=datetime.now().isoformat(),
        section="record_mapper",
        category="incomplete",
        description=f"Missing {len(missing)} of 8 required scores",
        command=command,
        detection_source="batch",
        record_id=record_id,
        metadata={"missing": list(missing)},
    ))
