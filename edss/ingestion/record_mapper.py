#!/usr/bin/env python3
"""
EDSS — Record Mapper (v1)

Reads the 8 scores out of a key/value record (a REDCap export row, a form
payload, ...) and hands them to the scoring core.

Outcomes:
- all 8 keys present with integer values -> EDSS string
- any key absent, None or empty          -> None (data not yet collected)
- a value present but not an integer     -> ParseError
- an integer outside its valid range     -> DomainError (from the core)
"""

from __future__ import annotations

import re
from typing import Any, Dict, List, Mapping, Optional

from edss.ingestion.field_maps import FIELDS_DEFAULT, resolve_keys
from edss.scoring.engine import evaluate
from edss.scoring.model import EdssResult, ParseError, ScoreInput, SCORE_ROLES

# Plain decimal integers only: no underscores, no non-ASCII digits
_INT_RE = re.compile(r"[+-]?[0-9]+")


def parse_score(value: Any, key: str) -> Optional[int]:
    """
    Parse one record value into an int.

    Returns None for None / empty / whitespace-only values. Spreadsheet
    cells holding integral floats (2.0) are accepted.
    """
    if value is None:
        return None
    if isinstance(value, bool):
        raise ParseError(key, value)
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if value.is_integer():
            return int(value)
        raise ParseError(key, value)

    text = str(value).strip()
    if not text:
        return None
    if not _INT_RE.fullmatch(text):
        raise ParseError(key, value)
    return int(text)


def missing_keys(data: Mapping[str, Any], field_map: Mapping[str, str] = FIELDS_DEFAULT, suffix: str = "") -> List[str]:
    """Keys (after suffixing) whose values are absent or empty."""
    out: List[str] = []
    for key in resolve_keys(field_map, suffix).values():
        value = data.get(key)
        if value is None or (isinstance(value, str) and not value.strip()):
            out.append(key)
    return out


def extract_scores(
    data: Mapping[str, Any],
    field_map: Mapping[str, str] = FIELDS_DEFAULT,
    suffix: str = "",
) -> Optional[ScoreInput]:
    """Build a ScoreInput from a record, or None if any score is missing."""
    keys = resolve_keys(field_map, suffix)
    values: Dict[str, int] = {}
    for role in SCORE_ROLES:
        parsed = parse_score(data.get(keys[role]), keys[role])
        if parsed is None:
            return None  # Incomplete data
        values[role] = parsed
    return ScoreInput(*(values[role] for role in SCORE_ROLES))


def evaluate_from_map(
    data: Mapping[str, Any],
    field_map: Mapping[str, str] = FIELDS_DEFAULT,
    suffix: str = "",
) -> Optional[EdssResult]:
    scores = extract_scores(data, field_map, suffix)
    if scores is None:
        return None
    return evaluate(scores)


def calculate_from_map(
    data: Mapping[str, Any],
    field_map: Mapping[str, str] = FIELDS_DEFAULT,
    suffix: str = "",
) -> Optional[str]:
    """
    Calculate the EDSS from a record using a field dictionary.

    Args:
        data: Record with score values (strings or numbers)
        field_map: Role -> key dictionary (default: English keys)
        suffix: Appended to every key before lookup (e.g. '_long')

    Returns the EDSS string, or None if the record is incomplete.
    """
    result = evaluate_from_map(data, field_map, suffix)
    return result.score if result else None
