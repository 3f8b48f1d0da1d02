#!/usr/bin/env python3
"""
EDSS — Score Normalizer (v1)

Rescales the two Functional Systems whose raw scale is wider than the one
used by the EDSS table:

  Visual (Optic)   raw 0-6 -> 0-4:  0→0, 1→1, 2-3→2, 4-5→3, 6→4
  Bowel & Bladder  raw 0-6 -> 0-5:  0→0, 1→1, 2→2, 3-4→3, 5→4, 6→5

All other FS scores pass through unchanged. Raw values are validated
before conversion; out-of-range values raise DomainError.
"""

from __future__ import annotations

from typing import List

from edss.scoring.model import (
    AMBULATION_MAX,
    AMBULATION_ROLE,
    DomainError,
    FunctionalSystem,
    ScoreInput,
)


def check_range(role: str, value: object, high: int) -> int:
    # bool is an int subclass but never a valid score
    if isinstance(value, bool) or not isinstance(value, int):
        raise DomainError(role, value, 0, high)
    if value < 0 or value > high:
        raise DomainError(role, value, 0, high)
    return value


def normalize_visual(raw: int) -> int:
    """Convert the raw Visual FS score (0-6) to its EDSS value (0-4)."""
    check_range(FunctionalSystem.VISUAL.role, raw, FunctionalSystem.VISUAL.max_raw)
    if raw == 6:
        return 4
    if raw >= 4:
        return 3
    if raw >= 2:
        return 2
    return raw


def normalize_bowel_bladder(raw: int) -> int:
    """Convert the raw Bowel & Bladder FS score (0-6) to its EDSS value (0-5)."""
    check_range(FunctionalSystem.BOWEL_BLADDER.role, raw, FunctionalSystem.BOWEL_BLADDER.max_raw)
    if raw == 6:
        return 5
    if raw == 5:
        return 4
    if raw >= 3:
        return 3
    return raw


def validate_input(scores: ScoreInput) -> None:
    """Reject any raw score outside its Neurostatus range."""
    raw = scores.by_role()
    for fs in FunctionalSystem:
        check_range(fs.role, raw[fs.role], fs.max_raw)
    check_range(AMBULATION_ROLE, scores.ambulation, AMBULATION_MAX)


def normalize_functional_systems(scores: ScoreInput) -> List[int]:
    """Return the 7 converted FS values in Neurostatus order."""
    validate_input(scores)
    return [
        normalize_visual(scores.visual),
        scores.brainstem,
        scores.pyramidal,
        scores.cerebellar,
        scores.sensory,
        normalize_bowel_bladder(scores.bowel_bladder),
        scores.cerebral,
    ]
