#!/usr/bin/env python3
"""
EDSS — Scoring Data Models (v1)

Defines the value types shared by the scoring core and the record layer:
- FunctionalSystem: the 7 Functional Systems in Neurostatus order
- ScoreInput: the 8 raw caller-supplied scores
- RankSummary: max / second-max statistics over the normalized FS values
- EdssResult: final score plus the rule that produced it
- RecordOutcome / RecordResult: per-record batch outcomes
- EdssError, DomainError, ParseError: error taxonomy

Design:
- Deterministic
- Immutable: every type is a frozen dataclass or an Enum
- Fail-closed: out-of-range input is rejected, never clamped
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class FunctionalSystem(Enum):
    """Functional Systems in Neurostatus-EDSS standard order.

    Each value is (role name, maximum raw score).
    """
    VISUAL = ("visual", 6)
    BRAINSTEM = ("brainstem", 5)
    PYRAMIDAL = ("pyramidal", 6)
    CEREBELLAR = ("cerebellar", 5)
    SENSORY = ("sensory", 6)
    BOWEL_BLADDER = ("bowelBladder", 6)
    CEREBRAL = ("cerebral", 5)

    @property
    def role(self) -> str:
        return self.value[0]

    @property
    def max_raw(self) -> int:
        return self.value[1]


AMBULATION_ROLE = "ambulation"
AMBULATION_MAX = 16

# Canonical role names in calculation order (7 FS + ambulation)
SCORE_ROLES: Tuple[str, ...] = tuple(fs.role for fs in FunctionalSystem) + (AMBULATION_ROLE,)

# Every value the scale can produce, in ascending order
EDSS_STEPS: Tuple[str, ...] = (
    "0", "1", "1.5", "2", "2.5", "3", "3.5", "4", "4.5", "5",
    "5.5", "6", "6.5", "7", "7.5", "8", "8.5", "9", "9.5", "10",
)


class EdssError(ValueError):
    """Base class for EDSS scoring errors."""


class DomainError(EdssError):
    """A raw score lies outside its documented range (or is not an integer)."""

    def __init__(self, role: str, value: Any, low: int, high: int):
        self.role = role
        self.value = value
        self.low = low
        self.high = high
        super().__init__(f"{role} score {value!r} outside valid range {low}-{high}")


class ParseError(EdssError):
    """A record field is present but its value is not an integer."""

    def __init__(self, key: str, value: Any):
        self.key = key
        self.value = value
        super().__init__(f"Field '{key}' has non-integer value {value!r}")


@dataclass(frozen=True)
class ScoreInput:
    """The 8 raw (unconverted) scores supplied by the caller.

    Attributes:
        visual: Visual (Optic) FS, raw 0-6
        brainstem: Brainstem FS, 0-5
        pyramidal: Pyramidal FS, 0-6
        cerebellar: Cerebellar FS, 0-5
        sensory: Sensory FS, 0-6
        bowel_bladder: Bowel & Bladder FS, raw 0-6
        cerebral: Cerebral (Mental) FS, 0-5
        ambulation: Ambulation, 0-16
    """
    visual: int
    brainstem: int
    pyramidal: int
    cerebellar: int
    sensory: int
    bowel_bladder: int
    cerebral: int
    ambulation: int

    def as_tuple(self) -> Tuple[int, ...]:
        return (
            self.visual,
            self.brainstem,
            self.pyramidal,
            self.cerebellar,
            self.sensory,
            self.bowel_bladder,
            self.cerebral,
            self.ambulation,
        )

    def by_role(self) -> Dict[str, int]:
        return dict(zip(SCORE_ROLES, self.as_tuple()))


@dataclass(frozen=True)
class RankSummary:
    """Rank statistics over the 7 normalized FS values.

    second_max is the largest value strictly below max_value; when all
    values tie at the max, second_max and second_count are both 0.
    """
    max_value: int
    max_count: int
    second_max: int
    second_count: int


@dataclass(frozen=True)
class EdssResult:
    """Final EDSS determination for one set of scores.

    Attributes:
        score: Canonical EDSS string (e.g. "0", "4.5", "10")
        rule_id: Rule that decided the score ("AMB_<n>" for the ambulation table)
        functional_systems: The 7 normalized FS values
        ambulation: Raw ambulation score
        summary: Rank statistics, None when ambulation alone decided
    """
    score: str
    rule_id: str
    functional_systems: Tuple[int, ...]
    ambulation: int
    summary: Optional[RankSummary] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "score": self.score,
            "rule_id": self.rule_id,
            "functional_systems": list(self.functional_systems),
            "ambulation": self.ambulation,
            "summary": asdict(self.summary) if self.summary else None,
        }


class RecordOutcome(Enum):
    """Possible outcomes when scoring one record of a dataset.

    - SCORED: all 8 values present and valid, EDSS computed
    - INCOMPLETE: at least one value absent or empty (routine, not an error)
    - PARSE_ERROR: a value is present but not an integer
    - DOMAIN_ERROR: a value is an integer outside its valid range
    """
    SCORED = "SCORED"
    INCOMPLETE = "INCOMPLETE"
    PARSE_ERROR = "PARSE_ERROR"
    DOMAIN_ERROR = "DOMAIN_ERROR"


@dataclass
class RecordResult:
    """Batch result for a single record.

    Attributes:
        record_id: Identifier taken from the id field (or the row number)
        outcome: Scoring outcome
        score: EDSS string when SCORED, else None
        rule_id: Deciding rule when SCORED, else None
        message: Explanation for non-SCORED outcomes
        missing_fields: Keys that were absent or empty (INCOMPLETE only)
        offending_key: Record key behind a PARSE_ERROR / DOMAIN_ERROR
    """
    record_id: str
    outcome: RecordOutcome
    score: Optional[str] = None
    rule_id: Optional[str] = None
    message: str = ""
    missing_fields: List[str] = field(default_factory=list)
    offending_key: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["outcome"] = self.outcome.value
        return d
