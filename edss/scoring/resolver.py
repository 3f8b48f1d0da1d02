#!/usr/bin/env python3
"""
EDSS — Rank-Based Score Resolver (v1)

Implements the EDSS table (Kappos, Neurostatus-EDSS) as:

1. Ambulation override: Ambulation 3-16 determines the EDSS alone.
2. Decision list: for Ambulation 0-2, an ordered list of guarded rules
   over the rank statistics of the 7 normalized FS values.

Evaluation order is part of the contract. Rules are checked top to bottom
and the first match wins; several predicates overlap, so later rules
assume every earlier rule failed.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Callable, List, Mapping, Optional, Sequence, Tuple

from edss.scoring.model import RankSummary


# ---------------------------------------------------------------------------
# Ambulation table (EDSS >= 5.0)
# ---------------------------------------------------------------------------

AMBULATION_EDSS: Mapping[int, str] = MappingProxyType({
    3: "5",      # Walks 200-300m without help
    4: "5.5",    # Walks 100-200m without help
    5: "6",      # Unilateral/bilateral assistance >= 120m
    6: "6",
    7: "6",
    8: "6.5",    # Bilateral assistance or limited walking
    9: "6.5",
    10: "7",     # Wheelchair without help
    11: "7.5",   # Wheelchair with help
    12: "8",     # Restricted to bed/chair, out of bed most of day
    13: "8.5",   # Restricted to bed; some use of arm(s)
    14: "9",     # Helpless bed patient; can communicate and eat
    15: "9.5",   # Totally helpless bed patient
    16: "10",    # Death due to MS
})


def ambulation_edss(ambulation: int) -> Optional[str]:
    """EDSS decided by ambulation alone, or None for ambulation 0-2."""
    return AMBULATION_EDSS.get(ambulation)


# ---------------------------------------------------------------------------
# Rank helpers
# ---------------------------------------------------------------------------

def find_max_and_count(values: Sequence[int]) -> Tuple[int, int]:
    """Maximum value and how many values reach it."""
    top = max(values)
    return top, sum(1 for v in values if v >= top)


def find_second_max_and_count(values: Sequence[int], top: int) -> Tuple[int, int]:
    """Largest value strictly below `top` and how many values reach it.

    Returns (0, 0) when no value is below `top`.
    """
    below = [v for v in values if v < top]
    if not below:
        return 0, 0
    second = max(below)
    return second, sum(1 for v in below if v >= second)


def summarize(values: Sequence[int]) -> RankSummary:
    top, top_count = find_max_and_count(values)
    second, second_count = find_second_max_and_count(values, top)
    return RankSummary(
        max_value=top,
        max_count=top_count,
        second_max=second,
        second_count=second_count,
    )


# ---------------------------------------------------------------------------
# Decision list (Ambulation 0-2)
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Rule:
    """A guarded rule: when predicate(summary, ambulation) holds, the EDSS is `score`."""
    rule_id: str
    description: str
    predicate: Callable[[RankSummary, int], bool]
    score: str

    def matches(self, summary: RankSummary, ambulation: int) -> bool:
        return self.predicate(summary, ambulation)


RULES: Tuple[Rule, ...] = (
    # EDSS 5.0 from FS alone
    Rule("R1", "One FS at grade 5 or more",
         lambda s, a: s.max_value >= 5, "5"),
    Rule("R2", "Two or more FS at grade 4",
         lambda s, a: s.max_value == 4 and s.max_count >= 2, "5"),
    Rule("R3a", "One FS at grade 4 with more than two FS at grade 3",
         lambda s, a: s.max_value == 4 and s.max_count == 1
         and s.second_max == 3 and s.second_count > 2, "5"),
    Rule("R3b", "One FS at grade 4 with others at grade 2 or 3",
         lambda s, a: s.max_value == 4 and s.max_count == 1
         and s.second_max in (2, 3), "4.5"),
    Rule("R3c", "One FS at grade 4, others 0-1, ambulation below 2",
         lambda s, a: s.max_value == 4 and s.max_count == 1
         and a < 2 and s.second_max < 2, "4"),
    # Only FS combination besides grade 4/5 that reaches 5.0 regardless of ambulation
    Rule("R4", "Six or more FS at grade 3",
         lambda s, a: s.max_value == 3 and s.max_count >= 6, "5"),
    Rule("R5", "Ambulation score 2",
         lambda s, a: a == 2, "4.5"),
    # maxValue == 3
    Rule("R6a", "Five FS at grade 3",
         lambda s, a: s.max_value == 3 and s.max_count == 5, "4.5"),
    Rule("R6b-i", "Two FS at grade 3, others 0-1",
         lambda s, a: s.max_value == 3 and s.max_count == 2 and s.second_max <= 1, "3.5"),
    Rule("R6b-ii", "Two to four FS at grade 3",
         lambda s, a: s.max_value == 3 and s.max_count >= 2, "4"),
    Rule("R6c-i", "One FS at grade 3 with three or more FS at grade 2",
         lambda s, a: s.max_value == 3 and s.second_max == 2 and s.second_count >= 3, "4"),
    Rule("R6c-ii", "One FS at grade 3 with one or two FS at grade 2",
         lambda s, a: s.max_value == 3 and s.second_max == 2, "3.5"),
    Rule("R6c-iii", "One FS at grade 3, others 0-1",
         lambda s, a: s.max_value == 3, "3"),
    # maxValue == 2
    Rule("R7a", "Six or more FS at grade 2",
         lambda s, a: s.max_value == 2 and s.max_count >= 6, "4"),
    Rule("R7b", "Five FS at grade 2",
         lambda s, a: s.max_value == 2 and s.max_count == 5, "3.5"),
    Rule("R7c", "Three or four FS at grade 2",
         lambda s, a: s.max_value == 2 and s.max_count in (3, 4), "3"),
    Rule("R7d", "Two FS at grade 2",
         lambda s, a: s.max_value == 2 and s.max_count == 2, "2.5"),
    Rule("R7e", "One FS at grade 2",
         lambda s, a: s.max_value == 2, "2"),
    Rule("R8", "Ambulation score 1",
         lambda s, a: a == 1, "2"),
    # maxValue == 1
    Rule("R9a", "Two or more FS at grade 1",
         lambda s, a: s.max_value == 1 and s.max_count >= 2, "1.5"),
    Rule("R9b", "One FS at grade 1",
         lambda s, a: s.max_value == 1, "1"),
    Rule("R10", "All FS at grade 0",
         lambda s, a: True, "0"),
)

RULES_BY_ID: Mapping[str, Rule] = MappingProxyType({r.rule_id: r for r in RULES})


def first_matching_rule(summary: RankSummary, ambulation: int, rules: Sequence[Rule] = RULES) -> Rule:
    for rule in rules:
        if rule.matches(summary, ambulation):
            return rule
    # R10 is unconditional, so this only happens with a custom rule list
    raise LookupError("No EDSS rule matched")


def matching_rules(summary: RankSummary, ambulation: int) -> List[Rule]:
    """Every rule whose predicate holds, in evaluation order (for explanations)."""
    return [r for r in RULES if r.matches(summary, ambulation)]


def resolve(functional_systems: Sequence[int], ambulation: int) -> Tuple[str, str, Optional[RankSummary]]:
    """
    Resolve the EDSS from 7 normalized FS values and the raw ambulation score.

    Returns: (score, rule_id, summary). summary is None when the ambulation
    table decided the score.
    """
    by_ambulation = ambulation_edss(ambulation)
    if by_ambulation is not None:
        return by_ambulation, f"AMB_{ambulation}", None

    summary = summarize(functional_systems)
    rule = first_matching_rule(summary, ambulation)
    return rule.score, rule.rule_id, summary
