#!/usr/bin/env python3
"""
EDSS rule explainer - plain language descriptions.

Converts rule identifiers (e.g., R6b-i, AMB_11) into human-readable
explanations of why a score was assigned.
"""
from __future__ import annotations

from edss.scoring.model import EdssResult, FunctionalSystem
from edss.scoring.resolver import RULES_BY_ID, matching_rules


# Ambulation score to plain language mapping (Neurostatus ambulation grades)
_AMBULATION_DESCRIPTIONS = {
    3: "Walks 200-300 m without help or rest",
    4: "Walks 100-200 m without help or rest",
    5: "Walks at least 100 m with unilateral or without assistance",
    6: "Walks at least 50 m with unilateral assistance",
    7: "Walks at least 120 m with bilateral assistance",
    8: "Walks 5-49 m with unilateral assistance",
    9: "Walks 5-120 m with bilateral assistance",
    10: "Restricted to wheelchair, transfers without help",
    11: "Restricted to wheelchair, needs help to transfer",
    12: "Restricted to bed or chair, out of bed most of the day",
    13: "Restricted to bed much of the day, some effective use of arms",
    14: "Helpless bed patient, can communicate and eat",
    15: "Totally helpless bed patient",
    16: "Death due to MS",
}


def explain_rule(rule_id: str) -> str:
    """
    Explain what a rule identifier means.

    Args:
        rule_id: Like "R3a", "R10", "AMB_12"

    Returns:
        Plain language explanation
    """
    if rule_id.startswith("AMB_"):
        try:
            grade = int(rule_id[4:])
        except ValueError:
            return rule_id
        desc = _AMBULATION_DESCRIPTIONS.get(grade)
        if desc is None:
            return rule_id
        return f"Ambulation {grade}: {desc}"

    rule = RULES_BY_ID.get(rule_id)
    if rule is None:
        return rule_id
    return rule.description


def describe_result(result: EdssResult) -> str:
    """Multi-line summary of an EDSS result for terminal output."""
    lines = [f"EDSS {result.score}"]
    lines.append(f"  Rule: {result.rule_id} — {explain_rule(result.rule_id)}")

    converted = ", ".join(
        f"{fs.role}={value}" for fs, value in zip(FunctionalSystem, result.functional_systems)
    )
    lines.append(f"  Converted FS: {converted}")
    lines.append(f"  Ambulation: {result.ambulation}")

    s = result.summary
    if s is not None:
        lines.append(
            f"  Max grade {s.max_value} (x{s.max_count}), "
            f"next grade {s.second_max} (x{s.second_count})"
        )
        # Later rules that also hold but were shadowed by the deciding one
        shadowed = [r.rule_id for r in matching_rules(s, result.ambulation) if r.rule_id != result.rule_id]
        if shadowed:
            lines.append(f"  Also matched: {', '.join(shadowed)}")
    return "\n".join(lines)
