#!/usr/bin/env python3
"""
EDSS — Scoring Engine (v1)

Entry point of the scoring core:

    validate -> normalize -> ambulation override -> decision list

Usage:
    python -m edss.scoring.engine 1 2 1 3 1 4 2 1
    python -m edss.scoring.engine 1 2 1 3 1 4 2 1 --json
"""
from __future__ import annotations

import argparse
import json

from edss.scoring.model import DomainError, EdssResult, ScoreInput, SCORE_ROLES
from edss.scoring.normalizer import normalize_functional_systems
from edss.scoring.resolver import resolve


def evaluate(scores: ScoreInput) -> EdssResult:
    """
    Compute the EDSS for one set of raw scores, keeping the rule trace.

    Raises DomainError if any raw score is out of range.
    """
    functional_systems = normalize_functional_systems(scores)
    score, rule_id, summary = resolve(functional_systems, scores.ambulation)
    return EdssResult(
        score=score,
        rule_id=rule_id,
        functional_systems=tuple(functional_systems),
        ambulation=scores.ambulation,
        summary=summary,
    )


def calculate(
    visual: int,
    brainstem: int,
    pyramidal: int,
    cerebellar: int,
    sensory: int,
    bowel_bladder: int,
    cerebral: int,
    ambulation: int,
) -> str:
    """
    Calculate the EDSS score from the 8 raw Neurostatus scores.

    Visual and Bowel & Bladder are given on their raw 0-6 scale and are
    converted internally.

    Returns the canonical EDSS string, e.g. '0', '1.5', '4', '6.5', '10'.
    """
    scores = ScoreInput(
        visual=visual,
        brainstem=brainstem,
        pyramidal=pyramidal,
        cerebellar=cerebellar,
        sensory=sensory,
        bowel_bladder=bowel_bladder,
        cerebral=cerebral,
        ambulation=ambulation,
    )
    return evaluate(scores).score


def main(argv=None) -> int:
    ap = argparse.ArgumentParser(description="Calculate the EDSS from 8 raw scores.")
    for role in SCORE_ROLES:
        ap.add_argument(role, type=int)
    ap.add_argument("--json", action="store_true", help="Print the full rule trace as JSON")
    args = ap.parse_args(argv)

    scores = ScoreInput(*(getattr(args, role) for role in SCORE_ROLES))
    try:
        result = evaluate(scores)
    except DomainError as e:
        print(f"Error: {e}")
        return 1

    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
    else:
        print(result.score)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
