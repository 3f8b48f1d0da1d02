#!/usr/bin/env python3
"""
EDSS CLI — Pure Python entry point.

Usage:
    python -m edss calc <visual> <brainstem> <pyramidal> <cerebellar> <sensory> <bowel_bladder> <cerebral> <ambulation>
    python -m edss explain <8 scores>
    python -m edss batch <export.csv|export.xlsx> [batch options]
    python -m edss excel <export.csv|export.xlsx> [batch options]
    python -m edss help

Works on Windows, macOS, and Linux without bash.
"""
from __future__ import annotations

import sys
from typing import List, Optional

from edss.scoring.model import DomainError, ScoreInput, SCORE_ROLES


def _parse_scores(args: list) -> Optional[ScoreInput]:
    """Parse exactly 8 integer arguments, or print usage and return None."""
    if len(args) != len(SCORE_ROLES):
        print(f"Expected {len(SCORE_ROLES)} scores: {' '.join(SCORE_ROLES)}")
        return None
    values: List[int] = []
    for role, raw in zip(SCORE_ROLES, args):
        try:
            values.append(int(raw))
        except ValueError:
            print(f"Error: {role} score must be an integer, got {raw!r}")
            return None
    return ScoreInput(*values)


def cmd_calc(args: list) -> int:
    """Print the EDSS for 8 raw scores."""
    scores = _parse_scores(args)
    if scores is None:
        return 1

    from edss.scoring.engine import evaluate

    try:
        result = evaluate(scores)
    except DomainError as e:
        print(f"Error: {e}")
        return 1
    print(result.score)
    return 0


def cmd_explain(args: list) -> int:
    """Print the EDSS with the rule that decided it."""
    scores = _parse_scores(args)
    if scores is None:
        return 1

    from edss.scoring.engine import evaluate
    from edss.reporting.rule_explainer import describe_result

    try:
        result = evaluate(scores)
    except DomainError as e:
        print(f"Error: {e}")
        return 1
    print(describe_result(result))
    return 0


def cmd_batch(args: list) -> int:
    """Score every record of an export."""
    if not args:
        print("Usage: python -m edss batch <export.csv|export.xlsx> [--fields NAME] [--suffix S]")
        return 1

    from edss.ingestion.batch_eval import main as batch_main

    return batch_main(["--input", args[0]] + list(args[1:]))


def cmd_excel(args: list) -> int:
    """Score every record of an export and update the Excel workbook."""
    if not args:
        print("Usage: python -m edss excel <export.csv|export.xlsx> [--fields NAME] [--suffix S]")
        return 1

    from edss.ingestion.batch_eval import main as batch_main

    return batch_main(["--input", args[0], "--excel"] + list(args[1:]))


def cmd_help(args: list) -> int:
    """Show help."""
    print("EDSS Scoring Engine")
    print()
    print("Usage: python -m edss <command> [args]")
    print()
    print("Commands:")
    print("  calc <8 scores>      Print the EDSS score")
    print("  explain <8 scores>   Print the EDSS score and the rule that decided it")
    print("  batch <file>         Score every record of a CSV/XLSX export")
    print("  excel <file>         Same as batch, and update the Excel results workbook")
    print("  help                 Show this help message")
    print()
    print("Score order: visual brainstem pyramidal cerebellar sensory bowel_bladder cerebral ambulation")
    print("Visual and bowel/bladder are given on their raw 0-6 scale.")
    print()
    print("Examples:")
    print("  python -m edss calc 1 2 1 3 1 4 2 1")
    print("  python -m edss explain 0 4 3 3 3 0 0 0")
    print("  python -m edss batch exports/visits.csv")
    print("  python -m edss batch redcap.xlsx --fields redcap_pt --suffix _long")
    print()
    return 0


_COMMANDS = {
    "calc": cmd_calc,
    "explain": cmd_explain,
    "batch": cmd_batch,
    "excel": cmd_excel,
    "help": cmd_help,
}


def main(argv: Optional[list] = None) -> int:
    args = sys.argv[1:] if argv is None else list(argv)
    if not args:
        return cmd_help([])

    command = args[0].lower()
    handler = _COMMANDS.get(command)
    if handler is None:
        print(f"Unknown command: {command}")
        print()
        return cmd_help([])

    return handler(args[1:])


if __name__ == "__main__":
    raise SystemExit(main())
