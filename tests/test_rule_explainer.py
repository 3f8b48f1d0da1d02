from edss.reporting.rule_explainer import describe_result, explain_rule
from edss.scoring.engine import evaluate
from edss.scoring.model import ScoreInput
from edss.scoring.resolver import RULES


def test_every_rule_has_a_description():
    for rule in RULES:
        assert explain_rule(rule.rule_id) == rule.description


def test_ambulation_rules():
    assert explain_rule("AMB_16") == "Ambulation 16: Death due to MS"
    assert explain_rule("AMB_10").startswith("Ambulation 10: Restricted to wheelchair")


def test_unknown_rule_ids_pass_through():
    assert explain_rule("R99") == "R99"
    assert explain_rule("AMB_2") == "AMB_2"
    assert explain_rule("AMB_x") == "AMB_x"


def test_describe_result_for_rule_table():
    text = describe_result(evaluate(ScoreInput(1, 2, 1, 3, 1, 4, 2, 1)))
    lines = text.splitlines()
    assert lines[0] == "EDSS 4"
    assert "R6b-ii" in lines[1]
    assert "bowelBladder=3" in text
    assert "Max grade 3 (x2), next grade 2 (x2)" in text


def test_describe_result_for_ambulation_table():
    text = describe_result(evaluate(ScoreInput(0, 0, 0, 0, 0, 0, 0, 12)))
    assert text.startswith("EDSS 8")
    assert "Max grade" not in text


def test_describe_result_lists_shadowed_rules():
    text = describe_result(evaluate(ScoreInput(0, 4, 3, 3, 3, 0, 0, 0)))
    assert "R3a" in text.splitlines()[1]
    assert "  Also matched: R3b, R10" in text.splitlines()


def test_describe_result_without_shadowed_rules():
    assert "Also matched" not in describe_result(evaluate(ScoreInput(0, 0, 0, 0, 0, 0, 0, 0)))
    assert "Also matched" not in describe_result(evaluate(ScoreInput(0, 0, 0, 0, 0, 0, 0, 12)))
