import os

import pytest

from acm_diagnose_policy.errors import RuleValidationError
from acm_diagnose_policy.loader import build_yaml_rules, load_rules, validate_rule
from acm_diagnose_policy.report import VIOLATION_TYPES
from acm_diagnose_policy.rules.base_rule import ClassificationRule

RULES_DIR = os.path.join(os.path.dirname(__file__), "..", "rules")


class BadPriorityRule(ClassificationRule):
    name = "BadPriority"
    priority = -1
    violation_type = "unknown"


class BoolPriorityRule(ClassificationRule):
    name = "BoolPriority"
    priority = True
    violation_type = "unknown"


class BadTypeRule(ClassificationRule):
    name = "BadType"
    priority = 50
    violation_type = "not_a_type"


def test_priority_range_enforced():
    with pytest.raises(ValueError):
        validate_rule(BadPriorityRule())


def test_bool_priority_rejected():
    with pytest.raises(RuleValidationError):
        validate_rule(BoolPriorityRule())


def test_violation_type_must_be_known():
    with pytest.raises(RuleValidationError, match="violation_type"):
        validate_rule(BadTypeRule())


def test_all_rules_have_metadata():
    rules = load_rules(RULES_DIR)
    assert rules
    for r in rules:
        assert r.name
        assert 0 <= r.priority <= 1000
        assert r.violation_type in VIOLATION_TYPES
        assert callable(getattr(r, "matches", None))


def test_builtin_rules_sorted_by_priority():
    rules = load_rules(RULES_DIR)

    assert [r.name for r in rules] == [
        "ResourceNotFound",
        "ResourceNotAsSpecified",
        "OLMInstallStuck",
    ]


def test_yaml_rule_list_and_single_string():
    rules = build_yaml_rules(
        [
            {"name": "A", "priority": 1, "violation_type": "crd_missing", "contains": "No Matches"},
            {"name": "B", "priority": 2, "violation_type": "unknown", "contains": ["x", "y"]},
        ]
    )

    assert rules[0].contains == ["no matches"]
    assert rules[0].matches("error: no matches for kind")
    assert rules[1].matches("...y...")


def test_yaml_rule_must_be_dict():
    with pytest.raises(RuleValidationError):
        build_yaml_rules(["not a rule"])

    with pytest.raises(RuleValidationError):
        build_yaml_rules("just a string")


def test_yaml_rule_contains_must_be_strings():
    with pytest.raises(RuleValidationError):
        build_yaml_rules({"name": "A", "priority": 1, "violation_type": "unknown", "contains": [1]})


def test_invalid_yaml_file_rejected(tmp_path):
    (tmp_path / "broken.yaml").write_text("name: [unclosed\n")

    with pytest.raises(RuleValidationError, match="Invalid YAML"):
        load_rules(str(tmp_path))


def test_yaml_rule_file_validated(tmp_path):
    (tmp_path / "bad.yaml").write_text(
        "name: Bad\npriority: 5000\nviolation_type: unknown\ncontains: [x]\n"
    )

    with pytest.raises(RuleValidationError, match="between 0 and 1000"):
        load_rules(str(tmp_path))
