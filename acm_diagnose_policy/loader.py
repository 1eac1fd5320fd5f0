import glob
import importlib.util
import os
from typing import Any

import yaml

from acm_diagnose_policy.errors import RuleValidationError
from acm_diagnose_policy.report import VIOLATION_TYPES
from acm_diagnose_policy.rules.base_rule import ClassificationRule

# ----------------------------
# Dynamic Rule Loader
# ----------------------------


class YamlClassificationRule(ClassificationRule):
    """
    Substring rule declared in YAML:

        name: NoMatchesForKind
        priority: 5
        violation_type: crd_missing
        contains:
          - no matches for kind
    """

    def __init__(self, spec: dict[str, Any]):
        self.name = spec.get("name", "")
        self.priority = spec.get("priority", 100)
        self.violation_type = spec.get("violation_type", "")
        self.spec = spec

        contains = spec.get("contains", [])
        if isinstance(contains, str):
            contains = [contains]
        if not isinstance(contains, list) or not all(
            isinstance(c, str) for c in contains
        ):
            raise RuleValidationError(
                f"Rule {self.name}.contains must be a string or list of strings"
            )
        self.contains = [c.lower() for c in contains if c]

    def matches(self, message) -> bool:
        return any(c in message for c in self.contains)


def build_yaml_rules(spec: Any) -> list[ClassificationRule]:
    """
    Accepts either a single dict or a list of dicts from a YAML file.
    """
    rules: list[ClassificationRule] = []
    if not spec:
        return rules
    if isinstance(spec, dict):
        rules.append(YamlClassificationRule(spec))
    elif isinstance(spec, list):
        for item in spec:
            if not isinstance(item, dict):
                raise RuleValidationError("Each YAML rule must be a dict")
            rules.append(YamlClassificationRule(item))
    else:
        raise RuleValidationError("YAML content must be a dict or a list of dicts")
    return rules


def validate_rule(rule: ClassificationRule) -> None:
    for field in ("name", "priority", "violation_type"):
        if not hasattr(rule, field):
            raise RuleValidationError(f"Rule {rule} missing required field '{field}'")

    if not isinstance(rule.name, str) or not rule.name:
        raise RuleValidationError("Rule.name must be a non-empty string")
    if not isinstance(rule.priority, int) or isinstance(rule.priority, bool):
        raise RuleValidationError(f"Rule {rule.name}.priority must be an integer")
    if not (0 <= rule.priority <= 1000):
        raise RuleValidationError(
            f"Rule {rule.name}.priority must be between 0 and 1000"
        )
    if rule.violation_type not in VIOLATION_TYPES:
        raise RuleValidationError(
            f"Rule {rule.name}.violation_type must be one of {sorted(VIOLATION_TYPES)}"
        )


def load_rules(rule_folder: str | None = None) -> list[ClassificationRule]:
    if rule_folder is None:
        rule_folder = os.path.join(os.path.dirname(__file__), "rules")

    rules: list[ClassificationRule] = []

    # ---- Python rules ----
    for file in sorted(glob.glob(os.path.join(rule_folder, "*.py"))):
        if os.path.basename(file) == "base_rule.py":
            continue
        module_name = os.path.splitext(os.path.basename(file))[0]
        spec = importlib.util.spec_from_file_location(module_name, file)
        if spec is None or spec.loader is None:
            continue
        module = importlib.util.module_from_spec(spec)
        spec.loader.exec_module(module)
        for attr in dir(module):
            cls = getattr(module, attr)
            if (
                isinstance(cls, type)
                and issubclass(cls, ClassificationRule)
                and cls is not ClassificationRule
                and cls is not YamlClassificationRule
                and cls.__module__ == module_name
            ):
                rules.append(cls())

    # ---- YAML rules ----
    yaml_files = glob.glob(os.path.join(rule_folder, "*.yaml")) + glob.glob(
        os.path.join(rule_folder, "*.yml")
    )
    for yfile in sorted(yaml_files):
        with open(yfile, encoding="utf-8") as f:
            try:
                spec = yaml.safe_load(f)
            except yaml.YAMLError as exc:
                raise RuleValidationError(
                    f"Invalid YAML rule file {yfile}: {exc}"
                ) from exc
        if spec:
            rules.extend(build_yaml_rules(spec))

    # ---- CONTRACT VALIDATION ----
    for rule in rules:
        validate_rule(rule)

    return sorted(rules, key=lambda r: r.priority)


def load_plugins(plugin_folder: str | None = None) -> list[ClassificationRule]:
    if plugin_folder is None:
        return []
    if not os.path.isdir(plugin_folder):
        raise RuleValidationError(f"Rule folder {plugin_folder} does not exist")
    return load_rules(plugin_folder)
