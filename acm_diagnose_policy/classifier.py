import os

from acm_diagnose_policy.loader import load_plugins, load_rules
from acm_diagnose_policy.report import OLM_STUCK, UNKNOWN
from acm_diagnose_policy.rules.base_rule import ClassificationRule

# Kinds owned by Operator Lifecycle Manager, as ACM reports them
OLM_KINDS = {
    k.lower()
    for k in (
        "Subscription",
        "subscriptions",
        "subscriptions.operators.coreos.com",
        "ClusterServiceVersion",
        "clusterserviceversions",
        "Operator",
        "operators",
        "operators.operators.coreos.com",
        "InstallPlan",
        "installplans",
        "CatalogSource",
        "catalogsources",
    )
}

# Aggregate Operator custom resource (not a concrete Subscription)
OPERATOR_KINDS = {"operator", "operators", "operators.operators.coreos.com"}

_DEFAULT_RULES = None


def get_default_rules() -> list[ClassificationRule]:
    global _DEFAULT_RULES
    if _DEFAULT_RULES is None:
        rules_path = os.path.join(os.path.dirname(__file__), "rules")
        _DEFAULT_RULES = load_rules(rules_path)
    return _DEFAULT_RULES


def is_olm_kind(kind: str) -> bool:
    return kind.lower() in OLM_KINDS


def is_operator_kind(kind: str) -> bool:
    return kind.lower() in OPERATOR_KINDS


class ViolationClassifier:
    """
    Ordered substring classification over the lower-cased message.
    First matching rule wins; no match means "unknown".
    """

    def __init__(
        self,
        rules: list[ClassificationRule] | None = None,
        extra_rules_folder: str | None = None,
    ):
        rules = list(rules if rules is not None else get_default_rules())
        rules += load_plugins(extra_rules_folder)
        self.rules = sorted(rules, key=lambda r: getattr(r, "priority", 100))

    def classify(self, message: str) -> str:
        rule = self.matching_rule(message)
        return rule.violation_type if rule is not None else UNKNOWN

    def matching_rule(self, message: str) -> ClassificationRule | None:
        lower = message.lower()
        for rule in self.rules:
            if rule.matches(lower):
                return rule
        return None


def promote(violation_type: str, kind: str, name: str) -> str:
    """
    Kind-based OLM promotion.

    A violation on an OLM kind becomes olm_stuck once a resource name is
    known; without a name the message-based classification stands.
    """
    if name and (violation_type == OLM_STUCK or is_olm_kind(kind)):
        return OLM_STUCK
    return violation_type
