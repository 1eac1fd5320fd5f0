from acm_diagnose_policy.report import OLM_STUCK, RESOURCE_DRIFT, RESOURCE_MISSING
from acm_diagnose_policy.rules.base_rule import ClassificationRule


class ResourceNotFoundRule(ClassificationRule):
    name = "ResourceNotFound"
    priority = 10
    violation_type = RESOURCE_MISSING

    def matches(self, message):
        return "not found" in message


class ResourceNotAsSpecifiedRule(ClassificationRule):
    name = "ResourceNotAsSpecified"
    priority = 20
    violation_type = RESOURCE_DRIFT

    def matches(self, message):
        return "not as specified" in message


class OLMInstallStuckRule(ClassificationRule):
    """
    InstallPlan / ClusterServiceVersion mentioned without a more specific
    missing/drift signal.
    """

    name = "OLMInstallStuck"
    priority = 30
    violation_type = OLM_STUCK

    def matches(self, message):
        return "installplan" in message or "clusterserviceversion" in message
