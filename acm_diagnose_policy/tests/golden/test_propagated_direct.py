import os

from acm_diagnose_policy.access import SnapshotResourceAccess
from acm_diagnose_policy.engine import diagnose_policy, inspect_policy

FIXTURE = os.path.join(os.path.dirname(__file__), "propagated_direct", "policy.yaml")
POLICY = "ztp-site.site-operators-policy"


def test_propagated_policy_namespace_is_the_cluster():
    access = SnapshotResourceAccess.from_paths([FIXTURE])

    result = diagnose_policy(access, POLICY)

    assert result.ok, result.error
    diag = result.value
    assert diag.namespace == "sno-abi"
    assert diag.compliance_state == "NonCompliant"
    assert len(diag.clusters) == 1
    assert diag.clusters[0].cluster_name == "sno-abi"
    assert diag.clusters[0].compliance_state == "NonCompliant"


def test_operator_cr_is_traced_through_dotted_name():
    access = SnapshotResourceAccess.from_paths([FIXTURE])

    issues = diagnose_policy(access, POLICY).value.clusters[0].issues

    # The compliant template produces no issue
    assert len(issues) == 1
    issue = issues[0]
    assert issue.violation_type == "olm_stuck"
    assert issue.resource_kind == "operators"
    assert issue.resource_name == "web-terminal.openshift-web-terminal"
    assert issue.desired_state["kind"] == "Operator"

    call = issue.suggested_tool_call
    assert call.tool == "trace_olm_subscription"
    assert call.args == {
        "subscription_name": "web-terminal",
        "subscription_namespace": "openshift-web-terminal",
        "cluster": "sno-abi",
    }


def test_cluster_filter_excluding_own_namespace_yields_no_clusters():
    access = SnapshotResourceAccess.from_paths([FIXTURE])

    diag = diagnose_policy(access, POLICY, cluster="spoke-9").value

    assert diag.clusters == []
    assert diag.summary.startswith("Found 0 issue(s) across 0")


def test_inspect_propagated_policy():
    access = SnapshotResourceAccess.from_paths([FIXTURE])

    inspection = inspect_policy(access, POLICY).value

    assert [c.cluster_name for c in inspection.affected_clusters] == ["sno-abi"]
    assert len(inspection.violations) == 1
    v = inspection.violations[0]
    assert v.cluster_name == "sno-abi"
    assert v.violation_type == "olm_stuck"
    assert v.template_name == "site-operators-config"


def test_inspect_cluster_filter_excluding_own_namespace():
    access = SnapshotResourceAccess.from_paths([FIXTURE])

    inspection = inspect_policy(access, POLICY, cluster="spoke-9").value

    assert inspection.affected_clusters == []
    assert inspection.violations == []
    assert inspection.next_step == ""
    assert len(inspection.templates) == 2


def test_inspect_cluster_filter_naming_own_namespace():
    access = SnapshotResourceAccess.from_paths([FIXTURE])

    inspection = inspect_policy(access, POLICY, cluster="sno-abi").value

    assert [c.cluster_name for c in inspection.affected_clusters] == ["sno-abi"]
    assert len(inspection.violations) == 1
