from typing import Any

from acm_diagnose_policy.classifier import is_operator_kind
from acm_diagnose_policy.desired_state import DesiredStateIndex
from acm_diagnose_policy.model import get_kind, get_name, get_namespace
from acm_diagnose_policy.report import OLM_STUCK, SuggestedCall

DEFAULT_OPERATOR_NAMESPACE = "openshift-operators"

TRACE_OLM_SUBSCRIPTION = "trace_olm_subscription"
RESOURCES_GET = "resources_get"
RESOURCES_LIST = "resources_list"


def find_subscription(index: DesiredStateIndex) -> tuple[str, str] | None:
    """
    (name, namespace) of the first desired Subscription with a name.
    """
    for _key, desired in index.items():
        if get_kind(desired).lower() != "subscription":
            continue
        name = get_name(desired)
        if name:
            return name, get_namespace(desired)
    return None


def build_olm_call(
    kind: str, name: str, namespace: str, cluster: str, index: DesiredStateIndex
) -> SuggestedCall:
    sub_name = name
    sub_ns = namespace

    if is_operator_kind(kind):
        # Operator CRs are named "<package>.<namespace>"; the Subscription
        # in the templates is the better source when there is one.
        sub = find_subscription(index)
        if sub is not None:
            sub_name = sub[0]
            if sub[1]:
                sub_ns = sub[1]
        elif "." in name:
            sub_name, sub_ns = name.split(".", 1)

    return SuggestedCall(
        tool=TRACE_OLM_SUBSCRIPTION,
        args={
            "subscription_name": sub_name,
            "subscription_namespace": sub_ns or DEFAULT_OPERATOR_NAMESPACE,
            "cluster": cluster,
        },
    )


def build_suggested_call(
    violation_type: str,
    kind: str,
    name: str,
    namespace: str,
    cluster: str,
    index: DesiredStateIndex,
) -> SuggestedCall | None:
    """
    Next investigation step for a classified violation.

    `violation_type` is expected to be already promoted; an olm_stuck
    violation with a name is traced through its Subscription.
    """
    if violation_type == OLM_STUCK and name:
        return build_olm_call(kind, name, namespace, cluster, index)

    if not kind:
        return None

    args: dict[str, Any] = {
        "resource": f"{kind.lower()}/{name}" if name else kind.lower(),
        "cluster": cluster,
        "clean_metadata": True,
    }
    if namespace:
        args["namespace"] = namespace
    return SuggestedCall(tool=RESOURCES_GET if name else RESOURCES_LIST, args=args)
