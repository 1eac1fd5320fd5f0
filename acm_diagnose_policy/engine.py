import itertools
import logging
import threading
import time
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Protocol

from acm_diagnose_policy.access import POLICY_KIND, ResourceAccess
from acm_diagnose_policy.actions import build_suggested_call
from acm_diagnose_policy.classifier import ViolationClassifier, promote
from acm_diagnose_policy.desired_state import (
    DesiredStateIndex,
    extract_desired_states,
    iter_policy_templates,
)
from acm_diagnose_policy.errors import (
    DiagnosisError,
    InvalidArgumentsError,
    OperationCanceledError,
    format_error_for_user,
)
from acm_diagnose_policy.matcher import match_desired_state
from acm_diagnose_policy.model import (
    COMPLIANT,
    cluster_statuses,
    get_kind,
    get_name,
    get_namespace,
    latest_violations,
    policy_compliance,
)
from acm_diagnose_policy.parser import parse_violation_resource
from acm_diagnose_policy.report import (
    UNKNOWN,
    ClusterCompliance,
    ClusterDiagnosis,
    Diagnosis,
    InspectedViolation,
    PolicyInspection,
    TemplateInfo,
    ToolResult,
    Violation,
)
from acm_diagnose_policy.resolver import PolicyResolver

logger = logging.getLogger(__name__)

MAX_VIOLATION_MESSAGE_LEN = 300


class CancelSignal(Protocol):
    def is_set(self) -> bool: ...


# ----------------------------
# Request correlation
# ----------------------------

_request_counter = itertools.count(1)
_request_lock = threading.Lock()


def generate_request_id() -> str:
    with _request_lock:
        counter = next(_request_counter)
    return f"{int(time.time())}-{counter % 100000:05d}"


class RequestLogAdapter(logging.LoggerAdapter):
    def process(self, msg, kwargs):
        return f"[{self.extra['request_id']}] {msg}", kwargs


def truncate_message(message: str, limit: int = MAX_VIOLATION_MESSAGE_LEN) -> str:
    if len(message) > limit:
        return message[:limit] + "..."
    return message


def propagated_policy_name(root_namespace: str, root_name: str) -> str:
    return f"{root_namespace}.{root_name}"


# ----------------------------
# Aggregation
# ----------------------------


class ClusterDiagnosisAggregator:
    """
    Drives parse → classify → match → suggest for every affected cluster
    of a root (or directly diagnosed propagated) policy.
    """

    def __init__(
        self,
        access: ResourceAccess,
        classifier: ViolationClassifier | None = None,
        cancel: CancelSignal | None = None,
        max_workers: int = 1,
        log: logging.Logger | logging.LoggerAdapter | None = None,
    ):
        self.access = access
        self.classifier = classifier or ViolationClassifier()
        self.cancel = cancel
        self.max_workers = max(1, max_workers)
        self.log = log or logger

    def check_canceled(self) -> None:
        if self.cancel is not None and self.cancel.is_set():
            raise OperationCanceledError()

    def build_issue(
        self, template: str, message: str, cluster: str, index: DesiredStateIndex
    ) -> Violation:
        # Parsing and classification always see the full message
        resource = parse_violation_resource(message)
        violation_type = promote(
            self.classifier.classify(message), resource.kind, resource.name
        )

        return Violation(
            violation_type=violation_type,
            template_name=template,
            message=truncate_message(message),
            resource_kind=resource.kind,
            resource_name=resource.name,
            resource_namespace=resource.namespace,
            desired_state=match_desired_state(
                index, template, resource.kind, resource.name
            ),
            suggested_tool_call=build_suggested_call(
                violation_type,
                resource.kind,
                resource.name,
                resource.namespace,
                cluster,
                index,
            ),
        )

    def issues_from_policy(
        self, policy: dict[str, Any], cluster: str, index: DesiredStateIndex
    ) -> list[Violation]:
        return [
            self.build_issue(template, message, cluster, index)
            for template, message in latest_violations(policy)
        ]

    def diagnose_cluster(
        self,
        root_namespace: str,
        root_name: str,
        cluster: str,
        state: str,
        index: DesiredStateIndex,
    ) -> ClusterDiagnosis:
        self.check_canceled()

        diag = ClusterDiagnosis(cluster_name=cluster, compliance_state=state)
        name = propagated_policy_name(root_namespace, root_name)
        try:
            propagated = self.access.get_resource(POLICY_KIND, name, cluster)
        except OperationCanceledError:
            raise
        except Exception as exc:
            self.log.debug(
                "Could not fetch propagated policy %s in %s: %s", name, cluster, exc
            )
            diag.issues.append(
                Violation(
                    violation_type=UNKNOWN,
                    template_name="",
                    message=(
                        f"Could not fetch propagated policy {name} "
                        f"in namespace {cluster}"
                    ),
                )
            )
            return diag

        diag.issues.extend(self.issues_from_policy(propagated, cluster, index))
        return diag

    def _map_clusters(self, fn: Callable[..., Any], targets: list[tuple]) -> list[Any]:
        """
        Apply fn per target, keeping target order. Fetches run on a bounded
        pool when max_workers > 1.
        """
        if self.max_workers == 1 or len(targets) < 2:
            return [fn(*t) for t in targets]

        with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
            futures = [pool.submit(fn, *t) for t in targets]
            try:
                return [f.result() for f in futures]
            except OperationCanceledError:
                for f in futures:
                    f.cancel()
                raise

    def diagnose(
        self,
        policy: dict[str, Any],
        namespace: str,
        policy_name: str,
        cluster_filter: str = "",
    ) -> Diagnosis:
        compliance = policy_compliance(policy)
        index = extract_desired_states(policy)
        statuses = cluster_statuses(policy)

        targets = [
            (namespace, policy_name, cluster, state, index)
            for cluster, state in statuses
            if state != COMPLIANT and (not cluster_filter or cluster == cluster_filter)
        ]
        clusters: list[ClusterDiagnosis] = self._map_clusters(
            self.diagnose_cluster, targets
        )

        # A propagated policy carries no status.status: its namespace is the cluster
        own_ns = get_namespace(policy)
        if (
            not statuses
            and compliance != COMPLIANT
            and own_ns
            and (not cluster_filter or own_ns == cluster_filter)
        ):
            clusters.append(
                ClusterDiagnosis(
                    cluster_name=own_ns,
                    compliance_state=compliance,
                    issues=self.issues_from_policy(policy, own_ns, index),
                )
            )

        diag = Diagnosis(
            policy_name=policy_name,
            namespace=namespace,
            compliance_state=compliance,
            clusters=clusters,
        )
        diag.summary = (
            f"Found {diag.issue_count} issue(s) across {len(clusters)} "
            "non-compliant cluster(s). Follow the suggested_tool_call in each "
            "issue to continue investigation."
        )
        return diag

    # ----------------------------
    # Inspect variant
    # ----------------------------

    def inspect_violations(
        self, policy: dict[str, Any], cluster: str
    ) -> list[InspectedViolation]:
        results = []
        for template, message in latest_violations(policy):
            resource = parse_violation_resource(message)
            results.append(
                InspectedViolation(
                    template_name=template,
                    cluster_name=cluster,
                    violation_type=promote(
                        self.classifier.classify(message),
                        resource.kind,
                        resource.name,
                    ),
                    resource_kind=resource.kind,
                    resource_name=resource.name,
                    namespace=resource.namespace,
                    message=truncate_message(message),
                )
            )
        return results

    def inspect_cluster(
        self, root_namespace: str, root_name: str, cluster: str
    ) -> list[InspectedViolation]:
        self.check_canceled()
        name = propagated_policy_name(root_namespace, root_name)
        try:
            propagated = self.access.get_resource(POLICY_KIND, name, cluster)
        except OperationCanceledError:
            raise
        except Exception as exc:
            self.log.debug(
                "Skipping propagated policy %s in %s: %s", name, cluster, exc
            )
            return []
        return self.inspect_violations(propagated, cluster)

    def inspect(
        self,
        policy: dict[str, Any],
        namespace: str,
        policy_name: str,
        cluster_filter: str = "",
    ) -> PolicyInspection:
        result = PolicyInspection(
            policy_name=policy_name,
            namespace=namespace,
            compliance_state=policy_compliance(policy),
            templates=[
                TemplateInfo(name=get_name(d), kind=get_kind(d))
                for d in iter_policy_templates(policy)
            ],
        )

        statuses = [
            (cluster, state)
            for cluster, state in cluster_statuses(policy)
            if not cluster_filter or cluster == cluster_filter
        ]
        result.affected_clusters = [
            ClusterCompliance(cluster_name=c, compliance_state=s) for c, s in statuses
        ]

        own_ns = get_namespace(policy)
        if cluster_statuses(policy) or not own_ns:
            result.violations = self.inspect_violations(policy, "")
        elif not cluster_filter or own_ns == cluster_filter:
            # A propagated policy carries no status.status: its namespace is the cluster
            result.affected_clusters.append(
                ClusterCompliance(
                    cluster_name=own_ns,
                    compliance_state=result.compliance_state,
                )
            )
            result.violations = self.inspect_violations(policy, own_ns)

        targets = [(namespace, policy_name, c) for c, s in statuses if s != COMPLIANT]
        for violations in self._map_clusters(self.inspect_cluster, targets):
            result.violations.extend(violations)

        if result.violations and result.affected_clusters:
            cluster = result.affected_clusters[0].cluster_name
            result.next_step = (
                f"Inspect the violated resources on managed cluster '{cluster}' "
                "with resources_get or resources_list. For OLM-related violations "
                "(Subscription, CSV) call trace_olm_subscription "
                f"with cluster='{cluster}'. "
                "Use diagnose for classified issues with suggested tool calls."
            )
        return result


# ----------------------------
# Entry points
# ----------------------------


def _run_request(
    tool: str,
    access: ResourceAccess,
    policy_name: str,
    namespace: str,
    cancel: CancelSignal | None,
    run: Callable[[PolicyResolver, logging.LoggerAdapter], Any],
) -> ToolResult:
    request_id = generate_request_id()
    log = RequestLogAdapter(logger, {"request_id": request_id})
    start = time.monotonic()

    log.debug("Received tool request tool=%s policy=%s", tool, policy_name)

    try:
        if not policy_name:
            raise InvalidArgumentsError(
                "policy_name",
                "is required",
                hint=(
                    "pass the root policy name or <namespace>.<name> "
                    "of a propagated copy"
                ),
            )
        if cancel is not None and cancel.is_set():
            raise OperationCanceledError()
        value = run(PolicyResolver(access, log), log)
    except OperationCanceledError as exc:
        log.info("%s canceled policy=%s", tool, policy_name)
        return ToolResult(error=format_error_for_user(exc), canceled=True)
    except DiagnosisError as exc:
        log.debug("%s failed policy=%s: %s", tool, policy_name, exc)
        return ToolResult(error=format_error_for_user(exc))
    except Exception as exc:
        log.exception("Unexpected failure in %s", tool)
        return ToolResult(error=f"internal error while running {tool}: {exc}")

    log.info(
        "%s completed policy=%s elapsed=%.3fs",
        tool,
        policy_name,
        time.monotonic() - start,
    )
    return ToolResult(value=value)


def diagnose_policy(
    access: ResourceAccess,
    policy_name: str,
    namespace: str = "",
    cluster: str = "",
    cancel: CancelSignal | None = None,
    classifier: ViolationClassifier | None = None,
    max_workers: int = 1,
) -> ToolResult:
    """
    Full diagnosis of a root or propagated policy.

    Returns a ToolResult holding a Diagnosis, or an error / canceled
    result. Never raises.
    """

    def run(resolver, log):
        policy, resolved_ns = resolver.resolve(policy_name, namespace)
        aggregator = ClusterDiagnosisAggregator(
            access,
            classifier=classifier,
            cancel=cancel,
            max_workers=max_workers,
            log=log,
        )
        diag = aggregator.diagnose(policy, resolved_ns, policy_name, cluster)
        log.info(
            "Diagnosed %d cluster(s) with %d issue(s)",
            len(diag.clusters),
            diag.issue_count,
        )
        return diag

    return _run_request(
        "diagnose_acm_policy", access, policy_name, namespace, cancel, run
    )


def inspect_policy(
    access: ResourceAccess,
    policy_name: str,
    namespace: str = "",
    cluster: str = "",
    cancel: CancelSignal | None = None,
    classifier: ViolationClassifier | None = None,
    max_workers: int = 1,
) -> ToolResult:
    """
    Quick compliance status and flat violation list, without desired state
    or suggested tool calls.
    """

    def run(resolver, log):
        policy, resolved_ns = resolver.resolve(policy_name, namespace)
        aggregator = ClusterDiagnosisAggregator(
            access,
            classifier=classifier,
            cancel=cancel,
            max_workers=max_workers,
            log=log,
        )
        return aggregator.inspect(policy, resolved_ns, policy_name, cluster)

    return _run_request(
        "inspect_acm_policy", access, policy_name, namespace, cancel, run
    )
