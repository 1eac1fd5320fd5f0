from dataclasses import dataclass, field
from typing import Any, Optional

# Violation taxonomy
RESOURCE_MISSING = "resource_missing"
RESOURCE_DRIFT = "resource_drift"
OLM_STUCK = "olm_stuck"
CRD_MISSING = "crd_missing"
UNKNOWN = "unknown"

VIOLATION_TYPES = {
    RESOURCE_MISSING,
    RESOURCE_DRIFT,
    OLM_STUCK,
    CRD_MISSING,
    UNKNOWN,
}

DEFAULT_SERVER = "openshift-mcp-server"


def _omit_empty(d: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in d.items() if v is not None and v != ""}


@dataclass(frozen=True)
class SuggestedCall:
    """
    Next tool invocation an investigator should make.
    """

    tool: str
    args: dict[str, Any]
    server: str = DEFAULT_SERVER

    def to_dict(self) -> dict[str, Any]:
        return {"server": self.server, "tool": self.tool, "args": dict(self.args)}

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> "SuggestedCall":
        return cls(
            tool=d["tool"],
            args=dict(d.get("args", {})),
            server=d.get("server", DEFAULT_SERVER),
        )


@dataclass(frozen=True)
class Violation:
    """
    One non-compliant fact extracted from a policy's status history.
    """

    violation_type: str
    template_name: str
    message: str
    resource_kind: str = ""
    resource_name: str = ""
    resource_namespace: str = ""
    desired_state: Optional[dict[str, Any]] = None
    suggested_tool_call: Optional[SuggestedCall] = None

    def to_dict(self) -> dict[str, Any]:
        d = {
            "violation_type": self.violation_type,
            "template_name": self.template_name,
            "resource_kind": self.resource_kind,
            "resource_name": self.resource_name,
            "resource_namespace": self.resource_namespace,
            "message": self.message,
            "desired_state": self.desired_state,
            "suggested_tool_call": (
                self.suggested_tool_call.to_dict()
                if self.suggested_tool_call
                else None
            ),
        }
        out = _omit_empty(d)
        # template_name and message are always present, even when empty
        out.setdefault("template_name", self.template_name)
        out.setdefault("message", self.message)
        return out

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> "Violation":
        call = d.get("suggested_tool_call")
        return cls(
            violation_type=d["violation_type"],
            template_name=d.get("template_name", ""),
            message=d.get("message", ""),
            resource_kind=d.get("resource_kind", ""),
            resource_name=d.get("resource_name", ""),
            resource_namespace=d.get("resource_namespace", ""),
            desired_state=d.get("desired_state"),
            suggested_tool_call=SuggestedCall.from_dict(call) if call else None,
        )


@dataclass
class ClusterDiagnosis:
    cluster_name: str
    compliance_state: str
    issues: list[Violation] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "cluster_name": self.cluster_name,
            "compliance_state": self.compliance_state,
            "issues": [i.to_dict() for i in self.issues],
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> "ClusterDiagnosis":
        return cls(
            cluster_name=d["cluster_name"],
            compliance_state=d.get("compliance_state", ""),
            issues=[Violation.from_dict(i) for i in d.get("issues", [])],
        )


@dataclass
class Diagnosis:
    """
    Sole output artifact of a full diagnosis request.
    """

    policy_name: str
    namespace: str
    compliance_state: str
    clusters: list[ClusterDiagnosis] = field(default_factory=list)
    summary: str = ""

    @property
    def issue_count(self) -> int:
        return sum(len(c.issues) for c in self.clusters)

    def to_dict(self) -> dict[str, Any]:
        return {
            "policy_name": self.policy_name,
            "namespace": self.namespace,
            "compliance_state": self.compliance_state,
            "clusters": [c.to_dict() for c in self.clusters],
            "summary": self.summary,
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> "Diagnosis":
        return cls(
            policy_name=d["policy_name"],
            namespace=d.get("namespace", ""),
            compliance_state=d.get("compliance_state", ""),
            clusters=[ClusterDiagnosis.from_dict(c) for c in d.get("clusters", [])],
            summary=d.get("summary", ""),
        )


# ----------------------------
# Inspect variant
# ----------------------------


@dataclass(frozen=True)
class ClusterCompliance:
    cluster_name: str
    compliance_state: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "cluster_name": self.cluster_name,
            "compliance_state": self.compliance_state,
        }


@dataclass(frozen=True)
class TemplateInfo:
    name: str
    kind: str

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "kind": self.kind}


@dataclass(frozen=True)
class InspectedViolation:
    template_name: str
    violation_type: str
    message: str
    cluster_name: str = ""
    resource_kind: str = ""
    resource_name: str = ""
    namespace: str = ""

    def to_dict(self) -> dict[str, Any]:
        out = _omit_empty(
            {
                "template_name": self.template_name,
                "cluster_name": self.cluster_name,
                "violation_type": self.violation_type,
                "resource_kind": self.resource_kind,
                "resource_name": self.resource_name,
                "namespace": self.namespace,
                "message": self.message,
            }
        )
        out.setdefault("template_name", self.template_name)
        out.setdefault("message", self.message)
        return out


@dataclass
class PolicyInspection:
    policy_name: str
    namespace: str
    compliance_state: str
    affected_clusters: list[ClusterCompliance] = field(default_factory=list)
    templates: list[TemplateInfo] = field(default_factory=list)
    violations: list[InspectedViolation] = field(default_factory=list)
    next_step: str = ""

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "policy_name": self.policy_name,
            "namespace": self.namespace,
            "compliance_state": self.compliance_state,
            "affected_clusters": [c.to_dict() for c in self.affected_clusters],
            "templates": [t.to_dict() for t in self.templates],
            "violations": [v.to_dict() for v in self.violations],
        }
        if self.next_step:
            d["next_step"] = self.next_step
        return d


@dataclass
class ToolResult:
    """
    Result-or-error returned by the public entry points.
    """

    value: Optional[Any] = None
    error: str = ""
    canceled: bool = False

    @property
    def ok(self) -> bool:
        return not self.error and not self.canceled

    def to_dict(self) -> dict[str, Any]:
        if self.ok and self.value is not None:
            return self.value.to_dict()
        return {"error": self.error, "canceled": self.canceled}
