from typing import Any

from acm_diagnose_policy.desired_state import DesiredStateIndex


def kinds_match(template_kind: str, violation_kind: str) -> bool:
    """
    Naive plural/singular comparison. ACM reports plural resource names
    ("nodes") against singular template kinds ("Node").
    """
    obj = template_kind.lower()
    v = violation_kind.lower()
    return v == obj or v in (obj + "s", obj + "es") or obj in (v + "s", v + "es")


def match_desired_state(
    index: DesiredStateIndex, template: str, kind: str, name: str
) -> dict[str, Any] | None:
    """
    Best matching desired state for a violation, or None when ambiguous.

    1. exact: template, kind (case-insensitive) and name
    2. flexible: template, pluralization-tolerant kind, name if known
    3. fallback: the single fragment of the template, if there is only one
    """
    exact = index.get(template, kind, name)
    if exact is not None:
        return exact

    candidates = index.for_template(template)

    for (_, d_kind, d_name), desired in candidates:
        if d_kind.lower() == kind.lower() and d_name == name:
            return desired

    for (_, d_kind, d_name), desired in candidates:
        if kinds_match(d_kind, kind) and (not name or d_name == name):
            return desired

    if len(candidates) == 1:
        return candidates[0][1]
    return None
