import json
from typing import Any

# ----------------------------
# Output formatting
# ----------------------------


def output_result(result: dict[str, Any], fmt: str = "json") -> None:
    """
    Prints a diagnosis or inspection document.
    - json: the document as produced by to_dict()
    - text: one line per cluster and issue, followed by the next step
    """
    if fmt == "json":
        print(json.dumps(result, indent=2))
        return

    if "error" in result:
        status = "Canceled" if result.get("canceled") else "Error"
        print(f"{status}: {result['error']}")
        return

    print(f"Policy: {result['namespace']}/{result['policy_name']}")
    print(f"Compliance: {result['compliance_state'] or '<unknown>'}")

    if "clusters" in result:
        _print_diagnosis(result)
    else:
        _print_inspection(result)


def _print_diagnosis(result: dict[str, Any]) -> None:
    for cluster in result["clusters"]:
        print(f"\nCluster {cluster['cluster_name']} ({cluster['compliance_state']}):")
        for issue in cluster["issues"]:
            resource = "/".join(
                p for p in (issue.get("resource_kind"), issue.get("resource_name")) if p
            )
            print(f"  - [{issue['violation_type']}] {resource or '<unresolved>'}")
            print(f"    {issue['message']}")
            call = issue.get("suggested_tool_call")
            if call:
                args = ", ".join(f"{k}={v}" for k, v in sorted(call["args"].items()))
                print(f"    next: {call['tool']}({args})")

    print(f"\n{result['summary']}")


def _print_inspection(result: dict[str, Any]) -> None:
    if result["affected_clusters"]:
        print("\nClusters:")
        for c in result["affected_clusters"]:
            print(f"  {c['cluster_name']}: {c['compliance_state']}")

    if result["templates"]:
        print("\nTemplates:")
        for t in result["templates"]:
            print(f"  {t['kind']}/{t['name']}")

    if result["violations"]:
        print("\nViolations:")
        for v in result["violations"]:
            where = v.get("cluster_name", "")
            prefix = f"{where}: " if where else ""
            print(f"  - {prefix}[{v['violation_type']}] {v['message']}")

    if result.get("next_step"):
        print(f"\nNext step:\n  {result['next_step']}")
