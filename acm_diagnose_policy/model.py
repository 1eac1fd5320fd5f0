import json
import os
from typing import Any

import yaml

COMPLIANT = "Compliant"

# ----------------------------
# Loading utilities
# ----------------------------


def load_json(path: str) -> Any:
    with open(path, encoding="utf-8") as f:
        return json.load(f)


def load_yaml_documents(path: str) -> list[Any]:
    with open(path, encoding="utf-8") as f:
        return [doc for doc in yaml.safe_load_all(f) if doc is not None]


def load_objects(path: str) -> list[dict[str, Any]]:
    """
    Load Kubernetes objects from a JSON or YAML file.

    Accepts single objects, multi-document YAML and `kind: List` wrappers
    (the shape of `kubectl get ... -o yaml`).
    """
    if path.endswith(".json"):
        docs = [load_json(path)]
    else:
        docs = load_yaml_documents(path)

    objects: list[dict[str, Any]] = []
    for doc in docs:
        objects.extend(normalize_items(doc))
    return objects


def normalize_items(doc: Any) -> list[dict[str, Any]]:
    if isinstance(doc, list):
        return [d for d in doc if isinstance(d, dict)]
    if not isinstance(doc, dict):
        return []
    if get_kind(doc).endswith("List") and "items" in doc:
        return [d for d in as_list(doc.get("items")) if isinstance(d, dict)]
    return [doc]


def iter_object_files(path: str) -> list[str]:
    if os.path.isdir(path):
        return sorted(
            os.path.join(path, f)
            for f in os.listdir(path)
            if f.endswith((".json", ".yaml", ".yml"))
        )
    return [path]


# ----------------------------
# Nested accessors
# ----------------------------


def nested(obj: Any, *path: str) -> Any:
    """
    Walk a JSON-like tree. Returns None as soon as a step is missing or
    the current node is not a mapping.
    """
    cur = obj
    for key in path:
        if not isinstance(cur, dict):
            return None
        cur = cur.get(key)
    return cur


def nested_str(obj: Any, *path: str, default: str = "") -> str:
    value = nested(obj, *path)
    return value if isinstance(value, str) else default


def nested_map(obj: Any, *path: str) -> dict[str, Any] | None:
    value = nested(obj, *path)
    return value if isinstance(value, dict) else None


def nested_list(obj: Any, *path: str) -> list[Any]:
    return as_list(nested(obj, *path))


def as_list(value: Any) -> list[Any]:
    return value if isinstance(value, list) else []


def iter_maps(items: list[Any]) -> list[dict[str, Any]]:
    return [i for i in items if isinstance(i, dict)]


def get_name(obj: Any) -> str:
    return nested_str(obj, "metadata", "name")


def get_namespace(obj: Any) -> str:
    return nested_str(obj, "metadata", "namespace")


def get_kind(obj: Any) -> str:
    return nested_str(obj, "kind")


# ----------------------------
# Policy status fields
# ----------------------------


def policy_compliance(policy: dict[str, Any]) -> str:
    return nested_str(policy, "status", "compliant")


def cluster_statuses(policy: dict[str, Any]) -> list[tuple[str, str]]:
    """
    (clustername, compliant) pairs from a root policy's status.status.
    """
    return [
        (nested_str(s, "clustername"), nested_str(s, "compliant"))
        for s in iter_maps(nested_list(policy, "status", "status"))
    ]


def latest_violations(policy: dict[str, Any]) -> list[tuple[str, str]]:
    """
    (template name, most recent history message) for every non-compliant
    entry in status.details. Older history entries are superseded state.
    """
    results = []
    for detail in iter_maps(nested_list(policy, "status", "details")):
        if nested_str(detail, "compliant") == COMPLIANT:
            continue
        history = nested_list(detail, "history")
        if not history or not isinstance(history[0], dict):
            continue
        results.append(
            (
                nested_str(detail, "templateMeta", "name"),
                nested_str(history[0], "message"),
            )
        )
    return results
