from typing import Any

import yaml

from acm_diagnose_policy.errors import ResourceAccessError, ResourceNotFoundError
from acm_diagnose_policy.model import (
    get_kind,
    get_name,
    get_namespace,
    iter_object_files,
    load_objects,
)

# Fully qualified resource of ACM policies
POLICY_KIND = "policies.policy.open-cluster-management.io/v1"

_KIND_ALIASES = {
    "Policy": POLICY_KIND,
    "policy": POLICY_KIND,
    "policies": POLICY_KIND,
}


class ResourceAccess:
    """
    Read-only resource access used by the diagnosis core.

    Implementations raise ResourceNotFoundError for a missing object and
    ResourceAccessError for any other failure.
    """

    def get_resource(self, kind: str, name: str, namespace: str) -> dict[str, Any]:
        raise NotImplementedError

    def list_resources(self, kind: str, namespace: str = "") -> list[dict[str, Any]]:
        """
        List objects of `kind` in `namespace`; empty namespace means all.
        """
        raise NotImplementedError


def canonical_kind(kind: str) -> str:
    return _KIND_ALIASES.get(kind, kind)


class SnapshotResourceAccess(ResourceAccess):
    """
    Serves objects captured with `kubectl get ... -o yaml|json`.
    """

    def __init__(self, objects: list[dict[str, Any]] | None = None):
        self._objects: dict[str, list[dict[str, Any]]] = {}
        for obj in objects or []:
            self.add(obj)

    @classmethod
    def from_paths(cls, paths: list[str]) -> "SnapshotResourceAccess":
        access = cls()
        for path in paths:
            for file in iter_object_files(path):
                try:
                    objects = load_objects(file)
                except (OSError, ValueError, yaml.YAMLError) as exc:
                    raise ResourceAccessError(f"load snapshot {file}: {exc}") from exc
                for obj in objects:
                    access.add(obj)
        return access

    def add(self, obj: dict[str, Any]) -> None:
        if not get_name(obj):
            return
        kind = canonical_kind(get_kind(obj))
        self._objects.setdefault(kind, []).append(obj)

    def get_resource(self, kind, name, namespace):
        for obj in self._objects.get(canonical_kind(kind), []):
            if get_name(obj) == name and get_namespace(obj) == namespace:
                return obj
        raise ResourceNotFoundError(f"get {kind}/{name} in {namespace!r}: not found")

    def list_resources(self, kind, namespace=""):
        return [
            obj
            for obj in self._objects.get(canonical_kind(kind), [])
            if not namespace or get_namespace(obj) == namespace
        ]
