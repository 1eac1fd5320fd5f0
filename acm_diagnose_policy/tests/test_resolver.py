import pytest

from acm_diagnose_policy.access import POLICY_KIND, ResourceAccess, SnapshotResourceAccess
from acm_diagnose_policy.errors import PolicyNotFoundError, ResourceAccessError
from acm_diagnose_policy.resolver import PolicyResolver


def policy(name, namespace):
    return {
        "apiVersion": "policy.open-cluster-management.io/v1",
        "kind": "Policy",
        "metadata": {"name": name, "namespace": namespace},
    }


class RecordingAccess(SnapshotResourceAccess):
    def __init__(self, objects):
        super().__init__(objects)
        self.calls = []

    def get_resource(self, kind, name, namespace):
        self.calls.append(("get", kind, name, namespace))
        return super().get_resource(kind, name, namespace)

    def list_resources(self, kind, namespace=""):
        self.calls.append(("list", kind, namespace))
        return super().list_resources(kind, namespace)


class BrokenListAccess(ResourceAccess):
    def get_resource(self, kind, name, namespace):
        raise ResourceAccessError("forbidden")

    def list_resources(self, kind, namespace=""):
        raise ResourceAccessError("connection refused")


def test_direct_lookup_when_namespace_given():
    access = RecordingAccess([policy("p", "ztp-common")])

    found, ns = PolicyResolver(access).resolve("p", "ztp-common")

    assert ns == "ztp-common"
    assert found["metadata"]["name"] == "p"
    assert access.calls == [("get", POLICY_KIND, "p", "ztp-common")]


def test_search_all_namespaces_without_namespace():
    access = RecordingAccess([policy("other", "a"), policy("p", "ztp-group")])

    _, ns = PolicyResolver(access).resolve("p")

    assert ns == "ztp-group"
    assert access.calls == [("list", POLICY_KIND, "")]


def test_direct_miss_falls_back_to_search():
    access = RecordingAccess([policy("p", "ztp-site")])

    _, ns = PolicyResolver(access).resolve("p", "wrong-ns")

    assert ns == "ztp-site"
    assert [c[0] for c in access.calls] == ["get", "list"]


def test_first_match_wins():
    access = SnapshotResourceAccess([policy("p", "first"), policy("p", "second")])

    _, ns = PolicyResolver(access).resolve("p")

    assert ns == "first"


def test_not_found_anywhere():
    access = SnapshotResourceAccess([policy("other", "a")])

    with pytest.raises(PolicyNotFoundError) as exc_info:
        PolicyResolver(access).resolve("p", "ztp-common")

    assert exc_info.value.name == "p"
    assert exc_info.value.namespace == "ztp-common"
    assert "ztp-common" in str(exc_info.value)


def test_list_failure_is_reported():
    with pytest.raises(ResourceAccessError, match="failed to list policies"):
        PolicyResolver(BrokenListAccess()).resolve("p", "ns")


class UnwrappedErrorAccess(SnapshotResourceAccess):
    def get_resource(self, kind, name, namespace):
        raise ConnectionError("connection reset by peer")


def test_unwrapped_direct_lookup_error_falls_back_to_search():
    access = UnwrappedErrorAccess([policy("p", "ztp-site")])

    _, ns = PolicyResolver(access).resolve("p", "ztp-common")

    assert ns == "ztp-site"


def test_unwrapped_list_error_is_reported():
    class Broken(ResourceAccess):
        def list_resources(self, kind, namespace=""):
            raise OSError("socket closed")

    with pytest.raises(ResourceAccessError, match="socket closed"):
        PolicyResolver(Broken()).resolve("p")
