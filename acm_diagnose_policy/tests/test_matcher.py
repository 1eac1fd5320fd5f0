from acm_diagnose_policy.desired_state import DesiredStateIndex
from acm_diagnose_policy.matcher import kinds_match, match_desired_state


def build_index(*entries):
    index = DesiredStateIndex()
    for template, kind, name in entries:
        index.add(template, kind, name, {"kind": kind, "metadata": {"name": name}})
    return index


class TestKindsMatch:
    def test_plural_violation_kind(self):
        assert kinds_match("Node", "nodes")
        assert kinds_match("Subscription", "subscriptions")

    def test_es_plural(self):
        assert kinds_match("Ingress", "ingresses")

    def test_reverse_direction(self):
        assert kinds_match("nodes", "Node")

    def test_unrelated_kinds(self):
        assert not kinds_match("Node", "namespaces")


def test_exact_match_is_case_insensitive_on_kind():
    index = build_index(("t", "Node", "worker-1"), ("t", "Node", "worker-2"))

    desired = match_desired_state(index, "t", "node", "worker-2")

    assert desired["metadata"]["name"] == "worker-2"


def test_exact_match_wins_over_flexible():
    index = DesiredStateIndex()
    index.add("t", "Node", "worker-1", {"tier": "flexible"})
    index.add("t", "nodes", "worker-1", {"tier": "exact"})

    assert match_desired_state(index, "t", "nodes", "worker-1") == {"tier": "exact"}


def test_flexible_match_plural_kind_with_name():
    index = build_index(("t", "Node", "worker-1"), ("t", "Node", "worker-2"))

    desired = match_desired_state(index, "t", "nodes", "worker-2")

    assert desired["metadata"]["name"] == "worker-2"


def test_flexible_match_without_name_takes_first_kind_match():
    index = build_index(
        ("t", "Namespace", "ns-a"), ("t", "Node", "worker-1"), ("t", "Node", "worker-2")
    )

    desired = match_desired_state(index, "t", "nodes", "")

    assert desired["metadata"]["name"] == "worker-1"


def test_other_templates_are_never_considered():
    index = build_index(("other", "Node", "worker-1"), ("t", "ConfigMap", "a"), ("t", "ConfigMap", "b"))

    assert match_desired_state(index, "t", "nodes", "worker-1") is None


def test_fallback_single_fragment_for_template():
    index = build_index(("T", "PerformanceProfile", "openshift-node-performance"), ("U", "Node", "x"))

    desired = match_desired_state(index, "T", "tuned", "something-else")

    assert desired["kind"] == "PerformanceProfile"


def test_fallback_is_ambiguous_with_several_fragments():
    index = build_index(("T", "ConfigMap", "a"), ("T", "Secret", "b"))

    assert match_desired_state(index, "T", "nodes", "worker-1") is None


def test_no_fragments_no_match():
    assert match_desired_state(DesiredStateIndex(), "T", "nodes", "worker-1") is None


def test_matching_is_deterministic():
    index = build_index(("t", "Node", "a"), ("t", "Node", "b"))

    results = {id(match_desired_state(index, "t", "nodes", "")) for _ in range(5)}

    assert len(results) == 1


def test_identical_key_preferred_over_case_variant():
    index = build_index(("t", "node", "worker-1"), ("t", "Node", "worker-1"))

    desired = match_desired_state(index, "t", "Node", "worker-1")

    assert desired["kind"] == "Node"
