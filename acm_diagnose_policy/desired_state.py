from collections.abc import Iterator
from typing import Any

from acm_diagnose_policy.model import (
    get_kind,
    get_name,
    iter_maps,
    nested_list,
    nested_map,
)

CONFIGURATION_POLICY_KIND = "ConfigurationPolicy"

# (template name, resource kind, resource name)
DesiredKey = tuple[str, str, str]


class DesiredStateIndex:
    """
    What the operator wants, keyed by (template, kind, name).

    Iteration follows insertion order so matching stays deterministic.
    """

    def __init__(self):
        self._states: dict[DesiredKey, dict[str, Any]] = {}

    def add(self, template: str, kind: str, name: str, desired: dict[str, Any]) -> None:
        self._states[(template, kind, name)] = desired

    def get(self, template: str, kind: str, name: str) -> dict[str, Any] | None:
        return self._states.get((template, kind, name))

    def items(self) -> Iterator[tuple[DesiredKey, dict[str, Any]]]:
        return iter(self._states.items())

    def for_template(self, template: str) -> list[tuple[DesiredKey, dict[str, Any]]]:
        return [(k, v) for k, v in self._states.items() if k[0] == template]

    def __len__(self) -> int:
        return len(self._states)

    def __contains__(self, key: object) -> bool:
        return key in self._states


def iter_policy_templates(policy: dict[str, Any]) -> Iterator[dict[str, Any]]:
    """
    Yield the objectDefinition of every spec.policy-templates entry.
    """
    for template in iter_maps(nested_list(policy, "spec", "policy-templates")):
        definition = nested_map(template, "objectDefinition")
        if definition is not None:
            yield definition


def extract_desired_states(policy: dict[str, Any]) -> DesiredStateIndex:
    """
    Pull each ConfigurationPolicy's object-templates into an index.

    Best effort: malformed or missing fields are skipped, absence of
    desired state is not an error.
    """
    index = DesiredStateIndex()

    for definition in iter_policy_templates(policy):
        if get_kind(definition) != CONFIGURATION_POLICY_KIND:
            continue
        template_name = get_name(definition)

        for object_template in iter_maps(
            nested_list(definition, "spec", "object-templates")
        ):
            desired = nested_map(object_template, "objectDefinition")
            if desired is None:
                continue
            index.add(template_name, get_kind(desired), get_name(desired), desired)

    return index
