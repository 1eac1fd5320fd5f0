import logging
from typing import Any

from acm_diagnose_policy.access import POLICY_KIND, ResourceAccess
from acm_diagnose_policy.errors import (
    OperationCanceledError,
    PolicyNotFoundError,
    ResourceAccessError,
)
from acm_diagnose_policy.model import get_name, get_namespace

logger = logging.getLogger(__name__)


class PolicyResolver:
    """
    Finds a policy by name, auto-resolving its namespace when needed.

    Tries a direct lookup when a namespace is given, then falls back to a
    cluster-wide search by name. The first match wins.
    """

    def __init__(
        self,
        access: ResourceAccess,
        log: logging.Logger | logging.LoggerAdapter | None = None,
    ):
        self.access = access
        self.log = log or logger

    def resolve(self, name: str, namespace: str = "") -> tuple[dict[str, Any], str]:
        if namespace:
            try:
                return self.access.get_resource(POLICY_KIND, name, namespace), namespace
            except OperationCanceledError:
                raise
            except Exception as exc:
                self.log.info(
                    "Policy %s not in namespace %s (%s), searching all namespaces",
                    name,
                    namespace,
                    exc,
                )

        try:
            policies = self.access.list_resources(POLICY_KIND, "")
        except OperationCanceledError:
            raise
        except Exception as exc:
            raise ResourceAccessError(
                f"failed to list policies across namespaces: {exc}"
            ) from exc

        for policy in policies:
            if get_name(policy) == name:
                ns = get_namespace(policy)
                self.log.info("Auto-resolved policy %s to namespace %s", name, ns)
                return policy, ns

        raise PolicyNotFoundError(name, namespace)
