"""
Cascade policy for revoking grants.

Revoking a grant on a container with cascade also removes the grants the same
catalog role holds on everything inside that container:

* catalog: every non-catalog grant of the role;
* namespace ``P``: namespace grants strictly below ``P`` and table, view and
  policy grants whose namespace starts with ``P``;
* table, view, policy: nothing.

The target grant itself is never part of its own cascade.
"""

from typing import Iterable, List

from polariskit.models.grants import CatalogGrant, Grant, NamespaceGrant, grant_key
from polariskit.models.namespaces import is_prefix, is_strict_prefix


def is_cascade_descendant(target: Grant, candidate: Grant) -> bool:
    """True if revoking ``target`` with cascade also removes ``candidate``."""
    if isinstance(target, CatalogGrant):
        return not isinstance(candidate, CatalogGrant)
    if isinstance(target, NamespaceGrant):
        if isinstance(candidate, CatalogGrant):
            return False
        if isinstance(candidate, NamespaceGrant):
            return is_strict_prefix(target.namespace, candidate.namespace)
        return is_prefix(target.namespace, candidate.namespace)
    return False


def cascade_targets(target: Grant, grants: Iterable[Grant]) -> List[Grant]:
    """
    Grants removed together with ``target`` by a cascading revoke.

    Args:
        target: Grant being revoked
        grants: Every grant currently held by the same catalog role

    Returns:
        Descendant grants in input order, without duplicates
    """
    target_key = grant_key(target)
    seen = {target_key}
    descendants = []
    for grant in grants:
        key = grant_key(grant)
        if key in seen or not is_cascade_descendant(target, grant):
            continue
        seen.add(key)
        descendants.append(grant)
    return descendants
