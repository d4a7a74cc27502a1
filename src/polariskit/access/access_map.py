"""
Lazily materialized access map.

Shows the authorization graph as a tree rooted at principals:

    principal
      principal role
        catalog/catalog role
          grant

Principals are listed up front; every deeper level is only fetched when its
parent row is expanded. Expansion uses the same generation guard as the
namespace tree, so a response that arrives after its row was collapsed is
dropped.
"""

import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional

from polariskit.errors import StaleResponse
from polariskit.models.grants import describe_grant, grant_key
from polariskit.models.namespaces import NAMESPACE_SEPARATOR
from polariskit.models.principals import CatalogRoleRef
from polariskit.tree.state import ExpansionState, NodeState, NodeStatus

from .aggregator import AccessGraphAggregator
from .results import QueryResult

logger = logging.getLogger(__name__)

PRINCIPAL = "principal"
PRINCIPAL_ROLE = "principal-role"
CATALOG_ROLE = "catalog-role"
GRANT = "grant"


def _key(kind: str, *parts: str) -> str:
    return f"{kind}:{NAMESPACE_SEPARATOR.join(parts)}"


def principal_key(principal: str) -> str:
    return _key(PRINCIPAL, principal)


def principal_role_key(principal: str, principal_role: str) -> str:
    return _key(PRINCIPAL_ROLE, principal, principal_role)


def catalog_role_key(principal: str, principal_role: str, ref: CatalogRoleRef) -> str:
    return _key(CATALOG_ROLE, principal, principal_role, ref.catalog, ref.catalog_role)


@dataclass(frozen=True)
class AccessMapRow:
    """One display row of the access map."""
    depth: int
    kind: str
    key: str
    label: str
    status: Optional[NodeStatus] = None
    error: Optional[str] = None


class AccessMap:
    """
    Expand/collapse view over an AccessGraphAggregator.

    Loaded rows are not refreshed on their own after grants or role
    assignments change. Pass the map to GrantExecutor, or call invalidate.

    Example:
        access_map = AccessMap(aggregator)
        await access_map.load(search="ali")
        await access_map.expand_principal("alice")
        for row in access_map.rows():
            print("  " * row.depth + row.label)
    """

    def __init__(self, aggregator: AccessGraphAggregator, state: Optional[ExpansionState] = None):
        self.aggregator = aggregator
        self.state = state or ExpansionState()
        self.principals: List[str] = []
        self.errors: List[str] = []

    async def load(self, search: Optional[str] = None) -> List[str]:
        """
        List principals, optionally filtered by a case-insensitive substring.

        Returns:
            Sorted principal names (empty if listing failed; see ``errors``)
        """
        result = await self.aggregator.principals()
        self.errors = list(result.errors)
        names = sorted(result.data or [])
        if search:
            needle = search.lower()
            names = [n for n in names if needle in n.lower()]
        self.principals = names
        return names

    # =========================================================================
    # EXPANSION
    # =========================================================================

    async def _expand(
        self,
        key: str,
        fetch: Callable[[], Awaitable[QueryResult]],
        order: Callable[[QueryResult], list],
    ) -> NodeState:
        current = self.state.get(key)
        if current.status == NodeStatus.LOADED:
            self.state.reopen(key)
            return self.state.get(key)

        generation = self.state.begin(key)
        result = await fetch()
        try:
            if result.ok:
                self.state.settle(key, generation, order(result))
            else:
                self.state.fail(key, generation, "; ".join(result.errors))
        except StaleResponse as stale:
            logger.debug(str(stale))
        return self.state.get(key)

    async def expand_principal(self, principal: str) -> NodeState:
        """Load the principal roles of a principal."""
        return await self._expand(
            principal_key(principal),
            lambda: self.aggregator.roles_of(principal),
            lambda r: sorted(r.data),
        )

    async def expand_principal_role(self, principal: str, principal_role: str) -> NodeState:
        """Load the catalog roles a principal role holds."""
        return await self._expand(
            principal_role_key(principal, principal_role),
            lambda: self.aggregator.catalog_roles_reachable_from(principal_role),
            lambda r: sorted(r.data, key=lambda ref: (ref.catalog, ref.catalog_role)),
        )

    async def expand_catalog_role(
        self, principal: str, principal_role: str, ref: CatalogRoleRef
    ) -> NodeState:
        """Load the grants of a catalog role."""
        return await self._expand(
            catalog_role_key(principal, principal_role, ref),
            lambda: self.aggregator.grants_of(ref.catalog, ref.catalog_role),
            lambda r: sorted(r.data, key=grant_key),
        )

    def collapse(self, key: str) -> None:
        self.state.collapse(key)

    def is_expanded(self, key: str) -> bool:
        return self.state.is_expanded(key)

    def invalidate(self) -> None:
        """Drop loaded rows so the next expansion refetches."""
        self.state.reset_where(lambda _key: True)

    # =========================================================================
    # FLATTENING
    # =========================================================================

    def rows(self) -> List[AccessMapRow]:
        """Depth-first flattening of the visible part of the map."""
        rows: List[AccessMapRow] = []
        for principal in self.principals:
            p_key = principal_key(principal)
            if not self._row(rows, 0, PRINCIPAL, p_key, principal):
                continue
            for role in self.state.get(p_key).children:
                r_key = principal_role_key(principal, role)
                if not self._row(rows, 1, PRINCIPAL_ROLE, r_key, role):
                    continue
                for ref in self.state.get(r_key).children:
                    c_key = catalog_role_key(principal, role, ref)
                    if not self._row(rows, 2, CATALOG_ROLE, c_key, str(ref)):
                        continue
                    for grant in self.state.get(c_key).children:
                        g_key = f"{c_key}{NAMESPACE_SEPARATOR}{describe_grant(grant)}"
                        rows.append(AccessMapRow(3, GRANT, g_key, describe_grant(grant)))
        return rows

    def _row(self, rows: List[AccessMapRow], depth: int, kind: str, key: str, label: str) -> bool:
        """Append a row; returns True if its children should be shown."""
        state = self.state.get(key)
        rows.append(AccessMapRow(depth, kind, key, label, state.status, state.error))
        return state.expanded and state.status == NodeStatus.LOADED
