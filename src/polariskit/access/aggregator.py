"""
Authorization graph aggregator.

Resolves the chain

    Principal -> PrincipalRole -> (Catalog, CatalogRole) -> Grant

by fanning out listing calls against the backend. There is no reverse index
on the service side, so "which catalog roles does this principal role hold"
means listing every catalog, every catalog role in it and the principal roles
assigned to each.

Failures are contained: a catalog or catalog role whose listing fails is
excluded from the result, recorded in ``errors`` and logged, and the result
is marked partial. Nothing in this module raises TransportError to the caller.
"""

import asyncio
import logging
from collections import defaultdict
from typing import Any, Awaitable, Callable, Dict, FrozenSet, List, Optional, Set, Tuple, TypeVar

from polariskit.client.base import CatalogBackend
from polariskit.config import ConsoleSettings
from polariskit.errors import TransportError
from polariskit.models.grants import Grant, format_path
from polariskit.models.principals import CatalogRoleRef

from .cache import CacheKey, QueryCache
from .results import EffectiveGrant, GrantPath, QueryResult
from .statistics import AccessStatistics, AccessUniverse, reduce_statistics

logger = logging.getLogger(__name__)

T = TypeVar('T')

# Cache key families
PRINCIPALS = "principals"
CATALOGS = "catalogs"
CATALOG_ROLES = "catalog-roles"
PRINCIPAL_ROLES = "principal-roles"
ALL_PRINCIPAL_ROLES = "all-principal-roles"
ASSIGNED_PRINCIPAL_ROLES = "assigned-principal-roles"
REACHABLE = "reachable"
GRANTS = "grants"
PRINCIPAL_GRANTS = "principal-grants"
STATISTICS = "statistics"


class AccessGraphAggregator:
    """
    Read side of the authorization graph, with caching.

    Example:
        aggregator = AccessGraphAggregator(backend, settings)
        result = await aggregator.grants_for_principal("alice")
        if result.partial:
            print("Incomplete:", result.errors)
        for effective in result.data:
            print(effective.catalog, format_path(effective.grant))
    """

    def __init__(
        self,
        backend: CatalogBackend,
        settings: Optional[ConsoleSettings] = None,
        cache: Optional[QueryCache] = None,
    ):
        self.backend = backend
        self.settings = settings or ConsoleSettings()
        self.cache = cache or QueryCache(ttl_seconds=self.settings.cache_ttl_seconds)
        self._semaphore = asyncio.Semaphore(self.settings.max_concurrency)

    async def _call(self, fn: Callable[..., Awaitable[T]], *args: Any) -> T:
        """Run one backend call under the concurrency bound."""
        async with self._semaphore:
            return await fn(*args)

    # =========================================================================
    # SINGLE-CALL QUERIES
    # =========================================================================

    async def _single(
        self,
        key: CacheKey,
        description: str,
        fetch: Callable[[], Awaitable[T]],
    ) -> QueryResult[T]:
        async def load() -> QueryResult[T]:
            try:
                data = await fetch()
            except TransportError as e:
                logger.warning(f"Failed to list {description}: {e}")
                return QueryResult.failure(f"{description}: {e}")
            return QueryResult.success(data)

        return await self.cache.get_or_load(key, load)

    async def principals(self) -> QueryResult[List[str]]:
        """Names of every principal."""
        async def fetch() -> List[str]:
            return [p.name for p in await self._call(self.backend.list_principals)]
        return await self._single((PRINCIPALS,), "principals", fetch)

    async def principal_roles(self) -> QueryResult[List[str]]:
        """Names of every principal role."""
        async def fetch() -> List[str]:
            return [r.name for r in await self._call(self.backend.list_principal_roles)]
        return await self._single((ALL_PRINCIPAL_ROLES,), "principal roles", fetch)

    async def catalogs(self) -> QueryResult[List[str]]:
        """Names of every catalog."""
        async def fetch() -> List[str]:
            return [c.name for c in await self._call(self.backend.list_catalogs)]
        return await self._single((CATALOGS,), "catalogs", fetch)

    async def catalog_roles_of(self, catalog: str) -> QueryResult[List[str]]:
        """Names of the catalog roles defined in a catalog."""
        async def fetch() -> List[str]:
            return [r.name for r in await self._call(self.backend.list_catalog_roles, catalog)]
        return await self._single((CATALOG_ROLES, catalog), f"catalog roles of {catalog}", fetch)

    async def roles_of(self, principal: str) -> QueryResult[FrozenSet[str]]:
        """Principal roles assigned to a principal."""
        async def fetch() -> FrozenSet[str]:
            roles = await self._call(self.backend.list_principal_roles_of, principal)
            return frozenset(r.name for r in roles)
        return await self._single(
            (PRINCIPAL_ROLES, principal), f"principal roles of {principal}", fetch
        )

    async def assigned_principal_roles(
        self, catalog: str, catalog_role: str
    ) -> QueryResult[FrozenSet[str]]:
        """Principal roles holding a catalog role."""
        async def fetch() -> FrozenSet[str]:
            roles = await self._call(
                self.backend.list_assigned_principal_roles, catalog, catalog_role
            )
            return frozenset(r.name for r in roles)
        return await self._single(
            (ASSIGNED_PRINCIPAL_ROLES, catalog, catalog_role),
            f"principal roles assigned to {catalog}/{catalog_role}",
            fetch,
        )

    async def grants_of(self, catalog: str, catalog_role: str) -> QueryResult[FrozenSet[Grant]]:
        """Grants attached to a catalog role."""
        async def fetch() -> FrozenSet[Grant]:
            return frozenset(await self._call(self.backend.list_grants, catalog, catalog_role))
        return await self._single(
            (GRANTS, catalog, catalog_role), f"grants of {catalog}/{catalog_role}", fetch
        )

    # =========================================================================
    # FAN-OUT QUERIES
    # =========================================================================

    async def catalog_roles_reachable_from(
        self, principal_role: str
    ) -> QueryResult[FrozenSet[CatalogRoleRef]]:
        """
        Catalog roles held by a principal role, across all catalogs.

        A catalog or catalog role that cannot be checked is skipped and
        recorded; the result is then partial instead of failed.
        """
        async def load() -> QueryResult[FrozenSet[CatalogRoleRef]]:
            catalogs = await self.catalogs()
            if not catalogs.ok:
                return QueryResult.failure(catalogs.errors[0])

            errors: List[str] = []
            role_lists = await asyncio.gather(
                *(self.catalog_roles_of(c) for c in catalogs.data)
            )
            candidates: List[CatalogRoleRef] = []
            for catalog, roles in zip(catalogs.data, role_lists):
                if not roles.ok:
                    errors.extend(roles.errors)
                    continue
                candidates.extend(CatalogRoleRef(catalog=catalog, catalog_role=r) for r in roles.data)

            assignments = await asyncio.gather(
                *(self.assigned_principal_roles(ref.catalog, ref.catalog_role) for ref in candidates)
            )
            reachable: Set[CatalogRoleRef] = set()
            for ref, assigned in zip(candidates, assignments):
                if not assigned.ok:
                    errors.extend(assigned.errors)
                    continue
                if principal_role in assigned.data:
                    reachable.add(ref)

            if errors:
                logger.warning(
                    f"Catalog roles reachable from {principal_role} are incomplete: "
                    f"{len(errors)} checks failed"
                )
            return QueryResult.success(frozenset(reachable), errors)

        return await self.cache.get_or_load((REACHABLE, principal_role), load)

    async def grants_for_principal(self, principal: str) -> QueryResult[List[EffectiveGrant]]:
        """
        Every grant a principal holds through any role path.

        Grants are de-duplicated per catalog; each keeps all the
        (principal role, catalog role) paths that confer it.
        """
        async def load() -> QueryResult[List[EffectiveGrant]]:
            roles = await self.roles_of(principal)
            if not roles.ok:
                return QueryResult.failure(roles.errors[0])

            errors: List[str] = []
            role_names = sorted(roles.data)
            reachable = await asyncio.gather(
                *(self.catalog_roles_reachable_from(r) for r in role_names)
            )
            holders: Dict[CatalogRoleRef, Set[str]] = defaultdict(set)
            for role, result in zip(role_names, reachable):
                errors.extend(result.errors)
                if result.ok:
                    for ref in result.data:
                        holders[ref].add(role)

            refs = sorted(holders, key=lambda r: (r.catalog, r.catalog_role))
            grant_sets = await asyncio.gather(
                *(self.grants_of(ref.catalog, ref.catalog_role) for ref in refs)
            )
            paths: Dict[Tuple[str, Grant], Set[GrantPath]] = defaultdict(set)
            for ref, grants in zip(refs, grant_sets):
                if not grants.ok:
                    errors.extend(grants.errors)
                    continue
                for grant in grants.data:
                    for role in holders[ref]:
                        paths[(ref.catalog, grant)].add(GrantPath(role, ref.catalog_role))

            effective = [
                EffectiveGrant(
                    catalog=catalog,
                    grant=grant,
                    paths=tuple(sorted(found, key=lambda p: (p.principal_role, p.catalog_role))),
                )
                for (catalog, grant), found in paths.items()
            ]
            effective.sort(key=lambda e: (e.catalog, e.grant.type, format_path(e.grant), e.grant.privilege.value))
            return QueryResult.success(effective, errors)

        return await self.cache.get_or_load((PRINCIPAL_GRANTS, principal), load)

    # =========================================================================
    # STATISTICS
    # =========================================================================

    async def gather_universe(self) -> AccessUniverse:
        """Fetch everything the overview statistics need, recording failures."""
        universe = AccessUniverse()
        principals, principal_roles, catalogs = await asyncio.gather(
            self.principals(),
            self.principal_roles(),
            self.catalogs(),
        )
        for result in (principals, principal_roles, catalogs):
            universe.errors.extend(result.errors)
        universe.principals = list(principals.data or [])
        universe.principal_roles = list(principal_roles.data or [])

        catalog_names = list(catalogs.data or [])
        role_lists = await asyncio.gather(*(self.catalog_roles_of(c) for c in catalog_names))
        for catalog, roles in zip(catalog_names, role_lists):
            if not roles.ok:
                universe.errors.extend(roles.errors)
                continue
            universe.catalog_roles.extend(
                CatalogRoleRef(catalog=catalog, catalog_role=r) for r in roles.data
            )

        sample_size = self.settings.principal_sample_size
        sampled = universe.principals if sample_size is None else universe.principals[:sample_size]

        grant_sets, role_sets = await asyncio.gather(
            asyncio.gather(*(self.grants_of(r.catalog, r.catalog_role) for r in universe.catalog_roles)),
            asyncio.gather(*(self.roles_of(p) for p in sampled)),
        )
        for ref, grants in zip(universe.catalog_roles, grant_sets):
            if grants.ok:
                universe.grants_by_role[ref] = list(grants.data)
            else:
                universe.errors.extend(grants.errors)
        for principal, roles in zip(sampled, role_sets):
            if roles.ok:
                universe.roles_by_principal[principal] = sorted(roles.data)
            else:
                universe.errors.extend(roles.errors)
        return universe

    async def compute_statistics(self) -> AccessStatistics:
        """
        Overview counts for the whole realm.

        Returns:
            AccessStatistics; ``errors`` lists every sub-query that failed and
            was excluded from the counts
        """
        async def load() -> QueryResult[AccessStatistics]:
            stats = reduce_statistics(await self.gather_universe())
            if stats.partial:
                logger.warning(f"Access statistics are partial: {len(stats.errors)} queries failed")
            return QueryResult.success(stats, stats.errors)

        result = await self.cache.get_or_load((STATISTICS,), load)
        return result.data

    # =========================================================================
    # CACHE CONTROL
    # =========================================================================

    def snapshot(self, key: CacheKey) -> QueryResult:
        """Cached state of a query: settled, loading or idle."""
        return self.cache.snapshot(key)

    def invalidate_grants(self, catalog: str, catalog_role: str) -> None:
        """After a grant or revoke on a catalog role."""
        self.cache.invalidate((GRANTS, catalog, catalog_role))
        self.cache.invalidate(PRINCIPAL_GRANTS)
        self.cache.invalidate(STATISTICS)

    def invalidate_principal_roles(self, principal: str) -> None:
        """After a principal gained or lost a principal role."""
        self.cache.invalidate((PRINCIPAL_ROLES, principal))
        self.cache.invalidate(PRINCIPAL_GRANTS)
        self.cache.invalidate(STATISTICS)

    def invalidate_catalog_role_assignments(self, catalog: str, catalog_role: str) -> None:
        """After a principal role gained or lost a catalog role."""
        self.cache.invalidate((ASSIGNED_PRINCIPAL_ROLES, catalog, catalog_role))
        self.cache.invalidate(REACHABLE)
        self.cache.invalidate(PRINCIPAL_GRANTS)
        self.cache.invalidate(STATISTICS)

    def refresh(self) -> None:
        """Forget every cached query."""
        self.cache.clear()
        logger.info("Cleared all cached access queries")
