"""
Access overview statistics.

The aggregator gathers an AccessUniverse from the backend; reduce_statistics
turns it into counts without any I/O. Sub-queries that failed while gathering
are absent from the universe and listed in ``errors``, so they never show up
as zeros: a catalog role whose grants could not be listed is not counted as
privilege-less.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Tuple

from polariskit.models.grants import Grant
from polariskit.models.principals import CatalogRoleRef


@dataclass(frozen=True)
class SampledCount:
    """
    A count taken over a sample of a population.

    ``is_sample`` is True when fewer items were inspected than exist, in which
    case ``count`` is a lower bound for the population.
    """
    count: int
    sample_size: int
    population: int

    @property
    def is_sample(self) -> bool:
        return self.sample_size < self.population


@dataclass
class AccessUniverse:
    """Raw material for the statistics, as far as it could be fetched."""
    principals: List[str] = field(default_factory=list)
    principal_roles: List[str] = field(default_factory=list)
    catalog_roles: List[CatalogRoleRef] = field(default_factory=list)
    # Only roles whose grants were listed successfully
    grants_by_role: Dict[CatalogRoleRef, List[Grant]] = field(default_factory=dict)
    # Only sampled principals whose roles were listed successfully
    roles_by_principal: Dict[str, List[str]] = field(default_factory=dict)
    errors: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class AccessStatistics:
    """Headline numbers of the access overview."""
    total_principals: int
    total_principal_roles: int
    total_catalog_roles: int
    total_privileges: int
    catalog_roles_with_no_privileges: int
    principals_with_no_roles: SampledCount
    errors: Tuple[str, ...] = ()

    @property
    def partial(self) -> bool:
        return bool(self.errors)


def reduce_statistics(universe: AccessUniverse) -> AccessStatistics:
    """
    Compute statistics from a gathered universe.

    Args:
        universe: Gathered principals, roles and grants

    Returns:
        AccessStatistics; failed sub-queries are excluded from every count
    """
    total_privileges = sum(len(grants) for grants in universe.grants_by_role.values())
    empty_roles = sum(
        1 for ref in universe.catalog_roles
        if ref in universe.grants_by_role and not universe.grants_by_role[ref]
    )
    inspected = universe.roles_by_principal
    no_roles = sum(1 for roles in inspected.values() if not roles)

    return AccessStatistics(
        total_principals=len(universe.principals),
        total_principal_roles=len(universe.principal_roles),
        total_catalog_roles=len(universe.catalog_roles),
        total_privileges=total_privileges,
        catalog_roles_with_no_privileges=empty_roles,
        principals_with_no_roles=SampledCount(
            count=no_roles,
            sample_size=len(inspected),
            population=len(universe.principals),
        ),
        errors=tuple(universe.errors),
    )
