"""
Abstract backend interface for the catalog service.

The tree resolver, the access aggregator and the grant executor only talk to
this interface. Implementations raise TransportError for every failed call and
return already-normalized values (see normalize.py).
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from polariskit.models.catalogs import Catalog, TableIdentifier
from polariskit.models.grants import Grant
from polariskit.models.namespaces import Namespace
from polariskit.models.principals import CatalogRole, Principal, PrincipalRole


class CatalogBackend(ABC):
    """
    Async operations against the management and catalog APIs.

    All methods may raise TransportError.
    """

    # =========================================================================
    # BROWSING
    # =========================================================================

    @abstractmethod
    async def list_catalogs(self) -> List[Catalog]:
        """List every catalog in the realm."""

    @abstractmethod
    async def list_namespaces(
        self, catalog: str, parent: Optional[Namespace] = None
    ) -> List[Namespace]:
        """
        List namespaces of a catalog.

        Args:
            catalog: Catalog name
            parent: Restrict to children of this namespace; None lists
                unscoped (the service may return any depth)

        Returns:
            Full namespace paths, not guaranteed to respect ``parent``
        """

    @abstractmethod
    async def list_tables(self, catalog: str, namespace: Namespace) -> List[TableIdentifier]:
        """List tables directly inside a namespace."""

    # =========================================================================
    # PRINCIPALS AND ROLES
    # =========================================================================

    @abstractmethod
    async def list_principals(self) -> List[Principal]:
        """List every principal in the realm."""

    @abstractmethod
    async def list_principal_roles(self) -> List[PrincipalRole]:
        """List every principal role in the realm."""

    @abstractmethod
    async def list_principal_roles_of(self, principal: str) -> List[PrincipalRole]:
        """List principal roles assigned to a principal."""

    @abstractmethod
    async def list_catalog_roles(self, catalog: str) -> List[CatalogRole]:
        """List catalog roles defined in a catalog."""

    @abstractmethod
    async def list_assigned_principal_roles(
        self, catalog: str, catalog_role: str
    ) -> List[PrincipalRole]:
        """List principal roles that hold a catalog role."""

    @abstractmethod
    async def list_grants(self, catalog: str, catalog_role: str) -> List[Grant]:
        """List grants attached to a catalog role."""

    # =========================================================================
    # MUTATIONS
    # =========================================================================

    @abstractmethod
    async def add_grant(self, catalog: str, catalog_role: str, grant: Grant) -> None:
        """Attach a grant to a catalog role."""

    @abstractmethod
    async def revoke_grant(
        self, catalog: str, catalog_role: str, grant: Grant, cascade: bool = False
    ) -> None:
        """Remove a grant from a catalog role."""

    @abstractmethod
    async def assign_principal_role(self, principal: str, principal_role: str) -> None:
        """Assign a principal role to a principal."""

    @abstractmethod
    async def revoke_principal_role(self, principal: str, principal_role: str) -> None:
        """Remove a principal role from a principal."""

    @abstractmethod
    async def assign_catalog_role(
        self, principal_role: str, catalog: str, catalog_role: str
    ) -> None:
        """Give a principal role a catalog role."""

    @abstractmethod
    async def revoke_catalog_role(
        self, principal_role: str, catalog: str, catalog_role: str
    ) -> None:
        """Take a catalog role away from a principal role."""
