"""
Principal and role models for the authorization graph.

The graph has four levels:

    Principal -(m:n)- PrincipalRole -(m:n)- (Catalog, CatalogRole) -(1:n)- Grant

Principal roles are realm-wide. Catalog roles only exist inside one catalog,
so a catalog role is always identified together with its catalog
(see CatalogRoleRef).
"""

from typing import Dict, Optional

from pydantic import Field

from .base import BasePolarisModel, FrozenPolarisModel


class Principal(BasePolarisModel):
    """A user or service identity that can be assigned principal roles."""
    name: str = Field(..., description="Principal name")
    type: Optional[str] = Field(None, description="Principal type reported by the service")
    client_id: Optional[str] = Field(None, alias="clientId")
    properties: Dict[str, str] = Field(default_factory=dict)


class PrincipalRole(BasePolarisModel):
    """A realm-wide role that groups principals."""
    name: str = Field(..., description="Principal role name")
    properties: Dict[str, str] = Field(default_factory=dict)


class CatalogRole(BasePolarisModel):
    """A role scoped to a single catalog; grants attach to it."""
    name: str = Field(..., description="Catalog role name")
    catalog_name: Optional[str] = Field(None, description="Catalog owning the role")
    properties: Dict[str, str] = Field(default_factory=dict)


class CatalogRoleRef(FrozenPolarisModel):
    """Hashable (catalog, catalog role) pair."""
    catalog: str
    catalog_role: str = Field(..., alias="catalogRole")

    def __str__(self) -> str:
        return f"{self.catalog}/{self.catalog_role}"
