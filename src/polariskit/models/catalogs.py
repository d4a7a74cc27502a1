"""
Catalog and table references returned by the catalog service.

These are NOT for creating objects, only for browsing them and targeting
grants. Objects are created and owned by the catalog service.
"""

from typing import Dict, Optional, Tuple

from pydantic import Field

from .base import BasePolarisModel, FrozenPolarisModel
from .namespaces import format_namespace


class Catalog(BasePolarisModel):
    """
    A catalog as listed by the management API.

    Example:
        Catalog.model_validate({
            "name": "analytics",
            "type": "INTERNAL",
            "properties": {"default-base-location": "s3://bucket/analytics"},
        })
    """
    name: str = Field(..., description="Catalog name")
    type: Optional[str] = Field(None, description="INTERNAL or EXTERNAL")
    properties: Dict[str, str] = Field(default_factory=dict)
    create_timestamp: Optional[int] = Field(None, alias="createTimestamp")
    entity_version: Optional[int] = Field(None, alias="entityVersion")

    @property
    def default_base_location(self) -> Optional[str]:
        return self.properties.get("default-base-location")


class TableIdentifier(FrozenPolarisModel):
    """A table inside a namespace, as returned by the list-tables call."""
    namespace: Tuple[str, ...] = Field(default=(), description="Namespace holding the table")
    name: str = Field(..., description="Table name")

    @property
    def full_name(self) -> str:
        """Dotted display name, e.g. ``accounting.tax.invoices``."""
        if not self.namespace:
            return self.name
        return f"{format_namespace(self.namespace)}.{self.name}"
