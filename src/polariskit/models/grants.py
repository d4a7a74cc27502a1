"""
Grant models for catalog role privileges.

A grant is a single (entity, privilege) pair attached to a catalog role. The
five entity kinds form a discriminated union on the ``type`` field, mirroring
the wire format of the management API:

    {"type": "table", "namespace": ["a"], "tableName": "t1", "privilege": "TABLE_READ_DATA"}

Each variant only accepts the privileges of its own entity kind. A privilege
outside that vocabulary is rejected when the grant is constructed, never by
the backend.
"""

from __future__ import annotations

import logging
from typing import Any, ClassVar, Dict, Iterable, Literal, Optional, Tuple, Union

from pydantic import Field, TypeAdapter, model_validator
from typing_extensions import Annotated, Self

from polariskit.errors import GrantValidationError, InvalidPrivilegeForEntity, MissingEntityName

from .base import FrozenPolarisModel
from .enums import GrantType, Privilege, is_privilege_allowed
from .namespaces import Namespace, format_namespace

logger = logging.getLogger(__name__)

CATALOG_PATH_MARKER = "(catalog)"
ROOT_NAMESPACE_MARKER = "(root)"


# =============================================================================
# GRANT VARIANTS
# =============================================================================

class _GrantBase(FrozenPolarisModel):
    """Shared privilege validation for every grant variant."""

    grant_type: ClassVar[GrantType]

    privilege: Privilege = Field(..., description="Privilege granted on the entity")

    @model_validator(mode="after")
    def check_privilege_vocabulary(self) -> Self:
        """Reject privileges that do not belong to this entity kind."""
        if not is_privilege_allowed(self.grant_type, self.privilege):
            raise InvalidPrivilegeForEntity(self.grant_type, self.privilege)
        return self


class CatalogGrant(_GrantBase):
    """Privilege on the catalog itself."""

    grant_type: ClassVar[GrantType] = GrantType.CATALOG

    type: Literal["catalog"] = "catalog"


class NamespaceGrant(_GrantBase):
    """Privilege on a namespace (the empty namespace is the catalog root)."""

    grant_type: ClassVar[GrantType] = GrantType.NAMESPACE

    type: Literal["namespace"] = "namespace"
    namespace: Tuple[str, ...] = Field(default=(), description="Full namespace path")


class _NamedGrant(_GrantBase):
    """
    Base for grants on a named entity inside a namespace.

    Subclasses declare which field carries the entity name and its wire alias.
    """

    name_field: ClassVar[str]
    name_alias: ClassVar[str]

    namespace: Tuple[str, ...] = Field(default=(), description="Namespace holding the entity")

    @model_validator(mode="before")
    @classmethod
    def require_entity_name(cls, data: Any) -> Any:
        """A table, view or policy grant without a name is meaningless."""
        if isinstance(data, dict):
            name = data.get(cls.name_field)
            if name is None:
                name = data.get(cls.name_alias)
            if not name:
                raise MissingEntityName(cls.grant_type)
        return data

    @property
    def entity_name(self) -> str:
        return getattr(self, self.name_field)


class TableGrant(_NamedGrant):
    """Privilege on a single table."""

    grant_type: ClassVar[GrantType] = GrantType.TABLE
    name_field: ClassVar[str] = "table_name"
    name_alias: ClassVar[str] = "tableName"

    type: Literal["table"] = "table"
    table_name: str = Field(..., alias="tableName")


class ViewGrant(_NamedGrant):
    """Privilege on a single view."""

    grant_type: ClassVar[GrantType] = GrantType.VIEW
    name_field: ClassVar[str] = "view_name"
    name_alias: ClassVar[str] = "viewName"

    type: Literal["view"] = "view"
    view_name: str = Field(..., alias="viewName")


class PolicyGrant(_NamedGrant):
    """Privilege on a single policy."""

    grant_type: ClassVar[GrantType] = GrantType.POLICY
    name_field: ClassVar[str] = "policy_name"
    name_alias: ClassVar[str] = "policyName"

    type: Literal["policy"] = "policy"
    policy_name: str = Field(..., alias="policyName")


Grant = Union[CatalogGrant, NamespaceGrant, TableGrant, ViewGrant, PolicyGrant]

GrantResource = Annotated[Grant, Field(discriminator="type")]

_GRANT_ADAPTER: TypeAdapter[Grant] = TypeAdapter(GrantResource)

_GRANT_CLASSES: Dict[GrantType, type] = {
    GrantType.CATALOG: CatalogGrant,
    GrantType.NAMESPACE: NamespaceGrant,
    GrantType.TABLE: TableGrant,
    GrantType.VIEW: ViewGrant,
    GrantType.POLICY: PolicyGrant,
}


# =============================================================================
# CONSTRUCTION
# =============================================================================

def build_grant(
    grant_type: Union[GrantType, str],
    privilege: Union[Privilege, str],
    namespace: Iterable[str] = (),
    name: Optional[str] = None,
) -> Grant:
    """
    Build and validate a grant.

    Args:
        grant_type: Entity kind (catalog, namespace, table, view, policy)
        privilege: Privilege to grant
        namespace: Namespace path (namespace/table/view/policy grants)
        name: Entity name (required for table/view/policy grants)

    Returns:
        The grant variant for the entity kind

    Raises:
        InvalidPrivilegeForEntity: If the privilege is not valid for the entity kind
        MissingEntityName: If a table/view/policy grant has no name
        GrantValidationError: If a catalog grant is given a path, or a
            namespace grant is given a name
    """
    kind = GrantType(grant_type)
    try:
        priv = Privilege(privilege)
    except ValueError:
        raise InvalidPrivilegeForEntity(kind, privilege) from None
    if not is_privilege_allowed(kind, priv):
        raise InvalidPrivilegeForEntity(kind, priv)

    path = tuple(namespace)
    if kind == GrantType.CATALOG:
        if path or name:
            raise GrantValidationError("Catalog grants do not take a namespace or entity name")
        return CatalogGrant(privilege=priv)
    if kind == GrantType.NAMESPACE:
        if name:
            raise GrantValidationError("Namespace grants do not take an entity name")
        return NamespaceGrant(namespace=path, privilege=priv)

    if not name:
        raise MissingEntityName(kind)
    cls = _GRANT_CLASSES[kind]
    return cls(**{"namespace": path, cls.name_field: name, "privilege": priv})


def parse_grant(payload: Dict[str, Any]) -> Grant:
    """
    Parse a wire-format grant resource.

    Raises:
        pydantic.ValidationError: If the payload is malformed or of unknown type
        GrantValidationError: If the payload violates an entity/privilege constraint
    """
    return _GRANT_ADAPTER.validate_python(payload)


def to_wire(grant: Grant) -> Dict[str, Any]:
    """Serialize a grant to its camelCase JSON body."""
    return grant.model_dump(mode="json", by_alias=True)


# =============================================================================
# IDENTITY AND DISPLAY
# =============================================================================

def entity_name(grant: Grant) -> Optional[str]:
    """Name of the table/view/policy a grant targets, or None."""
    if isinstance(grant, _NamedGrant):
        return grant.entity_name
    return None


def entity_path(grant: Grant) -> Namespace:
    """
    Full path of the granted entity inside its catalog.

    Catalog grants have the empty path; namespace grants their namespace;
    table/view/policy grants the namespace followed by the entity name.
    """
    if isinstance(grant, CatalogGrant):
        return ()
    if isinstance(grant, NamespaceGrant):
        return grant.namespace
    return grant.namespace + (grant.entity_name,)


def grant_key(grant: Grant) -> Tuple[str, Namespace, str]:
    """Identity of a grant: entity kind, full entity path and privilege."""
    return (grant.type, entity_path(grant), grant.privilege.value)


def format_path(grant: Grant) -> str:
    """
    Display path of the granted entity.

    Purely a display and search helper; carries no semantic weight.
    """
    if isinstance(grant, CatalogGrant):
        return CATALOG_PATH_MARKER
    if isinstance(grant, NamespaceGrant):
        return format_namespace(grant.namespace) if grant.namespace else ROOT_NAMESPACE_MARKER
    if grant.namespace:
        return f"{format_namespace(grant.namespace)}.{grant.entity_name}"
    return grant.entity_name


def describe_grant(grant: Grant) -> str:
    """Human-readable one-line description, e.g. ``TABLE_READ_DATA on table a.t1``."""
    return f"{grant.privilege.value} on {grant.type} {format_path(grant)}"


def dedupe_grants(grants: Iterable[Grant]) -> list:
    """Drop duplicate grants, keeping first-seen order."""
    seen = set()
    unique = []
    for grant in grants:
        key = grant_key(grant)
        if key in seen:
            logger.debug(f"Dropping duplicate grant: {describe_grant(grant)}")
            continue
        seen.add(key)
        unique.append(grant)
    return unique
