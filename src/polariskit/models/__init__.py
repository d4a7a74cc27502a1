"""
Catalog governance models.

All models are exported from this single interface for convenience.
"""

from .enums import (
    GrantType,
    TreeNodeType,
    Privilege,
    ALLOWED_PRIVILEGES,
    CATALOG_PRIVILEGES,
    NAMESPACE_PRIVILEGES,
    TABLE_PRIVILEGES,
    VIEW_PRIVILEGES,
    POLICY_PRIVILEGES,
    is_privilege_allowed,
)

from .base import BasePolarisModel, FrozenPolarisModel

from .namespaces import (
    NAMESPACE_SEPARATOR,
    Namespace,
    encode_namespace,
    decode_namespace,
    as_namespace,
    is_prefix,
    is_strict_prefix,
    format_namespace,
)

from .grants import (
    Grant,
    GrantResource,
    CatalogGrant,
    NamespaceGrant,
    TableGrant,
    ViewGrant,
    PolicyGrant,
    build_grant,
    parse_grant,
    to_wire,
    entity_name,
    entity_path,
    grant_key,
    format_path,
    describe_grant,
    dedupe_grants,
)

from .catalogs import Catalog, TableIdentifier

from .principals import Principal, PrincipalRole, CatalogRole, CatalogRoleRef

__all__ = [
    # Enums
    'GrantType',
    'TreeNodeType',
    'Privilege',
    'ALLOWED_PRIVILEGES',
    'CATALOG_PRIVILEGES',
    'NAMESPACE_PRIVILEGES',
    'TABLE_PRIVILEGES',
    'VIEW_PRIVILEGES',
    'POLICY_PRIVILEGES',
    'is_privilege_allowed',
    # Base
    'BasePolarisModel',
    'FrozenPolarisModel',
    # Namespaces
    'NAMESPACE_SEPARATOR',
    'Namespace',
    'encode_namespace',
    'decode_namespace',
    'as_namespace',
    'is_prefix',
    'is_strict_prefix',
    'format_namespace',
    # Grants
    'Grant',
    'GrantResource',
    'CatalogGrant',
    'NamespaceGrant',
    'TableGrant',
    'ViewGrant',
    'PolicyGrant',
    'build_grant',
    'parse_grant',
    'to_wire',
    'entity_name',
    'entity_path',
    'grant_key',
    'format_path',
    'describe_grant',
    'dedupe_grants',
    # Entities
    'Catalog',
    'TableIdentifier',
    'Principal',
    'PrincipalRole',
    'CatalogRole',
    'CatalogRoleRef',
]
